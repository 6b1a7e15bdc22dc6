"""
Image Store - product images kept in GridFS

Images are written in chunks to the ``images`` bucket of the application
database and read back as a stream. Ids are ObjectId hex strings.
"""

import os
import secrets
import time
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import Depends
from gridfs.errors import NoFile
from motor.motor_asyncio import AsyncIOMotorDatabase, AsyncIOMotorGridFSBucket

from storefront.core.config import settings
from storefront.core.database import get_db
from storefront.core.exceptions import ImageNotFoundError, ImageUploadError
from storefront.core.logging_config import logger

DEFAULT_CONTENT_TYPE = "image/jpeg"
DEFAULT_EXTENSION = ".jpg"


def parse_image_id(image_id: str) -> Optional[ObjectId]:
    """ObjectId for a stored image id, None when the id is malformed"""
    if not isinstance(image_id, str):
        return None
    try:
        return ObjectId(image_id)
    except (InvalidId, TypeError):
        return None


def generate_image_filename(original_name: Optional[str]) -> str:
    """Unique storage name: <epoch-ms>-<random>.<original extension or jpg>"""
    extension = os.path.splitext(original_name or "")[1].lower() or DEFAULT_EXTENSION
    return f"{int(time.time() * 1000)}-{secrets.randbelow(10 ** 9)}{extension}"


@dataclass
class StoredImageRef:
    id: str
    filename: str


@dataclass
class StoredImage:
    """An open download stream plus the metadata needed for HTTP headers"""
    id: str
    filename: str
    content_type: str
    length: int
    _stream: Any = field(repr=False)

    async def chunks(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await self._stream.readchunk()
            if not chunk:
                break
            yield chunk


class ImageStore:
    """Thin wrapper over a GridFS bucket"""

    def __init__(self, bucket: AsyncIOMotorGridFSBucket):
        self.bucket = bucket

    async def upload(self, data: bytes, filename: str, content_type: str) -> StoredImageRef:
        try:
            file_id = await self.bucket.upload_from_stream(
                filename,
                data,
                metadata={"contentType": content_type},
            )
        except Exception as e:
            logger.log_error_with_context(e, context="image_upload", image_filename=filename)
            raise ImageUploadError(filename, str(e))

        logger.info(f"[ImageStore] Stored {filename} ({len(data)} bytes) as {file_id}")
        return StoredImageRef(id=str(file_id), filename=filename)

    async def open(self, image_id: str) -> StoredImage:
        object_id = parse_image_id(image_id)
        if object_id is None:
            raise ImageNotFoundError(image_id)

        try:
            stream = await self.bucket.open_download_stream(object_id)
        except NoFile:
            raise ImageNotFoundError(image_id)

        metadata = stream.metadata or {}
        return StoredImage(
            id=str(object_id),
            filename=stream.filename,
            content_type=metadata.get("contentType") or DEFAULT_CONTENT_TYPE,
            length=stream.length,
            _stream=stream,
        )

    async def delete(self, image_id: str) -> bool:
        """Delete an image; False when the id is malformed or unknown"""
        object_id = parse_image_id(image_id)
        if object_id is None:
            return False

        try:
            await self.bucket.delete(object_id)
        except NoFile:
            return False

        logger.info(f"[ImageStore] Deleted image {image_id}")
        return True


def get_image_store(db: AsyncIOMotorDatabase = Depends(get_db)) -> ImageStore:
    """FastAPI dependency: image store bound to the request's database"""
    return ImageStore(AsyncIOMotorGridFSBucket(db, bucket_name=settings.IMAGE_BUCKET_NAME))
