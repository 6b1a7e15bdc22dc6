from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import StreamingResponse

from storefront.core.config import settings
from storefront.core.exceptions import FileTooLargeError, ImageNotFoundError, InvalidFileTypeError
from storefront.core.logging_config import logger
from storefront.core.rate_limiter import UPLOAD_LIMIT, limiter
from storefront.modules.auth.dependencies import get_current_admin
from storefront.schemas.common import success_response
from storefront.services.image_store import ImageStore, generate_image_filename, get_image_store

router = APIRouter()


@router.post("/upload")
@limiter.limit(UPLOAD_LIMIT)
async def upload_image(
    request: Request,
    file: UploadFile = File(...),
    image_store: ImageStore = Depends(get_image_store),
    admin: dict = Depends(get_current_admin)
):
    """Upload a product image to the blob store (Admin only)"""
    content_type = file.content_type or ""
    if not content_type.startswith("image/"):
        raise InvalidFileTypeError(content_type or "unknown")

    data = await file.read()
    if len(data) > settings.MAX_UPLOAD_SIZE:
        raise FileTooLargeError(len(data), settings.MAX_UPLOAD_SIZE)

    filename = generate_image_filename(file.filename)
    stored = await image_store.upload(data, filename, content_type)

    logger.info(f"[Upload] {admin['email']} uploaded {file.filename} as {stored.id}")
    return success_response(
        {
            "url": settings.get_image_url(stored.id),
            "filename": stored.filename,
            "id": stored.id,
            "type": "gridfs",
        },
        "Image uploaded successfully"
    )


@router.get("/images/{image_id}")
async def get_image(
    image_id: str,
    image_store: ImageStore = Depends(get_image_store)
):
    """Stream a stored image"""
    image = await image_store.open(image_id)
    return StreamingResponse(
        image.chunks(),
        media_type=image.content_type,
        headers={
            "Content-Length": str(image.length),
            "Cache-Control": f"public, max-age={settings.IMAGE_CACHE_MAX_AGE}, immutable",
            "Content-Disposition": f'inline; filename="{image.filename}"',
        },
    )


@router.delete("/images/{image_id}")
async def delete_image(
    image_id: str,
    image_store: ImageStore = Depends(get_image_store),
    admin: dict = Depends(get_current_admin)
):
    """Delete a stored image (Admin only)"""
    if not await image_store.delete(image_id):
        raise ImageNotFoundError(image_id)
    return success_response({"id": image_id}, "Image deleted successfully")
