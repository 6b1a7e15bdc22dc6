"""
Unit Tests for the GridFS image store
"""
import re

import pytest
from bson import ObjectId

from storefront.core.exceptions import ImageNotFoundError, ImageUploadError
from storefront.services.image_store import generate_image_filename, parse_image_id


class TestHelpers:

    def test_parse_image_id(self):
        oid = ObjectId()
        assert parse_image_id(str(oid)) == oid
        assert parse_image_id("not-an-id") is None
        assert parse_image_id(None) is None

    def test_generated_filename_keeps_extension(self):
        assert re.fullmatch(r"\d+-\d+\.png", generate_image_filename("Photo.PNG"))

    def test_generated_filename_defaults_to_jpg(self):
        assert generate_image_filename(None).endswith(".jpg")
        assert generate_image_filename("noext").endswith(".jpg")

    def test_generated_filenames_are_unique(self):
        assert len({generate_image_filename("a.png") for _ in range(50)}) == 50


class TestImageStore:

    async def test_upload_and_stream_back(self, image_store):
        ref = await image_store.upload(b"0123456789", "1-2.png", "image/png")

        image = await image_store.open(ref.id)
        data = b"".join([chunk async for chunk in image.chunks()])

        assert data == b"0123456789"
        assert image.content_type == "image/png"
        assert image.length == 10
        assert image.filename == "1-2.png"

    async def test_missing_content_type_defaults_to_jpeg(self, image_store, gridfs_bucket):
        file_id = await gridfs_bucket.upload_from_stream("x.jpg", b"abc")

        image = await image_store.open(str(file_id))

        assert image.content_type == "image/jpeg"

    async def test_open_unknown_or_malformed_id(self, image_store):
        with pytest.raises(ImageNotFoundError):
            await image_store.open(str(ObjectId()))
        with pytest.raises(ImageNotFoundError):
            await image_store.open("bogus")

    async def test_delete(self, image_store, gridfs_bucket):
        ref = await image_store.upload(b"abc", "a.png", "image/png")

        assert await image_store.delete(ref.id) is True
        assert gridfs_bucket.files == {}
        assert await image_store.delete(ref.id) is False
        assert await image_store.delete("bogus") is False

    async def test_upload_failure(self, image_store, gridfs_bucket):
        gridfs_bucket.fail_uploads = True

        with pytest.raises(ImageUploadError):
            await image_store.upload(b"abc", "a.png", "image/png")

        with pytest.raises(ImageUploadError) as exc_info:
            await image_store.upload(b"abc", "b.png", "image/png")

        assert exc_info.value.code == "IMAGE_UPLOAD_FAILED"
        assert exc_info.value.details["filename"] == "b.png"
