"""
Cloudinary-backed object store for listing photos.

The cloudinary SDK is synchronous; uploads run in the default executor.
"""
import asyncio
from functools import partial

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
import structlog

from src.application.interfaces.object_store import ObjectStore, StoredObject
from src.config import settings
from src.domain.errors import UploadError

logger = structlog.get_logger(__name__)

ALLOWED_FORMATS = ["jpg", "jpeg", "png", "webp"]

# Cap the stored image at 1000x1000 without upscaling smaller ones
_TRANSFORMATION = [{"width": 1000, "height": 1000, "crop": "limit"}]


class CloudinaryObjectStore(ObjectStore):
    def __init__(self, folder: str = settings.cloudinary_folder) -> None:
        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True,
        )
        self._folder = folder

    async def upload(self, data: bytes, filename: str) -> StoredObject:
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(
                None,
                partial(
                    cloudinary.uploader.upload,
                    data,
                    folder=self._folder,
                    allowed_formats=ALLOWED_FORMATS,
                    transformation=_TRANSFORMATION,
                    resource_type="image",
                ),
            )
        except cloudinary.exceptions.Error as exc:
            logger.error("image_upload_failed", filename=filename, error=str(exc))
            raise UploadError() from exc

        logger.info("image_uploaded", filename=filename, storage_id=result["public_id"])
        return StoredObject(url=result["secure_url"], storage_id=result["public_id"])
