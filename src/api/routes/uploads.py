from fastapi import APIRouter, Depends, File, UploadFile

from src.api.dependencies import get_current_principal, get_object_store
from src.api.schemas.listing_responses import Envelope, UploadResponse
from src.application.interfaces.object_store import ObjectStore
from src.config import settings
from src.domain.errors import ValidationError
from src.domain.value_objects import Principal

router = APIRouter(prefix="/api", tags=["uploads"])

ALLOWED_CONTENT_TYPES = frozenset({"image/jpeg", "image/png", "image/webp"})


@router.post("/upload", response_model=Envelope[UploadResponse], response_model_exclude_none=True)
async def upload_image(
    image: UploadFile | None = File(default=None),
    principal: Principal = Depends(get_current_principal),
    store: ObjectStore = Depends(get_object_store),
) -> Envelope[UploadResponse]:
    """Store one listing photo; the returned url/storageId go into a listing's images."""
    if image is None:
        raise ValidationError(["image is required"], message="No file uploaded")
    if image.content_type not in ALLOWED_CONTENT_TYPES:
        raise ValidationError(["image must be a JPEG, PNG or WebP file"])

    data = await image.read(settings.upload_max_bytes + 1)
    if not data:
        raise ValidationError(["image is empty"], message="No file uploaded")
    if len(data) > settings.upload_max_bytes:
        raise ValidationError([f"image must be at most {settings.upload_max_bytes} bytes"])

    stored = await store.upload(data, image.filename or "upload")
    return Envelope(
        message="Image uploaded successfully",
        data=UploadResponse(url=stored.url, storage_id=stored.storage_id),
    )
