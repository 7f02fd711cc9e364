from fastapi import APIRouter, Depends, File, Form, UploadFile

from recruitflow import models
from recruitflow.config import Settings
from recruitflow.deps import get_current_user, get_settings, get_storage
from recruitflow.errors import ValidationError
from recruitflow.schemas import UploadOut
from recruitflow.storage import ObjectStorage, build_upload_key

router = APIRouter(prefix="/media", tags=["media"])


@router.post("/upload", response_model=UploadOut, status_code=201)
def upload_file(
    file: UploadFile = File(...),
    type: str = Form(..., description="Folder for the upload, e.g. logo or office_photo"),
    current_user: models.User = Depends(get_current_user),
    storage: ObjectStorage = Depends(get_storage),
    settings: Settings = Depends(get_settings),
) -> UploadOut:
    if not type.strip():
        raise ValidationError("File and type are required")
    if file.content_type not in settings.UPLOAD_ALLOWED_TYPES:
        raise ValidationError("File type is not allowed", allowed=settings.UPLOAD_ALLOWED_TYPES)

    data = file.file.read(settings.UPLOAD_MAX_BYTES + 1)
    if not data:
        raise ValidationError("Uploaded file is empty")
    if len(data) > settings.UPLOAD_MAX_BYTES:
        raise ValidationError(f"File must be {settings.UPLOAD_MAX_BYTES // (1024 * 1024)}MB or smaller")

    object_key = build_upload_key(type, file.filename)
    storage.put_object(settings.S3_BUCKET_JOBS, object_key, data, file.content_type)
    signed = storage.presign_get_object(settings.S3_BUCKET_JOBS, object_key, settings.MEDIA_SIGN_EXPIRY_SEC)
    return UploadOut(object_key=object_key, url=signed["url"], expires_at=signed["expires_at"])
