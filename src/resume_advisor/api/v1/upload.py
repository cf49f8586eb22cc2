import logging
from pathlib import Path

from fastapi import APIRouter, Depends, UploadFile, status

from resume_advisor.api.deps import get_upload_store
from resume_advisor.core.config import get_settings
from resume_advisor.core.exceptions import FileValidationError, NotFoundError
from resume_advisor.schemas.upload import UploadResult
from resume_advisor.storage.base import UploadStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["upload"])

PDF_MAGIC = b"%PDF"


def _validate_upload(file: UploadFile) -> str:
    settings = get_settings()
    if not file.filename:
        raise FileValidationError("Filename is required")

    ext = Path(file.filename).suffix.lower()
    if ext not in settings.allowed_extensions:
        raise FileValidationError(
            f"File type '{ext}' not allowed. "
            f"Allowed: {', '.join(sorted(settings.allowed_extensions))}"
        )
    return ext


@router.post("/upload", response_model=UploadResult, status_code=status.HTTP_201_CREATED)
async def upload_resume(
    file: UploadFile,
    store: UploadStore = Depends(get_upload_store),
) -> UploadResult:
    ext = _validate_upload(file)

    settings = get_settings()
    content = await file.read()
    if not content:
        raise FileValidationError("File is empty")
    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise FileValidationError(f"File size exceeds maximum of {settings.max_upload_size_mb}MB")
    if not content.startswith(PDF_MAGIC):
        raise FileValidationError("File content is not a valid PDF")

    file_id = await store.save(content, ext)
    logger.info("Uploaded %s as %s (%d bytes)", file.filename, file_id, len(content))
    return UploadResult(
        file_id=file_id,
        file_name=file.filename or "resume.pdf",
        file_size_bytes=len(content),
    )


@router.delete("/upload/{file_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_upload(
    file_id: str,
    store: UploadStore = Depends(get_upload_store),
) -> None:
    if not await store.delete(file_id):
        raise NotFoundError("File", file_id)
