"""Resume upload checks. Independent of the question flow."""

from typing import Optional

import structlog

logger = structlog.get_logger()

ALLOWED_RESUME_TYPES = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
}
MAX_RESUME_BYTES = 10 * 1024 * 1024  # 10MB
READ_CHUNK_BYTES = 64 * 1024

TYPE_ERROR = "Please upload a PDF, DOC, or DOCX file."
SIZE_ERROR = "File size must be less than 10MB."


def check_resume_type(filename: str, content_type: Optional[str]) -> Optional[str]:
    media_type = (content_type or "").split(";")[0].strip().lower()
    if media_type not in ALLOWED_RESUME_TYPES:
        logger.info("resume_rejected", filename=filename, reason="content_type", content_type=media_type)
        return TYPE_ERROR
    return None


def check_resume_size(filename: str, size: int) -> Optional[str]:
    if size > MAX_RESUME_BYTES:
        logger.info("resume_rejected", filename=filename, reason="size", size=size)
        return SIZE_ERROR
    return None


def validate_resume(filename: str, content_type: Optional[str], size: int) -> Optional[str]:
    """Return the rejection reason for an upload, or None if it is acceptable."""
    error = check_resume_type(filename, content_type) or check_resume_size(filename, size)
    if error is None:
        logger.info("resume_accepted", filename=filename, size=size)
    return error
