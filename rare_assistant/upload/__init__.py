"""File upload sidecar for the analysis service's user file index.

Responsibilities:
    - Size, type and PDF readability checks with pypdf
    - Authenticated multipart upload
    - Per-file status tracking for display
"""

from rare_assistant.upload.client import UploadError, UploadTracker
from rare_assistant.upload.validation import (
    ALLOWED_EXTENSIONS,
    UploadValidationError,
    validate_upload,
)

__all__ = [
    "ALLOWED_EXTENSIONS",
    "UploadError",
    "UploadTracker",
    "UploadValidationError",
    "validate_upload",
]
