"""Client-side validation of files before upload.

Rejects files the analysis service would refuse anyway, so the user
gets immediate feedback without a round trip.
"""

import io
from pathlib import PurePath

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from rare_assistant.config import MAX_UPLOAD_BYTES

ALLOWED_EXTENSIONS = frozenset({"pdf", "jpg", "jpeg", "png"})
PDF_MAGIC_BYTES = b"%PDF"


class UploadValidationError(Exception):
    """Raised when a file cannot be uploaded."""

    pass


def file_extension(filename: str) -> str:
    return PurePath(filename).suffix.lstrip(".").lower()


def _validate_pdf(content: bytes) -> None:
    if not content.lstrip()[:10].startswith(PDF_MAGIC_BYTES):
        raise UploadValidationError("Invalid PDF: file does not start with PDF header")

    try:
        reader = PdfReader(io.BytesIO(content))
        pages = len(reader.pages)
    except PdfReadError as e:
        raise UploadValidationError(f"Corrupt or invalid PDF: {e}") from e
    except Exception as e:
        raise UploadValidationError(f"Failed to read PDF: {e}") from e

    if pages == 0:
        raise UploadValidationError("PDF contains no pages")


def validate_upload(
    filename: str,
    content: bytes,
    max_bytes: int = MAX_UPLOAD_BYTES,
) -> None:
    """Validate a file for upload.

    Args:
        filename: Original filename, used for the extension check.
        content: Raw file bytes.
        max_bytes: Largest accepted size.

    Raises:
        UploadValidationError: If the file is empty, too large, of a
            disallowed type, or an unreadable PDF.
    """
    if not filename:
        raise UploadValidationError("Filename is required")

    if not content:
        raise UploadValidationError("Empty file provided")

    if len(content) > max_bytes:
        limit_mb = max_bytes // (1024 * 1024)
        raise UploadValidationError(f"File size exceeds {limit_mb}MB limit")

    extension = file_extension(filename)
    if extension not in ALLOWED_EXTENSIONS:
        raise UploadValidationError("Only PDF and image files (JPG, PNG) are allowed")

    if extension == "pdf":
        _validate_pdf(content)
