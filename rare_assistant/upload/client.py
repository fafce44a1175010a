"""Upload sidecar: sends user files to the analysis service.

Runs independently of the chat turn. It shares only the token cache with
the session controller and keeps its own list of file entries, so an
upload can never alter conversation state.
"""

import asyncio
import logging
import mimetypes
import uuid
from collections.abc import Callable

import httpx

from rare_assistant.auth.provider import AuthUnavailable
from rare_assistant.auth.token_cache import TokenCache
from rare_assistant.config import ClientConfig, get_client_config
from rare_assistant.models.schemas import UploadedFile, UploadStatus
from rare_assistant.upload.validation import UploadValidationError, validate_upload

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/api/upload"

# The service indexes files asynchronously after accepting them
PROCESSING_GRACE_SECONDS = 2.0


class UploadError(Exception):
    """Raised when the service rejects or never receives an upload."""

    pass


class UploadTracker:
    """Uploads files and tracks their status for display."""

    def __init__(
        self,
        token_cache: TokenCache,
        config: ClientConfig | None = None,
        client: httpx.AsyncClient | None = None,
        processing_grace_seconds: float = PROCESSING_GRACE_SECONDS,
    ) -> None:
        self._token_cache = token_cache
        self._config = config or get_client_config()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self._config.request_timeout)
        self._grace = processing_grace_seconds
        self._files: list[UploadedFile] = []
        self._listeners: list[Callable[[], None]] = []

    @property
    def files(self) -> tuple[UploadedFile, ...]:
        return tuple(self._files)

    def subscribe(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def _set_status(self, file_id: str, status: UploadStatus, error: str | None = None) -> None:
        for i, entry in enumerate(self._files):
            if entry.id == file_id:
                self._files[i] = entry.model_copy(update={"status": status, "error": error})
                self._notify()
                return

    def remove(self, file_id: str) -> None:
        """Drop an entry from the list."""
        self._files = [f for f in self._files if f.id != file_id]
        self._notify()

    async def upload(self, filename: str, content: bytes) -> UploadedFile | None:
        """Validate and upload one file.

        Args:
            filename: Original filename.
            content: Raw file bytes.

        Returns:
            The entry in its final state, or None if it was removed meanwhile.
        """
        file_id = uuid.uuid4().hex

        try:
            validate_upload(filename, content, max_bytes=self._config.max_upload_bytes)
        except UploadValidationError as e:
            logger.info(f"Rejected upload {filename}: {e}")
            entry = UploadedFile(id=file_id, name=filename, status=UploadStatus.FAILED, error=str(e))
            self._files.append(entry)
            self._notify()
            return entry

        self._files.append(UploadedFile(id=file_id, name=filename, status=UploadStatus.UPLOADING))
        self._notify()

        try:
            await self._send(filename, content)
        except (AuthUnavailable, UploadError) as e:
            logger.warning(f"Upload of {filename} failed: {e}")
            self._set_status(file_id, UploadStatus.FAILED, str(e))
            return self._find(file_id)

        self._set_status(file_id, UploadStatus.PROCESSING)
        await asyncio.sleep(self._grace)
        self._set_status(file_id, UploadStatus.COMPLETED)
        logger.info(f"Uploaded {filename}")
        return self._find(file_id)

    async def _send(self, filename: str, content: bytes) -> None:
        """POST the file as multipart form data.

        Raises:
            AuthUnavailable: If no credential can be obtained.
            UploadError: On connection errors or a non-2xx response.
        """
        credential = await self._token_cache.get_valid_token()
        content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"

        try:
            response = await self._client.post(
                f"{self._config.backend_url}{UPLOAD_PATH}",
                files={"file": (filename, content, content_type)},
                headers={"Authorization": f"Bearer {credential.token}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise UploadError(e.response.text or "Upload failed") from e
        except httpx.RequestError as e:
            raise UploadError(f"Connection failed: {e}") from e

    def _find(self, file_id: str) -> UploadedFile | None:
        return next((f for f in self._files if f.id == file_id), None)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
