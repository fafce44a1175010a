"""Client configuration with environment variable loading.

Pydantic-based configuration for the assistant client. Values come from
the environment (and a local .env file) unless passed explicitly.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()

MAX_UPLOAD_BYTES = 50 * 1024 * 1024  # 50MB


class ClientConfig(BaseModel):
    """Configuration for the assistant client.

    Attributes:
        backend_url: Base URL of the remote analysis service.
        appwrite_endpoint: Appwrite API endpoint used for sign-in and JWTs.
        appwrite_project_id: Appwrite project identifier.
        token_refresh_buffer_seconds: A cached token is refreshed once it
            expires within this many seconds.
        request_timeout: Timeout in seconds for chat and upload requests.
        max_upload_bytes: Largest file accepted by the upload sidecar.
    """

    backend_url: str = Field(
        default_factory=lambda: os.getenv("BACKEND_URL", "http://localhost:3000"),
        description="Analysis service base URL",
    )
    appwrite_endpoint: str = Field(
        default_factory=lambda: os.getenv("APPWRITE_ENDPOINT", ""),
        description="Appwrite API endpoint, e.g. https://cloud.appwrite.io/v1",
    )
    appwrite_project_id: str = Field(
        default_factory=lambda: os.getenv("APPWRITE_PROJECT_ID", ""),
        description="Appwrite project identifier",
    )
    token_refresh_buffer_seconds: float = Field(
        default=60.0,
        ge=0.0,
        description="Seconds before expiry at which a cached token is refreshed",
    )
    request_timeout: float = Field(
        default=120.0,
        gt=0.0,
        description="Timeout in seconds for outgoing requests",
    )
    max_upload_bytes: int = Field(
        default=MAX_UPLOAD_BYTES,
        ge=1,
        description="Maximum upload size in bytes",
    )

    @field_validator("backend_url", "appwrite_endpoint")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize URLs so paths can be appended with a single slash."""
        return v.strip().rstrip("/")

    @field_validator("backend_url")
    @classmethod
    def validate_backend_url(cls, v: str) -> str:
        """Validate that the backend URL is an http(s) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("BACKEND_URL must start with http:// or https://")
        return v


def get_client_config() -> ClientConfig:
    """Create client configuration from environment.

    Returns:
        Configured ClientConfig instance.

    Raises:
        ValueError: If BACKEND_URL is not an http(s) URL.
    """
    return ClientConfig()
