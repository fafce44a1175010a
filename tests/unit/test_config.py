"""Unit tests for ClientConfig."""

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from rare_assistant.config import MAX_UPLOAD_BYTES, ClientConfig, get_client_config


class TestClientConfig:
    """Tests for ClientConfig validation."""

    def test_defaults(self) -> None:
        """Config uses sensible defaults when only the backend URL is given."""
        config = ClientConfig(backend_url="http://localhost:3000")

        assert config.token_refresh_buffer_seconds == 60.0
        assert config.request_timeout == 120.0
        assert config.max_upload_bytes == MAX_UPLOAD_BYTES

    def test_strips_trailing_slash(self) -> None:
        config = ClientConfig(
            backend_url="https://api.example.org/ ",
            appwrite_endpoint="https://cloud.appwrite.io/v1/",
        )

        assert config.backend_url == "https://api.example.org"
        assert config.appwrite_endpoint == "https://cloud.appwrite.io/v1"

    def test_rejects_non_http_backend(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            ClientConfig(backend_url="ftp://example.org")

        assert "BACKEND_URL" in str(exc_info.value)

    def test_rejects_negative_buffer(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            ClientConfig(backend_url="http://x", token_refresh_buffer_seconds=-1)

        assert "token_refresh_buffer_seconds" in str(exc_info.value)

    def test_rejects_zero_timeout(self) -> None:
        with pytest.raises(ValidationError):
            ClientConfig(backend_url="http://x", request_timeout=0)


class TestGetClientConfig:
    """Tests for get_client_config factory function."""

    def test_reads_environment(self) -> None:
        env = {
            "BACKEND_URL": "https://analysis.example.org",
            "APPWRITE_ENDPOINT": "https://cloud.appwrite.io/v1",
            "APPWRITE_PROJECT_ID": "rare-disease",
        }
        with patch.dict("os.environ", env):
            config = get_client_config()

        assert config.backend_url == "https://analysis.example.org"
        assert config.appwrite_project_id == "rare-disease"

    def test_invalid_environment_fails(self) -> None:
        with (
            patch.dict("os.environ", {"BACKEND_URL": "localhost:3000"}),
            pytest.raises(ValidationError),
        ):
            get_client_config()
