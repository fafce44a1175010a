"""Pytest fixtures and shared test configuration.

Fixtures:
    - clock: settable fake clock shared by provider and cache
    - provider: fake credential provider issuing JWTs
    - token_cache: TokenCache over the fake provider
    - config: client configuration pointing at the fake service
    - store: empty conversation store
    - async_client: HTTPX client for the hosting app
"""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from rare_assistant.api.app import create_app
from rare_assistant.auth.token_cache import TokenCache
from rare_assistant.chat.store import ConversationStore
from rare_assistant.config import ClientConfig
from tests.fakes import FakeClock, FakeCredentialProvider


@pytest.fixture
def clock() -> FakeClock:
    """Return a fake clock frozen at a fixed instant."""
    return FakeClock()


@pytest.fixture
def provider(clock: FakeClock) -> FakeCredentialProvider:
    """Return a provider with an active session and 10 minute tokens."""
    return FakeCredentialProvider(clock)


@pytest.fixture
def token_cache(provider: FakeCredentialProvider, clock: FakeClock) -> TokenCache:
    """Return a token cache with the default 60 second refresh buffer."""
    return TokenCache(provider, refresh_buffer_seconds=60, clock=clock)


@pytest.fixture
def config() -> ClientConfig:
    """Return configuration pointing at the fake analysis service."""
    return ClientConfig(
        backend_url="http://test",
        appwrite_endpoint="http://appwrite.test/v1",
        appwrite_project_id="test-project",
    )


@pytest.fixture
def store() -> ConversationStore:
    return ConversationStore()


@pytest.fixture
async def async_client() -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for the hosting app.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
