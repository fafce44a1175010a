"""Process-wide bearer token cache.

Keeps one credential and hands it out until it is about to expire. Only
this module writes the cached value; refreshes are single-flight so
concurrent callers hitting an expired token trigger one provider call.
"""

import asyncio
import logging
import time
from collections.abc import Callable

from pydantic import BaseModel, ConfigDict

from rare_assistant.auth.provider import (
    AppwriteCredentialProvider,
    AuthUnavailable,
    CredentialProvider,
    token_expiry,
)
from rare_assistant.config import get_client_config

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_BUFFER_SECONDS = 60.0


def is_usable(expires_at: float, now: float, buffer_seconds: float) -> bool:
    """Return True if a credential expiring at `expires_at` may still be used."""
    return expires_at - now > buffer_seconds


class Credential(BaseModel):
    """A cached bearer token.

    Attributes:
        token: The bearer token string.
        expires_at: Expiry as epoch seconds.
    """

    model_config = ConfigDict(frozen=True)

    token: str
    expires_at: float


class TokenCache:
    """Caches the current credential and refreshes it near expiry."""

    def __init__(
        self,
        provider: CredentialProvider,
        refresh_buffer_seconds: float = DEFAULT_REFRESH_BUFFER_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the cache.

        Args:
            provider: Source of new tokens.
            refresh_buffer_seconds: Refresh once expiry is this close.
            clock: Returns the current time as epoch seconds.
        """
        self._provider = provider
        self._buffer = refresh_buffer_seconds
        self._clock = clock
        self._credential: Credential | None = None
        self._refresh_lock = asyncio.Lock()

    @property
    def provider(self) -> CredentialProvider:
        return self._provider

    def _cached_if_usable(self) -> Credential | None:
        credential = self._credential
        if credential is not None and is_usable(credential.expires_at, self._clock(), self._buffer):
            return credential
        return None

    async def get_valid_token(self) -> Credential:
        """Return a credential valid for at least the refresh buffer.

        Returns:
            The cached credential, or a freshly issued one.

        Raises:
            AuthUnavailable: If there is no active session or the provider fails.
        """
        cached = self._cached_if_usable()
        if cached is not None:
            return cached

        async with self._refresh_lock:
            # Another caller may have refreshed while we waited
            cached = self._cached_if_usable()
            if cached is not None:
                return cached

            credential = await self._refresh()
            self._credential = credential
            return credential

    async def _refresh(self) -> Credential:
        try:
            if not await self._provider.has_active_session():
                raise AuthUnavailable("No active session. Please log in again.")
            issued = await self._provider.create_token()
        except AuthUnavailable:
            raise
        except Exception as e:
            logger.warning(f"Credential provider failed: {e}")
            raise AuthUnavailable(
                "Failed to get authentication token. Please log in again."
            ) from e

        expires_at = token_expiry(issued.token)
        if expires_at is None:
            logger.warning("Issued token has no readable expiry; it will not be reused")
            expires_at = self._clock()

        logger.info("Refreshed authentication token")
        return Credential(token=issued.token, expires_at=expires_at)

    def clear(self) -> None:
        """Forget the cached credential, e.g. after sign-out."""
        self._credential = None


# Module-level singleton instance
_token_cache: TokenCache | None = None


def get_token_cache() -> TokenCache:
    """Get or create the process-wide token cache.

    Backed by the Appwrite provider configured from the environment.

    Returns:
        The TokenCache instance.
    """
    global _token_cache
    if _token_cache is None:
        config = get_client_config()
        provider = AppwriteCredentialProvider(
            endpoint=config.appwrite_endpoint,
            project_id=config.appwrite_project_id,
        )
        _token_cache = TokenCache(
            provider,
            refresh_buffer_seconds=config.token_refresh_buffer_seconds,
        )
    return _token_cache


async def close_token_cache() -> None:
    """Close the singleton's provider, if one was created."""
    global _token_cache
    if _token_cache is None:
        return
    provider = _token_cache.provider
    _token_cache = None
    aclose = getattr(provider, "aclose", None)
    if aclose is not None:
        await aclose()
