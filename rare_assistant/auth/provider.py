"""Credential provider interface and the Appwrite account adapter.

The provider issues short-lived JWTs for the signed-in account. It knows
nothing about caching; TokenCache decides when a new token is needed.
"""

import base64
import json
import logging
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class AuthUnavailable(Exception):
    """Raised when no valid credential can be obtained."""

    pass


class IssuedToken(BaseModel):
    """A token as returned by the provider.

    Attributes:
        token: The bearer token string (a JWT).
        raw: The provider's full response body.
    """

    token: str
    raw: dict[str, Any] = Field(default_factory=dict)


class CredentialProvider(Protocol):
    """Anything that can issue bearer tokens for the current user."""

    async def create_token(self) -> IssuedToken: ...

    async def has_active_session(self) -> bool: ...


def token_expiry(token: str) -> float | None:
    """Read the `exp` claim of a JWT without verifying it.

    Args:
        token: Encoded JWT.

    Returns:
        Expiry as epoch seconds, or None if the token has no readable `exp`.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None

    segment = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        claims = json.loads(base64.urlsafe_b64decode(segment))
    except ValueError:
        return None

    exp = claims.get("exp") if isinstance(claims, dict) else None
    if isinstance(exp, bool) or not isinstance(exp, int | float):
        return None
    return float(exp)


class AppwriteCredentialProvider:
    """Credential provider backed by the Appwrite account REST API.

    The email/password session lives in the httpx cookie jar; JWTs are
    minted from it on demand.
    """

    def __init__(
        self,
        endpoint: str,
        project_id: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the provider.

        Args:
            endpoint: Appwrite API endpoint, e.g. https://cloud.appwrite.io/v1.
            project_id: Appwrite project identifier.
            client: Optional preconfigured HTTP client.
            timeout: Request timeout when creating the default client.
        """
        self._endpoint = endpoint.rstrip("/")
        self._headers = {"X-Appwrite-Project": project_id}
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def _url(self, path: str) -> str:
        return f"{self._endpoint}{path}"

    async def signup(self, email: str, password: str, name: str) -> dict[str, Any]:
        """Create an account and sign straight into it.

        Args:
            email: Account email.
            password: Account password.
            name: Display name.

        Returns:
            The new Appwrite user document.

        Raises:
            AuthUnavailable: If Appwrite refuses the account or is unreachable.
        """
        try:
            response = await self._client.post(
                self._url("/account"),
                json={"userId": "unique()", "email": email, "password": password, "name": name},
                headers=self._headers,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning(f"Sign-up rejected: HTTP {status}")
            if status == httpx.codes.CONFLICT:
                raise AuthUnavailable("An account with this email already exists") from e
            raise AuthUnavailable(f"Failed to create account (HTTP {status})") from e
        except httpx.RequestError as e:
            logger.warning(f"Sign-up failed: {e}")
            raise AuthUnavailable(f"Connection failed: {e}") from e

        user = response.json()
        await self.login(email, password)
        return user

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Create an email/password session.

        Args:
            email: Account email.
            password: Account password.

        Returns:
            The Appwrite session document.

        Raises:
            AuthUnavailable: If the credentials are rejected or Appwrite is unreachable.
        """
        try:
            response = await self._client.post(
                self._url("/account/sessions/email"),
                json={"email": email, "password": password},
                headers=self._headers,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(f"Sign-in rejected: HTTP {e.response.status_code}")
            raise AuthUnavailable("Invalid email or password") from e
        except httpx.RequestError as e:
            logger.warning(f"Sign-in failed: {e}")
            raise AuthUnavailable(f"Connection failed: {e}") from e

        logger.info("Signed in")
        return response.json()

    async def logout(self) -> None:
        """Delete the current session and forget its cookies."""
        try:
            response = await self._client.delete(
                self._url("/account/sessions/current"),
                headers=self._headers,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Sign-out request failed: {e}")
        finally:
            self._client.cookies.clear()

    async def get_current_user(self) -> dict[str, Any] | None:
        """Return the signed-in account, or None without a session."""
        try:
            response = await self._client.get(self._url("/account"), headers=self._headers)
        except httpx.RequestError as e:
            logger.warning(f"Account lookup failed: {e}")
            return None

        if response.status_code != httpx.codes.OK:
            return None
        return response.json()

    async def has_active_session(self) -> bool:
        return await self.get_current_user() is not None

    async def create_token(self) -> IssuedToken:
        """Mint a JWT for the current session.

        Raises:
            AuthUnavailable: If Appwrite refuses or cannot be reached.
        """
        try:
            response = await self._client.post(self._url("/account/jwt"), headers=self._headers)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise AuthUnavailable(
                f"Failed to get authentication token (HTTP {e.response.status_code})"
            ) from e
        except (httpx.RequestError, ValueError) as e:
            raise AuthUnavailable(f"Failed to get authentication token: {e}") from e

        token = data.get("jwt") if isinstance(data, dict) else None
        if not token:
            raise AuthUnavailable("Authentication service returned no token")
        return IssuedToken(token=token, raw=data)

    async def aclose(self) -> None:
        await self._client.aclose()
