"""Authentication for calls to the analysis service.

Responsibilities:
    - Appwrite account sign-in, sign-out and JWT issuing
    - Process-wide caching of the bearer token with refresh near expiry

Maintains clean separation from the chat layer: the session controller
only ever sees a Credential or an AuthUnavailable error.
"""

from rare_assistant.auth.provider import (
    AppwriteCredentialProvider,
    AuthUnavailable,
    CredentialProvider,
    IssuedToken,
    token_expiry,
)
from rare_assistant.auth.token_cache import (
    Credential,
    TokenCache,
    close_token_cache,
    get_token_cache,
    is_usable,
)

__all__ = [
    "AppwriteCredentialProvider",
    "AuthUnavailable",
    "Credential",
    "CredentialProvider",
    "IssuedToken",
    "TokenCache",
    "close_token_cache",
    "get_token_cache",
    "is_usable",
    "token_expiry",
]
