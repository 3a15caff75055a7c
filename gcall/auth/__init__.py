"""
Authentication module for gcall.

Provides the OAuth 2.0 authorization code flow for Google Calendar
access: token cache, provider calls and the coordinating state machine.
"""

from gcall.auth.coordinator import (
    AuthorizationCoordinator,
    AuthorizationState,
)
from gcall.auth.exceptions import (
    AuthorizationError,
    AuthorizationInProgressError,
    CredentialsFileError,
    ExchangeRejectedError,
    RedirectTimeoutError,
    TokenCacheCorruptError,
    TokenCacheError,
    TokenCacheMissError,
    TokenCacheWriteError,
)
from gcall.auth.google_oauth import (
    ClientConfig,
    GoogleOAuthFlow,
    Token,
    load_client_config,
)
from gcall.auth.token_cache import TokenCache

__all__ = [
    # Flow
    "AuthorizationCoordinator",
    "AuthorizationState",
    # Provider
    "ClientConfig",
    "GoogleOAuthFlow",
    "Token",
    "load_client_config",
    # Token storage
    "TokenCache",
    # Errors
    "AuthorizationError",
    "AuthorizationInProgressError",
    "CredentialsFileError",
    "ExchangeRejectedError",
    "RedirectTimeoutError",
    "TokenCacheCorruptError",
    "TokenCacheError",
    "TokenCacheMissError",
    "TokenCacheWriteError",
]
