"""
Exceptions raised during the authorization code flow.

Cache misses and corrupt caches are recovered by the coordinator; every
other error here is fatal for the run.
"""

from gcall.exceptions import GCallError


class AuthorizationError(GCallError):
    """Base exception for the authorization flow."""


class CredentialsFileError(AuthorizationError):
    """
    The client credentials file could not be used.

    Causes:
    - File does not exist or cannot be read
    - File is not valid JSON
    - No "installed" or "web" client section
    """


class TokenCacheError(AuthorizationError):
    """Base exception for token cache operations."""


class TokenCacheMissError(TokenCacheError):
    """No token is cached (missing or empty file)."""


class TokenCacheCorruptError(TokenCacheError):
    """The cache file exists but does not hold a valid token."""


class TokenCacheWriteError(TokenCacheError):
    """
    A fresh token could not be persisted.

    Fatal even though a valid token is in memory, so a broken cache path
    surfaces instead of forcing an interactive flow on every run.
    """


class RedirectTimeoutError(AuthorizationError):
    """No authorization code arrived before the approval timeout."""


class ExchangeRejectedError(AuthorizationError):
    """
    The authorization code could not be exchanged for a token.

    Causes:
    - Provider rejected the code (invalid, expired, reused, empty)
    - Consent was revoked
    - Network or transport failure
    """


class AuthorizationInProgressError(AuthorizationError):
    """Another flow is already running on this coordinator."""
