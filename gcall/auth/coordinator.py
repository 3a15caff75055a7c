"""
Authorization coordinator for the OAuth 2.0 authorization code flow.

Flow:
1. Try the token cache → done if a token is stored
2. Show the consent URL → user approves in the browser
3. Wait (bounded) for the redirect listener to relay the code
4. Exchange the code once → store the token → done

There is no retry at any step; every failure is reported to the caller.
"""

import logging
import sys
import threading
from enum import Enum
from typing import Callable, Protocol

from gcall.auth.exceptions import (
    AuthorizationInProgressError,
    ExchangeRejectedError,
    RedirectTimeoutError,
    TokenCacheError,
    TokenCacheWriteError,
)
from gcall.auth.google_oauth import Token
from gcall.auth.token_cache import TokenCache
from gcall.callback.relay import CodeRelay

logger = logging.getLogger(__name__)

DEFAULT_APPROVAL_TIMEOUT = 30.0
DEFAULT_STATE_TOKEN = "state-token"


class AuthorizationProvider(Protocol):
    """What the coordinator needs from the OAuth provider."""

    def get_authorization_url(self, state: str) -> str: ...

    def exchange_code(self, code: str) -> Token: ...


class AuthorizationState(str, Enum):
    """States of a single coordinator invocation."""

    CHECKING_CACHE = "checking_cache"
    AWAITING_REDIRECT = "awaiting_redirect"
    AUTHORIZED = "authorized"
    TIMED_OUT = "timed_out"
    EXCHANGE_FAILED = "exchange_failed"
    CACHE_WRITE_FAILED = "cache_write_failed"


def print_consent_url(url: str) -> None:
    """Show the consent URL on stdout."""
    print(f"Visit the URL for the auth dialog: {url}", file=sys.stdout, flush=True)


class AuthorizationCoordinator:
    """
    Obtains a token from the cache or through the browser consent flow.

    The relay is owned by this coordinator; the redirect listener only
    pushes into it. Starting and stopping the listener is up to the
    caller.

    Usage:
        coordinator = AuthorizationCoordinator(flow, TokenCache(path), relay)
        token = coordinator.authorize()
    """

    def __init__(
        self,
        provider: AuthorizationProvider,
        token_cache: TokenCache,
        relay: CodeRelay,
        timeout: float = DEFAULT_APPROVAL_TIMEOUT,
        state_token: str = DEFAULT_STATE_TOKEN,
        announce: Callable[[str], None] = print_consent_url,
    ):
        self._provider = provider
        self._token_cache = token_cache
        self._relay = relay
        self._timeout = timeout
        self._state_token = state_token
        self._announce = announce
        self._active = threading.Lock()
        self.state = AuthorizationState.CHECKING_CACHE

    def authorize(self) -> Token:
        """
        Run the flow to completion.

        Returns:
            A cached or freshly issued token

        Raises:
            AuthorizationInProgressError: If a flow is already running
            RedirectTimeoutError: If no code arrived in time
            ExchangeRejectedError: If the code could not be exchanged
            TokenCacheWriteError: If the new token could not be stored
        """
        if not self._active.acquire(blocking=False):
            raise AuthorizationInProgressError("An authorization flow is already running")

        try:
            self.state = AuthorizationState.CHECKING_CACHE
            try:
                token = self._token_cache.load()
            except TokenCacheError as e:
                logger.info(f"Could not use cached token: {e.message}")
            else:
                logger.info("Using cached OAuth token")
                self.state = AuthorizationState.AUTHORIZED
                return token

            code = self._await_code()
            token = self._exchange(code)

            try:
                self._token_cache.store(token)
            except TokenCacheWriteError:
                self.state = AuthorizationState.CACHE_WRITE_FAILED
                raise

            self.state = AuthorizationState.AUTHORIZED
            return token
        finally:
            self._active.release()

    def _await_code(self) -> str:
        # Arm the relay before the user can possibly be redirected
        self._relay.open()
        self._announce(self._provider.get_authorization_url(self._state_token))

        self.state = AuthorizationState.AWAITING_REDIRECT
        logger.debug(f"Waiting up to {self._timeout:.1f}s for the OAuth redirect")

        code = self._relay.wait(self._timeout)
        if code is None:
            self.state = AuthorizationState.TIMED_OUT
            raise RedirectTimeoutError(
                f"Timed out after {self._timeout:.1f}s waiting for the authorization code"
            )
        return code

    def _exchange(self, code: str) -> Token:
        try:
            return self._provider.exchange_code(code)
        except ExchangeRejectedError:
            self.state = AuthorizationState.EXCHANGE_FAILED
            raise
        except Exception as e:
            self.state = AuthorizationState.EXCHANGE_FAILED
            raise ExchangeRejectedError(
                f"Could not exchange authorization code: {e}",
                original_error=e,
            ) from e
