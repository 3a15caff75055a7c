"""
Local HTTP listener that catches the OAuth 2.0 redirect.

Serves GET /auth on a fixed local port with uvicorn on a background
thread. The handler forwards the `code` query parameter to the CodeRelay
and always answers 200 so the user's browser closes the loop.
"""

import logging
import threading
import time
from contextlib import contextmanager
from typing import Iterator, Optional

import uvicorn
from fastapi import APIRouter, FastAPI, Request, Response

from gcall.callback.middleware import RequestLoggingMiddleware
from gcall.callback.relay import CodeRelay
from gcall.exceptions import GCallError

logger = logging.getLogger(__name__)

DEFAULT_CALLBACK_PATH = "/auth"

# Extra time given to a forced exit after the graceful deadline passed
FORCE_EXIT_GRACE = 1.0


class CallbackServerError(GCallError):
    """The redirect listener could not be started."""


def create_callback_app(relay: CodeRelay, path: str = DEFAULT_CALLBACK_PATH) -> FastAPI:
    """
    Build the ASGI app for the redirect listener.

    Args:
        relay: Relay receiving the authorization code
        path: Redirect endpoint path

    Returns:
        FastAPI application with the redirect route
    """
    router = APIRouter(tags=["oauth-callback"])

    @router.get(path)
    async def auth_callback(request: Request, code: str = "") -> Response:
        """
        Handle the Google OAuth redirect.

        A missing code is forwarded as an empty string; the exchange then
        fails instead of the listener.
        """
        if not code:
            logger.warning("OAuth redirect received without a code parameter")
        if request.app.state.code_relay.push(code):
            logger.info("Authorization code received")
        return Response(status_code=200)

    app = FastAPI(
        title="gcall OAuth callback",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.code_relay = relay
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(router)
    return app


class CallbackServer:
    """
    uvicorn server wrapper with a blocking start and a bounded stop.

    Usage:
        server = CallbackServer(relay, "localhost", 8080)
        thread = threading.Thread(target=server.start, daemon=True)
        thread.start()
        ...
        server.stop(timeout=5.0)
    """

    def __init__(
        self,
        relay: CodeRelay,
        host: str = "localhost",
        port: int = 8080,
        path: str = DEFAULT_CALLBACK_PATH,
        shutdown_timeout: float = 5.0,
    ):
        self.host = host
        self.port = port
        self.path = path
        config = uvicorn.Config(
            create_callback_app(relay, path),
            host=host,
            port=port,
            lifespan="off",
            access_log=False,  # would log the code in the query string
            log_config=None,
            timeout_graceful_shutdown=max(1, int(shutdown_timeout)),
        )
        self._server = uvicorn.Server(config)
        self._thread: Optional[threading.Thread] = None

    @property
    def started(self) -> bool:
        """True once the listening socket is bound."""
        return self._server.started

    @property
    def bound_port(self) -> int:
        """Actual listening port (differs from `port` when port 0 is used)."""
        for server in getattr(self._server, "servers", None) or []:
            for sock in server.sockets:
                return sock.getsockname()[1]
        return self.port

    def start(self) -> None:
        """
        Serve until stop() is called.

        Blocks the calling thread, so run it off the coordinator's thread.

        Raises:
            CallbackServerError: If the socket cannot be bound
        """
        self._thread = threading.current_thread()
        logger.info(f"Listening for OAuth redirect on http://{self.host}:{self.port}{self.path}")
        try:
            self._server.run()
        except SystemExit as e:
            # uvicorn exits the process when binding fails
            raise CallbackServerError(
                f"Could not listen on {self.host}:{self.port}",
                original_error=e,
            ) from e
        logger.debug("OAuth redirect listener stopped")

    def wait_until_started(self, timeout: float) -> bool:
        """
        Wait for the socket to be bound.

        Returns:
            True if the server is serving, False on timeout or early exit
        """
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if self._server.started:
                return True
            if self._thread is not None and not self._thread.is_alive():
                return False
            time.sleep(0.01)
        return self._server.started

    def stop(self, timeout: float = 5.0) -> None:
        """
        Drain in-flight requests and close the socket within `timeout`.

        Safe to call when start() already returned or never ran.
        """
        self._server.should_exit = True

        thread = self._thread
        if thread is None or thread is threading.current_thread() or not thread.is_alive():
            return

        thread.join(timeout)
        if thread.is_alive():
            logger.warning(
                f"OAuth redirect listener did not stop within {timeout:.1f}s, forcing exit"
            )
            self._server.force_exit = True
            thread.join(FORCE_EXIT_GRACE)


@contextmanager
def serve_in_background(server: CallbackServer, shutdown_timeout: float = 5.0) -> Iterator[CallbackServer]:
    """
    Run the listener on a daemon thread for the duration of the block.

    The listener is stopped on every exit path, including exceptions.
    """

    def _serve() -> None:
        try:
            server.start()
        except CallbackServerError as e:
            logger.error(f"OAuth redirect listener failed: {e.message}")

    thread = threading.Thread(target=_serve, name="gcall-callback", daemon=True)
    thread.start()
    try:
        yield server
    finally:
        server.stop(timeout=shutdown_timeout)
        thread.join(shutdown_timeout)
