"""
End-to-end tests for the authorization flow.

Runs the real uvicorn redirect listener on a free local port and plays
the browser's part with httpx. The Google token endpoint is served by
httpx.MockTransport.
"""

import socket
import threading
import time
from urllib.parse import parse_qs

import httpx
import pytest

from gcall.auth.coordinator import AuthorizationCoordinator, AuthorizationState
from gcall.auth.exceptions import ExchangeRejectedError, RedirectTimeoutError
from gcall.auth.google_oauth import GoogleOAuthFlow
from gcall.auth.token_cache import TokenCache
from gcall.callback.relay import CodeRelay
from gcall.callback.server import CallbackServer, CallbackServerError, serve_in_background

pytestmark = pytest.mark.integration

HOST = "127.0.0.1"

# Status codes the simulated browser received
browser_responses: list[int] = []


class FakeTokenEndpoint:
    """Google token endpoint that issues a token derived from the code."""

    def __init__(self):
        self.codes: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        code = parse_qs(request.content.decode(), keep_blank_values=True)["code"][0]
        self.codes.append(code)
        if not code:
            return httpx.Response(400, json={"error": "invalid_request"})
        return httpx.Response(
            200,
            json={
                "access_token": f"access-for-{code}",
                "refresh_token": f"refresh-for-{code}",
                "expires_in": 3599,
                "token_type": "Bearer",
                "scope": "https://www.googleapis.com/auth/calendar",
            },
        )


def browser_redirect(port: int, **params) -> threading.Thread:
    """Simulate Google redirecting the user's browser to the listener."""

    def _get():
        response = httpx.get(f"http://{HOST}:{port}/auth", params=params, timeout=5.0, trust_env=False)
        browser_responses.append(response.status_code)

    thread = threading.Thread(target=_get, daemon=True)
    thread.start()
    return thread


@pytest.fixture(autouse=True)
def reset_browser_responses():
    browser_responses.clear()


@pytest.fixture
def relay() -> CodeRelay:
    return CodeRelay()


@pytest.fixture
def listener(relay):
    """Redirect listener bound to a free port for the duration of a test."""
    server = CallbackServer(relay, HOST, 0, shutdown_timeout=1.0)
    with serve_in_background(server, shutdown_timeout=2.0):
        assert server.wait_until_started(5.0)
        yield server


@pytest.fixture
def token_endpoint() -> FakeTokenEndpoint:
    return FakeTokenEndpoint()


@pytest.fixture
def oauth_flow(client_config, listener, token_endpoint) -> GoogleOAuthFlow:
    return GoogleOAuthFlow(
        client_config,
        redirect_uri=f"http://{HOST}:{listener.bound_port}/auth",
        http_client=httpx.Client(transport=httpx.MockTransport(token_endpoint)),
    )


class TestScenarios:
    """Full runs of the coordinator against the real listener."""

    def test_no_cache_code_relayed_and_token_cached(self, relay, listener, oauth_flow, token_endpoint, token_path):
        """Should print the URL, catch abc123, exchange it and cache the token."""
        announced = []

        def announce(url):
            announced.append(url)
            browser_redirect(listener.bound_port, code="abc123", state="state-token")

        coordinator = AuthorizationCoordinator(
            oauth_flow, TokenCache(token_path), relay, timeout=5.0, announce=announce
        )

        token = coordinator.authorize()

        assert coordinator.state == AuthorizationState.AUTHORIZED
        assert token.access_token == "access-for-abc123"
        assert token_endpoint.codes == ["abc123"]
        assert len(announced) == 1
        assert TokenCache(token_path).load() == token

    def test_valid_cache_skips_interactive_leg(self, relay, listener, oauth_flow, token_endpoint, token_path, sample_token):
        """Should not wait for a redirect or contact the token endpoint."""
        TokenCache(token_path).store(sample_token)
        announced = []
        coordinator = AuthorizationCoordinator(
            oauth_flow, TokenCache(token_path), relay, timeout=5.0, announce=announced.append
        )

        start = time.monotonic()
        token = coordinator.authorize()

        assert time.monotonic() - start < 1.0
        assert token == sample_token
        assert announced == []
        assert token_endpoint.codes == []

    def test_callback_without_code_fails_exchange(self, relay, listener, oauth_flow, token_endpoint, token_path):
        coordinator = AuthorizationCoordinator(
            oauth_flow,
            TokenCache(token_path),
            relay,
            timeout=5.0,
            announce=lambda url: browser_redirect(listener.bound_port, error="access_denied"),
        )

        with pytest.raises(ExchangeRejectedError):
            coordinator.authorize()

        assert token_endpoint.codes == [""]
        assert not token_path.exists()

    def test_duplicate_callback_single_exchange(self, relay, listener, oauth_flow, token_endpoint, token_path):
        """Should exchange once and still answer the refreshed page."""

        def announce(url):
            browser_redirect(listener.bound_port, code="first").join(5.0)

        coordinator = AuthorizationCoordinator(
            oauth_flow, TokenCache(token_path), relay, timeout=5.0, announce=announce
        )
        coordinator.authorize()

        browser_redirect(listener.bound_port, code="first").join(5.0)

        assert token_endpoint.codes == ["first"]
        assert browser_responses == [200, 200]

    def test_timeout_when_nobody_approves(self, relay, listener, oauth_flow, token_endpoint, token_path):
        coordinator = AuthorizationCoordinator(
            oauth_flow, TokenCache(token_path), relay, timeout=0.1, announce=lambda url: None
        )

        start = time.monotonic()
        with pytest.raises(RedirectTimeoutError):
            coordinator.authorize()

        assert time.monotonic() - start < 1.0
        assert token_endpoint.codes == []


class TestListenerLifecycle:
    """Socket-level behaviour of CallbackServer."""

    def test_stop_is_bounded(self, relay):
        server = CallbackServer(relay, HOST, 0, shutdown_timeout=1.0)
        thread = threading.Thread(target=server.start, daemon=True)
        thread.start()
        assert server.wait_until_started(5.0)

        start = time.monotonic()
        server.stop(timeout=2.0)

        assert time.monotonic() - start < 3.5
        assert not thread.is_alive()

    def test_stop_after_stop(self, relay):
        server = CallbackServer(relay, HOST, 0)
        with serve_in_background(server, shutdown_timeout=2.0):
            assert server.wait_until_started(5.0)

        server.stop(timeout=0.5)

    def test_port_in_use(self, relay):
        """Should report a bind failure instead of exiting the process."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as blocker:
            blocker.bind((HOST, 0))
            blocker.listen(1)
            port = blocker.getsockname()[1]

            server = CallbackServer(relay, HOST, port)
            with pytest.raises(CallbackServerError):
                server.start()

            assert server.started is False

    def test_released_when_block_raises(self, relay):
        """Should stop the listener even if the flow fails."""
        server = CallbackServer(relay, HOST, 0)

        with pytest.raises(RuntimeError):
            with serve_in_background(server, shutdown_timeout=2.0):
                assert server.wait_until_started(5.0)
                port = server.bound_port
                raise RuntimeError("flow failed")

        with pytest.raises(httpx.ConnectError):
            httpx.get(f"http://{HOST}:{port}/auth", timeout=1.0, trust_env=False)
