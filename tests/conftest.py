"""
Pytest configuration and fixtures for gcall tests.

Provides sample tokens, client secrets files and a fake OAuth provider.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from gcall.auth.google_oauth import ClientConfig, Token
from gcall.config import get_settings


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make every test see a fresh Settings instance."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def sample_token() -> Token:
    """
    Token as Google would issue it for an offline-access grant.

    Returns:
        Token: access + refresh token with a fixed expiry
    """
    return Token(
        access_token="ya29.sample-access-token",
        token_type="Bearer",
        refresh_token="1//sample-refresh-token",
        expiry=datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc),
        scope="https://www.googleapis.com/auth/calendar",
    )


@pytest.fixture
def token_path(tmp_path: Path) -> Path:
    """Location of the token cache inside the test's temp dir."""
    return tmp_path / "gcall-token"


@pytest.fixture
def client_config() -> ClientConfig:
    return ClientConfig(
        client_id="client-123.apps.googleusercontent.com",
        client_secret="secret-456",
        auth_uri="https://accounts.google.com/o/oauth2/auth",
        token_uri="https://oauth2.googleapis.com/token",
    )


@pytest.fixture
def credentials_file(tmp_path: Path, client_config: ClientConfig) -> Path:
    """Client secrets file in Google's "installed" layout."""
    path = tmp_path / "gcall_credentials.json"
    path.write_text(
        json.dumps(
            {
                "installed": {
                    **client_config.model_dump(),
                    "project_id": "gcall-test",
                    "redirect_uris": ["http://localhost"],
                }
            }
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def fake_provider() -> MagicMock:
    """
    OAuth provider stand-in.

    exchange_code returns a token derived from the code it was given.
    """
    provider = MagicMock()
    provider.get_authorization_url.side_effect = (
        lambda state: f"https://accounts.google.com/o/oauth2/auth?state={state}"
    )
    provider.exchange_code.side_effect = lambda code: Token(
        access_token=f"access-for-{code}",
        refresh_token=f"refresh-for-{code}",
    )
    return provider
