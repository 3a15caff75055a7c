"""
Google OAuth 2.0 implementation for calendar access.

Implements the provider side of the authorization code flow:
1. Load the client application from the credentials file
2. Generate the consent URL → user approves in the browser
3. Exchange the redirected code for tokens
4. Wrap the token in google-auth credentials for the Calendar API

The Google SDK refreshes the access token by itself when a refresh token
is present, so nothing here inspects expiry.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

import httpx
from google.oauth2.credentials import Credentials
from pydantic import BaseModel, Field, ValidationError

from gcall.auth.exceptions import CredentialsFileError, ExchangeRejectedError

logger = logging.getLogger(__name__)

# Google OAuth endpoints (used when the credentials file omits them)
GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"

# Calendar API scopes
CALENDAR_SCOPES = [
    "https://www.googleapis.com/auth/calendar",
]

EXCHANGE_TIMEOUT = 30.0


class Token(BaseModel):
    """OAuth token as issued by Google and persisted in the token cache."""

    access_token: str = Field(min_length=1)
    token_type: str = "Bearer"
    refresh_token: Optional[str] = None
    expiry: Optional[datetime] = None
    scope: str = ""

    @classmethod
    def from_token_response(cls, token_data: dict) -> "Token":
        """Build a token from a token endpoint JSON response."""
        expiry = None
        if token_data.get("expires_in") is not None:
            expiry = datetime.now(timezone.utc) + timedelta(
                seconds=int(token_data["expires_in"])
            )
        return cls(
            access_token=token_data["access_token"],
            token_type=token_data.get("token_type") or "Bearer",
            refresh_token=token_data.get("refresh_token"),
            expiry=expiry,
            scope=token_data.get("scope", ""),
        )


class ClientConfig(BaseModel):
    """OAuth client application, as downloaded from Google Cloud Console."""

    client_id: str = Field(min_length=1)
    client_secret: str = Field(min_length=1)
    auth_uri: str = GOOGLE_AUTH_URL
    token_uri: str = GOOGLE_TOKEN_URL


def load_client_config(path: str | Path) -> ClientConfig:
    """
    Load the OAuth client application from a client secrets file.

    Accepts both the "installed" (desktop) and "web" layouts.

    Args:
        path: Path to the client secrets JSON file

    Returns:
        Parsed client configuration

    Raises:
        CredentialsFileError: If the file is missing or malformed
    """
    file_path = Path(path)
    try:
        raw = json.loads(file_path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise CredentialsFileError(
            f"Credentials file not found: {file_path}",
            original_error=e,
        ) from e
    except (OSError, json.JSONDecodeError) as e:
        raise CredentialsFileError(
            f"Could not read credentials file {file_path}: {e}",
            original_error=e,
        ) from e

    section = None
    if isinstance(raw, dict):
        section = raw.get("installed") or raw.get("web")
    if not isinstance(section, dict):
        raise CredentialsFileError(
            f"Credentials file {file_path} has no 'installed' or 'web' client section"
        )

    try:
        return ClientConfig.model_validate(section)
    except ValidationError as e:
        raise CredentialsFileError(
            f"Invalid client configuration in {file_path}: {e}",
            original_error=e,
        ) from e


class GoogleOAuthFlow:
    """
    Provider capability used by the authorization coordinator.

    Usage:
        flow = GoogleOAuthFlow(load_client_config(path), redirect_uri)

        # Step 1: Consent URL for the user
        auth_url = flow.get_authorization_url(state="state-token")

        # Step 2: Exchange the redirected code
        token = flow.exchange_code(code)

        # Step 3: Credentials for the Calendar API
        credentials = flow.build_credentials(token)
    """

    def __init__(
        self,
        client_config: ClientConfig,
        redirect_uri: str,
        scopes: Optional[list[str]] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.client_config = client_config
        self.redirect_uri = redirect_uri
        self.scopes = scopes or CALENDAR_SCOPES
        self._http_client = http_client

    @classmethod
    def from_credentials_file(
        cls,
        path: str | Path,
        redirect_uri: str,
        scopes: Optional[list[str]] = None,
    ) -> "GoogleOAuthFlow":
        """Create a flow from a client secrets file."""
        return cls(load_client_config(path), redirect_uri, scopes)

    def get_authorization_url(self, state: str) -> str:
        """
        Generate the Google consent URL.

        Args:
            state: Value echoed back by Google on the redirect

        Returns:
            URL the user must open to grant access
        """
        params = {
            "client_id": self.client_config.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "access_type": "offline",  # Get refresh token
            "prompt": "consent",  # Always show consent screen (ensures refresh token)
            "state": state,
        }
        return f"{self.client_config.auth_uri}?{urlencode(params)}"

    def exchange_code(self, code: str) -> Token:
        """
        Exchange an authorization code for tokens.

        Single attempt; provider rejections and transport failures are
        reported the same way.

        Args:
            code: Authorization code from the redirect (may be empty)

        Returns:
            Token issued by Google

        Raises:
            ExchangeRejectedError: If the exchange fails for any reason
        """
        data = {
            "client_id": self.client_config.client_id,
            "client_secret": self.client_config.client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": self.redirect_uri,
        }

        try:
            token_data = self._post_token_request(data)
            if not isinstance(token_data, dict):
                raise TypeError(f"expected a JSON object, got {type(token_data).__name__}")
            token = Token.from_token_response(token_data)
        except httpx.HTTPStatusError as e:
            raise ExchangeRejectedError(
                f"Token endpoint rejected the authorization code "
                f"({e.response.status_code}): {_error_description(e.response)}",
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            raise ExchangeRejectedError(
                f"Could not reach token endpoint: {e}",
                original_error=e,
            ) from e
        except (KeyError, TypeError, ValueError) as e:
            # ValueError covers invalid JSON and pydantic validation errors
            raise ExchangeRejectedError(
                f"Unexpected token endpoint response: {e}",
                original_error=e,
            ) from e

        logger.info("Successfully exchanged authorization code for tokens")
        return token

    def build_credentials(self, token: Token) -> Credentials:
        """
        Wrap a token in google-auth credentials.

        Args:
            token: Cached or freshly exchanged token

        Returns:
            Credentials usable with googleapiclient
        """
        expiry = None
        if token.expiry is not None:
            # google-auth compares against naive UTC datetimes
            expiry = token.expiry.astimezone(timezone.utc).replace(tzinfo=None)

        return Credentials(
            token=token.access_token,
            refresh_token=token.refresh_token,
            token_uri=self.client_config.token_uri,
            client_id=self.client_config.client_id,
            client_secret=self.client_config.client_secret,
            scopes=self.scopes,
            expiry=expiry,
        )

    def _post_token_request(self, data: dict) -> dict:
        if self._http_client is not None:
            response = self._http_client.post(self.client_config.token_uri, data=data)
            response.raise_for_status()
            return response.json()

        with httpx.Client(timeout=EXCHANGE_TIMEOUT) as client:
            response = client.post(self.client_config.token_uri, data=data)
            response.raise_for_status()
            return response.json()


def _error_description(response: httpx.Response) -> str:
    """Pull Google's error description out of a failed token response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or "no details"
    if isinstance(body, dict):
        return body.get("error_description") or body.get("error") or str(body)
    return str(body)
