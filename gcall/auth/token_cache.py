"""
Token storage and retrieval for the cached OAuth token.

Keeps a single JSON-serialized token in a file readable only by the
owning user. A new token always replaces the previous one.
"""

import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from gcall.auth.exceptions import (
    TokenCacheCorruptError,
    TokenCacheMissError,
    TokenCacheWriteError,
)
from gcall.auth.google_oauth import Token

logger = logging.getLogger(__name__)

TOKEN_FILE_MODE = 0o600


class TokenCache:
    """File-backed cache holding one OAuth token."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Token:
        """
        Read the cached token.

        Returns:
            The stored token, used as-is (no freshness check)

        Raises:
            TokenCacheMissError: If the file is missing or empty
            TokenCacheCorruptError: If the content is not a valid token
        """
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise TokenCacheMissError(
                f"No cached token at {self.path}",
                original_error=e,
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            raise TokenCacheCorruptError(
                f"Could not read token file {self.path}: {e}",
                original_error=e,
            ) from e

        if not content.strip():
            raise TokenCacheMissError(f"Token file {self.path} is empty")

        try:
            token = Token.model_validate_json(content)
        except ValidationError as e:
            raise TokenCacheCorruptError(
                f"Could not parse token file {self.path}",
                original_error=e,
            ) from e

        logger.debug(f"Loaded cached token from {self.path}")
        return token

    def store(self, token: Token) -> None:
        """
        Persist a token, replacing any previous one.

        Writes to a temporary file beside the target and renames it over
        the target, so readers never see a partial token.

        Args:
            token: Token to persist

        Raises:
            TokenCacheWriteError: If the token cannot be written
        """
        payload = token.model_dump_json()
        tmp_path = None

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, TOKEN_FILE_MODE)
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            raise TokenCacheWriteError(
                f"Could not write token file {self.path}: {e}",
                original_error=e,
            ) from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

        logger.info(f"Stored OAuth token in {self.path}")
