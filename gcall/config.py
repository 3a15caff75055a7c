"""
Configuration management for gcall.

Uses Pydantic Settings for type-safe environment variable loading.
Every setting can be overridden with a GCALL_-prefixed environment
variable or a .env file in the working directory.
"""

from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    See .env.example for available options.
    """

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )

    # Files
    credentials_path: str = Field(
        default="gcall_credentials.json",
        description="Path to the Google OAuth client secrets JSON file"
    )
    token_cache_path: str = Field(
        default="/tmp/gcall-token",
        description="Path where the OAuth token is cached between runs"
    )

    # Callback listener
    callback_host: str = Field(
        default="localhost",
        description="Host the OAuth redirect listener binds to"
    )
    callback_port: int = Field(
        default=8080,
        description="Port the OAuth redirect listener binds to"
    )
    callback_path: str = Field(
        default="/auth",
        description="Path of the OAuth redirect endpoint"
    )

    # Authorization flow
    auth_approval_timeout: float = Field(
        default=30.0,
        description="Seconds to wait for the user to approve access in the browser"
    )
    shutdown_timeout: float = Field(
        default=5.0,
        description="Seconds allowed for the redirect listener to shut down"
    )
    oauth_state: str = Field(
        default="state-token",
        description="State parameter sent with the consent URL"
    )

    # Calendar
    time_zone: str = Field(
        default="Europe/Bucharest",
        description="IANA time zone for created events"
    )

    model_config = SettingsConfigDict(
        env_prefix="GCALL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("auth_approval_timeout", "shutdown_timeout")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeouts must be positive")
        return value

    @field_validator("callback_port")
    @classmethod
    def _valid_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError("callback_port must be between 1 and 65535")
        return value

    @field_validator("callback_path")
    @classmethod
    def _leading_slash(cls, value: str) -> str:
        if not value.startswith("/"):
            return f"/{value}"
        return value

    @field_validator("time_zone")
    @classmethod
    def _known_time_zone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown time zone: {value}") from e
        return value

    @property
    def redirect_uri(self) -> str:
        """Redirect URI registered with Google for the local listener."""
        return f"http://{self.callback_host}:{self.callback_port}{self.callback_path}"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance loaded from environment

    Example:
        >>> from gcall.config import get_settings
        >>> settings = get_settings()
        >>> print(settings.redirect_uri)
    """
    return Settings()
