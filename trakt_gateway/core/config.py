"""
Application configuration models and helpers.

Settings are grouped per concern and resolved from environment variables so
the HTTP app, the credential manager and the storage backends share one
configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal, Optional

import os

from pydantic import AnyHttpUrl, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file into the environment."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        os.environ[key] = value.strip().strip('"').strip("'")


_load_env_file()


class TraktSettings(BaseSettings):
    """Endpoints and transport limits for the Trakt OAuth provider."""

    authorize_url: AnyHttpUrl = Field(
        "https://trakt.tv/oauth/authorize", validation_alias="TRAKT_AUTHORIZE_URL"
    )
    token_url: AnyHttpUrl = Field(
        "https://api.trakt.tv/oauth/token", validation_alias="TRAKT_TOKEN_URL"
    )
    api_base_url: AnyHttpUrl = Field(
        "https://api.trakt.tv", validation_alias="TRAKT_API_BASE_URL"
    )
    redirect_uri: Optional[AnyHttpUrl] = Field(
        None,
        validation_alias="TRAKT_REDIRECT_URI",
        description=(
            "Callback URL registered with Trakt. Derived from the incoming "
            "request when omitted."
        ),
    )
    http_timeout_seconds: float = Field(10.0, validation_alias="TRAKT_HTTP_TIMEOUT")


class OAuthSettings(BaseSettings):
    """OAuth flow configuration."""

    state_ttl_seconds: int = Field(600, validation_alias="OAUTH_STATE_TTL")
    refresh_leeway_seconds: int = Field(
        0,
        validation_alias="OAUTH_REFRESH_LEEWAY",
        description="Treat access tokens as expired this many seconds early.",
    )


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    token_encryption_secret: str = Field(
        ...,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description="Secret used to derive the key that encrypts stored credentials.",
    )
    previous_encryption_secrets: Annotated[tuple[str, ...], NoDecode] = Field(
        (),
        validation_alias="TOKEN_ENCRYPTION_PREVIOUS_SECRETS",
        description="Retired secrets still accepted for decryption during rotation.",
    )

    @field_validator("previous_encryption_secrets", mode="before")
    @classmethod
    def _split_secrets(cls, value: str | tuple[str, ...] | list[str]) -> tuple[str, ...]:
        """Support providing retired secrets as a comma-separated string."""
        if isinstance(value, (tuple, list)):
            return tuple(value)
        return tuple(item.strip() for item in value.split(",") if item.strip())


class StorageSettings(BaseSettings):
    """Persistence backend selection."""

    backend: Literal["sqlite", "dynamodb"] = Field(
        "sqlite", validation_alias="STORAGE_BACKEND"
    )
    sqlite_path: str = Field("data/gateway.db", validation_alias="SQLITE_DB_PATH")
    dynamodb_table_name: Optional[str] = Field(None, validation_alias="DYNAMODB_TABLE_NAME")
    region_name: str = Field("us-east-1", validation_alias="AWS_REGION")


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    frontend_base_url: Optional[HttpUrl] = Field(
        None,
        validation_alias="FRONTEND_BASE_URL",
        description="Page browsers are sent to once the OAuth callback completes.",
    )
    trakt: TraktSettings = Field(default_factory=TraktSettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "OAuthSettings",
    "SecuritySettings",
    "StorageSettings",
    "TraktSettings",
    "get_settings",
]
