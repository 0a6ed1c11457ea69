"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_credential_manager,
    get_record_store,
    get_token_cipher_service,
    get_trakt_api_client,
    get_trakt_oauth_client,
)
from .config import get_app_settings

__all__ = [
    "get_app_settings",
    "get_credential_manager",
    "get_record_store",
    "get_token_cipher_service",
    "get_trakt_api_client",
    "get_trakt_oauth_client",
]
