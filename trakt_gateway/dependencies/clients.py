"""
Factory functions providing shared clients and services as FastAPI dependencies.

The credential manager is a process-wide singleton so every request shares
its per-tenant refresh locks.
"""

from functools import lru_cache

from trakt_gateway.clients import DynamoDBClient, SQLiteStore, TraktApiClient, TraktOAuthClient
from trakt_gateway.core.config import get_settings
from trakt_gateway.services import (
    CredentialManager,
    PendingAuthorizationRepository,
    RecordStore,
    TenantConfigRepository,
    TokenCipherService,
)


@lru_cache()
def _settings():
    return get_settings()


@lru_cache()
def get_record_store() -> RecordStore:
    """Provide the configured key-value backend."""
    storage = _settings().storage
    if storage.backend == "dynamodb":
        return DynamoDBClient(storage)
    return SQLiteStore(storage.sqlite_path)


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption helper for credential storage."""
    security = _settings().security
    return TokenCipherService(
        secret=security.token_encryption_secret,
        previous_secrets=security.previous_encryption_secrets,
    )


@lru_cache()
def get_trakt_oauth_client() -> TraktOAuthClient:
    return TraktOAuthClient(_settings().trakt)


@lru_cache()
def get_credential_manager() -> CredentialManager:
    """Provide the shared credential lifecycle manager."""
    store = get_record_store()
    cipher = get_token_cipher_service()
    return CredentialManager(
        tenants=TenantConfigRepository(store, cipher),
        pending=PendingAuthorizationRepository(store, cipher),
        oauth_client=get_trakt_oauth_client(),
        oauth_settings=_settings().oauth,
    )


@lru_cache()
def get_trakt_api_client() -> TraktApiClient:
    return TraktApiClient(get_credential_manager(), _settings().trakt)


__all__ = [
    "get_credential_manager",
    "get_record_store",
    "get_token_cipher_service",
    "get_trakt_api_client",
    "get_trakt_oauth_client",
]
