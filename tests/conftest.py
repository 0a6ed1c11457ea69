"""Pytest configuration and fakes shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for rootdir-relative imports
    import _bootstrap  # type: ignore # noqa: F401

import asyncio
import copy
from datetime import datetime, timedelta, timezone
from urllib.parse import urlencode

import pytest

from trakt_gateway.clients.trakt_auth import TokenGrant
from trakt_gateway.core.config import OAuthSettings
from trakt_gateway.services.credentials import CredentialManager
from trakt_gateway.services.repositories import (
    PendingAuthorizationRepository,
    TenantConfigRepository,
)
from trakt_gateway.services.token_cipher import TokenCipherService


class InMemoryRecordStore:
    def __init__(self) -> None:
        self.items: dict[tuple[str, str], dict] = {}

    def put_item(self, item: dict) -> None:
        self.items[(item["pk"], item["sk"])] = copy.deepcopy(item)

    def get_item(self, *, partition_key: str, sort_key: str) -> dict | None:
        item = self.items.get((partition_key, sort_key))
        return copy.deepcopy(item) if item else None

    def delete_item(self, *, partition_key: str, sort_key: str) -> None:
        self.items.pop((partition_key, sort_key), None)

    def pop_item(self, *, partition_key: str, sort_key: str) -> dict | None:
        return self.items.pop((partition_key, sort_key), None)

    def query_items(self, *, partition_key: str) -> list[dict]:
        return [
            copy.deepcopy(item)
            for (pk, _), item in self.items.items()
            if pk == partition_key
        ]


class StubTraktProvider:
    AUTHORIZE_URL = "https://trakt.example/oauth/authorize"

    def __init__(self) -> None:
        self.exchange_calls: list[dict] = []
        self.refresh_calls: list[dict] = []
        self.exchange_result = TokenGrant("A1", "R1", 3600)
        self.refresh_result = TokenGrant("A2", "R2", 3600)
        self.exchange_error: Exception | None = None
        self.refresh_error: Exception | None = None
        self.refresh_delay = 0.0

    def build_authorization_url(self, *, client_id: str, redirect_uri: str, state: str) -> str:
        query = urlencode(
            {
                "response_type": "code",
                "client_id": client_id,
                "redirect_uri": redirect_uri,
                "state": state,
            }
        )
        return f"{self.AUTHORIZE_URL}?{query}"

    async def exchange_authorization_code(self, **kwargs) -> TokenGrant:
        self.exchange_calls.append(kwargs)
        await asyncio.sleep(0)
        if self.exchange_error:
            raise self.exchange_error
        return self.exchange_result

    async def refresh_token(self, **kwargs) -> TokenGrant:
        self.refresh_calls.append(kwargs)
        await asyncio.sleep(self.refresh_delay)
        if self.refresh_error:
            raise self.refresh_error
        return self.refresh_result


class FrozenClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def cipher() -> TokenCipherService:
    return TokenCipherService(secret="unit-test-secret")


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def provider() -> StubTraktProvider:
    return StubTraktProvider()


@pytest.fixture
def tenant_repo(record_store, cipher) -> TenantConfigRepository:
    return TenantConfigRepository(record_store, cipher)


@pytest.fixture
def pending_repo(record_store, cipher) -> PendingAuthorizationRepository:
    return PendingAuthorizationRepository(record_store, cipher)


@pytest.fixture
def manager(tenant_repo, pending_repo, provider, clock) -> CredentialManager:
    return CredentialManager(
        tenants=tenant_repo,
        pending=pending_repo,
        oauth_client=provider,
        oauth_settings=OAuthSettings(),
        clock=clock,
    )
