"""
Repositories for tenant credentials and pending OAuth authorizations.

Both entities share one key-value table: the partition key names the logical
collection and the sort key is the entity identifier. Client secrets and
tokens are encrypted before they reach the store.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Protocol

from trakt_gateway.models.credentials import PendingAuthorization, TenantConfig
from trakt_gateway.services.token_cipher import TokenCipherService

TENANT_PARTITION = "tenant_configs"
PENDING_PARTITION = "pending_authorizations"


class RecordStore(Protocol):
    """Key-value persistence addressed by (partition key, sort key)."""

    def put_item(self, item: Dict[str, Any]) -> None: ...

    def get_item(self, *, partition_key: str, sort_key: str) -> Optional[Dict[str, Any]]: ...

    def delete_item(self, *, partition_key: str, sort_key: str) -> None: ...

    def pop_item(self, *, partition_key: str, sort_key: str) -> Optional[Dict[str, Any]]: ...

    def query_items(self, *, partition_key: str) -> list[Dict[str, Any]]: ...


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class TenantConfigRepository:
    """Load and persist ``TenantConfig`` records."""

    def __init__(self, store: RecordStore, cipher: TokenCipherService) -> None:
        self._store = store
        self._cipher = cipher

    def get(self, tenant_id: str) -> Optional[TenantConfig]:
        item = self._store.get_item(partition_key=TENANT_PARTITION, sort_key=tenant_id)
        if not item:
            return None
        return self._from_item(item)

    def save(self, config: TenantConfig) -> None:
        self._store.put_item(self._to_item(config))

    def _to_item(self, config: TenantConfig) -> Dict[str, Any]:
        item: Dict[str, Any] = {
            "pk": TENANT_PARTITION,
            "sk": config.tenant_id,
            "tenant_id": config.tenant_id,
            "client_id": config.client_id,
            "client_secret_encrypted": self._cipher.encrypt(config.client_secret),
            "created_at": config.created_at.isoformat(),
            "updated_at": config.updated_at.isoformat(),
        }
        if config.access_token is not None and config.token_expires_at is not None:
            item["access_token_encrypted"] = self._cipher.encrypt(config.access_token)
            item["token_expires_at"] = config.token_expires_at.isoformat()
        if config.refresh_token is not None:
            item["refresh_token_encrypted"] = self._cipher.encrypt(config.refresh_token)
        return item

    def _from_item(self, item: Dict[str, Any]) -> TenantConfig:
        access_token = item.get("access_token_encrypted")
        refresh_token = item.get("refresh_token_encrypted")
        return TenantConfig(
            tenant_id=item["tenant_id"],
            client_id=item["client_id"],
            client_secret=self._cipher.decrypt(item["client_secret_encrypted"]),
            access_token=self._cipher.decrypt(access_token) if access_token else None,
            refresh_token=self._cipher.decrypt(refresh_token) if refresh_token else None,
            token_expires_at=_parse_datetime(item.get("token_expires_at")),
            created_at=_parse_datetime(item["created_at"]),
            updated_at=_parse_datetime(item["updated_at"]),
        )


class PendingAuthorizationRepository:
    """Single-use storage for OAuth state correlation records."""

    def __init__(self, store: RecordStore, cipher: TokenCipherService) -> None:
        self._store = store
        self._cipher = cipher

    def add(self, pending: PendingAuthorization) -> None:
        self._store.put_item(
            {
                "pk": PENDING_PARTITION,
                "sk": pending.state,
                "state": pending.state,
                "tenant_id": pending.tenant_id,
                "client_id": pending.client_id,
                "client_secret_encrypted": self._cipher.encrypt(pending.client_secret),
                "created_at": pending.created_at.isoformat(),
            }
        )

    def get(self, state: str) -> Optional[PendingAuthorization]:
        item = self._store.get_item(partition_key=PENDING_PARTITION, sort_key=state)
        return self._from_item(item) if item else None

    def consume(self, state: str) -> Optional[PendingAuthorization]:
        """Remove and return the record for ``state``; None if it was already gone."""
        item = self._store.pop_item(partition_key=PENDING_PARTITION, sort_key=state)
        return self._from_item(item) if item else None

    def prune(self, *, now: datetime, ttl: timedelta) -> int:
        removed = 0
        for item in self._store.query_items(partition_key=PENDING_PARTITION):
            created_at = _parse_datetime(item.get("created_at"))
            if created_at is not None and now - created_at < ttl:
                continue
            self._store.delete_item(partition_key=PENDING_PARTITION, sort_key=item["sk"])
            removed += 1
        return removed

    def _from_item(self, item: Dict[str, Any]) -> PendingAuthorization:
        return PendingAuthorization(
            state=item["state"],
            tenant_id=item["tenant_id"],
            client_id=item["client_id"],
            client_secret=self._cipher.decrypt(item["client_secret_encrypted"]),
            created_at=_parse_datetime(item["created_at"]),
        )


__all__ = [
    "PENDING_PARTITION",
    "PendingAuthorizationRepository",
    "RecordStore",
    "TENANT_PARTITION",
    "TenantConfigRepository",
]
