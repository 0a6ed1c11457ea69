"""
Credential lifecycle management for Trakt tenants.

Drives the authorization-code and refresh-token grants and guarantees callers
either receive a currently valid access token or a typed failure.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import uuid
import weakref
from datetime import datetime, timedelta
from typing import Callable, Optional, Protocol

from trakt_gateway.clients.trakt_auth import OAuthTokenExchangeError, TokenGrant
from trakt_gateway.core.config import OAuthSettings
from trakt_gateway.core.errors import (
    ExchangeFailedError,
    InvalidInputError,
    InvalidStateError,
    RefreshFailedError,
    TenantNotFoundError,
    UnauthorizedTenantError,
)
from trakt_gateway.models.credentials import PendingAuthorization, TenantConfig, utcnow
from trakt_gateway.services.repositories import (
    PendingAuthorizationRepository,
    TenantConfigRepository,
)

logger = logging.getLogger(__name__)


class OAuthProvider(Protocol):
    def build_authorization_url(self, *, client_id: str, redirect_uri: str, state: str) -> str: ...

    async def exchange_authorization_code(
        self, *, code: str, client_id: str, client_secret: str, redirect_uri: str
    ) -> TokenGrant: ...

    async def refresh_token(
        self, *, refresh_token: str, client_id: str, client_secret: str
    ) -> TokenGrant: ...


class CredentialManager:
    """Owns tenant credentials and the OAuth state used to acquire them."""

    def __init__(
        self,
        *,
        tenants: TenantConfigRepository,
        pending: PendingAuthorizationRepository,
        oauth_client: OAuthProvider,
        oauth_settings: OAuthSettings,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._tenants = tenants
        self._pending = pending
        self._oauth = oauth_client
        self._state_ttl = timedelta(seconds=oauth_settings.state_ttl_seconds)
        self._leeway = timedelta(seconds=oauth_settings.refresh_leeway_seconds)
        self._clock = clock
        # Entries disappear once no coroutine holds or awaits the lock.
        self._tenant_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )
        # Refresh tokens the provider rejected, per tenant; cleared by re-authorization.
        self._rejected_refresh_tokens: dict[str, str] = {}

    def register_tenant(self, *, client_id: str, client_secret: str) -> TenantConfig:
        """Create an unauthorized tenant holding the submitted application credentials."""
        _require(client_id=client_id, client_secret=client_secret)
        now = self._clock()
        config = TenantConfig(
            tenant_id=uuid.uuid4().hex,
            client_id=client_id,
            client_secret=client_secret,
            created_at=now,
            updated_at=now,
        )
        self._tenants.save(config)
        logger.info("Registered tenant", extra={"tenant_id": config.tenant_id})
        return config

    def get_tenant(self, tenant_id: str) -> TenantConfig:
        config = self._tenants.get(tenant_id)
        if config is None:
            raise TenantNotFoundError(f"No tenant {tenant_id!r}.", tenant_id=tenant_id)
        return config

    def begin_authorization(
        self,
        *,
        client_id: str,
        client_secret: str,
        callback_url: str,
        tenant_id: Optional[str] = None,
    ) -> str:
        """Record a pending authorization and return the provider consent URL."""
        _require(client_id=client_id, client_secret=client_secret, callback_url=callback_url)
        now = self._clock()
        self.prune_expired_authorizations()

        pending = PendingAuthorization(
            state=secrets.token_urlsafe(32),
            tenant_id=tenant_id or uuid.uuid4().hex,
            client_id=client_id,
            client_secret=client_secret,
            created_at=now,
        )
        self._pending.add(pending)
        logger.info("Started OAuth authorization", extra={"tenant_id": pending.tenant_id})
        return self._oauth.build_authorization_url(
            client_id=client_id, redirect_uri=callback_url, state=pending.state
        )

    async def complete_authorization(
        self, *, code: str, state: str, callback_url: str
    ) -> TenantConfig:
        """Exchange the callback's authorization code and persist the tenant's tokens."""
        if not state:
            raise InvalidStateError("OAuth state is missing.")
        # Consumed before the exchange so duplicate callbacks reach the provider once.
        pending = self._pending.consume(state)
        if pending is None:
            raise InvalidStateError("OAuth state is unknown or was already used.")
        if pending.is_expired(self._clock(), self._state_ttl):
            raise InvalidStateError(
                "OAuth state has expired.", tenant_id=pending.tenant_id
            )
        if not code:
            raise InvalidInputError(
                "Authorization code is missing.", tenant_id=pending.tenant_id
            )

        try:
            grant = await self._oauth.exchange_authorization_code(
                code=code,
                client_id=pending.client_id,
                client_secret=pending.client_secret,
                redirect_uri=callback_url,
            )
        except OAuthTokenExchangeError as exc:
            logger.warning(
                "Authorization code exchange failed: %s",
                exc,
                extra={"tenant_id": pending.tenant_id},
            )
            raise ExchangeFailedError(
                "Trakt rejected the authorization code.", tenant_id=pending.tenant_id
            ) from exc

        received_at = self._clock()
        async with self._lock_for(pending.tenant_id):
            existing = self._tenants.get(pending.tenant_id)
            config = TenantConfig(
                tenant_id=pending.tenant_id,
                client_id=pending.client_id,
                client_secret=pending.client_secret,
                access_token=grant.access_token,
                refresh_token=grant.refresh_token,
                token_expires_at=received_at + timedelta(seconds=grant.expires_in),
                created_at=existing.created_at if existing else received_at,
                updated_at=received_at,
            )
            self._tenants.save(config)
            self._rejected_refresh_tokens.pop(config.tenant_id, None)

        logger.info("Tenant authorized", extra={"tenant_id": config.tenant_id})
        return config

    async def get_valid_access_token(self, tenant_id: str) -> str:
        """Return a usable access token, refreshing it at most once per expiry."""
        config = self._load_authorized(tenant_id)
        if config.has_valid_access_token(self._clock(), self._leeway):
            return config.access_token  # type: ignore[return-value]

        async with self._lock_for(tenant_id):
            # A refresh that finished while we waited already produced a fresh token.
            config = self._load_authorized(tenant_id)
            if config.has_valid_access_token(self._clock(), self._leeway):
                return config.access_token  # type: ignore[return-value]
            return await self._refresh(config)

    def prune_expired_authorizations(self) -> int:
        removed = self._pending.prune(now=self._clock(), ttl=self._state_ttl)
        if removed:
            logger.info("Pruned %d expired OAuth authorizations", removed)
        return removed

    async def _refresh(self, config: TenantConfig) -> str:
        if not config.refresh_token:
            raise RefreshFailedError(
                "No refresh token stored; re-authorization required.",
                tenant_id=config.tenant_id,
            )
        # Waiters behind a failed refresh see the same token and must not resend it.
        if self._rejected_refresh_tokens.get(config.tenant_id) == config.refresh_token:
            raise RefreshFailedError(
                "Refresh token was already rejected; re-authorization required.",
                tenant_id=config.tenant_id,
            )
        try:
            grant = await self._oauth.refresh_token(
                refresh_token=config.refresh_token,
                client_id=config.client_id,
                client_secret=config.client_secret,
            )
        except OAuthTokenExchangeError as exc:
            logger.warning(
                "Token refresh failed: %s", exc, extra={"tenant_id": config.tenant_id}
            )
            self._rejected_refresh_tokens[config.tenant_id] = config.refresh_token
            raise RefreshFailedError(
                "Trakt rejected the refresh token; re-authorization required.",
                tenant_id=config.tenant_id,
            ) from exc

        received_at = self._clock()
        refreshed = config.model_copy(
            update={
                "access_token": grant.access_token,
                "refresh_token": grant.refresh_token or config.refresh_token,
                "token_expires_at": received_at + timedelta(seconds=grant.expires_in),
                "updated_at": received_at,
            }
        )
        self._tenants.save(refreshed)
        logger.info("Refreshed access token", extra={"tenant_id": config.tenant_id})
        return grant.access_token

    def _load_authorized(self, tenant_id: str) -> TenantConfig:
        config = self.get_tenant(tenant_id)
        if not config.is_authorized:
            raise UnauthorizedTenantError(
                "Tenant has not completed Trakt authorization.", tenant_id=tenant_id
            )
        return config

    def _lock_for(self, tenant_id: str) -> asyncio.Lock:
        lock = self._tenant_locks.get(tenant_id)
        if lock is None:
            lock = asyncio.Lock()
            self._tenant_locks[tenant_id] = lock
        return lock


def _require(**values: str) -> None:
    missing = [name for name, value in values.items() if not value or not value.strip()]
    if missing:
        raise InvalidInputError(f"Missing required value(s): {', '.join(missing)}.")


__all__ = ["CredentialManager", "OAuthProvider"]
