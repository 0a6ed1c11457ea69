"""
Domain models for tenant credentials and in-flight OAuth authorizations.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, Field, model_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TenantConfig(BaseModel):
    """Trakt application credentials and the token pair issued for one tenant."""

    tenant_id: str
    client_id: str
    client_secret: str
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_expires_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def _check_token_pair(self) -> "TenantConfig":
        if (self.access_token is None) != (self.token_expires_at is None):
            raise ValueError("access_token and token_expires_at must be set together.")
        if self.token_expires_at is not None and self.token_expires_at.tzinfo is None:
            self.token_expires_at = self.token_expires_at.replace(tzinfo=timezone.utc)
        return self

    @property
    def is_authorized(self) -> bool:
        return self.access_token is not None

    def has_valid_access_token(
        self, now: datetime, leeway: timedelta = timedelta(0)
    ) -> bool:
        """Return True while the access token can be used without refreshing."""
        if self.access_token is None or self.token_expires_at is None:
            return False
        return now < self.token_expires_at - leeway


class PendingAuthorization(BaseModel):
    """Correlates an OAuth redirect round-trip with the request that started it."""

    state: str
    tenant_id: str
    client_id: str
    client_secret: str
    created_at: datetime = Field(default_factory=utcnow)

    def is_expired(self, now: datetime, ttl: timedelta) -> bool:
        created_at = self.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return now - created_at >= ttl


__all__ = ["PendingAuthorization", "TenantConfig", "utcnow"]
