"""Schemas related to tenant configuration and OAuth flows."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class TenantCredentialsPayload(BaseModel):
    """Trakt application credentials submitted from the configuration form."""

    client_id: str = Field(..., description="Client ID of the tenant's Trakt application.")
    client_secret: str = Field(
        ..., description="Client secret of the tenant's Trakt application."
    )


class AuthorizationStarted(BaseModel):
    """Returned to API clients that do not follow the consent redirect."""

    authorization_url: str
    tenant_id: Optional[str] = None


class AuthorizationCompleted(BaseModel):
    status: str = "connected"
    tenant_id: str


__all__ = ["AuthorizationCompleted", "AuthorizationStarted", "TenantCredentialsPayload"]
