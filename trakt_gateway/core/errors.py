"""
Typed failures raised by the credential lifecycle manager.

Each failure carries a stable ``code`` so HTTP handlers can translate it into
a status or an error redirect without inspecting messages.
"""

from __future__ import annotations


class CredentialError(Exception):
    """Base class for every credential lifecycle failure."""

    code = "credential_error"

    def __init__(self, message: str, *, tenant_id: str | None = None) -> None:
        super().__init__(message)
        self.tenant_id = tenant_id


class InvalidInputError(CredentialError):
    """Raised when caller-supplied arguments are empty or malformed."""

    code = "invalid_input"


class InvalidStateError(CredentialError):
    """Raised when an OAuth state is unknown or no longer usable."""

    code = "invalid_state"


class ExchangeFailedError(CredentialError):
    """Raised when the authorization-code exchange does not yield tokens."""

    code = "exchange_failed"


class TenantNotFoundError(CredentialError):
    """Raised when no tenant record exists for an identifier."""

    code = "not_found"


class UnauthorizedTenantError(CredentialError):
    """Raised when a tenant has never completed authorization."""

    code = "unauthorized"


class RefreshFailedError(CredentialError):
    """Raised when an expired token cannot be refreshed; re-authorization is required."""

    code = "refresh_failed"


__all__ = [
    "CredentialError",
    "ExchangeFailedError",
    "InvalidInputError",
    "InvalidStateError",
    "RefreshFailedError",
    "TenantNotFoundError",
    "UnauthorizedTenantError",
]
