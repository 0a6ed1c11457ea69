"""Public schema exports."""

from .auth import AuthorizationCompleted, AuthorizationStarted, TenantCredentialsPayload

__all__ = ["AuthorizationCompleted", "AuthorizationStarted", "TenantCredentialsPayload"]
