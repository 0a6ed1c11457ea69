"""Trakt REST API client acting on behalf of an authorized tenant."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import httpx

from trakt_gateway.core.config import TraktSettings
from trakt_gateway.utils.http import RetryConfig, request_with_retry

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from trakt_gateway.services.credentials import CredentialManager

logger = logging.getLogger(__name__)

_API_VERSION = "2"


class TraktApiError(Exception):
    """Raised when the Trakt API cannot serve a request."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TraktApiClient:
    """Fetch tenant viewing data using tokens from the credential manager."""

    def __init__(
        self,
        credential_manager: "CredentialManager",
        settings: TraktSettings,
        *,
        retry_config: RetryConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._credentials = credential_manager
        self._settings = settings
        self._retry = retry_config or RetryConfig()
        self._transport = transport

    async def get_watch_history(self, *, tenant_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        """Return the tenant's most recent watch history entries."""
        payload = await self._get(
            "/users/me/history", tenant_id=tenant_id, params={"limit": limit}
        )
        if not isinstance(payload, list):
            raise TraktApiError("Unexpected history payload returned from Trakt.")
        return payload

    async def _get(
        self, path: str, *, tenant_id: str, params: Optional[Dict[str, Any]] = None
    ) -> Any:
        # Credential failures propagate unchanged so callers can prompt re-authorization.
        access_token = await self._credentials.get_valid_access_token(tenant_id)
        client_id = self._credentials.get_tenant(tenant_id).client_id
        headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
            "trakt-api-version": _API_VERSION,
            "trakt-api-key": client_id,
        }
        url = f"{str(self._settings.api_base_url).rstrip('/')}{path}"

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.http_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await request_with_retry(
                    client.get,
                    url,
                    params=params,
                    headers=headers,
                    retry_config=self._retry,
                )
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Trakt API %s returned %s",
                path,
                exc.response.status_code,
                extra={"tenant_id": tenant_id},
            )
            raise TraktApiError(
                f"Trakt API request failed for {path}.",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise TraktApiError(f"Trakt API unreachable: {exc}") from exc

        return response.json()


__all__ = ["TraktApiClient", "TraktApiError"]
