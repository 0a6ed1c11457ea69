"""
Trakt OAuth utilities.

Builds consent URLs and talks to the token endpoint for both the
authorization-code and refresh-token grants. Each tenant brings its own
registered application, so credentials are passed per call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from trakt_gateway.core.config import TraktSettings

logger = logging.getLogger(__name__)


class OAuthTokenExchangeError(Exception):
    """Raised when the token endpoint fails or returns an unusable payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class TokenGrant:
    """Tokens issued by a successful grant."""

    access_token: str
    refresh_token: Optional[str]
    expires_in: int


class TraktOAuthClient:
    """Build Trakt authorization URLs and exchange codes or refresh tokens."""

    def __init__(
        self,
        settings: TraktSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    def build_authorization_url(self, *, client_id: str, redirect_uri: str, state: str) -> str:
        """Construct the Trakt consent URL."""
        params = {
            "response_type": "code",
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "state": state,
        }
        return f"{self._settings.authorize_url}?{urlencode(params)}"

    async def exchange_authorization_code(
        self,
        *,
        code: str,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
    ) -> TokenGrant:
        payload = {
            "code": code,
            "client_id": client_id,
            "client_secret": client_secret,
            "redirect_uri": redirect_uri,
            "grant_type": "authorization_code",
        }
        token_payload = await self._post_token(payload)
        grant = self._parse_grant(token_payload)
        if not grant.refresh_token:
            raise OAuthTokenExchangeError("Token response did not include a refresh token.")
        return grant

    async def refresh_token(
        self,
        *,
        refresh_token: str,
        client_id: str,
        client_secret: str,
    ) -> TokenGrant:
        """Refresh an access token. ``refresh_token`` on the result may be None."""
        payload = {
            "refresh_token": refresh_token,
            "client_id": client_id,
            "client_secret": client_secret,
            "grant_type": "refresh_token",
        }
        token_payload = await self._post_token(payload)
        return self._parse_grant(token_payload)

    async def _post_token(self, payload: Dict[str, str]) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.http_timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(str(self._settings.token_url), json=payload)
        except httpx.TimeoutException as exc:
            raise OAuthTokenExchangeError("Token endpoint timed out.") from exc
        except httpx.HTTPError as exc:
            raise OAuthTokenExchangeError(f"Token endpoint unreachable: {exc}") from exc

        if response.status_code != httpx.codes.OK:
            logger.warning(
                "Token endpoint rejected %s grant with status %s",
                payload["grant_type"],
                response.status_code,
            )
            raise OAuthTokenExchangeError(
                _error_description(response), status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise OAuthTokenExchangeError("Token endpoint returned invalid JSON.") from exc
        if not isinstance(body, dict):
            raise OAuthTokenExchangeError("Token endpoint returned an unexpected payload.")
        return body

    @staticmethod
    def _parse_grant(token_payload: Dict[str, Any]) -> TokenGrant:
        access_token = token_payload.get("access_token")
        expires_in = token_payload.get("expires_in")
        if not access_token or expires_in is None:
            raise OAuthTokenExchangeError("Incomplete token payload returned from Trakt.")
        try:
            expires_in = int(expires_in)
        except (TypeError, ValueError) as exc:
            raise OAuthTokenExchangeError("Token payload has a non-numeric expires_in.") from exc
        return TokenGrant(
            access_token=access_token,
            refresh_token=token_payload.get("refresh_token") or None,
            expires_in=expires_in,
        )


def _error_description(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        return str(body.get("error_description") or body.get("error") or body)
    return str(body)


__all__ = ["OAuthTokenExchangeError", "TokenGrant", "TraktOAuthClient"]
