"""
FastAPI routes for the Trakt credential gateway.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from trakt_gateway.clients.trakt_api import TraktApiError
from trakt_gateway.core.errors import (
    CredentialError,
    ExchangeFailedError,
    InvalidInputError,
    RefreshFailedError,
    TenantNotFoundError,
    UnauthorizedTenantError,
)
from trakt_gateway.dependencies import (
    get_app_settings,
    get_credential_manager,
    get_trakt_api_client,
)
from trakt_gateway.schemas import (
    AuthorizationCompleted,
    AuthorizationStarted,
    TenantCredentialsPayload,
)

router = APIRouter()
logger = logging.getLogger(__name__)

MISSING_CODE_OR_STATE = "missing_code_or_state"


def _callback_url(request: Request, settings: Any) -> str:
    """Return the redirect URI for the callback route; identical for both legs of the flow."""
    if settings.trakt.redirect_uri:
        return str(settings.trakt.redirect_uri)
    proto = request.headers.get("x-forwarded-proto") or request.url.scheme
    host = request.headers.get("x-forwarded-host") or request.headers.get("host")
    path = request.app.url_path_for("handle_trakt_oauth_callback")
    return f"{proto}://{host}{path}"


def _wants_redirect(request: Request, redirect: bool) -> bool:
    return redirect or "text/html" in request.headers.get("accept", "").lower()


def _with_query(url: str, **params: str) -> str:
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.extend(params.items())
    return urlunsplit(parts._replace(query=urlencode(query)))


def _callback_failure(settings: Any, code: str, status_code: HTTPStatus) -> Response:
    if settings.frontend_base_url:
        return RedirectResponse(
            url=_with_query(str(settings.frontend_base_url), error=code),
            status_code=HTTPStatus.TEMPORARY_REDIRECT,
        )
    return JSONResponse(status_code=status_code, content={"error": code})


def _credential_http_error(exc: CredentialError, status_code: HTTPStatus) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"error": exc.code, "message": str(exc)})


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.post("/tenants", status_code=HTTPStatus.CREATED)
async def register_tenant(
    payload: TenantCredentialsPayload,
    request: Request,
    manager: Annotated[Any, Depends(get_credential_manager)],
    settings: Annotated[Any, Depends(get_app_settings)],
    redirect: bool = Query(
        default=False,
        description="When true, respond with a redirect to the Trakt consent screen.",
    ),
) -> Response:
    """Store a tenant's Trakt application credentials and start authorizing it."""
    try:
        tenant = manager.register_tenant(
            client_id=payload.client_id, client_secret=payload.client_secret
        )
        authorization_url = manager.begin_authorization(
            client_id=payload.client_id,
            client_secret=payload.client_secret,
            callback_url=_callback_url(request, settings),
            tenant_id=tenant.tenant_id,
        )
    except InvalidInputError as exc:
        raise _credential_http_error(exc, HTTPStatus.BAD_REQUEST) from exc

    if _wants_redirect(request, redirect):
        return RedirectResponse(url=authorization_url, status_code=HTTPStatus.SEE_OTHER)
    body = AuthorizationStarted(authorization_url=authorization_url, tenant_id=tenant.tenant_id)
    return JSONResponse(status_code=HTTPStatus.CREATED, content=body.model_dump())


@router.post("/auth/trakt/authorize", status_code=HTTPStatus.OK)
async def start_trakt_oauth_flow(
    payload: TenantCredentialsPayload,
    request: Request,
    manager: Annotated[Any, Depends(get_credential_manager)],
    settings: Annotated[Any, Depends(get_app_settings)],
    redirect: bool = Query(
        default=False,
        description="When true, respond with a redirect to the Trakt consent screen.",
    ),
) -> Response:
    """Kick off the OAuth flow; the tenant record is created when the callback completes."""
    try:
        authorization_url = manager.begin_authorization(
            client_id=payload.client_id,
            client_secret=payload.client_secret,
            callback_url=_callback_url(request, settings),
        )
    except InvalidInputError as exc:
        raise _credential_http_error(exc, HTTPStatus.BAD_REQUEST) from exc

    if _wants_redirect(request, redirect):
        return RedirectResponse(url=authorization_url, status_code=HTTPStatus.SEE_OTHER)
    return JSONResponse(content=AuthorizationStarted(authorization_url=authorization_url).model_dump())


@router.get("/auth/trakt/callback", name="handle_trakt_oauth_callback")
async def handle_trakt_oauth_callback(
    request: Request,
    manager: Annotated[Any, Depends(get_credential_manager)],
    settings: Annotated[Any, Depends(get_app_settings)],
    code: str | None = Query(default=None, description="Authorization code returned by Trakt."),
    state: str | None = Query(default=None, description="OAuth state token."),
) -> Response:
    """Complete the OAuth exchange and send the browser to the configuration page."""
    if not code or not state:
        logger.warning("OAuth callback missing code or state")
        return _callback_failure(settings, MISSING_CODE_OR_STATE, HTTPStatus.BAD_REQUEST)

    try:
        tenant = await manager.complete_authorization(
            code=code, state=state, callback_url=_callback_url(request, settings)
        )
    except ExchangeFailedError as exc:
        return _callback_failure(settings, exc.code, HTTPStatus.BAD_GATEWAY)
    except CredentialError as exc:
        logger.warning("OAuth callback rejected: %s", exc.code)
        return _callback_failure(settings, exc.code, HTTPStatus.BAD_REQUEST)

    if settings.frontend_base_url:
        return RedirectResponse(
            url=_with_query(str(settings.frontend_base_url), tenant_id=tenant.tenant_id),
            status_code=HTTPStatus.TEMPORARY_REDIRECT,
        )
    return JSONResponse(content=AuthorizationCompleted(tenant_id=tenant.tenant_id).model_dump())


@router.get("/tenants/{tenant_id}/history", status_code=HTTPStatus.OK)
async def get_watch_history(
    tenant_id: str,
    api_client: Annotated[Any, Depends(get_trakt_api_client)],
    limit: int = Query(default=50, ge=1, le=1000),
) -> list:
    """Return the tenant's recent Trakt watch history."""
    try:
        return await api_client.get_watch_history(tenant_id=tenant_id, limit=limit)
    except TenantNotFoundError as exc:
        raise _credential_http_error(exc, HTTPStatus.NOT_FOUND) from exc
    except (UnauthorizedTenantError, RefreshFailedError) as exc:
        raise _credential_http_error(exc, HTTPStatus.UNAUTHORIZED) from exc
    except TraktApiError as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_GATEWAY,
            detail={"error": "trakt_api_error", "message": str(exc)},
        ) from exc
