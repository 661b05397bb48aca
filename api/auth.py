"""
OAuth routes: authorize URL, vendor callback, code exchange and
connection lookup.

Route prefix: /auth
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import RedirectResponse

from api.dependencies import get_broker
from connectors.exchange import ExchangeBroker, parse_state
from utils.errors import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.get("/services")
async def list_services(broker: ExchangeBroker = Depends(get_broker)) -> List[Dict[str, Any]]:
    """Services a user can connect, and whether their OAuth client is configured."""
    return broker.list_services()


@router.get("/authorize")
async def authorize_url(
    service_type: Optional[str] = Query(None),
    app_id: Optional[str] = Query(None),
    state: str = Query(""),
    broker: ExchangeBroker = Depends(get_broker),
) -> Dict[str, str]:
    """
    Get the vendor authorization URL for a service.

    The calling app redirects the browser there; the vendor later redirects
    to ``/auth/callback`` with the same state.
    """
    url = broker.authorize_url(service_type, app_id, state)
    return {"auth_url": url, "service_type": service_type}


@router.get("/callback")
async def oauth_callback(
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    broker: ExchangeBroker = Depends(get_broker),
) -> RedirectResponse:
    """
    Vendor redirects here after consent.

    Exchanges the code and sends the browser back to the app with
    ``connection_token`` and the app's original state.
    """
    if error:
        raise ValidationError(f"Authentication failed: {error}")
    if not code or not state:
        raise ValidationError("Missing required parameters")

    app_id, original_state, service_type = parse_state(state)
    result = await broker.exchange(code, service_type, app_id, original_state)

    query = urlencode({"connection_token": result.connection_token, "state": original_state})
    separator = "&" if "?" in result.redirect_uri else "?"
    return RedirectResponse(f"{result.redirect_uri}{separator}{query}", status_code=302)


@router.post("/exchange")
async def exchange_code(
    body: Dict[str, Any] = Body(...),
    broker: ExchangeBroker = Depends(get_broker),
) -> Dict[str, str]:
    """Trade an authorization code for a connection token."""
    result = await broker.exchange(
        body.get("code"),
        body.get("service_type"),
        body.get("app_id"),
        body.get("state"),
    )
    return result.model_dump()


@router.get("/exchange")
async def get_connection(
    connection_token: Optional[str] = Query(None),
    broker: ExchangeBroker = Depends(get_broker),
) -> Dict[str, Any]:
    """Connection details; access and refresh tokens are never returned."""
    info = await broker.get_connection(connection_token)
    return info.model_dump(mode="json", exclude_none=True)
