"""
BaseConnector: abstract interface for all OAuth2 connectors.

Every vendor (Todoist, Google Tasks, …) subclasses this and implements
authorize-URL construction plus the code → token exchange.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import httpx

from config.settings import config
from utils.errors import UpstreamError
from utils.schemas import ServiceType, TokenGrant

logger = logging.getLogger(__name__)


class BaseConnector(ABC):
    """Abstract base for all OAuth2 connectors."""

    def __init__(self, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._transport = transport

    # ── Identity ────────────────────────────────────────────────────────
    @property
    @abstractmethod
    def service_type(self) -> ServiceType:
        ...

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable: 'Todoist', 'Google Tasks'."""
        ...

    @property
    @abstractmethod
    def scopes(self) -> List[str]:
        """OAuth scopes required by this connector."""
        ...

    # ── OAuth flow ──────────────────────────────────────────────────────

    @abstractmethod
    def get_auth_url(self, state: str) -> str:
        """
        Build the vendor's OAuth2 authorization URL.

        Parameters
        ----------
        state : str
            Opaque state string (``app_id:state:service_type``).

        Returns
        -------
        The full URL to redirect the user to.
        """
        ...

    @abstractmethod
    async def exchange_code(self, code: str) -> TokenGrant:
        """
        Exchange the authorization code for tokens.

        Raises
        ------
        UpstreamError – the token endpoint rejected the code or sent garbage
        """
        ...

    # ── Helpers ─────────────────────────────────────────────────────────

    def is_configured(self) -> bool:
        """True if the client id / secret pair is present."""
        return True

    def _redirect_uri(self) -> str:
        return config.oauth_callback_uri

    def _exchange_failed(self, message: str, resp: Optional[httpx.Response] = None) -> UpstreamError:
        return UpstreamError(
            f"{self.display_name} token exchange failed: {message}",
            service=self.service_type.value,
            status_code=resp.status_code if resp is not None else None,
            body=resp.text if resp is not None else "",
            error="Token exchange failed",
            auth_passthrough=False,
        )

    async def _post_token_form(self, url: str, form: Dict[str, str]) -> dict:
        """POST a form to the token endpoint and return its JSON body."""
        async with httpx.AsyncClient(
            timeout=config.vendor_timeout_seconds,
            transport=self._transport,
        ) as client:
            try:
                resp = await client.post(url, data=form, headers={"Accept": "application/json"})
            except httpx.HTTPError as exc:
                raise self._exchange_failed(str(exc)) from exc

        if not resp.is_success:
            logger.error("%s token endpoint returned %s", self.display_name, resp.status_code)
            raise self._exchange_failed(resp.text, resp)

        try:
            data = resp.json()
        except ValueError as exc:
            raise self._exchange_failed(f"non-JSON body: {resp.text[:200]}", resp) from exc

        if not isinstance(data, dict) or not data.get("access_token"):
            raise self._exchange_failed("response had no access_token", resp)
        return data
