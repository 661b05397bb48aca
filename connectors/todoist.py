"""
TodoistConnector: OAuth2 web flow for Todoist.

Todoist access tokens do not expire and come without a refresh token.
"""

from __future__ import annotations

import logging
from typing import List
from urllib.parse import urlencode

from config.settings import config
from connectors.base import BaseConnector
from utils.schemas import ServiceType, TokenGrant

logger = logging.getLogger(__name__)

# Todoist OAuth2 endpoints
_TODOIST_AUTH_URL = "https://todoist.com/oauth/authorize"
_TODOIST_TOKEN_URL = "https://todoist.com/oauth/access_token"


class TodoistConnector(BaseConnector):
    """OAuth2 connector for Todoist."""

    @property
    def service_type(self) -> ServiceType:
        return ServiceType.TODOIST

    @property
    def display_name(self) -> str:
        return "Todoist"

    @property
    def scopes(self) -> List[str]:
        return ["data:read_write"]

    def is_configured(self) -> bool:
        return bool(config.todoist_client_id and config.todoist_client_secret)

    def get_auth_url(self, state: str) -> str:
        params = {
            "client_id": config.todoist_client_id,
            "scope": ",".join(self.scopes),
            "state": state,
            "redirect_uri": self._redirect_uri(),
        }
        return f"{_TODOIST_AUTH_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> TokenGrant:
        """Exchange auth code for a Todoist access token."""
        data = await self._post_token_form(
            _TODOIST_TOKEN_URL,
            {
                "client_id": config.todoist_client_id,
                "client_secret": config.todoist_client_secret,
                "code": code,
                "redirect_uri": self._redirect_uri(),
            },
        )
        return TokenGrant(access_token=data["access_token"])
