"""
GoogleTasksConnector: OAuth2 web flow for Google Tasks.

Requests offline access so Google hands back a refresh token alongside
the short-lived access token.
"""

from __future__ import annotations

import logging
from typing import List
from urllib.parse import urlencode

from config.settings import config
from connectors.base import BaseConnector
from utils.schemas import ServiceType, TokenGrant, now_ms

logger = logging.getLogger(__name__)

# Google OAuth2 endpoints
_GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
_GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"


class GoogleTasksConnector(BaseConnector):
    """OAuth2 connector for Google Tasks."""

    @property
    def service_type(self) -> ServiceType:
        return ServiceType.GOOGLE_TASKS

    @property
    def display_name(self) -> str:
        return "Google Tasks"

    @property
    def scopes(self) -> List[str]:
        return ["https://www.googleapis.com/auth/tasks"]

    def is_configured(self) -> bool:
        return bool(config.google_client_id and config.google_client_secret)

    def get_auth_url(self, state: str) -> str:
        params = {
            "client_id": config.google_client_id,
            "redirect_uri": self._redirect_uri(),
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "access_type": "offline",       # gets refresh_token
            "state": state,
        }
        return f"{_GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> TokenGrant:
        """Exchange auth code for tokens; ``expires_in`` becomes epoch ms."""
        data = await self._post_token_form(
            _GOOGLE_TOKEN_URL,
            {
                "client_id": config.google_client_id,
                "client_secret": config.google_client_secret,
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": self._redirect_uri(),
            },
        )

        expires_at = None
        if data.get("expires_in"):
            expires_at = now_ms() + int(data["expires_in"]) * 1000

        return TokenGrant(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_at=expires_at,
        )
