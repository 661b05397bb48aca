"""
Records kept in the key-value store: OAuth connections and rate-limit windows.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from utils.schemas import ConnectionInfo, ServiceType


CONNECTION_PREFIX = "connection:"
RATE_LIMIT_PREFIX = "ratelimit:"


class ConnectionRecord(BaseModel):
    """
    Credentials obtained from one OAuth exchange, keyed by connection token.

    Written once by the exchange broker and never updated afterwards.
    ``access_token`` / ``refresh_token`` hold ciphertext when token
    encryption is enabled.
    """

    app_id: str
    user_id: str
    service_type: ServiceType
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None     # epoch ms
    created_at: int                      # epoch ms

    def public_view(self) -> ConnectionInfo:
        return ConnectionInfo(
            app_id=self.app_id,
            user_id=self.user_id,
            service_type=self.service_type,
            created_at=self.created_at,
            expires_at=self.expires_at,
        )


class RateLimitEntry(BaseModel):
    count: int
    reset_time: int      # epoch ms


def connection_key(connection_token: str) -> str:
    return f"{CONNECTION_PREFIX}{connection_token}"


def rate_limit_key(user_id: str) -> str:
    return f"{RATE_LIMIT_PREFIX}{user_id}"
