"""
Exchange broker: trades an OAuth authorization code for vendor tokens and
hands the caller an opaque connection token instead.

The broker is the only writer of connection records. A record is created
once per successful exchange and never updated or expired.
"""

from __future__ import annotations

import logging
import secrets
import string
from typing import Callable, Dict, List, Optional, Tuple

from config.settings import config
from connectors.encryption import TokenCipher
from connectors.registry import ConnectorRegistry
from database.models import ConnectionRecord, connection_key
from database.store import KeyValueStore
from utils.errors import NotFoundError, ValidationError
from utils.schemas import ConnectionInfo, ExchangeResult, ServiceType, now_ms

logger = logging.getLogger(__name__)

CONNECTION_TOKEN_LENGTH = 32
USER_ID_LENGTH = 16

_ID_ALPHABET = string.ascii_letters + string.digits + "_-"


def random_id(size: int) -> str:
    """URL-safe random identifier of exactly ``size`` characters."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(size))


# ── OAuth state helpers ────────────────────────────────────────────────


def build_state(app_id: str, state: str, service_type: str) -> str:
    """Encode the redirect state as ``app_id:state:service_type``."""
    return f"{app_id}:{state}:{service_type}"


def parse_state(raw: str) -> Tuple[str, str, str]:
    """
    Split a redirect state back into ``(app_id, state, service_type)``.

    ``app_id`` and ``service_type`` never contain ':'; the caller's own
    state may.
    """
    try:
        app_id, rest = raw.split(":", 1)
        state, service_type = rest.rsplit(":", 1)
    except ValueError:
        raise ValidationError("Invalid OAuth state")
    if not app_id or not service_type:
        raise ValidationError("Invalid OAuth state")
    return app_id, state, service_type


# ── Broker ─────────────────────────────────────────────────────────────


class ExchangeBroker:
    def __init__(
        self,
        store: KeyValueStore,
        connectors: ConnectorRegistry,
        cipher: TokenCipher,
        *,
        redirect_uri: Optional[str] = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._connectors = connectors
        self._cipher = cipher
        self._redirect_uri = redirect_uri or config.app_redirect_uri
        self._clock = clock

    def list_services(self) -> List[Dict[str, object]]:
        return self._connectors.list_services()

    def authorize_url(self, service_type: Optional[str], app_id: Optional[str], state: str) -> str:
        """Vendor authorize URL carrying the encoded ``app_id:state:service`` state."""
        if not service_type or not app_id:
            raise ValidationError("Missing required parameters")
        connector = self._connectors.get(service_type)
        if connector is None:
            raise ValidationError(f"Unsupported service: {service_type}")
        return connector.get_auth_url(build_state(app_id, state or "", service_type))

    async def exchange(
        self,
        code: Optional[str],
        service_type: Optional[str],
        app_id: Optional[str],
        state: Optional[str] = None,
    ) -> ExchangeResult:
        """
        Exchange ``code`` for vendor tokens and store them.

        1. Validate inputs.
        2. Run the vendor's code → token exchange.
        3. Mint a connection token and a user id (not vendor-derived, so
           repeat exchanges for one person yield distinct user ids).
        4. Store the record under the connection token.

        Raises
        ------
        ValidationError – missing or non-string input, or unsupported service
        UpstreamError   – the vendor token endpoint failed
        """
        if not code or not service_type or not app_id:
            raise ValidationError("Missing required parameters")
        # JSON bodies can carry any type; reject before the single-use code is spent.
        fields = (code, service_type, app_id, state if state is not None else "")
        if not all(isinstance(v, str) for v in fields):
            raise ValidationError("Invalid parameters: code, service_type, app_id and state must be strings")

        logger.info("Token exchange request: service=%s app=%s state=%s", service_type, app_id, state)

        connector = self._connectors.get(service_type)
        if connector is None:
            raise ValidationError(f"Unsupported service: {service_type}")

        grant = await connector.exchange_code(code)

        connection_token = random_id(CONNECTION_TOKEN_LENGTH)
        user_id = random_id(USER_ID_LENGTH)

        record = ConnectionRecord(
            app_id=app_id,
            user_id=user_id,
            service_type=ServiceType(service_type),
            access_token=self._cipher.encrypt(grant.access_token),
            refresh_token=self._cipher.encrypt(grant.refresh_token),
            expires_at=grant.expires_at,
            created_at=self._clock(),
        )
        await self._store.set(connection_key(connection_token), record.model_dump(mode="json"))
        logger.info("Connection created: service=%s app=%s user=%s", service_type, app_id, user_id)

        return ExchangeResult(
            connection_token=connection_token,
            redirect_uri=self._redirect_uri,
            user_id=user_id,
        )

    async def _load(self, connection_token: Optional[str]) -> ConnectionRecord:
        if not connection_token:
            raise ValidationError("connection_token is required")
        raw = await self._store.get(connection_key(connection_token))
        if raw is None:
            raise NotFoundError("Invalid connection token")
        return ConnectionRecord.model_validate(raw)

    async def get_connection(self, connection_token: Optional[str]) -> ConnectionInfo:
        """Everything about a connection except its tokens."""
        record = await self._load(connection_token)
        return record.public_view()

    async def get_credentials(self, connection_token: str) -> Tuple[ServiceType, str]:
        """Resolve a connection token to ``(service_type, plaintext access token)``."""
        record = await self._load(connection_token)
        return record.service_type, self._cipher.decrypt(record.access_token)
