"""
FastAPI dependencies (shared across routes).

The store, rate limiter, adapter registry and exchange broker are built
once in ``main.create_app`` and hung off ``app.state``; routes reach them
through these helpers so tests can swap in fakes.
"""

import logging
from typing import Optional

from fastapi import Depends, Request

from adapters.base import TaskAdapter
from adapters.registry import AdapterRegistry
from config.settings import config
from connectors.exchange import ExchangeBroker
from core.rate_limiter import RateLimiter
from utils.errors import AuthError, NotFoundError, RateLimitError, ValidationError

logger = logging.getLogger(__name__)

# Vendor token headers, checked in order.
TOKEN_HEADERS = ("x-todoist-token", "x-service-token")
CONNECTION_TOKEN_HEADER = "x-connection-token"

DEFAULT_SERVICE = "todoist"


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_adapter_registry(request: Request) -> AdapterRegistry:
    return request.app.state.adapters


def get_broker(request: Request) -> ExchangeBroker:
    return request.app.state.broker


async def resolve_vendor_token(request: Request, service: str, broker: ExchangeBroker) -> str:
    """
    Find the vendor API token for this request.

    A vendor token header wins; otherwise an ``x-connection-token`` is
    resolved through the broker to the stored access token.

    Raises
    ------
    AuthError       – no usable token
    ValidationError – connection token belongs to another service
    """
    for header in TOKEN_HEADERS:
        token = request.headers.get(header)
        if token:
            return token

    connection_token = request.headers.get(CONNECTION_TOKEN_HEADER)
    if not connection_token:
        raise AuthError("Authentication token required")

    try:
        service_type, access_token = await broker.get_credentials(connection_token)
    except NotFoundError:
        raise AuthError("Unknown connection token", error="Invalid connection token")
    if service_type.value != service:
        raise ValidationError(
            f"Connection token is for {service_type.value}, not {service}"
        )
    return access_token


class TaskContext:
    """Per-request checks shared by every task route."""

    def __init__(
        self,
        request: Request,
        limiter: RateLimiter = Depends(get_rate_limiter),
        adapters: AdapterRegistry = Depends(get_adapter_registry),
        broker: ExchangeBroker = Depends(get_broker),
    ) -> None:
        self.request = request
        self.limiter = limiter
        self.adapters = adapters
        self.broker = broker

    async def adapter_for(self, user_id: Optional[str], service: Optional[str]) -> TaskAdapter:
        """
        user_id → rate limit → vendor token → adapter.

        Raises
        ------
        ValidationError – missing user_id or unsupported service
        RateLimitError  – user is over the per-window budget
        AuthError       – no vendor token
        """
        if not user_id:
            raise ValidationError("user_id is required")

        if not await self.limiter.check(user_id):
            raise RateLimitError(retry_after=config.rate_limit_retry_after)

        service = service or DEFAULT_SERVICE
        token = await resolve_vendor_token(self.request, service, self.broker)
        return self.adapters.create(service, token)
