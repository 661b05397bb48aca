"""
TaskAdapter: abstract interface every vendor adapter implements.

An adapter wraps one vendor REST API for one user token, translating the
unified operations into vendor calls and normalizing the responses into
``UnifiedTask`` / ``UnifiedProject``.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, List, Optional

import httpx

from config.settings import config
from utils.errors import UpstreamError
from utils.schemas import ServiceType, TaskInput, TaskUpdate, UnifiedProject, UnifiedTask

logger = logging.getLogger(__name__)


async def gather_all(*calls: Awaitable[Any]) -> List[Any]:
    """
    Run vendor calls concurrently and wait for every one of them to settle.

    The first failure is re-raised only after the other calls have finished,
    so none of them is still using the client when it closes.
    """
    results = await asyncio.gather(*calls, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


class TaskAdapter(ABC):
    """Abstract base for all task-service adapters."""

    service_type: ServiceType
    display_name: str = "Unknown"

    def __init__(
        self,
        token: str,
        *,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.token = token
        self.base_url = (base_url or self.default_base_url()).rstrip("/")
        self._transport = transport

    @classmethod
    @abstractmethod
    def default_base_url(cls) -> str:
        ...

    # ── Capabilities ────────────────────────────────────────────────────

    @abstractmethod
    async def get_tasks(self) -> List[UnifiedTask]:
        ...

    @abstractmethod
    async def get_task(self, external_id: str) -> UnifiedTask:
        ...

    @abstractmethod
    async def create_task(self, task: TaskInput) -> UnifiedTask:
        ...

    @abstractmethod
    async def update_task(self, external_id: str, updates: TaskUpdate) -> UnifiedTask:
        """Forward only the fields set on ``updates``, then re-read the task."""
        ...

    @abstractmethod
    async def delete_task(self, external_id: str) -> None:
        ...

    @abstractmethod
    async def complete_task(self, external_id: str) -> None:
        ...

    @abstractmethod
    async def get_projects(self) -> List[UnifiedProject]:
        ...

    # ── HTTP helpers ────────────────────────────────────────────────────

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {self.token}",
                "Content-Type": "application/json",
            },
            timeout=config.vendor_timeout_seconds,
            transport=self._transport,
        )

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[dict] = None,
    ) -> Any:
        """
        Issue one vendor call.

        Returns the decoded JSON body, or None for empty responses.

        Raises
        ------
        UpstreamError – non-2xx status, unreachable vendor or undecodable body
        """
        try:
            resp = await client.request(method, path, json=json, params=params)
        except httpx.HTTPError as exc:
            logger.error("%s API request failed: %s %s: %s", self.display_name, method, path, exc)
            raise UpstreamError(
                f"{self.display_name} API request failed: {exc}",
                service=self.service_type.value,
            ) from exc

        if not resp.is_success:
            logger.error(
                "%s API error: %s %s (%s %s) %s",
                self.display_name, resp.status_code, resp.reason_phrase, method, path, resp.text[:500],
            )
            raise UpstreamError(
                f"{self.display_name} API error: {resp.status_code} {resp.reason_phrase}",
                service=self.service_type.value,
                status_code=resp.status_code,
                body=resp.text,
            )

        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamError(
                f"{self.display_name} API returned a non-JSON body",
                service=self.service_type.value,
                status_code=resp.status_code,
                body=resp.text,
            ) from exc

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}>"
