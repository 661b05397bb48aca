"""
AdapterRegistry: maps a service type to the adapter class that serves it.

New vendors are added to ``_ALL_ADAPTERS``; routes only ever call
``registry.create(service, token)``.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Type

import httpx

from adapters.base import TaskAdapter
from adapters.google_tasks import GoogleTasksAdapter
from adapters.todoist import TodoistAdapter
from utils.errors import ValidationError

logger = logging.getLogger(__name__)

# ── All known adapters, add new ones here ───────────────────────────────

_ALL_ADAPTERS: List[Type[TaskAdapter]] = [
    TodoistAdapter,
    GoogleTasksAdapter,
    # MicrosoftTodoAdapter,   # future
    # Bitrix24Adapter,        # future
]


class AdapterRegistry:
    """Service type → adapter factory."""

    def __init__(
        self,
        adapters: Optional[List[Type[TaskAdapter]]] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        base_urls: Optional[Dict[str, str]] = None,
    ) -> None:
        self._adapters: Dict[str, Type[TaskAdapter]] = {}
        self._transport = transport
        self._base_urls = base_urls or {}
        for adapter_cls in adapters if adapters is not None else _ALL_ADAPTERS:
            self.register(adapter_cls)

    def register(self, adapter_cls: Type[TaskAdapter]) -> None:
        name = adapter_cls.service_type.value
        self._adapters[name] = adapter_cls
        logger.debug("Adapter registered: %s (%s)", adapter_cls.display_name, name)

    def supports(self, service: str) -> bool:
        return service in self._adapters

    def list_services(self) -> List[str]:
        return list(self._adapters.keys())

    def create(self, service: str, token: str) -> TaskAdapter:
        """
        Build an adapter for ``service`` bound to ``token``.

        Raises
        ------
        ValidationError – service has no registered adapter
        """
        adapter_cls = self._adapters.get(service)
        if adapter_cls is None:
            raise ValidationError(f"Unsupported service: {service}")
        return adapter_cls(
            token,
            base_url=self._base_urls.get(service),
            transport=self._transport,
        )
