"""
ConnectorRegistry: provides access to the OAuth connector of each service.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import httpx

from connectors.base import BaseConnector
from connectors.google_tasks import GoogleTasksConnector
from connectors.todoist import TodoistConnector

logger = logging.getLogger(__name__)


def default_connectors(
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[BaseConnector]:
    # add new connectors here
    return [
        TodoistConnector(transport=transport),
        GoogleTasksConnector(transport=transport),
    ]


class ConnectorRegistry:
    """Service type → OAuth connector."""

    def __init__(self, connectors: Optional[List[BaseConnector]] = None) -> None:
        self._all = connectors if connectors is not None else default_connectors()
        self._connectors: Dict[str, BaseConnector] = {}
        for conn in self._all:
            self._connectors[conn.service_type.value] = conn
            if conn.is_configured():
                logger.info(
                    "Connector registered: %s (%s)",
                    conn.display_name,
                    conn.service_type.value,
                )
            else:
                logger.warning(
                    "Connector %s registered without client_id/secret; exchanges will fail",
                    conn.service_type.value,
                )

    def get(self, service_type: str) -> Optional[BaseConnector]:
        """Get a connector by service type."""
        return self._connectors.get(service_type)

    def list_services(self) -> List[Dict[str, object]]:
        """Return info about all available connectors."""
        return [
            {
                "service_type": c.service_type.value,
                "display_name": c.display_name,
                "configured": c.is_configured(),
            }
            for c in self._all
        ]
