"""
Service-level routes: health and supported task services.
"""

from __future__ import annotations

from typing import Dict, List

from fastapi import APIRouter, Depends

from adapters.registry import AdapterRegistry
from api.dependencies import get_adapter_registry

router = APIRouter()


@router.get("/health")
async def health_check() -> Dict[str, str]:
    return {"status": "ok"}


@router.get("/services")
async def supported_services(
    adapters: AdapterRegistry = Depends(get_adapter_registry),
) -> Dict[str, List[str]]:
    """Service types the task API can talk to."""
    return {"services": adapters.list_services()}
