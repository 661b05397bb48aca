"""
Pydantic schemas for the unified task model and the API envelopes.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ═══════════════════════════════════════════════════════════════════════════════
# Enums
# ═══════════════════════════════════════════════════════════════════════════════


class ServiceType(str, Enum):
    TODOIST = "todoist"
    GOOGLE_TASKS = "google_tasks"
    MICROSOFT_TODO = "microsoft_todo"
    BITRIX24 = "bitrix24"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    ARCHIVED = "archived"


# ═══════════════════════════════════════════════════════════════════════════════
# Unified Task Model
# ═══════════════════════════════════════════════════════════════════════════════


class ProjectRef(BaseModel):
    id: str
    name: str
    color: Optional[str] = None


class Assignee(BaseModel):
    id: str
    name: str
    email: str


class UnifiedTask(BaseModel):
    """
    One task, whatever vendor it came from.

    ``id`` is always ``f"{service_type}_{external_id}"``; use
    :func:`unified_id` to build it.
    """

    id: str
    external_id: str
    service_type: ServiceType
    title: str
    description: str = ""
    due_date: Optional[str] = None
    priority: Priority = Priority.LOW
    status: TaskStatus = TaskStatus.PENDING
    labels: List[str] = Field(default_factory=list)
    project: ProjectRef
    assignee: Optional[Assignee] = None
    created_at: str
    updated_at: str
    completed_at: Optional[str] = None


class UnifiedProject(BaseModel):
    id: str
    external_id: str
    service_type: ServiceType
    name: str
    description: Optional[str] = None
    color: Optional[str] = None
    created_at: Optional[str] = None    # not every vendor reports these
    updated_at: Optional[str] = None


def unified_id(service_type: ServiceType, external_id: str) -> str:
    return f"{service_type.value}_{external_id}"


# ═══════════════════════════════════════════════════════════════════════════════
# Write inputs
# ═══════════════════════════════════════════════════════════════════════════════


class TaskInput(BaseModel):
    """Fields accepted when creating a task.

    ``priority`` is a plain string: unknown values are tolerated and fall
    back to ``low`` inside the adapters.
    """

    title: str
    description: Optional[str] = None
    due_date: Optional[str] = None
    priority: Optional[str] = None
    labels: Optional[List[str]] = None
    project_id: Optional[str] = None


class TaskUpdate(BaseModel):
    """Partial update; only supplied, non-null fields are forwarded."""

    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[str] = None
    priority: Optional[str] = None
    labels: Optional[List[str]] = None
    project_id: Optional[str] = None

    def present_fields(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)


# ═══════════════════════════════════════════════════════════════════════════════
# OAuth exchange
# ═══════════════════════════════════════════════════════════════════════════════


class TokenGrant(BaseModel):
    """Tokens returned by a vendor's code → token exchange."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None     # epoch ms


class ExchangeResult(BaseModel):
    connection_token: str
    redirect_uri: str
    user_id: str


class ConnectionInfo(BaseModel):
    """Token-free view of a stored connection."""

    app_id: str
    user_id: str
    service_type: ServiceType
    created_at: int
    expires_at: Optional[int] = None


# ═══════════════════════════════════════════════════════════════════════════════
# Envelope
# ═══════════════════════════════════════════════════════════════════════════════


def now_ms() -> int:
    return int(time.time() * 1000)


def utc_timestamp() -> str:
    """ISO-8601 UTC with millisecond precision, e.g. 2024-01-01T00:00:00.000Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_meta(service: str, total: Optional[int] = None) -> Dict[str, Any]:
    meta: Dict[str, Any] = {"service": service, "timestamp": utc_timestamp()}
    if total is not None:
        meta["total"] = total
    return meta
