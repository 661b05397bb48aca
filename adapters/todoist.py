"""
TodoistAdapter: Todoist REST v2 behind the unified task interface.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from adapters.base import TaskAdapter, gather_all
from config.settings import config
from utils.schemas import (
    Priority,
    ProjectRef,
    ServiceType,
    TaskInput,
    TaskStatus,
    TaskUpdate,
    UnifiedProject,
    UnifiedTask,
    unified_id,
)

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_NAME = "Inbox"

# Todoist uses 1 (normal) .. 4 (urgent)
_PRIORITY_TO_TODOIST: Dict[str, int] = {
    Priority.LOW.value: 1,
    Priority.MEDIUM.value: 2,
    Priority.HIGH.value: 3,
    Priority.URGENT.value: 4,
}
_PRIORITY_FROM_TODOIST: Dict[int, Priority] = {
    v: Priority(k) for k, v in _PRIORITY_TO_TODOIST.items()
}


def priority_to_todoist(priority: Optional[str]) -> int:
    """Unified priority → Todoist integer; unknown values map to 1 (low)."""
    if isinstance(priority, Priority):
        priority = priority.value
    return _PRIORITY_TO_TODOIST.get(priority, 1)


def priority_from_todoist(value: Any) -> Priority:
    """Todoist integer → unified priority; unknown values map to low."""
    try:
        return _PRIORITY_FROM_TODOIST.get(int(value), Priority.LOW)
    except (TypeError, ValueError):
        return Priority.LOW


def build_project_map(projects: List[Dict[str, Any]]) -> Dict[str, str]:
    return {str(p["id"]): str(p.get("name", "")) for p in projects or []}


def normalize_task(task: Dict[str, Any], project_names: Dict[str, str]) -> UnifiedTask:
    """Map one Todoist task dict onto ``UnifiedTask``."""
    external_id = str(task["id"])
    due = task.get("due") or {}
    project_id = str(task.get("project_id") or "")
    completed_at = task.get("completed_at")

    return UnifiedTask(
        id=unified_id(ServiceType.TODOIST, external_id),
        external_id=external_id,
        service_type=ServiceType.TODOIST,
        title=task.get("content", ""),
        description=task.get("description") or "",
        due_date=due.get("datetime") or due.get("date"),
        priority=priority_from_todoist(task.get("priority")),
        status=TaskStatus.COMPLETED if completed_at else TaskStatus.PENDING,
        labels=list(task.get("labels") or []),
        project=ProjectRef(
            id=project_id,
            name=project_names.get(project_id) or DEFAULT_PROJECT_NAME,
        ),
        created_at=task.get("created_at", ""),
        # REST v2 has no modification timestamp
        updated_at=task.get("created_at", ""),
        completed_at=completed_at,
    )


def normalize_project(project: Dict[str, Any]) -> UnifiedProject:
    external_id = str(project["id"])
    return UnifiedProject(
        id=unified_id(ServiceType.TODOIST, external_id),
        external_id=external_id,
        service_type=ServiceType.TODOIST,
        name=project.get("name", ""),
        color=project.get("color"),
        created_at=project.get("created_at"),
        updated_at=project.get("updated_at"),
    )


class TodoistAdapter(TaskAdapter):
    """Todoist REST v2 adapter."""

    service_type = ServiceType.TODOIST
    display_name = "Todoist"

    @classmethod
    def default_base_url(cls) -> str:
        return config.todoist_api_base

    async def get_tasks(self) -> List[UnifiedTask]:
        async with self._client() as client:
            tasks, projects = await gather_all(
                self._request(client, "GET", "/tasks"),
                self._request(client, "GET", "/projects"),
            )
        project_names = build_project_map(projects)
        logger.debug("Fetched %d Todoist tasks across %d projects", len(tasks or []), len(project_names))
        return [normalize_task(t, project_names) for t in tasks or []]

    async def get_task(self, external_id: str) -> UnifiedTask:
        async with self._client() as client:
            task, projects = await gather_all(
                self._request(client, "GET", f"/tasks/{external_id}"),
                self._request(client, "GET", "/projects"),
            )
        return normalize_task(task, build_project_map(projects))

    async def create_task(self, task: TaskInput) -> UnifiedTask:
        payload: Dict[str, Any] = {
            "content": task.title,
            "description": task.description or "",
            "priority": priority_to_todoist(task.priority),
            "labels": task.labels or [],
        }
        if task.due_date:
            payload["due_date"] = task.due_date
        if task.project_id:
            payload["project_id"] = task.project_id

        async with self._client() as client:
            created = await self._request(client, "POST", "/tasks", json=payload)
            # The create response carries only project_id, so resolve the name.
            projects = await self._request(client, "GET", "/projects")

        logger.info("Created Todoist task %s", created.get("id"))
        return normalize_task(created, build_project_map(projects))

    async def update_task(self, external_id: str, updates: TaskUpdate) -> UnifiedTask:
        payload = self._update_payload(updates.present_fields())

        async with self._client() as client:
            await self._request(client, "POST", f"/tasks/{external_id}", json=payload)
            task, projects = await gather_all(
                self._request(client, "GET", f"/tasks/{external_id}"),
                self._request(client, "GET", "/projects"),
            )

        logger.info("Updated Todoist task %s (%s)", external_id, ", ".join(sorted(payload)) or "no fields")
        return normalize_task(task, build_project_map(projects))

    async def delete_task(self, external_id: str) -> None:
        async with self._client() as client:
            await self._request(client, "DELETE", f"/tasks/{external_id}")
        logger.info("Deleted Todoist task %s", external_id)

    async def complete_task(self, external_id: str) -> None:
        async with self._client() as client:
            await self._request(client, "POST", f"/tasks/{external_id}/close")
        logger.info("Closed Todoist task %s", external_id)

    async def get_projects(self) -> List[UnifiedProject]:
        async with self._client() as client:
            projects = await self._request(client, "GET", "/projects")
        return [normalize_project(p) for p in projects or []]

    @staticmethod
    def _update_payload(fields: Dict[str, Any]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if "title" in fields:
            payload["content"] = fields["title"]
        if "description" in fields:
            payload["description"] = fields["description"]
        if "due_date" in fields:
            payload["due_date"] = fields["due_date"]
        if "priority" in fields:
            payload["priority"] = priority_to_todoist(fields["priority"])
        if "labels" in fields:
            payload["labels"] = fields["labels"]
        if "project_id" in fields:
            # REST v2 cannot move tasks between projects via update
            logger.warning("Ignoring project_id on Todoist update; moves are not supported")
        return payload
