"""
GoogleTasksAdapter: Google Tasks API v1 behind the unified task interface.

Works on the user's default task list (``@default``); the list itself
plays the role of the unified ``project``. Google Tasks has no priority or
labels: reads report ``low`` / ``[]`` and writes ignore them.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from adapters.base import TaskAdapter, gather_all
from config.settings import config
from utils.schemas import (
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

DEFAULT_LIST = "@default"
PAGE_SIZE = 100     # tasks.list maximum; default is 20


def to_google_due(due_date: Optional[str]) -> Optional[str]:
    """Google wants RFC 3339; a bare YYYY-MM-DD becomes midnight UTC."""
    if not due_date:
        return due_date
    if len(due_date) == 10:
        return f"{due_date}T00:00:00.000Z"
    return due_date


def _status(task: Dict[str, Any]) -> TaskStatus:
    if task.get("deleted") or task.get("hidden"):
        return TaskStatus.ARCHIVED
    if task.get("status") == "completed":
        return TaskStatus.COMPLETED
    return TaskStatus.PENDING


def normalize_task(task: Dict[str, Any], tasklist: Dict[str, Any]) -> UnifiedTask:
    external_id = str(task["id"])
    updated = task.get("updated", "")
    return UnifiedTask(
        id=unified_id(ServiceType.GOOGLE_TASKS, external_id),
        external_id=external_id,
        service_type=ServiceType.GOOGLE_TASKS,
        title=task.get("title", ""),
        description=task.get("notes") or "",
        due_date=task.get("due"),
        status=_status(task),
        project=ProjectRef(
            id=str(tasklist.get("id", DEFAULT_LIST)),
            name=tasklist.get("title") or "My Tasks",
        ),
        # Google only reports the last modification time
        created_at=updated,
        updated_at=updated,
        completed_at=task.get("completed"),
    )


def normalize_tasklist(tasklist: Dict[str, Any]) -> UnifiedProject:
    external_id = str(tasklist["id"])
    return UnifiedProject(
        id=unified_id(ServiceType.GOOGLE_TASKS, external_id),
        external_id=external_id,
        service_type=ServiceType.GOOGLE_TASKS,
        name=tasklist.get("title", ""),
        updated_at=tasklist.get("updated"),
    )


class GoogleTasksAdapter(TaskAdapter):
    """Google Tasks adapter over the default task list."""

    service_type = ServiceType.GOOGLE_TASKS
    display_name = "Google Tasks"

    @classmethod
    def default_base_url(cls) -> str:
        return config.google_tasks_api_base

    def _tasks_path(self, external_id: str = "") -> str:
        path = f"/lists/{DEFAULT_LIST}/tasks"
        return f"{path}/{external_id}" if external_id else path

    async def _list_all(
        self,
        client: httpx.AsyncClient,
        path: str,
        params: Optional[Dict[str, str]] = None,
    ) -> List[Dict[str, Any]]:
        """Collect ``items`` across every page, following ``nextPageToken``."""
        query: Dict[str, str] = {**(params or {}), "maxResults": str(PAGE_SIZE)}
        items: List[Dict[str, Any]] = []
        while True:
            page = await self._request(client, "GET", path, params=query) or {}
            items.extend(page.get("items", []))
            token = page.get("nextPageToken")
            if not token:
                return items
            query["pageToken"] = token

    async def get_tasks(self) -> List[UnifiedTask]:
        async with self._client() as client:
            items, tasklist = await gather_all(
                self._list_all(client, self._tasks_path(), {"showCompleted": "true"}),
                self._request(client, "GET", f"/users/@me/lists/{DEFAULT_LIST}"),
            )
        return [normalize_task(t, tasklist or {}) for t in items]

    async def get_task(self, external_id: str) -> UnifiedTask:
        async with self._client() as client:
            task, tasklist = await gather_all(
                self._request(client, "GET", self._tasks_path(external_id)),
                self._request(client, "GET", f"/users/@me/lists/{DEFAULT_LIST}"),
            )
        return normalize_task(task, tasklist or {})

    async def create_task(self, task: TaskInput) -> UnifiedTask:
        body: Dict[str, Any] = {"title": task.title}
        if task.description:
            body["notes"] = task.description
        if task.due_date:
            body["due"] = to_google_due(task.due_date)
        if task.priority or task.labels:
            logger.debug("Google Tasks has no priority/labels; dropping them on create")

        async with self._client() as client:
            created = await self._request(client, "POST", self._tasks_path(), json=body)
            tasklist = await self._request(client, "GET", f"/users/@me/lists/{DEFAULT_LIST}")

        logger.info("Created Google task %s", created.get("id"))
        return normalize_task(created, tasklist or {})

    async def update_task(self, external_id: str, updates: TaskUpdate) -> UnifiedTask:
        fields = updates.present_fields()
        body: Dict[str, Any] = {}
        if "title" in fields:
            body["title"] = fields["title"]
        if "description" in fields:
            body["notes"] = fields["description"]
        if "due_date" in fields:
            body["due"] = to_google_due(fields["due_date"])

        async with self._client() as client:
            await self._request(client, "PATCH", self._tasks_path(external_id), json=body)
            task, tasklist = await gather_all(
                self._request(client, "GET", self._tasks_path(external_id)),
                self._request(client, "GET", f"/users/@me/lists/{DEFAULT_LIST}"),
            )

        logger.info("Updated Google task %s", external_id)
        return normalize_task(task, tasklist or {})

    async def delete_task(self, external_id: str) -> None:
        async with self._client() as client:
            await self._request(client, "DELETE", self._tasks_path(external_id))
        logger.info("Deleted Google task %s", external_id)

    async def complete_task(self, external_id: str) -> None:
        async with self._client() as client:
            await self._request(
                client, "PATCH", self._tasks_path(external_id), json={"status": "completed"},
            )
        logger.info("Completed Google task %s", external_id)

    async def get_projects(self) -> List[UnifiedProject]:
        async with self._client() as client:
            tasklists = await self._list_all(client, "/users/@me/lists")
        return [normalize_tasklist(tl) for tl in tasklists]
