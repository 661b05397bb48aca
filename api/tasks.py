"""
Task API routes: unified CRUD over whichever vendor ``service`` names.

Every route runs the same pipeline (see ``TaskContext.adapter_for``) and
wraps results in ``{"data": ..., "meta": {"service", "timestamp", "total"?}}``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import ValidationError as PydanticValidationError

from api.dependencies import DEFAULT_SERVICE, TaskContext
from utils.errors import ValidationError
from utils.schemas import TaskInput, TaskUpdate, build_meta

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tasks"])

# Path ids are unified ids. Only the Todoist prefix is stripped; ids of
# other services reach their adapter unchanged.
_TODOIST_ID_PREFIX = "todoist_"


def external_task_id(task_id: str) -> str:
    return task_id.removeprefix(_TODOIST_ID_PREFIX)


def _split_body(body: Dict[str, Any]) -> tuple[Optional[str], str, Dict[str, Any]]:
    """Pull ``user_id`` / ``service`` out of a JSON body; the rest is task data."""
    fields = dict(body)
    user_id = fields.pop("user_id", None)
    service = fields.pop("service", None) or DEFAULT_SERVICE
    return user_id, service, fields


def _parse(model, fields: Dict[str, Any]):
    try:
        return model.model_validate(fields)
    except PydanticValidationError as exc:
        raise ValidationError("Invalid task fields", details=str(exc))


@router.get("/tasks")
async def list_tasks(
    user_id: Optional[str] = Query(None),
    service: str = Query(DEFAULT_SERVICE),
    ctx: TaskContext = Depends(),
) -> Dict[str, Any]:
    """All tasks of the connected account, normalized."""
    adapter = await ctx.adapter_for(user_id, service)
    tasks = await adapter.get_tasks()
    return {
        "data": [t.model_dump(mode="json") for t in tasks],
        "meta": build_meta(adapter.service_type.value, total=len(tasks)),
    }


@router.post("/tasks", status_code=status.HTTP_201_CREATED)
async def create_task(
    body: Dict[str, Any] = Body(...),
    ctx: TaskContext = Depends(),
) -> Dict[str, Any]:
    user_id, service, fields = _split_body(body)
    adapter = await ctx.adapter_for(user_id, service)

    if not fields.get("title"):
        raise ValidationError("title is required")

    created = await adapter.create_task(_parse(TaskInput, fields))
    return {
        "data": created.model_dump(mode="json"),
        "meta": build_meta(adapter.service_type.value),
    }


@router.get("/tasks/{task_id}")
async def get_task(
    task_id: str,
    user_id: Optional[str] = Query(None),
    service: str = Query(DEFAULT_SERVICE),
    ctx: TaskContext = Depends(),
) -> Dict[str, Any]:
    adapter = await ctx.adapter_for(user_id, service)
    task = await adapter.get_task(external_task_id(task_id))
    return {
        "data": task.model_dump(mode="json"),
        "meta": build_meta(adapter.service_type.value),
    }


@router.put("/tasks/{task_id}")
async def update_task(
    task_id: str,
    body: Dict[str, Any] = Body(...),
    ctx: TaskContext = Depends(),
) -> Dict[str, Any]:
    """Partial update: only fields present in the body are sent to the vendor."""
    user_id, service, fields = _split_body(body)
    adapter = await ctx.adapter_for(user_id, service)

    updated = await adapter.update_task(external_task_id(task_id), _parse(TaskUpdate, fields))
    return {
        "data": updated.model_dump(mode="json"),
        "meta": build_meta(adapter.service_type.value),
    }


@router.delete("/tasks/{task_id}")
async def delete_task(
    task_id: str,
    user_id: Optional[str] = Query(None),
    service: str = Query(DEFAULT_SERVICE),
    ctx: TaskContext = Depends(),
) -> Dict[str, Any]:
    adapter = await ctx.adapter_for(user_id, service)
    await adapter.delete_task(external_task_id(task_id))
    return {
        "message": "Task deleted successfully",
        "meta": build_meta(adapter.service_type.value),
    }


@router.post("/tasks/{task_id}/complete")
async def complete_task(
    task_id: str,
    user_id: Optional[str] = Query(None),
    service: str = Query(DEFAULT_SERVICE),
    ctx: TaskContext = Depends(),
) -> Dict[str, Any]:
    adapter = await ctx.adapter_for(user_id, service)
    await adapter.complete_task(external_task_id(task_id))
    return {
        "message": "Task completed successfully",
        "meta": build_meta(adapter.service_type.value),
    }


@router.get("/projects")
async def list_projects(
    user_id: Optional[str] = Query(None),
    service: str = Query(DEFAULT_SERVICE),
    ctx: TaskContext = Depends(),
) -> Dict[str, Any]:
    adapter = await ctx.adapter_for(user_id, service)
    projects = await adapter.get_projects()
    return {
        "data": [p.model_dump(mode="json") for p in projects],
        "meta": build_meta(adapter.service_type.value, total=len(projects)),
    }
