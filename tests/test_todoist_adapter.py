"""
Tests for the Todoist adapter: priority mapping, normalization and the
vendor calls each operation makes.
"""

import json

import pytest

from adapters.todoist import (
    TodoistAdapter,
    normalize_task,
    priority_from_todoist,
    priority_to_todoist,
)
from utils.errors import UpstreamError
from utils.schemas import Priority, TaskInput, TaskStatus, TaskUpdate

from fakes import TODOIST_BASE, todoist_task


def _adapter(vendor) -> TodoistAdapter:
    return TodoistAdapter("tok", base_url=TODOIST_BASE, transport=vendor.transport)


class TestPriorityMapping:
    @pytest.mark.parametrize("value", [1, 2, 3, 4])
    def test_vendor_round_trip(self, value):
        assert priority_to_todoist(priority_from_todoist(value)) == value

    def test_unified_to_todoist(self):
        assert priority_to_todoist("low") == 1
        assert priority_to_todoist("medium") == 2
        assert priority_to_todoist("high") == 3
        assert priority_to_todoist("urgent") == 4
        assert priority_to_todoist(Priority.HIGH) == 3

    @pytest.mark.parametrize("value", ["critical", "", None, "LOW"])
    def test_unknown_unified_falls_back_to_1(self, value):
        assert priority_to_todoist(value) == 1

    @pytest.mark.parametrize("value", [0, 5, -1, None, "abc"])
    def test_unknown_vendor_falls_back_to_low(self, value):
        assert priority_from_todoist(value) == Priority.LOW


class TestNormalizeTask:
    def test_basic_fields(self):
        task = normalize_task(
            todoist_task("123", labels=["home", "errand"], priority=4),
            {"p1": "Groceries"},
        )
        assert task.id == "todoist_123"
        assert task.external_id == "123"
        assert task.service_type.value == "todoist"
        assert task.title == "Buy milk"
        assert task.priority == Priority.URGENT
        assert task.status == TaskStatus.PENDING
        assert task.labels == ["home", "errand"]
        assert task.project.id == "p1"
        assert task.project.name == "Groceries"
        assert task.updated_at == task.created_at

    def test_completed_when_completed_at_set(self):
        task = normalize_task(todoist_task(completed_at="2024-01-02T00:00:00Z"), {})
        assert task.status == TaskStatus.COMPLETED
        assert task.completed_at == "2024-01-02T00:00:00Z"

    def test_due_datetime_preferred(self):
        task = normalize_task(
            todoist_task(due={"date": "2024-05-01", "datetime": "2024-05-01T09:00:00Z"}), {},
        )
        assert task.due_date == "2024-05-01T09:00:00Z"

    def test_due_date_used_without_datetime(self):
        task = normalize_task(todoist_task(due={"date": "2024-05-01"}), {})
        assert task.due_date == "2024-05-01"

    def test_no_due(self):
        assert normalize_task(todoist_task(due=None), {}).due_date is None

    def test_unknown_project_defaults_to_inbox(self):
        task = normalize_task(todoist_task(project_id="missing"), {"p1": "Work"})
        assert task.project.name == "Inbox"


class TestTodoistAdapterCalls:
    @pytest.mark.asyncio
    async def test_get_tasks_fetches_tasks_and_projects(self, vendor):
        vendor.add("GET", "/tasks", [todoist_task("1"), todoist_task("2", project_id="p2")])
        vendor.add("GET", "/projects", [{"id": "p1", "name": "Home"}, {"id": "p2", "name": "Work"}])

        tasks = await _adapter(vendor).get_tasks()

        assert [t.id for t in tasks] == ["todoist_1", "todoist_2"]
        assert [t.project.name for t in tasks] == ["Home", "Work"]
        assert len(vendor.calls("GET", "/tasks")) == 1
        assert len(vendor.calls("GET", "/projects")) == 1

    @pytest.mark.asyncio
    async def test_requests_carry_bearer_and_json_headers(self, vendor):
        vendor.add("GET", "/tasks", [])
        vendor.add("GET", "/projects", [])

        await _adapter(vendor).get_tasks()

        for request in vendor.requests:
            assert request.headers["Authorization"] == "Bearer tok"
            assert request.headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_get_tasks_empty(self, vendor):
        vendor.add("GET", "/tasks", [])
        vendor.add("GET", "/projects", [{"id": "p1", "name": "Home"}])

        assert await _adapter(vendor).get_tasks() == []

    @pytest.mark.asyncio
    async def test_get_tasks_fails_when_projects_call_fails(self, vendor):
        vendor.add("GET", "/tasks", [todoist_task()])
        vendor.add("GET", "/projects", status=403, text="Forbidden")

        with pytest.raises(UpstreamError) as excinfo:
            await _adapter(vendor).get_tasks()

        assert excinfo.value.vendor_status == 403
        assert "403" in str(excinfo.value)
        assert excinfo.value.body == "Forbidden"
        assert excinfo.value.http_status() == 403

    @pytest.mark.asyncio
    async def test_create_task_maps_fields(self, vendor):
        vendor.add("POST", "/tasks", todoist_task("99", content="Write report", priority=3))
        vendor.add("GET", "/projects", [{"id": "p1", "name": "Work"}])

        task = await _adapter(vendor).create_task(
            TaskInput(title="Write report", priority="high", labels=["work"], due_date="2024-06-01"),
        )

        sent = json.loads(vendor.calls("POST", "/tasks")[0].content)
        assert sent == {
            "content": "Write report",
            "description": "",
            "priority": 3,
            "labels": ["work"],
            "due_date": "2024-06-01",
        }
        assert task.id == "todoist_99"
        assert task.project.name == "Work"
        assert len(vendor.calls("GET", "/projects")) == 1

    @pytest.mark.asyncio
    async def test_create_task_unknown_priority_sends_1(self, vendor):
        vendor.add("POST", "/tasks", todoist_task("5"))
        vendor.add("GET", "/projects", [])

        await _adapter(vendor).create_task(TaskInput(title="x", priority="critical"))

        sent = json.loads(vendor.calls("POST", "/tasks")[0].content)
        assert sent["priority"] == 1

    @pytest.mark.asyncio
    async def test_update_forwards_only_present_fields(self, vendor):
        vendor.add("POST", "/tasks/7", todoist_task("7", content="Renamed"))
        vendor.add("GET", "/tasks/7", todoist_task("7", content="Renamed", priority=2))
        vendor.add("GET", "/projects", [{"id": "p1", "name": "Home"}])

        updates = TaskUpdate.model_validate({"title": "Renamed", "priority": "medium"})
        task = await _adapter(vendor).update_task("7", updates)

        sent = json.loads(vendor.calls("POST", "/tasks/7")[0].content)
        assert sent == {"content": "Renamed", "priority": 2}
        assert task.title == "Renamed"
        assert task.priority == Priority.MEDIUM
        assert len(vendor.calls("GET", "/tasks/7")) == 1

    @pytest.mark.asyncio
    async def test_update_error_propagates(self, vendor):
        vendor.add("POST", "/tasks/7", status=404, text="Task not found")

        with pytest.raises(UpstreamError) as excinfo:
            await _adapter(vendor).update_task("7", TaskUpdate(title="x"))

        assert excinfo.value.vendor_status == 404
        assert excinfo.value.http_status() == 500
        assert vendor.calls("GET", "/tasks/7") == []

    @pytest.mark.asyncio
    async def test_delete_and_complete(self, vendor):
        vendor.add("DELETE", "/tasks/7", status=204)
        vendor.add("POST", "/tasks/8/close", status=204)

        adapter = _adapter(vendor)
        assert await adapter.delete_task("7") is None
        assert await adapter.complete_task("8") is None

        assert len(vendor.calls("DELETE", "/tasks/7")) == 1
        assert len(vendor.calls("POST", "/tasks/8/close")) == 1

    @pytest.mark.asyncio
    async def test_get_task(self, vendor):
        vendor.add("GET", "/tasks/3", todoist_task("3", due={"date": "2024-02-02"}))
        vendor.add("GET", "/projects", [])

        task = await _adapter(vendor).get_task("3")

        assert task.id == "todoist_3"
        assert task.due_date == "2024-02-02"
        assert task.project.name == "Inbox"

    @pytest.mark.asyncio
    async def test_get_projects(self, vendor):
        vendor.add("GET", "/projects", [{"id": "p1", "name": "Home", "color": "red"}])

        projects = await _adapter(vendor).get_projects()

        assert len(projects) == 1
        assert projects[0].id == "todoist_p1"
        assert projects[0].color == "red"
