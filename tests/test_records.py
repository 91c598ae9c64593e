"""Tests for record models and the record service."""

from __future__ import annotations

import datetime as dt

import httpx
import pytest

from sunbelt_pm.errors import BackendError
from sunbelt_pm.modules.records.models import RFI, Milestone, Project, Submittal, Task
from sunbelt_pm.modules.records.service import RecordService

TODAY = dt.date(2026, 1, 15)


class TestModels:
    """Tests for the typed row models."""

    def test_ids_become_strings(self, make_row) -> None:
        task = Task.model_validate(make_row(id=42, project_id=7, title="Set modules"))
        assert task.id == "42"
        assert task.project_id == "7"

    def test_dates_read_by_day(self, make_row) -> None:
        rfi = RFI.model_validate(make_row(id="r1", due_date="2026-02-01T00:00:00+00:00", date_sent="2026-01-10"))
        assert rfi.due_date == dt.date(2026, 2, 1)
        assert rfi.date_sent == dt.date(2026, 1, 10)

    def test_unknown_columns_kept(self, make_row) -> None:
        task = Task.model_validate(make_row(id="t1", title="x", custom_flag=True))
        assert task.model_extra["custom_flag"] is True

    def test_project_fields(self, make_row) -> None:
        task = Task.model_validate(make_row(id="t1", title="x"))
        assert task.project_name == "Riverside Clinic"
        assert task.project_number == "SMM-1001"
        assert Task(title="orphan").project_name == ""

    def test_null_status_is_empty(self) -> None:
        assert Task.model_validate({"id": "t1", "status": None}).status == ""

    def test_null_text_columns_read_as_defaults(self) -> None:
        task = Task.model_validate({"id": 1, "title": None, "description": None, "is_external": None})
        assert task.title == ""
        assert task.description is None
        assert task.is_external is False

        sub = Submittal.model_validate({"id": 2, "submittal_number": None, "title": None, "revision_number": None})
        assert (sub.submittal_number, sub.title, sub.revision_number) == ("", "", 0)
        assert Milestone.model_validate({"id": 3, "name": None}).name == ""
        assert Project.model_validate({"id": 4, "project_number": None, "name": None}).label == "N/A"

    def test_null_nested_relations(self) -> None:
        rfi = RFI.model_validate({
            "id": "r1",
            "subject": None,
            "project": {"id": 7, "name": None, "project_number": None},
            "internal_owner": {"name": None},
        })
        assert rfi.subject == ""
        assert rfi.project.id == "7"
        assert rfi.project_number == ""
        assert rfi.internal_owner.name == ""

    def test_rfi_number_falls_back_to_sequence(self) -> None:
        assert RFI.model_validate({"id": "r1", "number": 7, "rfi_number": None}).rfi_number == "RFI-007"
        assert RFI(number=12).rfi_number == "RFI-012"
        assert RFI(number=3, rfi_number="SMM-1001-RFI-003").rfi_number == "SMM-1001-RFI-003"
        assert RFI().rfi_number == ""

    def test_sender_alias(self) -> None:
        rfi = RFI.model_validate({"id": "r1", "from": "Site Super"})
        assert rfi.sender == "Site Super"

    def test_overdue_by_kind(self) -> None:
        assert Task(status="In Progress", due_date="2026-01-10").is_overdue(on=TODAY) is True
        assert Task(status="Cancelled", due_date="2026-01-10").is_overdue(on=TODAY) is False
        assert RFI(status="Answered", due_date="2026-01-10").is_overdue(on=TODAY) is False
        assert Submittal(status="Approved as Noted", due_date="2026-01-10").is_overdue(on=TODAY) is False
        assert Submittal(status="Pending", due_date="2026-01-10").is_overdue(on=TODAY) is True
        assert Milestone(status="Completed", due_date="2026-01-10").is_overdue(on=TODAY) is False

    def test_assignee_label(self) -> None:
        external = Task(is_external=True, external_assignee_name="Acme Electric")
        assert external.assignee_label == "Acme Electric (External)"
        internal = Task.model_validate({"assignee": {"name": "Dana Cruz", "email": "dana@example.com"}})
        assert internal.assignee_label == "Dana Cruz"
        assert Task(assigned_to_name="Lee").assignee_label == "Lee"

    def test_days_open(self) -> None:
        rfi = RFI(status="Open", date_sent="2026-01-05")
        assert rfi.days_open(on=TODAY) == 10
        answered = RFI(status="Answered", date_sent="2026-01-05", date_answered="2026-01-07")
        assert answered.days_open(on=TODAY) == 2

    def test_days_in_review(self) -> None:
        sub = Submittal(status="Approved", date_submitted="2026-01-01", date_approved="2026-01-09")
        assert sub.days_in_review(on=TODAY) == 8
        assert Submittal(status="Pending").days_in_review(on=TODAY) is None

    def test_revision_number(self) -> None:
        assert Submittal.model_validate({"revision_number": None}).revision_number == 0
        assert Submittal.model_validate({"revision_number": "2"}).revision_number == 2

    def test_project_label(self, project_row) -> None:
        assert Project.model_validate(project_row).label == "SMM-1001 - Riverside Clinic"
        assert Project(name="Solo").label == "Solo"
        assert Project().label == "N/A"


class TestRecordService:
    """Tests for RecordService reads and writes."""

    @pytest.mark.asyncio
    async def test_list_projects(self, backend_client, fake_backend, project_row) -> None:
        fake_backend.tables["projects"] = [project_row]
        projects = await RecordService(backend_client).list_projects()

        assert len(projects) == 1
        assert projects[0].delivery_date == dt.date(2026, 3, 5)
        assert ("order", "project_number.asc") in fake_backend.params_for("projects")

    @pytest.mark.asyncio
    async def test_list_tasks_scoped_to_project(self, backend_client, fake_backend, make_row) -> None:
        fake_backend.tables["tasks"] = [make_row(id="t1", title="Pour footings", status="Not Started")]
        tasks = await RecordService(backend_client).list_tasks("p1")

        params = fake_backend.params_for("tasks")
        assert ("project_id", "eq.p1") in params
        assert ("order", "created_at.desc") in params
        select = dict(params)["select"]
        assert "project:projects(" in select
        assert "assignee:assignee_id(" in select
        assert tasks[0].title == "Pour footings"

    @pytest.mark.asyncio
    async def test_rfis_ordered_by_number(self, backend_client, fake_backend) -> None:
        await RecordService(backend_client).list_rfis()
        params = fake_backend.params_for("rfis")
        assert ("order", "number.desc") in params
        assert not any(key == "project_id" for key, _ in params)

    @pytest.mark.asyncio
    async def test_rows_with_null_columns_are_listed(self, backend_client, fake_backend, project_row) -> None:
        fake_backend.tables["tasks"] = [
            {"id": 1, "title": None, "status": None, "project_id": "p1", "project": {"name": None, "project_number": None}},
            {"id": 2, "title": "Set modules", "project_id": "p1"},
        ]
        fake_backend.tables["rfis"] = [{"id": 5, "number": 4, "rfi_number": None, "subject": None}]
        fake_backend.tables["projects"] = [{**project_row, "name": None}]
        service = RecordService(backend_client)

        tasks = await service.list_tasks()
        assert [t.title for t in tasks] == ["", "Set modules"]
        assert tasks[0].project_number == ""
        rfis = await service.list_rfis()
        assert rfis[0].rfi_number == "RFI-004"
        projects = await service.list_projects()
        assert projects[0].label == "SMM-1001"

    @pytest.mark.asyncio
    async def test_failed_read_returns_empty(self, backend_client, fake_backend) -> None:
        fake_backend.responses[("GET", "submittals")] = httpx.Response(403, json={"message": "permission denied"})
        assert await RecordService(backend_client).list_submittals("p1") == []

    @pytest.mark.asyncio
    async def test_get_project_by_number(self, backend_client, fake_backend, project_row) -> None:
        fake_backend.tables["projects"] = [project_row]
        project = await RecordService(backend_client).get_project_by_number("SMM-1001")
        assert project is not None
        assert project.name == "Riverside Clinic"
        assert ("project_number", "eq.SMM-1001") in fake_backend.params_for("projects")

    @pytest.mark.asyncio
    async def test_get_project_missing(self, backend_client) -> None:
        assert await RecordService(backend_client).get_project("nope") is None

    @pytest.mark.asyncio
    async def test_list_attachments(self, backend_client, fake_backend) -> None:
        fake_backend.tables["file_attachments"] = [
            {"id": 1, "file_name": "shop.pdf", "entity_type": "rfi", "entity_id": 9},
        ]
        files = await RecordService(backend_client).list_attachments("rfi", "9")
        assert files[0].file_name == "shop.pdf"
        assert files[0].entity_id == "9"
        params = fake_backend.params_for("file_attachments")
        assert ("entity_type", "eq.rfi") in params
        assert ("entity_id", "eq.9") in params

    @pytest.mark.asyncio
    async def test_create_validates(self, backend_client, fake_backend) -> None:
        with pytest.raises(ValueError, match="Please fill in: title"):
            await RecordService(backend_client).create("tasks", {"project_id": "p1", "title": ""})
        assert fake_backend.requests == []

    @pytest.mark.asyncio
    async def test_create_returns_row(self, backend_client) -> None:
        row = await RecordService(backend_client).create("rfis", {"project_id": "p1", "subject": "Door hardware"})
        assert row["id"] == "new-1"
        assert row["subject"] == "Door hardware"

    @pytest.mark.asyncio
    async def test_create_propagates_backend_error(self, backend_client, fake_backend) -> None:
        fake_backend.responses[("POST", "tasks")] = httpx.Response(409, json={"message": "dup", "code": "23505"})
        with pytest.raises(BackendError):
            await RecordService(backend_client).create("tasks", {"project_id": "p1", "title": "x"})

    @pytest.mark.asyncio
    async def test_update(self, backend_client, fake_backend) -> None:
        row = await RecordService(backend_client).update("tasks", "1", {"status": "Completed"})
        assert row["status"] == "Completed"
        assert fake_backend.params_for("tasks", "PATCH") == [("id", "eq.1")]

    @pytest.mark.asyncio
    async def test_update_missing_row(self, backend_client, fake_backend) -> None:
        fake_backend.responses[("PATCH", "tasks")] = httpx.Response(200, json=[])
        with pytest.raises(BackendError) as exc_info:
            await RecordService(backend_client).update("tasks", "404", {"status": "Completed"})
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_delete(self, backend_client, fake_backend) -> None:
        await RecordService(backend_client).delete("milestones", "m1")
        assert fake_backend.requests[-1].method == "DELETE"
