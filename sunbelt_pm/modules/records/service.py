"""Record service - fetches and mutates projects, tasks, RFIs, submittals and milestones."""

from __future__ import annotations

from typing import Any, Optional, TypeVar

from pydantic import BaseModel

from sunbelt_pm.backend import BackendClient, get_backend, safe_query
from sunbelt_pm.errors import BackendError, validate_required
from sunbelt_pm.logging_config import get_logger
from sunbelt_pm.modules.records.models import (
    RFI,
    FileAttachment,
    Milestone,
    Project,
    Submittal,
    Task,
)

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

PROJECT_RELATION = "project:projects(id, name, project_number, factory, color)"

REQUIRED_FIELDS: dict[str, list[str]] = {
    "projects": ["project_number", "name"],
    "tasks": ["project_id", "title"],
    "rfis": ["project_id", "subject"],
    "submittals": ["project_id", "title"],
    "milestones": ["project_id", "name"],
}


class RecordService:
    """Typed access to the backend tables behind the project views.

    Reads never raise: a failed query is logged and yields an empty result.
    Writes are pass-through calls that raise :class:`BackendError`.
    """

    def __init__(self, backend: Optional[BackendClient] = None) -> None:
        self._backend = backend

    @property
    def backend(self) -> BackendClient:
        if self._backend is None:
            self._backend = get_backend()
        return self._backend

    async def _list(
        self,
        table: str,
        model: type[M],
        select: str = "*",
        project_id: Optional[str] = None,
        order: Optional[str] = None,
        ascending: bool = True,
    ) -> list[M]:
        query = self.backend.table(table).select(select)
        if project_id is not None:
            query = query.eq("project_id", project_id)
        if order:
            query = query.order(order, ascending=ascending)

        rows = await safe_query(query.execute, fallback=[], context=f"fetch {table}")
        logger.debug("records_fetched", table=table, count=len(rows), project_id=project_id)
        return [model.model_validate(row) for row in rows]

    # ── Reads ─────────────────────────────────────────────────────────

    async def list_projects(self) -> list[Project]:
        return await self._list("projects", Project, order="project_number")

    async def get_project(self, project_id: str) -> Optional[Project]:
        """Fetch one project by id."""
        query = self.backend.table("projects").select("*").eq("id", project_id)
        row = await safe_query(query.single, fallback=None, context="fetch project")
        return Project.model_validate(row) if row else None

    async def get_project_by_number(self, project_number: str) -> Optional[Project]:
        query = self.backend.table("projects").select("*").eq("project_number", project_number)
        row = await safe_query(query.single, fallback=None, context="fetch project")
        return Project.model_validate(row) if row else None

    async def list_tasks(self, project_id: Optional[str] = None) -> list[Task]:
        select = f"*, {PROJECT_RELATION}, assignee:assignee_id(id, name, email), milestone:milestone_id(id, name)"
        return await self._list("tasks", Task, select, project_id, order="created_at", ascending=False)

    async def list_rfis(self, project_id: Optional[str] = None) -> list[RFI]:
        select = f"*, {PROJECT_RELATION}, internal_owner:internal_owner_id(id, name, email)"
        return await self._list("rfis", RFI, select, project_id, order="number", ascending=False)

    async def list_submittals(self, project_id: Optional[str] = None) -> list[Submittal]:
        select = f"*, {PROJECT_RELATION}, internal_owner:internal_owner_id(id, name, email)"
        return await self._list("submittals", Submittal, select, project_id, order="number", ascending=False)

    async def list_milestones(self, project_id: Optional[str] = None) -> list[Milestone]:
        return await self._list("milestones", Milestone, f"*, {PROJECT_RELATION}", project_id, order="due_date")

    async def list_attachments(self, entity_type: str, entity_id: str) -> list[FileAttachment]:
        """Attachment metadata for one task, RFI or submittal."""
        query = (
            self.backend.table("file_attachments")
            .select("*")
            .eq("entity_type", entity_type)
            .eq("entity_id", entity_id)
            .order("created_at")
        )
        rows = await safe_query(query.execute, fallback=[], context="fetch attachments")
        return [FileAttachment.model_validate(row) for row in rows]

    # ── Writes ────────────────────────────────────────────────────────

    async def create(self, table: str, values: dict[str, Any]) -> dict[str, Any]:
        """Insert a row after checking its required fields."""
        result = validate_required(values, REQUIRED_FIELDS.get(table, []))
        if not result.valid:
            raise ValueError(result.message)

        rows = await self.backend.insert(table, values)
        if not rows:
            raise BackendError(f"Insert into {table} returned no row")
        logger.info("record_created", table=table, id=rows[0].get("id"))
        return rows[0]

    async def update(self, table: str, record_id: str, values: dict[str, Any]) -> dict[str, Any]:
        rows = await self.backend.table(table).eq("id", record_id).update(values)
        if not rows:
            raise BackendError(f"No {table} row with id {record_id}", status_code=404)
        logger.info("record_updated", table=table, id=record_id, fields=sorted(values))
        return rows[0]

    async def delete(self, table: str, record_id: str) -> None:
        await self.backend.table(table).eq("id", record_id).delete()
        logger.info("record_deleted", table=table, id=record_id)
