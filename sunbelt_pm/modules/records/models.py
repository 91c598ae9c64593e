"""Typed views of the backend-defined project rows."""

from __future__ import annotations

import datetime as dt
from enum import StrEnum
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from sunbelt_pm.dates import days_between, is_overdue, parse_day


class RecordKind(StrEnum):
    """Record types that carry a status and a due date."""

    TASK = "task"
    RFI = "rfi"
    SUBMITTAL = "submittal"
    MILESTONE = "milestone"


TASK_CLOSED_STATUSES = frozenset({"Completed", "Cancelled"})
RFI_CLOSED_STATUSES = frozenset({"Answered", "Closed"})
SUBMITTAL_CLOSED_STATUSES = frozenset({"Approved", "Approved as Noted", "Rejected"})
MILESTONE_CLOSED_STATUSES = frozenset({"Completed"})

_DATE_FIELDS = (
    "due_date",
    "start_date",
    "completed_date",
    "created_at",
    "date_sent",
    "date_answered",
    "date_submitted",
    "date_approved",
    "target_online_date",
    "target_offline_date",
    "delivery_date",
)


class BackendModel(BaseModel):
    """Backend row or relation: unknown columns are kept, a null column reads as the field default."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_default(cls, v: Any, info: ValidationInfo) -> Any:
        if v is not None or info.field_name is None:
            return v
        field = cls.model_fields.get(info.field_name)
        if field is None or field.is_required() or field.default_factory is not None:
            return v
        return field.default


class BackendRecord(BackendModel):
    """Base for backend rows; ids are strings."""

    id: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)


class ProjectRef(BackendModel):
    """Nested ``project`` relation."""

    id: Optional[str] = None
    name: str = ""
    project_number: str = ""

    @field_validator("id", mode="before")
    @classmethod
    def _id_to_str(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)


class PersonRef(BackendModel):
    """Nested user relation (assignee, internal owner)."""

    name: str = ""
    email: Optional[str] = None


class NamedRef(BackendModel):
    """Nested relation that only carries a name."""

    name: str = ""


class TrackedRecord(BackendRecord):
    """A record with a status, a due date and a parent project."""

    closed_statuses: ClassVar[frozenset[str]] = frozenset()
    kind: ClassVar[RecordKind]

    project_id: Optional[str] = None
    status: str = ""
    due_date: Optional[dt.date] = None
    created_at: Optional[dt.date] = None
    project: Optional[ProjectRef] = None

    @field_validator("project_id", mode="before")
    @classmethod
    def _project_id_to_str(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)

    @field_validator(*_DATE_FIELDS, mode="before", check_fields=False)
    @classmethod
    def _calendar_day(cls, v: Any) -> Optional[dt.date]:
        return parse_day(v)

    @field_validator("status", mode="before")
    @classmethod
    def _status_text(cls, v: Any) -> str:
        return v or ""

    @property
    def is_closed(self) -> bool:
        return self.status in self.closed_statuses

    def is_overdue(self, on: Optional[dt.date] = None) -> bool:
        """Due before *on* (default today) and not in a closed status."""
        return is_overdue(self.due_date, self.status, self.closed_statuses, on=on)

    @property
    def project_name(self) -> str:
        return self.project.name if self.project else ""

    @property
    def project_number(self) -> str:
        return self.project.project_number if self.project else ""


class Project(BackendRecord):
    """A modular-building project."""

    project_number: str = ""
    name: str = ""
    status: Optional[str] = None
    color: Optional[str] = None
    client_name: Optional[str] = None
    factory: Optional[str] = None
    site_address: Optional[str] = None
    target_online_date: Optional[dt.date] = None
    target_offline_date: Optional[dt.date] = None
    delivery_date: Optional[dt.date] = None

    @field_validator("target_online_date", "target_offline_date", "delivery_date", mode="before")
    @classmethod
    def _calendar_day(cls, v: Any) -> Optional[dt.date]:
        return parse_day(v)

    @property
    def label(self) -> str:
        """``<number> - <name>`` or whichever half exists."""
        if self.project_number and self.name:
            return f"{self.project_number} - {self.name}"
        return self.project_number or self.name or "N/A"


class Task(TrackedRecord):
    """A project task, optionally assigned to an external party."""

    kind: ClassVar[RecordKind] = RecordKind.TASK
    closed_statuses: ClassVar[frozenset[str]] = TASK_CLOSED_STATUSES

    title: str = ""
    description: Optional[str] = None
    priority: Optional[str] = None
    start_date: Optional[dt.date] = None
    completed_date: Optional[dt.date] = None
    assignee: Optional[PersonRef] = None
    assigned_to_name: Optional[str] = None
    is_external: bool = False
    external_assignee_name: Optional[str] = None
    external_assignee_email: Optional[str] = None
    milestone: Optional[NamedRef] = None
    workflow_station_key: Optional[str] = None
    assigned_court: Optional[str] = None

    @field_validator("is_external", mode="before")
    @classmethod
    def _bool(cls, v: Any) -> bool:
        return bool(v)

    @property
    def assignee_label(self) -> str:
        """Display name of whoever owns the task."""
        if self.is_external:
            return f"{self.external_assignee_name or 'External'} (External)"
        if self.assignee and self.assignee.name:
            return self.assignee.name
        return self.assigned_to_name or ""

    def days_open(self, on: Optional[dt.date] = None) -> Optional[int]:
        end = self.completed_date if self.is_closed else None
        return days_between(self.start_date or self.created_at, end, on=on)


class RFI(TrackedRecord):
    """Request for Information."""

    kind: ClassVar[RecordKind] = RecordKind.RFI
    closed_statuses: ClassVar[frozenset[str]] = RFI_CLOSED_STATUSES

    number: Optional[int] = None
    rfi_number: str = ""
    subject: str = ""
    question: Optional[str] = None
    answer: Optional[str] = None
    priority: Optional[str] = None
    date_sent: Optional[dt.date] = None
    date_answered: Optional[dt.date] = None
    sent_to: Optional[str] = None
    sent_to_email: Optional[str] = None
    spec_section: Optional[str] = None
    drawing_reference: Optional[str] = None
    received_from_email: Optional[str] = None
    internal_owner: Optional[PersonRef] = None
    sender: Optional[str] = Field(default=None, alias="from")

    @model_validator(mode="after")
    def _default_rfi_number(self) -> RFI:
        if not self.rfi_number and self.number is not None:
            self.rfi_number = f"RFI-{self.number:03d}"
        return self

    def days_open(self, on: Optional[dt.date] = None) -> Optional[int]:
        end = self.date_answered if self.is_closed else None
        return days_between(self.date_sent or self.created_at, end, on=on)


class Submittal(TrackedRecord):
    """A document or product-data package sent for review."""

    kind: ClassVar[RecordKind] = RecordKind.SUBMITTAL
    closed_statuses: ClassVar[frozenset[str]] = SUBMITTAL_CLOSED_STATUSES

    number: Optional[int] = None
    submittal_number: str = ""
    title: str = ""
    description: Optional[str] = None
    submittal_type: Optional[str] = None
    priority: Optional[str] = None
    revision_number: int = 0
    date_submitted: Optional[dt.date] = None
    date_approved: Optional[dt.date] = None
    sent_to: Optional[str] = None
    sent_to_email: Optional[str] = None
    spec_section: Optional[str] = None
    manufacturer: Optional[str] = None
    model_number: Optional[str] = None
    reviewer_comments: Optional[str] = None
    internal_owner: Optional[PersonRef] = None
    sender: Optional[str] = Field(default=None, alias="from")

    @field_validator("revision_number", mode="before")
    @classmethod
    def _revision(cls, v: Any) -> int:
        return int(v or 0)

    def days_in_review(self, on: Optional[dt.date] = None) -> Optional[int]:
        end = self.date_approved if self.is_closed else None
        return days_between(self.date_submitted, end, on=on)


class Milestone(TrackedRecord):
    """A named project checkpoint."""

    kind: ClassVar[RecordKind] = RecordKind.MILESTONE
    closed_statuses: ClassVar[frozenset[str]] = MILESTONE_CLOSED_STATUSES

    name: str = ""
    description: Optional[str] = None


class FileAttachment(BackendRecord):
    """File metadata attached to a task, RFI or submittal."""

    file_name: str = ""
    file_url: Optional[str] = None
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None

    @field_validator("entity_id", mode="before")
    @classmethod
    def _entity_id_to_str(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)
