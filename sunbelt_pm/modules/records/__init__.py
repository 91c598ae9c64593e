"""Project records: projects, tasks, RFIs, submittals and milestones."""

from sunbelt_pm.modules.records.models import (
    RFI,
    RFI_CLOSED_STATUSES,
    SUBMITTAL_CLOSED_STATUSES,
    TASK_CLOSED_STATUSES,
    FileAttachment,
    Milestone,
    Project,
    RecordKind,
    Submittal,
    Task,
)
from sunbelt_pm.modules.records.service import RecordService

__all__ = [
    "FileAttachment",
    "Milestone",
    "Project",
    "RFI",
    "RFI_CLOSED_STATUSES",
    "RecordKind",
    "RecordService",
    "SUBMITTAL_CLOSED_STATUSES",
    "Submittal",
    "TASK_CLOSED_STATUSES",
    "Task",
]
