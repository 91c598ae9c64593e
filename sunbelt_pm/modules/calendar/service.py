"""Calendar aggregation - turns project records into dated calendar items."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from sunbelt_pm.logging_config import get_logger
from sunbelt_pm.modules.calendar.grid import date_key
from sunbelt_pm.modules.calendar.models import (
    NEUTRAL,
    PROJECT_COLORS,
    STATUS_COLORS,
    TYPE_PRIORITY,
    CalendarItem,
    CalendarItemType,
)
from sunbelt_pm.modules.records.models import RFI, Milestone, Project, Submittal, Task, TrackedRecord
from sunbelt_pm.modules.records.service import RecordService

logger = get_logger(__name__)

UNKNOWN_PROJECT = "Unknown Project"


def project_color(project: Project, index: int = 0) -> str:
    """The project's stored color, else a palette color by position."""
    if project.color:
        return project.color
    return PROJECT_COLORS[index % len(PROJECT_COLORS)]


def status_color(status: Optional[str]) -> str:
    """Display color for a task, RFI or submittal status."""
    return STATUS_COLORS.get(status or "", NEUTRAL)


def _record_item(
    prefix: str,
    item_type: CalendarItemType,
    title: str,
    record: TrackedRecord,
    colors: dict[str, str],
) -> CalendarItem:
    return CalendarItem(
        id=f"{prefix}-{record.id}",
        type=item_type,
        title=title,
        date=record.due_date,
        project_id=record.project_id,
        project_name=record.project_name or UNKNOWN_PROJECT,
        project_number=record.project_number or None,
        color=colors.get(record.project_id or "", PROJECT_COLORS[0]),
        status=record.status or None,
        data=record,
    )


def build_calendar_items(
    projects: Sequence[Project] = (),
    tasks: Iterable[Task] = (),
    rfis: Iterable[RFI] = (),
    submittals: Iterable[Submittal] = (),
    milestones: Iterable[Milestone] = (),
) -> list[CalendarItem]:
    """Collect every dated entity into a flat list of calendar items.

    Items without a due date are left out. Each project contributes up to
    three key-date items (online, offline, delivery).
    """
    colors = {p.id: project_color(p, i) for i, p in enumerate(projects) if p.id}
    items: list[CalendarItem] = []

    for task in tasks:
        if task.due_date:
            items.append(_record_item("task", CalendarItemType.TASK, task.title, task, colors))

    for rfi in rfis:
        if rfi.due_date:
            title = f"{rfi.rfi_number}: {rfi.subject}"
            items.append(_record_item("rfi", CalendarItemType.RFI, title, rfi, colors))

    for sub in submittals:
        if sub.due_date:
            title = f"{sub.submittal_number}: {sub.title}"
            items.append(_record_item("sub", CalendarItemType.SUBMITTAL, title, sub, colors))

    for milestone in milestones:
        if milestone.due_date:
            items.append(_record_item("milestone", CalendarItemType.MILESTONE, milestone.name, milestone, colors))

    key_dates = (
        ("online", CalendarItemType.ONLINE_DATE, "target_online_date", "Online"),
        ("offline", CalendarItemType.OFFLINE_DATE, "target_offline_date", "Offline"),
        ("delivery", CalendarItemType.DELIVERY_DATE, "delivery_date", "Delivery"),
    )
    for index, project in enumerate(projects):
        color = project_color(project, index)
        for prefix, item_type, attr, suffix in key_dates:
            day: Optional[dt.date] = getattr(project, attr)
            if not day:
                continue
            items.append(CalendarItem(
                id=f"{prefix}-{project.id}",
                type=item_type,
                title=f"{project.name} - {suffix}",
                date=day,
                project_id=project.id,
                project_name=project.name,
                project_number=project.project_number or None,
                color=color,
                status=project.status,
                data=project,
            ))

    return items


def group_items_by_date(items: Iterable[CalendarItem]) -> dict[str, list[CalendarItem]]:
    """Bucket items by ``YYYY-MM-DD``, each day ordered by item type."""
    grouped: dict[str, list[CalendarItem]] = {}
    for item in items:
        grouped.setdefault(date_key(item.date), []).append(item)
    for day_items in grouped.values():
        day_items.sort(key=lambda item: TYPE_PRIORITY[item.type])
    return grouped


def items_between(items: Iterable[CalendarItem], start: dt.date, end: dt.date) -> list[CalendarItem]:
    """Items dated within ``[start, end]``, sorted by day then type."""
    selected = [item for item in items if start <= item.date <= end]
    return sorted(selected, key=lambda item: (item.date, TYPE_PRIORITY[item.type]))


@dataclass
class CalendarData:
    """Records loaded for one calendar view."""

    projects: list[Project] = field(default_factory=list)
    tasks: list[Task] = field(default_factory=list)
    rfis: list[RFI] = field(default_factory=list)
    submittals: list[Submittal] = field(default_factory=list)
    milestones: list[Milestone] = field(default_factory=list)

    def items(self) -> list[CalendarItem]:
        return build_calendar_items(self.projects, self.tasks, self.rfis, self.submittals, self.milestones)


class CalendarService:
    """Loads records and aggregates them into calendar items."""

    def __init__(self, records: Optional[RecordService] = None) -> None:
        self._records = records or RecordService()

    async def load(self, project_ids: Optional[Iterable[str]] = None) -> CalendarData:
        """Fetch all projects and items, optionally keeping only *project_ids*."""
        data = CalendarData(
            projects=await self._records.list_projects(),
            tasks=await self._records.list_tasks(),
            rfis=await self._records.list_rfis(),
            submittals=await self._records.list_submittals(),
            milestones=await self._records.list_milestones(),
        )
        if project_ids is not None:
            wanted = set(project_ids)
            data.projects = [p for p in data.projects if p.id in wanted]
            data.tasks = [t for t in data.tasks if t.project_id in wanted]
            data.rfis = [r for r in data.rfis if r.project_id in wanted]
            data.submittals = [s for s in data.submittals if s.project_id in wanted]
            data.milestones = [m for m in data.milestones if m.project_id in wanted]

        logger.info(
            "calendar_data_loaded",
            projects=len(data.projects),
            tasks=len(data.tasks),
            rfis=len(data.rfis),
            submittals=len(data.submittals),
            milestones=len(data.milestones),
        )
        return data

    async def items(self, project_ids: Optional[Iterable[str]] = None) -> list[CalendarItem]:
        return (await self.load(project_ids)).items()
