"""iCalendar (RFC 5545) export for tasks, RFIs, submittals, milestones and project dates.

Files open in Outlook, Google Calendar and Apple Calendar. Every exported
item is an all-day event: ``DTSTART;VALUE=DATE`` on the due day and an
exclusive ``DTEND`` on the following day.
"""

from __future__ import annotations

import datetime as dt
import re
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from sunbelt_pm.config import get_settings
from sunbelt_pm.dates import DateLike, parse_day
from sunbelt_pm.errors import NothingToExportError
from sunbelt_pm.logging_config import get_logger
from sunbelt_pm.modules.calendar.models import CalendarItem, CalendarItemType
from sunbelt_pm.modules.records.models import RFI, Milestone, Project, Submittal, Task

logger = get_logger(__name__)

CRLF = "\r\n"
MAX_LINE_LENGTH = 75

NO_TASK_DATE = "This task has no due date set."
NO_RFI_DATE = "This RFI has no due date set."
NO_SUBMITTAL_DATE = "This submittal has no due date set."
NO_MILESTONE_DATE = "This milestone has no due date set."
NO_PROJECT_DATES = "This project has no key dates set."
NO_ITEMS = "No items with due dates to export."


# ── Value formatting ─────────────────────────────────────────────────

def format_ics_date(value: DateLike, all_day: bool = True) -> str:
    """``YYYYMMDD`` for all-day values, ``YYYYMMDDTHHMMSSZ`` (UTC) otherwise.

    All-day values are read by their calendar-day prefix so the day never
    shifts with the local timezone.
    """
    if all_day:
        day = parse_day(value)
        if day is None:
            raise ValueError("An all-day event needs a date")
        return day.strftime("%Y%m%d")

    if isinstance(value, str):
        moment = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    elif isinstance(value, dt.datetime):
        moment = value
    elif isinstance(value, dt.date):
        moment = dt.datetime.combine(value, dt.time())
    else:
        raise ValueError("A timed event needs a date and time")
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return moment.astimezone(dt.timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def exclusive_end_date(value: DateLike) -> str:
    """The day after *value*, as ``YYYYMMDD``."""
    day = parse_day(value)
    if day is None:
        raise ValueError("An all-day event needs a date")
    return (day + dt.timedelta(days=1)).strftime("%Y%m%d")


def escape_text(text: Optional[str]) -> str:
    """Escape backslash, semicolon, comma and newline for a TEXT value.

    CRLF and bare CR line breaks are written as ``\\n`` like LF, so
    :func:`unescape_text` gives them back as LF.
    """
    if not text:
        return ""
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\r\n", "\n")
        .replace("\r", "\n")
        .replace("\n", "\\n")
    )


_UNESCAPE_RE = re.compile(r"\\([\\;,nN])")


def unescape_text(text: str) -> str:
    """Inverse of :func:`escape_text`."""
    return _UNESCAPE_RE.sub(lambda m: "\n" if m.group(1) in "nN" else m.group(1), text)


def fold_line(line: str) -> str:
    """Fold a content line: 75 characters, then 74 after a leading space."""
    if len(line) <= MAX_LINE_LENGTH:
        return line
    chunks = [line[:MAX_LINE_LENGTH]]
    rest = line[MAX_LINE_LENGTH:]
    step = MAX_LINE_LENGTH - 1
    while rest:
        chunks.append(" " + rest[:step])
        rest = rest[step:]
    return CRLF.join(chunks)


def unfold_lines(content: str) -> list[str]:
    """Split calendar text into logical lines, joining folded continuations."""
    lines: list[str] = []
    for physical in content.split(CRLF):
        if physical.startswith(" ") and lines:
            lines[-1] += physical[1:]
        else:
            lines.append(physical)
    return lines


def sanitize_filename(text: str) -> str:
    """Replace every character that is not an ASCII letter or digit with ``_``."""
    return re.sub(r"[^a-zA-Z0-9]", "_", text or "")


def generate_uid(domain: str = "sunbeltpm.com") -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}@{domain}"


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


# ── Events and calendars ─────────────────────────────────────────────

@dataclass
class ICSEvent:
    """One VEVENT."""

    title: str
    start: DateLike
    end: DateLike = None
    description: str = ""
    location: str = ""
    category: str = ""
    url: str = ""
    all_day: bool = True
    status: str = "CONFIRMED"
    uid: Optional[str] = None

    def to_lines(self, stamp: dt.datetime, uid: str) -> list[str]:
        """Unfolded content lines of the event."""
        lines = [
            "BEGIN:VEVENT",
            f"UID:{self.uid or uid}",
            f"DTSTAMP:{format_ics_date(stamp, all_day=False)}",
            "SEQUENCE:0",
        ]
        if self.all_day:
            lines.append(f"DTSTART;VALUE=DATE:{format_ics_date(self.start)}")
            lines.append(f"DTEND;VALUE=DATE:{exclusive_end_date(self.end or self.start)}")
            lines.append("TRANSP:TRANSPARENT")
        else:
            lines.append(f"DTSTART:{format_ics_date(self.start, all_day=False)}")
            lines.append(f"DTEND:{format_ics_date(self.end or self.start, all_day=False)}")
            lines.append("TRANSP:OPAQUE")

        lines.append(f"STATUS:{self.status}")
        lines.append(f"SUMMARY:{escape_text(self.title)}")
        if self.description:
            lines.append(f"DESCRIPTION:{escape_text(self.description)}")
        if self.location:
            lines.append(f"LOCATION:{escape_text(self.location)}")
        if self.category:
            lines.append(f"CATEGORIES:{escape_text(self.category)}")
        if self.url:
            lines.append(f"URL:{escape_text(self.url)}")
        lines.append("END:VEVENT")
        return lines


def build_calendar(
    events: Sequence[ICSEvent],
    name: str,
    prodid: str = "-//Sunbelt Modular//PM System//EN",
    uid_domain: str = "sunbeltpm.com",
    now: Optional[Callable[[], dt.datetime]] = None,
) -> str:
    """Serialize *events* as a complete VCALENDAR with folded CRLF lines."""
    stamp = (now or _utc_now)()
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        f"PRODID:{prodid}",
        f"X-WR-CALNAME:{escape_text(name)}",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
    ]
    for event in events:
        lines.extend(event.to_lines(stamp, generate_uid(uid_domain)))
    lines.append("END:VCALENDAR")
    return CRLF.join(fold_line(line) for line in lines)


def _description(*parts: Optional[str]) -> str:
    return "\n".join(part for part in parts if part)


@dataclass
class IcsExport:
    """A serialized calendar ready to be written."""

    filename: str
    content: str
    event_count: int = 0
    calendar_name: str = ""

    def save(self, directory: Optional[Path] = None) -> Path:
        """Write to *directory* (default: the configured export directory)."""
        target_dir = Path(directory) if directory else get_settings().export_path
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / self.filename
        with open(path, "w", encoding="utf-8", newline="") as fh:
            fh.write(self.content)
        logger.info("ics_saved", path=str(path), events=self.event_count)
        return path


@dataclass
class IcsExporter:
    """Builds calendar files for single items and whole projects."""

    prodid: str = field(default_factory=lambda: get_settings().ics_prodid)
    uid_domain: str = field(default_factory=lambda: get_settings().ics_uid_domain)
    now: Optional[Callable[[], dt.datetime]] = None

    def _export(self, events: list[ICSEvent], name: str, filename: str) -> IcsExport:
        content = build_calendar(events, name, self.prodid, self.uid_domain, self.now)
        logger.info("ics_built", filename=filename, events=len(events))
        return IcsExport(filename=filename, content=content, event_count=len(events), calendar_name=name)

    # ── Single items ─────────────────────────────────────────────────

    def export_task(self, task: Task, project_name: str = "", project_number: str = "") -> IcsExport:
        if not task.due_date:
            raise NothingToExportError(NO_TASK_DATE)
        if task.is_external:
            assigned = f"Assigned to: {task.external_assignee_name or 'External'} (External)"
        else:
            assigned = f"Assigned to: {task.assignee.name if task.assignee and task.assignee.name else 'Unassigned'}"
        event = ICSEvent(
            title=f"[Task] {task.title}",
            description=_description(
                task.description,
                f"Status: {task.status}",
                f"Priority: {task.priority or 'Normal'}",
                assigned,
                f"Project: {project_number}" if project_number else None,
            ),
            start=task.due_date,
            category="Task",
            location=project_name,
        )
        name = f"{project_number or 'Task'} - {task.title}"
        return self._export([event], name, f"Task_{sanitize_filename(task.title)}.ics")

    def export_rfi(self, rfi: RFI, project_name: str = "", project_number: str = "") -> IcsExport:
        if not rfi.due_date:
            raise NothingToExportError(NO_RFI_DATE)
        event = ICSEvent(
            title=f"[RFI] {rfi.rfi_number}: {rfi.subject}",
            description=_description(
                f"Subject: {rfi.subject}",
                f"Question: {rfi.question or 'N/A'}",
                f"Status: {rfi.status}",
                f"Sent To: {rfi.sent_to or 'Internal'}",
                f"Answer: {rfi.answer}" if rfi.answer else None,
                f"Project: {project_number}" if project_number else None,
            ),
            start=rfi.due_date,
            category="RFI",
            location=project_name,
        )
        name = f"{rfi.rfi_number} - {rfi.subject}"
        return self._export([event], name, f"RFI_{sanitize_filename(rfi.rfi_number)}.ics")

    def export_submittal(self, submittal: Submittal, project_name: str = "", project_number: str = "") -> IcsExport:
        if not submittal.due_date:
            raise NothingToExportError(NO_SUBMITTAL_DATE)
        event = ICSEvent(
            title=f"[Submittal] {submittal.submittal_number}: {submittal.title}",
            description=_description(
                f"Title: {submittal.title}",
                f"Type: {submittal.submittal_type or 'N/A'}",
                f"Status: {submittal.status}",
                f"Sent To: {submittal.sent_to or 'Internal'}",
                f"Revision: {submittal.revision_number}" if submittal.revision_number > 0 else None,
                f"Spec Section: {submittal.spec_section}" if submittal.spec_section else None,
                f"Manufacturer: {submittal.manufacturer}" if submittal.manufacturer else None,
                f"Project: {project_number}" if project_number else None,
            ),
            start=submittal.due_date,
            category="Submittal",
            location=project_name,
        )
        name = f"{submittal.submittal_number} - {submittal.title}"
        return self._export([event], name, f"Submittal_{sanitize_filename(submittal.submittal_number)}.ics")

    def export_milestone(self, milestone: Milestone, project_name: str = "", project_number: str = "") -> IcsExport:
        if not milestone.due_date:
            raise NothingToExportError(NO_MILESTONE_DATE)
        event = ICSEvent(
            title=f"[Milestone] {milestone.name}",
            description=_description(
                f"Milestone: {milestone.name}",
                f"Status: {milestone.status}",
                milestone.description,
                f"Project: {project_number}" if project_number else None,
            ),
            start=milestone.due_date,
            category="Milestone",
            location=project_name,
        )
        name = f"{project_number or 'Milestone'} - {milestone.name}"
        return self._export([event], name, f"Milestone_{sanitize_filename(milestone.name)}.ics")

    # ── Projects ─────────────────────────────────────────────────────

    def export_project_dates(self, project: Project) -> IcsExport:
        """Online, offline and delivery dates of one project."""
        pn = project.project_number
        site = project.site_address or ""
        events: list[ICSEvent] = []
        if project.target_online_date:
            events.append(ICSEvent(
                title=f"[{pn}] Online Date",
                description=f"Project: {project.name}\nProject goes online",
                start=project.target_online_date,
                category="Project Date",
                location=site,
            ))
        if project.target_offline_date:
            events.append(ICSEvent(
                title=f"[{pn}] Offline Date",
                description=f"Project: {project.name}\nProduction ends",
                start=project.target_offline_date,
                category="Project Date",
            ))
        if project.delivery_date:
            events.append(ICSEvent(
                title=f"[{pn}] Delivery Date",
                description=f"Project: {project.name}\nModules delivered to site",
                start=project.delivery_date,
                category="Project Date",
                location=site,
            ))
        if not events:
            raise NothingToExportError(NO_PROJECT_DATES)
        return self._export(events, f"{pn} - Key Dates", f"{sanitize_filename(pn)}_Key_Dates.ics")

    def export_project_items(
        self,
        project: Project,
        tasks: Iterable[Task] = (),
        rfis: Iterable[RFI] = (),
        submittals: Iterable[Submittal] = (),
        milestones: Iterable[Milestone] = (),
    ) -> IcsExport:
        """Every dated item of one project in a single calendar."""
        pn = project.project_number
        events: list[ICSEvent] = []
        if project.target_online_date:
            events.append(ICSEvent(
                title=f"[{pn}] Online Date", description="Project goes online",
                start=project.target_online_date, category="Project Date",
            ))
        if project.delivery_date:
            events.append(ICSEvent(
                title=f"[{pn}] Delivery Date", description="Modules delivered to site",
                start=project.delivery_date, category="Project Date",
            ))
        for milestone in milestones:
            if milestone.due_date:
                events.append(ICSEvent(
                    title=f"[{pn}] Milestone: {milestone.name}",
                    description=f"Status: {milestone.status}",
                    start=milestone.due_date, category="Milestone",
                ))
        for task in tasks:
            if task.due_date:
                events.append(ICSEvent(
                    title=f"[{pn}] Task: {task.title}",
                    description=f"Status: {task.status}\nPriority: {task.priority or 'Normal'}",
                    start=task.due_date, category="Task",
                ))
        for rfi in rfis:
            if rfi.due_date:
                events.append(ICSEvent(
                    title=f"[{pn}] {rfi.rfi_number}: {rfi.subject}",
                    description=f"Status: {rfi.status}\nSent To: {rfi.sent_to or 'Internal'}",
                    start=rfi.due_date, category="RFI",
                ))
        for submittal in submittals:
            if submittal.due_date:
                events.append(ICSEvent(
                    title=f"[{pn}] {submittal.submittal_number}: {submittal.title}",
                    description=f"Type: {submittal.submittal_type or 'N/A'}\nStatus: {submittal.status}",
                    start=submittal.due_date, category="Submittal",
                ))
        if not events:
            raise NothingToExportError(NO_ITEMS)
        return self._export(events, f"{pn} - {project.name}", f"{sanitize_filename(pn)}_All_Items.ics")

    def export_calendar_items(
        self,
        items: Sequence[CalendarItem],
        name: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> IcsExport:
        """Aggregated calendar items (see ``build_calendar_items``) as one calendar."""
        if not items:
            raise NothingToExportError(NO_ITEMS)
        key_dates = {
            CalendarItemType.ONLINE_DATE,
            CalendarItemType.OFFLINE_DATE,
            CalendarItemType.DELIVERY_DATE,
        }
        events: list[ICSEvent] = []
        for item in items:
            prefix = f"[{item.project_number}] " if item.project_number else ""
            summary = item.title if item.type in key_dates else f"{item.label}: {item.title}"
            events.append(ICSEvent(
                title=f"{prefix}{summary}",
                description=_description(
                    f"Project: {item.project_name}",
                    f"Status: {item.status}" if item.status else None,
                ),
                start=item.date,
                category="Project Date" if item.type in key_dates else item.label,
            ))
        first = min(item.date for item in items)
        last = max(item.date for item in items)
        name = name or get_settings().ics_calendar_name
        filename = filename or f"Sunbelt_Calendar_{first.isoformat()}_{last.isoformat()}.ics"
        return self._export(events, name, filename)
