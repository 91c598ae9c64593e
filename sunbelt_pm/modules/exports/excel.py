"""Formatted Excel logs for RFIs, submittals and tasks.

Every sheet shares the same look: a dark-blue title row, a project info
block, a blue header row, status-tinted data rows (overdue rows in red)
and a summary block under the data.
"""

from __future__ import annotations

import datetime as dt
import io
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from sunbelt_pm.config import get_settings
from sunbelt_pm.dates import format_short, today
from sunbelt_pm.logging_config import get_logger
from sunbelt_pm.modules.records.models import RFI, Project, Submittal, Task, TrackedRecord

logger = get_logger(__name__)

COLORS = {
    "header_bg": "2563EB",
    "header_text": "FFFFFF",
    "approved": "DCFCE7",
    "pending": "FEF3C7",
    "rejected": "FEE2E2",
    "in_progress": "DBEAFE",
    "overdue": "FEE2E2",
    "section_header": "F3F4F6",
    "alt_row": "F9FAFB",
    "border": "E5E7EB",
    "title_bg": "1E40AF",
}

TITLE_FONT = Font(bold=True, size=16, color=COLORS["header_text"])
HEADER_FONT = Font(bold=True, size=11, color=COLORS["header_text"])
SECTION_FONT = Font(bold=True, size=11)
NORMAL_FONT = Font(size=10)
BOLD_FONT = Font(bold=True, size=10)

_THIN = Side(style="thin", color=COLORS["border"])
THIN_BORDER = Border(left=_THIN, right=_THIN, top=_THIN, bottom=_THIN)

HEADER_ROW_HEIGHT = 28
DATA_ROW_HEIGHT = 22
TITLE_ROW_HEIGHT = 30

_STATUS_FILLS: dict[str, dict[str, str]] = {
    "rfi": {
        "answered": "approved",
        "closed": "approved",
        "open": "pending",
        "pending": "pending",
        "draft": "alt_row",
    },
    "submittal": {
        "approved": "approved",
        "approved as noted": "approved",
        "under review": "in_progress",
        "submitted": "in_progress",
        "pending": "pending",
        "revise and resubmit": "rejected",
        "rejected": "rejected",
    },
    "task": {
        "completed": "approved",
        "in progress": "in_progress",
        "not started": "pending",
        "pending": "pending",
        "on hold": "alt_row",
        "awaiting response": "alt_row",
        "cancelled": "rejected",
    },
}


def status_fill_color(status: Optional[str], record_type: str = "rfi") -> Optional[str]:
    """Row tint for a status, or None when the status has no color."""
    key = _STATUS_FILLS.get(record_type, {}).get((status or "").lower())
    return COLORS[key] if key else None


def solid_fill(color: str) -> PatternFill:
    return PatternFill(fill_type="solid", start_color=color, end_color=color)


def column_width(header: str, values: Iterable[Any]) -> int:
    """``min(max(longest + 2, 10), 50)`` over the header and cell texts."""
    longest = max([len(header), *(len(str(v)) for v in values if v not in (None, ""))])
    return min(max(longest + 2, 10), 50)


def sort_by_number(records: Iterable[RFI | Submittal]) -> list:
    return sorted(records, key=lambda r: r.number or 0)


def sort_by_due_date(records: Iterable[TrackedRecord]) -> list:
    """Due date ascending; undated records last in their original order."""
    return sorted(records, key=lambda r: (r.due_date is None, r.due_date or dt.date.min))


@dataclass
class ProjectInfo:
    """Header block of a project log."""

    name: str
    project_number: str
    client: Optional[str] = None
    factory: Optional[str] = None

    @classmethod
    def from_project(cls, project: Project) -> ProjectInfo:
        return cls(
            name=project.name,
            project_number=project.project_number,
            client=project.client_name,
            factory=project.factory,
        )


@dataclass
class Column:
    header: str
    value: Callable[[Any], Any]


@dataclass
class ExcelExport:
    """A rendered workbook."""

    filename: str
    content: bytes
    row_count: int = 0

    def save(self, directory: Optional[Path] = None) -> Path:
        target_dir = Path(directory) if directory else get_settings().export_path
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / self.filename
        path.write_bytes(self.content)
        logger.info("workbook_saved", path=str(path), rows=self.row_count)
        return path


class SheetWriter:
    """Appends styled blocks to a worksheet, tracking the next free row."""

    def __init__(self, ws: Worksheet) -> None:
        self.ws = ws
        self.row = 0

    def add_row(self, values: Sequence[Any] = ()) -> int:
        self.row += 1
        for col, value in enumerate(values, 1):
            self.ws.cell(row=self.row, column=col, value=value)
        return self.row

    def add_title(self, title: str) -> None:
        row = self.add_row([title])
        self.ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=6)
        cell = self.ws.cell(row=row, column=1)
        cell.font = TITLE_FONT
        cell.fill = solid_fill(COLORS["title_bg"])
        cell.alignment = Alignment(horizontal="center", vertical="center")
        self.ws.row_dimensions[row].height = TITLE_ROW_HEIGHT

    def add_label(self, label: str, value: Any) -> None:
        row = self.add_row([label, value])
        self.ws.cell(row=row, column=1).font = BOLD_FONT

    def add_project_header(self, info: ProjectInfo, title: str, generated: str) -> None:
        self.add_title(title)
        self.add_row()
        self.add_label("Project:", info.name)
        self.add_label("Project Number:", info.project_number)
        self.add_label("Client:", info.client or "N/A")
        self.add_label("Factory:", info.factory or "N/A")
        self.add_label("Generated:", generated)
        self.add_row()

    def add_header_row(self, headers: Sequence[str]) -> int:
        row = self.add_row(headers)
        for col in range(1, len(headers) + 1):
            cell = self.ws.cell(row=row, column=col)
            cell.fill = solid_fill(COLORS["header_bg"])
            cell.font = HEADER_FONT
            cell.border = THIN_BORDER
            cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        self.ws.row_dimensions[row].height = HEADER_ROW_HEIGHT
        return row

    def add_data_row(
        self,
        values: Sequence[Any],
        overdue: bool,
        status_color: Optional[str],
        alternate: bool,
    ) -> None:
        """Fill priority: overdue, then status color, then alternating gray."""
        row = self.add_row(values)
        if overdue:
            fill = solid_fill(COLORS["overdue"])
        elif status_color:
            fill = solid_fill(status_color)
        elif alternate:
            fill = solid_fill(COLORS["alt_row"])
        else:
            fill = None
        for col in range(1, len(values) + 1):
            cell = self.ws.cell(row=row, column=col)
            if fill is not None:
                cell.fill = fill
            cell.font = NORMAL_FONT
            cell.border = THIN_BORDER
            cell.alignment = Alignment(vertical="center", wrap_text=True)
        self.ws.row_dimensions[row].height = DATA_ROW_HEIGHT

    def add_section(self, title: str, rows: Iterable[tuple[str, Any]], merge: bool = False) -> None:
        """Blank spacer, gray section header, then bold label/value rows."""
        self.add_row()
        row = self.add_row([title])
        cell = self.ws.cell(row=row, column=1)
        cell.font = SECTION_FONT
        cell.fill = solid_fill(COLORS["section_header"])
        if merge:
            self.ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=2)
        for label, value in rows:
            self.add_label(label, value)

    def add_summary(self, rows: Iterable[tuple[str, Any]]) -> None:
        self.add_section("SUMMARY", rows, merge=True)

    def fit_columns(self, headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
        for i, header in enumerate(headers):
            width = column_width(header, (row[i] for row in rows))
            self.ws.column_dimensions[get_column_letter(i + 1)].width = width


def _overdue_text(record: TrackedRecord, on: dt.date) -> str:
    return "YES" if record.is_overdue(on) else ""


def _count(records: Iterable[TrackedRecord], *statuses: str) -> int:
    return sum(1 for r in records if r.status in statuses)


def _owner(record: RFI | Submittal) -> str:
    return record.internal_owner.name if record.internal_owner else ""


class WorkbookExporter:
    """Builds the project logs and cross-project reports."""

    def __init__(
        self,
        on: Optional[dt.date] = None,
        generated_at: Optional[dt.datetime] = None,
        creator: Optional[str] = None,
    ) -> None:
        self.on = on or today()
        self.generated_at = generated_at or dt.datetime.now()
        self.creator = creator or get_settings().workbook_creator

    @property
    def generated_text(self) -> str:
        return self.generated_at.strftime("%m/%d/%Y, %I:%M:%S %p")

    @property
    def date_stamp(self) -> str:
        return self.on.isoformat()

    def _workbook(self) -> Workbook:
        wb = Workbook()
        wb.remove(wb.active)
        wb.properties.creator = self.creator
        wb.properties.created = self.generated_at
        return wb

    def _finish(self, wb: Workbook, filename: str, rows: int) -> ExcelExport:
        buffer = io.BytesIO()
        wb.save(buffer)
        logger.info("workbook_built", filename=filename, sheets=wb.sheetnames, rows=rows)
        return ExcelExport(filename=filename, content=buffer.getvalue(), row_count=rows)

    def _write_rows(
        self,
        writer: SheetWriter,
        columns: Sequence[Column],
        records: Sequence[TrackedRecord],
        record_type: str,
    ) -> None:
        headers = [c.header for c in columns]
        header_row = writer.add_header_row(headers)
        writer.ws.freeze_panes = f"A{header_row + 1}"
        rows = []
        for index, record in enumerate(records):
            values = [c.value(record) for c in columns]
            rows.append(values)
            writer.add_data_row(
                values,
                overdue=record.is_overdue(self.on),
                status_color=status_fill_color(record.status, record_type),
                alternate=index % 2 == 1,
            )
        writer.fit_columns(headers, rows)

    # ── Column sets ──────────────────────────────────────────────────

    def rfi_columns(self, with_owner: bool = True) -> list[Column]:
        on = self.on
        columns = [
            Column("RFI #", lambda r: r.rfi_number),
            Column("Subject", lambda r: r.subject),
            Column("Question", lambda r: r.question or ""),
            Column("Status", lambda r: r.status),
            Column("Priority", lambda r: r.priority or ""),
            Column("Date Sent", lambda r: format_short(r.date_sent)),
            Column("Due Date", lambda r: format_short(r.due_date)),
            Column("Days Open", lambda r: _blank_none(r.days_open(on))),
            Column("Sent To", lambda r: r.sent_to or ""),
            Column("Email", lambda r: r.sent_to_email or ""),
            Column("Spec Section", lambda r: r.spec_section or ""),
            Column("Drawing Ref", lambda r: r.drawing_reference or ""),
            Column("Answer", lambda r: r.answer or ""),
            Column("Date Answered", lambda r: format_short(r.date_answered)),
        ]
        if with_owner:
            columns.append(Column("Internal Owner", _owner))
        columns.append(Column("Overdue", lambda r: _overdue_text(r, on)))
        return columns

    def submittal_columns(self) -> list[Column]:
        on = self.on
        return [
            Column("Sub #", lambda s: s.submittal_number),
            Column("Title", lambda s: s.title),
            Column("Description", lambda s: s.description or ""),
            Column("Type", lambda s: s.submittal_type or ""),
            Column("Status", lambda s: s.status),
            Column("Priority", lambda s: s.priority or ""),
            Column("Rev #", lambda s: s.revision_number),
            Column("Date Submitted", lambda s: format_short(s.date_submitted)),
            Column("Due Date", lambda s: format_short(s.due_date)),
            Column("Days in Review", lambda s: _blank_none(s.days_in_review(on))),
            Column("Sent To", lambda s: s.sent_to or ""),
            Column("Email", lambda s: s.sent_to_email or ""),
            Column("Spec Section", lambda s: s.spec_section or ""),
            Column("Manufacturer", lambda s: s.manufacturer or ""),
            Column("Model #", lambda s: s.model_number or ""),
            Column("Reviewer Comments", lambda s: s.reviewer_comments or ""),
            Column("Date Approved", lambda s: format_short(s.date_approved)),
            Column("Internal Owner", _owner),
            Column("Overdue", lambda s: _overdue_text(s, on)),
        ]

    def combined_submittal_columns(self) -> list[Column]:
        on = self.on
        return [
            Column("Sub #", lambda s: s.submittal_number),
            Column("Title", lambda s: s.title),
            Column("Type", lambda s: s.submittal_type or ""),
            Column("Status", lambda s: s.status),
            Column("Priority", lambda s: s.priority or ""),
            Column("Rev #", lambda s: s.revision_number),
            Column("Date Submitted", lambda s: format_short(s.date_submitted)),
            Column("Due Date", lambda s: format_short(s.due_date)),
            Column("Days in Review", lambda s: _blank_none(s.days_in_review(on))),
            Column("Sent To", lambda s: s.sent_to or ""),
            Column("Spec Section", lambda s: s.spec_section or ""),
            Column("Manufacturer", lambda s: s.manufacturer or ""),
            Column("Model #", lambda s: s.model_number or ""),
            Column("Reviewer Comments", lambda s: s.reviewer_comments or ""),
            Column("Overdue", lambda s: _overdue_text(s, on)),
        ]

    def task_columns(self) -> list[Column]:
        on = self.on
        return [
            Column("Task", lambda t: t.title),
            Column("Description", lambda t: t.description or ""),
            Column("Status", lambda t: t.status),
            Column("Priority", lambda t: t.priority or ""),
            Column("Assigned To", lambda t: t.assignee_label),
            Column("Start Date", lambda t: format_short(t.start_date)),
            Column("Due Date", lambda t: format_short(t.due_date)),
            Column("Days Open", lambda t: _blank_none(t.days_open(on))),
            Column("Milestone", lambda t: t.milestone.name if t.milestone else ""),
            Column("Workflow Station", lambda t: t.workflow_station_key or ""),
            Column("Court", lambda t: t.assigned_court or ""),
            Column("Completed Date", lambda t: format_short(t.completed_date)),
            Column("Overdue", lambda t: _overdue_text(t, on)),
        ]

    # ── Project logs ─────────────────────────────────────────────────

    def _rfi_sheet(self, wb: Workbook, rfis: Sequence[RFI], info: ProjectInfo, full: bool) -> None:
        writer = SheetWriter(wb.create_sheet("RFI Log"))
        writer.add_project_header(info, "RFI LOG", self.generated_text)
        self._write_rows(writer, self.rfi_columns(with_owner=full), sort_by_number(rfis), "rfi")
        summary = [
            ("Total RFIs:", len(rfis)),
            ("Open/Pending:", _count(rfis, "Open", "Pending", "Draft")),
            ("Answered:", _count(rfis, "Answered")),
            ("Closed:", _count(rfis, "Closed")),
        ]
        if full:
            summary.append(("Overdue:", sum(1 for r in rfis if r.is_overdue(self.on))))
        writer.add_summary(summary)

    def rfi_log(self, rfis: Sequence[RFI], info: ProjectInfo) -> ExcelExport:
        """RFI log of one project, sorted by RFI number."""
        wb = self._workbook()
        self._rfi_sheet(wb, rfis, info, full=True)
        return self._finish(wb, f"{info.project_number}_RFI_Log_{self.date_stamp}.xlsx", len(rfis))

    def submittal_log(self, submittals: Sequence[Submittal], info: ProjectInfo) -> ExcelExport:
        """Submittal log of one project with status and type breakdowns."""
        wb = self._workbook()
        writer = SheetWriter(wb.create_sheet("Submittal Log"))
        writer.add_project_header(info, "SUBMITTAL LOG", self.generated_text)
        self._write_rows(writer, self.submittal_columns(), sort_by_number(submittals), "submittal")
        writer.add_summary([
            ("Total Submittals:", len(submittals)),
            ("Pending:", _count(submittals, "Pending")),
            ("Submitted:", _count(submittals, "Submitted")),
            ("Under Review:", _count(submittals, "Under Review")),
            ("Approved:", _count(submittals, "Approved")),
            ("Approved as Noted:", _count(submittals, "Approved as Noted")),
            ("Revise & Resubmit:", _count(submittals, "Revise and Resubmit")),
            ("Rejected:", _count(submittals, "Rejected")),
            ("Overdue:", sum(1 for s in submittals if s.is_overdue(self.on))),
        ])
        by_type: dict[str, int] = {}
        for sub in submittals:
            kind = sub.submittal_type or "Other"
            by_type[kind] = by_type.get(kind, 0) + 1
        writer.add_section("BY TYPE", [(f"{kind}:", count) for kind, count in by_type.items()])
        filename = f"{info.project_number}_Submittal_Log_{self.date_stamp}.xlsx"
        return self._finish(wb, filename, len(submittals))

    def task_log(self, tasks: Sequence[Task], info: ProjectInfo) -> ExcelExport:
        """Task log of one project, sorted by due date with undated tasks last."""
        wb = self._workbook()
        writer = SheetWriter(wb.create_sheet("Task Log"))
        writer.add_project_header(info, "TASK LOG", self.generated_text)
        self._write_rows(writer, self.task_columns(), sort_by_due_date(tasks), "task")
        writer.add_summary([
            ("Total Tasks:", len(tasks)),
            ("Not Started:", _count(tasks, "Not Started")),
            ("In Progress:", _count(tasks, "In Progress")),
            ("Awaiting Response:", _count(tasks, "Awaiting Response", "On Hold")),
            ("Completed:", _count(tasks, "Completed")),
            ("Cancelled:", _count(tasks, "Cancelled")),
            ("Overdue:", sum(1 for t in tasks if t.is_overdue(self.on))),
        ])
        by_priority: dict[str, int] = {}
        for task in tasks:
            priority = task.priority or "Medium"
            by_priority[priority] = by_priority.get(priority, 0) + 1
        writer.add_section("BY PRIORITY", [(f"{p}:", count) for p, count in by_priority.items()])
        return self._finish(wb, f"{info.project_number}_Task_Log_{self.date_stamp}.xlsx", len(tasks))

    def project_logs(self, rfis: Sequence[RFI], submittals: Sequence[Submittal], info: ProjectInfo) -> ExcelExport:
        """RFI and submittal logs of one project in a single workbook."""
        wb = self._workbook()
        self._rfi_sheet(wb, rfis, info, full=False)

        writer = SheetWriter(wb.create_sheet("Submittal Log"))
        writer.add_project_header(info, "SUBMITTAL LOG", self.generated_text)
        self._write_rows(writer, self.combined_submittal_columns(), sort_by_number(submittals), "submittal")
        writer.add_summary([
            ("Total Submittals:", len(submittals)),
            ("Approved:", _count(submittals, "Approved", "Approved as Noted")),
            ("Under Review:", _count(submittals, "Under Review")),
            ("Pending:", _count(submittals, "Pending", "Submitted")),
            ("Action Required:", _count(submittals, "Revise and Resubmit")),
        ])
        filename = f"{info.project_number}_Project_Logs_{self.date_stamp}.xlsx"
        return self._finish(wb, filename, len(rfis) + len(submittals))

    # ── Cross-project reports ────────────────────────────────────────

    def _report(
        self,
        sheet: str,
        title: str,
        total_label: str,
        records: Sequence[TrackedRecord],
        columns: Sequence[Column],
        record_type: str,
        filename: str,
    ) -> ExcelExport:
        wb = self._workbook()
        writer = SheetWriter(wb.create_sheet(sheet))
        writer.add_title(title)
        writer.add_row()
        writer.add_label("Generated:", self.generated_text)
        writer.add_label(total_label, len(records))
        writer.add_row()
        self._write_rows(writer, columns, sort_by_due_date(records), record_type)
        return self._finish(wb, filename, len(records))

    def all_rfis(self, rfis: Sequence[RFI]) -> ExcelExport:
        on = self.on
        columns = [
            Column("RFI #", lambda r: r.rfi_number),
            Column("Project", lambda r: r.project_number),
            Column("Subject", lambda r: r.subject),
            Column("Status", lambda r: r.status),
            Column("Priority", lambda r: r.priority or ""),
            Column("Sent To", lambda r: r.sent_to or ""),
            Column("Due Date", lambda r: format_short(r.due_date)),
            Column("Days Open", lambda r: _blank_none(r.days_open(on))),
            Column("Answered", lambda r: format_short(r.date_answered)),
            Column("Overdue", lambda r: _overdue_text(r, on)),
        ]
        return self._report(
            "All RFIs", "ALL RFIs REPORT", "Total RFIs:", rfis, columns, "rfi",
            f"All_RFIs_{self.date_stamp}.xlsx",
        )

    def all_submittals(self, submittals: Sequence[Submittal]) -> ExcelExport:
        on = self.on
        columns = [
            Column("Sub #", lambda s: s.submittal_number),
            Column("Project", lambda s: s.project_number),
            Column("Title", lambda s: s.title),
            Column("Type", lambda s: s.submittal_type or ""),
            Column("Status", lambda s: s.status),
            Column("Priority", lambda s: s.priority or ""),
            Column("Sent To", lambda s: s.sent_to or ""),
            Column("Due Date", lambda s: format_short(s.due_date)),
            Column("Days in Review", lambda s: _blank_none(s.days_in_review(on))),
            Column("Approved Date", lambda s: format_short(s.date_approved)),
            Column("Overdue", lambda s: _overdue_text(s, on)),
        ]
        return self._report(
            "All Submittals", "ALL SUBMITTALS REPORT", "Total Submittals:", submittals, columns,
            "submittal", f"All_Submittals_{self.date_stamp}.xlsx",
        )

    def all_tasks(self, tasks: Sequence[Task]) -> ExcelExport:
        on = self.on
        columns = [
            Column("Task", lambda t: t.title),
            Column("Project", lambda t: t.project_number),
            Column("Status", lambda t: t.status),
            Column("Priority", lambda t: t.priority or ""),
            Column("Assigned To", _report_assignee),
            Column("Due Date", lambda t: format_short(t.due_date)),
            Column("Days Open", lambda t: _blank_none(t.days_open(on))),
            Column("Completed", lambda t: format_short(t.completed_date)),
            Column("Overdue", lambda t: _overdue_text(t, on)),
        ]
        return self._report(
            "All Tasks", "ALL TASKS REPORT", "Total Tasks:", tasks, columns, "task",
            f"All_Tasks_{self.date_stamp}.xlsx",
        )


def _blank_none(value: Optional[int]) -> Any:
    return "" if value is None else value


def _report_assignee(task: Task) -> str:
    if task.is_external:
        return task.external_assignee_name or "External"
    if task.assignee and task.assignee.name:
        return task.assignee.name
    return task.assigned_to_name or ""
