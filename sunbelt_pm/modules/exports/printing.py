"""Print-ready HTML forms for RFIs, submittals and tasks."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

from jinja2 import Environment, PackageLoader, select_autoescape

from sunbelt_pm.config import get_settings
from sunbelt_pm.dates import format_long, today
from sunbelt_pm.logging_config import get_logger
from sunbelt_pm.modules.calendar.ics import sanitize_filename
from sunbelt_pm.modules.records.models import RFI, FileAttachment, Submittal, Task

logger = get_logger(__name__)

APPROVAL_OPTIONS = ("Approved", "Approved as Noted", "Revise and Resubmit", "Rejected")

PRIORITY_COLORS = {
    "Low": "#64748b",
    "Medium": "#f59e0b",
    "High": "#ef4444",
    "Critical": "#dc2626",
}
DEFAULT_PRIORITY_COLOR = "#64748b"


def status_class(status: Optional[str], default: str) -> str:
    """CSS class of a status badge: ``status-`` plus the lowercased, hyphenated status."""
    slug = "-".join((status or "").lower().split()) or default
    return f"status-{slug}"


def project_label(project_name: str = "", project_number: str = "") -> str:
    if project_number:
        return f"{project_number} - {project_name}"
    return project_name or "N/A"


@dataclass
class PrintDocument:
    """Rendered HTML and the file name it should be saved under."""

    filename: str
    html: str

    def save(self, directory: Optional[Path] = None) -> Path:
        target_dir = Path(directory) if directory else get_settings().export_path
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / self.filename
        path.write_text(self.html, encoding="utf-8")
        logger.info("print_document_saved", path=str(path))
        return path


class PrintService:
    """Render RFI, submittal and task forms from the packaged templates."""

    def __init__(
        self,
        company_name: Optional[str] = None,
        company_tagline: Optional[str] = None,
        on: Optional[dt.date] = None,
    ) -> None:
        settings = get_settings()
        self.company_name = company_name or settings.company_name
        self.company_tagline = company_tagline or settings.company_tagline
        self.on = on
        self._env = Environment(
            loader=PackageLoader("sunbelt_pm", "templates/print"),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._env.filters["long_date"] = format_long

    def _render(self, template_name: str, **context: Any) -> str:
        tmpl = self._env.get_template(template_name)
        return tmpl.render(
            company_name=self.company_name,
            company_tagline=self.company_tagline,
            generated_on=format_long(self.on or today()),
            **context,
        )

    def render_rfi(
        self,
        rfi: RFI,
        project_name: str = "",
        project_number: str = "",
        attachments: Sequence[FileAttachment] = (),
    ) -> PrintDocument:
        html = self._render(
            "rfi.html",
            rfi=rfi,
            document_type="REQUEST FOR INFORMATION",
            document_number=rfi.rfi_number,
            project_label=project_label(project_name, project_number),
            status_class=status_class(rfi.status, "open"),
            attachments=list(attachments),
        )
        logger.info("print_rendered", kind="rfi", number=rfi.rfi_number)
        return PrintDocument(filename=f"{sanitize_filename(rfi.rfi_number)}.html", html=html)

    def render_submittal(
        self,
        submittal: Submittal,
        project_name: str = "",
        project_number: str = "",
        attachments: Sequence[FileAttachment] = (),
    ) -> PrintDocument:
        html = self._render(
            "submittal.html",
            submittal=submittal,
            document_type="SUBMITTAL",
            document_number=submittal.submittal_number,
            project_label=project_label(project_name, project_number),
            status_class=status_class(submittal.status, "pending"),
            approval_options=APPROVAL_OPTIONS,
            attachments=list(attachments),
        )
        logger.info("print_rendered", kind="submittal", number=submittal.submittal_number)
        return PrintDocument(filename=f"{sanitize_filename(submittal.submittal_number)}.html", html=html)

    def render_task(
        self,
        task: Task,
        project_name: str = "",
        project_number: str = "",
        attachments: Sequence[FileAttachment] = (),
    ) -> PrintDocument:
        html = self._render(
            "task.html",
            task=task,
            document_type="TASK ASSIGNMENT",
            document_number=None,
            project_label=project_label(project_name, project_number),
            status_class=status_class(task.status, "not-started"),
            priority_color=PRIORITY_COLORS.get(task.priority or "", DEFAULT_PRIORITY_COLOR),
            assignee=task.assignee_label or "Unassigned",
            attachments=list(attachments),
        )
        logger.info("print_rendered", kind="task", title=task.title)
        return PrintDocument(filename=f"Task_{sanitize_filename(task.title)}.html", html=html)
