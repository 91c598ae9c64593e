"""Pre-filled ``mailto:`` drafts for tasks, RFIs and submittals."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, urlencode

from sunbelt_pm.config import get_settings
from sunbelt_pm.dates import format_weekday_long, today
from sunbelt_pm.modules.exports.printing import project_label
from sunbelt_pm.modules.records.models import RFI, Submittal, Task

RULE = "═" * 39


@dataclass
class EmailDraft:
    """An email ready to open in the user's mail client."""

    to: str = ""
    subject: str = ""
    body: str = ""
    cc: str = ""
    bcc: str = ""

    @property
    def mailto(self) -> str:
        return build_mailto(self.to, cc=self.cc, bcc=self.bcc, subject=self.subject, body=self.body)


def build_mailto(to: str = "", cc: str = "", bcc: str = "", subject: str = "", body: str = "") -> str:
    """``mailto:`` URL; empty parameters are left out."""
    params = [(key, value) for key, value in (("cc", cc), ("bcc", bcc), ("subject", subject), ("body", body)) if value]
    query = urlencode(params, quote_via=quote)
    return f"mailto:{to}?{query}" if query else f"mailto:{to}"


class EmailDraftBuilder:
    """Builds the standard task, RFI and submittal emails."""

    def __init__(self, sender: Optional[str] = None, on: Optional[dt.date] = None) -> None:
        self.sender = sender or get_settings().company_name
        self.on = on

    @property
    def date_text(self) -> str:
        return format_weekday_long(self.on or today())

    def task(self, task: Task, project_name: str = "", project_number: str = "") -> EmailDraft:
        lines = [
            f"Task: {task.title}",
            f"Project: {project_label(project_name, project_number)}",
            "",
            "--- Task Details ---",
            "",
            f"Status: {task.status}",
            f"Priority: {task.priority or 'Normal'}",
            f"Due Date: {format_weekday_long(task.due_date)}",
            "",
            f"Description:\n{task.description}" if task.description else "",
            "",
            "---",
            "",
            "Please let me know if you have any questions.",
            "",
            "Thank you,",
        ]
        return EmailDraft(
            to=task.external_assignee_email or "",
            subject=f"[{project_number or 'Task'}] {task.title}",
            body="\n".join(lines),
        )

    def rfi(self, rfi: RFI, project_name: str = "", project_number: str = "") -> EmailDraft:
        lines = [
            "REQUEST FOR INFORMATION",
            "",
            f"RFI Number: {rfi.rfi_number}",
            f"Project: {project_label(project_name, project_number)}",
            f"Date: {self.date_text}",
            f"Response Due: {format_weekday_long(rfi.due_date)}",
            "",
            RULE,
            "",
            f"TO: {rfi.sent_to or 'N/A'}",
            f"FROM: {self.sender}",
            "",
            RULE,
            "",
            "QUESTION:",
            "",
            rfi.question or "[Question details]",
            "",
            RULE,
            "",
            "Please provide your response by the due date noted above.",
            "",
            "If you have any questions or need clarification, please contact us.",
            "",
            "Thank you,",
            "",
            "---",
            self.sender,
        ]
        return EmailDraft(
            to=rfi.sent_to_email or "",
            subject=f"[{project_number or 'RFI'}] {rfi.rfi_number}: {rfi.subject}",
            body="\n".join(lines),
        )

    def submittal(self, submittal: Submittal, project_name: str = "", project_number: str = "") -> EmailDraft:
        lines = [
            "SUBMITTAL TRANSMITTAL",
            f"Submittal Number: {submittal.submittal_number}",
            f"Project: {project_label(project_name, project_number)}",
            f"Date: {self.date_text}",
            f"Response Due: {format_weekday_long(submittal.due_date)}",
            RULE,
            f"TO: {submittal.sent_to or 'N/A'}",
            f"FROM: {self.sender}",
            RULE,
            "SUBMITTAL DETAILS:",
            f"Title: {submittal.title}",
            f"Type: {submittal.submittal_type or 'N/A'}",
            f"Revision: {submittal.revision_number}" if submittal.revision_number > 0 else "",
            f"Spec Section: {submittal.spec_section}" if submittal.spec_section else "",
            f"Manufacturer: {submittal.manufacturer}" if submittal.manufacturer else "",
            f"Description:\n{submittal.description}" if submittal.description else "",
            RULE,
            "ACTION REQUIRED:",
            "[ ] Approved",
            "[ ] Approved as Noted",
            "[ ] Revise and Resubmit",
            "[ ] Rejected",
            "Comments:",
            RULE,
            "Please review and return by the due date noted above.",
            "Thank you,",
            "---",
            self.sender,
        ]
        return EmailDraft(
            to=submittal.sent_to_email or "",
            subject=f"[{project_number or 'Submittal'}] {submittal.submittal_number}: {submittal.title}",
            body="\n".join(line for line in lines if line),
        )

    def rfi_response(self, rfi: RFI, project_name: str = "", project_number: str = "") -> EmailDraft:
        """Reply to whoever raised the RFI, quoting the question."""
        lines = [
            "RFI RESPONSE",
            "",
            f"RFI Number: {rfi.rfi_number}",
            f"Project: {project_label(project_name, project_number)}",
            f"Response Date: {self.date_text}",
            "",
            RULE,
            "",
            "ORIGINAL QUESTION:",
            "",
            rfi.question or "[Original question]",
            "",
            RULE,
            "",
            "RESPONSE:",
            "",
            rfi.answer or "[Your response here]",
            "",
            RULE,
            "",
            "Please let us know if you need any additional information.",
            "",
            "Thank you,",
            "",
            "---",
            self.sender,
        ]
        return EmailDraft(
            to=rfi.received_from_email or "",
            subject=f"RE: [{project_number or 'RFI'}] {rfi.rfi_number}: {rfi.subject}",
            body="\n".join(lines),
        )
