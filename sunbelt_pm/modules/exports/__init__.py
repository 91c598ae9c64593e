"""Spreadsheet, print and email exports."""

from sunbelt_pm.modules.exports.email_drafts import EmailDraft, EmailDraftBuilder, build_mailto
from sunbelt_pm.modules.exports.excel import ExcelExport, ProjectInfo, WorkbookExporter
from sunbelt_pm.modules.exports.printing import PrintDocument, PrintService

__all__ = [
    "EmailDraft",
    "EmailDraftBuilder",
    "ExcelExport",
    "PrintDocument",
    "PrintService",
    "ProjectInfo",
    "WorkbookExporter",
    "build_mailto",
]
