"""Sunbelt PM CLI: calendar files, logs, print forms and the company directory."""

from __future__ import annotations

import asyncio
import datetime as dt
from enum import StrEnum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from sunbelt_pm import __version__
from sunbelt_pm.backend import close_backend
from sunbelt_pm.errors import BackendError, NothingToExportError, describe_error
from sunbelt_pm.logging_config import setup_logging

app = typer.Typer(help="Sunbelt PM toolkit", no_args_is_help=True)
console = Console()

calendar_app = typer.Typer(help="Calendar views and .ics exports", no_args_is_help=True)
app.add_typer(calendar_app, name="calendar")

logs_app = typer.Typer(help="Excel logs and reports", no_args_is_help=True)
app.add_typer(logs_app, name="logs")


class LogKind(StrEnum):
    RFI = "rfi"
    SUBMITTAL = "submittal"
    TASK = "task"
    PROJECT = "project"
    ALL_RFIS = "all-rfis"
    ALL_SUBMITTALS = "all-submittals"
    ALL_TASKS = "all-tasks"


class PrintKind(StrEnum):
    RFI = "rfi"
    SUBMITTAL = "submittal"
    TASK = "task"


def _async_run(coro, context: str = "load data"):
    """Run an async coroutine, closing the backend client afterwards."""

    async def _wrapped():
        try:
            return await coro
        finally:
            await close_backend()

    try:
        return asyncio.run(_wrapped())
    except BackendError as exc:
        console.print(f"[red]{describe_error(exc, context)}[/red]")
        raise typer.Exit(1)


def _parse_date(value: Optional[str], option: str) -> Optional[dt.date]:
    if not value:
        return None
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        console.print(f"[red]Invalid date for {option}: {value} (expected YYYY-MM-DD)[/red]")
        raise typer.Exit(1)


async def _require_project(records, project_number: str):
    project = await records.get_project_by_number(project_number)
    if project is None:
        console.print(f"[red]Project not found: {project_number}[/red]")
        raise typer.Exit(1)
    return project


@app.callback()
def main() -> None:
    """Configure logging before any command runs."""
    setup_logging()


@app.command()
def version() -> None:
    """Show the installed version."""
    console.print(f"sunbelt-pm [cyan]{__version__}[/cyan]")


# ── Calendar ─────────────────────────────────────────────────────────

@calendar_app.command("export")
def calendar_export(
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Project number"),
    key_dates: bool = typer.Option(False, "--key-dates", help="Only online/offline/delivery dates"),
    start: Optional[str] = typer.Option(None, "--start", help="First day (YYYY-MM-DD)"),
    end: Optional[str] = typer.Option(None, "--end", help="Last day (YYYY-MM-DD)"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Output directory"),
) -> None:
    """Write an .ics calendar file."""
    from sunbelt_pm.modules.calendar.ics import IcsExporter
    from sunbelt_pm.modules.calendar.service import CalendarService, items_between
    from sunbelt_pm.modules.records.service import RecordService

    if key_dates and not project:
        console.print("[red]--key-dates needs --project[/red]")
        raise typer.Exit(1)

    start_day = _parse_date(start, "--start")
    end_day = _parse_date(end, "--end")

    async def _export():
        records = RecordService()
        exporter = IcsExporter()
        if project:
            proj = await _require_project(records, project)
            if key_dates:
                return exporter.export_project_dates(proj)
            return exporter.export_project_items(
                proj,
                tasks=await records.list_tasks(proj.id),
                rfis=await records.list_rfis(proj.id),
                submittals=await records.list_submittals(proj.id),
                milestones=await records.list_milestones(proj.id),
            )

        items = await CalendarService(records).items()
        if start_day or end_day:
            items = items_between(items, start_day or dt.date.min, end_day or dt.date.max)
        return exporter.export_calendar_items(items)

    try:
        export = _async_run(_export(), "export data")
    except NothingToExportError as exc:
        console.print(f"[yellow]{exc.notice}[/yellow]")
        raise typer.Exit(1)

    path = export.save(out)
    console.print(f"[green]✓ {export.event_count} events written to {path}[/green]")


@calendar_app.command("agenda")
def calendar_agenda(
    start: Optional[str] = typer.Option(None, "--start", help="First day (YYYY-MM-DD, default: Monday this week)"),
    days: int = typer.Option(7, "--days", "-d", min=1, help="Number of days to show"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Project number"),
) -> None:
    """Show dated items day by day."""
    from sunbelt_pm.dates import today
    from sunbelt_pm.modules.calendar.grid import week_dates, week_range_text
    from sunbelt_pm.modules.calendar.service import CalendarService, group_items_by_date, items_between, status_color
    from sunbelt_pm.modules.records.service import RecordService

    first = _parse_date(start, "--start") or week_dates(today())[0]
    last = first + dt.timedelta(days=days - 1)

    async def _load():
        records = RecordService()
        project_ids = None
        if project:
            proj = await _require_project(records, project)
            project_ids = [proj.id]
        return await CalendarService(records).items(project_ids)

    items = items_between(_async_run(_load(), "load the calendar"), first, last)
    grouped = group_items_by_date(items)

    table = Table(title=f"Agenda: {week_range_text([first, last])}")
    table.add_column("Date", style="cyan", no_wrap=True)
    table.add_column("Type", style="magenta")
    table.add_column("Item", style="white")
    table.add_column("Project", style="green")
    table.add_column("Status")

    for key in sorted(grouped):
        for item in grouped[key]:
            status = item.status or ""
            table.add_row(
                f"{item.date:%a %m/%d}",
                item.label,
                item.title,
                item.project_number or item.project_name,
                f"[{status_color(item.status)}]{status}[/]" if status else "",
            )

    if not items:
        console.print("[yellow]No dated items in this range.[/yellow]")
        return
    console.print(table)
    console.print(f"\nTotal: {len(items)} items")


# ── Excel logs ───────────────────────────────────────────────────────

@logs_app.command("export")
def logs_export(
    kind: LogKind = typer.Argument(..., help="Which log or report to build"),
    project: Optional[str] = typer.Option(None, "--project", "-p", help="Project number (project logs)"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Output directory"),
) -> None:
    """Write an Excel log for one project or a report across all projects."""
    from sunbelt_pm.modules.exports.excel import ProjectInfo, WorkbookExporter
    from sunbelt_pm.modules.records.service import RecordService

    project_kinds = {LogKind.RFI, LogKind.SUBMITTAL, LogKind.TASK, LogKind.PROJECT}
    if kind in project_kinds and not project:
        console.print(f"[red]--project is required for the {kind} log[/red]")
        raise typer.Exit(1)

    async def _export():
        records = RecordService()
        exporter = WorkbookExporter()
        if kind == LogKind.ALL_RFIS:
            return exporter.all_rfis(await records.list_rfis())
        if kind == LogKind.ALL_SUBMITTALS:
            return exporter.all_submittals(await records.list_submittals())
        if kind == LogKind.ALL_TASKS:
            return exporter.all_tasks(await records.list_tasks())

        proj = await _require_project(records, project)
        info = ProjectInfo.from_project(proj)
        if kind == LogKind.RFI:
            return exporter.rfi_log(await records.list_rfis(proj.id), info)
        if kind == LogKind.SUBMITTAL:
            return exporter.submittal_log(await records.list_submittals(proj.id), info)
        if kind == LogKind.TASK:
            return exporter.task_log(await records.list_tasks(proj.id), info)
        return exporter.project_logs(await records.list_rfis(proj.id), await records.list_submittals(proj.id), info)

    export = _async_run(_export(), "export data")
    path = export.save(out)
    console.print(f"[green]✓ {export.row_count} rows written to {path}[/green]")


# ── Print forms ──────────────────────────────────────────────────────

@app.command("print")
def print_form(
    kind: PrintKind = typer.Argument(..., help="rfi, submittal or task"),
    identifier: str = typer.Argument(..., help="RFI number, submittal number, or task id/title"),
    project: str = typer.Option(..., "--project", "-p", help="Project number"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Output directory"),
) -> None:
    """Render a print-ready HTML form."""
    from sunbelt_pm.modules.exports.printing import PrintService
    from sunbelt_pm.modules.records.service import RecordService

    async def _render():
        records = RecordService()
        printer = PrintService()
        proj = await _require_project(records, project)

        if kind == PrintKind.RFI:
            candidates = [r for r in await records.list_rfis(proj.id) if r.rfi_number == identifier]
        elif kind == PrintKind.SUBMITTAL:
            candidates = [s for s in await records.list_submittals(proj.id) if s.submittal_number == identifier]
        else:
            candidates = [t for t in await records.list_tasks(proj.id) if identifier in (t.id, t.title)]

        if not candidates:
            console.print(f"[red]{kind.upper()} not found: {identifier}[/red]")
            raise typer.Exit(1)

        record = candidates[0]
        attachments = await records.list_attachments(str(kind), record.id)
        render = {
            PrintKind.RFI: printer.render_rfi,
            PrintKind.SUBMITTAL: printer.render_submittal,
            PrintKind.TASK: printer.render_task,
        }[kind]
        return render(record, proj.name, proj.project_number, attachments)

    document = _async_run(_render(), "render the form")
    path = document.save(out)
    console.print(f"[green]✓ Print form written to {path}[/green]")


# ── Directory ────────────────────────────────────────────────────────

@app.command()
def directory(
    search: str = typer.Option("", "--search", "-s", help="Name, email or position"),
    factory: str = typer.Option("all", "--factory", "-f", help="Factory code or 'all'"),
    department: str = typer.Option("all", "--department", "-d", help="Department code or 'all'"),
) -> None:
    """List the company directory grouped by factory."""
    from sunbelt_pm.modules.contacts.service import DirectoryService, filter_contacts, group_by_factory

    loaded = _async_run(DirectoryService().load(), "load the directory")
    contacts = filter_contacts(loaded.contacts, search, factory, department)
    if not contacts:
        console.print("[yellow]No contacts found. Try adjusting your search or filters.[/yellow]")
        return

    for info, members in loaded.sorted_groups(group_by_factory(contacts)):
        table = Table(title=f"{info.short_name or info.full_name or info.code} ({len(members)})")
        table.add_column("Name", style="green")
        table.add_column("Position", style="white")
        table.add_column("Department", style="cyan")
        table.add_column("Email", style="yellow")
        table.add_column("Phone", style="dim")
        for contact in members:
            table.add_row(
                contact.display_name,
                contact.position or "",
                contact.department_code or "",
                contact.email or "",
                contact.phone or "",
            )
        console.print(table)

    filtered = search or factory != "all" or department != "all"
    suffix = "s" if len(contacts) != 1 else ""
    console.print(f"\n{len(contacts)} contact{suffix}{' (filtered)' if filtered else ''}")


if __name__ == "__main__":
    app()
