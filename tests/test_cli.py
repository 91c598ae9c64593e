"""Tests for the Typer CLI."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from sunbelt_pm import __version__
from sunbelt_pm.cli.commands import app
from sunbelt_pm.errors import BackendError
from sunbelt_pm.modules.contacts.models import DirectoryContact, Factory
from sunbelt_pm.modules.contacts.service import Directory
from sunbelt_pm.modules.records.models import RFI, Project, Task

runner = CliRunner()


@pytest.fixture(autouse=True)
def setup_logging_mock():
    """Keep the CLI callback from reconfiguring structlog onto the runner's streams."""
    with patch("sunbelt_pm.cli.commands.setup_logging") as mock:
        yield mock


@pytest.fixture
def project(project_row) -> Project:
    return Project.model_validate(project_row)


@pytest.fixture
def records(project):
    """Patch RecordService with canned async results."""
    service = MagicMock()
    service.get_project_by_number = AsyncMock(return_value=project)
    service.list_projects = AsyncMock(return_value=[project])
    service.list_tasks = AsyncMock(return_value=[
        Task(id="t1", title="Set modules", status="Open", due_date="2026-02-03", project_id="p1"),
    ])
    service.list_rfis = AsyncMock(return_value=[
        RFI(id="r1", number=1, rfi_number="SMM-1001-RFI-001", subject="Door swing", status="Open",
            due_date="2026-02-04", project_id="p1"),
    ])
    service.list_submittals = AsyncMock(return_value=[])
    service.list_milestones = AsyncMock(return_value=[])
    service.list_attachments = AsyncMock(return_value=[])
    with patch("sunbelt_pm.modules.records.service.RecordService", return_value=service):
        yield service


class TestBasics:
    def test_version(self, setup_logging_mock) -> None:
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.output
        setup_logging_mock.assert_called_once()

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert "calendar" in result.output
        assert "logs" in result.output


class TestCalendarCommands:
    """calendar export / agenda."""

    def test_export_key_dates(self, records, tmp_path) -> None:
        result = runner.invoke(app, ["calendar", "export", "-p", "SMM-1001", "--key-dates", "-o", str(tmp_path)])
        assert result.exit_code == 0, result.output
        path = tmp_path / "SMM_1001_Key_Dates.ics"
        assert path.exists()
        assert "3 events" in result.output

    def test_export_project_items(self, records, tmp_path) -> None:
        result = runner.invoke(app, ["calendar", "export", "-p", "SMM-1001", "-o", str(tmp_path)])
        assert result.exit_code == 0, result.output
        content = (tmp_path / "SMM_1001_All_Items.ics").read_text(encoding="utf-8")
        assert "Task: Set modules" in content
        records.list_tasks.assert_awaited_once_with("p1")

    def test_export_all_in_range(self, records, tmp_path) -> None:
        result = runner.invoke(
            app,
            ["calendar", "export", "--start", "2026-02-01", "--end", "2026-02-28", "-o", str(tmp_path)],
        )
        assert result.exit_code == 0, result.output
        assert (tmp_path / "Sunbelt_Calendar_2026-02-02_2026-02-20.ics").exists()

    def test_export_nothing(self, records, tmp_path) -> None:
        records.get_project_by_number.return_value = Project(id="p2", project_number="SMM-2", name="Empty")
        result = runner.invoke(app, ["calendar", "export", "-p", "SMM-2", "--key-dates", "-o", str(tmp_path)])
        assert result.exit_code == 1
        assert "This project has no key dates set." in result.output
        assert list(tmp_path.iterdir()) == []

    def test_key_dates_need_project(self, records, tmp_path) -> None:
        result = runner.invoke(app, ["calendar", "export", "--key-dates", "-o", str(tmp_path)])
        assert result.exit_code == 1
        assert "--key-dates needs --project" in result.output
        records.list_projects.assert_not_awaited()
        assert list(tmp_path.iterdir()) == []

    def test_project_not_found(self, records) -> None:
        records.get_project_by_number.return_value = None
        result = runner.invoke(app, ["calendar", "export", "-p", "NOPE"])
        assert result.exit_code == 1
        assert "Project not found: NOPE" in result.output

    def test_bad_date(self, records) -> None:
        result = runner.invoke(app, ["calendar", "export", "--start", "02/01/2026"])
        assert result.exit_code == 1
        assert "Invalid date for --start" in result.output

    def test_backend_error_message(self, records) -> None:
        records.get_project_by_number.side_effect = BackendError("JWT expired", status_code=401)
        result = runner.invoke(app, ["calendar", "export", "-p", "SMM-1001"])
        assert result.exit_code == 1
        assert "Your session has expired" in result.output

    def test_agenda(self, records) -> None:
        result = runner.invoke(app, ["calendar", "agenda", "--start", "2026-02-02", "--days", "7"])
        assert result.exit_code == 0, result.output
        assert "Set modules" in result.output
        assert "Total: 3 items" in result.output

    def test_agenda_empty(self, records) -> None:
        result = runner.invoke(app, ["calendar", "agenda", "--start", "2030-01-01"])
        assert result.exit_code == 0
        assert "No dated items in this range." in result.output


class TestLogsCommand:
    """logs export."""

    def test_project_required(self, records) -> None:
        result = runner.invoke(app, ["logs", "export", "rfi"])
        assert result.exit_code == 1
        assert "--project is required" in result.output

    def test_rfi_log(self, records, tmp_path) -> None:
        result = runner.invoke(app, ["logs", "export", "rfi", "-p", "SMM-1001", "-o", str(tmp_path)])
        assert result.exit_code == 0, result.output
        files = [p.name for p in tmp_path.iterdir()]
        assert len(files) == 1
        assert files[0].startswith("SMM-1001_RFI_Log_")
        records.list_rfis.assert_awaited_once_with("p1")

    def test_all_tasks_report(self, records, tmp_path) -> None:
        result = runner.invoke(app, ["logs", "export", "all-tasks", "-o", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert [p.name.split("_")[0:2] for p in tmp_path.iterdir()] == [["All", "Tasks"]]
        records.list_tasks.assert_awaited_once_with()

    def test_project_logs(self, records, tmp_path) -> None:
        result = runner.invoke(app, ["logs", "export", "project", "-p", "SMM-1001", "-o", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert any("_Project_Logs_" in p.name for p in tmp_path.iterdir())


class TestPrintCommand:
    """print."""

    def test_print_rfi(self, records, tmp_path) -> None:
        result = runner.invoke(app, ["print", "rfi", "SMM-1001-RFI-001", "-p", "SMM-1001", "-o", str(tmp_path)])
        assert result.exit_code == 0, result.output
        html = (tmp_path / "SMM_1001_RFI_001.html").read_text(encoding="utf-8")
        assert "Door swing" in html
        records.list_attachments.assert_awaited_once_with("rfi", "r1")

    def test_print_task_by_title(self, records, tmp_path) -> None:
        result = runner.invoke(app, ["print", "task", "Set modules", "-p", "SMM-1001", "-o", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert (tmp_path / "Task_Set_modules.html").exists()

    def test_print_missing(self, records) -> None:
        result = runner.invoke(app, ["print", "rfi", "SMM-1001-RFI-999", "-p", "SMM-1001"])
        assert result.exit_code == 1
        assert "RFI not found" in result.output


class TestDirectoryCommand:
    """directory."""

    @pytest.fixture
    def directory_service(self):
        loaded = Directory(
            contacts=[
                DirectoryContact(first_name="Ana", last_name="Zamora", full_name="Ana Zamora",
                                 factory_code="PMI", department_code="OPERATIONS"),
                DirectoryContact(first_name="Ben", last_name="Adams", full_name="Ben Adams",
                                 factory_code="NWBS", department_code="SALES"),
            ],
            factories=[Factory(code="PMI", short_name="Phoenix"), Factory(code="NWBS", short_name="Boise")],
        )
        service = MagicMock()
        service.load = AsyncMock(return_value=loaded)
        with patch("sunbelt_pm.modules.contacts.service.DirectoryService", return_value=service):
            yield service

    def test_list_all(self, directory_service) -> None:
        result = runner.invoke(app, ["directory"])
        assert result.exit_code == 0, result.output
        assert "Ana Zamora" in result.output
        assert "Ben Adams" in result.output
        assert result.output.index("Boise") < result.output.index("Phoenix")
        assert "2 contacts" in result.output
        assert "(filtered)" not in result.output

    def test_filtered(self, directory_service) -> None:
        result = runner.invoke(app, ["directory", "--factory", "PMI"])
        assert result.exit_code == 0
        assert "Ben Adams" not in result.output
        assert "1 contact (filtered)" in result.output

    def test_no_match(self, directory_service) -> None:
        result = runner.invoke(app, ["directory", "--search", "zzz"])
        assert result.exit_code == 0
        assert "No contacts found" in result.output
