"""Shared test fixtures and configuration."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable
from urllib.parse import parse_qsl

import httpx
import pytest

os.environ.setdefault("SUNBELT_ENV", "test")
os.environ.setdefault("SUNBELT_LOG_LEVEL", "WARNING")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")

import sunbelt_pm.backend as backend_module
import sunbelt_pm.config as config_module
from sunbelt_pm.backend import BackendClient
from sunbelt_pm.config import Settings


@pytest.fixture(autouse=True)
def reset_singletons(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Fresh settings (exporting into tmp_path) and no cached backend client."""
    monkeypatch.setenv("EXPORT_DIR", str(tmp_path / "exports"))
    config_module._settings = None
    backend_module._backend = None
    yield
    config_module._settings = None
    backend_module._backend = None


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Return test settings."""
    return Settings(
        sunbelt_env="test",
        sunbelt_log_level="WARNING",
        supabase_url="https://test-project.supabase.co",
        supabase_anon_key="test-anon-key",
        export_dir=str(tmp_path / "exports"),
        _env_file=None,
    )


class FakeBackend:
    """Routes PostgREST requests to canned table rows and records every request."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.responses: dict[tuple[str, str], httpx.Response] = {}
        self.requests: list[httpx.Request] = []

    def params_for(self, table: str, method: str = "GET") -> list[tuple[str, str]]:
        """Query parameters of the last request sent to *table*."""
        for request in reversed(self.requests):
            if request.url.path.endswith(f"/{table}") and request.method == method:
                return parse_qsl(request.url.query.decode(), keep_blank_values=True)
        raise AssertionError(f"No {method} request to {table}")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        table = request.url.path.rsplit("/", 1)[-1]
        canned = self.responses.get((request.method, table))
        if canned is not None:
            return canned
        if request.method == "GET":
            return httpx.Response(200, json=self.tables.get(table, []))
        if request.method == "POST":
            body = json.loads(request.content)
            return httpx.Response(201, json=[{"id": "new-1", **body}])
        if request.method == "PATCH":
            body = json.loads(request.content)
            return httpx.Response(200, json=[{"id": "1", **body}])
        return httpx.Response(204)


@pytest.fixture
def fake_backend() -> FakeBackend:
    """Canned PostgREST responses; fill ``fake_backend.tables`` per test."""
    return FakeBackend()


@pytest.fixture
def backend_client(fake_backend: FakeBackend) -> BackendClient:
    """A BackendClient wired to :class:`FakeBackend` through ``httpx.MockTransport``."""
    return BackendClient(
        url="https://test-project.supabase.co",
        api_key="test-anon-key",
        transport=httpx.MockTransport(fake_backend.handler),
    )


@pytest.fixture
def project_row() -> dict[str, Any]:
    return {
        "id": "p1",
        "project_number": "SMM-1001",
        "name": "Riverside Clinic",
        "color": "#3b82f6",
        "client_name": "County Health",
        "factory": "PMI",
        "status": "Active",
        "target_online_date": "2026-02-02",
        "target_offline_date": "2026-02-20",
        "delivery_date": "2026-03-05T00:00:00+00:00",
    }


@pytest.fixture
def project_ref() -> dict[str, Any]:
    return {"id": "p1", "name": "Riverside Clinic", "project_number": "SMM-1001"}


@pytest.fixture
def make_row(project_ref: dict[str, Any]) -> Callable[..., dict[str, Any]]:
    """Build a backend row attached to the test project."""

    def _make(**values: Any) -> dict[str, Any]:
        return {"project_id": "p1", "project": project_ref, **values}

    return _make
