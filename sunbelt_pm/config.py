"""Centralized configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application-wide settings sourced from .env / environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── General ──────────────────────────────────────────────────────
    sunbelt_env: str = "development"
    sunbelt_log_level: str = "INFO"

    # ── Backend (Supabase / PostgREST) ───────────────────────────────
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_access_token: str = ""
    supabase_schema: str = "public"
    client_info: str = "sunbelt-pm-cli"
    request_timeout: float = 15.0
    request_retries: int = 3

    # ── Exports ──────────────────────────────────────────────────────
    export_dir: str = "exports"
    company_name: str = "Sunbelt Modular"
    company_tagline: str = "Modular Building Solutions"
    workbook_creator: str = "Sunbelt PM System"

    # ── Calendar files ───────────────────────────────────────────────
    ics_prodid: str = "-//Sunbelt Modular//PM System//EN"
    ics_uid_domain: str = "sunbeltpm.com"
    ics_calendar_name: str = "Sunbelt PM Export"

    @field_validator("supabase_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    # ── Derived ──────────────────────────────────────────────────────
    @property
    def export_path(self) -> Path:
        """Return the export directory, creating it if needed."""
        path = Path(self.export_dir)
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def has_backend(self) -> bool:
        """True when both the backend URL and API key are configured."""
        return bool(self.supabase_url and self.supabase_anon_key)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the singleton Settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
