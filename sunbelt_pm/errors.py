"""Error types and user-facing error messages."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from sunbelt_pm.logging_config import get_logger

logger = get_logger(__name__)


class BackendError(Exception):
    """A backend request failed (HTTP error status or transport failure)."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        hint: Optional[str] = None,
        details: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.hint = hint
        self.details = details
        self.status_code = status_code


class NothingToExportError(Exception):
    """An export found no dated items; ``notice`` is shown to the user."""

    def __init__(self, notice: str) -> None:
        super().__init__(notice)
        self.notice = notice


# PostgreSQL SQLSTATE codes surfaced by PostgREST
_PG_MESSAGES: dict[str, str] = {
    "23503": "Invalid reference in {context}. Please check your selections.",
    "23502": "Missing required information for {context}.",
    "22001": "One or more fields exceed the maximum length for {context}.",
    "42501": "You don't have permission to {context}.",
    "42P01": "A system configuration error occurred. Please contact support.",
    "08000": "Unable to connect to the server. Please try again.",
    "08003": "Unable to connect to the server. Please try again.",
    "08006": "Unable to connect to the server. Please try again.",
}

_NETWORK_MARKERS = ("network", "fetch", "connect", "timed out", "timeout")
_SESSION_MARKERS = ("jwt", "session", "token")
_PERMISSION_MARKERS = ("permission denied", "rls", "policy")
_RATE_LIMIT_MARKERS = ("rate limit", "too many requests")


def _entity_from_context(context: str) -> str:
    match = re.search(r"(?:create|update|delete)\s+(\w+)", context, re.IGNORECASE)
    return match.group(1) if match else "item"


def describe_error(error: Any, context: str = "operation") -> str:
    """Map a backend error to a message suitable for end users."""
    logger.error("backend_operation_failed", context=context, error=str(error))

    message = str(getattr(error, "message", None) or error or "").lower()
    code = getattr(error, "code", None)
    hint = getattr(error, "hint", None) or ""

    if any(marker in message for marker in _NETWORK_MARKERS):
        return "Network error. Please check your connection and try again."
    if any(marker in message for marker in _SESSION_MARKERS):
        return "Your session has expired. Please log in again."
    if any(marker in message for marker in _PERMISSION_MARKERS):
        return f"You don't have permission to {context}."

    if code:
        if code == "23505":
            return f"This {_entity_from_context(context)} already exists."
        if code in _PG_MESSAGES:
            return _PG_MESSAGES[code].format(context=context)
        logger.warning("unhandled_postgres_error_code", code=code)

    if "schema cache" in hint.lower():
        return "A database configuration error occurred. Please contact support."
    if any(marker in message for marker in _RATE_LIMIT_MARKERS):
        return "Too many requests. Please wait a moment and try again."

    return f"Failed to {context}. Please try again."


@dataclass
class ValidationResult:
    """Outcome of :func:`validate_required`."""

    valid: bool
    message: str = ""
    missing_fields: list[str] = field(default_factory=list)


def _humanize_field(name: str) -> str:
    spaced = re.sub(r"([A-Z])", r" \1", name.replace("_", " "))
    return re.sub(r"\s+", " ", spaced).lower().strip()


def validate_required(data: Mapping[str, Any], required_fields: list[str]) -> ValidationResult:
    """Check that every required field has a non-empty value."""
    missing = [
        name for name in required_fields
        if data.get(name) is None or data.get(name) == "" or data.get(name) == []
    ]
    if missing:
        readable = ", ".join(_humanize_field(name) for name in missing)
        return ValidationResult(valid=False, message=f"Please fill in: {readable}", missing_fields=missing)
    return ValidationResult(valid=True)


_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_RE = re.compile(r"^[\d\s\-()+.]{10,}$")


def is_valid_email(email: str) -> bool:
    """Loose ``name@domain.tld`` check."""
    return bool(_EMAIL_RE.match(email or ""))


def is_valid_phone(phone: str) -> bool:
    """At least ten digits, spaces or common separators."""
    return bool(_PHONE_RE.match(phone or ""))
