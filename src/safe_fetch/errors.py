"""Safe error types and tool envelope helpers.

Collaborators (fetcher, reader, executor) raise :class:`SafeError`; the tool
dispatcher turns it into a stable ``{"ok": False, ...}`` envelope. The
sanitization pipeline itself never raises for content.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class SafeError(Exception):
    """An error whose message is safe to return to the agent."""

    code: str
    message: str
    hint: str | None = None
    status_code: int | None = None


def safe_error_to_result(err: SafeError) -> dict[str, Any]:
    """Convert a SafeError into the standard tool envelope."""
    return to_error_result(code=err.code, message=err.message, hint=err.hint)


def to_error_result(*, code: str, message: str, hint: str | None = None) -> dict[str, Any]:
    """Build a standard tool error envelope."""
    out: dict[str, Any] = {"ok": False, "code": code, "message": message}
    if hint:
        out["hint"] = hint
    return out


def internal_error(message: str = "Internal error") -> dict[str, Any]:
    """Error for unexpected failures."""
    return to_error_result(code="Internal", message=message)
