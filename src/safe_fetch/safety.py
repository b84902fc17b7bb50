"""Safety helpers for the collaborators that produce pipeline input.

Binary detection, size limits and timeout clamping happen here, before any
content reaches the sanitizer.
"""

from __future__ import annotations

from .errors import SafeError


def looks_binary(sample: bytes) -> bool:
    """Return True if a leading sample contains a NUL byte."""
    return b"\0" in sample


def enforce_max_bytes(*, size: int, max_bytes: int, what: str) -> None:
    """Enforce an upper bound on payload sizes."""
    if size > max_bytes:
        raise SafeError(
            code="UserInput",
            message=f"{what} exceeds size limit",
            hint=f"Max {max_bytes} bytes allowed",
        )


def clamp_timeout_ms(value: int | None, *, default: int, maximum: int) -> int:
    """Pick a timeout: ``default`` when unset, never above ``maximum``."""
    if value is None:
        return default
    if value <= 0:
        raise SafeError(code="UserInput", message="Timeout must be positive")
    return min(value, maximum)


def truncate_bytes(data: bytes, max_bytes: int) -> tuple[bytes, bool]:
    """Cap a byte payload, reporting whether anything was cut."""
    if len(data) <= max_bytes:
        return data, False
    return data[:max_bytes], True
