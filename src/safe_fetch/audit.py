"""Structured sanitization log.

When enabled, one JSON line is appended per tool call describing what was
stripped from which source. The file rotates at a size threshold. Failures
writing the log never break the tool call.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from .sanitize.stats import PipelineResult

logger = logging.getLogger(__name__)


def new_correlation_id() -> str:
    """Generate a random correlation id for traceability."""
    return uuid.uuid4().hex


def _now_rfc3339() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class SanitizeLogEntry:
    """A single sanitization record."""

    timestamp: str
    correlation_id: str
    tool: str
    source: str
    stripped: dict[str, int]
    input_size: int
    output_size: int
    reduction_percent: float
    duration_ms: int | None


class SanitizeLogger:
    """Appends sanitization records as JSONL with size-based rotation."""

    def __init__(
        self,
        *,
        sink_path: Path | None,
        max_bytes: int = 10 * 1024 * 1024,
        max_backups: int = 2,
    ) -> None:
        self._sink_path = sink_path
        self._max_bytes = max_bytes
        self._max_backups = max_backups

    @property
    def enabled(self) -> bool:
        return self._sink_path is not None

    def _rotate_if_needed(self) -> None:
        if self._sink_path is None:
            return
        try:
            if not self._sink_path.exists():
                return
            size = self._sink_path.stat().st_size
            if size < self._max_bytes:
                return

            # log -> log.1 -> log.2 ...
            if self._max_backups > 0:
                oldest = Path(f"{self._sink_path}.{self._max_backups}")
                oldest.unlink(missing_ok=True)
                for i in range(self._max_backups, 1, -1):
                    src = Path(f"{self._sink_path}.{i - 1}")
                    dst = Path(f"{self._sink_path}.{i}")
                    if src.exists():
                        src.replace(dst)
                self._sink_path.replace(Path(f"{self._sink_path}.1"))
            else:
                self._sink_path.write_text("", encoding="utf-8")
        except OSError as exc:  # pragma: no cover
            logger.warning("Sanitize log rotation failed: %s", exc)

    def write_entry(self, entry: SanitizeLogEntry) -> None:
        """Append an entry to the sink (no-op when logging is disabled)."""
        if self._sink_path is None:
            return
        payload = {
            "timestamp": entry.timestamp,
            "correlation_id": entry.correlation_id,
            "tool": entry.tool,
            "source": entry.source,
            "stripped": entry.stripped,
            "input_size": entry.input_size,
            "output_size": entry.output_size,
            "reduction_percent": entry.reduction_percent,
        }
        if entry.duration_ms is not None:
            payload["duration_ms"] = entry.duration_ms

        line = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
        try:
            self._sink_path.parent.mkdir(parents=True, exist_ok=True)
            self._rotate_if_needed()
            with self._sink_path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as exc:  # pragma: no cover
            logger.warning("Failed to write sanitize log: %s", exc)

    def measure_start(self) -> float:
        """Return a monotonic start timestamp for duration measurement."""
        return time.monotonic()

    def measure_duration_ms(self, start: float) -> int:
        """Convert a monotonic start timestamp into elapsed milliseconds."""
        return int((time.monotonic() - start) * 1000)


def build_entry(
    *,
    correlation_id: str,
    tool: str,
    source: str,
    result: PipelineResult,
    duration_ms: int | None = None,
) -> SanitizeLogEntry:
    """Construct a log entry from a pipeline result."""
    return SanitizeLogEntry(
        timestamp=_now_rfc3339(),
        correlation_id=correlation_id,
        tool=tool,
        source=source,
        stripped=result.stats.nonzero(),
        input_size=result.input_size,
        output_size=result.output_size,
        reduction_percent=result.reduction_percent,
        duration_ms=duration_ms,
    )
