"""Tool registry and dispatch layer.

This module:
- defines the tools exposed over MCP (public contract surface)
- builds a per-server runtime from host-provided config
- creates a correlation_id per call
- routes every fetched/read/executed payload through the sanitizer and
  records its stats (session totals + optional JSONL log)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable
from urllib.parse import urlsplit

from .audit import SanitizeLogger, build_entry, new_correlation_id
from .config import AppConfig, SanitizeConfig, load_config
from .errors import SafeError, internal_error, safe_error_to_result
from .executor import run_command
from .fetcher import Fetcher, FetchResult
from .reader import format_cat_n, read_text_file, slice_lines
from .safety import clamp_timeout_ms
from .sanitize import (PipelineResult, StatsAggregator, content_type_is_html,
                       format_session, format_summary, looks_like_html,
                       sanitize, sanitize_auto, sanitize_text)

logger = logging.getLogger(__name__)

TOOL_METADATA: dict[str, dict[str, Any]] = {
    "safe_fetch": {
        "description": (
            "Fetch a URL and return sanitized content with prompt injection vectors removed. "
            "Strips hidden HTML elements, invisible unicode characters, encoded payloads, "
            "exfiltration images and fake LLM delimiters."
        ),
        "inputSchema": {
            "type": "object",
            "required": ["url"],
            "properties": {
                "url": {"type": "string", "minLength": 1, "description": "URL to fetch"},
                "prompt": {"type": "string", "description": "What to look for in the page (echoed in the header)"},
            },
            "additionalProperties": False,
        },
    },
    "safe_read": {
        "description": "Read a local file and return sanitized content with line numbers (cat -n format).",
        "inputSchema": {
            "type": "object",
            "required": ["file_path"],
            "properties": {
                "file_path": {"type": "string", "minLength": 1, "description": "Path of the file to read"},
                "offset": {"type": "integer", "minimum": 1, "description": "1-based line to start from"},
                "limit": {"type": "integer", "minimum": 1, "description": "Maximum number of lines"},
            },
            "additionalProperties": False,
        },
    },
    "safe_exec": {
        "description": "Execute a shell command and return its sanitized output.",
        "inputSchema": {
            "type": "object",
            "required": ["command"],
            "properties": {
                "command": {"type": "string", "minLength": 1, "description": "Shell command to run"},
                "timeout": {"type": "integer", "minimum": 1, "description": "Timeout in milliseconds (max 600000)"},
                "timeout_ms": {"type": "integer", "minimum": 1, "description": "Deprecated alias of timeout"},
                "description": {"type": "string", "description": "Short description shown in the header"},
            },
            "additionalProperties": False,
        },
    },
    "sanitize_stats": {
        "description": "Show sanitization statistics for the current session.",
        "inputSchema": {
            "type": "object",
            "properties": {},
            "additionalProperties": False,
        },
    },
}


@dataclass(slots=True)
class Runtime:
    """Per-server dependencies shared across tool calls."""

    config: AppConfig
    log: SanitizeLogger
    fetcher: Fetcher
    session: StatsAggregator = field(default_factory=StatsAggregator)


@dataclass(frozen=True, slots=True)
class ToolOutcome:
    """What a tool produced: rendered text plus the result to record."""

    text: str
    source: str | None = None
    result: PipelineResult | None = None


_RUNTIME: Runtime | None = None


def build_runtime(config: AppConfig) -> Runtime:
    log = SanitizeLogger(
        sink_path=config.log_file if config.log_stripped else None,
        max_bytes=config.log_max_bytes,
        max_backups=config.log_max_backups,
    )
    return Runtime(config=config, log=log, fetcher=Fetcher(limits=config.limits))


def initialize_runtime() -> Runtime:
    """Initialize and cache the runtime from host configuration."""
    global _RUNTIME  # pylint: disable=global-statement
    if _RUNTIME is None:
        _RUNTIME = build_runtime(load_config())
    return _RUNTIME


def validate_tool_arguments(tool_name: str, arguments: dict[str, Any]) -> None:
    """Validate tool arguments against the tool's declared input schema.

    Enforces required fields, no extra properties, basic JSON types and
    string/integer bounds. It does NOT implement full JSON Schema.
    """
    if tool_name not in TOOL_METADATA:
        raise SafeError(code="UserInput", message="Unknown tool")

    schema = TOOL_METADATA[tool_name]["inputSchema"]
    props: dict[str, Any] = schema.get("properties", {})
    required: list[str] = schema.get("required", [])

    for k in required:
        if k not in arguments:
            raise SafeError(code="UserInput", message=f"Missing required field: {k}")

    if schema.get("additionalProperties", True) is False:
        extras = [k for k in arguments if k not in props]
        if extras:
            raise SafeError(code="UserInput", message="Unexpected fields are not allowed")

    for k, spec in props.items():
        if k not in arguments:
            continue
        v = arguments[k]
        expected = spec.get("type")
        if expected == "string":
            if not isinstance(v, str):
                raise SafeError(code="UserInput", message=f"Field '{k}' must be a string")
            min_len = spec.get("minLength")
            if isinstance(min_len, int) and len(v) < min_len:
                raise SafeError(code="UserInput", message=f"Field '{k}' must be at least {min_len} characters")
        elif expected == "integer":
            if isinstance(v, bool) or not isinstance(v, int):
                raise SafeError(code="UserInput", message=f"Field '{k}' must be an integer")
            minimum = spec.get("minimum")
            if isinstance(minimum, int) and v < minimum:
                raise SafeError(code="UserInput", message=f"Field '{k}' must be >= {minimum}")


def sanitize_fetched(fetched: FetchResult, config: SanitizeConfig) -> PipelineResult:
    """Pick the pipeline for a fetched document (declared type, URL, content)."""
    if content_type_is_html(fetched.content_type) or looks_like_html(fetched.text, urlsplit(fetched.url).path):
        return sanitize(fetched.text, config)
    return sanitize_text(fetched.text, config)


def _optional_int(arguments: dict[str, Any], key: str) -> int | None:
    v = arguments.get(key)
    return v if isinstance(v, int) else None


async def _tool_safe_fetch(runtime: Runtime, arguments: dict[str, Any]) -> ToolOutcome:
    url = arguments["url"]
    prompt = arguments.get("prompt")
    start = runtime.log.measure_start()

    fetched = await runtime.fetcher.fetch(url)
    result = sanitize_fetched(fetched, runtime.config.sanitize)

    header = format_summary(
        "safe-fetch",
        result,
        clean_label="Clean page",
        duration_ms=runtime.log.measure_duration_ms(start),
    )
    if prompt:
        header += f"\nPrompt: {prompt}"
    return ToolOutcome(text=f"{header}\n\n{result.content}", source=url, result=result)


async def _tool_safe_read(runtime: Runtime, arguments: dict[str, Any]) -> ToolOutcome:
    file_path = arguments["file_path"]
    limits = runtime.config.limits

    raw = read_text_file(file_path, limits)
    result = sanitize_auto(raw, file_path, runtime.config.sanitize)

    lines, start_line = slice_lines(
        result.content,
        _optional_int(arguments, "offset"),
        _optional_int(arguments, "limit"),
        default_limit=limits.read_default_limit,
    )
    header = format_summary("safe-read", result, clean_label="Clean file")
    return ToolOutcome(text=f"{header}\n\n{format_cat_n(lines, start_line)}", source=file_path, result=result)


async def _tool_safe_exec(runtime: Runtime, arguments: dict[str, Any]) -> ToolOutcome:
    command = arguments["command"]
    description = arguments.get("description") or None
    limits = runtime.config.limits

    requested = _optional_int(arguments, "timeout")
    if requested is None:
        requested = _optional_int(arguments, "timeout_ms")
    timeout_ms = clamp_timeout_ms(
        requested,
        default=limits.exec_default_timeout_ms,
        maximum=limits.exec_max_timeout_ms,
    )

    executed = await run_command(command, timeout_ms=timeout_ms, limits=limits)
    combined = executed.combined
    result = sanitize_auto(combined, config=runtime.config.sanitize)

    tag = "safe-exec"
    if executed.exit_code != 0:
        tag += f" exit={executed.exit_code}"
    if executed.timed_out:
        tag += f" timeout={timeout_ms}ms"
    header = format_summary(tag, result, clean_label="Clean output", detail=description)
    return ToolOutcome(text=f"{header}\n\n{result.content}", source=command[:200], result=result)


async def _tool_sanitize_stats(runtime: Runtime, arguments: dict[str, Any]) -> ToolOutcome:
    return ToolOutcome(text=format_session(runtime.session))


_TOOL_FUNCS: dict[str, Callable[[Runtime, dict[str, Any]], Awaitable[ToolOutcome]]] = {
    "safe_fetch": _tool_safe_fetch,
    "safe_read": _tool_safe_read,
    "safe_exec": _tool_safe_exec,
    "sanitize_stats": _tool_sanitize_stats,
}


def _record(runtime: Runtime, name: str, outcome: ToolOutcome, correlation_id: str, duration_ms: int) -> None:
    if outcome.result is None:
        return
    runtime.session.record(outcome.result, outcome.source)
    runtime.log.write_entry(
        build_entry(
            correlation_id=correlation_id,
            tool=name,
            source=outcome.source or "<unknown>",
            result=outcome.result,
            duration_ms=duration_ms,
        )
    )


async def dispatch_tool(name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    """Dispatch a tool call.

    Always returns an envelope that includes correlation_id.
    """
    correlation_id = new_correlation_id()

    try:
        runtime = initialize_runtime()
        start = runtime.log.measure_start()

        if name not in TOOL_METADATA:
            raise SafeError(
                code="UserInput",
                message=f"Unknown tool: {name}",
                hint=f"Available tools: {', '.join(sorted(TOOL_METADATA.keys()))}",
            )
        validate_tool_arguments(name, arguments)

        outcome = await _TOOL_FUNCS[name](runtime, arguments)
        _record(runtime, name, outcome, correlation_id, runtime.log.measure_duration_ms(start))

        out: dict[str, Any] = {"ok": True, "correlation_id": correlation_id, "text": outcome.text}
        if outcome.result is not None:
            out["stripped"] = outcome.result.stats.nonzero()
            out["input_size"] = outcome.result.input_size
            out["output_size"] = outcome.result.output_size
        return out

    except SafeError as err:
        logger.info("Tool %s failed [%s]: %s", name, err.code, err.message)
        result = safe_error_to_result(err)
        result["correlation_id"] = correlation_id
        return result
    except Exception:  # pylint: disable=broad-exception-caught
        logger.exception("Tool %s raised unexpectedly", name)
        result = internal_error("Internal error")
        result["correlation_id"] = correlation_id
        return result
