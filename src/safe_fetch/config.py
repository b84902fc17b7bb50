"""Configuration loading for mcp-safe-fetch.

Configuration is supplied by the host (a JSON file next to the project or in
the user's home directory), never by the agent. Loading is forgiving: a
missing, unreadable or malformed file, or a field of the wrong type, silently
falls back to the default value.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".mcp-safe-fetch.json"
CONFIG_ENV_VAR = "SAFE_FETCH_CONFIG"


@dataclass(frozen=True, slots=True)
class SanitizeConfig:
    """Policy consumed by the sanitization pipeline (read-only)."""

    allow_data_uris: bool = False
    max_base64_decode_length: int = 500
    custom_patterns: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class LimitsConfig:
    """Non-functional limits for the fetch/read/exec collaborators."""

    # Network
    fetch_timeout_s: float = 10.0

    # Files
    read_max_bytes: int = 10 * 1024 * 1024
    binary_sniff_bytes: int = 8192
    read_default_limit: int = 2000

    # Commands
    exec_default_timeout_ms: int = 120_000
    exec_max_timeout_ms: int = 600_000
    exec_max_output_bytes: int = 10 * 1024 * 1024


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Host configuration for the server process."""

    sanitize: SanitizeConfig = field(default_factory=SanitizeConfig)
    log_stripped: bool = False
    log_file: Path = Path(".claude/sanitize.log")
    log_max_bytes: int = 10 * 1024 * 1024
    log_max_backups: int = 2
    limits: LimitsConfig = field(default_factory=LimitsConfig)


def default_config_paths() -> list[Path]:
    """Candidate config files, highest precedence first."""
    paths: list[Path] = []
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        paths.append(Path(env_path))
    paths.append(Path.cwd() / CONFIG_FILENAME)
    paths.append(Path.home() / CONFIG_FILENAME)
    return paths


def _bool_field(raw: dict[str, Any], key: str, default: bool) -> bool:
    value = raw.get(key, default)
    if not isinstance(value, bool):
        logger.debug("Ignoring config field %s: expected boolean", key)
        return default
    return value


def _positive_int_field(raw: dict[str, Any], key: str, default: int) -> int:
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        logger.debug("Ignoring config field %s: expected positive integer", key)
        return default
    return value


def _patterns_field(raw: dict[str, Any], key: str) -> tuple[str, ...]:
    value = raw.get(key, [])
    if not isinstance(value, list):
        logger.debug("Ignoring config field %s: expected list of strings", key)
        return ()
    return tuple(p for p in value if isinstance(p, str) and p)


def _path_field(raw: dict[str, Any], key: str, default: Path) -> Path:
    value = raw.get(key)
    if not isinstance(value, str) or not value.strip():
        return default
    return Path(value).expanduser()


def config_from_mapping(raw: dict[str, Any]) -> AppConfig:
    """Build an AppConfig from a decoded JSON object (camelCase keys)."""
    defaults = AppConfig()
    sanitize_defaults = defaults.sanitize
    return AppConfig(
        sanitize=SanitizeConfig(
            allow_data_uris=_bool_field(raw, "allowDataUris", sanitize_defaults.allow_data_uris),
            max_base64_decode_length=_positive_int_field(
                raw, "maxBase64DecodeLength", sanitize_defaults.max_base64_decode_length
            ),
            custom_patterns=_patterns_field(raw, "customPatterns"),
        ),
        log_stripped=_bool_field(raw, "logStripped", defaults.log_stripped),
        log_file=_path_field(raw, "logFile", defaults.log_file),
        log_max_bytes=_positive_int_field(raw, "logMaxBytes", defaults.log_max_bytes),
        log_max_backups=defaults.log_max_backups,
        limits=defaults.limits,
    )


def load_config(paths: Sequence[Path] | None = None) -> AppConfig:
    """Load configuration from the first existing candidate file.

    Never raises: invalid files are skipped, and with no usable file the
    default configuration is returned.
    """
    for path in paths if paths is not None else default_config_paths():
        if not path.is_file():
            continue
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            logger.debug("Config file unreadable or invalid; trying next candidate")
            continue
        if not isinstance(raw, dict):
            logger.debug("Config file is not a JSON object; trying next candidate")
            continue
        return config_from_mapping(raw)
    return AppConfig()
