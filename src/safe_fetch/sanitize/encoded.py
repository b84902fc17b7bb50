"""Detection of encoded payloads that decode to instruction-like text.

Only spans whose decoded form matches :data:`INSTRUCTION_PATTERNS` are
removed, so ordinary tokens, hashes and blobs pass through untouched.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Callable

from ..config import SanitizeConfig
from .stats import StageResult

ENCODED_PLACEHOLDER = "[encoded-removed]"
DATA_URI_PLACEHOLDER = "[data-uri-removed]"

# Ratio between base64 text length and decoded byte length (4/3, rounded up).
_BASE64_EXPANSION = 1.4

INSTRUCTION_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("override", re.compile(r"\b(?:ignore|forget|disregard|override)", re.IGNORECASE)),
    ("role_hijack", re.compile(r"\b(?:you are now|new instruction|system prompt)", re.IGNORECASE)),
    ("code_exec", re.compile(r"\b(?:execute|eval\s*\(|import\s*\(|require\s*\()", re.IGNORECASE)),
    ("credentials", re.compile(r"\b(?:api.?key|password|secret)", re.IGNORECASE)),
    ("shell", re.compile(r"\b(?:curl\s|wget\s|rm\s+-|sudo\s)", re.IGNORECASE)),
)

_DATA_URI_RE = re.compile(r"data:text/[^;]*;base64,[A-Za-z0-9+/=]+", re.IGNORECASE)
_BASE64_RE = re.compile(r"[A-Za-z0-9+/]{40,}={0,2}")
_HEX_RE = re.compile(r"(?:(?:0x|\\x)?[0-9a-f]{2}[\s,;]?){20,}", re.IGNORECASE)
_HEX_PREFIX_RE = re.compile(r"0x|\\x", re.IGNORECASE)
_NON_HEX_RE = re.compile(r"[^0-9a-f]", re.IGNORECASE)


def looks_like_instruction(decoded: str) -> bool:
    """Return True if decoded text matches any instruction-intent pattern."""
    return any(pattern.search(decoded) for _, pattern in INSTRUCTION_PATTERNS)


def decode_base64(candidate: str) -> str | None:
    """Leniently decode a base64 run; None when it is not valid base64."""
    stripped = candidate.rstrip("=")
    if len(stripped) % 4 == 1:
        # A lone trailing character carries no full byte.
        stripped = stripped[:-1]
    padded = stripped + "=" * (-len(stripped) % 4)
    try:
        raw = base64.b64decode(padded, validate=False)
    except (binascii.Error, ValueError):
        return None
    return raw.decode("utf-8", errors="replace")


def decode_hex(candidate: str) -> str | None:
    """Decode a hex run (prefixes and separators ignored); None on odd length."""
    digits = _NON_HEX_RE.sub("", _HEX_PREFIX_RE.sub("", candidate))
    try:
        raw = bytes.fromhex(digits)
    except ValueError:
        return None
    return raw.decode("utf-8", errors="replace")


def _payload_replacer(decode: Callable[[str], str | None], counter: list[int],
                      max_length: int | None = None) -> Callable[[re.Match[str]], str]:
    def _replace(match: re.Match[str]) -> str:
        span = match.group(0)
        if max_length is not None and len(span) > max_length:
            return span
        decoded = decode(span)
        if decoded is not None and looks_like_instruction(decoded):
            counter[0] += 1
            return ENCODED_PLACEHOLDER
        return span

    return _replace


def sanitize_encoded(text: str, config: SanitizeConfig | None = None) -> StageResult:
    """Neutralize text data URIs and instruction-bearing base64/hex spans.

    Data URIs go first: their payload is itself base64 and must be removed
    whole before the generic base64 pass could match its interior.
    """
    cfg = config or SanitizeConfig()
    result = text

    data_uris = 0
    if not cfg.allow_data_uris:
        result, data_uris = _DATA_URI_RE.subn(DATA_URI_PLACEHOLDER, result)

    base64_hits = [0]
    result = _BASE64_RE.sub(
        _payload_replacer(
            decode_base64,
            base64_hits,
            max_length=int(cfg.max_base64_decode_length * _BASE64_EXPANSION),
        ),
        result,
    )

    hex_hits = [0]
    result = _HEX_RE.sub(_payload_replacer(decode_hex, hex_hits), result)

    return StageResult(
        text=result,
        stats={
            "data_uris": data_uris,
            "base64_payloads": base64_hits[0],
            "hex_payloads": hex_hits[0],
        },
    )
