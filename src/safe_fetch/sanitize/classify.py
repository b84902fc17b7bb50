"""Decide whether content goes through the HTML or the text-only pipeline."""

from __future__ import annotations

import re

HTML_EXTENSIONS = frozenset({".html", ".htm", ".xhtml", ".svg"})

_HTML_PREFIX_RE = re.compile(r"^\s*<(?:!DOCTYPE|html)\b", re.IGNORECASE)

_HTML_MEDIA_TYPES = frozenset({"text/html", "application/xhtml+xml"})


def looks_like_html(content: str, path: str | None = None) -> bool:
    """Return True if ``content`` should be parsed as HTML.

    A known HTML extension on ``path`` wins regardless of content; otherwise
    only a leading doctype or ``<html>`` tag counts.
    """
    if path:
        dot = path.rfind(".")
        if dot != -1 and path[dot:].lower() in HTML_EXTENSIONS:
            return True
    return bool(_HTML_PREFIX_RE.match(content))


def content_type_is_html(content_type: str | None) -> bool:
    """Return True for a declared HTML media type (parameters ignored)."""
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type in _HTML_MEDIA_TYPES
