"""Structural stripping of a parsed HTML document.

Removes content a human reader would never see but an agent would: hidden,
off-screen and same-color elements, executable/metadata tags and comments.
Only inline ``style`` attributes are inspected; rules in ``<style>`` blocks or
external stylesheets are not evaluated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from bs4 import BeautifulSoup, Comment, Tag

# -----------------------------------------------------------------------------
# Inline style parsing
# -----------------------------------------------------------------------------

_IMPORTANT_RE = re.compile(r"!\s*important\s*$", re.IGNORECASE)


def parse_style(style: str) -> dict[str, str]:
    """Parse an inline style into ``{property: value}`` (lowercased).

    Later declarations win, as in CSS.
    """
    declarations: dict[str, str] = {}
    for chunk in style.split(";"):
        prop, sep, value = chunk.partition(":")
        if not sep:
            continue
        prop = prop.strip().lower()
        value = _IMPORTANT_RE.sub("", value).strip().lower()
        if prop and value:
            declarations[prop] = value
    return declarations


def _style_of(tag: Tag) -> str:
    style = tag.get("style")
    return style if isinstance(style, str) else ""


# -----------------------------------------------------------------------------
# Step 1: hidden elements
# -----------------------------------------------------------------------------

_HIDDEN_STYLE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"display:\s?none", re.IGNORECASE),
    re.compile(r"visibility:\s?hidden", re.IGNORECASE),
    # opacity:0 / 0.0, but not opacity:0.5
    re.compile(r"opacity:\s?0(?![.\d]*[1-9])", re.IGNORECASE),
)


def is_hidden(tag: Tag) -> bool:
    if tag.has_attr("hidden"):
        return True
    style = _style_of(tag)
    return any(pattern.search(style) for pattern in _HIDDEN_STYLE_PATTERNS)


# -----------------------------------------------------------------------------
# Step 2: off-screen elements
# -----------------------------------------------------------------------------

_LENGTH_RE = re.compile(r"^(-?)\s*(\d+(?:\.\d+)?|\.\d+)\s*([a-z%]*)$")
_ZERO_LENGTH_RE = re.compile(r"^(?:0+(?:\.0*)?|\.0+)\s*[a-z%]*$")
_RECT_RE = re.compile(r"rect\(([^)]*)\)")
_INSET_RE = re.compile(r"inset\(\s*(\d+(?:\.\d+)?)%")

# Offsets at or beyond these magnitudes put an element well outside any
# viewport. Relative units get a smaller threshold.
_PX_OFFSCREEN = 1000.0
_RELATIVE_OFFSCREEN = 100.0
_RELATIVE_UNITS = frozenset({"em", "rem", "vw", "vh", "%"})


def _is_large_negative(value: str | None) -> bool:
    if not value:
        return False
    match = _LENGTH_RE.match(value)
    if not match or not match.group(1):
        return False
    magnitude = float(match.group(2))
    threshold = _RELATIVE_OFFSCREEN if match.group(3) in _RELATIVE_UNITS else _PX_OFFSCREEN
    return magnitude >= threshold


def _is_collapsed_rect(value: str | None) -> bool:
    if not value:
        return False
    match = _RECT_RE.search(value)
    if not match:
        return False
    parts = [p for p in re.split(r"[\s,]+", match.group(1).strip()) if p]
    if len(parts) != 4:
        return False
    numbers: list[float] = []
    for part in parts:
        length = _LENGTH_RE.match(part)
        if not length:
            return False
        number = float(length.group(2))
        numbers.append(-number if length.group(1) else number)
    top, right, bottom, left = numbers
    return bottom <= top or right <= left


def _is_full_inset(value: str | None) -> bool:
    if not value:
        return False
    match = _INSET_RE.search(value)
    return bool(match) and float(match.group(1)) >= 50.0


def is_off_screen(tag: Tag) -> bool:
    style = _style_of(tag)
    if not style:
        return False
    decls = parse_style(style)
    if decls.get("position") in ("absolute", "fixed"):
        if _is_large_negative(decls.get("left")) or _is_large_negative(decls.get("top")):
            return True
    if _is_collapsed_rect(decls.get("clip")):
        return True
    if _is_full_inset(decls.get("clip-path")):
        return True
    font_size = decls.get("font-size")
    if font_size is not None and _ZERO_LENGTH_RE.match(font_size):
        return True
    return _is_large_negative(decls.get("text-indent"))


# -----------------------------------------------------------------------------
# Step 3: same-color text
# -----------------------------------------------------------------------------

NAMED_COLORS: dict[str, str] = {
    "black": "#000000",
    "white": "#ffffff",
    "red": "#ff0000",
    "green": "#008000",
    "blue": "#0000ff",
    "yellow": "#ffff00",
    "cyan": "#00ffff",
    "aqua": "#00ffff",
    "magenta": "#ff00ff",
    "fuchsia": "#ff00ff",
    "gray": "#808080",
    "grey": "#808080",
    "silver": "#c0c0c0",
    "maroon": "#800000",
    "olive": "#808000",
    "lime": "#00ff00",
    "navy": "#000080",
    "purple": "#800080",
    "teal": "#008080",
    "orange": "#ffa500",
}

_HEX3_RE = re.compile(r"^#([0-9a-f])([0-9a-f])([0-9a-f])$")
_HEX6_RE = re.compile(r"^#[0-9a-f]{6}$")
_RGB_RE = re.compile(
    r"^rgba?\(\s*(\d+(?:\.\d+)?)\s*[,\s]\s*(\d+(?:\.\d+)?)\s*[,\s]\s*(\d+(?:\.\d+)?)"
    r"(?:\s*[,/]\s*\d*(?:\.\d+)?%?)?\s*\)$"
)
_COLOR_TOKEN_RE = re.compile(r"rgba?\([^)]*\)|#[0-9a-f]+|[a-z]+")
_URL_RE = re.compile(r"url\([^)]*\)")


def normalize_color(value: str) -> str | None:
    """Normalize a CSS color to ``#rrggbb``; None if it cannot be parsed."""
    token = value.strip().lower()
    if token in NAMED_COLORS:
        return NAMED_COLORS[token]
    match = _HEX3_RE.match(token)
    if match:
        return "#" + "".join(c * 2 for c in match.groups())
    if _HEX6_RE.match(token):
        return token
    match = _RGB_RE.match(token)
    if match:
        channels = [round(float(c)) for c in match.groups()]
        if any(c > 255 for c in channels):
            return None
        return "#" + "".join(f"{c:02x}" for c in channels)
    return None


def _background_color(decls: dict[str, str]) -> str | None:
    if "background-color" in decls:
        return normalize_color(decls["background-color"])
    background = decls.get("background")
    if not background:
        return None
    for token in _COLOR_TOKEN_RE.findall(_URL_RE.sub(" ", background)):
        color = normalize_color(token)
        if color is not None:
            return color
    return None


def is_same_color(tag: Tag) -> bool:
    style = _style_of(tag)
    if not style:
        return False
    decls = parse_style(style)
    if "color" not in decls:
        return False
    foreground = normalize_color(decls["color"])
    if foreground is None:
        return False
    return foreground == _background_color(decls)


# -----------------------------------------------------------------------------
# Pass driver
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HtmlStageResult:
    """Serialized markup after stripping, plus structural counters."""

    html: str
    stats: dict[str, int]


def _remove_matching(soup: BeautifulSoup, predicate: Callable[[Tag], bool]) -> int:
    """Decompose every top-level element matching ``predicate``.

    ``find_all`` yields elements in document order, so an ancestor is removed
    before its descendants are visited; those are skipped and not counted.
    """
    removed = 0
    for tag in soup.find_all(True):
        if tag.decomposed:
            continue
        if predicate(tag):
            tag.decompose()
            removed += 1
    return removed


def _remove_tags(soup: BeautifulSoup, name: str) -> int:
    return _remove_matching(soup, lambda tag: tag.name == name)


def _remove_comments(soup: BeautifulSoup) -> int:
    comments = soup.find_all(string=lambda s: isinstance(s, Comment))
    for comment in comments:
        comment.extract()
    return len(comments)


def strip_html(soup: BeautifulSoup) -> HtmlStageResult:
    """Strip hidden and dangerous structure from ``soup`` in place."""
    stats = {
        "hidden_elements": _remove_matching(soup, is_hidden),
        "off_screen_elements": _remove_matching(soup, is_off_screen),
        "same_color_text": _remove_matching(soup, is_same_color),
        "script_tags": _remove_tags(soup, "script"),
        "style_tags": _remove_tags(soup, "style"),
        "noscript_tags": _remove_tags(soup, "noscript"),
        "meta_tags": _remove_tags(soup, "meta") + _remove_tags(soup, "link"),
    }
    stats["html_comments"] = _remove_comments(soup)
    return HtmlStageResult(html=str(soup), stats=stats)
