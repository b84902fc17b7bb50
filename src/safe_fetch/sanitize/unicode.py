"""Invisible/control character stripping and NFKC normalization."""

from __future__ import annotations

import re
import unicodedata

from .stats import StageResult

# Order matters: each class is counted against the text as it stood before
# that class was stripped.
_CHAR_CLASSES: tuple[tuple[str, re.Pattern[str]], ...] = (
    # zero-width space/non-joiner/joiner, LRM/RLM, word joiner,
    # invisible separator, BOM, soft hyphen
    ("zero_width_chars", re.compile("[\u200b-\u200f\u2060\u2063\ufeff\u00ad]")),
    ("bidi_overrides", re.compile("[\u202a-\u202e\u2066-\u2069]")),
    ("variation_selectors", re.compile("[\ufe00-\ufe0f]")),
    ("unicode_tags", re.compile("[\U000e0001-\U000e007f]")),
    # C0 controls except \t \n \r
    ("control_chars", re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f]")),
)


def sanitize_unicode(text: str) -> StageResult:
    """Strip hidden characters, then apply NFKC.

    NFKC is not counted: it re-canonicalizes (fullwidth letters, ligatures)
    rather than deleting anything.
    """
    stats: dict[str, int] = {}
    result = text
    for name, pattern in _CHAR_CLASSES:
        result, count = pattern.subn("", result)
        stats[name] = count
    result = unicodedata.normalize("NFKC", result)
    return StageResult(text=result, stats=stats)
