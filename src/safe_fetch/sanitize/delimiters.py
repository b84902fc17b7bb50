"""Removal of fake chat-protocol delimiters and configured literal patterns."""

from __future__ import annotations

import re
from typing import Iterable

from .stats import StageResult

# Built-in delimiter table. Every match is deleted (not replaced).
LLM_DELIMITER_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (name, re.compile(pattern, re.IGNORECASE))
    for name, pattern in (
        ("chatml_im_start", r"<\|im_start\|>"),
        ("chatml_im_end", r"<\|im_end\|>"),
        ("role_system", r"<\|system\|>"),
        ("role_user", r"<\|user\|>"),
        ("role_assistant", r"<\|assistant\|>"),
        ("endoftext", r"<\|endoftext\|>"),
        ("pad", r"<\|pad\|>"),
        ("inst_open", r"\\?\[INST\\?\]"),
        ("inst_close", r"\\?\[\\?/INST\\?\]"),
        ("sys_open", r"<<SYS>>"),
        ("sys_close", r"<<\\?/SYS>>"),
        ("turn_human", r"\n\nHuman:"),
        ("turn_assistant", r"\n\nAssistant:"),
    )
)


def _strip_until_stable(text: str, patterns: Iterable[re.Pattern[str]]) -> tuple[str, int]:
    # Repeat until stable so that removing one match cannot join the halves
    # of another (e.g. "<|im_<|pad|>start|>").
    patterns = list(patterns)
    total = 0
    while True:
        removed = 0
        for pattern in patterns:
            text, n = pattern.subn("", text)
            removed += n
        if removed == 0:
            return text, total
        total += removed


def _strip_delimiters(text: str) -> tuple[str, int]:
    return _strip_until_stable(text, (pattern for _, pattern in LLM_DELIMITER_PATTERNS))


def compile_custom_patterns(literals: Iterable[str]) -> list[re.Pattern[str]]:
    """Compile configured literals as case-insensitive verbatim matchers."""
    return [re.compile(re.escape(literal), re.IGNORECASE) for literal in literals if literal]


def sanitize_delimiters(text: str, custom_patterns: Iterable[str] = ()) -> StageResult:
    """Delete built-in delimiters and configured literals.

    Both passes alternate until neither removes anything, since deleting a
    custom literal can re-form a built-in delimiter.
    """
    compiled = compile_custom_patterns(custom_patterns)
    result = text
    delimiters = custom = 0
    while True:
        result, removed = _strip_delimiters(result)
        delimiters += removed
        result, removed = _strip_until_stable(result, compiled)
        custom += removed
        if removed == 0:
            return StageResult(
                text=result,
                stats={"llm_delimiters": delimiters, "custom_patterns": custom},
            )
