"""Sanitization pipelines.

``sanitize`` runs the full HTML path (structural stripping, markdown
conversion, then the text stages); ``sanitize_text`` runs only the text
stages. The caller picks the path, usually via :func:`looks_like_html`.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup
from markdownify import ATX, markdownify

from ..config import SanitizeConfig
from .classify import looks_like_html
from .delimiters import sanitize_delimiters
from .encoded import sanitize_encoded
from .exfiltration import sanitize_exfiltration
from .html import strip_html
from .stats import PipelineResult, PipelineStats, byte_length
from .unicode import sanitize_unicode

logger = logging.getLogger(__name__)

_MARKDOWN_OPTIONS = {
    "heading_style": ATX,
    "bullets": "-",
    "escape_asterisks": False,
    "escape_underscores": False,
    "escape_misc": False,
}


def html_to_markdown(html: str) -> str:
    return markdownify(html, **_MARKDOWN_OPTIONS)


def _run_text_pass(content: str, stats: PipelineStats, config: SanitizeConfig) -> str:
    # Fixed order: unicode -> encoded -> exfiltration -> delimiters.
    for stage in (
        sanitize_unicode,
        lambda text: sanitize_encoded(text, config),
        sanitize_exfiltration,
        lambda text: sanitize_delimiters(text, config.custom_patterns),
    ):
        result = stage(content)
        stats.merge(result.stats)
        content = result.text
    return content


def _run_text_stages(content: str, stats: PipelineStats, config: SanitizeConfig) -> str:
    """Repeat the text pass until it changes nothing.

    Deleting a delimiter can join the halves of an image link or an encoded
    run that the earlier stages of the same pass already skipped over.
    """
    while True:
        cleaned = _run_text_pass(content, stats, config)
        if cleaned == content:
            return cleaned
        content = cleaned


def sanitize_text(text: str, config: SanitizeConfig | None = None) -> PipelineResult:
    """Sanitize plain text; structural counters stay zero."""
    cfg = config or SanitizeConfig()
    stats = PipelineStats()
    content = _run_text_stages(text, stats, cfg)
    logger.debug("Text pipeline stripped %s", stats.nonzero())
    return PipelineResult(
        content=content,
        stats=stats,
        input_size=byte_length(text),
        output_size=byte_length(content),
    )


def sanitize(html: str, config: SanitizeConfig | None = None) -> PipelineResult:
    """Sanitize an HTML document and return cleaned markdown."""
    cfg = config or SanitizeConfig()
    stats = PipelineStats()

    soup = BeautifulSoup(html, "html.parser")
    structural = strip_html(soup)
    stats.merge(structural.stats)

    content = _run_text_stages(html_to_markdown(structural.html), stats, cfg)
    logger.debug("HTML pipeline stripped %s", stats.nonzero())
    return PipelineResult(
        content=content,
        stats=stats,
        input_size=byte_length(html),
        output_size=byte_length(content),
    )


def sanitize_auto(content: str, path: str | None = None,
                  config: SanitizeConfig | None = None) -> PipelineResult:
    """Classify ``content`` and run the matching pipeline."""
    if looks_like_html(content, path):
        return sanitize(content, config)
    return sanitize_text(content, config)
