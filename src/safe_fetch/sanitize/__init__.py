"""Prompt-injection sanitization pipeline."""

from .classify import content_type_is_html, looks_like_html
from .pipeline import sanitize, sanitize_auto, sanitize_text
from .stats import (PipelineResult, PipelineStats, StatsAggregator,
                    format_session, format_summary)

__all__ = [
    "PipelineResult",
    "PipelineStats",
    "StatsAggregator",
    "content_type_is_html",
    "format_session",
    "format_summary",
    "looks_like_html",
    "sanitize",
    "sanitize_auto",
    "sanitize_text",
]
