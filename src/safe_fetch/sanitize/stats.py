"""Statistics types shared by the sanitization stages.

Each stage reports a small ``{counter_name: count}`` mapping; the pipeline
merges those into one :class:`PipelineStats`. Cross-call totals are kept by an
explicitly owned :class:`StatsAggregator`, never in module globals.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Mapping


@dataclass(slots=True)
class PipelineStats:
    """Per-category counts of what a pipeline call removed."""

    hidden_elements: int = 0
    html_comments: int = 0
    script_tags: int = 0
    style_tags: int = 0
    noscript_tags: int = 0
    meta_tags: int = 0
    off_screen_elements: int = 0
    same_color_text: int = 0
    zero_width_chars: int = 0
    control_chars: int = 0
    bidi_overrides: int = 0
    unicode_tags: int = 0
    variation_selectors: int = 0
    base64_payloads: int = 0
    hex_payloads: int = 0
    data_uris: int = 0
    exfiltration_urls: int = 0
    llm_delimiters: int = 0
    custom_patterns: int = 0

    @classmethod
    def categories(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def merge(self, counts: Mapping[str, int]) -> None:
        """Add a stage's counts into this object.

        Raises:
            KeyError: If a stage reports an unknown category.
            ValueError: If a count is negative.
        """
        known = self.categories()
        for name, value in counts.items():
            if name not in known:
                raise KeyError(f"Unknown stat category: {name}")
            if value < 0:
                raise ValueError(f"Negative count for {name}")
            setattr(self, name, getattr(self, name) + value)

    def add(self, other: PipelineStats) -> None:
        self.merge(other.as_dict())

    def as_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in self.categories()}

    def nonzero(self) -> dict[str, int]:
        return {name: value for name, value in self.as_dict().items() if value > 0}

    def total(self) -> int:
        return sum(self.as_dict().values())


@dataclass(frozen=True, slots=True)
class StageResult:
    """Output of a text stage: the transformed text and its own counters."""

    text: str
    stats: dict[str, int]


@dataclass(frozen=True, slots=True)
class PipelineResult:
    """Final output of one pipeline call. Sizes are UTF-8 byte lengths."""

    content: str
    stats: PipelineStats
    input_size: int
    output_size: int

    @property
    def reduction_percent(self) -> float:
        if self.input_size == 0:
            return 0.0
        return round((1 - self.output_size / self.input_size) * 100, 1)


def byte_length(text: str) -> int:
    """UTF-8 byte length; lone surrogates count as their 3-byte encoding."""
    return len(text.encode("utf-8", errors="surrogatepass"))


@dataclass(slots=True)
class StatsAggregator:
    """Running totals across many pipeline calls (one per server session)."""

    requests: int = 0
    totals: PipelineStats = field(default_factory=PipelineStats)
    input_bytes: int = 0
    output_bytes: int = 0
    sources: list[str] = field(default_factory=list)

    def add(self, stats: PipelineStats) -> None:
        """Add one call's stats into the running total."""
        self.requests += 1
        self.totals.add(stats)

    def record(self, result: PipelineResult, source: str | None = None) -> None:
        """Add a whole result, including its byte counts and source label."""
        self.add(result.stats)
        self.input_bytes += result.input_size
        self.output_bytes += result.output_size
        if source:
            self.sources.append(source)

    def snapshot(self) -> dict[str, object]:
        return {
            "requests": self.requests,
            "stripped": self.totals.nonzero(),
            "input_bytes": self.input_bytes,
            "output_bytes": self.output_bytes,
            "sources": list(self.sources),
        }


# Human labels, in display order.
STAT_LABELS: dict[str, str] = {
    "hidden_elements": "hidden elements",
    "off_screen_elements": "off-screen elements",
    "same_color_text": "same-color text",
    "script_tags": "script tags",
    "style_tags": "style tags",
    "noscript_tags": "noscript tags",
    "meta_tags": "meta/link tags",
    "html_comments": "HTML comments",
    "zero_width_chars": "zero-width chars",
    "control_chars": "control chars",
    "bidi_overrides": "bidi overrides",
    "unicode_tags": "unicode tag chars",
    "variation_selectors": "variation selectors",
    "base64_payloads": "base64 payloads",
    "hex_payloads": "hex payloads",
    "data_uris": "data URIs",
    "exfiltration_urls": "exfiltration URLs",
    "llm_delimiters": "LLM delimiters",
    "custom_patterns": "custom patterns",
}


def describe_stripped(stats: PipelineStats) -> list[str]:
    """Return ``"<n> <label>"`` items for every non-zero category."""
    counts = stats.as_dict()
    return [f"{counts[name]} {label}" for name, label in STAT_LABELS.items() if counts[name] > 0]


def format_summary(
    tag: str,
    result: PipelineResult,
    *,
    clean_label: str = "Clean content",
    detail: str | None = None,
    duration_ms: int | None = None,
) -> str:
    """Render a one-line header describing what one call stripped.

    Example: ``[safe-fetch] Stripped: 2 hidden elements | 1200 → 800 bytes (15ms)``
    """
    items = describe_stripped(result.stats)
    body = f"Stripped: {', '.join(items)}" if items else clean_label
    sizes = f"{result.input_size} → {result.output_size} bytes"
    if duration_ms is not None:
        sizes += f" ({duration_ms}ms)"
    prefix = f"[{tag}] {detail} |" if detail else f"[{tag}]"
    return f"{prefix} {body} | {sizes}"


def format_session(aggregator: StatsAggregator) -> str:
    """Render session totals as a multi-line report."""
    lines = [f"Session stats ({aggregator.requests} requests):"]
    counts = aggregator.totals.as_dict()
    for name, label in STAT_LABELS.items():
        if counts[name] > 0:
            lines.append(f"  {label[0].upper()}{label[1:]} stripped: {counts[name]}")
    if aggregator.totals.total() == 0:
        lines.append("  Nothing stripped")
    lines.append(f"  Bytes: {aggregator.input_bytes} → {aggregator.output_bytes}")
    lines.append("")
    lines.append("Sources:")
    lines.extend(f"  - {source}" for source in aggregator.sources)
    return "\n".join(lines)
