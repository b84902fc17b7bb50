"""File reading for the ``safe_read`` tool.

Files are checked (existence, size, binary sniff) before their text is handed
to the sanitizer. Output is rendered ``cat -n`` style.
"""

from __future__ import annotations

from pathlib import Path

from .config import LimitsConfig
from .errors import SafeError
from .safety import enforce_max_bytes, looks_binary

MAX_LINE_CHARS = 2000


def read_text_file(path: str, limits: LimitsConfig) -> str:
    """Read a text file, rejecting missing, oversized and binary files.

    Raises:
        SafeError: NotFound, UserInput (size/binary) or Internal (I/O).
    """
    file_path = Path(path).expanduser()
    if not file_path.exists():
        raise SafeError(code="NotFound", message=f"File not found: {path}")
    if not file_path.is_file():
        raise SafeError(code="UserInput", message=f"Not a regular file: {path}")

    try:
        enforce_max_bytes(size=file_path.stat().st_size, max_bytes=limits.read_max_bytes, what="File")
        data = file_path.read_bytes()
    except OSError as exc:
        raise SafeError(code="Internal", message=f"Could not read file: {path}") from exc

    if looks_binary(data[: limits.binary_sniff_bytes]):
        raise SafeError(code="UserInput", message=f"Skipped binary file: {path}")
    return data.decode("utf-8", errors="replace")


def slice_lines(text: str, offset: int | None, limit: int | None,
                default_limit: int = 2000) -> tuple[list[str], int]:
    """Return the 1-based window of lines plus its starting line number."""
    lines = text.split("\n")
    start = max(1, offset or 1)
    count = limit if limit is not None else default_limit
    return lines[start - 1: start - 1 + count], start


def format_cat_n(lines: list[str], start: int) -> str:
    """Format lines with right-justified 6-char numbers and a tab."""
    out = []
    for number, line in enumerate(lines, start=start):
        if len(line) > MAX_LINE_CHARS:
            line = line[:MAX_LINE_CHARS] + "..."
        out.append(f"{number:>6}\t{line}")
    return "\n".join(out)
