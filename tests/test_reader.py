"""File reader and cat -n formatting tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from safe_fetch.config import LimitsConfig
from safe_fetch.errors import SafeError
from safe_fetch.reader import format_cat_n, read_text_file, slice_lines


def test_format_cat_n_pads_numbers_and_uses_tab() -> None:
    assert format_cat_n(["hello", "world"], 1) == "     1\thello\n     2\tworld"


def test_format_cat_n_respects_start() -> None:
    assert format_cat_n(["a"], 10) == "    10\ta"


def test_format_cat_n_truncates_long_lines() -> None:
    out = format_cat_n(["x" * 2500], 1)
    assert out == "     1\t" + "x" * 2000 + "..."


def test_slice_lines_defaults_and_window() -> None:
    text = "a\nb\nc\nd\ne"
    assert slice_lines(text, None, None) == (["a", "b", "c", "d", "e"], 1)
    assert slice_lines(text, 3, None) == (["c", "d", "e"], 3)
    assert slice_lines(text, 2, 2) == (["b", "c"], 2)
    assert slice_lines(text, 10, None) == ([], 10)
    assert slice_lines(text, None, None, default_limit=2) == (["a", "b"], 1)


def test_read_text_file(tmp_path: Path) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("line one\nline two\n", encoding="utf-8")
    assert read_text_file(str(path), LimitsConfig()) == "line one\nline two\n"


def test_read_invalid_utf8_is_replaced(tmp_path: Path) -> None:
    path = tmp_path / "latin1.txt"
    path.write_bytes(b"caf\xe9")
    assert read_text_file(str(path), LimitsConfig()) == "caf\ufffd"


def test_read_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SafeError) as exc_info:
        read_text_file(str(tmp_path / "nope.txt"), LimitsConfig())
    assert exc_info.value.code == "NotFound"


def test_read_directory_rejected(tmp_path: Path) -> None:
    with pytest.raises(SafeError) as exc_info:
        read_text_file(str(tmp_path), LimitsConfig())
    assert exc_info.value.code == "UserInput"


def test_read_binary_file_rejected(tmp_path: Path) -> None:
    path = tmp_path / "blob.bin"
    path.write_bytes(b"\x89PNG\x00\x01\x02")
    with pytest.raises(SafeError) as exc_info:
        read_text_file(str(path), LimitsConfig())
    assert exc_info.value.message == f"Skipped binary file: {path}"


def test_read_oversized_file_rejected(tmp_path: Path) -> None:
    path = tmp_path / "big.txt"
    path.write_text("0123456789", encoding="utf-8")
    with pytest.raises(SafeError) as exc_info:
        read_text_file(str(path), LimitsConfig(read_max_bytes=5))
    assert exc_info.value.code == "UserInput"
