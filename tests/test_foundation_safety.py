"""Safety helper coverage."""

from __future__ import annotations

import pytest
from safe_fetch.errors import SafeError
from safe_fetch.safety import clamp_timeout_ms, enforce_max_bytes, looks_binary, truncate_bytes


def test_looks_binary() -> None:
    assert looks_binary(b"abc\0def")
    assert not looks_binary("plain text \u00e9".encode())
    assert not looks_binary(b"")


def test_enforce_max_bytes() -> None:
    enforce_max_bytes(size=10, max_bytes=10, what="File")
    with pytest.raises(SafeError) as exc_info:
        enforce_max_bytes(size=11, max_bytes=10, what="File")
    assert exc_info.value.code == "UserInput"
    assert exc_info.value.message == "File exceeds size limit"


def test_clamp_timeout_ms() -> None:
    assert clamp_timeout_ms(None, default=120_000, maximum=600_000) == 120_000
    assert clamp_timeout_ms(5_000, default=120_000, maximum=600_000) == 5_000
    assert clamp_timeout_ms(999_999, default=120_000, maximum=600_000) == 600_000
    with pytest.raises(SafeError):
        clamp_timeout_ms(0, default=120_000, maximum=600_000)


def test_truncate_bytes() -> None:
    assert truncate_bytes(b"abc", 5) == (b"abc", False)
    assert truncate_bytes(b"abcdef", 3) == (b"abc", True)
