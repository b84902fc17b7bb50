"""Shell executor tests."""

from __future__ import annotations

import time

import pytest
from safe_fetch.config import LimitsConfig
from safe_fetch.executor import STDERR_SEPARATOR, ExecResult, run_command


@pytest.mark.asyncio
async def test_captures_stdout_and_exit_code() -> None:
    result = await run_command("echo hello world", timeout_ms=10_000, limits=LimitsConfig())
    assert result.stdout == "hello world\n"
    assert result.stderr == ""
    assert result.exit_code == 0
    assert result.timed_out is False


@pytest.mark.asyncio
async def test_non_zero_exit_and_stderr() -> None:
    result = await run_command("echo out; echo err 1>&2; exit 3", timeout_ms=10_000, limits=LimitsConfig())
    assert result.exit_code == 3
    assert result.combined == f"out\n{STDERR_SEPARATOR}err\n"


@pytest.mark.asyncio
async def test_timeout_kills_process() -> None:
    result = await run_command("sleep 5", timeout_ms=100, limits=LimitsConfig())
    assert result.timed_out is True
    assert result.exit_code != 0


@pytest.mark.asyncio
async def test_output_is_capped() -> None:
    result = await run_command(
        "printf 'abcdefghij'", timeout_ms=10_000, limits=LimitsConfig(exec_max_output_bytes=4)
    )
    assert result.stdout == "abcd\n[output truncated]"


def test_combined_without_stderr() -> None:
    assert ExecResult(stdout="a", stderr="", exit_code=0).combined == "a"


@pytest.mark.asyncio
async def test_timeout_kills_shell_children() -> None:
    start = time.monotonic()
    result = await run_command("sleep 6; echo done", timeout_ms=300, limits=LimitsConfig())
    assert time.monotonic() - start < 3
    assert result.timed_out is True
    assert "done" not in result.stdout
