"""Shell command execution for the ``safe_exec`` tool."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from dataclasses import dataclass

from .config import LimitsConfig
from .errors import SafeError
from .safety import truncate_bytes

logger = logging.getLogger(__name__)

STDERR_SEPARATOR = "\n--- stderr ---\n"


@dataclass(frozen=True, slots=True)
class ExecResult:
    """Captured output of one command."""

    stdout: str
    stderr: str
    exit_code: int
    timed_out: bool = False

    @property
    def combined(self) -> str:
        if self.stderr:
            return f"{self.stdout}{STDERR_SEPARATOR}{self.stderr}"
        return self.stdout


def _decode(data: bytes, max_bytes: int) -> str:
    capped, truncated = truncate_bytes(data, max_bytes)
    text = capped.decode("utf-8", errors="replace")
    return text + "\n[output truncated]" if truncated else text


def _kill_process_group(proc: asyncio.subprocess.Process) -> None:
    # Children of the shell hold the output pipes; kill the whole session.
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


async def run_command(command: str, *, timeout_ms: int, limits: LimitsConfig) -> ExecResult:
    """Run ``command`` through the shell, killing it when the timeout expires.

    Raises:
        SafeError: If the process cannot be started.
    """
    try:
        proc = await asyncio.create_subprocess_shell(
            command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=True,
        )
    except OSError as exc:
        raise SafeError(code="Exec", message="Failed to start command") from exc

    timed_out = False
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout_ms / 1000)
    except asyncio.TimeoutError:
        timed_out = True
        _kill_process_group(proc)
        stdout, stderr = await proc.communicate()
        logger.warning("Command timed out after %sms", timeout_ms)

    exit_code = proc.returncode if proc.returncode is not None else 1
    return ExecResult(
        stdout=_decode(stdout or b"", limits.exec_max_output_bytes),
        stderr=_decode(stderr or b"", limits.exec_max_output_bytes),
        exit_code=exit_code,
        timed_out=timed_out,
    )
