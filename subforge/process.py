"""
subforge.process - Async external process runner.

Spawns a tool, drains stdout and stderr concurrently in chunks, and reaps
the child on every exit path, including task cancellation. Output is logged
line by line, where both "\\n" and "\\r" end a line (ffmpeg redraws its
progress with carriage returns).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import re
import signal
from dataclasses import dataclass
from pathlib import Path

from subforge.exceptions import ToolNotFoundError
from subforge.logging import get_logger

logger = get_logger(__name__)

CHUNK_SIZE = 65536

_LINE_BREAK = re.compile(rb"[\r\n]")


@dataclass(frozen=True)
class ProcessResult:
    """Exit status and full captured output of a finished process."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def _log_line(label: str, line: bytes, level: int) -> None:
    if not logger.isEnabledFor(level):
        return
    text = line.decode("utf-8", errors="replace").strip()
    if text:
        logger.log(level, "%s: %s", label, text)


async def _drain(
    stream: asyncio.StreamReader,
    sink: bytearray,
    label: str,
    level: int,
) -> None:
    pending = b""
    while True:
        chunk = await stream.read(CHUNK_SIZE)
        if not chunk:
            break
        sink.extend(chunk)
        *lines, pending = _LINE_BREAK.split(pending + chunk)
        for line in lines:
            _log_line(label, line, level)
        if len(pending) > CHUNK_SIZE:
            _log_line(label, pending, level)
            pending = b""
    _log_line(label, pending, level)


async def terminate(proc: asyncio.subprocess.Process) -> None:
    """Kill a running child process and its process group, then reap it."""
    if proc.returncode is None:
        with contextlib.suppress(ProcessLookupError, PermissionError):
            if os.name == "posix":
                os.killpg(proc.pid, signal.SIGKILL)
            else:
                proc.kill()
    # Reap even while the caller is being cancelled.
    await asyncio.shield(proc.wait())


async def run_process(
    executable: str,
    args: list[str],
    label: str | None = None,
    stderr_level: int = logging.DEBUG,
) -> ProcessResult:
    """Run an external executable to completion.

    Args:
        executable: Resolved executable name or path
        args: Argument list (no shell interpretation)
        label: Prefix for logged output lines (defaults to the executable name)
        stderr_level: Log level for stderr lines

    Returns:
        ProcessResult with exit code and captured output

    Raises:
        ToolNotFoundError: If the executable cannot be started
        asyncio.CancelledError: If the awaiting task is cancelled; the child
            has been killed and reaped by then
    """
    label = label or Path(executable).name
    logger.debug("Running: %s %s", executable, " ".join(args))

    try:
        proc = await asyncio.create_subprocess_exec(
            executable,
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=os.name == "posix",
        )
    except (FileNotFoundError, PermissionError, NotADirectoryError) as e:
        raise ToolNotFoundError(label, [executable]) from e

    stdout = bytearray()
    stderr = bytearray()
    readers = asyncio.gather(
        _drain(proc.stdout, stdout, label, logging.DEBUG),
        _drain(proc.stderr, stderr, label, stderr_level),
    )

    try:
        await readers
        returncode = await proc.wait()
    except BaseException as e:
        if isinstance(e, asyncio.CancelledError):
            logger.info("Cancelled %s (pid %s), terminating", label, proc.pid)
        readers.cancel()
        await terminate(proc)
        raise

    return ProcessResult(
        returncode=returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
