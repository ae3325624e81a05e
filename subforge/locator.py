"""
subforge.locator - Executable discovery.

Probes candidate names/paths for an external tool and returns the first one
that actually runs. Results are never cached.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Collection, Sequence

from subforge.exceptions import ToolNotFoundError
from subforge.logging import get_logger
from subforge.process import terminate

logger = get_logger(__name__)

PROBE_TIMEOUT = 1.0


async def probe_executable(
    candidate: str,
    probe_args: Sequence[str],
    ok_codes: Collection[int] = (0, 1),
    timeout: float = PROBE_TIMEOUT,
) -> bool:
    """Check whether a single candidate runs and exits with an accepted code."""
    try:
        proc = await asyncio.create_subprocess_exec(
            candidate,
            *probe_args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
            start_new_session=os.name == "posix",
        )
    except OSError as e:
        logger.debug("Probe %s: not runnable (%s)", candidate, e)
        return False

    try:
        returncode = await asyncio.wait_for(proc.wait(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.debug("Probe %s: no answer within %.1fs", candidate, timeout)
        await terminate(proc)
        return False
    except BaseException:
        await terminate(proc)
        raise

    if returncode in ok_codes:
        return True
    logger.debug("Probe %s: exited with %d", candidate, returncode)
    return False


async def locate_executable(
    candidates: Sequence[str],
    probe_args: Sequence[str] = ("--help",),
    ok_codes: Collection[int] = (0, 1),
    timeout: float = PROBE_TIMEOUT,
) -> str | None:
    """Return the first candidate that responds to a probe invocation.

    Args:
        candidates: Executable names or paths, in preference order
        probe_args: Harmless arguments such as --help or -version
        ok_codes: Exit codes counted as a successful probe (help screens
            frequently exit with 1)
        timeout: Per-candidate probe timeout in seconds

    Returns:
        The responding candidate, or None
    """
    for candidate in candidates:
        if await probe_executable(candidate, probe_args, ok_codes, timeout):
            logger.info("Found executable: %s", candidate)
            return candidate
    return None


async def require_executable(
    tool: str,
    candidates: Sequence[str],
    probe_args: Sequence[str] = ("--help",),
    ok_codes: Collection[int] = (0, 1),
    timeout: float = PROBE_TIMEOUT,
) -> str:
    """Like locate_executable but raises ToolNotFoundError when nothing responds."""
    found = await locate_executable(candidates, probe_args, ok_codes, timeout)
    if found is None:
        raise ToolNotFoundError(tool, candidates)
    return found
