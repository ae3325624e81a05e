"""Tests for subforge.process module."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

import pytest
from conftest import FFMPEG_PROGRESS, process_alive

from subforge.exceptions import ToolNotFoundError
from subforge.process import run_process, terminate


class TestRunProcess:
    def test_captures_stdout_stderr_and_exit_code(self, make_tool) -> None:
        tool = make_tool("talker", '#!/bin/sh\necho "to stdout"\necho "to stderr" >&2\nexit 4\n')

        result = asyncio.run(run_process(tool, []))

        assert result.returncode == 4
        assert result.ok is False
        assert result.stdout == "to stdout\n"
        assert result.stderr == "to stderr\n"

    def test_passes_arguments_without_shell(self, make_tool) -> None:
        tool = make_tool("echoer", '#!/bin/sh\nfor a in "$@"; do echo "[$a]"; done\n')

        result = asyncio.run(run_process(tool, ["two words", "$HOME", "-y"]))

        assert result.ok
        assert result.stdout.splitlines() == ["[two words]", "[$HOME]", "[-y]"]

    def test_large_output_on_both_pipes_does_not_deadlock(self, make_tool) -> None:
        body = (
            "#!/bin/sh\n"
            "i=0\n"
            "while [ $i -lt 20000 ]; do\n"
            '  echo "stdout line $i"\n'
            '  echo "stderr line $i" >&2\n'
            "  i=$((i+1))\n"
            "done\n"
        )
        tool = make_tool("chatty", body)

        result = asyncio.run(asyncio.wait_for(run_process(tool, []), timeout=60))

        assert result.ok
        assert len(result.stdout.splitlines()) == 20000
        assert len(result.stderr.splitlines()) == 20000

    def test_missing_executable_raises_tool_not_found(self, tmp_path: Path) -> None:
        with pytest.raises(ToolNotFoundError):
            asyncio.run(run_process(str(tmp_path / "does-not-exist"), []))

    def test_cancellation_kills_the_process(self, hang_tool) -> None:
        tool, pid_file = hang_tool("sleeper", "--probe")

        async def scenario() -> int:
            task = asyncio.create_task(run_process(tool, []))
            while not pid_file.exists() or not pid_file.read_text().strip():
                await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            return int(pid_file.read_text())

        pid = asyncio.run(asyncio.wait_for(scenario(), timeout=20))

        assert not process_alive(pid)

    def test_cancellation_is_logged_at_info(self, hang_tool, caplog) -> None:
        tool, pid_file = hang_tool("sleeper", "--probe")

        async def scenario() -> None:
            task = asyncio.create_task(run_process(tool, [], label="sleeper"))
            while not pid_file.exists() or not pid_file.read_text().strip():
                await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        with caplog.at_level(logging.INFO, logger="subforge"):
            asyncio.run(asyncio.wait_for(scenario(), timeout=20))

        cancelled = [r for r in caplog.records if r.getMessage().startswith("Cancelled sleeper")]
        assert len(cancelled) == 1
        assert cancelled[0].levelno == logging.INFO


class TestCarriageReturnOutput:
    def test_long_output_without_newlines(self, make_tool, tmp_path: Path) -> None:
        tool = make_tool("ffmpeg", FFMPEG_PROGRESS)
        out = str(tmp_path / "out.wav")

        result = asyncio.run(asyncio.wait_for(run_process(tool, [out]), timeout=60))

        assert result.ok
        assert len(result.stderr) > 65536
        assert result.stderr.count("\r") == 1500

    def test_carriage_returns_split_logged_lines(self, make_tool, caplog) -> None:
        tool = make_tool("progress", "#!/bin/sh\nprintf 'one\\rtwo\\nthree' >&2\n")

        with caplog.at_level(logging.DEBUG, logger="subforge"):
            result = asyncio.run(run_process(tool, [], label="progress"))

        assert result.stderr == "one\rtwo\nthree"
        logged = [
            r.getMessage() for r in caplog.records if r.getMessage().startswith("progress: ")
        ]
        assert logged == ["progress: one", "progress: two", "progress: three"]


class TestTerminate:
    def test_finished_process_is_not_signalled(self, make_tool, monkeypatch) -> None:
        tool = make_tool("quick", "#!/bin/sh\nexit 0\n")
        signalled: list[int] = []
        monkeypatch.setattr(os, "killpg", lambda pid, sig: signalled.append(pid))

        async def scenario() -> int | None:
            proc = await asyncio.create_subprocess_exec(tool)
            await proc.wait()
            await terminate(proc)
            return proc.returncode

        assert asyncio.run(scenario()) == 0
        assert signalled == []
