"""
Test configuration and shared fixtures.

External tools are replaced by small POSIX shell scripts so the real
process runner, locator, and cleanup paths are exercised end to end.
"""

from __future__ import annotations

import os
import stat
from collections.abc import Callable
from pathlib import Path

import pytest

from subforge.catalog import MediaItem
from subforge.config import SubforgeConfig

SAMPLE_SRT = """1
00:00:00,000 --> 00:00:02,500
When I was young, we went to the river.

2
00:00:02,500 --> 00:00:05,000
Every summer, without fail.

3
00:00:05,200 --> 00:00:08,000
Those were the best days.
"""

FFMPEG_OK = r"""#!/bin/sh
if [ "$1" = "-version" ]; then
  echo "ffmpeg version 6.1-test Copyright (c) 2000-2023 the FFmpeg developers"
  exit 0
fi
for last; do :; done
printf 'RIFF----WAVEfmt ' > "$last"
echo "size=       1kB time=00:00:08.00 bitrate= 256.0kbits/s" >&2
exit 0
"""

FFMPEG_PROGRESS = r"""#!/bin/sh
if [ "$1" = "-version" ]; then echo "ffmpeg version 6.1-test"; exit 0; fi
i=0
while [ $i -lt 1500 ]; do
  printf "frame=%5d fps=240 q=-0.0 size=%8dkB time=00:00:%02d.00 bitrate= 256.0kbits/s speed=12.3x\r" \
    $i $i $((i % 60)) >&2
  i=$((i+1))
done
for last; do :; done
printf "RIFF----WAVEfmt " > "$last"
exit 0
"""

FFMPEG_FAIL = r"""#!/bin/sh
if [ "$1" = "-version" ]; then echo "ffmpeg version 6.1-test"; exit 0; fi
echo "movie.mkv: Invalid data found when processing input" >&2
exit 1
"""

FFMPEG_SILENT = r"""#!/bin/sh
if [ "$1" = "-version" ]; then echo "ffmpeg version 6.1-test"; exit 0; fi
exit 0
"""

WHISPER_OK = r"""#!/bin/sh
if [ "$1" = "--help" ]; then
  echo "usage: whisper-cli [options] file0.wav file1.wav ..."
  exit 1
fi
of=""
while [ $# -gt 0 ]; do
  case "$1" in
    -of) of="$2"; shift 2 ;;
    *) shift ;;
  esac
done
cat > "$of.srt" <<'SRT'
__SRT__
SRT
echo "whisper_print_timings: total time = 1234.56 ms" >&2
exit 0
"""

WHISPER_BESIDE_INPUT = r"""#!/bin/sh
if [ "$1" = "--help" ]; then exit 0; fi
audio=""
while [ $# -gt 0 ]; do
  case "$1" in
    -f) audio="$2"; shift 2 ;;
    *) shift ;;
  esac
done
cat > "${audio%.*}.srt" <<'SRT'
__SRT__
SRT
exit 0
"""

WHISPER_FAIL = r"""#!/bin/sh
if [ "$1" = "--help" ]; then exit 0; fi
echo "error: failed to initialize whisper context" >&2
exit 3
"""

WHISPER_NO_OUTPUT = r"""#!/bin/sh
if [ "$1" = "--help" ]; then exit 0; fi
exit 0
"""


def _hang_script(probe_flag: str, pid_file: Path, touch_last_arg: bool) -> str:
    touch = 'for last; do :; done\n: > "$last"\n' if touch_last_arg else ""
    return (
        "#!/bin/sh\n"
        f'if [ "$1" = "{probe_flag}" ]; then exit 0; fi\n'
        f"{touch}"
        f'echo $$ > "{pid_file}"\n'
        "exec sleep 30\n"
    )


@pytest.fixture
def make_tool(tmp_path: Path) -> Callable[[str, str], str]:
    """Return a factory writing an executable script into tmp_path/bin."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)

    def factory(name: str, body: str) -> str:
        path = bin_dir / name
        path.write_text(body.replace("__SRT__", SAMPLE_SRT.rstrip("\n")))
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    return factory


@pytest.fixture
def hang_tool(tmp_path: Path, make_tool: Callable[[str, str], str]):
    """Return a factory for tools that block until killed, recording their pid."""

    def factory(name: str, probe_flag: str, touch_last_arg: bool = False) -> tuple[str, Path]:
        pid_file = tmp_path / f"{name}.pid"
        return make_tool(name, _hang_script(probe_flag, pid_file, touch_last_arg)), pid_file

    return factory


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def model_file(tmp_path: Path) -> Path:
    path = tmp_path / "ggml-base.en.bin"
    path.write_bytes(b"ggml model")
    return path


@pytest.fixture
def media_file(tmp_path: Path) -> Path:
    library = tmp_path / "library"
    library.mkdir()
    path = library / "movie.mkv"
    path.write_bytes(b"fake matroska content")
    return path


@pytest.fixture
def media_item(media_file: Path) -> MediaItem:
    return MediaItem(id="item-001", name="Movie", path=media_file)


@pytest.fixture
def ffmpeg_tool(make_tool: Callable[[str, str], str]) -> str:
    return make_tool("ffmpeg", FFMPEG_OK)


@pytest.fixture
def whisper_tool(make_tool: Callable[[str, str], str]) -> str:
    return make_tool("whisper-cli", WHISPER_OK)


@pytest.fixture
def config(ffmpeg_tool: str, whisper_tool: str, model_file: Path, work_dir: Path) -> SubforgeConfig:
    return SubforgeConfig(
        ffmpeg_executables=[ffmpeg_tool],
        whisper_executables=[whisper_tool],
        whisper_model_path=model_file,
        temp_dir=work_dir,
    )


def process_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


def pytest_collection_modifyitems(config, items):
    if os.name == "posix":
        return
    skip = pytest.mark.skip(reason="fake tools are POSIX shell scripts")
    for item in items:
        item.add_marker(skip)
