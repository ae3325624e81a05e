"""
subforge.extract.audio - FFmpeg audio extraction.

Converts any media file to the waveform transcription expects:
video dropped, single channel, 16kHz, signed 16-bit little-endian PCM.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from subforge.config import FFMPEG_CANDIDATES
from subforge.exceptions import ExtractionError
from subforge.locator import require_executable
from subforge.logging import get_logger
from subforge.process import run_process

logger = get_logger(__name__)

SAMPLE_RATE = 16000
CHANNELS = 1
CODEC = "pcm_s16le"


def build_ffmpeg_args(source_path: Path, output_path: Path) -> list[str]:
    """Build the ffmpeg argument list for waveform extraction."""
    return [
        "-i",
        str(source_path),
        "-vn",
        "-acodec",
        CODEC,
        "-ac",
        str(CHANNELS),
        "-ar",
        str(SAMPLE_RATE),
        "-y",
        str(output_path),
    ]


async def extract_audio(
    source_path: Path,
    output_path: Path,
    candidates: Sequence[str] | None = None,
) -> Path:
    """Extract a transcription-ready waveform from a media file using FFmpeg.

    Args:
        source_path: Path to source media file
        output_path: Destination WAV path (overwritten if present)
        candidates: FFmpeg executables to probe, in order

    Returns:
        The output path

    Raises:
        ToolNotFoundError: If no FFmpeg candidate responds
        ExtractionError: If FFmpeg fails or produces no output
    """
    ffmpeg = await require_executable(
        "ffmpeg",
        candidates or FFMPEG_CANDIDATES,
        probe_args=("-version",),
        ok_codes=(0,),
    )

    output_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Extracting audio from %s to %s", source_path, output_path)

    # ffmpeg reports progress on stderr, so it stays at DEBUG.
    proc = await run_process(
        ffmpeg,
        build_ffmpeg_args(source_path, output_path),
        label="ffmpeg",
        stderr_level=logging.DEBUG,
    )
    if not proc.ok:
        raise ExtractionError(
            f"FFmpeg exited with code {proc.returncode}: {proc.stderr.strip()}"
        )

    if not output_path.exists():
        raise ExtractionError(f"FFmpeg reported success but wrote no audio: {output_path}")

    logger.info("Extracted audio to %s (%s)", output_path, format_size(output_path))
    return output_path


def format_size(path: Path) -> str:
    """Format file size in human-readable format."""
    if not path.exists():
        return "-"
    size = path.stat().st_size
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"
