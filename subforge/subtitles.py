"""
subforge.subtitles - Sidecar naming and SRT helpers.

Generated subtitles live beside the media file as
``<media-stem>.<language>.generated.srt`` so media servers pick them up as
an external track while keeping them distinguishable from hand-made ones.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path
from typing import Any

GENERATED_MARKER = "generated"
SUBTITLE_EXTENSION = "srt"

_TIMING_LINE = re.compile(
    r"^\s*\d{1,2}:\d{2}:\d{2}[,.]\d{3}\s*-->\s*\d{1,2}:\d{2}:\d{2}[,.]\d{3}"
)


def sidecar_path(media_path: Path, language: str, extension: str = SUBTITLE_EXTENSION) -> Path:
    """Derive the generated-subtitle path for a media file.

    Args:
        media_path: Source media file
        language: Language code
        extension: Subtitle format extension

    Returns:
        ``<media path without extension>.<language>.generated.<extension>``
    """
    stem = media_path.with_suffix("")
    return stem.with_name(f"{stem.name}.{language}.{GENERATED_MARKER}.{extension}")


def format_srt_timestamp(seconds: float) -> str:
    """Convert seconds to an SRT timestamp (HH:MM:SS,mmm)."""
    total_ms = max(0, round(seconds * 1000))
    hh = total_ms // 3_600_000
    mm = (total_ms // 60_000) % 60
    ss = (total_ms // 1000) % 60
    ms = total_ms % 1000
    return f"{hh:02d}:{mm:02d}:{ss:02d},{ms:03d}"


def render_srt(segments: Iterable[dict[str, Any]]) -> str:
    """Render timed text segments as an SRT document.

    Segments are dicts with 'start', 'end' (seconds) and 'text'. Segments
    with empty text are dropped and the remaining entries numbered from 1.
    """
    blocks = []
    index = 0
    for seg in segments:
        text = str(seg.get("text", "")).strip()
        if not text:
            continue
        index += 1
        start = format_srt_timestamp(seg.get("start", 0))
        end = format_srt_timestamp(seg.get("end", 0))
        blocks.append(f"{index}\n{start} --> {end}\n{text}\n")
    return "\n".join(blocks)


def count_entries(content: str) -> int:
    """Count the caption entries in an SRT document."""
    return sum(1 for line in content.splitlines() if _TIMING_LINE.match(line))
