"""
subforge.extract - Audio extraction from media files.

Pipeline Stage 1: Produce the 16kHz mono 16-bit PCM WAV that every
transcription provider consumes.
"""

from __future__ import annotations

from subforge.extract.audio import build_ffmpeg_args, extract_audio, format_size

__all__ = ["build_ffmpeg_args", "extract_audio", "format_size"]
