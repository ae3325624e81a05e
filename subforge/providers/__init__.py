"""
subforge.providers - Transcription backends.

Pipeline Stage 2: Turn the extracted waveform into SRT text using
whisper.cpp (default), a configured command, or faster-whisper.
"""

from __future__ import annotations

from subforge.providers.base import ProviderKind, TranscriptionProvider, create_provider

__all__ = ["ProviderKind", "TranscriptionProvider", "create_provider"]
