"""
subforge.providers.faster - In-process faster-whisper backend.

Optional: requires ``pip install subforge[faster]``. The model runs on a
worker thread; cancelling the awaiting task abandons the result but cannot
interrupt a transcription already running inside the library.
"""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path
from typing import Any

from subforge.exceptions import DependencyError, TranscriptionError
from subforge.logging import get_logger
from subforge.providers.base import ProviderKind, TranscriptionProvider
from subforge.subtitles import render_srt

logger = get_logger(__name__)


class FasterWhisperProvider(TranscriptionProvider):
    """Transcribe with faster-whisper (CTranslate2) inside this process."""

    kind = ProviderKind.FASTER

    def __init__(self, model: str = "medium", device: str = "auto") -> None:
        self.model = model
        self.device = device
        self._model_instance: Any = None
        self._model_lock = threading.Lock()

    @property
    def name(self) -> str:
        return "faster-whisper"

    def _create_model(self) -> Any:
        try:
            from faster_whisper import WhisperModel
        except ImportError as e:
            raise DependencyError(
                "faster-whisper",
                "faster-whisper not installed",
                "Install with: pip install faster-whisper",
            ) from e

        logger.info("Loading faster-whisper model %s", self.model)
        return WhisperModel(self.model, device=self.device, compute_type="auto")

    def _load_model(self) -> Any:
        # Worker threads share one model instance.
        with self._model_lock:
            if self._model_instance is None:
                self._model_instance = self._create_model()
            return self._model_instance

    def _transcribe_sync(self, audio_path: Path, language: str) -> str:
        model = self._load_model()
        try:
            segments, info = model.transcribe(str(audio_path), language=language)
            rendered = render_srt(
                {"start": seg.start, "end": seg.end, "text": seg.text} for seg in segments
            )
        except Exception as e:
            raise TranscriptionError(f"faster-whisper transcription failed: {e}") from e

        logger.info(
            "faster-whisper finished %s (language %s, p=%.2f)",
            audio_path.name,
            info.language,
            info.language_probability,
        )
        return rendered

    async def transcribe(self, audio_path: Path, language: str) -> str:
        self.validate_audio(audio_path)
        return await asyncio.to_thread(self._transcribe_sync, audio_path, language)
