"""
subforge.providers.whisper_cpp - whisper.cpp command-line backend.

Runs a locally installed whisper.cpp binary against a ggml model file and
reads back the SRT it writes.
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Sequence
from pathlib import Path

from subforge.config import WHISPER_CPP_CANDIDATES
from subforge.exceptions import TranscriptionError
from subforge.locator import require_executable
from subforge.logging import get_logger
from subforge.process import run_process
from subforge.providers.base import (
    ProviderKind,
    TranscriptionProvider,
    collect_output,
    discard_outputs,
    new_output_stem,
    require_file,
)
from subforge.subtitles import count_entries

logger = get_logger(__name__)


class WhisperCppProvider(TranscriptionProvider):
    """Transcribe with the whisper.cpp CLI (whisper-cli, main, or whisper)."""

    kind = ProviderKind.WHISPER

    def __init__(
        self,
        model_path: Path | None,
        executables: Sequence[str] | None = None,
        work_dir: Path | None = None,
    ) -> None:
        self.model_path = model_path
        self.executables = list(executables or WHISPER_CPP_CANDIDATES)
        self.work_dir = work_dir

    @property
    def name(self) -> str:
        return "Whisper"

    def build_args(
        self,
        model_path: Path,
        audio_path: Path,
        language: str,
        output_stem: Path,
    ) -> list[str]:
        """Build the whisper.cpp argument list (SRT output to output_stem.srt)."""
        return [
            "-m",
            str(model_path),
            "-f",
            str(audio_path),
            "-l",
            language,
            "-osrt",
            "-of",
            str(output_stem),
        ]

    def output_candidates(self, audio_path: Path, output_stem: Path) -> list[Path]:
        """Where the SRT may land: the requested stem, else beside the input."""
        return [output_stem.with_suffix(".srt"), audio_path.with_suffix(".srt")]

    async def transcribe(self, audio_path: Path, language: str) -> str:
        model_path = require_file("Whisper model", self.model_path)
        self.validate_audio(audio_path)

        logger.info(
            "Starting Whisper transcription for %s with model %s", audio_path, model_path
        )
        executable = await require_executable("whisper.cpp", self.executables)

        work_dir = self.work_dir or Path(tempfile.gettempdir())
        work_dir.mkdir(parents=True, exist_ok=True)
        output_stem = new_output_stem(work_dir)
        outputs = self.output_candidates(audio_path, output_stem)

        try:
            proc = await run_process(
                executable,
                self.build_args(model_path, audio_path, language, output_stem),
                label="whisper",
                stderr_level=logging.WARNING,
            )
            if not proc.ok:
                raise TranscriptionError(
                    f"Whisper exited with code {proc.returncode}: {proc.stderr.strip()}"
                )
            content = collect_output(outputs, "Whisper")
        finally:
            discard_outputs(outputs)

        logger.info("Whisper produced %d subtitle entries", count_entries(content))
        return content
