"""
subforge.providers.base - Transcription provider contract and selection.

Every backend turns a 16kHz mono waveform into SRT text. The mapping from a
configured provider name to a backend class lives only in create_provider().
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from subforge.exceptions import ConfigError, OutputMissingError, ResourceNotFoundError
from subforge.io import read_text
from subforge.logging import get_logger

if TYPE_CHECKING:
    from subforge.config import SubforgeConfig

logger = get_logger(__name__)


class ProviderKind(str, Enum):
    """Closed set of transcription backends."""

    WHISPER = "whisper"
    COMMAND = "command"
    FASTER = "faster"

    @classmethod
    def parse(cls, name: str) -> ProviderKind:
        """Parse a provider name case-insensitively ("Whisper" -> WHISPER)."""
        normalized = name.strip().lower().replace("_", "-")
        aliases = {"whisper.cpp": "whisper", "whisper-cpp": "whisper", "faster-whisper": "faster"}
        normalized = aliases.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(k.value for k in cls)
            raise ConfigError(f"Unknown provider '{name}' (valid: {valid})") from None


class TranscriptionProvider(ABC):
    """A backend that converts a waveform file into subtitle text."""

    kind: ProviderKind

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable provider name."""

    @abstractmethod
    async def transcribe(self, audio_path: Path, language: str) -> str:
        """Transcribe a waveform file into SRT text.

        Args:
            audio_path: 16kHz mono PCM WAV file
            language: Target language code

        Returns:
            Subtitle document text

        Raises:
            ResourceNotFoundError: If the waveform or a provider resource is missing
            ToolNotFoundError: If the provider's executable cannot be found
            TranscriptionError: If the backend fails
            OutputMissingError: If the backend reports success without output
        """

    def validate_audio(self, audio_path: Path) -> None:
        if not audio_path.is_file():
            raise ResourceNotFoundError("Audio file", audio_path)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


def require_file(resource: str, path: Path | None) -> Path:
    """Return path if it names an existing file, else raise ResourceNotFoundError."""
    if path is None or not str(path).strip() or not path.is_file():
        raise ResourceNotFoundError(resource, path)
    return path


def new_output_stem(directory: Path) -> Path:
    """Return a unique, not-yet-existing output stem inside directory."""
    return directory / f"subforge_{uuid.uuid4().hex}"


def collect_output(candidates: list[Path], tool: str) -> str:
    """Read the first existing output file among candidates.

    Raises:
        OutputMissingError: If none of the candidates exist
    """
    for path in candidates:
        if path.is_file():
            if path != candidates[0]:
                logger.info("Found %s output at alternative path: %s", tool, path)
            return read_text(path)
    raise OutputMissingError(
        f"{tool} reported success but no subtitle file was written "
        f"(looked for: {', '.join(str(p) for p in candidates)})"
    )


def discard_outputs(paths: list[Path]) -> None:
    for path in paths:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to delete temporary output %s: %s", path, e)


def create_provider(
    config: SubforgeConfig,
    kind: ProviderKind | str | None = None,
) -> TranscriptionProvider:
    """Build the transcription provider selected by configuration.

    Args:
        config: Resolved configuration
        kind: Override for config.selected_provider

    Raises:
        ConfigError: If the provider name is unknown
    """
    if kind is None:
        kind = config.selected_provider
    if not isinstance(kind, ProviderKind):
        kind = ProviderKind.parse(kind)

    if kind is ProviderKind.WHISPER:
        from subforge.providers.whisper_cpp import WhisperCppProvider

        return WhisperCppProvider(
            model_path=config.whisper_model_path,
            executables=config.whisper_executables,
            work_dir=config.temp_dir,
        )
    if kind is ProviderKind.COMMAND:
        from subforge.providers.command import CommandProvider

        return CommandProvider(
            executables=config.command_executables,
            args_template=config.command_args,
            work_dir=config.temp_dir,
        )
    if kind is ProviderKind.FASTER:
        from subforge.providers.faster import FasterWhisperProvider

        return FasterWhisperProvider(model=config.faster_model)

    raise ConfigError(f"Provider {kind.value} is not supported")
