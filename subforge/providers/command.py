"""
subforge.providers.command - Configurable command-line backend.

Wraps any transcription CLI (a remote API client or a container wrapper)
described in configuration by an executable list and an argument template.

Template placeholders:
    {audio}        input waveform path
    {language}     language code
    {output}       path the tool should write SRT to
    {output_stem}  the same path without the .srt extension

When the template references neither output placeholder, the tool's stdout
is taken as the subtitle document.
"""

from __future__ import annotations

import string
import tempfile
from collections.abc import Sequence
from pathlib import Path

from subforge.exceptions import ConfigError, OutputMissingError, TranscriptionError
from subforge.locator import require_executable
from subforge.logging import get_logger
from subforge.process import run_process
from subforge.providers.base import (
    ProviderKind,
    TranscriptionProvider,
    collect_output,
    discard_outputs,
    new_output_stem,
)

logger = get_logger(__name__)

PLACEHOLDERS = {"audio", "language", "output", "output_stem"}


def template_fields(args_template: Sequence[str]) -> set[str]:
    """Return the placeholder names used by an argument template."""
    fields = set()
    for arg in args_template:
        for _, field, _, _ in string.Formatter().parse(arg):
            if field is not None:
                fields.add(field)
    return fields


class CommandProvider(TranscriptionProvider):
    """Transcribe by running a configured external command."""

    kind = ProviderKind.COMMAND

    def __init__(
        self,
        executables: Sequence[str],
        args_template: Sequence[str],
        work_dir: Path | None = None,
        display_name: str = "Command",
    ) -> None:
        unknown = template_fields(args_template) - PLACEHOLDERS
        if unknown:
            raise ConfigError(
                f"Unknown placeholder(s) in command_args: {', '.join(sorted(unknown))}"
            )
        self.executables = list(executables)
        self.args_template = list(args_template)
        self.work_dir = work_dir
        self.display_name = display_name

    @property
    def name(self) -> str:
        return self.display_name

    @property
    def writes_file(self) -> bool:
        return bool(template_fields(self.args_template) & {"output", "output_stem"})

    def build_args(self, audio_path: Path, language: str, output_stem: Path) -> list[str]:
        values = {
            "audio": str(audio_path),
            "language": language,
            "output": str(output_stem.with_suffix(".srt")),
            "output_stem": str(output_stem),
        }
        return [arg.format(**values) for arg in self.args_template]

    async def transcribe(self, audio_path: Path, language: str) -> str:
        if not self.executables:
            raise ConfigError("command provider selected but command_executables is empty")
        self.validate_audio(audio_path)

        executable = await require_executable(self.name, self.executables)

        work_dir = self.work_dir or Path(tempfile.gettempdir())
        work_dir.mkdir(parents=True, exist_ok=True)
        output_stem = new_output_stem(work_dir)
        outputs = [output_stem.with_suffix(".srt")] if self.writes_file else []

        logger.info("Starting %s transcription for %s", self.name, audio_path)
        try:
            proc = await run_process(
                executable,
                self.build_args(audio_path, language, output_stem),
                label=self.name.lower(),
            )
            if not proc.ok:
                raise TranscriptionError(
                    f"{self.name} exited with code {proc.returncode}: {proc.stderr.strip()}"
                )
            if outputs:
                return collect_output(outputs, self.name)
            if not proc.stdout.strip():
                raise OutputMissingError(f"{self.name} reported success but printed no subtitles")
            return proc.stdout
        finally:
            discard_outputs(outputs)
