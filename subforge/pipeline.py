"""
subforge.pipeline - Subtitle generation orchestrator.

One run takes a media item through
extracting_audio → transcribing → persisting → refreshing_metadata → done,
landing in failed from any stage on error. The temporary waveform is
removed on every exit path, and the sidecar file is only ever replaced by a
complete transcription.
"""

from __future__ import annotations

import asyncio
import tempfile
import uuid
from collections.abc import Iterable
from enum import Enum
from pathlib import Path
from typing import Any

from subforge.catalog import Catalog, MediaItem
from subforge.config import SubforgeConfig
from subforge.extract.audio import extract_audio
from subforge.io import remove_file, write_text
from subforge.logging import get_logger
from subforge.providers.base import TranscriptionProvider
from subforge.subtitles import count_entries, sidecar_path

logger = get_logger(__name__)


def subtitle_status(item: MediaItem, language: str) -> dict[str, Any]:
    """Report whether a generated subtitle exists for an item.

    Returns:
        Dict with item_id, language, has_generated_subtitle and subtitle_path
        (None when no generated subtitle exists)
    """
    path = sidecar_path(item.path, language) if item.path else None
    exists = path is not None and path.exists()
    return {
        "item_id": item.id,
        "language": language,
        "has_generated_subtitle": exists,
        "subtitle_path": str(path) if exists else None,
    }


class Stage(str, Enum):
    IDLE = "idle"
    EXTRACTING_AUDIO = "extracting_audio"
    TRANSCRIBING = "transcribing"
    PERSISTING = "persisting"
    REFRESHING_METADATA = "refreshing_metadata"
    DONE = "done"
    FAILED = "failed"


class PipelineRun:
    """State of a single pipeline run, for logging and inspection."""

    def __init__(self, item: MediaItem, language: str) -> None:
        self.item = item
        self.language = language
        self.stage = Stage.IDLE
        self.failed_stage: Stage | None = None
        self.audio_path: Path | None = None
        self.subtitle_path: Path | None = None

    def advance(self, stage: Stage) -> None:
        logger.debug(
            "%s [%s]: %s -> %s", self.item.name, self.item.id, self.stage.value, stage.value
        )
        self.stage = stage

    def fail(self) -> None:
        self.failed_stage = self.stage
        self.stage = Stage.FAILED


class SubtitlePipeline:
    """Generates a sidecar subtitle file for one media item at a time.

    Args:
        config: Resolved configuration (read-only)
        provider: Transcription backend to use
        catalog: Collaborator that refreshes item metadata
    """

    def __init__(
        self,
        config: SubforgeConfig,
        provider: TranscriptionProvider,
        catalog: Catalog,
    ) -> None:
        self.config = config
        self.provider = provider
        self.catalog = catalog

    def temp_audio_path(self, item: MediaItem) -> Path:
        """Unique waveform path for one run of one item."""
        work_dir = self.config.temp_dir or Path(tempfile.gettempdir())
        return work_dir / f"{item.id}_{uuid.uuid4().hex}.wav"

    async def run(self, item: MediaItem, language: str | None = None) -> Path | None:
        """Generate subtitles for a media item.

        Args:
            item: Media item to process
            language: Language code (defaults to config.default_language)

        Returns:
            Path of the written sidecar file, or None if the item was skipped
            because its media file is missing

        Raises:
            ToolNotFoundError, ResourceNotFoundError, ExtractionError,
            TranscriptionError, OutputMissingError: The run failed
            asyncio.CancelledError: The run was cancelled
        """
        language = language or self.config.default_language
        media_path = item.path

        if media_path is None or not str(media_path).strip() or not media_path.is_file():
            logger.warning("Media file not found for item %s, skipping", item.name)
            return None

        run = PipelineRun(item, language)
        run.audio_path = self.temp_audio_path(item)
        logger.info(
            "Generating %s subtitles for %s with %s", language, item.name, self.provider.name
        )

        try:
            run.advance(Stage.EXTRACTING_AUDIO)
            await extract_audio(media_path, run.audio_path, self.config.ffmpeg_executables)

            run.advance(Stage.TRANSCRIBING)
            content = await self.provider.transcribe(run.audio_path, language)

            run.advance(Stage.PERSISTING)
            run.subtitle_path = sidecar_path(media_path, language)
            write_text(run.subtitle_path, content)
            logger.info(
                "Saved subtitle to %s (%d entries)", run.subtitle_path, count_entries(content)
            )

            run.advance(Stage.REFRESHING_METADATA)
            await self.catalog.refresh_metadata(item.id)

            run.advance(Stage.DONE)
            return run.subtitle_path

        except asyncio.CancelledError:
            run.fail()
            logger.info(
                "Subtitle generation for %s cancelled during %s",
                item.name,
                run.failed_stage.value,
            )
            raise
        except Exception:
            run.fail()
            logger.exception(
                "Error generating subtitle for %s [%s] during %s",
                item.name,
                item.id,
                run.failed_stage.value,
            )
            raise
        finally:
            self._cleanup(run.audio_path)

    def _cleanup(self, audio_path: Path) -> None:
        try:
            if remove_file(audio_path):
                logger.debug("Deleted temporary audio file: %s", audio_path)
        except OSError as e:
            logger.warning("Failed to delete temporary audio file %s: %s", audio_path, e)

    def subtitle_status(self, item: MediaItem, language: str | None = None) -> dict[str, Any]:
        """Report whether a generated subtitle exists for an item."""
        return subtitle_status(item, language or self.config.default_language)

    async def generate_all(
        self,
        items: Iterable[MediaItem],
        language: str | None = None,
        force: bool = False,
        concurrency: int | None = None,
    ) -> dict[str, Any]:
        """Generate subtitles for many items.

        Items that already have a generated sidecar are skipped unless force
        is set. One item's failure does not stop the others; cancellation does.

        Args:
            items: Media items, e.g. from a catalog scan
            language: Language code (defaults to config.default_language)
            force: Regenerate existing subtitles
            concurrency: Maximum simultaneous runs (defaults to config.concurrency)

        Returns:
            Dict with generated/skipped/failed counts, errors, and outputs
        """
        language = language or self.config.default_language
        semaphore = asyncio.Semaphore(concurrency or self.config.concurrency)

        results: dict[str, Any] = {
            "generated": 0,
            "skipped": 0,
            "failed": 0,
            "errors": [],
            "outputs": {},
        }

        async def process(item: MediaItem) -> None:
            if not force and self.subtitle_status(item, language)["has_generated_subtitle"]:
                results["skipped"] += 1
                return
            async with semaphore:
                try:
                    path = await self.run(item, language)
                except Exception as e:
                    results["failed"] += 1
                    results["errors"].append(
                        {"item_id": item.id, "name": item.name, "error": str(e)}
                    )
                    return
            if path is None:
                results["skipped"] += 1
            else:
                results["generated"] += 1
                results["outputs"][item.id] = str(path)

        await asyncio.gather(*(process(item) for item in items))
        return results
