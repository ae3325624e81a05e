"""Tests for subforge.extract.audio module."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from conftest import FFMPEG_FAIL, FFMPEG_PROGRESS, FFMPEG_SILENT

from subforge.exceptions import ExtractionError, ToolNotFoundError
from subforge.extract.audio import build_ffmpeg_args, extract_audio, format_size


class TestFormatSize:
    def test_bytes(self) -> None:
        assert format_size_path(500) == "500.0 B"

    def test_kilobytes(self) -> None:
        assert format_size_path(1500) == "1.5 KB"

    def test_megabytes(self) -> None:
        assert format_size_path(1572864) == "1.5 MB"

    def test_nonexistent_file(self, tmp_path: Path) -> None:
        result = format_size(tmp_path / "nonexistent.wav")
        assert result == "-"


def format_size_path(size: int) -> str:
    """Helper to test format_size with a temp file."""
    import tempfile

    with tempfile.NamedTemporaryFile(delete=False) as f:
        f.write(b"x" * size)
        path = Path(f.name)
    try:
        return format_size(path)
    finally:
        path.unlink()


class TestBuildFfmpegArgs:
    def test_waveform_arguments(self) -> None:
        args = build_ffmpeg_args(Path("/media/movie.mkv"), Path("/tmp/out.wav"))

        assert args == [
            "-i",
            "/media/movie.mkv",
            "-vn",
            "-acodec",
            "pcm_s16le",
            "-ac",
            "1",
            "-ar",
            "16000",
            "-y",
            "/tmp/out.wav",
        ]


class TestExtractAudio:
    @pytest.mark.slow
    def test_extract_with_real_ffmpeg(self, tmp_path: Path) -> None:
        """Test extraction with a real FFmpeg install and video file."""
        pytest.skip("Requires FFmpeg and video file - run manually")

    def test_extract_writes_waveform(self, media_file: Path, work_dir: Path, ffmpeg_tool) -> None:
        output = work_dir / "out.wav"

        result = asyncio.run(extract_audio(media_file, output, [ffmpeg_tool]))

        assert result == output
        assert output.read_bytes().startswith(b"RIFF")

    def test_falls_back_to_later_candidate(
        self, tmp_path: Path, media_file: Path, work_dir: Path, ffmpeg_tool
    ) -> None:
        output = work_dir / "out.wav"
        candidates = [str(tmp_path / "jellyfin-ffmpeg"), ffmpeg_tool]

        asyncio.run(extract_audio(media_file, output, candidates))

        assert output.exists()

    def test_no_ffmpeg_raises_tool_not_found(
        self, tmp_path: Path, media_file: Path, work_dir: Path
    ) -> None:
        with pytest.raises(ToolNotFoundError):
            asyncio.run(
                extract_audio(media_file, work_dir / "out.wav", [str(tmp_path / "nope")])
            )

    def test_nonzero_exit_raises_with_stderr(
        self, media_file: Path, work_dir: Path, make_tool
    ) -> None:
        ffmpeg = make_tool("ffmpeg", FFMPEG_FAIL)

        with pytest.raises(ExtractionError) as exc_info:
            asyncio.run(extract_audio(media_file, work_dir / "out.wav", [ffmpeg]))

        assert "Invalid data found" in str(exc_info.value)

    def test_missing_output_after_success_raises(
        self, media_file: Path, work_dir: Path, make_tool
    ) -> None:
        ffmpeg = make_tool("ffmpeg", FFMPEG_SILENT)

        with pytest.raises(ExtractionError, match="wrote no audio"):
            asyncio.run(extract_audio(media_file, work_dir / "out.wav", [ffmpeg]))

    def test_long_carriage_return_progress_is_tolerated(
        self, media_file: Path, work_dir: Path, make_tool
    ) -> None:
        ffmpeg = make_tool("ffmpeg", FFMPEG_PROGRESS)

        result = asyncio.run(extract_audio(media_file, work_dir / "out.wav", [ffmpeg]))

        assert result == work_dir / "out.wav"
        assert result.read_bytes().startswith(b"RIFF")
