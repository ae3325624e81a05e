"""
subforge.validation - Dependency checks and environment validation.

Backs the ``subforge doctor`` command: locates the external tools the
configured pipeline needs and checks provider resources before any media is
processed.
"""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path
from typing import Any

from subforge.config import SubforgeConfig
from subforge.exceptions import DependencyError, ValidationError
from subforge.locator import locate_executable
from subforge.process import run_process
from subforge.providers.base import ProviderKind


async def check_ffmpeg(config: SubforgeConfig) -> dict[str, str]:
    """Locate FFmpeg among the configured candidates and get its version.

    Returns:
        Dict with 'executable' and 'version'

    Raises:
        DependencyError: If no candidate responds
    """
    ffmpeg = await locate_executable(
        config.ffmpeg_executables, probe_args=("-version",), ok_codes=(0,)
    )
    if not ffmpeg:
        raise DependencyError(
            "ffmpeg",
            f"FFmpeg not found (tried: {', '.join(config.ffmpeg_executables)})",
            "Install with: brew install ffmpeg (macOS) or apt install ffmpeg (Linux)",
        )

    proc = await run_process(ffmpeg, ["-version"])
    version_line = proc.stdout.split("\n")[0]
    parts = version_line.split()
    version = parts[2] if len(parts) > 2 else "unknown"
    return {"executable": ffmpeg, "version": version}


async def check_transcriber(config: SubforgeConfig) -> dict[str, Any]:
    """Check the executable and resources of the selected provider.

    Returns:
        Dict with 'provider', 'executable' and 'model'

    Raises:
        DependencyError: If the provider cannot run in this environment
    """
    kind = ProviderKind.parse(config.selected_provider)
    result: dict[str, Any] = {"provider": kind.value, "executable": None, "model": None}

    if kind is ProviderKind.WHISPER:
        executable = await locate_executable(config.whisper_executables)
        if not executable:
            raise DependencyError(
                "whisper.cpp",
                f"Whisper executable not found (tried: {', '.join(config.whisper_executables)})",
                "Build whisper.cpp and put 'whisper-cli' on PATH",
            )
        result["executable"] = executable
        result["model"] = str(check_model_file(config.whisper_model_path))

    elif kind is ProviderKind.COMMAND:
        if not config.command_executables:
            raise DependencyError("command", "command_executables is empty in subforge.yaml")
        executable = await locate_executable(config.command_executables)
        if not executable:
            raise DependencyError(
                "command",
                f"No command executable responded (tried: {', '.join(config.command_executables)})",
            )
        result["executable"] = executable

    elif kind is ProviderKind.FASTER:
        try:
            import faster_whisper  # noqa: F401
        except ImportError as e:
            raise DependencyError(
                "faster-whisper",
                "faster-whisper not installed",
                "Install with: pip install subforge[faster]",
            ) from e
        result["model"] = config.faster_model

    return result


def check_model_file(model_path: Path | None) -> Path:
    """Validate that a model file is configured and exists.

    Raises:
        DependencyError: If the model is missing
    """
    if model_path is None:
        raise DependencyError(
            "whisper model",
            "whisper_model_path is not set",
            "Download a ggml model and set whisper_model_path in subforge.yaml",
        )
    if not model_path.is_file():
        raise DependencyError("whisper model", f"Model file not found: {model_path}")
    return model_path


def check_disk_space(path: Path, required_mb: int) -> dict[str, Any]:
    """Check if there's enough disk space at the given path.

    Args:
        path: Path to check (will use parent directory if file)
        required_mb: Required space in megabytes

    Returns:
        Dict with 'available_mb', 'required_mb', 'sufficient'

    Raises:
        ValidationError: If path doesn't exist
    """
    check_path = path.parent if path.is_file() else path

    if not check_path.exists():
        check_path = check_path.parent

    try:
        stat = shutil.disk_usage(check_path)
        available_mb = stat.free // (1024 * 1024)

        return {
            "available_mb": available_mb,
            "required_mb": required_mb,
            "sufficient": available_mb >= required_mb,
        }
    except OSError as e:
        raise ValidationError(f"Cannot check disk space: {e}") from e


def estimate_audio_size(duration_seconds: float, sample_rate: int = 16000) -> int:
    """Estimate WAV file size in MB for given duration.

    Args:
        duration_seconds: Audio duration in seconds
        sample_rate: Sample rate (default 16000 for 16kHz mono)

    Returns:
        Estimated size in megabytes
    """
    bytes_per_sample = 2
    channels = 1
    bytes_per_second = sample_rate * channels * bytes_per_sample
    total_bytes = int(duration_seconds * bytes_per_second)
    return total_bytes // (1024 * 1024)


async def run_preflight_checks(config: SubforgeConfig) -> dict[str, Any]:
    """Run all checks needed before starting the pipeline.

    Returns:
        Dict with 'passed' and per-check results
    """
    results: dict[str, Any] = {"passed": True, "checks": {}}

    try:
        results["checks"]["ffmpeg"] = await check_ffmpeg(config)
    except DependencyError as e:
        results["checks"]["ffmpeg"] = {"error": str(e), "install_hint": e.install_hint}
        results["passed"] = False

    try:
        results["checks"]["transcriber"] = await check_transcriber(config)
    except DependencyError as e:
        results["checks"]["transcriber"] = {"error": str(e), "install_hint": e.install_hint}
        results["passed"] = False

    work_dir = config.temp_dir or Path(tempfile.gettempdir())
    try:
        disk = check_disk_space(work_dir, estimate_audio_size(4 * 3600))
        results["checks"]["disk_space"] = disk
        if not disk["sufficient"]:
            results["passed"] = False
    except ValidationError as e:
        results["checks"]["disk_space"] = {"error": str(e)}
        results["passed"] = False

    return results
