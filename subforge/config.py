"""
subforge.config - YAML config loading and validation.

Handles loading subforge.yaml, applying defaults, and validating all
parameters. The resolved config is passed explicitly into the pipeline and
the provider factory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from subforge.exceptions import ConfigError

CONFIG_FILENAME = "subforge.yaml"

FFMPEG_CANDIDATES = [
    "/usr/lib/jellyfin-ffmpeg/ffmpeg",
    "ffmpeg",
    "/usr/bin/ffmpeg",
]

WHISPER_CPP_CANDIDATES = ["whisper-cli", "main", "whisper"]

VIDEO_EXTENSIONS = [".mkv", ".mp4", ".m4v", ".avi", ".mov", ".webm", ".ts", ".wmv"]


class SubforgeConfig(BaseModel):
    """Resolved configuration for subtitle generation."""

    selected_provider: str = "whisper"
    default_language: str = "en"

    whisper_model_path: Path | None = None
    whisper_executables: list[str] = Field(default_factory=lambda: list(WHISPER_CPP_CANDIDATES))

    command_executables: list[str] = Field(default_factory=list)
    command_args: list[str] = Field(default_factory=list)

    faster_model: str = "medium"

    ffmpeg_executables: list[str] = Field(default_factory=lambda: list(FFMPEG_CANDIDATES))
    temp_dir: Path | None = None

    enable_auto_generation: bool = False
    enabled_libraries: list[str] = Field(default_factory=list)
    media_extensions: list[str] = Field(default_factory=lambda: list(VIDEO_EXTENSIONS))
    concurrency: int = Field(default=1, ge=1)

    config_path: Path | None = None

    @field_validator("selected_provider")
    @classmethod
    def validate_provider(cls, v: str) -> str:
        from subforge.providers.base import ProviderKind

        try:
            return ProviderKind.parse(v).value
        except ConfigError as e:
            raise ValueError(str(e)) from e

    @field_validator("whisper_model_path", "temp_dir", mode="before")
    @classmethod
    def blank_path_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("default_language")
    @classmethod
    def validate_language(cls, v: str) -> str:
        v = v.strip()
        if not v or not v.replace("-", "").isalpha():
            raise ValueError("default_language must be a language code such as 'en'")
        return v

    @field_validator("ffmpeg_executables", "whisper_executables")
    @classmethod
    def validate_candidates(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("at least one executable candidate is required")
        return v

    @field_validator("media_extensions")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in v]


def find_config(start: Path | None = None) -> Path | None:
    """Find subforge.yaml by walking up from start (default: cwd)."""
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        if current == current.parent:
            return None
        current = current.parent


def load_config(path: Path | None = None) -> SubforgeConfig:
    """Load and validate configuration.

    Args:
        path: Explicit config file; when None, subforge.yaml is searched for
            from the current directory upwards and defaults are used if none
            is found.

    Raises:
        ConfigError: If the file is missing, unreadable, or invalid
    """
    if path is None:
        path = find_config()
        if path is None:
            return SubforgeConfig()
    elif not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigError(f"{path} must contain a mapping")

    raw_config["config_path"] = path
    try:
        return SubforgeConfig(**raw_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def create_default_config(
    provider: str = "whisper",
    model_path: str | None = None,
) -> dict[str, Any]:
    """Create a default config dict for a new installation."""
    return {
        "selected_provider": provider,
        "default_language": "en",
        "whisper_model_path": model_path or "",
        "whisper_executables": list(WHISPER_CPP_CANDIDATES),
        "ffmpeg_executables": list(FFMPEG_CANDIDATES),
        "enable_auto_generation": False,
        "enabled_libraries": [],
        "concurrency": 1,
    }


def write_config(config: dict[str, Any], path: Path) -> None:
    """Write configuration to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)
