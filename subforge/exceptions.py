"""
subforge.exceptions - Custom exception classes.

All Subforge-specific exceptions inherit from SubforgeError. Cancellation is
never wrapped: it surfaces as asyncio.CancelledError.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class SubforgeError(Exception):
    """Base exception for all Subforge errors."""

    pass


class ConfigError(SubforgeError):
    """Configuration loading or validation error."""

    pass


class ToolNotFoundError(SubforgeError):
    """No candidate executable for an external tool responded."""

    def __init__(self, tool: str, candidates: Sequence[str] = ()):
        self.tool = tool
        self.candidates = list(candidates)
        tried = ", ".join(self.candidates) if self.candidates else "none"
        super().__init__(f"{tool} executable not found (tried: {tried})")


class ResourceNotFoundError(SubforgeError):
    """A required input or provider resource is missing."""

    def __init__(self, resource: str, path: Path | str | None):
        self.resource = resource
        self.path = path
        super().__init__(f"{resource} not found: {path or '<not configured>'}")


class ExtractionError(SubforgeError):
    """Audio extraction error."""

    pass


class TranscriptionError(SubforgeError):
    """Transcription error."""

    pass


class OutputMissingError(SubforgeError):
    """A tool reported success but its output artifact is absent."""

    pass


class DependencyError(SubforgeError):
    """Required dependency missing or misconfigured."""

    def __init__(self, dependency: str, message: str, install_hint: str | None = None):
        self.dependency = dependency
        self.message = message
        self.install_hint = install_hint
        super().__init__(f"{dependency}: {message}")


class ValidationError(SubforgeError):
    """Environment or input validation error."""

    pass
