"""
subforge.logging - Centralized logging configuration.

Every module logs through a child of the "subforge" logger; external tool
output is emitted at DEBUG so it only shows up in verbose mode.
"""

from __future__ import annotations

import logging

logger = logging.getLogger("subforge")


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger for a module name."""
    if name == "subforge" or name.startswith("subforge."):
        return logging.getLogger(name)
    return logger.getChild(name)


def configure_logging(verbose: bool = False) -> None:
    """Configure logging for the subforge package.

    Args:
        verbose: If True, enable DEBUG level logging; otherwise WARNING level
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )
    logger.setLevel(level)
