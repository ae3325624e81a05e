"""
subforge.io - Text read/write helpers, atomic file writes.

Sidecar subtitles are replaced atomically so a reader never sees a
half-written file.
"""

from __future__ import annotations

import os
import stat
import tempfile
from pathlib import Path


def read_text(path: Path) -> str:
    """Read text file with UTF-8 encoding.

    Args:
        path: Path to text file

    Returns:
        File contents as string
    """
    with open(path, encoding="utf-8") as f:
        return f.read()


def write_text(path: Path, content: str) -> None:
    """Write text file atomically.

    Writes to a temp file in the destination directory first, then replaces
    the destination so an interrupted write leaves the old file untouched.

    Args:
        path: Destination path
        content: Text content to write
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        delete=False,
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            tmp.write(content)
        except BaseException:
            tmp.close()
            tmp_path.unlink(missing_ok=True)
            raise

    try:
        os.chmod(tmp_path, _target_mode(path))
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def _target_mode(path: Path) -> int:
    """Permission bits for a file about to be written at path.

    An existing file keeps its mode; a new one gets what open() would give it
    under the current umask.
    """
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def remove_file(path: Path) -> bool:
    """Delete a file if it exists.

    Returns:
        True if a file was removed
    """
    if not path.exists():
        return False
    path.unlink()
    return True
