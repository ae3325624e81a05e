"""
subforge.catalog - Media items and the catalog collaborator contract.

The pipeline only needs two things from a media catalog: an item (id, name,
path) and a way to ask for that item's metadata to be refreshed once a new
subtitle file exists. DirectoryCatalog serves plain directories of video
files for the command line.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from subforge.config import VIDEO_EXTENSIONS
from subforge.logging import get_logger

logger = get_logger(__name__)

_ITEM_NAMESPACE = uuid.UUID("97124bd9-c8cd-4a53-a213-e593aa3fef52")


@dataclass(frozen=True)
class MediaItem:
    """A catalog entry the pipeline generates subtitles for."""

    id: str
    name: str
    path: Path | None

    @classmethod
    def from_path(cls, path: Path) -> MediaItem:
        """Build an item for a bare media file with a path-derived stable id."""
        resolved = path.expanduser().resolve()
        item_id = uuid.uuid5(_ITEM_NAMESPACE, str(resolved)).hex
        return cls(id=item_id, name=resolved.stem, path=resolved)


@runtime_checkable
class Catalog(Protocol):
    """What the pipeline consumes from a media catalog."""

    def get_item(self, item_id: str) -> MediaItem | None: ...

    async def refresh_metadata(self, item_id: str) -> None: ...


class DirectoryCatalog:
    """A catalog backed by one or more directories of media files.

    Refreshing metadata is a logged no-op: media servers watching these
    directories pick new sidecar files up on their own scan.
    """

    def __init__(
        self,
        roots: Iterable[Path],
        extensions: Iterable[str] = VIDEO_EXTENSIONS,
    ) -> None:
        self.roots = [Path(r) for r in roots]
        self.extensions = {e.lower() for e in extensions}
        self._items: dict[str, MediaItem] = {}
        self.refreshed: list[str] = []

    def scan(self) -> Iterator[MediaItem]:
        """Yield every media file under the roots, in sorted path order."""
        for root in self.roots:
            if root.is_file():
                paths = [root]
            elif root.is_dir():
                paths = sorted(p for p in root.rglob("*") if p.is_file())
            else:
                logger.warning("Library path does not exist: %s", root)
                continue
            for path in paths:
                if path.suffix.lower() not in self.extensions:
                    continue
                item = MediaItem.from_path(path)
                self._items[item.id] = item
                yield item

    def get_item(self, item_id: str) -> MediaItem | None:
        if not self._items:
            for _ in self.scan():
                pass
        return self._items.get(item_id)

    async def refresh_metadata(self, item_id: str) -> None:
        item = self._items.get(item_id)
        logger.info("Metadata refresh requested for %s", item.name if item else item_id)
        self.refreshed.append(item_id)
