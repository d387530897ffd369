from __future__ import annotations

import logging
import os
from pathlib import Path

from docs_browser.archive.errors import MalformedRequest, NotFound
from docs_browser.archive.models import Coordinate, validate_segment

logger = logging.getLogger(__name__)


class LocalCacheStore:
    """
    Archives laid out as `<root>/<group>/<artifact>/<version>/<artifact>-<version>-<classifier>.<ext>`.

    The directory tree doubles as the browsing index: each level lists the next one.
    """

    def __init__(self, root: Path | str, *, classifier: str = "javadoc", extension: str = "jar"):
        self._root = Path(root)
        self._classifier = classifier
        self._extension = extension

    @property
    def root(self) -> Path:
        return self._root

    def ensure_root(self) -> None:
        self._root.mkdir(parents=True, exist_ok=True)

    def archive_path(self, coordinate: Coordinate) -> Path:
        return (
            self._root
            / coordinate.group
            / coordinate.artifact
            / coordinate.version
            / coordinate.archive_name(self._classifier, self._extension)
        )

    def remote_path(self, coordinate: Coordinate) -> str:
        return coordinate.remote_path(self._classifier, self._extension)

    def list_children(self, *segments: str) -> list[str]:
        """Visible child directories of `<root>/<segments...>`, in directory order."""
        try:
            for segment in segments:
                validate_segment("path", segment)
        except MalformedRequest as e:
            raise NotFound(str(e)) from e

        directory = self._root.joinpath(*segments)
        if not directory.is_dir():
            logger.debug("cache.list_missing directory=%s", directory)
            raise NotFound(f"No cache directory: {directory}")

        names: list[str] = []
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    if entry.name.startswith("."):
                        continue
                    if not entry.is_dir():
                        continue
                    names.append(entry.name)
        except OSError as e:
            raise NotFound(f"Unreadable cache directory: {directory}") from e
        return names

    def list_groups(self) -> list[str]:
        return self.list_children()

    def list_artifacts(self, group: str) -> list[str]:
        return self.list_children(group)

    def list_versions(self, group: str, artifact: str) -> list[str]:
        return self.list_children(group, artifact)
