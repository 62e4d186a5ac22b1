"""
Tree snapshot.

Enumerates every directory under the roots breadth-first, with entries
sorted by name, before any hashing starts.
"""

from __future__ import annotations

import logging
import os
from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

from fixity.core.config import MANIFEST_FILENAME

logger = logging.getLogger(__name__)

HIDDEN_PREFIX = "."


@dataclass(frozen=True)
class DirectoryListing:
    """Eligible files of one directory, or the error that prevented listing it."""

    directory: Path
    files: tuple[Path, ...] = ()
    error: OSError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class TreeSnapshot:
    """All listings of a walk, in enumeration order."""

    listings: tuple[DirectoryListing, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[DirectoryListing]:
        return iter(self.listings)

    def __len__(self) -> int:
        return len(self.listings)

    @property
    def file_count(self) -> int:
        return sum(len(listing.files) for listing in self.listings)


def is_hidden(name: str) -> bool:
    return name.startswith(HIDDEN_PREFIX)


class TreeWalker:
    """Breadth-first directory enumerator."""

    def __init__(self, manifest_filename: str = MANIFEST_FILENAME):
        self.manifest_filename = manifest_filename

    def list_directory(self, directory: Path) -> tuple[list[Path], list[Path]]:
        """
        List one directory.

        Args:
            directory: Directory to list.

        Returns:
            Tuple of (subdirectories, files), each sorted by name. Hidden
            entries, the manifest file and non-regular files are excluded.
            Symlinked directories are not returned as subdirectories.

        Raises:
            OSError: If the directory cannot be listed.
        """
        subdirs: list[Path] = []
        files: list[Path] = []
        with os.scandir(directory) as it:
            for entry in it:
                if is_hidden(entry.name) or entry.name == self.manifest_filename:
                    continue
                if entry.is_dir(follow_symlinks=False):
                    subdirs.append(Path(entry.path))
                elif entry.is_file():
                    files.append(Path(entry.path))
        subdirs.sort(key=lambda p: p.name)
        files.sort(key=lambda p: p.name)
        return subdirs, files

    def walk(self, roots: Iterable[Path]) -> TreeSnapshot:
        """
        Snapshot the trees under the given roots.

        Roots are visited in the given order, then their subdirectories level
        by level. A directory that fails to list yields a listing carrying the
        error and its subtree is skipped; other directories are unaffected.

        Args:
            roots: Root directories.

        Returns:
            TreeSnapshot with one listing per visited directory.
        """
        queue: deque[Path] = deque(Path(r) for r in roots)
        listings: list[DirectoryListing] = []

        while queue:
            directory = queue.popleft()
            logger.debug("Visiting folder: %s", directory)
            try:
                subdirs, files = self.list_directory(directory)
            except OSError as e:
                logger.error("Cannot list folder %s: %s", directory, e)
                listings.append(DirectoryListing(directory=directory, error=e))
                continue
            queue.extend(subdirs)
            listings.append(DirectoryListing(directory=directory, files=tuple(files)))

        snapshot = TreeSnapshot(listings=tuple(listings))
        logger.info(
            "Found %d files in %d folders", snapshot.file_count, len(snapshot)
        )
        return snapshot
