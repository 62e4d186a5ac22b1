"""
Per-directory manifest file storage.

File layout:
    <directory>/.fixity
        # Generated at 2024-05-01T12:00:00.000000Z
        {"digest":"...","filename":"a.txt","last_modified":1714564800000,"size":12}
        ...
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from pathlib import Path

from fixity.core.config import MANIFEST_FILENAME
from fixity.core.errors import FixityIOError, ManifestCorrupt
from fixity.manifest.entry import EntryDecodeError, ManifestEntry

logger = logging.getLogger(__name__)

Manifest = dict[str, ManifestEntry]
"""Entries of one directory keyed by filename. Order carries no meaning."""

COMMENT_PREFIX = "#"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ManifestStore:
    """
    Reads and writes the manifest file of a directory.

    Stateless apart from the clock used for the header line, so one store
    can serve every directory of a run concurrently.
    """

    def __init__(
        self,
        filename: str = MANIFEST_FILENAME,
        clock: Callable[[], datetime] = _utcnow,
    ):
        """
        Initialize store.

        Args:
            filename: Manifest file name inside each directory.
            clock: Source of the generation timestamp written to the header.
        """
        self.filename = filename
        self.clock = clock

    def path_for(self, directory: Path) -> Path:
        """Manifest file path for a directory."""
        return Path(directory) / self.filename

    def exists(self, directory: Path) -> bool:
        """Check whether a directory already has a manifest file."""
        return self.path_for(directory).exists()

    def load(self, directory: Path) -> Manifest:
        """
        Load a directory's manifest.

        Args:
            directory: Directory whose manifest to read.

        Returns:
            Entries keyed by filename; empty if there is no manifest yet.

        Raises:
            FixityIOError: If the manifest path exists but is not a regular file.
            ManifestCorrupt: If any record line fails to decode, or a filename
                appears twice.
        """
        path = self.path_for(directory)
        if not path.exists():
            logger.debug("No manifest in %s", directory)
            return {}
        if not path.is_file():
            raise FixityIOError(f"Manifest for folder {directory} is not a file: {path}")

        manifest: Manifest = {}
        with path.open("rb") as f:
            for line_number, raw in enumerate(f, start=1):
                try:
                    line = raw.decode("utf-8").rstrip("\n")
                except UnicodeDecodeError as e:
                    raise ManifestCorrupt(path, line_number, f"not UTF-8: {e}") from e
                if not line.strip() or line.startswith(COMMENT_PREFIX):
                    continue
                try:
                    entry = ManifestEntry.deserialize(line)
                except EntryDecodeError as e:
                    raise ManifestCorrupt(path, line_number, str(e)) from e
                if entry.filename in manifest:
                    raise ManifestCorrupt(
                        path, line_number, f"duplicate entry for {entry.filename!r}"
                    )
                manifest[entry.filename] = entry

        logger.debug("Loaded %d entries from %s", len(manifest), path)
        return manifest

    def render(self, entries: Iterable[ManifestEntry]) -> str:
        """
        Render manifest file content.

        Args:
            entries: Entries in any order.

        Returns:
            Header line followed by one record per entry, sorted by filename.
        """
        generated_at = self.clock().astimezone(timezone.utc)
        lines = [f"{COMMENT_PREFIX} Generated at {generated_at.strftime('%Y-%m-%dT%H:%M:%S.%fZ')}"]
        lines.extend(e.serialize() for e in sorted(entries, key=lambda e: e.filename))
        return "\n".join(lines) + "\n"

    def save(self, directory: Path, entries: Iterable[ManifestEntry]) -> Path:
        """
        Overwrite a directory's manifest.

        The write is in place and not crash-atomic: a process killed mid-write
        can leave a truncated manifest for this one directory.

        Args:
            directory: Directory whose manifest to write.
            entries: Complete set of entries for the directory.

        Returns:
            Path of the written manifest.
        """
        path = self.path_for(directory)
        content = self.render(entries)
        with path.open("w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        logger.debug("Saved manifest %s", path)
        return path
