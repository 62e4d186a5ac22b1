"""Manifest system: per-file records and per-directory storage."""

from fixity.manifest.entry import EntryDecodeError, ManifestEntry
from fixity.manifest.store import Manifest, ManifestStore

__all__ = [
    "EntryDecodeError",
    "Manifest",
    "ManifestEntry",
    "ManifestStore",
]
