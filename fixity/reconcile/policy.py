"""
Change classification types and the policy gate.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from fixity.core.config import Policy
from fixity.core.errors import FixityIOError
from fixity.manifest.entry import ManifestEntry


class ChangeClass(str, Enum):
    """How a file relates to its manifest entry."""

    NEW = "new"
    UNCHANGED = "unchanged"
    MODIFIED = "modified"
    DELETED = "deleted"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class FileObservation:
    """Live metadata of a file, read at classification time."""

    path: Path
    size: int
    last_modified: int

    @property
    def name(self) -> str:
        return self.path.name

    @classmethod
    def stat(cls, path: Path) -> FileObservation:
        """
        Read size and modification time (epoch milliseconds) of a file.

        Raises:
            FixityIOError: If the file name cannot be recorded as UTF-8.
            OSError: If the file cannot be stat'ed.
        """
        try:
            path.name.encode("utf-8")
        except UnicodeEncodeError as e:
            raise FixityIOError(f"Filename is not valid UTF-8: {path!r}") from e
        st = path.stat()
        return cls(path=path, size=st.st_size, last_modified=st.st_mtime_ns // 1_000_000)


@dataclass(frozen=True)
class Change:
    """One classified file: an observation, a prior entry, or both."""

    change_class: ChangeClass
    name: str
    observation: FileObservation | None = None
    entry: ManifestEntry | None = None

    @property
    def needs_digest_always(self) -> bool:
        return self.change_class in (ChangeClass.NEW, ChangeClass.MODIFIED)


def allow(change_class: ChangeClass, policy: Policy) -> bool:
    """
    Decide whether a change class may proceed under a policy.

    Unchanged files are always allowed; verifying them is a separate check.
    """
    if change_class == ChangeClass.NEW:
        return policy.allow_new
    if change_class == ChangeClass.MODIFIED:
        return policy.allow_modified
    if change_class == ChangeClass.DELETED:
        return policy.allow_deleted
    return True


def describe_policy(policy: Policy) -> list[str]:
    """Human-readable summary of what a run will do, one line per flag."""
    return [
        f"Parallelism: {policy.parallelism}",
        "Will calculate new files and append to the record"
        if policy.allow_new
        else "Will throw error on new files",
        "Will replace record of modified files with new hash"
        if policy.allow_modified
        else "Will throw error on modified files",
        "Will remove records for deleted files"
        if policy.allow_deleted
        else "Will throw error on deleted files",
        "Will verify the hash of unmodified files"
        if policy.verify_unchanged
        else "Will NOT verify the hash of unmodified files",
    ]
