"""
Error taxonomy for reconciliation runs.

Every fault is fatal to the run. Directory-level faults are turned into
outcomes by the orchestrator and re-raised once all directories finish.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fixity.reconcile.policy import ChangeClass


class FixityError(Exception):
    """Base class for all fixity faults."""

    pass


class PolicyViolation(FixityError):
    """A change class the policy does not allow was observed."""

    def __init__(self, change_class: ChangeClass, path: Path):
        self.change_class = change_class
        self.path = Path(path)
        super().__init__(f"{change_class.label} file is not allowed: {self.path}")


class HashMismatch(FixityError):
    """Content digest disagrees with the manifest despite unchanged metadata."""

    def __init__(self, path: Path, expected: str, actual: str):
        self.path = Path(path)
        self.expected = expected
        self.actual = actual
        super().__init__(
            "Hash mismatch on unmodified file:\n"
            f"\texpect: {expected}\n"
            f"\tactual: {actual}\n"
            f"\tfile: {self.path}"
        )


class ManifestCorrupt(FixityError):
    """A manifest line could not be decoded."""

    def __init__(self, path: Path, line_number: int, reason: str):
        self.path = Path(path)
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"Corrupt manifest {self.path} (line {line_number}): {reason}")


class FixityIOError(FixityError, OSError):
    """Filesystem fault raised by fixity itself."""

    pass


class OracleError(FixityIOError):
    """The hash oracle failed to produce a digest for a file."""

    pass


class HasherUnavailable(FixityError):
    """The hash oracle failed its startup probe."""

    pass
