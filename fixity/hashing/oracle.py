"""
Hash oracles.

An oracle turns a file path into a fixed-length hex digest. The engine only
sees the HashOracle protocol, so the digest can come from an in-process
library or an external binary.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Protocol, runtime_checkable

import xxhash

from fixity.core.config import HasherConfig, HasherType
from fixity.core.errors import HasherUnavailable, OracleError


@runtime_checkable
class HashOracle(Protocol):
    """Protocol for hash oracle implementations."""

    name: str

    def probe(self) -> str:
        """
        Check that the oracle works.

        Returns:
            Version or description string.

        Raises:
            HasherUnavailable: If the oracle cannot be used.
        """
        ...

    def hash(self, path: Path) -> str:
        """
        Compute the digest of a file.

        Raises:
            OracleError: If the digest cannot be computed.
        """
        ...


class XXHashOracle:
    """In-process streaming xxh3-128 digest (32 hex characters)."""

    name = "xxh3_128"

    def __init__(self, chunk_size: int = 65536):
        self.chunk_size = chunk_size

    def probe(self) -> str:
        try:
            xxhash.xxh3_128(b"").hexdigest()
        except Exception as e:
            raise HasherUnavailable(f"xxhash is not usable: {e}") from e
        return f"xxhash {xxhash.VERSION} ({self.name})"

    def hash(self, path: Path) -> str:
        hasher = xxhash.xxh3_128()
        try:
            with open(path, "rb") as f:
                for chunk in iter(lambda: f.read(self.chunk_size), b""):
                    hasher.update(chunk)
        except OSError as e:
            raise OracleError(f"Cannot hash {path}: {e}") from e
        return hasher.hexdigest()


class B3SumOracle:
    """
    BLAKE3 digest computed by an external ``b3sum`` binary.

    Produces 64 hex characters (32-byte output).
    """

    name = "blake3"

    def __init__(self, executable: str = "b3sum"):
        self.executable = executable

    def _call(self, *args: str) -> str:
        try:
            completed = subprocess.run(
                [self.executable, *args],
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise OracleError(f"Cannot run {self.executable}: {e}") from e
        if completed.returncode != 0:
            raise OracleError(
                f"b3sum returned non-zero: {completed.returncode}: {completed.stderr.strip()}"
            )
        return completed.stdout.strip()

    def probe(self) -> str:
        try:
            return self._call("-V")
        except OracleError as e:
            raise HasherUnavailable(str(e)) from e

    def hash(self, path: Path) -> str:
        return self._call("-l", "32", "--no-names", str(Path(path).absolute()))


def create_oracle(config: HasherConfig) -> HashOracle:
    """
    Build the oracle selected by the configuration.

    Args:
        config: Hasher configuration.

    Returns:
        HashOracle instance (not yet probed).
    """
    if config.type == HasherType.B3SUM:
        return B3SumOracle(executable=config.b3sum_path)
    return XXHashOracle(chunk_size=config.chunk_size)
