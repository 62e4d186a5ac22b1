"""Shared fixtures: a counting in-memory hash oracle and tree helpers."""

from __future__ import annotations

import os
import threading
from datetime import datetime, timezone
from pathlib import Path

import pytest
import xxhash

from fixity.core.errors import HasherUnavailable, OracleError
from fixity.manifest.store import ManifestStore


class FakeOracle:
    """Hashes file content with xxh64 and records every call."""

    name = "fake"

    def __init__(
        self,
        available: bool = True,
        fail_on: set[str] | None = None,
        gate: threading.Event | None = None,
    ):
        self.available = available
        self.fail_on = fail_on or set()
        self.gate = gate
        self.calls: list[Path] = []
        self.probes = 0
        self._lock = threading.Lock()

    def probe(self) -> str:
        self.probes += 1
        if not self.available:
            raise HasherUnavailable("fake hasher missing")
        return "fake 1.0"

    def hash(self, path: Path) -> str:
        with self._lock:
            self.calls.append(Path(path))
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if Path(path).name in self.fail_on:
            raise OracleError(f"fake failure for {path}")
        return xxhash.xxh64(Path(path).read_bytes()).hexdigest()

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.calls)


FIXED_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def write_file(path: Path, content: str, mtime_ms: int | None = None) -> Path:
    """Write a file, optionally pinning its modification time."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    if mtime_ms is not None:
        set_mtime(path, mtime_ms)
    return path


def set_mtime(path: Path, mtime_ms: int) -> None:
    ns = mtime_ms * 1_000_000
    os.utime(path, ns=(ns, ns))


def digest_of(content: str) -> str:
    return xxhash.xxh64(content.encode()).hexdigest()


@pytest.fixture
def oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture
def store() -> ManifestStore:
    return ManifestStore(clock=lambda: FIXED_TIME)
