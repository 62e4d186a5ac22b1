"""
Shared hashing pool.

A fixed number of worker threads serve hash jobs from every directory of a
run. The job queue is bounded; when it is full the submitter hashes the file
itself (caller-runs), which keeps memory bounded without blocking or
dropping work.
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from pathlib import Path

from fixity.core.errors import HasherUnavailable
from fixity.hashing.oracle import HashOracle

logger = logging.getLogger(__name__)

_STOP = None


@dataclass(frozen=True)
class SchedulerStats:
    """Counters for a scheduler's lifetime."""

    pooled: int = 0
    inline: int = 0

    @property
    def total(self) -> int:
        return self.pooled + self.inline


class HashScheduler:
    """
    Bounded worker pool around a hash oracle.

    Usage:
        with HashScheduler(oracle, parallelism=4) as scheduler:
            future = scheduler.submit(path)
            digest = future.result()
    """

    def __init__(
        self,
        oracle: HashOracle,
        parallelism: int,
        queue_limit: int | None = None,
    ):
        """
        Initialize scheduler.

        Args:
            oracle: Hash oracle used by every job.
            parallelism: Number of worker threads.
            queue_limit: Maximum pending jobs before submitters run inline.
                Defaults to 4 x parallelism.
        """
        if parallelism < 1:
            raise ValueError(f"parallelism must be >= 1, got {parallelism}")
        self.oracle = oracle
        self.parallelism = parallelism
        self.queue_limit = queue_limit if queue_limit is not None else 4 * parallelism
        if self.queue_limit < 1:
            raise ValueError(f"queue_limit must be >= 1, got {self.queue_limit}")

        self._queue: queue.Queue[tuple[Future[str], Path] | None] = queue.Queue(
            maxsize=self.queue_limit
        )
        self._workers: list[threading.Thread] = []
        self._lock = threading.Lock()
        self._pooled = 0
        self._inline = 0
        self._started = False
        self._closed = False
        self.oracle_version: str | None = None

    def __enter__(self) -> HashScheduler:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()

    @property
    def stats(self) -> SchedulerStats:
        with self._lock:
            return SchedulerStats(pooled=self._pooled, inline=self._inline)

    def probe(self) -> str:
        """
        Check the oracle once.

        Raises:
            HasherUnavailable: If the oracle's probe fails for any reason.
        """
        try:
            version = self.oracle.probe()
        except HasherUnavailable:
            raise
        except Exception as e:
            raise HasherUnavailable(f"Hash oracle {self.oracle.name} failed its probe: {e}") from e
        self.oracle_version = version
        logger.info("Hasher: %s", version)
        return version

    def start(self) -> None:
        """Probe the oracle and start the worker threads."""
        if self._started:
            return
        if self.oracle_version is None:
            self.probe()
        for i in range(self.parallelism):
            worker = threading.Thread(
                target=self._work, name=f"fixity-hash-{i}", daemon=True
            )
            worker.start()
            self._workers.append(worker)
        self._started = True
        logger.debug(
            "Started %d hash workers (queue limit %d)", self.parallelism, self.queue_limit
        )

    def shutdown(self) -> None:
        """Let queued jobs finish, then stop the workers."""
        if not self._started or self._closed:
            return
        self._closed = True
        for _ in self._workers:
            self._queue.put(_STOP)
        for worker in self._workers:
            worker.join()
        logger.debug("Hash workers stopped: %s", self.stats)

    def submit(self, path: Path) -> Future[str]:
        """
        Schedule a file for hashing.

        Args:
            path: File to hash.

        Returns:
            Future resolving to the digest, or to the oracle's exception. When
            the queue is full the file is hashed before this call returns.
        """
        if not self._started or self._closed:
            raise RuntimeError("HashScheduler is not running")

        future: Future[str] = Future()
        try:
            self._queue.put_nowait((future, path))
        except queue.Full:
            logger.debug("Hash queue full, hashing inline: %s", path)
            self._run(future, path, inline=True)
        return future

    def _work(self) -> None:
        while True:
            job = self._queue.get()
            try:
                if job is _STOP:
                    return
                future, path = job
                self._run(future, path, inline=False)
            finally:
                self._queue.task_done()

    def _run(self, future: Future[str], path: Path, inline: bool) -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            digest = self.oracle.hash(path)
        except BaseException as e:
            self._count(inline)
            future.set_exception(e)
        else:
            self._count(inline)
            future.set_result(digest)

    def _count(self, inline: bool) -> None:
        with self._lock:
            if inline:
                self._inline += 1
            else:
                self._pooled += 1
