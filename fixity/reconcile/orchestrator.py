"""
Run orchestration.

Snapshots the tree, starts the shared hashing pool and reconciles every
directory as its own asyncio task. Faults come back as outcomes; the first
one in walk order is the one reported.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from fixity.core.config import RunConfig
from fixity.core.errors import FixityError
from fixity.hashing.oracle import HashOracle, create_oracle
from fixity.hashing.scheduler import HashScheduler, SchedulerStats
from fixity.manifest.store import ManifestStore
from fixity.reconcile.engine import DirectoryOutcome, OutcomeStatus, ReconciliationEngine
from fixity.reconcile.policy import describe_policy
from fixity.walk import DirectoryListing, TreeWalker

logger = logging.getLogger(__name__)


@dataclass
class RunReport:
    """Outcomes of a run, in walk order."""

    outcomes: list[DirectoryOutcome] = field(default_factory=list)
    hash_stats: SchedulerStats = field(default_factory=SchedulerStats)

    @property
    def ok(self) -> bool:
        return self.first_fault() is None

    @property
    def failures(self) -> list[DirectoryOutcome]:
        return [o for o in self.outcomes if o.failed]

    def count(self, status: OutcomeStatus) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    def first_fault(self) -> DirectoryOutcome | None:
        """Earliest failed directory in enumeration order, if any."""
        for outcome in self.outcomes:
            if outcome.failed:
                return outcome
        return None

    def raise_for_fault(self) -> None:
        """Re-raise the first fault of the run, if there was one."""
        fault = self.first_fault()
        if fault is not None and fault.error is not None:
            raise fault.error


class Orchestrator:
    """
    Runs reconciliation over one or more root folders.

    Construction is cheap; the oracle is probed and the pool started only in
    run(), before any directory is touched.
    """

    def __init__(
        self,
        config: RunConfig,
        oracle: HashOracle | None = None,
        store: ManifestStore | None = None,
        walker: TreeWalker | None = None,
    ):
        """
        Initialize orchestrator.

        Args:
            config: Immutable run configuration.
            oracle: Hash oracle; built from config.hasher when omitted.
            store: Manifest store; default store when omitted.
            walker: Tree walker; default walker when omitted.
        """
        self.config = config
        self.oracle = oracle if oracle is not None else create_oracle(config.hasher)
        self.store = store or ManifestStore()
        self.walker = walker or TreeWalker(manifest_filename=self.store.filename)

    def run(self, roots: Iterable[Path]) -> RunReport:
        """
        Reconcile every directory under the roots.

        Args:
            roots: Root folders, processed in the given order.

        Returns:
            RunReport; check report.ok or call report.raise_for_fault().

        Raises:
            HasherUnavailable: If the oracle probe fails. No directory is
                touched in that case.
        """
        for line in describe_policy(self.config.policy):
            logger.info(line)

        scheduler = HashScheduler(
            self.oracle,
            parallelism=self.config.policy.parallelism,
            queue_limit=self.config.effective_queue_limit,
        )
        scheduler.probe()

        snapshot = self.walker.walk(roots)

        with scheduler:
            engine = ReconciliationEngine(self.config.policy, self.store, scheduler)
            outcomes = asyncio.run(self._reconcile_all(engine, list(snapshot)))

        report = RunReport(outcomes=outcomes, hash_stats=scheduler.stats)
        logger.info(
            "Processed %d folders: %d saved, %d up to date, %d failed; %d files hashed",
            len(outcomes),
            report.count(OutcomeStatus.SAVED),
            report.count(OutcomeStatus.UNCHANGED),
            report.count(OutcomeStatus.FAILED),
            report.hash_stats.total,
        )
        return report

    async def _reconcile_all(
        self,
        engine: ReconciliationEngine,
        listings: list[DirectoryListing],
    ) -> list[DirectoryOutcome]:
        tasks = [self._reconcile_one(engine, listing) for listing in listings]
        # gather keeps input order, so outcomes line up with walk order.
        return list(await asyncio.gather(*tasks))

    async def _reconcile_one(
        self,
        engine: ReconciliationEngine,
        listing: DirectoryListing,
    ) -> DirectoryOutcome:
        try:
            return await engine.reconcile(listing)
        except (FixityError, OSError) as e:
            logger.error("Folder %s failed: %s", listing.directory, e)
            error: Exception = e
        except Exception as e:
            logger.exception("Folder %s failed unexpectedly", listing.directory)
            error = e
        return DirectoryOutcome(
            directory=listing.directory,
            status=OutcomeStatus.FAILED,
            error=error,
        )
