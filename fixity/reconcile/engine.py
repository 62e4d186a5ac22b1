"""
Directory reconciliation.

Classifies the live files of one directory against its manifest, enforces
the policy, hashes what needs hashing and writes the refreshed manifest.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from fixity.core.config import Policy
from fixity.core.errors import HashMismatch, PolicyViolation
from fixity.hashing.scheduler import HashScheduler
from fixity.manifest.entry import ManifestEntry
from fixity.manifest.store import Manifest, ManifestStore
from fixity.reconcile.policy import Change, ChangeClass, FileObservation, allow
from fixity.walk import DirectoryListing

logger = logging.getLogger(__name__)


class OutcomeStatus(str, Enum):
    """Result of reconciling one directory."""

    SAVED = "saved"
    UNCHANGED = "unchanged"
    FAILED = "failed"


@dataclass
class DirectoryOutcome:
    """What happened to one directory during a run."""

    directory: Path
    status: OutcomeStatus
    changes: Counter[ChangeClass] = field(default_factory=Counter)
    hashed: int = 0
    error: BaseException | None = None

    @property
    def failed(self) -> bool:
        return self.status == OutcomeStatus.FAILED


def classify(files: list[FileObservation], manifest: Manifest) -> list[Change]:
    """
    Classify live files against a manifest.

    Args:
        files: Observations of the directory's eligible files.
        manifest: Previously recorded entries.

    Returns:
        One change per live file and per orphaned entry, sorted by filename.
    """
    changes: list[Change] = []
    seen: set[str] = set()

    for obs in files:
        seen.add(obs.name)
        entry = manifest.get(obs.name)
        if entry is None:
            change_class = ChangeClass.NEW
        elif obs.size == entry.size and obs.last_modified == entry.last_modified:
            change_class = ChangeClass.UNCHANGED
        else:
            change_class = ChangeClass.MODIFIED
        changes.append(Change(change_class, obs.name, observation=obs, entry=entry))

    for name, entry in manifest.items():
        if name not in seen:
            changes.append(Change(ChangeClass.DELETED, name, entry=entry))

    changes.sort(key=lambda c: c.name)
    return changes


def enforce_policy(directory: Path, changes: list[Change], policy: Policy) -> None:
    """
    Fail on the first disallowed change, in filename order.

    Raises:
        PolicyViolation: For the first change the policy rejects.
    """
    for change in changes:
        if not allow(change.change_class, policy):
            raise PolicyViolation(change.change_class, Path(directory) / change.name)


class ReconciliationEngine:
    """
    Reconciles directories one pass at a time.

    The engine holds no per-directory state; a single instance serves every
    directory task of a run.
    """

    def __init__(
        self,
        policy: Policy,
        store: ManifestStore,
        scheduler: HashScheduler,
    ):
        """
        Initialize engine.

        Args:
            policy: Immutable run policy.
            store: Manifest storage.
            scheduler: Running hash scheduler shared by all directories.
        """
        self.policy = policy
        self.store = store
        self.scheduler = scheduler

    def needs_digest(self, change: Change) -> bool:
        if change.needs_digest_always:
            return True
        return change.change_class == ChangeClass.UNCHANGED and self.policy.verify_unchanged

    async def reconcile(self, listing: DirectoryListing) -> DirectoryOutcome:
        """
        Reconcile one directory.

        Args:
            listing: Snapshot of the directory's eligible files.

        Returns:
            DirectoryOutcome with status SAVED or UNCHANGED.

        Raises:
            PolicyViolation: A disallowed change was found; nothing was hashed.
            HashMismatch: An unmodified file's content differs from its entry.
            ManifestCorrupt: The existing manifest cannot be decoded.
            OSError: A file or the manifest could not be read or written, or
                the oracle failed.
        """
        directory = listing.directory
        if listing.error is not None:
            raise listing.error

        manifest = self.store.load(directory)
        observations = [FileObservation.stat(path) for path in listing.files]
        changes = classify(observations, manifest)
        enforce_policy(directory, changes, self.policy)

        counts: Counter[ChangeClass] = Counter(c.change_class for c in changes)
        logger.debug("Folder %s: %s", directory, dict(counts))

        jobs: list[tuple[Change, Future[str]]] = []
        for change in changes:
            if change.change_class == ChangeClass.DELETED:
                logger.warning("Deleted file: %s", directory / change.name)
                continue
            if self.needs_digest(change):
                jobs.append((change, self.scheduler.submit(change.observation.path)))

        # Every job must settle before the manifest may be written.
        results = await asyncio.gather(
            *(asyncio.wrap_future(future) for _, future in jobs),
            return_exceptions=True,
        )

        digests: dict[str, str] = {}
        for (change, _), result in zip(jobs, results):
            if isinstance(result, BaseException):
                raise result
            digests[change.name] = result
            self._check_digest(change, result)

        entries = self._build_entries(changes, digests)
        if entries == manifest and self.store.exists(directory):
            logger.debug("Manifest of %s is up to date", directory)
            status = OutcomeStatus.UNCHANGED
        else:
            self.store.save(directory, entries.values())
            status = OutcomeStatus.SAVED

        return DirectoryOutcome(
            directory=directory,
            status=status,
            changes=counts,
            hashed=len(jobs),
        )

    def _check_digest(self, change: Change, digest: str) -> None:
        path = change.observation.path
        if change.change_class == ChangeClass.UNCHANGED:
            if digest != change.entry.digest:
                raise HashMismatch(path, expected=change.entry.digest, actual=digest)
            logger.info("Verified hash %s for %s", digest, path)
        elif change.change_class == ChangeClass.MODIFIED:
            logger.info("Updated file hash %s for %s", digest, path)
        else:
            logger.info("New file hash %s for %s", digest, path)

    def _build_entries(self, changes: list[Change], digests: dict[str, str]) -> Manifest:
        entries: Manifest = {}
        for change in changes:
            if change.change_class == ChangeClass.DELETED:
                continue
            if change.change_class == ChangeClass.UNCHANGED:
                entries[change.name] = change.entry
                continue
            obs = change.observation
            entries[change.name] = ManifestEntry(
                filename=change.name,
                size=obs.size,
                last_modified=obs.last_modified,
                digest=digests[change.name],
            )
        return entries
