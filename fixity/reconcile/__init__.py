"""Reconciliation: classification, policy, per-directory engine, orchestration."""

from fixity.reconcile.engine import (
    DirectoryOutcome,
    OutcomeStatus,
    ReconciliationEngine,
    classify,
    enforce_policy,
)
from fixity.reconcile.orchestrator import Orchestrator, RunReport
from fixity.reconcile.policy import (
    Change,
    ChangeClass,
    FileObservation,
    allow,
    describe_policy,
)

__all__ = [
    "Change",
    "ChangeClass",
    "DirectoryOutcome",
    "FileObservation",
    "Orchestrator",
    "OutcomeStatus",
    "ReconciliationEngine",
    "RunReport",
    "allow",
    "classify",
    "describe_policy",
    "enforce_policy",
]
