"""Hashing: oracles and the shared worker pool."""

from fixity.hashing.oracle import B3SumOracle, HashOracle, XXHashOracle, create_oracle
from fixity.hashing.scheduler import HashScheduler, SchedulerStats

__all__ = [
    "B3SumOracle",
    "HashOracle",
    "HashScheduler",
    "SchedulerStats",
    "XXHashOracle",
    "create_oracle",
]
