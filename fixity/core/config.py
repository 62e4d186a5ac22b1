"""
Run configuration.

Immutable policy and hasher settings, supplied once per run. Values can
come from a YAML file and be overridden by command-line flags.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

MANIFEST_FILENAME = ".fixity"
"""Name of the per-directory manifest file. Hidden, so never hashed itself."""


def default_parallelism() -> int:
    """Half the available CPUs, at least one."""
    return max(1, (os.cpu_count() or 1) // 2)


class Policy(BaseModel):
    """Which change classes a run accepts, and how wide hashing may fan out."""

    model_config = ConfigDict(frozen=True)

    allow_new: bool = Field(default=False, description="Hash new files and add them")
    allow_modified: bool = Field(
        default=False, description="Re-hash modified files and replace their entries"
    )
    allow_deleted: bool = Field(
        default=False, description="Drop entries for files that no longer exist"
    )
    verify_unchanged: bool = Field(
        default=False,
        description="Re-hash files whose size and mtime match, and compare digests",
    )
    parallelism: int = Field(
        default_factory=default_parallelism, ge=1, description="Hashing pool size"
    )


class HasherType(str, Enum):
    """Available hash oracles."""

    XXH3 = "xxh3"
    B3SUM = "b3sum"


class HasherConfig(BaseModel):
    """Hash oracle selection."""

    model_config = ConfigDict(frozen=True)

    type: HasherType = Field(default=HasherType.XXH3, description="Oracle to use")
    b3sum_path: str = Field(
        default_factory=lambda: os.environ.get("FIXITY_B3SUM", "b3sum"),
        description="Path to the b3sum executable",
    )
    chunk_size: int = Field(
        default=65536, ge=1, description="Read size for in-process hashing"
    )


class RunConfig(BaseModel):
    """Everything a reconciliation run needs besides the root folders."""

    model_config = ConfigDict(frozen=True)

    policy: Policy = Field(default_factory=Policy)
    hasher: HasherConfig = Field(default_factory=HasherConfig)
    queue_limit: int | None = Field(
        default=None,
        ge=1,
        description="Pending hash jobs before submitters hash inline "
        "(defaults to 4 x parallelism)",
    )

    @property
    def effective_queue_limit(self) -> int:
        """Queue bound actually used by the hashing pool."""
        if self.queue_limit is not None:
            return self.queue_limit
        return 4 * self.policy.parallelism

    def with_overrides(
        self,
        *,
        hasher: dict[str, Any] | None = None,
        **policy_overrides: Any,
    ) -> RunConfig:
        """
        Return a copy with policy (and optionally hasher) fields replaced.

        None values are ignored, so unset command-line flags keep the
        file's values. The result is re-validated.
        """
        policy = self.policy.model_dump()
        policy.update({k: v for k, v in policy_overrides.items() if v is not None})
        hasher_data = self.hasher.model_dump()
        hasher_data.update({k: v for k, v in (hasher or {}).items() if v is not None})
        return RunConfig.model_validate(
            {
                "policy": policy,
                "hasher": hasher_data,
                "queue_limit": self.queue_limit,
            }
        )


def load_config(path: str | Path) -> RunConfig:
    """
    Load run configuration from a YAML file.

    Expected format:
    ```yaml
    policy:
      allow_new: true
      allow_deleted: false
      parallelism: 4
    hasher:
      type: b3sum
      b3sum_path: /usr/local/bin/b3sum
    queue_limit: 32
    ```

    Args:
        path: Path to YAML file.

    Returns:
        Validated RunConfig.

    Raises:
        pydantic.ValidationError: If a value is out of range.
    """
    content = Path(path).read_text()
    data = yaml.safe_load(content) or {}
    return RunConfig.model_validate(data)
