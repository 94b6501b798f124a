"""Lock file model."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

PACKAGE_LOCK_NAME = "package-lock.json"
YARN_LOCK_NAME = "yarn.lock"


class LockFormat(str, Enum):
    """Serialisations a lock file can be decoded from."""

    NPM_LEGACY = "npm-legacy"
    NPM_V3 = "npm-v3"
    YARN_CLASSIC = "yarn-classic"


@dataclass(frozen=True)
class LockFile:
    """A resolved lock file next to a manifest.

    ``ephemeral`` is fixed when the resolver hands the file out: it is True
    only for lock files this run synthesised, and those are the only files
    the aggregator deletes.
    """

    path: Path
    ephemeral: bool = False

    def __post_init__(self) -> None:
        if self.path.name not in {PACKAGE_LOCK_NAME, YARN_LOCK_NAME}:
            raise ValueError(f"Unsupported lock file name: {self.path.name}")

    @property
    def is_yarn(self) -> bool:
        return self.path.name == YARN_LOCK_NAME

    def to_dict(self) -> dict[str, object]:
        return {
            "path": str(self.path),
            "ephemeral": self.ephemeral,
        }
