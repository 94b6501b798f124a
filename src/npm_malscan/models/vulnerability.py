"""OSV query and advisory models."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

ECOSYSTEM = "npm"


@dataclass(frozen=True)
class VulnerabilityQuery:
    """One (package, ecosystem, version) lookup in a batch request."""

    name: str
    version: str
    ecosystem: str = ECOSYSTEM

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Package name must be non-empty")
        if not self.version:
            raise ValueError("Package version must be non-empty")

    def to_dict(self) -> dict[str, object]:
        return {
            "package": {"name": self.name, "ecosystem": self.ecosystem},
            "version": self.version,
        }


@dataclass(frozen=True)
class VulnerabilityRecord:
    """An advisory returned by OSV for a single query."""

    id: str
    summary: str | None = None
    details: str | None = None
    aliases: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> VulnerabilityRecord:
        summary = data.get("summary")
        details = data.get("details")
        return cls(
            id=str(data["id"]),
            summary=summary if isinstance(summary, str) else None,
            details=details if isinstance(details, str) else None,
            aliases=tuple(str(alias) for alias in data.get("aliases") or ()),
        )

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {"id": self.id}
        if self.summary is not None:
            data["summary"] = self.summary
        if self.details is not None:
            data["details"] = self.details
        if self.aliases:
            data["aliases"] = list(self.aliases)
        return data
