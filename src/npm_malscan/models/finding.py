"""Finding and skip records emitted per manifest."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_SUMMARY = "Malicious package detected"


@dataclass(frozen=True)
class Finding:
    """A resolved package that an advisory marks as malicious."""

    manifest: str
    package: str
    version: str
    advisory_id: str
    summary: str = DEFAULT_SUMMARY

    def __post_init__(self) -> None:
        if not self.package:
            raise ValueError("Package name must be non-empty")
        if not self.advisory_id:
            raise ValueError("Advisory id must be non-empty")

    @property
    def spec(self) -> str:
        return f"{self.package}@{self.version}"

    def to_dict(self) -> dict[str, str]:
        return {
            "manifest": self.manifest,
            "package": self.package,
            "version": self.version,
            "advisoryId": self.advisory_id,
            "summary": self.summary,
        }


@dataclass(frozen=True)
class SkippedManifest:
    """A manifest that could not be fully checked, with the reason why."""

    manifest: str
    reason: str

    def to_dict(self) -> dict[str, str]:
        return {"manifest": self.manifest, "reason": self.reason}
