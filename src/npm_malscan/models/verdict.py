"""Terminal verdict of a scan run."""

from __future__ import annotations

from dataclasses import dataclass

from .finding import Finding, SkippedManifest


@dataclass(frozen=True)
class ScanVerdict:
    """Immutable outcome of a run: confirmed findings plus skipped manifests."""

    findings: tuple[Finding, ...] = ()
    manifests_scanned: int = 0
    skipped: tuple[SkippedManifest, ...] = ()

    def __post_init__(self) -> None:
        if self.manifests_scanned < 0:
            raise ValueError("Manifest count must be non-negative")

    @property
    def malicious(self) -> bool:
        return bool(self.findings)

    @property
    def totals(self) -> dict[str, int]:
        return {
            "manifests": self.manifests_scanned,
            "skipped": len(self.skipped),
            "findings": len(self.findings),
        }

    def to_dict(self) -> dict[str, object]:
        return {
            "version": "1",
            "hasFindings": self.malicious,
            "totals": self.totals,
            "findings": [finding.to_dict() for finding in self.findings],
            "skipped": [skip.to_dict() for skip in self.skipped],
        }
