"""Report aggregation across manifests."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .models.finding import Finding, SkippedManifest
from .models.lock_file import LockFile
from .models.verdict import ScanVerdict

logger = logging.getLogger(__name__)


class ReportAggregator:
    """Collect per-manifest results and own the ephemeral lock files.

    Accumulation is append-only. ``finalize`` removes the lock files this run
    synthesised and freezes everything into a :class:`ScanVerdict`.
    """

    def __init__(self) -> None:
        self._findings: list[Finding] = []
        self._skipped: list[SkippedManifest] = []
        self._ephemeral: list[LockFile] = []
        self._scanned = 0

    def track(self, lock: LockFile) -> None:
        """Register a lock file; only ephemeral ones are kept for cleanup."""
        if lock.ephemeral and lock not in self._ephemeral:
            self._ephemeral.append(lock)

    def add_scanned(self, findings: Iterable[Finding]) -> None:
        self._scanned += 1
        self._findings.extend(findings)

    def add_skipped(self, manifest: str, reason: str) -> None:
        self._skipped.append(SkippedManifest(manifest=manifest, reason=reason))

    def cleanup(self) -> list[LockFile]:
        """Delete tracked ephemeral lock files and return the ones removed.

        Failures are logged and otherwise ignored.
        """
        removed: list[LockFile] = []
        while self._ephemeral:
            lock = self._ephemeral.pop(0)
            try:
                lock.path.unlink()
            except FileNotFoundError:
                logger.debug("Temporary %s already gone", lock.path)
            except OSError as exc:
                logger.warning("Could not remove temporary %s: %s", lock.path, exc)
            else:
                logger.info("Cleaned up temporary %s", lock.path.name)
                removed.append(lock)
        return removed

    def finalize(self) -> ScanVerdict:
        self.cleanup()
        return ScanVerdict(
            findings=tuple(self._findings),
            manifests_scanned=self._scanned,
            skipped=tuple(self._skipped),
        )
