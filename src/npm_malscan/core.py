"""Core scanning entrypoints.

This module has no CLI or terminal dependencies so it can be driven by the
``npm-malscan`` command as well as by other tooling.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .config import Settings
from .discovery import discover_manifests
from .errors import LockParseError
from .lock_resolver import Runner, resolve_lock, run_package_manager
from .matcher import BatchClient, match_dependencies
from .models.verdict import ScanVerdict
from .osv import OsvClient
from .parsers import parse_lock
from .report import ReportAggregator

logger = logging.getLogger(__name__)


def _relative(path: Path, root: Path) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


def scan_repository(
    root: Path,
    settings: Settings | None = None,
    client: BatchClient | None = None,
    runner: Runner = run_package_manager,
) -> ScanVerdict:
    """Scan every manifest under ``root`` for malicious packages.

    Params:
        root: repository root to scan
        settings: runtime settings; defaults apply when omitted
        client: OSV batch client; one is created from ``settings`` when omitted
        runner: subprocess runner used to synthesise missing lock files

    Returns: the terminal ScanVerdict.

    Raises:
        OSError: if the tree cannot be walked.
        OsvError: if any batch request fails; the run is aborted.
    """
    root = root.resolve()
    settings = settings or Settings()
    aggregator = ReportAggregator()

    owned_client: OsvClient | None = None
    if client is None:
        owned_client = OsvClient(settings.api_url, timeout=settings.request_timeout)
        client = owned_client

    found = 0
    try:
        for manifest in discover_manifests(root):
            found += 1
            _scan_manifest(manifest, root, settings, client, runner, aggregator)
    finally:
        aggregator.cleanup()
        if owned_client is not None:
            owned_client.close()

    if found:
        logger.info("Found %d package.json file(s)", found)
    else:
        logger.info("No package.json files found in this repository.")
        logger.info("Nothing to scan - exiting successfully.")

    return aggregator.finalize()


def _scan_manifest(
    manifest: Path,
    root: Path,
    settings: Settings,
    client: BatchClient,
    runner: Runner,
    aggregator: ReportAggregator,
) -> None:
    relative = _relative(manifest, root)
    logger.info("%s", relative)

    lock = resolve_lock(manifest, runner=runner, timeout=settings.synthesis_timeout)
    if lock is None:
        logger.warning("  Skipping %s - no lock file available", relative)
        aggregator.add_skipped(relative, "no lock file available")
        return
    aggregator.track(lock)

    try:
        deps = parse_lock(lock)
    except LockParseError as exc:
        logger.error("  Parse error in %s: %s", lock.path.name, exc)
        aggregator.add_skipped(relative, f"parse error: {exc}")
        return

    logger.info("  Dependencies: %d", len(deps))
    if not deps:
        logger.info("  No dependencies to check")
        aggregator.add_scanned([])
        return

    logger.info("  Querying OSV database...")
    findings = match_dependencies(
        relative,
        deps,
        client,
        batch_size=settings.batch_size,
        max_workers=settings.max_workers,
    )

    if findings:
        logger.warning("  MALICIOUS: %d package(s)", len(findings))
        for finding in findings:
            logger.warning("     • %s", finding.spec)
            logger.warning("       %s", finding.advisory_id)
    else:
        logger.info("  Clean")
    aggregator.add_scanned(findings)
