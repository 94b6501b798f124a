"""Match a dependency set against OSV and keep the malicious advisories."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol

from .config import MAX_BATCH_SIZE
from .models.finding import DEFAULT_SUMMARY, Finding
from .models.vulnerability import ECOSYSTEM, VulnerabilityQuery, VulnerabilityRecord

logger = logging.getLogger(__name__)

MALICIOUS_ID_PREFIX = "MAL-"
MALICIOUS_KEYWORD = "malicious"


class BatchClient(Protocol):
    def query_batch(
        self, queries: Sequence[VulnerabilityQuery]
    ) -> list[list[VulnerabilityRecord]]: ...


def build_queries(deps: Mapping[str, str]) -> list[VulnerabilityQuery]:
    return [
        VulnerabilityQuery(name=name, version=version, ecosystem=ECOSYSTEM)
        for name, version in deps.items()
    ]


def batched(
    queries: Sequence[VulnerabilityQuery], size: int = MAX_BATCH_SIZE
) -> Iterator[Sequence[VulnerabilityQuery]]:
    """Yield consecutive slices of at most ``size`` queries, in order."""
    if size < 1:
        raise ValueError("Batch size must be at least 1")
    for start in range(0, len(queries), size):
        yield queries[start : start + size]


def is_malicious(record: VulnerabilityRecord) -> bool:
    """Classify an advisory as malicious.

    True when the id carries the OSV malicious-package prefix, or when the
    details or summary mention "malicious" in any letter case. Advisories that
    describe malware with other wording are not caught.
    """
    if record.id.startswith(MALICIOUS_ID_PREFIX):
        return True
    if record.details and MALICIOUS_KEYWORD in record.details.lower():
        return True
    if record.summary and MALICIOUS_KEYWORD in record.summary.lower():
        return True
    return False


def fetch_results(
    client: BatchClient,
    queries: Sequence[VulnerabilityQuery],
    batch_size: int = MAX_BATCH_SIZE,
    max_workers: int = 1,
) -> list[list[VulnerabilityRecord]]:
    """Run every batch and concatenate the results in query order.

    With ``max_workers`` above one, batches overlap on a thread pool capped at
    that many in-flight requests; ``Executor.map`` yields in submission order
    so result ``i`` still belongs to query ``i``. The first failing batch
    raises and the remaining results are discarded.
    """
    batches = list(batched(queries, batch_size))
    if not batches:
        return []

    results: list[list[VulnerabilityRecord]] = []
    if max_workers <= 1 or len(batches) == 1:
        for index, batch in enumerate(batches, start=1):
            results.extend(client.query_batch(batch))
            _log_progress(index, len(batches), len(results), len(queries))
        return results

    with ThreadPoolExecutor(
        max_workers=min(max_workers, len(batches)), thread_name_prefix="osv"
    ) as executor:
        for index, batch_results in enumerate(executor.map(client.query_batch, batches), start=1):
            results.extend(batch_results)
            _log_progress(index, len(batches), len(results), len(queries))
    return results


def _log_progress(index: int, total_batches: int, done: int, total: int) -> None:
    if total_batches > 1:
        logger.info("Checked %d/%d packages...", done, total)


def match_dependencies(
    manifest: str,
    deps: Mapping[str, str],
    client: BatchClient,
    batch_size: int = MAX_BATCH_SIZE,
    max_workers: int = 1,
) -> list[Finding]:
    """Return one Finding per malicious advisory affecting ``deps``."""
    queries = build_queries(deps)
    results = fetch_results(client, queries, batch_size=batch_size, max_workers=max_workers)

    findings: list[Finding] = []
    for query, records in zip(queries, results):
        for record in records:
            if not is_malicious(record):
                continue
            findings.append(
                Finding(
                    manifest=manifest,
                    package=query.name,
                    version=query.version,
                    advisory_id=record.id,
                    summary=record.summary or DEFAULT_SUMMARY,
                )
            )
    return findings
