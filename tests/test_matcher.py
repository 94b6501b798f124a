from __future__ import annotations

import math
import threading
import time

import pytest

from npm_malscan.errors import OsvTransportError
from npm_malscan.matcher import (
    batched,
    build_queries,
    fetch_results,
    is_malicious,
    match_dependencies,
)
from npm_malscan.models import VulnerabilityRecord
from npm_malscan.osv import OsvClient

from conftest import FakeSession


class EchoClient:
    """Returns, for each query, a record whose id encodes the query."""

    def __init__(self, delay_first: float = 0.0):
        self.batch_sizes: list[int] = []
        self.delay_first = delay_first
        self._lock = threading.Lock()
        self.in_flight = 0
        self.max_in_flight = 0

    def query_batch(self, queries):
        with self._lock:
            self.batch_sizes.append(len(queries))
            first = len(self.batch_sizes) == 1
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if first and self.delay_first:
                time.sleep(self.delay_first)
            return [[VulnerabilityRecord(id=f"{q.name}@{q.version}")] for q in queries]
        finally:
            with self._lock:
                self.in_flight -= 1


@pytest.mark.parametrize("count", [0, 1, 999, 1000, 1001, 2500])
def test_batch_count_is_ceil_of_size(count: int) -> None:
    deps = {f"pkg-{i}": "1.0.0" for i in range(count)}

    batches = list(batched(build_queries(deps), 1000))

    assert len(batches) == math.ceil(count / 1000)
    assert sum(len(batch) for batch in batches) == count


def test_batched_rejects_non_positive_size() -> None:
    with pytest.raises(ValueError):
        list(batched([], 0))


@pytest.mark.parametrize("workers", [1, 4])
def test_concatenated_results_restore_query_order(workers: int) -> None:
    deps = {f"pkg-{i}": f"{i}.0.0" for i in range(2500)}
    queries = build_queries(deps)
    client = EchoClient(delay_first=0.05)

    results = fetch_results(client, queries, batch_size=1000, max_workers=workers)

    assert sorted(client.batch_sizes) == [500, 1000, 1000]
    assert [records[0].id for records in results] == [f"{q.name}@{q.version}" for q in queries]


def test_worker_pool_respects_in_flight_cap() -> None:
    deps = {f"pkg-{i}": "1.0.0" for i in range(50)}
    client = EchoClient(delay_first=0.05)

    fetch_results(client, build_queries(deps), batch_size=5, max_workers=3)

    assert client.max_in_flight <= 3


def test_no_dependencies_issue_no_requests() -> None:
    client = EchoClient()

    assert match_dependencies("package.json", {}, client) == []
    assert client.batch_sizes == []


@pytest.mark.parametrize(
    ("record", "expected"),
    [
        (VulnerabilityRecord(id="MAL-2024-1234", summary="", details=""), True),
        (VulnerabilityRecord(id="MAL-2024-1234"), True),
        (VulnerabilityRecord(id="GHSA-xxxx", summary="Contains Malicious code"), True),
        (VulnerabilityRecord(id="GHSA-zzzz", details="This package is MALICIOUS."), True),
        (VulnerabilityRecord(id="GHSA-yyyy", summary="Denial of service"), False),
        (VulnerabilityRecord(id="GHSA-wwww", summary="Embedded backdoor"), False),
        (VulnerabilityRecord(id="mal-lowercase"), False),
    ],
)
def test_is_malicious(record: VulnerabilityRecord, expected: bool) -> None:
    assert is_malicious(record) is expected


def test_findings_are_attributed_to_the_right_package() -> None:
    session = FakeSession(
        vulns={
            "colors-update@2.0.0": [
                {"id": "MAL-2024-1234"},
                {"id": "GHSA-yyyy", "summary": "Denial of service"},
            ],
            "evil@0.0.1": [{"id": "GHSA-xxxx", "summary": "Contains Malicious code"}],
        }
    )
    deps = {"lodash": "4.17.21", "colors-update": "2.0.0", "evil": "0.0.1"}

    findings = match_dependencies("app/package.json", deps, OsvClient(session=session))

    assert [(f.package, f.version, f.advisory_id) for f in findings] == [
        ("colors-update", "2.0.0", "MAL-2024-1234"),
        ("evil", "0.0.1", "GHSA-xxxx"),
    ]
    assert findings[0].summary == "Malicious package detected"
    assert findings[1].summary == "Contains Malicious code"
    assert all(f.manifest == "app/package.json" for f in findings)


def test_batch_failure_aborts_matching() -> None:
    class FailingClient:
        def query_batch(self, queries):
            raise OsvTransportError("boom")

    with pytest.raises(OsvTransportError):
        match_dependencies("package.json", {"a": "1.0.0"}, FailingClient())
