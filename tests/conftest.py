"""Shared fixtures: fake OSV session and lock-file builders."""

from __future__ import annotations

import json
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


def make_manifest(directory: Path, name: str = "app", deps: dict[str, str] | None = None) -> Path:
    return write_json(
        directory / "package.json",
        {"name": name, "version": "1.0.0", "dependencies": deps or {}},
    )


def make_v3_lock(directory: Path, packages: dict[str, str]) -> Path:
    entries: dict[str, Any] = {"": {"name": "app", "version": "1.0.0"}}
    for name, version in packages.items():
        entries[f"node_modules/{name}"] = {"version": version}
    return write_json(
        directory / "package-lock.json",
        {"name": "app", "lockfileVersion": 3, "requires": True, "packages": entries},
    )


class FakeResponse:
    def __init__(self, payload: Any = None, status_code: int = 200, text: str | None = None):
        self._payload = payload
        self.status_code = status_code
        self._text = text

    def json(self) -> Any:
        if self._text is not None:
            return json.loads(self._text)
        return self._payload


class FakeSession:
    """Stand-in for requests.Session that answers OSV batch queries.

    ``vulns`` maps "name@version" to the list of vuln dicts to return for that
    query. Every request body is recorded in ``requests``.
    """

    def __init__(
        self,
        vulns: dict[str, list[dict[str, Any]]] | None = None,
        respond: Callable[[dict[str, Any]], FakeResponse] | None = None,
    ):
        self.vulns = vulns or {}
        self.respond = respond
        self.requests: list[dict[str, Any]] = []
        self.closed = False
        self._lock = threading.Lock()

    def post(self, url: str, json: dict[str, Any], headers: dict[str, str], timeout: float):
        with self._lock:
            self.requests.append(json)
        if self.respond is not None:
            return self.respond(json)
        results = []
        for query in json["queries"]:
            key = f"{query['package']['name']}@{query['version']}"
            found = self.vulns.get(key)
            results.append({"vulns": found} if found else {})
        return FakeResponse({"results": results})

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


class RecordingRunner:
    """Subprocess runner double; optionally writes lock files per command."""

    def __init__(self, writes: dict[str, str] | None = None, raises: BaseException | None = None):
        self.writes = writes or {}
        self.raises = raises
        self.calls: list[tuple[tuple[str, ...], Path]] = []

    def __call__(self, argv, cwd: Path, timeout: float) -> None:
        self.calls.append((tuple(argv), cwd))
        if self.raises is not None:
            raise self.raises
        content = self.writes.get(argv[0])
        if content is not None:
            target = "package-lock.json" if argv[0] == "npm" else "yarn.lock"
            (cwd / target).write_text(content, encoding="utf-8")


@pytest.fixture
def failing_runner() -> RecordingRunner:
    return RecordingRunner(raises=FileNotFoundError("not installed"))
