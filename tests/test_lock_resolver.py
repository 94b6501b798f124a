from __future__ import annotations

import subprocess
from pathlib import Path

from npm_malscan.lock_resolver import NPM_COMMAND, YARN_COMMAND, resolve_lock

from conftest import RecordingRunner, make_manifest, make_v3_lock


def test_existing_package_lock_is_returned_without_synthesis(tmp_path: Path) -> None:
    manifest = make_manifest(tmp_path)
    lock_path = make_v3_lock(tmp_path, {"a": "1.0.0"})
    runner = RecordingRunner()

    first = resolve_lock(manifest, runner=runner)
    second = resolve_lock(manifest, runner=runner)

    assert first is not None and second is not None
    assert first.path == second.path == lock_path
    assert not first.ephemeral
    assert runner.calls == []


def test_package_lock_preferred_over_yarn_lock(tmp_path: Path) -> None:
    manifest = make_manifest(tmp_path)
    (tmp_path / "yarn.lock").write_text("", encoding="utf-8")
    make_v3_lock(tmp_path, {})

    lock = resolve_lock(manifest, runner=RecordingRunner())

    assert lock is not None
    assert lock.path.name == "package-lock.json"


def test_existing_yarn_lock_is_returned(tmp_path: Path) -> None:
    manifest = make_manifest(tmp_path)
    (tmp_path / "yarn.lock").write_text("# yarn lockfile v1\n", encoding="utf-8")
    runner = RecordingRunner()

    lock = resolve_lock(manifest, runner=runner)

    assert lock is not None
    assert lock.path == tmp_path / "yarn.lock"
    assert not lock.ephemeral
    assert runner.calls == []


def test_npm_synthesis_marks_lock_ephemeral(tmp_path: Path) -> None:
    manifest = make_manifest(tmp_path)
    runner = RecordingRunner(writes={"npm": '{"lockfileVersion": 3, "packages": {}}'})

    lock = resolve_lock(manifest, runner=runner)

    assert lock is not None
    assert lock.path == tmp_path / "package-lock.json"
    assert lock.ephemeral
    assert runner.calls == [(NPM_COMMAND, tmp_path)]


def test_falls_back_to_yarn_when_npm_writes_nothing(tmp_path: Path) -> None:
    manifest = make_manifest(tmp_path)
    runner = RecordingRunner(writes={"yarn": "# yarn lockfile v1\n"})

    lock = resolve_lock(manifest, runner=runner)

    assert lock is not None
    assert lock.path == tmp_path / "yarn.lock"
    assert lock.ephemeral
    assert [call[0] for call in runner.calls] == [NPM_COMMAND, YARN_COMMAND]


def test_returns_none_when_both_package_managers_are_missing(
    tmp_path: Path, failing_runner: RecordingRunner
) -> None:
    manifest = make_manifest(tmp_path)

    assert resolve_lock(manifest, runner=failing_runner) is None
    assert len(failing_runner.calls) == 2


def test_timeout_counts_as_failure(tmp_path: Path) -> None:
    manifest = make_manifest(tmp_path)
    runner = RecordingRunner(raises=subprocess.TimeoutExpired(cmd="npm", timeout=1))

    assert resolve_lock(manifest, runner=runner, timeout=1) is None
    assert not (tmp_path / "package-lock.json").exists()
