"""Locate or synthesise the lock file that belongs to a manifest."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path

from .models.lock_file import PACKAGE_LOCK_NAME, YARN_LOCK_NAME, LockFile

logger = logging.getLogger(__name__)

NPM_COMMAND = ("npm", "install", "--package-lock-only", "--ignore-scripts")
YARN_COMMAND = ("yarn", "install", "--mode", "skip-build")

DEFAULT_SYNTHESIS_TIMEOUT = 300.0

# (argv, cwd, timeout) -> None; output is discarded
Runner = Callable[[Sequence[str], Path, float], None]


def run_package_manager(argv: Sequence[str], cwd: Path, timeout: float) -> None:
    """Run a package manager, discarding its output.

    The exit status is not inspected: callers judge success by whether the
    expected lock file appeared.
    """
    subprocess.run(
        list(argv),
        cwd=cwd,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        timeout=timeout,
        check=False,
    )


def find_existing_lock(manifest: Path) -> LockFile | None:
    """Return a pre-existing lock file beside the manifest, npm first."""
    directory = manifest.parent
    for name in (PACKAGE_LOCK_NAME, YARN_LOCK_NAME):
        candidate = directory / name
        if candidate.is_file():
            return LockFile(candidate, ephemeral=False)
    return None


def _synthesise(
    argv: Sequence[str],
    target: Path,
    runner: Runner,
    timeout: float,
) -> LockFile | None:
    logger.debug("Running %s in %s", " ".join(argv), target.parent)
    try:
        runner(argv, target.parent, timeout)
    except FileNotFoundError:
        logger.debug("%s is not installed", argv[0])
    except subprocess.TimeoutExpired:
        logger.warning("%s timed out after %ss in %s", argv[0], timeout, target.parent)
    except OSError as exc:
        logger.debug("%s failed to start: %s", argv[0], exc)

    if target.is_file():
        logger.info("Generated %s", target.name)
        return LockFile(target, ephemeral=True)
    return None


def resolve_lock(
    manifest: Path,
    *,
    runner: Runner = run_package_manager,
    timeout: float = DEFAULT_SYNTHESIS_TIMEOUT,
) -> LockFile | None:
    """Return a usable lock file for ``manifest`` or None when none is obtainable.

    Existing lock files are returned untouched and never regenerated. When
    neither exists, npm and then yarn are asked to write one; files created
    that way come back tagged ``ephemeral``.
    """
    existing = find_existing_lock(manifest)
    if existing is not None:
        return existing

    logger.info("No lock file found, generating one...")
    directory = manifest.parent
    lock = _synthesise(NPM_COMMAND, directory / PACKAGE_LOCK_NAME, runner, timeout)
    if lock is None:
        lock = _synthesise(YARN_COMMAND, directory / YARN_LOCK_NAME, runner, timeout)
    if lock is None:
        logger.warning("Could not generate a lock file for %s", manifest)
    return lock
