"""Lock file parsers and the format registry.

Every supported serialisation is decoded into the same canonical dependency
set (package name -> resolved version). The format is chosen once per lock
file and dispatched through ``LOCK_PARSERS``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeAlias

from ..errors import LockParseError
from ..models.lock_file import LockFile, LockFormat
from . import package_lock, yarn_lock

DependencySet: TypeAlias = dict[str, str]
ParseFunction: TypeAlias = Callable[[Any], DependencySet]


@dataclass(slots=True, frozen=True)
class DecodedLock:
    """A lock file's payload together with the format it was detected as."""

    format: LockFormat
    payload: Any


LOCK_PARSERS: dict[LockFormat, ParseFunction] = {
    LockFormat.NPM_LEGACY: package_lock.parse_legacy,
    LockFormat.NPM_V3: package_lock.parse_v3,
    LockFormat.YARN_CLASSIC: yarn_lock.parse,
}


def _read_text(lock: LockFile) -> str:
    try:
        return lock.path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise LockParseError(f"{lock.path.name} is not valid UTF-8") from exc
    except OSError as exc:
        raise LockParseError(f"failed to read {lock.path.name}: {exc}") from exc


def decode_lock(lock: LockFile) -> DecodedLock:
    """Read a lock file and select its format.

    Raises:
        LockParseError: If the file cannot be read or decoded.
    """
    text = _read_text(lock)
    if lock.is_yarn:
        return DecodedLock(LockFormat.YARN_CLASSIC, text)
    document = package_lock.load_document(text)
    return DecodedLock(package_lock.detect_format(document), document)


def parse_lock(lock: LockFile) -> DependencySet:
    """Return the canonical dependency set for a lock file."""
    decoded = decode_lock(lock)
    return LOCK_PARSERS[decoded.format](decoded.payload)


__all__ = [
    "DecodedLock",
    "DependencySet",
    "LOCK_PARSERS",
    "ParseFunction",
    "decode_lock",
    "parse_lock",
]
