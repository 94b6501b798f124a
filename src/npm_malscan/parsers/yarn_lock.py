"""Parse yarn.lock to capture resolved dependencies."""

from __future__ import annotations

import re
from enum import Enum

# "@scope/name@^1.0.0", "@scope/name@^1.2.0":   or   name@^1.0.0:
HEADER_PATTERN = re.compile(r'^"?(?P<name>@?[^@\s",]+)@.*:$')
VERSION_PATTERN = re.compile(r'\bversion\s+"(?P<version>[^"]+)"')


class _State(Enum):
    AWAITING_HEADER = "awaiting-header"
    AWAITING_VERSION = "awaiting-version"


def parse(text: str) -> dict[str, str]:
    """Return name -> version from yarn classic lock file text.

    Best effort: a header opens a pending entry, the next ``version "x"`` line
    closes it. Lines that fit neither are ignored.
    """
    deps: dict[str, str] = {}
    state = _State.AWAITING_HEADER
    pending: str | None = None

    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        header = HEADER_PATTERN.match(line)
        if header:
            pending = header.group("name")
            state = _State.AWAITING_VERSION
            continue

        if state is _State.AWAITING_VERSION and pending is not None:
            found = VERSION_PATTERN.search(line)
            if found:
                deps[pending] = found.group("version")
                pending = None
                state = _State.AWAITING_HEADER

    return deps
