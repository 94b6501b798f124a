"""Parse npm package-lock.json to capture resolved transitive dependencies."""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from typing import Any

from ..errors import LockParseError
from ..models.lock_file import LockFormat

INSTALL_DIR = "node_modules"
_PREFIX = INSTALL_DIR + "/"


def load_document(text: str) -> dict[str, Any]:
    """Decode lock file text into its top-level JSON object."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise LockParseError(f"invalid JSON ({exc.msg} at line {exc.lineno})") from exc
    if not isinstance(data, dict):
        raise LockParseError("lock file must contain a JSON object")
    return data


def detect_format(document: Mapping[str, Any]) -> LockFormat:
    """Pick the npm lock layout.

    lockfileVersion 3 only carries the flat ``packages`` map. Versions 1 and 2
    both carry the ``dependencies`` tree, which is what gets walked for them.
    """
    version = document.get("lockfileVersion")
    if isinstance(version, int) and not isinstance(version, bool) and version >= 3:
        return LockFormat.NPM_V3
    if not isinstance(document.get("dependencies"), dict) and isinstance(
        document.get("packages"), dict
    ):
        return LockFormat.NPM_V3
    return LockFormat.NPM_LEGACY


def parse_legacy(document: Mapping[str, Any]) -> dict[str, str]:
    """Return name -> version for every node of the v1/v2 ``dependencies`` tree.

    The tree is walked pre-order with an explicit stack, so nesting depth is
    unbounded. A name seen again deeper in the tree overwrites the earlier
    version.
    """
    deps: dict[str, str] = {}
    root = document.get("dependencies")
    if not isinstance(root, dict):
        return deps

    stack: list[Iterator[tuple[str, Any]]] = [iter(root.items())]
    while stack:
        item = next(stack[-1], None)
        if item is None:
            stack.pop()
            continue
        name, meta = item
        if not isinstance(meta, dict):
            continue
        version = meta.get("version")
        if isinstance(version, str) and version:
            deps[name] = version
        nested = meta.get("dependencies")
        if isinstance(nested, dict) and nested:
            stack.append(iter(nested.items()))

    return deps


def package_name(key: str) -> str | None:
    """Recover the bare package name from a ``packages`` key.

    Returns None for the root entry and for nested installs such as
    ``node_modules/a/node_modules/b``, which are listed again under their own
    top-level key.
    """
    name = key
    while name.startswith(_PREFIX):
        name = name[len(_PREFIX):]
    if not name:
        return None
    if INSTALL_DIR in name.split("/"):
        return None
    return name


def parse_v3(document: Mapping[str, Any]) -> dict[str, str]:
    """Return name -> version from the flat v3 ``packages`` map."""
    deps: dict[str, str] = {}
    packages = document.get("packages")
    if not isinstance(packages, dict):
        return deps

    for key, meta in packages.items():
        if not isinstance(meta, dict):
            continue
        name = package_name(key)
        if name is None:
            continue
        version = meta.get("version")
        # link entries for workspaces have no version of their own
        if isinstance(version, str) and version:
            deps[name] = version

    return deps
