"""Repository and manifest discovery utilities."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

MANIFEST_NAME = "package.json"
INSTALL_DIR = "node_modules"


def _should_skip(name: str) -> bool:
    return name == INSTALL_DIR or name.startswith(".")


def discover_manifests(root: Path) -> Iterator[Path]:
    """Yield every package.json under root, depth first.

    Directory entries are visited in name order. ``node_modules`` and hidden
    entries are pruned together with their subtrees, and symlinked directories
    are not followed. ``OSError`` from an unreadable directory propagates.
    """
    stack: list[Iterator[os.DirEntry[str]]] = [_entries(root.resolve())]

    while stack:
        entry = next(stack[-1], None)
        if entry is None:
            stack.pop()
            continue
        if _should_skip(entry.name):
            continue
        if entry.is_dir(follow_symlinks=False):
            stack.append(_entries(Path(entry.path)))
        elif entry.name == MANIFEST_NAME and entry.is_file():
            yield Path(entry.path)


def _entries(directory: Path) -> Iterator[os.DirEntry[str]]:
    with os.scandir(directory) as it:
        entries = sorted(it, key=lambda entry: entry.name)
    return iter(entries)
