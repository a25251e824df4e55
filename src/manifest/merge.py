# src/manifest/merge.py — v1
"""Directory Merge: union of directory trees in order.

For each path, a later tree's file replaces an earlier one with the same
name; subdirectories with the same name are merged recursively, never
replaced wholesale. Inputs are not mutated.
"""

from __future__ import annotations

from typing import Iterable

from wispview.core.models import DirectoryNode


def merge_directories(*directories: DirectoryNode | None) -> DirectoryNode:
    """Merge ``directories`` left to right. None entries are skipped."""
    return merge_all(directories)


def merge_all(directories: Iterable[DirectoryNode | None]) -> DirectoryNode:
    result = DirectoryNode()
    for directory in directories:
        if directory is None:
            continue
        _merge_into(result, directory)
    return result


def _merge_into(target: DirectoryNode, source: DirectoryNode) -> None:
    target.files.update(
        {name: entry.model_copy() for name, entry in source.files.items()}
    )
    for name, sub in source.dirs.items():
        existing = target.dirs.get(name)
        if existing is None:
            existing = DirectoryNode()
            target.dirs[name] = existing
        _merge_into(existing, sub)
