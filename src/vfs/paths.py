# src/vfs/paths.py — v1
"""Path normalization and lookup over an in-memory DirectoryNode tree.

Pure functions; nothing here touches the network or storage.

Resolution order used by the site server (resolve()):
  1. direct lookup of the path
  2. index.html / index.htm inside it, if it is a directory
  3. a directory listing, if it is a directory without an index file
  4. the path with ".html" appended, if it is not a known directory
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from wispview.core.models import DirectoryNode, FileEntry
from wispview.vfs.mime import guess_mime_type

INDEX_FILES = ("index.html", "index.htm")


@dataclass(frozen=True)
class FileLookup:
    """A path that resolved to a file."""

    cid: str
    mime_type: str
    path: str = ""


@dataclass(frozen=True)
class DirectoryListing:
    """A path that resolved to a directory. ``dirs`` is sorted."""

    path: str
    files: dict[str, FileEntry] = field(default_factory=dict)
    dirs: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolve(): a file to serve, a listing to render, or nothing."""

    kind: Literal["file", "listing", "not_found"]
    path: str
    file: FileLookup | None = None
    listing: DirectoryListing | None = None


def normalize_path(path: str) -> str:
    """Canonical relative form of ``path``.

    Query and fragment are dropped, then empty and ``.`` segments; ``..`` pops
    the previous segment (no-op at the root). Idempotent.
    """
    clean = path.split("?", 1)[0].split("#", 1)[0].strip()
    segments: list[str] = []
    for segment in clean.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if segments:
                segments.pop()
            continue
        segments.append(segment)
    return "/".join(segments)


def find_directory(tree: DirectoryNode, path: str) -> DirectoryNode | None:
    """Walk ``path`` through ``dirs`` only; None if any segment is missing."""
    current = tree
    normalized = normalize_path(path)
    if not normalized:
        return current
    for segment in normalized.split("/"):
        nxt = current.dirs.get(segment)
        if nxt is None:
            return None
        current = nxt
    return current


def is_directory(tree: DirectoryNode, path: str) -> bool:
    return find_directory(tree, path) is not None


def _listing(path: str, node: DirectoryNode) -> DirectoryListing:
    return DirectoryListing(path=path, files=dict(node.files), dirs=sorted(node.dirs))


def _file_lookup(path: str, name: str, entry: FileEntry) -> FileLookup:
    return FileLookup(
        cid=entry.cid,
        mime_type=entry.mime_type or guess_mime_type(name),
        path=path,
    )


def lookup(tree: DirectoryNode, path: str) -> FileLookup | DirectoryListing | None:
    """Look up a file or directory by path.

    The empty path (or ``/``) always yields the root listing, even for an
    empty tree.
    """
    normalized = normalize_path(path)
    if not normalized:
        return _listing("", tree)

    *parents, name = normalized.split("/")
    current = tree
    for segment in parents:
        nxt = current.dirs.get(segment)
        if nxt is None:
            return None
        current = nxt

    entry = current.files.get(name)
    if entry is not None:
        return _file_lookup(normalized, name, entry)

    subdir = current.dirs.get(name)
    if subdir is not None:
        return _listing(normalized, subdir)

    return None


def lookup_index(tree: DirectoryNode, path: str) -> FileLookup | None:
    """First of index.html / index.htm inside the directory at ``path``."""
    directory = find_directory(tree, path)
    if directory is None:
        return None
    base = normalize_path(path)
    for name in INDEX_FILES:
        entry = directory.files.get(name)
        if entry is not None:
            return _file_lookup(f"{base}/{name}" if base else name, name, entry)
    return None


def resolve(tree: DirectoryNode, path: str) -> Resolution:
    """Apply the full lookup chain for a request path."""
    normalized = normalize_path(path)
    found = lookup(tree, normalized)

    if isinstance(found, FileLookup):
        return Resolution(kind="file", path=normalized, file=found)

    if isinstance(found, DirectoryListing):
        index = lookup_index(tree, normalized)
        if index is not None:
            return Resolution(kind="file", path=normalized, file=index)
        return Resolution(kind="listing", path=normalized, listing=found)

    if normalized:
        fallback = lookup(tree, f"{normalized}.html")
        if isinstance(fallback, FileLookup):
            return Resolution(kind="file", path=normalized, file=fallback)

    return Resolution(kind="not_found", path=normalized)


def is_index_path(path: str) -> bool:
    return normalize_path(path) in INDEX_FILES


def get_index_for_path(path: str) -> str:
    normalized = normalize_path(path)
    return f"{normalized}/index.html" if normalized else "index.html"


def count_files(tree: DirectoryNode) -> int:
    """Number of files in the tree, recursively."""
    return len(tree.files) + sum(count_files(d) for d in tree.dirs.values())


def count_directories(tree: DirectoryNode) -> int:
    """Number of subdirectories in the tree, recursively (root excluded)."""
    return len(tree.dirs) + sum(count_directories(d) for d in tree.dirs.values())
