# src/manifest/lexicon.py — v1
"""Parsing of place.wisp.fs (site) and place.wisp.subfs (fragment) records.

A directory arrives in one of two encodings:

  flat           {"files": {name: {cid, mimeType?, size?}}, "dirs": {name: dir}}
  entry-array    {"type": "directory", "entries": [{"name": ..., "node": ...}]}

Entry-array input is first validated into a typed tree (EntriesDirectory /
FileNode, blob references as LinkRef / CidRef), then converted into the
canonical DirectoryNode. Both steps are pure; only validation raises.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Union

from pydantic import ValidationError

from wispview.core.errors import ParseError
from wispview.core.models import DirectoryNode, FileEntry

FS_COLLECTION = "place.wisp.fs"
SUBFS_COLLECTION = "place.wisp.subfs"

_FILE_TYPES = ("file", "place.wisp.fs#file")
_DIRECTORY_TYPES = ("directory", "place.wisp.fs#directory")


# === BLOB REFERENCES ===


@dataclass(frozen=True)
class LinkRef:
    """Blob reference in {"$link": "<cid>"} form."""

    cid: str


@dataclass(frozen=True)
class CidRef:
    """Blob reference given as a structured CID object."""

    cid: str
    version: int | None = None
    code: int | None = None


BlobRef = Union[LinkRef, CidRef]


def parse_blob_ref(ref: Any) -> BlobRef:
    """Decide once which reference shape is present.

    Accepts {"$link": str}, DAG-JSON {"/": str}, a mapping carrying
    code/version plus a string form, or any object with ``code`` and
    ``version`` attributes whose str() is the CID.
    """
    if isinstance(ref, dict):
        link = ref.get("$link")
        if isinstance(link, str) and link:
            return LinkRef(link)
        if "code" in ref and "version" in ref:
            text = ref.get("/") or ref.get("cid") or ref.get("string")
            if isinstance(text, str) and text:
                return CidRef(text, version=ref.get("version"), code=ref.get("code"))
        text = ref.get("/")
        if isinstance(text, str) and text:
            return CidRef(text)
        raise ParseError("Invalid blob ref format", ref)

    if ref is not None and hasattr(ref, "code") and hasattr(ref, "version"):
        text = str(ref)
        if text:
            return CidRef(text, version=getattr(ref, "version"), code=getattr(ref, "code"))

    raise ParseError("Invalid blob ref format", ref)


# === TYPED ENTRY-ARRAY TREE ===


@dataclass(frozen=True)
class FileNode:
    blob_ref: BlobRef
    mime_type: str | None = None
    size: int | None = None


@dataclass(frozen=True)
class EntriesDirectory:
    entries: list[tuple[str, FileNode | EntriesDirectory]] = field(default_factory=list)


def detect_encoding(raw: Any) -> Literal["flat", "entries"]:
    """Entry-array directories carry a ``type`` tag; flat ones never do."""
    if isinstance(raw, dict) and ("type" in raw or "entries" in raw):
        return "entries"
    return "flat"


def validate_file_node(node: dict[str, Any]) -> FileNode:
    blob = node.get("blob")
    if not isinstance(blob, dict):
        raise ParseError("File node has no blob", node)
    ref = blob.get("ref")
    if ref is None:
        raise ParseError("File node blob has no ref", node)
    blob_ref = parse_blob_ref(ref)

    mime_type = node.get("mimeType") or blob.get("mimeType")
    if mime_type is not None and not isinstance(mime_type, str):
        raise ParseError("File node mimeType must be a string", node)
    size = blob.get("size")
    if size is not None and not isinstance(size, int):
        raise ParseError("File node size must be an integer", node)
    return FileNode(blob_ref=blob_ref, mime_type=mime_type, size=size)


def validate_entries_directory(raw: Any) -> EntriesDirectory:
    """Validate an entry-array directory into its typed form.

    Raises:
        ParseError: On a missing name, unknown node type or bad blob reference.
    """
    if not isinstance(raw, dict):
        raise ParseError("Directory must be an object", raw)
    if raw.get("type") not in _DIRECTORY_TYPES:
        raise ParseError(f"Unrecognized directory type {raw.get('type')!r}", raw)

    entries = raw.get("entries")
    if entries is None:
        return EntriesDirectory()
    if not isinstance(entries, list):
        raise ParseError("Directory entries must be a list", raw)

    typed: list[tuple[str, FileNode | EntriesDirectory]] = []
    for entry in entries:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str) or not entry["name"]:
            raise ParseError("Directory entry is missing a name", entry)
        node = entry.get("node")
        if not isinstance(node, dict):
            raise ParseError(f"Entry {entry['name']!r} has no node", entry)

        node_type = node.get("type")
        if node_type in _FILE_TYPES:
            typed.append((entry["name"], validate_file_node(node)))
        elif node_type in _DIRECTORY_TYPES:
            typed.append((entry["name"], validate_entries_directory(node)))
        else:
            raise ParseError(f"Unrecognized node type {node_type!r}", entry)

    return EntriesDirectory(entries=typed)


def convert_entries_directory(directory: EntriesDirectory) -> DirectoryNode:
    """Typed entry-array tree to canonical DirectoryNode. Later duplicate names win."""
    result = DirectoryNode()
    for name, node in directory.entries:
        if isinstance(node, FileNode):
            result.files[name] = FileEntry(
                cid=node.blob_ref.cid, mime_type=node.mime_type, size=node.size
            )
        else:
            result.dirs[name] = convert_entries_directory(node)
    return result


def validate_flat_directory(raw: Any) -> DirectoryNode:
    """Validate a flat directory; the result is already canonical.

    Raises:
        ParseError: On non-object maps or file entries without a cid.
    """
    if not isinstance(raw, dict):
        raise ParseError("Directory must be an object", raw)

    files = raw.get("files") or {}
    dirs = raw.get("dirs") or {}
    if not isinstance(files, dict) or not isinstance(dirs, dict):
        raise ParseError("Directory files/dirs must be objects", raw)

    result = DirectoryNode()
    for name, entry in files.items():
        if not isinstance(entry, dict) or not isinstance(entry.get("cid"), str) or not entry["cid"]:
            raise ParseError(f"File {name!r} has no cid", entry)
        try:
            result.files[name] = FileEntry.model_validate(entry)
        except ValidationError as e:
            raise ParseError(f"Invalid file entry {name!r}: {e}", entry) from e
    for name, sub in dirs.items():
        result.dirs[name] = parse_directory(sub)
    return result


def parse_directory(raw: Any) -> DirectoryNode:
    """Parse either encoding into the canonical form."""
    if detect_encoding(raw) == "entries":
        return convert_entries_directory(validate_entries_directory(raw))
    return validate_flat_directory(raw)


# === RECORDS ===


@dataclass
class SiteRecord:
    """A parsed place.wisp.fs record."""

    rkey: str
    site: str
    file_count: int | None = None
    created_at: str | None = None
    root: DirectoryNode | None = None


def _check_type(value: Any, expected: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ParseError(f"Invalid {expected} record", value)
    record_type = value.get("$type")
    if record_type is not None and record_type != expected:
        raise ParseError(f"Invalid {expected} record type {record_type!r}", value)
    return value


def parse_fs_record(value: Any, rkey: str) -> SiteRecord:
    """Parse a site record; an absent root leaves ``root`` as None."""
    record = _check_type(value, FS_COLLECTION)
    root_raw = record.get("root")
    file_count = record.get("fileCount")
    return SiteRecord(
        rkey=rkey,
        site=record.get("site") or rkey,
        file_count=file_count if isinstance(file_count, int) else None,
        created_at=record.get("createdAt"),
        root=None if root_raw is None else parse_directory(root_raw),
    )


def parse_subfs_record(value: Any) -> DirectoryNode:
    """Parse a directory fragment record into its subtree."""
    record = _check_type(value, SUBFS_COLLECTION)
    directory = record.get("directory", record.get("root"))
    if directory is None:
        raise ParseError("Fragment record has no directory", value)
    return parse_directory(directory)
