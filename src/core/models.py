# src/core/models.py — v1
"""Shared Pydantic domain models used across modules.

Wire names (camelCase, as stored in repository records) are accepted as
aliases; Python code uses the snake_case field names.
"""

from __future__ import annotations

import time
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


# === VIRTUAL FILESYSTEM ===


class FileEntry(BaseModel):
    """A single file in a site tree, pointing at a content-addressed blob."""

    model_config = ConfigDict(populate_by_name=True)

    cid: str
    mime_type: str | None = Field(default=None, alias="mimeType")
    size: int | None = None


class DirectoryNode(BaseModel):
    """Canonical (flat) directory: files and subdirectories keyed by name."""

    files: dict[str, FileEntry] = Field(default_factory=dict)
    dirs: dict[str, DirectoryNode] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return not self.files and not self.dirs


class Manifest(BaseModel):
    """Merged tree of one published site plus its record metadata."""

    model_config = ConfigDict(populate_by_name=True)

    root: DirectoryNode = Field(default_factory=DirectoryNode)
    rkey: str = ""
    site: str = ""
    file_count: int | None = Field(default=None, alias="fileCount")
    created_at: str | None = Field(default=None, alias="createdAt")
    record_count: int = 0


class SiteRecordInfo(BaseModel):
    """Metadata of one site record, without its tree."""

    model_config = ConfigDict(populate_by_name=True)

    rkey: str
    site: str
    file_count: int | None = Field(default=None, alias="fileCount")
    created_at: str | None = Field(default=None, alias="createdAt")


# === SERVING CONTEXT ===


class SiteInfo(BaseModel):
    """The active serving context: where blobs live and what the site is called."""

    model_config = ConfigDict(populate_by_name=True)

    pds_url: str = Field(alias="pdsUrl")
    did: str
    handle: str | None = None
    site_name: str = Field(default="site", alias="siteName")


class ResolutionResult(BaseModel):
    """Output of the identity resolution chain."""

    model_config = ConfigDict(populate_by_name=True)

    handle: str | None = None
    did: str
    pds_url: str = Field(alias="pdsUrl")


# === CACHING ===


class CacheEntry(BaseModel, Generic[T]):
    """Uniform envelope for session-scoped cache values."""

    data: T
    timestamp: float = Field(default_factory=time.time)
    ttl: float | None = None

    def is_expired(self, now: float | None = None) -> bool:
        if self.ttl is None:
            return False
        current = time.time() if now is None else now
        return current - self.timestamp > self.ttl
