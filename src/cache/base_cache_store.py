# src/cache/base_cache_store.py — v1
"""Abstract durable store interface.

Two logical stores live behind one backend: ``manifests`` holds the single
resident manifest and its SiteInfo, ``blobs`` maps content identifiers to
decompressed bytes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from wispview.core.models import Manifest, SiteInfo

MANIFEST_KEY = "current-manifest"
SITE_INFO_KEY = "site-info"


class BaseCacheStore(ABC):
    """Unified interface for durable storage backends."""

    # --- manifests store ---

    @abstractmethod
    async def get_manifest(self) -> Manifest | None:
        """Return the resident manifest, if one was persisted."""

    @abstractmethod
    async def get_site_info(self) -> SiteInfo | None:
        """Return the resident SiteInfo, if one was persisted."""

    @abstractmethod
    async def put_manifest(self, manifest: Manifest, site_info: SiteInfo) -> None:
        """Replace the resident manifest and SiteInfo."""

    @abstractmethod
    async def clear_manifest(self) -> None:
        """Drop the resident manifest and SiteInfo."""

    # --- blobs store ---

    @abstractmethod
    async def get_blob(self, cid: str) -> bytes | None:
        """Return cached bytes for a content identifier."""

    @abstractmethod
    async def put_blob(self, cid: str, data: bytes) -> None:
        """Store bytes for a content identifier (overwrites)."""

    @abstractmethod
    async def clear_blobs(self) -> None:
        """Empty the blob store."""

    @abstractmethod
    async def blob_count(self) -> int:
        """Number of cached blobs."""

    def close(self) -> None:
        """Release backend resources. No-op by default."""
