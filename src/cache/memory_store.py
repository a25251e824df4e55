# src/cache/memory_store.py — v1
"""In-memory store (CACHE_BACKEND=memory), also the degraded fallback."""

from __future__ import annotations

from wispview.cache.base_cache_store import BaseCacheStore
from wispview.core.models import Manifest, SiteInfo


class MemoryCacheStore(BaseCacheStore):
    """Process-local dictionaries; lost on restart."""

    def __init__(self) -> None:
        self._manifest: Manifest | None = None
        self._site_info: SiteInfo | None = None
        self._blobs: dict[str, bytes] = {}

    async def get_manifest(self) -> Manifest | None:
        return self._manifest

    async def get_site_info(self) -> SiteInfo | None:
        return self._site_info

    async def put_manifest(self, manifest: Manifest, site_info: SiteInfo) -> None:
        self._manifest = manifest
        self._site_info = site_info

    async def clear_manifest(self) -> None:
        self._manifest = None
        self._site_info = None

    async def get_blob(self, cid: str) -> bytes | None:
        return self._blobs.get(cid)

    async def put_blob(self, cid: str, data: bytes) -> None:
        self._blobs[cid] = data

    async def clear_blobs(self) -> None:
        self._blobs.clear()

    async def blob_count(self) -> int:
        return len(self._blobs)
