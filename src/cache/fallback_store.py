# src/cache/fallback_store.py — v1
"""Wrapper that degrades a durable store to memory when storage access fails.

The first OSError or sqlite3.Error raised by the wrapped backend switches the
wrapper to a MemoryCacheStore for the rest of the session. The failing
operation itself is replayed against memory, so callers never see the error.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Awaitable, Callable, TypeVar

from wispview.cache.base_cache_store import BaseCacheStore
from wispview.cache.memory_store import MemoryCacheStore
from wispview.core.models import Manifest, SiteInfo

logger = logging.getLogger(__name__)

T = TypeVar("T")

STORAGE_ERRORS: tuple[type[BaseException], ...] = (OSError, sqlite3.Error)


class FallbackCacheStore(BaseCacheStore):
    """Delegates to ``primary`` until it fails, then to memory."""

    def __init__(self, primary: BaseCacheStore) -> None:
        self._primary = primary
        self._memory = MemoryCacheStore()
        self._degraded = False

    @property
    def degraded(self) -> bool:
        return self._degraded

    async def _call(
        self, op: Callable[[BaseCacheStore], Awaitable[T]], name: str
    ) -> T:
        if not self._degraded:
            try:
                return await op(self._primary)
            except STORAGE_ERRORS as e:
                logger.warning(
                    "Durable store failed during %s (%s); continuing memory-only", name, e
                )
                self._degraded = True
                try:
                    self._primary.close()
                except STORAGE_ERRORS as close_error:
                    logger.debug("Closing failed store also failed: %s", close_error)
        return await op(self._memory)

    async def get_manifest(self) -> Manifest | None:
        return await self._call(lambda s: s.get_manifest(), "get_manifest")

    async def get_site_info(self) -> SiteInfo | None:
        return await self._call(lambda s: s.get_site_info(), "get_site_info")

    async def put_manifest(self, manifest: Manifest, site_info: SiteInfo) -> None:
        await self._call(lambda s: s.put_manifest(manifest, site_info), "put_manifest")

    async def clear_manifest(self) -> None:
        await self._call(lambda s: s.clear_manifest(), "clear_manifest")

    async def get_blob(self, cid: str) -> bytes | None:
        return await self._call(lambda s: s.get_blob(cid), "get_blob")

    async def put_blob(self, cid: str, data: bytes) -> None:
        await self._call(lambda s: s.put_blob(cid, data), "put_blob")

    async def clear_blobs(self) -> None:
        await self._call(lambda s: s.clear_blobs(), "clear_blobs")

    async def blob_count(self) -> int:
        return await self._call(lambda s: s.blob_count(), "blob_count")

    def close(self) -> None:
        if not self._degraded:
            self._primary.close()
