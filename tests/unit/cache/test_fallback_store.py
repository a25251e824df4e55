# tests/unit/cache/test_fallback_store.py — v1
"""Tests for cache/fallback_store.py — memory-only degradation."""

from __future__ import annotations

import sqlite3

import pytest

from wispview.cache.fallback_store import FallbackCacheStore
from wispview.cache.memory_store import MemoryCacheStore


class BrokenStore(MemoryCacheStore):
    """Raises the given storage error from every blob write."""

    def __init__(self, error: Exception) -> None:
        super().__init__()
        self.error = error
        self.closed = False

    async def put_blob(self, cid: str, data: bytes) -> None:
        raise self.error

    def close(self) -> None:
        self.closed = True


class TestFallbackCacheStore:
    @pytest.mark.asyncio
    async def test_delegates_while_healthy(self, sample_manifest, sample_site_info):
        primary = MemoryCacheStore()
        store = FallbackCacheStore(primary)
        await store.put_manifest(sample_manifest, sample_site_info)
        assert await primary.get_manifest() == sample_manifest
        assert not store.degraded

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [OSError("disk full"), sqlite3.OperationalError("locked")])
    async def test_degrades_on_storage_error(self, error):
        primary = BrokenStore(error)
        store = FallbackCacheStore(primary)
        await store.put_blob("bafy1", b"data")
        assert store.degraded
        assert primary.closed
        assert await store.get_blob("bafy1") == b"data"

    @pytest.mark.asyncio
    async def test_stays_degraded(self, sample_manifest, sample_site_info):
        primary = BrokenStore(OSError("gone"))
        store = FallbackCacheStore(primary)
        await store.put_blob("bafy1", b"x")
        await store.put_manifest(sample_manifest, sample_site_info)
        assert await primary.get_manifest() is None
        assert await store.get_manifest() == sample_manifest

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self):
        store = FallbackCacheStore(BrokenStore(ValueError("bug")))
        with pytest.raises(ValueError):
            await store.put_blob("bafy1", b"x")
        assert not store.degraded
