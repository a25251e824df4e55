# src/cache/cache_factory.py — v1
"""Factory for durable store instantiation."""

from __future__ import annotations

import logging

from wispview.cache.base_cache_store import BaseCacheStore
from wispview.cache.fallback_store import STORAGE_ERRORS, FallbackCacheStore
from wispview.cache.memory_store import MemoryCacheStore
from wispview.config.settings import Settings

logger = logging.getLogger(__name__)


def create_cache_store(settings: Settings | None = None) -> BaseCacheStore:
    """Instantiate the configured store backend.

    Durable backends are wrapped in FallbackCacheStore. If the backend cannot
    even be opened, a MemoryCacheStore is returned instead.

    Args:
        settings: Application settings. Defaults to the JSON backend.

    Returns:
        Configured BaseCacheStore implementation.
    """
    backend = "json" if settings is None else settings.cache_backend
    cache_root = "~/.wispview/cache" if settings is None else str(settings.cache_root)

    if backend == "memory":
        return MemoryCacheStore()

    try:
        if backend == "json":
            from wispview.cache.json_store import JsonCacheStore

            return FallbackCacheStore(JsonCacheStore(cache_root=cache_root))

        if backend == "sqlite":
            from wispview.cache.sqlite_store import SqliteCacheStore

            return FallbackCacheStore(
                SqliteCacheStore(db_path=f"{cache_root}/wispview_cache.db")
            )
    except STORAGE_ERRORS as e:
        logger.warning(
            "Cannot open %s store at %s (%s); using memory-only store",
            backend, cache_root, e,
        )
        return MemoryCacheStore()

    raise ValueError(f"Unsupported cache backend: {backend!r}")
