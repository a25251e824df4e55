# tests/unit/cache/test_cache_factory.py — v1
"""Tests for cache/cache_factory.py."""

from __future__ import annotations

import pytest

from wispview.cache.cache_factory import create_cache_store
from wispview.cache.fallback_store import FallbackCacheStore
from wispview.cache.memory_store import MemoryCacheStore
from wispview.config.settings import Settings


class TestCreateCacheStore:
    def test_memory(self, tmp_path):
        s = Settings(_env_file=None, cache_backend="memory", cache_root=tmp_path)
        assert isinstance(create_cache_store(s), MemoryCacheStore)

    def test_json_wrapped(self, tmp_path):
        s = Settings(_env_file=None, cache_backend="json", cache_root=tmp_path)
        store = create_cache_store(s)
        assert isinstance(store, FallbackCacheStore)
        assert (tmp_path / "manifests").is_dir()

    def test_sqlite_wrapped(self, tmp_path):
        s = Settings(_env_file=None, cache_backend="sqlite", cache_root=tmp_path)
        store = create_cache_store(s)
        try:
            assert isinstance(store, FallbackCacheStore)
            assert (tmp_path / "wispview_cache.db").exists()
        finally:
            store.close()

    def test_unopenable_root_falls_back_to_memory(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory", encoding="utf-8")
        s = Settings(_env_file=None, cache_backend="json", cache_root=blocker / "cache")
        assert isinstance(create_cache_store(s), MemoryCacheStore)

    def test_unknown_backend(self, tmp_path):
        s = Settings(_env_file=None, cache_root=tmp_path).model_copy(update={"cache_backend": "redis"})
        with pytest.raises(ValueError, match="Unsupported cache backend"):
            create_cache_store(s)
