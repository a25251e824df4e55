# src/server/session.py — v1
"""Resident serving state: the active manifest and its SiteInfo.

One SiteSession is shared by the site server and the control channel. It is
loaded from the durable store by an explicit rehydrate() call, which runs at
most once per session (cold start), and is replaced wholesale by set().
"""

from __future__ import annotations

import asyncio
import logging

from wispview.cache.base_cache_store import BaseCacheStore
from wispview.cache.fallback_store import STORAGE_ERRORS
from wispview.core.models import Manifest, SiteInfo
from wispview.logging.context import set_site_context

logger = logging.getLogger(__name__)


class SiteSession:
    """Holds at most one active site. Last writer wins."""

    def __init__(self, store: BaseCacheStore) -> None:
        self._store = store
        self.manifest: Manifest | None = None
        self.site_info: SiteInfo | None = None
        self._rehydrated = False
        self._rehydrate_lock = asyncio.Lock()

    @property
    def store(self) -> BaseCacheStore:
        return self._store

    @property
    def has_manifest(self) -> bool:
        return self.manifest is not None

    @property
    def rehydrated(self) -> bool:
        return self._rehydrated

    async def rehydrate(self) -> bool:
        """Load resident state from the durable store, once.

        Concurrent callers wait for the first load instead of seeing an empty
        session. Returns True when a manifest is resident afterwards.
        """
        if self._rehydrated:
            return self.has_manifest
        async with self._rehydrate_lock:
            if self._rehydrated:
                return self.has_manifest
            try:
                await self._load_from_store()
            finally:
                self._rehydrated = True
        return self.has_manifest

    async def _load_from_store(self) -> None:
        try:
            manifest = await self._store.get_manifest()
            site_info = await self._store.get_site_info()
        except STORAGE_ERRORS as e:
            logger.warning("Durable store unavailable, nothing to rehydrate: %s", e)
            return

        if manifest is not None and self.manifest is None:
            self.manifest = manifest
            self.site_info = site_info
            set_site_context(
                site_info.did if site_info else None,
                site_info.site_name if site_info else None,
            )
            logger.info(
                "Rehydrated manifest for %s",
                site_info.site_name if site_info else manifest.site,
            )

    async def set(self, manifest: Manifest, site_info: SiteInfo) -> None:
        """Make ``manifest`` resident and persist it with its SiteInfo."""
        self.manifest = manifest
        self.site_info = site_info
        self._rehydrated = True
        set_site_context(site_info.did, site_info.site_name)
        logger.info(
            "Manifest set: did=%s handle=%s site=%s pds=%s",
            site_info.did, site_info.handle, site_info.site_name, site_info.pds_url,
        )
        try:
            await self._store.put_manifest(manifest, site_info)
        except STORAGE_ERRORS as e:
            logger.warning("Could not persist manifest; kept in memory only: %s", e)

    async def clear(self) -> None:
        """Forget the resident site, in memory and in the durable store."""
        self.manifest = None
        self.site_info = None
        set_site_context(None, None)
        try:
            await self._store.clear_manifest()
        except STORAGE_ERRORS as e:
            logger.warning("Could not clear persisted manifest: %s", e)
        logger.info("Manifest cleared")
