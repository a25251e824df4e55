# src/server/runtime.py — v1
"""Wires the outbound client, resolver, store, session and servers together.

One SiteRuntime per process. ManifestFetchers are per hosting endpoint and
share one session-scoped manifest cache.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx

from wispview.cache.base_cache_store import BaseCacheStore
from wispview.cache.cache_factory import create_cache_store
from wispview.cache.session_cache import SessionCache
from wispview.config.settings import Settings
from wispview.core.models import Manifest
from wispview.identity.resolver import IdentityResolver
from wispview.manifest.fetcher import ManifestFetcher
from wispview.net.xrpc import XrpcClient
from wispview.server.blobs import BlobFetcher
from wispview.server.control import ControlChannel, ControlClient
from wispview.server.interceptor import SiteServer
from wispview.server.session import SiteSession

logger = logging.getLogger(__name__)


@dataclass
class SiteRuntime:
    settings: Settings
    client: XrpcClient
    resolver: IdentityResolver
    store: BaseCacheStore
    session: SiteSession
    blobs: BlobFetcher
    server: SiteServer
    channel: ControlChannel
    control: ControlClient
    manifest_cache: SessionCache[Manifest] = field(default_factory=SessionCache)

    @classmethod
    def create(
        cls,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
        store: BaseCacheStore | None = None,
    ) -> SiteRuntime:
        settings = settings or Settings()
        client = XrpcClient.from_settings(settings, http_client=http_client)
        store = store or create_cache_store(settings)
        session = SiteSession(store)
        blobs = BlobFetcher(client, store, max_cached_bytes=settings.blob_cache_max_bytes)
        channel = ControlChannel(session, store)
        logger.debug(
            "Runtime created: prefix=%s backend=%s", settings.serve_prefix, settings.cache_backend
        )
        return cls(
            settings=settings,
            client=client,
            resolver=IdentityResolver.from_settings(settings, client),
            store=store,
            session=session,
            blobs=blobs,
            server=SiteServer(session, blobs, prefix=settings.serve_prefix),
            channel=channel,
            control=ControlClient(channel, timeout_s=settings.control_timeout_s),
            manifest_cache=SessionCache(default_ttl=settings.manifest_cache_ttl_s),
        )

    def manifest_fetcher_for(self, pds_url: str) -> ManifestFetcher:
        return ManifestFetcher(
            self.client,
            pds_url,
            cache_ttl_s=self.settings.manifest_cache_ttl_s,
            cache=self.manifest_cache,
        )

    async def aclose(self) -> None:
        await self.channel.stop()
        await self.client.aclose()
        self.store.close()
