# src/server/interceptor.py — v1
"""Request interceptor: answers scoped requests from the resident manifest.

Scoped requests have the form /<prefix>/<did>/<siteName>/<subpath...>; any
other path is not ours and handle() returns None so the caller can pass it
through. Every scoped request gets a response: 503 without a resident
manifest, 400 on an identity mismatch, 404 for unknown paths and 500 for any
failure while fetching or transforming content.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from wispview.core.errors import SiteMismatchError
from wispview.core.models import SiteInfo
from wispview.logging.context import set_request_context, set_site_context
from wispview.server.blobs import BlobFetcher
from wispview.server.rewrite import render_directory_listing, rewrite_css_urls, rewrite_html
from wispview.server.session import SiteSession
from wispview.vfs.mime import get_content_type
from wispview.vfs.paths import FileLookup, resolve

logger = logging.getLogger(__name__)

CACHE_HEADER = "X-Wisp-Cache"


@dataclass(frozen=True)
class ScopedPath:
    did: str
    site_name: str
    subpath: str


@dataclass
class SiteResponse:
    status: int
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def plain(cls, status: int, message: str) -> SiteResponse:
        return cls(
            status=status,
            body=message.encode("utf-8"),
            headers={"Content-Type": "text/plain; charset=utf-8"},
        )

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    @property
    def cache_hit(self) -> bool:
        return self.headers.get(CACHE_HEADER) == "HIT"


def _is_html(lookup: FileLookup) -> bool:
    return lookup.mime_type.startswith("text/html") or lookup.path.endswith((".html", ".htm"))


def _is_css(lookup: FileLookup) -> bool:
    return lookup.mime_type.startswith("text/css") or lookup.path.endswith(".css")


class SiteServer:
    """Routes scoped requests through the VFS, blob cache and rewriters."""

    def __init__(
        self,
        session: SiteSession,
        blobs: BlobFetcher,
        prefix: str = "wisp",
    ) -> None:
        self._session = session
        self._blobs = blobs
        self._prefix = prefix.strip("/")
        self._pattern = re.compile(rf"^/{re.escape(self._prefix)}/([^/]+)/([^/]+)/?(.*)$")

    @property
    def prefix(self) -> str:
        return self._prefix

    def match(self, path: str) -> ScopedPath | None:
        """Split a scoped path into its parts; None for anything else."""
        found = self._pattern.match(path)
        if found is None:
            return None
        did, site_name, subpath = found.groups()
        return ScopedPath(did=did, site_name=site_name, subpath=subpath or "")

    def base_path(self, site_info: SiteInfo) -> str:
        return f"/{self._prefix}/{site_info.did}/{site_info.site_name}/"

    async def handle(self, path: str) -> SiteResponse | None:
        """Answer one request path, or None when it is not scoped."""
        scoped = self.match(path)
        if scoped is None:
            return None

        set_request_context(path)
        try:
            return await self._serve(scoped)
        except Exception as e:
            logger.exception("Failed to serve %s", path)
            return SiteResponse.plain(500, f"Site server error: {e}")

    async def _serve(self, scoped: ScopedPath) -> SiteResponse:
        session = self._session
        if session.manifest is None:
            logger.debug("No manifest in memory, trying durable store")
            await session.rehydrate()

        manifest, site_info = session.manifest, session.site_info
        if manifest is None or site_info is None:
            return SiteResponse.plain(503, "No manifest loaded. Please load a site first.")

        set_site_context(site_info.did, site_info.site_name)
        if scoped.did != site_info.did:
            mismatch = SiteMismatchError(scoped.did, site_info.did)
            logger.info("%s", mismatch)
            return SiteResponse.plain(
                400, "Site mismatch. Please navigate from the resolver."
            )

        resolution = resolve(manifest.root, scoped.subpath)
        if resolution.listing is not None:
            logger.debug("No index file for %r, showing listing", resolution.path)
            page = rewrite_html(
                render_directory_listing(resolution.listing),
                self.base_path(site_info),
                self._prefix,
            )
            return SiteResponse(
                status=200,
                body=page.encode("utf-8"),
                headers={
                    "Content-Type": "text/html; charset=utf-8",
                    "Cache-Control": "no-cache",
                    "X-Wisp-Overlay": "injected",
                },
            )

        if resolution.file is None:
            return SiteResponse.plain(404, "File not found")
        return await self._serve_file(resolution.file, site_info)

    async def _serve_file(self, lookup: FileLookup, site_info: SiteInfo) -> SiteResponse:
        blob = await self._blobs.fetch(site_info, lookup.cid)
        cache_marker = "HIT" if blob.cache_hit else "MISS"

        if _is_html(lookup):
            page = rewrite_html(
                blob.data.decode("utf-8", errors="replace"),
                self.base_path(site_info),
                self._prefix,
            )
            return SiteResponse(
                status=200,
                body=page.encode("utf-8"),
                headers={
                    "Content-Type": "text/html; charset=utf-8",
                    "Cache-Control": "no-cache",
                    "X-Wisp-Overlay": "injected",
                    CACHE_HEADER: cache_marker,
                },
            )

        if _is_css(lookup):
            css = rewrite_css_urls(blob.data.decode("utf-8", errors="replace"))
            return SiteResponse(
                status=200,
                body=css.encode("utf-8"),
                headers={
                    "Content-Type": "text/css; charset=utf-8",
                    "Cache-Control": "public, max-age=3600",
                    "X-Wisp-Rewritten-Urls": "true",
                    CACHE_HEADER: cache_marker,
                },
            )

        return SiteResponse(
            status=200,
            body=blob.data,
            headers={
                "Content-Type": get_content_type(lookup.mime_type),
                "Cache-Control": "public, max-age=3600",
                CACHE_HEADER: cache_marker,
            },
        )
