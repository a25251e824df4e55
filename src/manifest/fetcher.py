# src/manifest/fetcher.py — v1
"""Lists and fetches site and fragment records from a hosting endpoint.

A site manifest is the site record's root merged with every fragment record
of the account, in fetch order. Manifests are cached per (did, rkey) for the
session.
"""

from __future__ import annotations

import logging
from typing import Any

from wispview.cache.session_cache import SessionCache
from wispview.core.errors import CorsError, FetchError
from wispview.core.models import DirectoryNode, Manifest, SiteRecordInfo
from wispview.manifest.lexicon import (
    FS_COLLECTION,
    SUBFS_COLLECTION,
    parse_fs_record,
    parse_subfs_record,
)
from wispview.manifest.merge import merge_directories
from wispview.net.xrpc import XrpcClient, xrpc_url
from wispview.vfs.paths import count_directories, count_files

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
_CACHE_KEY_PREFIX = "wisp_manifest_"


def count_manifest_entries(directory: DirectoryNode | None) -> dict[str, int]:
    """File and directory totals for a tree."""
    if directory is None:
        return {"files": 0, "directories": 0}
    return {"files": count_files(directory), "directories": count_directories(directory)}


def estimate_manifest_size(directory: DirectoryNode | None) -> int:
    """Size in bytes of the tree's JSON form."""
    if directory is None:
        return 0
    return len(directory.model_dump_json(by_alias=True).encode("utf-8"))


class ManifestFetcher:
    """Fetches site manifests for one hosting endpoint."""

    def __init__(
        self,
        client: XrpcClient,
        pds_url: str,
        cache_ttl_s: float | None = 3600.0,
        cache: SessionCache[Manifest] | None = None,
    ) -> None:
        self._client = client
        self._pds_url = pds_url.rstrip("/")
        self._cache: SessionCache[Manifest] = (
            cache if cache is not None else SessionCache(default_ttl=cache_ttl_s)
        )

    @property
    def pds_url(self) -> str:
        return self._pds_url

    async def list_records(self, did: str, collection: str) -> list[tuple[str, Any]]:
        """All records of a collection as (rkey, value), following cursors."""
        records: list[tuple[str, Any]] = []
        cursor: str | None = None
        url = xrpc_url(self._pds_url, "com.atproto.repo.listRecords")

        while True:
            params = {"repo": did, "collection": collection, "limit": str(PAGE_SIZE)}
            if cursor:
                params["cursor"] = cursor
            try:
                data = await self._client.get_json(url, params)
            except FetchError as e:
                if isinstance(e, CorsError):
                    raise
                raise FetchError(
                    f"Failed to list {collection} records: {e}", e.status
                ) from e

            page = data.get("records")
            if not page:
                break
            for record in page:
                rkey = str(record.get("uri", "")).rsplit("/", 1)[-1]
                records.append((rkey, record.get("value")))

            cursor = data.get("cursor")
            if not cursor:
                break

        logger.debug("Fetched %d %s records for %s", len(records), collection, did)
        return records

    async def list_sites(self, did: str) -> list[SiteRecordInfo]:
        """Metadata of every site record (no trees)."""
        sites: list[SiteRecordInfo] = []
        for rkey, value in await self.list_records(did, FS_COLLECTION):
            value = value if isinstance(value, dict) else {}
            file_count = value.get("fileCount")
            sites.append(
                SiteRecordInfo(
                    rkey=rkey,
                    site=value.get("site") or rkey,
                    file_count=file_count if isinstance(file_count, int) else None,
                    created_at=value.get("createdAt"),
                )
            )
        if not sites:
            logger.warning("No %s records found for %s", FS_COLLECTION, did)
        return sites

    async def fetch_site_manifest(
        self, did: str, rkey: str, refresh: bool = False
    ) -> Manifest | None:
        """Fetch, parse and merge one site. None means there is no such site.

        Raises:
            FetchError: On retrieval failure other than a missing record.
            ParseError: On a malformed site or fragment record.
        """
        cache_key = f"{_CACHE_KEY_PREFIX}{did}_{rkey}"
        if refresh:
            self._cache.delete(cache_key)
        else:
            cached = self._cache.get(cache_key)
            if cached is not None:
                logger.debug("Manifest cache hit for %s/%s", did, rkey)
                return cached

        record = await self._get_site_record(did, rkey)
        if record is None:
            return None

        site = parse_fs_record(record, rkey)
        if site.root is None:
            logger.warning("Site %r has no root directory", rkey)
            return None

        fragments = [
            parse_subfs_record(value)
            for _, value in await self.list_records(did, SUBFS_COLLECTION)
        ]
        merged = merge_directories(site.root, *fragments)
        counts = count_manifest_entries(merged)

        manifest = Manifest(
            root=merged,
            rkey=rkey,
            site=site.site,
            file_count=site.file_count,
            created_at=site.created_at,
            record_count=counts["files"] + counts["directories"],
        )
        self._cache.set(cache_key, manifest)
        logger.info(
            "Fetched manifest for site %r with %d directory records (%d files)",
            site.site, 1 + len(fragments), counts["files"],
        )
        return manifest

    async def fetch_default_manifest(
        self, did: str, refresh: bool = False
    ) -> Manifest | None:
        """Manifest of the first listed site, or None when there are none."""
        sites = await self.list_sites(did)
        if not sites:
            return None
        first = sites[0]
        logger.info(
            "Fetching manifest for site %r (first of %d sites)", first.site, len(sites)
        )
        return await self.fetch_site_manifest(did, first.rkey, refresh=refresh)

    def clear_cache(self, did: str | None = None, rkey: str | None = None) -> None:
        if did and rkey:
            self._cache.delete(f"{_CACHE_KEY_PREFIX}{did}_{rkey}")
        elif did:
            self._cache.clear(prefix=f"{_CACHE_KEY_PREFIX}{did}_")
        else:
            self._cache.clear()

    async def _get_site_record(self, did: str, rkey: str) -> Any | None:
        url = xrpc_url(self._pds_url, "com.atproto.repo.getRecord")
        params = {"repo": did, "collection": FS_COLLECTION, "rkey": rkey}
        try:
            data = await self._client.get_json(url, params)
        except FetchError as e:
            if isinstance(e, CorsError):
                raise
            if e.status in (400, 404):
                logger.info("No site record %r for %s (%s)", rkey, did, e.status)
                return None
            raise FetchError(f"Failed to fetch site {rkey!r}: {e}", e.status) from e

        if data.get("error") == "RecordNotFound" or data.get("value") is None:
            return None
        return data["value"]
