# src/server/blobs.py — v1
"""Blob retrieval: blob cache first, then the hosting endpoint.

Fetched bytes go through best-effort content sniffing before caching: blobs
published as base64 text are decoded, and gzip payloads (magic 1f 8b) are
decompressed. Plain bytes pass through untouched. This is a heuristic with no
encoding metadata behind it, so base64-shaped plaintext longer than 50
characters will be decoded as well.
"""

from __future__ import annotations

import base64
import binascii
import gzip
import logging
import re
import zlib
from dataclasses import dataclass

from wispview.cache.base_cache_store import BaseCacheStore
from wispview.core.errors import FetchError
from wispview.core.models import SiteInfo
from wispview.net.xrpc import XrpcClient, xrpc_url

logger = logging.getLogger(__name__)

MAX_CACHED_BLOB_BYTES = 5 * 1024 * 1024
GZIP_MAGIC = b"\x1f\x8b"
_BASE64_RE = re.compile(r"[A-Za-z0-9+/]+={0,2}")
_MIN_BASE64_LENGTH = 50


@dataclass(frozen=True)
class BlobResult:
    cid: str
    data: bytes
    cache_hit: bool


def looks_like_base64(text: str) -> bool:
    return len(text) > _MIN_BASE64_LENGTH and _BASE64_RE.fullmatch(text) is not None


def decode_blob_content(raw: bytes, cid: str = "") -> bytes:
    """Undo base64 and gzip wrapping where the bytes look like it.

    Raises:
        FetchError: When a gzip payload cannot be decompressed.
    """
    text = raw.decode("utf-8", errors="replace")
    if not looks_like_base64(text):
        return raw

    try:
        decoded = base64.b64decode(text, validate=True)
    except binascii.Error:
        logger.debug("Blob %s is base64-shaped but not decodable; serving raw", cid)
        return raw

    if decoded[:2] != GZIP_MAGIC:
        return decoded

    try:
        return gzip.decompress(decoded)
    except (OSError, EOFError, zlib.error) as e:
        raise FetchError(f"Failed to decompress blob data for CID {cid}: {e}") from e


class BlobFetcher:
    """Fetch-or-cache for content identifiers of the active site."""

    def __init__(
        self,
        client: XrpcClient,
        store: BaseCacheStore,
        max_cached_bytes: int = MAX_CACHED_BLOB_BYTES,
    ) -> None:
        self._client = client
        self._store = store
        self._max_cached_bytes = max_cached_bytes

    async def fetch(self, site_info: SiteInfo, cid: str) -> BlobResult:
        cached = await self._store.get_blob(cid)
        if cached is not None:
            return BlobResult(cid=cid, data=cached, cache_hit=True)

        url = xrpc_url(site_info.pds_url, "com.atproto.sync.getBlob")
        try:
            raw = await self._client.get_bytes(url, {"did": site_info.did, "cid": cid})
        except FetchError as e:
            raise FetchError(f"Failed to fetch blob {cid}: {e}", e.status) from e

        data = decode_blob_content(raw, cid)
        if len(data) <= self._max_cached_bytes:
            await self._store.put_blob(cid, data)
        else:
            logger.info(
                "Blob %s is %d bytes, over the %d byte cache limit; not cached",
                cid, len(data), self._max_cached_bytes,
            )
        return BlobResult(cid=cid, data=data, cache_hit=False)
