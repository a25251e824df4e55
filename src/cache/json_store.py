# src/cache/json_store.py — v1
"""File-based store (default CACHE_BACKEND=json).

Layout under CACHE_ROOT:
    manifests/current-manifest.json
    manifests/site-info.json
    blobs/<cid>.bin
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from wispview.cache.base_cache_store import MANIFEST_KEY, SITE_INFO_KEY, BaseCacheStore
from wispview.core.models import Manifest, SiteInfo

logger = logging.getLogger(__name__)


class JsonCacheStore(BaseCacheStore):
    """Durable store using one JSON file per manifest entry and one file per blob."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()
        self._manifests = self._root / "manifests"
        self._blobs = self._root / "blobs"
        self._manifests.mkdir(parents=True, exist_ok=True)
        self._blobs.mkdir(parents=True, exist_ok=True)

    async def get_manifest(self) -> Manifest | None:
        data = self._read_json(self._manifests / f"{MANIFEST_KEY}.json")
        if data is None:
            return None
        try:
            return Manifest.model_validate(data)
        except ValidationError as e:
            logger.warning("Discarding unreadable stored manifest: %s", e)
            return None

    async def get_site_info(self) -> SiteInfo | None:
        data = self._read_json(self._manifests / f"{SITE_INFO_KEY}.json")
        if data is None:
            return None
        try:
            return SiteInfo.model_validate(data)
        except ValidationError as e:
            logger.warning("Discarding unreadable stored site info: %s", e)
            return None

    async def put_manifest(self, manifest: Manifest, site_info: SiteInfo) -> None:
        (self._manifests / f"{MANIFEST_KEY}.json").write_text(
            manifest.model_dump_json(by_alias=True), encoding="utf-8"
        )
        (self._manifests / f"{SITE_INFO_KEY}.json").write_text(
            site_info.model_dump_json(by_alias=True), encoding="utf-8"
        )

    async def clear_manifest(self) -> None:
        for key in (MANIFEST_KEY, SITE_INFO_KEY):
            (self._manifests / f"{key}.json").unlink(missing_ok=True)

    async def get_blob(self, cid: str) -> bytes | None:
        path = self._blob_path(cid)
        if not path.exists():
            return None
        return path.read_bytes()

    async def put_blob(self, cid: str, data: bytes) -> None:
        self._blob_path(cid).write_bytes(data)

    async def clear_blobs(self) -> None:
        for path in self._blobs.glob("*.bin"):
            path.unlink(missing_ok=True)

    async def blob_count(self) -> int:
        return sum(1 for _ in self._blobs.glob("*.bin"))

    def _read_json(self, path: Path) -> dict | None:
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning("Failed to read %s: %s", path.name, e)
            return None

    def _blob_path(self, cid: str) -> Path:
        """Return file path for a content identifier."""
        safe_key = cid.replace("/", "_").replace("\\", "_")
        return self._blobs / f"{safe_key}.bin"
