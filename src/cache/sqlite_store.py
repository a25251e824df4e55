# src/cache/sqlite_store.py — v1
"""SQLite-based store (CACHE_BACKEND=sqlite).

Uses stdlib sqlite3, no external dependency. Keeps both logical stores in one
database file.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from pydantic import ValidationError

from wispview.cache.base_cache_store import MANIFEST_KEY, SITE_INFO_KEY, BaseCacheStore
from wispview.core.models import Manifest, SiteInfo

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS manifests (
    key TEXT PRIMARY KEY,
    data TEXT NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE IF NOT EXISTS blobs (
    cid TEXT PRIMARY KEY,
    data BLOB NOT NULL,
    size INTEGER NOT NULL,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""


class SqliteCacheStore(BaseCacheStore):
    """SQLite-backed durable store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        # used from both the CLI thread and the server loop thread
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def get_manifest(self) -> Manifest | None:
        raw = self._get_manifest_row(MANIFEST_KEY)
        if raw is None:
            return None
        try:
            return Manifest.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding unreadable stored manifest: %s", e)
            return None

    async def get_site_info(self) -> SiteInfo | None:
        raw = self._get_manifest_row(SITE_INFO_KEY)
        if raw is None:
            return None
        try:
            return SiteInfo.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Discarding unreadable stored site info: %s", e)
            return None

    async def put_manifest(self, manifest: Manifest, site_info: SiteInfo) -> None:
        with self._conn:
            self._conn.executemany(
                "INSERT OR REPLACE INTO manifests (key, data) VALUES (?, ?)",
                [
                    (MANIFEST_KEY, manifest.model_dump_json(by_alias=True)),
                    (SITE_INFO_KEY, site_info.model_dump_json(by_alias=True)),
                ],
            )

    async def clear_manifest(self) -> None:
        with self._conn:
            self._conn.execute(
                "DELETE FROM manifests WHERE key IN (?, ?)",
                (MANIFEST_KEY, SITE_INFO_KEY),
            )

    async def get_blob(self, cid: str) -> bytes | None:
        row = self._conn.execute(
            "SELECT data FROM blobs WHERE cid = ?", (cid,)
        ).fetchone()
        return None if row is None else bytes(row[0])

    async def put_blob(self, cid: str, data: bytes) -> None:
        with self._conn:
            self._conn.execute(
                "INSERT OR REPLACE INTO blobs (cid, data, size) VALUES (?, ?, ?)",
                (cid, sqlite3.Binary(data), len(data)),
            )

    async def clear_blobs(self) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM blobs")

    async def blob_count(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM blobs").fetchone()[0]

    def _get_manifest_row(self, key: str) -> str | None:
        row = self._conn.execute(
            "SELECT data FROM manifests WHERE key = ?", (key,)
        ).fetchone()
        return None if row is None else row[0]

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
