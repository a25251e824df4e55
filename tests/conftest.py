# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides a fake ATProto network (PLC directory, handle resolver, PDS) served
through httpx.MockTransport, sample manifests and ready-wired runtimes.
No real network I/O happens anywhere in the suite.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest

from wispview.cache.memory_store import MemoryCacheStore
from wispview.config.settings import Settings
from wispview.core.models import DirectoryNode, FileEntry, Manifest, SiteInfo
from wispview.net.retry import RetryConfig
from wispview.net.xrpc import XrpcClient

HANDLE = "alice.example"
DID = "did:plc:xyz"
PDS_URL = "https://pds.example"
PLC_URL = "https://plc.directory"
HANDLE_RESOLVER_URL = "https://api.bsky.app/xrpc/com.atproto.identity.resolveHandle"

NO_DELAY_RETRY = RetryConfig(max_attempts=3, initial_delay_s=0.0, max_delay_s=0.0)

INDEX_HTML = (
    b'<!DOCTYPE html><html><head><title>Home</title>'
    b'<link rel="stylesheet" href="/style.css"></head>'
    b'<body><a href="/about.html">About</a><img src="/img/logo.png"></body></html>'
)
STYLE_CSS = b"body { background: url(/img/bg.png); }"
LOGO_PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def did_document(did: str = DID, endpoint: str = PDS_URL) -> dict[str, Any]:
    return {
        "id": did,
        "alsoKnownAs": [f"at://{HANDLE}"],
        "service": [
            {
                "id": "#atproto_pds",
                "type": "AtprotoPersonalDataServer",
                "serviceEndpoint": endpoint,
            }
        ],
    }


def flat_root() -> dict[str, Any]:
    """Root directory of the sample site in the flat encoding."""
    return {
        "files": {
            "index.html": {"cid": "bafyindex", "mimeType": "text/html"},
            "style.css": {"cid": "bafystyle", "mimeType": "text/css"},
            "about.html": {"cid": "bafyabout"},
        },
        "dirs": {
            "img": {"files": {"logo.png": {"cid": "bafylogo", "mimeType": "image/png"}}},
        },
    }


@dataclass
class FakeAtproto:
    """In-memory stand-in for the identity services and one PDS.

    ``failures`` maps a URL path to status codes returned (in order) before
    the real answer, for exercising retry.
    """

    did_docs: dict[str, dict[str, Any]] = field(default_factory=dict)
    handles: dict[str, str] = field(default_factory=dict)
    fs_records: dict[str, dict[str, Any]] = field(default_factory=dict)
    subfs_records: dict[str, dict[str, Any]] = field(default_factory=dict)
    blobs: dict[str, bytes] = field(default_factory=dict)
    failures: dict[str, list[int]] = field(default_factory=dict)
    page_size: int = 100
    requests: list[httpx.Request] = field(default_factory=list)

    def count(self, path_fragment: str) -> int:
        return sum(1 for r in self.requests if path_fragment in r.url.path)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        pending = self.failures.get(path)
        if pending:
            return httpx.Response(pending.pop(0), json={"error": "Injected"})

        host = request.url.host
        if host == "plc.directory":
            doc = self.did_docs.get(path.lstrip("/"))
            return httpx.Response(200, json=doc) if doc else httpx.Response(404, json={"message": "DID not registered"})
        if path == "/.well-known/did.json":
            doc = self.did_docs.get(f"did:web:{host}")
            return httpx.Response(200, json=doc) if doc else httpx.Response(404)
        if path.endswith("com.atproto.identity.resolveHandle"):
            did = self.handles.get(request.url.params.get("handle", ""))
            if did is None:
                return httpx.Response(400, json={"error": "InvalidRequest", "message": "Unable to resolve handle"})
            return httpx.Response(200, json={"did": did})
        if host == "pds.example":
            return self._pds(request)
        return httpx.Response(404)

    def _pds(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        params = request.url.params
        if path.endswith("com.atproto.repo.listRecords"):
            return self._list_records(params)
        if path.endswith("com.atproto.repo.getRecord"):
            value = self.fs_records.get(params.get("rkey", ""))
            if value is None:
                return httpx.Response(400, json={"error": "RecordNotFound", "message": "Could not locate record"})
            uri = f"at://{params['repo']}/{params['collection']}/{params['rkey']}"
            return httpx.Response(200, json={"uri": uri, "cid": "bafyrecord", "value": value})
        if path.endswith("com.atproto.sync.getBlob"):
            data = self.blobs.get(params.get("cid", ""))
            if data is None:
                return httpx.Response(400, json={"error": "BlobNotFound"})
            return httpx.Response(200, content=data, headers={"content-type": "application/octet-stream"})
        return httpx.Response(404)

    def _list_records(self, params: httpx.QueryParams) -> httpx.Response:
        collection = params.get("collection")
        source = self.fs_records if collection == "place.wisp.fs" else self.subfs_records
        repo = params.get("repo")
        items = [
            {"uri": f"at://{repo}/{collection}/{rkey}", "cid": f"bafy{rkey}", "value": value}
            for rkey, value in source.items()
        ]
        start = int(params.get("cursor") or 0)
        page = items[start:start + self.page_size]
        body: dict[str, Any] = {"records": page}
        if start + self.page_size < len(items):
            body["cursor"] = str(start + self.page_size)
        return httpx.Response(200, content=json.dumps(body).encode("utf-8"), headers={"content-type": "application/json"})


# === FIXTURES: Fake network ===


@pytest.fixture
def fake_network() -> FakeAtproto:
    """Network with alice.example -> did:plc:xyz -> https://pds.example and one site."""
    fake = FakeAtproto()
    fake.handles[HANDLE] = DID
    fake.did_docs[DID] = did_document()
    fake.fs_records["mysite"] = {
        "$type": "place.wisp.fs",
        "site": "mysite",
        "root": flat_root(),
        "fileCount": 4,
        "createdAt": "2025-01-01T00:00:00Z",
    }
    fake.blobs.update(
        {
            "bafyindex": INDEX_HTML,
            "bafystyle": STYLE_CSS,
            "bafyabout": b"<html><body>About</body></html>",
            "bafylogo": LOGO_PNG,
        }
    )
    return fake


@pytest.fixture
def http_client(fake_network: FakeAtproto) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_network.handler))


@pytest.fixture
def xrpc_client(http_client: httpx.AsyncClient) -> XrpcClient:
    return XrpcClient(http_client=http_client, retry_config=NO_DELAY_RETRY)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings with no .env, no retry delay and an in-memory store."""
    return Settings(
        _env_file=None,
        cache_backend="memory",
        cache_root=tmp_path / "cache",
        retry_initial_delay_s=0.0,
        retry_max_delay_s=0.0,
    )


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_tree() -> DirectoryNode:
    return DirectoryNode(
        files={
            "index.html": FileEntry(cid="bafyindex", mime_type="text/html"),
            "style.css": FileEntry(cid="bafystyle", mime_type="text/css"),
            "about.html": FileEntry(cid="bafyabout"),
        },
        dirs={
            "img": DirectoryNode(
                files={"logo.png": FileEntry(cid="bafylogo", mime_type="image/png")}
            ),
        },
    )


@pytest.fixture
def sample_manifest(sample_tree: DirectoryNode) -> Manifest:
    return Manifest(root=sample_tree, rkey="mysite", site="mysite", file_count=4, record_count=5)


@pytest.fixture
def sample_site_info() -> SiteInfo:
    return SiteInfo(pds_url=PDS_URL, did=DID, handle=HANDLE, site_name="mysite")


@pytest.fixture
def memory_store() -> MemoryCacheStore:
    return MemoryCacheStore()


# === FIXTURES: Runtime ===


@pytest.fixture
def runtime(settings: Settings, http_client: httpx.AsyncClient):
    """Fully wired runtime talking to the fake network."""
    from wispview.server.runtime import SiteRuntime

    return SiteRuntime.create(settings, http_client=http_client)
