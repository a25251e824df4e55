# tests/integration/test_int_site_viewer.py — v1
"""End-to-end: resolve a handle, load its site, serve it, restart from disk.

Everything runs in-process against the fake network from tests/conftest.py
and a real JSON or SQLite store under tmp_path.
"""

from __future__ import annotations

import re

import httpx
import pytest
from fastapi.testclient import TestClient

from tests.conftest import DID, HANDLE
from wispview.api.app import create_app
from wispview.config.settings import Settings
from wispview.server.runtime import SiteRuntime

BASE = f"/wisp/{DID}/mysite/"


def _settings(tmp_path, backend: str) -> Settings:
    return Settings(
        _env_file=None,
        cache_backend=backend,
        cache_root=tmp_path / "cache",
        retry_initial_delay_s=0.0,
        retry_max_delay_s=0.0,
    )


def _app(tmp_path, backend: str, fake_network):
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake_network.handler))
    runtime = SiteRuntime.create(_settings(tmp_path, backend), http_client=http)
    return create_app(runtime=runtime), runtime


@pytest.mark.parametrize("backend", ["json", "sqlite"])
class TestSiteViewer:
    def test_browse_loaded_site(self, tmp_path, fake_network, backend):
        app, runtime = _app(tmp_path, backend, fake_network)
        with TestClient(app) as client:
            loaded = client.post("/_wisp/load", json={"input": f"@{HANDLE}"}).json()
            assert loaded["did"] == DID
            assert loaded["pdsUrl"] == "https://pds.example"
            assert loaded["basePath"] == BASE

            page = client.get(BASE)
            assert page.status_code == 200
            bases = re.findall(r"<base\b[^>]*>", page.text)
            assert bases == [f'<base href="{BASE}">']
            assert "wisp-overlay-container" in page.text
            assert "Home" in page.text

            css = client.get(f"{BASE}style.css")
            assert 'url("img/bg.png")' in css.text

            about = client.get(f"{BASE}about")
            assert about.status_code == 200

            assert client.get(f"{BASE}nope.html").status_code == 404
        runtime.store.close()

    def test_state_survives_restart(self, tmp_path, fake_network, backend):
        app, first = _app(tmp_path, backend, fake_network)
        with TestClient(app) as client:
            client.post("/_wisp/load", json={"input": HANDLE})
            client.get(BASE)
        first.store.close()

        blob_requests = fake_network.count("getBlob")
        app, second = _app(tmp_path, backend, fake_network)
        with TestClient(app) as client:
            status = client.get("/_wisp/status").json()
            assert status["hasManifest"] is True
            assert status["siteInfo"]["siteName"] == "mysite"

            page = client.get(BASE)
            assert page.status_code == 200
            assert page.headers["x-wisp-cache"] == "HIT"
            assert fake_network.count("getBlob") == blob_requests
        second.store.close()

    def test_switching_sites(self, tmp_path, fake_network, backend):
        fake_network.fs_records["docs"] = {
            "site": "docs",
            "root": {"files": {"index.html": {"cid": "bafydocs", "mimeType": "text/html"}}},
        }
        fake_network.blobs["bafydocs"] = b"<html><head></head><body>Docs</body></html>"
        app, runtime = _app(tmp_path, backend, fake_network)
        with TestClient(app) as client:
            client.post("/_wisp/load", json={"input": HANDLE, "site": "mysite"})
            client.post("/_wisp/load", json={"input": HANDLE, "site": "docs"})
            page = client.get(f"/wisp/{DID}/docs/")
            assert "Docs" in page.text
            assert f'<base href="/wisp/{DID}/docs/">' in page.text
        runtime.store.close()
