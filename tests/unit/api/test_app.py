# tests/unit/api/test_app.py — v1
"""Tests for api/app.py — HTTP routes over the fake network."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tests.conftest import DID, HANDLE, LOGO_PNG
from wispview.api.app import create_app

BASE = f"/wisp/{DID}/mysite/"


@pytest.fixture
def client(runtime):
    with TestClient(create_app(runtime=runtime)) as test_client:
        yield test_client


class TestStatusRoutes:
    def test_index(self, client):
        body = client.get("/").json()
        assert body["service"] == "wispview"
        assert body["hasManifest"] is False

    def test_status_empty(self, client):
        body = client.get("/_wisp/status").json()
        assert body == {"type": "STATUS", "hasManifest": False, "siteInfo": None}


class TestLoad:
    def test_load(self, client):
        response = client.post("/_wisp/load", json={"input": HANDLE})
        assert response.status_code == 200
        body = response.json()
        assert body["basePath"] == BASE
        assert body["siteName"] == "mysite"
        assert client.get("/_wisp/status").json()["hasManifest"] is True

    def test_unknown_handle(self, client):
        response = client.post("/_wisp/load", json={"input": "ghost.example"})
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "handle_not_found"

    def test_unknown_site(self, client):
        response = client.post("/_wisp/load", json={"input": HANDLE, "site": "nope"})
        assert response.status_code == 404

    def test_empty_input_rejected(self, client):
        assert client.post("/_wisp/load", json={"input": ""}).status_code == 422

    def test_refresh_refetches_manifest(self, client, fake_network):
        assert client.post("/_wisp/load", json={"input": HANDLE}).status_code == 200
        assert client.post("/_wisp/load", json={"input": HANDLE}).status_code == 200
        assert fake_network.count("getRecord") == 1
        response = client.post("/_wisp/load", json={"input": HANDLE, "refresh": True})
        assert response.status_code == 200
        assert fake_network.count("getRecord") == 2


class TestControl:
    def test_get_status(self, client):
        response = client.post("/_wisp/control", json={"type": "GET_STATUS"})
        assert response.json()["type"] == "STATUS"

    def test_unknown_message(self, client):
        assert client.post("/_wisp/control", json={"type": "REBOOT"}).status_code == 422

    def test_invalid_json(self, client):
        response = client.post(
            "/_wisp/control", content=b"{", headers={"content-type": "application/json"}
        )
        assert response.status_code == 422

    def test_clear_manifest(self, client):
        client.post("/_wisp/load", json={"input": HANDLE})
        reply = client.post("/_wisp/control", json={"type": "CLEAR_MANIFEST"}).json()
        assert reply == {"type": "MANIFEST_CLEARED", "success": True}
        assert client.get(BASE).status_code == 503

    def test_clear_cache(self, client):
        client.post("/_wisp/load", json={"input": HANDLE})
        client.get(f"{BASE}img/logo.png")
        reply = client.post("/_wisp/control", json={"type": "CLEAR_CACHE"}).json()
        assert reply == {"type": "CACHE_CLEARED", "success": True}
        assert client.get(f"{BASE}img/logo.png").headers["X-Wisp-Cache"] == "MISS"


class TestSiteContent:
    def test_no_manifest(self, client):
        assert client.get(BASE).status_code == 503

    def test_serves_loaded_site(self, client):
        client.post("/_wisp/load", json={"input": HANDLE})
        page = client.get(BASE)
        assert page.status_code == 200
        assert page.headers["content-type"] == "text/html; charset=utf-8"
        assert page.text.count("<base ") == 1

        logo = client.get(f"{BASE}img/logo.png")
        assert logo.content == LOGO_PNG
        assert logo.headers["x-wisp-cache"] == "MISS"
        assert client.get(f"{BASE}img/logo.png").headers["x-wisp-cache"] == "HIT"

    def test_mismatch(self, client):
        client.post("/_wisp/load", json={"input": HANDLE})
        assert client.get("/wisp/did:plc:other/mysite/").status_code == 400

    def test_unscoped_path(self, client):
        assert client.get("/favicon.ico").status_code == 404
