# src/net/xrpc.py — v1
"""Thin async HTTP client for XRPC endpoints and identity documents.

Every call goes through with_retry. Non-2xx replies become FetchError with the
status attached; a configured Origin that the remote does not allow becomes
CorsError.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from wispview.core.errors import CorsError, FetchError
from wispview.net.retry import (
    DEFAULT_RETRY_CONFIG,
    RetryConfig,
    retry_config_from_settings,
    with_retry,
)

logger = logging.getLogger(__name__)


def xrpc_url(service_url: str, nsid: str) -> str:
    """Build ``<service>/xrpc/<nsid>``."""
    return f"{service_url.rstrip('/')}/xrpc/{nsid}"


class XrpcClient:
    """Shared outbound client: JSON documents, records and raw blobs."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        retry_config: RetryConfig | None = None,
        timeout_s: float = 30.0,
        origin: str = "",
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout_s)
        self._retry = retry_config or DEFAULT_RETRY_CONFIG
        self._origin = origin

    @classmethod
    def from_settings(
        cls, settings: Any, http_client: httpx.AsyncClient | None = None
    ) -> XrpcClient:
        return cls(
            http_client=http_client,
            retry_config=retry_config_from_settings(settings),
            timeout_s=settings.request_timeout_s,
            origin=settings.request_origin,
        )

    async def get_json(
        self, url: str, params: dict[str, str] | None = None
    ) -> dict[str, Any]:
        """GET a JSON object, with retry."""
        response = await with_retry(
            self._get, url, params, config=self._retry, label=f"GET {url}"
        )
        try:
            data = response.json()
        except ValueError as e:
            raise FetchError(f"Invalid JSON from {url}: {e}", response.status_code) from e
        if not isinstance(data, dict):
            raise FetchError(f"Expected a JSON object from {url}", response.status_code)
        return data

    async def get_bytes(
        self, url: str, params: dict[str, str] | None = None
    ) -> bytes:
        """GET a raw body, with retry."""
        response = await with_retry(
            self._get, url, params, config=self._retry, label=f"GET {url}"
        )
        return response.content

    async def _get(self, url: str, params: dict[str, str] | None) -> httpx.Response:
        headers = {"Origin": self._origin} if self._origin else None
        response = await self._client.get(url, params=params, headers=headers)
        self._check_origin(url, response)
        if response.is_error:
            raise FetchError(
                f"GET {url} failed: {response.status_code} {response.reason_phrase}",
                response.status_code,
            )
        return response

    def _check_origin(self, url: str, response: httpx.Response) -> None:
        if not self._origin:
            return
        allowed = response.headers.get("access-control-allow-origin")
        if allowed not in ("*", self._origin):
            raise CorsError(
                f"Origin {self._origin!r} not allowed by {url}", response.status_code
            )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> XrpcClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()
