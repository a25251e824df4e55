# src/identity/resolver.py — v1
"""Identity resolution chain: handle -> DID -> hosting endpoint (PDS).

Inputs are either a handle (optionally prefixed with "@") or a canonical
identity in did:plc / did:web form. Results are cached per raw input string
for the session.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Literal

import httpx

from wispview.cache.session_cache import SessionCache
from wispview.core.errors import CorsError, FetchError, ResolutionError
from wispview.core.models import ResolutionResult
from wispview.net.xrpc import XrpcClient

logger = logging.getLogger(__name__)

PDS_SERVICE_ID = "#atproto_pds"
PDS_SERVICE_TYPE = "AtprotoPersonalDataServer"
_CANONICAL_PREFIXES = ("did:plc:", "did:web:")


@dataclass(frozen=True)
class ParsedInput:
    kind: Literal["handle", "did"]
    value: str


def parse_input(raw: str) -> ParsedInput:
    """Classify user input as a canonical identity or a handle."""
    trimmed = raw.strip()
    if trimmed.startswith(_CANONICAL_PREFIXES):
        return ParsedInput("did", trimmed)
    value = trimmed[1:] if trimmed.startswith("@") else trimmed
    return ParsedInput("handle", value)


def did_web_domain(did: str) -> str:
    """Host (and optional port/path) encoded in a did:web identifier."""
    if not did.startswith("did:web:"):
        raise ResolutionError(f"Not a did:web: {did}", code="invalid_document")
    domain = did[len("did:web:"):]
    domain = re.sub("%3A", ":", domain, flags=re.IGNORECASE)
    return re.sub("%2F", "/", domain, flags=re.IGNORECASE)


def extract_pds_endpoint(document: dict[str, Any], did: str) -> str:
    """Find the personal data server endpoint in a DID document.

    Raises:
        ResolutionError: code ``no_pds`` when no usable service entry exists.
    """
    services = document.get("service")
    if not isinstance(services, list):
        raise ResolutionError(f"No services found in DID document for {did!r}", code="no_pds")

    for service in services:
        if not isinstance(service, dict):
            continue
        service_id = str(service.get("id") or "")
        if service_id == PDS_SERVICE_ID or service_id.endswith(PDS_SERVICE_ID) or (
            service.get("type") == PDS_SERVICE_TYPE
        ):
            endpoint = service.get("serviceEndpoint")
            if not isinstance(endpoint, str) or not endpoint:
                raise ResolutionError(
                    f"PDS service found but no endpoint for DID {did!r}", code="no_pds"
                )
            return endpoint.rstrip("/")

    raise ResolutionError(f"Could not find PDS endpoint for DID {did!r}", code="no_pds")


def _is_not_found(error: FetchError) -> bool:
    return error.status is not None and 400 <= error.status < 500 and error.status != 429


class IdentityResolver:
    """Resolves handles and DIDs to a ResolutionResult."""

    def __init__(
        self,
        client: XrpcClient,
        plc_directory_url: str = "https://plc.directory",
        handle_resolver_url: str = (
            "https://api.bsky.app/xrpc/com.atproto.identity.resolveHandle"
        ),
        cache_ttl_s: float | None = 3600.0,
        cache: SessionCache[ResolutionResult] | None = None,
    ) -> None:
        self._client = client
        self._plc_directory_url = plc_directory_url.rstrip("/")
        self._handle_resolver_url = handle_resolver_url
        self._cache: SessionCache[ResolutionResult] = (
            cache if cache is not None else SessionCache(default_ttl=cache_ttl_s)
        )

    @classmethod
    def from_settings(cls, settings: Any, client: XrpcClient) -> IdentityResolver:
        return cls(
            client,
            plc_directory_url=settings.plc_directory_url,
            handle_resolver_url=settings.handle_resolver_url,
            cache_ttl_s=settings.resolution_cache_ttl_s,
        )

    async def resolve(self, raw: str) -> ResolutionResult:
        """Full chain for one input. Cached under the raw input for the session.

        Raises:
            ResolutionError: When any step fails; ``code`` tells which.
        """
        cached = self._cache.get(raw)
        if cached is not None:
            logger.debug("Resolution cache hit for %r", raw)
            return cached

        parsed = parse_input(raw)
        if not parsed.value:
            raise ResolutionError("Empty handle or DID", code="handle_not_found")

        if parsed.kind == "did":
            handle = None
            did = parsed.value
            document = await self.verify_did(did)
        else:
            handle = parsed.value
            did = await self.resolve_handle(handle)
            document = await self.fetch_did_document(did)

        result = ResolutionResult(
            handle=handle, did=did, pds_url=extract_pds_endpoint(document, did)
        )
        self._cache.set(raw, result)
        logger.info("Resolved %r to %s at %s", raw, result.did, result.pds_url)
        return result

    async def resolve_handle(self, handle: str) -> str:
        """Handle to DID via the resolveHandle endpoint.

        When the endpoint fails and the value is itself a DID, the DID is
        verified directly instead.
        """
        logger.debug("Resolving handle %r to DID", handle)
        try:
            data = await self._client.get_json(self._handle_resolver_url, {"handle": handle})
        except CorsError:
            raise
        except (FetchError, httpx.TransportError) as e:
            if handle.startswith("did:"):
                await self.verify_did(handle)
                return handle
            if isinstance(e, FetchError) and _is_not_found(e):
                raise ResolutionError(
                    f"Handle {handle!r} not found or does not exist", code="handle_not_found"
                ) from e
            raise ResolutionError(
                f"Network error resolving handle {handle!r}: {e}", code="network"
            ) from e

        did = data.get("did")
        if not isinstance(did, str) or not did.startswith("did:"):
            raise ResolutionError(
                f"Invalid response for handle {handle!r}", code="invalid_document"
            )
        return did

    async def verify_did(self, did: str) -> dict[str, Any]:
        """Fetch the DID document and check it declares ``did`` as its subject."""
        document = await self.fetch_did_document(did)
        if document.get("id") != did:
            raise ResolutionError(f"Invalid DID document for {did!r}", code="invalid_document")
        logger.debug("Verified %s", did)
        return document

    async def fetch_did_document(self, did: str) -> dict[str, Any]:
        """did:web from the domain's well-known document, anything else from the PLC directory."""
        url = self.did_document_url(did)
        try:
            return await self._client.get_json(url)
        except CorsError:
            raise
        except FetchError as e:
            code = "did_not_found" if _is_not_found(e) else "network"
            raise ResolutionError(
                f"Failed to resolve DID {did!r}: {e}", code=code
            ) from e
        except httpx.TransportError as e:
            raise ResolutionError(
                f"Network error resolving DID {did!r}: {e}", code="network"
            ) from e

    async def get_pds_endpoint(self, did: str) -> str:
        return extract_pds_endpoint(await self.fetch_did_document(did), did)

    def did_document_url(self, did: str) -> str:
        if did.startswith("did:web:"):
            return f"https://{did_web_domain(did)}/.well-known/did.json"
        return f"{self._plc_directory_url}/{did}"

    def clear_cache(self, raw: str | None = None) -> None:
        """Forget one cached input, or all of them."""
        if raw is None:
            self._cache.clear()
        else:
            self._cache.delete(raw)
