# src/api/facade.py — v1
"""Public API facade: resolve an identity, fetch its site and make it resident.

Usage:
    from wispview.api.facade import load_site
    loaded = await load_site(runtime, "alice.example")
    # browse loaded.base_path on the running server
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from wispview.api.models import LoadedSite
from wispview.core.errors import NotFoundError
from wispview.core.models import SiteInfo, SiteRecordInfo

if TYPE_CHECKING:
    from wispview.server.runtime import SiteRuntime

logger = logging.getLogger(__name__)


async def load_site(
    runtime: SiteRuntime,
    raw_input: str,
    site_rkey: str | None = None,
    refresh: bool = False,
) -> LoadedSite:
    """Resolve ``raw_input``, fetch a site manifest and install it.

    Steps:
      1. Resolve handle/DID to DID and hosting endpoint
      2. Fetch the requested site, or the first one listed
      3. Send SET_MANIFEST over the control channel

    Args:
        runtime: Wired runtime (client, resolver, control channel).
        raw_input: Handle, @handle or DID.
        site_rkey: Site record key. None picks the first site.
        refresh: Bypass the session manifest cache.

    Returns:
        LoadedSite describing the resident site and its serving root.

    Raises:
        ResolutionError: If the identity cannot be resolved.
        NotFoundError: If the account publishes no matching site.
        FetchError: If the hosting endpoint fails.
    """
    resolution = await runtime.resolver.resolve(raw_input)
    fetcher = runtime.manifest_fetcher_for(resolution.pds_url)

    if site_rkey:
        manifest = await fetcher.fetch_site_manifest(resolution.did, site_rkey, refresh=refresh)
    else:
        manifest = await fetcher.fetch_default_manifest(resolution.did, refresh=refresh)

    if manifest is None:
        raise NotFoundError(
            f"No wisp records found for {raw_input}"
            + (f" (site {site_rkey!r})" if site_rkey else "")
        )

    site_info = SiteInfo(
        pds_url=resolution.pds_url,
        did=resolution.did,
        handle=resolution.handle,
        site_name=manifest.site or manifest.rkey or "site",
    )
    acknowledged = await runtime.control.set_manifest(manifest, site_info)
    if not acknowledged:
        logger.warning("SET_MANIFEST for %s was not acknowledged", site_info.site_name)

    base_path = runtime.server.base_path(site_info)
    logger.info("Serving %s at %s", site_info.site_name, base_path)
    return LoadedSite(
        did=site_info.did,
        handle=site_info.handle,
        pds_url=site_info.pds_url,
        rkey=manifest.rkey,
        site_name=site_info.site_name,
        base_path=base_path,
        file_count=manifest.file_count,
        record_count=manifest.record_count,
        acknowledged=acknowledged,
    )


async def list_sites(runtime: SiteRuntime, raw_input: str) -> list[SiteRecordInfo]:
    """Resolve ``raw_input`` and list the sites it publishes."""
    resolution = await runtime.resolver.resolve(raw_input)
    return await runtime.manifest_fetcher_for(resolution.pds_url).list_sites(resolution.did)
