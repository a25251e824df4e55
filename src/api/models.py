# src/api/models.py — v1
"""API-level models: LoadRequest, LoadedSite.

Control message and reply models live in wispview.server.control.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class LoadRequest(BaseModel):
    """Body of POST /_wisp/load."""

    input: str = Field(min_length=1, description="Handle, @handle or DID")
    site: str | None = Field(default=None, description="Site record key; first site if omitted")
    refresh: bool = Field(default=False, description="Bypass the session manifest cache")


class LoadedSite(BaseModel):
    """Return value of facade.load_site(): what is now being served, and where."""

    model_config = ConfigDict(populate_by_name=True)

    did: str
    handle: str | None = None
    pds_url: str = Field(alias="pdsUrl")
    rkey: str
    site_name: str = Field(alias="siteName")
    base_path: str = Field(alias="basePath")
    file_count: int | None = Field(default=None, alias="fileCount")
    record_count: int = Field(default=0, alias="recordCount")
    acknowledged: bool = True
