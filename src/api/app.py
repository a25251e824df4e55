# src/api/app.py — v1
"""HTTP surface: the site server under /<prefix>/ plus the control endpoints.

Routes:
    GET  /<prefix>/<did>/<siteName>/<path>  scoped site content
    POST /_wisp/control                     raw control message, returns its reply
    GET  /_wisp/status                      GET_STATUS shortcut
    POST /_wisp/load                        resolve + fetch + SET_MANIFEST
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import Response
from pydantic import ValidationError

from wispview.api.facade import load_site
from wispview.api.models import LoadedSite, LoadRequest
from wispview.config.settings import Settings
from wispview.core.errors import (
    ControlTimeout,
    FetchError,
    NotFoundError,
    ParseError,
    ResolutionError,
)
from wispview.logging.context import clear_context
from wispview.server.control import parse_control_message
from wispview.server.runtime import SiteRuntime

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"handle_not_found", "did_not_found"}


def create_app(
    settings: Settings | None = None,
    runtime: SiteRuntime | None = None,
) -> FastAPI:
    """Build the application. A supplied runtime is used as-is and not closed."""
    settings = settings or (runtime.settings if runtime else Settings())
    owns_runtime = runtime is None

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        rt = runtime or SiteRuntime.create(settings)
        app.state.runtime = rt
        rt.channel.start()
        if await rt.session.rehydrate():
            logger.info("Resuming with a persisted manifest")
        try:
            yield
        finally:
            if owns_runtime:
                await rt.aclose()
            else:
                await rt.channel.stop()

    app = FastAPI(title="wispview", lifespan=lifespan)

    def _runtime(request: Request) -> SiteRuntime:
        return request.app.state.runtime

    @app.get("/")
    async def index(request: Request) -> dict[str, Any]:
        rt = _runtime(request)
        site_info = rt.session.site_info
        return {
            "service": "wispview",
            "hasManifest": rt.session.has_manifest,
            "basePath": rt.server.base_path(site_info) if site_info else None,
        }

    @app.post("/_wisp/control")
    async def control(request: Request) -> dict[str, Any]:
        try:
            message = parse_control_message(await request.json())
        except ValueError as e:
            # ValidationError and JSONDecodeError are both ValueErrors
            raise HTTPException(status_code=422, detail=str(e)) from e
        try:
            reply = await _runtime(request).control.send(message)
        except ControlTimeout as e:
            raise HTTPException(status_code=504, detail=str(e)) from e
        return reply.model_dump(by_alias=True)

    @app.get("/_wisp/status")
    async def status(request: Request) -> dict[str, Any]:
        try:
            reply = await _runtime(request).control.get_status()
        except ControlTimeout as e:
            raise HTTPException(status_code=504, detail=str(e)) from e
        return reply.model_dump(by_alias=True)

    @app.post("/_wisp/load")
    async def load(body: LoadRequest, request: Request) -> dict[str, Any]:
        try:
            loaded: LoadedSite = await load_site(
                _runtime(request), body.input, body.site, refresh=body.refresh
            )
        except ResolutionError as e:
            code = 404 if e.code in _NOT_FOUND_CODES else 502
            raise HTTPException(status_code=code, detail={"error": str(e), "code": e.code}) from e
        except NotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e)) from e
        except (FetchError, ParseError, ValidationError) as e:
            raise HTTPException(status_code=502, detail=str(e)) from e
        return loaded.model_dump(by_alias=True)

    @app.get("/{full_path:path}")
    async def site_content(full_path: str, request: Request) -> Response:
        try:
            result = await _runtime(request).server.handle(request.url.path)
        finally:
            clear_context()
        if result is None:
            raise HTTPException(status_code=404, detail="Not found")
        return Response(content=result.body, status_code=result.status, headers=result.headers)

    return app
