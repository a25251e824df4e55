# src/server/control.py — v1
"""Control channel: request/reply messages that drive the resident state.

A driver posts a message and receives a dedicated reply channel (a Future)
that only that request's reply is delivered on. A single worker task handles
messages in the order they were posted.

    SET_MANIFEST   -> MANIFEST_SET {success}
    CLEAR_MANIFEST -> MANIFEST_CLEARED {success}
    CLEAR_CACHE    -> CACHE_CLEARED {success}
    GET_STATUS     -> STATUS {hasManifest, siteInfo}
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from wispview.cache.base_cache_store import BaseCacheStore
from wispview.cache.fallback_store import STORAGE_ERRORS
from wispview.core.errors import ControlTimeout
from wispview.core.models import Manifest, SiteInfo
from wispview.server.session import SiteSession

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 5.0


# === MESSAGES ===


class SetManifest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["SET_MANIFEST"] = "SET_MANIFEST"
    manifest: Manifest
    site_info: SiteInfo = Field(alias="siteInfo")


class ClearManifest(BaseModel):
    type: Literal["CLEAR_MANIFEST"] = "CLEAR_MANIFEST"


class ClearCache(BaseModel):
    type: Literal["CLEAR_CACHE"] = "CLEAR_CACHE"


class GetStatus(BaseModel):
    type: Literal["GET_STATUS"] = "GET_STATUS"


ControlMessage = Annotated[
    Union[SetManifest, ClearManifest, ClearCache, GetStatus],
    Field(discriminator="type"),
]

_message_adapter: TypeAdapter[Any] = TypeAdapter(ControlMessage)


def parse_control_message(data: Any) -> SetManifest | ClearManifest | ClearCache | GetStatus:
    """Validate a raw message dict. Raises pydantic.ValidationError."""
    return _message_adapter.validate_python(data)


# === REPLIES ===


class AckReply(BaseModel):
    type: Literal["MANIFEST_SET", "MANIFEST_CLEARED", "CACHE_CLEARED"]
    success: bool


class StatusReply(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["STATUS"] = "STATUS"
    has_manifest: bool = Field(alias="hasManifest")
    site_info: SiteInfo | None = Field(default=None, alias="siteInfo")


ControlReply = Union[AckReply, StatusReply]


class ControlChannel:
    """Receives control messages and replies on per-request channels."""

    def __init__(self, session: SiteSession, store: BaseCacheStore | None = None) -> None:
        self._session = session
        self._store = store or session.store
        self._queue: asyncio.Queue[tuple[Any, asyncio.Future[ControlReply]]] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None

    def start(self) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._run(), name="wisp-control")

    async def stop(self) -> None:
        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None

    def post(self, message: Any) -> asyncio.Future[ControlReply]:
        """Queue a message; the returned Future is its private reply channel."""
        self.start()
        reply: asyncio.Future[ControlReply] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((message, reply))
        return reply

    async def _run(self) -> None:
        while True:
            message, reply = await self._queue.get()
            try:
                result = await self.dispatch(message)
            except Exception as e:
                logger.exception("Control message %r failed", getattr(message, "type", message))
                if not reply.done():
                    reply.set_exception(e)
            else:
                if not reply.done():
                    reply.set_result(result)
            finally:
                self._queue.task_done()

    async def dispatch(self, message: Any) -> ControlReply:
        """Apply one message to the session and build its reply."""
        if isinstance(message, SetManifest):
            await self._session.set(message.manifest, message.site_info)
            return AckReply(type="MANIFEST_SET", success=True)

        if isinstance(message, ClearManifest):
            await self._session.clear()
            return AckReply(type="MANIFEST_CLEARED", success=True)

        if isinstance(message, ClearCache):
            try:
                await self._store.clear_blobs()
            except STORAGE_ERRORS as e:
                logger.warning("Failed to clear blob cache: %s", e)
                return AckReply(type="CACHE_CLEARED", success=False)
            logger.info("Blob cache cleared")
            return AckReply(type="CACHE_CLEARED", success=True)

        if isinstance(message, GetStatus):
            return StatusReply(
                has_manifest=self._session.has_manifest,
                site_info=self._session.site_info,
            )

        raise ValueError(f"Unknown control message: {message!r}")


class ControlClient:
    """Driver side: sends messages and waits for replies with a timeout."""

    def __init__(self, channel: ControlChannel, timeout_s: float = DEFAULT_TIMEOUT_S) -> None:
        self._channel = channel
        self._timeout_s = timeout_s

    async def send(self, message: Any, timeout_s: float | None = None) -> ControlReply:
        """Post ``message`` and wait for its reply.

        Raises:
            ControlTimeout: When no reply arrives within the timeout.
        """
        timeout = self._timeout_s if timeout_s is None else timeout_s
        reply = self._channel.post(message)
        try:
            return await asyncio.wait_for(reply, timeout)
        except asyncio.TimeoutError as e:
            raise ControlTimeout(
                f"No reply to {message.type} within {timeout:.1f}s"
            ) from e

    async def _acknowledged(self, message: Any) -> bool:
        try:
            reply = await self.send(message)
        except ControlTimeout as e:
            logger.warning("%s", e)
            return False
        return isinstance(reply, AckReply) and reply.success

    async def set_manifest(self, manifest: Manifest, site_info: SiteInfo) -> bool:
        return await self._acknowledged(SetManifest(manifest=manifest, site_info=site_info))

    async def clear_manifest(self) -> bool:
        return await self._acknowledged(ClearManifest())

    async def clear_cache(self) -> bool:
        return await self._acknowledged(ClearCache())

    async def get_status(self) -> StatusReply:
        reply = await self.send(GetStatus())
        if not isinstance(reply, StatusReply):
            raise TypeError(f"Unexpected reply to GET_STATUS: {reply!r}")
        return reply
