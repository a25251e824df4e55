# src/logging/context.py — v1
"""Contextual logging support: attach did, site and request path to log records."""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per served request.
_did: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "did", default=None
)
_site: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "site", default=None
)
_request_path: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_path", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    did: str | None = None
    site: str | None = None
    request_path: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        did=_did.get(),
        site=_site.get(),
        request_path=_request_path.get(),
    )


def set_site_context(did: str | None, site: str | None) -> None:
    """Set site-level context (called when a site becomes active)."""
    _did.set(did)
    _site.set(site)


def set_request_context(request_path: str) -> None:
    """Set request-level context (called per intercepted request)."""
    _request_path.set(request_path)


def clear_context() -> None:
    """Reset all context variables."""
    _did.set(None)
    _site.set(None)
    _request_path.set(None)
