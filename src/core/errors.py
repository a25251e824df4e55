# src/core/errors.py — v1
"""Exception taxonomy shared by the resolver, fetcher and site server."""

from __future__ import annotations

from typing import Any


class WispError(Exception):
    """Base class for all wispview failures."""


class ResolutionError(WispError):
    """Handle, identity or hosting-endpoint resolution failed.

    ``code`` distinguishes the failure kind: ``handle_not_found``,
    ``did_not_found``, ``invalid_document``, ``no_pds`` or ``network``.
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class FetchError(WispError):
    """A record or blob could not be retrieved.

    ``status`` carries the HTTP status when the remote answered at all.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status

    @property
    def is_retryable(self) -> bool:
        return self.status is not None and (self.status >= 500 or self.status == 429)


class CorsError(FetchError):
    """The remote refused the configured request origin."""


class ParseError(WispError):
    """A repository record does not match the expected lexicon shape."""

    def __init__(self, message: str, record: Any = None) -> None:
        super().__init__(message)
        self.record = record


class NotFoundError(WispError):
    """Path is absent from the site manifest."""


class SiteMismatchError(WispError):
    """Scoped request names a different identity than the resident site."""

    def __init__(self, requested: str, resident: str) -> None:
        super().__init__(
            f"Site mismatch: request for {requested!r} but {resident!r} is loaded"
        )
        self.requested = requested
        self.resident = resident


class ControlTimeout(WispError):
    """No reply arrived on a control reply channel within the timeout."""
