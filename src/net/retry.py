# src/net/retry.py — v1
"""Retry policy with capped exponential backoff for outbound network calls.

Only transport-level failures and 5xx/429 replies are retried. Everything
else (4xx, parse failures, origin refusals) propagates on the first attempt.
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

import httpx

from wispview.core.errors import CorsError, FetchError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """Backoff schedule: initial_delay_s * backoff_factor**n, capped at max_delay_s."""

    max_attempts: int = 3
    initial_delay_s: float = 1.0
    backoff_factor: float = 2.0
    max_delay_s: float = 10.0
    jitter: bool = False


DEFAULT_RETRY_CONFIG = RetryConfig()


def retry_config_from_settings(settings: Any) -> RetryConfig:
    """Build a RetryConfig from Settings retry_* fields."""
    return RetryConfig(
        max_attempts=settings.retry_max_attempts,
        initial_delay_s=settings.retry_initial_delay_s,
        backoff_factor=settings.retry_backoff_factor,
        max_delay_s=settings.retry_max_delay_s,
    )


def is_retryable(error: BaseException) -> bool:
    """True for network-level failures and 5xx/429 fetch errors."""
    if isinstance(error, CorsError):
        return False
    if isinstance(error, httpx.TransportError):
        return True
    if isinstance(error, FetchError):
        return error.is_retryable
    return False


def compute_delay(config: RetryConfig, attempt: int) -> float:
    """Delay in seconds after the given failed attempt (0-based)."""
    delay = config.initial_delay_s * (config.backoff_factor ** attempt)
    delay = min(delay, config.max_delay_s)
    if config.jitter:
        delay *= 0.5 + random.random()  # noqa: S311
    return delay


async def with_retry(
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    config: RetryConfig | None = None,
    label: str = "request",
    **kwargs: Any,
) -> T:
    """Execute an async function, retrying retryable failures.

    The last error is re-raised unchanged once attempts are exhausted or the
    failure is not retryable.
    """
    cfg = config or DEFAULT_RETRY_CONFIG
    attempt = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except Exception as e:
            attempt += 1
            if attempt >= cfg.max_attempts or not is_retryable(e):
                raise

            delay = compute_delay(cfg, attempt - 1)
            logger.warning(
                "%s failed (attempt %d/%d): %s; retrying in %.1fs",
                label, attempt, cfg.max_attempts, e, delay,
            )
            await asyncio.sleep(delay)
