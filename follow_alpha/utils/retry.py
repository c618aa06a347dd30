"""Retry with exponential backoff and a per-attempt deadline.

Every external call site (Raydium pools, Solana RPC) goes through
``retry_with_backoff`` so timeout, backoff and stop handling live in one place.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

import httpx

from follow_alpha.errors import (
    NotFoundError,
    RetryCancelledError,
    RetryExhaustedError,
    TransientHTTPError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RETRYABLE_STATUS = {408, 425, 429}


def raise_for_transient(resp: httpx.Response) -> None:
    """Map an HTTP response onto the retry taxonomy.

    404 -> NotFoundError, 429/5xx -> TransientHTTPError, other 4xx -> httpx error.
    """
    if resp.status_code == 404:
        raise NotFoundError(f"404 Not Found ({resp.request.url})")
    if resp.status_code in _RETRYABLE_STATUS or resp.status_code >= 500:
        raise TransientHTTPError(
            f"HTTP {resp.status_code} from {resp.request.url.host}",
            status_code=resp.status_code,
        )
    resp.raise_for_status()


async def _wait_or_stop(delay: float, should_stop: Callable[[], bool] | None) -> bool:
    """Sleep ``delay`` seconds in short slices. Returns True if stop was requested."""
    remaining = delay
    while remaining > 0:
        if should_stop and should_stop():
            return True
        step = min(remaining, 0.25)
        await asyncio.sleep(step)
        remaining -= step
    return bool(should_stop and should_stop())


async def retry_with_backoff(
    fn: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    timeout: float | None = 10.0,
    should_stop: Callable[[], bool] | None = None,
    label: str = "request",
) -> T:
    """Call ``fn`` until it succeeds or ``max_attempts`` is reached.

    Each attempt is bounded by ``timeout``. Delays double after every failed
    attempt (1s, 2s, 4s with the defaults). ``NotFoundError`` is re-raised at
    once without retrying. If ``should_stop`` turns true before an attempt or
    during a wait, ``RetryCancelledError`` is raised.
    """
    delay = base_delay
    last_error: Exception | None = None

    for attempt in range(1, max_attempts + 1):
        if should_stop and should_stop():
            raise RetryCancelledError(f"{label}: stop requested")

        try:
            if timeout is None:
                return await fn()
            return await asyncio.wait_for(fn(), timeout=timeout)
        except NotFoundError:
            raise
        except (TransientHTTPError, httpx.TransportError, asyncio.TimeoutError) as exc:
            last_error = exc
            logger.warning(
                "%s failed (attempt %d/%d): %s",
                label, attempt, max_attempts, exc or type(exc).__name__,
            )

        if attempt < max_attempts:
            if await _wait_or_stop(delay, should_stop):
                raise RetryCancelledError(f"{label}: stop requested")
            delay *= 2

    logger.error("%s: max retries exceeded", label)
    raise RetryExhaustedError(max_attempts, last_error)
