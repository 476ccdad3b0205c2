"""Retry policy for individual chunk uploads.

Sessions do not retry by default: one failed chunk fails the whole upload.
A RetryPolicy with ``max_retries > 0`` turns on exponential backoff.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

import httpx

from chunkctl.core.validation import validate_retries
from chunkctl.transfer.constants import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_BACKOFF_BASE,
    RETRYABLE_STATUS_CODES,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """How many times and how patiently to retry one request."""

    max_retries: int = DEFAULT_MAX_RETRIES
    backoff_base: float = DEFAULT_RETRY_BACKOFF_BASE
    retryable_status_codes: frozenset[int] = field(
        default_factory=lambda: frozenset(RETRYABLE_STATUS_CODES)
    )

    def __post_init__(self) -> None:
        validate_retries(self.max_retries)

    def delay(self, attempt: int) -> float:
        """Seconds to wait after the zero-based ``attempt`` failed."""
        return self.backoff_base ** (attempt + 1)

    def is_retryable_status(self, status_code: int) -> bool:
        """Retryable: 429 (rate limit), 5xx (server errors)."""
        return status_code in self.retryable_status_codes


NO_RETRY = RetryPolicy()


async def request_with_retry(
    request_fn: Callable[[], Awaitable[httpx.Response]],
    *,
    policy: RetryPolicy = NO_RETRY,
    label: str = "request",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> httpx.Response:
    """Execute a request with retry on transient HTTP errors.

    Args:
        request_fn: Coroutine factory performing the request. Called again on
            retry, so it must be idempotent.
        policy: Retry policy.
        label: Label for log messages.
        sleep: Awaitable sleep, replaceable in tests.

    Returns:
        The response of the last attempt (possibly a non-success status).

    Raises:
        httpx.TransportError: If every attempt failed at the transport level.
    """
    last_resp: httpx.Response | None = None
    last_exc: httpx.TransportError | None = None

    for attempt in range(policy.max_retries + 1):
        try:
            resp = await request_fn()
            if not policy.is_retryable_status(resp.status_code):
                return resp
            last_resp, last_exc = resp, None
            reason = f"HTTP {resp.status_code}"
        except httpx.TransportError as e:
            last_resp, last_exc = None, e
            reason = type(e).__name__

        if attempt < policy.max_retries:
            delay = policy.delay(attempt)
            logger.warning(
                "%s: %s on attempt %d/%d, retrying in %.1fs",
                label,
                reason,
                attempt + 1,
                policy.max_retries + 1,
                delay,
            )
            await sleep(delay)

    if last_exc is not None:
        raise last_exc
    if last_resp is None:
        raise RuntimeError(f"{label}: no attempt was made")
    return last_resp
