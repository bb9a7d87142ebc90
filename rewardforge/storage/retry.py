"""Bounded retries for per-student units of work."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from ..config import RetryConfig
from ..domain.exceptions import (
    ConcurrentModificationConflict,
    RetryLimitExceeded,
    TransientFailure,
)

P = ParamSpec("P")
T = TypeVar("T")

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (ConcurrentModificationConflict, TransientFailure)


async def run_with_retry(
    label: str,
    func: Callable[P, Awaitable[T]],
    *args: P.args,
    policy: RetryConfig,
    **kwargs: P.kwargs,
) -> T:
    """Run ``func`` again from scratch after conflicts or transient failures.

    ``func`` must open its own unit of work so every attempt re-reads the
    student. Any other exception propagates on the first attempt.
    """
    attempt = 0
    while True:
        try:
            return await func(*args, **kwargs)
        except RETRYABLE_ERRORS as exc:
            attempt += 1
            if attempt >= policy.max_attempts:
                logger.warning(
                    "Operation '%s' exceeded retry limit (%s attempts, last error: %s).",
                    label,
                    attempt,
                    exc,
                )
                raise RetryLimitExceeded(label, attempt) from exc
            delay = policy.delay_for(attempt)
            logger.info(
                "Operation '%s' hit %s; retrying in %.3f s (attempt %s/%s).",
                label,
                type(exc).__name__,
                delay,
                attempt,
                policy.max_attempts,
            )
            await asyncio.sleep(delay)
