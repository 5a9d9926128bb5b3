"""Retry with exponential backoff for idempotent reads.

Mutations are never routed through here: a retried write could apply twice
and duplicate its side effects.
"""

import logging
import random
import time
from typing import Callable, Tuple, Type, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Transport-level failures only; HTTP error responses are not retried
RETRYABLE_ERRORS: Tuple[Type[BaseException], ...] = (httpx.TransportError,)


def retry_read(
    fn: Callable[[], T],
    *,
    attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 5.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retryable: Tuple[Type[BaseException], ...] = RETRYABLE_ERRORS,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``fn`` and retry it on transport errors.

    Args:
        fn: Zero-argument callable performing the read.
        attempts: Total attempts, including the first.
        base_delay: Delay before the second attempt; doubles each time.
        max_delay: Upper bound for a single delay.
        backoff_factor: Multiplier applied per attempt.
        jitter: Randomise each delay to between 50% and 150% of its value.
        retryable: Exception types that trigger a retry.
        sleep: Sleep function (injectable for tests).

    Returns:
        Whatever ``fn`` returns.

    Raises:
        The last retryable exception once attempts are exhausted, or any
        non-retryable exception immediately.
    """
    name = getattr(fn, "__qualname__", repr(fn))
    for attempt in range(1, attempts + 1):
        try:
            return fn()
        except retryable as exc:
            if attempt >= attempts:
                logger.error(f"{name} failed after {attempts} attempts: {exc}")
                raise
            delay = min(base_delay * (backoff_factor ** (attempt - 1)), max_delay)
            if jitter:
                delay *= 0.5 + random.random()
            logger.warning(
                f"{name} attempt {attempt}/{attempts} failed ({exc}), retrying in {delay:.1f}s"
            )
            sleep(delay)
    raise RuntimeError("retry_read called with attempts < 1")
