"""Retry decorator with exponential backoff for storage I/O."""
from __future__ import annotations

import functools
import random
import time
from typing import Any, Callable, Tuple, Type

from jobrank.log import get_logger

log = get_logger(__name__)


def backoff_delay(
    attempt: int,
    *,
    base_delay: float,
    max_delay: float,
    backoff_factor: float,
    jitter: bool,
) -> float:
    """Delay before retry number *attempt* (1-based)."""
    delay = min(base_delay * (backoff_factor ** (attempt - 1)), max_delay)
    if jitter:
        delay *= 0.5 + random.random()
    return delay


def retry(
    *,
    max_attempts: int = 3,
    base_delay: float = 0.2,
    max_delay: float = 5.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retryable: Tuple[Type[BaseException], ...] = (OSError,),
    sleep: Callable[[float], None] = time.sleep,
) -> Callable:
    """Retry the wrapped call on *retryable* errors; the last error is re-raised."""

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            attempt = 1
            while True:
                try:
                    return fn(*args, **kwargs)
                except retryable as exc:
                    if attempt >= max_attempts:
                        log.error("%s failed after %d attempts: %s", fn.__qualname__, attempt, exc)
                        raise
                    delay = backoff_delay(
                        attempt,
                        base_delay=base_delay,
                        max_delay=max_delay,
                        backoff_factor=backoff_factor,
                        jitter=jitter,
                    )
                    log.warning(
                        "%s attempt %d/%d failed (%s), retrying in %.2fs",
                        fn.__qualname__, attempt, max_attempts, exc, delay,
                    )
                    sleep(delay)
                    attempt += 1

        return wrapper

    return decorator
