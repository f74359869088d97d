"""
Sicario Loader Retry Logic

Retries filesystem operations that fail because another process holds the file.

On Windows a running game keeps its pak files open, so deleting or replacing them
fails with PermissionError until the handle is released. Only that error is
retried; anything else propagates on the first attempt.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from .logging import get_logger

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_MIN_WAIT = 0.25  # seconds
DEFAULT_MAX_WAIT = 2.0  # seconds


def fs_retry(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    min_wait: float = DEFAULT_MIN_WAIT,
    max_wait: float = DEFAULT_MAX_WAIT,
) -> Callable[[F], F]:
    """
    Decorator retrying a filesystem operation on PermissionError.

    Args:
        max_attempts: Total attempts including the first (default: 3)
        min_wait: Initial wait between attempts in seconds
        max_wait: Maximum wait between attempts in seconds

    Returns:
        Decorator function; the last error is re-raised when attempts run out

    Usage:
        @fs_retry(max_attempts=5)
        def remove(path):
            path.unlink()
    """

    def decorator(func: F) -> F:
        if max_attempts <= 1:
            return func

        @retry(
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=min_wait, max=max_wait)
            + wait_random(0, max_wait * 0.1),
            retry=retry_if_exception_type(PermissionError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        @wraps(func)
        def tenacity_wrapper(*args: Any, **kwargs: Any) -> Any:
            return func(*args, **kwargs)

        return tenacity_wrapper  # type: ignore[return-value]

    return decorator


def call_with_retry(
    func: Callable[..., Any],
    *args: Any,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    **kwargs: Any,
) -> Any:
    """Run a single call under fs_retry with a per-call attempt budget."""
    return fs_retry(max_attempts=max_attempts)(func)(*args, **kwargs)
