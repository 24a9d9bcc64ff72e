"""Exponential backoff around Notion calls that hit the rate limit."""

from __future__ import annotations

import functools
import logging
import time
from typing import Callable, Optional, TypeVar

from pydantic import BaseModel, Field

from .exceptions import NotionRateLimitError

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy(BaseModel):
    """How often and how patiently a rate-limited call is retried.

    Attributes:
        max_attempts: Total number of attempts, including the first one.
        base_delay_seconds: Delay before the first retry; doubled for each further retry.
        max_delay_seconds: Upper bound for a single delay.
    """

    max_attempts: int = Field(default=5, ge=1)
    base_delay_seconds: float = Field(default=1.0, ge=0)
    max_delay_seconds: float = Field(default=16.0, ge=0)

    def delay_for(self, retry_number: int, retry_after: Optional[float] = None) -> float:
        """Return the wait before retry ``retry_number`` (zero-based)."""
        backoff = self.base_delay_seconds * (2 ** retry_number)
        if retry_after is not None:
            backoff = max(backoff, retry_after)
        return min(backoff, self.max_delay_seconds)


def with_retry(
    call: Callable[[], T],
    policy: RetryPolicy,
    *,
    sleep: Optional[Callable[[float], None]] = None,
    logger: Optional[logging.Logger] = None,
) -> T:
    """Invoke ``call``, retrying only on :class:`NotionRateLimitError`.

    Raises:
        NotionRateLimitError: The last rate-limit error once attempts are exhausted.
    """
    log = logger or LOGGER
    attempt = 0

    while True:
        attempt += 1
        try:
            return call()
        except NotionRateLimitError as exc:
            if attempt >= policy.max_attempts:
                log.warning("Rate limit persisted after %s attempts.", attempt)
                raise
            delay = policy.delay_for(attempt - 1, exc.retry_after)
            log.warning(
                "Rate limited by Notion. Waiting %.1fs before retry %s/%s.",
                delay,
                attempt,
                policy.max_attempts - 1,
            )
            (sleep or time.sleep)(delay)


def retrying(
    policy: RetryPolicy, *, sleep: Optional[Callable[[float], None]] = None
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator form of :func:`with_retry`."""

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> T:
            return with_retry(lambda: func(*args, **kwargs), policy, sleep=sleep)

        return wrapper

    return decorator
