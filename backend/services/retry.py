"""Bounded immediate-retry wrapper for unreliable upstream calls."""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from errors import RetryExhaustedError, UpstreamNotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """Retry configuration.

    max_retries counts retries after the first attempt, so an operation runs
    at most max_retries + 1 times. There is no backoff delay between attempts.
    With retry_not_found=False an UpstreamNotFoundError ends the loop at once
    instead of being retried like any other failure.
    """

    max_retries: int = 3
    retry_not_found: bool = True

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")


async def fetch_with_retry(
    operation: Callable[[int], Awaitable[T]],
    policy: RetryPolicy,
    description: str,
) -> T:
    """Run operation(attempt) until it succeeds or the retry budget is spent.

    Attempts are numbered from 1. Each failure is logged as an error and each
    scheduled retry as an info line carrying the next attempt number.
    """
    last_error: Exception | None = None

    for attempt in range(1, policy.max_retries + 2):
        try:
            return await operation(attempt)
        except Exception as e:
            last_error = e
            logger.error("Error fetching %s (attempt=%d): %s", description, attempt, e)

            if isinstance(e, UpstreamNotFoundError) and not policy.retry_not_found:
                raise

            if attempt <= policy.max_retries:
                logger.info(
                    "Retrying %s fetch (attempt=%d, max_retries=%d)",
                    description, attempt + 1, policy.max_retries,
                )

    raise RetryExhaustedError(
        f"Failed to fetch {description} after {policy.max_retries} attempts: {last_error}",
        attempts=policy.max_retries + 1,
    ) from last_error
