"""Retry helpers for transient gist API failures.

Updates:
  v0.2.0 - 2026-09-21 - Never retry authentication failures; add RetryPolicy settings bridge.
  v0.1.0 - 2026-09-07 - Add sync exponential backoff retry helper.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

import httpx

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("prompt_vault.retry")

T = TypeVar("T")

_RETRYABLE_HTTP_STATUS_CODES = {408, 429}
_AUTH_STATUS_CODES = {401, 403}


def is_retryable_http_status(status_code: int) -> bool:
    """Return ``True`` when *status_code* suggests a transient failure."""
    return status_code in _RETRYABLE_HTTP_STATUS_CODES or 500 <= status_code < 600


def is_retryable_httpx_error(exc: Exception) -> bool:
    """Return ``True`` when *exc* represents a transient httpx error."""
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        if status_code in _AUTH_STATUS_CODES:
            return False
        return is_retryable_http_status(status_code)
    return isinstance(exc, (httpx.TimeoutException, httpx.TransportError))


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Backoff parameters shared by every outbound gist request."""

    max_attempts: int = 3
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 4.0
    jitter_fraction: float = 0.1


def _compute_delay_seconds(attempt: int, policy: RetryPolicy) -> float:
    delay = min(policy.max_delay_seconds, policy.base_delay_seconds * (2 ** (attempt - 1)))
    if policy.jitter_fraction <= 0:
        return delay
    return delay + (delay * policy.jitter_fraction * random.random())


def retry(
    operation: Callable[[], T],
    *,
    policy: RetryPolicy | None = None,
    should_retry: Callable[[Exception], bool] = is_retryable_httpx_error,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Execute *operation* with exponential-backoff retries.

    Args:
      operation: Zero-argument callable to execute.
      policy: Attempt count and backoff shape; defaults to :class:`RetryPolicy`.
      should_retry: Predicate that decides whether an exception is retryable.
      sleep: Delay function, injectable for tests.

    Returns:
      The value returned by *operation* on success.

    Raises:
      Exception: Re-raises the last exception when retries are exhausted or non-retryable.
    """
    active = policy or RetryPolicy()
    attempts = max(1, int(active.max_attempts))
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except Exception as exc:
            if attempt >= attempts or not should_retry(exc):
                raise
            logger.debug(
                "Retrying transient failure",
                extra={"attempt": attempt, "max_attempts": attempts, "error": str(exc)},
            )
            if active.base_delay_seconds <= 0:
                continue
            sleep(_compute_delay_seconds(attempt, active))
    raise RuntimeError("retry exhausted retries")  # pragma: no cover


__all__ = ["RetryPolicy", "is_retryable_http_status", "is_retryable_httpx_error", "retry"]
