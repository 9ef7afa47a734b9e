"""Failure classification and backoff policy for compression attempts."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tinypng_batch.models.outcome import AttemptStatus

if TYPE_CHECKING:
    from tenacity import RetryCallState

    from tinypng_batch.models.outcome import AttemptResult

# 401: bad credentials. 415: input is not a supported image format.
# Neither can succeed on a later attempt.
NON_RETRYABLE_STATUS: frozenset[int] = frozenset({401, 415})


def is_retryable_status(status_code: int | None) -> bool:
    """Network errors (no status) and every other service error are retryable."""
    return status_code not in NON_RETRYABLE_STATUS


def classify_attempt(result: AttemptResult) -> AttemptStatus:
    """Map an attempt onto the retry state machine."""
    if result.success:
        return AttemptStatus.SUCCESS
    if is_retryable_status(result.status_code):
        return AttemptStatus.RETRYABLE
    return AttemptStatus.TERMINAL


def max_attempts(retries: int) -> int:
    """Total attempts for a retry budget; raises on a negative budget."""
    if retries < 0:
        msg = f"retries must be non-negative, got {retries}"
        raise ValueError(msg)
    return retries + 1


def backoff_delay(attempt_number: int) -> int:
    """Seconds to wait after failed attempt ``attempt_number`` (linear: 1, 2, 3, ...)."""
    return attempt_number


def wait_linear(retry_state: RetryCallState) -> float:
    """tenacity wait strategy applying :func:`backoff_delay`."""
    return float(backoff_delay(retry_state.attempt_number))
