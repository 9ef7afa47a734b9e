"""Result-based retry loop built on tenacity."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    wait_incrementing,
)

if TYPE_CHECKING:
    from collections.abc import Callable


def _return_last_result(retry_state: RetryCallState) -> Any:
    """Hand back the final result instead of raising RetryError."""
    return retry_state.outcome.result() if retry_state.outcome else None


def retrying_on_result(
    max_attempts: int,
    should_retry: Callable[[Any], bool],
    before_sleep: Callable[[RetryCallState], None] | None = None,
    wait: Callable[[RetryCallState], float] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Retrying:
    """Build a tenacity loop that retries while ``should_retry(result)`` holds.

    Failures are values, not exceptions: once attempts run out the last
    result is returned as-is. Exceptions raised by the wrapped call are not
    retried and propagate to the caller. Waits default to 1s, 2s, 3s, ...
    """
    return Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait or wait_incrementing(start=1, increment=1),
        retry=retry_if_result(should_retry),
        before_sleep=before_sleep,
        retry_error_callback=_return_last_result,
        sleep=sleep,
    )
