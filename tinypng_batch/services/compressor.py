"""Single-file compression: one attempt, and the retrying controller around it."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import requests
import structlog

from tinypng_batch.core.retry_policy import max_attempts, wait_linear
from tinypng_batch.models.outcome import AttemptResult, AttemptStatus
from tinypng_batch.models.progress_event import ProgressEvent, ProgressEventKind
from tinypng_batch.services.storage import LocalFileStorage
from tinypng_batch.services.tinify_client import TinifyAPIError
from tinypng_batch.utils.retry import retrying_on_result

if TYPE_CHECKING:
    from collections.abc import Callable

    from tenacity import RetryCallState

    from tinypng_batch.models.outcome import Outcome
    from tinypng_batch.services.protocols import (
        CompressionClientProtocol,
        FileStorageProtocol,
    )

logger = structlog.get_logger(__name__)


def attempt_compression(
    file: str,
    client: CompressionClientProtocol,
    storage: FileStorageProtocol,
) -> AttemptResult:
    """Run one upload/download round-trip for ``file``.

    On success the stored content is replaced with the compressed bytes.
    Every failure is returned as a failed AttemptResult with the content
    untouched; whether it is worth retrying is decided by the caller.
    """
    old_size = 0
    try:
        old_size = storage.size(file)
        data = storage.read_bytes(file)
        location = client.shrink(data)
        compressed = client.download(location)
        storage.write_bytes(file, compressed)
    except TinifyAPIError as exc:
        return AttemptResult.failed(file, old_size, exc.message, status_code=exc.status_code)
    except requests.RequestException as exc:
        return AttemptResult.failed(file, old_size, str(exc) or type(exc).__name__)
    except Exception as exc:
        logger.error("compression_attempt_error", file=file, error=str(exc))
        return AttemptResult.failed(file, old_size, str(exc) or type(exc).__name__)

    return AttemptResult.succeeded(file, old_size, len(compressed))


def compress_one(
    file: str,
    client: CompressionClientProtocol,
    retries: int = 3,
    *,
    storage: FileStorageProtocol | None = None,
    index: int | None = None,
    total: int | None = None,
    on_event: Callable[[ProgressEvent], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Outcome:
    """Compress ``file`` with up to ``retries + 1`` attempts.

    Retries stop early on success or on a terminal failure (401, 415).
    Before retry ``n`` the controller sleeps ``n`` seconds. Failures never
    raise; they come back as an Outcome with ``success=False``.

    Args:
        file: File identifier understood by ``storage``.
        client: Compression service client.
        retries: Retry budget; 0 means a single attempt.
        storage: Byte storage, local disk by default.
        index: 1-based batch position for progress labels.
        total: Batch size for progress labels.
        on_event: Receives one ProgressEvent per attempt. Exceptions it
            raises are logged and do not affect the Outcome.
        sleep: Backoff sleep, injectable for tests.

    Raises:
        ValueError: if ``retries`` is negative.
    """
    limit = max_attempts(retries)
    store = storage or LocalFileStorage()
    attempts = 0

    def _emit(kind: ProgressEventKind, result: AttemptResult, delay: float | None = None) -> None:
        if on_event is None:
            return
        event = ProgressEvent(
            kind=kind,
            file=file,
            attempt=attempts,
            max_attempts=limit,
            index=index,
            total=total,
            old_size=result.old_size,
            new_size=result.new_size,
            error_message=result.error_message,
            delay_seconds=delay,
        )
        # The outcome reflects the attempt, never the display layer.
        try:
            on_event(event)
        except Exception as exc:
            logger.warning(
                "progress_callback_failed",
                file=file,
                kind=str(kind),
                error=str(exc) or type(exc).__name__,
            )

    def _run_attempt() -> AttemptResult:
        nonlocal attempts
        attempts += 1
        return attempt_compression(file, client, store)

    def _before_sleep(retry_state: RetryCallState) -> None:
        result: AttemptResult = retry_state.outcome.result()  # type: ignore[union-attr]
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.debug(
            "attempt_retry_scheduled",
            file=file,
            attempt=attempts,
            max_attempts=limit,
            status_code=result.status_code,
            error=result.error_message,
            delay_seconds=delay,
        )
        _emit(ProgressEventKind.RETRYING, result, delay)

    retrying = retrying_on_result(
        max_attempts=limit,
        should_retry=lambda result: result.status is AttemptStatus.RETRYABLE,
        before_sleep=_before_sleep,
        wait=wait_linear,
        sleep=sleep,
    )
    result: AttemptResult = retrying(_run_attempt)

    if result.success:
        logger.debug(
            "attempt_succeeded",
            file=file,
            attempt=attempts,
            max_attempts=limit,
            old_size=result.old_size,
            new_size=result.new_size,
        )
        _emit(ProgressEventKind.COMPRESSED, result)
    else:
        reason = "terminal" if result.status is AttemptStatus.TERMINAL else "exhausted"
        logger.warning(
            "attempt_failed",
            file=file,
            attempt=attempts,
            max_attempts=limit,
            reason=reason,
            status_code=result.status_code,
            error=result.error_message,
        )
        _emit(ProgressEventKind.FAILED, result)

    return result.to_outcome(attempts)
