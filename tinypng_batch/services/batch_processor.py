"""Bounded-concurrency batch compression."""

from __future__ import annotations

import contextlib
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING

import structlog

from tinypng_batch.core.file_collection import dedupe
from tinypng_batch.core.retry_policy import max_attempts
from tinypng_batch.core.result_aggregation import summarize_outcomes
from tinypng_batch.models.batch_summary import BatchSummary
from tinypng_batch.models.outcome import Outcome
from tinypng_batch.services.compressor import compress_one
from tinypng_batch.services.storage import LocalFileStorage
from tinypng_batch.utils.progress import ProgressTracker, SlotTracker

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from tinypng_batch.models.progress_event import ProgressEvent
    from tinypng_batch.services.protocols import (
        CompressionClientProtocol,
        FileStorageProtocol,
    )

logger = structlog.get_logger(__name__)


def compress_batch(
    files: Sequence[str],
    client: CompressionClientProtocol,
    max_concurrency: int = 5,
    retries: int = 3,
    *,
    storage: FileStorageProtocol | None = None,
    on_event: Callable[[ProgressEvent], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> BatchSummary:
    """Compress every file with at most ``max_concurrency`` in flight.

    Files are de-duplicated by exact value first, so each produces exactly
    one Outcome. The pool admits pending files in input order as workers
    free up, and each carries its 1-based input position as the progress
    index. Outcomes are stored by input position, so the summary lists
    them in input order whatever order they complete in. Individual
    failures never fail the batch.

    Raises:
        ValueError: if ``max_concurrency < 1`` or ``retries < 0``.
    """
    if max_concurrency < 1:
        msg = f"max_concurrency must be at least 1, got {max_concurrency}"
        raise ValueError(msg)
    max_attempts(retries)

    pending = dedupe(files)
    total = len(pending)
    if total == 0:
        logger.info("batch_empty")
        return BatchSummary()

    store = storage or LocalFileStorage()
    slots = SlotTracker()
    tracker = ProgressTracker(total=total)
    outcomes: list[Outcome | None] = [None] * total

    def _process(file: str, index: int) -> Outcome:
        slots.acquire()
        try:
            return compress_one(
                file,
                client,
                retries,
                storage=store,
                index=index,
                total=total,
                on_event=on_event,
                sleep=sleep,
            )
        finally:
            slots.release()

    logger.info(
        "batch_started",
        files=total,
        max_concurrency=max_concurrency,
        retries=retries,
    )

    with ThreadPoolExecutor(max_workers=min(max_concurrency, total)) as executor:
        futures = {
            executor.submit(_process, file, position + 1): position
            for position, file in enumerate(pending)
        }

        for future in as_completed(futures):
            position = futures[future]
            file = pending[position]
            try:
                outcome = future.result()
            except Exception as exc:
                logger.error("batch_item_failed", file=file, error=str(exc))
                outcome = _failed_outcome(file, store, str(exc) or type(exc).__name__)

            outcomes[position] = outcome
            if outcome.success:
                tracker.record_success(outcome.saved_bytes)
            else:
                tracker.record_failure(f"{file}: {outcome.error_message}")
            tracker.log_progress(every_n=10)

    completed = [outcome for outcome in outcomes if outcome is not None]
    if len(completed) != total:
        msg = f"batch finished with {len(completed)} of {total} outcomes"
        raise RuntimeError(msg)

    summary = summarize_outcomes(completed)
    logger.info(
        "batch_completed",
        files=total,
        saved_percentage=round(summary.saved_percentage, 2),
        peak_concurrency=slots.peak_active,
        **tracker.summary(),
    )
    return summary


def _failed_outcome(file: str, storage: FileStorageProtocol, error: str) -> Outcome:
    """Outcome for an invocation that raised instead of returning."""
    size = 0
    with contextlib.suppress(OSError):
        size = storage.size(file)
    return Outcome(file=file, old_size=size, new_size=size, success=False, error_message=error)
