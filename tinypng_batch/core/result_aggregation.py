"""Batch result aggregation and plain-text reporting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tinypng_batch.models.batch_summary import BatchSummary
from tinypng_batch.models.progress_event import ProgressEvent, ProgressEventKind
from tinypng_batch.utils.formatting import format_percentage, format_size

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tinypng_batch.models.outcome import Outcome


def summarize_outcomes(outcomes: Iterable[Outcome]) -> BatchSummary:
    """Reduce per-file outcomes into a BatchSummary."""
    return BatchSummary(outcomes=list(outcomes))


def format_batch_summary(summary: BatchSummary) -> str:
    """Format the batch totals as the closing summary block."""
    files_line = f"Files: {summary.file_count}"
    if summary.fail_count > 0:
        files_line += f" ({summary.fail_count} failed)"

    lines = [
        "=== Summary ===",
        files_line,
        f"Before: {format_size(summary.total_old_size)}",
        f"After:  {format_size(summary.total_new_size)}",
        f"Saved:  {format_size(summary.saved_bytes)}",
        f"Ratio:  {format_percentage(summary.saved_percentage)}",
    ]
    return "\n".join(lines)


def format_failure_report(summary: BatchSummary) -> str:
    """List the files that failed, with the reason, one per line."""
    failed = [outcome for outcome in summary.outcomes if not outcome.success]
    if not failed:
        return ""

    lines = [f"{len(failed)} image(s) failed to compress:"]
    for outcome in failed:
        lines.append(f"  - {outcome.file} ({outcome.error_message})")
    return "\n".join(lines)


def format_event(event: ProgressEvent) -> str:
    """Render one progress event as a single console line."""
    prefix = f"{event.label} " if event.label else ""

    if event.kind is ProgressEventKind.COMPRESSED:
        saved = event.old_size - event.new_size
        percent = (saved / event.old_size * 100.0) if event.old_size else 0.0
        return (
            f"{prefix}Compressed: {event.file}, saved {format_size(saved)}, "
            f"{format_percentage(percent)} smaller"
        )

    if event.kind is ProgressEventKind.RETRYING:
        delay = int(event.delay_seconds or 0)
        return (
            f"{prefix}Attempt {event.attempt}/{event.max_attempts} failed: {event.file}, "
            f"{event.error_message} - retrying in {delay}s..."
        )

    return f"{prefix}Failed: {event.file}, {event.error_message}"
