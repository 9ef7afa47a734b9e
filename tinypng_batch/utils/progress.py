"""Progress tracking utilities for batch operations."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field

from tinypng_batch.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ProgressTracker:
    """Track completions of a batch run."""

    total: int
    processed: int = 0
    successful: int = 0
    failed: int = 0
    saved_bytes: int = 0
    errors: list[str] = field(default_factory=list)
    start_time: float = field(default_factory=time.monotonic)

    def record_success(self, saved_bytes: int = 0) -> None:
        """Record a successful compression."""
        self.processed += 1
        self.successful += 1
        self.saved_bytes += saved_bytes

    def record_failure(self, error: str) -> None:
        """Record a failed compression."""
        self.processed += 1
        self.failed += 1
        self.errors.append(error)

    @property
    def elapsed_seconds(self) -> float:
        """Time elapsed since start."""
        return time.monotonic() - self.start_time

    @property
    def progress_percentage(self) -> float:
        """Percentage of total items processed."""
        if self.total == 0:
            return 100.0
        return (self.processed / self.total) * 100.0

    def log_progress(self, every_n: int = 10) -> None:
        """Log progress every N items."""
        if self.processed % every_n == 0 or self.processed == self.total:
            logger.info(
                "batch_progress",
                processed=self.processed,
                total=self.total,
                successful=self.successful,
                failed=self.failed,
                percentage=f"{self.progress_percentage:.1f}%",
                elapsed=f"{self.elapsed_seconds:.1f}s",
            )

    def summary(self) -> dict[str, int | float | list[str]]:
        """Return summary statistics."""
        return {
            "processed": self.processed,
            "successful": self.successful,
            "failed": self.failed,
            "saved_bytes": self.saved_bytes,
            "duration_seconds": round(self.elapsed_seconds, 2),
            "errors": self.errors,
        }


class SlotTracker:
    """Thread-safe count of occupied concurrency slots and the peak reached."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._active = 0
        self._peak_active = 0

    def acquire(self) -> None:
        with self._lock:
            self._active += 1
            self._peak_active = max(self._peak_active, self._active)

    def release(self) -> None:
        with self._lock:
            if self._active == 0:
                msg = "release() called with no active slot"
                raise RuntimeError(msg)
            self._active -= 1

    @property
    def active(self) -> int:
        with self._lock:
            return self._active

    @property
    def peak_active(self) -> int:
        with self._lock:
            return self._peak_active
