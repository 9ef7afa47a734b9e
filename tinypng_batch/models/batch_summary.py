"""Batch summary model derived from the per-file outcomes."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from tinypng_batch.models.outcome import Outcome


class BatchSummary(BaseModel):
    """Totals of a batch run.

    Only the outcomes are stored; every total is computed from them.
    """

    model_config = ConfigDict(frozen=True)

    outcomes: list[Outcome] = []

    @property
    def file_count(self) -> int:
        return len(self.outcomes)

    @property
    def total_old_size(self) -> int:
        return sum(outcome.old_size for outcome in self.outcomes)

    @property
    def total_new_size(self) -> int:
        return sum(outcome.new_size for outcome in self.outcomes)

    @property
    def fail_count(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.success)

    @property
    def saved_bytes(self) -> int:
        return self.total_old_size - self.total_new_size

    @property
    def saved_percentage(self) -> float:
        """Percentage of bytes saved, 0 for an empty or zero-byte batch."""
        total_old = self.total_old_size
        if total_old == 0:
            return 0.0
        return self.saved_bytes / total_old * 100.0

    @property
    def failed_files(self) -> list[str]:
        return [outcome.file for outcome in self.outcomes if not outcome.success]

    @property
    def compressed_files(self) -> list[str]:
        return [outcome.file for outcome in self.outcomes if outcome.success]
