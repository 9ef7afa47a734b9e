"""Progress event model emitted once per compression attempt."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, model_validator


class ProgressEventKind(StrEnum):
    """What happened on an attempt."""

    COMPRESSED = "compressed"
    RETRYING = "retrying"
    FAILED = "failed"


class ProgressEvent(BaseModel):
    """One entry of the progress stream consumed by display layers.

    ``index``/``total`` are the batch position label (``[index/total]``)
    and are None when a file is compressed outside of a batch.
    """

    model_config = ConfigDict(frozen=True)

    kind: ProgressEventKind
    file: str
    attempt: int
    max_attempts: int
    index: int | None = None
    total: int | None = None
    old_size: int = 0
    new_size: int = 0
    error_message: str | None = None
    delay_seconds: float | None = None

    @model_validator(mode="after")
    def validate_attempt_bounds(self) -> ProgressEvent:
        """Attempt number is 1-based and never exceeds the maximum."""
        if self.attempt < 1 or self.attempt > self.max_attempts:
            msg = "attempt must be between 1 and max_attempts"
            raise ValueError(msg)
        return self

    @property
    def label(self) -> str:
        if self.index is None or self.total is None:
            return ""
        return f"[{self.index}/{self.total}]"
