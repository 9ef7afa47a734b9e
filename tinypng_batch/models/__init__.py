"""Pydantic data models for tinypng-batch."""

from tinypng_batch.models.batch_summary import BatchSummary
from tinypng_batch.models.config import Config, ConfigError
from tinypng_batch.models.outcome import AttemptResult, AttemptStatus, Outcome
from tinypng_batch.models.progress_event import ProgressEvent, ProgressEventKind

__all__ = [
    "AttemptResult",
    "AttemptStatus",
    "BatchSummary",
    "Config",
    "ConfigError",
    "Outcome",
    "ProgressEvent",
    "ProgressEventKind",
]
