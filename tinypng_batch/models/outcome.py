"""Per-attempt and per-file compression result models."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class AttemptStatus(StrEnum):
    """Classification of a single attempt, consumed by the retry loop."""

    SUCCESS = "success"
    RETRYABLE = "retryable"
    TERMINAL = "terminal"


def _saved_percentage(old_size: int, new_size: int) -> float:
    if old_size == 0:
        return 0.0
    return (old_size - new_size) / old_size * 100.0


class _ResultBase(BaseModel):
    """Fields and validation shared by AttemptResult and Outcome."""

    model_config = ConfigDict(frozen=True)

    file: str
    old_size: int
    new_size: int
    success: bool
    error_message: str | None = None

    @field_validator("file")
    @classmethod
    def validate_file(cls, value: str) -> str:
        """File identifier must be non-empty."""
        if not value:
            msg = "file must not be empty"
            raise ValueError(msg)
        return value

    @field_validator("old_size", "new_size")
    @classmethod
    def validate_size(cls, value: int) -> int:
        """Byte counts must be non-negative."""
        if value < 0:
            msg = "sizes must be non-negative"
            raise ValueError(msg)
        return value

    @model_validator(mode="after")
    def validate_failure_shape(self) -> _ResultBase:
        """A failure carries an error message and leaves the size untouched."""
        if self.success and self.error_message is not None:
            msg = "error_message must be None when success is True"
            raise ValueError(msg)
        if not self.success:
            if not self.error_message:
                msg = "error_message is required when success is False"
                raise ValueError(msg)
            if self.new_size != self.old_size:
                msg = "new_size must equal old_size when success is False"
                raise ValueError(msg)
        return self

    @property
    def saved_bytes(self) -> int:
        return self.old_size - self.new_size

    @property
    def saved_percentage(self) -> float:
        return _saved_percentage(self.old_size, self.new_size)


class AttemptResult(_ResultBase):
    """Result of one upload/download round-trip.

    ``status_code`` is the HTTP status of the failing response, or None for
    network and local I/O errors.
    """

    status_code: int | None = None

    @classmethod
    def succeeded(cls, file: str, old_size: int, new_size: int) -> AttemptResult:
        return cls(file=file, old_size=old_size, new_size=new_size, success=True)

    @classmethod
    def failed(
        cls,
        file: str,
        old_size: int,
        error_message: str,
        status_code: int | None = None,
    ) -> AttemptResult:
        return cls(
            file=file,
            old_size=old_size,
            new_size=old_size,
            success=False,
            error_message=error_message,
            status_code=status_code,
        )

    @property
    def status(self) -> AttemptStatus:
        from tinypng_batch.core.retry_policy import classify_attempt

        return classify_attempt(self)

    @property
    def retryable(self) -> bool:
        return self.status is AttemptStatus.RETRYABLE

    def to_outcome(self, attempts: int) -> Outcome:
        """Finalize this attempt as the file's Outcome."""
        return Outcome(
            file=self.file,
            old_size=self.old_size,
            new_size=self.new_size,
            success=self.success,
            error_message=self.error_message,
            attempts=attempts,
        )


class Outcome(_ResultBase):
    """Terminal result for one file after all attempts concluded."""

    attempts: int = 1

    @field_validator("attempts")
    @classmethod
    def validate_attempts(cls, value: int) -> int:
        """At least one attempt is always made."""
        if value < 1:
            msg = "attempts must be at least 1"
            raise ValueError(msg)
        return value
