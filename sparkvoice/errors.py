"""Domain exceptions for audio generation, scheduling, and CLI diagnostics."""

from __future__ import annotations


class SparkvoiceError(RuntimeError):
    """Base class for all Sparkvoice domain errors."""


class ContentNotFound(SparkvoiceError):
    """Raised when a content item id is unknown to the content repository."""

    def __init__(self, item_id: int) -> None:
        """Initialize the error for a missing content item."""

        super().__init__(f"Content item {item_id} not found.")
        self.item_id = item_id


class NoNarratableContent(SparkvoiceError):
    """Raised when a content item has no teaching body to narrate."""

    def __init__(self, item_id: int) -> None:
        """Initialize the error for an item without teaching content."""

        super().__init__(f"Content item {item_id} has no teaching content.")
        self.item_id = item_id


class SynthesisError(SparkvoiceError):
    """Raised when the speech provider fails, times out, or exhausts quota."""

    def __init__(self, message: str, *, failure_kind: str = "unknown") -> None:
        """Initialize provider failure metadata."""

        super().__init__(message)
        self.failure_kind = failure_kind


class StorageError(SparkvoiceError):
    """Raised when an artifact store operation fails."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        """Initialize storage failure metadata."""

        super().__init__(message)
        self.path = path


class ContentStoreError(SparkvoiceError):
    """Raised when the content repository cannot be read, written, or validated."""


class GenerationFailed(SparkvoiceError):
    """Wraps the error that made generation fail for a single content item."""

    def __init__(self, item_id: int, cause: Exception) -> None:
        """Initialize the wrapper with the failing item id and triggering error."""

        super().__init__(f"Audio generation failed for item {item_id}: {cause}")
        self.item_id = item_id
        self.cause = cause


class JobNotFound(SparkvoiceError):
    """Raised when a job name is not registered with the scheduler."""

    def __init__(self, job_name: str) -> None:
        super().__init__(f"Job {job_name} not found.")
        self.job_name = job_name


class JobAlreadyRunning(SparkvoiceError):
    """Raised when a job is triggered while its previous execution is in flight."""

    def __init__(self, job_name: str) -> None:
        super().__init__(f"Job {job_name} is already running.")
        self.job_name = job_name


class InvalidCronExpression(SparkvoiceError, ValueError):
    """Raised when a cron expression cannot be parsed."""

    def __init__(self, expression: str, reason: str) -> None:
        super().__init__(f"Invalid cron expression `{expression}`: {reason}")
        self.expression = expression
        self.reason = reason


class CommandError(SparkvoiceError):
    """Raised for CLI-facing failures that carry a stage and an optional hint."""

    def __init__(
        self,
        *,
        stage: str,
        detail: str,
        hint: str | None = None,
    ) -> None:
        """Initialize a stage-scoped command error."""

        super().__init__(detail)
        self.stage = stage
        self.detail = detail
        self.hint = hint
