"""
Copy Error Handler - classifies per-file errors and decides on retries.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from media_ingest.config import Settings
from media_ingest.core.exceptions import ChecksumMismatchError


class ErrorType(str, Enum):
    """Classification of per-file errors for retry logic."""

    TRANSIENT = "transient"
    INTEGRITY = "integrity"
    PERMANENT = "permanent"


@dataclass
class RetryDecision:
    """Whether and when a failed job should be attempted again."""

    error_type: ErrorType
    should_retry: bool
    delay_seconds: float
    error_message: str


class CopyErrorHandler:
    """
    Retry policy for a single transfer job.

    ``max_retry_attempts`` is the number of extra attempts after the first
    one; with the default of 0 every failure is terminal for the run.
    Retries back off exponentially from ``retry_delay_seconds``.
    """

    PERMANENT_ERRORS = (
        FileNotFoundError,
        PermissionError,
        IsADirectoryError,
        NotADirectoryError,
    )

    def __init__(self, settings: Settings):
        self.max_retry_attempts = max(0, settings.max_retry_attempts)
        self.retry_delay_seconds = max(0.0, settings.retry_delay_seconds)

        logging.debug(
            f"CopyErrorHandler initialized: max_retry_attempts={self.max_retry_attempts}, "
            f"retry_delay_seconds={self.retry_delay_seconds}"
        )

    def classify_error(self, error: BaseException) -> ErrorType:
        if isinstance(error, ChecksumMismatchError):
            return ErrorType.INTEGRITY
        if isinstance(error, self.PERMANENT_ERRORS):
            return ErrorType.PERMANENT
        return ErrorType.TRANSIENT

    def decide(self, error: BaseException, attempt: int) -> RetryDecision:
        """Decide on a retry after ``attempt`` (1-based) has failed with ``error``."""
        error_type = self.classify_error(error)
        message = f"{error.__class__.__name__}: {error}"

        if error_type == ErrorType.PERMANENT:
            return RetryDecision(error_type, False, 0.0, f"Permanent error: {message}")

        if attempt > self.max_retry_attempts:
            if self.max_retry_attempts:
                message = f"Max retry attempts ({self.max_retry_attempts}) reached: {message}"
            return RetryDecision(error_type, False, 0.0, message)

        return RetryDecision(
            error_type=error_type,
            should_retry=True,
            delay_seconds=self.get_backoff_delay(attempt),
            error_message=f"Attempt {attempt}/{self.max_retry_attempts + 1} failed: {message}",
        )

    def get_backoff_delay(self, attempt: int) -> float:
        return self.retry_delay_seconds * (2 ** (attempt - 1))
