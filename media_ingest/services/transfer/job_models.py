"""
Job models for the transfer engine - typed data structures for the work queue.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from media_ingest.services.classification import ClassifiedFile


@dataclass
class TransferJob:
    """One source file with its resolved destination, owned by a single worker."""

    source_path: Path
    destination_path: Path
    size: int
    priority: bool
    classification: ClassifiedFile
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.created_at is None:
            self.created_at = datetime.now()

    @property
    def file_name(self) -> str:
        return self.source_path.name

    def __str__(self) -> str:
        tier = "priority" if self.priority else "normal"
        return (
            f"TransferJob({self.file_name} -> {self.destination_path}, "
            f"size={self.size:,}, {tier})"
        )


@dataclass
class JobResult:
    """
    Final outcome of a transfer job after all attempts.

    Only used for logging; failures are reported through statistics.
    """

    job: TransferJob
    success: bool
    attempts: int
    processing_time_seconds: float
    error_message: Optional[str] = None

    def __str__(self) -> str:
        status = "SUCCESS" if self.success else "FAILED"
        return (
            f"JobResult({status}, file={self.job.file_name}, "
            f"attempts={self.attempts}, time={self.processing_time_seconds:.2f}s)"
        )
