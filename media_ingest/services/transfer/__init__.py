"""
Transfer engine module.

Components:
- TransferEngine: per-device job preparation, priority ordering, worker pool
- FileCopyExecutor: single-file copy with optional SHA-256 verification
- TransferStatistics: lock-guarded run counters and snapshots
- CopyErrorHandler: per-file retry policy
"""

from .copy_error_handler import CopyErrorHandler, ErrorType, RetryDecision
from .file_copy_executor import CopyResult, FileCopyExecutor
from .job_models import JobResult, TransferJob
from .transfer_engine import TransferEngine
from .transfer_statistics import TransferStatistics

__all__ = [
    "CopyErrorHandler",
    "ErrorType",
    "RetryDecision",
    "CopyResult",
    "FileCopyExecutor",
    "JobResult",
    "TransferJob",
    "TransferEngine",
    "TransferStatistics",
]
