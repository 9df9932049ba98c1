"""
Run statistics for a single device transfer.

All counters live in one aggregate guarded by one lock, so a snapshot is
never torn between fields. Workers write; status queries read snapshots.
"""

import logging
from datetime import datetime
from threading import Lock
from typing import Optional

from media_ingest.models import TransferStatsSnapshot
from media_ingest.utils.progress_utils import (
    calculate_progress_percent,
    calculate_transfer_rate,
)


class TransferStatistics:
    """
    Counters for one ingest run.

    ``total_files`` is fixed at construction from the captured file list.
    Files that fail before dispatch are recorded through
    ``record_preparation_failure`` so that, at completion,
    ``processed_files == total_files``.
    """

    def __init__(self, total_files: int, start_time: Optional[datetime] = None):
        if total_files < 0:
            raise ValueError("total_files cannot be negative")

        self._lock = Lock()

        self._total_files = total_files
        self._processed_files = 0
        self._failed_files = 0
        self._total_bytes = 0
        self._transferred_bytes = 0
        self._start_time = start_time or datetime.now()

    def add_queued_bytes(self, size: int) -> None:
        with self._lock:
            self._total_bytes += size

    def record_preparation_failure(self) -> None:
        self.record_job_result(success=False, size=0)

    def record_job_result(self, success: bool, size: int) -> None:
        with self._lock:
            if self._processed_files >= self._total_files:
                logging.error(
                    "Statistics overflow ignored: processed files already "
                    f"{self._processed_files}/{self._total_files}"
                )
                return

            self._processed_files += 1
            if success:
                self._transferred_bytes += size
            else:
                self._failed_files += 1

    def snapshot(self) -> TransferStatsSnapshot:
        with self._lock:
            return TransferStatsSnapshot(
                total_files=self._total_files,
                processed_files=self._processed_files,
                failed_files=self._failed_files,
                total_bytes=self._total_bytes,
                transferred_bytes=self._transferred_bytes,
                start_time=self._start_time,
                elapsed_seconds=(datetime.now() - self._start_time).total_seconds(),
            )

    def get_progress(self) -> float:
        """Transferred bytes as a percentage of queued bytes (0 when nothing queued)."""
        with self._lock:
            return calculate_progress_percent(
                self._transferred_bytes, self._total_bytes
            )

    def get_speed(self) -> float:
        """Average throughput in bytes per second since the run started."""
        with self._lock:
            elapsed = (datetime.now() - self._start_time).total_seconds()
            return calculate_transfer_rate(self._transferred_bytes, elapsed)

    @property
    def total_files(self) -> int:
        with self._lock:
            return self._total_files
