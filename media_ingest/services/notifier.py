"""
Completion notifications for finished device runs.

Delivery is best effort: the device manager schedules it in the background
and only logs a failure.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from media_ingest.models import Device, TransferStatsSnapshot
from media_ingest.utils.progress_utils import (
    format_bytes_human_readable,
    format_duration,
    format_transfer_rate_human_readable,
)


def build_summary(device: Device, stats: TransferStatsSnapshot) -> str:
    lines: List[str] = [
        f"Media Ingest Complete - {device.name}",
        "",
        "Transfer Summary:",
        f"  Device: {device}",
        f"  Total Files: {stats.total_files}",
        f"  Successfully Transferred: {stats.succeeded_files}",
        f"  Failed: {stats.failed_files}",
        f"  Total Size: {format_bytes_human_readable(stats.total_bytes, precision=2)}",
        f"  Duration: {format_duration(stats.elapsed_seconds)}",
        f"  Average Speed: {format_transfer_rate_human_readable(stats.throughput_bytes_per_sec)}",
    ]
    return "\n".join(lines)


class Notifier(ABC):
    @abstractmethod
    async def notify_transfer_complete(
        self,
        device: Device,
        stats: TransferStatsSnapshot,
        log_path: Optional[Path] = None,
    ) -> None:
        """Report a finished run. ``log_path`` points at the device's ingest log."""
        pass


class LoggingNotifier(Notifier):
    """Writes the completion summary to the application log."""

    def __init__(self, logger_name: str = "media_ingest.notifier"):
        self._logger = logging.getLogger(logger_name)

    async def notify_transfer_complete(
        self,
        device: Device,
        stats: TransferStatsSnapshot,
        log_path: Optional[Path] = None,
    ) -> None:
        summary = build_summary(device, stats)
        if log_path is not None:
            summary += f"\n  Log: {log_path}"
        self._logger.info(summary)
