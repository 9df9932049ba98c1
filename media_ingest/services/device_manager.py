"""
Device lifecycle: inclusion policy, mount, scan, transfer and reporting.

Each device run gets its own TransferEngine. The set of devices currently
being ingested is tracked for status queries only; it never gates work.
"""

import asyncio
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Callable, Dict, List, Optional, Set

from media_ingest.config import Settings
from media_ingest.core.exceptions import (
    DeviceError,
    DeviceMountError,
    DeviceScanError,
)
from media_ingest.models import ActiveTransfer, Device, TransferStatsSnapshot
from media_ingest.services.classification import FilenameClassifier
from media_ingest.services.device_detection import DeviceCallback, DeviceDetector
from media_ingest.services.device_log import (
    build_device_log_name,
    device_log_file,
    get_device_logger,
)
from media_ingest.services.notifier import LoggingNotifier, Notifier
from media_ingest.services.transfer import TransferEngine
from media_ingest.utils.progress_utils import format_bytes_human_readable

EngineFactory = Callable[[], TransferEngine]


@dataclass
class _ActiveRun:
    device: Device
    engine: TransferEngine
    started_at: datetime = field(default_factory=datetime.now)


def scan_files(root_path: str) -> List[str]:
    """
    Every regular file below ``root_path``, in a stable walk order.

    Raises OSError if the root or any directory below it cannot be listed.
    """
    if not os.path.isdir(root_path):
        raise NotADirectoryError(f"not a directory: {root_path}")

    def _raise(error: OSError) -> None:
        raise error

    files: List[str] = []
    for dirpath, dirnames, filenames in os.walk(root_path, onerror=_raise):
        dirnames.sort()
        for filename in sorted(filenames):
            path = os.path.join(dirpath, filename)
            if os.path.isfile(path):
                files.append(path)
    return files


class DeviceManager:
    """
    Platform-agnostic orchestration of device ingest runs.

    Mount and scan failures abort only the affected device and are raised to
    the caller. Per-file problems are absorbed by the transfer engine.
    """

    def __init__(
        self,
        settings: Settings,
        detector: DeviceDetector,
        classifier: Optional[FilenameClassifier] = None,
        notifier: Optional[Notifier] = None,
        engine_factory: Optional[EngineFactory] = None,
    ):
        self.settings = settings
        self.detector = detector
        self.classifier = classifier or FilenameClassifier(settings)
        self.notifier = notifier or LoggingNotifier()
        self._engine_factory = engine_factory or (
            lambda: TransferEngine(self.settings, self.classifier)
        )

        self._active: Dict[str, _ActiveRun] = {}
        self._active_lock = Lock()
        self._notification_tasks: Set[asyncio.Task] = set()

        logging.debug(
            f"DeviceManager initialized with {detector.get_platform_name()} detector"
        )

    def evaluate(self, device: Device) -> bool:
        """Whether ``device`` passes the inclusion policy. No side effects."""
        if device.size < self.settings.min_device_size_bytes:
            return False

        allowed = self.settings.allowed_filesystems
        if allowed:
            filesystem = device.filesystem.lower()
            if not any(filesystem == fs.lower() for fs in allowed):
                return False

        for pattern in self.settings.exclude_patterns:
            if pattern in device.path:
                return False

        return True

    async def mount(self, device: Device) -> None:
        try:
            await self.detector.mount(device)
        except DeviceMountError:
            raise
        except DeviceError as e:
            raise DeviceMountError(device.name, str(e)) from e
        except OSError as e:
            raise DeviceMountError(device.name, f"mount failed: {e}") from e

        if not device.mount_path:
            raise DeviceMountError(device.name, "detector reported no mount path")

    async def ingest(self, device: Device) -> Optional[TransferStatsSnapshot]:
        """
        Policy check, mount if needed, then process.

        Returns None when the device is rejected by policy.
        """
        if not self.evaluate(device):
            logging.debug(
                f"Device {device.name} not allowed (size: {device.size}, "
                f"fs: {device.filesystem or '-'})"
            )
            return None

        if not device.mount_path:
            await self.mount(device)

        return await self.process(device)

    async def process(self, device: Device) -> TransferStatsSnapshot:
        """Scan a mounted device and transfer every file on it."""
        if not device.mount_path:
            raise DeviceScanError(device.name, "device is not mounted")

        engine = self._engine_factory()
        self._register(device, engine)
        log = get_device_logger(device.name)
        log_name = build_device_log_name(device.name)

        try:
            with device_log_file(
                self.settings, device.name, device.mount_path, log_name=log_name
            ) as log_path:
                label = f" ({device.label})" if device.label else ""
                log.info(f"Processing device: {device.name}{label}")

                try:
                    files = await asyncio.to_thread(scan_files, device.mount_path)
                except OSError as e:
                    log.error(f"Failed to scan files: {e}")
                    raise DeviceScanError(device.name, f"failed to scan files: {e}") from e

                # The run's own ingest log may sit on the device
                files = [f for f in files if os.path.basename(f) != log_name]

                if files:
                    log.info(f"Found {len(files)} files to transfer")
                else:
                    log.info("No files to transfer")

                stats = await engine.transfer_files(device.name, files)

                log.info(
                    f"Transfer complete: {stats.succeeded_files}/{stats.total_files} "
                    f"files transferred, {stats.failed_files} failed, "
                    f"{format_bytes_human_readable(stats.transferred_bytes)}"
                )
                self._schedule_notification(device, stats, log_path)
                return stats
        finally:
            self._deregister(device)

    def _register(self, device: Device, engine: TransferEngine) -> None:
        with self._active_lock:
            if device.name in self._active:
                raise DeviceError(device.name, "device is already being processed")
            self._active[device.name] = _ActiveRun(device=device, engine=engine)

    def _deregister(self, device: Device) -> None:
        with self._active_lock:
            self._active.pop(device.name, None)

    def _schedule_notification(
        self, device: Device, stats: TransferStatsSnapshot, log_path: Optional[Path]
    ) -> None:
        task = asyncio.create_task(
            self._notify(device, stats, log_path),
            name=f"notify-{device.name}",
        )
        self._notification_tasks.add(task)
        task.add_done_callback(self._notification_tasks.discard)

    async def _notify(
        self, device: Device, stats: TransferStatsSnapshot, log_path: Optional[Path]
    ) -> None:
        try:
            await self.notifier.notify_transfer_complete(device, stats, log_path)
        except Exception as e:
            logging.error(f"Failed to send notification for {device.name}: {e}")

    async def wait_for_notifications(self) -> None:
        """Wait until every scheduled notification has been delivered or failed."""
        if self._notification_tasks:
            await asyncio.gather(*list(self._notification_tasks))

    def get_active_devices(self) -> List[Device]:
        with self._active_lock:
            return [run.device for run in self._active.values()]

    def get_active_transfers(self) -> List[ActiveTransfer]:
        with self._active_lock:
            runs = list(self._active.values())
        return [self._to_active_transfer(run) for run in runs]

    def get_active_transfer(self, device_name: str) -> Optional[ActiveTransfer]:
        with self._active_lock:
            run = self._active.get(device_name)
        return self._to_active_transfer(run) if run else None

    @staticmethod
    def _to_active_transfer(run: _ActiveRun) -> ActiveTransfer:
        stats = run.engine.get_stats()
        return ActiveTransfer(
            device=run.device,
            started_at=run.started_at,
            stats=stats,
            progress_percent=stats.progress_percent,
            throughput_bytes_per_sec=stats.throughput_bytes_per_sec,
        )

    async def detect_devices(self) -> List[Device]:
        return await self.detector.detect_devices()

    async def unmount(self, device: Device) -> None:
        await self.detector.unmount(device)

    async def get_device_info(self, device_path: str) -> Device:
        return await self.detector.get_device_info(device_path)

    async def watch_for_devices(self, callback: DeviceCallback) -> None:
        await self.detector.watch_for_devices(callback)

    async def stop_watching(self) -> None:
        await self.detector.stop_watching()
