import asyncio
import logging
from typing import Optional, Set

from media_ingest.config import Settings
from media_ingest.core.exceptions import DeviceError, IngestError
from media_ingest.models import Device
from media_ingest.services.device_manager import DeviceManager
from media_ingest.utils.progress_utils import format_bytes_human_readable


class DeviceMonitor:
    """
    Watches for device arrival and hands each device to the DeviceManager.

    Every accepted device is ingested in its own background task, so a slow
    or failing device never holds up detection of the next one.
    """

    def __init__(self, settings: Settings, device_manager: DeviceManager):
        self._settings = settings
        self._device_manager = device_manager

        self._is_running = False
        self._device_tasks: Set[asyncio.Task] = set()
        self._initial_scan_task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._is_running

    async def start_monitoring(self) -> None:
        if self._is_running:
            logging.warning("Device monitoring already running")
            return

        platform_name = self._device_manager.detector.get_platform_name()
        await self._device_manager.watch_for_devices(self.handle_device_added)
        self._is_running = True
        logging.info(f"Device monitoring started on {platform_name}")

        self._initial_scan_task = asyncio.create_task(
            self.scan_existing_devices(), name="initial-device-scan"
        )

    async def stop_monitoring(self) -> None:
        if not self._is_running:
            return

        self._is_running = False
        await self._device_manager.stop_watching()

        if self._initial_scan_task and not self._initial_scan_task.done():
            self._initial_scan_task.cancel()
            try:
                await self._initial_scan_task
            except asyncio.CancelledError:
                pass

        logging.info("Device monitoring stopped")

    async def handle_device_added(self, device: Device) -> None:
        logging.debug(f"New device detected: {device.path}")

        # Let the device settle before probing it
        if self._settings.device_settle_seconds > 0:
            await asyncio.sleep(self._settings.device_settle_seconds)

        if not self._device_manager.evaluate(device):
            logging.debug(
                f"Device {device.name} not allowed "
                f"(size: {device.size}, fs: {device.filesystem or '-'})"
            )
            return

        logging.info(
            f"New device detected: {device.name} "
            f"({device.label or 'no label'}, {format_bytes_human_readable(device.size)})"
        )

        try:
            await self._device_manager.mount(device)
        except DeviceError as e:
            logging.error(f"Failed to mount device {device.name}: {e}")
            return

        self._start_processing(device)

    async def scan_existing_devices(self) -> None:
        """Process devices that were already connected when monitoring started."""
        logging.info("Scanning for existing devices...")

        try:
            devices = await self._device_manager.detect_devices()
        except DeviceError as e:
            logging.error(f"Failed to detect devices: {e}")
            return

        for device in devices:
            if not self._device_manager.evaluate(device):
                continue

            logging.info(f"Found existing device: {device.name} ({device.label or 'no label'})")

            if not device.mount_path:
                try:
                    await self._device_manager.mount(device)
                except DeviceError as e:
                    logging.error(f"Failed to mount device {device.name}: {e}")
                    continue

            self._start_processing(device)

    def _start_processing(self, device: Device) -> None:
        task = asyncio.create_task(
            self._process_device(device), name=f"ingest-{device.name}"
        )
        self._device_tasks.add(task)
        task.add_done_callback(self._device_tasks.discard)

    async def _process_device(self, device: Device) -> None:
        try:
            await self._device_manager.process(device)
        except IngestError as e:
            logging.error(f"Failed to process device {device.name}: {e}")
        except Exception:
            logging.exception(f"Unexpected error processing device {device.name}")
        # Devices stay mounted after processing

    async def wait_for_active_ingests(self) -> None:
        """Wait for every device task started so far to finish."""
        if self._initial_scan_task is not None:
            await asyncio.gather(self._initial_scan_task, return_exceptions=True)
        while self._device_tasks:
            await asyncio.gather(*list(self._device_tasks), return_exceptions=True)

    def get_monitor_info(self) -> dict:
        return {
            "is_running": self._is_running,
            "platform": self._device_manager.detector.get_platform_name(),
            "active_ingest_tasks": len(self._device_tasks),
            "active_devices": [d.name for d in self._device_manager.get_active_devices()],
        }
