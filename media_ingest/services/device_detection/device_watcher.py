"""
Polling watch loop shared by the platform detectors.

The watcher keeps the set of device paths seen on the previous poll and
reports only paths that are new. A device that disappears is forgotten, so
re-inserting it is reported again.
"""

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Set

from media_ingest.core.exceptions import DeviceDetectionError
from media_ingest.models import Device

from .base_detector import DeviceCallback


class PollingDeviceWatcher:
    def __init__(
        self,
        poll: Callable[[], Awaitable[List[Device]]],
        interval_seconds: float,
        name: str = "device-watcher",
    ):
        self._poll = poll
        self._interval = max(0.0, interval_seconds)
        self._name = name
        self._known: Set[str] = set()
        self._task: Optional[asyncio.Task] = None
        self._callback: Optional[DeviceCallback] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self, callback: DeviceCallback) -> None:
        """Seed the known set with current devices and start polling."""
        if self.is_running:
            logging.warning(f"{self._name} already running")
            return

        self._callback = callback
        try:
            current = await self._poll()
            self._known = {device.path for device in current}
        except DeviceDetectionError as e:
            logging.warning(f"{self._name}: initial poll failed: {e}")
            self._known = set()

        self._task = asyncio.create_task(self._watch_loop(), name=self._name)
        logging.info(f"{self._name} started (interval {self._interval}s)")

    async def stop(self) -> None:
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logging.info(f"{self._name} stopped")

    async def poll_once(self) -> List[Device]:
        """Run one poll and return the devices that appeared since the last one."""
        current = await self._poll()
        current_paths = {device.path for device in current}

        added = [device for device in current if device.path not in self._known]
        removed = self._known - current_paths
        for path in removed:
            logging.info(f"Device removed: {path}")

        self._known = current_paths
        return added

    async def _watch_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)

            try:
                added = await self.poll_once()
            except DeviceDetectionError as e:
                logging.warning(f"{self._name}: poll failed: {e}")
                continue

            for device in added:
                logging.info(f"Device detected: {device}")
                await self._notify(device)

    async def _notify(self, device: Device) -> None:
        try:
            result = self._callback(device)
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logging.error(f"Device callback failed for {device.name}: {e}")
