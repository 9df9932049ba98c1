"""Windows device detector - removable drive letters via kernel32."""

import asyncio
import ctypes
import logging
import string
from typing import List, Optional

import aiofiles.os

from media_ingest.config import Settings
from media_ingest.core.exceptions import DeviceDetectionError, DeviceMountError
from media_ingest.models import Device

from .base_detector import DeviceCallback, DeviceDetector
from .device_watcher import PollingDeviceWatcher

DRIVE_REMOVABLE = 2
MAX_PATH = 261


class WindowsDeviceDetector(DeviceDetector):
    """
    Removable drive detection for Windows.

    Windows mounts volumes itself, so ``mount`` only checks that the drive
    root is accessible and records it as the mount path. ``unmount`` does not
    eject the drive.
    """

    def __init__(self, settings: Settings, kernel32=None):
        self.settings = settings
        self._kernel32 = kernel32
        self._watcher = PollingDeviceWatcher(
            self.detect_devices,
            settings.device_poll_interval_seconds,
            name="windows-device-watcher",
        )

    @property
    def kernel32(self):
        if self._kernel32 is None:
            try:
                self._kernel32 = ctypes.windll.kernel32
            except AttributeError as e:
                raise DeviceDetectionError("devices", "kernel32 is not available") from e
        return self._kernel32

    async def detect_devices(self) -> List[Device]:
        return await asyncio.to_thread(self._detect_devices_sync)

    def _detect_devices_sync(self) -> List[Device]:
        devices: List[Device] = []
        bitmask = self.kernel32.GetLogicalDrives()

        for index, letter in enumerate(string.ascii_uppercase):
            if not bitmask & (1 << index):
                continue

            root = f"{letter}:\\"
            if self.kernel32.GetDriveTypeW(root) != DRIVE_REMOVABLE:
                continue

            devices.append(self._describe_drive(root))

        logging.debug(f"Found {len(devices)} removable drives")
        return devices

    def _describe_drive(self, root: str) -> Device:
        label, filesystem = self._volume_information(root)
        return Device(
            name=root[:2],
            path=root,
            filesystem=filesystem,
            size=self._total_size(root),
            label=label,
        )

    def _volume_information(self, root: str):
        label_buffer = ctypes.create_unicode_buffer(MAX_PATH)
        fs_buffer = ctypes.create_unicode_buffer(MAX_PATH)

        ok = self.kernel32.GetVolumeInformationW(
            ctypes.c_wchar_p(root),
            label_buffer,
            MAX_PATH,
            None,
            None,
            None,
            fs_buffer,
            MAX_PATH,
        )
        if not ok:
            # No media in the drive
            return "", ""
        return label_buffer.value, fs_buffer.value

    def _total_size(self, root: str) -> int:
        total_bytes = ctypes.c_ulonglong(0)
        ok = self.kernel32.GetDiskFreeSpaceExW(
            ctypes.c_wchar_p(root), None, ctypes.byref(total_bytes), None
        )
        return total_bytes.value if ok else 0

    async def mount(self, device: Device) -> None:
        if device.mount_path:
            return

        root = self._drive_root(device.path)
        if root is None or not await aiofiles.os.path.isdir(root):
            raise DeviceMountError(device.name, f"drive not accessible: {device.path}")

        device.mount_path = root
        logging.info(f"Device {device.name} available at {root}")

    async def unmount(self, device: Device) -> None:
        device.mount_path = ""

    async def get_device_info(self, device_path: str) -> Device:
        root = self._drive_root(device_path)
        if root is None:
            raise DeviceDetectionError(device_path, "not a drive letter path")
        return await asyncio.to_thread(self._describe_drive, root)

    async def watch_for_devices(self, callback: DeviceCallback) -> None:
        await self._watcher.start(callback)

    async def stop_watching(self) -> None:
        await self._watcher.stop()

    def get_platform_name(self) -> str:
        return "Windows"

    @staticmethod
    def _drive_root(path: str) -> Optional[str]:
        if len(path) >= 2 and path[0].upper() in string.ascii_uppercase and path[1] == ":":
            return f"{path[0].upper()}:\\"
        return None
