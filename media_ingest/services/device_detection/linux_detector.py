"""Linux device detector - lsblk enumeration, mount/umount, /proc/mounts."""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

import aiofiles
import aiofiles.os

from media_ingest.config import Settings
from media_ingest.core.exceptions import DeviceDetectionError, DeviceMountError
from media_ingest.models import Device

from .base_detector import DeviceCallback, DeviceDetector
from .device_watcher import PollingDeviceWatcher

LSBLK_COLUMNS = "NAME,PATH,SIZE,TYPE,MOUNTPOINT,FSTYPE,LABEL,RM,TRAN"
PROC_MOUNTS = "/proc/mounts"
COMMAND_TIMEOUT_SECONDS = 30.0


def _is_true(value) -> bool:
    # lsblk emits booleans on newer util-linux and "0"/"1" strings on older
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true")


def _decode_mount_field(value: str) -> str:
    # /proc/mounts escapes whitespace and backslashes as octal
    return (
        value.replace("\\040", " ")
        .replace("\\011", "\t")
        .replace("\\012", "\n")
        .replace("\\134", "\\")
    )


def parse_lsblk_output(output: str) -> List[Device]:
    """
    Turn ``lsblk -J -b`` output into removable devices.

    Partitions (and whole disks without partitions) that carry a filesystem
    and sit on a removable or USB disk are returned.
    """
    try:
        data = json.loads(output or "{}")
    except json.JSONDecodeError as e:
        raise DeviceDetectionError("lsblk", f"unparseable output: {e}") from e

    devices: List[Device] = []

    def visit(node: dict, removable: bool) -> None:
        removable = removable or _is_true(node.get("rm")) or node.get("tran") == "usb"
        children = node.get("children") or []

        for child in children:
            visit(child, removable)

        if children or not removable or not node.get("fstype"):
            return
        if node.get("type") not in ("part", "disk"):
            return

        name = node.get("name", "")
        devices.append(
            Device(
                name=name,
                path=node.get("path") or f"/dev/{name}",
                mount_path=node.get("mountpoint") or "",
                filesystem=node.get("fstype") or "",
                size=int(node.get("size") or 0),
                label=node.get("label") or "",
            )
        )

    for node in data.get("blockdevices", []):
        visit(node, False)

    return devices


def parse_proc_mounts(content: str) -> List[Device]:
    devices: List[Device] = []

    for line in content.splitlines():
        fields = line.split()
        if len(fields) < 3:
            continue

        device_path, mount_path, fs_type = fields[0], fields[1], fields[2]
        if not device_path.startswith("/dev/"):
            continue

        devices.append(
            Device(
                name=os.path.basename(device_path),
                path=device_path,
                mount_path=_decode_mount_field(mount_path),
                filesystem=fs_type,
            )
        )

    return devices


class LinuxDeviceDetector(DeviceDetector):
    """
    Block-device detection for Linux.

    Enumeration shells out to ``lsblk``; mounting uses ``mount`` under
    ``mount_base/<device name>`` and needs the privileges to do so. A
    partition the desktop already mounted keeps its existing mount point.
    """

    def __init__(self, settings: Settings, mounts_file: str = PROC_MOUNTS):
        self.settings = settings
        self.mounts_file = mounts_file
        self._watcher = PollingDeviceWatcher(
            self.detect_devices,
            settings.device_poll_interval_seconds,
            name="linux-device-watcher",
        )

    async def detect_devices(self) -> List[Device]:
        returncode, stdout, stderr = await self._run_command(
            "lsblk", "-J", "-b", "-o", LSBLK_COLUMNS
        )
        if returncode != 0:
            raise DeviceDetectionError("lsblk", f"failed to list block devices: {stderr}")

        devices = parse_lsblk_output(stdout)
        logging.debug(f"lsblk reported {len(devices)} removable devices")
        return devices

    async def mount(self, device: Device) -> None:
        if device.mount_path:
            return

        existing = await self._find_mount_point(device.path)
        if existing:
            device.mount_path = existing
            logging.info(f"Device {device.name} already mounted at {existing}")
            return

        if not self.settings.auto_mount_enabled:
            raise DeviceMountError(device.name, "auto-mount is disabled")

        mount_point = Path(self.settings.mount_base) / device.name
        try:
            await aiofiles.os.makedirs(mount_point, exist_ok=True)
        except OSError as e:
            raise DeviceMountError(
                device.name, f"failed to create mount point {mount_point}: {e}"
            ) from e

        try:
            returncode, _, stderr = await self._run_command(
                "mount", device.path, str(mount_point), device_name=device.name
            )
        except DeviceDetectionError as e:
            raise DeviceMountError(device.name, str(e)) from e
        if returncode != 0:
            raise DeviceMountError(device.name, f"mount failed: {stderr or 'unknown error'}")

        device.mount_path = str(mount_point)
        logging.info(f"Mounted device {device.name} at {mount_point}")

    async def unmount(self, device: Device) -> None:
        if not device.mount_path:
            return

        try:
            returncode, _, stderr = await self._run_command(
                "umount", device.mount_path, device_name=device.name
            )
        except DeviceDetectionError as e:
            raise DeviceMountError(device.name, str(e)) from e
        if returncode != 0:
            raise DeviceMountError(device.name, f"unmount failed: {stderr or 'unknown error'}")

        logging.info(f"Unmounted device {device.name} from {device.mount_path}")
        device.mount_path = ""

    async def get_device_info(self, device_path: str) -> Device:
        device = Device(name=os.path.basename(device_path), path=device_path)

        returncode, stdout, _ = await self._run_command(
            "blkid", "-s", "TYPE", "-o", "value", device_path, device_name=device.name
        )
        if returncode == 0:
            device.filesystem = stdout.strip()

        returncode, stdout, _ = await self._run_command(
            "blkid", "-s", "LABEL", "-o", "value", device_path, device_name=device.name
        )
        if returncode == 0:
            device.label = stdout.strip()

        returncode, stdout, _ = await self._run_command(
            "blockdev", "--getsize64", device_path, device_name=device.name
        )
        if returncode == 0:
            try:
                device.size = int(stdout.strip())
            except ValueError:
                logging.warning(f"Unexpected blockdev size for {device_path}: {stdout!r}")

        device.mount_path = await self._find_mount_point(device_path) or ""
        return device

    async def get_mounted_devices(self) -> List[Device]:
        """Devices currently listed in /proc/mounts."""
        try:
            async with aiofiles.open(self.mounts_file, "r") as f:
                content = await f.read()
        except OSError as e:
            raise DeviceDetectionError("mounts", f"cannot read {self.mounts_file}: {e}") from e
        return parse_proc_mounts(content)

    async def watch_for_devices(self, callback: DeviceCallback) -> None:
        await self._watcher.start(callback)

    async def stop_watching(self) -> None:
        await self._watcher.stop()

    def get_platform_name(self) -> str:
        return "Linux"

    async def _find_mount_point(self, device_path: str) -> Optional[str]:
        try:
            mounted = await self.get_mounted_devices()
        except DeviceDetectionError as e:
            logging.debug(f"Mount lookup skipped: {e}")
            return None

        for device in mounted:
            if device.path == device_path:
                return device.mount_path
        return None

    async def _run_command(
        self, *cmd: str, device_name: str = "devices"
    ) -> Tuple[int, str, str]:
        """Run ``cmd`` and return (returncode, stdout, stderr)."""
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            raise DeviceDetectionError(device_name, f"cannot run {cmd[0]}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=COMMAND_TIMEOUT_SECONDS
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise DeviceDetectionError(device_name, f"{cmd[0]} timed out")

        return (
            process.returncode,
            stdout.decode(errors="replace") if stdout else "",
            stderr.decode(errors="replace").strip() if stderr else "",
        )
