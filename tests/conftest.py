"""
Pytest configuration and shared fixtures.
"""

import logging
from pathlib import Path
from typing import List

import pytest

from media_ingest.config import Settings
from media_ingest.dependencies import reset_singletons
from media_ingest.models import Device
from media_ingest.services.device_detection import DeviceCallback, DeviceDetector


@pytest.fixture(autouse=True)
def clean_singletons():
    """Automatically reset singletons before each test."""
    reset_singletons()
    yield
    reset_singletons()


@pytest.fixture
def destination(tmp_path) -> Path:
    return tmp_path / "storage"


@pytest.fixture
def settings(tmp_path, destination) -> Settings:
    return Settings(
        destination_path=str(destination),
        max_workers=2,
        chunk_size_kb=1,
        device_settle_seconds=0,
        device_poll_interval_seconds=0.01,
        mount_base=str(tmp_path / "mnt"),
        log_file_path=str(tmp_path / "logs" / "media_ingest.log"),
    )


@pytest.fixture
def make_file():
    def _make_file(path: Path, content: bytes = b"media") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        return path

    return _make_file


class FakeDetector(DeviceDetector):
    """In-memory detector; ``mount`` points devices at pre-made directories."""

    def __init__(self, devices: List[Device] = None, mount_root: Path = None):
        self.devices = list(devices or [])
        self.mount_root = mount_root
        self.mount_error: Exception = None
        self.detect_error: Exception = None
        self.mounted: List[str] = []
        self.callback: DeviceCallback = None
        self.watching = False

    async def detect_devices(self) -> List[Device]:
        if self.detect_error is not None:
            raise self.detect_error
        return list(self.devices)

    async def mount(self, device: Device) -> None:
        if self.mount_error is not None:
            raise self.mount_error
        device.mount_path = str(self.mount_root / device.name)
        self.mounted.append(device.name)

    async def unmount(self, device: Device) -> None:
        device.mount_path = ""

    async def get_device_info(self, device_path: str) -> Device:
        for device in self.devices:
            if device.path == device_path:
                return device
        return Device(name=Path(device_path).name, path=device_path)

    async def watch_for_devices(self, callback: DeviceCallback) -> None:
        self.callback = callback
        self.watching = True

    async def stop_watching(self) -> None:
        self.watching = False

    def get_platform_name(self) -> str:
        return "Fake"


@pytest.fixture
def fake_detector(tmp_path) -> FakeDetector:
    return FakeDetector(mount_root=tmp_path / "devices")


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)
