"""Abstract device detector - one interface per platform adapter."""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Union

from media_ingest.models import Device

DeviceCallback = Callable[[Device], Union[None, Awaitable[None]]]


class DeviceDetector(ABC):
    """
    Platform-specific discovery and mounting of removable storage.

    ``watch_for_devices`` returns once the watch has started; the callback is
    invoked for every device that appears afterwards, until ``stop_watching``.
    Callbacks may be plain functions or coroutine functions.
    """

    @abstractmethod
    async def detect_devices(self) -> List[Device]:
        """Enumerate the removable devices currently present."""
        pass

    @abstractmethod
    async def mount(self, device: Device) -> None:
        """Mount ``device`` and set its ``mount_path``. Raises DeviceMountError."""
        pass

    @abstractmethod
    async def unmount(self, device: Device) -> None:
        """Unmount ``device`` and clear its ``mount_path``."""
        pass

    @abstractmethod
    async def get_device_info(self, device_path: str) -> Device:
        """Describe the device at ``device_path``."""
        pass

    @abstractmethod
    async def watch_for_devices(self, callback: DeviceCallback) -> None:
        pass

    @abstractmethod
    async def stop_watching(self) -> None:
        pass

    @abstractmethod
    def get_platform_name(self) -> str:
        """Get platform name for logging."""
        pass
