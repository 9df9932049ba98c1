"""
Device detection.

Components:
- DeviceDetector: abstract interface for discovery, mount and watch
- LinuxDeviceDetector: lsblk/mount based implementation
- WindowsDeviceDetector: kernel32 drive-letter implementation
- PollingDeviceWatcher: watch loop shared by both platforms
- DetectorFactory: platform detection and detector creation
"""

from .base_detector import DeviceCallback, DeviceDetector
from .device_watcher import PollingDeviceWatcher
from .linux_detector import LinuxDeviceDetector
from .platform_factory import DetectorFactory
from .windows_detector import WindowsDeviceDetector

__all__ = [
    "DeviceCallback",
    "DeviceDetector",
    "PollingDeviceWatcher",
    "LinuxDeviceDetector",
    "WindowsDeviceDetector",
    "DetectorFactory",
]
