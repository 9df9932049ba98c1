"""Platform Factory - picks the device detector for the running OS."""

import logging
import platform

from media_ingest.config import Settings
from media_ingest.core.exceptions import UnsupportedPlatformError

from .base_detector import DeviceDetector


class DetectorFactory:
    """Factory for creating platform-specific device detectors."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def detect_platform(self) -> str:
        """Detect current platform. Returns: linux or windows."""
        system = platform.system().lower()

        if system == "linux":
            return "linux"
        elif system == "windows":
            return "windows"
        else:
            raise UnsupportedPlatformError(
                f"Platform {system} not supported for device detection"
            )

    def create_detector(self) -> DeviceDetector:
        platform_name = self.detect_platform()

        if platform_name == "linux":
            from .linux_detector import LinuxDeviceDetector

            detector = LinuxDeviceDetector(self.settings)
        else:
            from .windows_detector import WindowsDeviceDetector

            detector = WindowsDeviceDetector(self.settings)

        logging.info(f"Using {detector.get_platform_name()} device detector")
        return detector
