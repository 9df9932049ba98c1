from functools import lru_cache
from typing import Any, Dict

from .config import Settings
from .services.classification import FilenameClassifier
from .services.device_detection import DetectorFactory, DeviceDetector
from .services.device_manager import DeviceManager
from .services.device_monitor import DeviceMonitor
from .services.notifier import LoggingNotifier, Notifier

# Global singleton instances
_singletons: Dict[str, Any] = {}


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_classifier() -> FilenameClassifier:
    if "classifier" not in _singletons:
        _singletons["classifier"] = FilenameClassifier(get_settings())
    return _singletons["classifier"]


def get_detector() -> DeviceDetector:
    if "detector" not in _singletons:
        _singletons["detector"] = DetectorFactory(get_settings()).create_detector()
    return _singletons["detector"]


def get_notifier() -> Notifier:
    if "notifier" not in _singletons:
        _singletons["notifier"] = LoggingNotifier()
    return _singletons["notifier"]


def get_device_manager() -> DeviceManager:
    if "device_manager" not in _singletons:
        _singletons["device_manager"] = DeviceManager(
            settings=get_settings(),
            detector=get_detector(),
            classifier=get_classifier(),
            notifier=get_notifier(),
        )
    return _singletons["device_manager"]


def get_device_monitor() -> DeviceMonitor:
    if "device_monitor" not in _singletons:
        _singletons["device_monitor"] = DeviceMonitor(
            settings=get_settings(),
            device_manager=get_device_manager(),
        )
    return _singletons["device_monitor"]


def reset_singletons() -> None:
    """Reset all singletons - useful for testing."""
    _singletons.clear()
    get_settings.cache_clear()
