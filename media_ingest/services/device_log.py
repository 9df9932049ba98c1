"""
Device-scoped logging.

Messages about one device go through ``DeviceLogAdapter``, which prefixes
them and tags the record with ``device``. While a device is being ingested,
``device_log_file`` attaches a file handler that keeps only that device's
records, giving each run its own ingest log.
"""

import logging
import re
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional

from media_ingest.config import Settings

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

DEVICE_LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"


class DeviceLogAdapter(logging.LoggerAdapter):
    """Prefix messages with the device name and tag records with it."""

    def __init__(self, logger: logging.Logger, device_name: str):
        super().__init__(logger, {"device": device_name})

    @property
    def device_name(self) -> str:
        return self.extra["device"]

    def process(self, msg, kwargs):
        extra = dict(kwargs.get("extra") or {})
        extra.setdefault("device", self.device_name)
        kwargs["extra"] = extra
        return f"[{self.device_name}] {msg}", kwargs


class DeviceRecordFilter(logging.Filter):
    def __init__(self, device_name: str):
        super().__init__()
        self.device_name = device_name

    def filter(self, record: logging.LogRecord) -> bool:
        return getattr(record, "device", None) == self.device_name


def get_device_logger(device_name: str, name: str = "media_ingest") -> DeviceLogAdapter:
    return DeviceLogAdapter(logging.getLogger(name), device_name)


def build_device_log_name(device_name: str, timestamp: Optional[datetime] = None) -> str:
    stamp = (timestamp or datetime.now()).strftime("%Y%m%d_%H%M%S")
    safe_name = _UNSAFE_CHARS.sub("_", device_name).strip("_") or "device"
    return f"ingest_log_{stamp}_{safe_name}.txt"


@contextmanager
def device_log_file(
    settings: Settings,
    device_name: str,
    mount_path: str = "",
    log_name: Optional[str] = None,
) -> Iterator[Optional[Path]]:
    """
    Write this device's records to a dedicated ingest log for the duration.

    The log goes to the server log directory, and also onto the device itself
    when ``log_to_device`` is set. Yields the server-side path (the log
    location handed to the notifier), or None if no file could be opened.
    """
    log_name = log_name or build_device_log_name(device_name)
    targets: List[Path] = [settings.log_directory / log_name]
    if settings.log_to_device and mount_path:
        targets.append(Path(mount_path) / log_name)

    root_logger = logging.getLogger()
    handlers: List[logging.Handler] = []
    opened: List[Path] = []

    for target in targets:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(target, encoding="utf-8")
        except OSError as e:
            logging.warning(f"Failed to create device log {target}: {e}")
            continue

        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(DEVICE_LOG_FORMAT))
        handler.addFilter(DeviceRecordFilter(device_name))
        root_logger.addHandler(handler)
        handlers.append(handler)
        opened.append(target)

    try:
        yield opened[0] if opened and opened[0] == targets[0] else None
    finally:
        for handler in handlers:
            root_logger.removeHandler(handler)
            handler.close()
