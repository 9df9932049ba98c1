from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Device(BaseModel):
    """
    A removable storage volume discovered by a platform detector.

    ``mount_path`` stays empty until the detector mounts the device. The core
    never unmounts a device after processing.
    """

    name: str = Field(..., description="Device identifier, e.g. sdb1 or E:")
    path: str = Field(..., description="Raw device path, e.g. /dev/sdb1 or E:\\")
    mount_path: str = Field(default="", description="Where the volume is mounted")
    filesystem: str = Field(default="", description="Filesystem type, e.g. exfat")
    size: int = Field(default=0, ge=0, description="Volume size in bytes")
    label: str = Field(default="", description="Volume label")

    model_config = ConfigDict()

    @property
    def is_mounted(self) -> bool:
        return bool(self.mount_path)

    def __str__(self) -> str:
        label = f" '{self.label}'" if self.label else ""
        return f"{self.name}{label} ({self.path})"


class TransferStatsSnapshot(BaseModel):
    """Point-in-time copy of a run's statistics."""

    total_files: int = 0
    processed_files: int = 0
    failed_files: int = 0
    total_bytes: int = 0
    transferred_bytes: int = 0
    start_time: datetime = Field(default_factory=datetime.now)
    elapsed_seconds: float = 0.0

    model_config = ConfigDict()

    @property
    def succeeded_files(self) -> int:
        return self.processed_files - self.failed_files

    @property
    def progress_percent(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return (self.transferred_bytes / self.total_bytes) * 100.0

    @property
    def throughput_bytes_per_sec(self) -> float:
        if self.elapsed_seconds <= 0:
            return 0.0
        return self.transferred_bytes / self.elapsed_seconds


class ActiveTransfer(BaseModel):
    """A device currently being ingested, with live statistics when available."""

    device: Device
    started_at: datetime = Field(default_factory=datetime.now)
    stats: Optional[TransferStatsSnapshot] = None
    progress_percent: float = 0.0
    throughput_bytes_per_sec: float = 0.0

    model_config = ConfigDict()
