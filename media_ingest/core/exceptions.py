# media_ingest/core/exceptions.py


class IngestError(Exception):
    """Base exception for the media ingest agent."""


class DeviceError(IngestError):
    """Raised for failures that abort a single device run."""

    def __init__(self, device_name: str, message: str):
        self.device_name = device_name
        super().__init__(f"{device_name}: {message}")


class DeviceDetectionError(DeviceError):
    """Raised when the platform detector cannot enumerate or inspect devices."""


class DeviceMountError(DeviceError):
    """Raised when a device cannot be mounted."""


class DeviceScanError(DeviceError):
    """Raised when the file tree under a mount path cannot be enumerated."""


class TransferSetupError(IngestError):
    """Raised when a transfer run fails before any job is dispatched."""


class ClassificationError(IngestError):
    """Raised when a destination cannot be resolved for a single file."""


class TooManyVersionsError(ClassificationError):
    """Raised when every versioned candidate for a destination is occupied."""

    def __init__(self, dest_path: str, attempts: int):
        self.dest_path = dest_path
        self.attempts = attempts
        super().__init__(
            f"too many versions of file: {dest_path} ({attempts} candidates tried)"
        )


class ChecksumMismatchError(IngestError):
    """Raised when the written destination does not match the source digest."""

    def __init__(self, source_path: str, source_digest: str, dest_digest: str):
        self.source_path = source_path
        self.source_digest = source_digest
        self.dest_digest = dest_digest
        super().__init__(
            f"checksum mismatch for {source_path}: "
            f"source={source_digest[:12]} dest={dest_digest[:12]}"
        )


class UnsupportedPlatformError(IngestError):
    """Raised when no device detector exists for the current platform."""
