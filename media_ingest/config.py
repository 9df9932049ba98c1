import re
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .utils.host_config import get_hostname_settings_file

DEFAULT_CLASSIFICATION_PATTERN = r"^([^_]+)_([^_]+)_(ACam|BCam|CCam)_(.+)$"


class Settings(BaseSettings):
    # Destination
    destination_path: str

    # Filename classification
    classification_pattern: str = DEFAULT_CLASSIFICATION_PATTERN
    folder_template: str = "{client}/{project}/{camera}"
    unmatched_folder: str = "Unsorted"

    # Transfer
    max_workers: int = 4
    chunk_size_kb: int = 1024  # 1MB read/write chunks
    verify_checksums: bool = True
    max_retry_attempts: int = 0  # 0 = every I/O failure is terminal
    retry_delay_seconds: float = 2.0  # Base delay, doubled per attempt
    priority_prefixes: List[str] = Field(default_factory=list)

    # Device inclusion policy
    min_device_size_bytes: int = 0
    allowed_filesystems: List[str] = Field(default_factory=list)
    exclude_patterns: List[str] = Field(default_factory=list)

    # Device detection
    device_detection_enabled: bool = True
    device_poll_interval_seconds: float = 2.0
    device_settle_seconds: float = 2.0  # Wait for a new device to become ready
    auto_mount_enabled: bool = True
    mount_base: str = "/mnt/ingest"

    # Logging
    log_level: str = "INFO"
    log_file_path: str = "logs/media_ingest.log"
    log_retention_days: int = 30
    log_to_device: bool = False

    # Status API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    model_config = SettingsConfigDict(env_file=get_hostname_settings_file())

    @field_validator("classification_pattern")
    @classmethod
    def _validate_pattern(cls, value: str) -> str:
        try:
            compiled = re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid classification pattern: {e}") from e
        if compiled.groups != 4:
            raise ValueError(
                f"classification pattern must have exactly 4 capture groups, "
                f"got {compiled.groups}"
            )
        return value

    @field_validator("max_workers")
    @classmethod
    def _validate_workers(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max_workers must be at least 1")
        return value

    @field_validator("chunk_size_kb")
    @classmethod
    def _validate_chunk_size(cls, value: int) -> int:
        if value < 1:
            raise ValueError("chunk_size_kb must be at least 1")
        return value

    @property
    def log_directory(self) -> Path:
        """Directory holding the server log and per-device ingest logs."""
        return Path(self.log_file_path).parent

    @property
    def chunk_size(self) -> int:
        return self.chunk_size_kb * 1024

    @property
    def config_file_info(self) -> dict:
        """Return information about which configuration file is being used."""
        from .utils.host_config import get_hostname, list_all_settings_files

        return {
            "hostname": get_hostname(),
            "active_config_file": get_hostname_settings_file(),
            "all_available_configs": list_all_settings_files(),
        }
