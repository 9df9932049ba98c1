"""
Utilities package for the media ingest agent.

Small helpers shared by the classifier, the transfer engine and the device
services.
"""

from .file_operations import (
    split_extension,
    build_versioned_path,
    is_priority_file,
    remove_file_quietly,
)

from .progress_utils import (
    calculate_progress_percent,
    calculate_transfer_rate,
    format_bytes_human_readable,
    format_transfer_rate_human_readable,
    format_duration,
)

__all__ = [
    # File operations
    "split_extension",
    "build_versioned_path",
    "is_priority_file",
    "remove_file_quietly",
    # Progress utilities
    "calculate_progress_percent",
    "calculate_transfer_rate",
    "format_bytes_human_readable",
    "format_transfer_rate_human_readable",
    "format_duration",
]
