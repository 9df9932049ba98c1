"""Progress and throughput helpers for ingest runs."""

_UNITS = ["KB", "MB", "GB", "TB", "PB"]


def calculate_progress_percent(transferred_bytes: int, total_bytes: int) -> float:
    if total_bytes <= 0:
        return 0.0

    return min(100.0, (transferred_bytes / total_bytes) * 100.0)


def calculate_transfer_rate(bytes_copied: int, elapsed_seconds: float) -> float:
    if elapsed_seconds <= 0:
        return 0.0

    return bytes_copied / elapsed_seconds


def format_bytes_human_readable(bytes_value: int, precision: int = 1) -> str:
    """Format a byte count with binary units, e.g. ``1.5 GB``."""
    if bytes_value < 1024:
        return f"{bytes_value} B"

    value = float(bytes_value)
    unit_index = -1
    while value >= 1024 and unit_index < len(_UNITS) - 1:
        value /= 1024
        unit_index += 1

    return f"{value:.{precision}f} {_UNITS[unit_index]}"


def format_transfer_rate_human_readable(rate_bytes_per_sec: float) -> str:
    return f"{format_bytes_human_readable(int(rate_bytes_per_sec), precision=2)}/s"


def format_duration(seconds: float) -> str:
    total = int(round(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h{minutes:02d}m{secs:02d}s"
    if minutes:
        return f"{minutes}m{secs:02d}s"
    return f"{secs}s"
