"""
Host-specific configuration management.

Every ingest station reads its own ``{hostname}-settings.env`` so that mount
bases, destination roots and policy lists can differ per machine while the
shared ``settings.env`` stays the template.
"""

import logging
import shutil
import socket
from pathlib import Path

BASE_SETTINGS_FILE = "settings.env"


def get_hostname() -> str:
    """Get the current hostname (without domain)."""
    return socket.gethostname().split(".")[0]


def get_hostname_settings_file() -> str:
    """
    Get the settings file for this host.

    Uses ``{hostname}-settings.env`` when present. Otherwise it is created
    from ``settings.env`` with a short header. Falls back to ``settings.env``
    when neither exists or the copy fails.
    """
    try:
        hostname = get_hostname()
        base_settings = Path(BASE_SETTINGS_FILE)
        host_settings = Path(f"{hostname}-settings.env")

        if host_settings.exists():
            logging.debug(f"Using host-specific configuration: {host_settings}")
            return str(host_settings)

        if not base_settings.exists():
            return BASE_SETTINGS_FILE

        shutil.copy2(base_settings, host_settings)
        content = host_settings.read_text(encoding="utf-8")
        header = (
            f"# Host-specific ingest configuration for: {hostname}\n"
            f"# Generated from {BASE_SETTINGS_FILE}, edit freely for this station\n\n"
        )
        host_settings.write_text(header + content, encoding="utf-8")
        logging.info(f"Created host-specific configuration: {host_settings}")
        return str(host_settings)

    except OSError as e:
        logging.error(f"Error handling host-specific settings: {e}")
        return BASE_SETTINGS_FILE


def list_all_settings_files() -> list[str]:
    """List all available settings files (base + host-specific)."""
    settings_files = []

    if Path(BASE_SETTINGS_FILE).exists():
        settings_files.append(BASE_SETTINGS_FILE)

    for file_path in Path(".").glob("*-settings.env"):
        settings_files.append(str(file_path))

    return settings_files
