import os
from pathlib import Path
from typing import Iterable, Tuple

import aiofiles.os


def split_extension(file_name: str) -> Tuple[str, str]:
    """Split ``name.ext`` at the last dot; leading-dot names have no extension."""
    return os.path.splitext(file_name)


def build_versioned_path(dest_path: Path, version: int) -> Path:
    """Insert ``_v<version>`` immediately before the extension."""
    stem, extension = split_extension(dest_path.name)
    return dest_path.with_name(f"{stem}_v{version}{extension}")


def is_priority_file(file_name: str, prefixes: Iterable[str]) -> bool:
    """Exact, case-sensitive prefix match against any configured prefix."""
    return any(file_name.startswith(prefix) for prefix in prefixes if prefix)


async def remove_file_quietly(path: Path) -> bool:
    """Remove ``path`` if present. Returns True when a file was removed."""
    try:
        await aiofiles.os.remove(path)
        return True
    except FileNotFoundError:
        return False
