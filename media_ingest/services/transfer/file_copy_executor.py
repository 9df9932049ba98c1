import asyncio
import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

import aiofiles
import aiofiles.os

from media_ingest.config import Settings
from media_ingest.core.exceptions import ChecksumMismatchError
from media_ingest.utils.file_operations import remove_file_quietly


@dataclass
class CopyResult:
    success: bool
    source_path: Path
    destination_path: Path
    bytes_copied: int
    elapsed_seconds: float
    start_time: datetime
    end_time: datetime
    error: Optional[BaseException] = None
    source_digest: Optional[str] = None
    destination_digest: Optional[str] = None

    @property
    def checksum_mismatch(self) -> bool:
        return isinstance(self.error, ChecksumMismatchError)


class FileCopyExecutor:
    """
    Copies one file, optionally verifying it with SHA-256.

    With verification the source digest is taken from the stream as it is
    written, and the destination digest from a full re-read afterwards. A
    mismatch deletes the destination.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.chunk_size = settings.chunk_size
        self.verify_checksums = settings.verify_checksums

        logging.debug(
            f"FileCopyExecutor initialized: chunk size {settings.chunk_size_kb}KB, "
            f"verify_checksums={self.verify_checksums}"
        )

    async def copy_file(self, source: Path, dest: Path) -> CopyResult:
        start_time = datetime.now()
        bytes_copied = 0
        source_digest = None
        dest_digest = None

        try:
            await aiofiles.os.makedirs(dest.parent, exist_ok=True)

            if self.verify_checksums:
                bytes_copied, source_digest = await self._stream_copy(
                    source, dest, hashlib.sha256()
                )
                dest_digest = await self._hash_file(dest)

                if source_digest != dest_digest:
                    await remove_file_quietly(dest)
                    raise ChecksumMismatchError(str(source), source_digest, dest_digest)

                logging.debug(f"Checksum verified for {source.name}: {source_digest[:12]}")
            else:
                bytes_copied, _ = await self._stream_copy(source, dest, None)

        except (OSError, ChecksumMismatchError) as e:
            end_time = datetime.now()
            return CopyResult(
                success=False,
                source_path=source,
                destination_path=dest,
                bytes_copied=bytes_copied,
                elapsed_seconds=(end_time - start_time).total_seconds(),
                start_time=start_time,
                end_time=end_time,
                error=e,
                source_digest=source_digest,
                destination_digest=dest_digest,
            )

        end_time = datetime.now()
        return CopyResult(
            success=True,
            source_path=source,
            destination_path=dest,
            bytes_copied=bytes_copied,
            elapsed_seconds=(end_time - start_time).total_seconds(),
            start_time=start_time,
            end_time=end_time,
            source_digest=source_digest,
            destination_digest=dest_digest,
        )

    async def _stream_copy(
        self, source: Path, dest: Path, hasher: Optional["hashlib._Hash"]
    ) -> Tuple[int, Optional[str]]:
        """Copy source to dest in chunks, feeding each chunk to ``hasher`` if given."""
        bytes_copied = 0

        async with aiofiles.open(source, "rb") as src:
            async with aiofiles.open(dest, "wb") as dst:
                while True:
                    chunk = await src.read(self.chunk_size)
                    if not chunk:
                        break

                    await dst.write(chunk)
                    if hasher is not None:
                        await asyncio.to_thread(hasher.update, chunk)
                    bytes_copied += len(chunk)

        return bytes_copied, hasher.hexdigest() if hasher is not None else None

    async def _hash_file(self, path: Path) -> str:
        hasher = hashlib.sha256()

        async with aiofiles.open(path, "rb") as f:
            while True:
                chunk = await f.read(self.chunk_size)
                if not chunk:
                    break
                await asyncio.to_thread(hasher.update, chunk)

        return hasher.hexdigest()
