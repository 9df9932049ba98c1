import logging
from pathlib import Path

import aiofiles
import aiofiles.os

from media_ingest.core.exceptions import TooManyVersionsError
from media_ingest.utils.file_operations import build_versioned_path

from .filename_classifier import ClassifiedFile, FilenameClassifier

MAX_VERSION_CANDIDATES = 1000
FIRST_VERSION = 2


class DestinationResolver:
    """
    Resolves a collision-free destination for a classified file.

    Each candidate is claimed with an exclusive create, so a path is either
    ours or occupied; there is no separate existence check that another
    writer could race. The claimed file is an empty placeholder that the
    copy later truncates and fills.
    """

    def __init__(self, classifier: FilenameClassifier):
        self._classifier = classifier

    async def resolve(self, info: ClassifiedFile) -> Path:
        dest_path = self._classifier.get_full_destination_path(info)
        await aiofiles.os.makedirs(dest_path.parent, exist_ok=True)

        if await self._try_claim(dest_path):
            return dest_path

        for version in range(FIRST_VERSION, FIRST_VERSION + MAX_VERSION_CANDIDATES):
            candidate = build_versioned_path(dest_path, version)
            if await self._try_claim(candidate):
                logging.info(
                    f"Destination occupied, versioned: {dest_path.name} -> {candidate.name}"
                )
                return candidate

        raise TooManyVersionsError(str(dest_path), MAX_VERSION_CANDIDATES)

    async def _try_claim(self, path: Path) -> bool:
        try:
            async with aiofiles.open(path, "xb"):
                pass
            return True
        except FileExistsError:
            return False
