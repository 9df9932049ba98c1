"""Filename classification and destination path construction."""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from media_ingest.config import Settings
from media_ingest.utils.file_operations import split_extension


@dataclass(frozen=True)
class ClassifiedFile:
    """
    Structured identity derived from a single file name.

    Tokens are only populated when ``matched`` is True.
    """

    original_path: str
    file_name: str
    extension: str
    matched: bool
    project: Optional[str] = None
    client: Optional[str] = None
    camera: Optional[str] = None
    clip: Optional[str] = None

    def template_variables(self) -> Dict[str, str]:
        if not self.matched:
            return {}
        return {
            "client": self.client or "",
            "project": self.project or "",
            "camera": self.camera or "",
        }

    def __str__(self) -> str:
        if not self.matched:
            return f"ClassifiedFile({self.file_name}, unmatched)"
        return (
            f"ClassifiedFile({self.file_name}, project={self.project}, "
            f"client={self.client}, camera={self.camera}, clip={self.clip})"
        )


class FilenameClassifier:
    """
    Maps file names to a ClassifiedFile and an organized destination.

    Everything here is a pure function of the file name and the configured
    pattern, template, fallback folder and destination root.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.logger = logging.getLogger("media_ingest.classifier")

        self._pattern = re.compile(settings.classification_pattern)
        self._folder_template = settings.folder_template
        self._unmatched_folder = settings.unmatched_folder
        self._destination_root = Path(settings.destination_path)

        self.logger.debug(
            f"FilenameClassifier initialized: pattern='{self._pattern.pattern}', "
            f"template='{self._folder_template}', fallback='{self._unmatched_folder}'"
        )

    def classify(self, file_path: str) -> ClassifiedFile:
        file_name = Path(file_path).name
        name_without_ext, extension = split_extension(file_name)

        match = self._pattern.search(name_without_ext)
        if match is None:
            return ClassifiedFile(
                original_path=file_path,
                file_name=file_name,
                extension=extension,
                matched=False,
            )

        project, client, camera, clip = match.groups()
        if not all((project, client, camera, clip)):
            # Empty or non-participating groups count as a miss
            return ClassifiedFile(
                original_path=file_path,
                file_name=file_name,
                extension=extension,
                matched=False,
            )

        return ClassifiedFile(
            original_path=file_path,
            file_name=file_name,
            extension=extension,
            matched=True,
            project=project,
            client=client,
            camera=camera,
            clip=clip,
        )

    def get_destination_directory(self, info: ClassifiedFile) -> Path:
        if not info.matched:
            return self._destination_root / self._unmatched_folder

        return self._destination_root / self._substitute_template(
            self._folder_template, info.template_variables()
        )

    def get_destination_file_name(self, info: ClassifiedFile) -> str:
        if info.matched:
            return f"{info.clip}{info.extension}"
        return info.file_name

    def get_full_destination_path(self, info: ClassifiedFile) -> Path:
        return self.get_destination_directory(info) / self.get_destination_file_name(
            info
        )

    def _substitute_template(self, template: str, variables: Dict[str, str]) -> str:
        result = template

        for var_name, var_value in variables.items():
            placeholder = f"{{{var_name}}}"
            result = result.replace(placeholder, var_value)

        return result

    def get_classifier_info(self) -> Dict[str, str]:
        return {
            "pattern": self._pattern.pattern,
            "folder_template": self._folder_template,
            "unmatched_folder": self._unmatched_folder,
            "destination_root": str(self._destination_root),
        }
