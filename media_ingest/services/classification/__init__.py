"""
Filename classification.

- FilenameClassifier: pure mapping from file name to identity and destination
- DestinationResolver: collision-free destination claiming with ``_vN`` versions
"""

from .filename_classifier import ClassifiedFile, FilenameClassifier
from .destination_resolver import (
    DestinationResolver,
    MAX_VERSION_CANDIDATES,
)

__all__ = [
    "ClassifiedFile",
    "FilenameClassifier",
    "DestinationResolver",
    "MAX_VERSION_CANDIDATES",
]
