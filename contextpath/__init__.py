import logging

from .errors import (
    AbsenceError,
    EncodingError,
    FilesystemError,
    FileTypeMismatchError,
    InvariantError,
    MismatchError,
    PathError,
)
from .filetype import FileType
from .metadata import PathMetadata
from .path import Path
from .readdir import PathDirEntry, PathReadDir

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AbsenceError",
    "EncodingError",
    "FilesystemError",
    "FileType",
    "FileTypeMismatchError",
    "InvariantError",
    "MismatchError",
    "Path",
    "PathDirEntry",
    "PathError",
    "PathMetadata",
    "PathReadDir",
]
