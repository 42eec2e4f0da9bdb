from enum import auto, Enum
import os
import stat
from typing import Any

from .errors import FilesystemError, InvariantError


class FileType(Enum):
    """An enumeration of the file types a resolved filesystem entry can have."""

    DIRECTORY = auto()
    REGULAR_FILE = auto()
    SYMLINK = auto()
    PIPE = auto()
    CHAR_DEVICE = auto()
    BLOCK_DEVICE = auto()
    SOCKET = auto()

    @classmethod
    def from_value(cls, value: Any) -> "FileType":
        """Coerce `value` into a file type.

        Accepted values are a FileType, an integer ``st_mode``, an :py:class:`os.stat_result`, or anything with a
        ``stat_result`` attribute (e.g. :py:class:`contextpath.PathMetadata`).

        :param value: The value to coerce
        :returns: The corresponding file type
        :raises FilesystemError: If `value` is a directory entry that can no longer be stat-ed
        :raises TypeError: If `value` cannot be interpreted as a file type
        """
        if isinstance(value, cls):
            return value

        if isinstance(value, int):
            return identify_st_mode(value)

        if isinstance(value, os.stat_result):
            return identify_st_mode(value.st_mode)

        if isinstance(value, os.DirEntry):
            try:
                stat_result = value.stat(follow_symlinks=False)
            except OSError as e:
                raise FilesystemError(e).with_context("path", value.path) from e
            return identify_st_mode(stat_result.st_mode)

        if hasattr(value, "stat_result"):
            return identify_st_mode(value.stat_result.st_mode)

        raise TypeError(f"cannot interpret {type(value)} as a file type")


def identify_st_mode(mode: int) -> FileType:
    """Identify the file type from the given stat mode.

    :param mode: The mode of the path, as returned by :py:func:`os.stat`, via `os.stat(path).st_mode`.
    :returns: The file type
    :raises InvariantError: If the mode matches no known file type
    """
    if stat.S_ISREG(mode):
        return FileType.REGULAR_FILE

    if stat.S_ISDIR(mode):
        return FileType.DIRECTORY

    if stat.S_ISLNK(mode):
        return FileType.SYMLINK

    if stat.S_ISFIFO(mode):
        return FileType.PIPE

    if stat.S_ISCHR(mode):
        return FileType.CHAR_DEVICE

    if stat.S_ISBLK(mode):
        return FileType.BLOCK_DEVICE

    if stat.S_ISSOCK(mode):
        return FileType.SOCKET

    raise InvariantError(f"incoherent file type in st_mode {mode:#o}")
