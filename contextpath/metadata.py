from datetime import datetime, timezone
import errno
import os
import stat
from typing import Any, TYPE_CHECKING

from .errors import FilesystemError, FileTypeMismatchError
from .filetype import FileType, identify_st_mode

if TYPE_CHECKING:
    from .path import Path


class PathMetadata:
    """An :py:class:`os.stat_result` paired with the path it was read from.

    Keeping the path alongside the stat result lets later failures (a missing birth time, an unexpected file type)
    name the offending path.
    """

    def __init__(self, path: "Path", stat_result: os.stat_result) -> None:
        self._path = path
        self._stat_result = stat_result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._path!r}, {self.file_type().name})"

    @property
    def path(self) -> "Path":
        """Return the path this metadata was read from."""
        return self._path

    @property
    def stat_result(self) -> os.stat_result:
        """Return the underlying stat result."""
        return self._stat_result

    def file_type(self) -> FileType:
        """Return the file type recorded in the stat result.

        :returns: The file type

        :raises InvariantError: If the stat result carries no known file type
        """
        return identify_st_mode(self._stat_result.st_mode)

    def is_dir(self) -> bool:
        """Return whether the entry is a directory.

        :returns: True if the entry is a directory, False otherwise
        """
        return stat.S_ISDIR(self._stat_result.st_mode)

    def is_file(self) -> bool:
        """Return whether the entry is a regular file.

        :returns: True if the entry is a regular file, False otherwise
        """
        return stat.S_ISREG(self._stat_result.st_mode)

    def is_symlink(self) -> bool:
        """Return whether the entry is a symbolic link. Only possible for metadata read without following symlinks.

        :returns: True if the entry is a symbolic link, False otherwise
        """
        return stat.S_ISLNK(self._stat_result.st_mode)

    @property
    def size(self) -> int:
        """Return the size of the entry, in bytes."""
        return self._stat_result.st_size

    def len(self) -> int:
        """Return the size of the entry, in bytes. This is an alias for PathMetadata.size."""
        return self.size

    def is_empty(self) -> bool:
        """Return whether the entry has a size of zero bytes."""
        return self.size == 0

    def permissions(self) -> int:
        """Return the permission bits of the entry (``st_mode & 0o7777``).

        >>> Path("/path/to/file").metadata().permissions()
        420
        >>> oct(Path("/path/to/file").metadata().permissions())
        '0o644'
        """
        return stat.S_IMODE(self._stat_result.st_mode)

    def modified(self) -> datetime:
        """Return the last modification time of the entry, in UTC."""
        return datetime.fromtimestamp(self._stat_result.st_mtime, tz=timezone.utc)

    def accessed(self) -> datetime:
        """Return the last access time of the entry, in UTC."""
        return datetime.fromtimestamp(self._stat_result.st_atime, tz=timezone.utc)

    def created(self) -> datetime:
        """Return the creation (birth) time of the entry, in UTC.

        :returns: The creation time of the entry

        :raises FilesystemError: If the platform does not record creation times
        """
        try:
            # st_birthtime is not always available
            ts = self._stat_result.st_birthtime  # type: ignore[attr-defined]
        except AttributeError:
            cause = OSError(errno.ENOTSUP, os.strerror(errno.ENOTSUP))
            raise FilesystemError(cause).with_context("path", self._path) from None

        return datetime.fromtimestamp(ts, tz=timezone.utc)

    def require_file_type(self, expected: Any) -> None:
        """Raise an error unless this entry has the expected file type.

        >>> Path("/path/to/directory").metadata().require_file_type(FileType.REGULAR_FILE)
        Traceback (most recent call last):
        ...
        contextpath.errors.FileTypeMismatchError: found DIRECTORY, expected REGULAR_FILE
        -with path: /path/to/directory

        :param expected: The expected file type; anything :py:meth:`FileType.from_value` accepts

        :raises FileTypeMismatchError: If the file type differs from `expected`
        :raises InvariantError: If the stat result carries no known file type
        """
        expected_type = FileType.from_value(expected)
        found = self.file_type()
        if found != expected_type:
            raise FileTypeMismatchError(found, expected_type).with_context("path", self._path)
