from collections.abc import Iterator
import os
import sys
from types import TracebackType
from typing import TYPE_CHECKING

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

from .errors import FilesystemError
from .filetype import FileType, identify_st_mode
from .metadata import PathMetadata

if TYPE_CHECKING:
    from .path import Path


class PathDirEntry:
    """An :py:class:`os.DirEntry` paired with the path of the directory that contains it.

    The native per-entry errors do not say which directory was being read, so the directory path is kept here to
    annotate them.
    """

    def __init__(self, dir_path: "Path", entry: "os.DirEntry[str]") -> None:
        self._dir_path = dir_path
        self._entry = entry

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._entry.path!r})"

    @property
    def dir_path(self) -> "Path":
        """Return the path of the directory containing this entry."""
        return self._dir_path

    @property
    def entry(self) -> "os.DirEntry[str]":
        """Return the underlying :py:class:`os.DirEntry`."""
        return self._entry

    def path(self) -> "Path":
        """Return the full path of this entry (the directory path joined with the entry's name)."""
        return self._dir_path / self._entry.name

    def file_name(self) -> str:
        """Return the bare file name of this entry, without any leading path component."""
        return self._entry.name

    def metadata(self) -> PathMetadata:
        """Return the metadata of this entry, following symlinks.

        On failure, the error is annotated with the containing directory as "parent-dir". The returned metadata, when
        successfully loaded, is associated with the entry's own path.

        :returns: The metadata of this entry

        :raises FilesystemError: If the entry cannot be stat-ed
        """
        try:
            stat_result = self._entry.stat()
        except OSError as e:
            raise FilesystemError(e).with_context("parent-dir", self._dir_path) from e

        return PathMetadata(self.path(), stat_result)

    def file_type(self) -> FileType:
        """Return the file type of this entry, without following symlinks.

        :returns: The file type of this entry

        :raises FilesystemError: If the entry cannot be stat-ed, annotated with the entry's path
        """
        try:
            stat_result = self._entry.stat(follow_symlinks=False)
        except OSError as e:
            raise FilesystemError(e).with_context("path", self.path()) from e

        return identify_st_mode(stat_result.st_mode)


class PathReadDir(Iterator[PathDirEntry]):
    """A lazy, single-pass listing of a directory that annotates failures with the directory's path.

    The open directory stream is released by :py:meth:`close`, on leaving a `with` block, once the listing is
    exhausted, or when the object is garbage collected.

    >>> with Path("/path/to/directory").read_dir() as entries:
    ...     for entry in entries:
    ...         print(entry.file_name())
    """

    def __init__(self, path: "Path", scandir: "os.ScandirIterator[str]") -> None:
        self._path = path
        self._scandir = scandir

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._path!r})"

    @property
    def path(self) -> "Path":
        """Return the path of the directory being listed."""
        return self._path

    @property
    def scandir(self) -> "os.ScandirIterator[str]":
        """Return the underlying :py:func:`os.scandir` iterator."""
        return self._scandir

    def __iter__(self) -> Self:
        return self

    def __next__(self) -> PathDirEntry:
        try:
            entry = next(self._scandir)
        except OSError as e:
            raise FilesystemError(e).with_context("path", self._path) from e

        return PathDirEntry(self._path, entry)

    def close(self) -> None:
        """Release the open directory stream. Calling this more than once is harmless."""
        self._scandir.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()
