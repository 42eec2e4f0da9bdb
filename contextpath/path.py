from functools import total_ordering
import logging
import os
import os.path
import pathlib
import shutil
import sys
from typing import TypeVar

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

from .errors import (
    AbsenceError,
    annotate_os_errors,
    display_text,
    EncodingError,
    FilesystemError,
    MismatchError,
)
from .metadata import PathMetadata
from .readdir import PathDirEntry, PathReadDir

logger = logging.getLogger(__name__)

StrOrBytesPath = str | bytes | os.PathLike[str] | os.PathLike[bytes]

_T = TypeVar("_T")


def _split_file_at_dot(name: str) -> tuple[str, str | None]:
    """Split a file name into its stem and its final extension (without the dot).

    A leading dot does not start an extension, so ".bashrc" has no extension, while "foo." has the empty extension.
    """
    index = name.rfind(".")
    if index <= 0:
        return name, None

    return name[:index], name[index + 1 :]


@total_ordering
class Path:
    """A filesystem path whose fallible operations raise errors naming the path(s) involved.

    Every failure is a :py:class:`contextpath.errors.PathError` rendered as a short description followed by one
    ``-with <label>: <value>`` line per attached value:

    >>> Path("/").parent()
    Traceback (most recent call last):
    ...
    contextpath.errors.AbsenceError: no parent path
    -with path: /
    """

    def __init__(self, *segments: StrOrBytesPath) -> None:
        texts = [os.fsdecode(segment) for segment in segments]
        self._raw = os.path.join(*texts) if texts else ""
        self._path = pathlib.Path(self._raw)

    def __fspath__(self) -> str:
        """Return the path exactly as it was given, making `Path` objects compatible with os.PathLike."""
        return self._raw

    def __str__(self) -> str:
        """Return the path as it was given, without normalization.

        :returns: The string form of the path
        """
        return self._raw

    def __repr__(self) -> str:
        """Return a string representation of the path.

        :returns: The string representation of the path
        """
        return f"{self.__class__.__name__}({self._raw!r})"

    def __eq__(self, other: object) -> bool:
        """Return whether this path is equal to another path (or pathlib path), compared component-wise.

        :param other: The path to compare to

        :returns: True if the paths are equal, False otherwise
        """
        if isinstance(other, Path):
            return self._path == other._path

        if isinstance(other, pathlib.PurePath):
            return self._path == other

        return NotImplemented

    def __lt__(self, other: object) -> bool:
        """Return whether this path should sort before the other path.

        :param other: The path to compare to

        :returns: True if this path should sort before the other path, False otherwise
        """
        if isinstance(other, Path):
            return self._path < other._path

        if isinstance(other, pathlib.PurePath):
            return self._path < other

        return NotImplemented

    def __hash__(self) -> int:
        """Return the hash of the path.

        :returns: The hash value of the path
        """
        return hash(self._path)

    @classmethod
    def _from_pathlib_path(cls, path: pathlib.PurePath) -> Self:
        """Return an instance of this class from a pathlib path, avoiding the initialization overhead.

        This should only be used internally.
        """
        inst = cls.__new__(cls)
        inst._raw = str(path)
        inst._path = pathlib.Path(path)
        return inst

    def __truediv__(self, other: StrOrBytesPath) -> Self:
        """Return a new path by joining the given path with this path.

        >>> Path("/foo/bar") / "baz.txt"
        Path('/foo/bar/baz.txt')
        """
        if not isinstance(other, (str, bytes, os.PathLike)):
            return NotImplemented

        return type(self)._from_pathlib_path(self._path / os.fsdecode(other))

    def display(self) -> str:
        """Return the printable form of this path, as used in error messages.

        Bytes that are not valid UTF-8 are rendered as U+FFFD:

        >>> Path(b"f.\\xff").display()
        'f.�'
        """
        return display_text(self._raw)

    def as_pathlib(self) -> pathlib.Path:
        """Return the equivalent :py:class:`pathlib.Path`."""
        return self._path

    def require(self, value: _T | None, description: str) -> _T:
        """Return `value`, or raise an error describing its absence and naming this path if it is None.

        Imagine an application that parses inputs from a file, verifies that all of them are equal, then returns that
        value:

        >>> def validate_inputs(source: Path, inputs: list[int]) -> int:
        ...     x = source.require(next(iter(inputs), None), "No inputs found")
        ...     assert all(y == x for y in inputs)
        ...     return x
        >>> validate_inputs(Path("/this/path/does/not/exist"), [])
        Traceback (most recent call last):
        ...
        contextpath.errors.AbsenceError: No inputs found
        -with path: /this/path/does/not/exist

        :param value: The possibly-absent value
        :param description: The description of the failure if `value` is None

        :returns: `value`, if it is not None

        :raises AbsenceError: If `value` is None
        """
        if value is None:
            raise AbsenceError(description).with_context("path", self)

        return value

    def _require_utf8(self, text: str) -> str:
        try:
            text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncodingError().with_context("path", self) from e

        return text

    def to_str(self) -> str:
        """Return the path as a UTF-8 string.

        >>> Path(b"\\xff").to_str()
        Traceback (most recent call last):
        ...
        contextpath.errors.EncodingError: invalid utf8
        -with path: �

        :returns: The path as a string

        :raises EncodingError: If the path is not valid UTF-8
        """
        return self._require_utf8(self._raw)

    def parent(self) -> Self:
        """Return the parent path.

        >>> Path("/foo/bar/baz.txt").parent()
        Path('/foo/bar')

        A bare root and the empty path have no parent:

        >>> Path("/").parent()
        Traceback (most recent call last):
        ...
        contextpath.errors.AbsenceError: no parent path
        -with path: /

        :returns: The path's immediate parent

        :raises AbsenceError: If the path has no parent component
        """
        parent = self._path.parent
        if parent == self._path:
            raise AbsenceError("no parent path").with_context("path", self)

        return type(self)._from_pathlib_path(parent)

    def file_name(self) -> str:
        """Return the final component of the path.

        >>> Path("/tmp/foo.txt").file_name()
        'foo.txt'

        >>> Path("/tmp/..").file_name()
        Traceback (most recent call last):
        ...
        contextpath.errors.AbsenceError: no file name
        -with path: /tmp/..

        The result may contain undecodable bytes (as lone surrogates); use `file_name_str` to require UTF-8.

        :returns: The file name

        :raises AbsenceError: If the path ends in a root, in "..", or is empty
        """
        name = self._path.name
        if name in ("", ".."):
            raise AbsenceError("no file name").with_context("path", self)

        return name

    def file_name_str(self) -> str:
        """Return the file name as a UTF-8 string.

        :raises AbsenceError: If the path has no file name
        :raises EncodingError: If the file name is not valid UTF-8
        """
        return self._require_utf8(self.file_name())

    def file_stem(self) -> str:
        """Return the file name without its final extension.

        >>> Path("/tmp/foo.tar.gz").file_stem()
        'foo.tar'

        >>> Path("/tmp/.bashrc").file_stem()
        '.bashrc'

        :returns: The file stem

        :raises AbsenceError: If the path has no file name
        """
        stem, _ = _split_file_at_dot(self.file_name())
        return stem

    def file_stem_str(self) -> str:
        """Return the file stem as a UTF-8 string.

        :raises AbsenceError: If the path has no file name
        :raises EncodingError: If the file stem is not valid UTF-8
        """
        return self._require_utf8(self.file_stem())

    def extension(self) -> str:
        """Return the final extension of the file name, without the leading dot.

        >>> Path("/tmp/foo.tar.gz").extension()
        'gz'

        >>> Path("/tmp/no_extension").extension()
        Traceback (most recent call last):
        ...
        contextpath.errors.AbsenceError: no file name or no extension
        -with path: /tmp/no_extension

        :returns: The extension

        :raises AbsenceError: If the path has no file name, or the file name has no extension
        """
        name = self._path.name
        extension = None if name in ("", "..") else _split_file_at_dot(name)[1]
        if extension is None:
            raise AbsenceError("no file name or no extension").with_context("path", self)

        return extension

    def extension_str(self) -> str:
        """Return the extension as a UTF-8 string.

        >>> Path(b"f.\\xff").extension_str()
        Traceback (most recent call last):
        ...
        contextpath.errors.EncodingError: invalid utf8
        -with path: f.�

        :raises AbsenceError: If the path has no file name or no extension
        :raises EncodingError: If the extension is not valid UTF-8
        """
        return self._require_utf8(self.extension())

    def strip_prefix(self, base: StrOrBytesPath) -> Self:
        """Return the remainder of this path after removing the leading components in `base`.

        >>> Path("/tmp/foo.txt").strip_prefix("/tmp")
        Path('foo.txt')

        If the path does not begin with `base`, both are described:

        >>> Path("/tmp/foo.txt").strip_prefix("/temp/")
        Traceback (most recent call last):
        ...
        contextpath.errors.MismatchError: prefix mismatch
        -with prefix: /temp/
        -with path: /tmp/foo.txt

        :param base: The prefix to remove

        :returns: The remaining path

        :raises MismatchError: If the path does not begin with `base`
        """
        base_path = base._path if isinstance(base, Path) else pathlib.Path(os.fsdecode(base))
        try:
            remainder = self._path.relative_to(base_path)
        except ValueError as e:
            raise MismatchError("prefix mismatch").with_context("prefix", base).with_context("path", self) from e

        return type(self)._from_pathlib_path(remainder)

    @annotate_os_errors()
    def metadata(self) -> PathMetadata:
        """Return the metadata of the path, following symlinks.

        >>> Path("/this/path/does/not/exist").metadata()
        Traceback (most recent call last):
        ...
        contextpath.errors.FilesystemError: No such file or directory
        -with path: /this/path/does/not/exist

        :returns: The metadata, associated with this path

        :raises FilesystemError: If the path cannot be stat-ed
        """
        return PathMetadata(self, os.stat(self))

    @annotate_os_errors()
    def symlink_metadata(self) -> PathMetadata:
        """Return the metadata of the path without following a final symlink.

        :returns: The metadata, associated with this path

        :raises FilesystemError: If the path cannot be stat-ed
        """
        return PathMetadata(self, os.lstat(self))

    @annotate_os_errors()
    def exists(self, *, follow_symlinks: bool = True) -> bool:
        """Return whether the path exists.

        Only a missing entry yields False; any other failure (e.g. permission denied on a parent directory) raises.

        :param follow_symlinks: If False, a broken symlink counts as existing

        :returns: True if the path exists, False otherwise

        :raises FilesystemError: If existence cannot be determined
        """
        try:
            os.stat(self, follow_symlinks=follow_symlinks)
        except (FileNotFoundError, NotADirectoryError):
            return False

        return True

    @annotate_os_errors()
    def canonicalize(self) -> Self:
        """Return the absolute path with every symlink, "." and ".." resolved. The path must exist.

        :returns: The canonical path

        :raises FilesystemError: If the path does not exist or a symlink loop is encountered
        """
        return type(self)(os.path.realpath(self, strict=True))

    @annotate_os_errors()
    def read_link(self) -> Self:
        """Return the target of a symbolic link, as stored in the link.

        >>> Path("/path/to/symlink").read_link()
        Path('/path/to/target')

        :returns: The link target

        :raises FilesystemError: If the path does not exist or is not a symbolic link
        """
        return type(self)(os.readlink(self))

    @annotate_os_errors()
    def read_dir(self) -> PathReadDir:
        """Return a lazy listing of the directory's entries, in the order the platform provides.

        Iteration failures, and failures to read an entry's metadata, are annotated with this directory's path.

        :returns: A single-pass iterator of directory entries, usable as a context manager

        :raises FilesystemError: If the directory cannot be opened
        """
        return PathReadDir(self, os.scandir(self))

    def read_dir_entries(self) -> list[PathDirEntry]:
        """Return every entry of the directory, in the order the platform provides.

        :returns: The directory entries

        :raises FilesystemError: On the first failure encountered while opening or reading the directory
        """
        with self.read_dir() as entries:
            return list(entries)

    @annotate_os_errors(("from", "self"), ("to", "to"))
    def copy(self, to: StrOrBytesPath) -> int:
        """Copy the contents and permission bits of this file to `to`, overwriting it if it exists.

        >>> Path("/tmp/does-not-exist").copy("/tmp/copy")
        Traceback (most recent call last):
        ...
        contextpath.errors.FilesystemError: No such file or directory
        -with from: /tmp/does-not-exist
        -with to: /tmp/copy

        :param to: The destination file

        :returns: The number of bytes copied

        :raises FilesystemError: If the copy fails
        """
        logger.debug("copying %s -> %s", self, os.fsdecode(to))
        shutil.copyfile(self, to)
        shutil.copymode(self, to)
        return os.stat(to).st_size

    @annotate_os_errors(("from", "self"), ("to", "to"))
    def rename(self, to: StrOrBytesPath) -> Self:
        """Rename this path to `to`, replacing `to` if it is an existing file.

        :param to: The new path

        :returns: The new path

        :raises FilesystemError: If the rename fails
        """
        logger.debug("renaming %s -> %s", self, os.fsdecode(to))
        os.rename(self, to)
        return type(self)(to)

    @annotate_os_errors(("original", "self"), ("link", "link"))
    def hard_link(self, link: StrOrBytesPath) -> None:
        """Create `link` as a hard link to this path.

        :param link: The path of the new link

        :raises FilesystemError: If this path does not exist, `link` already exists, or linking is unsupported
        """
        logger.debug("hard linking %s -> %s", os.fsdecode(link), self)
        os.link(self, link)

    @annotate_os_errors(("original", "self"), ("link", "link"))
    def symlink(self, link: StrOrBytesPath) -> None:
        """Create `link` as a symbolic link pointing to this path. This path need not exist.

        :param link: The path of the new link

        :raises FilesystemError: If `link` already exists or symlinks are unsupported
        """
        logger.debug("symlinking %s -> %s", os.fsdecode(link), self)
        os.symlink(self, link)

    @annotate_os_errors()
    def create_dir(self) -> None:
        """Create this directory. The parent must exist and the path itself must not.

        :raises FilesystemError: If the directory cannot be created
        """
        logger.debug("creating directory %s", self)
        os.mkdir(self)

    @annotate_os_errors()
    def create_dir_all(self) -> None:
        """Create this directory and any missing parents. An existing directory is not an error.

        :raises FilesystemError: If a directory cannot be created, or a component exists and is not a directory
        """
        logger.debug("creating directory tree %s", self)
        os.makedirs(self, exist_ok=True)

    @annotate_os_errors()
    def remove_dir(self) -> None:
        """Remove this directory, which must be empty.

        :raises FilesystemError: If the directory does not exist, is not empty or cannot be removed
        """
        logger.debug("removing directory %s", self)
        os.rmdir(self)

    @annotate_os_errors()
    def remove_dir_all(self) -> None:
        """Remove this directory and everything inside it.

        .. warning::
            This is not transactional: a failure midway leaves whatever has not yet been removed in place.

        :raises FilesystemError: If any entry cannot be removed
        """
        logger.debug("removing directory tree %s", self)
        shutil.rmtree(self)

    @annotate_os_errors()
    def remove_file(self) -> None:
        """Remove this file (or symlink).

        :raises FilesystemError: If the path does not exist, is a directory or cannot be removed
        """
        logger.debug("removing file %s", self)
        os.remove(self)

    def set_permissions(self, mode: int) -> None:
        """Change the permission bits of this path.

        >>> Path("/this/path/does/not/exist").set_permissions(0o644)
        Traceback (most recent call last):
        ...
        contextpath.errors.FilesystemError: No such file or directory
        -with path: /this/path/does/not/exist
        -with permissions: 0o644

        :param mode: The new permission bits, as for :py:func:`os.chmod`

        :raises FilesystemError: If the permissions cannot be changed
        """
        logger.debug("setting permissions of %s to %#o", self, mode)
        try:
            os.chmod(self, mode)
        except OSError as e:
            raise FilesystemError(e).with_context("path", self).with_context("permissions", oct(mode)) from e

    @annotate_os_errors()
    def write(self, contents: str | bytes) -> None:
        """Write `contents` to this file, creating it if needed and truncating it otherwise.

        Text is encoded as UTF-8.

        :param contents: The data to write

        :raises EncodingError: If `contents` is text that cannot be encoded as UTF-8
        :raises FilesystemError: If the file cannot be written
        """
        if isinstance(contents, str):
            try:
                contents = contents.encode("utf-8")
            except UnicodeEncodeError as e:
                raise EncodingError().with_context("path", self) from e

        logger.debug("writing %d bytes to %s", len(contents), self)
        with open(self, mode="wb") as f:
            f.write(contents)

    @annotate_os_errors()
    def read(self) -> bytes:
        """Read the entire contents of this file.

        :returns: The contents of the file

        :raises FilesystemError: If the file cannot be read
        """
        with open(self, mode="rb") as f:
            return f.read()

    def read_to_string(self) -> str:
        """Read the entire contents of this file as UTF-8 text.

        :returns: The contents of the file

        :raises FilesystemError: If the file cannot be read
        :raises EncodingError: If the contents are not valid UTF-8
        """
        data = self.read()
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError().with_context("path", self) from e
