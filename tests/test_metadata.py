from datetime import datetime, timezone
import errno
import os
import socket
import stat
import sys

import pytest

from contextpath import FilesystemError, FileType, FileTypeMismatchError, InvariantError, Path
from contextpath.filetype import identify_st_mode


def test_filetype_regular_file(mock_fs: Path) -> None:
    p = mock_fs / "a" / "b" / "file.txt"
    assert p.metadata().file_type() == FileType.REGULAR_FILE


def test_filetype_directory(mock_fs: Path) -> None:
    p = mock_fs / "a" / "b"
    assert p.metadata().file_type() == FileType.DIRECTORY


def test_filetype_symlink(mock_fs: Path) -> None:
    p = mock_fs / "symlink-to-file"
    assert p.symlink_metadata().file_type() == FileType.SYMLINK
    assert p.metadata().file_type() == FileType.REGULAR_FILE


@pytest.mark.skipif(sys.platform == "win32", reason="Requires POSIX (os.mkfifo)")
def test_filetype_pipe(mock_fs: Path) -> None:
    p = mock_fs / "pipe"

    os.mkfifo(p)

    assert p.metadata().file_type() == FileType.PIPE


@pytest.mark.skipif(sys.platform == "win32", reason="Requires POSIX")
def test_filetype_char_device_dev_null() -> None:
    assert Path("/dev/null").metadata().file_type() == FileType.CHAR_DEVICE


@pytest.mark.skipif(not hasattr(socket, "AF_UNIX"), reason="Requires AF_UNIX sockets")
def test_filetype_socket(mock_fs: Path) -> None:
    p = mock_fs / "socket"
    with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as s:
        s.bind(str(p))

    assert p.metadata().file_type() == FileType.SOCKET


def test_identify_st_mode_incoherent() -> None:
    with pytest.raises(InvariantError, match="incoherent file type"):
        identify_st_mode(0)


@pytest.mark.parametrize(
    "mode, file_type",
    [
        (stat.S_IFREG | 0o644, FileType.REGULAR_FILE),
        (stat.S_IFDIR | 0o755, FileType.DIRECTORY),
        (stat.S_IFLNK | 0o777, FileType.SYMLINK),
        (stat.S_IFIFO, FileType.PIPE),
        (stat.S_IFCHR, FileType.CHAR_DEVICE),
        (stat.S_IFBLK, FileType.BLOCK_DEVICE),
        (stat.S_IFSOCK, FileType.SOCKET),
    ],
)
def test_identify_st_mode(mode: int, file_type: FileType) -> None:
    assert identify_st_mode(mode) == file_type


def test_filetype_from_value(mock_fs: Path) -> None:
    md = (mock_fs / "a").metadata()

    assert FileType.from_value(FileType.SYMLINK) is FileType.SYMLINK
    assert FileType.from_value(md) is FileType.DIRECTORY
    assert FileType.from_value(md.stat_result) is FileType.DIRECTORY
    assert FileType.from_value(md.stat_result.st_mode) is FileType.DIRECTORY

    with os.scandir(mock_fs / "a" / "b") as it:
        entry = next(it)
        assert FileType.from_value(entry) is FileType.REGULAR_FILE


def test_filetype_from_value_invalid() -> None:
    with pytest.raises(TypeError, match="cannot interpret"):
        FileType.from_value("directory")


def test_require_file_type_match(mock_fs: Path) -> None:
    (mock_fs / "a").metadata().require_file_type(FileType.DIRECTORY)
    (mock_fs / "a" / "b" / "file.txt").metadata().require_file_type(FileType.REGULAR_FILE)
    (mock_fs / "symlink-to-dir").symlink_metadata().require_file_type(FileType.SYMLINK)


def test_require_file_type_mismatch(mock_fs: Path) -> None:
    p = mock_fs / "a"

    with pytest.raises(FileTypeMismatchError) as exc_info:
        p.metadata().require_file_type(FileType.REGULAR_FILE)

    assert exc_info.value.found is FileType.DIRECTORY
    assert exc_info.value.expected is FileType.REGULAR_FILE
    assert str(exc_info.value) == f"found DIRECTORY, expected REGULAR_FILE\n-with path: {p.display()}"


def test_require_file_type_against_other_metadata(mock_fs: Path) -> None:
    expected = (mock_fs / "a" / "b" / "file.txt").metadata()

    with pytest.raises(FileTypeMismatchError, match="found DIRECTORY, expected REGULAR_FILE"):
        (mock_fs / "a").metadata().require_file_type(expected)


def test_metadata_accessors(mock_fs: Path) -> None:
    p = mock_fs / "a" / "b" / "file.txt"
    md = p.metadata()

    assert md.path == p
    assert md.stat_result == os.stat(p)
    assert md.is_file()
    assert not md.is_dir()
    assert not md.is_symlink()
    assert md.len() == md.size == len("contents of b/file.txt")
    assert not md.is_empty()
    assert (mock_fs / "empty-file").metadata().is_empty()


@pytest.mark.skipif(sys.platform == "win32", reason="Requires POSIX permissions")
def test_metadata_permissions(mock_fs: Path) -> None:
    p = mock_fs / "empty-file"
    p.set_permissions(0o640)

    assert p.metadata().permissions() == 0o640


def test_metadata_times(mock_fs: Path) -> None:
    p = mock_fs / "empty-file"
    os.utime(p, (1_000_000_000, 1_500_000_000))
    md = p.metadata()

    assert md.accessed() == datetime.fromtimestamp(1_000_000_000, tz=timezone.utc)
    assert md.modified() == datetime.fromtimestamp(1_500_000_000, tz=timezone.utc)


def test_metadata_created(mock_fs: Path) -> None:
    p = mock_fs / "empty-file"
    md = p.metadata()

    if hasattr(md.stat_result, "st_birthtime"):
        assert md.created().tzinfo is timezone.utc
    else:
        with pytest.raises(FilesystemError) as exc_info:
            md.created()

        assert exc_info.value.errno == errno.ENOTSUP
        assert str(exc_info.value) == f"{os.strerror(errno.ENOTSUP)}\n-with path: {p.display()}"


def test_metadata_repr(mock_fs: Path) -> None:
    md = (mock_fs / "a").metadata()
    assert repr(md) == f"PathMetadata({mock_fs / 'a'!r}, DIRECTORY)"


def test_filetype_from_value_removed_dir_entry(mock_fs: Path) -> None:
    p = mock_fs / "a" / "b"

    with os.scandir(p) as it:
        entry = next(it)
    (p / "file.txt").remove_file()

    with pytest.raises(FilesystemError) as exc_info:
        FileType.from_value(entry)

    assert exc_info.value.errno == errno.ENOENT
    assert exc_info.value.annotations == (("path", entry.path),)
