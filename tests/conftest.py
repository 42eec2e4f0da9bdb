from collections.abc import Iterator
import os
import pathlib

import pytest

import contextpath


@pytest.fixture(scope="function")
def mock_fs(tmp_path: pathlib.Path) -> Iterator[contextpath.Path]:
    root = tmp_path / "root"
    root.mkdir()

    (root / "a").mkdir()
    (root / "a" / "b").mkdir()
    (root / "a" / "b" / "file.txt").write_text("contents of b/file.txt")

    (root / "a" / "c").mkdir()
    (root / "a" / "c" / "file.txt").write_text("contents of c/file.txt")
    (root / "a" / "c" / "file2.log").write_text("contents of c/file2.log")
    (root / "a" / "c" / "d").mkdir()
    (root / "a" / "c" / "d" / "image.png").touch()

    (root / "empty-dir").mkdir()
    (root / "empty-file").touch()
    (root / "not-utf8.bin").write_bytes(b"caf\xe9")

    os.symlink(root / "a" / "b" / "file.txt", root / "symlink-to-file")
    os.symlink(root / "a", root / "symlink-to-dir")
    os.symlink(root / "nonexistent-target", root / "broken-symlink")

    yield contextpath.Path(root)
