from pathlib import Path

import pytest

from disco.errors import DiscoIOError
from disco.storage.fs import FsAdapter


def test_file_size(tmp_path):
    file = tmp_path / "test.txt"
    file.write_bytes(b"hello")
    assert FsAdapter().file_size(file) == 5


def test_dir_total_size(tmp_path):
    (tmp_path / "sub").mkdir()
    (tmp_path / "a.txt").write_bytes(b"aaa")
    (tmp_path / "sub" / "b.txt").write_bytes(b"bb")
    assert FsAdapter().dir_total_size(tmp_path) == 5


def test_dir_total_size_of_single_file(tmp_path):
    file = tmp_path / "only.bin"
    file.write_bytes(b"abcd")
    assert FsAdapter().dir_total_size(file) == 4


def test_dir_total_size_ignores_symlinks(tmp_path):
    (tmp_path / "a.txt").write_bytes(b"aaa")
    (tmp_path / "link.txt").symlink_to(tmp_path / "a.txt")
    assert FsAdapter().dir_total_size(tmp_path) == 3


def test_dir_total_size_missing_directory(tmp_path):
    assert FsAdapter().dir_total_size(tmp_path / "nope") == 0


def test_file_size_missing_raises(tmp_path):
    with pytest.raises(DiscoIOError):
        FsAdapter().file_size(tmp_path / "missing.txt")


def test_walk_directory_lists_everything(tmp_path):
    (tmp_path / "sub").mkdir()
    (tmp_path / "a.txt").write_bytes(b"a")
    (tmp_path / "sub" / "b.txt").write_bytes(b"b")
    paths = FsAdapter().walk_directory(tmp_path)
    assert paths[0] == Path(tmp_path)
    assert set(paths) == {
        Path(tmp_path),
        tmp_path / "a.txt",
        tmp_path / "sub",
        tmp_path / "sub" / "b.txt",
    }


def test_walk_directory_missing_is_empty(tmp_path):
    assert FsAdapter().walk_directory(tmp_path / "absent") == []


def test_exists(tmp_path):
    adapter = FsAdapter()
    (tmp_path / "here.txt").write_text("x")
    assert adapter.exists(tmp_path / "here.txt") is True
    assert adapter.exists(tmp_path / "gone.txt") is False