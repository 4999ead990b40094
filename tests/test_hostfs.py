import os

import pytest

from rcorefs.devfs import NullINode
from rcorefs.hostfs import HOSTFS_MAGIC, HostFS
from rcorefs.vfs import ErrorKind, FileType, FsError


@pytest.fixture
def fs(tmp_path):
    return HostFS(tmp_path)


def _kind(call):
    with pytest.raises(FsError) as info:
        call()
    return info.value.kind


def test_write_then_read(fs, tmp_path):
    root = fs.root_inode()
    file = root.create("a.txt", FileType.FILE, 0o644)
    assert file.write_at(0, b"hello world") == 11
    assert file.read_at(6, 100) == b"world"
    assert (tmp_path / "a.txt").read_bytes() == b"hello world"
    meta = file.metadata()
    assert meta.type_ is FileType.FILE
    assert meta.size == 11


def test_resize(fs):
    file = fs.root_inode().create("a", FileType.FILE, 0o644)
    file.resize(10)
    assert file.read_at(0, 20) == bytes(10)
    file.resize(3)
    assert file.metadata().size == 3


def test_create_dir_and_lookup(fs, tmp_path):
    root = fs.root_inode()
    sub = root.create("sub", FileType.DIR, 0o755)
    sub.create("inner", FileType.FILE, 0o644)
    assert (tmp_path / "sub" / "inner").is_file()
    assert root.lookup("sub/inner").metadata().type_ is FileType.FILE
    assert sub.metadata().type_ is FileType.DIR


def test_create_existing(fs):
    root = fs.root_inode()
    root.create("a", FileType.FILE, 0o644)
    assert _kind(lambda: root.create("a", FileType.DIR, 0o755)) is ErrorKind.ENTRY_EXIST


def test_create_symlink_unsupported(fs):
    root = fs.root_inode()
    assert _kind(lambda: root.create("l", FileType.SYMLINK, 0o777)) is ErrorKind.NOT_SUPPORTED


def test_hard_link(fs):
    root = fs.root_inode()
    file = root.create("a", FileType.FILE, 0o644)
    root.link("b", file)
    assert file.metadata().nlinks == 2
    file.write_at(0, b"xyz")
    assert root.find("b").read_at(0, 3) == b"xyz"


def test_link_other_fs(fs):
    root = fs.root_inode()
    assert _kind(lambda: root.link("n", NullINode())) is ErrorKind.NOT_SAME_FS
    assert _kind(lambda: root.move("n", NullINode(), "m")) is ErrorKind.NOT_SAME_FS


def test_unlink(fs, tmp_path):
    root = fs.root_inode()
    root.create("a", FileType.FILE, 0o644)
    root.create("d", FileType.DIR, 0o755)
    root.unlink("a")
    root.unlink("d")
    assert os.listdir(tmp_path) == []
    assert _kind(lambda: root.unlink("a")) is ErrorKind.ENTRY_NOT_FOUND


def test_unlink_non_empty_dir(fs):
    root = fs.root_inode()
    sub = root.create("d", FileType.DIR, 0o755)
    sub.create("f", FileType.FILE, 0o644)
    assert _kind(lambda: root.unlink("d")) is ErrorKind.DIR_NOT_EMPTY


def test_move(fs, tmp_path):
    root = fs.root_inode()
    root.create("a", FileType.FILE, 0o644).write_at(0, b"data")
    sub = root.create("d", FileType.DIR, 0o755)
    root.move("a", sub, "b")
    assert (tmp_path / "d" / "b").read_bytes() == b"data"
    assert _kind(lambda: root.find("a")) is ErrorKind.ENTRY_NOT_FOUND


def test_entries(fs):
    root = fs.root_inode()
    file = root.create("x", FileType.FILE, 0o644)
    root.create("y", FileType.DIR, 0o755)
    assert sorted(root.list()) == ["x", "y"]
    assert _kind(lambda: root.get_entry(2)) is ErrorKind.ENTRY_NOT_FOUND
    assert _kind(lambda: file.get_entry(0)) is ErrorKind.NOT_DIR


def test_file_ops_on_dir(fs):
    root = fs.root_inode()
    assert _kind(lambda: root.read_at(0, 1)) is ErrorKind.NOT_FILE
    assert _kind(lambda: root.resize(0)) is ErrorKind.NOT_FILE


def test_removed_file(fs):
    root = fs.root_inode()
    file = root.create("a", FileType.FILE, 0o644)
    root.unlink("a")
    assert _kind(lambda: file.read_at(0, 1)) is ErrorKind.ENTRY_NOT_FOUND
    assert _kind(file.metadata) is ErrorKind.ENTRY_NOT_FOUND


def test_info_and_fs(fs):
    assert fs.info().magic == HOSTFS_MAGIC
    root = fs.root_inode()
    assert root.fs() is fs
    assert root.lookup("/").fs() is fs