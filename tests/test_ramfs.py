import pytest

from rcorefs.devfs import NullINode
from rcorefs.ramfs import RAMFS_MAGIC, RamFS
from rcorefs.vfs import ErrorKind, FileType, FsError, Timespec


@pytest.fixture
def fs():
    return RamFS()


@pytest.fixture
def root(fs):
    return fs.root_inode()


def expect(kind, func, *args):
    with pytest.raises(FsError) as info:
        func(*args)
    assert info.value.kind is kind


def test_info_magic(fs):
    info = fs.info()
    assert info.magic == RAMFS_MAGIC
    assert info.bsize == 4096


def test_write_then_read(root):
    f = root.create("f", FileType.FILE, 0o644)
    assert f.write_at(0, b"hello world") == 11
    assert f.read_at(0, 5) == b"hello"
    assert f.read_at(6, 100) == b"world"
    assert f.metadata().size == len(b"hello world")


def test_read_past_end_is_empty(root):
    f = root.create("f", FileType.FILE, 0o644)
    f.write_at(0, b"abc")
    assert f.read_at(10, 4) == b""


def test_write_with_gap_fills_zeros(root):
    f = root.create("f", FileType.FILE, 0o644)
    f.write_at(4, b"xy")
    assert f.read_at(0, 10) == b"\0\0\0\0xy"


def test_resize_grow_and_shrink(root):
    f = root.create("f", FileType.FILE, 0o644)
    f.write_at(0, b"abcdef")
    f.resize(3)
    assert f.read_at(0, 10) == b"abc"
    f.resize(5)
    assert f.read_at(0, 10) == b"abc\0\0"


def test_dir_is_not_file(root):
    expect(ErrorKind.NOT_FILE, root.read_at, 0, 1)
    expect(ErrorKind.NOT_FILE, root.write_at, 0, b"x")
    expect(ErrorKind.NOT_FILE, root.resize, 1)


def test_create_rejects_existing_and_special_names(root):
    root.create("f", FileType.FILE, 0o644)
    expect(ErrorKind.ENTRY_EXIST, root.create, "f", FileType.FILE, 0o644)
    for name in (".", "..", ""):
        expect(ErrorKind.ENTRY_EXIST, root.create, name, FileType.FILE, 0o644)


def test_create_in_file_fails(root):
    f = root.create("f", FileType.FILE, 0o644)
    expect(ErrorKind.NOT_DIR, f.create, "g", FileType.FILE, 0o644)
    expect(ErrorKind.NOT_DIR, f.find, "g")


def test_create2_records_rdev(root):
    dev = root.create2("dev", FileType.CHAR_DEVICE, 0o600, 77)
    assert dev.metadata().rdev == 77
    assert dev.metadata().type_ is FileType.CHAR_DEVICE
    assert dev.metadata().mode == 0o600


def test_inode_ids_unique(root):
    ids = {root.metadata().inode}
    for name in ("a", "b", "c"):
        ids.add(root.create(name, FileType.FILE, 0).metadata().inode)
    assert len(ids) == 4


def test_find_dot_and_dotdot(root):
    d = root.create("d", FileType.DIR, 0o755)
    assert root.find(".") is root
    assert root.find("..") is root
    assert d.find("..") is root
    assert d.find("") is d
    expect(ErrorKind.ENTRY_NOT_FOUND, root.find, "missing")


def test_entries_sorted(root):
    root.create("b", FileType.FILE, 0)
    root.create("a", FileType.FILE, 0)
    assert root.list() == [".", "..", "a", "b"]
    expect(ErrorKind.ENTRY_NOT_FOUND, root.get_entry, 4)


def test_lookup_path(root):
    d = root.create("d", FileType.DIR, 0o755)
    f = d.create("f", FileType.FILE, 0o644)
    assert root.lookup("d/f") is f
    assert d.lookup("../d/f") is f


def test_link_shares_content_and_counts(root):
    f = root.create("f", FileType.FILE, 0o644)
    before = f.metadata().nlinks
    root.link("g", f)
    assert f.metadata().nlinks == before + 1
    f.write_at(0, b"data")
    assert root.find("g").read_at(0, 4) == b"data"


def test_link_errors(root):
    f = root.create("f", FileType.FILE, 0o644)
    d = root.create("d", FileType.DIR, 0o755)
    expect(ErrorKind.IS_DIR, root.link, "dd", d)
    expect(ErrorKind.ENTRY_EXIST, root.link, "f", f)
    expect(ErrorKind.ENTRY_EXIST, root.link, ".", f)
    expect(ErrorKind.NOT_DIR, f.link, "x", f)
    expect(ErrorKind.NOT_SAME_FS, root.link, "null", NullINode())


def test_unlink(root):
    f = root.create("f", FileType.FILE, 0o644)
    before = f.metadata().nlinks
    root.unlink("f")
    assert f.metadata().nlinks == before - 1
    expect(ErrorKind.ENTRY_NOT_FOUND, root.find, "f")
    expect(ErrorKind.ENTRY_NOT_FOUND, root.unlink, "f")


def test_unlink_errors(root):
    d = root.create("d", FileType.DIR, 0o755)
    d.create("inner", FileType.FILE, 0)
    expect(ErrorKind.DIR_NOT_EMPTY, root.unlink, "d")
    expect(ErrorKind.IS_DIR, root.unlink, ".")
    expect(ErrorKind.IS_DIR, root.unlink, "..")
    f = d.find("inner")
    expect(ErrorKind.NOT_DIR, f.unlink, "x")


def test_move_rename_in_place(root):
    f = root.create("f", FileType.FILE, 0o644)
    root.move("f", root, "g")
    assert root.find("g") is f
    expect(ErrorKind.ENTRY_NOT_FOUND, root.find, "f")


def test_move_between_dirs(root):
    d = root.create("d", FileType.DIR, 0o755)
    f = root.create("f", FileType.FILE, 0o644)
    root.move("f", d, "g")
    assert d.find("g") is f
    assert "f" not in root.list()


def test_move_replaces_file(root):
    a = root.create("a", FileType.FILE, 0o644)
    b = root.create("b", FileType.FILE, 0o644)
    before = b.metadata().nlinks
    root.move("a", root, "b")
    assert root.find("b") is a
    assert b.metadata().nlinks == before - 1
    assert root.list() == [".", "..", "b"]


def test_move_same_inode_is_noop(root):
    f = root.create("f", FileType.FILE, 0o644)
    root.link("g", f)
    root.move("f", root, "g")
    assert root.find("f") is f
    assert root.find("g") is f


def test_move_errors(root):
    d = root.create("d", FileType.DIR, 0o755)
    e = root.create("e", FileType.DIR, 0o755)
    e.create("x", FileType.FILE, 0)
    f = root.create("f", FileType.FILE, 0o644)
    expect(ErrorKind.NOT_DIR, root.move, "d", root, "f")
    expect(ErrorKind.IS_DIR, root.move, "f", root, "d")
    expect(ErrorKind.DIR_NOT_EMPTY, root.move, "d", root, "e")
    expect(ErrorKind.INVALID_PARAM, root.move, "d", d, "d2")
    expect(ErrorKind.NOT_DIR, root.move, "d", f, "x")
    expect(ErrorKind.IS_DIR, root.move, ".", root, "x")
    expect(ErrorKind.IS_DIR, root.move, "f", root, "..")
    expect(ErrorKind.NOT_SAME_FS, root.move, "f", NullINode(), "x")


def test_set_metadata(root):
    f = root.create("f", FileType.FILE, 0o644)
    f.write_at(0, b"abc")
    meta = f.metadata()
    meta.mode = 0o600
    meta.uid = 42
    meta.gid = 43
    meta.mtime = Timespec(5, 6)
    meta.size = 999
    f.set_metadata(meta)
    got = f.metadata()
    assert (got.mode, got.uid, got.gid, got.mtime) == (0o600, 42, 43, Timespec(5, 6))
    assert got.size == len(b"abc")


def test_fs_back_reference(fs, root):
    f = root.create("f", FileType.FILE, 0)
    assert f.fs() is fs
    assert root.fs() is fs