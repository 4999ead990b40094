"""A file system backed by a directory on the host."""

from __future__ import annotations

import errno
import logging
import os
import stat
import threading
from contextlib import contextmanager
from typing import BinaryIO, Iterator

from .vfs import (
    ErrorKind,
    FileSystem,
    FileType,
    FsError,
    FsInfo,
    INode,
    Metadata,
    Timespec,
)

HOSTFS_MAGIC = 0x2F8D_BE30

_log = logging.getLogger(__name__)

_ERRNO_KINDS = {
    errno.ENOENT: ErrorKind.ENTRY_NOT_FOUND,
    errno.EEXIST: ErrorKind.ENTRY_EXIST,
    errno.EAGAIN: ErrorKind.AGAIN,
    errno.EINVAL: ErrorKind.INVALID_PARAM,
    errno.ENOTDIR: ErrorKind.NOT_DIR,
    errno.EISDIR: ErrorKind.IS_DIR,
    errno.ENOTEMPTY: ErrorKind.DIR_NOT_EMPTY,
    errno.EXDEV: ErrorKind.NOT_SAME_FS,
    errno.ENOSPC: ErrorKind.NO_DEVICE_SPACE,
}


@contextmanager
def _os_errors() -> Iterator[None]:
    """Turn host OS errors into FsError."""
    try:
        yield
    except OSError as exc:
        kind = _ERRNO_KINDS.get(exc.errno)
        if kind is None:
            raise FsError(ErrorKind.DEVICE_ERROR, exc.errno) from exc
        raise FsError(kind, exc.strerror) from exc


def _timespec(ns: int) -> Timespec:
    sec, nsec = divmod(ns, 1_000_000_000)
    return Timespec(sec, nsec)


def _file_type(mode: int) -> FileType:
    if stat.S_ISDIR(mode):
        return FileType.DIR
    if stat.S_ISLNK(mode):
        return FileType.SYMLINK
    if stat.S_ISCHR(mode):
        return FileType.CHAR_DEVICE
    if stat.S_ISBLK(mode):
        return FileType.BLOCK_DEVICE
    if stat.S_ISFIFO(mode):
        return FileType.NAMED_PIPE
    if stat.S_ISSOCK(mode):
        return FileType.SOCKET
    return FileType.FILE


def _metadata_from_stat(st: os.stat_result) -> Metadata:
    return Metadata(
        dev=st.st_dev,
        inode=st.st_ino,
        size=st.st_size,
        blk_size=getattr(st, "st_blksize", 0),
        blocks=getattr(st, "st_blocks", 0),
        atime=_timespec(st.st_atime_ns),
        mtime=_timespec(st.st_mtime_ns),
        ctime=_timespec(st.st_ctime_ns),
        type_=_file_type(st.st_mode),
        mode=st.st_mode & 0o7777,
        nlinks=st.st_nlink,
        uid=st.st_uid,
        gid=st.st_gid,
        rdev=getattr(st, "st_rdev", 0),
    )


class HostFS(FileSystem):
    """A file system whose root is the host directory ``path``."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self.path = os.fspath(path)

    def sync(self) -> None:
        _log.warning("HostFS: sync is not supported")

    def root_inode(self) -> INode:
        return HNode(self.path, self)

    def info(self) -> FsInfo:
        return FsInfo(magic=HOSTFS_MAGIC)


class HNode(INode):
    """An inode of a HostFS: one path on the host."""

    def __init__(self, path: str, fs: HostFS) -> None:
        self.path = path
        self._fs = fs
        self._file: BinaryIO | None = None
        self._lock = threading.Lock()

    @contextmanager
    def _opened(self) -> Iterator[BinaryIO]:
        """Yield the node's open file, opening it on first use."""
        if not os.path.exists(self.path):
            raise FsError(ErrorKind.ENTRY_NOT_FOUND)
        if not os.path.isfile(self.path):
            raise FsError(ErrorKind.NOT_FILE)
        with self._lock, _os_errors():
            if self._file is None:
                self._file = open(self.path, "r+b", buffering=0)
            yield self._file

    def read_at(self, offset: int, size: int) -> bytes:
        with self._opened() as file:
            file.seek(offset)
            return file.read(size) or b""

    def write_at(self, offset: int, data: bytes) -> int:
        with self._opened() as file:
            file.seek(offset)
            return file.write(data) or 0

    def metadata(self) -> Metadata:
        with _os_errors():
            return _metadata_from_stat(os.stat(self.path))

    def set_metadata(self, metadata: Metadata) -> None:
        _log.warning("HostFS: set_metadata is not supported")

    def sync_all(self) -> None:
        with self._opened() as file:
            os.fsync(file.fileno())

    def sync_data(self) -> None:
        with self._opened() as file:
            getattr(os, "fdatasync", os.fsync)(file.fileno())

    def resize(self, length: int) -> None:
        with self._opened() as file:
            file.truncate(length)

    def create(self, name: str, type_: FileType, mode: int) -> INode:
        new_path = os.path.join(self.path, name)
        if os.path.exists(new_path):
            raise FsError(ErrorKind.ENTRY_EXIST)
        if type_ is FileType.FILE:
            with _os_errors(), open(new_path, "wb"):
                pass
        elif type_ is FileType.DIR:
            with _os_errors():
                os.mkdir(new_path)
        else:
            raise FsError(ErrorKind.NOT_SUPPORTED, "only files and directories can be created")
        return HNode(new_path, self._fs)

    def link(self, name: str, other: INode) -> None:
        if not isinstance(other, HNode):
            raise FsError(ErrorKind.NOT_SAME_FS)
        with _os_errors():
            os.link(other.path, os.path.join(self.path, name))

    def unlink(self, name: str) -> None:
        target = os.path.join(self.path, name)
        with _os_errors():
            if os.path.isfile(target):
                os.remove(target)
            elif os.path.isdir(target):
                os.rmdir(target)
            else:
                raise FsError(ErrorKind.ENTRY_NOT_FOUND)

    def move(self, old_name: str, target: INode, new_name: str) -> None:
        if not isinstance(target, HNode):
            raise FsError(ErrorKind.NOT_SAME_FS)
        with _os_errors():
            os.rename(os.path.join(self.path, old_name), os.path.join(target.path, new_name))

    def find(self, name: str) -> INode:
        new_path = os.path.join(self.path, name)
        if not os.path.exists(new_path):
            raise FsError(ErrorKind.ENTRY_NOT_FOUND)
        return HNode(new_path, self._fs)

    def get_entry(self, index: int) -> str:
        if not os.path.isdir(self.path):
            raise FsError(ErrorKind.NOT_DIR)
        with _os_errors():
            names = os.listdir(self.path)
        if index >= len(names):
            raise FsError(ErrorKind.ENTRY_NOT_FOUND)
        name = names[index]
        try:
            name.encode("utf-8")
        except UnicodeEncodeError:
            raise FsError(ErrorKind.INVALID_PARAM) from None
        return name

    def fs(self) -> FileSystem:
        return self._fs