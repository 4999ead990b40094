"""Device file system: a read-only directory of registered device inodes."""

from __future__ import annotations

import threading

from .vfs import (
    ErrorKind,
    FileSystem,
    FileType,
    FsError,
    FsInfo,
    INode,
    Metadata,
    make_rdev,
)

DEVFS_MAGIC = 0x2F8D_BE2D
_MAX_FNAME_LEN = 255
_BLKSIZE = 4096


class DevFS(FileSystem):
    """The file system holding all device files, meant to be mounted at /dev.

    Devices are added and removed with ``add`` and ``remove``; the root
    directory itself cannot be modified.
    """

    def __init__(self) -> None:
        self._devs: dict[str, INode] = {}
        self._lock = threading.RLock()

    def add(self, name: str, dev: INode) -> None:
        with self._lock:
            if name in self._devs:
                raise FsError(ErrorKind.ENTRY_EXIST)
            self._devs[name] = dev

    def remove(self, name: str) -> None:
        with self._lock:
            if self._devs.pop(name, None) is None:
                raise FsError(ErrorKind.ENTRY_NOT_FOUND)

    def sync(self) -> None:
        return None

    def root_inode(self) -> INode:
        return _DevRootINode(self)

    def info(self) -> FsInfo:
        return FsInfo(
            magic=DEVFS_MAGIC,
            bsize=_BLKSIZE,
            frsize=_BLKSIZE,
            namemax=_MAX_FNAME_LEN,
        )

    def _names(self) -> list[str]:
        with self._lock:
            return sorted(self._devs)

    def _device(self, name: str) -> INode:
        with self._lock:
            try:
                return self._devs[name]
            except KeyError:
                raise FsError(ErrorKind.ENTRY_NOT_FOUND) from None

    def _count(self) -> int:
        with self._lock:
            return len(self._devs)


class _DevRootINode(INode):
    """Root directory of a DevFS."""

    def __init__(self, fs: DevFS) -> None:
        self._fs = fs

    def read_at(self, offset: int, size: int) -> bytes:
        raise FsError(ErrorKind.IS_DIR)

    def write_at(self, offset: int, data: bytes) -> int:
        raise FsError(ErrorKind.IS_DIR)

    def metadata(self) -> Metadata:
        return Metadata(
            inode=1,
            size=self._fs._count(),
            type_=FileType.DIR,
            mode=0o666,
            nlinks=2,
        )

    def set_metadata(self, metadata: Metadata) -> None:
        raise FsError(ErrorKind.NOT_SUPPORTED)

    def resize(self, length: int) -> None:
        raise FsError(ErrorKind.IS_DIR)

    def create2(self, name: str, type_: FileType, mode: int, data: int) -> INode:
        raise FsError(ErrorKind.NOT_SUPPORTED)

    def link(self, name: str, other: INode) -> None:
        raise FsError(ErrorKind.NOT_SUPPORTED)

    def unlink(self, name: str) -> None:
        raise FsError(ErrorKind.NOT_SUPPORTED)

    def move(self, old_name: str, target: INode, new_name: str) -> None:
        raise FsError(ErrorKind.NOT_SUPPORTED)

    def find(self, name: str) -> INode:
        if name in ("", ".", ".."):
            return self._fs.root_inode()
        return self._fs._device(name)

    def get_entry(self, index: int) -> str:
        if index == 0:
            return "."
        if index == 1:
            return ".."
        names = self._fs._names()
        if index - 2 < len(names):
            return names[index - 2]
        raise FsError(ErrorKind.ENTRY_NOT_FOUND)

    def fs(self) -> FileSystem:
        return self._fs


class NullINode(INode):
    """/dev/null: reads nothing, swallows every write."""

    def read_at(self, offset: int, size: int) -> bytes:
        return b""

    def write_at(self, offset: int, data: bytes) -> int:
        return len(data)

    def metadata(self) -> Metadata:
        return Metadata(
            dev=1,
            inode=1,
            type_=FileType.CHAR_DEVICE,
            mode=0o666,
            nlinks=1,
            rdev=make_rdev(1, 3),
        )


class ZeroINode(INode):
    """/dev/zero: reads zeros, swallows every write."""

    def read_at(self, offset: int, size: int) -> bytes:
        return bytes(size)

    def write_at(self, offset: int, data: bytes) -> int:
        return len(data)

    def metadata(self) -> Metadata:
        return Metadata(
            dev=1,
            inode=1,
            type_=FileType.CHAR_DEVICE,
            mode=0o666,
            nlinks=1,
            rdev=make_rdev(1, 5),
        )