"""An in-memory file system."""

from __future__ import annotations

import dataclasses
import itertools
import threading
from contextlib import ExitStack, contextmanager
from typing import Iterator

from .vfs import (
    ErrorKind,
    FileSystem,
    FileType,
    FsError,
    FsInfo,
    INode,
    Metadata,
)

RAMFS_MAGIC = 0x2F8D_BE2C
_MAX_FNAME_LEN = 255
_BLKSIZE = 4096
_SPECIAL_NAMES = (".", "..", "")


class RamFS(FileSystem):
    """A file system that keeps every file and directory in memory."""

    def __init__(self) -> None:
        self._ids = itertools.count(1)
        self._id_lock = threading.Lock()
        root_meta = Metadata(
            inode=self._alloc_inode_id(),
            type_=FileType.DIR,
            mode=0o777,
            nlinks=1,
        )
        self._root = RamINode(self, None, root_meta)

    def _alloc_inode_id(self) -> int:
        with self._id_lock:
            return next(self._ids)

    def sync(self) -> None:
        return None

    def root_inode(self) -> INode:
        return self._root

    def info(self) -> FsInfo:
        return FsInfo(
            magic=RAMFS_MAGIC,
            bsize=_BLKSIZE,
            frsize=_BLKSIZE,
            namemax=_MAX_FNAME_LEN,
        )


@contextmanager
def _lock_two(first: RamINode, second: RamINode) -> Iterator[None]:
    """Hold the locks of two inodes, taken in inode-id order."""
    ordered = sorted((first, second), key=lambda node: node._extra.inode)
    with ExitStack() as stack:
        for node in ordered:
            stack.enter_context(node._lock)
        yield


class RamINode(INode):
    """A file, directory or link held in a RamFS."""

    def __init__(self, fs: RamFS, parent: RamINode | None, extra: Metadata) -> None:
        self._fs = fs
        self._parent = parent if parent is not None else self
        self._children: dict[str, RamINode] = {}
        self._content = bytearray()
        self._extra = extra
        self._lock = threading.RLock()

    def _require_data(self) -> None:
        if self._extra.type_ not in (FileType.FILE, FileType.SYMLINK):
            raise FsError(ErrorKind.NOT_FILE)

    def _require_dir(self) -> None:
        if self._extra.type_ is not FileType.DIR:
            raise FsError(ErrorKind.NOT_DIR)

    def read_at(self, offset: int, size: int) -> bytes:
        with self._lock:
            self._require_data()
            return bytes(self._content[offset:offset + size])

    def write_at(self, offset: int, data: bytes) -> int:
        with self._lock:
            self._require_data()
            end = offset + len(data)
            if end > len(self._content):
                self._content.extend(bytes(end - len(self._content)))
            self._content[offset:end] = data
            return len(data)

    def metadata(self) -> Metadata:
        with self._lock:
            return dataclasses.replace(self._extra, size=len(self._content))

    def set_metadata(self, metadata: Metadata) -> None:
        with self._lock:
            self._extra.atime = metadata.atime
            self._extra.mtime = metadata.mtime
            self._extra.ctime = metadata.ctime
            self._extra.mode = metadata.mode
            self._extra.uid = metadata.uid
            self._extra.gid = metadata.gid

    def resize(self, length: int) -> None:
        with self._lock:
            self._require_data()
            if length < len(self._content):
                del self._content[length:]
            else:
                self._content.extend(bytes(length - len(self._content)))

    def create2(self, name: str, type_: FileType, mode: int, data: int) -> INode:
        with self._lock:
            self._require_dir()
            if name in _SPECIAL_NAMES or name in self._children:
                raise FsError(ErrorKind.ENTRY_EXIST)
            extra = Metadata(
                inode=self._fs._alloc_inode_id(),
                type_=type_,
                mode=mode,
                nlinks=1,
                rdev=data,
            )
            child = RamINode(self._fs, self, extra)
            self._children[name] = child
            return child

    def link(self, name: str, other: INode) -> None:
        if not isinstance(other, RamINode):
            raise FsError(ErrorKind.NOT_SAME_FS)
        with _lock_two(self, other):
            self._require_dir()
            if other._extra.type_ is FileType.DIR:
                raise FsError(ErrorKind.IS_DIR)
            if name in _SPECIAL_NAMES or name in self._children:
                raise FsError(ErrorKind.ENTRY_EXIST)
            self._children[name] = other
            other._extra.nlinks += 1

    def unlink(self, name: str) -> None:
        self._require_dir()
        if name in _SPECIAL_NAMES:
            raise FsError(ErrorKind.IS_DIR)
        other = self.find(name)
        if not isinstance(other, RamINode):
            raise FsError(ErrorKind.NOT_SAME_FS)
        if other._children:
            raise FsError(ErrorKind.DIR_NOT_EMPTY)
        with _lock_two(self, other):
            other._extra.nlinks -= 1
            self._children.pop(name, None)

    def move(self, old_name: str, target: INode, new_name: str) -> None:
        if old_name in _SPECIAL_NAMES or new_name in _SPECIAL_NAMES:
            raise FsError(ErrorKind.IS_DIR)
        inode = self.find(old_name)
        if not isinstance(inode, RamINode) or not isinstance(target, RamINode):
            raise FsError(ErrorKind.NOT_SAME_FS)
        if target._extra.type_ is not FileType.DIR:
            raise FsError(ErrorKind.NOT_DIR)
        # A directory cannot become a child of itself.
        if inode._extra.inode == target._extra.inode:
            raise FsError(ErrorKind.INVALID_PARAM)

        dest = target._children.get(new_name)
        if dest is not None:
            if dest._extra.inode == inode._extra.inode:
                return
            old_is_dir = inode._extra.type_ is FileType.DIR
            dest_is_dir = dest._extra.type_ is FileType.DIR
            if old_is_dir and dest_is_dir:
                if dest._children:
                    raise FsError(ErrorKind.DIR_NOT_EMPTY)
            elif old_is_dir:
                raise FsError(ErrorKind.NOT_DIR)
            elif dest_is_dir:
                raise FsError(ErrorKind.IS_DIR)
            target.unlink(new_name)

        with _lock_two(self, target):
            target._children[new_name] = inode
            self._children.pop(old_name, None)

    def find(self, name: str) -> INode:
        with self._lock:
            self._require_dir()
            if name in (".", ""):
                return self
            if name == "..":
                return self._parent
            try:
                return self._children[name]
            except KeyError:
                raise FsError(ErrorKind.ENTRY_NOT_FOUND) from None

    def get_entry(self, index: int) -> str:
        with self._lock:
            self._require_dir()
            if index == 0:
                return "."
            if index == 1:
                return ".."
            names = sorted(self._children)
            if 0 <= index - 2 < len(names):
                return names[index - 2]
            raise FsError(ErrorKind.ENTRY_NOT_FOUND)

    def fs(self) -> FileSystem:
        return self._fs