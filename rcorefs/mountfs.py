"""A file system layer on which other file systems can be mounted at directories."""

from __future__ import annotations

import itertools
import logging
import threading
from typing import Optional

from .vfs import (
    ErrorKind,
    FileSystem,
    FileType,
    FsError,
    FsInfo,
    INode,
    Metadata,
)

_log = logging.getLogger(__name__)


class MountFS(FileSystem):
    """Wraps a file system so that others can be mounted on its directories.

    Mounted children are kept by the inode id of the directory they cover.
    """

    def __init__(self, fs: FileSystem, mountpoint: Optional[MNode] = None) -> None:
        self._inner = fs
        self._mountpoints: dict[int, MountFS] = {}
        self._self_mountpoint = mountpoint
        self._lock = threading.RLock()

    def mountpoint_root_inode(self) -> MNode:
        """Return the root of the wrapped file system as an ``MNode``."""
        return MNode(self._inner.root_inode(), self)

    def _mounted_at(self, inode_id: int) -> Optional[MountFS]:
        with self._lock:
            return self._mountpoints.get(inode_id)

    def _attach(self, inode_id: int, fs: MountFS) -> None:
        with self._lock:
            self._mountpoints[inode_id] = fs

    def _detach(self, inode_id: int) -> None:
        with self._lock:
            self._mountpoints.pop(inode_id, None)

    def sync(self) -> None:
        self._inner.sync()
        with self._lock:
            children = list(self._mountpoints.values())
        for child in children:
            child.sync()

    def root_inode(self) -> INode:
        if self._self_mountpoint is not None:
            return self._self_mountpoint.vfs.root_inode()
        return self.mountpoint_root_inode()

    def info(self) -> FsInfo:
        return self._inner.info()


class MNode(INode):
    """An inode seen through a ``MountFS``; lookups cross mount points."""

    def __init__(self, inode: INode, vfs: MountFS) -> None:
        self.inode = inode
        self.vfs = vfs

    def __repr__(self) -> str:
        return f"MNode(inode={self.inode!r})"

    def mount(self, fs: FileSystem) -> MountFS:
        """Mount ``fs`` on this directory and return the new mount."""
        metadata = self.inode.metadata()
        if metadata.type_ is not FileType.DIR:
            raise FsError(ErrorKind.NOT_DIR)
        new_fs = MountFS(fs, self)
        self.vfs._attach(metadata.inode, new_fs)
        return new_fs

    def umount(self) -> None:
        """Detach the file system whose root this node is from its mount point."""
        metadata = self.inode.metadata()
        if metadata.type_ is not FileType.DIR:
            raise FsError(ErrorKind.NOT_DIR)
        if not self._is_mountpoint_root():
            raise FsError(ErrorKind.NOT_MOUNT_POINT)
        mountpoint = self.vfs._self_mountpoint
        if mountpoint is None:
            raise FsError(ErrorKind.PERM_ERROR)
        self.vfs.sync()
        mountpoint.vfs._detach(mountpoint.metadata().inode)

    def _overlaid_inode(self) -> MNode:
        """Root of the file system mounted here, or this node if there is none."""
        sub_vfs = self.vfs._mounted_at(self.metadata().inode)
        if sub_vfs is not None:
            return sub_vfs.mountpoint_root_inode()
        return self

    def _is_mountpoint_root(self) -> bool:
        root_id = self.inode.fs().root_inode().metadata().inode
        return root_id == self.inode.metadata().inode

    def create(self, name: str, type_: FileType, mode: int) -> MNode:
        return MNode(self.inode.create(name, type_, mode), self.vfs)

    def find(self, name: str, root: bool = False) -> MNode:
        """Find ``name`` in this directory, crossing mount points.

        With ``root`` set, going up from this node stays here.
        """
        if name in ("", "."):
            return self
        if name == "..":
            if root:
                return self
            if self._is_mountpoint_root():
                mountpoint = self.vfs._self_mountpoint
                if mountpoint is None:
                    return self
                return mountpoint.find("..", root)
            return MNode(self.inode.find(name), self.vfs)
        below = self._overlaid_inode()
        return MNode(below.inode.find(name), below.vfs)._overlaid_inode()

    def find_name_by_child(self, child: MNode) -> str:
        """Return the name under which ``child`` appears in this directory."""
        child_id = child.inode.metadata().inode
        for index in itertools.count():
            name = self.inode.get_entry(index)
            if name in (".", ".."):
                continue
            queryback = self.find(name)._overlaid_inode()
            _log.debug("checking name %s", name)
            if queryback.vfs is child.vfs and queryback.inode.metadata().inode == child_id:
                return name
        raise FsError(ErrorKind.ENTRY_NOT_FOUND)

    def read_at(self, offset: int, size: int) -> bytes:
        return self.inode.read_at(offset, size)

    def write_at(self, offset: int, data: bytes) -> int:
        return self.inode.write_at(offset, data)

    def metadata(self) -> Metadata:
        return self.inode.metadata()

    def set_metadata(self, metadata: Metadata) -> None:
        self.inode.set_metadata(metadata)

    def sync_all(self) -> None:
        self.inode.sync_all()

    def sync_data(self) -> None:
        self.inode.sync_data()

    def resize(self, length: int) -> None:
        self.inode.resize(length)

    def link(self, name: str, other: INode) -> None:
        if not isinstance(other, MNode):
            raise FsError(ErrorKind.NOT_SAME_FS)
        self.inode.link(name, other.inode)

    def unlink(self, name: str) -> None:
        inode_id = self.inode.find(name).metadata().inode
        if self.vfs._mounted_at(inode_id) is not None:
            raise FsError(ErrorKind.BUSY)
        self.inode.unlink(name)

    def move(self, old_name: str, target: INode, new_name: str) -> None:
        if not isinstance(target, MNode):
            raise FsError(ErrorKind.NOT_SAME_FS)
        self.inode.move(old_name, target.inode, new_name)

    def get_entry(self, index: int) -> str:
        return self.inode.get_entry(index)

    def io_control(self, cmd: int, data: int) -> None:
        self.inode.io_control(cmd, data)

    def fs(self) -> FileSystem:
        return self.vfs