"""Core file system types: errors, metadata, the inode interface and the file system interface."""

from __future__ import annotations

import enum
import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

PATH_MAX = 4096


class ErrorKind(enum.Enum):
    """The kinds of failure a file system operation can report."""

    NOT_SUPPORTED = "operation not supported"
    NOT_FILE = "not a file"
    IS_DIR = "is a directory"
    NOT_DIR = "not a directory"
    ENTRY_NOT_FOUND = "entry not found"
    ENTRY_EXIST = "entry already exists"
    NOT_SAME_FS = "not the same file system"
    INVALID_PARAM = "invalid parameter"
    NO_DEVICE_SPACE = "no space left on device"
    DIR_REMOVED = "directory removed"
    DIR_NOT_EMPTY = "directory not empty"
    WRONG_FS = "wrong file system"
    DEVICE_ERROR = "device error"
    IOCTL_ERROR = "ioctl error"
    NO_DEVICE = "no such device"
    AGAIN = "try again"
    SYM_LOOP = "too many symbolic links"
    BUSY = "resource busy"
    INTERRUPTED = "interrupted"
    NOT_MOUNT_POINT = "not a mount point"
    PERM_ERROR = "permission denied"
    NAME_TOO_LONG = "name too long"
    FILE_TOO_BIG = "file too big"


class FsError(Exception):
    """A file system operation failed; ``kind`` tells how."""

    def __init__(self, kind: ErrorKind, detail: object = None) -> None:
        self.kind = kind
        self.detail = detail
        message = kind.value if detail is None else f"{kind.value}: {detail}"
        super().__init__(message)


class FileType(enum.Enum):
    FILE = "file"
    DIR = "dir"
    SYMLINK = "symlink"
    CHAR_DEVICE = "char_device"
    BLOCK_DEVICE = "block_device"
    NAMED_PIPE = "named_pipe"
    SOCKET = "socket"


@dataclass(frozen=True)
class Timespec:
    sec: int = 0
    nsec: int = 0


@dataclass
class Metadata:
    """Attributes of an inode."""

    dev: int = 0
    inode: int = 0
    size: int = 0
    blk_size: int = 0
    blocks: int = 0
    atime: Timespec = field(default_factory=Timespec)
    mtime: Timespec = field(default_factory=Timespec)
    ctime: Timespec = field(default_factory=Timespec)
    type_: FileType = FileType.FILE
    mode: int = 0
    nlinks: int = 0
    uid: int = 0
    gid: int = 0
    rdev: int = 0


@dataclass
class FsInfo:
    """File system statistics, as reported by statfs."""

    magic: int = 0
    bsize: int = 0
    frsize: int = 0
    blocks: int = 0
    bfree: int = 0
    bavail: int = 0
    files: int = 0
    ffree: int = 0
    namemax: int = 0


def make_rdev(major: int, minor: int) -> int:
    """Combine a device's major and minor numbers into one device id."""
    return ((major & 0xFFF) << 8) | (minor & 0xFF)


class INode(ABC):
    """A node in a file system: a file, a directory, a link or a device.

    The defaults suit a node that is not a directory.
    """

    @abstractmethod
    def read_at(self, offset: int, size: int) -> bytes:
        """Read up to ``size`` bytes starting at ``offset``."""

    @abstractmethod
    def write_at(self, offset: int, data: bytes) -> int:
        """Write ``data`` at ``offset`` and return the number of bytes written."""

    @abstractmethod
    def metadata(self) -> Metadata:
        """Return the node's attributes."""

    def set_metadata(self, metadata: Metadata) -> None:
        return None

    def sync_all(self) -> None:
        return None

    def sync_data(self) -> None:
        return None

    def resize(self, length: int) -> None:
        raise FsError(ErrorKind.NOT_SUPPORTED)

    def create(self, name: str, type_: FileType, mode: int) -> INode:
        return self.create2(name, type_, mode, 0)

    def create2(self, name: str, type_: FileType, mode: int, data: int) -> INode:
        raise FsError(ErrorKind.NOT_DIR)

    def link(self, name: str, other: INode) -> None:
        raise FsError(ErrorKind.NOT_DIR)

    def unlink(self, name: str) -> None:
        raise FsError(ErrorKind.NOT_DIR)

    def move(self, old_name: str, target: INode, new_name: str) -> None:
        raise FsError(ErrorKind.NOT_DIR)

    def find(self, name: str) -> INode:
        raise FsError(ErrorKind.NOT_DIR)

    def get_entry(self, index: int) -> str:
        raise FsError(ErrorKind.NOT_DIR)

    def list(self) -> list[str]:
        """Return every entry name of this directory, in entry order."""
        if self.metadata().type_ is not FileType.DIR:
            raise FsError(ErrorKind.NOT_DIR)
        names = []
        for index in itertools.count():
            try:
                names.append(self.get_entry(index))
            except FsError:
                break
        return names

    def lookup(self, path: str) -> INode:
        """Resolve ``path`` from this directory without following symlinks."""
        return self.lookup_follow(path, 0)

    def lookup_follow(self, path: str, follow_times: int) -> INode:
        """Resolve ``path``, following at most ``follow_times`` symlinks."""
        if self.metadata().type_ is not FileType.DIR:
            raise FsError(ErrorKind.NOT_DIR)
        result = self.find(".")
        rest = path
        while rest:
            if result.metadata().type_ is not FileType.DIR:
                raise FsError(ErrorKind.NOT_DIR)
            if rest.startswith("/"):
                result = self.fs().root_inode()
                rest = rest[1:]
                continue
            name, _, rest = rest.partition("/")
            if not name:
                continue
            inode = result.find(name)
            if inode.metadata().type_ is FileType.SYMLINK and follow_times > 0:
                follow_times -= 1
                try:
                    target = inode.read_at(0, PATH_MAX).decode("utf-8")
                except UnicodeDecodeError:
                    raise FsError(ErrorKind.NOT_DIR) from None
                rest = target + rest if target.endswith("/") else f"{target}/{rest}"
            else:
                result = inode
        return result

    def io_control(self, cmd: int, data: int) -> None:
        raise FsError(ErrorKind.NOT_SUPPORTED)

    def fs(self) -> FileSystem:
        raise FsError(ErrorKind.NOT_SUPPORTED)


class FileSystem(ABC):
    """A mounted file system."""

    @abstractmethod
    def sync(self) -> None:
        """Write everything pending to the backing store."""

    @abstractmethod
    def root_inode(self) -> INode:
        """Return the root directory."""

    @abstractmethod
    def info(self) -> FsInfo:
        """Return file system statistics."""