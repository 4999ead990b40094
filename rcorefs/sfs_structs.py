"""On-disk structures of the simple file system, and a file-backed block device."""

from __future__ import annotations

import enum
import io
import os
import struct
import threading
from dataclasses import dataclass, field
from typing import BinaryIO

from .vfs import ErrorKind, FileType, FsError

NODEVICE = 100

SFS_MAGIC = 0x2F8D_BE2B
BLKSIZE_LOG2 = 12
BLKSIZE = 1 << BLKSIZE_LOG2
NDIRECT = 12
DEFAULT_INFO = "simple file system"
MAX_INFO_LEN = 31
MAX_FNAME_LEN = 255
MAX_FILE_SIZE = 0xFFFFFFFF
BLKN_SUPER = 0
BLKN_ROOT = 1
BLKN_FREEMAP = 2
BLKBITS = BLKSIZE * 8
ENTRY_SIZE = 4
BLK_NENTRY = BLKSIZE // ENTRY_SIZE
DIRENT_SIZE = MAX_FNAME_LEN + 1 + ENTRY_SIZE
MAX_NBLOCK_DIRECT = NDIRECT
MAX_NBLOCK_INDIRECT = NDIRECT + BLK_NENTRY
MAX_NBLOCK_DOUBLE_INDIRECT = NDIRECT + BLK_NENTRY + BLK_NENTRY * BLK_NENTRY

_SUPER_BLOCK = struct.Struct("<III32sI")
_DISK_INODE = struct.Struct(f"<IHHI{NDIRECT}III4xQ")
_DISK_ENTRY = struct.Struct("<I256s")

SUPER_BLOCK_SIZE = _SUPER_BLOCK.size
DISK_INODE_SIZE = _DISK_INODE.size
DISK_ENTRY_SIZE = _DISK_ENTRY.size


class SfsFileType(enum.IntEnum):
    """File types as stored on disk."""

    INVALID = 0
    FILE = 1
    DIR = 2
    SYMLINK = 3
    CHAR_DEVICE = 4
    BLOCK_DEVICE = 5

    @property
    def vfs_type(self) -> FileType:
        """The matching VFS file type; INVALID has none."""
        try:
            return _TO_VFS[self]
        except KeyError:
            raise FsError(ErrorKind.INVALID_PARAM, "unknown file type") from None


_TO_VFS = {
    SfsFileType.FILE: FileType.FILE,
    SfsFileType.SYMLINK: FileType.SYMLINK,
    SfsFileType.DIR: FileType.DIR,
    SfsFileType.CHAR_DEVICE: FileType.CHAR_DEVICE,
    SfsFileType.BLOCK_DEVICE: FileType.BLOCK_DEVICE,
}


def _encode_fixed(text: str, width: int, too_long: ErrorKind) -> bytes:
    raw = text.encode("utf-8")
    if len(raw) >= width:
        raise FsError(too_long, text)
    return raw


def _decode_fixed(raw: bytes) -> str:
    end = raw.find(b"\0")
    if end >= 0:
        raw = raw[:end]
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        raise FsError(ErrorKind.WRONG_FS, "name is not valid UTF-8") from None


def _unpack(layout: struct.Struct, data: bytes) -> tuple:
    try:
        return layout.unpack_from(data)
    except struct.error as exc:
        raise FsError(ErrorKind.INVALID_PARAM, str(exc)) from None


def _file_type(value: int) -> SfsFileType:
    try:
        return SfsFileType(value)
    except ValueError:
        raise FsError(ErrorKind.WRONG_FS, f"bad file type {value}") from None


@dataclass
class SuperBlock:
    """The on-disk superblock."""

    magic: int
    blocks: int
    unused_blocks: int
    info: str
    freemap_blocks: int

    def check(self) -> bool:
        return self.magic == SFS_MAGIC

    def pack(self) -> bytes:
        info = _encode_fixed(self.info, MAX_INFO_LEN + 1, ErrorKind.INVALID_PARAM)
        return _SUPER_BLOCK.pack(
            self.magic, self.blocks, self.unused_blocks, info, self.freemap_blocks
        )

    @classmethod
    def unpack(cls, data: bytes) -> SuperBlock:
        magic, blocks, unused, info, freemap = _unpack(_SUPER_BLOCK, data)
        return cls(magic, blocks, unused, _decode_fixed(info), freemap)


@dataclass
class DiskINode:
    """An inode as stored on disk."""

    size: int = 0
    type_: SfsFileType = SfsFileType.FILE
    nlinks: int = 0
    blocks: int = 0
    direct: list[int] = field(default_factory=lambda: [0] * NDIRECT)
    indirect: int = 0
    db_indirect: int = 0
    device_inode_id: int = NODEVICE

    @classmethod
    def new_file(cls) -> DiskINode:
        return cls(type_=SfsFileType.FILE)

    @classmethod
    def new_symlink(cls) -> DiskINode:
        return cls(type_=SfsFileType.SYMLINK)

    @classmethod
    def new_dir(cls) -> DiskINode:
        return cls(type_=SfsFileType.DIR)

    @classmethod
    def new_chardevice(cls, device_inode_id: int) -> DiskINode:
        return cls(type_=SfsFileType.CHAR_DEVICE, device_inode_id=device_inode_id)

    def pack(self) -> bytes:
        if len(self.direct) != NDIRECT:
            raise FsError(ErrorKind.INVALID_PARAM, "wrong number of direct blocks")
        return _DISK_INODE.pack(
            self.size,
            int(self.type_),
            self.nlinks,
            self.blocks,
            *self.direct,
            self.indirect,
            self.db_indirect,
            self.device_inode_id,
        )

    @classmethod
    def unpack(cls, data: bytes) -> DiskINode:
        values = _unpack(_DISK_INODE, data)
        size, type_, nlinks, blocks = values[:4]
        direct = list(values[4:4 + NDIRECT])
        indirect, db_indirect, device_inode_id = values[4 + NDIRECT:]
        return cls(
            size=size,
            type_=_file_type(type_),
            nlinks=nlinks,
            blocks=blocks,
            direct=direct,
            indirect=indirect,
            db_indirect=db_indirect,
            device_inode_id=device_inode_id,
        )


@dataclass
class DiskEntry:
    """A directory entry as stored on disk."""

    id: int
    name: str

    def pack(self) -> bytes:
        name = _encode_fixed(self.name, MAX_FNAME_LEN + 1, ErrorKind.NAME_TOO_LONG)
        return _DISK_ENTRY.pack(self.id, name)

    @classmethod
    def unpack(cls, data: bytes) -> DiskEntry:
        entry_id, name = _unpack(_DISK_ENTRY, data)
        return cls(entry_id, _decode_fixed(name))


class FileDevice:
    """A block device backed by a seekable binary file."""

    def __init__(self, file: BinaryIO) -> None:
        self._file = file
        self._lock = threading.Lock()

    def read_at(self, offset: int, size: int) -> bytes:
        """Read up to ``size`` bytes at ``offset``; fewer near the end of the file."""
        with self._lock:
            try:
                self._file.seek(offset)
                return self._file.read(size) or b""
            except OSError as exc:
                raise FsError(ErrorKind.DEVICE_ERROR, exc.errno) from exc

    def write_at(self, offset: int, data: bytes) -> int:
        with self._lock:
            try:
                self._file.seek(offset)
                return self._file.write(data) or 0
            except OSError as exc:
                raise FsError(ErrorKind.DEVICE_ERROR, exc.errno) from exc

    def sync(self) -> None:
        with self._lock:
            try:
                self._file.flush()
                try:
                    fd = self._file.fileno()
                except (AttributeError, io.UnsupportedOperation):
                    return
                os.fsync(fd)
            except OSError as exc:
                raise FsError(ErrorKind.DEVICE_ERROR, exc.errno) from exc