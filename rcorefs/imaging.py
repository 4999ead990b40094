"""Copying a host directory tree into a file system and back out."""

from __future__ import annotations

import os
import stat

from .vfs import PATH_MAX, ErrorKind, FileType, FsError, INode

BUF_SIZE = 0x10000
_S_IMASK = 0o777


def zip_dir(path: str | os.PathLike[str], inode: INode) -> None:
    """Copy the host directory ``path`` into the directory ``inode``.

    Entries are created in name order; regular files, directories and
    symbolic links are copied, anything else is skipped.
    """
    for name in sorted(os.listdir(path)):
        entry_path = os.path.join(path, name)
        st = os.lstat(entry_path)
        mode = st.st_mode & _S_IMASK
        if stat.S_ISREG(st.st_mode):
            child = inode.create(name, FileType.FILE, mode)
            with open(entry_path, "rb") as source:
                child.resize(os.fstat(source.fileno()).st_size)
                offset = 0
                while True:
                    chunk = source.read(BUF_SIZE)
                    child.write_at(offset, chunk)
                    offset += len(chunk)
                    if len(chunk) < BUF_SIZE:
                        break
        elif stat.S_ISDIR(st.st_mode):
            child = inode.create(name, FileType.DIR, mode)
            zip_dir(entry_path, child)
        elif stat.S_ISLNK(st.st_mode):
            target = os.fsencode(os.readlink(entry_path))
            child = inode.create(name, FileType.SYMLINK, mode)
            child.resize(len(target))
            child.write_at(0, target)


def unzip_dir(path: str | os.PathLike[str], inode: INode) -> None:
    """Copy the contents of the directory ``inode`` into the host directory ``path``."""
    for name in inode.list()[2:]:
        child = inode.lookup(name)
        target = os.path.join(path, name)
        info = child.metadata()
        perms = info.mode & _S_IMASK
        if info.type_ is FileType.FILE:
            with open(target, "wb") as out:
                offset = 0
                while True:
                    chunk = child.read_at(offset, BUF_SIZE)
                    out.write(chunk)
                    offset += len(chunk)
                    if len(chunk) < BUF_SIZE:
                        break
            os.chmod(target, perms)
        elif info.type_ is FileType.DIR:
            os.mkdir(target)
            unzip_dir(target, child)
            os.chmod(target, perms)
        elif info.type_ is FileType.SYMLINK:
            link_target = child.read_at(0, PATH_MAX).decode("utf-8")
            os.symlink(link_target, target)
        else:
            raise FsError(ErrorKind.NOT_SUPPORTED, f"unsupported file type {info.type_.value}")