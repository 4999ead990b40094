# rcorefs

A small virtual file system layer written in Python, with several file
systems built on it:

- `rcorefs.ramfs.RamFS`: an in-memory file system.
- `rcorefs.hostfs.HostFS`: a view onto a directory of the host.
- `rcorefs.devfs.DevFS`: a device file system, with the `NullINode` and
  `ZeroINode` devices.
- `rcorefs.mountfs.MountFS`: mounts file systems on directories of other ones.

All of them share the interfaces in `rcorefs.vfs`: `FileSystem`, `INode`,
`Metadata`, `FsInfo`, `FileType`, `Timespec` and the `FsError` exception,
whose `kind` is an `ErrorKind`. `INode` also provides `list()`, `lookup()`
and `lookup_follow()` for every file system, the latter following up to a
given number of symbolic links.

`rcorefs.imaging` copies a host directory tree into any file system
(`zip_dir`) and back out (`unzip_dir`).

`rcorefs.sfs_structs` holds the on-disk layout of the Simple File System:
`SuperBlock`, `DiskINode` and `DiskEntry` with `pack()` and `unpack()`,
the `SfsFileType` enum, the layout constants (`BLKSIZE`, `NDIRECT`,
`DIRENT_SIZE`, ...) and `FileDevice`, a block device over a seekable
binary file.

## Install

```
pip install .
```

## Library use

```python
from rcorefs.ramfs import RamFS
from rcorefs.vfs import FileType

fs = RamFS()
root = fs.root_inode()
docs = root.create("docs", FileType.DIR, 0o755)
note = docs.create("note.txt", FileType.FILE, 0o644)
note.write_at(0, b"hello")
assert root.lookup("docs/note.txt").read_at(0, 5) == b"hello"
print(root.list())  # ['.', '..', 'docs']
```

Operations that fail raise `FsError`:

```python
from rcorefs.vfs import ErrorKind, FsError

try:
    root.lookup("missing")
except FsError as err:
    assert err.kind is ErrorKind.ENTRY_NOT_FOUND
```

Mounting one file system inside another:

```python
from rcorefs.mountfs import MountFS

rootfs = MountFS(RamFS())
top = rootfs.mountpoint_root_inode()
mnt = top.create("mnt", FileType.DIR, 0o777)
mnt.mount(RamFS())
```

Copying a host tree into a file system and out again:

```python
import os
from rcorefs.imaging import zip_dir, unzip_dir

fs = RamFS()
zip_dir("some/source/dir", fs.root_inode())
os.mkdir("copy")
unzip_dir("copy", fs.root_inode())
```

Regular files, directories and symbolic links are copied; entries are
created in name order.

## What this package does not do

- It has no command line tool; everything is used from Python code.
- There is no Simple File System engine: `rcorefs.sfs_structs` can encode
  and decode its superblock, inodes and directory entries, but nothing here
  creates, opens or modifies a complete SFS image. Storage is in memory
  (`RamFS`) or in a host directory (`HostFS`).

## Tests

```
pip install .[test]
pytest
```