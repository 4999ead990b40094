[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rcorefs"
version = "0.1.0"
description = "Pure-Python virtual file system layer with RAM, host, device and mount file systems and SFS on-disk structures"
requires-python = ">=3.10"
dependencies = []
keywords = ["filesystem", "vfs", "sfs", "ramfs", "devfs", "inode"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rcorefs"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
