"""Virtual file system layer with RAM, host, device and mount file systems, plus SFS on-disk structures."""

__version__ = "0.1.0"