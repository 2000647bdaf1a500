"""scopedfs: Pluggable filesystems with subdirectory-scoped views."""

from .base import File, FileInfo, FileSystem, Symlinker, SymlinkNotSupportedError
from .config import FSConfig, MemoryFSConfig, OSFSConfig, connect_fs, open_fs
from .memory import MemoryFile, MemoryFS
from .osfs import OSFile, OSFS
from .subdir import ScopedFile, ScopedFileInfo, SubdirFS
from .util import read_file, remove_all, write_file

__all__ = [
    "connect_fs",
    "File",
    "FileInfo",
    "FileSystem",
    "FSConfig",
    "MemoryFile",
    "MemoryFS",
    "MemoryFSConfig",
    "open_fs",
    "OSFile",
    "OSFS",
    "OSFSConfig",
    "read_file",
    "remove_all",
    "ScopedFile",
    "ScopedFileInfo",
    "SubdirFS",
    "Symlinker",
    "SymlinkNotSupportedError",
    "write_file",
]
