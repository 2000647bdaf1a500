"""Base filesystem interfaces and dataclasses.

Defines the capability set every filesystem implementation (MemoryFS, OSFS,
SubdirFS) provides, the optional symlink capability, and the metadata
record returned by stat() and read_dir().
"""

from __future__ import annotations

import stat as stat_mod
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol, runtime_checkable


class SymlinkNotSupportedError(Exception):
    """Raised by symlink() and readlink() when the underlying filesystem
    has no symlink capability.

    Deliberately not an ``OSError``: it reports a missing capability, not a
    failed filesystem operation.
    """

    def __init__(self, message: str = "symlink not supported"):
        super().__init__(message)


@dataclass
class FileInfo:
    """Metadata for a single file or directory.

    Attributes:
        name: Base name of the file or directory.
        size: Size in bytes (0 for directories).
        mode: Full ``st_mode`` bits (file type and permissions).
        mod_time: Last modification time (UTC).
        sys: Backend-specific payload, e.g. the ``os.stat_result``.
    """

    name: str
    size: int
    mode: int
    mod_time: datetime
    sys: Any = None

    @property
    def is_dir(self) -> bool:
        return stat_mod.S_ISDIR(self.mode)

    # os.stat_result-compatible properties

    @property
    def st_size(self) -> int:
        return self.size

    @property
    def st_mode(self) -> int:
        return self.mode

    @property
    def st_mtime(self) -> float:
        return self.mod_time.timestamp()


@runtime_checkable
class File(Protocol):
    """An open, byte-oriented file handle.

    ``name`` is the path the handle was opened with, in the path space of
    the filesystem that returned it.
    """

    name: str

    def read(self, size: int = -1) -> bytes: ...

    def write(self, data: bytes) -> int: ...

    def seek(self, offset: int, whence: int = 0) -> int: ...

    def tell(self) -> int: ...

    def close(self) -> None: ...


@runtime_checkable
class FileSystem(Protocol):
    """Capability set required from every filesystem implementation."""

    def create(self, filename: str) -> File:
        """Create or truncate a file, opened for reading and writing."""
        ...

    def open(self, filename: str) -> File:
        """Open a file for reading."""
        ...

    def open_file(self, filename: str, flags: int, perm: int = 0o666) -> File:
        """Open a file with ``os.O_*`` flags and permission bits."""
        ...

    def temp_file(self, dir: str, prefix: str) -> File:
        """Create a uniquely named file in ``dir`` starting with ``prefix``."""
        ...

    def rename(self, from_: str, to: str) -> None:
        """Rename/move a file or directory."""
        ...

    def remove(self, filename: str) -> None:
        """Remove a file or an empty directory."""
        ...

    def mkdir_all(self, filename: str, perm: int = 0o755) -> None:
        """Create a directory and any missing parents."""
        ...

    def stat(self, filename: str) -> FileInfo:
        """Get file metadata."""
        ...

    def read_dir(self, path: str) -> list[FileInfo]:
        """List the immediate children of a directory, sorted by name."""
        ...

    def join(self, *elem: str) -> str:
        """Join path elements using this filesystem's rules."""
        ...

    def dir(self, path: str) -> FileSystem:
        """Return a filesystem rooted at ``path``."""
        ...

    def base(self) -> str:
        """Return the path this filesystem is rooted at."""
        ...


@runtime_checkable
class Symlinker(Protocol):
    """Optional symlink capability.

    Callers check ``isinstance(fs, Symlinker)`` before relying on it.
    """

    def symlink(self, target: str, link: str) -> None:
        """Create ``link`` pointing at ``target``."""
        ...

    def readlink(self, link: str) -> str:
        """Return the target of a symbolic link."""
        ...
