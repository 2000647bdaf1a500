"""Filesystem view rooted at a subdirectory of another filesystem.

SubdirFS translates every path it receives into the underlying
filesystem's path space (``underlying.join(base, path)``) and re-roots
every name the underlying filesystem reports back into its own space.
Errors from the underlying filesystem are re-raised untouched.
"""

from __future__ import annotations

import logging
from typing import Any

from . import pathutil
from .base import File, FileInfo, FileSystem, Symlinker, SymlinkNotSupportedError

logger = logging.getLogger(__name__)


class ScopedFileInfo:
    """FileInfo whose name is re-rooted into a SubdirFS; everything else
    comes from the wrapped info."""

    def __init__(self, name: str, info: FileInfo):
        self._name = name
        self._info = info

    @property
    def name(self) -> str:
        return self._name

    @property
    def size(self) -> int:
        return self._info.size

    @property
    def mode(self) -> int:
        return self._info.mode

    @property
    def mod_time(self) -> Any:
        return self._info.mod_time

    @property
    def is_dir(self) -> bool:
        return self._info.is_dir

    @property
    def sys(self) -> Any:
        return self._info.sys

    @property
    def st_size(self) -> int:
        return self._info.st_size

    @property
    def st_mode(self) -> int:
        return self._info.st_mode

    @property
    def st_mtime(self) -> float:
        return self._info.st_mtime

    def __repr__(self) -> str:
        return f"ScopedFileInfo(name={self._name!r}, info={self._info!r})"


class ScopedFile:
    """File handle reporting a view-relative name.

    Only ``name`` is overridden. Reads, writes, seeks, close and any other
    attribute go straight to the wrapped handle.

    Attributes:
        owner: The SubdirFS that opened this handle.
        name: Path of the file inside ``owner``.
    """

    def __init__(self, owner: SubdirFS, file: File, name: str):
        self.owner = owner
        self._file = file
        self.name = name

    def read(self, size: int = -1) -> bytes:
        return self._file.read(size)

    def write(self, data: bytes) -> int:
        return self._file.write(data)

    def seek(self, offset: int, whence: int = 0) -> int:
        return self._file.seek(offset, whence)

    def tell(self) -> int:
        return self._file.tell()

    def close(self) -> Any:
        return self._file.close()

    def __getattr__(self, attr: str) -> Any:
        # _file is unset while copy/pickle rebuild the instance
        if attr == "_file":
            raise AttributeError(attr)
        return getattr(self._file, attr)

    def __enter__(self) -> ScopedFile:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"ScopedFile(name={self.name!r}, file={self._file!r})"


class SubdirFS:
    """FileSystem whose root is ``base`` inside ``underlying``.

    Mostly useful for implementing ``dir()`` on other filesystems. The view
    does not own ``underlying`` and never re-validates ``base``; callers
    must not pass paths that climb out of it with ``..``.

    Example:
        >>> mem = MemoryFS()
        >>> view = SubdirFS(mem, "project")
        >>> with view.create("src/main.py") as f:
        ...     _ = f.write(b"print()")
        >>> view.stat("src/main.py").name
        'main.py'
        >>> [fi.name for fi in mem.read_dir("project/src")]
        ['main.py']
    """

    def __init__(self, underlying: FileSystem, base: str):
        self._underlying = underlying
        self._base = base

    @property
    def underlying(self) -> FileSystem:
        return self._underlying

    def underlying_path(self, filename: str) -> str:
        """Translate a view-relative path into the underlying path space."""
        return self.join(self._base, filename)

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    def create(self, filename: str) -> ScopedFile:
        f = self._underlying.create(self.underlying_path(filename))
        return ScopedFile(self, f, filename)

    def open(self, filename: str) -> ScopedFile:
        f = self._underlying.open(self.underlying_path(filename))
        return ScopedFile(self, f, filename)

    def open_file(self, filename: str, flags: int, perm: int = 0o666) -> ScopedFile:
        f = self._underlying.open_file(self.underlying_path(filename), flags, perm)
        return ScopedFile(self, f, filename)

    def temp_file(self, dir: str, prefix: str) -> ScopedFile:
        f = self._underlying.temp_file(self.underlying_path(dir), prefix)
        return ScopedFile(self, f, self.join(dir, pathutil.base_name(f.name)))

    def rename(self, from_: str, to: str) -> None:
        self._underlying.rename(self.underlying_path(from_), self.underlying_path(to))

    def remove(self, filename: str) -> None:
        self._underlying.remove(self.underlying_path(filename))

    # -------------------------------------------------------------------------
    # Directories and metadata
    # -------------------------------------------------------------------------

    def mkdir_all(self, filename: str, perm: int = 0o755) -> None:
        self._underlying.mkdir_all(self.join(self._base, filename), perm)

    def stat(self, filename: str) -> ScopedFileInfo:
        fullpath = self.underlying_path(filename)
        info = self._underlying.stat(fullpath)
        return ScopedFileInfo(pathutil.base_name(fullpath), info)

    def read_dir(self, path: str) -> list[ScopedFileInfo]:
        prefix = self.underlying_path(path)
        return [
            ScopedFileInfo(pathutil.strip_prefix(info.name, prefix), info)
            for info in self._underlying.read_dir(prefix)
        ]

    def join(self, *elem: str) -> str:
        return self._underlying.join(*elem)

    def dir(self, path: str) -> SubdirFS:
        """Return a view rooted at ``path`` inside this one.

        The new view wraps the same underlying filesystem rather than this
        view, so nesting never stacks translation layers.
        """
        return SubdirFS(self._underlying, self.underlying_path(path))

    def base(self) -> str:
        return self._base

    # -------------------------------------------------------------------------
    # Symlinks
    # -------------------------------------------------------------------------

    def _symlinker(self) -> Symlinker:
        if not isinstance(self._underlying, Symlinker):
            logger.debug(
                "%s has no symlink capability", type(self._underlying).__name__
            )
            raise SymlinkNotSupportedError()
        return self._underlying

    def symlink(self, oldname: str, newname: str) -> None:
        """Create ``newname`` as a symbolic link to ``oldname``.

        An absolute ``oldname`` is rooted at this view's base. A relative
        one is kept as-is since it resolves against the link's directory.
        Parent directories of ``newname`` are created by the underlying
        filesystem where it supports that.

        Raises:
            SymlinkNotSupportedError: If the underlying filesystem has no
                symlink capability.
        """
        fs = self._symlinker()
        if pathutil.is_abs(oldname):
            oldname = pathutil.sep + self.underlying_path(oldname).lstrip(pathutil.sep)
        fs.symlink(oldname, self.underlying_path(newname))

    def readlink(self, name: str) -> str:
        """Return the target of the symbolic link ``name``.

        Absolute targets are re-rooted into this view. A target outside the
        view's base comes back with leading ``..`` segments (``/../x``)
        instead of being rejected.

        Raises:
            SymlinkNotSupportedError: If the underlying filesystem has no
                symlink capability.
        """
        fs = self._symlinker()
        target = fs.readlink(self.underlying_path(name))
        if not pathutil.is_abs(target):
            return target

        base = pathutil.sep + self._base.lstrip(pathutil.sep)
        rel = pathutil.relative_to(base, target)
        if rel == ".":
            return pathutil.sep
        if rel == ".." or rel.startswith(".." + pathutil.sep):
            logger.warning(
                "symlink %r points outside %r: %r", name, self._base, target
            )
        return pathutil.sep + rel

    def __repr__(self) -> str:
        return f"SubdirFS(underlying={self._underlying!r}, base={self._base!r})"
