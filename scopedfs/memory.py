"""In-memory filesystem implementation."""

from __future__ import annotations

import errno as _errno
import io
import os
import random
import stat as stat_mod
import weakref
from datetime import datetime, timezone

from . import pathutil
from .base import FileInfo
from .subdir import SubdirFS

_WRITE_FLAGS = os.O_WRONLY | os.O_RDWR


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryFile:
    """File handle over a MemoryFS entry.

    Buffers content while open and persists it to the filesystem on
    flush() and close(). The handle follows its entry across renames; once
    the entry is removed or replaced, buffered content goes nowhere.

    Attributes:
        name: The path the file was opened with.
    """

    def __init__(self, fs: MemoryFS, path: str, name: str, flags: int):
        """Initialize a handle.

        Args:
            fs: The owning MemoryFS.
            path: Normalized key of the file inside ``fs``.
            name: Path as given by the caller (reported by ``name``).
            flags: ``os.O_*`` flags the file was opened with.
        """
        self._fs = fs
        # None once the entry has been removed or replaced
        self._path: str | None = path
        self.name = name
        self._flags = flags
        self._closed = False
        self._dirty = False
        self._buffer = io.BytesIO(fs.files[path])

        if flags & os.O_APPEND:
            self._buffer.seek(0, io.SEEK_END)
        fs._handles.add(self)

    def readable(self) -> bool:
        return self._flags & os.O_WRONLY == 0

    def writable(self) -> bool:
        return self._flags & _WRITE_FLAGS != 0

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError(f"I/O operation on closed file: {self.name}")

    def read(self, size: int = -1) -> bytes:
        self._check_open()
        if not self.readable():
            raise io.UnsupportedOperation("read")
        return self._buffer.read(size)

    def write(self, data: bytes) -> int:
        self._check_open()
        if not self.writable():
            raise io.UnsupportedOperation("write")
        if self._flags & os.O_APPEND:
            self._buffer.seek(0, io.SEEK_END)
        self._dirty = True
        return self._buffer.write(data)

    def seek(self, offset: int, whence: int = 0) -> int:
        self._check_open()
        return self._buffer.seek(offset, whence)

    def tell(self) -> int:
        self._check_open()
        return self._buffer.tell()

    def truncate(self, size: int | None = None) -> int:
        self._check_open()
        if not self.writable():
            raise io.UnsupportedOperation("truncate")
        self._dirty = True
        return self._buffer.truncate(size)

    def flush(self) -> None:
        """Persist buffered content to the filesystem."""
        self._check_open()
        if self._dirty:
            if self._path is not None:
                self._fs._commit(self._path, self._buffer.getvalue())
            self._dirty = False

    def close(self) -> None:
        if self._closed:
            return
        self.flush()
        self._closed = True
        self._buffer.close()
        self._fs._handles.discard(self)

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> MemoryFile:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"MemoryFile(name={self.name!r})"


class MemoryFS:
    """Simple in-memory filesystem.

    Stores files as ``bytes`` in a plain dict and tracks directories in a
    set. Paths are rooted at ``/``; relative paths are taken from the root.
    Does not implement symlinks.

    Useful for testing and as a lightweight backend to scope with
    ``dir()``.
    """

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}
        self.dirs: set[str] = {"/"}
        self._meta: dict[str, tuple[int, datetime]] = {
            "/": (stat_mod.S_IFDIR | 0o755, _now())
        }
        self._handles: weakref.WeakSet[MemoryFile] = weakref.WeakSet()

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    def create(self, filename: str) -> MemoryFile:
        return self.open_file(filename, os.O_RDWR | os.O_CREAT | os.O_TRUNC, 0o666)

    def open(self, filename: str) -> MemoryFile:
        return self.open_file(filename, os.O_RDONLY, 0)

    def open_file(self, filename: str, flags: int, perm: int = 0o666) -> MemoryFile:
        path = self._resolve(filename)
        if path in self.dirs:
            raise IsADirectoryError(_errno.EISDIR, "Is a directory", filename)

        if path in self.files:
            if flags & os.O_CREAT and flags & os.O_EXCL:
                raise FileExistsError(_errno.EEXIST, "File exists", filename)
            if flags & os.O_TRUNC and flags & _WRITE_FLAGS:
                self._commit(path, b"")
        elif flags & os.O_CREAT:
            self._make_dirs(self._parent(path), 0o755)
            self.files[path] = b""
            self._meta[path] = (stat_mod.S_IFREG | (perm & 0o777), _now())
        else:
            raise self._lookup_error(path, filename)

        return MemoryFile(self, path, filename, flags)

    def temp_file(self, dir: str, prefix: str) -> MemoryFile:
        self.mkdir_all(dir)
        while True:
            name = self.join(dir, f"{prefix}{random.randrange(10**9)}")
            try:
                return self.open_file(name, os.O_RDWR | os.O_CREAT | os.O_EXCL, 0o600)
            except FileExistsError:
                continue

    def rename(self, from_: str, to: str) -> None:
        src = self._resolve(from_)
        dst = self._resolve(to)
        if src == dst:
            return
        if src in self.files:
            if dst in self.dirs:
                raise IsADirectoryError(_errno.EISDIR, "Is a directory", to)
            self._make_dirs(self._parent(dst), 0o755)
            self._detach_handles(dst)
            self.files[dst] = self.files.pop(src)
            self._meta[dst] = self._meta.pop(src)
            self._move_handles(src, dst)
        elif src in self.dirs:
            if src == "/":
                raise OSError(_errno.EBUSY, "Cannot rename root", from_)
            if dst in self.files:
                raise NotADirectoryError(_errno.ENOTDIR, "Not a directory", to)
            if dst.startswith(src + "/"):
                raise OSError(_errno.EINVAL, "Cannot move a directory into itself", to)
            if dst in self.dirs and self._children(dst):
                raise OSError(_errno.ENOTEMPTY, "Directory not empty", to)
            self._make_dirs(self._parent(dst), 0o755)
            src_prefix = src + "/"
            for d in [d for d in self.dirs if d == src or d.startswith(src_prefix)]:
                self.dirs.discard(d)
                self.dirs.add(dst + d[len(src):])
                self._meta[dst + d[len(src):]] = self._meta.pop(d)
            for f in [f for f in self.files if f.startswith(src_prefix)]:
                self.files[dst + f[len(src):]] = self.files.pop(f)
                self._meta[dst + f[len(src):]] = self._meta.pop(f)
            self._move_handles(src, dst)
        else:
            raise self._lookup_error(src, from_)

    def remove(self, filename: str) -> None:
        path = self._resolve(filename)
        if path in self.files:
            del self.files[path]
            del self._meta[path]
            self._detach_handles(path)
        elif path in self.dirs:
            if path == "/":
                raise OSError(_errno.EBUSY, "Cannot remove root", filename)
            if self._children(path):
                raise OSError(_errno.ENOTEMPTY, "Directory not empty", filename)
            self.dirs.discard(path)
            del self._meta[path]
        else:
            raise self._lookup_error(path, filename)

    # -------------------------------------------------------------------------
    # Directories and metadata
    # -------------------------------------------------------------------------

    def mkdir_all(self, filename: str, perm: int = 0o755) -> None:
        self._make_dirs(self._resolve(filename), perm)

    def stat(self, filename: str) -> FileInfo:
        path = self._resolve(filename)
        if path not in self.files and path not in self.dirs:
            raise self._lookup_error(path, filename)
        return self._info(path)

    def read_dir(self, path: str) -> list[FileInfo]:
        """List immediate children of a directory."""
        resolved = self._resolve(path)
        if resolved in self.files:
            raise NotADirectoryError(_errno.ENOTDIR, "Not a directory", path)
        if resolved not in self.dirs:
            raise self._lookup_error(resolved, path)
        return [
            self._info(pathutil.join(resolved, child))
            for child in self._children(resolved)
        ]

    def join(self, *elem: str) -> str:
        return pathutil.join(*elem)

    def dir(self, path: str) -> SubdirFS:
        return SubdirFS(self, self.join(self.base(), path))

    def base(self) -> str:
        return "/"

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _commit(self, path: str, content: bytes) -> None:
        mode = self._meta.get(path, (stat_mod.S_IFREG | 0o644, None))[0]
        self.files[path] = content
        self._meta[path] = (mode, _now())

    def _lookup_error(self, path: str, filename: str) -> OSError:
        """Error for a missing ``path``: ENOTDIR if a parent is a file."""
        parent = self._parent(path)
        while parent != "/":
            if parent in self.files:
                return NotADirectoryError(_errno.ENOTDIR, "Not a directory", filename)
            parent = self._parent(parent)
        return FileNotFoundError(_errno.ENOENT, "No such file or directory", filename)

    def _move_handles(self, src: str, dst: str) -> None:
        src_prefix = src + "/"
        for handle in list(self._handles):
            if handle._path == src or (handle._path or "").startswith(src_prefix):
                handle._path = dst + handle._path[len(src):]

    def _detach_handles(self, path: str) -> None:
        for handle in list(self._handles):
            if handle._path == path:
                handle._path = None

    def _info(self, path: str) -> FileInfo:
        mode, mod_time = self._meta[path]
        size = len(self.files[path]) if path in self.files else 0
        return FileInfo(
            name=pathutil.base_name(path),
            size=size,
            mode=mode,
            mod_time=mod_time,
        )

    def _children(self, path: str) -> list[str]:
        prefix = path.rstrip("/") + "/"
        entries: set[str] = set()
        for p in list(self.files) + list(self.dirs):
            if p.startswith(prefix) and p != path:
                entries.add(p[len(prefix):].split("/")[0])
        return sorted(entries)

    def _make_dirs(self, path: str, perm: int) -> None:
        current = ""
        for part in path.strip("/").split("/"):
            if not part:
                continue
            current += "/" + part
            if current in self.files:
                raise NotADirectoryError(_errno.ENOTDIR, "Not a directory", current)
            if current not in self.dirs:
                self.dirs.add(current)
                self._meta[current] = (stat_mod.S_IFDIR | (perm & 0o777), _now())

    @staticmethod
    def _parent(path: str) -> str:
        return path.rsplit("/", 1)[0] or "/"

    @staticmethod
    def _resolve(path: str) -> str:
        """Normalize a path to an absolute key rooted at ``/``."""
        return pathutil.join("/", path)

    def __repr__(self) -> str:
        return f"MemoryFS(files={len(self.files)}, dirs={len(self.dirs)})"
