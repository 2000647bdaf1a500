"""Real filesystem restricted to a root directory.

OSFS maps its own path space onto a host directory, chroot-style: ``/x``
and ``x`` both refer to ``<root>/x``. It implements the symlink capability.
"""

from __future__ import annotations

import logging
import os
import stat as stat_mod
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from . import pathutil
from .base import FileInfo
from .subdir import SubdirFS

logger = logging.getLogger(__name__)


def _fdopen_mode(flags: int) -> str:
    access = flags & (os.O_RDONLY | os.O_WRONLY | os.O_RDWR)
    append = flags & os.O_APPEND
    if access == os.O_WRONLY:
        return "ab" if append else "wb"
    if access == os.O_RDWR:
        return "ab+" if append else "rb+"
    return "rb"


def _file_info(name: str, st: os.stat_result) -> FileInfo:
    return FileInfo(
        name=name,
        size=0 if stat_mod.S_ISDIR(st.st_mode) else st.st_size,
        mode=st.st_mode,
        mod_time=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        sys=st,
    )


class OSFile:
    """Host file object reporting the OSFS-relative name it was opened with.

    Attributes:
        name: Path of the file inside the OSFS.
    """

    def __init__(self, name: str, file: Any):
        self.name = name
        self._file = file

    def __getattr__(self, attr: str) -> Any:
        if attr == "_file":
            raise AttributeError(attr)
        return getattr(self._file, attr)

    def __enter__(self) -> OSFile:
        return self

    def __exit__(self, *args: object) -> None:
        self._file.close()

    def __repr__(self) -> str:
        return f"OSFile(name={self.name!r})"


class OSFS:
    """FileSystem backed by a host directory.

    Paths never climb above ``root``: ``..`` at the top is dropped during
    normalization. Host errors (``FileNotFoundError``, ``IsADirectoryError``,
    ...) propagate unchanged.
    """

    def __init__(self, root: str):
        """Initialize the filesystem.

        Args:
            root: Absolute path to the root directory. Created if missing.

        Raises:
            ValueError: If root is not absolute or is not a directory.
        """
        root_path = Path(root)
        if not root_path.is_absolute():
            raise ValueError(f"Root must be absolute path: {root}")

        self.root = root_path.resolve()
        if not self.root.exists():
            logger.debug("creating root directory %s", self.root)
            self.root.mkdir(parents=True, exist_ok=True)
        if not self.root.is_dir():
            raise ValueError(f"Root must be a directory: {root}")

    def _abs(self, filename: str) -> str:
        """Map a path of this filesystem onto the host."""
        rel = pathutil.join("/", filename).lstrip("/")
        return os.path.join(self.root, rel) if rel else str(self.root)

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    def create(self, filename: str) -> OSFile:
        return self.open_file(filename, os.O_RDWR | os.O_CREAT | os.O_TRUNC, 0o666)

    def open(self, filename: str) -> OSFile:
        return self.open_file(filename, os.O_RDONLY, 0)

    def open_file(self, filename: str, flags: int, perm: int = 0o666) -> OSFile:
        real = self._abs(filename)
        if flags & os.O_CREAT:
            os.makedirs(os.path.dirname(real), exist_ok=True)

        fd = os.open(real, flags | getattr(os, "O_BINARY", 0), perm)
        try:
            f = os.fdopen(fd, _fdopen_mode(flags))
        except Exception:
            os.close(fd)
            raise
        return OSFile(filename, f)

    def temp_file(self, dir: str, prefix: str) -> OSFile:
        real_dir = self._abs(dir)
        os.makedirs(real_dir, exist_ok=True)
        fd, real = tempfile.mkstemp(prefix=prefix, dir=real_dir)
        return OSFile(self.join(dir, os.path.basename(real)), os.fdopen(fd, "rb+"))

    def rename(self, from_: str, to: str) -> None:
        dst = self._abs(to)
        os.makedirs(os.path.dirname(dst), exist_ok=True)
        os.rename(self._abs(from_), dst)

    def remove(self, filename: str) -> None:
        real = self._abs(filename)
        if stat_mod.S_ISDIR(os.lstat(real).st_mode):
            os.rmdir(real)
        else:
            os.remove(real)

    # -------------------------------------------------------------------------
    # Directories and metadata
    # -------------------------------------------------------------------------

    def mkdir_all(self, filename: str, perm: int = 0o755) -> None:
        os.makedirs(self._abs(filename), mode=perm, exist_ok=True)

    def stat(self, filename: str) -> FileInfo:
        real = self._abs(filename)
        return _file_info(pathutil.base_name(pathutil.join("/", filename)), os.stat(real))

    def read_dir(self, path: str) -> list[FileInfo]:
        result = []
        with os.scandir(self._abs(path)) as entries:
            for entry in entries:
                try:
                    st = entry.stat()
                except FileNotFoundError:
                    # dangling symlink
                    st = entry.stat(follow_symlinks=False)
                result.append(_file_info(entry.name, st))
        return sorted(result, key=lambda x: x.name)

    def join(self, *elem: str) -> str:
        return pathutil.join(*elem)

    def dir(self, path: str) -> SubdirFS:
        return SubdirFS(self, self.join(self.base(), path))

    def base(self) -> str:
        return "/"

    # -------------------------------------------------------------------------
    # Symlinks
    # -------------------------------------------------------------------------

    def symlink(self, target: str, link: str) -> None:
        """Create ``link`` pointing at ``target``, creating parent directories.

        An absolute ``target`` is taken inside this filesystem's root.
        """
        real_link = self._abs(link)
        os.makedirs(os.path.dirname(real_link), exist_ok=True)
        if pathutil.is_abs(target):
            target = self._abs(target)
        os.symlink(target, real_link)

    def readlink(self, link: str) -> str:
        """Return the target of ``link``.

        Absolute targets inside the root come back as ``/``-rooted paths of
        this filesystem. An absolute target outside the root (a link made
        on the host, not through this filesystem) is returned as the raw
        host path and logged. It cannot be told apart from a path of this
        filesystem, so a SubdirFS on top re-roots it like any other
        absolute target.
        """
        target = os.readlink(self._abs(link))
        if not os.path.isabs(target):
            return target
        root = str(self.root)
        if target != root and not target.startswith(root + os.sep):
            logger.debug("symlink %r points outside root %s: %r", link, root, target)
            return target
        return pathutil.join("/", target[len(root):])

    def __repr__(self) -> str:
        return f"OSFS(root={str(self.root)!r})"
