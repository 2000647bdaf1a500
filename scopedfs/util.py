"""Convenience helpers that work on any FileSystem."""

from __future__ import annotations

import os

from .base import FileSystem, Symlinker, SymlinkNotSupportedError


def write_file(fs: FileSystem, filename: str, data: bytes, perm: int = 0o644) -> None:
    """Write ``data`` to ``filename``, creating or truncating it."""
    f = fs.open_file(filename, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, perm)
    try:
        f.write(data)
    finally:
        f.close()


def read_file(fs: FileSystem, filename: str) -> bytes:
    """Read the whole content of ``filename``."""
    f = fs.open(filename)
    try:
        return f.read()
    finally:
        f.close()


def _is_symlink(fs: FileSystem, path: str) -> bool:
    if not isinstance(fs, Symlinker):
        return False
    try:
        fs.readlink(path)
    except (OSError, SymlinkNotSupportedError):
        return False
    return True


def remove_all(fs: FileSystem, path: str) -> None:
    """Remove ``path`` and everything below it.

    A missing path is not an error. Symlinks are removed, never followed.
    """
    try:
        info = fs.stat(path)
    except FileNotFoundError:
        if not _is_symlink(fs, path):
            return
        fs.remove(path)
        return

    if info.is_dir and not _is_symlink(fs, path):
        for entry in fs.read_dir(path):
            remove_all(fs, fs.join(path, entry.name))
    fs.remove(path)
