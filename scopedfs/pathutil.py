"""Path helpers shared by every filesystem implementation.

All filesystems in this package use POSIX paths. Joining follows the
"concatenate then clean" rule: an absolute element in the middle of a join
does not discard what came before it, so ``join("base", "/x") == "base/x"``.
"""

from __future__ import annotations

import posixpath

sep = posixpath.sep


def clean(path: str) -> str:
    """Lexically normalize ``path`` (collapse separators, ``.`` and ``..``)."""
    if not path:
        return "."
    cleaned = posixpath.normpath(path)
    # normpath keeps exactly two leading slashes (POSIX implementation-defined)
    if cleaned.startswith("//"):
        cleaned = sep + cleaned.lstrip(sep)
    return cleaned


def join(*elem: str) -> str:
    """Join path elements, ignoring empty ones, and clean the result."""
    parts = [e for e in elem if e]
    if not parts:
        return ""
    return clean(sep.join(parts))


def base_name(path: str) -> str:
    """Return the last element of ``path``.

    Trailing separators are removed first. An empty path yields ``"."`` and
    a path made only of separators yields ``"/"``.
    """
    if not path:
        return "."
    path = path.rstrip(sep)
    if not path:
        return sep
    return path.rsplit(sep, 1)[-1]


def is_abs(path: str) -> bool:
    return path.startswith(sep)


def relative_to(base: str, target: str) -> str:
    """Lexical path of ``target`` relative to ``base``.

    Both paths should be absolute. The result may start with ``..``
    segments when ``target`` lies outside ``base``.
    """
    return posixpath.relpath(clean(target), clean(base))


def strip_prefix(name: str, prefix: str) -> str:
    """Remove ``prefix`` from ``name`` only if it is a whole-segment prefix.

    ``strip_prefix("dir/file", "dir") == "file"`` but
    ``strip_prefix("dirfile", "dir") == "dirfile"``: text that merely
    resembles the prefix is never touched.
    """
    if not prefix:
        return name
    if name == prefix:
        return ""
    head = prefix if prefix.endswith(sep) else prefix + sep
    if name.startswith(head):
        return name[len(head):]
    return name
