"""Configuration for filesystem access.

Provides configuration dataclasses, the connect_fs factory and open_fs,
which turns a configuration into a (possibly scoped) filesystem.
"""

from dataclasses import dataclass
from typing import Literal

from .base import FileSystem
from .memory import MemoryFS
from .osfs import OSFS


@dataclass
class MemoryFSConfig:
    """Configuration for an in-memory filesystem.

    Attributes:
        type: Always "memory".
        base: Optional subdirectory to scope the filesystem to.
    """

    type: Literal["memory"] = "memory"
    base: str | None = None


@dataclass
class OSFSConfig:
    """Configuration for a real filesystem rooted at a host directory.

    Attributes:
        type: Always "os".
        root: Absolute path to the root directory.
        base: Optional subdirectory (inside root) to scope the filesystem to.
    """

    type: Literal["os"] = "os"
    root: str = ""
    base: str | None = None


# Type alias for all filesystem configs
FSConfig = MemoryFSConfig | OSFSConfig


def connect_fs(
    type: Literal["memory", "os"] = "memory",
    **kwargs,
) -> FSConfig:
    """Configure filesystem access.

    Args:
        type: FileSystem type.
            - "memory": In-memory filesystem, discarded with the process.
            - "os": Host directory. Requires 'root' argument.
        **kwargs: Additional configuration for the filesystem type.
            - base (str): Optional. Scope the filesystem to this subdirectory.
            For type="os":
                - root (str): Required. Absolute path to root directory.

    Returns:
        FSConfig for open_fs().

    Examples:
        >>> connect_fs(type="memory", base="project")
        MemoryFSConfig(type='memory', base='project')

        >>> connect_fs(type="os", root="/srv/data")
        OSFSConfig(type='os', root='/srv/data', base=None)
    """
    base = kwargs.pop("base", None)

    if type == "memory":
        if kwargs:
            raise ValueError(
                f"Unexpected arguments for memory fs: {list(kwargs.keys())}"
            )
        return MemoryFSConfig(base=base)

    elif type == "os":
        root = kwargs.pop("root", "")

        if kwargs:
            raise ValueError(
                f"Unexpected arguments for os fs: {list(kwargs.keys())}"
            )

        if not root:
            raise ValueError("OS filesystem requires 'root' parameter")

        return OSFSConfig(root=root, base=base)

    else:
        raise ValueError(
            f"Unsupported filesystem type: {type}. Use 'memory' or 'os'."
        )


def open_fs(config: FSConfig) -> FileSystem:
    """Build the filesystem described by ``config``.

    A non-empty ``base`` yields a view scoped to that subdirectory.
    """
    if isinstance(config, MemoryFSConfig):
        fs: FileSystem = MemoryFS()
    elif isinstance(config, OSFSConfig):
        fs = OSFS(config.root)
    else:
        raise ValueError(f"Unsupported filesystem config: {config!r}")

    if config.base:
        return fs.dir(config.base)
    return fs
