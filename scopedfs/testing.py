"""Reusable pytest suites that validate any FileSystem implementation.

Subclass ``FilesystemSuite`` in a ``Test*`` class and provide the
filesystem under test through the ``fs`` fixture::

    class TestMyFS(FilesystemSuite):
        @pytest.fixture
        def fs(self, tmp_path):
            return MyFS(str(tmp_path))

Filesystems without the symlink capability set ``supports_symlinks =
False`` to skip ``SymlinkSuite``.
"""

from __future__ import annotations

import io
import os
from datetime import datetime

import pytest

from .pathutil import base_name
from .util import read_file, remove_all, write_file


class _FSFixture:
    supports_symlinks = True

    @pytest.fixture
    def fs(self):
        raise NotImplementedError("subclasses must provide the 'fs' fixture")


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------


class BasicSuite(_FSFixture):
    """Create, open, rename, remove and stat scenarios."""

    def test_create(self, fs):
        f = fs.create("foo")
        assert f.name == "foo"
        f.close()

    def test_create_depth(self, fs):
        f = fs.create("bar/foo")
        assert f.name == "bar/foo"
        f.close()

    def test_create_depth_absolute(self, fs):
        f = fs.create("/bar/foo")
        assert f.name == "/bar/foo"
        f.close()
        assert fs.stat("bar/foo").name == "foo"

    def test_create_and_read(self, fs):
        with fs.create("foo") as f:
            assert f.write(b"foo") == 3

        with fs.open("foo") as f:
            assert f.name == "foo"
            assert f.read() == b"foo"

    def test_create_overwrite(self, fs):
        write_file(fs, "foo", b"foo")
        with fs.create("foo") as f:
            f.write(b"bar")
        assert read_file(fs, "foo") == b"bar"

    def test_create_with_existing_dir(self, fs):
        fs.mkdir_all("foo", 0o755)
        with pytest.raises(OSError):
            fs.create("foo")

    def test_open_not_exists(self, fs):
        with pytest.raises(FileNotFoundError):
            fs.open("not-found")

    def test_open_read_only_rejects_write(self, fs):
        write_file(fs, "foo", b"foo")
        with fs.open("foo") as f:
            with pytest.raises(io.UnsupportedOperation):
                f.write(b"bar")

    def test_open_file_write_only_rejects_read(self, fs):
        with fs.open_file("foo", os.O_WRONLY | os.O_CREAT, 0o644) as f:
            with pytest.raises(io.UnsupportedOperation):
                f.read()

    def test_open_file_append(self, fs):
        write_file(fs, "foo", b"foo")
        with fs.open_file("foo", os.O_WRONLY | os.O_APPEND, 0o644) as f:
            f.write(b"bar")
        assert read_file(fs, "foo") == b"foobar"

    def test_open_file_truncate(self, fs):
        write_file(fs, "foo", b"foo")
        with fs.open_file("foo", os.O_WRONLY | os.O_TRUNC, 0o644) as f:
            f.write(b"x")
        assert read_file(fs, "foo") == b"x"

    def test_open_file_exclusive(self, fs):
        write_file(fs, "foo", b"foo")
        with pytest.raises(FileExistsError):
            fs.open_file("foo", os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)

    def test_open_file_read_write(self, fs):
        write_file(fs, "foo", b"foo")
        with fs.open_file("foo", os.O_RDWR, 0o644) as f:
            assert f.name == "foo"
            f.write(b"F")
            f.seek(0)
            assert f.read() == b"Foo"
        assert read_file(fs, "foo") == b"Foo"

    def test_seek_and_read(self, fs):
        write_file(fs, "foo", b"0123456789")
        with fs.open("foo") as f:
            assert f.seek(3) == 3
            assert f.read(2) == b"34"
            assert f.tell() == 5
            f.seek(-2, io.SEEK_END)
            assert f.read() == b"89"

    def test_handles_are_independent(self, fs):
        a = fs.create("a")
        b = fs.create("b")
        a.close()
        b.write(b"still open")
        b.close()
        assert read_file(fs, "b") == b"still open"

    def test_open_handle_follows_rename(self, fs):
        f = fs.create("a")
        f.write(b"data")
        fs.rename("a", "b")
        f.close()

        assert read_file(fs, "b") == b"data"
        with pytest.raises(FileNotFoundError):
            fs.stat("a")

    def test_open_handle_after_remove(self, fs):
        f = fs.create("a")
        f.write(b"data")
        fs.remove("a")
        f.close()

        with pytest.raises(FileNotFoundError):
            fs.stat("a")

    def test_open_under_file(self, fs):
        write_file(fs, "file", b"x")
        with pytest.raises(NotADirectoryError):
            fs.open("file/x")

    def test_stat_under_file(self, fs):
        write_file(fs, "file", b"x")
        with pytest.raises(NotADirectoryError):
            fs.stat("file/x")

    def test_stat(self, fs):
        write_file(fs, "foo/bar", b"123")

        fi = fs.stat("foo/bar")
        assert fi.name == "bar"
        assert fi.size == 3
        assert fi.is_dir is False
        assert isinstance(fi.mod_time, datetime)

    def test_stat_dir(self, fs):
        write_file(fs, "foo/bar", b"123")

        fi = fs.stat("foo")
        assert fi.name == "foo"
        assert fi.is_dir is True

    def test_stat_non_existent(self, fs):
        with pytest.raises(FileNotFoundError):
            fs.stat("non-existent")

    def test_rename(self, fs):
        write_file(fs, "foo", b"foo")
        fs.rename("foo", "bar")

        with pytest.raises(FileNotFoundError):
            fs.stat("foo")
        assert read_file(fs, "bar") == b"foo"

    def test_rename_to_nested(self, fs):
        write_file(fs, "foo", b"foo")
        fs.rename("foo", "a/b/bar")
        assert read_file(fs, "a/b/bar") == b"foo"

    def test_rename_dir(self, fs):
        write_file(fs, "foo/bar/x", b"x")
        fs.rename("foo", "baz")

        with pytest.raises(FileNotFoundError):
            fs.stat("foo")
        assert read_file(fs, "baz/bar/x") == b"x"

    def test_rename_dir_onto_non_empty_dir(self, fs):
        write_file(fs, "a/x", b"1")
        write_file(fs, "b/x", b"2")
        with pytest.raises(OSError):
            fs.rename("a", "b")

        assert read_file(fs, "a/x") == b"1"
        assert read_file(fs, "b/x") == b"2"

    def test_rename_dir_onto_empty_dir(self, fs):
        write_file(fs, "a/x", b"1")
        fs.mkdir_all("b", 0o755)
        fs.rename("a", "b")
        assert read_file(fs, "b/x") == b"1"

    def test_remove(self, fs):
        write_file(fs, "foo", b"foo")
        fs.remove("foo")
        with pytest.raises(FileNotFoundError):
            fs.stat("foo")

    def test_remove_non_existent(self, fs):
        with pytest.raises(FileNotFoundError):
            fs.remove("non-existent")

    def test_remove_empty_dir(self, fs):
        fs.mkdir_all("empty", 0o755)
        fs.remove("empty")
        with pytest.raises(FileNotFoundError):
            fs.stat("empty")

    def test_remove_non_empty_dir(self, fs):
        write_file(fs, "dir/file", b"x")
        with pytest.raises(OSError):
            fs.remove("dir")
        assert read_file(fs, "dir/file") == b"x"

    def test_join(self, fs):
        assert fs.join("foo", "bar") == "foo/bar"
        assert fs.join("foo", "/bar") == "foo/bar"
        assert fs.join("foo", "bar", "..", "qux") == "foo/qux"


# ---------------------------------------------------------------------------
# Directories
# ---------------------------------------------------------------------------


class DirSuite(_FSFixture):
    """mkdir_all, read_dir, dir() views and recursive removal."""

    def test_mkdir_all(self, fs):
        fs.mkdir_all("empty", 0o755)
        fi = fs.stat("empty")
        assert fi.is_dir is True

    def test_mkdir_all_nested(self, fs):
        fs.mkdir_all("a/b/c", 0o755)
        for path in ("a", "a/b", "a/b/c"):
            assert fs.stat(path).is_dir is True

    def test_mkdir_all_idempotent(self, fs):
        fs.mkdir_all("a/b", 0o755)
        fs.mkdir_all("a/b", 0o755)
        assert fs.stat("a/b").is_dir is True

    def test_mkdir_all_over_file(self, fs):
        write_file(fs, "file", b"x")
        with pytest.raises(OSError):
            fs.mkdir_all("file/dir", 0o755)

    def test_read_dir(self, fs):
        for name in ("foo", "bar", "qux/baz", "qux/qux"):
            write_file(fs, name, b"", 0o644)

        assert len(fs.read_dir("/")) == 3
        assert len(fs.read_dir("/qux")) == 2

        qux = fs.dir("/qux")
        assert len(qux.read_dir("/")) == 2

    def test_read_dir_entries(self, fs):
        write_file(fs, "foo", b"foo")
        write_file(fs, "qux/baz", b"")

        entries = fs.read_dir("")
        assert [e.name for e in entries] == ["foo", "qux"]
        assert [e.is_dir for e in entries] == [False, True]
        assert entries[0].size == 3

    def test_read_dir_empty(self, fs):
        fs.mkdir_all("empty", 0o755)
        assert list(fs.read_dir("empty")) == []

    def test_read_dir_non_existent(self, fs):
        with pytest.raises(FileNotFoundError):
            fs.read_dir("non-existent")

    def test_dir_stat(self, fs):
        for name in ("foo", "bar", "qux/baz", "qux/qux"):
            write_file(fs, name, b"", 0o644)

        # a prefix of an existing name is not a match
        with pytest.raises(FileNotFoundError):
            fs.stat("qu")

        fi = fs.stat("qux")
        assert fi.name == "qux"
        assert fi.is_dir is True

        qux = fs.dir("qux")

        fi = qux.stat("baz")
        assert fi.name == "baz"
        assert fi.is_dir is False

        fi = qux.stat("/baz")
        assert fi.name == "baz"
        assert fi.is_dir is False

    def test_create_in_dir(self, fs):
        f = fs.dir("foo").create("bar")
        f.close()
        assert f.name == "bar"

        f = fs.open("foo/bar")
        assert f.name == fs.join("foo", "bar")
        f.close()

    def test_dir_nested(self, fs):
        with fs.dir("a").dir("b").create("c") as f:
            f.write(b"deep")
        assert read_file(fs, "a/b/c") == b"deep"

    def test_base(self, fs):
        assert fs.base() != ""

    def test_remove_all_non_existent(self, fs):
        remove_all(fs, "non-existent")

    def test_remove_all_empty_dir(self, fs):
        fs.mkdir_all("empty", 0o755)
        remove_all(fs, "empty")
        with pytest.raises(FileNotFoundError):
            fs.stat("empty")

    @pytest.mark.parametrize("target", ["foo", "foo/bar/.."])
    def test_remove_all(self, fs, target):
        names = [
            "foo/1",
            "foo/2",
            "foo/bar/1",
            "foo/bar/2",
            "foo/bar/baz/1",
            "foo/bar/baz/qux/1",
            "foo/bar/baz/qux/2",
            "foo/bar/baz/qux/3",
        ]
        for name in names:
            write_file(fs, name, b"")

        remove_all(fs, target)

        for name in names:
            with pytest.raises(FileNotFoundError):
                fs.stat(name)


# ---------------------------------------------------------------------------
# Symlinks
# ---------------------------------------------------------------------------


class SymlinkSuite(_FSFixture):
    """Scenarios for filesystems implementing symlink() and readlink()."""

    @pytest.fixture
    def sfs(self, fs):
        if not self.supports_symlinks:
            pytest.skip("filesystem does not support symlinks")
        return fs

    def test_symlink(self, sfs):
        write_file(sfs, "file", b"hello")
        sfs.symlink("file", "link")

        fi = sfs.stat("link")
        assert fi.name == "link"
        assert fi.size == 5
        assert read_file(sfs, "link") == b"hello"

    def test_symlink_creates_parents(self, sfs):
        write_file(sfs, "foo/file", b"hello")
        sfs.symlink("../foo/file", "bar/link")
        assert read_file(sfs, "bar/link") == b"hello"

    def test_symlink_existing(self, sfs):
        write_file(sfs, "file", b"")
        write_file(sfs, "link", b"")
        with pytest.raises(FileExistsError):
            sfs.symlink("file", "link")

    def test_symlink_to_dir(self, sfs):
        sfs.mkdir_all("dir", 0o755)
        sfs.symlink("dir", "link")

        fi = sfs.stat("link")
        assert fi.name == "link"
        assert fi.is_dir is True

    def test_symlink_read_dir(self, sfs):
        write_file(sfs, "dir/file", b"foo")
        sfs.symlink("dir", "link")

        info = sfs.read_dir("link")
        assert len(info) == 1
        assert info[0].size == 3
        assert info[0].is_dir is False
        assert info[0].name == "file"

    def test_readlink(self, sfs):
        write_file(sfs, "file", b"")
        sfs.symlink("file", "link")
        assert sfs.readlink("link") == "file"

    def test_readlink_absolute(self, sfs):
        write_file(sfs, "dir/file", b"abs")
        sfs.symlink("/dir/file", "link")

        assert sfs.readlink("link") == "/dir/file"
        assert read_file(sfs, "link") == b"abs"

    def test_readlink_not_exists(self, sfs):
        with pytest.raises(FileNotFoundError):
            sfs.readlink("non-existent")

    def test_readlink_not_a_link(self, sfs):
        write_file(sfs, "file", b"")
        with pytest.raises(OSError):
            sfs.readlink("file")

    def test_read_dir_with_link(self, sfs):
        write_file(sfs, "foo/bar", b"foo", 0o755)
        sfs.symlink("bar", "foo/qux")

        qux = sfs.dir("/foo")
        assert len(qux.read_dir("/")) == 2

    def test_remove_all_keeps_link_target(self, sfs):
        write_file(sfs, "dir/file", b"keep")
        sfs.symlink("../dir", "tree/link")
        assert sfs.stat("tree/link").is_dir is True

        remove_all(sfs, "tree")

        with pytest.raises(FileNotFoundError):
            sfs.stat("tree")
        assert read_file(sfs, "dir/file") == b"keep"


# ---------------------------------------------------------------------------
# Temp files
# ---------------------------------------------------------------------------


class TempFileSuite(_FSFixture):
    """temp_file() in the root and in subdirectories."""

    def test_temp_file(self, fs):
        f = fs.temp_file("", "bar")
        assert base_name(f.name).startswith("bar")
        f.close()

    def test_temp_file_with_path(self, fs):
        f = fs.temp_file("foo", "bar")
        assert f.name.startswith(fs.join("foo", "bar"))
        f.close()
        assert fs.stat("foo").is_dir is True

    def test_temp_file_write_and_reopen(self, fs):
        with fs.temp_file("foo", "bar") as f:
            f.write(b"temporary")
            name = f.name
        assert read_file(fs, name) == b"temporary"

    def test_temp_file_unique(self, fs):
        a = fs.temp_file("", "bar")
        b = fs.temp_file("", "bar")
        assert a.name != b.name
        a.close()
        b.close()


class FilesystemSuite(BasicSuite, DirSuite, SymlinkSuite, TempFileSuite):
    """Every scenario a FileSystem implementation must pass."""
