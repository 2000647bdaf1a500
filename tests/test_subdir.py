"""Tests for SubdirFS, the subdirectory-scoped filesystem view."""

import copy
import errno
import logging
import os
from datetime import datetime, timezone

import pytest

from scopedfs import (
    FileInfo,
    MemoryFS,
    OSFS,
    ScopedFile,
    ScopedFileInfo,
    SubdirFS,
    SymlinkNotSupportedError,
    read_file,
    write_file,
)
from scopedfs.testing import FilesystemSuite


# ---------------------------------------------------------------------------
# Conformance
# ---------------------------------------------------------------------------


class TestSubdirOverMemoryConformance(FilesystemSuite):
    supports_symlinks = False

    @pytest.fixture
    def fs(self):
        return SubdirFS(MemoryFS(), "scoped")


class TestMemoryDirConformance(FilesystemSuite):
    supports_symlinks = False

    @pytest.fixture
    def fs(self):
        return MemoryFS().dir("scoped")


class TestSubdirOverOSConformance(FilesystemSuite):
    @pytest.fixture
    def fs(self, tmp_path):
        return SubdirFS(OSFS(str(tmp_path)), "scoped")


class TestDeepSubdirOverOSConformance(FilesystemSuite):
    @pytest.fixture
    def fs(self, tmp_path):
        return OSFS(str(tmp_path)).dir("a/b/c")


# ---------------------------------------------------------------------------
# Path translation
# ---------------------------------------------------------------------------


class TestPathTranslation:
    """Test that view paths land under base in the underlying filesystem."""

    def test_underlying_path(self):
        view = SubdirFS(MemoryFS(), "project")
        assert view.underlying_path("src/main.py") == "project/src/main.py"
        assert view.underlying_path("/src/main.py") == "project/src/main.py"
        assert view.underlying_path("") == "project"
        assert view.underlying_path("/") == "project"

    def test_create_lands_under_base(self):
        mem = MemoryFS()
        view = SubdirFS(mem, "project")
        write_file(view, "src/main.py", b"print()")
        assert mem.files["/project/src/main.py"] == b"print()"

    def test_mkdir_all_lands_under_base(self):
        mem = MemoryFS()
        SubdirFS(mem, "project").mkdir_all("a/b", 0o755)
        assert "/project/a/b" in mem.dirs

    def test_rename_translates_both_paths(self):
        mem = MemoryFS()
        view = SubdirFS(mem, "project")
        write_file(view, "old", b"x")
        view.rename("old", "new/place")
        assert "/project/old" not in mem.files
        assert mem.files["/project/new/place"] == b"x"

    def test_remove_translates(self):
        mem = MemoryFS()
        write_file(mem, "project/f", b"")
        write_file(mem, "f", b"")
        SubdirFS(mem, "project").remove("f")
        assert "/project/f" not in mem.files
        assert "/f" in mem.files

    def test_open_file_passes_flags_and_perm(self):
        mem = MemoryFS()
        view = SubdirFS(mem, "project")
        view.open_file("f", os.O_WRONLY | os.O_CREAT, 0o640).close()
        assert mem.stat("project/f").mode & 0o777 == 0o640

    def test_join_uses_underlying_rules(self):
        view = SubdirFS(MemoryFS(), "project")
        assert view.join("a", "/b", "../c") == "a/c"

    def test_base(self):
        assert SubdirFS(MemoryFS(), "some/deep/base").base() == "some/deep/base"


# ---------------------------------------------------------------------------
# Re-rooting of results
# ---------------------------------------------------------------------------


class TestStatNames:
    @pytest.mark.parametrize("base", ["p", "a/b/c", "/abs/base"])
    @pytest.mark.parametrize("path", ["file", "dir/file", "/dir/sub/file"])
    def test_stat_name_is_last_segment(self, base, path):
        """stat().name is the last segment of the view path, whatever base is."""
        view = SubdirFS(MemoryFS(), base)
        write_file(view, path, b"x")
        assert view.stat(path).name == path.rsplit("/", 1)[-1]

    def test_stat_prefix_of_name_not_found(self):
        view = SubdirFS(MemoryFS(), "project")
        write_file(view, "qux/baz", b"")
        with pytest.raises(FileNotFoundError):
            view.stat("qu")


class TestOpenNames:
    def test_handle_name_is_view_relative(self):
        mem = MemoryFS()
        view = SubdirFS(mem, "project")
        with view.create("dir/file") as f:
            f.write(b"x")
            assert f.name == "dir/file"
            assert f._file.name == "project/dir/file"

        with view.open("dir/file") as f:
            assert f.name == "dir/file"
            assert f.read() == b"x"

    def test_temp_file_name(self):
        mem = MemoryFS()
        view = SubdirFS(mem, "project")
        f = view.temp_file("tmp", "job-")
        f.close()

        assert f.name.startswith("tmp/job-")
        leaf = f.name.rsplit("/", 1)[-1]
        assert mem.stat(f"project/tmp/{leaf}").is_dir is False


class TestReadDir:
    def test_children_without_base_prefix(self):
        mem = MemoryFS()
        view = SubdirFS(mem, "one/two/three")
        for name in ("a", "b/c", "d"):
            write_file(view, name, b"")

        assert [fi.name for fi in view.read_dir("/")] == ["a", "b", "d"]

    def test_sibling_with_shared_prefix_excluded(self):
        """A sibling whose name starts with base is not part of the view."""
        mem = MemoryFS()
        write_file(mem, "project-other/file", b"")
        write_file(mem, "project/mine", b"")
        view = SubdirFS(mem, "project")

        assert [fi.name for fi in view.read_dir("/")] == ["mine"]
        assert view.stat("").name == "project"
        assert view.stat("").is_dir is True
        with pytest.raises(FileNotFoundError):
            view.stat("other/file")

    def test_entry_containing_prefix_text_unchanged(self):
        mem = MemoryFS()
        view = SubdirFS(mem, "project")
        write_file(view, "project-notes", b"")
        write_file(view, "my-project", b"")
        assert [fi.name for fi in view.read_dir("/")] == ["my-project", "project-notes"]

    def test_full_path_names_are_stripped(self):
        """Backends reporting full paths get the listing prefix removed."""

        class FullNameFS(MemoryFS):
            def read_dir(self, path):
                return [
                    FileInfo(
                        name=self.join(path, fi.name),
                        size=fi.size,
                        mode=fi.mode,
                        mod_time=fi.mod_time,
                    )
                    for fi in super().read_dir(path)
                ]

        mem = FullNameFS()
        write_file(mem, "project/dir/file", b"")
        write_file(mem, "project/dir/projectfile", b"")
        view = SubdirFS(mem, "project")

        assert [fi.name for fi in view.read_dir("dir")] == ["file", "projectfile"]

    def test_read_dir_missing(self):
        with pytest.raises(FileNotFoundError):
            SubdirFS(MemoryFS(), "project").read_dir("nope")


# ---------------------------------------------------------------------------
# dir()
# ---------------------------------------------------------------------------


class TestDir:
    def test_nested_base(self):
        view = SubdirFS(MemoryFS(), "project")
        assert view.dir("sub").base() == view.underlying_path("sub")
        assert view.dir("sub").base() == "project/sub"

    def test_nesting_is_flattened(self):
        mem = MemoryFS()
        nested = SubdirFS(mem, "project").dir("a").dir("b")
        assert nested.underlying is mem
        assert nested.base() == "project/a/b"

    def test_nested_stat_sees_outer_files(self):
        view = SubdirFS(MemoryFS(), "project")
        write_file(view, "sub/x", b"x")

        fi = view.dir("sub").stat("x")
        assert fi.name == "x"
        assert fi.size == 1

    def test_dir_does_not_touch_existing_view(self):
        view = SubdirFS(MemoryFS(), "project")
        view.dir("sub")
        assert view.base() == "project"


# ---------------------------------------------------------------------------
# Wrappers
# ---------------------------------------------------------------------------


class TestScopedFileInfo:
    def test_only_name_overridden(self):
        mod_time = datetime(2024, 1, 2, tzinfo=timezone.utc)
        info = FileInfo(name="project/x", size=7, mode=0o100644, mod_time=mod_time, sys="raw")
        scoped = ScopedFileInfo("x", info)

        assert scoped.name == "x"
        assert scoped.size == 7
        assert scoped.mode == 0o100644
        assert scoped.mod_time == mod_time
        assert scoped.is_dir is False
        assert scoped.sys == "raw"
        assert scoped.st_size == 7
        assert scoped.st_mode == 0o100644
        assert scoped.st_mtime == mod_time.timestamp()


class _Handle:
    name = "project/x"

    def __init__(self, close_result=None, close_error=None):
        self.calls = []
        self._close_result = close_result
        self._close_error = close_error

    def read(self, size=-1):
        self.calls.append(("read", size))
        return b"data"

    def write(self, data):
        self.calls.append(("write", data))
        return len(data)

    def seek(self, offset, whence=0):
        self.calls.append(("seek", offset, whence))
        return offset

    def tell(self):
        return 0

    def close(self):
        self.calls.append(("close",))
        if self._close_error is not None:
            raise self._close_error
        return self._close_result

    def fileno(self):
        return 42


class TestScopedFile:
    def test_only_name_overridden(self):
        view = SubdirFS(MemoryFS(), "project")
        handle = _Handle()
        f = ScopedFile(view, handle, "x")

        assert f.name == "x"
        assert f.owner is view
        assert f.read(3) == b"data"
        assert f.write(b"ab") == 2
        assert f.seek(5, 1) == 5
        assert f.fileno() == 42
        assert handle.calls == [("read", 3), ("write", b"ab"), ("seek", 5, 1)]

    def test_close_result_propagates(self):
        sentinel = object()
        f = ScopedFile(SubdirFS(MemoryFS(), "p"), _Handle(close_result=sentinel), "x")
        assert f.close() is sentinel

    def test_close_error_propagates(self):
        error = OSError(errno.EIO, "I/O error")
        f = ScopedFile(SubdirFS(MemoryFS(), "p"), _Handle(close_error=error), "x")
        with pytest.raises(OSError) as exc_info:
            f.close()
        assert exc_info.value is error

    def test_copy_does_not_recurse(self):
        f = ScopedFile(SubdirFS(MemoryFS(), "p"), _Handle(), "x")
        clone = copy.copy(f)
        assert clone.name == "x"
        assert clone.fileno() == 42

    def test_missing_handle_raises_attribute_error(self):
        f = ScopedFile.__new__(ScopedFile)
        with pytest.raises(AttributeError):
            f.fileno()

    def test_context_manager_closes(self):
        handle = _Handle()
        with ScopedFile(SubdirFS(MemoryFS(), "p"), handle, "x"):
            pass
        assert handle.calls == [("close",)]

    def test_closing_one_handle_leaves_others_open(self):
        view = SubdirFS(MemoryFS(), "project")
        a = view.create("a")
        b = view.create("a")
        a.close()
        b.write(b"later")
        b.close()
        assert read_file(view, "a") == b"later"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrorPassthrough:
    """Underlying errors reach the caller as the very same object."""

    @pytest.fixture
    def error(self):
        return FileNotFoundError(errno.ENOENT, "gone", "project/x")

    @pytest.fixture
    def view(self, error):
        class FailingFS(MemoryFS):
            def stat(self, filename):
                raise error

            def open_file(self, filename, flags, perm=0o666):
                raise error

            def read_dir(self, path):
                raise error

            def rename(self, from_, to):
                raise error

        return SubdirFS(FailingFS(), "project")

    @pytest.mark.parametrize(
        "call",
        [
            lambda v: v.stat("x"),
            lambda v: v.open("x"),
            lambda v: v.create("x"),
            lambda v: v.open_file("x", os.O_RDONLY, 0),
            lambda v: v.read_dir("x"),
            lambda v: v.rename("x", "y"),
        ],
    )
    def test_same_error_object(self, view, error, call):
        with pytest.raises(FileNotFoundError) as exc_info:
            call(view)
        assert exc_info.value is error

    def test_create_over_dir(self):
        view = SubdirFS(MemoryFS(), "project")
        view.mkdir_all("d", 0o755)
        with pytest.raises(IsADirectoryError):
            view.create("d")


# ---------------------------------------------------------------------------
# Symlinks
# ---------------------------------------------------------------------------


class TestSymlinkCapability:
    def test_symlink_not_supported(self):
        view = SubdirFS(MemoryFS(), "project")
        with pytest.raises(SymlinkNotSupportedError):
            view.symlink("target", "link")

    def test_readlink_not_supported(self):
        view = SubdirFS(MemoryFS(), "project")
        with pytest.raises(SymlinkNotSupportedError):
            view.readlink("link")

    def test_not_supported_is_not_an_os_error(self):
        view = SubdirFS(MemoryFS(), "project")
        with pytest.raises(SymlinkNotSupportedError) as exc_info:
            view.readlink("missing")
        assert not isinstance(exc_info.value, OSError)
        assert str(exc_info.value) == "symlink not supported"


class TestSymlinkTranslation:
    @pytest.fixture
    def osfs(self, tmp_path):
        return OSFS(str(tmp_path))

    @pytest.fixture
    def view(self, osfs):
        return SubdirFS(osfs, "project")

    def test_relative_target_unchanged(self, view, osfs):
        write_file(view, "target", b"t")
        view.symlink("target", "link")

        assert osfs.readlink("project/link") == "target"
        assert view.readlink("link") == "target"
        assert read_file(view, "link") == b"t"

    def test_absolute_target_rooted_at_base(self, view, osfs):
        write_file(view, "abs/inside/target", b"t")
        view.symlink("/abs/inside/target", "link")

        assert osfs.readlink("project/link") == "/project/abs/inside/target"
        assert view.readlink("link") == "/abs/inside/target"
        assert read_file(view, "link") == b"t"

    def test_absolute_target_with_absolute_base(self, osfs):
        view = osfs.dir("project")
        assert view.base() == "/project"

        view.symlink("/abs/target", "link")
        assert osfs.readlink("project/link") == "/project/abs/target"
        assert view.readlink("link") == "/abs/target"

    def test_link_to_view_root(self, view):
        view.mkdir_all("", 0o755)
        view.symlink("/", "top")
        assert view.readlink("top") == "/"

    def test_target_outside_base_escapes(self, view, osfs, caplog):
        """A link pointing outside base comes back with '..' segments."""
        osfs.symlink("/other/x", "project/link")

        with caplog.at_level(logging.WARNING, logger="scopedfs.subdir"):
            assert view.readlink("link") == "/../other/x"
        assert "points outside" in caplog.text

    def test_host_link_outside_root(self, view, tmp_path, caplog):
        """A link made on the host to a path outside the OSFS root reaches
        the view as a raw host path and is re-rooted like any other."""
        (tmp_path / "project").mkdir()
        os.symlink("/somewhere/else", tmp_path / "project" / "hostlink")

        with caplog.at_level(logging.DEBUG):
            assert view.readlink("hostlink") == "/../somewhere/else"
        assert "outside root" in caplog.text
        assert "points outside" in caplog.text

    def test_readlink_error_passthrough(self, view):
        with pytest.raises(FileNotFoundError):
            view.readlink("missing")

    def test_nested_view_symlink(self, view):
        write_file(view, "sub/data", b"d")
        nested = view.dir("sub")
        nested.symlink("/data", "link")

        assert nested.readlink("link") == "/data"
        assert view.readlink("sub/link") == "/sub/data"
        assert read_file(view, "sub/link") == b"d"
