"""Unit tests for path resolution.

Tests normalization, temp- and working-directory-rooted resolution,
bare-name detection and missing-ancestor discovery.
"""

import tempfile
from pathlib import Path

from tempfs.core.paths import (
    first_missing_directory_component,
    get_temp_root,
    get_working_dir,
    is_bare_name,
    normalize_path,
    resolve_here,
    resolve_temp,
)


class TestRoots:
    """Tests for get_temp_root and get_working_dir."""

    def test_temp_root_follows_tempfile(self, temp_root: Path) -> None:
        """get_temp_root reads tempfile.gettempdir at call time."""
        assert get_temp_root() == temp_root
        assert get_temp_root() == Path(tempfile.gettempdir())

    def test_working_dir_follows_chdir(self, workdir: Path) -> None:
        """get_working_dir reflects the current working directory."""
        assert get_working_dir() == workdir


class TestNormalizePath:
    """Tests for normalize_path function."""

    def test_absolute_path_unchanged(self) -> None:
        """A clean absolute path is returned as-is."""
        assert normalize_path("/a/b/c") == Path("/a/b/c")

    def test_parent_pops_previous_component(self) -> None:
        """'..' removes the previously pushed component."""
        assert normalize_path("/a/b/../c") == Path("/a/c")

    def test_parent_never_pops_root(self) -> None:
        """Excess '..' components are ignored instead of escaping the root."""
        assert normalize_path("/a/../../b") == Path("/b")

    def test_excess_parent_in_relative_path_dropped(self) -> None:
        """Excess '..' at the start of a relative path are silently dropped."""
        assert normalize_path("../../x") == Path("x")

    def test_leading_dot_splices_working_dir(self, workdir: Path) -> None:
        """A leading '.' is replaced by the working directory."""
        assert normalize_path("./file.txt") == workdir / "file.txt"

    def test_inner_dot_dropped(self, workdir: Path) -> None:
        """A '.' that is not the first component is dropped."""
        assert normalize_path("a/./b") == Path("a/b")

    def test_empty_components_dropped(self) -> None:
        """Repeated separators do not produce empty components."""
        assert normalize_path("/a//b///c") == Path("/a/b/c")

    def test_does_not_touch_filesystem(self, tmp_path: Path) -> None:
        """Normalization works for paths that do not exist."""
        missing = tmp_path / "nope" / ".." / "still-nope"
        assert normalize_path(missing) == tmp_path / "still-nope"


class TestResolve:
    """Tests for resolve_temp and resolve_here."""

    def test_resolve_temp_relative(self, temp_root: Path) -> None:
        """Relative paths are joined under the temp root."""
        assert resolve_temp("x/y.txt") == temp_root / "x" / "y.txt"

    def test_resolve_temp_absolute(self, temp_root: Path, tmp_path: Path) -> None:
        """Absolute paths ignore the temp root."""
        target = tmp_path / "elsewhere.txt"
        assert resolve_temp(target) == target

    def test_resolve_here_relative(self, workdir: Path) -> None:
        """Relative paths are joined under the working directory."""
        assert resolve_here("x/y.txt") == workdir / "x" / "y.txt"

    def test_resolve_here_normalizes(self, workdir: Path) -> None:
        """Resolved paths are normalized."""
        assert resolve_here("a/../b.txt") == workdir / "b.txt"


class TestIsBareName:
    """Tests for is_bare_name function."""

    def test_plain_name(self) -> None:
        """A name without separators is bare."""
        assert is_bare_name("final.txt") is True

    def test_forward_slash(self) -> None:
        """A forward slash makes it a path."""
        assert is_bare_name("dir/final.txt") is False

    def test_backslash(self) -> None:
        """A backslash makes it a path on every platform."""
        assert is_bare_name("dir\\final.txt") is False

    def test_dot_prefixed_path(self) -> None:
        """'./name' is a path, not a bare name."""
        assert is_bare_name("./final.txt") is False


class TestFirstMissingDirectoryComponent:
    """Tests for first_missing_directory_component function."""

    def test_all_ancestors_exist(self, tmp_path: Path) -> None:
        """Returns None when only the leaf is missing."""
        assert first_missing_directory_component(tmp_path / "leaf.txt") is None

    def test_returns_topmost_missing(self, tmp_path: Path) -> None:
        """Returns the first missing prefix in root-to-leaf order."""
        target = tmp_path / "d1" / "d2" / "d3" / "leaf.txt"
        assert first_missing_directory_component(target) == tmp_path / "d1"

    def test_partially_existing_chain(self, tmp_path: Path) -> None:
        """Existing ancestors are skipped."""
        (tmp_path / "d1").mkdir()
        target = tmp_path / "d1" / "d2" / "d3" / "leaf.txt"
        assert first_missing_directory_component(target) == tmp_path / "d1" / "d2"

    def test_root_has_no_missing_component(self) -> None:
        """The filesystem root has no parent to inspect."""
        assert first_missing_directory_component(Path("/")) is None
