"""Temporary directories that track the files created in them.

A TempDir owns a directory and every TempFile created through it. On
teardown the tracked files are cleaned up first, in tracking order, and
only then is the directory removed recursively. If creating the directory
required creating ancestors, the topmost created ancestor is removed
instead, taking the whole subtree with it.

A directory that already existed is adopted but never removed: teardown
then only cleans up the tracked files.
"""

import logging
import os
import re
from pathlib import Path
from types import TracebackType
from typing import Self

import rich.repr

from tempfs.config import TempfsConfig, get_default_config
from tempfs.core.creator import create_directory_exclusive, create_with_parents, remove_tree
from tempfs.core.names import NameGenerator
from tempfs.core.paths import get_temp_root, get_working_dir, resolve_here, resolve_temp
from tempfs.errors import PatternError, ResourceUnavailableError, TempfsIOError
from tempfs.models import CreatedResource, ResourceKind
from tempfs.temp_file import TempFile

logger = logging.getLogger(__name__)

PathArg = str | os.PathLike[str]


def _file_name(temp_file: TempFile) -> str | None:
    path = temp_file.path
    return path.name if path is not None else None


@rich.repr.auto
class TempDir:
    """A directory removed, with everything in it, when discarded.

    Files created through ``create_file`` and ``create_random_file`` are
    tracked and cleaned up before the directory itself.

    Attributes:
        config: Settings used for the directory and its files.
    """

    _path: Path | None

    def __init__(self, path: PathArg, *, config: TempfsConfig | None = None) -> None:
        """Create a directory, resolving relative paths under the temp directory.

        An existing directory is adopted; teardown then removes only the
        files created through this TempDir, never the directory itself.

        Args:
            path: Absolute path, or path relative to the system temp directory.
            config: Settings to use. Defaults to the shared default config.

        Raises:
            PathExistsError: If a non-directory exists at the path.
            TempfsIOError: If the directory or its ancestors cannot be created.
        """
        config = config if config is not None else get_default_config()
        created = create_with_parents(resolve_temp(path), ResourceKind.DIRECTORY, config)
        self._adopt(created, config)

    def _adopt(self, created: CreatedResource, config: TempfsConfig) -> None:
        self.config = config
        self._created_parent = created.created_parent
        self._owns_directory = created.leaf_created
        self._files: list[TempFile] = []
        self._path = created.path

    @classmethod
    def _from_created(cls, created: CreatedResource, config: TempfsConfig) -> Self:
        instance = cls.__new__(cls)
        instance._adopt(created, config)
        return instance

    @classmethod
    def here(cls, path: PathArg, *, config: TempfsConfig | None = None) -> Self:
        """Create a directory, resolving relative paths under the working directory.

        Args:
            path: Absolute path, or path relative to the working directory.
            config: Settings to use.

        Returns:
            Active TempDir.
        """
        config = config if config is not None else get_default_config()
        created = create_with_parents(resolve_here(path), ResourceKind.DIRECTORY, config)
        return cls._from_created(created, config)

    @classmethod
    def random(cls, dir: PathArg | None = None, *, config: TempfsConfig | None = None) -> Self:
        """Create a randomly named directory.

        Args:
            dir: Existing parent directory; relative paths are taken under
                the temp directory. Defaults to the temp directory.
            config: Settings to use.

        Returns:
            Active TempDir.

        Raises:
            NameGenerationExhaustedError: If no free name was found.
            TempfsIOError: If the directory cannot be created.
        """
        parent = get_temp_root() if dir is None else resolve_temp(dir)
        return cls._random_in(parent, config)

    @classmethod
    def new_in(cls, dir: PathArg, *, config: TempfsConfig | None = None) -> Self:
        """Create a randomly named directory inside ``dir`` (see ``random``)."""
        return cls.random(dir, config=config)

    @classmethod
    def random_here(cls, dir: PathArg | None = None, *, config: TempfsConfig | None = None) -> Self:
        """Create a randomly named directory relative to the working directory.

        Args:
            dir: Existing parent directory; relative paths are taken under
                the working directory. Defaults to the working directory.
            config: Settings to use.

        Returns:
            Active TempDir.
        """
        parent = get_working_dir() if dir is None else resolve_here(dir)
        return cls._random_in(parent, config)

    @classmethod
    def _random_in(cls, parent: Path, config: TempfsConfig | None) -> Self:
        config = config if config is not None else get_default_config()
        created = NameGenerator(config).create_unique(
            parent,
            lambda candidate: create_directory_exclusive(candidate, config),
        )
        return cls._from_created(created, config)

    @property
    def path(self) -> Path | None:
        """Path of the directory, None once disposed."""
        return self._path

    @property
    def created_parent(self) -> Path | None:
        """Topmost ancestor directory created along with the directory."""
        return self._created_parent

    @property
    def is_active(self) -> bool:
        """Check if this TempDir still manages its directory."""
        return self._path is not None

    @property
    def owns_directory(self) -> bool:
        """Check if the directory was created by this TempDir and is removed with it."""
        return self._owns_directory

    @property
    def files(self) -> tuple[TempFile, ...]:
        """Tracked files, in creation order."""
        return tuple(self._files)

    def _require_path(self) -> Path:
        if self._path is None:
            msg = "TempDir has already been disposed"
            raise ResourceUnavailableError(msg)
        return self._path

    def create_file(self, name: str) -> TempFile:
        """Create and track a file in this directory.

        ``name`` is joined to the directory as given; it is not checked
        for ``..`` or separators.

        Args:
            name: File name (or relative path) inside the directory.

        Returns:
            The new, tracked TempFile.

        Raises:
            ResourceUnavailableError: If the directory was disposed.
            PathExistsError: If the file already exists.
            TempfsIOError: If the file cannot be created.
        """
        directory = self._require_path()
        created = create_with_parents(directory / name, ResourceKind.FILE, self.config)
        temp_file = TempFile._from_created(created, self.config)
        self._files.append(temp_file)
        return temp_file

    def create_random_file(self) -> TempFile:
        """Create and track a randomly named file in this directory.

        Returns:
            The new, tracked TempFile.

        Raises:
            ResourceUnavailableError: If the directory was disposed.
            NameGenerationExhaustedError: If no free name was found.
            TempfsIOError: If the file cannot be created.
        """
        directory = self._require_path()
        temp_file = TempFile._random_in(directory, self.config)
        self._files.append(temp_file)
        return temp_file

    def remove_file(self, name: str) -> int:
        """Delete tracked files named ``name`` and stop tracking them.

        Matching files are removed from disk immediately, best effort, the
        same way a discarded TempFile is. Unknown names are not an error.

        Args:
            name: File name to match exactly.

        Returns:
            Number of tracked files removed.

        Raises:
            ResourceUnavailableError: If the directory was disposed.
        """
        self._require_path()
        removed = [f for f in self._files if _file_name(f) == name]
        self._files = [f for f in self._files if _file_name(f) != name]
        for temp_file in removed:
            temp_file.cleanup()
        return len(removed)

    def get_file(self, name: str) -> TempFile | None:
        """Find a tracked file by its file name.

        Args:
            name: File name to match exactly.

        Returns:
            The first matching TempFile, or None.
        """
        return next((f for f in self._files if _file_name(f) == name), None)

    get_file_mut = get_file

    def list_files(self) -> list[Path]:
        """List the paths of tracked files that are still active.

        Returns:
            Paths in tracking order.
        """
        return [f.path for f in self._files if f.path is not None]

    def find_files_by_pattern(self, pattern: str) -> list[TempFile]:
        """Find tracked files whose name matches a regular expression.

        Args:
            pattern: Regular expression searched for in each file name.

        Returns:
            Matching TempFiles in tracking order.

        Raises:
            PatternError: If ``pattern`` is not a valid regular expression.
        """
        try:
            regex = re.compile(pattern)
        except re.error as e:
            raise PatternError(pattern, str(e)) from e
        matches: list[TempFile] = []
        for temp_file in self._files:
            name = _file_name(temp_file)
            if name is not None and regex.search(name):
                matches.append(temp_file)
        return matches

    def _release_files(self) -> None:
        files, self._files = self._files, []
        for temp_file in files:
            temp_file.cleanup()

    def into_path(self) -> Path:
        """Stop managing the directory and return its path.

        Tracked files are cleaned up according to their own state; the
        directory itself is left in place.

        Returns:
            Path of the kept directory.

        Raises:
            ResourceUnavailableError: If the directory was already disposed.
        """
        path = self._require_path()
        self._release_files()
        self._path = None
        logger.debug("Released directory %s", path)
        return path

    def delete(self) -> None:
        """Clean up tracked files, then remove the directory now.

        An adopted directory is left in place.

        Raises:
            ResourceUnavailableError: If the directory was already disposed.
            TempfsIOError: If the directory cannot be removed.
        """
        path = self._require_path()
        self._release_files()
        self._path = None
        if not self._owns_directory:
            logger.debug("Released adopted directory %s", path)
            return
        target = self._created_parent or path
        try:
            remove_tree(target)
        except OSError as e:
            raise TempfsIOError(f"Cannot delete directory {target}: {e}", e) from e
        logger.debug("Deleted directory %s", target)

    def cleanup(self) -> None:
        """Clean up tracked files and remove the directory, ignoring failures.

        This is what happens when the TempDir leaves a ``with`` block or is
        garbage collected. An adopted directory is left in place. Does
        nothing once disposed.
        """
        path = getattr(self, "_path", None)
        if path is None:
            return
        self._release_files()
        self._path = None
        if not self._owns_directory:
            logger.debug("Released adopted directory %s", path)
            return
        target = self._created_parent or path
        try:
            remove_tree(target)
        except OSError as e:
            logger.debug("Ignoring cleanup failure for %s: %s", target, e)
        logger.debug("Dropped directory %s", target)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.cleanup()

    def __del__(self) -> None:
        self.cleanup()

    def __rich_repr__(self) -> rich.repr.Result:
        yield "path", self._path
        yield "files", len(self._files)
        yield "created_parent", self._created_parent, None
        yield "owns_directory", self._owns_directory, True
