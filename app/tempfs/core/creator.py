"""Creation and removal of temporary files and directories.

Creating a resource may require creating missing ancestor directories
first. Those ancestors are created inside a ParentTransaction: if creating
the leaf (or hardening its permissions) fails, the whole ancestor subtree
created by the call is removed again before the error propagates, so a
failed call leaves the filesystem exactly as it found it.
"""

import logging
import os
import shutil
from pathlib import Path
from types import TracebackType
from typing import BinaryIO, Self

from tempfs.config import TempfsConfig, get_default_config
from tempfs.core.paths import first_missing_directory_component
from tempfs.errors import PathExistsError, TempfsIOError
from tempfs.models import CreatedResource, ResourceKind

logger = logging.getLogger(__name__)


def _open_exclusive(path: Path) -> BinaryIO:
    """Create ``path`` exclusively and open it for binary read/write."""
    return open(path, "x+b")  # noqa: SIM115


def _supports_permissions() -> bool:
    """Check if the platform has POSIX permission bits."""
    return os.name == "posix"


class ParentTransaction:
    """Context manager creating the missing ancestors of a path.

    Records the topmost directory it had to create. If the managed block
    raises, that directory is removed recursively, taking every ancestor
    created by the transaction with it.

    Attributes:
        path: Target path whose ancestors are created.
        created_parent: Topmost ancestor created, None if none was needed.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.created_parent: Path | None = None

    def __enter__(self) -> Self:
        missing = first_missing_directory_component(self.path)
        if missing is not None:
            self.created_parent = missing
            try:
                self.path.parent.mkdir(parents=True)
            except BaseException as e:
                # __exit__ does not run when __enter__ raises
                self.__exit__(type(e), e, e.__traceback__)
                raise
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None and self.created_parent is not None:
            try:
                remove_tree(self.created_parent)
            except OSError as e:
                logger.warning(
                    "Failed to roll back created directories at %s: %s",
                    self.created_parent,
                    e,
                )

    def new_directories(self) -> list[Path]:
        """List the ancestors created by this transaction, topmost first.

        Returns:
            Directories from ``created_parent`` down to the target's parent.
        """
        if self.created_parent is None:
            return []
        chain = [self.path.parent]
        while chain[-1] != self.created_parent and chain[-1].parent != chain[-1]:
            chain.append(chain[-1].parent)
        return list(reversed(chain))


def harden(paths: list[Path], config: TempfsConfig) -> None:
    """Apply the configured permission mode to the given paths.

    Does nothing when hardening is disabled or the platform has no
    permission bits.

    Args:
        paths: Files or directories to restrict.
        config: Settings providing the mode.

    Raises:
        OSError: If a chmod call fails.
    """
    if not config.harden_permissions or not _supports_permissions():
        return
    for path in paths:
        os.chmod(path, config.permission_mode)


def create_with_parents(
    path: Path,
    kind: ResourceKind,
    config: TempfsConfig | None = None,
) -> CreatedResource:
    """Create a file or directory, creating missing ancestors as needed.

    Files are created exclusively and opened for binary read/write. An
    existing directory target is adopted as-is and reported with
    ``leaf_created=False``.

    Args:
        path: Absolute path to create.
        kind: Whether to create a file or a directory.
        config: Settings for permission hardening.

    Returns:
        CreatedResource with the open file (files only) and the topmost
        ancestor created by this call.

    Raises:
        PathExistsError: If the target already exists (or, for directories,
            exists as something other than a directory).
        TempfsIOError: If the OS refuses any step; nothing created by the
            call survives.
    """
    config = config if config is not None else get_default_config()

    if kind is ResourceKind.FILE and path.exists():
        raise PathExistsError(path)

    handle: BinaryIO | None = None
    leaf_created = False
    try:
        with ParentTransaction(path) as transaction:
            try:
                if kind is ResourceKind.FILE:
                    handle = _open_exclusive(path)
                    leaf_created = True
                elif not path.is_dir():
                    path.mkdir()
                    leaf_created = True
                harden(transaction.new_directories(), config)
                if leaf_created:
                    harden([path], config)
            except BaseException:
                _discard_leaf(path, handle, remove=leaf_created)
                raise
    except FileExistsError as e:
        raise PathExistsError(path) from e
    except OSError as e:
        raise TempfsIOError(f"Cannot create {kind.value} {path}: {e}", e) from e

    logger.debug("Created %s %s (created parent: %s)", kind.value, path, transaction.created_parent)
    return CreatedResource(
        path=path,
        handle=handle,
        created_parent=transaction.created_parent,
        leaf_created=leaf_created,
    )


def create_directory_exclusive(path: Path, config: TempfsConfig | None = None) -> CreatedResource:
    """Create a single directory that must not exist yet.

    The parent directory must already exist. Used for randomly named
    directories, where a collision has to surface instead of adopting
    someone else's directory.

    Args:
        path: Directory to create.
        config: Settings for permission hardening.

    Returns:
        CreatedResource without a handle or created parent.

    Raises:
        PathExistsError: If ``path`` already exists.
        TempfsIOError: If the OS refuses to create or harden the directory.
    """
    config = config if config is not None else get_default_config()
    try:
        path.mkdir()
    except FileExistsError as e:
        raise PathExistsError(path) from e
    except OSError as e:
        raise TempfsIOError(f"Cannot create directory {path}: {e}", e) from e

    try:
        harden([path], config)
    except OSError as e:
        _discard_leaf(path, None, remove=True)
        raise TempfsIOError(f"Cannot set permissions on {path}: {e}", e) from e

    logger.debug("Created directory %s", path)
    return CreatedResource(path=path, handle=None)


def _discard_leaf(path: Path, handle: BinaryIO | None, *, remove: bool) -> None:
    """Close and, if it was created by us, remove a leaf being rolled back."""
    try:
        if handle is not None:
            handle.close()
        if not remove:
            return
        if path.is_dir() and not path.is_symlink():
            path.rmdir()
        else:
            path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Failed to roll back %s: %s", path, e)


def remove_tree(path: Path) -> None:
    """Remove a directory tree, tolerating that it is already gone.

    Args:
        path: Directory to remove recursively.

    Raises:
        OSError: If removal fails for any reason other than absence.
    """
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass
