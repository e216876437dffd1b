"""Temporary files that are removed when their handle is discarded.

A TempFile owns one open binary file and the path it lives at. While
active, reads, writes and seeks are delegated to the open file. Exactly
one terminal operation ends the handle:

- persist / persist_name / persist_here / into_inner: hand the open file
  to the caller and keep the file on disk
- disarm: flush and keep the file on disk
- close: flush, close and keep the file on disk
- delete: flush and remove the file now, reporting failures
- cleanup (also run on context exit and garbage collection): remove the
  file, best effort, ignoring failures

Any operation on a disposed TempFile raises ResourceUnavailableError.
"""

import logging
import os
import shutil
import weakref
from collections.abc import Iterable
from pathlib import Path
from types import TracebackType
from typing import BinaryIO, Self

import rich.repr

from tempfs.config import TempfsConfig, get_default_config
from tempfs.core.creator import create_with_parents, remove_tree
from tempfs.core.names import NameGenerator
from tempfs.core.paths import (
    get_temp_root,
    get_working_dir,
    is_bare_name,
    normalize_path,
    resolve_here,
    resolve_temp,
)
from tempfs.errors import InvalidFileOrPathError, ResourceUnavailableError, TempfsIOError
from tempfs.mapping import FileMapping, map_file
from tempfs.models import Active, CreatedResource, Disposal, Disposed, HandleState, ResourceKind

logger = logging.getLogger(__name__)

PathArg = str | os.PathLike[str]


@rich.repr.auto
class TempFile:
    """A file deleted automatically unless explicitly kept.

    Use as a context manager to bound its lifetime:

        with TempFile("report.bin") as tf:
            tf.write(b"data")
            tf.persist_name("final.bin")

    Attributes:
        config: Settings used for creation and renames.
    """

    _state: HandleState

    def __init__(self, path: PathArg, *, config: TempfsConfig | None = None) -> None:
        """Create a new file, resolving relative paths under the temp directory.

        Missing ancestor directories are created and removed again together
        with the file.

        Args:
            path: Absolute path, or path relative to the system temp directory.
            config: Settings to use. Defaults to the shared default config.

        Raises:
            PathExistsError: If the file already exists.
            TempfsIOError: If the file or its ancestors cannot be created.
        """
        config = config if config is not None else get_default_config()
        created = create_with_parents(resolve_temp(path), ResourceKind.FILE, config)
        self._adopt(created, config)

    def _adopt(self, created: CreatedResource, config: TempfsConfig) -> None:
        if created.handle is None:
            msg = f"No open file for {created.path}"
            raise ValueError(msg)
        self.config = config
        self._created_parent = created.created_parent
        self._mappings: weakref.WeakSet[FileMapping] = weakref.WeakSet()
        self._state = Active(path=created.path, handle=created.handle)

    def _transition(self, state: HandleState) -> None:
        """Switch to ``state``, revoking mappings of the previous file."""
        self._state = state
        for mapping in list(getattr(self, "_mappings", ())):
            mapping.revoke()
        self._mappings = weakref.WeakSet()

    @classmethod
    def _from_created(cls, created: CreatedResource, config: TempfsConfig) -> Self:
        instance = cls.__new__(cls)
        instance._adopt(created, config)
        return instance

    @classmethod
    def here(cls, path: PathArg, *, config: TempfsConfig | None = None) -> Self:
        """Create a new file, resolving relative paths under the working directory.

        Args:
            path: Absolute path, or path relative to the working directory.
            config: Settings to use.

        Returns:
            Active TempFile.

        Raises:
            PathExistsError: If the file already exists.
            TempfsIOError: If the file or its ancestors cannot be created.
        """
        config = config if config is not None else get_default_config()
        created = create_with_parents(resolve_here(path), ResourceKind.FILE, config)
        return cls._from_created(created, config)

    @classmethod
    def random(cls, dir: PathArg | None = None, *, config: TempfsConfig | None = None) -> Self:
        """Create a randomly named file.

        Args:
            dir: Directory to create the file in; relative paths are taken
                under the temp directory. Defaults to the temp directory.
            config: Settings to use.

        Returns:
            Active TempFile.

        Raises:
            NameGenerationExhaustedError: If no free name was found.
            TempfsIOError: If the file cannot be created.
        """
        parent = get_temp_root() if dir is None else resolve_temp(dir)
        return cls._random_in(parent, config)

    @classmethod
    def random_here(cls, dir: PathArg | None = None, *, config: TempfsConfig | None = None) -> Self:
        """Create a randomly named file relative to the working directory.

        Args:
            dir: Directory to create the file in; relative paths are taken
                under the working directory. Defaults to the working directory.
            config: Settings to use.

        Returns:
            Active TempFile.

        Raises:
            NameGenerationExhaustedError: If no free name was found.
            TempfsIOError: If the file cannot be created.
        """
        parent = get_working_dir() if dir is None else resolve_here(dir)
        return cls._random_in(parent, config)

    @classmethod
    def _random_in(cls, parent: Path, config: TempfsConfig | None) -> Self:
        config = config if config is not None else get_default_config()
        created = NameGenerator(config).create_unique(
            parent,
            lambda candidate: create_with_parents(candidate, ResourceKind.FILE, config),
        )
        return cls._from_created(created, config)

    @classmethod
    def from_parts(
        cls,
        path: PathArg,
        handle: BinaryIO,
        *,
        config: TempfsConfig | None = None,
    ) -> Self:
        """Take ownership of an existing file and its open handle.

        The pair is only accepted if both refer to the same file (same
        device and inode). The returned TempFile deletes the file when
        discarded, like any other.

        Args:
            path: Path of the existing file; relative paths are taken under
                the working directory.
            handle: Open binary file for ``path``.
            config: Settings to use.

        Returns:
            Active TempFile owning ``path`` and ``handle``.

        Raises:
            InvalidFileOrPathError: If ``path`` and ``handle`` are different files.
            TempfsIOError: If either cannot be inspected.
        """
        config = config if config is not None else get_default_config()
        resolved = resolve_here(path)
        try:
            same = os.path.samestat(os.stat(resolved), os.fstat(handle.fileno()))
        except OSError as e:
            raise TempfsIOError(f"Cannot verify {resolved}: {e}", e) from e
        if not same:
            msg = f"Handle does not refer to {resolved}"
            raise InvalidFileOrPathError(msg)
        return cls._from_created(CreatedResource(path=resolved, handle=handle), config)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path | None:
        """Path currently owned by this handle, None once disposed."""
        state = self._state
        return state.path if isinstance(state, Active) else None

    @property
    def created_parent(self) -> Path | None:
        """Topmost ancestor directory created along with the file."""
        return self._created_parent

    @property
    def is_active(self) -> bool:
        """Check if this handle is still responsible for its file."""
        return isinstance(self._state, Active)

    @property
    def disposal(self) -> Disposal | None:
        """Terminal operation that ended this handle, None while active."""
        state = self._state
        return state.outcome if isinstance(state, Disposed) else None

    def _active(self) -> Active:
        state = self._state
        if not isinstance(state, Active):
            msg = f"TempFile has already been disposed ({state.outcome.value})"
            raise ResourceUnavailableError(msg)
        return state

    def get_file(self) -> BinaryIO:
        """Get the open file.

        Returns:
            The underlying binary file object.

        Raises:
            ResourceUnavailableError: If the handle was disposed.
        """
        return self._active().handle

    @property
    def file(self) -> BinaryIO:
        """The open file, for callers that know the handle is active.

        Raises:
            RuntimeError: If the handle was disposed. This is a programming
                error; use ``get_file()`` to handle it gracefully.
        """
        state = self._state
        if not isinstance(state, Active):
            msg = "TempFile file is None"
            raise RuntimeError(msg)
        return state.handle

    # ------------------------------------------------------------------
    # I/O delegation
    # ------------------------------------------------------------------

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes (all remaining bytes if negative)."""
        return self._active().handle.read(size)

    def readinto(self, buffer: bytearray | memoryview) -> int:
        """Read into a pre-allocated buffer and return the byte count."""
        return self._active().handle.readinto(buffer)  # type: ignore[attr-defined,no-any-return]

    def readline(self, size: int = -1) -> bytes:
        """Read one line."""
        return self._active().handle.readline(size)

    def write(self, data: bytes | bytearray | memoryview) -> int:
        """Write bytes and return the number written."""
        return self._active().handle.write(data)

    def writelines(self, lines: Iterable[bytes]) -> None:
        """Write each chunk from ``lines``."""
        self._active().handle.writelines(lines)

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        """Move the file position and return the new absolute position."""
        return self._active().handle.seek(offset, whence)

    def tell(self) -> int:
        """Return the current file position."""
        return self._active().handle.tell()

    def truncate(self, size: int | None = None) -> int:
        """Resize the file to ``size`` bytes (current position if None)."""
        return self._active().handle.truncate(size)

    def flush(self) -> None:
        """Flush buffered writes to the OS."""
        self._active().handle.flush()

    def fileno(self) -> int:
        """Return the OS-level file descriptor."""
        return self._active().handle.fileno()

    def sync(self) -> None:
        """Flush and synchronize the file's contents with the storage device.

        Raises:
            ResourceUnavailableError: If the handle was disposed.
            TempfsIOError: If flushing or syncing fails.
        """
        state = self._active()
        try:
            state.handle.flush()
            os.fsync(state.handle.fileno())
        except OSError as e:
            raise TempfsIOError(f"Cannot sync {state.path}: {e}", e) from e

    def metadata(self) -> os.stat_result:
        """Get the file's metadata.

        Returns:
            ``os.stat`` result for the current path.

        Raises:
            ResourceUnavailableError: If the handle was disposed.
            TempfsIOError: If the file cannot be inspected.
        """
        state = self._active()
        try:
            return os.stat(state.path)
        except OSError as e:
            raise TempfsIOError(f"Cannot stat {state.path}: {e}", e) from e

    def __fspath__(self) -> str:
        return str(self._active().path)

    # ------------------------------------------------------------------
    # Relocation
    # ------------------------------------------------------------------

    def rename(self, new_path: PathArg) -> None:
        """Move the file.

        A bare name (no ``/`` or ``\\``) is placed next to the current file.
        Anything else is used as given, a leading ``.`` meaning the
        working directory.

        Args:
            new_path: New name or path.

        Raises:
            ResourceUnavailableError: If the handle was disposed.
            TempfsIOError: If the file cannot be moved; the handle then
                still refers to its original, unchanged location.
        """
        state = self._active()
        if is_bare_name(new_path):
            destination = state.path.parent / os.fspath(new_path)
        else:
            destination = normalize_path(new_path).absolute()
        self._relocate(state, destination)

    def rename_here(self, new_path: PathArg) -> None:
        """Move the file, placing bare names in the working directory.

        Args:
            new_path: New name or path.

        Raises:
            ResourceUnavailableError: If the handle was disposed.
            TempfsIOError: If the file cannot be moved; the handle then
                still refers to its original, unchanged location.
        """
        state = self._active()
        if is_bare_name(new_path):
            destination = get_working_dir() / os.fspath(new_path)
        else:
            destination = normalize_path(new_path).absolute()
        self._relocate(state, destination)

    def _relocate(self, state: Active, destination: Path) -> None:
        """Copy to ``destination``, drop the original, then switch over.

        Works across devices. The state is only updated once the original
        is gone.
        """
        if destination == state.path:
            return

        existed = destination.exists()
        try:
            state.handle.flush()
            position = state.handle.tell()
            shutil.copyfile(state.path, destination)
            shutil.copymode(state.path, destination)
            new_handle: BinaryIO = open(destination, "r+b")  # noqa: SIM115
        except OSError as e:
            if not existed:
                _unlink_quietly(destination)
            raise TempfsIOError(f"Cannot move {state.path} to {destination}: {e}", e) from e

        try:
            new_handle.seek(position)
            state.path.unlink()
        except OSError as e:
            _close_quietly(new_handle)
            if not existed:
                _unlink_quietly(destination)
            raise TempfsIOError(f"Cannot move {state.path} to {destination}: {e}", e) from e

        self._transition(Active(path=destination, handle=new_handle))
        _close_quietly(state.handle)
        logger.debug("Moved %s to %s", state.path, destination)

    # ------------------------------------------------------------------
    # Terminal operations
    # ------------------------------------------------------------------

    def persist(self) -> BinaryIO:
        """Keep the file and hand its open handle to the caller.

        Returns:
            The open binary file; the caller is now responsible for it.

        Raises:
            ResourceUnavailableError: If the handle was already disposed.
        """
        state = self._active()
        self._transition(Disposed(Disposal.PERSISTED))
        logger.debug("Persisted %s", state.path)
        return state.handle

    def into_inner(self) -> BinaryIO:
        """Keep the file and return the open handle (same as ``persist``)."""
        return self.persist()

    def persist_name(self, name: PathArg) -> BinaryIO:
        """Rename the file (see ``rename``) and persist it.

        Args:
            name: New name or path.

        Returns:
            The open binary file.

        Raises:
            ResourceUnavailableError: If the handle was already disposed.
            TempfsIOError: If the rename fails; the handle stays active.
        """
        self.rename(name)
        return self.persist()

    def persist_here(self, name: PathArg) -> BinaryIO:
        """Rename the file (see ``rename_here``) and persist it.

        Args:
            name: New name or path; bare names land in the working directory.

        Returns:
            The open binary file.

        Raises:
            ResourceUnavailableError: If the handle was already disposed.
            TempfsIOError: If the rename fails; the handle stays active.
        """
        self.rename_here(name)
        return self.persist()

    def _flush_for_disposal(self, state: Active) -> None:
        try:
            state.handle.flush()
        except OSError as e:
            raise TempfsIOError(f"Cannot flush {state.path}: {e}", e) from e

    def disarm(self) -> None:
        """Flush and stop deleting the file.

        The handle stays open until this TempFile is cleaned up or garbage
        collected, but can no longer be used through it.

        Raises:
            ResourceUnavailableError: If the handle was already disposed.
            TempfsIOError: If flushing fails; the handle stays active.
        """
        state = self._active()
        self._flush_for_disposal(state)
        self._transition(Disposed(Disposal.DISARMED, retained=state.handle))
        logger.debug("Disarmed %s", state.path)

    def close(self) -> None:
        """Flush and close the file, keeping it on disk.

        Raises:
            ResourceUnavailableError: If the handle was already disposed.
            TempfsIOError: If flushing or closing fails. A failed flush
                leaves the handle active.
        """
        state = self._active()
        self._flush_for_disposal(state)
        self._transition(Disposed(Disposal.CLOSED))
        try:
            state.handle.close()
        except OSError as e:
            raise TempfsIOError(f"Cannot close {state.path}: {e}", e) from e
        logger.debug("Closed %s", state.path)

    def delete(self) -> None:
        """Flush and remove the file immediately.

        Ancestor directories created together with the file are removed
        as well.

        Raises:
            ResourceUnavailableError: If the handle was already disposed.
            TempfsIOError: If flushing or removal fails. If the file itself
                could not be removed the handle stays active.
        """
        state = self._active()
        self._flush_for_disposal(state)
        try:
            state.path.unlink()
        except OSError as e:
            raise TempfsIOError(f"Cannot delete {state.path}: {e}", e) from e

        self._transition(Disposed(Disposal.DELETED))
        _close_quietly(state.handle)
        if self._created_parent is not None:
            try:
                remove_tree(self._created_parent)
            except OSError as e:
                msg = f"Cannot remove created directories {self._created_parent}: {e}"
                raise TempfsIOError(msg, e) from e
        logger.debug("Deleted %s", state.path)

    def cleanup(self) -> None:
        """Remove the file if still active, ignoring any failure.

        This is what happens when the TempFile leaves a ``with`` block or
        is garbage collected. On a disposed handle it only closes a handle
        retained by ``disarm``.
        """
        state = getattr(self, "_state", None)
        if state is None:
            return
        if isinstance(state, Disposed):
            if state.retained is not None:
                self._state = Disposed(state.outcome)
                _close_quietly(state.retained)
            return

        self._transition(Disposed(Disposal.DROPPED))
        _close_quietly(state.handle)
        _unlink_quietly(state.path)
        if self._created_parent is not None:
            try:
                remove_tree(self._created_parent)
            except OSError as e:
                logger.debug("Ignoring cleanup failure for %s: %s", self._created_parent, e)
        logger.debug("Dropped %s", state.path)

    # ------------------------------------------------------------------
    # Memory mapping
    # ------------------------------------------------------------------

    def mmap(self) -> FileMapping:
        """Map the file read-only.

        The file must not be modified externally while the mapping is open.

        Returns:
            Read-only FileMapping, revoked when this TempFile is renamed or disposed.

        Raises:
            ResourceUnavailableError: If the handle was disposed.
            TempfsIOError: If the file is empty or cannot be mapped.
        """
        state = self._active()
        self._flush_for_disposal(state)
        return self._map(state, writable=False)

    def mmap_mut(self) -> FileMapping:
        """Map the file for reading and writing.

        The file must not be modified externally while the mapping is open.

        Returns:
            Writable FileMapping, revoked when this TempFile is renamed or disposed.

        Raises:
            ResourceUnavailableError: If the handle was disposed.
            TempfsIOError: If the file is empty or cannot be mapped.
        """
        state = self._active()
        self._flush_for_disposal(state)
        return self._map(state, writable=True)

    def _map(self, state: Active, *, writable: bool) -> FileMapping:
        mapping = map_file(self, state.handle.fileno(), writable=writable)
        self._mappings.add(mapping)
        return mapping

    # ------------------------------------------------------------------
    # Scope handling
    # ------------------------------------------------------------------

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
        yield "path", self.path
        yield "disposal", self.disposal, None
        yield "created_parent", self._created_parent, None


def _close_quietly(handle: BinaryIO) -> None:
    try:
        handle.close()
    except OSError as e:
        logger.debug("Ignoring close failure: %s", e)


def _unlink_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.debug("Ignoring cleanup failure for %s: %s", path, e)
