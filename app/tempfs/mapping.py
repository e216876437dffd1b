"""Memory mappings over temporary files.

A FileMapping is a capability handed out by an active TempFile. It stays
usable only while the mapping is open and its TempFile still refers to the
file that was mapped. Renaming or disposing of the TempFile revokes (and
unmaps) every mapping it handed out; afterwards every access raises
ResourceUnavailableError.

Safety contract: the mapped file must not be modified by anything other
than this mapping while it is open (other processes, other handles,
truncation). tempfs documents this obligation but cannot enforce it.
"""

from __future__ import annotations

import logging
import mmap
from types import TracebackType
from typing import TYPE_CHECKING, Self

from tempfs.errors import ResourceUnavailableError, TempfsIOError

if TYPE_CHECKING:
    from tempfs.temp_file import TempFile

logger = logging.getLogger(__name__)


def map_file(owner: TempFile, fileno: int, *, writable: bool) -> FileMapping:
    """Map the whole file behind ``fileno``.

    Args:
        owner: TempFile the descriptor belongs to.
        fileno: Open descriptor of the file.
        writable: Map read/write instead of read-only.

    Returns:
        A FileMapping bound to ``owner``.

    Raises:
        TempfsIOError: If the file is empty or the OS refuses the mapping.
    """
    access = mmap.ACCESS_WRITE if writable else mmap.ACCESS_READ
    try:
        mapping = mmap.mmap(fileno, 0, access=access)
    except ValueError as e:
        # mmap refuses zero-length files with ValueError
        raise TempfsIOError(f"Cannot map {owner.path}: {e}") from e
    except OSError as e:
        raise TempfsIOError(f"Cannot map {owner.path}: {e}", e) from e
    return FileMapping(owner, mapping, writable=writable)


class FileMapping:
    """Read-only or writable memory mapping bound to a TempFile.

    Attributes:
        writable: Whether the mapping accepts writes.
    """

    def __init__(self, owner: TempFile, mapping: mmap.mmap, *, writable: bool) -> None:
        self._owner = owner
        self._mapping = mapping
        self._revoked = False
        self.writable = writable

    @property
    def valid(self) -> bool:
        """Check if the mapping may still be accessed."""
        return not self._revoked and not self._mapping.closed and self._owner.is_active

    @property
    def closed(self) -> bool:
        """Check if the file has been unmapped."""
        return self._mapping.closed

    def _checked(self) -> mmap.mmap:
        if not self.valid:
            if not self._revoked and not self._owner.is_active:
                self.revoke()
            msg = "Mapping is closed or its file has been renamed or disposed"
            raise ResourceUnavailableError(msg)
        return self._mapping

    def revoke(self) -> None:
        """Invalidate the mapping and unmap it.

        Called by the owning TempFile when it stops referring to the mapped
        file. If a ``view()`` is still exported the unmap is left to garbage
        collection, but the mapping refuses access either way.
        """
        self._revoked = True
        try:
            self.close()
        except BufferError as e:
            logger.debug("Mapping of %s still has exported views: %s", self._owner.path, e)

    def view(self) -> memoryview:
        """Get a memoryview over the mapped bytes.

        The view must be released before ``close()`` is called.

        Returns:
            memoryview of the mapping (read-only for read-only mappings).

        Raises:
            ResourceUnavailableError: If the mapping is no longer valid.
        """
        view = memoryview(self._checked())
        return view if self.writable else view.toreadonly()

    def __len__(self) -> int:
        return len(self._checked())

    def __getitem__(self, key: int | slice) -> int | bytes:
        return self._checked()[key]

    def __setitem__(self, key: int | slice, value: int | bytes) -> None:
        # Read-only mappings raise TypeError from mmap itself
        self._checked()[key] = value  # type: ignore[index,assignment]

    def flush(self) -> None:
        """Write changes of a writable mapping back to the file.

        Raises:
            ResourceUnavailableError: If the mapping is no longer valid.
            TempfsIOError: If the OS fails to sync the mapping.
        """
        mapping = self._checked()
        if not self.writable:
            return
        try:
            mapping.flush()
        except OSError as e:
            raise TempfsIOError(f"Cannot flush mapping of {self._owner.path}: {e}", e) from e

    def close(self) -> None:
        """Unmap the file. Closing twice is a no-op."""
        if not self._mapping.closed:
            self._mapping.close()
            logger.debug("Closed mapping of %s", self._owner.path)

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
