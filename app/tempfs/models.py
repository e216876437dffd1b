"""Lifecycle models for temporary resources.

This module defines the value types shared by the resource creator,
TempFile and TempDir: what kind of resource is created, what a creation
call produced, and the state a handle is in.

A handle is either Active (it owns a path and an open file) or Disposed
(it owns neither). There is no third state in which only one of the two
is present.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO


class ResourceKind(str, Enum):
    """Kind of filesystem entry to create.

    Attributes:
        FILE: Regular file, opened for binary read/write.
        DIRECTORY: Directory.
    """

    FILE = "file"
    DIRECTORY = "directory"


class Disposal(str, Enum):
    """Terminal state reached by a handle.

    Attributes:
        PERSISTED: The open file was handed to the caller; the file is kept.
        DISARMED: Deletion was suppressed; the file is kept.
        CLOSED: The file was flushed and closed; the file is kept.
        DELETED: The file was removed explicitly.
        DROPPED: The handle was discarded while active and the file removed.
    """

    PERSISTED = "persisted"
    DISARMED = "disarmed"
    CLOSED = "closed"
    DELETED = "deleted"
    DROPPED = "dropped"

    @property
    def keeps_resource(self) -> bool:
        """Check if the resource is left on disk in this state."""
        return self in (Disposal.PERSISTED, Disposal.DISARMED, Disposal.CLOSED)


@dataclass(frozen=True, slots=True)
class Active:
    """State of a handle that is responsible for a file.

    Attributes:
        path: Absolute path currently owned by the handle.
        handle: Open binary file for ``path``.
    """

    path: Path
    handle: BinaryIO


@dataclass(frozen=True, slots=True)
class Disposed:
    """State of a handle after a terminal operation.

    Attributes:
        outcome: Which terminal operation ended the handle.
        retained: File object kept open after disarm until the wrapper
            itself is discarded; None for every other outcome.
    """

    outcome: Disposal
    retained: BinaryIO | None = None


HandleState = Active | Disposed


@dataclass(frozen=True, slots=True)
class CreatedResource:
    """Result of creating a file or directory.

    Attributes:
        path: Path of the created entry.
        handle: Open file for file targets, None for directories.
        created_parent: Topmost ancestor directory created by the call,
            None if every ancestor already existed.
        leaf_created: False if an existing directory was adopted.
    """

    path: Path
    handle: BinaryIO | None
    created_parent: Path | None = None
    leaf_created: bool = True
