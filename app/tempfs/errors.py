"""Exceptions raised by tempfs.

Every recoverable failure raised by a public tempfs operation derives from
TempfsError. Misuse of the unchecked accessors (for example ``TempFile.file``
on a disposed handle) raises RuntimeError instead, since that is a
programming error rather than a condition callers are expected to handle.
"""

from pathlib import Path


class TempfsError(Exception):
    """Base exception for tempfs errors."""


class ResourceUnavailableError(TempfsError):
    """Raised when operating on a handle or directory that was already disposed."""


class PathExistsError(TempfsError):
    """Raised when a creation target already exists.

    Attributes:
        path: The path that was already present.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Path already exists: {path}")


class InvalidFileOrPathError(TempfsError):
    """Raised when a path and an open handle do not refer to the same file."""


class TempfsIOError(TempfsError):
    """Wraps an operating system failure.

    The original exception is chained as ``__cause__`` and kept on
    ``os_error`` for callers that want to inspect ``errno``.

    Attributes:
        os_error: The underlying OSError, if the failure came from the OS.
    """

    def __init__(self, message: str, os_error: OSError | None = None) -> None:
        self.os_error = os_error
        super().__init__(message)


class PatternError(TempfsError):
    """Raised when a filename pattern cannot be compiled.

    Attributes:
        pattern: The pattern that failed to compile.
    """

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        super().__init__(f"Invalid pattern {pattern!r}: {reason}")


class NameGenerationExhaustedError(TempfsError):
    """Raised when no free random name was found within the retry budget.

    Attributes:
        parent: Directory the names were generated for.
        attempts: Number of candidates tried.
    """

    def __init__(self, parent: Path, attempts: int) -> None:
        self.parent = parent
        self.attempts = attempts
        super().__init__(f"Could not generate a unique name in {parent} after {attempts} attempts")
