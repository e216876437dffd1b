"""Path resolution for temporary resources.

Caller-supplied paths are grounded against one of two roots:
- temp-rooted: relative paths are joined under the system temp directory
- here-rooted: relative paths are joined under the current working directory

Both roots are read at call time. Normalization is purely lexical and
never touches the filesystem:
- a ``.`` that is the first component is replaced by the working directory
- any later ``.`` is dropped
- ``..`` removes the previously pushed name; extra ``..`` are ignored
"""

import os
import tempfile
from pathlib import Path

_SEPARATORS = "/\\"


def get_temp_root() -> Path:
    """Get the system temporary directory.

    Returns:
        Path reported by ``tempfile.gettempdir()`` (honours TMPDIR).
    """
    return Path(tempfile.gettempdir())


def get_working_dir() -> Path:
    """Get the current working directory of the process.

    Returns:
        Absolute path of the working directory.
    """
    return Path.cwd()


def _split(path: str) -> tuple[str, list[str]]:
    """Split a path string into its anchor and raw components."""
    drive, rest = os.path.splitdrive(path)
    separators = os.sep + (os.altsep or "")
    anchor = drive
    if rest[:1] and rest[0] in separators:
        anchor = drive + os.sep
        rest = rest.lstrip(separators)
    if os.altsep:
        rest = rest.replace(os.altsep, os.sep)
    return anchor, rest.split(os.sep) if rest else []


def normalize_path(path: str | os.PathLike[str]) -> Path:
    """Normalize a path without touching the filesystem.

    Args:
        path: Path to normalize.

    Returns:
        The normalized path. Relative inputs stay relative unless they
        start with ``.``, which splices in the working directory.
    """
    anchor, components = _split(os.fspath(path))
    names: list[str] = []

    for index, component in enumerate(components):
        if component == ".":
            if index == 0 and not anchor:
                cwd = get_working_dir()
                anchor = cwd.anchor
                names = list(cwd.parts[1:])
        elif component == "..":
            if names:
                names.pop()
        elif component:
            names.append(component)

    return Path(anchor, *names)


def resolve_temp(path: str | os.PathLike[str]) -> Path:
    """Resolve a path against the system temporary directory.

    Args:
        path: Absolute path, or path relative to the temp root.

    Returns:
        Normalized path.
    """
    candidate = Path(path)
    if not candidate.is_absolute():
        candidate = get_temp_root() / candidate
    return normalize_path(candidate)


def resolve_here(path: str | os.PathLike[str]) -> Path:
    """Resolve a path against the current working directory.

    Args:
        path: Absolute path, or path relative to the working directory.

    Returns:
        Normalized path.
    """
    candidate = Path(path)
    if not candidate.is_absolute():
        candidate = get_working_dir() / candidate
    return normalize_path(candidate)


def is_bare_name(value: str | os.PathLike[str]) -> bool:
    """Check if a value is a plain name without any path separator.

    Both ``/`` and ``\\`` count as separators on every platform.

    Args:
        value: Candidate name or path.

    Returns:
        True if the value contains no separator characters.
    """
    text = os.fspath(value)
    return not any(sep in text for sep in _SEPARATORS)


def first_missing_directory_component(path: Path) -> Path | None:
    """Find the first ancestor directory of ``path`` that does not exist.

    The parent chain is walked from the root towards the leaf; the final
    component of ``path`` itself is not considered.

    Args:
        path: Target path whose ancestors are inspected.

    Returns:
        The shortest missing prefix, or None if every ancestor exists.
    """
    parent = path.parent
    if parent == path:
        return None

    cumulative = Path()
    for part in parent.parts:
        cumulative = cumulative / part
        if not cumulative.exists():
            return cumulative
    return None
