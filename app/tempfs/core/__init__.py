"""Core building blocks: path resolution, name generation, resource creation."""

from tempfs.core.creator import (
    ParentTransaction,
    create_directory_exclusive,
    create_with_parents,
)
from tempfs.core.names import NameGenerator
from tempfs.core.paths import (
    first_missing_directory_component,
    get_temp_root,
    get_working_dir,
    is_bare_name,
    normalize_path,
    resolve_here,
    resolve_temp,
)

__all__ = [
    "NameGenerator",
    "ParentTransaction",
    "create_directory_exclusive",
    "create_with_parents",
    "first_missing_directory_component",
    "get_temp_root",
    "get_working_dir",
    "is_bare_name",
    "normalize_path",
    "resolve_here",
    "resolve_temp",
]
