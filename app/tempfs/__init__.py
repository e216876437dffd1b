"""tempfs - temporary files and directories with automatic cleanup.

TempFile and TempDir remove what they created when they are discarded,
unless told to keep it.
"""

from tempfs.config import DEFAULT_CONFIG, TempfsConfig, get_default_config
from tempfs.errors import (
    InvalidFileOrPathError,
    NameGenerationExhaustedError,
    PathExistsError,
    PatternError,
    ResourceUnavailableError,
    TempfsError,
    TempfsIOError,
)
from tempfs.mapping import FileMapping
from tempfs.models import Disposal, ResourceKind
from tempfs.temp_dir import TempDir
from tempfs.temp_file import TempFile

__version__ = "0.13.12"

__all__ = [
    "DEFAULT_CONFIG",
    "Disposal",
    "FileMapping",
    "InvalidFileOrPathError",
    "NameGenerationExhaustedError",
    "PathExistsError",
    "PatternError",
    "ResourceKind",
    "ResourceUnavailableError",
    "TempDir",
    "TempFile",
    "TempfsConfig",
    "TempfsError",
    "TempfsIOError",
    "__version__",
    "get_default_config",
]
