"""Tunables for name generation and permission hardening.

Configuration is an explicit value handed to each constructor; there is no
process-wide mutable state.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Characters a generated name may contain
DEFAULT_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_"

DEFAULT_NAME_LENGTH = 16

DEFAULT_RETRY_BUDGET = 1 << 32

# Owner rwx, nothing for group/other
OWNER_ONLY_MODE = 0o700


class TempfsConfig(BaseModel):
    """Settings shared by TempFile, TempDir and the name generator.

    Attributes:
        retry_budget: Maximum number of candidate names tried before giving up.
        name_length: Length of generated names.
        alphabet: Characters generated names are drawn from.
        harden_permissions: Apply ``permission_mode`` to created entries (POSIX only).
        permission_mode: Mode bits applied to new directories and files.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    retry_budget: Annotated[
        int,
        Field(ge=1, description="Name generation attempts before giving up"),
    ] = DEFAULT_RETRY_BUDGET
    name_length: Annotated[
        int,
        Field(ge=1, le=255, description="Length of generated names"),
    ] = DEFAULT_NAME_LENGTH
    alphabet: Annotated[
        str,
        Field(min_length=1, description="Characters generated names are drawn from"),
    ] = DEFAULT_ALPHABET
    harden_permissions: Annotated[
        bool,
        Field(description="Restrict created entries to the owner"),
    ] = True
    permission_mode: Annotated[
        int,
        Field(ge=0, le=0o777, description="Mode bits for created entries"),
    ] = OWNER_ONLY_MODE

    @field_validator("alphabet")
    @classmethod
    def validate_alphabet(cls, v: str) -> str:
        """Validate that the alphabet can only produce plain file names."""
        if "/" in v or "\\" in v or "\0" in v:
            msg = "alphabet cannot contain path separators or NUL"
            raise ValueError(msg)
        if set(v) == {"."}:
            msg = "alphabet cannot consist only of '.'"
            raise ValueError(msg)
        if len(set(v)) != len(v):
            msg = "alphabet cannot contain duplicate characters"
            raise ValueError(msg)
        return v


DEFAULT_CONFIG = TempfsConfig()


def get_default_config() -> TempfsConfig:
    """Get the default configuration.

    Returns:
        The shared, immutable default TempfsConfig.
    """
    return DEFAULT_CONFIG
