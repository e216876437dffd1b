"""Unit tests for TempfsConfig."""

import pytest
from pydantic import ValidationError
from tempfs.config import (
    DEFAULT_ALPHABET,
    DEFAULT_CONFIG,
    DEFAULT_NAME_LENGTH,
    DEFAULT_RETRY_BUDGET,
    OWNER_ONLY_MODE,
    TempfsConfig,
    get_default_config,
)


class TestDefaults:
    """Tests for default configuration values."""

    def test_default_values(self) -> None:
        """Defaults match the documented constants."""
        config = TempfsConfig()

        assert config.retry_budget == DEFAULT_RETRY_BUDGET == 1 << 32
        assert config.name_length == DEFAULT_NAME_LENGTH == 16
        assert config.alphabet == DEFAULT_ALPHABET
        assert config.harden_permissions is True
        assert config.permission_mode == OWNER_ONLY_MODE == 0o700

    def test_default_alphabet_contents(self) -> None:
        """The default alphabet is ASCII letters, digits and underscore."""
        assert len(DEFAULT_ALPHABET) == 63
        assert "_" in DEFAULT_ALPHABET
        assert "." not in DEFAULT_ALPHABET

    def test_get_default_config(self) -> None:
        """get_default_config returns the shared default instance."""
        assert get_default_config() is DEFAULT_CONFIG


class TestValidation:
    """Tests for TempfsConfig field validation."""

    def test_frozen(self) -> None:
        """Config values cannot be changed after creation."""
        config = TempfsConfig()

        with pytest.raises(ValidationError):
            config.name_length = 4  # type: ignore[misc]

    def test_unknown_field_rejected(self) -> None:
        """Unknown fields are rejected."""
        with pytest.raises(ValidationError):
            TempfsConfig(unknown=True)  # type: ignore[call-arg]

    @pytest.mark.parametrize("budget", [0, -1])
    def test_retry_budget_must_be_positive(self, budget: int) -> None:
        """A retry budget below one is rejected."""
        with pytest.raises(ValidationError):
            TempfsConfig(retry_budget=budget)

    @pytest.mark.parametrize("length", [0, 256])
    def test_name_length_bounds(self, length: int) -> None:
        """Name lengths outside 1..255 are rejected."""
        with pytest.raises(ValidationError):
            TempfsConfig(name_length=length)

    def test_permission_mode_bounds(self) -> None:
        """Mode bits above 0o777 are rejected."""
        with pytest.raises(ValidationError):
            TempfsConfig(permission_mode=0o1777)

    @pytest.mark.parametrize("alphabet", ["", "ab/", "a\\b", "ab\0", ".", "..", "aab"])
    def test_invalid_alphabets(self, alphabet: str) -> None:
        """Alphabets that could produce unusable names are rejected."""
        with pytest.raises(ValidationError):
            TempfsConfig(alphabet=alphabet)

    def test_dot_allowed_with_other_characters(self) -> None:
        """A dot is fine as long as it is not the only character."""
        config = TempfsConfig(alphabet="a.")

        assert config.alphabet == "a."
