"""Unit tests for NameGenerator.

Tests name shape, uniqueness against the target directory, exhaustion of
the retry budget and retrying after a lost creation race.
"""

import random
from pathlib import Path

import pytest
from tempfs.config import DEFAULT_ALPHABET, DEFAULT_NAME_LENGTH, TempfsConfig
from tempfs.core.names import NameGenerator
from tempfs.errors import NameGenerationExhaustedError, PathExistsError


class TestGenerate:
    """Tests for NameGenerator.generate."""

    def test_default_shape(self) -> None:
        """Generated names use the default length and alphabet."""
        name = NameGenerator().generate()

        assert len(name) == DEFAULT_NAME_LENGTH
        assert set(name) <= set(DEFAULT_ALPHABET)

    def test_custom_config(self) -> None:
        """Generated names follow a custom alphabet and length."""
        config = TempfsConfig(alphabet="xyz", name_length=5)

        name = NameGenerator(config).generate()

        assert len(name) == 5
        assert set(name) <= {"x", "y", "z"}

    def test_seeded_rng_is_deterministic(self) -> None:
        """An injected random source makes generation reproducible."""
        first = NameGenerator(rng=random.Random(42)).generate()
        second = NameGenerator(rng=random.Random(42)).generate()

        assert first == second


class TestGenerateUnique:
    """Tests for NameGenerator.generate_unique."""

    def test_returns_free_path_in_parent(self, tmp_path: Path) -> None:
        """The returned candidate lives in the parent and does not exist."""
        candidate = NameGenerator().generate_unique(tmp_path)

        assert candidate.parent == tmp_path
        assert not candidate.exists()

    def test_skips_existing_names(self, tmp_path: Path) -> None:
        """Existing entries are never returned."""
        (tmp_path / "a").touch()
        config = TempfsConfig(alphabet="ab", name_length=1, retry_budget=500)

        candidate = NameGenerator(config).generate_unique(tmp_path)

        assert candidate == tmp_path / "b"

    def test_many_distinct_names(self, tmp_path: Path) -> None:
        """N names from a large namespace are pairwise distinct."""
        generator = NameGenerator()
        names = set()
        for _ in range(50):
            candidate = generator.generate_unique(tmp_path)
            candidate.touch()
            names.add(candidate.name)

        assert len(names) == 50

    def test_exhausted_namespace_raises(self, tmp_path: Path, tiny_config: TempfsConfig) -> None:
        """A fully used namespace raises instead of looping forever."""
        (tmp_path / "a").touch()
        (tmp_path / "b").touch()

        with pytest.raises(NameGenerationExhaustedError) as exc_info:
            NameGenerator(tiny_config).generate_unique(tmp_path)

        assert exc_info.value.parent == tmp_path
        assert exc_info.value.attempts == tiny_config.retry_budget

    def test_budget_smaller_than_namespace_use(self, tmp_path: Path) -> None:
        """A budget of one attempt fails as soon as the single name is taken."""
        (tmp_path / "a").touch()
        config = TempfsConfig(alphabet="a", name_length=1, retry_budget=1)

        with pytest.raises(NameGenerationExhaustedError):
            NameGenerator(config).generate_unique(tmp_path)


class TestCreateUnique:
    """Tests for NameGenerator.create_unique."""

    def test_returns_create_result(self, tmp_path: Path) -> None:
        """The result of the create callable is returned."""
        result = NameGenerator().create_unique(tmp_path, lambda p: ("made", p))

        assert result[0] == "made"
        assert result[1].parent == tmp_path

    def test_lost_race_is_retried(self, tmp_path: Path) -> None:
        """PathExistsError from create consumes one attempt and retries."""
        calls: list[Path] = []

        def create(candidate: Path) -> Path:
            calls.append(candidate)
            if len(calls) == 1:
                raise PathExistsError(candidate)
            return candidate

        result = NameGenerator().create_unique(tmp_path, create)

        assert len(calls) == 2
        assert result == calls[1]

    def test_lost_races_exhaust_budget(self, tmp_path: Path) -> None:
        """Losing every race ends in NameGenerationExhaustedError."""
        config = TempfsConfig(retry_budget=3)

        def create(candidate: Path) -> Path:
            raise PathExistsError(candidate)

        with pytest.raises(NameGenerationExhaustedError):
            NameGenerator(config).create_unique(tmp_path, create)

    def test_other_errors_propagate(self, tmp_path: Path) -> None:
        """Errors other than collisions are not retried."""

        def create(candidate: Path) -> Path:
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            NameGenerator().create_unique(tmp_path, create)
