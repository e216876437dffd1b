"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import tempfile
from pathlib import Path

import pytest
from tempfs.config import TempfsConfig


@pytest.fixture
def temp_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Redirect the system temp directory to a private scratch directory."""
    root = tmp_path / "temp_root"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Change the working directory to a private scratch directory."""
    cwd = tmp_path / "workdir"
    cwd.mkdir()
    monkeypatch.chdir(cwd)
    return cwd


@pytest.fixture
def tiny_config() -> TempfsConfig:
    """Config with a two-name namespace and a small retry budget."""
    return TempfsConfig(alphabet="ab", name_length=1, retry_budget=200)
