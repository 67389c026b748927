"""Fixtures for the smoke tests."""

from pathlib import Path

import pytest


PROJECT_ROOT = Path(__file__).parent.parent


@pytest.fixture
def project_root() -> Path:
    """Return the directory holding pyproject.toml."""
    return PROJECT_ROOT
