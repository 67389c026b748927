"""Smoke tests: the installed package runs and type-checks cleanly."""

import subprocess
import sys
from pathlib import Path

import pytest

from amqp_consume import __version__


pytestmark = pytest.mark.smoke


def test_module_entry_point_reports_version() -> None:
    result = subprocess.run(
        [sys.executable, "-m", "amqp_consume", "--version"],
        capture_output=True,
        text=True,
    )

    assert result.returncode == 0, result.stderr
    assert result.stdout.strip() == f"amqp-consume {__version__}"


def test_amqp_consume_type_checking_passes(project_root: Path) -> None:
    """mypy reports no errors with the [tool.mypy] settings from pyproject.toml."""
    result = subprocess.run(
        [sys.executable, "-m", "mypy", "src/amqp_consume"],
        capture_output=True,
        text=True,
        cwd=project_root,
    )
    if "No module named mypy" in result.stderr:
        pytest.fail("mypy is not installed. Install the test extra: pip install -e .[test]")

    if result.returncode != 0:
        errors = result.stdout.strip().splitlines()
        pytest.fail("Type checking failed in amqp_consume:\n" + "\n".join(errors[:20]))
