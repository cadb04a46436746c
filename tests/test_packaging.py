"""Tests for pyproject.toml metadata."""

import tomllib
from pathlib import Path

_PYPROJECT = Path(__file__).parent.parent / "pyproject.toml"


def _project() -> dict:
    with _PYPROJECT.open("rb") as f:
        return tomllib.load(f)["project"]


def test_no_long_description_file():
    assert "readme" not in _project()


def test_console_script_points_at_cli():
    assert _project()["scripts"]["peer-council"] == "peer_council.cli:main"
