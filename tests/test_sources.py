"""Tests that the package sources compile cleanly."""

import warnings
from pathlib import Path

import pytest

import damndiff

_SOURCES = sorted(Path(damndiff.__file__).parent.rglob("*.py"))


@pytest.mark.parametrize("path", _SOURCES, ids=lambda p: p.name)
def test_compiles_without_warnings(path):
    """Invalid escape sequences in docstrings surface as warnings at compile time."""
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        compile(path.read_text(encoding="utf-8"), str(path), "exec")
