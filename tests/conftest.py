"""Shared pytest fixtures for the letlang test suite."""

from __future__ import annotations

import pytest
from click.testing import CliRunner


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def write_source(tmp_path):
    """Write a .let file into the temp dir and return its path."""

    def _write(text: str | bytes, name: str = "main.let"):
        path = tmp_path / name
        if isinstance(text, bytes):
            path.write_bytes(text)
        else:
            path.write_text(text, encoding="utf-8")
        return path

    return _write
