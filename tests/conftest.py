"""Shared test fixtures."""

from __future__ import annotations

import pytest

from ferry.settings import Settings
from fakes import directory, file


@pytest.fixture
def isolate_settings(tmp_path, monkeypatch):
    """Point the settings singleton at a temp file."""
    settings = Settings(tmp_path / "config" / "settings.json")
    monkeypatch.setattr(Settings, "_instance", settings)
    return settings


@pytest.fixture
def sample_tree():
    """root/{a.txt (100 B), sub/{b.txt (50 B)}}"""
    return directory(
        "root",
        file("a.txt", b"a" * 100),
        directory("sub", file("b.txt", b"b" * 50)),
    )


@pytest.fixture
def local_tree(tmp_path):
    """The same tree as *sample_tree* on disk, plus an empty dest directory."""
    root = tmp_path / "root"
    (root / "sub").mkdir(parents=True)
    (root / "a.txt").write_bytes(b"a" * 100)
    (root / "sub" / "b.txt").write_bytes(b"b" * 50)
    dest = tmp_path / "dest"
    dest.mkdir()
    return root, dest
