"""Shared test fixtures for the folderbm test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from folderbm import preferences
from folderbm.persistence import BookmarkFileStore
from folderbm.store import BookmarkStore


@pytest.fixture(autouse=True)
def isolated_home(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Point HOME, the profile dir and the preferences file into tmp_path.

    Nothing in the suite may touch the real user profile.
    """
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.setenv("FOLDERBM_HOME", str(home))
    monkeypatch.setattr(preferences, "PREFS_PATH", home / ".folderbm" / "preferences.yaml")
    return home


@pytest.fixture
def dirs(tmp_path: Path) -> dict[str, str]:
    """A handful of real directories (and one regular file) to bookmark."""
    root = tmp_path / "fs"
    made: dict[str, str] = {}
    for name in ("alpha", "mike", "zeta", "project", "cwd"):
        path = root / name
        path.mkdir(parents=True)
        made[name] = str(path)
    regular = root / "notes.txt"
    regular.write_text("not a directory")
    made["file"] = str(regular)
    return made


@pytest.fixture
def file_store(tmp_path: Path) -> BookmarkFileStore:
    return BookmarkFileStore(tmp_path / "profile" / ".folderBM.json")


@pytest.fixture
def store(file_store: BookmarkFileStore, dirs: dict[str, str]) -> BookmarkStore:
    """A store whose current directory is ``dirs['cwd']``."""
    return BookmarkStore(file_store, current_directory=lambda: dirs["cwd"])
