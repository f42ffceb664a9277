"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from lines.config import LinesConfig


@pytest.fixture
def home(tmp_path: Path) -> Path:
    """A fake home directory."""
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def environ(home: Path) -> dict[str, str]:
    return {"HOME": str(home)}


@pytest.fixture
def notes_dir(home: Path) -> Path:
    """Default notes root under the fake home (not created)."""
    return home / "Documents" / "line_editor"


@pytest.fixture
def config() -> LinesConfig:
    return LinesConfig()


@pytest.fixture
def note(tmp_path: Path) -> Path:
    """An existing note with two lines."""
    path = tmp_path / "note.txt"
    path.write_bytes(b"a\nb\n")
    return path
