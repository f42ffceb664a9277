"""Note path resolution: dated default, named note, or explicit file."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from .config import LinesConfig, home_dir
from .errors import DirectoryCreationError
from .timestamp import timestamp

logger = logging.getLogger(__name__)

NOTE_EXTENSION = ".txt"


def notes_root(config: LinesConfig, environ: Mapping[str, str]) -> Path:
    """<home>/Documents/<app_dir>, unless notes_dir is configured."""
    if config.notes_dir is not None:
        return config.notes_dir.resolve()
    return (home_dir(environ) / "Documents" / config.app_dir).resolve()


def ensure_dir(directory: Path) -> Path:
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DirectoryCreationError(f"Cannot create directory {directory}: {exc}", directory) from exc
    return directory


def _note_name(token: str) -> str:
    """Flatten separators so a name always lands inside the notes directory."""
    return token.replace("/", "_").replace("\\", "_")


def resolve_note_path(
    token: str | None,
    notes_dir: Path,
    date_stamp: str | None = None,
) -> Path:
    """
    Decide which file a session writes to.

    Args:
        token: Command-line argument (None/blank for the dated default)
        notes_dir: Notes root; created if missing on every call
        date_stamp: YYYY_MM_DD override (defaults to today, UTC)

    Returns:
        Absolute note path whose parent directory exists
    """
    ensure_dir(notes_dir)
    stamp = date_stamp or timestamp()

    token = token.strip() if token else ""
    if not token:
        path = notes_dir / f"{stamp}{NOTE_EXTENSION}"
    else:
        candidate = Path(token).expanduser()
        if candidate.is_file():
            path = candidate.resolve()
            logger.debug("Using existing file %s", path)
            return path
        path = notes_dir / f"{_note_name(token)}_{stamp}{NOTE_EXTENSION}"

    ensure_dir(path.parent)
    logger.debug("Resolved note path %s", path)
    return path.resolve()
