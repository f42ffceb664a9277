"""
Settings for lines, loaded from an optional TOML file.

Lookup order: explicit path (--config / LINES_CONFIG), then
<home>/.config/lines/config.toml if present, then built-in defaults.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_APP_DIR = "line_editor"
DEFAULT_TAIL_LINES = 10
DEFAULT_HEADER_FILE = "header.txt"
DEFAULT_BACKUP_SUFFIX = ".bak"

_KNOWN_KEYS = {
    "app_dir",
    "notes_dir",
    "tail_lines",
    "header_file",
    "backup_suffix",
    "blank_line_after_header",
}


@dataclass(frozen=True)
class LinesConfig:
    """Resolved settings."""

    app_dir: str = DEFAULT_APP_DIR
    notes_dir: Path | None = None
    tail_lines: int = DEFAULT_TAIL_LINES
    header_file: str = DEFAULT_HEADER_FILE
    backup_suffix: str = DEFAULT_BACKUP_SUFFIX
    blank_line_after_header: bool = True


def home_dir(environ: Mapping[str, str]) -> Path:
    """Resolve the home directory from HOME, falling back to USERPROFILE."""
    home = environ.get("HOME") or environ.get("USERPROFILE")
    if not home:
        raise ConfigurationError("Could not find home directory: neither HOME nor USERPROFILE is set")
    return Path(home)


def default_config_path(environ: Mapping[str, str]) -> Path:
    return home_dir(environ) / ".config" / "lines" / "config.toml"


def _str_value(data: dict[str, Any], key: str, default: str) -> str:
    value = data.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"{key} must be a non-empty string")
    return value.strip()


def parse_config(data: dict[str, Any]) -> LinesConfig:
    """Validate a decoded TOML table into LinesConfig."""
    unknown = set(data) - _KNOWN_KEYS
    if unknown:
        logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(unknown)))

    app_dir = _str_value(data, "app_dir", DEFAULT_APP_DIR)
    if "/" in app_dir or "\\" in app_dir:
        raise ConfigurationError("app_dir must be a single directory name")

    notes_dir = None
    if "notes_dir" in data:
        notes_dir = Path(_str_value(data, "notes_dir", "")).expanduser()

    tail_lines = data.get("tail_lines", DEFAULT_TAIL_LINES)
    # bool is an int subclass; reject it explicitly
    if isinstance(tail_lines, bool) or not isinstance(tail_lines, int) or tail_lines <= 0:
        raise ConfigurationError("tail_lines must be a positive integer")

    header_file = _str_value(data, "header_file", DEFAULT_HEADER_FILE)

    backup_suffix = _str_value(data, "backup_suffix", DEFAULT_BACKUP_SUFFIX)
    if "/" in backup_suffix or "\\" in backup_suffix:
        raise ConfigurationError("backup_suffix must not contain path separators")

    blank_line = data.get("blank_line_after_header", True)
    if not isinstance(blank_line, bool):
        raise ConfigurationError("blank_line_after_header must be true or false")

    return LinesConfig(
        app_dir=app_dir,
        notes_dir=notes_dir,
        tail_lines=tail_lines,
        header_file=header_file,
        backup_suffix=backup_suffix,
        blank_line_after_header=blank_line,
    )


def load_config(path: Path) -> LinesConfig:
    """Load settings from a TOML file."""
    import tomllib

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config {path}: {exc}", path) from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {path}: {exc}", path) from exc

    logger.debug("Loaded config from %s", path)
    return parse_config(data)


def resolve_config(explicit: Path | None, environ: Mapping[str, str]) -> LinesConfig:
    """Load the explicit config, else the default location, else defaults."""
    if explicit is not None:
        if not explicit.is_file():
            raise ConfigurationError(f"Config file not found: {explicit}", explicit)
        return load_config(explicit)

    candidate = default_config_path(environ)
    if candidate.is_file():
        return load_config(candidate)
    return LinesConfig()
