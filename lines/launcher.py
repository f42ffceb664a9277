"""
Open a directory in the host file manager.

The launcher is chosen from the platform and, on Linux/BSD desktops, from
XDG_CURRENT_DESKTOP (falling back to DESKTOP_SESSION).
"""

from __future__ import annotations

import logging
import subprocess
import sys
from collections.abc import Mapping
from enum import Enum
from pathlib import Path

from .errors import UnsupportedPlatform

logger = logging.getLogger(__name__)


class FileManager(str, Enum):
    """Supported file manager launchers."""

    EXPLORER = "explorer"
    FINDER = "finder"
    XDG_OPEN = "xdg-open"
    NAUTILUS = "nautilus"
    DOLPHIN = "dolphin"
    THUNAR = "thunar"
    NEMO = "nemo"
    CAJA = "caja"


_COMMANDS: dict[FileManager, str] = {
    FileManager.EXPLORER: "explorer",
    FileManager.FINDER: "open",
    FileManager.XDG_OPEN: "xdg-open",
    FileManager.NAUTILUS: "nautilus",
    FileManager.DOLPHIN: "dolphin",
    FileManager.THUNAR: "thunar",
    FileManager.NEMO: "nemo",
    FileManager.CAJA: "caja",
}

# Desktop hint (lowercased) -> launcher
_DESKTOPS: dict[str, FileManager] = {
    "gnome": FileManager.NAUTILUS,
    "unity": FileManager.NAUTILUS,
    "ubuntu": FileManager.NAUTILUS,
    "kde": FileManager.DOLPHIN,
    "xfce": FileManager.THUNAR,
    "cinnamon": FileManager.NEMO,
    "x-cinnamon": FileManager.NEMO,
    "mate": FileManager.CAJA,
}

_UNIX_PREFIXES = ("linux", "freebsd", "openbsd", "netbsd")


def launch_command(manager: FileManager) -> str:
    """Executable name for a launcher."""
    return _COMMANDS[manager]


def _desktop_manager(environ: Mapping[str, str]) -> FileManager:
    hint = environ.get("XDG_CURRENT_DESKTOP") or environ.get("DESKTOP_SESSION") or ""
    for part in hint.split(":"):
        manager = _DESKTOPS.get(part.strip().lower())
        if manager is not None:
            return manager
    return FileManager.XDG_OPEN


def detect_file_manager(platform: str, environ: Mapping[str, str]) -> FileManager:
    """Pick a launcher for `platform` (a sys.platform value)."""
    if platform == "win32":
        return FileManager.EXPLORER
    if platform == "darwin":
        return FileManager.FINDER
    if platform.startswith(_UNIX_PREFIXES):
        return _desktop_manager(environ)
    raise UnsupportedPlatform(f"Opening a file manager is not supported on platform '{platform}'")


def open_directory(
    directory: Path,
    environ: Mapping[str, str],
    platform: str | None = None,
) -> FileManager:
    """Launch the file manager on `directory` without waiting for it."""
    manager = detect_file_manager(platform or sys.platform, environ)
    command = [launch_command(manager), str(directory)]
    logger.info("Launching %s", " ".join(command))
    try:
        subprocess.Popen(
            command,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except FileNotFoundError as exc:
        raise UnsupportedPlatform(f"File manager '{command[0]}' is not installed", directory) from exc
    return manager
