"""Files command - open the notes directory in the host file manager."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from ..errors import UnsupportedPlatform
from ..launcher import launch_command, open_directory


def run_files(directory: Path, environ: Mapping[str, str], platform: str | None = None) -> int:
    """
    Open `directory` in the file manager.

    Returns 0 on launch, 1 if no launcher is available.
    """
    console = Console(stderr=True)

    if not directory.is_dir():
        console.print(f"[red]Not a directory:[/red] {escape(str(directory))}", highlight=False)
        return 1

    try:
        manager = open_directory(directory, environ, platform)
    except UnsupportedPlatform as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}", highlight=False)
        return 1

    console.print(f"Opened {directory} with {launch_command(manager)}", style="dim", highlight=False)
    return 0
