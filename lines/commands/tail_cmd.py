"""Tail and recover commands - inspect or repair a note outside a session."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console

from ..durable import find_stale_backup, recover
from ..errors import AppendError, ReadError
from ..tail import render_tail, tail
from .session import report_error


def run_tail(path: Path, num_lines: int | None) -> int:
    """Print the last `num_lines` lines of `path` (all lines if None)."""
    console = Console()
    try:
        lines = tail(path, num_lines)
    except ReadError as exc:
        report_error(Console(stderr=True), exc)
        return 1

    render_tail(console, path, lines)
    return 0


def run_recover(path: Path, backup_suffix: str, discard: bool = False) -> int:
    """
    Resolve a leftover backup of `path`.

    Restores the backup over the note unless `discard` is set, in which
    case the note is kept and the backup deleted.
    """
    console = Console(stderr=True)

    stale = find_stale_backup(path, backup_suffix)
    if stale is None:
        console.print(f"No leftover backup for {path}", style="dim", highlight=False)
        return 0

    try:
        handled = recover(path, backup_suffix, discard=discard)
    except AppendError as exc:
        report_error(console, exc)
        return 1

    if discard:
        console.print(f"Discarded {handled}; kept {path} as is", style="green", highlight=False)
    else:
        console.print(f"Restored {path} from {handled}", style="green", highlight=False)
    return 0
