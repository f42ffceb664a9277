"""Interactive session - type a line, append it, show the tail."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from rich.console import Console
from rich.markup import escape

from ..config import LinesConfig
from ..durable import append, find_stale_backup, write_header
from ..errors import AppendError, CleanupFailed, LinesError, ReadError, RestoreFailed
from ..header import HeaderSources, compose_header
from ..tail import render_tail, tail
from ..timestamp import timestamp

EXIT_KEYWORDS = frozenset({"q", "quit", "exit"})


def report_error(console: Console, exc: LinesError) -> None:
    """Print an error; RestoreFailed gets its own, louder message."""
    if isinstance(exc, RestoreFailed):
        console.print("[bold red]RESTORE FAILED:[/bold red] file state is indeterminate.", highlight=False)
        console.print(f"  {exc}", markup=False, highlight=False)
        if exc.append_error is not None:
            console.print(f"  Original error: {exc.append_error}", markup=False, highlight=False)
        if exc.backup_path is not None and exc.backup_path.exists():
            console.print(f"  Last good copy: {exc.backup_path}", markup=False, highlight=False)
        console.print(f"  Inspect {exc.path} manually before writing to it again.", markup=False, highlight=False)
        return
    if isinstance(exc, CleanupFailed):
        console.print(f"[yellow]Warning:[/yellow] {escape(str(exc))}", highlight=False)
        return
    console.print(f"[red]Error:[/red] {escape(str(exc))}", highlight=False)


def _show(console: Console, path: Path, tail_lines: int) -> None:
    console.clear()
    console.print("Lines  '(q)uit' | 'exit'\n", markup=False, highlight=False)
    try:
        lines = tail(path, tail_lines)
    except ReadError as exc:
        report_error(console, exc)
        return
    render_tail(console, path, lines)


def create_note(
    path: Path,
    config: LinesConfig,
    header_sources: HeaderSources | None,
    date_stamp: str | None = None,
) -> None:
    """Write the header of a note that does not exist yet."""
    header = compose_header(date_stamp or timestamp(), header_sources)
    write_header(path, header, config.blank_line_after_header, config.backup_suffix)


def run_session(
    path: Path,
    config: LinesConfig,
    *,
    header_sources: HeaderSources | None = None,
    date_stamp: str | None = None,
    console: Console | None = None,
    read_line: Callable[[], str] | None = None,
) -> int:
    """
    Run the prompt loop against `path` until an exit keyword or end of input.

    Returns the process exit code.
    """
    console = console or Console()
    ask = read_line or (lambda: console.input("> "))

    stale = find_stale_backup(path, config.backup_suffix)
    if stale is not None:
        console.print(
            f"[yellow]Warning:[/yellow] leftover backup {escape(str(stale))} from an interrupted append. "
            f"Run 'lines recover {escape(str(path))}' before writing.",
            highlight=False,
        )

    if not path.exists():
        try:
            create_note(path, config, header_sources, date_stamp)
        except LinesError as exc:
            report_error(console, exc)
            return 1

    _show(console, path, config.tail_lines)

    while True:
        try:
            raw = ask()
        except (EOFError, KeyboardInterrupt):
            console.print()
            break

        entry = raw.strip()
        if entry in EXIT_KEYWORDS:
            console.print("Exiting editor...")
            break
        if not entry:
            continue

        try:
            outcome = append(path, entry, config.backup_suffix)
        except AppendError as exc:
            report_error(console, exc)
            continue

        _show(console, path, config.tail_lines)
        if outcome.cleanup_error is not None:
            report_error(console, outcome.cleanup_error)

    return 0
