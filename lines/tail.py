"""Read-only view of the last lines of a note."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.text import Text

from .errors import ReadError


def read_lines(path: Path) -> list[str]:
    """All lines of `path`, split on \\n, without terminators."""
    try:
        # Decode bytes directly; text mode would also split on a lone \r
        content = path.read_bytes().decode("utf-8")
    except FileNotFoundError as exc:
        raise ReadError(f"File not found: {path}", path) from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise ReadError(f"Cannot read {path}: {exc}", path) from exc

    lines = content.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line.removesuffix("\r") for line in lines]


def tail(path: Path, n: int | None) -> list[str]:
    """
    Last `n` lines of `path` in original order.

    Args:
        path: File to read (never created or modified)
        n: Window size; None returns every line

    Returns:
        At most `n` lines
    """
    lines = read_lines(path)
    if n is None:
        return lines
    if n <= 0:
        return []
    return lines[-n:]


def render_tail(console: Console, path: Path, lines: list[str]) -> None:
    """Print a tail window below a dim file marker."""
    console.print(f"[dim]{escape(str(path))}[/dim]", highlight=False)
    for line in lines:
        console.print(Text(line))
