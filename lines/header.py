"""
Header text for newly created notes.

The header is `# {date}`, optionally followed on the same line (two-space
separator) by the contents of an external header file. Locations are
passed in explicitly so nothing here depends on process state.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .errors import ReadError

HEADER_SEPARATOR = "  "


@dataclass(frozen=True)
class HeaderSources:
    """Where to look for the external header file, in priority order."""

    program_dir: Path | None
    cwd: Path | None
    filename: str = "header.txt"

    def candidates(self) -> list[Path]:
        name = Path(self.filename).expanduser()
        if name.is_absolute():
            return [name]
        return [d / name for d in (self.program_dir, self.cwd) if d is not None]


def find_header_source(sources: HeaderSources) -> Path | None:
    """First existing header file, program directory before cwd."""
    for candidate in sources.candidates():
        if candidate.is_file():
            return candidate
    return None


def read_header_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ReadError(f"Cannot read header file {path}: {exc}", path) from exc


def compose_header(date_stamp: str, sources: HeaderSources | None = None) -> str:
    """Build the header for a new note dated `date_stamp`."""
    header = f"# {date_stamp}"
    if sources is None:
        return header

    source = find_header_source(sources)
    if source is None:
        return header

    extra = read_header_source(source).rstrip("\r\n")
    if not extra:
        return header
    return header + HEADER_SEPARATOR + extra
