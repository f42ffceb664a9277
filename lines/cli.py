"""CLI entrypoint for lines."""

import dataclasses
import logging
import os
import sys
from pathlib import Path

import click

from . import __version__
from .config import LinesConfig, resolve_config
from .errors import LinesError


class NoteGroup(click.Group):
    """Command group that routes an unknown first argument to `write`.

    `lines notes.txt` and `lines pta_meeting` behave like
    `lines write notes.txt` and `lines write pta_meeting`.
    """

    default_command = "write"

    def resolve_command(self, ctx: click.Context, args: list[str]):
        if args and not args[0].startswith("-") and self.get_command(ctx, args[0]) is None:
            return self.default_command, self.get_command(ctx, self.default_command), args
        return super().resolve_command(ctx, args)


def _configure_logging(verbosity: int) -> None:
    from rich.console import Console
    from rich.logging import RichHandler

    level = {0: logging.ERROR, 1: logging.INFO}.get(verbosity, logging.DEBUG)
    logger = logging.getLogger("lines")
    logger.handlers = [RichHandler(console=Console(stderr=True), show_path=False)]
    logger.setLevel(level)
    logger.propagate = False


def _program_dir() -> Path:
    """Directory of the running program, searched first for header.txt."""
    return Path(sys.argv[0]).resolve().parent


def _notes_dir(ctx: click.Context) -> Path:
    from .paths import ensure_dir, notes_root

    try:
        return ensure_dir(notes_root(ctx.obj["config"], ctx.obj["environ"]))
    except LinesError as exc:
        raise click.ClickException(str(exc)) from exc


def _resolve_target(ctx: click.Context, target: str | None) -> Path:
    from .paths import resolve_note_path

    notes_dir = _notes_dir(ctx)
    try:
        return resolve_note_path(target, notes_dir)
    except LinesError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group(cls=NoteGroup, invoke_without_command=True)
@click.version_option(__version__, prog_name="lines")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=False, dir_okay=False, path_type=Path),
    envvar="LINES_CONFIG",
    default=None,
    help="TOML config file (default: ~/.config/lines/config.toml if present)",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Log protocol steps (-v info, -vv debug)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: int) -> None:
    """lines - append-only journaling notes.

    Type a line, press enter, and it is appended to today's note behind a
    crash-safe backup. Type q, quit or exit to leave.

    Examples:

        lines

        lines pta_meeting

        lines ~/notes/todo.txt

        lines files
    """
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["environ"] = os.environ

    try:
        ctx.obj["config"] = resolve_config(config_path, os.environ)
    except LinesError as exc:
        raise click.ClickException(str(exc)) from exc

    if ctx.invoked_subcommand is None:
        ctx.invoke(write, target=None, num_lines=None)


@cli.command(hidden=True)
@click.argument("target", required=False)
@click.option(
    "--lines",
    "-n",
    "num_lines",
    type=click.IntRange(min=1),
    default=None,
    help="Tail lines to show after each entry (default: tail_lines from config)",
)
@click.pass_context
def write(ctx: click.Context, target: str | None, num_lines: int | None) -> None:
    """Start a session on TARGET.

    TARGET is an existing file (used as is) or a note name, which becomes
    <notes>/<name>_<date>.txt. Without TARGET, today's <notes>/<date>.txt
    is used.
    """
    from .commands.session import run_session
    from .header import HeaderSources

    config: LinesConfig = ctx.obj["config"]
    if num_lines is not None:
        config = dataclasses.replace(config, tail_lines=num_lines)

    path = _resolve_target(ctx, target)
    sources = HeaderSources(program_dir=_program_dir(), cwd=Path.cwd(), filename=config.header_file)

    exit_code = run_session(path, config, header_sources=sources)
    sys.exit(exit_code)


@cli.command()
@click.argument(
    "directory",
    required=False,
    type=click.Path(file_okay=False, path_type=Path),
)
@click.pass_context
def files(ctx: click.Context, directory: Path | None) -> None:
    """Open the notes directory (or DIRECTORY) in the file manager."""
    from .commands.files_cmd import run_files

    target = directory.expanduser().resolve() if directory else _notes_dir(ctx)
    exit_code = run_files(target, ctx.obj["environ"])
    sys.exit(exit_code)


@cli.command("tail")
@click.argument("target", required=False)
@click.option(
    "--lines",
    "-n",
    "num_lines",
    type=click.IntRange(min=1),
    default=None,
    help="Number of lines (default: tail_lines from config)",
)
@click.option("--all", "show_all", is_flag=True, help="Print the whole file")
@click.pass_context
def tail_command(ctx: click.Context, target: str | None, num_lines: int | None, show_all: bool) -> None:
    """Print the last lines of TARGET without starting a session."""
    from .commands.tail_cmd import run_tail

    path = _resolve_target(ctx, target)
    count = None if show_all else (num_lines or ctx.obj["config"].tail_lines)
    exit_code = run_tail(path, count)
    sys.exit(exit_code)


@cli.command()
@click.argument("target")
@click.option(
    "--discard",
    is_flag=True,
    help="Delete the backup and keep the note as it is",
)
@click.pass_context
def recover(ctx: click.Context, target: str, discard: bool) -> None:
    """Resolve a backup left behind by an interrupted append.

    By default the backup is copied back over TARGET. Use --discard when
    TARGET already holds the line you meant to write.
    """
    from .commands.tail_cmd import run_recover

    path = _resolve_target(ctx, target)
    exit_code = run_recover(path, ctx.obj["config"].backup_suffix, discard=discard)
    sys.exit(exit_code)


def main() -> None:
    """Main entrypoint."""
    cli()


if __name__ == "__main__":
    main()
