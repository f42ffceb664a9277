"""
Crash-safe line appends.

Every append runs under a backup of the target:

1. copy the current file to a sibling backup (`<name><suffix>`) and fsync it
2. append the line and fsync
3. delete the backup on success, or rename it back over the target on failure

A backup that outlives the process marks an interrupted append. It is only
ever detected passively (find_stale_backup) and resolved on request
(recover); nothing scans for or repairs backups automatically.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

from .config import DEFAULT_BACKUP_SUFFIX
from .errors import AppendFailed, BackupFailed, CleanupFailed, RestoreFailed

logger = logging.getLogger(__name__)

LINE_TERMINATOR = "\n"


@dataclass
class AppendOutcome:
    """Result of a successful append."""

    path: Path
    bytes_written: int
    backed_up: bool
    cleanup_error: CleanupFailed | None = None


def backup_path_for(path: Path, suffix: str = DEFAULT_BACKUP_SUFFIX) -> Path:
    """Sibling backup path; the suffix is added to the full file name."""
    return path.with_name(path.name + suffix)


def find_stale_backup(path: Path, suffix: str = DEFAULT_BACKUP_SUFFIX) -> Path | None:
    """Return the leftover backup for `path`, if an earlier append was interrupted."""
    backup = backup_path_for(path, suffix)
    return backup if backup.exists() else None


def _copy_file(src: Path, dst: Path) -> None:
    """Byte-for-byte copy with the source's mode, flushed to disk before returning."""
    with src.open("rb") as fin, dst.open("wb") as fout:
        shutil.copyfileobj(fin, fout)
        fout.flush()
        os.fsync(fout.fileno())
    shutil.copymode(src, dst)


def _replace_file(src: Path, dst: Path) -> None:
    """Atomically move `src` over `dst`; only the directory needs to be writable."""
    src.replace(dst)


def _write_text(path: Path, text: str) -> int:
    data = text.encode("utf-8")
    with path.open("ab") as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())
    return len(data)


class BackupGuard:
    """
    Scoped backup around a single mutation of `path`.

    On enter the current file is copied aside. On a clean exit the copy is
    deleted; on any exception it is renamed back over `path` (or, for a file
    that did not exist, the new file is removed) and the exception propagates.
    """

    def __init__(self, path: Path, suffix: str = DEFAULT_BACKUP_SUFFIX):
        self.path = path
        self.backup_path = backup_path_for(path, suffix)
        self.existed = False
        self.cleanup_error: CleanupFailed | None = None

    def __enter__(self) -> BackupGuard:
        if self.backup_path.exists():
            raise BackupFailed(
                f"Leftover backup {self.backup_path} from an interrupted append; "
                f"run 'lines recover {self.path}' first",
                self.path,
            )

        self.existed = self.path.exists()
        if not self.existed:
            logger.debug("No backup needed, %s is new", self.path)
            return self

        try:
            _copy_file(self.path, self.backup_path)
        except OSError as exc:
            self._discard_partial_backup()
            raise BackupFailed(f"Cannot back up {self.path}: {exc}", self.path) from exc

        logger.debug("Backed up %s to %s", self.path, self.backup_path)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc is None:
            self._release()
        else:
            self._restore(exc)
        return False

    def _discard_partial_backup(self) -> None:
        try:
            self.backup_path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove partial backup %s: %s", self.backup_path, exc)

    def _release(self) -> None:
        if not self.existed:
            return
        try:
            self.backup_path.unlink()
        except OSError as exc:
            self.cleanup_error = CleanupFailed(
                f"Append succeeded but backup {self.backup_path} could not be removed: {exc}",
                self.path,
                backup_path=self.backup_path,
            )
            logger.warning("%s", self.cleanup_error)
            return
        logger.debug("Removed backup %s", self.backup_path)

    def _restore(self, error: BaseException) -> None:
        if not self.existed:
            # Nothing to move back; the pre-append state is "no file"
            try:
                self.path.unlink(missing_ok=True)
            except OSError as exc:
                raise RestoreFailed(
                    f"Append to new file {self.path} failed and the partial file could not be removed: {exc}",
                    self.path,
                    append_error=error,
                ) from exc
            logger.info("Removed partially written %s", self.path)
            return

        # The rename consumes the backup, so success leaves nothing behind
        try:
            _replace_file(self.backup_path, self.path)
        except OSError as exc:
            raise RestoreFailed(
                f"Append to {self.path} failed and restoring from {self.backup_path} failed: {exc}",
                self.path,
                append_error=error,
                backup_path=self.backup_path,
            ) from exc

        logger.info("Restored %s from backup after failed append", self.path)


def _guarded_append(path: Path, text: str, backup_suffix: str) -> AppendOutcome:
    guard = BackupGuard(path, backup_suffix)
    with guard:
        try:
            written = _write_text(path, text)
        except (OSError, UnicodeError) as exc:
            raise AppendFailed(f"Cannot append to {path}: {exc}", path) from exc

    logger.debug("Appended %d bytes to %s", written, path)
    return AppendOutcome(
        path=path,
        bytes_written=written,
        backed_up=guard.existed,
        cleanup_error=guard.cleanup_error,
    )


def append(path: Path, text: str, backup_suffix: str = DEFAULT_BACKUP_SUFFIX) -> AppendOutcome:
    """
    Append `text` plus a line terminator to `path`.

    Args:
        path: Target file (created if missing)
        text: Line content, written as UTF-8; must not contain \\n or \\r
        backup_suffix: Suffix for the backup sibling

    Returns:
        AppendOutcome; a failed backup removal is reported in cleanup_error

    Raises:
        ValueError: `text` spans more than one line, nothing is touched
        BackupFailed: backup could not be taken, file untouched
        AppendFailed: write failed, file restored
        RestoreFailed: write and restore both failed, file state unknown
    """
    if "\n" in text or "\r" in text:
        raise ValueError(f"Line must not contain line breaks: {text!r}")
    return _guarded_append(path, text + LINE_TERMINATOR, backup_suffix)


def write_header(
    path: Path,
    header: str,
    blank_line: bool = True,
    backup_suffix: str = DEFAULT_BACKUP_SUFFIX,
) -> AppendOutcome:
    """
    Write the creation header of a new note, optionally followed by a blank line.

    Header and blank line go out in a single guarded append, so either both
    land or neither does.
    """
    text = header + LINE_TERMINATOR
    if blank_line:
        text += LINE_TERMINATOR
    return _guarded_append(path, text, backup_suffix)


def recover(path: Path, suffix: str = DEFAULT_BACKUP_SUFFIX, discard: bool = False) -> Path | None:
    """
    Resolve a leftover backup of `path`.

    By default the backup is renamed back over `path`. With `discard`, the
    backup is removed and `path` is kept as it is.

    Returns:
        The backup path that was handled, or None if there was none
    """
    backup = find_stale_backup(path, suffix)
    if backup is None:
        return None

    if not discard:
        try:
            _replace_file(backup, path)
        except OSError as exc:
            raise RestoreFailed(
                f"Cannot restore {path} from {backup}: {exc}",
                path,
                backup_path=backup,
            ) from exc
        logger.info("Restored %s from %s", path, backup)
        return backup

    try:
        backup.unlink()
    except OSError as exc:
        raise CleanupFailed(f"Cannot remove backup {backup}: {exc}", path, backup_path=backup) from exc
    logger.info("Discarded backup %s", backup)
    return backup
