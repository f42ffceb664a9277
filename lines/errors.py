"""
Error taxonomy for lines.

Startup errors (configuration, directory creation) are fatal. Append and
read errors are raised per operation and reported by the session, which
keeps running.

RestoreFailed is the only error that leaves a file in an unknown state.
"""

from __future__ import annotations

from pathlib import Path


class LinesError(Exception):
    """Base class for every error raised by lines."""

    def __init__(self, message: str, path: Path | None = None):
        super().__init__(message)
        self.path = path


class ConfigurationError(LinesError):
    """Home directory unresolvable or config file invalid."""


class DirectoryCreationError(LinesError):
    """Notes directory could not be created."""


class AppendError(LinesError):
    """Base class for failures of the durable append protocol."""


class BackupFailed(AppendError):
    """Backup copy failed; the target was not touched."""


class AppendFailed(AppendError):
    """Write failed; the target was restored to its previous content."""


class RestoreFailed(AppendError):
    """Write failed and restoring the backup failed too.

    The target's content is indeterminate and needs manual inspection.
    The backup file, if still present, holds the last known good copy.
    """

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        append_error: BaseException | None = None,
        backup_path: Path | None = None,
    ):
        super().__init__(message, path)
        self.append_error = append_error
        self.backup_path = backup_path


class CleanupFailed(AppendError):
    """Backup could not be deleted after a successful write (non-fatal)."""

    def __init__(self, message: str, path: Path | None = None, backup_path: Path | None = None):
        super().__init__(message, path)
        self.backup_path = backup_path


class ReadError(LinesError):
    """A note or header source could not be read as UTF-8 text."""


class UnsupportedPlatform(LinesError):
    """No file manager launcher is known for this platform."""
