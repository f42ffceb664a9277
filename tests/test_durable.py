"""
Tests for the backup-protected append.

Most failures are simulated by patching the module's copy/write/replace
helpers or Path.open, since root ignores file permissions. The chmod
variant only runs for unprivileged users.
"""

from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import pytest

from lines import durable
from lines.durable import (
    BackupGuard,
    append,
    backup_path_for,
    find_stale_backup,
    recover,
    write_header,
)
from lines.errors import AppendFailed, BackupFailed, CleanupFailed, RestoreFailed
from lines.tail import tail


def _backups(directory: Path) -> list[Path]:
    return sorted(directory.glob("*.bak"))


# -----------------------------------------------------------------------------
# Successful appends
# -----------------------------------------------------------------------------


def test_append_adds_exactly_one_line(note: Path) -> None:
    outcome = append(note, "hello")

    assert note.read_bytes() == b"a\nb\nhello\n"
    assert tail(note, 1) == ["hello"]
    assert outcome.backed_up is True
    assert outcome.bytes_written == len(b"hello\n")
    assert outcome.cleanup_error is None
    assert _backups(note.parent) == []


@pytest.mark.parametrize("initial", [b"", b"x\n", b"one\ntwo\nthree\n", "café\n".encode("utf-8")])
def test_append_preserves_previous_content(tmp_path: Path, initial: bytes) -> None:
    path = tmp_path / "n.txt"
    path.write_bytes(initial)
    before = tail(path, None)

    append(path, "entry ✓")

    assert tail(path, None) == before + ["entry ✓"]
    assert not backup_path_for(path).exists()


def test_append_to_new_file_needs_no_backup(tmp_path: Path) -> None:
    path = tmp_path / "fresh.txt"

    outcome = append(path, "first")

    assert path.read_text(encoding="utf-8") == "first\n"
    assert outcome.backed_up is False
    assert _backups(tmp_path) == []


def test_backup_holds_original_while_writing(note: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    seen: dict[str, bytes] = {}
    real_write = durable._write_text

    def spying_write(path: Path, text: str) -> int:
        seen["backup"] = backup_path_for(path).read_bytes()
        return real_write(path, text)

    monkeypatch.setattr(durable, "_write_text", spying_write)

    append(note, "c")

    assert seen["backup"] == b"a\nb\n"
    assert not backup_path_for(note).exists()


def test_write_header_adds_blank_line(tmp_path: Path) -> None:
    path = tmp_path / "2024_02_29.txt"

    write_header(path, "# 2024_02_29")

    assert path.read_text(encoding="utf-8") == "# 2024_02_29\n\n"


def test_write_header_without_blank_line(tmp_path: Path) -> None:
    path = tmp_path / "2024_02_29.txt"

    outcome = write_header(path, "# 2024_02_29", blank_line=False)

    assert outcome.bytes_written == len(b"# 2024_02_29\n")
    assert path.read_text(encoding="utf-8") == "# 2024_02_29\n"


def test_write_header_is_all_or_nothing(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "2024_02_29.txt"
    writes: list[str] = []

    def write_then_fail(target: Path, text: str) -> int:
        writes.append(text)
        with target.open("ab") as f:
            f.write(b"# 2024_02_29\n")
        raise OSError(28, "No space left on device")

    monkeypatch.setattr(durable, "_write_text", write_then_fail)

    with pytest.raises(AppendFailed):
        write_header(path, "# 2024_02_29")

    assert writes == ["# 2024_02_29\n\n"]
    assert not path.exists()


@pytest.mark.parametrize("text", ["two\nlines", "carriage\rreturn", "trailing\n"])
def test_append_rejects_line_breaks(note: Path, text: str) -> None:
    with pytest.raises(ValueError, match="line breaks"):
        append(note, text)

    assert note.read_bytes() == b"a\nb\n"
    assert _backups(note.parent) == []


# -----------------------------------------------------------------------------
# Failure handling
# -----------------------------------------------------------------------------


def _partial_then_fail(path: Path, text: str) -> int:
    with path.open("ab") as f:
        f.write(b"half a li")
    raise OSError(28, "No space left on device")


def test_failed_append_restores_content(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "x.txt"
    path.write_bytes(b"x\n")
    monkeypatch.setattr(durable, "_write_text", _partial_then_fail)

    with pytest.raises(AppendFailed) as info:
        append(path, "lost")

    assert path.read_bytes() == b"x\n"
    assert _backups(tmp_path) == []
    assert isinstance(info.value.__cause__, OSError)
    assert info.value.path == path


def test_failed_append_to_new_file_removes_it(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "new.txt"
    monkeypatch.setattr(durable, "_write_text", _partial_then_fail)

    with pytest.raises(AppendFailed):
        append(path, "lost")

    assert not path.exists()
    assert _backups(tmp_path) == []


def test_interrupt_during_write_restores_and_propagates(note: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def interrupted(path: Path, text: str) -> int:
        with path.open("ab") as f:
            f.write(b"partial")
        raise KeyboardInterrupt

    monkeypatch.setattr(durable, "_write_text", interrupted)

    with pytest.raises(KeyboardInterrupt):
        append(note, "never")

    assert note.read_bytes() == b"a\nb\n"
    assert not backup_path_for(note).exists()


def test_backup_failure_leaves_file_untouched(note: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_copy(src: Path, dst: Path) -> None:
        dst.write_bytes(b"a\n")  # partial copy
        raise OSError(5, "Input/output error")

    monkeypatch.setattr(durable, "_copy_file", failing_copy)

    with pytest.raises(BackupFailed):
        append(note, "never")

    assert note.read_bytes() == b"a\nb\n"
    assert not backup_path_for(note).exists()


def test_leftover_backup_blocks_append(note: Path) -> None:
    stale = backup_path_for(note)
    stale.write_bytes(b"a\n")

    with pytest.raises(BackupFailed, match="recover"):
        append(note, "never")

    assert note.read_bytes() == b"a\nb\n"
    assert stale.read_bytes() == b"a\n"


def test_unwritable_target_is_restored(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "x.txt"
    path.write_bytes(b"x\n")
    real_open = Path.open

    def read_only_target(self: Path, mode: str = "r", *args, **kwargs):
        if self == path and any(flag in mode for flag in "wax+"):
            raise PermissionError(13, "Permission denied", str(self))
        return real_open(self, mode, *args, **kwargs)

    monkeypatch.setattr(Path, "open", read_only_target)

    with pytest.raises(AppendFailed) as info:
        append(path, "lost")

    assert isinstance(info.value.__cause__, PermissionError)
    assert path.read_bytes() == b"x\n"
    assert _backups(tmp_path) == []


@pytest.mark.skipif(
    sys.platform == "win32" or os.geteuid() == 0,
    reason="needs POSIX permissions enforced for the current user",
)
def test_read_only_file_is_restored_with_its_mode(tmp_path: Path) -> None:
    path = tmp_path / "x.txt"
    path.write_bytes(b"x\n")
    path.chmod(0o444)

    with pytest.raises(AppendFailed):
        append(path, "lost")

    assert path.read_bytes() == b"x\n"
    assert stat.S_IMODE(path.stat().st_mode) == 0o444
    assert _backups(tmp_path) == []


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX file modes")
def test_restore_keeps_file_mode(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "x.txt"
    path.write_bytes(b"x\n")
    path.chmod(0o640)
    monkeypatch.setattr(durable, "_write_text", _partial_then_fail)

    with pytest.raises(AppendFailed):
        append(path, "lost")

    assert path.read_bytes() == b"x\n"
    assert stat.S_IMODE(path.stat().st_mode) == 0o640


def test_restore_failure_is_distinct(note: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_replace(src: Path, dst: Path) -> None:
        raise OSError(5, "Input/output error")

    monkeypatch.setattr(durable, "_replace_file", failing_replace)
    monkeypatch.setattr(durable, "_write_text", _partial_then_fail)

    with pytest.raises(RestoreFailed) as info:
        append(note, "never")

    err = info.value
    assert isinstance(err.append_error, AppendFailed)
    assert isinstance(err.__cause__, OSError)
    # The last good copy is kept for manual inspection
    assert err.backup_path == backup_path_for(note)
    assert err.backup_path.read_bytes() == b"a\nb\n"


def test_cleanup_failure_is_a_warning(note: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    real_unlink = Path.unlink

    def stubborn_unlink(self: Path, missing_ok: bool = False) -> None:
        if self.name.endswith(".bak"):
            raise PermissionError(13, "Permission denied")
        real_unlink(self, missing_ok=missing_ok)

    monkeypatch.setattr(Path, "unlink", stubborn_unlink)

    outcome = append(note, "kept")

    assert note.read_bytes() == b"a\nb\nkept\n"
    assert isinstance(outcome.cleanup_error, CleanupFailed)
    assert outcome.cleanup_error.backup_path == backup_path_for(note)


# -----------------------------------------------------------------------------
# Backup naming, detection and recovery
# -----------------------------------------------------------------------------


def test_backup_suffix_appends_to_full_name(tmp_path: Path) -> None:
    assert backup_path_for(tmp_path / "notes.txt") == tmp_path / "notes.txt.bak"
    assert backup_path_for(tmp_path / "old.bak") == tmp_path / "old.bak.bak"
    assert backup_path_for(tmp_path / "n.txt", ".lines~") == tmp_path / "n.txt.lines~"


def test_custom_suffix_is_used_and_removed(note: Path) -> None:
    guard = BackupGuard(note, ".swp")
    with guard:
        assert (note.parent / "note.txt.swp").exists()
    assert not (note.parent / "note.txt.swp").exists()


def test_find_stale_backup(note: Path) -> None:
    assert find_stale_backup(note) is None
    backup_path_for(note).write_bytes(b"a\n")
    assert find_stale_backup(note) == backup_path_for(note)


def test_recover_restores_backup(note: Path) -> None:
    backup = backup_path_for(note)
    backup.write_bytes(b"a\n")

    handled = recover(note)

    assert handled == backup
    assert note.read_bytes() == b"a\n"
    assert not backup.exists()


def test_recover_discard_keeps_note(note: Path) -> None:
    backup = backup_path_for(note)
    backup.write_bytes(b"a\n")

    recover(note, discard=True)

    assert note.read_bytes() == b"a\nb\n"
    assert not backup.exists()


def test_recover_without_backup(note: Path) -> None:
    assert recover(note) is None


def test_recover_over_unwritable_note(note: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    backup = backup_path_for(note)
    backup.write_bytes(b"a\n")
    real_open = Path.open

    def read_only_note(self: Path, mode: str = "r", *args, **kwargs):
        if self == note and any(flag in mode for flag in "wax+"):
            raise PermissionError(13, "Permission denied", str(self))
        return real_open(self, mode, *args, **kwargs)

    monkeypatch.setattr(Path, "open", read_only_note)

    assert recover(note) == backup
    assert note.read_bytes() == b"a\n"
    assert not backup.exists()
