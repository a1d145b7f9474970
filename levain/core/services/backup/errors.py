"""Error hierarchy for backup, restore and retention operations."""

from __future__ import annotations

from pathlib import Path


class BackupError(RuntimeError):
    """Base exception for backup related failures."""


class InsufficientSpaceError(BackupError):
    """Not enough free disk space to hold a snapshot."""

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            f"Insufficient disk space. Required: {required} bytes, "
            f"Available: {available} bytes"
        )
        self.required = required
        self.available = available


class BackupVerificationError(BackupError):
    """A freshly written snapshot is materially smaller than its source."""


class BackupRestoreError(BackupError):
    """Restoring a snapshot failed."""


class BackupNotFoundError(BackupRestoreError):
    """The requested snapshot does not exist under the backup root."""

    def __init__(self, dir_name: str, backup_root: Path) -> None:
        super().__init__(f"Backup not found: {dir_name} (checked in {backup_root})")
        self.dir_name = dir_name
        self.backup_root = backup_root


class DirectoryInUseError(BackupError):
    """A directory could be neither deleted nor renamed out of the way."""


__all__ = [
    "BackupError",
    "BackupNotFoundError",
    "BackupRestoreError",
    "BackupVerificationError",
    "DirectoryInUseError",
    "InsufficientSpaceError",
]
