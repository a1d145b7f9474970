"""
Backup models — outcomes of snapshot operations and discovered backups.

``BackupResult`` is what the snapshot engine returns for expected
outcomes (including failures such as a missing source or a full disk).
``BackupInfo`` describes a snapshot found on disk by the catalog.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"
TIMESTAMP_LENGTH = 15
BACKUP_SUFFIX = ".backup-"

FailureKind = Literal["missing", "not_directory", "insufficient_space", "io_error"]


def format_timestamp(moment: datetime) -> str:
    """Render a date-time as ``yyyyMMdd-HHmmss``."""
    return moment.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """Strictly parse a ``yyyyMMdd-HHmmss`` string.

    Raises:
        ValueError: If the value is not exactly in that format.
    """
    if len(value) != TIMESTAMP_LENGTH or not value[:8].isdigit() or not value[9:].isdigit():
        raise ValueError(f"Invalid backup timestamp: {value!r}")
    return datetime.strptime(value, TIMESTAMP_FORMAT)


def backup_dir_name(package_name: str, timestamp: str) -> str:
    """Directory name of a snapshot: ``<package>.backup-<timestamp>``."""
    return f"{package_name}{BACKUP_SUFFIX}{timestamp}"


class BackupResult(BaseModel):
    """Outcome of a single backup operation.

    A successful result always carries the snapshot path. Failures
    carry a human-readable ``error``, a ``kind`` and, for resource
    exhaustion, the wrapped exception in ``cause``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    package_name: str
    timestamp: str
    backup_path: Path | None = None
    success: bool = False
    error: str | None = None
    size_bytes: int = 0

    kind: FailureKind | None = None
    cause: Exception | None = Field(default=None, exclude=True)

    def can_restore(self) -> bool:
        """Whether this result points to a usable snapshot."""
        return self.success and self.backup_path is not None

    @classmethod
    def created(
        cls,
        package_name: str,
        backup_path: Path,
        timestamp: datetime,
        size_bytes: int,
    ) -> BackupResult:
        """Create a success result."""
        return cls(
            package_name=package_name,
            timestamp=format_timestamp(timestamp),
            backup_path=backup_path,
            success=True,
            size_bytes=size_bytes,
        )

    @classmethod
    def failure(
        cls,
        package_name: str,
        error: str,
        *,
        kind: FailureKind,
        timestamp: datetime | None = None,
        cause: Exception | None = None,
    ) -> BackupResult:
        """Create a failure result."""
        return cls(
            package_name=package_name,
            timestamp=format_timestamp(timestamp or datetime.now()),
            success=False,
            error=error,
            kind=kind,
            cause=cause,
        )

    def __str__(self) -> str:
        if not self.success:
            return f"BackupResult[package={self.package_name}, failed: {self.error}]"
        return (
            f"BackupResult[package={self.package_name}, timestamp={self.timestamp}, "
            f"path={self.backup_path}, size={self.size_bytes}]"
        )


class BackupInfo(BaseModel):
    """A snapshot discovered on disk."""

    model_config = ConfigDict(frozen=True)

    package_name: str
    timestamp: datetime
    timestamp_str: str
    size_bytes: int = 0
    path: Path

    def to_dict(self) -> dict:
        return {
            "package": self.package_name,
            "timestamp": self.timestamp_str,
            "created_at": self.timestamp.isoformat(),
            "size_bytes": self.size_bytes,
            "path": str(self.path),
        }
