"""
Snapshot engine — full copies of an installation directory.

Copy-based strategy used by the installer around an upgrade:

    1. ``backup()`` the existing installation to a timestamped sibling
    2. ``delete_installation_directory()`` (or rename it if files are locked)
    3. install the new version in place
    4. on failure: ``restore()`` the snapshot

Expected failures (missing source, full disk) come back as a failed
``BackupResult``. A snapshot that fails verification, or a restore from
an unusable result, raises.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from levain.core.models.backup import BackupResult, backup_dir_name, format_timestamp
from levain.core.services.backup import fs_ops
from levain.core.services.backup.errors import (
    BackupRestoreError,
    BackupVerificationError,
    DirectoryInUseError,
    InsufficientSpaceError,
)

logger = logging.getLogger(__name__)

DISK_SPACE_BUFFER = 1.1
VERIFY_MIN_RATIO = 0.95


class BackupService:
    """Create, restore and retire package installation snapshots."""

    def __init__(self, *, clock: Callable[[], datetime] = datetime.now) -> None:
        self._clock = clock

    # ── Backup ──────────────────────────────────────────────────────

    def backup(self, install_dir: Path) -> BackupResult:
        """Snapshot ``install_dir`` to ``<name>.backup-<timestamp>`` beside it.

        Raises:
            BackupVerificationError: The copy is materially smaller than
                the source. The partial snapshot is left on disk.
        """
        install_dir = Path(install_dir)
        package_name = install_dir.name

        if not install_dir.exists():
            logger.debug("No existing installation to back up: %s", install_dir)
            return BackupResult.failure(
                package_name, "Directory does not exist", kind="missing",
                timestamp=self._clock(),
            )

        if not install_dir.is_dir():
            logger.debug("Path is not a directory: %s", install_dir)
            return BackupResult.failure(
                package_name, "Path is not a directory", kind="not_directory",
                timestamp=self._clock(),
            )

        timestamp = self._clock()
        backup_path = self.backup_path_for(install_dir, timestamp)

        try:
            required = fs_ops.directory_size(install_dir)
            self._validate_disk_space(backup_path, required)

            logger.info("Backing up %s to %s", install_dir, backup_path)
            logger.debug("Backup size: %d bytes", required)

            copied = fs_ops.copy_tree(install_dir, backup_path, total_bytes=required)
        except InsufficientSpaceError as e:
            logger.error("Insufficient disk space for backup: %s", e)
            return BackupResult.failure(
                package_name, f"Insufficient disk space: {e}",
                kind="insufficient_space", timestamp=timestamp, cause=e,
            )
        except OSError as e:
            logger.error("Backup failed for %s: %s", install_dir, e)
            return BackupResult.failure(
                package_name, f"Backup failed: {e}",
                kind="io_error", timestamp=timestamp, cause=e,
            )

        self._verify(install_dir, backup_path)

        logger.info("Backup completed: %s (%d bytes)", backup_path.name, copied)
        return BackupResult.created(package_name, backup_path, timestamp, copied)

    @staticmethod
    def backup_path_for(install_dir: Path, timestamp: datetime) -> Path:
        """Sibling snapshot path for ``install_dir`` at ``timestamp``."""
        return install_dir.parent / backup_dir_name(install_dir.name, format_timestamp(timestamp))

    def _validate_disk_space(self, location: Path, required_bytes: int) -> None:
        available = fs_ops.usable_space(location.parent)
        required_with_buffer = int(required_bytes * DISK_SPACE_BUFFER)
        if available < required_with_buffer:
            raise InsufficientSpaceError(required_with_buffer, available)
        logger.debug(
            "Disk space check passed. Required: %d, Available: %d",
            required_with_buffer, available,
        )

    def _verify(self, original: Path, backup: Path) -> None:
        original_size = fs_ops.directory_size(original)
        backup_size = fs_ops.directory_size(backup)
        if backup_size < original_size * VERIFY_MIN_RATIO:
            logger.error(
                "Backup verification failed for %s (original %d bytes, backup %d bytes)",
                backup, original_size, backup_size,
            )
            raise BackupVerificationError(
                f"Backup verification failed. Original: {original_size} bytes, "
                f"Backup: {backup_size} bytes ({backup})"
            )
        logger.debug(
            "Backup verification passed. Original: %d, Backup: %d",
            original_size, backup_size,
        )

    # ── Retire ──────────────────────────────────────────────────────

    def delete_installation_directory(self, directory: Path) -> Path | None:
        """Get an installation directory out of the way.

        Deletes it; if some files are locked, renames it to
        ``.deleted.<name>.<epoch-ms>`` instead.

        Returns:
            The rename target when the fallback was used, else None.

        Raises:
            DirectoryInUseError: Neither delete nor rename succeeded.
        """
        directory = Path(directory)
        if not directory.exists():
            logger.debug("Directory does not exist, nothing to delete: %s", directory)
            return None

        try:
            logger.debug("Deleting installation directory: %s", directory)
            fs_ops.delete_tree(directory)
            return None
        except OSError as delete_error:
            logger.warning("Unable to delete %s. Some files may be in use.", directory)
            logger.debug("Delete error: %s", delete_error)

            retired = directory.with_name(
                f".deleted.{directory.name}.{int(time.time() * 1000)}"
            )
            try:
                directory.replace(retired)
            except OSError:
                logger.error("Cannot delete or rename old installation: %s", directory)
                raise DirectoryInUseError(
                    f"Cannot delete or rename {directory}. "
                    "Please close any programs using files in this directory."
                ) from delete_error

            logger.info("Renamed old installation to %s for later cleanup", retired.name)
            return retired

    # ── Restore ─────────────────────────────────────────────────────

    def restore(self, result: BackupResult, target_dir: Path) -> int:
        """Replace ``target_dir`` with the snapshot referenced by ``result``.

        Returns:
            Bytes copied.

        Raises:
            BackupRestoreError: The result is not restorable, the snapshot
                vanished, or the copy failed.
        """
        if not result.can_restore():
            raise BackupRestoreError(f"Cannot restore from invalid backup: {result}")

        backup_path = result.backup_path
        if backup_path is None or not backup_path.exists():
            raise BackupRestoreError(f"Backup no longer exists: {backup_path}")

        target_dir = Path(target_dir)
        logger.info("Restoring from backup: %s -> %s", backup_path, target_dir)
        try:
            fs_ops.delete_tree(target_dir)
            copied = fs_ops.copy_tree(backup_path, target_dir)
        except OSError as e:
            logger.error("Failed to restore from backup: %s", e)
            raise BackupRestoreError(f"Failed to restore from {backup_path}: {e}") from e

        logger.info("Restored %s from backup (%d bytes)", target_dir.name, copied)
        return copied
