"""
Backup catalog and rollback.

Discovers ``<package>.backup-<yyyyMMdd-HHmmss>`` snapshots under the
configured backup root, restores them over an installation directory,
and enforces the configured retention policy.

The catalog is derived from directory names on every call; sizes are
re-walked each time and nothing is cached.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from levain.core.models.backup import (
    BACKUP_SUFFIX,
    TIMESTAMP_LENGTH,
    BackupInfo,
    backup_dir_name,
    parse_timestamp,
)
from levain.core.models.config import LevainConfig
from levain.core.services.backup import fs_ops
from levain.core.services.backup.errors import BackupNotFoundError, BackupRestoreError
from levain.core.services.backup.retention import evaluate_retention

logger = logging.getLogger(__name__)


class RollbackService:
    """List, restore and prune package backups."""

    def __init__(
        self,
        config: LevainConfig,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._config = config
        self._clock = clock

    @property
    def backup_root(self) -> Path:
        return self._config.backup_dir

    # ── Listing ─────────────────────────────────────────────────────

    def list_backups(self, package_name: str) -> list[BackupInfo]:
        """Backups of one package, newest first."""
        backups: list[BackupInfo] = []
        for path in self._candidate_dirs():
            info = self._parse_for_package(path, package_name)
            if info is not None:
                backups.append(info)
        backups.sort(key=lambda b: b.timestamp, reverse=True)
        return backups

    def list_all_backups(self) -> dict[str, list[BackupInfo]]:
        """All backups grouped by package name, each group newest first."""
        grouped: dict[str, list[BackupInfo]] = {}
        for path in self._candidate_dirs():
            info = self._parse(path)
            if info is not None:
                grouped.setdefault(info.package_name, []).append(info)

        for backups in grouped.values():
            backups.sort(key=lambda b: b.timestamp, reverse=True)
        return dict(sorted(grouped.items()))

    def find_backup(self, package_name: str, timestamp: str | None = None) -> BackupInfo | None:
        """Look up a backup by timestamp, or the newest one when omitted."""
        backups = self.list_backups(package_name)
        if timestamp is None:
            return backups[0] if backups else None
        for backup in backups:
            if backup.timestamp_str == timestamp:
                return backup
        return None

    def _candidate_dirs(self) -> list[Path]:
        root = self.backup_root
        if not root.is_dir():
            logger.debug("Backup directory does not exist: %s", root)
            return []
        try:
            return [p for p in root.iterdir() if p.is_dir()]
        except OSError as e:
            logger.error("Failed to scan backup directory %s: %s", root, e)
            return []

    def _parse(self, path: Path) -> BackupInfo | None:
        """Parse ``<package>.backup-<timestamp>``, splitting on the last suffix."""
        name = path.name
        index = name.rfind(BACKUP_SUFFIX)
        if index <= 0:
            return None
        return self._build_info(path, name[:index], name[index + len(BACKUP_SUFFIX):])

    def _parse_for_package(self, path: Path, package_name: str) -> BackupInfo | None:
        prefix = package_name + BACKUP_SUFFIX
        if not path.name.startswith(prefix):
            return None
        return self._build_info(path, package_name, path.name[len(prefix):])

    def _build_info(self, path: Path, package_name: str, remainder: str) -> BackupInfo | None:
        # Anything after the first 15 characters (e.g. a -001 sequence) is ignored.
        if len(remainder) < TIMESTAMP_LENGTH:
            return None
        timestamp_str = remainder[:TIMESTAMP_LENGTH]
        try:
            timestamp = parse_timestamp(timestamp_str)
        except ValueError as e:
            logger.debug("Skipping %s: %s", path.name, e)
            return None
        return BackupInfo(
            package_name=package_name,
            timestamp=timestamp,
            timestamp_str=timestamp_str,
            size_bytes=fs_ops.directory_size(path),
            path=path,
        )

    # ── Restore ─────────────────────────────────────────────────────

    def restore(self, package_name: str, timestamp: str, target_dir: Path) -> int:
        """Replace ``target_dir`` with the backup ``package_name`` @ ``timestamp``.

        Returns:
            Bytes copied.

        Raises:
            BackupNotFoundError: No such backup under the backup root.
            BackupRestoreError: The delete or copy failed.
        """
        root = self.backup_root
        dir_name = backup_dir_name(package_name, timestamp)
        backup_path = root / dir_name

        if not backup_path.is_dir():
            # Fall back to a discovered snapshot carrying a trailing suffix.
            found = self.find_backup(package_name, timestamp)
            if found is None:
                raise BackupNotFoundError(dir_name, root)
            backup_path = found.path
            dir_name = backup_path.name

        target_dir = Path(target_dir)
        logger.info("Restoring backup %s for package %s to %s", timestamp, package_name, target_dir)

        try:
            if target_dir.exists():
                logger.debug("Deleting existing installation: %s", target_dir)
                fs_ops.delete_tree(target_dir)
            copied = fs_ops.copy_tree(backup_path, target_dir)
        except OSError as e:
            logger.error("Failed to restore backup: %s", e)
            raise BackupRestoreError(f"Failed to restore {dir_name}: {e}") from e

        logger.info(
            "Restored %s from backup %s (%d bytes)", package_name, timestamp, copied
        )
        return copied

    # ── Retention ───────────────────────────────────────────────────

    def cleanup_old_backups(self, package_name: str | None = None) -> int:
        """Apply the configured retention policy.

        Args:
            package_name: Restrict to one package (None = all packages).

        Returns:
            Number of backups deleted.
        """
        settings = self._config.backup
        now = self._clock()
        deleted_total = 0

        for pkg, backups in self.list_all_backups().items():
            if package_name is not None and pkg != package_name:
                continue

            deleted = 0
            for decision in evaluate_retention(
                backups,
                max_age_days=settings.max_age_days,
                keep_count=settings.keep_count,
                now=now,
            ):
                logger.debug(
                    "Deleting backup %s %s: %s",
                    pkg, decision.backup.timestamp_str, decision.reason,
                )
                if self.delete_backup(pkg, decision.backup):
                    deleted += 1

            if deleted:
                logger.info("Cleaned up %d backup(s) for %s", deleted, pkg)
            deleted_total += deleted

        return deleted_total

    def delete_backup(self, package_name: str, backup: BackupInfo) -> bool:
        """Delete one backup of ``package_name``. Never raises.

        Returns:
            False if the directory could not be removed.
        """
        backup_path = backup.path
        try:
            if backup_path.exists():
                logger.info("Deleting old backup: %s", backup_path.name)
                fs_ops.delete_tree(backup_path)
        except OSError as e:
            logger.warning(
                "Failed to delete backup %s of %s: %s", backup_path.name, package_name, e,
            )
            return False
        return True
