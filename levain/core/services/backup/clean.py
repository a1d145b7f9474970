"""
Backup cleanup — preview and execute retention.

``preview_cleanup`` reports what the retention policy would delete and
why, without touching the filesystem. ``execute_cleanup`` runs the same
preview and then deletes each item through the rollback service,
recording per-item failures instead of aborting.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from levain.core.models.backup import BackupInfo
from levain.core.models.config import LevainConfig
from levain.core.services.backup.retention import evaluate_retention
from levain.core.services.backup.rollback import RollbackService

logger = logging.getLogger(__name__)


@dataclass
class CleanupItem:
    """A backup selected for deletion."""

    package_name: str
    backup: BackupInfo
    reason: str
    delete_failed: bool = False

    def to_dict(self) -> dict:
        return {
            "package": self.package_name,
            "timestamp": self.backup.timestamp_str,
            "size_bytes": self.backup.size_bytes,
            "reason": self.reason,
            "delete_failed": self.delete_failed,
        }


@dataclass
class CleanupResult:
    """Outcome of a cleanup preview or execution."""

    to_delete: list[CleanupItem] = field(default_factory=list)
    total_backups: dict[str, int] = field(default_factory=dict)
    max_age_days: int = 0
    keep_count: int = 0

    @property
    def total_size_to_delete(self) -> int:
        return sum(item.backup.size_bytes for item in self.to_delete if not item.delete_failed)

    @property
    def successful_deletions(self) -> int:
        return sum(1 for item in self.to_delete if not item.delete_failed)

    @property
    def failed_deletions(self) -> int:
        return sum(1 for item in self.to_delete if item.delete_failed)

    def to_dict(self) -> dict:
        return {
            "max_age_days": self.max_age_days,
            "keep_count": self.keep_count,
            "total_backups": self.total_backups,
            "to_delete": [item.to_dict() for item in self.to_delete],
            "total_size_bytes": self.total_size_to_delete,
            "successful": self.successful_deletions,
            "failed": self.failed_deletions,
        }


class CleanService:
    """Dry-run and execute backup retention for the ``clean backups`` command."""

    def __init__(
        self,
        config: LevainConfig,
        rollback: RollbackService,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._config = config
        self._rollback = rollback
        self._clock = clock

    def preview_cleanup(
        self,
        package_name: str | None = None,
        max_age_days: int | None = None,
        keep_count: int | None = None,
    ) -> CleanupResult:
        """Compute what would be deleted. Never mutates anything.

        Args:
            package_name: Restrict to one package (None = all packages).
            max_age_days: Age threshold (None = configured max-age).
            keep_count: Newest backups kept per package (None = configured keep-count).
        """
        settings = self._config.backup
        if max_age_days is None:
            max_age_days = settings.max_age_days
        if keep_count is None:
            keep_count = settings.keep_count

        result = CleanupResult(max_age_days=max_age_days, keep_count=keep_count)
        now = self._clock()

        for pkg, backups in self._rollback.list_all_backups().items():
            if package_name is not None and pkg != package_name:
                continue

            result.total_backups[pkg] = len(backups)
            for decision in evaluate_retention(
                backups, max_age_days=max_age_days, keep_count=keep_count, now=now,
            ):
                result.to_delete.append(
                    CleanupItem(package_name=pkg, backup=decision.backup, reason=decision.reason)
                )

        logger.debug(
            "Cleanup preview: %d of %d backup(s) selected",
            len(result.to_delete), sum(result.total_backups.values()),
        )
        return result

    def execute_cleanup(
        self,
        package_name: str | None = None,
        max_age_days: int | None = None,
        keep_count: int | None = None,
    ) -> CleanupResult:
        """Delete everything ``preview_cleanup`` selects with the same arguments."""
        result = self.preview_cleanup(package_name, max_age_days, keep_count)

        for item in result.to_delete:
            try:
                deleted = self._rollback.delete_backup(item.package_name, item.backup)
            except Exception as e:
                logger.error(
                    "Failed to delete backup %s of %s: %s",
                    item.backup.timestamp_str, item.package_name, e,
                )
                deleted = False

            if deleted:
                logger.info(
                    "Deleted backup %s of %s (%s)",
                    item.backup.timestamp_str, item.package_name, item.reason,
                )
            else:
                item.delete_failed = True

        logger.info(
            "Cleanup finished: %d deleted, %d failed",
            result.successful_deletions, result.failed_deletions,
        )
        return result
