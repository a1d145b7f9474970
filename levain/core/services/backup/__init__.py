"""
Backup, rollback and retention for package installations.

    from levain.core.services.backup import BackupService, RollbackService, CleanService
"""

from levain.core.services.backup.clean import CleanService, CleanupItem, CleanupResult
from levain.core.services.backup.errors import (
    BackupError,
    BackupNotFoundError,
    BackupRestoreError,
    BackupVerificationError,
    DirectoryInUseError,
    InsufficientSpaceError,
)
from levain.core.services.backup.retention import RetentionDecision, evaluate_retention
from levain.core.services.backup.rollback import RollbackService
from levain.core.services.backup.snapshot import BackupService

__all__ = [
    "BackupError",
    "BackupNotFoundError",
    "BackupRestoreError",
    "BackupService",
    "BackupVerificationError",
    "CleanService",
    "CleanupItem",
    "CleanupResult",
    "DirectoryInUseError",
    "InsufficientSpaceError",
    "RetentionDecision",
    "RollbackService",
    "evaluate_retention",
]
