"""
Retention policy (pure).

Decides which backups of one package are eligible for deletion.
No I/O. Shared by the automatic post-restore cleanup and the
``clean backups`` preview/execute flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from levain.core.models.backup import BackupInfo


@dataclass(frozen=True)
class RetentionDecision:
    """A backup flagged for deletion, with every reason that applies."""

    backup: BackupInfo
    index: int
    reasons: tuple[str, ...] = field(default_factory=tuple)

    @property
    def reason(self) -> str:
        return " AND ".join(self.reasons)


def evaluate_retention(
    backups: list[BackupInfo],
    *,
    max_age_days: int,
    keep_count: int,
    now: datetime,
) -> list[RetentionDecision]:
    """Flag backups that are too old or beyond the keep window.

    ``backups`` must be sorted newest first. The two criteria are
    independent: a backup is flagged if its timestamp is older than
    ``now - max_age_days`` OR its index is ``>= keep_count``.

    Returns:
        Decisions in the same order as ``backups``.
    """
    cutoff = now - timedelta(days=max_age_days)
    decisions: list[RetentionDecision] = []

    for index, backup in enumerate(backups):
        reasons: list[str] = []
        if backup.timestamp < cutoff:
            reasons.append(f"older than {max_age_days} days")
        if index >= keep_count:
            reasons.append(f"exceeds keep-count of {keep_count}")
        if reasons:
            decisions.append(RetentionDecision(backup=backup, index=index, reasons=tuple(reasons)))

    return decisions
