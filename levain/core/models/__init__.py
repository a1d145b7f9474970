"""
Domain models — Pydantic types for levain.

All models are re-exported here for convenient access:

    from levain.core.models import BackupInfo, BackupResult, LevainConfig
"""

from levain.core.models.backup import BackupInfo, BackupResult
from levain.core.models.config import BackupSettings, LevainConfig

__all__ = [
    # backup.py
    "BackupInfo",
    "BackupResult",
    # config.py
    "BackupSettings",
    "LevainConfig",
]
