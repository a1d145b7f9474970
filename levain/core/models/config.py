"""
Configuration models — the user's levain settings.

Loaded from config.yml by ``levain.core.config.loader``. Only the
settings the backup subsystem consumes live here; everything else in
the file is preserved but ignored.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_LEVAIN_HOME = "~/levain"
DEFAULT_KEEP_COUNT = 5
DEFAULT_MAX_AGE_DAYS = 30


class BackupSettings(BaseModel):
    """Backup retention settings."""

    enabled: bool = True
    dir: str | None = None          # None = same directory as the packages
    keep_count: int = Field(default=DEFAULT_KEEP_COUNT, ge=1)
    max_age_days: int = Field(default=DEFAULT_MAX_AGE_DAYS, ge=1)


class LevainConfig(BaseModel):
    """Root configuration model — serialized to config.yml."""

    model_config = ConfigDict(extra="allow")

    levain_home: str = DEFAULT_LEVAIN_HOME
    backup: BackupSettings = Field(default_factory=BackupSettings)

    @property
    def home_dir(self) -> Path:
        """Directory where packages are installed."""
        return Path(self.levain_home).expanduser()

    @property
    def backup_dir(self) -> Path:
        """Directory scanned for ``<package>.backup-<timestamp>`` snapshots.

        Snapshots are written next to the installation directory, so the
        default is the levain home itself.
        """
        if self.backup.dir:
            return Path(self.backup.dir).expanduser()
        return self.home_dir

    def package_dir(self, package_name: str) -> Path:
        """Installation directory of a package."""
        return self.home_dir / package_name
