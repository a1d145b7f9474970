"""
Shared test fixtures and configuration.
"""

from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import pytest

from levain.core.models.config import LevainConfig

# A fixed "now" so retention tests don't depend on the wall clock.
FIXED_NOW = datetime(2026, 2, 10, 12, 0, 0)


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Clock callable pinned to FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def levain_home(tmp_path: Path) -> Path:
    """Return an empty levain home (packages + backups live here)."""
    home = tmp_path / "levain"
    home.mkdir()
    return home


@pytest.fixture
def config(levain_home: Path) -> LevainConfig:
    """Config pointing at the temporary levain home."""
    return LevainConfig(levain_home=str(levain_home))


@pytest.fixture
def make_install(levain_home: Path) -> Callable[..., Path]:
    """Create an installation directory with a few files."""

    def _make(name: str = "jdk-21", files: dict[str, bytes] | None = None) -> Path:
        install = levain_home / name
        if files is None:
            files = {
                "bin/java": b"#!/bin/sh\necho java\n",
                "lib/rt.jar": b"x" * 4096,
                "release": b"JAVA_VERSION=21\n",
            }
        for rel, content in files.items():
            path = install / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        return install

    return _make


@pytest.fixture
def make_backup(levain_home: Path) -> Callable[..., Path]:
    """Create ``<package>.backup-<timestamp>`` holding one file of ``size`` bytes."""

    def _make(package: str, timestamp: str, size: int = 100) -> Path:
        backup = levain_home / f"{package}.backup-{timestamp}"
        backup.mkdir(parents=True)
        (backup / "payload.bin").write_bytes(b"b" * size)
        return backup

    return _make
