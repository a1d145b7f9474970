"""
Shared helpers for CLI command groups.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from levain.core.config.loader import ConfigError, load_config
from levain.core.models.config import LevainConfig

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_size(size_bytes: int) -> str:
    """Human-readable size: ``0 B``, ``1.5 KB``, ``2.0 GB``..."""
    if size_bytes <= 0:
        return "0 B"
    size = float(size_bytes)
    unit = 0
    while size >= 1024 and unit < len(_SIZE_UNITS) - 1:
        size /= 1024
        unit += 1
    return f"{size:.1f} {_SIZE_UNITS[unit]}"


def config_path_from(ctx: click.Context) -> Path | None:
    """Explicit --config path stored on the root context, if any."""
    obj = ctx.find_root().obj or {}
    return obj.get("config_path")


def load_config_or_exit(ctx: click.Context) -> LevainConfig:
    """Load the levain config, printing the error and exiting 1 on failure."""
    try:
        return load_config(config_path_from(ctx))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)
