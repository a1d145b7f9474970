"""
CLI commands for backup configuration — ``levain config backup ...``.

Reads and writes the ``backup`` section of config.yml.
"""

from __future__ import annotations

import json
import sys

import click

from levain.core.config.loader import ConfigError, save_config
from levain.core.models.config import LevainConfig
from levain.ui.cli.helpers import config_path_from, load_config_or_exit


@click.group("backup")
def backup_config() -> None:
    """Backup settings — enable/disable, directory and retention."""


@backup_config.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def show(ctx: click.Context, as_json: bool) -> None:
    """Show the current backup configuration."""
    config = load_config_or_exit(ctx)
    settings = config.backup

    if as_json:
        click.echo(json.dumps({
            "enabled": settings.enabled,
            "dir": str(config.backup_dir),
            "keep_count": settings.keep_count,
            "max_age_days": settings.max_age_days,
        }, indent=2))
        return

    click.secho("Backup configuration:", fg="cyan", bold=True)
    click.echo(f"   Enabled:    {settings.enabled}")
    click.echo(f"   Directory:  {config.backup_dir}")
    click.echo(f"   Keep count: {settings.keep_count} backups")
    click.echo(f"   Max age:    {settings.max_age_days} days")


@backup_config.command()
@click.pass_context
def enable(ctx: click.Context) -> None:
    """Enable backups before package updates."""
    config = load_config_or_exit(ctx)
    config.backup.enabled = True
    _save(ctx, config, "Backups enabled")


@backup_config.command()
@click.pass_context
def disable(ctx: click.Context) -> None:
    """Disable backups before package updates."""
    config = load_config_or_exit(ctx)
    config.backup.enabled = False
    _save(ctx, config, "Backups disabled")


@backup_config.command("set-dir")
@click.argument("directory", type=click.Path(file_okay=False))
@click.pass_context
def set_dir(ctx: click.Context, directory: str) -> None:
    """Set the directory scanned for backups."""
    config = load_config_or_exit(ctx)
    config.backup.dir = directory
    _save(ctx, config, f"Backup directory set to: {directory}")


@backup_config.command("set-keep-count")
@click.argument("count", type=click.IntRange(min=1))
@click.pass_context
def set_keep_count(ctx: click.Context, count: int) -> None:
    """Set how many backups to keep per package."""
    config = load_config_or_exit(ctx)
    config.backup.keep_count = count
    _save(ctx, config, f"Backup keep count set to: {count}")


@backup_config.command("set-max-age")
@click.argument("days", type=click.IntRange(min=1))
@click.pass_context
def set_max_age(ctx: click.Context, days: int) -> None:
    """Set the maximum age of backups in days."""
    config = load_config_or_exit(ctx)
    config.backup.max_age_days = days
    _save(ctx, config, f"Backup max age set to: {days} days")


def _save(ctx: click.Context, config: LevainConfig, message: str) -> None:
    try:
        save_config(config, config_path_from(ctx))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)
    click.secho(f"✅ {message}", fg="green")
