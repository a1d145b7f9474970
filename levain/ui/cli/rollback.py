"""
CLI commands for rollback — list and restore package backups.

Thin wrappers over ``levain.core.services.backup.RollbackService``.
"""

from __future__ import annotations

import json
import sys
from typing import NoReturn

import click

from levain.ui.cli.helpers import format_size, load_config_or_exit


@click.group()
def rollback() -> None:
    """Rollback — list and restore package backups."""


@rollback.command("list")
@click.argument("package", required=False)
@click.option("--verbose", "-v", is_flag=True, help="Show detailed backup information.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, package: str | None, verbose: bool, as_json: bool) -> None:
    """List available backups for PACKAGE, or for all packages."""
    from levain.core.services.backup import RollbackService

    config = load_config_or_exit(ctx)
    service = RollbackService(config)

    if package:
        grouped = {package: service.list_backups(package)}
        if not grouped[package]:
            grouped = {}
    else:
        grouped = service.list_all_backups()

    if as_json:
        click.echo(json.dumps(
            {pkg: [b.to_dict() for b in backups] for pkg, backups in grouped.items()},
            indent=2,
        ))
        return

    if not grouped:
        if package:
            click.secho(f"No backups found for package: {package}", fg="yellow")
        else:
            click.secho("No backups found", fg="yellow")
        return

    for pkg, backups in grouped.items():
        click.secho(f"📦 {pkg} ({len(backups)}):", fg="cyan", bold=True)
        for index, backup in enumerate(backups):
            marker = "→ " if index == 0 else "  "
            click.echo(f"   {marker}[{index + 1}] {backup.timestamp_str}  ({format_size(backup.size_bytes)})")
            if verbose:
                click.echo(f"         Created: {backup.timestamp.isoformat(sep=' ')}")
                click.echo(f"         Size: {backup.size_bytes:,} bytes")
                click.echo(f"         Path: {backup.path}")
        click.echo()

    if package:
        click.echo(f"Use 'levain rollback restore {package} <timestamp>' to restore")


@rollback.command()
@click.argument("package")
@click.argument("timestamp", required=False)
@click.option("--force", "-f", is_flag=True, help="Restore without confirmation.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def restore(
    ctx: click.Context,
    package: str,
    timestamp: str | None,
    force: bool,
    as_json: bool,
) -> None:
    """Restore PACKAGE from a backup.

    TIMESTAMP is yyyyMMdd-HHmmss; the newest backup is used when omitted.

    Examples:

        levain rollback restore jdk-21

        levain rollback restore jdk-21 20260203-100000 --force
    """
    from levain.core.services.backup import BackupError, RollbackService

    config = load_config_or_exit(ctx)
    service = RollbackService(config)

    if timestamp is None:
        newest = service.find_backup(package)
        if newest is None:
            _fail(f"No backups found for package: {package}", as_json)
        timestamp = newest.timestamp_str
        if not as_json:
            click.echo(f"Using most recent backup: {timestamp}")

    target_dir = config.package_dir(package)

    if not force and not as_json:
        click.echo(f"This will restore package '{package}' from backup {timestamp}.")
        if target_dir.exists():
            click.echo(f"The current installation at {target_dir} will be replaced.")
        if not click.confirm("Continue?", default=False):
            click.echo("Restore cancelled")
            return

    try:
        copied = service.restore(package, timestamp, target_dir)
    except BackupError as e:
        _fail(f"Restore failed: {e}", as_json)

    cleaned = 0
    if config.backup.enabled:
        cleaned = service.cleanup_old_backups(package)

    if as_json:
        click.echo(json.dumps({
            "package": package,
            "timestamp": timestamp,
            "target": str(target_dir),
            "size_bytes": copied,
            "cleaned": cleaned,
        }, indent=2))
        return

    click.secho(f"✅ Restored {package} to {target_dir}", fg="green", bold=True)
    click.echo(f"   Size: {format_size(copied)}")
    if cleaned:
        click.echo(f"   Old backups cleaned: {cleaned}")


def _fail(message: str, as_json: bool) -> NoReturn:
    if as_json:
        click.echo(json.dumps({"error": message}, indent=2))
    else:
        click.secho(f"❌ {message}", fg="red")
    sys.exit(1)
