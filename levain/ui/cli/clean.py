"""
CLI commands for cleanup — prune old package backups.

Thin wrappers over ``levain.core.services.backup.CleanService``.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import click

from levain.ui.cli.helpers import format_size, load_config_or_exit

if TYPE_CHECKING:
    from levain.core.services.backup.clean import CleanupResult


@click.group()
def clean() -> None:
    """Clean up levain data."""


@clean.command()
@click.argument("package", required=False)
@click.option("--older-than", "older_than", type=click.IntRange(min=0), default=None,
              help="Delete backups older than N days (default: configured max-age).")
@click.option("--keep", "keep", type=click.IntRange(min=0), default=None,
              help="Keep the N most recent backups per package (default: configured keep-count).")
@click.option("--dry-run", is_flag=True, help="Preview what would be deleted.")
@click.option("--force", "-f", is_flag=True, help="Skip the confirmation prompt.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def backups(
    ctx: click.Context,
    package: str | None,
    older_than: int | None,
    keep: int | None,
    dry_run: bool,
    force: bool,
    as_json: bool,
) -> None:
    """Delete old backups of PACKAGE, or of every package.

    Examples:

        levain clean backups --dry-run

        levain clean backups jdk-21 --keep 2 --older-than 90 -f
    """
    from levain.core.services.backup import CleanService, RollbackService

    config = load_config_or_exit(ctx)
    service = CleanService(config, RollbackService(config))

    preview = service.preview_cleanup(package, older_than, keep)

    if not preview.to_delete:
        if as_json:
            click.echo(json.dumps({"dry_run": dry_run, **preview.to_dict()}, indent=2))
        else:
            click.secho("✓ No backups match cleanup criteria", fg="green")
        return

    # JSON output is non-interactive: without --force it only previews.
    if dry_run or (as_json and not force):
        if as_json:
            click.echo(json.dumps({"dry_run": True, **preview.to_dict()}, indent=2))
            return
        _show_preview(preview)
        click.secho("(dry-run — no backups deleted)", fg="yellow")
        return

    if not force:
        _show_preview(preview)
        if not click.confirm("Proceed with cleanup?", default=False):
            click.echo("Cleanup cancelled")
            return

    result = service.execute_cleanup(package, older_than, keep)

    if as_json:
        click.echo(json.dumps({"dry_run": False, **result.to_dict()}, indent=2))
        return

    if result.successful_deletions:
        click.secho(
            f"✅ Deleted {result.successful_deletions} backup(s), "
            f"freed {format_size(result.total_size_to_delete)}",
            fg="green", bold=True,
        )
    if result.failed_deletions:
        click.secho(f"❌ Failed to delete {result.failed_deletions} backup(s):", fg="red")
        for item in result.to_delete:
            if item.delete_failed:
                click.echo(f"   • {item.package_name}/{item.backup.timestamp_str}")


def _show_preview(preview: CleanupResult) -> None:
    click.secho(f"Will delete {len(preview.to_delete)} backup(s):", fg="cyan", bold=True)
    for item in preview.to_delete:
        click.echo(
            f"   • {item.package_name}/{item.backup.timestamp_str} "
            f"({format_size(item.backup.size_bytes)}) — {item.reason}"
        )
    click.echo()
    click.echo(f"Total size to reclaim: {format_size(preview.total_size_to_delete)}")
