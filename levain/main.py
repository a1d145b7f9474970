"""
Levain — CLI entrypoint.

Usage:
    python -m levain.main --help
    levain rollback list
    levain clean backups --dry-run
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from levain import __version__
from levain.core.observability.logging_config import resolve_level, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="levain")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to config.yml (default: $LEVAIN_CONFIG or ~/.levain/config.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Levain — developer environment package manager."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=resolve_level(
            debug=debug,
            verbose=verbose,
            quiet=quiet,
            env_level=os.environ.get("LEVAIN_LOG_LEVEL"),
        ),
        log_file=os.environ.get("LEVAIN_LOG_FILE"),
        log_file_level=os.environ.get("LEVAIN_LOG_FILE_LEVEL"),
    )


@cli.group()
def config() -> None:
    """Levain configuration commands."""


# ── Register sub-command groups from levain/ui/cli/ ───────────────

from levain.ui.cli.clean import clean
from levain.ui.cli.config_backup import backup_config
from levain.ui.cli.rollback import rollback

cli.add_command(rollback)
cli.add_command(clean)
config.add_command(backup_config)


if __name__ == "__main__":
    cli()
