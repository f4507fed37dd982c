"""
python-provisioner — CLI entrypoint.

Usage:
    python -m provisioner.main --help
    provisioner ls-remote
    provisioner install 3.12.0
    provisioner settings set python_compile true
"""

from __future__ import annotations

from pathlib import Path

import click

from provisioner import __version__
from provisioner.core.observability.logging_config import configure_cli_logging
from provisioner.ui.cli.python import exec_env, install, legacy_filenames, ls_remote
from provisioner.ui.cli.settings import settings


@click.group()
@click.version_option(version=__version__, prog_name="provisioner")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to provisioner.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """python-provisioner — install and activate python versions."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    configure_cli_logging(debug=debug, verbose=verbose, quiet=quiet)


cli.add_command(ls_remote)
cli.add_command(install)
cli.add_command(exec_env)
cli.add_command(legacy_filenames)
cli.add_command(settings)


if __name__ == "__main__":
    cli()
