"""
CLI commands for python installs.

Thin wrappers over ``provisioner.services.python_install``.
"""

from __future__ import annotations

import json
import sys
from typing import NoReturn

import click

from provisioner.core.models.project import ProjectContext
from provisioner.core.models.settings import Settings
from provisioner.services.python_install.data.constants import ADD_PATH_VAR


class ClickProgressReporter:
    """Progress messages on stderr, so ``--json`` stdout stays clean."""

    def __init__(self, *, quiet: bool = False) -> None:
        self.quiet = quiet

    def set_message(self, message: str) -> None:
        if not self.quiet:
            click.secho(f"python: {message}", fg="bright_black", err=True)


def _fail(message: str, as_json: bool) -> NoReturn:
    if as_json:
        click.echo(json.dumps({"ok": False, "error": message}, indent=2))
    else:
        click.secho(f"❌ {message}", fg="red", err=True)
    sys.exit(1)


def _load(ctx: click.Context, as_json: bool = False) -> tuple[Settings, ProjectContext]:
    """Project context + settings for this invocation, or exit 1."""
    from provisioner.core.config.loader import ConfigError, load_project_context, load_settings

    try:
        project = load_project_context(ctx.obj.get("config_path"))
        return load_settings(project), project
    except ConfigError as e:
        _fail(str(e), as_json)


def _plugin(ctx: click.Context, as_json: bool = False):
    from provisioner.services.python_install import PythonPlugin

    settings, project = _load(ctx, as_json)
    return PythonPlugin(settings, project)


def _export_line(shell: str, name: str, value: str, *, path_entry: bool = False) -> str:
    """Shell-specific ``export`` line (``set -gx`` for fish)."""
    if shell == "fish":
        if path_entry:
            return f"set -gx PATH {value} $PATH"
        return f"set -gx {name} {value}"
    if path_entry:
        return f'export PATH="{value}:$PATH"'
    return f'export {name}="{value}"'


# ── Catalog ─────────────────────────────────────────────────────


@click.command("ls-remote")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def ls_remote(ctx: click.Context, as_json: bool) -> None:
    """List python versions available to install."""
    from provisioner.services.python_install import CatalogError

    plugin = _plugin(ctx, as_json)
    try:
        versions = plugin.list_remote_versions()
    except CatalogError as e:
        _fail(str(e), as_json)

    if as_json:
        click.echo(json.dumps({"ok": True, "versions": versions}, indent=2))
        return
    for version in versions:
        click.echo(version)


@click.command("legacy-filenames")
@click.pass_context
def legacy_filenames(ctx: click.Context) -> None:
    """Print the version files a host should look for."""
    from provisioner.services.python_install.data.constants import LEGACY_FILENAMES

    for name in LEGACY_FILENAMES:
        click.echo(name)


# ── Install ─────────────────────────────────────────────────────


@click.command()
@click.argument("version", required=False)
@click.option("--virtualenv", "venv", default=None, help="Virtualenv path for this install.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(ctx: click.Context, version: str | None, venv: str | None, as_json: bool) -> None:
    """Install a python VERSION (default: from the project or .python-version)."""
    from provisioner.core.config.dirs import install_target
    from provisioner.services.python_install import InstallError

    plugin = _plugin(ctx, as_json)
    try:
        requested = plugin.requested_version(version)
    except InstallError as e:
        _fail(str(e), as_json)

    options = plugin.project.config.tools.python.options()
    if venv:
        options["virtualenv"] = venv
    target = install_target(requested, options)

    quiet = ctx.obj.get("quiet", False)
    result = plugin.install_version(target, pr=ClickProgressReporter(quiet=quiet or as_json))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)
        return

    if not result.ok:
        click.secho(f"❌ python {result.version}: {result.error}", fg="red", err=True)
        sys.exit(1)

    click.secho(f"✅ python {result.version} installed", fg="green", bold=True)
    if not quiet:
        click.echo(f"   {result.install_path}")
        if result.virtualenv is not None:
            label = "created" if result.virtualenv.created else "using"
            click.echo(f"   🐍 {label} virtualenv {result.virtualenv.path}")
        for warning in result.warnings:
            click.secho(f"   ⚠️  {warning}", fg="yellow")


# ── Activation ──────────────────────────────────────────────────


@click.command("exec-env")
@click.argument("version", required=False)
@click.option(
    "--shell",
    type=click.Choice(["bash", "zsh", "fish"]),
    default="bash",
    show_default=True,
    help="Shell to format export lines for.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def exec_env(ctx: click.Context, version: str | None, shell: str, as_json: bool) -> None:
    """Print the environment that activates VERSION's virtualenv."""
    from provisioner.core.config.dirs import install_target
    from provisioner.services.python_install import InstallError

    plugin = _plugin(ctx, as_json)
    try:
        requested = plugin.requested_version(version)
    except InstallError as e:
        _fail(str(e), as_json)

    target = install_target(requested, plugin.project.config.tools.python.options())
    env = plugin.exec_env(target)

    if as_json:
        click.echo(json.dumps(env, indent=2))
        return

    for name, value in env.items():
        if name == ADD_PATH_VAR:
            click.echo(_export_line(shell, name, value, path_entry=True))
        else:
            click.echo(_export_line(shell, name, value))
