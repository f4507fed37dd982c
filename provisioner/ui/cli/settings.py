"""
CLI commands for settings — show the resolved values, persist overrides.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click


def _settings_file(ctx: click.Context) -> Path:
    """Project file to write to: --config, then auto-detect, then ./provisioner.yml."""
    from provisioner.core.config.loader import PROJECT_CONFIG_FILE, find_project_file

    config_path: Path | None = ctx.obj.get("config_path")
    if config_path is None:
        config_path = find_project_file()
    return config_path or Path.cwd() / PROJECT_CONFIG_FILE


@click.group()
def settings() -> None:
    """Settings — show, set."""


@settings.command("show")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def settings_show(ctx: click.Context, as_json: bool) -> None:
    """Show resolved settings (defaults < project file < environment)."""
    from provisioner.core.config.loader import ConfigError, load_project_context, load_settings

    try:
        resolved = load_settings(load_project_context(ctx.obj.get("config_path")))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    data = resolved.model_dump(mode="json")
    if as_json:
        click.echo(json.dumps(data, indent=2))
        return

    width = max(len(k) for k in data)
    for key, value in data.items():
        shown = json.dumps(value) if not isinstance(value, str) else value
        click.echo(f"{key:<{width}}  {shown}")


@settings.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def settings_set(ctx: click.Context, key: str, value: str) -> None:
    """Persist KEY=VALUE into the project file's settings block."""
    from provisioner.core.config.loader import ConfigError, save_setting

    path = _settings_file(ctx)
    try:
        updated = save_setting(path, key, value)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    click.secho(f"✅ {key} = {getattr(updated, key)!r}", fg="green")
    if not ctx.obj.get("quiet"):
        click.echo(f"   written to {path}")
