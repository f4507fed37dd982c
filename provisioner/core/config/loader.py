"""
Configuration loader — reads provisioner.yml and settings overrides.

This is the primary entry point for loading configuration.
It reads YAML, validates against Pydantic schemas, layers
``PROVISIONER_*`` environment variables on top, and returns
typed domain objects.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from provisioner.core.models.project import ProjectConfig, ProjectContext
from provisioner.core.models.settings import Settings

logger = logging.getLogger(__name__)

# Default config filename
PROJECT_CONFIG_FILE = "provisioner.yml"

# Env var prefix for settings overrides (PROVISIONER_PYTHON_COMPILE=1)
SETTINGS_ENV_PREFIX = "PROVISIONER_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


def find_project_file(start_dir: Path | None = None) -> Path | None:
    """Search for provisioner.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to provisioner.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / PROJECT_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")
    return data


def load_project_config(path: Path) -> ProjectConfig:
    """Load and validate a project file.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading project config from %s", path)
    data = _read_yaml(path)

    try:
        return ProjectConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid project configuration in {path}: {e}") from e


def load_project_context(config_path: Path | None = None) -> ProjectContext:
    """Build the project context for the current operation.

    Without a project file the context is empty: no root, no env
    overlay, no tool options.
    """
    if config_path is None:
        config_path = find_project_file()
    if config_path is None:
        logger.debug("No %s found — running outside a project", PROJECT_CONFIG_FILE)
        return ProjectContext()

    config = load_project_config(config_path)
    return ProjectContext(
        root=config_path.parent.resolve(),
        config_path=config_path,
        env={k: os.path.expandvars(str(v)) for k, v in config.env.items()},
        config=config,
    )


def _coerce(name: str, raw: str) -> Any:
    """Convert an env var string to the type of the ``Settings`` field."""
    field = Settings.model_fields[name]
    annotation = field.annotation
    if annotation is bool:
        lowered = raw.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ConfigError(f"Invalid boolean for {SETTINGS_ENV_PREFIX}{name.upper()}: {raw!r}")
    if annotation is int:
        try:
            return int(raw)
        except ValueError as e:
            raise ConfigError(
                f"Invalid integer for {SETTINGS_ENV_PREFIX}{name.upper()}: {raw!r}"
            ) from e
    # str and str | None
    if field.default is None:
        return raw or None
    return raw


def settings_from_env(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Collect ``PROVISIONER_<FIELD>`` overrides from the environment."""
    env = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    for name in Settings.model_fields:
        key = f"{SETTINGS_ENV_PREFIX}{name.upper()}"
        if key in env:
            overrides[name] = _coerce(name, env[key])
    return overrides


def load_settings(
    project: ProjectContext | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Resolve settings: defaults < project file < environment.

    Raises:
        ConfigError: On unknown keys or values that fail validation.
    """
    merged: dict[str, Any] = {}
    if project is not None:
        unknown = sorted(set(project.config.settings) - set(Settings.model_fields))
        if unknown:
            raise ConfigError(f"Unknown settings: {', '.join(unknown)}")
        merged.update(project.config.settings)
    merged.update(settings_from_env(environ))

    try:
        return Settings.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e


def save_setting(path: Path, key: str, value: str) -> Settings:
    """Persist ``key: value`` into the ``settings:`` block of ``path``.

    The file is created when missing.  The value is validated before
    anything is written; the write is atomic.

    Returns:
        The settings as they read from the file after the change.
    """
    if key not in Settings.model_fields:
        raise ConfigError(
            f"Unknown setting '{key}'. Valid: {', '.join(sorted(Settings.model_fields))}"
        )

    data = _read_yaml(path) if path.is_file() else {}
    settings_block = dict(data.get("settings") or {})
    settings_block[key] = _coerce(key, value)

    try:
        validated = Settings.model_validate(settings_block)
    except ValidationError as e:
        raise ConfigError(f"Invalid value for {key}: {e}") from e

    data["settings"] = settings_block
    content = yaml.safe_dump(data, sort_keys=False, default_flow_style=False)

    path.parent.mkdir(parents=True, exist_ok=True)
    _fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".provisioner_", suffix=".tmp")
    os.close(_fd)
    tmp = Path(tmp_path)
    try:
        tmp.write_text(content, encoding="utf-8")
        os.replace(tmp, path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise

    logger.info("Set %s=%r in %s", key, settings_block[key], path)
    return validated
