"""
L4 Execution — Per-install virtual environments.

An install opts in through the ``virtualenv`` tool option
(``tools.python.virtualenv: .venv``).  The venv is resolved, created
on demand when ``python_venv_auto_create`` is on, and exposed to the
host as an activation env mapping.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from provisioner.core.models.install import InstallTarget, VirtualEnvDescriptor
from provisioner.core.models.project import ProjectContext
from provisioner.core.models.settings import Settings
from provisioner.core.progress import ProgressReporter
from provisioner.services.python_install.data.constants import (
    ADD_PATH_VAR,
    VENV_CREATE_TIMEOUT,
    VIRTUAL_ENV_VAR,
)
from provisioner.services.python_install.errors import VirtualEnvError
from provisioner.services.python_install.execution.subprocess_runner import run_subprocess

logger = logging.getLogger(__name__)


def virtualenv_path(raw: str, project: ProjectContext) -> Path:
    """Expand ``~`` / ``$VARS`` and anchor relative paths.

    Relative paths are joined to the top-level project root, not to
    the directory of whichever config file asked for python.  Outside
    a project they stay relative to the cwd.
    """
    path = Path(os.path.expanduser(os.path.expandvars(raw)))
    if not path.is_absolute() and project.root is not None:
        path = project.root / path
    return path


def _missing_venv_guidance(path: Path) -> str:
    return (
        f"no venv found at: {path}\n\n"
        "To have provisioner automatically create virtualenvs, run:\n"
        "provisioner settings set python_venv_auto_create true\n\n"
        "To create a virtualenv manually, run:\n"
        f"python -m venv {path}"
    )


def resolve_virtualenv(
    target: InstallTarget,
    project: ProjectContext,
    settings: Settings,
    *,
    pr: ProgressReporter | None = None,
) -> VirtualEnvDescriptor | None:
    """Find (or create) the virtualenv this install asks for.

    Returns:
        The descriptor, or None when no venv is configured or it is
        missing and auto-create is off.

    Raises:
        VirtualEnvError: Auto-create is on and ``python -m venv`` failed.
    """
    raw = target.options.get("virtualenv")
    if not raw:
        return None

    if not settings.experimental:
        logger.warning(
            "please enable experimental mode with "
            "`provisioner settings set experimental true` "
            "to use python virtualenv activation"
        )

    path = virtualenv_path(str(raw), project)
    if path.exists():
        return VirtualEnvDescriptor(path=path, created=False)

    if not settings.python_venv_auto_create:
        logger.warning(_missing_venv_guidance(path))
        return None

    logger.info("setting up virtualenv at: %s", path)
    result = run_subprocess(
        [target.python_bin, "-m", "venv", path],
        env_overrides=project.env,
        timeout=VENV_CREATE_TIMEOUT,
        pr=pr,
    )
    if not result["ok"]:
        detail = result.get("stderr") or ""
        raise VirtualEnvError(
            f"failed to create virtualenv at {path}: {result['error']}"
            f"{': ' + detail if detail else ''}"
        )
    return VirtualEnvDescriptor(path=path, created=True)


def activation_env(venv: VirtualEnvDescriptor | None) -> dict[str, str]:
    """Env vars a host merges into commands run under this python."""
    if venv is None:
        return {}
    return {
        VIRTUAL_ENV_VAR: str(venv.path),
        ADD_PATH_VAR: str(venv.bin_dir),
    }


def exec_env(
    target: InstallTarget,
    project: ProjectContext,
    settings: Settings,
) -> dict[str, str]:
    """Activation mapping for ``target``; empty when no venv resolves.

    Resolution errors are logged, never raised: a broken venv must
    not stop the host from running commands.
    """
    try:
        venv = resolve_virtualenv(target, project, settings)
    except VirtualEnvError as e:
        logger.warning("failed to get virtualenv: %s", e)
        return {}
    return activation_env(venv)
