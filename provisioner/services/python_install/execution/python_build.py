"""
L4 Execution — Build-from-source via pyenv's ``python-build``.

python-build is a black box: an argument list, optional patch text
on stdin, and an exit code.  This module keeps its clone current,
lists its definitions and drives a build into an install path.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from provisioner.core.models.install import InstallTarget
from provisioner.core.models.result import StepResult
from provisioner.core.models.settings import Settings
from provisioner.core.progress import ProgressReporter
from provisioner.services.python_install.data.constants import (
    PYTHON_BUILD_BIN,
    PYTHON_BUILD_TIMEOUT,
)
from provisioner.services.python_install.domain.catalog import sort_definitions
from provisioner.services.python_install.errors import CatalogError
from provisioner.services.python_install.execution import git_mirror, http
from provisioner.services.python_install.execution.subprocess_runner import run_subprocess

logger = logging.getLogger(__name__)


def python_build_bin(pyenv_dir: Path) -> Path:
    return pyenv_dir / PYTHON_BUILD_BIN


def install_or_update_python_build(pyenv_dir: Path, settings: Settings) -> StepResult:
    """Make sure a python-build checkout exists at ``pyenv_dir``.

    Missing → clone (failure is fatal, there is no fallback).
    Present → timeout-bounded update; failure is logged and the
    existing checkout is used as is.
    """
    if not pyenv_dir.exists():
        logger.debug("Installing python-build to %s", pyenv_dir)
        cloned = git_mirror.clone(settings.pyenv_repo, pyenv_dir)
        if not cloned["ok"]:
            return StepResult.failure("python-build-setup", cloned["error"])
        return StepResult.success("python-build-setup", f"cloned {settings.pyenv_repo}")

    logger.debug("Updating python-build in %s", pyenv_dir)
    updated = git_mirror.update(pyenv_dir)
    if not updated["ok"]:
        logger.warning("failed to update python-build: %s", updated["error"])
        return StepResult.success(
            "python-build-setup",
            "using existing checkout",
            metadata={"updated": False, "update_error": updated["error"]},
        )
    return StepResult.success(
        "python-build-setup",
        f"updated to {updated.get('rev', '?')}",
        metadata={"updated": True},
    )


def list_definitions(pyenv_dir: Path, settings: Settings) -> list[str]:
    """Versions python-build knows how to build, digit-leading first.

    Raises:
        CatalogError: Clone failed, or ``--definitions`` failed or
            exceeded ``fetch_remote_versions_timeout``.
    """
    setup = install_or_update_python_build(pyenv_dir, settings)
    if setup.failed:
        raise CatalogError(setup.error)

    result = run_subprocess(
        [python_build_bin(pyenv_dir), "--definitions"],
        timeout=settings.fetch_remote_versions_timeout,
    )
    if not result["ok"]:
        detail = result.get("stderr") or ""
        raise CatalogError(f"{result['error']}{': ' + detail if detail else ''}")

    return sort_definitions(result["stdout"].splitlines())


def read_patches(
    target: InstallTarget,
    settings: Settings,
    pr: ProgressReporter,
) -> str | None:
    """Collect patch text for this version, or None.

    Sources, in order: ``python_patch_url`` (fetched; a fetch failure
    raises ``HttpError``) and ``<python_patches_directory>/<version>.patch``
    (a missing file only warns).  Both apply when both are set.
    """
    patches: list[str] = []

    if settings.python_patch_url:
        pr.set_message(f"with patch file from: {settings.python_patch_url}")
        patches.append(http.get_text(settings.python_patch_url))

    if settings.python_patches_directory:
        patches_dir = Path(settings.python_patches_directory).expanduser()
        patch_file = patches_dir / f"{target.version}.patch"
        if patch_file.is_file():
            pr.set_message(f"with patch file: {patch_file}")
            patches.append(patch_file.read_text(encoding="utf-8"))
        else:
            logger.warning("patch file not found: %s", patch_file)

    if not patches:
        return None
    return "\n".join(p if p.endswith("\n") else p + "\n" for p in patches)


def build_command(
    pyenv_dir: Path,
    target: InstallTarget,
    settings: Settings,
    *,
    with_patch: bool,
) -> list[str]:
    """``python-build <version> <install_path> [--verbose] [--patch]``."""
    cmd = [str(python_build_bin(pyenv_dir)), target.version, str(target.install_path)]
    if settings.verbose:
        cmd.append("--verbose")
    if with_patch:
        cmd.append("--patch")
    return cmd


def install_source_build(
    target: InstallTarget,
    settings: Settings,
    *,
    pyenv_dir: Path,
    env: Mapping[str, str],
    pr: ProgressReporter,
) -> StepResult:
    """Compile and install ``target.version`` with python-build.

    Ref requests are rejected before anything touches the disk:
    python-build only understands concrete version definitions.
    """
    if target.request.is_ref:
        return StepResult.failure(
            "python-build",
            f"ref versions not supported for python: {target.request}",
        )

    setup = install_or_update_python_build(pyenv_dir, settings)
    if setup.failed:
        return setup

    try:
        patch = read_patches(target, settings, pr)
    except http.HttpError as e:
        return StepResult.failure("python-build", f"cannot fetch patch: {e}")
    except OSError as e:
        return StepResult.failure("python-build", f"cannot read patch: {e}")

    cmd = build_command(pyenv_dir, target, settings, with_patch=patch is not None)

    pr.set_message("Running python-build")
    result = run_subprocess(
        cmd,
        env_overrides=env,
        input_text=patch,
        timeout=PYTHON_BUILD_TIMEOUT,
        pr=pr,
    )
    if not result["ok"]:
        detail = result.get("stderr") or result.get("stdout") or ""
        return StepResult.failure(
            "python-build",
            f"python-build failed for {target.version} into {target.install_path}: "
            f"{result['error']}",
            output=detail,
        )

    return StepResult.success(
        "python-build",
        f"built {target.version}",
        duration_ms=result.get("elapsed_ms", 0),
        metadata={"command": cmd, "patched": patch is not None},
    )
