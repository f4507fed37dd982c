"""
L4 Execution — Smoke test and default-package bootstrap.
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
    DEFAULT_PACKAGES_TIMEOUT,
    SMOKE_TEST_TIMEOUT,
)
from provisioner.services.python_install.execution.subprocess_runner import run_subprocess

logger = logging.getLogger(__name__)


def smoke_test(
    target: InstallTarget,
    *,
    env: Mapping[str, str],
    pr: ProgressReporter,
) -> StepResult:
    """Run ``bin/python --version``; any failure is fatal."""
    pr.set_message("python --version")
    result = run_subprocess(
        [target.python_bin, "--version"],
        env_overrides=env,
        timeout=SMOKE_TEST_TIMEOUT,
    )
    if not result["ok"]:
        return StepResult.failure(
            "smoke-test",
            f"{target.python_bin} --version failed for {target.request}: {result['error']}",
            output=result.get("stderr", ""),
        )
    # Python 2 printed its version on stderr
    reported = (result["stdout"] or result.get("stderr", "")).strip()
    return StepResult.success("smoke-test", reported)


def default_packages_file(settings: Settings) -> Path:
    return Path(settings.python_default_packages_file).expanduser()


def install_default_packages(
    target: InstallTarget,
    settings: Settings,
    *,
    env: Mapping[str, str],
    pr: ProgressReporter,
) -> StepResult:
    """``pip install --upgrade -r <default packages file>``.

    Skipped when the file does not exist.  Failures are soft.
    """
    packages_file = default_packages_file(settings)
    if not packages_file.is_file():
        return StepResult.skip("default-packages", f"{packages_file} not found")

    pr.set_message("installing default packages")
    result = run_subprocess(
        [target.python_bin, "-m", "pip", "install", "--upgrade", "-r", packages_file],
        env_overrides=env,
        timeout=DEFAULT_PACKAGES_TIMEOUT,
        pr=pr,
    )
    if not result["ok"]:
        return StepResult.failure(
            "default-packages",
            f"failed to install default packages from {packages_file}: {result['error']}",
            fatal=False,
        )
    return StepResult.success("default-packages", f"installed from {packages_file}")
