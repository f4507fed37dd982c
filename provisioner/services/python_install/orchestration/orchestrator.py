"""
L5 Orchestration — Install state machine.

    start → strategy_selected → strategy_executed → validated
          → post_install_complete

Any fatal step moves straight to ``failed``.  Post-install steps
(virtualenv, default packages) are best-effort: their failures are
recorded as warnings and the install still completes.  Nothing is
retried here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from provisioner.core.models.install import InstallTarget, PrecompiledEntry, StrategyChoice
from provisioner.core.models.project import ProjectContext
from provisioner.core.models.result import InstallResult, InstallState, StepResult
from provisioner.core.models.settings import Settings
from provisioner.core.progress import ProgressReporter
from provisioner.services.python_install.domain.platform_tag import (
    PlatformTag,
    UnsupportedPlatformError,
)
from provisioner.services.python_install.domain.strategy import select_strategy
from provisioner.services.python_install.errors import VirtualEnvError
from provisioner.services.python_install.execution import http
from provisioner.services.python_install.execution.post_install import (
    install_default_packages,
    smoke_test,
)
from provisioner.services.python_install.execution.precompiled import install_precompiled
from provisioner.services.python_install.execution.python_build import install_source_build
from provisioner.services.python_install.execution.virtualenv import resolve_virtualenv

logger = logging.getLogger(__name__)


def _run_strategy(
    strategy: StrategyChoice,
    target: InstallTarget,
    *,
    settings: Settings,
    project: ProjectContext,
    pr: ProgressReporter,
    pyenv_dir: Path,
    precompiled_entries: Callable[[], list[PrecompiledEntry]],
    platform_fn: Callable[[], PlatformTag],
) -> StepResult:
    """Dispatch to the installer for ``strategy``."""
    if strategy == StrategyChoice.SOURCE_BUILD:
        return install_source_build(
            target, settings, pyenv_dir=pyenv_dir, env=project.env, pr=pr,
        )

    try:
        platform = platform_fn()
        entries = precompiled_entries()
    except UnsupportedPlatformError as e:
        return StepResult.failure("precompiled", str(e))
    except http.HttpError as e:
        return StepResult.failure("precompiled", f"cannot fetch precompiled catalog: {e}")
    except (ValueError, TypeError) as e:
        return StepResult.failure("precompiled", f"malformed precompiled catalog: {e}")

    return install_precompiled(target, entries, settings, platform=platform, pr=pr)


def _post_install(
    result: InstallResult,
    target: InstallTarget,
    *,
    settings: Settings,
    project: ProjectContext,
    pr: ProgressReporter,
) -> None:
    """Virtualenv + default packages; never fails the install."""
    try:
        result.virtualenv = resolve_virtualenv(target, project, settings, pr=pr)
    except VirtualEnvError as e:
        logger.warning("%s", e)
        result.warnings.append(str(e))
        result.steps.append(StepResult.failure("virtualenv", str(e), fatal=False))

    packages = install_default_packages(target, settings, env=project.env, pr=pr)
    result.steps.append(packages)
    if packages.failed:
        logger.warning("%s", packages.error)
        result.warnings.append(packages.error or "default packages failed")


def install_version(
    target: InstallTarget,
    *,
    settings: Settings,
    project: ProjectContext,
    pr: ProgressReporter,
    pyenv_dir: Path,
    precompiled_entries: Callable[[], list[PrecompiledEntry]],
    platform_fn: Callable[[], PlatformTag],
) -> InstallResult:
    """Install one python version and report how far it got.

    Args:
        target: Version request plus the paths this install owns.
        settings: Resolved settings (read once, frozen).
        project: Project context (env overlay, root for venv paths).
        pr: Progress sink.
        pyenv_dir: python-build checkout location.
        precompiled_entries: Platform-filtered catalog provider.
        platform_fn: Returns this machine's ``PlatformTag``.

    Returns:
        ``InstallResult`` — ``ok`` only in ``post_install_complete``.
    """
    result = InstallResult(
        version=str(target.request),
        install_path=str(target.install_path),
    )

    strategy = select_strategy(settings)
    result.strategy = strategy
    result.advance(InstallState.STRATEGY_SELECTED)
    logger.info("installing python %s (%s)", target.request, strategy.value)

    step = _run_strategy(
        strategy,
        target,
        settings=settings,
        project=project,
        pr=pr,
        pyenv_dir=pyenv_dir,
        precompiled_entries=precompiled_entries,
        platform_fn=platform_fn,
    )
    result.steps.append(step)
    if step.failed:
        result.fail(step.error or f"{step.step} failed")
        return result
    result.advance(InstallState.STRATEGY_EXECUTED)

    check = smoke_test(target, env=project.env, pr=pr)
    result.steps.append(check)
    if check.failed:
        result.fail(check.error or "smoke test failed")
        return result
    result.advance(InstallState.VALIDATED)

    _post_install(result, target, settings=settings, project=project, pr=pr)
    result.advance(InstallState.POST_INSTALL_COMPLETE)
    return result
