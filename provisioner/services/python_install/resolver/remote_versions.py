"""
L2 Resolver — Which python versions can be installed.

Precompiled mode lists what the artifact feed offers for this
platform.  Source-build mode asks the versions host first and falls
back to ``python-build --definitions`` when it cannot be reached.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from provisioner.core.models.install import PrecompiledEntry, StrategyChoice
from provisioner.core.models.settings import Settings
from provisioner.services.python_install.domain.catalog import unique_versions
from provisioner.services.python_install.domain.platform_tag import UnsupportedPlatformError
from provisioner.services.python_install.domain.strategy import select_strategy
from provisioner.services.python_install.errors import CatalogError
from provisioner.services.python_install.execution import http
from provisioner.services.python_install.execution.python_build import list_definitions

logger = logging.getLogger(__name__)


def fetch_versions_host(settings: Settings, tool: str = "python") -> list[str]:
    """GET ``<versions_host>/<tool>``: one version per line.

    Raises:
        HttpError: Host unreachable or non-2xx.
    """
    url = f"{settings.versions_host.rstrip('/')}/{tool}"
    body = http.get_text(url, timeout=settings.fetch_remote_versions_timeout)
    return [line.strip() for line in body.splitlines() if line.strip()]


def list_remote_versions(
    settings: Settings,
    *,
    precompiled_entries: Callable[[], list[PrecompiledEntry]],
    pyenv_dir: Path,
) -> list[str]:
    """Installable versions under the current strategy.

    Args:
        settings: Resolved settings.
        precompiled_entries: Platform-filtered catalog (usually cached).
        pyenv_dir: Where the python-build checkout lives.

    Raises:
        CatalogError: No list could be produced.
    """
    if select_strategy(settings) == StrategyChoice.PRECOMPILED:
        try:
            return unique_versions(precompiled_entries())
        except (http.HttpError, UnsupportedPlatformError, ValueError, TypeError) as e:
            raise CatalogError(f"cannot list precompiled versions: {e}") from e

    if settings.use_versions_host:
        try:
            versions = fetch_versions_host(settings)
        except http.HttpError as e:
            logger.warning("failed to fetch remote versions: %s", e)
        else:
            if versions:
                return versions
            logger.debug("versions host returned an empty list, using python-build")

    return list_definitions(pyenv_dir, settings)
