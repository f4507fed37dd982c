"""
L5 Orchestration — The python plugin a host version manager talks to.

One ``PythonPlugin`` per operation: it owns the settings snapshot,
the project context, the precompiled-catalog cache and the
remote-version memo.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path

from provisioner.core.config.dirs import tool_cache_dir
from provisioner.core.models.install import InstallTarget, PrecompiledEntry
from provisioner.core.models.project import ProjectContext
from provisioner.core.models.result import InstallResult
from provisioner.core.models.settings import Settings
from provisioner.core.persistence.ttl_cache import TTLCache
from provisioner.core.progress import LogProgressReporter, ProgressReporter
from provisioner.services.python_install.data.constants import (
    LEGACY_FILENAMES,
    PRECOMPILED_CACHE_FILE,
    PRECOMPILED_CACHE_KEY,
    PYENV_DIRNAME,
    TOOL_NAME,
)
from provisioner.services.python_install.domain.catalog import for_platform
from provisioner.services.python_install.domain.platform_tag import (
    PlatformTag,
    detect_platform,
)
from provisioner.services.python_install.errors import InstallError
from provisioner.services.python_install.execution.precompiled import fetch_precompiled_entries
from provisioner.services.python_install.execution.virtualenv import exec_env as _exec_env
from provisioner.services.python_install.orchestration import orchestrator
from provisioner.services.python_install.resolver.remote_versions import (
    list_remote_versions as _list_remote_versions,
)

logger = logging.getLogger(__name__)


def parse_legacy_file(path: Path) -> str | None:
    """First version token of a ``.python-version`` file.

    Blank lines and ``#`` comments are skipped; None when nothing is left.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.debug("cannot read %s: %s", path, e)
        return None
    for line in text.splitlines():
        line = line.split("#", 1)[0].strip()
        if line:
            return line.split()[0]
    return None


class PythonPlugin:
    """Python provisioning for a host tool-version manager."""

    def __init__(
        self,
        settings: Settings,
        project: ProjectContext | None = None,
        *,
        cache_root: Path | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings
        self.project = project or ProjectContext()
        self.cache_root = cache_root or tool_cache_dir(TOOL_NAME)
        self.pyenv_dir = self.cache_root / PYENV_DIRNAME
        self.precompiled_cache = TTLCache(
            self.cache_root / PRECOMPILED_CACHE_FILE,
            key=PRECOMPILED_CACHE_KEY,
            fresh_duration=settings.fetch_remote_versions_cache,
            clock=clock,
        )
        self._remote_versions: list[str] | None = None

    # ── Catalog ─────────────────────────────────────────────────

    def platform(self) -> PlatformTag:
        return detect_platform(self.settings)

    def precompiled_entries(self) -> list[PrecompiledEntry]:
        """This platform's slice of the (cached) precompiled feed."""
        raw = self.precompiled_cache.get_or_init(
            lambda: [e.model_dump() for e in fetch_precompiled_entries(self.settings)]
        )
        entries = [PrecompiledEntry.model_validate(item) for item in raw]
        return for_platform(entries, self.platform())

    def list_remote_versions(self) -> list[str]:
        """Installable versions, memoized for the life of the plugin."""
        if self._remote_versions is None:
            self._remote_versions = _list_remote_versions(
                self.settings,
                precompiled_entries=self.precompiled_entries,
                pyenv_dir=self.pyenv_dir,
            )
        return list(self._remote_versions)

    def legacy_filenames(self) -> list[str]:
        return list(LEGACY_FILENAMES)

    def requested_version(self, explicit: str | None = None, cwd: Path | None = None) -> str:
        """The version to act on when the caller may not have named one.

        Order: ``explicit``, ``tools.python.version`` from the project
        file, then the first legacy file found in the project root or
        ``cwd``.

        Raises:
            InstallError: Nothing names a version.
        """
        if explicit:
            return explicit
        configured = self.project.config.tools.python.version
        if configured:
            return str(configured)

        search = [d for d in (self.project.root, cwd or Path.cwd()) if d is not None]
        for directory in search:
            for name in LEGACY_FILENAMES:
                version = parse_legacy_file(directory / name)
                if version:
                    logger.debug("python version %s from %s", version, directory / name)
                    return version

        raise InstallError(
            "no python version requested: pass one, set tools.python.version "
            f"in the project file, or add a {LEGACY_FILENAMES[0]} file"
        )

    # ── Install / activation ────────────────────────────────────

    def install_version(
        self,
        target: InstallTarget,
        pr: ProgressReporter | None = None,
    ) -> InstallResult:
        return orchestrator.install_version(
            target,
            settings=self.settings,
            project=self.project,
            pr=pr or LogProgressReporter(TOOL_NAME),
            pyenv_dir=self.pyenv_dir,
            precompiled_entries=self.precompiled_entries,
            platform_fn=self.platform,
        )

    def exec_env(self, target: InstallTarget) -> dict[str, str]:
        return _exec_env(target, self.project, self.settings)
