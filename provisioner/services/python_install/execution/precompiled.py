"""
L4 Execution — Precompiled python from python-build-standalone.

Fetch the artifact feed, pick the tarball for this version and
platform, download it, unpack it and move the interpreter tree into
the install path.
"""

from __future__ import annotations

import logging
import os
import shutil
import tarfile
from pathlib import Path

from provisioner.core.models.install import InstallTarget, PrecompiledEntry
from provisioner.core.models.result import StepResult
from provisioner.core.models.settings import Settings
from provisioner.core.progress import ProgressReporter
from provisioner.services.python_install.data.constants import PRECOMPILED_ARCHIVE_ROOT
from provisioner.services.python_install.domain.catalog import (
    artifact_url,
    parse_precompiled_feed,
    select_precompiled,
)
from provisioner.services.python_install.domain.platform_tag import PlatformTag
from provisioner.services.python_install.execution import http

logger = logging.getLogger(__name__)


def fetch_precompiled_entries(settings: Settings) -> list[PrecompiledEntry]:
    """Download and parse the feed for all platforms (uncached — callers memoize).

    Raises:
        HttpError: The feed could not be fetched.
    """
    raw = http.get_text(settings.python_precompiled_feed_url)
    entries = parse_precompiled_feed(raw)
    logger.debug("precompiled feed: %d cpython entries", len(entries))
    return entries


def _warn_experimental() -> None:
    logger.warning("installing precompiled python from indygreg/python-build-standalone")
    logger.warning("if you experience issues with this python, switch to python-build")
    logger.warning("by running: provisioner settings set python_compile true")


def _extract(tarball: Path, dest: Path) -> Path:
    """Unpack ``tarball`` into ``dest`` and return the interpreter tree."""
    staged = dest / PRECOMPILED_ARCHIVE_ROOT
    if staged.exists():
        shutil.rmtree(staged)
    with tarfile.open(tarball, "r:*") as tf:
        tf.extractall(dest, filter="data")
    return staged


def _replace_install(staged: Path, install_path: Path) -> None:
    """Swap ``staged`` in as ``install_path``, dropping any previous install."""
    if install_path.is_symlink() or install_path.is_file():
        install_path.unlink()
    elif install_path.exists():
        shutil.rmtree(install_path)
    install_path.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(staged), str(install_path))


def link_python(install_path: Path) -> Path:
    """Point ``bin/python`` at ``bin/python3`` (relative link)."""
    link = install_path / "bin" / "python"
    if link.is_symlink() or link.exists():
        link.unlink()
    os.symlink("python3", link)
    return link


def install_precompiled(
    target: InstallTarget,
    entries: list[PrecompiledEntry],
    settings: Settings,
    *,
    platform: PlatformTag,
    pr: ProgressReporter,
) -> StepResult:
    """Install ``target.version`` from the precompiled catalog ``entries``."""
    _warn_experimental()

    entry = select_precompiled(entries, target.version, platform)
    if entry is None:
        return StepResult.failure(
            "precompiled",
            f"no precompiled python found for {target.request} ({platform.tag})",
        )

    url = artifact_url(settings.python_precompiled_url_template, entry)
    tarball = target.download_path / url.rsplit("/", 1)[-1]

    pr.set_message(f"downloading {url}")
    try:
        http.download_file(url, tarball)
    except http.HttpError as e:
        return StepResult.failure("precompiled", str(e))
    pr.set_message(f"downloaded {tarball.name}")

    pr.set_message(f"installing {tarball}")
    try:
        staged = _extract(tarball, target.download_path)
    except (tarfile.TarError, OSError) as e:
        return StepResult.failure("precompiled", f"Extract failed for {tarball}: {e}")

    if not staged.is_dir():
        return StepResult.failure(
            "precompiled",
            f"{tarball.name} has no '{PRECOMPILED_ARCHIVE_ROOT}/' directory",
        )
    pr.set_message(f"extracted {tarball.name}")

    try:
        _replace_install(staged, target.install_path)
        link_python(target.install_path)
    except OSError as e:
        return StepResult.failure(
            "precompiled", f"Cannot install into {target.install_path}: {e}",
        )

    return StepResult.success(
        "precompiled",
        f"installed {entry.filename}",
        metadata={"url": url, "tag": entry.tag, "filename": entry.filename},
    )
