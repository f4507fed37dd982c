"""
Directory layout — where installs, downloads and caches live.

    <data_dir>/installs/python/<version>     install path
    <data_dir>/downloads/python/<version>    download / staging path
    <cache_dir>/python/                      catalog cache + python-build clone
"""

from __future__ import annotations

import os
from pathlib import Path

from provisioner.core.models.install import InstallTarget, VersionRequest

_DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "provisioner"
_DEFAULT_CACHE_DIR = Path.home() / ".cache" / "provisioner"


def data_dir() -> Path:
    """Return the data directory (``PROVISIONER_DATA_DIR`` overrides)."""
    return Path(os.environ.get("PROVISIONER_DATA_DIR", str(_DEFAULT_DATA_DIR)))


def cache_dir() -> Path:
    """Return the cache directory (``PROVISIONER_CACHE_DIR`` overrides)."""
    return Path(os.environ.get("PROVISIONER_CACHE_DIR", str(_DEFAULT_CACHE_DIR)))


def tool_cache_dir(tool: str = "python") -> Path:
    return cache_dir() / tool


def install_target(
    raw_version: str,
    options: dict | None = None,
    *,
    tool: str = "python",
) -> InstallTarget:
    """Build the InstallTarget for a requested version string.

    Refs are stored under ``ref-<name>`` so they never collide with
    a concrete version directory.
    """
    request = VersionRequest.parse(raw_version)
    dirname = f"ref-{request.value}" if request.is_ref else request.value
    root = data_dir()
    return InstallTarget(
        install_path=root / "installs" / tool / dirname,
        download_path=root / "downloads" / tool / dirname,
        request=request,
        options=dict(options or {}),
    )
