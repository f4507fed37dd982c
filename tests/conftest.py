"""
Shared test fixtures and configuration.
"""

import os
import stat
from pathlib import Path

import pytest

from provisioner.core.config.dirs import install_target
from provisioner.core.models.install import InstallTarget
from provisioner.core.models.settings import Settings
from provisioner.core.progress import RecordingProgressReporter


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point data/cache dirs at tmp and drop PROVISIONER_* overrides."""
    for key in list(os.environ):
        if key.startswith("PROVISIONER_"):
            monkeypatch.delenv(key)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("PROVISIONER_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("PROVISIONER_CACHE_DIR", str(tmp_path / "cache"))
    return home


@pytest.fixture
def settings() -> Settings:
    """Source-build settings (the defaults)."""
    return Settings()


@pytest.fixture
def precompiled_settings() -> Settings:
    return Settings(experimental=True)


@pytest.fixture
def pr() -> RecordingProgressReporter:
    return RecordingProgressReporter()


@pytest.fixture
def target() -> InstallTarget:
    return install_target("3.12.0")


def _write_fake_python(install_path: Path, output: str = "Python 3.12.0", exit_code: int = 0) -> Path:
    """Drop a shell script at ``bin/python`` that prints ``output``."""
    bin_dir = install_path / "bin"
    bin_dir.mkdir(parents=True, exist_ok=True)
    python = bin_dir / "python"
    python.write_text(f'#!/bin/sh\necho "{output}"\nexit {exit_code}\n')
    python.chmod(python.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return python


@pytest.fixture
def fake_python():
    """Factory: ``fake_python(install_path, output=..., exit_code=...)``."""
    return _write_fake_python
