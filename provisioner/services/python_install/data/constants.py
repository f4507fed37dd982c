"""
L0 Data — Module-level constants.

Pure data. No logic. No imports beyond stdlib.
"""

from __future__ import annotations

TOOL_NAME = "python"

# Files a host scans in a project directory to infer the requested version.
LEGACY_FILENAMES: tuple[str, ...] = (".python-version",)

# ── Precompiled artifacts (python-build-standalone) ──

# Cache file under <cache_dir>/python/, and the key stored inside it.
PRECOMPILED_CACHE_FILE = "precompiled.json.gz"
PRECOMPILED_CACHE_KEY = "python-precompiled"

# cpython-3.12.0+20231002-x86_64_v3-unknown-linux-gnu-install_only.tar.gz
PRECOMPILED_FILENAME_RE = r"^cpython-(\d+\.\d+\.\d+)\+(\d+).*"

# Top-level directory inside an install_only tarball.
PRECOMPILED_ARCHIVE_ROOT = "python"

# uname -m → python-build-standalone arch triple component.
# x86_64 defaults to the v3 microarchitecture level; override with the
# python_precompiled_arch setting on older CPUs.
PRECOMPILED_ARCH_MAP: dict[str, str] = {
    "x86_64": "x86_64_v3",
    "amd64": "x86_64_v3",
    "aarch64": "aarch64",
    "arm64": "aarch64",    # macOS reports arm64
}

# platform.system() → vendor/os/abi triple tail.
PRECOMPILED_OS_MAP: dict[str, str] = {
    "linux": "unknown-linux-gnu",
    "darwin": "apple-darwin",
}
PRECOMPILED_OS_MUSL = "unknown-linux-musl"

# ── Source builds (pyenv's python-build plugin) ──

PYENV_DIRNAME = "pyenv"
PYTHON_BUILD_BIN = "plugins/python-build/bin/python-build"

# ── Timeouts (seconds) ──

GIT_CLONE_TIMEOUT = 300
GIT_UPDATE_TIMEOUT = 60
HTTP_TIMEOUT = 30
DOWNLOAD_TIMEOUT = 120
SMOKE_TEST_TIMEOUT = 30
VENV_CREATE_TIMEOUT = 300
DEFAULT_PACKAGES_TIMEOUT = 900
# python-build compiles the whole interpreter
PYTHON_BUILD_TIMEOUT = 3600

# ── Runtime environment ──

VIRTUAL_ENV_VAR = "VIRTUAL_ENV"
ADD_PATH_VAR = "PROVISIONER_ADD_PATH"
