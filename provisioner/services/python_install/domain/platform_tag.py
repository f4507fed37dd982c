"""
L1 Domain — Platform identification.

Derives the (arch, os) pair that python-build-standalone encodes in
its artifact filenames, e.g. ``x86_64_v3-unknown-linux-gnu``.
"""

from __future__ import annotations

import glob
import platform
from dataclasses import dataclass

from provisioner.core.models.settings import Settings
from provisioner.services.python_install.data.constants import (
    PRECOMPILED_ARCH_MAP,
    PRECOMPILED_OS_MAP,
    PRECOMPILED_OS_MUSL,
)


class UnsupportedPlatformError(Exception):
    """No precompiled artifacts exist for this OS/arch."""


@dataclass(frozen=True)
class PlatformTag:
    arch: str
    os: str

    @property
    def tag(self) -> str:
        """Substring every matching artifact filename contains."""
        return f"{self.arch}-{self.os}"

    def matches(self, filename: str) -> bool:
        return self.tag in filename


def _is_musl() -> bool:
    """musl libc leaves its dynamic loader at /lib/ld-musl-<arch>.so.1."""
    return bool(glob.glob("/lib/ld-musl-*"))


def detect_platform(settings: Settings | None = None) -> PlatformTag:
    """Return the platform tag for this machine.

    ``python_precompiled_arch`` / ``python_precompiled_os`` settings
    override detection (and skip the unsupported-platform check for
    the overridden half).

    Raises:
        UnsupportedPlatformError: Unknown machine or OS with no override.
    """
    arch = settings.python_precompiled_arch if settings else None
    os_name = settings.python_precompiled_os if settings else None

    if not arch:
        machine = platform.machine().lower()
        arch = PRECOMPILED_ARCH_MAP.get(machine)
        if arch is None:
            raise UnsupportedPlatformError(f"unsupported arch for precompiled python: {machine}")

    if not os_name:
        system = platform.system().lower()
        if system == "linux" and _is_musl():
            os_name = PRECOMPILED_OS_MUSL
        else:
            os_name = PRECOMPILED_OS_MAP.get(system)
        if os_name is None:
            raise UnsupportedPlatformError(f"unsupported OS for precompiled python: {system}")

    return PlatformTag(arch=arch, os=os_name)
