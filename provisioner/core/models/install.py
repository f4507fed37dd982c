"""
Install models — what is being installed, where, and from which artifact.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

REF_PREFIX = "ref:"


class StrategyChoice(str, Enum):
    """How a python version gets onto disk."""

    PRECOMPILED = "precompiled"
    SOURCE_BUILD = "source_build"


class VersionRequest(BaseModel):
    """A requested version: a concrete version string or a symbolic ref.

    ``ref:<name>`` requests a git ref (branch, tag, sha); anything else
    is taken as a concrete version like ``3.11.4``.
    """

    kind: Literal["version", "ref"] = "version"
    value: str

    @classmethod
    def parse(cls, raw: str) -> VersionRequest:
        raw = raw.strip()
        if raw.startswith(REF_PREFIX):
            return cls(kind="ref", value=raw[len(REF_PREFIX):])
        return cls(kind="version", value=raw)

    @property
    def is_ref(self) -> bool:
        return self.kind == "ref"

    def __str__(self) -> str:
        return f"{REF_PREFIX}{self.value}" if self.is_ref else self.value


class PrecompiledEntry(BaseModel):
    """One artifact line of the precompiled feed."""

    version: str    # 3.12.0
    tag: str        # release tag, e.g. 20231002
    filename: str   # cpython-3.12.0+20231002-x86_64_v3-unknown-linux-gnu-install_only.tar.gz


class InstallTarget(BaseModel):
    """Everything one install owns exclusively."""

    install_path: Path
    download_path: Path
    request: VersionRequest
    options: dict[str, Any] = Field(default_factory=dict)

    @property
    def version(self) -> str:
        return self.request.value

    @property
    def python_bin(self) -> Path:
        """Stable interpreter path inside the install."""
        return self.install_path / "bin" / "python"


class VirtualEnvDescriptor(BaseModel):
    """A resolved virtual environment for an install."""

    path: Path
    created: bool = False

    @property
    def bin_dir(self) -> Path:
        return self.path / "bin"
