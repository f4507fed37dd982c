"""
Project model — what ``provisioner.yml`` declares.

The project file pins the python version, the per-tool options
(``virtualenv`` …), an environment overlay applied to every
subprocess, and setting overrides.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PythonToolConfig(BaseModel):
    """The ``tools.python`` block.

    Unknown keys are kept: they travel as tool options.
    """

    model_config = ConfigDict(extra="allow")

    version: str | None = None
    virtualenv: str | None = None

    def options(self) -> dict[str, Any]:
        """Tool options map (everything except ``version``)."""
        data = self.model_dump(exclude_none=True)
        data.pop("version", None)
        return data


class ToolsConfig(BaseModel):
    python: PythonToolConfig = Field(default_factory=PythonToolConfig)


class ProjectConfig(BaseModel):
    """Root of ``provisioner.yml``."""

    version: int = 1

    settings: dict[str, Any] = Field(default_factory=dict)
    env: dict[str, str] = Field(default_factory=dict)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)


class ProjectContext(BaseModel):
    """The project an operation runs in.

    ``root`` is the directory of the top-level ``provisioner.yml``
    (or None outside a project).
    """

    root: Path | None = None
    config_path: Path | None = None
    env: dict[str, str] = Field(default_factory=dict)
    config: ProjectConfig = Field(default_factory=ProjectConfig)
