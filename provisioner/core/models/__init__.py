"""
Domain models — Pydantic types for the provisioner.

All models are re-exported here for convenient access:

    from provisioner.core.models import Settings, InstallTarget, InstallResult
"""

from provisioner.core.models.install import (
    InstallTarget,
    PrecompiledEntry,
    StrategyChoice,
    VersionRequest,
    VirtualEnvDescriptor,
)
from provisioner.core.models.project import (
    ProjectConfig,
    ProjectContext,
    PythonToolConfig,
    ToolsConfig,
)
from provisioner.core.models.result import (
    InstallResult,
    InstallState,
    StepResult,
)
from provisioner.core.models.settings import Settings

__all__ = [
    # install.py
    "InstallTarget",
    "PrecompiledEntry",
    "StrategyChoice",
    "VersionRequest",
    "VirtualEnvDescriptor",
    # project.py
    "ProjectConfig",
    "ProjectContext",
    "PythonToolConfig",
    "ToolsConfig",
    # result.py
    "InstallResult",
    "InstallState",
    "StepResult",
    # settings.py
    "Settings",
]
