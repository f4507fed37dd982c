"""
L5 Orchestration — ``__init__.py`` re-exports the entry points external code calls.
"""

from provisioner.services.python_install.orchestration.orchestrator import (  # noqa: F401
    install_version,
)
from provisioner.services.python_install.orchestration.plugin import (  # noqa: F401
    PythonPlugin,
    parse_legacy_file,
)
