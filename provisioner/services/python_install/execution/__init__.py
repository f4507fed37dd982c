"""
L4 Execution — ``__init__.py`` re-exports the installers.

These functions WRITE to the system: downloads, subprocess calls,
install directories, virtual environments.
"""

from provisioner.services.python_install.execution.post_install import (  # noqa: F401
    install_default_packages,
    smoke_test,
)
from provisioner.services.python_install.execution.precompiled import (  # noqa: F401
    fetch_precompiled_entries,
    install_precompiled,
)
from provisioner.services.python_install.execution.python_build import (  # noqa: F401
    install_source_build,
    list_definitions,
)
from provisioner.services.python_install.execution.virtualenv import (  # noqa: F401
    exec_env,
    resolve_virtualenv,
)
