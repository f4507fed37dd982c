"""
Python install service — package re-exports.

    from provisioner.services.python_install import PythonPlugin

Each symbol lives in its single-responsibility module inside the
appropriate layer (data → domain → resolver → execution → orchestration).
"""

from provisioner.services.python_install.errors import (  # noqa: F401
    CatalogError,
    InstallError,
    VirtualEnvError,
)
from provisioner.services.python_install.orchestration.plugin import (  # noqa: F401
    PythonPlugin,
    parse_legacy_file,
)
