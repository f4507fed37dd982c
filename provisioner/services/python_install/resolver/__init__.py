"""
L2 Resolver — ``__init__.py`` re-exports the version catalog resolver.
"""

from provisioner.services.python_install.resolver.remote_versions import (  # noqa: F401
    fetch_versions_host,
    list_remote_versions,
)
