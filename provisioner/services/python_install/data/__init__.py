"""
L0 Data — ``__init__.py`` re-exports the constants other layers use.
"""

from provisioner.services.python_install.data.constants import (  # noqa: F401
    LEGACY_FILENAMES,
    PRECOMPILED_CACHE_FILE,
    PRECOMPILED_CACHE_KEY,
    PYENV_DIRNAME,
    TOOL_NAME,
)
