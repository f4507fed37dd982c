"""
Settings model — the flags that steer a python install.

Loaded once per operation by the config loader and passed down as an
immutable value, so a single install never sees two different answers
to "should I compile?".
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

DEFAULT_VERSIONS_HOST = "https://mise-versions.jdx.dev"
DEFAULT_PRECOMPILED_FEED_URL = "https://mise-versions.jdx.dev/python-precompiled"
DEFAULT_PRECOMPILED_URL_TEMPLATE = (
    "https://github.com/indygreg/python-build-standalone/releases/download/{tag}/{filename}"
)
DEFAULT_PYENV_REPO = "https://github.com/pyenv/pyenv.git"


class Settings(BaseModel):
    """Provisioner settings.

    Precedence (lowest → highest): field defaults, the ``settings:``
    block of ``provisioner.yml``, ``PROVISIONER_<FIELD>`` env vars.
    """

    model_config = ConfigDict(frozen=True)

    # ── Strategy flags ──
    all_compile: bool = False
    python_compile: bool = False
    experimental: bool = False

    # ── Behaviour ──
    verbose: bool = False
    python_venv_auto_create: bool = False

    # ── Catalog sources ──
    use_versions_host: bool = True
    versions_host: str = DEFAULT_VERSIONS_HOST
    python_precompiled_feed_url: str = DEFAULT_PRECOMPILED_FEED_URL
    python_precompiled_url_template: str = DEFAULT_PRECOMPILED_URL_TEMPLATE
    python_precompiled_arch: str | None = None  # e.g. "x86_64_v2"
    python_precompiled_os: str | None = None    # e.g. "unknown-linux-musl"
    fetch_remote_versions_cache: int = 3600     # seconds
    fetch_remote_versions_timeout: int = 20     # seconds

    # ── Source builds ──
    pyenv_repo: str = DEFAULT_PYENV_REPO
    python_patch_url: str | None = None
    python_patches_directory: str | None = None

    # ── Post-install ──
    python_default_packages_file: str = "~/.default-python-packages"

    @property
    def wants_precompiled(self) -> bool:
        """Whether the flags select the precompiled strategy."""
        return not self.all_compile and not self.python_compile and self.experimental
