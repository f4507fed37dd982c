"""L1 Domain — pure logic for python installs (no network, no subprocess)."""

from provisioner.services.python_install.domain.catalog import (  # noqa: F401
    artifact_url,
    for_platform,
    parse_precompiled_feed,
    select_precompiled,
    sort_definitions,
    unique_versions,
)
from provisioner.services.python_install.domain.platform_tag import (  # noqa: F401
    PlatformTag,
    detect_platform,
)
from provisioner.services.python_install.domain.strategy import (  # noqa: F401
    select_strategy,
)
