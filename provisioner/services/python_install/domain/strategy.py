"""
L1 Domain — Install strategy selection.

Pure: reads settings only, performs no I/O, cannot fail.
"""

from __future__ import annotations

from provisioner.core.models.install import StrategyChoice
from provisioner.core.models.settings import Settings


def select_strategy(settings: Settings) -> StrategyChoice:
    """Precompiled only when nothing forces a compile and experimental is on."""
    if settings.wants_precompiled:
        return StrategyChoice.PRECOMPILED
    return StrategyChoice.SOURCE_BUILD
