"""
Tests for platform detection and strategy selection.
"""

from unittest.mock import patch

import pytest

from provisioner.core.models.install import StrategyChoice
from provisioner.core.models.settings import Settings
from provisioner.services.python_install.domain.platform_tag import (
    PlatformTag,
    UnsupportedPlatformError,
    detect_platform,
)
from provisioner.services.python_install.domain.strategy import select_strategy

_PT = "provisioner.services.python_install.domain.platform_tag"


class TestSelectStrategy:
    @pytest.mark.parametrize(
        "all_compile, python_compile, experimental, expected",
        [
            (False, False, True, StrategyChoice.PRECOMPILED),
            (False, False, False, StrategyChoice.SOURCE_BUILD),
            (True, False, True, StrategyChoice.SOURCE_BUILD),
            (False, True, True, StrategyChoice.SOURCE_BUILD),
        ],
    )
    def test_truth_table(self, all_compile, python_compile, experimental, expected):
        s = Settings(
            all_compile=all_compile,
            python_compile=python_compile,
            experimental=experimental,
        )
        assert select_strategy(s) == expected


class TestDetectPlatform:
    @patch(f"{_PT}._is_musl", return_value=False)
    @patch(f"{_PT}.platform.system", return_value="Linux")
    @patch(f"{_PT}.platform.machine", return_value="x86_64")
    def test_linux_gnu(self, _m, _s, _musl):
        tag = detect_platform()
        assert tag == PlatformTag("x86_64_v3", "unknown-linux-gnu")
        assert tag.tag == "x86_64_v3-unknown-linux-gnu"

    @patch(f"{_PT}._is_musl", return_value=True)
    @patch(f"{_PT}.platform.system", return_value="Linux")
    @patch(f"{_PT}.platform.machine", return_value="aarch64")
    def test_linux_musl(self, _m, _s, _musl):
        assert detect_platform().tag == "aarch64-unknown-linux-musl"

    @patch(f"{_PT}.platform.system", return_value="Darwin")
    @patch(f"{_PT}.platform.machine", return_value="arm64")
    def test_macos(self, _m, _s):
        assert detect_platform().tag == "aarch64-apple-darwin"

    @patch(f"{_PT}.platform.system", return_value="Linux")
    @patch(f"{_PT}.platform.machine", return_value="riscv64")
    def test_unsupported_arch(self, _m, _s):
        with pytest.raises(UnsupportedPlatformError, match="riscv64"):
            detect_platform()

    @patch(f"{_PT}.platform.system", return_value="Windows")
    @patch(f"{_PT}.platform.machine", return_value="x86_64")
    def test_unsupported_os(self, _m, _s):
        with pytest.raises(UnsupportedPlatformError, match="windows"):
            detect_platform()

    @patch(f"{_PT}._is_musl", return_value=False)
    @patch(f"{_PT}.platform.system", return_value="Linux")
    @patch(f"{_PT}.platform.machine", return_value="x86_64")
    def test_arch_override(self, _m, _s, _musl):
        s = Settings(python_precompiled_arch="x86_64_v2")
        assert detect_platform(s).tag == "x86_64_v2-unknown-linux-gnu"

    @patch(f"{_PT}.platform.system", return_value="FreeBSD")
    @patch(f"{_PT}.platform.machine", return_value="amd64")
    def test_os_override_skips_os_check(self, _m, _s):
        s = Settings(python_precompiled_os="unknown-linux-musl")
        assert detect_platform(s).tag == "x86_64_v3-unknown-linux-musl"

    def test_matches(self):
        tag = PlatformTag("x86_64_v3", "unknown-linux-gnu")
        assert tag.matches("cpython-3.12.0+1-x86_64_v3-unknown-linux-gnu-install_only.tar.gz")
        assert not tag.matches("cpython-3.12.0+1-x86_64-unknown-linux-gnu-install_only.tar.gz")
