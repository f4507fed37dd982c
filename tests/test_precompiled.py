"""
Tests for the precompiled installer — selection, download, extract, link.
"""

import io
import os
import shutil
import tarfile
from pathlib import Path
from unittest.mock import patch

from provisioner.core.models.install import PrecompiledEntry
from provisioner.core.models.settings import Settings
from provisioner.services.python_install.domain.platform_tag import PlatformTag
from provisioner.services.python_install.execution.http import HttpError
from provisioner.services.python_install.execution.precompiled import (
    fetch_precompiled_entries,
    install_precompiled,
    link_python,
)

_PC = "provisioner.services.python_install.execution.precompiled"
LINUX = PlatformTag("x86_64_v3", "unknown-linux-gnu")
FILENAME = "cpython-3.12.0+20231002-x86_64_v3-unknown-linux-gnu-install_only.tar.gz"


def _make_tarball(dest: Path, root: str = "python") -> Path:
    """A minimal install_only tarball: ``python/bin/python3``."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(dest, "w:gz") as tf:
        body = b"#!/bin/sh\necho Python 3.12.0\n"
        info = tarfile.TarInfo(f"{root}/bin/python3")
        info.size = len(body)
        info.mode = 0o755
        tf.addfile(info, io.BytesIO(body))
    return dest


def _entries() -> list[PrecompiledEntry]:
    return [
        PrecompiledEntry(
            version="3.12.0",
            tag="20230901",
            filename="cpython-3.12.0+20230901-x86_64_v3-unknown-linux-gnu-install_only.tar.gz",
        ),
        PrecompiledEntry(version="3.12.0", tag="20231002", filename=FILENAME),
    ]


class TestFetchEntries:
    @patch(f"{_PC}.http.get_text")
    def test_parses_whole_feed(self, mock_get):
        mock_get.return_value = (
            f"{FILENAME}\ncpython-3.11.4+20230726-aarch64-apple-darwin-install_only.tar.gz\nnoise\n"
        )
        entries = fetch_precompiled_entries(Settings())
        assert [e.version for e in entries] == ["3.12.0", "3.11.4"]
        mock_get.assert_called_once_with("https://mise-versions.jdx.dev/python-precompiled")


class TestInstallPrecompiled:
    def _fake_download(self, tarball_root: str = "python"):
        def download(url: str, dest: Path) -> Path:
            return _make_tarball(dest, root=tarball_root)
        return download

    def test_installs_last_matching_artifact(self, target, pr, caplog):
        with patch(f"{_PC}.http.download_file", side_effect=self._fake_download()) as mock_dl:
            with caplog.at_level("WARNING"):
                result = install_precompiled(target, _entries(), Settings(), platform=LINUX, pr=pr)

        assert result.ok, result.error
        url = mock_dl.call_args[0][0]
        assert url == (
            "https://github.com/indygreg/python-build-standalone/releases/download/"
            f"20231002/{FILENAME}"
        )
        assert (target.install_path / "bin" / "python3").is_file()
        link = target.install_path / "bin" / "python"
        assert link.is_symlink()
        assert os.readlink(link) == "python3"
        assert not (target.download_path / "python").exists()

        assert pr.messages[0].startswith("downloading https://")
        assert pr.messages[1] == f"downloaded {FILENAME}"
        assert pr.messages[2].startswith("installing ")
        assert pr.messages[3] == f"extracted {FILENAME}"
        assert "provisioner settings set python_compile true" in caplog.text

    def test_replaces_existing_install(self, target, pr):
        stale = target.install_path / "lib" / "stale.txt"
        stale.parent.mkdir(parents=True)
        stale.write_text("old")
        with patch(f"{_PC}.http.download_file", side_effect=self._fake_download()):
            result = install_precompiled(target, _entries(), Settings(), platform=LINUX, pr=pr)
        assert result.ok
        assert not stale.exists()

    def test_no_match_is_fatal(self, target, pr):
        mac = PlatformTag("aarch64", "apple-darwin")
        with patch(f"{_PC}.http.download_file") as mock_dl:
            result = install_precompiled(target, _entries(), Settings(), platform=mac, pr=pr)
        assert result.failed and result.fatal
        assert "no precompiled python found for 3.12.0" in result.error
        mock_dl.assert_not_called()

    def test_download_failure(self, target, pr):
        with patch(f"{_PC}.http.download_file", side_effect=HttpError("HTTP 503")):
            result = install_precompiled(target, _entries(), Settings(), platform=LINUX, pr=pr)
        assert result.failed
        assert "HTTP 503" in result.error
        assert not target.install_path.exists()

    def test_tarball_without_python_root(self, target, pr):
        with patch(f"{_PC}.http.download_file", side_effect=self._fake_download("other")):
            result = install_precompiled(target, _entries(), Settings(), platform=LINUX, pr=pr)
        assert result.failed
        assert "has no 'python/' directory" in result.error

    def test_corrupt_tarball(self, target, pr):
        def download(url, dest):
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_bytes(b"not a tarball")
            return dest

        with patch(f"{_PC}.http.download_file", side_effect=download):
            result = install_precompiled(target, _entries(), Settings(), platform=LINUX, pr=pr)
        assert result.failed
        assert "Extract failed" in result.error


class TestLinkPython:
    def test_replaces_existing_link(self, tmp_path: Path):
        (tmp_path / "bin").mkdir()
        (tmp_path / "bin" / "python3").write_text("")
        os.symlink("python3.12", tmp_path / "bin" / "python")
        link_python(tmp_path)
        assert os.readlink(tmp_path / "bin" / "python") == "python3"

    def test_link_resolves_after_move(self, tmp_path: Path):
        (tmp_path / "a" / "bin").mkdir(parents=True)
        (tmp_path / "a" / "bin" / "python3").write_text("x")
        link_python(tmp_path / "a")
        shutil.move(str(tmp_path / "a"), str(tmp_path / "b"))
        assert (tmp_path / "b" / "bin" / "python").read_text() == "x"
