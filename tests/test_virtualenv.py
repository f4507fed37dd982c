"""
Tests for virtualenv resolution, activation env, and post-install steps.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from provisioner.core.config.dirs import install_target
from provisioner.core.models.install import VirtualEnvDescriptor
from provisioner.core.models.project import ProjectContext
from provisioner.core.models.settings import Settings
from provisioner.services.python_install.errors import VirtualEnvError
from provisioner.services.python_install.execution.post_install import (
    install_default_packages,
    smoke_test,
)
from provisioner.services.python_install.execution.virtualenv import (
    activation_env,
    exec_env,
    resolve_virtualenv,
    virtualenv_path,
)

_VE = "provisioner.services.python_install.execution.virtualenv"
_PI = "provisioner.services.python_install.execution.post_install"


@pytest.fixture
def project(tmp_path: Path) -> ProjectContext:
    root = tmp_path / "proj"
    root.mkdir()
    return ProjectContext(root=root, env={"PIP_INDEX_URL": "https://pypi.example"})


class TestVirtualenvPath:
    def test_relative_is_anchored_to_project_root(self, project):
        assert virtualenv_path(".venv", project) == project.root / ".venv"

    def test_absolute_is_kept(self, tmp_path, project):
        assert virtualenv_path(str(tmp_path / "v"), project) == tmp_path / "v"

    def test_home_and_vars(self, isolated_env, project, monkeypatch):
        monkeypatch.setenv("VENV_NAME", "py312")
        assert virtualenv_path("~/envs/$VENV_NAME", project) == isolated_env / "envs" / "py312"

    def test_outside_project_stays_relative(self):
        assert virtualenv_path(".venv", ProjectContext()) == Path(".venv")


class TestResolveVirtualenv:
    def test_not_requested(self, target, project):
        assert resolve_virtualenv(target, project, Settings(experimental=True)) is None

    def test_existing_venv(self, project):
        (project.root / ".venv").mkdir()
        t = install_target("3.12.0", {"virtualenv": ".venv"})
        venv = resolve_virtualenv(t, project, Settings(experimental=True))
        assert venv == VirtualEnvDescriptor(path=project.root / ".venv", created=False)

    @patch(f"{_VE}.run_subprocess")
    def test_missing_without_auto_create(self, mock_run, project, caplog):
        t = install_target("3.12.0", {"virtualenv": ".venv"})
        with caplog.at_level("WARNING"):
            assert resolve_virtualenv(t, project, Settings(experimental=True)) is None
        mock_run.assert_not_called()
        assert "provisioner settings set python_venv_auto_create true" in caplog.text
        assert f"python -m venv {project.root / '.venv'}" in caplog.text
        assert not (project.root / ".venv").exists()

    @patch(f"{_VE}.run_subprocess", return_value={"ok": True, "stdout": ""})
    def test_auto_create(self, mock_run, project):
        t = install_target("3.12.0", {"virtualenv": ".venv"})
        s = Settings(experimental=True, python_venv_auto_create=True)
        venv = resolve_virtualenv(t, project, s)
        assert venv is not None and venv.created
        args, kwargs = mock_run.call_args
        assert args[0] == [t.python_bin, "-m", "venv", project.root / ".venv"]
        assert kwargs["env_overrides"] == project.env

    @patch(f"{_VE}.run_subprocess", return_value={"ok": False, "error": "exit 1", "stderr": "ensurepip failed"})
    def test_auto_create_failure_raises(self, _run, project):
        t = install_target("3.12.0", {"virtualenv": ".venv"})
        s = Settings(experimental=True, python_venv_auto_create=True)
        with pytest.raises(VirtualEnvError, match="ensurepip failed"):
            resolve_virtualenv(t, project, s)

    def test_warns_without_experimental(self, project, caplog):
        (project.root / ".venv").mkdir()
        t = install_target("3.12.0", {"virtualenv": ".venv"})
        with caplog.at_level("WARNING"):
            resolve_virtualenv(t, project, Settings())
        assert "experimental" in caplog.text


class TestExecEnv:
    def test_activation_mapping(self, project):
        (project.root / ".venv").mkdir()
        t = install_target("3.12.0", {"virtualenv": ".venv"})
        env = exec_env(t, project, Settings(experimental=True))
        assert env == {
            "VIRTUAL_ENV": str(project.root / ".venv"),
            "PROVISIONER_ADD_PATH": str(project.root / ".venv" / "bin"),
        }

    def test_empty_without_venv(self, target, project):
        assert exec_env(target, project, Settings()) == {}
        assert activation_env(None) == {}

    @patch(f"{_VE}.run_subprocess", return_value={"ok": False, "error": "boom"})
    def test_errors_are_logged_not_raised(self, _run, project, caplog):
        t = install_target("3.12.0", {"virtualenv": ".venv"})
        s = Settings(experimental=True, python_venv_auto_create=True)
        with caplog.at_level("WARNING"):
            assert exec_env(t, project, s) == {}
        assert "failed to get virtualenv" in caplog.text


class TestSmokeTest:
    def test_passes(self, target, fake_python, pr):
        fake_python(target.install_path)
        result = smoke_test(target, env={}, pr=pr)
        assert result.ok
        assert result.output == "Python 3.12.0"
        assert pr.messages == ["python --version"]

    def test_nonzero_exit_is_fatal(self, target, fake_python, pr):
        fake_python(target.install_path, exit_code=1)
        result = smoke_test(target, env={}, pr=pr)
        assert result.failed and result.fatal

    def test_missing_binary_is_fatal(self, target, pr):
        result = smoke_test(target, env={}, pr=pr)
        assert result.failed
        assert "Command not found" in result.error


class TestDefaultPackages:
    def test_skipped_without_file(self, target, settings, pr):
        result = install_default_packages(target, settings, env={}, pr=pr)
        assert result.status == "skipped"

    @patch(f"{_PI}.run_subprocess", return_value={"ok": True, "stdout": ""})
    def test_runs_pip(self, mock_run, isolated_env, target, settings, pr):
        packages = isolated_env / ".default-python-packages"
        packages.write_text("black\nruff\n")
        result = install_default_packages(target, settings, env={"A": "1"}, pr=pr)
        assert result.ok
        args, kwargs = mock_run.call_args
        assert args[0] == [target.python_bin, "-m", "pip", "install", "--upgrade", "-r", packages]
        assert kwargs["env_overrides"] == {"A": "1"}

    @patch(f"{_PI}.run_subprocess", return_value={"ok": False, "error": "pip failed"})
    def test_failure_is_soft(self, _run, isolated_env, target, settings, pr):
        (isolated_env / ".default-python-packages").write_text("black\n")
        result = install_default_packages(target, settings, env={}, pr=pr)
        assert result.failed
        assert result.fatal is False
