"""
Tests for the subprocess runner — capture, streaming, stdin, timeouts.
"""

import sys

from provisioner.core.progress import RecordingProgressReporter
from provisioner.services.python_install.execution.subprocess_runner import run_subprocess


class TestCapture:
    def test_success(self):
        result = run_subprocess([sys.executable, "-c", "print('hello')"])
        assert result["ok"] is True
        assert result["stdout"].strip() == "hello"
        assert result["elapsed_ms"] >= 0

    def test_nonzero_exit(self):
        result = run_subprocess(
            [sys.executable, "-c", "import sys; sys.stderr.write('bad\\n'); sys.exit(3)"]
        )
        assert result["ok"] is False
        assert result["returncode"] == 3
        assert "exit 3" in result["error"]
        assert result["stderr"] == "bad"

    def test_command_not_found(self):
        result = run_subprocess(["definitely-not-a-real-binary-xyz"])
        assert result["ok"] is False
        assert "Command not found" in result["error"]

    def test_timeout(self):
        result = run_subprocess([sys.executable, "-c", "import time; time.sleep(5)"], timeout=0.5)
        assert result["ok"] is False
        assert result["timed_out"] is True

    def test_env_overlay_expands_vars(self, monkeypatch):
        monkeypatch.setenv("BASE_DIR", "/opt/base")
        result = run_subprocess(
            [sys.executable, "-c", "import os; print(os.environ['BUILD_DIR'])"],
            env_overrides={"BUILD_DIR": "$BASE_DIR/build"},
        )
        assert result["stdout"].strip() == "/opt/base/build"

    def test_input_text(self):
        result = run_subprocess(
            [sys.executable, "-c", "import sys; print(sys.stdin.read().upper())"],
            input_text="patch body",
        )
        assert result["stdout"].strip() == "PATCH BODY"


class TestStreaming:
    def test_lines_go_to_reporter(self):
        pr = RecordingProgressReporter()
        result = run_subprocess(
            [sys.executable, "-c", "print('one'); print(''); print('two')"],
            pr=pr,
        )
        assert result["ok"] is True
        assert pr.messages == ["one", "two"]

    def test_stderr_merged_and_tail_on_failure(self):
        pr = RecordingProgressReporter()
        result = run_subprocess(
            [sys.executable, "-c", "import sys; print('out'); sys.stderr.write('err\\n'); sys.exit(1)"],
            pr=pr,
        )
        assert result["ok"] is False
        assert "err" in result["stderr"]
        assert set(pr.messages) == {"out", "err"}

    def test_streaming_timeout(self):
        result = run_subprocess(
            [sys.executable, "-c", "import time; time.sleep(5)"],
            timeout=0.5,
            pr=RecordingProgressReporter(),
        )
        assert result["ok"] is False
        assert result["timed_out"] is True

    def test_streaming_stdin(self):
        pr = RecordingProgressReporter()
        result = run_subprocess(
            [sys.executable, "-c", "import sys; print(len(sys.stdin.read()))"],
            input_text="abcd",
            pr=pr,
        )
        assert result["ok"] is True
        assert pr.messages == ["4"]
