"""
L4 Execution — Core subprocess runner.

The SINGLE PLACE where external processes are spawned for python
installs (python-build, the installed interpreter, git).  Env
overlay, stdin piping, timeouts and live progress are handled here.
"""

from __future__ import annotations

import logging
import os
import subprocess
import threading
import time
from collections import deque
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from provisioner.core.progress import ProgressReporter

logger = logging.getLogger(__name__)

# Lines of output kept when streaming a long build
_STREAM_TAIL_LINES = 200


def _stream(
    cmd: list[str],
    *,
    env: dict[str, str],
    cwd: str | None,
    input_text: str | None,
    timeout: float,
    pr: ProgressReporter,
) -> tuple[int, str]:
    """Run ``cmd`` forwarding each output line to ``pr``.

    stderr is merged into stdout.  Returns ``(returncode, tail)``.

    Raises:
        subprocess.TimeoutExpired: The process ran longer than ``timeout``.
    """
    proc = subprocess.Popen(
        cmd,
        stdin=subprocess.PIPE if input_text is not None else subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
        env=env,
        cwd=cwd,
    )
    killed = threading.Event()

    def _kill() -> None:
        killed.set()
        proc.kill()

    timer = threading.Timer(timeout, _kill)
    timer.start()
    tail: deque[str] = deque(maxlen=_STREAM_TAIL_LINES)
    try:
        if input_text is not None:
            assert proc.stdin is not None
            try:
                proc.stdin.write(input_text)
            except BrokenPipeError:
                logger.debug("%s closed stdin early", cmd[0])
            finally:
                proc.stdin.close()

        assert proc.stdout is not None
        for line in proc.stdout:
            line = line.rstrip()
            if line:
                tail.append(line)
                pr.set_message(line)
        returncode = proc.wait()
    finally:
        timer.cancel()

    if killed.is_set():
        raise subprocess.TimeoutExpired(cmd, timeout, output="\n".join(tail))
    return returncode, "\n".join(tail)


def run_subprocess(
    cmd: Sequence[str | Path],
    *,
    env_overrides: Mapping[str, str] | None = None,
    input_text: str | None = None,
    timeout: float = 120,
    cwd: str | Path | None = None,
    pr: ProgressReporter | None = None,
) -> dict[str, Any]:
    """Run a command and capture its output.

    Args:
        cmd: Command list; ``Path`` items are stringified.
        env_overrides: Extra env vars layered over ``os.environ``
            (the project's ``env:`` block).
        input_text: Text piped to the process's stdin (patches).
        timeout: Seconds before the process is killed.
        cwd: Working directory.
        pr: When given, output is streamed line by line to
            ``pr.set_message`` instead of being captured silently.

    Returns:
        ``{"ok": True, "stdout": "...", "elapsed_ms": N}`` on success,
        ``{"ok": False, "error": "...", ...}`` on failure.
    """
    argv = [str(part) for part in cmd]

    env = os.environ.copy()
    if env_overrides:
        for key, value in env_overrides.items():
            env[key] = os.path.expandvars(value)

    workdir = str(cwd) if cwd is not None else None
    logger.debug("Executing: %s", " ".join(argv))

    start = time.monotonic()
    try:
        if pr is None:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=timeout,
                input=input_text,
                env=env,
                cwd=workdir,
            )
            returncode, stdout, stderr = result.returncode, result.stdout, result.stderr
        else:
            returncode, stdout = _stream(
                argv, env=env, cwd=workdir, input_text=input_text, timeout=timeout, pr=pr,
            )
            stderr = ""
    except subprocess.TimeoutExpired:
        return {
            "ok": False,
            "error": f"Command timed out ({timeout}s): {' '.join(argv)}",
            "timed_out": True,
        }
    except FileNotFoundError:
        return {"ok": False, "error": f"Command not found: {argv[0]}"}
    except OSError as e:
        logger.exception("Subprocess error: %s", argv)
        return {"ok": False, "error": f"Cannot run {argv[0]}: {e}"}

    elapsed_ms = int((time.monotonic() - start) * 1000)

    if returncode == 0:
        return {
            "ok": True,
            "stdout": stdout or "",
            "stderr": stderr or "",
            "elapsed_ms": elapsed_ms,
        }

    detail = (stderr or stdout or "").strip()[-2000:]
    return {
        "ok": False,
        "error": f"{' '.join(argv)} failed (exit {returncode})",
        "returncode": returncode,
        "stderr": detail,
        "stdout": (stdout or "")[-2000:],
        "elapsed_ms": elapsed_ms,
    }
