"""
L4 Execution — Git mirror for the python-build utility.

Clone once, then fast-forward on demand.  Uses the git CLI only.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Any

from provisioner.services.python_install.data.constants import (
    GIT_CLONE_TIMEOUT,
    GIT_UPDATE_TIMEOUT,
)

logger = logging.getLogger(__name__)


def run_git(
    *args: str,
    cwd: Path | None = None,
    timeout: int = GIT_UPDATE_TIMEOUT,
) -> subprocess.CompletedProcess[str]:
    """Run a git command and return the result."""
    return subprocess.run(
        ["git", *args],
        cwd=str(cwd) if cwd else None,
        capture_output=True,
        text=True,
        timeout=timeout,
    )


def _git_step(*args: str, cwd: Path | None, timeout: int) -> dict[str, Any]:
    try:
        r = run_git(*args, cwd=cwd, timeout=timeout)
    except subprocess.TimeoutExpired:
        return {"ok": False, "error": f"git {args[0]} timed out ({timeout}s)"}
    except FileNotFoundError:
        return {"ok": False, "error": "git is not installed"}
    if r.returncode != 0:
        return {
            "ok": False,
            "error": r.stderr.strip() or f"git {args[0]} failed (exit {r.returncode})",
        }
    return {"ok": True, "stdout": r.stdout}


def clone(url: str, dest: Path, *, timeout: int = GIT_CLONE_TIMEOUT) -> dict[str, Any]:
    """Shallow-clone ``url`` into ``dest``.

    Returns:
        ``{"ok": True}`` or ``{"ok": False, "error": "..."}``.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    logger.debug("Cloning %s into %s", url, dest)
    result = _git_step("clone", "--depth", "1", "--", url, str(dest), cwd=None, timeout=timeout)
    if not result["ok"]:
        return {"ok": False, "error": f"Failed to clone {url}: {result['error']}"}
    return {"ok": True, "path": str(dest)}


def update(dest: Path, ref: str | None = None, *, timeout: int = GIT_UPDATE_TIMEOUT) -> dict[str, Any]:
    """Fetch and check out ``ref`` (default: the remote's HEAD).

    Returns:
        ``{"ok": True, "rev": "<sha>"}`` or ``{"ok": False, "error": "..."}``.
    """
    logger.debug("Updating %s (ref=%s)", dest, ref or "origin/HEAD")
    target = ref or "origin/HEAD"

    fetch_args = ["fetch", "--prune", "--depth", "1", "origin"]
    if ref:
        fetch_args.append(ref)
        target = "FETCH_HEAD"

    for args in (
        fetch_args,
        ["-c", "advice.detachedHead=false", "checkout", "--force", "--detach", target],
    ):
        result = _git_step(*args, cwd=dest, timeout=timeout)
        if not result["ok"]:
            return result

    rev = _git_step("rev-parse", "HEAD", cwd=dest, timeout=timeout)
    return {"ok": True, "rev": rev.get("stdout", "").strip()}
