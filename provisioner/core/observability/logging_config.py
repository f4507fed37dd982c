"""
Logging configuration — one setup call per process.

main.py calls ``configure_cli_logging`` once; every module that does
``logger = logging.getLogger(__name__)`` inherits the result.

Levels are resolved in precedence order:
    --debug / --verbose / --quiet  >  PROVISIONER_LOG_LEVEL  >  WARNING

Install warnings ("no venv found at …", "installing precompiled python …")
are user guidance, so the WARNING format stays short and readable.
Optional file output via PROVISIONER_LOG_FILE / PROVISIONER_LOG_FILE_LEVEL.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping

# ── Format strings ──────────────────────────────────────────────

_FMT_GUIDANCE = "%(levelname)s: %(message)s"

_FMT_VERBOSE = "%(asctime)s [%(name)s] %(message)s"
_DATEFMT_SHORT = "%H:%M:%S"

_FMT_FULL = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

# urllib is chatty about redirects on GitHub release downloads
_NOISY_LOGGERS = ("urllib3", "urllib.request")


def resolve_level(
    *,
    debug: bool = False,
    verbose: bool = False,
    quiet: bool = False,
    environ: Mapping[str, str] | None = None,
) -> str:
    """Pick the console level name from CLI flags, then the environment."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    env = os.environ if environ is None else environ
    return env.get("PROVISIONER_LOG_LEVEL", "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Configure Python logging for the entire process.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.
        log_file_level: Optional separate level for the log file.
            Defaults to the same as ``level``.
        quiet_third_party: Keep noisy third-party loggers at WARNING
            unless running at DEBUG.
    """
    numeric_level = _parse_level(level)

    if numeric_level <= logging.DEBUG:
        formatter = logging.Formatter(_FMT_FULL, datefmt=_DATEFMT_SHORT)
    elif numeric_level <= logging.INFO:
        formatter = logging.Formatter(_FMT_VERBOSE, datefmt=_DATEFMT_SHORT)
    else:
        formatter = logging.Formatter(_FMT_GUIDANCE)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(console)

    # Root must let through whatever the most verbose handler wants
    effective_level = numeric_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        effective_level = min(effective_level, file_level)

        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FULL, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)

    root.setLevel(effective_level)

    if quiet_third_party and numeric_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def configure_cli_logging(*, debug: bool, verbose: bool, quiet: bool) -> str:
    """Resolve the level from flags + env and install the handlers.

    Returns:
        The console level name that was applied.
    """
    level = resolve_level(debug=debug, verbose=verbose, quiet=quiet)
    setup_logging(
        level=level,
        log_file=os.environ.get("PROVISIONER_LOG_FILE"),
        log_file_level=os.environ.get("PROVISIONER_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )
    return level


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
