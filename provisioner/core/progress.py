"""
Progress reporting — fire-and-forget UI feedback.

Installers call ``pr.set_message("downloading …")``; what happens
next is up to the caller: the CLI prints it, tests record it, and
library callers without a UI get a logger-backed reporter.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class ProgressReporter(Protocol):
    def set_message(self, message: str) -> None: ...


class LogProgressReporter:
    """Send progress messages to the log at INFO."""

    def __init__(self, prefix: str = "python") -> None:
        self.prefix = prefix

    def set_message(self, message: str) -> None:
        logger.info("[%s] %s", self.prefix, message)


class RecordingProgressReporter:
    """Keep every message — handy for tests and JSON output."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def set_message(self, message: str) -> None:
        self.messages.append(message)
