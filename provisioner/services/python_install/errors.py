"""
Python install errors.

Fatal failures raise (or are reported as fatal ``StepResult``s);
best-effort steps never let these escape the orchestrator.
"""

from __future__ import annotations


class InstallError(Exception):
    """An install cannot proceed (bad request, no artifact, failed build or smoke test)."""


class CatalogError(Exception):
    """No list of installable versions could be produced."""


class VirtualEnvError(Exception):
    """A virtual environment could not be created."""
