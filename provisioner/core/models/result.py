"""
StepResult and InstallResult models — the execution contract.

Steps report outcomes through ``StepResult`` instead of raising.
A failed step is either *fatal* (the install cannot succeed) or
*soft* (logged as a warning; the install carries on).  The
orchestrator decides which steps are allowed to be soft.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from provisioner.core.models.install import StrategyChoice, VirtualEnvDescriptor


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class StepResult(BaseModel):
    """Result of a single install step."""

    step: str
    status: Literal["ok", "skipped", "failed"] = "ok"
    fatal: bool = True

    output: str = ""
    error: str | None = None
    duration_ms: int = 0

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the step succeeded (or had nothing to do)."""
        return self.status != "failed"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, step: str, output: str = "", **kwargs: Any) -> StepResult:
        """Create a success result."""
        return cls(step=step, status="ok", output=output, **kwargs)

    @classmethod
    def failure(
        cls,
        step: str,
        error: str,
        *,
        fatal: bool = True,
        **kwargs: Any,
    ) -> StepResult:
        """Create a failure result (hard by default)."""
        return cls(step=step, status="failed", error=error, fatal=fatal, **kwargs)

    @classmethod
    def skip(cls, step: str, reason: str = "", **kwargs: Any) -> StepResult:
        """Create a skip result."""
        return cls(step=step, status="skipped", output=reason, **kwargs)


class InstallState(str, Enum):
    """States of the install orchestrator."""

    START = "start"
    STRATEGY_SELECTED = "strategy_selected"
    STRATEGY_EXECUTED = "strategy_executed"
    VALIDATED = "validated"
    POST_INSTALL_COMPLETE = "post_install_complete"
    FAILED = "failed"


TERMINAL_STATES = frozenset({InstallState.POST_INSTALL_COMPLETE, InstallState.FAILED})


class InstallResult(BaseModel):
    """Outcome of one ``install_version`` call."""

    version: str
    install_path: str
    state: InstallState = InstallState.START
    strategy: StrategyChoice | None = None

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = ""

    error: str | None = None
    warnings: list[str] = Field(default_factory=list)
    transitions: list[InstallState] = Field(default_factory=lambda: [InstallState.START])
    steps: list[StepResult] = Field(default_factory=list)
    virtualenv: VirtualEnvDescriptor | None = None

    @property
    def ok(self) -> bool:
        return self.state == InstallState.POST_INSTALL_COMPLETE

    def advance(self, state: InstallState) -> None:
        """Move to ``state`` and record the transition."""
        self.state = state
        self.transitions.append(state)
        if state in TERMINAL_STATES:
            self.ended_at = _now_iso()

    def fail(self, error: str) -> None:
        self.error = error
        self.advance(InstallState.FAILED)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
