"""
Change and Receipt models — the convergence contract.

Changes are planned pkg invocations. Receipts are their outcome.
The engine plans Changes, runs them through the command runner and
records one Receipt per Change.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

Operation = Literal["install", "update", "remove"]


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Change(BaseModel):
    """A pkg invocation required to converge one package."""

    resource: str                   # configured package identifier
    operation: Operation
    argv: list[str] = Field(default_factory=list)
    current: str = ""               # observed version, "absent" if missing
    desired: str = ""               # ensure value as written
    target: str = ""                # version we expect afterwards, if known

    @property
    def summary(self) -> str:
        target = f" → {self.target}" if self.target else ""
        return f"{self.operation} {self.resource} ({self.current}{target})"


class Receipt(BaseModel):
    """Result of executing a Change."""

    resource: str
    operation: Operation
    status: Literal["ok", "skipped", "failed"] = "ok"
    argv: list[str] = Field(default_factory=list)

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the change succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the change failed."""
        return self.status == "failed"

    @classmethod
    def success(cls, change: Change, output: str = "", **kwargs: Any) -> Receipt:
        """Create a success receipt."""
        return cls(
            resource=change.resource,
            operation=change.operation,
            argv=change.argv,
            status="ok",
            output=output,
            **kwargs,
        )

    @classmethod
    def failure(cls, change: Change, error: str, **kwargs: Any) -> Receipt:
        """Create a failure receipt."""
        return cls(
            resource=change.resource,
            operation=change.operation,
            argv=change.argv,
            status="failed",
            error=error,
            **kwargs,
        )

    @classmethod
    def skip(cls, change: Change, reason: str = "", **kwargs: Any) -> Receipt:
        """Create a skip receipt."""
        return cls(
            resource=change.resource,
            operation=change.operation,
            argv=change.argv,
            status="skipped",
            output=reason,
            **kwargs,
        )
