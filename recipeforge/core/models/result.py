"""
StepReceipt and BuildResult models — the execution contract.

Steps return receipts; the executor folds them into one BuildResult.
Failures are captured here, never raised out of ``execute_plan``.
Callers that prefer exceptions use ``BuildResult.raise_for_status()``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from recipeforge.core.models.plan import RunStage


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class StepReceipt(BaseModel):
    """Outcome of one executed step."""

    step_id: str
    label: str = ""
    stage: RunStage
    status: Literal["ok", "failed", "warning"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    exit_code: int | None = None
    attempts: int = 1
    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the step succeeded (a best-effort warning counts)."""
        return self.status != "failed"

    @classmethod
    def success(cls, step_id: str, stage: RunStage, output: str = "", **kwargs: Any) -> StepReceipt:
        """Create a success receipt."""
        return cls(step_id=step_id, stage=stage, status="ok", output=output, **kwargs)

    @classmethod
    def failure(cls, step_id: str, stage: RunStage, error: str, **kwargs: Any) -> StepReceipt:
        """Create a failure receipt."""
        return cls(step_id=step_id, stage=stage, status="failed", error=error, **kwargs)

    @classmethod
    def warning(cls, step_id: str, stage: RunStage, error: str, **kwargs: Any) -> StepReceipt:
        """Create a receipt for a best-effort step that did not succeed."""
        return cls(step_id=step_id, stage=stage, status="warning", error=error, **kwargs)


class BuildResult(BaseModel):
    """Structured result of executing a BuildPlan."""

    component: str
    version: str
    status: Literal["done", "failed"] = "done"

    failed_at: RunStage | None = None
    failed_step: str | None = None
    exit_code: int | None = None
    error_kind: Literal["StepFailure", "ChecksumMismatch"] | None = None
    error: str | None = None
    output: str = ""

    stages: list[RunStage] = Field(default_factory=list)
    receipts: list[StepReceipt] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == "done"

    @property
    def final_stage(self) -> RunStage:
        return RunStage.DONE if self.ok else RunStage.FAILED

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")

    def raise_for_status(self) -> None:
        """Raise the matching domain error if the run failed."""
        if self.ok:
            return

        from recipeforge.core.services.recipe_build.domain.errors import (
            ChecksumMismatch,
            StepFailure,
        )

        if self.error_kind == "ChecksumMismatch":
            raise ChecksumMismatch(self.error or "checksum mismatch")
        raise StepFailure(
            stage=self.failed_at or RunStage.FAILED,
            step=self.failed_step or "?",
            exit_code=self.exit_code,
            output=self.output,
            message=self.error,
        )
