"""
Plan models — the concrete, ordered steps for one run.

A BuildPlan is produced once per invocation from a recipe, a resolved
source, a selected profile, and a composed environment. It is frozen
after construction and discarded after execution.
"""

from __future__ import annotations

import random
from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class RunStage(str, Enum):
    """Lifecycle of a single run.

    Planned → Fetching → Extracting → Configuring → Compiling →
    Installing → CleaningUp → Done, with Failed reachable from any
    non-terminal stage. No stage is re-entered.
    """

    PLANNED = "planned"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    CONFIGURING = "configuring"
    COMPILING = "compiling"
    INSTALLING = "installing"
    CLEANING_UP = "cleaning_up"
    DONE = "done"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (RunStage.DONE, RunStage.FAILED)


# Forward order of the working stages; used to reject re-entry
STAGE_ORDER: tuple[RunStage, ...] = (
    RunStage.PLANNED,
    RunStage.FETCHING,
    RunStage.EXTRACTING,
    RunStage.CONFIGURING,
    RunStage.COMPILING,
    RunStage.INSTALLING,
    RunStage.CLEANING_UP,
    RunStage.DONE,
)


class RetryPolicy(BaseModel):
    """Per-step retry policy. ``max_attempts=1`` means no retry."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=1, ge=1)
    base_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=30.0, ge=0)

    @property
    def retries(self) -> bool:
        return self.max_attempts > 1

    def delay_for(self, attempt: int) -> float:
        """Backoff before retry number ``attempt`` (1-based), with jitter."""
        delay = min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)
        jitter = random.uniform(0, delay * 0.3)
        return delay + jitter


NO_RETRY = RetryPolicy()


class BuildStep(BaseModel):
    """One executable unit of a plan.

    ``command`` is a tuple and ``env``/``params`` are read-only views, so a
    step cannot be edited in place once planned.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    type: Literal["download", "extract", "command", "cleanup"]
    stage: RunStage
    command: tuple[str, ...] = ()
    env: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    cwd: str | None = None
    timeout: int = 600
    retry: RetryPolicy = NO_RETRY
    best_effort: bool = False
    params: Mapping[str, Any] = Field(default_factory=dict, validate_default=True)

    @field_validator("env", "params")
    @classmethod
    def _read_only(cls, v: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(v))

    @field_serializer("env", "params")
    def _plain_dict(self, v: Mapping[str, Any]) -> dict[str, Any]:
        return dict(v)


class BuildPlan(BaseModel):
    """Ordered, immutable sequence of BuildSteps for one invocation."""

    model_config = ConfigDict(frozen=True)

    component: str
    version: str
    category: str
    install_root: str
    license: str = ""
    dependencies: tuple[str, ...] = ()
    steps: tuple[BuildStep, ...] = ()

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    def get_step(self, step_id: str) -> BuildStep | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    def steps_for(self, stage: RunStage) -> list[BuildStep]:
        """All steps belonging to one stage, in plan order."""
        return [s for s in self.steps if s.stage == stage]

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")
