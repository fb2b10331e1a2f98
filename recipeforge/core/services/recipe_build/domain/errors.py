"""
L1 Domain — Recipe build errors.

Fatal errors raised before any side effect (UnknownVersion, strict
UnsupportedPlatform, ChecksumConflict) and the exception forms of
executor failures (StepFailure, ChecksumMismatch).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from recipeforge.core.models.plan import RunStage


class RecipeError(Exception):
    """Base class for every recipe build error."""


class UnknownVersion(RecipeError):
    """The requested version is not declared by the recipe."""

    def __init__(self, component: str, version: str, known: list[str]) -> None:
        self.component = component
        self.version = version
        self.known = list(known)
        super().__init__(
            f"{component}: unknown version {version!r} "
            f"(declared: {', '.join(known) or 'none'})"
        )


class ChecksumMismatch(RecipeError):
    """Downloaded source does not match its published checksum."""


class ChecksumConflict(RecipeError):
    """A published version was re-declared with a different checksum."""

    def __init__(self, component: str, version: str, published: str, declared: str) -> None:
        self.component = component
        self.version = version
        self.published = published
        self.declared = declared
        super().__init__(
            f"{component} {version}: checksum is already published as "
            f"{published}, refusing to change it to {declared}"
        )


class UnsupportedPlatform(RecipeError):
    """No profile matches the platform and the caller asked to be strict."""

    def __init__(self, component: str, platform: str) -> None:
        self.component = component
        self.platform = platform
        super().__init__(f"{component}: no build profile for platform {platform}")


class StepFailure(RecipeError):
    """A non-best-effort step exited non-zero (or could not run)."""

    def __init__(
        self,
        *,
        stage: RunStage,
        step: str,
        exit_code: int | None,
        output: str = "",
        message: str | None = None,
    ) -> None:
        self.stage = stage
        self.step = step
        self.exit_code = exit_code
        self.output = output
        super().__init__(
            message
            or f"step '{step}' failed at {stage.value} (exit {exit_code})"
        )
