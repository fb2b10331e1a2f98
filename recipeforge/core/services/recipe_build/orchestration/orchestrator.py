"""
L5 Orchestration — Top-level coordinators.

These functions tie everything together:

    detect/accept platform → select profile → resolve source →
    compose env → plan → ship license → execute

``prepare_build`` is pure up to the plan; ``execute_plan`` runs a plan
strictly in sequence; ``build_component`` does both. UnknownVersion and
strict UnsupportedPlatform are raised before any side effect.
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

from recipeforge.core.models.plan import STAGE_ORDER, BuildPlan, BuildStep, RunStage
from recipeforge.core.models.platform import PlatformDescriptor
from recipeforge.core.models.recipe import ComponentRecipe
from recipeforge.core.models.result import BuildResult, StepReceipt
from recipeforge.core.services.recipe_build.detection.platform import detect_platform
from recipeforge.core.services.recipe_build.domain.errors import UnknownVersion
from recipeforge.core.services.recipe_build.execution.step_executors import (
    _execute_cleanup_step,
    _execute_command_step,
    _execute_download_step,
    _execute_extract_step,
)
from recipeforge.core.services.recipe_build.resolver.env_composition import compose_env
from recipeforge.core.services.recipe_build.resolver.plan_resolution import plan_build
from recipeforge.core.services.recipe_build.resolver.profile_selection import select_profile
from recipeforge.core.services.recipe_build.resolver.source_resolution import (
    declared_versions,
    resolve_source,
)

if TYPE_CHECKING:
    from recipeforge.core.config.loader import BuildSettings

logger = logging.getLogger(__name__)


# ── Collaborators ───────────────────────────────────────────────


class LicenseShipper(Protocol):
    """Receives the license identifier of each recipe that is built."""

    def ship(self, component: str, license_id: str) -> None: ...


class LoggingLicenseShipper:
    """Default shipper: records and logs identifiers, stores no license text."""

    def __init__(self) -> None:
        self.shipped: list[tuple[str, str]] = []

    def ship(self, component: str, license_id: str) -> None:
        self.shipped.append((component, license_id))
        logger.info("License for %s: %s", component, license_id)


# ── Step dispatch ───────────────────────────────────────────────

_EXECUTORS: dict[str, Callable[[BuildStep], dict[str, Any]]] = {
    "download": _execute_download_step,
    "extract": _execute_extract_step,
    "command": _execute_command_step,
    "cleanup": _execute_cleanup_step,
}


def execute_plan_step(step: BuildStep) -> dict[str, Any]:
    """Execute a single plan step by dispatching on ``step.type``.

    Returns:
        ``{"ok": True, ...}`` on success,
        ``{"ok": False, ...}`` on failure.
    """
    executor = _EXECUTORS.get(step.type)
    if executor is None:
        return {"ok": False, "error": f"Unknown step type: {step.type}"}
    return executor(step)


def _check_stage_order(plan: BuildPlan) -> None:
    """Reject plans whose stages run backwards (a stage re-entered)."""
    last = 0
    for step in plan.steps:
        index = STAGE_ORDER.index(step.stage)
        if index < last:
            raise ValueError(
                f"Plan for {plan.component} re-enters stage {step.stage.value} "
                f"at step '{step.id}'"
            )
        last = index


def _run_with_retry(
    step: BuildStep,
    sleep: Callable[[float], None],
) -> tuple[dict[str, Any], int, str, int]:
    """Run a step under its own retry policy.

    Checksum mismatches are never retried: the bytes are wrong, not late.

    Returns:
        (last result, attempts used, start time as ISO string, total elapsed ms)
    """
    started_at = datetime.now(UTC).isoformat()
    start = time.monotonic()
    attempt = 0
    result: dict[str, Any] = {}
    while attempt < step.retry.max_attempts:
        attempt += 1
        result = execute_plan_step(step)
        if result.get("ok") or result.get("checksum_mismatch"):
            break
        if attempt < step.retry.max_attempts:
            delay = step.retry.delay_for(attempt)
            logger.warning(
                "Step '%s' failed (attempt %d/%d): %s; retrying in %.1fs",
                step.id, attempt, step.retry.max_attempts, result.get("error"), delay,
            )
            sleep(delay)
    return result, attempt, started_at, int((time.monotonic() - start) * 1000)


def _make_receipt(
    step: BuildStep,
    result: dict[str, Any],
    attempts: int,
    started_at: str,
    elapsed_ms: int,
) -> StepReceipt:
    common = {
        "label": step.label,
        "started_at": started_at,
        "exit_code": result.get("returncode"),
        "attempts": attempts,
        "duration_ms": elapsed_ms,
        "output": result.get("stdout", "") or result.get("message", ""),
        "metadata": {
            k: v for k, v in result.items()
            if k in ("removed", "cached", "size_bytes", "path")
        },
    }
    if result.get("ok"):
        return StepReceipt.success(step.id, step.stage, **common)

    error = result.get("error") or "step failed"
    stderr = result.get("stderr", "")
    if stderr:
        common["metadata"]["stderr"] = stderr
    if step.best_effort:
        common["metadata"]["error_kind"] = "CleanupFailure"
        return StepReceipt.warning(step.id, step.stage, error, **common)
    return StepReceipt.failure(step.id, step.stage, error, **common)


def execute_plan(
    plan: BuildPlan,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> BuildResult:
    """Execute a plan exactly as planned, one step after another.

    A non-best-effort failure stops the run: later steps are not run and
    the result names the failing stage, step, and exit status. A
    best-effort failure is logged and recorded as a warning.

    Args:
        plan: The plan from ``plan_build()``.
        sleep: Backoff sleeper (injected by tests).

    Returns:
        BuildResult with one receipt per executed step.

    Raises:
        ValueError: The plan's stages are out of order.
    """
    _check_stage_order(plan)

    report = BuildResult(
        component=plan.component,
        version=plan.version,
        stages=[RunStage.PLANNED],
    )

    for step in plan.steps:
        if step.stage != report.stages[-1]:
            report.stages.append(step.stage)
            logger.debug("%s %s → %s", plan.component, plan.version, step.stage.value)

        logger.info("▶ %s", step.label)
        result, attempts, started_at, elapsed_ms = _run_with_retry(step, sleep)
        receipt = _make_receipt(step, result, attempts, started_at, elapsed_ms)
        report.receipts.append(receipt)

        if receipt.status == "ok":
            logger.info("✓ %s", step.label)
            continue

        if receipt.status == "warning":
            message = f"{step.label}: {receipt.error}"
            report.warnings.append(message)
            logger.warning("⚠ best-effort step failed, continuing: %s", message)
            continue

        report.status = "failed"
        report.failed_at = step.stage
        report.failed_step = step.id
        report.exit_code = receipt.exit_code
        report.error_kind = "ChecksumMismatch" if result.get("checksum_mismatch") else "StepFailure"
        report.error = receipt.error
        report.output = result.get("stderr", "") or result.get("stdout", "")
        report.stages.append(RunStage.FAILED)
        logger.error(
            "✗ %s failed at %s (exit %s): %s",
            plan.component, step.stage.value, receipt.exit_code, receipt.error,
        )
        return report

    report.stages.append(RunStage.DONE)
    logger.info("%s %s built (%d steps)", plan.component, plan.version, len(plan.steps))
    return report


# ── Pipeline ────────────────────────────────────────────────────


def prepare_build(
    recipe: ComponentRecipe,
    settings: BuildSettings,
    *,
    platform: PlatformDescriptor | None = None,
    version: str | None = None,
    base_env: dict[str, str] | None = None,
    strict: bool | None = None,
) -> BuildPlan:
    """Resolve, compose, and plan a build without running anything.

    Args:
        recipe: The component recipe.
        settings: Install root, work dir, workers, strictness, base env.
        platform: Target platform (default: the host).
        version: Requested version (default: the profile's default).
        base_env: Caller environment (default: ``settings.base_env``).
        strict: Override ``settings.strict_platform``.

    Raises:
        UnknownVersion: The version is not declared.
        UnsupportedPlatform: No profile matches and selection is strict.
    """
    platform = platform or detect_platform()
    strict = settings.strict_platform if strict is None else strict

    profile = select_profile(recipe, platform, strict=strict)
    if not profile.supported:
        if version is None:
            version = recipe.default_version
        elif version not in declared_versions(recipe):
            raise UnknownVersion(recipe.name, version, declared_versions(recipe))
        return BuildPlan(
            component=recipe.name,
            version=version,
            category=profile.category.value,
            install_root=str(settings.install_root),
            license=recipe.license,
        )

    source = resolve_source(recipe, version, profile)
    env = compose_env(
        settings.base_env if base_env is None else base_env,
        profile,
        install_root=str(settings.install_root),
        recipe=recipe,
    )
    return plan_build(
        recipe, source, profile, env,
        install_root=str(settings.install_root),
        work_dir=str(settings.work_dir),
        workers=settings.workers,
    )


def build_component(
    recipe: ComponentRecipe,
    settings: BuildSettings,
    *,
    platform: PlatformDescriptor | None = None,
    version: str | None = None,
    base_env: dict[str, str] | None = None,
    strict: bool | None = None,
    license_shipper: LicenseShipper | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> BuildResult:
    """Plan and execute one component build in a single blocking call.

    The license identifier is shipped once, through the collaborator,
    before execution. Declared dependencies are assumed to be provisioned
    already; they are only logged.
    """
    plan = prepare_build(
        recipe, settings,
        platform=platform, version=version, base_env=base_env, strict=strict,
    )

    if plan.steps and recipe.license:
        (license_shipper or LoggingLicenseShipper()).ship(recipe.name, recipe.license)
    if plan.dependencies:
        logger.info(
            "%s expects dependencies: %s", recipe.name, ", ".join(plan.dependencies),
        )

    return execute_plan(plan, sleep=sleep)
