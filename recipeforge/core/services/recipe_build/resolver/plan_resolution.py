"""
L2 Resolver — Build plan resolution.

Assembles the ordered step list for one run from the recipe, the
resolved source, the selected profile, and the composed environment.
Pure: builds a frozen BuildPlan, touches nothing.

Step order is fixed:
    fetch+verify → extract → configure → compile → install → cleanup

Configure arguments are ordered prefix flag, then the profile's flags,
then the recipe's trailing flags. Configure scripts resolve conflicting
flags last-wins, so the trailing universal flags must come last.
"""

from __future__ import annotations

import logging
import os
from pathlib import PurePosixPath

from recipeforge.core.models.plan import BuildPlan, BuildStep, RetryPolicy, RunStage
from recipeforge.core.models.recipe import (
    ComponentRecipe,
    PlatformProfile,
    VersionSourceDescriptor,
)
from recipeforge.core.services.recipe_build.data.constants import (
    CACHE_SUBDIR,
    FETCH_BASE_DELAY,
    FETCH_MAX_ATTEMPTS,
    SOURCE_SUBDIR,
    STEP_TIMEOUTS,
)
from recipeforge.core.services.recipe_build.domain.paths import (
    split_version,
    substitute_all,
    substitute_vars,
    windows_safe_path,
)
from recipeforge.core.services.recipe_build.resolver.env_composition import install_variables
from recipeforge.core.services.recipe_build.resolver.source_resolution import archive_filename

logger = logging.getLogger(__name__)


def default_workers() -> int:
    """Compile parallelism when the caller does not bound it."""
    return os.cpu_count() or 1


def configure_command(
    recipe: ComponentRecipe,
    profile: PlatformProfile,
    variables: dict[str, str],
) -> list[str]:
    """The configure invocation: base prefix, platform flags, trailing flags."""
    cmd = (
        list(recipe.configure_command)
        + [recipe.prefix_template]
        + list(profile.configure_args)
        + list(recipe.trailing_configure_args)
    )
    return substitute_all(cmd, variables)


def _fetch_steps(
    source: VersionSourceDescriptor,
    *,
    cache_dir: str,
    extract_dest: str,
    clean_dir: str,
) -> list[BuildStep]:
    archive = str(PurePosixPath(cache_dir) / archive_filename(source.url))
    return [
        BuildStep(
            id="fetch",
            label=f"Fetch and verify {archive_filename(source.url)}",
            type="download",
            stage=RunStage.FETCHING,
            timeout=STEP_TIMEOUTS["download"],
            retry=RetryPolicy(
                max_attempts=FETCH_MAX_ATTEMPTS,
                base_delay=FETCH_BASE_DELAY,
            ),
            params={
                "url": source.url,
                "dest": archive,
                "checksum": source.checksum_spec,
            },
        ),
        BuildStep(
            id="extract",
            label=f"Extract into {extract_dest}",
            type="extract",
            stage=RunStage.EXTRACTING,
            timeout=STEP_TIMEOUTS["extract"],
            params={
                "archive": archive,
                "dest": extract_dest,
                "clean": clean_dir,
            },
        ),
    ]


def _autotools_steps(
    recipe: ComponentRecipe,
    profile: PlatformProfile,
    final_env: dict[str, str],
    variables: dict[str, str],
    *,
    build_dir: str,
    workers: int,
) -> list[BuildStep]:
    make = recipe.make_command
    steps = [
        BuildStep(
            id="configure",
            label="Configure",
            type="command",
            stage=RunStage.CONFIGURING,
            command=configure_command(recipe, profile, variables),
            env=final_env,
            cwd=build_dir,
            timeout=STEP_TIMEOUTS["configure"],
        ),
        BuildStep(
            id="compile",
            label=f"Compile ({workers} workers)",
            type="command",
            stage=RunStage.COMPILING,
            command=[make, f"-j{workers}"],
            env=final_env,
            cwd=build_dir,
            timeout=STEP_TIMEOUTS["compile"],
        ),
        BuildStep(
            id="install",
            label=f"Install ({make} install)",
            type="command",
            stage=RunStage.INSTALLING,
            command=[make, "install"],
            env=final_env,
            cwd=build_dir,
            timeout=STEP_TIMEOUTS["install"],
        ),
    ]

    if profile.cleanup_globs:
        steps.append(BuildStep(
            id="cleanup",
            label="Remove unwanted post-install artifacts",
            type="cleanup",
            stage=RunStage.CLEANING_UP,
            best_effort=True,
            timeout=STEP_TIMEOUTS["cleanup"],
            params={
                "patterns": tuple(substitute_all(list(profile.cleanup_globs), variables)),
                "root": variables["install_root"],
            },
        ))
    return steps


def _prebuilt_install_step(
    final_env: dict[str, str],
    variables: dict[str, str],
    *,
    build_dir: str,
) -> BuildStep:
    target = windows_safe_path(variables["embedded"])
    return BuildStep(
        id="install",
        label=f"Copy prebuilt tree into {target}",
        type="command",
        stage=RunStage.INSTALLING,
        command=["XCOPY", "/YEHIR", "*.*", target],
        env=final_env,
        cwd=build_dir,
        timeout=STEP_TIMEOUTS["install"],
    )


def plan_build(
    recipe: ComponentRecipe,
    source: VersionSourceDescriptor,
    profile: PlatformProfile,
    final_env: dict[str, str],
    *,
    install_root: str,
    work_dir: str,
    workers: int | None = None,
) -> BuildPlan:
    """Build the ordered, immutable plan for one run.

    Args:
        recipe: The component recipe.
        source: Descriptor from ``resolve_source()`` (URL resolved).
        profile: Profile from ``select_profile()``.
        final_env: Environment from ``compose_env()``.
        install_root: Absolute installation root.
        work_dir: Scratch directory for downloads and extracted sources.
            Nothing outside the install step writes under ``install_root``.
        workers: Compile parallelism (default: CPU count).

    Returns:
        A frozen BuildPlan. The no-op profile yields an empty plan.
    """
    workers = workers or default_workers()
    variables = {
        **split_version(source.version),
        **install_variables(install_root, profile),
    }

    work = PurePosixPath(work_dir)
    cache_dir = str(work / CACHE_SUBDIR)
    src_root = str(work / SOURCE_SUBDIR)
    relative_path = substitute_vars(source.relative_path, variables)
    build_dir = str(PurePosixPath(src_root) / relative_path) if relative_path else src_root

    steps: list[BuildStep] = []
    if profile.build_style == "autotools":
        steps += _fetch_steps(
            source, cache_dir=cache_dir, extract_dest=src_root, clean_dir=build_dir,
        )
        steps += _autotools_steps(
            recipe, profile, final_env, variables,
            build_dir=build_dir, workers=workers,
        )
    elif profile.build_style == "prebuilt":
        # Prebuilt archives are flat: extract straight into the build dir
        steps += _fetch_steps(
            source, cache_dir=cache_dir, extract_dest=build_dir, clean_dir=build_dir,
        )
        steps.append(_prebuilt_install_step(final_env, variables, build_dir=build_dir))

    plan = BuildPlan(
        component=recipe.name,
        version=source.version,
        category=profile.category.value,
        install_root=variables["install_root"],
        license=recipe.license,
        dependencies=tuple(profile.dependencies),
        steps=tuple(steps),
    )
    logger.info(
        "Planned %s %s for %s: %d steps",
        plan.component, plan.version, plan.category, plan.total_steps,
    )
    return plan
