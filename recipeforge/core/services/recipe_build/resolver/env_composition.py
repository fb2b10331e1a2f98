"""
L2 Resolver — Build environment composition.

Merges the recipe's flag templates, the caller's base environment, and
the selected profile's overrides into the one environment every build
step runs with.

Merge rules (later wins on key collision):
    recipe.base_env   flag templates declared by the recipe
    base_env          caller-supplied variables
    profile overrides platform-specific values

``{install_root}`` and ``{embedded}`` are substituted here, at compose
time, because the installation root is only known when the run starts.
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath

from recipeforge.core.models.recipe import ComponentRecipe, PlatformProfile
from recipeforge.core.services.recipe_build.domain.paths import substitute_vars

logger = logging.getLogger(__name__)


def install_variables(install_root: str, profile: PlatformProfile) -> dict[str, str]:
    """Template variables that depend on the live installation root."""
    root = install_root.rstrip("/") or "/"
    return {
        "install_root": root,
        "embedded": str(PurePosixPath(root) / profile.install_subdir),
    }


def _check_strings(source: str, env: dict[str, str]) -> None:
    for key, value in env.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise TypeError(
                f"{source}: environment entries must be strings, "
                f"got {key!r}={value!r}"
            )


def compose_env(
    base_env: dict[str, str] | None,
    profile: PlatformProfile,
    *,
    install_root: str,
    recipe: ComponentRecipe | None = None,
) -> dict[str, str]:
    """Compose the final environment for a run.

    Args:
        base_env: Caller-supplied environment (may be None).
        profile: The selected platform profile.
        install_root: Absolute installation root for this run.
        recipe: Recipe whose ``base_env`` templates seed the merge.

    Returns:
        A new dict with keys in sorted order; identical inputs always
        produce an identical (byte-for-byte) mapping.

    Raises:
        TypeError: A key or value is not a string.
    """
    layers: list[tuple[str, dict[str, str]]] = [
        ("recipe", dict(recipe.base_env) if recipe is not None else {}),
        ("base_env", dict(base_env or {})),
        (f"profile {profile.category.value}", dict(profile.env_overrides)),
    ]

    merged: dict[str, str] = {}
    for source, layer in layers:
        _check_strings(source, layer)
        merged.update(layer)

    variables = install_variables(install_root, profile)
    final = {key: substitute_vars(merged[key], variables) for key in sorted(merged)}
    logger.debug("Composed build env: %s", ", ".join(final) or "(empty)")
    return final
