"""
L2 Resolver — Source resolution.

Turns (recipe, version, profile) into a concrete source descriptor:
download URL, published checksum, and the relative path the archive
extracts to. Pure data lookup — no network, no filesystem.
"""

from __future__ import annotations

import logging
from urllib.parse import urlparse

from recipeforge.core.models.recipe import (
    ComponentRecipe,
    PlatformProfile,
    VersionSourceDescriptor,
)
from recipeforge.core.services.recipe_build.domain.errors import UnknownVersion
from recipeforge.core.services.recipe_build.domain.paths import split_version, substitute_vars

logger = logging.getLogger(__name__)


def _profile_owns_sources(profile: PlatformProfile | None) -> bool:
    return profile is not None and bool(profile.sources)


def effective_default_version(
    recipe: ComponentRecipe,
    profile: PlatformProfile | None = None,
) -> str:
    """The version built when the caller does not ask for one.

    A profile override wins over the recipe default (prebuilt Windows
    archives, for instance, are published per architecture).
    """
    if profile is not None and profile.default_version:
        return profile.default_version
    return recipe.default_version


def declared_versions(
    recipe: ComponentRecipe,
    profile: PlatformProfile | None = None,
) -> list[str]:
    """Versions buildable with the given profile, in declaration order."""
    if _profile_owns_sources(profile):
        return [d.version for d in profile.sources]
    return recipe.supported_versions


def resolve_source(
    recipe: ComponentRecipe,
    version: str | None = None,
    profile: PlatformProfile | None = None,
) -> VersionSourceDescriptor:
    """Resolve a version into its concrete source descriptor.

    Resolution:
        1. ``version=None`` → the effective default version
        2. Look the version up in the profile's own sources, or the recipe's
        3. URL template: descriptor override > profile > recipe
        4. Relative path template: profile > recipe
        5. Substitute ``{version}``, ``{major}``, ``{minor}``, ``{patch}``

    Args:
        recipe: The component recipe.
        version: Requested version, or None for the default.
        profile: Selected platform profile, if already known.

    Returns:
        A new descriptor with ``url`` and ``relative_path`` filled in.

    Raises:
        UnknownVersion: The version is not declared for this profile.
    """
    if version is None:
        version = effective_default_version(recipe, profile)

    if _profile_owns_sources(profile):
        descriptor = profile.get_source(version)
    else:
        descriptor = recipe.get_version(version)

    if descriptor is None:
        raise UnknownVersion(recipe.name, version, declared_versions(recipe, profile))

    url_template = (
        descriptor.url
        or (profile.url_template if profile is not None else "")
        or recipe.url_template
    )
    path_template = (
        (profile.relative_path_template if profile is not None else "")
        or recipe.relative_path_template
    )

    variables = split_version(version)
    resolved = descriptor.model_copy(update={
        "url": substitute_vars(url_template, variables),
        "relative_path": substitute_vars(path_template, variables),
    })
    logger.debug(
        "Resolved %s %s → %s (%s)",
        recipe.name, version, resolved.url, resolved.checksum_spec,
    )
    return resolved


def archive_filename(url: str) -> str:
    """The archive's file name: last path component of the URL."""
    name = urlparse(url).path.rstrip("/").rsplit("/", 1)[-1]
    return name or "source.archive"
