"""
L2 Resolver — Platform profile selection.

Decides which one of a recipe's profiles applies to a platform.

Predicates are tried in a fixed priority order, most specific first,
because a descriptor can satisfy several of them (every Windows
architecture also satisfies the generic Windows predicate):

    windows-x86 → windows-x64 → windows → darwin → linux → other-unix

A descriptor matching none of them (AIX, unknown families) never
inherits another family's flags. It gets the explicit no-op profile, or
UnsupportedPlatform when the caller asks for strict selection.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from recipeforge.core.models.platform import PlatformDescriptor
from recipeforge.core.models.recipe import (
    ComponentRecipe,
    PlatformCategory,
    PlatformProfile,
)
from recipeforge.core.services.recipe_build.data.constants import OTHER_UNIX_FAMILIES
from recipeforge.core.services.recipe_build.domain.errors import UnsupportedPlatform

logger = logging.getLogger(__name__)


def _is_windows(d: PlatformDescriptor) -> bool:
    return d.os_family == "windows"


_PREDICATES: tuple[tuple[PlatformCategory, Callable[[PlatformDescriptor], bool]], ...] = (
    (PlatformCategory.WINDOWS_X86, lambda d: _is_windows(d) and d.arch == "i386"),
    (PlatformCategory.WINDOWS_X64, lambda d: _is_windows(d) and d.arch == "amd64"),
    (PlatformCategory.WINDOWS, _is_windows),
    (PlatformCategory.DARWIN, lambda d: d.os_family == "darwin"),
    (PlatformCategory.LINUX, lambda d: d.os_family == "linux"),
    (PlatformCategory.OTHER_UNIX, lambda d: d.os_family in OTHER_UNIX_FAMILIES),
)

PRIORITY_ORDER: tuple[PlatformCategory, ...] = tuple(c for c, _ in _PREDICATES)

# The documented fallback: builds nothing, declares nothing, fails nothing.
NOOP_PROFILE = PlatformProfile(
    category=PlatformCategory.UNSUPPORTED,
    build_style="none",
    supported=False,
)

# Category pairs allowed to carry identical extra-flag sets.
EQUIVALENT_CATEGORIES: frozenset[frozenset[PlatformCategory]] = frozenset({
    # Generic Windows installs the 64-bit archive
    frozenset({PlatformCategory.WINDOWS, PlatformCategory.WINDOWS_X64}),
    # Prebuilt Windows variants never run configure
    frozenset({PlatformCategory.WINDOWS_X86, PlatformCategory.WINDOWS_X64}),
    frozenset({PlatformCategory.WINDOWS_X86, PlatformCategory.WINDOWS}),
    # Flagless unix fallbacks
    frozenset({PlatformCategory.OTHER_UNIX, PlatformCategory.UNSUPPORTED}),
})


def categories_equivalent(a: PlatformCategory, b: PlatformCategory) -> bool:
    """Whether two categories are defined as sharing a flag set."""
    return a == b or frozenset({a, b}) in EQUIVALENT_CATEGORIES


def match_categories(descriptor: PlatformDescriptor) -> list[PlatformCategory]:
    """Every category the descriptor satisfies, most specific first."""
    return [category for category, predicate in _PREDICATES if predicate(descriptor)]


def select_category(descriptor: PlatformDescriptor) -> PlatformCategory:
    """The most specific category for a descriptor, ignoring any recipe."""
    matches = match_categories(descriptor)
    return matches[0] if matches else PlatformCategory.UNSUPPORTED


def select_profile(
    recipe: ComponentRecipe,
    descriptor: PlatformDescriptor,
    *,
    strict: bool = False,
) -> PlatformProfile:
    """Select exactly one profile of ``recipe`` for ``descriptor``.

    Args:
        recipe: Recipe whose profiles are candidates.
        descriptor: Target platform.
        strict: Raise instead of falling back to the no-op profile.

    Returns:
        The first profile, in priority order, whose predicate matches.

    Raises:
        UnsupportedPlatform: Nothing matched and ``strict`` is set.
    """
    for category in match_categories(descriptor):
        profile = recipe.get_profile(category)
        if profile is not None:
            logger.debug("Selected profile %s for %s", category.value, descriptor)
            return profile

    if strict:
        raise UnsupportedPlatform(recipe.name, str(descriptor))

    logger.warning(
        "%s: no build profile for platform %s, using the no-op profile "
        "(nothing will be built)",
        recipe.name, descriptor,
    )
    return NOOP_PROFILE
