"""
L0 Data — Recipe registry with a published-checksum ledger.

Recipes are registered once at process start (built-ins plus any YAML
recipes discovered from disk). The registry remembers every checksum it
has seen for a (component, platform scope, version) triple. Registering
a recipe that changes one of them fails loudly with ChecksumConflict.
"""

from __future__ import annotations

import logging

from recipeforge.core.models.recipe import ComponentRecipe, VersionSourceDescriptor
from recipeforge.core.services.recipe_build.data.recipes import BUILTIN_RECIPES
from recipeforge.core.services.recipe_build.domain.errors import ChecksumConflict

logger = logging.getLogger(__name__)

# Ledger scope for recipe-level (not profile-level) versions
_RECIPE_SCOPE = "*"


class RecipeRegistry:
    """Named recipes plus the checksums they have published."""

    def __init__(self) -> None:
        self._recipes: dict[str, ComponentRecipe] = {}
        self._published: dict[tuple[str, str, str], str] = {}

    def __contains__(self, name: str) -> bool:
        return name in self._recipes

    def __len__(self) -> int:
        return len(self._recipes)

    def names(self) -> list[str]:
        """Registered recipe names, sorted."""
        return sorted(self._recipes)

    def get(self, name: str) -> ComponentRecipe | None:
        """Look up a recipe by name."""
        return self._recipes.get(name)

    def register(self, recipe: ComponentRecipe) -> ComponentRecipe:
        """Register a recipe, merging versions into an existing one.

        Every checksum is verified against the ledger before anything is
        stored, so a conflicting recipe leaves the registry unchanged.

        Raises:
            ChecksumConflict: A published version's checksum changed.
        """
        entries = list(self._ledger_entries(recipe))
        for key, spec in entries:
            published = self._published.get(key)
            if published is not None and published != spec:
                raise ChecksumConflict(recipe.name, key[2], published, spec)

        existing = self._recipes.get(recipe.name)
        if existing is not None:
            recipe = _merge_versions(existing, recipe)
            logger.debug("Merged recipe '%s' into existing registration", recipe.name)

        for key, spec in entries:
            self._published[key] = spec
        self._recipes[recipe.name] = recipe
        logger.debug(
            "Registered recipe '%s' (versions: %s)",
            recipe.name, ", ".join(recipe.supported_versions),
        )
        return recipe

    def published_checksum(self, name: str, version: str, scope: str = _RECIPE_SCOPE) -> str | None:
        """The ``algo:hex`` checksum published for a version, if any."""
        return self._published.get((name, scope, version))

    @staticmethod
    def _ledger_entries(recipe: ComponentRecipe):
        for desc in recipe.versions:
            yield (recipe.name, _RECIPE_SCOPE, desc.version), desc.checksum_spec
        for profile in recipe.profiles:
            for desc in profile.sources:
                yield (recipe.name, profile.category.value, desc.version), desc.checksum_spec


def _merge_versions(existing: ComponentRecipe, incoming: ComponentRecipe) -> ComponentRecipe:
    """Keep previously declared versions the incoming recipe does not repeat."""
    incoming_versions = set(incoming.supported_versions)
    carried: list[VersionSourceDescriptor] = [
        d for d in existing.versions if d.version not in incoming_versions
    ]
    if not carried:
        return incoming
    return incoming.model_copy(
        update={"versions": carried + list(incoming.versions)},
    )


def default_registry() -> RecipeRegistry:
    """A fresh registry pre-loaded with the built-in recipes."""
    registry = RecipeRegistry()
    for recipe in BUILTIN_RECIPES.values():
        registry.register(recipe)
    return registry
