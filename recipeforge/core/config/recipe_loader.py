"""
Recipe loader — loads component recipes from YAML files.

Recipes live in recipes/<name>/recipe.yml. This module discovers and
loads them, and registers them alongside the built-in recipes.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from recipeforge.core.config.loader import ConfigError
from recipeforge.core.models.recipe import ComponentRecipe
from recipeforge.core.services.recipe_build.data.registry import RecipeRegistry

logger = logging.getLogger(__name__)


def load_recipe(path: Path) -> ComponentRecipe:
    """Load a single recipe definition from a YAML file.

    Args:
        path: Path to recipe.yml file.

    Returns:
        Validated ComponentRecipe.

    Raises:
        ConfigError: Unreadable file, invalid YAML, or a recipe that breaks
            its invariants (unknown default version, duplicate profile, ...).
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Recipe file {path} is not a mapping")

    data.setdefault("name", path.parent.name)
    try:
        recipe = ComponentRecipe.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid recipe in {path}: {e}") from e

    logger.debug("Loaded recipe: %s from %s", recipe.name, path)
    return recipe


def discover_recipes(recipes_dir: Path) -> dict[str, ComponentRecipe]:
    """Walk recipes/ and load every recipe.yml.

    Expects structure::

        recipes/
            python3/
                recipe.yml
            zlib/
                recipe.yaml
    """
    recipes: dict[str, ComponentRecipe] = {}

    if not recipes_dir.is_dir():
        logger.debug("Recipes directory not found: %s", recipes_dir)
        return recipes

    for child in sorted(recipes_dir.iterdir()):
        if not child.is_dir():
            continue
        recipe_file = child / "recipe.yml"
        if not recipe_file.is_file():
            recipe_file = child / "recipe.yaml"
        if not recipe_file.is_file():
            continue

        recipe = load_recipe(recipe_file)
        recipes[recipe.name] = recipe

    logger.info("Discovered %d recipes: %s", len(recipes), list(recipes.keys()))
    return recipes


def load_into_registry(registry: RecipeRegistry, recipes_dir: Path) -> list[str]:
    """Register every recipe found under ``recipes_dir``.

    Returns:
        Names of the recipes registered.

    Raises:
        ConfigError: A recipe file is invalid.
        ChecksumConflict: A recipe changes an already published checksum.
    """
    loaded = discover_recipes(recipes_dir)
    for recipe in loaded.values():
        registry.register(recipe)
    return list(loaded)
