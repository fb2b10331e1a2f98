"""
Domain models — Pydantic types for recipes, plans, and results.

All models are re-exported here for convenient access:

    from recipeforge.core.models import ComponentRecipe, BuildPlan, BuildResult
"""

from recipeforge.core.models.plan import (
    NO_RETRY,
    STAGE_ORDER,
    BuildPlan,
    BuildStep,
    RetryPolicy,
    RunStage,
)
from recipeforge.core.models.platform import ARCH_MAP, PlatformDescriptor
from recipeforge.core.models.recipe import (
    CHECKSUM_ALGORITHMS,
    ComponentRecipe,
    PlatformCategory,
    PlatformProfile,
    VersionSourceDescriptor,
)
from recipeforge.core.models.result import BuildResult, StepReceipt

__all__ = [
    "ARCH_MAP",
    # plan.py
    "BuildPlan",
    # result.py
    "BuildResult",
    "BuildStep",
    "CHECKSUM_ALGORITHMS",
    # recipe.py
    "ComponentRecipe",
    "NO_RETRY",
    "PlatformCategory",
    # platform.py
    "PlatformDescriptor",
    "PlatformProfile",
    "RetryPolicy",
    "RunStage",
    "STAGE_ORDER",
    "StepReceipt",
    "VersionSourceDescriptor",
]
