"""
L0 Data — ``__init__.py`` re-exports all pure data.

No logic, no I/O.
"""

from recipeforge.core.services.recipe_build.data.constants import (  # noqa: F401
    CACHE_SUBDIR,
    FETCH_BASE_DELAY,
    FETCH_MAX_ATTEMPTS,
    OTHER_UNIX_FAMILIES,
    SOURCE_SUBDIR,
    STEP_TIMEOUTS,
)
from recipeforge.core.services.recipe_build.data.recipes import (  # noqa: F401
    BUILTIN_RECIPES,
    PYTHON3,
)
from recipeforge.core.services.recipe_build.data.registry import (  # noqa: F401
    RecipeRegistry,
    default_registry,
)
