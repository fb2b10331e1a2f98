"""
L2 Resolver — ``__init__.py`` re-exports all resolver functions.

Pure: recipe data + platform descriptor + install root in, descriptors,
profiles, environments, and plans out. No side effects.
"""

from recipeforge.core.services.recipe_build.resolver.env_composition import (  # noqa: F401
    compose_env,
    install_variables,
)
from recipeforge.core.services.recipe_build.resolver.plan_resolution import (  # noqa: F401
    configure_command,
    default_workers,
    plan_build,
)
from recipeforge.core.services.recipe_build.resolver.profile_selection import (  # noqa: F401
    EQUIVALENT_CATEGORIES,
    NOOP_PROFILE,
    PRIORITY_ORDER,
    categories_equivalent,
    match_categories,
    select_category,
    select_profile,
)
from recipeforge.core.services.recipe_build.resolver.source_resolution import (  # noqa: F401
    archive_filename,
    declared_versions,
    effective_default_version,
    resolve_source,
)
