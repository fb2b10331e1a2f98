"""
Recipe build service — package re-exports.

Each symbol lives in its single-responsibility module inside the
appropriate onion layer (data → domain → detection → resolver →
execution → orchestration)::

    from recipeforge.core.services.recipe_build import build_component
"""

# ── L0: Data ──
from recipeforge.core.services.recipe_build.data.recipes import (  # noqa: F401
    BUILTIN_RECIPES,
    PYTHON3,
)
from recipeforge.core.services.recipe_build.data.registry import (  # noqa: F401
    RecipeRegistry,
    default_registry,
)

# ── L1: Domain ──
from recipeforge.core.services.recipe_build.domain.errors import (  # noqa: F401
    ChecksumConflict,
    ChecksumMismatch,
    RecipeError,
    StepFailure,
    UnknownVersion,
    UnsupportedPlatform,
)

# ── L2: Resolver ──
from recipeforge.core.services.recipe_build.resolver.env_composition import (  # noqa: F401
    compose_env,
)
from recipeforge.core.services.recipe_build.resolver.plan_resolution import (  # noqa: F401
    plan_build,
)
from recipeforge.core.services.recipe_build.resolver.profile_selection import (  # noqa: F401
    NOOP_PROFILE,
    select_profile,
)
from recipeforge.core.services.recipe_build.resolver.source_resolution import (  # noqa: F401
    resolve_source,
)

# ── L3: Detection ──
from recipeforge.core.services.recipe_build.detection.platform import (  # noqa: F401
    detect_platform,
    parse_platform,
)

# ── L5: Orchestration ──
from recipeforge.core.services.recipe_build.orchestration.orchestrator import (  # noqa: F401
    LoggingLicenseShipper,
    build_component,
    execute_plan,
    prepare_build,
)
