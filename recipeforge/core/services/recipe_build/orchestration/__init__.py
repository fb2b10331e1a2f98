"""
L5 Orchestration — top-level coordinators.
"""

from recipeforge.core.services.recipe_build.orchestration.orchestrator import (  # noqa: F401
    LicenseShipper,
    LoggingLicenseShipper,
    build_component,
    execute_plan,
    execute_plan_step,
    prepare_build,
)
