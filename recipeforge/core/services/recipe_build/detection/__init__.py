"""
L3 Detection — read-only host probes.
"""

from recipeforge.core.services.recipe_build.detection.platform import (  # noqa: F401
    detect_platform,
    parse_platform,
)
