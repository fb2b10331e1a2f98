"""
L1 Domain — pure helpers and error types. No I/O, no subprocess.
"""

from recipeforge.core.services.recipe_build.domain.errors import (  # noqa: F401
    ChecksumConflict,
    ChecksumMismatch,
    RecipeError,
    StepFailure,
    UnknownVersion,
    UnsupportedPlatform,
)
from recipeforge.core.services.recipe_build.domain.paths import (  # noqa: F401
    split_version,
    substitute_all,
    substitute_vars,
    windows_safe_path,
)
