"""
L4 Execution — ``__init__.py`` re-exports all execution functions.

These functions WRITE to the system: subprocess calls, downloads,
archive extraction, and removal of post-install artifacts.
"""

from recipeforge.core.services.recipe_build.execution.download import (  # noqa: F401
    _download_and_verify,
    _verify_checksum,
)
from recipeforge.core.services.recipe_build.execution.step_executors import (  # noqa: F401
    _execute_cleanup_step,
    _execute_command_step,
    _execute_download_step,
    _execute_extract_step,
)
from recipeforge.core.services.recipe_build.execution.subprocess_runner import (  # noqa: F401
    _run_subprocess,
)
