"""
Configuration loader — reads recipeforge.yml into BuildSettings.

This is the primary entry point for run configuration. It reads YAML,
applies environment overrides, validates against a Pydantic schema, and
returns typed settings.

Precedence (later wins):
    defaults  <  recipeforge.yml  <  RF_* environment variables
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

# Default config filename
SETTINGS_FILE = "recipeforge.yml"

# Environment overrides → settings field
_ENV_OVERRIDES: dict[str, str] = {
    "RF_INSTALL_ROOT": "install_root",
    "RF_WORK_DIR": "work_dir",
    "RF_WORKERS": "workers",
    "RF_STRICT_PLATFORM": "strict_platform",
    "RF_RECIPES_DIR": "recipes_dir",
}


class ConfigError(Exception):
    """Raised when run configuration is invalid or missing."""


def _default_work_dir() -> Path:
    return Path.home() / ".cache" / "recipeforge"


class BuildSettings(BaseModel):
    """Everything a run needs that the recipe itself does not say.

    ``install_root`` is exclusively owned by one ``build_component``
    call for its duration.
    """

    install_root: Path = Path("/opt/recipeforge")
    work_dir: Path = Field(default_factory=_default_work_dir)
    workers: int | None = Field(default=None, ge=1)  # None → CPU count
    strict_platform: bool = False
    recipes_dir: Path | None = None
    base_env: dict[str, str] = Field(default_factory=dict)

    @field_validator("install_root")
    @classmethod
    def _absolute_root(cls, value: Path) -> Path:
        if not value.is_absolute():
            raise ValueError(f"install_root must be an absolute path, got {value}")
        return value

    @field_validator("work_dir", "recipes_dir")
    @classmethod
    def _expand_user(cls, value: Path | None) -> Path | None:
        return value.expanduser() if value is not None else None


def find_settings_file(start_dir: Path | None = None) -> Path | None:
    """Search for recipeforge.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to recipeforge.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / SETTINGS_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def _env_overrides(environ: dict[str, str]) -> dict[str, str]:
    return {
        field: environ[var]
        for var, field in _ENV_OVERRIDES.items()
        if environ.get(var)
    }


def load_settings(
    path: Path | None = None,
    *,
    environ: dict[str, str] | None = None,
) -> BuildSettings:
    """Load and validate run settings.

    A missing settings file is not an error: defaults plus environment
    overrides are used. An explicit ``path`` must exist.

    Args:
        path: Explicit path to recipeforge.yml. If None, searches upward.
        environ: Environment to read RF_* overrides from (default: os.environ).

    Returns:
        Validated BuildSettings.

    Raises:
        ConfigError: If the file is unreadable or the values are invalid.
    """
    environ = dict(os.environ if environ is None else environ)
    data: dict = {}

    if path is not None and not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    path = path or find_settings_file()
    if path is not None:
        logger.debug("Loading settings from %s", path)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read {path}: {e}") from e

        try:
            loaded = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"Expected a YAML mapping in {path}, got {type(loaded).__name__}")

        # The YAML may wrap everything under a "build" key or be flat
        data = dict(loaded.get("build", loaded))

        # Relative recipe dirs are relative to the settings file
        recipes_dir = data.get("recipes_dir")
        if recipes_dir and not Path(recipes_dir).expanduser().is_absolute():
            data["recipes_dir"] = str(path.parent / recipes_dir)

    data.update(_env_overrides(environ))

    try:
        settings = BuildSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid build settings: {e}") from e

    logger.info(
        "Settings: install_root=%s work_dir=%s workers=%s strict=%s",
        settings.install_root, settings.work_dir,
        settings.workers or "auto", settings.strict_platform,
    )
    return settings
