"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from recipeforge.core.config.loader import BuildSettings
from recipeforge.core.models import ComponentRecipe
from tests.builders import make_recipe, make_source_archive, sha256_of


@pytest.fixture
def settings(tmp_path: Path) -> BuildSettings:
    """Settings with an install root and work dir inside tmp_path."""
    return BuildSettings(
        install_root=tmp_path / "root",
        work_dir=tmp_path / "work",
        workers=2,
    )


@pytest.fixture
def source_archive(tmp_path: Path) -> Path:
    """A well-formed Python-3.7.1 source archive."""
    upstream = tmp_path / "upstream"
    upstream.mkdir()
    return make_source_archive(upstream)


@pytest.fixture
def local_recipe(source_archive: Path) -> ComponentRecipe:
    """Recipe pointing at ``source_archive`` with its real checksum."""
    return make_recipe(source_archive, sha256_of(source_archive))


@pytest.fixture
def no_sleep():
    """Recorded backoff delays; pass ``sleep=no_sleep.append``."""
    return []
