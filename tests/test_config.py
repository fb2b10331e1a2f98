"""
Tests for settings loading — recipeforge.yml parsing, env overrides.
"""

import textwrap
from pathlib import Path

import pytest

from recipeforge.core.config.loader import (
    BuildSettings,
    ConfigError,
    find_settings_file,
    load_settings,
)


@pytest.fixture
def settings_yml(tmp_path: Path) -> Path:
    content = textwrap.dedent("""\
        install_root: /opt/agent
        work_dir: /var/cache/recipeforge
        workers: 8
        strict_platform: true
        recipes_dir: recipes
        base_env:
          CC: gcc
    """)
    path = tmp_path / "recipeforge.yml"
    path.write_text(content)
    return path


class TestLoadSettings:

    def test_valid(self, settings_yml):
        s = load_settings(settings_yml, environ={})
        assert s.install_root == Path("/opt/agent")
        assert s.work_dir == Path("/var/cache/recipeforge")
        assert s.workers == 8
        assert s.strict_platform is True
        assert s.base_env == {"CC": "gcc"}

    def test_recipes_dir_relative_to_file(self, settings_yml):
        s = load_settings(settings_yml, environ={})
        assert s.recipes_dir == settings_yml.parent / "recipes"

    def test_wrapped_under_build_key(self, tmp_path):
        path = tmp_path / "recipeforge.yml"
        path.write_text("build:\n  install_root: /srv/embedded\n  workers: 2\n")
        s = load_settings(path, environ={})
        assert s.install_root == Path("/srv/embedded")
        assert s.workers == 2

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "recipeforge.yml"
        path.write_text("")
        s = load_settings(path, environ={})
        assert s.install_root == BuildSettings().install_root
        assert s.workers is None
        assert s.strict_platform is False

    def test_no_file_anywhere(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        s = load_settings(environ={"RF_INSTALL_ROOT": "/opt/x"})
        assert s.install_root == Path("/opt/x")

    def test_env_overrides_file(self, settings_yml):
        s = load_settings(settings_yml, environ={
            "RF_INSTALL_ROOT": "/opt/other",
            "RF_WORKERS": "3",
            "RF_STRICT_PLATFORM": "false",
        })
        assert s.install_root == Path("/opt/other")
        assert s.workers == 3
        assert s.strict_platform is False

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_settings(tmp_path / "missing.yml", environ={})

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "recipeforge.yml"
        path.write_text("install_root: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(path, environ={})

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "recipeforge.yml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_settings(path, environ={})

    def test_relative_install_root_rejected(self, tmp_path):
        path = tmp_path / "recipeforge.yml"
        path.write_text("install_root: relative/path\n")
        with pytest.raises(ConfigError, match="absolute"):
            load_settings(path, environ={})

    def test_bad_workers_rejected(self, settings_yml):
        with pytest.raises(ConfigError):
            load_settings(settings_yml, environ={"RF_WORKERS": "0"})


class TestFindSettingsFile:

    def test_walks_up(self, settings_yml):
        nested = settings_yml.parent / "a" / "b"
        nested.mkdir(parents=True)
        assert find_settings_file(nested) == settings_yml.resolve()

    def test_not_found(self, tmp_path):
        assert find_settings_file(tmp_path) is None
