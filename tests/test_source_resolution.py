"""
Tests for source resolution — versions, checksums, URL templates.
"""

import pytest

from recipeforge.core.models import PlatformCategory
from recipeforge.core.services.recipe_build import PYTHON3, UnknownVersion, resolve_source
from recipeforge.core.services.recipe_build.resolver import (
    archive_filename,
    declared_versions,
    effective_default_version,
)


class TestResolveSource:
    """resolve_source() against the python3 recipe."""

    def test_default_version(self):
        d = resolve_source(PYTHON3)
        assert d.version == "3.7.1"
        assert d.url == "https://python.org/ftp/python/3.7.1/Python-3.7.1.tgz"
        assert d.relative_path == "Python-3.7.1"

    def test_explicit_version(self):
        d = resolve_source(PYTHON3, "3.6.7")
        assert d.checksum == "b7c36f7ed8f7143b2c46153b7332db2227669f583ea0cce753facf549d1a4239"
        assert d.url.endswith("/3.6.7/Python-3.6.7.tgz")

    @pytest.mark.parametrize("version", PYTHON3.supported_versions)
    def test_checksum_stable(self, version):
        first = resolve_source(PYTHON3, version)
        second = resolve_source(PYTHON3, version)
        assert first.checksum
        assert first == second

    def test_unknown_version(self):
        with pytest.raises(UnknownVersion) as exc:
            resolve_source(PYTHON3, "nonexistent")
        assert exc.value.version == "nonexistent"
        assert exc.value.known == ["3.6.7", "3.7.1"]
        assert "nonexistent" in str(exc.value)

    def test_empty_version_is_unknown(self):
        with pytest.raises(UnknownVersion) as exc:
            resolve_source(PYTHON3, "")
        assert exc.value.version == ""

    def test_recipe_left_untouched(self):
        resolve_source(PYTHON3, "3.7.1")
        assert PYTHON3.get_version("3.7.1").url == ""


class TestProfileSources:
    """Profiles with their own sources replace the recipe's version list."""

    def test_windows_x86_default(self):
        profile = PYTHON3.get_profile(PlatformCategory.WINDOWS_X86)
        d = resolve_source(PYTHON3, None, profile)
        assert d.version == "3.7.3"
        assert d.url == "http://dbs-laptop/pkg/python-windows-3.7.3-x86.zip"
        assert d.relative_path == "python-windows-3.7.3-x86"

    def test_windows_x64_default(self):
        profile = PYTHON3.get_profile(PlatformCategory.WINDOWS_X64)
        d = resolve_source(PYTHON3, None, profile)
        assert d.version == "3.7.1"
        assert d.url == (
            "https://s3.amazonaws.com/dd-agent-omnibus/python-windows-3.7.1-amd64.zip"
        )
        assert d.checksum.startswith("2ebd2eb2")

    def test_source_version_not_on_profile(self):
        profile = PYTHON3.get_profile(PlatformCategory.WINDOWS_X86)
        with pytest.raises(UnknownVersion) as exc:
            resolve_source(PYTHON3, "3.6.7", profile)
        assert exc.value.known == ["3.7.3"]

    def test_unix_profile_uses_recipe_versions(self):
        profile = PYTHON3.get_profile(PlatformCategory.LINUX)
        assert declared_versions(PYTHON3, profile) == ["3.6.7", "3.7.1"]
        assert effective_default_version(PYTHON3, profile) == "3.7.1"


class TestArchiveFilename:

    @pytest.mark.parametrize("url,expected", [
        ("https://python.org/ftp/python/3.7.1/Python-3.7.1.tgz", "Python-3.7.1.tgz"),
        ("file:///tmp/upstream/zlib-1.2.tar.gz", "zlib-1.2.tar.gz"),
        ("https://example.com/download?id=1", "download"),
        ("https://example.com/", "source.archive"),
    ])
    def test_filename(self, url, expected):
        assert archive_filename(url) == expected
