"""
Recipe models — static description of one buildable component.

A recipe is defined once at process start and never mutated. It declares
every version it can build (each bound to a published checksum), the
source location templates, and the per-platform profiles that decide
dependencies, configure flags, and environment overrides.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Digest algorithms accepted for published checksums
CHECKSUM_ALGORITHMS = ("sha256", "sha1", "md5", "sha512")


class PlatformCategory(str, Enum):
    """The finite set of platform variants a recipe can branch on."""

    WINDOWS_X86 = "windows-x86"
    WINDOWS_X64 = "windows-x64"
    WINDOWS = "windows"
    DARWIN = "darwin"
    LINUX = "linux"
    OTHER_UNIX = "other-unix"
    UNSUPPORTED = "unsupported"


class VersionSourceDescriptor(BaseModel):
    """Fetch metadata for one version.

    ``url`` is either empty (use the profile/recipe template), a template
    override for this version, or — after resolution — the concrete URL.
    ``relative_path`` is only populated by the resolver.
    """

    model_config = ConfigDict(frozen=True)

    version: str
    checksum: str
    algorithm: str = "sha256"
    url: str = ""
    relative_path: str = ""

    @field_validator("checksum")
    @classmethod
    def _checksum_is_hex(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("checksum must not be empty")
        if any(c not in "0123456789abcdef" for c in value):
            raise ValueError(f"checksum is not a hex digest: {value!r}")
        return value

    @field_validator("algorithm")
    @classmethod
    def _known_algorithm(cls, value: str) -> str:
        value = value.lower()
        if value not in CHECKSUM_ALGORITHMS:
            raise ValueError(
                f"unsupported checksum algorithm {value!r} "
                f"(expected one of {', '.join(CHECKSUM_ALGORITHMS)})"
            )
        return value

    @property
    def checksum_spec(self) -> str:
        """Checksum in ``algo:hex`` form, as consumed by the downloader."""
        return f"{self.algorithm}:{self.checksum}"


def _check_versions(
    owner: str,
    versions: list[VersionSourceDescriptor],
    default_version: str | None,
) -> None:
    seen: set[str] = set()
    for desc in versions:
        if desc.version in seen:
            raise ValueError(f"{owner}: version {desc.version!r} declared twice")
        seen.add(desc.version)
    if default_version is not None and default_version not in seen:
        raise ValueError(
            f"{owner}: default version {default_version!r} is not a declared "
            f"version ({', '.join(sorted(seen)) or 'none declared'})"
        )


class PlatformProfile(BaseModel):
    """The platform-specific subset of a recipe's behavior.

    Exactly one profile applies per run. A profile with its own ``sources``
    (e.g. prebuilt Windows archives) replaces the recipe's version list for
    that platform.
    """

    model_config = ConfigDict(frozen=True)

    category: PlatformCategory
    dependencies: list[str] = Field(default_factory=list)
    configure_args: list[str] = Field(default_factory=list)
    env_overrides: dict[str, str] = Field(default_factory=dict)
    build_style: Literal["autotools", "prebuilt", "none"] = "autotools"

    # ── Source overrides ─────────────────────────────────────────
    default_version: str | None = None
    sources: list[VersionSourceDescriptor] = Field(default_factory=list)
    url_template: str = ""
    relative_path_template: str = ""

    # ── Install layout ───────────────────────────────────────────
    install_subdir: str = "embedded"
    cleanup_globs: list[str] = Field(default_factory=list)

    supported: bool = True

    @model_validator(mode="after")
    def _sources_consistent(self) -> PlatformProfile:
        if self.sources:
            _check_versions(
                f"profile {self.category.value}", self.sources, self.default_version,
            )
        return self

    def get_source(self, version: str) -> VersionSourceDescriptor | None:
        """Look up a profile-level source descriptor by version."""
        for desc in self.sources:
            if desc.version == version:
                return desc
        return None


class ComponentRecipe(BaseModel):
    """Declarative description of how to build one component."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    license: str = ""

    default_version: str
    versions: list[VersionSourceDescriptor] = Field(default_factory=list)
    url_template: str = ""
    relative_path_template: str = ""

    # Flag templates; {install_root} and {embedded} are filled at compose time
    base_env: dict[str, str] = Field(default_factory=dict)

    configure_command: list[str] = Field(default_factory=lambda: ["./configure"])
    prefix_template: str = "--prefix={embedded}"
    trailing_configure_args: list[str] = Field(default_factory=list)
    make_command: str = "make"

    profiles: list[PlatformProfile] = Field(default_factory=list)

    @model_validator(mode="after")
    def _versions_consistent(self) -> ComponentRecipe:
        _check_versions(f"recipe {self.name}", self.versions, self.default_version)
        seen: set[PlatformCategory] = set()
        for profile in self.profiles:
            if profile.category in seen:
                raise ValueError(
                    f"recipe {self.name}: more than one profile for "
                    f"{profile.category.value}"
                )
            seen.add(profile.category)
        return self

    @property
    def supported_versions(self) -> list[str]:
        """Declared versions, in declaration order."""
        return [d.version for d in self.versions]

    def get_version(self, version: str) -> VersionSourceDescriptor | None:
        """Look up a recipe-level source descriptor by version."""
        for desc in self.versions:
            if desc.version == version:
                return desc
        return None

    def get_profile(self, category: PlatformCategory) -> PlatformProfile | None:
        """Look up the profile declared for a platform category."""
        for profile in self.profiles:
            if profile.category == category:
                return profile
        return None

    @property
    def categories(self) -> list[PlatformCategory]:
        """Platform categories this recipe declares a profile for."""
        return [p.category for p in self.profiles]
