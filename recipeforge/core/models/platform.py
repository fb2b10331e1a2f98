"""
Platform descriptor — what the host says it is.

Supplied by the host environment (or the caller, for cross-planning).
Values are normalised so that profile predicates only ever compare
lower-case OS families and canonical architecture names.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

# Architecture name normalization (Go-style names, as used for release assets)
ARCH_MAP: dict[str, str] = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "x64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "armhf",
    "i686": "i386",
    "i586": "i386",
    "i386": "i386",
    "x86": "i386",
}

# OS family aliases reported by platform.system() and friends
OS_ALIASES: dict[str, str] = {
    "macos": "darwin",
    "osx": "darwin",
    "mac_os_x": "darwin",
    "win32": "windows",
    "cygwin": "windows",
    "sunos5": "sunos",
}


class PlatformDescriptor(BaseModel):
    """OS family, architecture, and libc/toolchain variant of a target."""

    model_config = ConfigDict(frozen=True)

    os_family: str
    arch: str = ""
    libc: str = ""

    @field_validator("os_family")
    @classmethod
    def _normalise_os(cls, value: str) -> str:
        value = value.strip().lower()
        return OS_ALIASES.get(value, value)

    @field_validator("arch")
    @classmethod
    def _normalise_arch(cls, value: str) -> str:
        value = value.strip().lower()
        return ARCH_MAP.get(value, value)

    @field_validator("libc")
    @classmethod
    def _normalise_libc(cls, value: str) -> str:
        return value.strip().lower()

    def __str__(self) -> str:
        parts = [self.os_family, self.arch or "?"]
        if self.libc:
            parts.append(self.libc)
        return "/".join(parts)
