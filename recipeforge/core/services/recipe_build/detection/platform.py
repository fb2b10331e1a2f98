"""
L3 Detection — Host platform descriptor.

Read-only probes: ``platform`` module values and the presence of a musl
loader. Never raises.
"""

from __future__ import annotations

import glob
import logging
import platform

from recipeforge.core.models.platform import PlatformDescriptor

logger = logging.getLogger(__name__)


def _detect_libc(os_family: str) -> str:
    """Best-effort libc variant: glibc, musl, msvc, libsystem, or ''."""
    if os_family == "windows":
        return "msvc"
    if os_family == "darwin":
        return "libsystem"
    if os_family != "linux":
        return ""

    name, _version = platform.libc_ver()
    if name == "glibc":
        return "glibc"
    if glob.glob("/lib/ld-musl-*"):
        return "musl"
    return name or ""


def detect_platform() -> PlatformDescriptor:
    """Describe the host this process runs on."""
    os_family = platform.system().lower() or "unknown"
    descriptor = PlatformDescriptor(
        os_family=os_family,
        arch=platform.machine(),
        libc=_detect_libc(os_family),
    )
    logger.debug("Detected host platform: %s", descriptor)
    return descriptor


def parse_platform(value: str) -> PlatformDescriptor:
    """Parse ``os[/arch[/libc]]`` (e.g. ``linux/x86_64/glibc``).

    Raises:
        ValueError: Empty OS family or too many components.
    """
    parts = [p.strip() for p in value.split("/")]
    if not parts[0]:
        raise ValueError(f"Invalid platform {value!r}: missing OS family")
    if len(parts) > 3:
        raise ValueError(f"Invalid platform {value!r}: expected os[/arch[/libc]]")
    parts += [""] * (3 - len(parts))
    return PlatformDescriptor(os_family=parts[0], arch=parts[1], libc=parts[2])
