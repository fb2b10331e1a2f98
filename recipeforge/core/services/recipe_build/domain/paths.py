"""
L1 Domain — Template substitution and path helpers (pure).

No I/O, no subprocess.
"""

from __future__ import annotations


def substitute_vars(template: str, variables: dict[str, str]) -> str:
    """Replace ``{var}`` placeholders in a single string.

    Unknown placeholders are left untouched, so flag values that
    legitimately contain braces survive substitution.

    Args:
        template: String with possible ``{var}`` tokens.
        variables: Mapping of variable names to their values.

    Returns:
        The string with every known ``{key}`` substituted.
    """
    for key, value in variables.items():
        template = template.replace(f"{{{key}}}", str(value))
    return template


def substitute_all(tokens: list[str], variables: dict[str, str]) -> list[str]:
    """Replace ``{var}`` placeholders in a command array."""
    return [substitute_vars(token, variables) for token in tokens]


def split_version(version: str) -> dict[str, str]:
    """Template variables derived from a dotted version string.

    ``"3.7.1"`` → ``{"version": "3.7.1", "major": "3", "minor": "7",
    "patch": "1"}``. Missing components are empty strings.
    """
    parts = version.split(".")
    parts += [""] * (3 - len(parts))
    return {
        "version": version,
        "major": parts[0],
        "minor": parts[1],
        "patch": parts[2],
    }


def windows_safe_path(path: str) -> str:
    """Backslash-separated form of a path for Windows command lines."""
    return path.replace("/", "\\")
