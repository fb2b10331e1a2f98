"""
L0 Data — Module-level constants.

Pure data. No logic. No imports beyond stdlib.
"""

from __future__ import annotations

# Step timeout tiers (seconds).
STEP_TIMEOUTS: dict[str, int] = {
    "download": 900,
    "extract": 300,
    "configure": 600,
    "compile": 3600,
    "install": 900,
    "cleanup": 60,
}

# Network fetches are the only steps retried by default.
FETCH_MAX_ATTEMPTS = 3
FETCH_BASE_DELAY = 2.0

# Sub-directories of the work dir; nothing here lives under the install root.
CACHE_SUBDIR = "cache"
SOURCE_SUBDIR = "src"

# Unix-like OS families that share the generic (flagless) Unix profile.
OTHER_UNIX_FAMILIES: frozenset[str] = frozenset({
    "freebsd",
    "openbsd",
    "netbsd",
    "dragonfly",
    "sunos",
    "solaris",
    "illumos",
})
