"""
L4 Execution — Source download and checksum verification.

Fetches a source archive into the work-dir cache and verifies it
against its published checksum. A mismatching file is deleted before
returning, so nothing downstream can extract it.
"""

from __future__ import annotations

import hashlib
import logging
import urllib.request
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_USER_AGENT = "recipeforge/0.1"
_CHUNK = 64 * 1024


def _human_size(n: float) -> str:
    for unit in ("B", "KiB", "MiB"):
        if n < 1024:
            return f"{n:.1f} {unit}"
        n /= 1024
    return f"{n:.1f} GiB"


def _file_digest(path: Path, algo: str) -> str:
    h = hashlib.new(algo)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK), b""):
            h.update(chunk)
    return h.hexdigest()


def _verify_checksum(path: Path, expected: str) -> bool:
    """Verify file checksum.  Format: ``algo:hex``.

    Args:
        path: Path to the downloaded file.
        expected: Checksum string like ``sha256:abc123...``.

    Returns:
        True if the file's computed digest matches ``expected``.
    """
    algo, expected_hash = expected.split(":", 1)
    return _file_digest(path, algo) == expected_hash.lower()


def _download_and_verify(
    url: str,
    dest: Path,
    checksum: str,
    *,
    timeout: int = 900,
) -> dict[str, Any]:
    """Download ``url`` to ``dest`` and verify ``checksum``.

    An archive already in the cache with the right checksum is reused
    without touching the network.

    Returns:
        ``{"ok": True, "path": ..., "size_bytes": N, "cached": bool}``,
        ``{"ok": False, "checksum_mismatch": True, "error": ...}`` on a bad
        digest, or ``{"ok": False, "error": ...}`` on a transfer failure.
    """
    partial = dest.with_name(dest.name + ".part")
    try:
        if dest.is_file() and _verify_checksum(dest, checksum):
            logger.info("Using cached %s", dest)
            return {"ok": True, "path": str(dest), "size_bytes": dest.stat().st_size, "cached": True}
        dest.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return {"ok": False, "error": f"Cannot prepare download cache {dest.parent}: {e}"}

    try:
        req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
        downloaded = 0
        with urllib.request.urlopen(req, timeout=timeout) as resp, open(partial, "wb") as f:
            while True:
                chunk = resp.read(_CHUNK)
                if not chunk:
                    break
                f.write(chunk)
                downloaded += len(chunk)
    except (OSError, ValueError) as e:
        partial.unlink(missing_ok=True)
        return {"ok": False, "error": f"Download failed: {e}"}

    algo, expected_hash = checksum.split(":", 1)
    try:
        actual = _file_digest(partial, algo)
    except OSError as e:
        partial.unlink(missing_ok=True)
        return {"ok": False, "error": f"Cannot read downloaded {partial}: {e}"}
    if actual != expected_hash.lower():
        partial.unlink(missing_ok=True)
        return {
            "ok": False,
            "checksum_mismatch": True,
            "error": (
                f"Checksum mismatch for {url}: expected {algo}:{expected_hash}, "
                f"got {algo}:{actual}"
            ),
        }

    try:
        partial.replace(dest)
    except OSError as e:
        return {"ok": False, "error": f"Cannot move {partial} into place: {e}"}
    logger.info("Downloaded %s (%s) to %s", url, _human_size(downloaded), dest)
    return {"ok": True, "path": str(dest), "size_bytes": downloaded, "cached": False}
