"""
L4 Execution — Core subprocess runner.

The SINGLE PLACE where ``subprocess.run`` is called for build
operations. All logging and error handling is centralised here.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time
from typing import Any

logger = logging.getLogger(__name__)

# Keep only the tail of process output in results
_OUTPUT_TAIL = 4000


def _tail(text: str | None) -> str:
    return text[-_OUTPUT_TAIL:] if text else ""


def _run_subprocess(
    cmd: list[str],
    *,
    timeout: int = 600,
    env_overrides: dict[str, str] | None = None,
    cwd: str | None = None,
) -> dict[str, Any]:
    """Run one external command under the composed build environment.

    The process inherits the current environment with ``env_overrides``
    applied on top. Never raises: every failure becomes a result dict.

    Args:
        cmd: Command list for ``subprocess.run()``.
        timeout: Seconds before ``TimeoutExpired``.
        env_overrides: Composed build env (CFLAGS, LDFLAGS, ...).
        cwd: Working directory for the command.

    Returns:
        ``{"ok": True, "returncode": 0, "stdout": "...", "stderr": "...",
        "elapsed_ms": N}`` on success,
        ``{"ok": False, "returncode": N | None, "error": "...", ...}``
        on failure. ``returncode`` is None when the process never ran
        or was killed on timeout.
    """
    if not cmd:
        return {"ok": False, "returncode": None, "error": "Empty command"}

    # ── Environment ──
    env = os.environ.copy()
    if env_overrides:
        env.update(env_overrides)

    # ── Execute ──
    logger.debug("Executing: %s (cwd=%s)", " ".join(cmd), cwd)
    start = time.monotonic()
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
            cwd=cwd,
        )
    except subprocess.TimeoutExpired as exc:
        return {
            "ok": False,
            "returncode": None,
            "error": f"Command timed out ({timeout}s)",
            "stdout": _tail(exc.stdout if isinstance(exc.stdout, str) else None),
            "stderr": _tail(exc.stderr if isinstance(exc.stderr, str) else None),
            "elapsed_ms": int((time.monotonic() - start) * 1000),
        }
    except OSError as exc:
        # Missing binary, bad cwd, permission denied
        logger.error("Cannot run %s: %s", cmd[0], exc)
        return {"ok": False, "returncode": None, "error": f"Cannot run {cmd[0]}: {exc}"}

    elapsed_ms = int((time.monotonic() - start) * 1000)
    stdout = _tail(result.stdout)
    stderr = _tail(result.stderr)

    if result.returncode == 0:
        return {
            "ok": True,
            "returncode": 0,
            "stdout": stdout,
            "stderr": stderr,
            "elapsed_ms": elapsed_ms,
        }

    return {
        "ok": False,
        "returncode": result.returncode,
        "error": f"Command failed (exit {result.returncode})",
        "stdout": stdout,
        "stderr": stderr,
        "elapsed_ms": elapsed_ms,
    }
