"""
L4 Execution — Step executors.

One function per step type. Each takes a BuildStep, performs its side
effect, and returns a result dict (``{"ok": bool, ...}``). None of them
raise: the orchestrator turns results into receipts.
"""

from __future__ import annotations

import glob
import logging
import shutil
import tarfile
import zipfile
from pathlib import Path
from typing import Any

from recipeforge.core.models.plan import BuildStep
from recipeforge.core.services.recipe_build.execution.download import _download_and_verify
from recipeforge.core.services.recipe_build.execution.subprocess_runner import _run_subprocess

logger = logging.getLogger(__name__)


def _is_within(path: Path, root: Path) -> bool:
    try:
        path.resolve().relative_to(root.resolve())
    except ValueError:
        return False
    return True


def _execute_download_step(step: BuildStep) -> dict[str, Any]:
    """Fetch the source archive and verify its published checksum.

    Step params::

        {"url": "https://...", "dest": "<work>/cache/X.tgz",
         "checksum": "sha256:abc123..."}
    """
    url = step.params.get("url", "")
    dest = step.params.get("dest", "")
    checksum = step.params.get("checksum", "")
    if not url or not dest:
        return {"ok": False, "error": "Download step needs 'url' and 'dest'"}
    if ":" not in checksum:
        return {"ok": False, "error": f"Download step has no usable checksum: {checksum!r}"}

    return _download_and_verify(url, Path(dest), checksum, timeout=step.timeout)


def _safe_tar_members(tar: tarfile.TarFile, dest: Path) -> list[tarfile.TarInfo] | str:
    """All members, or an error string naming the first escaping one."""
    members = tar.getmembers()
    for member in members:
        if not _is_within(dest / member.name, dest):
            return f"Archive member escapes destination: {member.name}"
        if member.issym():
            target = (dest / member.name).parent / member.linkname
        elif member.islnk():
            target = dest / member.linkname
        else:
            continue
        if not _is_within(target, dest):
            return f"Archive link escapes destination: {member.name} -> {member.linkname}"
    return members


def _execute_extract_step(step: BuildStep) -> dict[str, Any]:
    """Unpack a tar or zip archive into the work-dir source tree.

    A stale tree at ``params["clean"]`` (left by an earlier run) is
    removed first, so every run configures freshly extracted sources.
    """
    archive = Path(step.params.get("archive", ""))
    dest = Path(step.params.get("dest", ""))
    clean = step.params.get("clean")

    if not archive.is_file():
        return {"ok": False, "error": f"Archive not found: {archive}"}

    if clean and Path(clean).exists():
        if not _is_within(Path(clean), dest):
            return {"ok": False, "error": f"Refusing to clean {clean}: outside {dest}"}
        try:
            shutil.rmtree(clean)
        except OSError as e:
            return {"ok": False, "error": f"Cannot remove stale source tree {clean}: {e}"}
        logger.debug("Removed stale source tree %s", clean)

    try:
        dest.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return {"ok": False, "error": f"Cannot create {dest}: {e}"}

    try:
        if tarfile.is_tarfile(archive):
            with tarfile.open(archive, "r:*") as tar:
                members = _safe_tar_members(tar, dest)
                if isinstance(members, str):
                    return {"ok": False, "error": members}
                if hasattr(tarfile, "data_filter"):
                    tar.extractall(dest, members=members, filter="data")
                else:
                    tar.extractall(dest, members=members)
                count = len(members)
        elif zipfile.is_zipfile(archive):
            with zipfile.ZipFile(archive) as zf:
                for name in zf.namelist():
                    if not _is_within(dest / name, dest):
                        return {"ok": False, "error": f"Archive member escapes destination: {name}"}
                zf.extractall(dest)
                count = len(zf.namelist())
        else:
            return {"ok": False, "error": f"Unsupported archive format: {archive.name}"}
    except (tarfile.TarError, zipfile.BadZipFile, OSError) as e:
        return {"ok": False, "error": f"Extraction failed: {e}"}

    return {"ok": True, "message": f"Extracted {count} entries into {dest}"}


def _execute_command_step(step: BuildStep) -> dict[str, Any]:
    """Run a configure / compile / install command."""
    return _run_subprocess(
        list(step.command),
        timeout=step.timeout,
        env_overrides=dict(step.env),
        cwd=step.cwd,
    )


def _execute_cleanup_step(step: BuildStep) -> dict[str, Any]:
    """Remove post-install artifacts matching glob patterns.

    Only paths under ``params["root"]`` are touched. Patterns that match
    nothing are fine. Failures are reported, and the orchestrator treats
    them as warnings for best-effort steps.
    """
    root = step.params.get("root")
    removed: list[str] = []
    errors: list[str] = []

    for pattern in step.params.get("patterns", []):
        for match in sorted(glob.glob(pattern)):
            path = Path(match)
            if root and not _is_within(path, Path(root)):
                errors.append(f"{match}: outside install root {root}")
                continue
            try:
                if path.is_dir() and not path.is_symlink():
                    shutil.rmtree(path)
                else:
                    path.unlink()
                removed.append(match)
            except OSError as e:
                errors.append(f"{match}: {e}")

    if errors:
        return {"ok": False, "removed": removed, "error": "; ".join(errors)}
    message = f"Removed {len(removed)} path(s)" if removed else "Nothing to clean"
    return {"ok": True, "removed": removed, "message": message}
