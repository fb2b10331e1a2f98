"""
Tests for step execution — subprocess runner, download, extract, cleanup,
and the sequential plan executor.
"""

import io
import sys
from datetime import datetime, timedelta
import tarfile
import zipfile
from pathlib import Path

import pytest

from recipeforge.core.models import BuildPlan, BuildStep, RetryPolicy, RunStage
from recipeforge.core.services.recipe_build import execute_plan
from recipeforge.core.services.recipe_build.execution import (
    _download_and_verify,
    _execute_cleanup_step,
    _execute_extract_step,
    _run_subprocess,
    _verify_checksum,
)
from recipeforge.core.services.recipe_build.execution import step_executors
from recipeforge.core.services.recipe_build.orchestration.orchestrator import execute_plan_step
from tests.builders import sha256_of


def _py(code: str) -> list[str]:
    return [sys.executable, "-c", code]


def _plan(*steps: BuildStep) -> BuildPlan:
    return BuildPlan(
        component="demo", version="1.0", category="linux",
        install_root="/opt/demo", steps=steps,
    )


def _command(step_id: str, stage: RunStage, code: str, **kwargs) -> BuildStep:
    return BuildStep(
        id=step_id, label=step_id, type="command", stage=stage,
        command=_py(code), **kwargs,
    )


class TestRunSubprocess:

    def test_success(self):
        r = _run_subprocess(_py("print('hello')"))
        assert r["ok"]
        assert r["returncode"] == 0
        assert r["stdout"].strip() == "hello"

    def test_exit_status(self):
        r = _run_subprocess(_py("import sys; sys.exit(3)"))
        assert not r["ok"]
        assert r["returncode"] == 3
        assert "exit 3" in r["error"]

    def test_env_overrides(self):
        r = _run_subprocess(
            _py("import os; print(os.environ['CFLAGS'])"),
            env_overrides={"CFLAGS": "-O2 -g"},
        )
        assert r["stdout"].strip() == "-O2 -g"

    def test_cwd(self, tmp_path):
        r = _run_subprocess(_py("import os; print(os.getcwd())"), cwd=str(tmp_path))
        assert Path(r["stdout"].strip()).resolve() == tmp_path.resolve()

    def test_missing_binary(self):
        r = _run_subprocess(["/nonexistent/configure"])
        assert not r["ok"]
        assert r["returncode"] is None
        assert "Cannot run" in r["error"]

    def test_timeout(self):
        r = _run_subprocess(_py("import time; time.sleep(5)"), timeout=1)
        assert not r["ok"]
        assert r["returncode"] is None
        assert "timed out" in r["error"]

    def test_empty_command(self):
        assert not _run_subprocess([])["ok"]


class TestDownload:

    def test_file_url(self, tmp_path, source_archive):
        dest = tmp_path / "cache" / source_archive.name
        checksum = "sha256:" + sha256_of(source_archive)
        r = _download_and_verify(source_archive.as_uri(), dest, checksum)
        assert r["ok"]
        assert not r["cached"]
        assert dest.read_bytes() == source_archive.read_bytes()
        assert _verify_checksum(dest, checksum)

    def test_cached_copy_reused(self, tmp_path, source_archive):
        dest = tmp_path / "cache" / source_archive.name
        checksum = "sha256:" + sha256_of(source_archive)
        _download_and_verify(source_archive.as_uri(), dest, checksum)
        source_archive.unlink()
        r = _download_and_verify(source_archive.as_uri(), dest, checksum)
        assert r["ok"]
        assert r["cached"]

    def test_mismatch_deletes_file(self, tmp_path, source_archive):
        dest = tmp_path / "cache" / source_archive.name
        r = _download_and_verify(source_archive.as_uri(), dest, "sha256:" + "0" * 64)
        assert not r["ok"]
        assert r["checksum_mismatch"]
        assert not dest.exists()
        assert list(dest.parent.iterdir()) == []

    def test_missing_source(self, tmp_path):
        r = _download_and_verify(
            (tmp_path / "missing.tgz").as_uri(), tmp_path / "out.tgz", "sha256:00",
        )
        assert not r["ok"]
        assert "checksum_mismatch" not in r
        assert "Download failed" in r["error"]

    def test_cache_dir_blocked_by_file(self, tmp_path, source_archive):
        blocker = tmp_path / "cache"
        blocker.write_text("not a directory")
        checksum = "sha256:" + sha256_of(source_archive)
        r = _download_and_verify(source_archive.as_uri(), blocker / source_archive.name, checksum)
        assert not r["ok"]
        assert "checksum_mismatch" not in r
        assert "Cannot prepare download cache" in r["error"]


class TestExtract:

    def _step(self, archive: Path, dest: Path, clean: Path | None = None) -> BuildStep:
        params = {"archive": str(archive), "dest": str(dest)}
        if clean is not None:
            params["clean"] = str(clean)
        return BuildStep(id="extract", label="extract", type="extract",
                         stage=RunStage.EXTRACTING, params=params)

    def test_tarball(self, tmp_path, source_archive):
        dest = tmp_path / "src"
        r = _execute_extract_step(self._step(source_archive, dest))
        assert r["ok"]
        assert (dest / "Python-3.7.1" / "configure").is_file()

    def test_stale_tree_replaced(self, tmp_path, source_archive):
        dest = tmp_path / "src"
        stale = dest / "Python-3.7.1"
        stale.mkdir(parents=True)
        (stale / "config.status").write_text("stale")
        r = _execute_extract_step(self._step(source_archive, dest, clean=stale))
        assert r["ok"]
        assert not (stale / "config.status").exists()

    def test_refuses_clean_outside_dest(self, tmp_path, source_archive):
        outside = tmp_path / "elsewhere"
        outside.mkdir()
        r = _execute_extract_step(self._step(source_archive, tmp_path / "src", clean=outside))
        assert not r["ok"]
        assert outside.is_dir()

    def test_zip(self, tmp_path):
        archive = tmp_path / "python-windows-3.7.3-x86.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("python.exe", "MZ")
            zf.writestr("Lib/os.py", "")
        dest = tmp_path / "src" / "python-windows-3.7.3-x86"
        assert _execute_extract_step(self._step(archive, dest))["ok"]
        assert (dest / "Lib" / "os.py").is_file()

    def test_escaping_member_refused(self, tmp_path):
        archive = tmp_path / "evil.tgz"
        with tarfile.open(archive, "w:gz") as tar:
            info = tarfile.TarInfo("../escaped.txt")
            info.size = 2
            tar.addfile(info, io.BytesIO(b"hi"))
        r = _execute_extract_step(self._step(archive, tmp_path / "src"))
        assert not r["ok"]
        assert not (tmp_path / "escaped.txt").exists()

    def test_missing_archive(self, tmp_path):
        r = _execute_extract_step(self._step(tmp_path / "nope.tgz", tmp_path / "src"))
        assert not r["ok"]

    def test_unknown_format(self, tmp_path):
        archive = tmp_path / "source.txt"
        archive.write_text("not an archive")
        r = _execute_extract_step(self._step(archive, tmp_path / "src"))
        assert "Unsupported archive format" in r["error"]

    def test_dest_is_a_file(self, tmp_path, source_archive):
        dest = tmp_path / "src"
        dest.write_text("not a directory")
        r = _execute_extract_step(self._step(source_archive, dest))
        assert not r["ok"]
        assert "Cannot create" in r["error"]

    def test_stale_tree_not_removable(self, tmp_path, source_archive, monkeypatch):
        dest = tmp_path / "src"
        stale = dest / "Python-3.7.1"
        stale.mkdir(parents=True)

        def refuse(path, *args, **kwargs):
            raise PermissionError(13, "Permission denied", str(path))

        monkeypatch.setattr(step_executors.shutil, "rmtree", refuse)
        r = _execute_extract_step(self._step(source_archive, dest, clean=stale))
        assert not r["ok"]
        assert "Cannot remove stale source tree" in r["error"]


class TestCleanup:

    def _step(self, root: Path, *patterns: str) -> BuildStep:
        return BuildStep(
            id="cleanup", label="cleanup", type="cleanup", stage=RunStage.CLEANING_UP,
            best_effort=True, params={"patterns": list(patterns), "root": str(root)},
        )

    def test_removes_matches(self, tmp_path):
        dynload = tmp_path / "embedded" / "lib" / "python3.7" / "lib-dynload"
        dynload.mkdir(parents=True)
        (dynload / "readline.so").write_text("")
        (dynload / "_ssl.so").write_text("")
        r = _execute_cleanup_step(self._step(tmp_path, f"{dynload}/readline.*"))
        assert r["ok"]
        assert r["removed"] == [str(dynload / "readline.so")]
        assert (dynload / "_ssl.so").exists()

    def test_no_matches_is_fine(self, tmp_path):
        r = _execute_cleanup_step(self._step(tmp_path, f"{tmp_path}/nothing.*"))
        assert r["ok"]
        assert r["message"] == "Nothing to clean"

    def test_outside_root_refused(self, tmp_path):
        root = tmp_path / "root"
        root.mkdir()
        victim = tmp_path / "victim.so"
        victim.write_text("")
        r = _execute_cleanup_step(self._step(root, f"{tmp_path}/victim.*"))
        assert not r["ok"]
        assert victim.exists()


class TestExecutePlanStep:

    def test_unknown_type(self):
        step = BuildStep.model_construct(id="x", label="x", type="teleport", stage=RunStage.INSTALLING)
        r = execute_plan_step(step)
        assert not r["ok"]
        assert "Unknown step type" in r["error"]


class TestExecutePlan:
    """Sequential execution, failure stop, retry, best effort."""

    def test_all_ok(self, no_sleep):
        result = execute_plan(_plan(
            _command("configure", RunStage.CONFIGURING, "pass"),
            _command("compile", RunStage.COMPILING, "pass"),
            _command("install", RunStage.INSTALLING, "pass"),
        ), sleep=no_sleep.append)
        assert result.ok
        assert result.stages == [
            RunStage.PLANNED, RunStage.CONFIGURING, RunStage.COMPILING,
            RunStage.INSTALLING, RunStage.DONE,
        ]
        assert [r.step_id for r in result.receipts] == ["configure", "compile", "install"]
        assert no_sleep == []

    def test_receipt_started_before_step_ran(self):
        result = execute_plan(_plan(
            _command("compile", RunStage.COMPILING, "import time; time.sleep(0.3)"),
        ))
        receipt = result.receipts[0]
        started = datetime.fromisoformat(receipt.started_at)
        ended = datetime.fromisoformat(receipt.ended_at)
        assert ended - started >= timedelta(seconds=0.3)
        assert receipt.duration_ms >= 300

    def test_empty_plan_is_done(self):
        result = execute_plan(_plan())
        assert result.ok
        assert result.stages == [RunStage.PLANNED, RunStage.DONE]

    def test_stops_on_exit_2(self, tmp_path):
        marker = tmp_path / "compiled"
        result = execute_plan(_plan(
            _command("configure", RunStage.CONFIGURING,
                     "import sys; sys.stderr.write('bad flags'); sys.exit(2)"),
            _command("compile", RunStage.COMPILING,
                     f"open({str(marker)!r}, 'w').close()"),
        ))
        assert not result.ok
        assert result.failed_at == RunStage.CONFIGURING
        assert result.failed_step == "configure"
        assert result.exit_code == 2
        assert result.error_kind == "StepFailure"
        assert "bad flags" in result.output
        assert [r.step_id for r in result.receipts] == ["configure"]
        assert result.stages[-1] == RunStage.FAILED
        assert not marker.exists()

    def test_retry_until_success(self, tmp_path, no_sleep):
        counter = tmp_path / "attempts"
        code = (
            "import pathlib, sys\n"
            f"p = pathlib.Path({str(counter)!r})\n"
            "n = int(p.read_text()) + 1 if p.exists() else 1\n"
            "p.write_text(str(n))\n"
            "sys.exit(0 if n >= 3 else 1)\n"
        )
        step = _command("flaky", RunStage.FETCHING, code,
                        retry=RetryPolicy(max_attempts=3, base_delay=0.5))
        result = execute_plan(_plan(step), sleep=no_sleep.append)
        assert result.ok
        assert result.receipts[0].attempts == 3
        assert len(no_sleep) == 2

    def test_retry_exhausted(self, no_sleep):
        step = _command("flaky", RunStage.FETCHING, "import sys; sys.exit(1)",
                        retry=RetryPolicy(max_attempts=2, base_delay=0.0))
        result = execute_plan(_plan(step), sleep=no_sleep.append)
        assert not result.ok
        assert result.receipts[0].attempts == 2
        assert len(no_sleep) == 1

    def test_checksum_mismatch_not_retried(self, tmp_path, source_archive, no_sleep):
        step = BuildStep(
            id="fetch", label="fetch", type="download", stage=RunStage.FETCHING,
            retry=RetryPolicy(max_attempts=3),
            params={
                "url": source_archive.as_uri(),
                "dest": str(tmp_path / "cache" / "x.tgz"),
                "checksum": "sha256:" + "0" * 64,
            },
        )
        result = execute_plan(_plan(step), sleep=no_sleep.append)
        assert result.error_kind == "ChecksumMismatch"
        assert result.failed_at == RunStage.FETCHING
        assert result.receipts[0].attempts == 1
        assert no_sleep == []

    def test_best_effort_failure_is_warning(self, tmp_path):
        result = execute_plan(_plan(
            _command("install", RunStage.INSTALLING, "pass"),
            _command("cleanup", RunStage.CLEANING_UP, "import sys; sys.exit(1)",
                     best_effort=True),
        ))
        assert result.ok
        assert result.receipts[-1].status == "warning"
        assert result.receipts[-1].metadata["error_kind"] == "CleanupFailure"
        assert len(result.warnings) == 1

    def test_stage_reentry_rejected(self):
        with pytest.raises(ValueError, match="re-enters"):
            execute_plan(_plan(
                _command("compile", RunStage.COMPILING, "pass"),
                _command("configure", RunStage.CONFIGURING, "pass"),
            ))
