"""Unit tests for the Step Runner (monoscaffold.builder.step_runner).

Tests cover:
- Step display / label helpers
- StepResult.summary()
- StepRunner.run: success, non-zero exit, timeout, missing binary,
  permission denied, inherit mode
- StepRunner.run_all halting at the first failure
"""

from __future__ import annotations

import asyncio
import os
import signal
import sys
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from monoscaffold.builder.step_runner import Step, StepMode, StepResult, StepRunner

PYTHON = sys.executable


def _python_step(step_id: str, code: str, cwd: Path, timeout: float = 30, **kwargs) -> Step:
    return Step(id=step_id, command=[PYTHON, "-c", code], cwd=cwd, timeout=timeout, **kwargs)


# ---------------------------------------------------------------------------
# Step / StepResult
# ---------------------------------------------------------------------------


class TestStep:
    @pytest.mark.unit
    def test_display_joins_command(self, tmp_path: Path):
        step = Step(id="install", command=["npm", "install"], cwd=tmp_path, timeout=10)
        assert step.display == "npm install"

    @pytest.mark.unit
    def test_label_prefers_description(self, tmp_path: Path):
        step = Step(id="install", command=["npm"], cwd=tmp_path, timeout=10,
                    description="Installing dependencies")
        assert step.label == "Installing dependencies"

    @pytest.mark.unit
    def test_label_falls_back_to_id(self, tmp_path: Path):
        step = Step(id="install", command=["npm"], cwd=tmp_path, timeout=10)
        assert step.label == "install"

    @pytest.mark.unit
    def test_default_mode_is_capture(self, tmp_path: Path):
        step = Step(id="x", command=["true"], cwd=tmp_path, timeout=1)
        assert step.mode is StepMode.CAPTURE


class TestStepResult:
    @pytest.mark.unit
    def test_default_values(self):
        result = StepResult(step_id="workspace", succeeded=True)
        assert result.error_detail is None
        assert result.exit_code == -1
        assert result.timed_out is False
        assert result.stdout == ""

    @pytest.mark.unit
    def test_success_summary(self):
        result = StepResult(step_id="workspace", succeeded=True, duration_seconds=2.5)
        summary = result.summary()
        assert "workspace" in summary
        assert "OK" in summary
        assert "2.5s" in summary

    @pytest.mark.unit
    def test_failure_summary_shows_first_detail_line(self):
        result = StepResult(
            step_id="plugin-nest",
            succeeded=False,
            error_detail="Exited with code 1: npx nx add @nx/nest\nnpm ERR! network",
        )
        summary = result.summary()
        assert "FAILED" in summary
        assert "Exited with code 1" in summary
        assert "network" not in summary


# ---------------------------------------------------------------------------
# StepRunner.run
# ---------------------------------------------------------------------------


class TestStepRunnerRun:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_success(self, tmp_path: Path):
        runner = StepRunner()
        result = await runner.run(_python_step("ok", "print('done')", tmp_path))
        assert result.succeeded is True
        assert result.exit_code == 0
        assert result.error_detail is None
        assert "done" in result.stdout

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_runs_in_step_cwd(self, tmp_path: Path):
        runner = StepRunner()
        step = _python_step("cwd", "open('marker.txt', 'w').write('x')", tmp_path)
        result = await runner.run(step)
        assert result.succeeded is True
        assert (tmp_path / "marker.txt").exists()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_non_zero_exit_fails(self, tmp_path: Path):
        runner = StepRunner()
        code = "import sys; sys.stderr.write('boom\\n'); sys.exit(2)"
        result = await runner.run(_python_step("bad", code, tmp_path))
        assert result.succeeded is False
        assert result.exit_code == 2
        assert result.error_detail.startswith("Exited with code 2:")
        assert "boom" in result.error_detail
        assert result.timed_out is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_timeout_fails(self, tmp_path: Path):
        runner = StepRunner()
        step = _python_step("slow", "import time; time.sleep(10)", tmp_path, timeout=0.5)
        result = await runner.run(step)
        assert result.succeeded is False
        assert result.timed_out is True
        assert result.error_detail.startswith("Timed out after 0.5s")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_binary_fails_without_raising(self, tmp_path: Path):
        runner = StepRunner()
        step = Step(id="workspace", command=["nonexistent-binary-12345-xyz"],
                    cwd=tmp_path, timeout=5)
        result = await runner.run(step)
        assert result.succeeded is False
        assert "Command not found" in result.error_detail
        assert "nonexistent-binary-12345-xyz" in result.error_detail

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_permission_denied_fails_without_raising(self, tmp_path: Path):
        runner = StepRunner()
        step = Step(id="install", command=["npm", "install"], cwd=tmp_path, timeout=5)
        with patch(
            "asyncio.create_subprocess_exec",
            side_effect=PermissionError("no perms"),
        ):
            result = await runner.run(step)
        assert result.succeeded is False
        assert "Permission denied" in result.error_detail

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_mocked_process_output(self, tmp_path: Path, mock_subprocess):
        proc = mock_subprocess(stdout="", stderr="npm ERR! 404", returncode=1)
        runner = StepRunner()
        step = Step(id="install", command=["npm", "install"], cwd=tmp_path, timeout=5)
        with patch("asyncio.create_subprocess_exec", return_value=proc) as spawn:
            result = await runner.run(step)
        assert result.succeeded is False
        assert result.error_detail == "Exited with code 1: npm install\nnpm ERR! 404"
        assert spawn.call_args.kwargs["cwd"] == str(tmp_path)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_timeout_kills_mocked_process(self, tmp_path: Path, mock_subprocess):
        proc = mock_subprocess()
        proc.communicate = AsyncMock(side_effect=asyncio.TimeoutError())
        runner = StepRunner()
        step = Step(id="workspace", command=["npx", "create-nx-workspace"],
                    cwd=tmp_path, timeout=1)
        with patch("asyncio.create_subprocess_exec", return_value=proc), \
                patch("monoscaffold.utils.os.killpg") as killpg:
            result = await runner.run(step)
        if os.name == "posix":
            killpg.assert_called_once_with(proc.pid, signal.SIGKILL)
        else:
            proc.kill.assert_called_once()
        assert result.timed_out is True
        assert result.succeeded is False

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_inherit_mode_does_not_capture(self, tmp_path: Path, mock_subprocess):
        proc = mock_subprocess(returncode=0)
        proc.communicate = AsyncMock(return_value=(None, None))
        runner = StepRunner()
        step = Step(id="workspace", command=["npx", "create-nx-workspace"],
                    cwd=tmp_path, timeout=5, mode=StepMode.INHERIT)
        with patch("asyncio.create_subprocess_exec", return_value=proc) as spawn:
            result = await runner.run(step, index=1, total=5)
        assert result.succeeded is True
        assert spawn.call_args.kwargs["stdout"] is None
        assert spawn.call_args.kwargs["stderr"] is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_env_is_passed(self, tmp_path: Path):
        runner = StepRunner(env={"MONOSCAFFOLD_TEST": "yes"})
        step = _python_step(
            "env", "import os; print(os.environ['MONOSCAFFOLD_TEST'])", tmp_path
        )
        result = await runner.run(step)
        assert result.succeeded is True
        assert "yes" in result.stdout


# ---------------------------------------------------------------------------
# StepRunner.run_all
# ---------------------------------------------------------------------------


class TestStepRunnerRunAll:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_all_succeed_in_order(self, tmp_path: Path):
        runner = StepRunner()
        log = tmp_path / "log.txt"
        steps = [
            _python_step(name, f"open({str(log)!r}, 'a').write('{name}\\n')", tmp_path)
            for name in ("first", "second", "third")
        ]
        results = await runner.run_all(steps)
        assert [r.step_id for r in results] == ["first", "second", "third"]
        assert all(r.succeeded for r in results)
        assert log.read_text().split() == ["first", "second", "third"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_halts_after_first_failure(self, tmp_path: Path):
        runner = StepRunner()
        marker = tmp_path / "third-ran"
        steps = [
            _python_step("first", "pass", tmp_path),
            _python_step("second", "import sys; sys.exit(1)", tmp_path),
            _python_step("third", f"open({str(marker)!r}, 'w').write('x')", tmp_path),
        ]
        results = await runner.run_all(steps)
        assert [r.step_id for r in results] == ["first", "second"]
        assert results[-1].succeeded is False
        assert not marker.exists()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_sequence(self):
        assert await StepRunner().run_all([]) == []
