"""Shared pytest fixtures for the monoscaffold test suite.

Provides reusable fixtures for:
- A small static template tree carrying the placeholder tokens
- A configuration pointing at that template
- A recording Step Runner that simulates the Nx generators
- Mock subprocess helpers
"""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from monoscaffold.builder.step_runner import Step, StepResult, StepRunner
from monoscaffold.config import Config


NX_VITE_CONFIG = textwrap.dedent(
    """\
    /// <reference types='vitest' />
    import { defineConfig } from 'vite';
    import react from '@vitejs/plugin-react';
    import { nxViteTsPaths } from '@nx/vite/plugins/nx-tsconfig-paths.plugin';

    export default defineConfig(() => ({
      root: __dirname,
      cacheDir: '../node_modules/.vite/client',
      server: {
        port: 4200,
        host: 'localhost',
      },
      plugins: [react(), nxViteTsPaths()],
      build: {
        outDir: '../dist/client',
        emptyOutDir: true,
      },
    }));
    """
)


# ---------------------------------------------------------------------------
# Static template
# ---------------------------------------------------------------------------


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """A minimal pre-built template with placeholder tokens."""
    root = tmp_path / "template"
    (root / "client" / "src").mkdir(parents=True)
    (root / "server" / "src").mkdir(parents=True)

    (root / "package.json").write_text(
        json.dumps(
            {
                "name": "@nest-react-template/source",
                "version": "0.0.0",
                "private": True,
                "scripts": {"dev": "nx run-many --target=serve --all"},
            },
            indent=2,
        ),
        encoding="utf-8",
    )
    (root / "README.md").write_text(
        "# NestJS + React Monorepo Template\n\n"
        "Welcome to nest-react-template.\n\n"
        "```bash\ncd nest-react-template\nnpm install\n```\n",
        encoding="utf-8",
    )
    (root / "nx.json").write_text('{"defaultBase": "main"}\n', encoding="utf-8")
    (root / ".gitignore").write_text("node_modules/\n", encoding="utf-8")
    (root / "client" / "src" / "main.tsx").write_text("export {};\n", encoding="utf-8")
    (root / "server" / "src" / "main.ts").write_text("export {};\n", encoding="utf-8")
    # Not whitelisted: must never be copied
    (root / "secret.txt").write_text("do not ship\n", encoding="utf-8")
    return root


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    """Parent directory in which projects are created."""
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def config(template_dir: Path) -> Config:
    """Configuration that reads the static template from ``template_dir``."""
    return Config(template_dir=template_dir)


# ---------------------------------------------------------------------------
# Recording Step Runner
# ---------------------------------------------------------------------------


class RecordingStepRunner(StepRunner):
    """Step Runner double that records steps instead of spawning processes.

    Successful steps reproduce the filesystem effects of the real generators
    that later steps and post-processing depend on:

    * ``workspace`` creates the workspace directory with a manifest.
    * ``app-client`` writes a CommonJS ``client/vite.config.ts``.

    A step listed in ``fail_on`` fails after applying its effects when
    ``partial`` is set (a generator that crashed half-way), otherwise before.
    """

    def __init__(
        self,
        fail_on: set[str] | None = None,
        partial: bool = True,
    ) -> None:
        super().__init__()
        self.fail_on = fail_on or set()
        self.partial = partial
        self.steps: list[Step] = []

    @property
    def step_ids(self) -> list[str]:
        return [step.id for step in self.steps]

    async def run(self, step: Step, index: int = 1, total: int = 1) -> StepResult:
        self.steps.append(step)
        failing = step.id in self.fail_on

        if not failing or self.partial:
            self._apply_effects(step)

        if failing:
            return StepResult(
                step_id=step.id,
                succeeded=False,
                error_detail=f"Exited with code 1: {step.display}",
                exit_code=1,
            )
        return StepResult(step_id=step.id, succeeded=True, exit_code=0)

    def _apply_effects(self, step: Step) -> None:
        if step.id == "workspace":
            name = step.command[3]
            root = step.cwd / name
            root.mkdir(parents=True, exist_ok=True)
            (root / "package.json").write_text(
                json.dumps(
                    {
                        "name": f"@{name}/source",
                        "version": "0.0.0",
                        "scripts": {},
                        "devDependencies": {"nx": "20.3.0"},
                    },
                    indent=2,
                ),
                encoding="utf-8",
            )
            (root / "nx.json").write_text("{}\n", encoding="utf-8")
        elif step.id == "app-server":
            (step.cwd / "server" / "src").mkdir(parents=True, exist_ok=True)
        elif step.id == "app-client":
            client = step.cwd / "client"
            client.mkdir(parents=True, exist_ok=True)
            if "--bundler=vite" in step.command:
                (client / "vite.config.ts").write_text(NX_VITE_CONFIG, encoding="utf-8")


@pytest.fixture
def recording_runner():
    """Factory for ``RecordingStepRunner`` instances.

    Usage:
        def test_pipeline(recording_runner):
            runner = recording_runner(fail_on={"workspace"})
    """

    def factory(fail_on: set[str] | None = None, partial: bool = True) -> RecordingStepRunner:
        return RecordingStepRunner(fail_on=fail_on, partial=partial)

    return factory


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """

    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory
