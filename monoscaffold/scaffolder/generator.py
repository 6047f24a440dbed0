"""Workspace materialization.

Builds a project directory with one of two strategies:

* ``static``: copy the pre-built template tree, set the manifest name and
  stamp the project name over the readme placeholders.
* ``generator``: drive the Nx generators through the Step Runner, then
  post-process the result in-process (vite config normalisation, container
  files, manifest scripts, readme).

Step failures and filesystem errors are returned as a failed
``PipelineOutcome``; removing the partial directory is left to the caller.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from monoscaffold.builder.commands import (
    build_generator_steps,
    install_command,
    run_script_command,
)
from monoscaffold.builder.step_runner import StepRunner
from monoscaffold.config import (
    Bundler,
    Config,
    ConfigOptions,
    ProjectSpec,
    Strategy,
    ToolVersions,
)
from monoscaffold.errors import FilesystemError, PreconditionError
from monoscaffold.results import PipelineOutcome
from monoscaffold.utils import console, format_command, print_success

from .docker_gen import DockerGenerator
from .manifest import (
    MANIFEST_SCRIPTS,
    SCRIPT_DESCRIPTIONS,
    stamp_manifest_name,
    write_manifest,
)
from .rewriter import VITE_CONFIG_FILE, apply_rules, identity_rules, module_style_rules
from .template_repo import TemplateRepository
from .templates import TemplateRenderer

CREATE_DIRECTORY_PHASE = "create-directory"
COPY_TEMPLATE_PHASE = "copy-template"
CONFIGURE_PHASE = "configure-project"
REWRITE_VITE_PHASE = "rewrite-vite-config"
WRITE_ARTIFACTS_PHASE = "write-artifacts"


class WorkspaceMaterializer:
    """Chooses and executes a construction strategy for one project.

    Given a ``ProjectSpec`` and ``ConfigOptions``, produces either a copy of
    the static template or an Nx workspace assembled by external generators.
    """

    def __init__(
        self,
        config: Config,
        runner: StepRunner | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.config = config
        self.runner = runner or StepRunner()
        self.renderer = renderer or TemplateRenderer()
        self.docker_gen = DockerGenerator(self.renderer)
        self.template_repo = TemplateRepository(config.template_dir)

    # -- Public API --------------------------------------------------------

    async def materialize(
        self,
        spec: ProjectSpec,
        options: ConfigOptions,
        versions: ToolVersions | None = None,
    ) -> PipelineOutcome:
        """Build the workspace for *spec*.

        Raises:
            PreconditionError: If the target directory already exists.  Nothing
                is touched in that case.
        """
        if spec.target_path.exists():
            raise PreconditionError(f"Directory {spec.name} already exists.")

        try:
            if spec.strategy is Strategy.STATIC:
                return await self._materialize_static(spec)
            return await self._materialize_generated(
                spec, options, versions or self.config.versions
            )
        except FilesystemError as exc:
            return PipelineOutcome.failed(exc.phase, str(exc))

    # -- Static strategy ---------------------------------------------------

    async def _materialize_static(self, spec: ProjectSpec) -> PipelineOutcome:
        target = spec.target_path

        with console.status("Creating project directory..."):
            try:
                await asyncio.to_thread(target.mkdir, parents=True)
            except OSError as exc:
                raise FilesystemError(CREATE_DIRECTORY_PHASE, str(exc)) from exc
        print_success("Project directory created")

        with console.status("Copying template files..."):
            try:
                copied = await asyncio.to_thread(self.template_repo.copy_to, target)
            except OSError as exc:
                raise FilesystemError(COPY_TEMPLATE_PHASE, str(exc)) from exc
        print_success("Template files copied")

        with console.status("Configuring project..."):
            try:
                await stamp_manifest_name(target, spec.name)
                await asyncio.to_thread(apply_rules, target, identity_rules(spec.name))
            except (OSError, ValueError) as exc:
                raise FilesystemError(CONFIGURE_PHASE, str(exc)) from exc
        print_success("Project configured")

        return PipelineOutcome.success(files_written=copied)

    # -- Generator strategy ------------------------------------------------

    async def _materialize_generated(
        self,
        spec: ProjectSpec,
        options: ConfigOptions,
        versions: ToolVersions,
    ) -> PipelineOutcome:
        steps = build_generator_steps(spec, options, versions, self.config)
        results = await self.runner.run_all(steps)
        outcome = PipelineOutcome.from_results(results)
        if not outcome.succeeded:
            return outcome

        if options.bundler is Bundler.VITE:
            try:
                await asyncio.to_thread(
                    apply_rules, spec.target_path, module_style_rules(VITE_CONFIG_FILE)
                )
            except OSError as exc:
                error = FilesystemError(REWRITE_VITE_PHASE, str(exc))
                return PipelineOutcome.failed(error.phase, str(error), results)

        with console.status("Writing workspace configuration..."):
            try:
                written = await self._write_artifacts(spec, options)
            except OSError as exc:
                error = FilesystemError(WRITE_ARTIFACTS_PHASE, str(exc))
                return PipelineOutcome.failed(error.phase, str(error), results)
        print_success("Workspace configuration written")

        return PipelineOutcome.success(results, files_written=written)

    async def _write_artifacts(self, spec: ProjectSpec, options: ConfigOptions) -> list[str]:
        """Write container files, manifest scripts and readme (no subprocesses)."""
        root = spec.target_path
        context = self._build_context(spec, options)
        written: list[Path] = []

        if options.add_container_config:
            docker_files = await self.docker_gen.generate_all(root, context)
            written.extend(docker_files.values())

        written.append(await write_manifest(root, spec.name))
        written.append(
            await self.renderer.render_to_file("README.md.j2", root / "README.md", context)
        )
        return [p.relative_to(root).as_posix() for p in written]

    # -- Context building --------------------------------------------------

    def _build_context(self, spec: ProjectSpec, options: ConfigOptions) -> dict[str, Any]:
        """Build the Jinja2 template context for auxiliary artifacts."""
        pm = options.package_manager
        scripts = [
            {
                "name": name,
                "command": command,
                "description": SCRIPT_DESCRIPTIONS[name],
                "run_line": run_script_command(pm, name),
            }
            for name, command in MANIFEST_SCRIPTS.items()
        ]
        return {
            "project_name": spec.name,
            "package_manager": pm.value,
            "install_line": format_command(install_command(pm)),
            "graph_line": run_script_command(pm, "graph"),
            "scripts": scripts,
            "ports": self.config.ports.as_dict(),
            "node_image": self.config.node_image,
            "include_docker": options.add_container_config,
        }
