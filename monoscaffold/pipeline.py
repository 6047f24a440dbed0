"""monoscaffold pipeline orchestrator and CLI entry point.

Runs one scaffolding job end to end:

1. Check preconditions (valid name, target directory absent).
2. Materialize the workspace (static copy or generator pipeline).
3. Roll back the target directory on any failure.
4. Optionally install dependencies (best effort, never rolled back).
5. Report a summary.

Usage::

    monoscaffold my-app
    monoscaffold my-app --yes --no-install
    monoscaffold my-app --strategy generator --bundler webpack --nx-version 20.3.0
"""

from __future__ import annotations

import asyncio
import sys
import time
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError
from rich.markup import escape
from rich.panel import Panel

from monoscaffold import __version__
from monoscaffold.builder.commands import (
    build_install_step,
    install_command,
    run_script_command,
)
from monoscaffold.builder.step_runner import StepResult, StepRunner
from monoscaffold.config import (
    DEFAULT_PROJECT_NAME,
    Bundler,
    Config,
    ConfigOptions,
    PackageManager,
    ProjectSpec,
    Strategy,
    ToolVersions,
)
from monoscaffold.errors import PreconditionError
from monoscaffold.results import PipelineOutcome
from monoscaffold.rollback import RollbackManager
from monoscaffold.scaffolder.generator import WorkspaceMaterializer
from monoscaffold.utils import (
    console,
    format_command,
    format_duration,
    print_error,
    print_hint,
    print_success,
    print_summary_table,
    print_warning,
)


class Prompter(Protocol):
    def ask_project_name(self, default: str = ...) -> str | None: ...

    def ask_options(self, defaults: ConfigOptions | None = ...) -> ConfigOptions | None: ...


# ---------------------------------------------------------------------------
# Pipeline Orchestrator
# ---------------------------------------------------------------------------


class ScaffoldPipeline:
    """Drives a single scaffolding run with an all-or-nothing guarantee.

    Attributes:
        config: Orchestrator configuration.
        runner: Step Runner shared by the materializer and the install step.
        materializer: Builds the workspace for the selected strategy.
    """

    def __init__(
        self,
        config: Config,
        runner: StepRunner | None = None,
        materializer: WorkspaceMaterializer | None = None,
    ) -> None:
        self.config = config
        self.runner = runner or StepRunner()
        self.materializer = materializer or WorkspaceMaterializer(config, runner=self.runner)

    async def run(
        self,
        spec: ProjectSpec,
        options: ConfigOptions,
        versions: ToolVersions | None = None,
    ) -> PipelineOutcome:
        """Execute the run for *spec*.

        Returns:
            The final ``PipelineOutcome``.  A failed outcome means the target
            directory has already been removed.

        Raises:
            PreconditionError: If the target directory already exists (raised
                by the materializer before it writes anything).  No filesystem
                mutation has happened and nothing is rolled back.
        """
        start = time.monotonic()
        self._print_banner(spec, options)

        rollback = RollbackManager(spec.target_path)
        try:
            outcome = await self.materializer.materialize(spec, options, versions)
        except PreconditionError:
            raise
        except BaseException:
            rollback.rollback()
            raise

        if not outcome.succeeded:
            self._print_failure(outcome)
            rollback.rollback()
            return outcome

        if options.install_dependencies:
            outcome.install_result = await self._install(spec, options)

        self._print_final_summary(spec, options, outcome, time.monotonic() - start)
        return outcome

    async def _install(self, spec: ProjectSpec, options: ConfigOptions) -> StepResult:
        """Run the install step.  A failure here keeps the project directory."""
        step = build_install_step(spec, options, self.config)
        result = await self.runner.run(step)
        if not result.succeeded:
            print_warning("Failed to install dependencies")
            if result.error_detail:
                console.print(f"[dim]{escape(result.error_detail)}[/dim]")
            console.print("[yellow]You can install dependencies manually by running:[/yellow]")
            print_hint(f"cd {spec.name}")
            print_hint(format_command(install_command(options.package_manager)))
        return result

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _print_banner(self, spec: ProjectSpec, options: ConfigOptions) -> None:
        console.print(
            Panel(
                f"[bold bright_cyan]Create NestJS + React Monorepo[/bold bright_cyan]\n"
                f"Project  : {escape(spec.name)}\n"
                f"Location : {escape(str(spec.target_path))}\n"
                f"Strategy : {spec.strategy.value}\n"
                f"Manager  : {options.package_manager.value}",
                title="[bold]monoscaffold[/bold]",
                border_style="bright_cyan",
            )
        )

    def _print_failure(self, outcome: PipelineOutcome) -> None:
        print_error(f"Error creating project: step '{outcome.failed_step}' failed.")
        for result in outcome.results:
            console.print(f"  {result.summary()}")
        if outcome.reason:
            console.print(f"[red]{escape(outcome.reason)}[/red]")

    def _print_final_summary(
        self,
        spec: ProjectSpec,
        options: ConfigOptions,
        outcome: PipelineOutcome,
        total_elapsed: float,
    ) -> None:
        pm = options.package_manager
        install_state = "skipped"
        if outcome.install_result is not None:
            install_state = "failed" if outcome.install_failed else "installed"

        print_summary_table(
            {
                "Project": spec.name,
                "Location": str(spec.target_path),
                "Strategy": spec.strategy.value,
                "Steps run": str(len(outcome.results)),
                "Files written": str(len(outcome.files_written)),
                "Dependencies": install_state,
                "Duration": format_duration(total_elapsed),
            },
            title="Scaffold Results",
        )

        print_success("Success! Your monorepo is ready.")
        console.print("[blue]Next steps:[/blue]")
        print_hint(f"cd {spec.name}")
        if install_state != "installed":
            print_hint(format_command(install_command(pm)))
        print_hint(run_script_command(pm, "dev"))
        console.print("[blue]Happy coding![/blue]")


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser():
    import argparse

    parser = argparse.ArgumentParser(
        prog="monoscaffold",
        description="Create a new NestJS + React monorepo with TypeScript",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  monoscaffold my-app\n"
            "  monoscaffold my-app --yes --no-install\n"
            "  monoscaffold my-app --strategy generator --bundler webpack\n"
        ),
    )
    parser.add_argument("project_name", nargs="?", default=None, help="Name of the project")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-y", "--yes",
        action="store_true",
        help="Skip prompts and use defaults",
    )
    parser.add_argument(
        "--no-install",
        dest="install",
        action="store_false",
        help="Skip installing dependencies",
    )
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in Strategy],
        default=Strategy.STATIC.value,
        help="Copy the bundled template (static) or run the Nx generators (generator)",
    )
    parser.add_argument(
        "--package-manager",
        choices=[pm.value for pm in PackageManager],
        default=PackageManager.NPM.value,
    )
    parser.add_argument(
        "--bundler",
        choices=[b.value for b in Bundler],
        default=Bundler.VITE.value,
    )
    parser.add_argument("--no-docker", dest="docker", action="store_false",
                        help="Do not generate container configuration")
    parser.add_argument("--no-tests", dest="tests", action="store_false",
                        help="Do not generate test configuration")
    parser.add_argument("--nx-version", default=None, help="create-nx-workspace / nx version")
    parser.add_argument("--nest-version", default=None, help="@nx/nest plugin version")
    parser.add_argument("--react-version", default=None, help="@nx/react plugin version")
    parser.add_argument("--template-dir", default=None, help="Static template directory")
    return parser


def _build_spec(name: str, strategy: Strategy) -> ProjectSpec:
    try:
        return ProjectSpec.for_name(name, strategy)
    except ValidationError as exc:
        message = exc.errors()[0].get("msg", str(exc)).removeprefix("Value error, ")
        raise PreconditionError(f"invalid project name '{name}': {message}") from exc


def main(argv: list[str] | None = None, prompter: Prompter | None = None) -> int:
    """CLI entry point for ``monoscaffold``.  Returns the process exit code."""
    args = _build_parser().parse_args(argv)

    try:
        config = Config.from_env()
    except ValueError as exc:
        print_error(f"Error: invalid configuration: {escape(str(exc))}")
        return 1
    if args.template_dir:
        config.template_dir = Path(args.template_dir)
    versions = ToolVersions(
        nx=args.nx_version or config.versions.nx,
        nest_plugin=args.nest_version,
        react_plugin=args.react_version,
    )
    config.versions = versions

    if prompter is None and not args.yes:
        from monoscaffold.prompts import PromptProvider

        prompter = PromptProvider()

    # Project name
    name = args.project_name
    if not name:
        if args.yes or prompter is None:
            name = DEFAULT_PROJECT_NAME
        else:
            name = prompter.ask_project_name(DEFAULT_PROJECT_NAME)
            if not name:
                print_error("Operation cancelled.")
                return 0

    strategy = Strategy(args.strategy)
    try:
        spec = _build_spec(name, strategy)
    except PreconditionError as exc:
        print_error(f"Error: {escape(str(exc))}")
        return 1

    # Workspace options
    options = ConfigOptions(
        package_manager=PackageManager(args.package_manager),
        bundler=Bundler(args.bundler),
        add_container_config=args.docker,
        add_test_config=args.tests,
        install_dependencies=args.install,
    )
    if strategy is Strategy.GENERATOR and not args.yes and prompter is not None:
        answered = prompter.ask_options(options)
        if answered is None:
            print_error("Operation cancelled.")
            return 0
        options = answered

    # ScaffoldPipeline.run checks the target and rolls back on its own.
    try:
        outcome = asyncio.run(ScaffoldPipeline(config).run(spec, options, versions))
    except PreconditionError as exc:
        print_error(f"Error: {escape(str(exc))}")
        return 1
    except Exception as exc:
        print_error(f"Error creating project: {escape(str(exc))}")
        return 1

    return 0 if outcome.succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
