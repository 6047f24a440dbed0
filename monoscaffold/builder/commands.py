"""Construction of the generator-pipeline step sequence.

The order is fixed and significant: the workspace must exist before plugins
are added, and plugins must be installed before applications are generated
into the workspace.
"""

from __future__ import annotations

from monoscaffold.config import (
    Bundler,
    Config,
    ConfigOptions,
    PackageManager,
    ProjectSpec,
    ToolVersions,
)

from .step_runner import Step, StepMode

WORKSPACE_STEP = "workspace"
NEST_PLUGIN_STEP = "plugin-nest"
REACT_PLUGIN_STEP = "plugin-react"
SERVER_APP_STEP = "app-server"
CLIENT_APP_STEP = "app-client"
TEST_CONFIG_STEP = "test-config"
INSTALL_STEP = "install"

SERVER_APP = "server"
CLIENT_APP = "client"


def build_generator_steps(
    spec: ProjectSpec,
    options: ConfigOptions,
    versions: ToolVersions,
    config: Config,
) -> list[Step]:
    """Return the ordered steps that build an Nx workspace for *spec*."""
    npx = config.npx_binary
    timeouts = config.timeouts
    root = spec.target_path

    steps = [
        Step(
            id=WORKSPACE_STEP,
            command=[
                npx,
                "--yes",
                f"create-nx-workspace@{versions.nx}",
                spec.name,
                "--preset=apps",
                f"--packageManager={options.package_manager.value}",
                "--nxCloud=skip",
                "--interactive=false",
            ],
            cwd=spec.parent_dir,
            timeout=timeouts.workspace,
            mode=StepMode.INHERIT,
            description="Creating Nx workspace",
        ),
        Step(
            id=NEST_PLUGIN_STEP,
            command=[npx, "nx", "add", f"@nx/nest@{versions.nest}"],
            cwd=root,
            timeout=timeouts.plugin,
            mode=StepMode.INHERIT,
            description="Adding NestJS plugin",
        ),
        Step(
            id=REACT_PLUGIN_STEP,
            command=[npx, "nx", "add", f"@nx/react@{versions.react}"],
            cwd=root,
            timeout=timeouts.plugin,
            mode=StepMode.INHERIT,
            description="Adding React plugin",
        ),
        Step(
            id=SERVER_APP_STEP,
            command=[
                npx,
                "nx",
                "g",
                "@nx/nest:application",
                f"--directory={SERVER_APP}",
                f"--name={SERVER_APP}",
                "--linter=eslint",
                f"--unitTestRunner={_server_test_runner(options)}",
                "--e2eTestRunner=none",
                "--no-interactive",
            ],
            cwd=root,
            timeout=timeouts.generator,
            mode=StepMode.INHERIT,
            description="Generating NestJS server application",
        ),
        Step(
            id=CLIENT_APP_STEP,
            command=[
                npx,
                "nx",
                "g",
                "@nx/react:application",
                f"--directory={CLIENT_APP}",
                f"--name={CLIENT_APP}",
                f"--bundler={options.bundler.value}",
                "--style=css",
                "--routing=true",
                "--linter=eslint",
                f"--unitTestRunner={_client_test_runner(options)}",
                "--e2eTestRunner=none",
                "--no-interactive",
            ],
            cwd=root,
            timeout=timeouts.generator,
            mode=StepMode.INHERIT,
            description="Generating React client application",
        ),
    ]

    if options.add_test_config:
        steps.append(
            Step(
                id=TEST_CONFIG_STEP,
                command=[npx, "nx", "add", f"@nx/jest@{versions.nx}"],
                cwd=root,
                timeout=timeouts.test_config,
                mode=StepMode.CAPTURE,
                description="Configuring workspace test setup",
            )
        )

    return steps


def build_install_step(spec: ProjectSpec, options: ConfigOptions, config: Config) -> Step:
    """Return the dependency install step for the chosen package manager."""
    return Step(
        id=INSTALL_STEP,
        command=install_command(options.package_manager),
        cwd=spec.target_path,
        timeout=config.timeouts.install,
        mode=StepMode.CAPTURE,
        description="Installing dependencies (this may take a few minutes)",
    )


def install_command(package_manager: PackageManager) -> list[str]:
    return [package_manager.value, "install"]


def run_script_command(package_manager: PackageManager, script: str) -> str:
    """Return the shell line that runs a manifest script, e.g. ``npm run dev``."""
    if package_manager is PackageManager.NPM:
        return f"npm run {script}"
    return f"{package_manager.value} {script}"


def _server_test_runner(options: ConfigOptions) -> str:
    return "jest" if options.add_test_config else "none"


def _client_test_runner(options: ConfigOptions) -> str:
    if not options.add_test_config:
        return "none"
    return "vitest" if options.bundler is Bundler.VITE else "jest"
