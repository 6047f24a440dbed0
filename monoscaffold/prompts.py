"""Interactive prompts built on ``rich.prompt``.

The pipeline only depends on the two methods of ``PromptProvider``, so tests
can pass any object that answers them.
"""

from __future__ import annotations

from rich.console import Console
from rich.prompt import Confirm, Prompt

from monoscaffold.config import (
    DEFAULT_PROJECT_NAME,
    Bundler,
    ConfigOptions,
    PackageManager,
    validate_project_name,
)
from monoscaffold.utils import console as default_console


class PromptProvider:
    """Collects the project name and workspace options from the terminal."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or default_console

    def ask_project_name(self, default: str = DEFAULT_PROJECT_NAME) -> str | None:
        """Ask for a project name until a valid one is entered.

        Returns:
            The name, or ``None`` if the user cancelled (Ctrl+C, Ctrl+D or an
            empty answer with no default).
        """
        while True:
            try:
                answer = Prompt.ask("Project name", default=default, console=self.console)
            except (KeyboardInterrupt, EOFError):
                return None

            answer = (answer or "").strip()
            if not answer:
                return None

            error = validate_project_name(answer)
            if error is None:
                return answer
            self.console.print(f"[red]{error}[/red]")

    def ask_options(self, defaults: ConfigOptions | None = None) -> ConfigOptions | None:
        """Ask for package manager, bundler and optional configuration.

        ``install_dependencies`` is not asked; it is taken from *defaults*.
        Returns ``None`` if the user cancelled.
        """
        base = defaults or ConfigOptions()
        try:
            package_manager = Prompt.ask(
                "Package manager",
                choices=[pm.value for pm in PackageManager],
                default=base.package_manager.value,
                console=self.console,
            )
            bundler = Prompt.ask(
                "Client bundler",
                choices=[b.value for b in Bundler],
                default=base.bundler.value,
                console=self.console,
            )
            add_container_config = Confirm.ask(
                "Add Docker configuration?",
                default=base.add_container_config,
                console=self.console,
            )
            add_test_config = Confirm.ask(
                "Add test configuration?",
                default=base.add_test_config,
                console=self.console,
            )
        except (KeyboardInterrupt, EOFError):
            return None

        return ConfigOptions(
            package_manager=PackageManager(package_manager),
            bundler=Bundler(bundler),
            add_container_config=add_container_config,
            add_test_config=add_test_config,
            install_dependencies=base.install_dependencies,
        )
