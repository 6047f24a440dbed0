"""monoscaffold configuration.

Typed configuration for a single scaffolding run. All settings use Pydantic v2
models so they are validated at construction time; the orchestrator settings
can also be read from environment variables.

Two groups of models live here:

* ``ProjectSpec`` / ``ConfigOptions`` / ``ToolVersions`` describe *what* to
  build. They are created once per run from CLI flags and prompt answers.
* ``Config`` (with ``TimeoutConfig`` and ``PortConfig``) holds the tuneable
  knobs of the orchestrator itself.
"""

from __future__ import annotations

import os
import re
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROJECT_NAME_PATTERN = re.compile(r"^[a-z0-9-]+$")

DEFAULT_PROJECT_NAME = "my-nest-react-app"

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "template"


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Strategy(str, Enum):
    """How the workspace is constructed."""

    STATIC = "static"
    GENERATOR = "generator"


class PackageManager(str, Enum):
    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"


class Bundler(str, Enum):
    VITE = "vite"
    WEBPACK = "webpack"


# ---------------------------------------------------------------------------
# Name validation
# ---------------------------------------------------------------------------


def validate_project_name(name: str) -> str | None:
    """Return an error message for an invalid project name, or ``None``.

    Names may only contain lowercase letters, digits and hyphens.
    """
    if not name:
        return "Project name is required"
    if not PROJECT_NAME_PATTERN.match(name):
        return "Project name can only contain lowercase letters, numbers, and hyphens"
    return None


# ---------------------------------------------------------------------------
# Run description
# ---------------------------------------------------------------------------


class ToolVersions(BaseModel):
    """Version pins for the external generator tools.

    Only the generator strategy reads these; a static copy ignores them.
    The plugin pins follow the ``nx`` pin when left unset.
    """

    nx: str = Field(default="latest", min_length=1)
    nest_plugin: str | None = Field(default=None)
    react_plugin: str | None = Field(default=None)

    @property
    def nest(self) -> str:
        return self.nest_plugin or self.nx

    @property
    def react(self) -> str:
        return self.react_plugin or self.nx


class ConfigOptions(BaseModel):
    """User choices that shape the generated workspace."""

    model_config = ConfigDict(frozen=True)

    package_manager: PackageManager = Field(default=PackageManager.NPM)
    bundler: Bundler = Field(default=Bundler.VITE)
    add_container_config: bool = Field(default=True)
    add_test_config: bool = Field(default=True)
    install_dependencies: bool = Field(default=True)


class ProjectSpec(BaseModel):
    """Identity and location of the project being scaffolded.

    Immutable once built. ``target_path`` is always absolute.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    target_path: Path
    strategy: Strategy = Field(default=Strategy.STATIC)

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        error = validate_project_name(value)
        if error:
            raise ValueError(error)
        return value

    @field_validator("target_path")
    @classmethod
    def _absolute(cls, value: Path) -> Path:
        return Path(value).resolve()

    @classmethod
    def for_name(
        cls,
        name: str,
        strategy: Strategy = Strategy.STATIC,
        parent: str | Path | None = None,
    ) -> "ProjectSpec":
        """Build a spec whose target is ``<parent or cwd>/<name>``."""
        base = Path(parent) if parent is not None else Path.cwd()
        return cls(name=name, target_path=base / name, strategy=strategy)

    @property
    def parent_dir(self) -> Path:
        return self.target_path.parent


# ---------------------------------------------------------------------------
# Orchestrator configuration
# ---------------------------------------------------------------------------


class TimeoutConfig(BaseModel):
    """Per-step timeouts in seconds."""

    workspace: int = Field(default=600, ge=1, description="create-nx-workspace")
    plugin: int = Field(default=300, ge=1, description="nx add <plugin>")
    generator: int = Field(default=300, ge=1, description="nx g <app>")
    test_config: int = Field(default=180, ge=1)
    install: int = Field(default=300, ge=1, description="<package-manager> install")


class PortConfig(BaseModel):
    """Fixed ports of the generated applications."""

    server: int = Field(default=3000, ge=1, le=65535)
    client: int = Field(default=4200, ge=1, le=65535)

    def as_dict(self) -> dict[str, int]:
        """Return a plain ``{service: port}`` mapping."""
        return {"server": self.server, "client": self.client}


class Config(BaseModel):
    """Global monoscaffold configuration.

    Instances are created once by the CLI entry point (usually through
    :meth:`from_env`) and passed to the pipeline.
    """

    template_dir: Path = Field(default=_DEFAULT_TEMPLATE_DIR)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    ports: PortConfig = Field(default_factory=PortConfig)
    versions: ToolVersions = Field(default_factory=ToolVersions)
    node_image: str = Field(default="node:20-alpine")
    npx_binary: str = Field(default="npx")

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            MONOSCAFFOLD_TEMPLATE_DIR, MONOSCAFFOLD_WORKSPACE_TIMEOUT,
            MONOSCAFFOLD_INSTALL_TIMEOUT, MONOSCAFFOLD_NX_VERSION,
            MONOSCAFFOLD_NODE_IMAGE.

        Raises:
            ValueError: A timeout variable is not a positive integer
                (``pydantic.ValidationError`` is a ``ValueError``).
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("MONOSCAFFOLD_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["MONOSCAFFOLD_TEMPLATE_DIR"])
        if os.environ.get("MONOSCAFFOLD_NODE_IMAGE"):
            kwargs["node_image"] = os.environ["MONOSCAFFOLD_NODE_IMAGE"]

        timeout_kwargs: dict[str, Any] = {}
        for field_name, variable in (
            ("workspace", "MONOSCAFFOLD_WORKSPACE_TIMEOUT"),
            ("install", "MONOSCAFFOLD_INSTALL_TIMEOUT"),
        ):
            seconds = _env_seconds(variable)
            if seconds is not None:
                timeout_kwargs[field_name] = seconds

        version_kwargs: dict[str, Any] = {}
        if os.environ.get("MONOSCAFFOLD_NX_VERSION"):
            version_kwargs["nx"] = os.environ["MONOSCAFFOLD_NX_VERSION"]

        return cls(
            timeouts=TimeoutConfig(**timeout_kwargs),
            versions=ToolVersions(**version_kwargs),
            **kwargs,
        )


def _env_seconds(variable: str) -> int | None:
    raw = os.environ.get(variable)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{variable} must be a whole number of seconds, got {raw!r}") from None
