"""Jinja2 rendering of the generated workspace's auxiliary files.

Templates live under ``templates/`` next to this module and mirror the layout
of the files they produce: ``server/Dockerfile.j2`` renders to
``<project>/server/Dockerfile``.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined

TEMPLATE_SUFFIX = ".j2"

_TEMPLATE_ROOT = Path(__file__).parent / "templates"


def output_name(template_name: str) -> str:
    """Return the project-relative path a template renders to."""
    return template_name.removesuffix(TEMPLATE_SUFFIX)


class TemplateRenderer:
    """Loads artifact templates and renders them with a project context.

    A variable missing from the context raises ``jinja2.UndefinedError``
    rather than rendering as an empty string.
    """

    def __init__(self, search_path: str | Path | None = None) -> None:
        self.search_path = Path(search_path or _TEMPLATE_ROOT)
        self.env = Environment(
            loader=FileSystemLoader(self.search_path),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, name: str, context: dict[str, Any]) -> str:
        return self.env.get_template(name).render(context)

    async def render_to_file(
        self,
        name: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render *name* and store it at *output_path*, creating parents."""
        text = self.render(name, context)
        target = Path(output_path)
        await asyncio.to_thread(_store, target, text)
        return target


def _store(target: Path, text: str) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")
