"""Container artifacts for the generated workspace.

One compose descriptor at the project root plus a Dockerfile per application,
all rendered from the Jinja2 templates in ``templates/``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from .templates import TemplateRenderer, output_name

# Artifact label -> template name
CONTAINER_TEMPLATES: dict[str, str] = {
    "compose": "docker-compose.yml.j2",
    "server": "server/Dockerfile.j2",
    "client": "client/Dockerfile.j2",
}


class DockerGenerator:
    """Writes ``docker-compose.yml``, ``server/Dockerfile`` and ``client/Dockerfile``."""

    def __init__(self, renderer: TemplateRenderer) -> None:
        self.renderer = renderer

    async def generate_all(self, output_dir: Path, context: dict[str, Any]) -> dict[str, Path]:
        """Render every container artifact under *output_dir*.

        *context* must provide ``project_name``, ``ports`` (``server`` and
        ``client``) and ``node_image``.

        Returns:
            ``{"compose": ..., "server": ..., "client": ...}`` mapped to the
            written paths.
        """
        root = Path(output_dir)
        written: dict[str, Path] = {}
        for label, template in CONTAINER_TEMPLATES.items():
            written[label] = await self.renderer.render_to_file(
                template, root / output_name(template), context
            )
        return written
