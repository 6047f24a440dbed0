"""Package manifest (``package.json``) scripts block and identity fields."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from monoscaffold.utils import load_json, save_json

MANIFEST_SCRIPTS: dict[str, str] = {
    "dev": "nx run-many --target=serve --projects=server,client --parallel",
    "dev:server": "nx serve server",
    "dev:client": "nx serve client",
    "build": "nx run-many --target=build --all",
    "build:server": "nx build server",
    "build:client": "nx build client",
    "start": "node dist/server/main.js",
    "start:prod": "NODE_ENV=production node dist/server/main.js",
    "test": "nx run-many --target=test --all",
    "test:server": "nx test server",
    "test:client": "nx test client",
    "lint": "nx run-many --target=lint --all",
    "lint:server": "nx lint server",
    "lint:client": "nx lint client",
    "docker:build": "docker compose build",
    "docker:up": "docker compose up -d",
    "docker:down": "docker compose down",
    "graph": "nx graph",
}

SCRIPT_DESCRIPTIONS: dict[str, str] = {
    "dev": "Start server and client in watch mode",
    "dev:server": "Start only the NestJS server",
    "dev:client": "Start only the React client",
    "build": "Build every application",
    "build:server": "Build the server",
    "build:client": "Build the client",
    "start": "Run the built server",
    "start:prod": "Run the built server in production mode",
    "test": "Run every test suite",
    "test:server": "Run server tests",
    "test:client": "Run client tests",
    "lint": "Lint every project",
    "lint:server": "Lint the server",
    "lint:client": "Lint the client",
    "docker:build": "Build the container images",
    "docker:up": "Start the containers in the background",
    "docker:down": "Stop and remove the containers",
    "graph": "Open the Nx dependency graph",
}


def merge_manifest(manifest: dict[str, Any], project_name: str) -> dict[str, Any]:
    """Return a copy of *manifest* with the project name and scripts block set.

    ``name`` is placed first; the scripts block is replaced by
    ``MANIFEST_SCRIPTS``.  Every other key is kept in its original order.
    """
    merged: dict[str, Any] = {"name": project_name}
    for key, value in manifest.items():
        if key not in ("name", "scripts"):
            merged[key] = value
    merged["scripts"] = dict(MANIFEST_SCRIPTS)
    return merged


async def write_manifest(root: Path, project_name: str) -> Path:
    """Merge identity and scripts into ``<root>/package.json``.

    A missing manifest is created from scratch.
    """
    path = root / "package.json"
    existing = load_json(path) if path.exists() else {}
    await save_json(merge_manifest(existing, project_name), path)
    return path


def scoped_package_name(project_name: str) -> str:
    """``demo-app`` -> ``@demo-app/source``, the Nx workspace root package name."""
    return f"@{project_name}/source"


async def stamp_manifest_name(root: Path, project_name: str) -> Path | None:
    """Set the ``name`` field of ``<root>/package.json`` to the scoped name.

    The template's own name is replaced whatever it is; every other key and
    the key order are kept.  Returns ``None`` when there is no manifest.
    """
    path = root / "package.json"
    if not path.is_file():
        return None
    manifest = load_json(path)
    manifest["name"] = scoped_package_name(project_name)
    await save_json(manifest, path)
    return path
