"""Access to the pre-built template tree.

``TEMPLATE_FILES`` is the whitelist shared by the runtime copy and the
build-time packager.  Entries that do not exist in the source tree are
skipped; an entry that exists is copied as a whole (directories recursively).
"""

from __future__ import annotations

import shutil
from collections.abc import Iterator
from pathlib import Path

TEMPLATE_FILES: tuple[str, ...] = (
    "client",
    "server",
    ".vscode",
    "docker-compose.yml",
    "docker-compose.dev.yml",
    "env.example",
    "eslint.config.mjs",
    "jest.config.ts",
    "jest.preset.js",
    "nx.json",
    "package.json",
    "tsconfig.base.json",
    "tsconfig.json",
    "README.md",
    ".gitignore",
)


class TemplateFileSet:
    """Ordered ``(source, target)`` pairs for the whitelisted entries."""

    def __init__(self, entries: tuple[str, ...] = TEMPLATE_FILES) -> None:
        self.entries = entries

    def pairs(self, source_root: Path, target_root: Path) -> Iterator[tuple[Path, Path]]:
        for entry in self.entries:
            yield source_root / entry, target_root / entry

    def copy(self, source_root: Path, target_root: Path, *, replace: bool = False) -> list[str]:
        """Copy every existing entry from *source_root* into *target_root*.

        With ``replace=True`` an already-present target entry is removed
        first, so a directory copy never keeps stale files.

        Returns:
            The entries that were copied, in whitelist order.
        """
        copied: list[str] = []
        for entry, (source, target) in zip(self.entries, self.pairs(source_root, target_root)):
            if not source.exists():
                continue
            if replace:
                _remove(target)
            copy_entry(source, target)
            copied.append(entry)
        return copied


class TemplateRepository:
    """Read-only accessor for a static template directory."""

    def __init__(self, template_dir: str | Path, file_set: TemplateFileSet | None = None) -> None:
        self.template_dir = Path(template_dir)
        self.file_set = file_set or TemplateFileSet()

    def exists(self) -> bool:
        return self.template_dir.is_dir()

    def copy_to(self, target: str | Path) -> list[str]:
        """Copy the template into *target* (created if needed).

        Raises:
            FileNotFoundError: If the template directory does not exist.
        """
        if not self.exists():
            raise FileNotFoundError(f"Template directory not found: {self.template_dir}")
        target_path = Path(target)
        target_path.mkdir(parents=True, exist_ok=True)
        return self.file_set.copy(self.template_dir, target_path)


def copy_entry(source: Path, target: Path) -> None:
    """Copy a file or a directory tree, creating parent directories."""
    target.parent.mkdir(parents=True, exist_ok=True)
    if source.is_dir():
        shutil.copytree(source, target, dirs_exist_ok=True)
    else:
        shutil.copy2(source, target)


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    elif path.exists() or path.is_symlink():
        path.unlink()
