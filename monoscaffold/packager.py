"""Build-time packaging of the static template.

Copies the whitelisted entries of a reference workspace into the template
directory consumed by the static strategy and writes a template-specific
``.gitignore``.  Re-running against the same reference workspace reproduces
the same output.

Usage::

    monoscaffold-build-template --source ../reference-workspace
    monoscaffold-build-template --source . --output ./template --clean
"""

from __future__ import annotations

import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path

from rich.markup import escape

from monoscaffold.scaffolder.template_repo import TemplateFileSet
from monoscaffold.utils import console, print_error, print_success

DEFAULT_OUTPUT_DIR = Path(__file__).parent / "template"

TEMPLATE_GITIGNORE = """\
# Dependencies
node_modules/
package-lock.json

# Build outputs
dist/
build/
out/

# Environment variables
.env
.env.local
.env.development.local
.env.test.local
.env.production.local

# Logs
logs
*.log
npm-debug.log*
yarn-debug.log*
yarn-error.log*

# Runtime data
pids
*.pid
*.seed
*.pid.lock

# Coverage directory used by tools like istanbul
coverage/
*.lcov

# nyc test coverage
.nyc_output

# Dependency directories
node_modules/
jspm_packages/

# Optional npm cache directory
.npm

# Optional eslint cache
.eslintcache

# Optional REPL history
.node_repl_history

# Output of 'npm pack'
*.tgz

# Yarn Integrity file
.yarn-integrity

# parcel-bundler cache
.cache
.parcel-cache

# Next.js build output
.next

# Nuxt.js build / generate output
.nuxt

# Storybook build outputs
.out
.storybook-out

# Temporary folders
tmp/
temp/

# Editor directories and files
.vscode/*
!.vscode/extensions.json
.idea
*.swp
*.swo
*~

# OS generated files
.DS_Store
.DS_Store?
._*
.Spotlight-V100
.Trashes
ehthumbs.db
Thumbs.db

# Nx
.nx/cache
.nx/workspace-data

# Test artifacts
test-output/
test-results/

# Docker
.dockerignore

# Database
*.sqlite
*.sqlite3
*.db
"""


@dataclass
class PackageReport:
    """What a packaging run copied and skipped."""

    template_dir: Path
    copied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    gitignore: Path | None = None


class TemplatePackager:
    """Copies a reference workspace's whitelisted entries into a template."""

    def __init__(self, file_set: TemplateFileSet | None = None) -> None:
        self.file_set = file_set or TemplateFileSet()

    def build(
        self,
        source_dir: str | Path,
        template_dir: str | Path = DEFAULT_OUTPUT_DIR,
        clean: bool = False,
    ) -> PackageReport:
        """Package *source_dir* into *template_dir*.

        Args:
            source_dir: Reference workspace to copy from.
            template_dir: Output directory (created if needed).
            clean: Remove the whole output directory before copying.

        Returns:
            A ``PackageReport`` listing copied and skipped entries.
        """
        source = Path(source_dir).resolve()
        output = Path(template_dir).resolve()

        if clean and output.exists():
            shutil.rmtree(output)
        output.mkdir(parents=True, exist_ok=True)

        report = PackageReport(template_dir=output)
        copied = set(self.file_set.copy(source, output, replace=True))
        for entry in self.file_set.entries:
            if entry in copied:
                report.copied.append(entry)
                console.print(f"[green]✓[/green] Copied {escape(entry)}")
            else:
                report.skipped.append(entry)

        gitignore = output / ".gitignore"
        gitignore.write_text(TEMPLATE_GITIGNORE, encoding="utf-8")
        report.gitignore = gitignore
        console.print("[green]✓[/green] Created template .gitignore")

        return report


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for ``monoscaffold-build-template``."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Package a reference workspace into the monoscaffold static template",
    )
    parser.add_argument(
        "--source", "-s",
        default=".",
        help="Reference workspace to copy from (default: current directory)",
    )
    parser.add_argument(
        "--output", "-o",
        default=str(DEFAULT_OUTPUT_DIR),
        help="Template output directory (default: the bundled template)",
    )
    parser.add_argument(
        "--clean",
        action="store_true",
        help="Remove the output directory before copying",
    )
    args = parser.parse_args(argv)

    source = Path(args.source)
    if not source.is_dir():
        print_error(f"Source directory not found: {source}")
        return 1

    console.print("Building template package...")
    report = TemplatePackager().build(source, args.output, clean=args.clean)
    if report.skipped:
        console.print(f"[dim]Skipped (not present): {escape(', '.join(report.skipped))}[/dim]")
    print_success("Template package built successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
