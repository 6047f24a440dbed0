"""Idempotent, pattern-based text rewriting of generated files.

A ``RewriteRule`` pairs a regular expression with a replacement and the one
file it is allowed to touch.  Every rule's pattern matches only the
*pre-rewrite* form of the text, so running a rule set a second time over its
own output is a no-op.  A missing target file is skipped, since not every
strategy produces every file.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Union

# Placeholder tokens carried by the pre-built template.
TEMPLATE_NAME_TOKEN = "nest-react-template"
TEMPLATE_TITLE_TOKEN = "NestJS + React Monorepo Template"

MANIFEST_FILE = "package.json"
README_FILE = "README.md"
VITE_CONFIG_FILE = "client/vite.config.ts"

Replacement = Union[str, Callable[[re.Match[str]], str]]


@dataclass(frozen=True)
class RewriteRule:
    """A pattern/replacement pair scoped to a single file.

    ``file_path`` is relative to the project root.  A string replacement is
    inserted literally (no group references) unless ``literal`` is False.  A
    callable replacement receives each match and returns its substitute.
    """

    file_path: str
    pattern: re.Pattern[str]
    replacement: Replacement
    description: str = ""
    literal: bool = True

    def apply(self, text: str) -> str:
        """Return *text* with every match replaced."""
        if callable(self.replacement) or not self.literal:
            return self.pattern.sub(self.replacement, text)
        return self.pattern.sub(lambda _match: self.replacement, text)


def apply_rules(root: str | Path, rules: list[RewriteRule]) -> list[Path]:
    """Apply *rules* to their target files under *root*.

    Rules for the same file are applied in declaration order over a single
    read of the file.  Files are written back only when their content
    changed.

    Returns:
        The files that were modified.
    """
    root_path = Path(root)
    by_file: dict[str, list[RewriteRule]] = {}
    for rule in rules:
        by_file.setdefault(rule.file_path, []).append(rule)

    changed: list[Path] = []
    for rel_path, file_rules in by_file.items():
        target = root_path / rel_path
        if not target.is_file():
            continue

        original = target.read_text(encoding="utf-8")
        content = original
        for rule in file_rules:
            content = rule.apply(content)

        if content != original:
            target.write_text(content, encoding="utf-8")
            changed.append(target)

    return changed


# ---------------------------------------------------------------------------
# Rule families
# ---------------------------------------------------------------------------


def identity_rules(project_name: str) -> list[RewriteRule]:
    """Rules that stamp the project name over the readme's placeholders.

    Both the placeholder name token and the title token are replaced with
    the bare name.  Once replaced the tokens no longer occur, so a second pass
    matches nothing.  A project name that itself contains a placeholder token
    is the one input for which the rules are not idempotent.

    The manifest ``name`` field is set structurally, see
    ``manifest.stamp_manifest_name``.
    """
    name_token = re.compile(re.escape(TEMPLATE_NAME_TOKEN))
    title_token = re.compile(re.escape(TEMPLATE_TITLE_TOKEN))
    return [
        RewriteRule(
            file_path=README_FILE,
            pattern=name_token,
            replacement=project_name,
            description="readme name token",
        ),
        RewriteRule(
            file_path=README_FILE,
            pattern=title_token,
            replacement=project_name,
            description="readme title token",
        ),
    ]


# ``import react from '@vitejs/plugin-react';`` on a line of its own.
_STATIC_REACT_IMPORT = re.compile(
    r"""^import\s+react\s+from\s+(['"])@vitejs/plugin-react\1[ \t]*;?[ \t]*\n""",
    re.MULTILINE,
)

# ``export default defineConfig(() => ({ ... }));``
_ARROW_CONFIG = re.compile(
    r"""^export\s+default\s+defineConfig\(\s*\(\)\s*=>\s*\(\{(?P<body>.*?)^\}\)\)[ \t]*;?[ \t]*$""",
    re.MULTILINE | re.DOTALL,
)

# ``export default defineConfig({ ... });``
_OBJECT_CONFIG = re.compile(
    r"""^export\s+default\s+defineConfig\(\{(?P<body>.*?)^\}\)[ \t]*;?[ \t]*$""",
    re.MULTILINE | re.DOTALL,
)

# ``react()`` inside the ``plugins`` array.
_REACT_PLUGIN_CALL = re.compile(r"""(\bplugins:\s*\[[^\]]*?)\breact\(\)""")


def _async_config(match: re.Match[str]) -> str:
    body = "\n".join(
        f"  {line}" if line.strip() else line for line in match.group("body").split("\n")
    )
    return (
        "export default defineConfig(async () => {\n"
        "  const react = await import('@vitejs/plugin-react');\n"
        "\n"
        f"  return {{{body}  }};\n"
        "});"
    )


def module_style_rules(config_path: str = VITE_CONFIG_FILE) -> list[RewriteRule]:
    """Rules that load the React plugin lazily in the client's vite config.

    Nx writes the config with a static ``import react from
    '@vitejs/plugin-react'``, which fails to load under a CommonJS workspace
    because the plugin is ESM-only.  The rules drop that import and turn the
    ``defineConfig`` call (arrow or plain object form) into::

        export default defineConfig(async () => {
          const react = await import('@vitejs/plugin-react');

          return {
            ...
            plugins: [react.default()],
          };
        });

    The async form matches none of the patterns, so a second pass is a no-op.
    """
    return [
        RewriteRule(
            file_path=config_path,
            pattern=_STATIC_REACT_IMPORT,
            replacement="",
            description="drop static react plugin import",
        ),
        RewriteRule(
            file_path=config_path,
            pattern=_REACT_PLUGIN_CALL,
            replacement=r"\g<1>react.default()",
            description="react plugin default export",
            literal=False,
        ),
        RewriteRule(
            file_path=config_path,
            pattern=_ARROW_CONFIG,
            replacement=_async_config,
            description="async defineConfig (arrow form)",
        ),
        RewriteRule(
            file_path=config_path,
            pattern=_OBJECT_CONFIG,
            replacement=_async_config,
            description="async defineConfig (object form)",
        ),
    ]
