"""monoscaffold scaffolder -- builds Nx + NestJS + React workspaces.

Quick usage::

    from monoscaffold.config import Config, ConfigOptions, ProjectSpec, Strategy
    from monoscaffold.scaffolder import WorkspaceMaterializer

    spec = ProjectSpec.for_name("demo-app", Strategy.STATIC)
    materializer = WorkspaceMaterializer(Config())
    outcome = await materializer.materialize(spec, ConfigOptions())
"""

from monoscaffold.scaffolder.generator import WorkspaceMaterializer
from monoscaffold.scaffolder.rewriter import (
    RewriteRule,
    apply_rules,
    identity_rules,
    module_style_rules,
)
from monoscaffold.scaffolder.template_repo import (
    TEMPLATE_FILES,
    TemplateFileSet,
    TemplateRepository,
)
from monoscaffold.scaffolder.templates import TemplateRenderer

__all__ = [
    "TEMPLATE_FILES",
    "RewriteRule",
    "TemplateFileSet",
    "TemplateRenderer",
    "TemplateRepository",
    "WorkspaceMaterializer",
    "apply_rules",
    "identity_rules",
    "module_style_rules",
]
