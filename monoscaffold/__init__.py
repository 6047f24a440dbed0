"""monoscaffold -- scaffolding orchestrator for Nx + NestJS + React monorepos."""

__version__ = "1.0.0"
