"""Exception types shared across the scaffolding pipeline."""

from __future__ import annotations


class ScaffoldError(Exception):
    """Base class for every error raised by monoscaffold."""


class PreconditionError(ScaffoldError):
    """Raised before any mutation when the run cannot start.

    Covers an already-existing target directory and an invalid project name.
    """


class FilesystemError(ScaffoldError):
    """Raised when a copy, write, or remove fails during a pipeline phase."""

    def __init__(self, phase: str, message: str) -> None:
        self.phase = phase
        super().__init__(f"{phase}: {message}")
