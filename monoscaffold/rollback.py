"""All-or-nothing guarantee for the target directory.

``RollbackManager`` is created before anything is written.  It remembers
whether the target existed at that moment and, on rollback, removes the
target only if the run created it.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from rich.markup import escape

from monoscaffold.utils import console, print_warning


class RollbackManager:
    """Removes a partially constructed project directory after a failure."""

    def __init__(self, target: str | Path) -> None:
        self.target = Path(target)
        self.existed_before = self.target.exists()

    @property
    def armed(self) -> bool:
        """True when a rollback would remove something."""
        return not self.existed_before and self.target.exists()

    def rollback(self) -> bool:
        """Recursively delete the target if this run created it.

        Removal problems are reported as a warning and never raised, so the
        original failure stays the one that is surfaced.

        Returns:
            True if the directory was removed.
        """
        if not self.armed:
            return False

        try:
            if self.target.is_dir() and not self.target.is_symlink():
                shutil.rmtree(self.target)
            else:
                self.target.unlink()
        except OSError as exc:
            print_warning(
                f"Could not remove {escape(str(self.target))}: {escape(str(exc))}. "
                "Delete it manually before retrying."
            )
            return False

        console.print(f"[dim]Removed partially created directory {escape(str(self.target))}[/dim]")
        return True
