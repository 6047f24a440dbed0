"""Shared helpers: subprocess execution, JSON files, console output.

All user-facing output goes through the module-level ``console`` so every
part of a run writes to the same Rich console.
"""

from __future__ import annotations

import asyncio
import json
import os
import shlex
import signal
from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

console = Console()

TIMEOUT_EXIT_CODE = -1

_POSIX = os.name == "posix"


# ---------------------------------------------------------------------------
# Subprocesses
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: float = 120,
    capture: bool = True,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Spawn *cmd* (no shell) and wait for it.

    With ``capture=False`` the child writes straight to this process's
    terminal and the returned output strings are empty.  When *timeout*
    seconds pass the child and everything it spawned are killed and
    ``TIMEOUT_EXIT_CODE`` is returned with a "timed out" message in place of
    stderr.

    On POSIX the child leads its own process group, so an ``npx`` wrapper and
    the Node processes it starts are killed together.

    Raises:
        FileNotFoundError: The executable does not exist.
        PermissionError: The executable cannot be run.
    """
    stream = asyncio.subprocess.PIPE if capture else None
    process = await asyncio.create_subprocess_exec(
        *cmd,
        cwd=str(cwd) if cwd is not None else None,
        env={**os.environ, **env} if env else None,
        stdout=stream,
        stderr=stream,
        start_new_session=_POSIX,
    )

    try:
        out, err = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        await _kill_tree(process)
        message = f"Command timed out after {timeout}s: {format_command(cmd)}"
        return TIMEOUT_EXIT_CODE, "", message
    except asyncio.CancelledError:
        await _kill_tree(process)
        raise

    return process.returncode or 0, _decode(out), _decode(err)


async def _kill_tree(process: asyncio.subprocess.Process) -> None:
    """SIGKILL *process* together with its process group, then reap it."""
    if _POSIX:
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            # Every member has already exited.
            pass
    else:
        process.kill()
    await process.wait()


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace").strip()


def format_command(cmd: str | list[str]) -> str:
    """Shell-quoted, single-line rendering of a command."""
    return cmd if isinstance(cmd, str) else shlex.join(cmd)


# ---------------------------------------------------------------------------
# JSON files
# ---------------------------------------------------------------------------


def load_json(path: str | Path) -> dict[str, Any]:
    """Read a JSON document whose top level must be an object.

    Raises:
        FileNotFoundError: *path* does not exist.
        json.JSONDecodeError: The file is not valid JSON.
        ValueError: The top-level value is not an object.
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {path}, got {type(data).__name__}")
    return data


async def save_json(data: dict[str, Any] | list[Any], path: str | Path) -> None:
    """Write *data* the way npm formats ``package.json``.

    Two-space indent, non-ASCII kept as is, and a trailing newline.  Missing
    parent directories are created.
    """
    target = Path(path)
    text = json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    def _write() -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(text, encoding="utf-8")

    await asyncio.to_thread(_write)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """``3.7s``, ``1m 5s`` or ``1h 1m 1s``.  Negative input reads as zero."""
    if seconds < 60:
        return f"{max(seconds, 0.0):.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    return f"{minutes}m {secs}s"


def tail_lines(text: str, count: int = 10) -> str:
    """Return the last *count* non-blank lines of *text*."""
    lines = [line for line in text.splitlines() if line.strip()]
    return "\n".join(lines[-count:])


# ---------------------------------------------------------------------------
# Console output
# ---------------------------------------------------------------------------


def print_step_header(index: int, total: int, description: str) -> None:
    """Announce a step whose output streams to the terminal."""
    console.print()
    console.print(
        Rule(f"[bold]Step {index}/{total}[/bold] {escape(description)}", style="bright_cyan")
    )


def print_summary_table(rows: dict[str, str], title: str = "Summary") -> None:
    """Print *rows* as an aligned key/value table."""
    table = Table(title=title, title_justify="left", box=box.SIMPLE_HEAD, show_header=False)
    table.add_column(style="bold cyan", no_wrap=True)
    table.add_column()
    for key, value in rows.items():
        table.add_row(key, escape(str(value)))
    console.print(table)


def print_success(message: str) -> None:
    console.print(f"[green]✔[/green] {message}")


def print_error(message: str) -> None:
    console.print(message, style="bold red")


def print_warning(message: str) -> None:
    console.print(message, style="yellow")


def print_hint(message: str) -> None:
    """Indented cyan command line, e.g. ``cd demo-app``."""
    console.print(f"  {escape(message)}", style="cyan")
