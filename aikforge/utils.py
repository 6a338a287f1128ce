"""Shared utility functions for Aikforge.

Provides async command execution, writing generated projects to disk, and
Rich-based console reporting.
"""

from __future__ import annotations

import asyncio
import os
import time
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple, Optional

from rich.console import Console
from rich.rule import Rule
from rich.table import Table

if TYPE_CHECKING:
    from .scaffolder.models import GeneratedProject

console = Console()

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


class CommandResult(NamedTuple):
    """Outcome of one child process."""

    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False
    duration: float = 0.0


async def run_command(
    cmd: str | list[str],
    cwd: str | Path | None = None,
    timeout: float = 120,
    env: Optional[dict[str, str]] = None,
) -> CommandResult:
    """Run a command asynchronously and capture its output.

    Args:
        cmd: Shell command string or list of arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``CommandResult``. On timeout the process is killed and the result
        has ``timed_out=True`` and ``returncode=-1``. A missing executable
        yields ``returncode=127``; one that cannot be executed (permissions,
        bad format) yields ``returncode=126``.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    started = time.monotonic()
    try:
        if isinstance(cmd, list):
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
                env=merged_env,
            )
        else:
            process = await asyncio.create_subprocess_shell(
                cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
                env=merged_env,
            )
    except FileNotFoundError:
        return CommandResult(127, "", f"Command not found: {_binary(cmd)}", False, 0.0)
    except OSError as exc:
        return CommandResult(126, "", f"Cannot execute {_binary(cmd)}: {exc}", False, 0.0)

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return CommandResult(
            -1,
            "",
            f"Command timed out after {timeout}s: {cmd if isinstance(cmd, str) else ' '.join(cmd)}",
            True,
            time.monotonic() - started,
        )

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return CommandResult(
        process.returncode or 0,
        stdout_str,
        stderr_str,
        False,
        time.monotonic() - started,
    )


def _binary(cmd: str | list[str]) -> str:
    return cmd[0] if isinstance(cmd, list) else cmd.split()[0]


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def write_project(project: "GeneratedProject", output_dir: str | Path) -> list[Path]:
    """Write every file of *project* beneath *output_dir*.

    Parent directories are created automatically. A path that would resolve
    outside *output_dir* raises ``ValueError`` before anything is written.

    Returns:
        The written file paths, in project order.
    """
    root = Path(output_dir).resolve()
    targets: list[tuple[Path, str]] = []
    for generated in project.files:
        target = (root / generated.path).resolve()
        if root != target and root not in target.parents:
            raise ValueError(f"Refusing to write outside {root}: {generated.path}")
        targets.append((target, generated.content))

    written: list[Path] = []
    for target, content in targets:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        written.append(target)
    return written


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


STAGE_COLORS: dict[str, str] = {
    "compile": "bright_cyan",
    "test": "bright_green",
    "scan": "bright_magenta",
}


def print_stage_header(stage: str) -> None:
    """Print a full-width rule announcing a verification stage."""
    color = STAGE_COLORS.get(stage.lower(), "white")
    console.print(Rule(f"[bold {color}] {stage.upper()} [/bold {color}]", style=color))


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
