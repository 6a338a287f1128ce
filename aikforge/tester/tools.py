"""External tool invocation seam.

The verifier never spawns processes directly; it calls a ``ToolRunner``.
Production code uses :class:`SubprocessToolRunner`; tests inject a fake.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from ..utils import CommandResult, run_command


class ToolRunner(Protocol):
    """Runs one external command to completion or timeout."""

    async def run(self, command: list[str], cwd: Path, timeout: float) -> CommandResult:
        ...


class SubprocessToolRunner:
    """``ToolRunner`` backed by :func:`aikforge.utils.run_command`."""

    def __init__(self, env: dict[str, str] | None = None) -> None:
        self.env = env

    async def run(self, command: list[str], cwd: Path, timeout: float) -> CommandResult:
        return await run_command(list(command), cwd=cwd, timeout=timeout, env=self.env)
