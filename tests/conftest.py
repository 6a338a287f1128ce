"""Shared pytest fixtures for the Aikforge test suite.

Provides reusable fixtures for:
- The process-wide catalogue and a default generator
- Sample generation options (catalogue and custom templates)
- A fake external-tool runner for the verifier
- Scanner JSON payload helpers
- Mock subprocess helpers
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from aikforge.catalogue import Catalogue, get_catalogue
from aikforge.config import Config
from aikforge.scaffolder.generator import ProjectGenerator
from aikforge.scaffolder.models import GenerateOptions
from aikforge.tester.runner import Verifier
from aikforge.utils import CommandResult


# ---------------------------------------------------------------------------
# Catalogue & Generator
# ---------------------------------------------------------------------------

@pytest.fixture
def catalogue() -> Catalogue:
    return get_catalogue()


@pytest.fixture
def generator() -> ProjectGenerator:
    return ProjectGenerator()


# ---------------------------------------------------------------------------
# Sample options
# ---------------------------------------------------------------------------

@pytest.fixture
def vesting_options() -> GenerateOptions:
    """The vesting template with both toggles on."""
    return GenerateOptions(
        template="vesting",
        namespace="myorg",
        project_name="my_vesting",
        cancellable=True,
        partial_claim=True,
    )


@pytest.fixture
def custom_spend_options() -> GenerateOptions:
    """A custom treasury-like spend validator using every spend feature."""
    return GenerateOptions(
        template="custom",
        namespace="myorg",
        project_name="my_treasury",
        purpose="spend",
        features="signature-auth,timelock,reference-safety,value-preservation,bounded-operations",
        datum="owner:ByteArray,deadline:Int,balance:Int",
        redeemer="Deposit,Withdraw(amount:Int)",
    )


@pytest.fixture
def custom_mint_options() -> GenerateOptions:
    return GenerateOptions(
        template="custom",
        namespace="myorg",
        project_name="my_token",
        purpose="mint",
        features=["signature-auth", "burn-verification"],
        redeemer="Mint,Burn",
    )


# ---------------------------------------------------------------------------
# Scanner payloads
# ---------------------------------------------------------------------------

def scan_json(*findings: dict[str, Any]) -> str:
    """Scanner JSON output carrying *findings*."""
    return json.dumps({"findings": list(findings), "total": len(findings)})


def finding(severity: str, detector: str = "missing-signature-check") -> dict[str, Any]:
    return {
        "detector": detector,
        "severity": severity,
        "description": f"{detector} reported a {severity} issue",
        "title": detector.replace("-", " ").title(),
        "confidence": "likely",
    }


@pytest.fixture
def scan_payload() -> Callable[..., str]:
    """Factory: ``scan_payload(*findings)`` -> scanner JSON text."""
    return scan_json


@pytest.fixture
def make_finding() -> Callable[..., dict[str, Any]]:
    """Factory: ``make_finding(severity, detector=...)`` -> raw finding dict."""
    return finding


# ---------------------------------------------------------------------------
# Fake tool runner
# ---------------------------------------------------------------------------

Response = CommandResult | Callable[[list[str], Path], CommandResult]


class FakeToolRunner:
    """``ToolRunner`` that answers from a table instead of spawning processes.

    Responses are keyed by the subcommand for ``aiken`` (``"build"``,
    ``"check"``) and by the binary name otherwise (``"aikido"``). Unknown
    commands succeed with empty output. Every call is recorded in ``calls``
    as ``(command, cwd)``.
    """

    def __init__(self, responses: dict[str, Response] | None = None) -> None:
        self.responses: dict[str, Response] = {
            "build": CommandResult(0, "Compiling myorg/project", ""),
            "check": CommandResult(0, "6 tests passed", ""),
            "aikido": CommandResult(0, scan_json(), ""),
        }
        self.responses.update(responses or {})
        self.calls: list[tuple[list[str], Path]] = []

    @staticmethod
    def key(command: list[str]) -> str:
        if Path(command[0]).name == "aiken" and len(command) > 1:
            return command[1]
        return Path(command[0]).name

    async def run(self, command: list[str], cwd: Path, timeout: float) -> CommandResult:
        self.calls.append((list(command), Path(cwd)))
        response = self.responses.get(self.key(command), CommandResult(0, "", ""))
        if callable(response):
            return response(list(command), Path(cwd))
        return response

    @property
    def keys_called(self) -> list[str]:
        return [self.key(command) for command, _ in self.calls]


@pytest.fixture
def fake_runner() -> FakeToolRunner:
    return FakeToolRunner()


@pytest.fixture
def tool_runner() -> Callable[..., FakeToolRunner]:
    """Factory: ``tool_runner(responses)`` -> ``FakeToolRunner`` with overrides."""
    return FakeToolRunner


@pytest.fixture
def make_verifier() -> Callable[..., Verifier]:
    """Factory: ``make_verifier(runner, config=None)`` -> quiet ``Verifier``."""

    def factory(runner: FakeToolRunner, config: Config | None = None) -> Verifier:
        return Verifier(config or Config(), runner=runner, verbose=False)

    return factory


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """
    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory
