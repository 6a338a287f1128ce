"""Aikforge configuration.

Centralised, typed configuration for the generator and the verification
pipeline. All settings use Pydantic v2 models so they can be validated at
construction time and serialised to/from JSON or environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field


class ToolConfig(BaseModel):
    """One external tool invocation: its argv and its wall-clock timeout."""

    command: list[str] = Field(..., min_length=1, description="argv, binary first")
    timeout: int = Field(default=300, ge=1, description="Per-invocation timeout in seconds")

    @property
    def binary(self) -> str:
        """The executable name (first argv element)."""
        return self.command[0]


class VerifyConfig(BaseModel):
    """Commands and policy for the compile -> test -> scan pipeline."""

    compiler: ToolConfig = Field(
        default_factory=lambda: ToolConfig(command=["aiken", "build"], timeout=300)
    )
    test_runner: ToolConfig = Field(
        default_factory=lambda: ToolConfig(command=["aiken", "check"], timeout=300)
    )
    scanner: ToolConfig = Field(
        default_factory=lambda: ToolConfig(
            command=["aikido", ".", "--format", "json", "--quiet", "--fail-on", "high"],
            timeout=300,
        )
    )
    fail_on: list[str] = Field(
        default=["high", "critical"],
        description="Scanner severities that fail the Scan stage",
    )


class ManifestConfig(BaseModel):
    """Values written into every generated ``aiken.toml``."""

    version: str = Field(default="0.0.0")
    compiler_version: str = Field(default="v1.1.21")
    plutus_version: str = Field(default="v3")
    license: str = Field(default="Apache-2.0")
    stdlib_source: str = Field(default="github")
    stdlib_name: str = Field(default="aiken-lang/stdlib")
    stdlib_version: str = Field(default="v3.0.0")


class Config(BaseModel):
    """Global Aikforge configuration.

    Instances are typically created once by ``Pipeline`` and then passed to
    the renderer and verifier.
    """

    manifest: ManifestConfig = Field(default_factory=ManifestConfig)
    verify: VerifyConfig = Field(default_factory=VerifyConfig)

    # When True a failed verification raises and no files are returned.
    strict_verification: bool = Field(default=False)

    # Parent directory for per-verification working directories (None = system temp).
    workdir_root: Optional[Path] = Field(default=None)

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file. Parent directories are created.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            AIKFORGE_AIKEN_BIN, AIKFORGE_AIKIDO_BIN,
            AIKFORGE_COMPILER_TIMEOUT, AIKFORGE_TEST_TIMEOUT, AIKFORGE_SCAN_TIMEOUT,
            AIKFORGE_FAIL_ON, AIKFORGE_STRICT, AIKFORGE_WORKDIR.
        """
        defaults = VerifyConfig()
        aiken = os.environ.get("AIKFORGE_AIKEN_BIN", defaults.compiler.binary)
        aikido = os.environ.get("AIKFORGE_AIKIDO_BIN", defaults.scanner.binary)

        def _tool(base: ToolConfig, binary: str, timeout_var: str) -> ToolConfig:
            kwargs: dict[str, Any] = {"command": [binary, *base.command[1:]]}
            kwargs["timeout"] = int(os.environ.get(timeout_var, base.timeout))
            return ToolConfig(**kwargs)

        verify_kwargs: dict[str, Any] = {
            "compiler": _tool(defaults.compiler, aiken, "AIKFORGE_COMPILER_TIMEOUT"),
            "test_runner": _tool(defaults.test_runner, aiken, "AIKFORGE_TEST_TIMEOUT"),
            "scanner": _tool(defaults.scanner, aikido, "AIKFORGE_SCAN_TIMEOUT"),
        }
        if os.environ.get("AIKFORGE_FAIL_ON"):
            verify_kwargs["fail_on"] = [
                s.strip().lower() for s in os.environ["AIKFORGE_FAIL_ON"].split(",") if s.strip()
            ]

        strict = os.environ.get("AIKFORGE_STRICT", "").strip().lower() in ("1", "true", "yes")
        workdir = os.environ.get("AIKFORGE_WORKDIR")

        return cls(
            verify=VerifyConfig(**verify_kwargs),
            strict_verification=strict,
            workdir_root=Path(workdir) if workdir else None,
        )
