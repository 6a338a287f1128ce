"""Verification results: stage outcomes, scanner findings, and the report.

Provides Pydantic v2 models for the compile -> test -> scan pipeline. A
``VerificationReport`` always lists the three stages in pipeline order; a
stage that never ran because an earlier one failed is recorded as
``Skipped``.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from ..errors import (
    CompileError,
    ScanToolError,
    SecurityFindingsError,
    TestError,
    ToolTimeoutError,
    VerificationError,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class StageName(str, Enum):
    COMPILE = "compile"
    TEST = "test"
    SCAN = "scan"


PIPELINE_ORDER: tuple[StageName, ...] = (StageName.COMPILE, StageName.TEST, StageName.SCAN)


class StageStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class FailureKind(str, Enum):
    """Why a stage failed. Values match the ``kind`` of the raised error."""

    COMPILE_ERROR = "compile_error"
    TEST_ERROR = "test_error"
    SCAN_TOOL_ERROR = "scan_tool_error"
    SECURITY_FINDINGS = "security_findings"
    TIMEOUT = "timeout"


class VerifierState(str, Enum):
    PENDING = "pending"
    COMPILING = "compiling"
    TESTING = "testing"
    SCANNING = "scanning"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class Severity(str, Enum):
    """Scanner severity, ordered from least to most severe."""

    INFO = "info"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @classmethod
    def _missing_(cls, value: object) -> Optional["Severity"]:
        # Scanners are inconsistent about case ("High", "CRITICAL").
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None

    @property
    def rank(self) -> int:
        return list(Severity).index(self)


_ERROR_BY_KIND: dict[FailureKind, type[VerificationError]] = {
    FailureKind.COMPILE_ERROR: CompileError,
    FailureKind.TEST_ERROR: TestError,
    FailureKind.SCAN_TOOL_ERROR: ScanToolError,
    FailureKind.SECURITY_FINDINGS: SecurityFindingsError,
    FailureKind.TIMEOUT: ToolTimeoutError,
}


# ---------------------------------------------------------------------------
# Findings and stage results
# ---------------------------------------------------------------------------

class Finding(BaseModel):
    """One issue reported by the static-analysis scanner."""

    detector: str = Field(..., description="Detector that produced the finding")
    severity: Severity
    title: str = Field(default="")
    description: str = Field(default="")
    confidence: Optional[str] = Field(default=None)

    def format(self) -> str:
        return f"[{self.severity.value.upper()}] {self.detector}: {self.description or self.title}"


class StageResult(BaseModel):
    """Outcome of one pipeline stage."""

    stage: StageName
    status: StageStatus
    failure: Optional[FailureKind] = Field(default=None, description="Set when status is failed")
    diagnostic: str = Field(default="", description="Tool output or failure explanation")
    findings: list[Finding] = Field(default_factory=list, description="Scan stage only")
    duration_seconds: float = Field(default=0.0, ge=0.0)

    @classmethod
    def skipped(cls, stage: StageName) -> "StageResult":
        return cls(stage=stage, status=StageStatus.SKIPPED)


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

class VerificationReport(BaseModel):
    """Complete record of one verification run."""

    state: VerifierState = Field(default=VerifierState.PENDING)
    stages: list[StageResult] = Field(default_factory=list)
    profile_present: bool = Field(
        default=False,
        description="Whether the project carried a scanner profile (.aikido.toml)",
    )

    @classmethod
    def skipped(cls) -> "VerificationReport":
        """Report for a run the caller disabled: every stage ``Skipped``."""
        return cls(
            state=VerifierState.SKIPPED,
            stages=[StageResult.skipped(name) for name in PIPELINE_ORDER],
        )

    @computed_field  # type: ignore[misc]
    @property
    def passed(self) -> bool:
        """True only when every stage ran and passed."""
        return self.state is VerifierState.PASSED

    @property
    def failed_stage(self) -> Optional[StageResult]:
        for result in self.stages:
            if result.status is StageStatus.FAILED:
                return result
        return None

    @property
    def findings(self) -> list[Finding]:
        return [f for result in self.stages for f in result.findings]

    def stage(self, name: StageName | str) -> Optional[StageResult]:
        """The result for *name*, or ``None`` if the stage was never recorded."""
        wanted = StageName(name)
        for result in self.stages:
            if result.stage is wanted:
                return result
        return None

    def raise_for_status(self) -> None:
        """Raise the matching ``VerificationError`` if a stage failed.

        The raised error carries this report in its ``report`` attribute.
        """
        failed = self.failed_stage
        if failed is None:
            return
        error_cls = _ERROR_BY_KIND.get(failed.failure or FailureKind.COMPILE_ERROR, VerificationError)
        message = f"{failed.stage.value} stage failed"
        if failed.diagnostic:
            message = f"{message}: {failed.diagnostic}"
        raise error_cls(message, stage=failed.stage.value, report=self)

    # -- Serialisation helpers -----------------------------------------------

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(indent=indent)

    def save(self, path: Path) -> None:
        """Persist the report to a JSON file, creating parent directories as needed."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(), encoding="utf-8")

    @classmethod
    def load(cls, path: Path) -> "VerificationReport":
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    def summary_text(self) -> str:
        """One line per stage, suitable for logs and CLI output."""
        lines = [f"verification: {self.state.value}"]
        for result in self.stages:
            line = f"  {result.stage.value:<8} {result.status.value}"
            if result.failure is not None:
                line += f" ({result.failure.value})"
            if result.findings:
                line += f", {len(result.findings)} finding(s)"
            lines.append(line)
        return "\n".join(lines)
