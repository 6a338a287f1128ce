"""Verification pipeline orchestrator.

Runs the three verification stages against an Aiken project, strictly in
order:

- **Compile** -- the compiler (``aiken build``)
- **Test** -- the inline test runner (``aiken check``)
- **Scan** -- the static-analysis scanner (``aikido``), JSON output

The first failing stage halts the pipeline and the remaining stages are
recorded as ``Skipped``. Tool failures never raise: they are recorded in the
:class:`VerificationReport`, and callers decide what to do with it.
"""

from __future__ import annotations

import asyncio
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from ..config import Config, ToolConfig
from ..errors import ScanToolError, ValidationError
from ..scaffolder.models import GeneratedProject
from ..utils import (
    console,
    format_duration,
    print_error,
    print_stage_header,
    print_success,
    write_project,
)
from .results import (
    PIPELINE_ORDER,
    FailureKind,
    Severity,
    StageName,
    StageResult,
    StageStatus,
    VerificationReport,
    VerifierState,
)
from .scan import blocking_findings, normalize_fail_on, parse_scan_output
from .tools import SubprocessToolRunner, ToolRunner

MANIFEST_FILE = "aiken.toml"
SCAN_PROFILE_FILE = ".aikido.toml"

_RUNNING_STATE: dict[StageName, VerifierState] = {
    StageName.COMPILE: VerifierState.COMPILING,
    StageName.TEST: VerifierState.TESTING,
    StageName.SCAN: VerifierState.SCANNING,
}

_TOOL_FAILURE: dict[StageName, FailureKind] = {
    StageName.COMPILE: FailureKind.COMPILE_ERROR,
    StageName.TEST: FailureKind.TEST_ERROR,
    StageName.SCAN: FailureKind.SCAN_TOOL_ERROR,
}

_PROBE_TIMEOUT = 10


class Verifier:
    """Compile -> test -> scan state machine.

    Parameters
    ----------
    config:
        Tool commands, timeouts, severity policy and working-directory root.
    runner:
        Executes external commands. Defaults to :class:`SubprocessToolRunner`.
    verbose:
        Print stage headers and the final status to the console.

    A single ``Verifier`` may run several verifications concurrently: each
    one works in its own directory and keeps its state in its own report.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        runner: Optional[ToolRunner] = None,
        *,
        verbose: bool = True,
    ) -> None:
        self.config = config or Config()
        self.runner: ToolRunner = runner or SubprocessToolRunner()
        self.verbose = verbose
        try:
            self.fail_on: frozenset[Severity] = normalize_fail_on(self.config.verify.fail_on)
        except ValueError as exc:
            raise ValidationError(f"Invalid fail_on severity: {exc}") from exc

    # -- Public API ----------------------------------------------------------

    async def verify_project(self, project: GeneratedProject) -> VerificationReport:
        """Materialise *project* in a fresh temporary directory and verify it.

        The directory is removed when verification finishes, including when
        it raises. Directory creation, file writes and removal run in worker
        threads.
        """
        workdir_root = self.config.workdir_root
        parent = str(workdir_root) if workdir_root else None
        if parent is not None:
            await asyncio.to_thread(Path(parent).mkdir, parents=True, exist_ok=True)
        tmp = await asyncio.to_thread(tempfile.mkdtemp, prefix="aikforge-", dir=parent)
        try:
            await asyncio.to_thread(write_project, project, tmp)
            return await self.verify_path(tmp)
        finally:
            await asyncio.to_thread(shutil.rmtree, tmp)

    async def verify_path(self, path: str | Path) -> VerificationReport:
        """Verify an existing project directory in place.

        Raises:
            ValidationError: *path* is not a directory.
        """
        root = Path(path)
        if not root.is_dir():
            raise ValidationError(f"Project directory not found: {root}")

        report = VerificationReport(profile_present=(root / SCAN_PROFILE_FILE).is_file())

        if not (root / MANIFEST_FILE).is_file():
            # Not an Aiken project: indistinguishable from a compile failure.
            self._fail(
                report,
                StageResult(
                    stage=StageName.COMPILE,
                    status=StageStatus.FAILED,
                    failure=FailureKind.COMPILE_ERROR,
                    diagnostic=f"No {MANIFEST_FILE} found in {root}",
                ),
            )
            self._print_outcome(report)
            return report

        for stage in PIPELINE_ORDER:
            report.state = _RUNNING_STATE[stage]
            if self.verbose:
                print_stage_header(stage.value)
            result = await self._run_stage(stage, root)
            if result.status is StageStatus.FAILED:
                self._fail(report, result)
                break
            report.stages.append(result)
        else:
            report.state = VerifierState.PASSED

        self._print_outcome(report)
        return report

    async def probe_tools(self) -> dict[str, Optional[str]]:
        """Return ``{binary: version}`` for each configured tool.

        The version is ``None`` when the binary is missing or fails.
        """
        versions: dict[str, Optional[str]] = {}
        for tool in self._tools().values():
            if tool.binary in versions:
                continue
            result = await self.runner.run([tool.binary, "--version"], Path.cwd(), _PROBE_TIMEOUT)
            ok = result.returncode == 0 and not result.timed_out
            versions[tool.binary] = result.stdout.strip() if ok else None
        return versions

    # -- Stages --------------------------------------------------------------

    def _tools(self) -> dict[StageName, ToolConfig]:
        verify = self.config.verify
        return {
            StageName.COMPILE: verify.compiler,
            StageName.TEST: verify.test_runner,
            StageName.SCAN: verify.scanner,
        }

    async def _run_stage(self, stage: StageName, root: Path) -> StageResult:
        tool = self._tools()[stage]
        result = await self.runner.run(tool.command, root, tool.timeout)

        if result.timed_out:
            return StageResult(
                stage=stage,
                status=StageStatus.FAILED,
                failure=FailureKind.TIMEOUT,
                diagnostic=f"{tool.binary} timed out after {tool.timeout}s",
                duration_seconds=result.duration,
            )

        if stage is StageName.SCAN:
            return self._evaluate_scan(result.returncode, result.stdout, result.stderr, result.duration)

        if result.returncode != 0:
            return StageResult(
                stage=stage,
                status=StageStatus.FAILED,
                failure=_TOOL_FAILURE[stage],
                diagnostic=_combine_output(result.stdout, result.stderr),
                duration_seconds=result.duration,
            )
        return StageResult(stage=stage, status=StageStatus.PASSED, duration_seconds=result.duration)

    def _evaluate_scan(
        self, returncode: int, stdout: str, stderr: str, duration: float
    ) -> StageResult:
        try:
            findings = parse_scan_output(returncode, stdout, stderr)
        except ScanToolError as exc:
            return StageResult(
                stage=StageName.SCAN,
                status=StageStatus.FAILED,
                failure=FailureKind.SCAN_TOOL_ERROR,
                diagnostic=exc.message,
                duration_seconds=duration,
            )

        blocking = blocking_findings(findings, self.fail_on)
        if blocking:
            return StageResult(
                stage=StageName.SCAN,
                status=StageStatus.FAILED,
                failure=FailureKind.SECURITY_FINDINGS,
                diagnostic="\n".join(f.format() for f in blocking),
                findings=findings,
                duration_seconds=duration,
            )
        return StageResult(
            stage=StageName.SCAN,
            status=StageStatus.PASSED,
            findings=findings,
            duration_seconds=duration,
        )

    # -- Helpers -------------------------------------------------------------

    @staticmethod
    def _fail(report: VerificationReport, failed: StageResult) -> None:
        """Record *failed* and mark every later stage as skipped."""
        report.stages.append(failed)
        remaining = PIPELINE_ORDER[PIPELINE_ORDER.index(failed.stage) + 1:]
        report.stages.extend(StageResult.skipped(name) for name in remaining)
        report.state = VerifierState.FAILED

    def _print_outcome(self, report: VerificationReport) -> None:
        if not self.verbose:
            return
        total = sum(s.duration_seconds for s in report.stages)
        if report.passed:
            print_success(f"Verification passed in {format_duration(total)}")
        else:
            failed = report.failed_stage
            label = failed.stage.value if failed else "unknown"
            print_error(f"Verification failed at {label} stage")
        for finding in report.findings:
            console.print(f"  {finding.format()}")


def _combine_output(stdout: str, stderr: str) -> str:
    return f"stdout:\n{stdout}\nstderr:\n{stderr}".strip()
