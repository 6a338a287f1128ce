"""Aikforge tester module.

Verifies generated Aiken projects through the compile -> test -> scan
pipeline and records the outcome in a structured report.

Key classes:
    Verifier            - The verification state machine
    VerificationReport  - Ordered stage results plus scanner findings
    ToolRunner          - Seam for running external tools (fake it in tests)
"""

from .results import (
    FailureKind,
    Finding,
    Severity,
    StageName,
    StageResult,
    StageStatus,
    VerificationReport,
    VerifierState,
)
from .runner import Verifier
from .scan import blocking_findings, parse_scan_output
from .tools import SubprocessToolRunner, ToolRunner

__all__ = [
    # Runner
    "Verifier",
    # Tools
    "ToolRunner",
    "SubprocessToolRunner",
    # Scan
    "parse_scan_output",
    "blocking_findings",
    # Results
    "VerificationReport",
    "StageResult",
    "StageName",
    "StageStatus",
    "FailureKind",
    "VerifierState",
    "Severity",
    "Finding",
]
