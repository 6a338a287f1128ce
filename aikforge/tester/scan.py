"""Scanner output parsing and the severity policy.

The scanner is run with JSON output. A usable result is a JSON object with
a ``findings`` array (``total`` is informational)::

    {"findings": [{"detector": "...", "severity": "high",
                   "description": "...", "title": "..."}], "total": 1}

The scanner exits non-zero when it reports blocking findings, so a non-zero
exit status is only a tool failure when no findings came with it.
"""

from __future__ import annotations

import json
from typing import Any, Iterable

import pydantic

from ..errors import ScanToolError
from .results import Finding, Severity

DEFAULT_FAIL_ON: tuple[Severity, ...] = (Severity.HIGH, Severity.CRITICAL)


def parse_scan_output(returncode: int, stdout: str, stderr: str = "") -> list[Finding]:
    """Parse scanner output into findings.

    Raises:
        ScanToolError: Empty or non-JSON output, a malformed finding, an
            unknown severity, or a non-zero exit status without any findings.
    """
    if not stdout.strip():
        raise ScanToolError(
            f"scanner returned empty output (exit {returncode}). stderr:\n{stderr}",
            stage="scan",
        )

    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as exc:
        raise ScanToolError(
            f"Failed to parse scanner JSON output: {exc}\nstdout:\n{stdout}\nstderr:\n{stderr}",
            stage="scan",
        ) from exc

    if not isinstance(data, dict):
        raise ScanToolError("scanner JSON output is not an object", stage="scan")

    raw_findings = data.get("findings")
    if raw_findings is None:
        raw_findings = []
    if not isinstance(raw_findings, list):
        raise ScanToolError(
            f"scanner 'findings' is not an array: {raw_findings!r}", stage="scan"
        )
    findings = [_finding(raw) for raw in raw_findings]

    if returncode != 0 and not findings:
        raise ScanToolError(
            f"scanner exited non-zero ({returncode}) without findings.\n"
            f"stdout:\n{stdout}\nstderr:\n{stderr}",
            stage="scan",
        )
    return findings


def _finding(raw: Any) -> Finding:
    if not isinstance(raw, dict):
        raise ScanToolError(f"Malformed finding in scanner output: {raw!r}", stage="scan")
    try:
        severity = Severity(raw.get("severity", ""))
    except ValueError as exc:
        raise ScanToolError(
            f"Unknown severity {raw.get('severity')!r} from detector {raw.get('detector')!r}",
            stage="scan",
        ) from exc
    try:
        return Finding(
            detector=str(raw.get("detector", "unknown")),
            severity=severity,
            title=str(raw.get("title") or ""),
            description=str(raw.get("description") or raw.get("message") or ""),
            confidence=raw.get("confidence"),
        )
    except pydantic.ValidationError as exc:
        raise ScanToolError(
            f"Malformed finding from detector {raw.get('detector')!r}: {exc}", stage="scan"
        ) from exc


def normalize_fail_on(fail_on: Iterable[str | Severity]) -> frozenset[Severity]:
    """Severity names from configuration as ``Severity`` members.

    Raises:
        ValueError: An unknown severity name.
    """
    return frozenset(Severity(s) for s in fail_on)


def blocking_findings(
    findings: Iterable[Finding],
    fail_on: Iterable[str | Severity] = DEFAULT_FAIL_ON,
) -> list[Finding]:
    """Findings whose severity is in *fail_on*, most severe first.

    Findings of equal severity keep the scanner's order.
    """
    policy = normalize_fail_on(fail_on)
    blocking = [f for f in findings if f.severity in policy]
    return sorted(blocking, key=lambda f: f.severity.rank, reverse=True)
