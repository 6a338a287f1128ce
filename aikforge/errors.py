"""Error taxonomy shared by every Aikforge component.

Parser, resolver and renderer errors are deterministic caller or catalogue
defects. Verification errors describe an external tool outcome and carry the
``VerificationReport`` that produced them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .tester.results import VerificationReport


class ForgeError(Exception):
    """Base class for every error raised by Aikforge."""

    kind: str = "error"

    def __init__(self, message: str, *, stage: Optional[str] = None) -> None:
        self.message = message
        self.stage = stage
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Structured form for callers that serialise errors."""
        return {"kind": self.kind, "stage": self.stage, "message": self.message}


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ValidationError(ForgeError):
    """Bad identifier, unknown slug or an option the template does not accept."""

    kind = "validation"


class TemplateNotFoundError(ValidationError):
    kind = "template_not_found"

    def __init__(self, slug: str) -> None:
        self.slug = slug
        super().__init__(f"Unknown template '{slug}'")


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class ParseError(ForgeError):
    """Malformed field or action DSL."""

    kind = "parse"

    def __init__(self, message: str, fragment: str = "") -> None:
        self.fragment = fragment
        if fragment:
            message = f"{message}: '{fragment}'"
        super().__init__(message, stage="parse")


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class ResolutionError(ForgeError):
    kind = "resolution"


class PurposeConflictError(ResolutionError):
    """A resolved feature requires a different validator purpose."""

    kind = "purpose_conflict"

    def __init__(self, feature: str, expected_purpose: str, requested_purpose: str) -> None:
        self.feature = feature
        self.expected_purpose = expected_purpose
        self.requested_purpose = requested_purpose
        super().__init__(
            f"Feature '{feature}' requires purpose '{expected_purpose}', "
            f"but got '{requested_purpose}'",
            stage="resolve",
        )


class FeatureConflictError(ResolutionError):
    kind = "feature_conflict"

    def __init__(self, feature: str, other: str) -> None:
        self.feature = feature
        self.other = other
        super().__init__(f"Feature '{feature}' conflicts with '{other}'", stage="resolve")


class CatalogueError(ResolutionError):
    """The catalogue definition itself is malformed (unknown reference, cycle)."""

    kind = "catalogue"


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class RenderError(ForgeError):
    kind = "render"


class UnsupportedOperationError(RenderError):
    kind = "unsupported_operation"


class PathCollisionError(RenderError):
    kind = "path_collision"

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Two generated files share the path '{path}'", stage="render")


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


class VerificationError(ForgeError):
    """A verification stage failed. ``report`` holds the full stage record."""

    kind = "verification"

    def __init__(
        self,
        message: str,
        *,
        stage: Optional[str] = None,
        report: Optional["VerificationReport"] = None,
    ) -> None:
        self.report = report
        super().__init__(message, stage=stage)


class CompileError(VerificationError):
    kind = "compile_error"


class TestError(VerificationError):
    kind = "test_error"

    # Keep pytest from collecting this class.
    __test__ = False


class ScanToolError(VerificationError):
    kind = "scan_tool_error"


class SecurityFindingsError(VerificationError):
    kind = "security_findings"


class ToolTimeoutError(VerificationError):
    kind = "timeout"
