"""Aikforge Pipeline Orchestrator.

The entry point every caller (CLI, tool server, embedding application) goes
through. It sequences the stages of one request:

1. VALIDATE -- identifiers, template lookup, template-specific options.
2. PARSE    -- datum / redeemer DSL (custom template only).
3. RESOLVE  -- feature closure, purpose and conflict checks (custom only).
4. RENDER   -- the Aiken project, plus the TypeScript SDK when requested.
5. VERIFY   -- compile -> test -> scan, unless ``skip_verify`` is set.

Any failure before VERIFY raises and no files are produced. A failed
verification is returned alongside the files, or raised when
``Config.strict_verification`` is set.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Sequence

import pydantic
from pydantic import BaseModel, Field

from .catalogue.models import Feature, Purpose, Template
from .catalogue.registry import Catalogue, get_catalogue
from .config import Config
from .errors import ForgeError, ParseError, ValidationError
from .parser.models import ActionSpec, CustomSpec, FieldSpec
from .parser.spec_parser import parse_actions, parse_fields
from .resolver import ResolvedFeatures, resolve
from .scaffolder.generator import ProjectGenerator, build_custom_spec
from .scaffolder.models import GeneratedProject, GenerateOptions
from .tester.results import VerificationReport
from .tester.runner import Verifier
from .utils import print_summary_table, print_warning

# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class ValidationResult(BaseModel):
    """Answer to "would this configuration be accepted?"."""

    valid: bool
    errors: list[str] = Field(default_factory=list)


class GenerationResult(BaseModel):
    """Generated files plus the verification report that gated them."""

    project: GeneratedProject
    report: VerificationReport

    @property
    def files(self) -> dict[str, str]:
        return self.project.as_dict()


# ---------------------------------------------------------------------------
# Pipeline Orchestrator
# ---------------------------------------------------------------------------


class Pipeline:
    """Aikforge's public operations.

    Attributes:
        config: Manifest values, verifier tools and the strictness policy.
        generator: Renders projects and SDKs.
        verifier: Runs the compile -> test -> scan pipeline.

    The pipeline keeps no per-request state, so one instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        generator: Optional[ProjectGenerator] = None,
        verifier: Optional[Verifier] = None,
        catalogue: Optional[Catalogue] = None,
        *,
        verbose: bool = True,
    ) -> None:
        self.config = config or Config()
        self.catalogue = catalogue or get_catalogue()
        self.generator = generator or ProjectGenerator(
            manifest=self.config.manifest, catalogue=self.catalogue
        )
        self.verifier = verifier or Verifier(self.config, verbose=verbose)
        self.verbose = verbose

    # ------------------------------------------------------------------
    # Catalogue projections
    # ------------------------------------------------------------------

    def list_templates(self) -> list[Template]:
        return list(self.catalogue.templates)

    def get_template_info(self, slug: str) -> Template:
        """Look up a template by slug or alias.

        Raises:
            TemplateNotFoundError: No such template.
        """
        return self.catalogue.template(slug)

    def list_features(self) -> list[Feature]:
        return list(self.catalogue.features)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, options: GenerateOptions | dict[str, Any]) -> ValidationResult:
        """Check *options* without rendering or verifying anything.

        Every problem found is reported. For the custom template the datum,
        the redeemer and the feature list are checked independently, then
        cross-checked when all three are usable.
        """
        try:
            opts = self._coerce(options)
        except ValidationError as exc:
            return ValidationResult(valid=False, errors=[exc.message])

        errors = opts.identifier_errors()
        try:
            template = self.catalogue.template(opts.template)
        except ValidationError as exc:
            errors.append(exc.message)
            return ValidationResult(valid=False, errors=errors)

        toggle_error = _unsupported_toggles(template, opts)
        if toggle_error:
            errors.append(toggle_error)
        if template.is_custom:
            errors.extend(self._custom_errors(opts))
        return ValidationResult(valid=not errors, errors=errors)

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    async def generate(self, options: GenerateOptions | dict[str, Any]) -> GenerationResult:
        """Render a project and, unless skipped, verify it.

        Raises:
            ValidationError / ParseError / ResolutionError / RenderError:
                The request is invalid; nothing was rendered.
            VerificationError: Verification failed and the configuration is
                strict. The error carries the report.
        """
        opts = self._coerce(options)
        _, spec, resolved = self._prepare(opts)

        project = self.generator.render(opts, resolved=resolved, custom_spec=spec)
        if opts.sdk:
            sdk = self.generator.render_sdk(opts)
            project = GeneratedProject(template=project.template, files=[*project.files, *sdk.files])

        if opts.skip_verify:
            report = VerificationReport.skipped()
        else:
            report = await self.verifier.verify_project(project)

        if self.verbose:
            self._print_summary(opts, project, report)

        if self.config.strict_verification:
            report.raise_for_status()
        elif report.failed_stage is not None and self.verbose:
            print_warning("Returning files that failed verification; see the report")
        return GenerationResult(project=project, report=report)

    def generate_sdk(self, options: GenerateOptions | dict[str, Any]) -> GeneratedProject:
        """Render only the TypeScript SDK. Never verifies.

        Raises:
            UnsupportedOperationError: The template has no SDK.
        """
        opts = self._coerce(options)
        self._prepare(opts)
        return self.generator.render_sdk(opts)

    # ------------------------------------------------------------------
    # Standalone verification
    # ------------------------------------------------------------------

    async def verify(self, path: str | Path) -> VerificationReport:
        """Run the full verification pipeline against an existing project.

        ``skip_verify`` plays no part here: the pipeline always runs.

        Raises:
            ValidationError: *path* is not a directory.
        """
        return await self.verifier.verify_path(path)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _coerce(options: GenerateOptions | dict[str, Any]) -> GenerateOptions:
        if isinstance(options, GenerateOptions):
            return options
        try:
            return GenerateOptions.model_validate(options)
        except pydantic.ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'options'}: {err['msg']}"
                for err in exc.errors()
            )
            raise ValidationError(f"Invalid options: {problems}") from exc

    def _prepare(
        self,
        opts: GenerateOptions,
    ) -> tuple[Template, Optional[CustomSpec], Optional[ResolvedFeatures]]:
        """Validate, parse and resolve *opts*; the render inputs on success."""
        template = self.catalogue.template(opts.template)

        errors = opts.identifier_errors()
        if errors:
            raise ValidationError("; ".join(errors))

        toggle_error = _unsupported_toggles(template, opts)
        if toggle_error:
            raise ValidationError(toggle_error)

        if not template.is_custom:
            return template, None, None

        spec = build_custom_spec(opts)
        problems = _shape_problems(spec.purpose, spec.datum_fields, spec.redeemer_actions)
        if problems:
            raise ValidationError(problems[0])
        resolved = resolve(spec.purpose, spec.features, self.catalogue)
        problems = _requirement_problems(spec, resolved)
        if problems:
            raise ValidationError(problems[0])
        return template, spec, resolved

    def _custom_errors(self, opts: GenerateOptions) -> list[str]:
        errors: list[str] = []
        purpose = opts.effective_purpose
        fields: Optional[tuple[FieldSpec, ...]] = None
        actions: Optional[tuple[ActionSpec, ...]] = None
        resolved: Optional[ResolvedFeatures] = None

        try:
            fields = tuple(parse_fields(opts.datum))
        except ParseError as exc:
            errors.append(f"datum: {exc.message}")
        try:
            actions = tuple(parse_actions(opts.redeemer))
        except ParseError as exc:
            errors.append(f"redeemer: {exc.message}")
        try:
            resolved = resolve(purpose, opts.features, self.catalogue)
        except ForgeError as exc:
            errors.append(exc.message)

        errors.extend(_shape_problems(purpose, fields, actions))
        if fields is not None and actions is not None and resolved is not None:
            spec = CustomSpec(
                purpose=purpose,
                features=tuple(opts.features),
                datum_fields=fields,
                redeemer_actions=actions,
            )
            errors.extend(_requirement_problems(spec, resolved))
        return errors

    def _print_summary(
        self, opts: GenerateOptions, project: GeneratedProject, report: VerificationReport
    ) -> None:
        print_summary_table(
            {
                "Template": project.template,
                "Project": f"{opts.namespace}/{opts.project_name}",
                "Files": str(len(project.files)),
                "Verification": report.state.value,
            },
            title="Generation Summary",
        )


# ---------------------------------------------------------------------------
# Option and custom-template checks
# ---------------------------------------------------------------------------


def _unsupported_toggles(template: Template, opts: GenerateOptions) -> Optional[str]:
    unsupported = [name for name in opts.set_toggles() if name not in template.allowed_options]
    if not unsupported:
        return None
    return f"Template '{template.slug}' does not accept option(s): {', '.join(unsupported)}"


def _shape_problems(
    purpose: Purpose,
    fields: Optional[Sequence[FieldSpec]],
    actions: Optional[Sequence[ActionSpec]],
) -> list[str]:
    """Shape rules for a custom validator; ``None`` parts failed to parse and are skipped."""
    problems: list[str] = []
    if actions is not None and not actions:
        problems.append("Custom validators need at least one redeemer action")
    if fields is not None:
        if purpose is Purpose.SPEND and not fields:
            problems.append("Spend validators need at least one datum field")
        if purpose is Purpose.MINT and fields:
            problems.append("Mint validators take no datum; remove the datum fields")
    return problems


def _requirement_problems(spec: CustomSpec, resolved: ResolvedFeatures) -> list[str]:
    problems: list[str] = []
    for feature in resolved.order:
        if feature.requires_int_datum_field and not spec.int_fields():
            problems.append(
                f"Feature '{feature.name}' needs an Int datum field (e.g. deadline:Int)"
            )
        if feature.requires_action and not spec.has_action(feature.requires_action):
            problems.append(
                f"Feature '{feature.name}' needs a '{feature.requires_action}' redeemer action"
            )
    return problems
