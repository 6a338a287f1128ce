"""Main rendering orchestrator.

Takes ``GenerateOptions`` and produces a ``GeneratedProject``: the
``aiken.toml`` manifest, the type module(s) under
``lib/<namespace>/<project>/`` and the validator module(s) under
``validators/``. Rendering is a pure function of its inputs: nothing in the
output depends on time, randomness or the host environment.
"""

from __future__ import annotations

from typing import Any, Optional

import pydantic
from jinja2 import TemplateError

from ..catalogue.models import Purpose, Template
from ..catalogue.registry import Catalogue, get_catalogue
from ..config import ManifestConfig
from ..errors import RenderError, UnsupportedOperationError, ValidationError
from ..parser.models import CustomSpec, FieldType
from ..parser.spec_parser import parse_actions, parse_fields
from ..resolver import ResolvedFeatures, resolve
from .composer import DATUM_TYPE, REDEEMER_TYPE, compose
from .models import GenerateOptions, GeneratedFile, GeneratedProject
from .sdk_gen import SDK_FILES, build_sdk_context
from .templates import TemplateRenderer

MANIFEST_PATH = "aiken.toml"
SCAN_PROFILE_PATH = ".aikido.toml"


def build_custom_spec(options: GenerateOptions) -> CustomSpec:
    """Parse the custom-template DSL strings carried by *options*."""
    return CustomSpec(
        purpose=options.effective_purpose,
        features=tuple(options.features),
        datum_fields=tuple(parse_fields(options.datum)),
        redeemer_actions=tuple(parse_actions(options.redeemer)),
    )


class ProjectGenerator:
    """Renders catalogue templates and composed custom validators.

    The generator holds no per-request state and may be shared between
    concurrent callers.
    """

    def __init__(
        self,
        manifest: Optional[ManifestConfig] = None,
        renderer: Optional[TemplateRenderer] = None,
        catalogue: Optional[Catalogue] = None,
    ) -> None:
        self.manifest = manifest or ManifestConfig()
        self.renderer = renderer or TemplateRenderer()
        self.catalogue = catalogue or get_catalogue()

    # -- Public API --------------------------------------------------------

    def render(
        self,
        options: GenerateOptions,
        resolved: Optional[ResolvedFeatures] = None,
        custom_spec: Optional[CustomSpec] = None,
    ) -> GeneratedProject:
        """Render the Aiken project described by *options*.

        For the custom template, *custom_spec* and *resolved* are derived
        from *options* when not supplied.

        Raises:
            ValidationError: Bad identifiers or unknown template.
            ParseError / ResolutionError: Custom DSL or feature problems.
            RenderError: A template failed to render.
        """
        template = self.catalogue.template(options.template)
        self._check_identifiers(options)
        context = self._build_context(template, options)

        files = [self._emit(MANIFEST_PATH, "base/aiken.toml.j2", context)]
        if options.scan_profile:
            files.append(self._emit(SCAN_PROFILE_PATH, "base/aikido.toml.j2", context))

        if template.is_custom:
            spec = custom_spec or build_custom_spec(options)
            closure = resolved or resolve(spec.purpose, spec.features, self.catalogue)
            files.extend(self._render_custom(context, spec, closure))
        else:
            files.extend(self._render_catalogue_template(template, context))

        return GeneratedProject(template=template.slug, files=files)

    def render_sdk(self, options: GenerateOptions) -> GeneratedProject:
        """Render the TypeScript client SDK for an SDK-capable template.

        Raises:
            UnsupportedOperationError: The template has ``supports_sdk=False``.
        """
        template = self.catalogue.template(options.template)
        if not template.supports_sdk:
            raise UnsupportedOperationError(
                f"TypeScript SDK is not available for '{template.slug}' template",
                stage="render",
            )
        self._check_identifiers(options)

        context = {**self._build_context(template, options), **build_sdk_context(template, options)}
        files = [
            self._emit("sdk/package.json", "sdk_base/package.json.j2", context),
            self._emit("sdk/tsconfig.json", "sdk_base/tsconfig.json.j2", context),
        ]
        for name in SDK_FILES:
            files.append(self._emit(f"sdk/src/{name}", f"sdk/{name}.j2", context))
        return GeneratedProject(template=template.slug, files=files)

    # -- Catalogue templates -----------------------------------------------

    def _render_catalogue_template(
        self, template: Template, context: dict[str, Any]
    ) -> list[GeneratedFile]:
        slug = template.slug
        lib = context["lib_dir"]
        validator = context["validator_name"]
        files = [self._emit(f"{lib}/types.ak", f"{slug}/types.ak.j2", context)]

        if slug == "referral_system":
            files.append(self._emit(f"{lib}/validation.ak", f"{slug}/validation.ak.j2", context))
            files.append(
                self._emit(f"validators/{validator}_mint.ak", f"{slug}/mint_validator.ak.j2", context)
            )
            files.append(
                self._emit(
                    f"validators/{validator}_treasury.ak", f"{slug}/treasury_validator.ak.j2", context
                )
            )
        else:
            files.append(self._emit(f"validators/{validator}.ak", f"{slug}/validator.ak.j2", context))
        return files

    # -- Custom template ---------------------------------------------------

    def _render_custom(
        self,
        context: dict[str, Any],
        spec: CustomSpec,
        resolved: ResolvedFeatures,
    ) -> list[GeneratedFile]:
        if resolved.purpose is not spec.purpose:
            raise ValidationError(
                f"Resolved features were computed for '{resolved.purpose.value}', "
                f"not '{spec.purpose.value}'"
            )
        suffix = "_mint" if spec.purpose is Purpose.MINT else "_validator"
        validator_name = f"{context['project_name']}{suffix}"

        composed = compose(
            resolved,
            spec,
            validator_name=validator_name,
            types_module=context["module_path"] + "/types",
            renderer=self.renderer,
        )
        custom_ctx = {
            **context,
            "validator_name": validator_name,
            "purpose": spec.purpose.value,
            "datum_type": DATUM_TYPE,
            "redeemer_type": REDEEMER_TYPE,
            "datum_fields": list(spec.datum_fields),
            "actions": list(spec.redeemer_actions),
            "uses_address": any(
                f.type is FieldType.ADDRESS
                for f in (*spec.datum_fields, *(x for a in spec.redeemer_actions for x in a.fields))
            ),
            "feature_names": [f.name for f in resolved.order],
            "composed": composed,
            "has_sig": "signature-auth" in resolved,
            "has_timelock": "timelock" in resolved,
            "has_continuity": "datum-continuity" in resolved,
            "has_ref_safety": "reference-safety" in resolved,
        }
        lib = context["lib_dir"]
        return [
            self._emit(f"{lib}/types.ak", "custom/types.ak.j2", custom_ctx),
            self._emit(f"validators/{validator_name}.ak", "custom/validator.ak.j2", custom_ctx),
        ]

    # -- Helpers -----------------------------------------------------------

    @staticmethod
    def _check_identifiers(options: GenerateOptions) -> None:
        errors = options.identifier_errors()
        if errors:
            raise ValidationError("; ".join(errors))

    def _build_context(self, template: Template, options: GenerateOptions) -> dict[str, Any]:
        token_name = options.token_name or options.project_name
        asset_name = options.asset_name or token_name.upper().replace(" ", "_")
        module_path = f"{options.namespace}/{options.project_name}"
        return {
            "namespace": options.namespace,
            "project_name": options.project_name,
            "package_name": module_path,
            "module_path": module_path,
            "lib_dir": f"lib/{module_path}",
            "description": options.description or template.description,
            "template_slug": template.slug,
            "validator_name": f"{options.project_name}{template.validator_suffix}",
            "manifest": self.manifest,
            "token_name": token_name,
            "asset_name": asset_name,
            "time_lock": options.time_lock,
            "cancellable": options.cancellable,
            "partial_claim": options.partial_claim,
        }

    def _emit(self, path: str, template_path: str, context: dict[str, Any]) -> GeneratedFile:
        try:
            content = self.renderer.render(template_path, context)
            return GeneratedFile(path=path, content=content)
        except TemplateError as exc:
            raise RenderError(f"Failed to render {template_path}: {exc}", stage="render") from exc
        except pydantic.ValidationError as exc:
            raise RenderError(f"Invalid output path {path!r}: {exc}", stage="render") from exc
