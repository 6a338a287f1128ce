"""TypeScript client SDK context builder.

SDK files are shared templates under ``sdk/`` driven by the template's
``SdkSchema``; option-dependent fields and variants are filtered here so the
SDK always matches the validator that was rendered alongside it.
"""

from __future__ import annotations

from typing import Any

from ..catalogue.models import SdkField, SdkSchema, Template
from ..errors import RenderError
from ..parser.models import FieldType
from .models import GenerateOptions

SDK_FILES = ("types.ts", "serialization.ts", "client.ts", "index.ts")


def _enabled(only_if: str | None, options: GenerateOptions) -> bool:
    return only_if is None or bool(getattr(options, only_if))


def _field_ctx(field: SdkField) -> dict[str, Any]:
    field_type = FieldType(field.aiken_type)
    return {
        "name": field.name,
        "aiken_type": field.aiken_type,
        "ts_type": field_type.ts_type,
        "kind": field_type.name.lower(),
    }


def build_sdk_context(template: Template, options: GenerateOptions) -> dict[str, Any]:
    """Context for the ``sdk_base/*`` and ``sdk/*`` templates."""
    schema: SdkSchema | None = template.sdk
    if schema is None:
        raise RenderError(f"Template '{template.slug}' has no SDK schema")

    suffix = schema.validator_suffix or template.validator_suffix
    validator_name = f"{options.project_name}{suffix}"

    variants = []
    for index, variant in enumerate(v for v in schema.variants if _enabled(v.only_if, options)):
        variants.append(
            {
                "name": variant.name,
                "index": index,
                "fields": [_field_ctx(f) for f in variant.fields if _enabled(f.only_if, options)],
            }
        )

    return {
        "namespace": options.namespace,
        "project_name": options.project_name,
        "npm_name": f"@{options.namespace}/{options.project_name.replace('_', '-')}-sdk",
        "template_slug": template.slug,
        "purpose": schema.purpose.value,
        "validator_name": validator_name,
        "blueprint_title": f"{validator_name}.{validator_name}.{schema.purpose.value}",
        "datum_type": schema.datum_type,
        "datum_fields": [_field_ctx(f) for f in schema.datum_fields if _enabled(f.only_if, options)],
        "redeemer_type": schema.redeemer_type,
        "variants": variants,
    }
