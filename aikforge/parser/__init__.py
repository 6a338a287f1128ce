"""Aikforge datum/redeemer DSL parser.

Parses the compact field/action DSL used by the custom template.

Key functions:
    parse_fields        - ``name:Type,...`` -> list[FieldSpec]
    parse_actions       - ``Name(field:Type),...`` -> list[ActionSpec]
    parse_feature_list  - ``sig,timelock`` -> list[str]
"""

from .models import ActionSpec, CustomSpec, FieldSpec, FieldType
from .spec_parser import (
    format_actions,
    format_fields,
    parse_actions,
    parse_feature_list,
    parse_fields,
)

__all__ = [
    # Models
    "FieldType",
    "FieldSpec",
    "ActionSpec",
    "CustomSpec",
    # Parsing
    "parse_fields",
    "parse_actions",
    "parse_feature_list",
    "format_fields",
    "format_actions",
]
