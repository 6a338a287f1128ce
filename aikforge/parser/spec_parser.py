"""Parsers for the compact field, action and feature-list DSLs.

Grammar::

    fields   := field (',' field)*
    field    := identifier ':' type
    actions  := action (',' action)*
    action   := Identifier ['(' field (',' field)* ')']

Whitespace around tokens is ignored. Empty input parses to an empty list;
callers decide whether that is acceptable.
"""

from __future__ import annotations

import re
from typing import Iterable

from ..errors import ParseError
from .models import ActionSpec, FieldSpec, FieldType

FIELD_NAME_RE = re.compile(r"[a-z][a-z0-9_]*")
ACTION_NAME_RE = re.compile(r"[A-Za-z][A-Za-z0-9]*")

_TYPE_TOKENS: dict[str, FieldType] = {t.value: t for t in FieldType}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_fields(text: str) -> list[FieldSpec]:
    """Parse ``name:Type[,name:Type...]`` into field specs.

    Raises:
        ParseError: On malformed syntax, an unknown type, or a duplicate name.
    """
    if not text or not text.strip():
        return []
    _check_balanced(text)
    return _parse_field_items(_split_top_level(text), context="field")


def parse_actions(text: str) -> list[ActionSpec]:
    """Parse ``Name[(field:Type,...)][,Name...]`` into action specs.

    Action names are compared after upper-casing the first letter, so
    ``claim`` and ``Claim`` count as duplicates.

    Raises:
        ParseError: On malformed syntax, unbalanced parentheses, duplicate
            actions, or duplicate fields within one action.
    """
    if not text or not text.strip():
        return []
    _check_balanced(text)

    actions: list[ActionSpec] = []
    seen: set[str] = set()
    for item in _split_top_level(text):
        action = _parse_action(item)
        if action.variant in seen:
            raise ParseError("Duplicate action", action.name)
        seen.add(action.variant)
        actions.append(action)
    return actions


def parse_feature_list(value: str | Iterable[str] | None) -> list[str]:
    """Split a comma-separated feature list, dropping blanks and repeats.

    Names are returned as written (trimmed); the catalogue resolves aliases.
    """
    if value is None:
        return []
    items = value.split(",") if isinstance(value, str) else list(value)
    names: list[str] = []
    for item in items:
        name = item.strip()
        if name and name not in names:
            names.append(name)
    return names


def format_fields(fields: Iterable[FieldSpec]) -> str:
    """Inverse of ``parse_fields``."""
    return ",".join(f"{f.name}:{f.type.value}" for f in fields)


def format_actions(actions: Iterable[ActionSpec]) -> str:
    """Inverse of ``parse_actions``."""
    parts: list[str] = []
    for action in actions:
        if action.fields:
            parts.append(f"{action.name}({format_fields(action.fields)})")
        else:
            parts.append(action.name)
    return ",".join(parts)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _check_balanced(text: str) -> None:
    depth = 0
    for ch in text:
        if ch == "(":
            depth += 1
            if depth > 1:
                raise ParseError("Nested parentheses are not allowed", text.strip())
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise ParseError("Unbalanced parentheses", text.strip())
    if depth != 0:
        raise ParseError("Unbalanced parentheses", text.strip())


def _split_top_level(text: str) -> list[str]:
    """Split on commas outside parentheses. Blank items are errors."""
    items: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            items.append("".join(current))
            current = []
        else:
            current.append(ch)
    items.append("".join(current))

    for item in items:
        if not item.strip():
            raise ParseError("Empty list element", text.strip())
    return [item.strip() for item in items]


def _parse_field_items(items: list[str], context: str) -> list[FieldSpec]:
    fields: list[FieldSpec] = []
    seen: set[str] = set()
    for item in items:
        field = _parse_field(item)
        if field.name in seen:
            raise ParseError(f"Duplicate {context} name", field.name)
        seen.add(field.name)
        fields.append(field)
    return fields


def _parse_field(item: str) -> FieldSpec:
    name, sep, type_token = item.partition(":")
    if not sep:
        raise ParseError("Expected 'name:Type'", item)
    name = name.strip()
    if not FIELD_NAME_RE.fullmatch(name):
        raise ParseError("Invalid field name", name or item)
    normalized = re.sub(r"\s*([<>])\s*", r"\1", type_token.strip())
    field_type = _TYPE_TOKENS.get(normalized)
    if field_type is None:
        valid = ", ".join(_TYPE_TOKENS)
        raise ParseError(f"Unknown type (expected one of {valid})", type_token.strip() or item)
    return FieldSpec(name=name, type=field_type)


def _parse_action(item: str) -> ActionSpec:
    if "(" not in item:
        if ")" in item or not ACTION_NAME_RE.fullmatch(item):
            raise ParseError("Invalid action name", item)
        return ActionSpec(name=item)

    head, _, rest = item.partition("(")
    name = head.strip()
    if not ACTION_NAME_RE.fullmatch(name):
        raise ParseError("Invalid action name", name or item)
    if not rest.endswith(")"):
        raise ParseError("Unexpected text after ')'", item)
    body = rest[:-1]
    if not body.strip():
        raise ParseError("Empty field list", item)
    fields = _parse_field_items(_split_top_level(body), context="field in action")
    return ActionSpec(name=name, fields=tuple(fields))
