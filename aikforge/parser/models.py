"""Pydantic v2 models for custom datum and redeemer declarations."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ..catalogue.models import Purpose


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class FieldType(str, Enum):
    """Closed vocabulary of field types accepted in the field DSL."""
    INT = "Int"
    BYTE_ARRAY = "ByteArray"
    ADDRESS = "Address"
    BOOL = "Bool"
    LIST_INT = "List<Int>"
    LIST_BYTE_ARRAY = "List<ByteArray>"

    @property
    def ts_type(self) -> str:
        """TypeScript type used by the generated client SDK."""
        return _TS_TYPES[self]


_TS_TYPES: dict[FieldType, str] = {
    FieldType.INT: "bigint",
    FieldType.BYTE_ARRAY: "string",
    FieldType.ADDRESS: "string",
    FieldType.BOOL: "boolean",
    FieldType.LIST_INT: "bigint[]",
    FieldType.LIST_BYTE_ARRAY: "string[]",
}


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------

class FieldSpec(BaseModel):
    """A named, typed field of a datum or a redeemer action."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Identifier matching [a-z][a-z0-9_]*")
    type: FieldType


class ActionSpec(BaseModel):
    """A redeemer action. No fields means a unit variant."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Identifier matching [A-Za-z][A-Za-z0-9]*")
    fields: tuple[FieldSpec, ...] = ()

    @property
    def variant(self) -> str:
        """Constructor name as rendered, first letter upper-cased."""
        return self.name[:1].upper() + self.name[1:]


class CustomSpec(BaseModel):
    """Everything the custom template needs besides namespace and project name."""
    model_config = ConfigDict(frozen=True)

    purpose: Purpose = Purpose.SPEND
    features: tuple[str, ...] = ()
    datum_fields: tuple[FieldSpec, ...] = ()
    redeemer_actions: tuple[ActionSpec, ...] = ()

    def int_fields(self) -> list[FieldSpec]:
        return [f for f in self.datum_fields if f.type is FieldType.INT]

    def has_action(self, variant: str) -> bool:
        return any(a.variant == variant for a in self.redeemer_actions)
