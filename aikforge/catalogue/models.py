"""Pydantic v2 models for the template and feature catalogue.

Every model here is frozen: catalogue entries are built once per process and
shared freely between concurrent callers.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Purpose(str, Enum):
    """Operational mode of a validator."""
    SPEND = "spend"
    MINT = "mint"


# ---------------------------------------------------------------------------
# SDK schema
# ---------------------------------------------------------------------------

class SdkField(BaseModel):
    """A datum or redeemer field as exposed to the TypeScript client."""
    model_config = ConfigDict(frozen=True)

    name: str
    aiken_type: str = Field(..., description="Aiken type, e.g. 'Int' or 'List<ByteArray>'")
    only_if: Optional[str] = Field(
        default=None, description="Option toggle that must be true for the field to exist"
    )


class SdkVariant(BaseModel):
    """One redeemer constructor."""
    model_config = ConfigDict(frozen=True)

    name: str
    fields: tuple[SdkField, ...] = ()
    only_if: Optional[str] = None


class SdkSchema(BaseModel):
    """On-chain interface of a template, used to render the client SDK."""
    model_config = ConfigDict(frozen=True)

    purpose: Purpose
    datum_type: Optional[str] = None
    datum_fields: tuple[SdkField, ...] = ()
    redeemer_type: str
    variants: tuple[SdkVariant, ...]
    validator_suffix: str = Field(
        default="", description="Suffix of the validator the client targets"
    )


# ---------------------------------------------------------------------------
# Template
# ---------------------------------------------------------------------------

class Template(BaseModel):
    """A named, parameterized blueprint producing a fixed project shape."""
    model_config = ConfigDict(frozen=True)

    slug: str = Field(..., description="Unique key, e.g. 'vesting'")
    description: str
    allowed_options: frozenset[str] = Field(
        default=frozenset(), description="GenerateOptions toggles this template reads"
    )
    supports_sdk: bool = False
    aliases: tuple[str, ...] = ()
    validator_suffix: str = Field(..., description="Appended to the project name")
    purpose: Optional[Purpose] = Field(
        default=None, description="Fixed validator purpose; None when the caller chooses"
    )
    sdk: Optional[SdkSchema] = None

    @property
    def is_custom(self) -> bool:
        return self.slug == "custom"


# ---------------------------------------------------------------------------
# Feature
# ---------------------------------------------------------------------------

class ValidatorParam(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    aiken_type: str


class FeatureFragment(BaseModel):
    """Code a feature contributes to a composed validator.

    ``preamble`` is emitted once before the redeemer dispatch; ``per_action``
    inside every redeemer branch, or only inside the branches listed in
    ``only_actions``. Both are jinja2 snippets rendered with ``datum_type``
    and ``deadline_field`` in scope.
    """
    model_config = ConfigDict(frozen=True)

    imports: tuple[str, ...] = ()
    params: tuple[ValidatorParam, ...] = ()
    preamble: str = ""
    per_action: str = ""
    only_actions: tuple[str, ...] = ()


class Feature(BaseModel):
    """A composable, independently selectable security check."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Unique key, e.g. 'signature-auth'")
    description: str
    purpose: Optional[Purpose] = Field(default=None, description="None means any purpose")
    depends_on: tuple[str, ...] = ()
    conflicts_with: tuple[str, ...] = ()
    aliases: tuple[str, ...] = ()
    fragment: FeatureFragment = Field(default_factory=FeatureFragment)
    requires_int_datum_field: bool = False
    requires_action: Optional[str] = Field(
        default=None, description="Redeemer variant that must exist, e.g. 'Burn'"
    )

    def applies_to(self, purpose: Purpose) -> bool:
        return self.purpose is None or self.purpose == purpose
