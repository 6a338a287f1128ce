"""Composition of custom validators from resolved features.

Given a ``ResolvedFeatures`` closure and a ``CustomSpec``, builds everything
the ``custom/validator.ak.j2`` template needs: merged imports, validator
parameters, the shared preamble, per-branch checks, and inline test cases
exercising the selected checks.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from ..catalogue.models import Purpose, ValidatorParam
from ..errors import ValidationError
from ..parser.models import ActionSpec, CustomSpec, FieldSpec, FieldType
from ..resolver import ResolvedFeatures
from .templates import TemplateRenderer

DEADLINE_FIELD_NAMES = ("deadline", "lock_until", "expiry", "expires_at", "lock_time")

DATUM_TYPE = "CustomDatum"
REDEEMER_TYPE = "CustomRedeemer"

_BASE_IMPORTS: dict[Purpose, tuple[str, ...]] = {
    Purpose.SPEND: (
        "use cardano/transaction",
        "use cardano/transaction.{OutputReference, Transaction}",
    ),
    Purpose.MINT: (
        "use cardano/assets",
        "use cardano/assets.{PolicyId}",
        "use cardano/transaction",
        "use cardano/transaction.{Transaction}",
    ),
}

# Helpers used by the inline tests when the continuing output is checked.
_CONTINUITY_TEST_IMPORTS = (
    "use cardano/address.{Address, Script}",
    "use cardano/assets",
    "use cardano/transaction.{InlineDatum, Input, Output}",
)

_ADDRESS_IMPORT = "use cardano/address.{Address, VerificationKey}"
_TEST_ADDRESS = 'Address { payment_credential: VerificationKey(#"aabbccdd"), stake_credential: None }'


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class Branch(BaseModel):
    """One ``when redeemer is`` arm."""

    pattern: str
    checks: list[str] = Field(default_factory=list)


class InlineTest(BaseModel):
    """An Aiken ``test`` block calling the validator handler."""

    name: str
    fails: bool = False
    tx_fields: list[str] = Field(default_factory=list)
    args: str


class ComposedValidator(BaseModel):
    imports: list[str]
    types_import: str
    params: list[ValidatorParam]
    preamble: str
    branches: list[Branch]
    deadline_field: Optional[str] = None
    datum_values: list[tuple[str, str]] = Field(default_factory=list)
    tests: list[InlineTest] = Field(default_factory=list)

    @property
    def params_signature(self) -> str:
        return ", ".join(f"{p.name}: {p.aiken_type}" for p in self.params)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def find_deadline_field(fields: tuple[FieldSpec, ...] | list[FieldSpec]) -> Optional[str]:
    """The ``Int`` datum field a time-lock compares against.

    Prefers a conventionally named ``Int`` field, otherwise the first one.
    A conventional name on a non-``Int`` field is ignored.
    """
    int_names = [f.name for f in fields if f.type is FieldType.INT]
    for candidate in DEADLINE_FIELD_NAMES:
        if candidate in int_names:
            return candidate
    return int_names[0] if int_names else None


def merge_imports(lines: set[str] | list[str]) -> list[str]:
    """Collapse braced ``use`` lines per module path and sort the result.

    ``use a/b.{X}`` and ``use a/b.{Y}`` become ``use a/b.{X, Y}``. A plain
    ``use a/b`` is kept on its own line next to the braced form.
    """
    plain: set[str] = set()
    braced: dict[str, set[str]] = {}
    for line in lines:
        module, sep, rest = line.partition(".{")
        module = module.strip()
        if sep:
            names = {n.strip() for n in rest.rstrip("}").split(",") if n.strip()}
            braced.setdefault(module, set()).update(names)
        else:
            plain.add(module)

    merged = list(plain)
    for module, names in braced.items():
        merged.append(f"{module}.{{{', '.join(sorted(names))}}}")
    return sorted(merged)


def compose(
    resolved: ResolvedFeatures,
    spec: CustomSpec,
    *,
    validator_name: str,
    types_module: str,
    renderer: TemplateRenderer,
) -> ComposedValidator:
    """Assemble a custom validator in the resolver's render order."""
    purpose = resolved.purpose
    deadline_field = find_deadline_field(spec.datum_fields) if purpose is Purpose.SPEND else None
    if "timelock" in resolved and deadline_field is None:
        raise ValidationError("Feature 'timelock' needs an Int datum field to use as the deadline")

    fragment_ctx = {"datum_type": DATUM_TYPE, "deadline_field": deadline_field or ""}

    imports: set[str] = set(_BASE_IMPORTS[purpose])
    params: list[ValidatorParam] = []
    preamble_parts: list[str] = []
    branches = [Branch(pattern=_pattern(a)) for a in spec.redeemer_actions]

    for feature in resolved.order:
        fragment = feature.fragment
        imports.update(fragment.imports)
        for param in fragment.params:
            if all(p.name != param.name for p in params):
                params.append(param)
        if fragment.preamble:
            preamble_parts.append(renderer.render_string(fragment.preamble, fragment_ctx))
        if fragment.per_action:
            code = renderer.render_string(fragment.per_action, fragment_ctx)
            for action, branch in zip(spec.redeemer_actions, branches):
                if not fragment.only_actions or action.variant in fragment.only_actions:
                    branch.checks.append(code)

    if purpose is Purpose.SPEND and "datum-continuity" in resolved:
        imports.update(_CONTINUITY_TEST_IMPORTS)
    if _uses_address(spec):
        imports.add(_ADDRESS_IMPORT)

    type_names = [DATUM_TYPE] if purpose is Purpose.SPEND else []
    type_names.append(REDEEMER_TYPE)
    type_names.extend(a.variant for a in spec.redeemer_actions)

    has_sig = "signature-auth" in resolved
    datum_values = [
        (f.name, _datum_test_value(f, has_sig, "timelock" in resolved, deadline_field))
        for f in spec.datum_fields
    ] if purpose is Purpose.SPEND else []

    return ComposedValidator(
        imports=merge_imports(imports),
        types_import=f"use {types_module}.{{{', '.join(type_names)}}}",
        params=params,
        preamble="\n\n".join(preamble_parts),
        branches=branches,
        deadline_field=deadline_field,
        datum_values=datum_values,
        tests=_build_tests(resolved, spec, params),
    )


# ---------------------------------------------------------------------------
# Inline tests
# ---------------------------------------------------------------------------

def _build_tests(
    resolved: ResolvedFeatures,
    spec: CustomSpec,
    params: list[ValidatorParam],
) -> list[InlineTest]:
    if not spec.redeemer_actions:
        return []

    has_sig = "signature-auth" in resolved
    has_timelock = "timelock" in resolved
    has_continuity = "datum-continuity" in resolved
    param_args = [_param_test_value(p) for p in params]

    if resolved.purpose is Purpose.MINT:
        return _mint_tests(resolved, spec, param_args, has_sig)

    action = spec.redeemer_actions[0]
    redeemer = _action_test_value(action)
    some_datum = ", ".join([*param_args, "Some(test_datum())", redeemer, "test_oref()", "tx"])
    no_datum = ", ".join([*param_args, "None", redeemer, "test_oref()", "tx"])
    name = action.name.lower()

    def tx(signer: Optional[str] = "test_admin", after: bool = True, outputs: str = "[cont_output_ok()]") -> list[str]:
        fields: list[str] = []
        if has_sig:
            fields.append(f"extra_signatories: [{signer}]")
        if has_timelock:
            window = "interval.after(test_deadline + 1)" if after else "interval.before(test_deadline - 1)"
            fields.append(f"validity_range: {window}")
        if has_continuity:
            fields.append("inputs: [script_input()]")
            fields.append(f"outputs: {outputs}")
        return fields

    tests = [InlineTest(name=f"{name}_valid", tx_fields=tx(), args=some_datum)]
    if has_sig:
        tests.append(
            InlineTest(name=f"{name}_wrong_signer_fails", fails=True, tx_fields=tx(signer='#"deadbeef"'), args=some_datum)
        )
    if has_timelock:
        tests.append(
            InlineTest(name=f"{name}_before_deadline_fails", fails=True, tx_fields=tx(after=False), args=some_datum)
        )
    tests.append(InlineTest(name="no_datum_fails", fails=True, tx_fields=tx(), args=no_datum))
    if "reference-safety" in resolved:
        tests.append(
            InlineTest(
                name="reference_script_injection_fails",
                fails=True,
                tx_fields=tx(outputs="[cont_output_with_ref_script()]"),
                args=some_datum,
            )
        )
    return tests


def _mint_tests(
    resolved: ResolvedFeatures,
    spec: CustomSpec,
    param_args: list[str],
    has_sig: bool,
) -> list[InlineTest]:
    has_burn = "burn-verification" in resolved
    candidates = [a for a in spec.redeemer_actions if not (has_burn and a.variant == "Burn")]
    tests: list[InlineTest] = []

    def args(action: ActionSpec) -> str:
        return ", ".join([*param_args, _action_test_value(action), "test_policy", "tx"])

    def tx(quantity: int, signed: bool = True) -> list[str]:
        fields: list[str] = []
        if has_sig:
            fields.append("extra_signatories: [test_admin]" if signed else "extra_signatories: []")
        fields.append(f'mint: assets.from_asset(test_policy, "token", {quantity})')
        return fields

    if candidates:
        action = candidates[0]
        tests.append(InlineTest(name="mint_valid", tx_fields=tx(1), args=args(action)))
        if has_sig:
            tests.append(
                InlineTest(name="mint_no_signature_fails", fails=True, tx_fields=tx(1, signed=False), args=args(action))
            )

    burn = next((a for a in spec.redeemer_actions if a.variant == "Burn"), None)
    if has_burn and burn is not None:
        tests.append(InlineTest(name="burn_valid", tx_fields=tx(-1), args=args(burn)))
        tests.append(InlineTest(name="burn_positive_fails", fails=True, tx_fields=tx(1), args=args(burn)))
    return tests


# ---------------------------------------------------------------------------
# Literals
# ---------------------------------------------------------------------------

def _pattern(action: ActionSpec) -> str:
    if not action.fields:
        return action.variant
    inner = ", ".join(f"{f.name}: _" for f in action.fields)
    return f"{action.variant} {{ {inner} }}"


def _uses_address(spec: CustomSpec) -> bool:
    fields = [*spec.datum_fields, *(f for a in spec.redeemer_actions for f in a.fields)]
    return any(f.type is FieldType.ADDRESS for f in fields)


def _param_test_value(param: ValidatorParam) -> str:
    if param.name == "admin_pkh":
        return "test_admin"
    if param.name == "min_lovelace":
        return "2_000_000"
    return '#"00"' if param.aiken_type == "ByteArray" else "100"


def _datum_test_value(
    field: FieldSpec,
    has_sig: bool,
    has_timelock: bool,
    deadline_field: Optional[str],
) -> str:
    if field.type is FieldType.BYTE_ARRAY:
        if has_sig and any(key in field.name for key in ("admin", "owner", "signer")):
            return "test_admin"
        return '#"aabbccdd"'
    if field.type is FieldType.INT:
        if has_timelock and field.name == deadline_field:
            return "test_deadline"
        if any(key in field.name for key in ("amount", "balance", "total")):
            return "10_000_000"
        return "0"
    if field.type is FieldType.BOOL:
        return "True"
    if field.type is FieldType.ADDRESS:
        return _TEST_ADDRESS
    return "[]"


def _action_test_value(action: ActionSpec) -> str:
    if not action.fields:
        return action.variant
    values = {
        FieldType.INT: "5_000_000",
        FieldType.BYTE_ARRAY: '#"aabb"',
        FieldType.BOOL: "True",
        FieldType.ADDRESS: _TEST_ADDRESS,
        FieldType.LIST_INT: "[]",
        FieldType.LIST_BYTE_ARRAY: "[]",
    }
    inner = ", ".join(f"{f.name}: {values[f.type]}" for f in action.fields)
    return f"{action.variant} {{ {inner} }}"
