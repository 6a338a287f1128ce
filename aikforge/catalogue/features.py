"""Composable security features for custom validators.

Declaration order is significant: it is the tie-break used when ordering
independent features, so generated validator bodies always list checks in
the sequence below.
"""

from __future__ import annotations

from .models import Feature, FeatureFragment, Purpose, ValidatorParam

_CONTINUITY_PREAMBLE = """\
    // Find own input to get the script address
    expect Some(own_input) =
      list.find(self.inputs, fn(i) { i.output_reference == own_ref })
    let own_address = own_input.output.address

    // Find the continuing output at the same address
    expect Some(cont_output) =
      list.find(self.outputs, fn(o) { o.address == own_address })

    // The continuing output must carry a well-formed inline datum
    expect InlineDatum(raw) = cont_output.datum
    expect _out_datum: {{ datum_type }} = raw"""

_VALUE_PREAMBLE = """\
    let input_lovelace = lovelace_of(own_input.output.value)
    let output_lovelace = lovelace_of(cont_output.value)
    let input_non_ada = without_lovelace(own_input.output.value)
    let output_non_ada = without_lovelace(cont_output.value)"""


FEATURES: tuple[Feature, ...] = (
    Feature(
        name="signature-auth",
        description="Require a specific signer in extra_signatories",
        aliases=("sig", "signature", "signature_auth"),
        fragment=FeatureFragment(
            imports=("use aiken/collection/list",),
            params=(ValidatorParam(name="admin_pkh", aiken_type="ByteArray"),),
            per_action=(
                "        // Admin must sign the transaction\n"
                "        expect list.has(self.extra_signatories, admin_pkh)"
            ),
        ),
    ),
    Feature(
        name="timelock",
        description="Enforce validity_range after a deadline field",
        purpose=Purpose.SPEND,
        aliases=("time_lock", "time-lock"),
        requires_int_datum_field=True,
        fragment=FeatureFragment(
            imports=("use aiken/interval",),
            per_action=(
                "        // Validity range must be entirely after the deadline\n"
                "        expect interval.is_entirely_after(self.validity_range, "
                "datum.{{ deadline_field }})"
            ),
        ),
    ),
    Feature(
        name="datum-continuity",
        description="Find the continuing output and validate its datum",
        purpose=Purpose.SPEND,
        aliases=("datum", "continuity", "datum_continuity"),
        fragment=FeatureFragment(
            imports=(
                "use aiken/collection/list",
                "use cardano/transaction.{InlineDatum}",
            ),
            preamble=_CONTINUITY_PREAMBLE,
        ),
    ),
    Feature(
        name="reference-safety",
        description="Reject reference script injection on the continuing output",
        purpose=Purpose.SPEND,
        depends_on=("datum-continuity",),
        aliases=("ref_safety", "refsafety", "reference_safety"),
        fragment=FeatureFragment(
            preamble=(
                "    // Reference script injection protection\n"
                "    expect cont_output.reference_script == None"
            ),
        ),
    ),
    Feature(
        name="value-preservation",
        description="Preserve non-ADA assets and forbid ADA decrease on the continuing output",
        purpose=Purpose.SPEND,
        depends_on=("datum-continuity",),
        aliases=("value", "preservation", "value_preservation"),
        fragment=FeatureFragment(
            imports=("use cardano/assets.{lovelace_of, without_lovelace}",),
            preamble=_VALUE_PREAMBLE,
            per_action=(
                "        // Preserve non-ADA assets and prevent ADA decrease\n"
                "        expect output_non_ada == input_non_ada\n"
                "        expect output_lovelace >= input_lovelace"
            ),
        ),
    ),
    Feature(
        name="bounded-operations",
        description="Enforce a minimum lovelace floor on the continuing output",
        purpose=Purpose.SPEND,
        depends_on=("datum-continuity",),
        aliases=("bounded", "floor", "bounded_operations"),
        fragment=FeatureFragment(
            imports=("use cardano/assets.{lovelace_of}",),
            params=(ValidatorParam(name="min_lovelace", aiken_type="Int"),),
            per_action=(
                "        // Enforce minimum lovelace floor on continuing output\n"
                "        expect lovelace_of(cont_output.value) >= min_lovelace"
            ),
        ),
    ),
    Feature(
        name="burn-verification",
        description="Check all minted quantities are negative (mint only)",
        purpose=Purpose.MINT,
        aliases=("burn", "burn_verification"),
        requires_action="Burn",
        fragment=FeatureFragment(
            imports=("use aiken/collection/dict", "use cardano/assets"),
            per_action=(
                "        // Every quantity under this policy must be a burn\n"
                "        expect\n"
                "          dict.foldl(\n"
                "            assets.tokens(self.mint, policy_id),\n"
                "            True,\n"
                "            fn(_name, qty, acc) { acc && qty < 0 },\n"
                "          )"
            ),
            only_actions=("Burn",),
        ),
    ),
)
