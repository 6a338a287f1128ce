"""Tests for the TypeScript SDK (aikforge.scaffolder.sdk_gen and sdk templates).

Covers:
- build_sdk_context: option-dependent fields and variants, constructor indices
- Blueprint title and npm package naming
- Rendered types, serialization, client and package.json
- The SDK matches the validator rendered with the same options
"""

from __future__ import annotations

import json

import pytest

from aikforge.catalogue import get_catalogue
from aikforge.errors import RenderError
from aikforge.scaffolder.generator import ProjectGenerator
from aikforge.scaffolder.models import GenerateOptions
from aikforge.scaffolder.sdk_gen import build_sdk_context

pytestmark = pytest.mark.unit


def _options(template: str, **kwargs) -> GenerateOptions:
    return GenerateOptions(template=template, namespace="myorg", project_name="my_vesting", **kwargs)


def _context(template: str, **kwargs):
    return build_sdk_context(get_catalogue().template(template), _options(template, **kwargs))


# ---------------------------------------------------------------------------
# build_sdk_context
# ---------------------------------------------------------------------------


class TestBuildSdkContext:
    def test_vesting_defaults(self):
        ctx = _context("vesting")
        assert [f["name"] for f in ctx["datum_fields"]] == ["owner_pkh", "beneficiary_pkh", "lock_until"]
        assert ctx["variants"] == [{"name": "Claim", "index": 0, "fields": []}]

    def test_vesting_all_toggles(self):
        ctx = _context("vesting", cancellable=True, partial_claim=True)
        assert [f["name"] for f in ctx["datum_fields"]] == [
            "owner_pkh",
            "beneficiary_pkh",
            "lock_until",
            "total_amount",
            "claimed_amount",
        ]
        claim, cancel = ctx["variants"]
        assert claim["fields"] == [
            {"name": "amount", "aiken_type": "Int", "ts_type": "bigint", "kind": "int"}
        ]
        assert cancel == {"name": "Cancel", "index": 1, "fields": []}

    def test_naming(self):
        ctx = _context("vesting")
        assert ctx["validator_name"] == "my_vesting_vesting"
        assert ctx["blueprint_title"] == "my_vesting_vesting.my_vesting_vesting.spend"
        assert ctx["npm_name"] == "@myorg/my-vesting-sdk"
        assert ctx["purpose"] == "spend"

    def test_referral_targets_mint_validator(self):
        ctx = _context("referral_system")
        assert ctx["validator_name"] == "my_vesting_referral_mint"
        assert ctx["blueprint_title"].endswith(".mint")
        assert [v["index"] for v in ctx["variants"]] == [0, 1, 2, 3, 4]

    def test_list_field_kind(self):
        ctx = _context("multisig_treasury")
        signers = ctx["datum_fields"][0]
        assert signers["kind"] == "list_byte_array"
        assert signers["ts_type"] == "string[]"

    def test_mint_template_has_no_datum(self):
        ctx = _context("simple_mint")
        assert ctx["datum_type"] is None
        assert ctx["datum_fields"] == []

    def test_template_without_schema(self):
        with pytest.raises(RenderError, match="no SDK schema"):
            _context("dex_pool")


# ---------------------------------------------------------------------------
# Rendered SDK
# ---------------------------------------------------------------------------


class TestRenderedSdk:
    def test_package_json(self, generator: ProjectGenerator):
        project = generator.render_sdk(_options("escrow"))
        package = json.loads(project.file("sdk/package.json").content)
        assert package["name"] == "@myorg/my-vesting-sdk"
        assert package["version"] == "0.0.0"
        assert "typescript" in package["devDependencies"]
        json.loads(project.file("sdk/tsconfig.json").content)

    def test_types(self, generator: ProjectGenerator):
        types = generator.render_sdk(_options("vesting", partial_claim=True, cancellable=True)).file(
            "sdk/src/types.ts"
        ).content
        assert "export interface VestingDatum {" in types
        assert "  claimed_amount: bigint;" in types
        assert '| { type: "Claim"; amount: bigint }' in types
        assert '| { type: "Cancel" };' in types
        assert "export const VESTING_REDEEMER_INDEX = {" in types
        assert '  Cancel: 1,' in types
        assert 'export const VALIDATOR_TITLE = "my_vesting_vesting.my_vesting_vesting.spend";' in types

    def test_types_follow_options(self, generator: ProjectGenerator):
        types = generator.render_sdk(_options("vesting")).file("sdk/src/types.ts").content
        assert "claimed_amount" not in types
        assert "Cancel" not in types

    def test_serialization(self, generator: ProjectGenerator):
        serialization = generator.render_sdk(_options("multisig_treasury")).file(
            "sdk/src/serialization.ts"
        ).content
        assert "{ list: datum.signers.map((x) => ({ bytes: x })) }," in serialization
        assert "{ int: datum.threshold }," in serialization
        assert "threshold: asInt(fields[1])," in serialization
        assert 'case "Withdraw":' in serialization
        assert "fields: [{ int: redeemer.amount }]," in serialization

    def test_mint_sdk_has_no_datum_codec(self, generator: ProjectGenerator):
        serialization = generator.render_sdk(_options("simple_mint")).file(
            "sdk/src/serialization.ts"
        ).content
        assert "encodeDatum" not in serialization
        assert "export function encodeRedeemer(redeemer: MintAction)" in serialization

    def test_client(self, generator: ProjectGenerator):
        client = generator.render_sdk(_options("staking_pool")).file("sdk/src/client.ts").content
        assert "export class MyVestingClient {" in client
        assert "datum(datum: StakeDatum): PlutusData {" in client
        assert "stake(amount: bigint): PlutusData {" in client
        assert "addRewards(amount: bigint): PlutusData {" in client
        assert 'return encodeRedeemer({ type: "Unstake" });' in client

    def test_index_reexports(self, generator: ProjectGenerator):
        index = generator.render_sdk(_options("escrow")).file("sdk/src/index.ts").content
        assert 'export * from "./client";' in index

    def test_sdk_matches_validator_variants(self, generator: ProjectGenerator):
        options = _options("vesting", cancellable=True)
        validator = generator.render(options).file("validators/my_vesting_vesting.ak").content
        types = generator.render_sdk(options).file("sdk/src/types.ts").content
        assert "Cancel ->" in validator
        assert '{ type: "Cancel" }' in types

    @pytest.mark.parametrize(
        "slug", [t.slug for t in get_catalogue().templates if t.supports_sdk]
    )
    def test_every_sdk_renders(self, generator: ProjectGenerator, slug: str):
        project = generator.render_sdk(_options(slug))
        for generated in project.files:
            assert "{{" not in generated.content, generated.path
            assert "{%" not in generated.content, generated.path
