"""Template declarations, in listing order."""

from __future__ import annotations

from .models import Purpose, SdkField, SdkSchema, SdkVariant, Template


def _f(name: str, aiken_type: str, only_if: str | None = None) -> SdkField:
    return SdkField(name=name, aiken_type=aiken_type, only_if=only_if)


TEMPLATES: tuple[Template, ...] = (
    Template(
        slug="simple_mint",
        description="CIP-25 minting policy with admin signature and optional time-lock",
        allowed_options=frozenset({"token_name", "asset_name", "time_lock"}),
        supports_sdk=True,
        aliases=("simple-mint", "mint"),
        validator_suffix="_mint",
        purpose=Purpose.MINT,
        sdk=SdkSchema(
            purpose=Purpose.MINT,
            redeemer_type="MintAction",
            variants=(SdkVariant(name="Mint"), SdkVariant(name="Burn")),
        ),
    ),
    Template(
        slug="vesting",
        description="Time-locked fund release with beneficiary claim and optional cancel",
        allowed_options=frozenset({"cancellable", "partial_claim"}),
        supports_sdk=True,
        validator_suffix="_vesting",
        purpose=Purpose.SPEND,
        sdk=SdkSchema(
            purpose=Purpose.SPEND,
            datum_type="VestingDatum",
            datum_fields=(
                _f("owner_pkh", "ByteArray"),
                _f("beneficiary_pkh", "ByteArray"),
                _f("lock_until", "Int"),
                _f("total_amount", "Int", "partial_claim"),
                _f("claimed_amount", "Int", "partial_claim"),
            ),
            redeemer_type="VestingRedeemer",
            variants=(
                SdkVariant(name="Claim", fields=(_f("amount", "Int", "partial_claim"),)),
                SdkVariant(name="Cancel", only_if="cancellable"),
            ),
        ),
    ),
    Template(
        slug="escrow",
        description="Two-party escrow with deadline, completion, and mutual cancellation",
        supports_sdk=True,
        validator_suffix="_escrow",
        purpose=Purpose.SPEND,
        sdk=SdkSchema(
            purpose=Purpose.SPEND,
            datum_type="EscrowDatum",
            datum_fields=(
                _f("buyer_pkh", "ByteArray"),
                _f("seller_pkh", "ByteArray"),
                _f("amount", "Int"),
                _f("deadline", "Int"),
            ),
            redeemer_type="EscrowRedeemer",
            variants=(
                SdkVariant(name="Complete"),
                SdkVariant(name="Cancel"),
                SdkVariant(name="Reclaim"),
            ),
        ),
    ),
    Template(
        slug="multisig_treasury",
        description="N-of-M multisig treasury with deposit, withdraw, datum continuity, and 2 ADA floor",
        supports_sdk=True,
        aliases=("multisig-treasury", "treasury"),
        validator_suffix="_treasury",
        purpose=Purpose.SPEND,
        sdk=SdkSchema(
            purpose=Purpose.SPEND,
            datum_type="TreasuryDatum",
            datum_fields=(_f("signers", "List<ByteArray>"), _f("threshold", "Int")),
            redeemer_type="TreasuryRedeemer",
            variants=(
                SdkVariant(name="Deposit"),
                SdkVariant(name="Withdraw", fields=(_f("amount", "Int"),)),
            ),
        ),
    ),
    Template(
        slug="nft_marketplace",
        description="NFT marketplace with list, buy, and delist actions",
        supports_sdk=True,
        aliases=("nft-marketplace", "marketplace"),
        validator_suffix="_marketplace",
        purpose=Purpose.SPEND,
        sdk=SdkSchema(
            purpose=Purpose.SPEND,
            datum_type="ListingDatum",
            datum_fields=(_f("seller_pkh", "ByteArray"), _f("price_lovelace", "Int")),
            redeemer_type="MarketplaceRedeemer",
            variants=(SdkVariant(name="Buy"), SdkVariant(name="Delist")),
        ),
    ),
    Template(
        slug="staking_pool",
        description="Staking pool with deposit, withdraw, and admin rewards",
        supports_sdk=True,
        aliases=("staking-pool", "staking"),
        validator_suffix="_pool",
        purpose=Purpose.SPEND,
        sdk=SdkSchema(
            purpose=Purpose.SPEND,
            datum_type="StakeDatum",
            datum_fields=(
                _f("owner_pkh", "ByteArray"),
                _f("staked_amount", "Int"),
                _f("reward_amount", "Int"),
            ),
            redeemer_type="StakingRedeemer",
            variants=(
                SdkVariant(name="Stake", fields=(_f("amount", "Int"),)),
                SdkVariant(name="Unstake"),
                SdkVariant(name="AddRewards", fields=(_f("amount", "Int"),)),
            ),
        ),
    ),
    Template(
        slug="oracle_settlement",
        description="Oracle-gated settlement with deadline and buyer reclaim",
        supports_sdk=True,
        aliases=("oracle-settlement", "oracle"),
        validator_suffix="_settlement",
        purpose=Purpose.SPEND,
        sdk=SdkSchema(
            purpose=Purpose.SPEND,
            datum_type="SettlementDatum",
            datum_fields=(
                _f("buyer_pkh", "ByteArray"),
                _f("seller_pkh", "ByteArray"),
                _f("oracle_pkh", "ByteArray"),
                _f("settlement_amount", "Int"),
                _f("deadline", "Int"),
            ),
            redeemer_type="SettlementRedeemer",
            variants=(SdkVariant(name="Settle"), SdkVariant(name="Reclaim")),
        ),
    ),
    Template(
        slug="referral_system",
        description="On-chain referral system with mint, treasury, and anti-sybil protection",
        supports_sdk=True,
        aliases=("referral-system", "referral"),
        validator_suffix="_referral",
        purpose=Purpose.MINT,
        sdk=SdkSchema(
            purpose=Purpose.MINT,
            datum_type="ConfigDatum",
            datum_fields=(
                _f("admin_pkh", "ByteArray"),
                _f("project_id", "ByteArray"),
                _f("reward_per_referral", "Int"),
                _f("max_referrals", "Int"),
                _f("referral_count", "Int"),
            ),
            redeemer_type="MintRedeemer",
            variants=(
                SdkVariant(name="MintProjectTokens", fields=(_f("amount", "Int"),)),
                SdkVariant(
                    name="MintReferralToken",
                    fields=(_f("referrer_pkh", "ByteArray"), _f("referee_pkh", "ByteArray")),
                ),
                SdkVariant(name="BurnToken"),
                SdkVariant(name="UpdateConfig"),
                SdkVariant(name="DestroyProject"),
            ),
            validator_suffix="_referral_mint",
        ),
    ),
    Template(
        slug="dex_pool",
        description="DEX/AMM pool with constant-product swaps, liquidity, and fee management",
        aliases=("dex-pool", "dex"),
        validator_suffix="_pool",
        purpose=Purpose.SPEND,
    ),
    Template(
        slug="lending_pool",
        description="Lending pool with supply, borrow, repay, and collateral ratio enforcement",
        aliases=("lending-pool", "lending"),
        validator_suffix="_lending",
        purpose=Purpose.SPEND,
    ),
    Template(
        slug="dao_governance",
        description="DAO governance with token-gated treasury and proposal execution",
        aliases=("dao-governance", "governance"),
        validator_suffix="_governance",
        purpose=Purpose.SPEND,
    ),
    Template(
        slug="streaming_payments",
        description="Streaming payments with time-based tranches and cancel/top-up",
        aliases=("streaming-payments", "streaming"),
        validator_suffix="_stream",
        purpose=Purpose.SPEND,
    ),
    Template(
        slug="custom",
        description="Custom validator with composable features (sig, timelock, datum-continuity, ...)",
        allowed_options=frozenset({"purpose", "features", "datum", "redeemer"}),
        validator_suffix="_validator",
    ),
)
