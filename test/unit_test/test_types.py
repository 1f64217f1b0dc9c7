"""
Test Types Module

Tests for rwa_amm.types: results, input parameters and decoded state views.
"""

import sys
import json
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def test_tx_result():
    """Test TxResult dataclass"""
    from rwa_amm.types import TxResult, TxStatus, TxStage

    print("Testing TxResult...")

    success = TxResult.success("sig123abcdefghijklmnop", label="swap")
    assert success.is_success and not success.is_failed
    assert success.stage == TxStage.CONFIRMED
    assert "SUCCESS" in str(success)

    failed = TxResult.failed("Insufficient balance", logs=["Program log: x"])
    assert failed.is_failed
    assert failed.status == TxStatus.FAILED
    assert failed.stage == TxStage.FAILED
    assert failed.logs == ["Program log: x"]

    timeout = TxResult.timeout("sig456")
    assert timeout.is_timeout and timeout.recoverable
    assert timeout.signature == "sig456"

    skipped = TxResult.skipped("already exists")
    assert skipped.is_skipped
    assert skipped.signature is None
    assert skipped.error == "already exists"

    print("  TxResult: PASSED")


def test_trading_hours_json():
    """Test trading hours serialize to compact camelCase JSON"""
    from rwa_amm.types import TradingHours

    print("Testing TradingHours...")

    hours = TradingHours(monday_start=570, monday_end=960)
    raw = hours.to_json()
    assert " " not in raw

    payload = json.loads(raw)
    assert len(payload) == 14
    assert payload["mondayStart"] == 570
    assert payload["mondayEnd"] == 960
    assert payload["sundayEnd"] == 1440

    print("  TradingHours: PASSED")


def test_rwa_config_fields():
    """Test RwaConfig metadata field order and value formatting"""
    from rwa_amm.types import RwaConfig, TokenMetadataParams

    print("Testing RwaConfig fields...")

    rwa = RwaConfig(
        asset_class="real_estate",
        jurisdiction="US",
        allowed_countries=["US", "CA"],
        restricted_states=["NY"],
        max_trade_amount="18446744073709551615",
        whitelist_required=True,
    )
    fields = rwa.to_metadata_fields()
    keys = [k for k, _ in fields]
    values = dict(fields)

    assert len(fields) == 21
    assert keys[0] == "asset_class"
    assert keys[-1] == "metadata_type"
    assert values["allowed_countries"] == "US,CA"
    assert values["restricted_countries"] == "NY"
    assert values["minimum_kyc_level"] == "2"
    assert values["max_trade_amount"] == "18446744073709551615"
    assert values["whitelist_required"] == "true"
    assert values["requires_accredited_investor"] == "false"
    assert values["is_self_referential"] == "true"
    assert json.loads(values["trading_hours"])["fridayStart"] == 0

    assert TokenMetadataParams("Plain", "PLN").additional_fields == []
    assert TokenMetadataParams("Rwa", "RWA", rwa_config=rwa).additional_fields == fields

    print("  RwaConfig fields: PASSED")


def test_create_rwa_mint_params():
    """Test hook flag on mint parameters"""
    from rwa_amm.types import CreateRwaMintParams, TransferHookParams

    print("Testing CreateRwaMintParams...")

    assert not CreateRwaMintParams().hook_enabled
    assert CreateRwaMintParams(transfer_hook=TransferHookParams()).hook_enabled
    assert not CreateRwaMintParams(transfer_hook=TransferHookParams(enabled=False)).hook_enabled

    print("  CreateRwaMintParams: PASSED")


def test_kyc_status():
    """Test KycStatus derived properties"""
    from rwa_amm.types import KycStatus

    print("Testing KycStatus...")

    missing = KycStatus(wallet="w", exists=False, level=3)
    assert not missing.can_trade_rwa

    basic = KycStatus(wallet="w", exists=True, level=1)
    assert not basic.can_trade_rwa
    assert basic.level_name == "Basic"

    flagged = KycStatus(wallet="w", exists=True, level=2, flags=0x04 | 0x08)
    assert flagged.can_trade_rwa
    assert flagged.is_frozen and flagged.is_expired
    assert not flagged.is_sanctioned

    assert KycStatus(wallet="w", exists=True, level=7).level_name == "Level 7"

    print("  KycStatus: PASSED")


def test_remaining_accounts():
    """Test remaining accounts flatten in input, output, common order"""
    from solders.instruction import AccountMeta
    from solders.keypair import Keypair
    from rwa_amm.types import RemainingAccounts

    print("Testing RemainingAccounts...")

    assert RemainingAccounts().is_empty

    metas = [AccountMeta(Keypair().pubkey(), False, False) for _ in range(3)]
    accounts = RemainingAccounts(
        input_accounts=[metas[0]],
        output_accounts=[metas[1]],
        common_accounts=[metas[2]],
    )
    assert not accounts.is_empty
    assert accounts.flatten() == metas

    print("  RemainingAccounts: PASSED")


def test_pool_state():
    """Test PoolState price and mint membership"""
    from rwa_amm.types import PoolState

    print("Testing PoolState...")

    pool = PoolState(
        address="pool",
        token_a_mint="mintA",
        token_b_mint="mintB",
        token_a_vault="va",
        token_b_vault="vb",
        whitelisted_vault="wv",
        partner="p",
        liquidity=10**20,
        protocol_a_fee=0,
        protocol_b_fee=0,
        partner_a_fee=0,
        partner_b_fee=0,
        sqrt_min_price=4_295_048_016,
        sqrt_max_price=79_226_673_521_066_979_257_578_248_091,
        sqrt_price=2 * 2**64,
    )
    assert abs(pool.price - 4.0) < 1e-12
    assert pool.has_mint("mintA") and pool.has_mint("mintB")
    assert not pool.has_mint("mintC")

    print("  PoolState: PASSED")


def test_mint_result():
    """Test MintResult signature collection"""
    from rwa_amm.types import MintResult, StepRecord, TxStatus

    print("Testing MintResult...")

    result = MintResult(
        mint_address="Mint",
        signature="sig2",
        steps=[
            StepRecord("create_account", TxStatus.SUCCESS, "sig1"),
            StepRecord("configure_extensions", TxStatus.SKIPPED, note="nothing to configure"),
            StepRecord("initialize_mint", TxStatus.SUCCESS, "sig2"),
        ],
    )
    assert result.signatures == ["sig1", "sig2"]

    print("  MintResult: PASSED")


def main():
    """Run all type tests"""
    print("=" * 60)
    print("RWA AMM Types Tests")
    print("=" * 60)

    tests = [
        test_tx_result,
        test_trading_hours_json,
        test_rwa_config_fields,
        test_create_rwa_mint_params,
        test_kyc_status,
        test_remaining_accounts,
        test_pool_state,
        test_mint_result,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except Exception as e:
            print(f"  FAILED: {e}")
            failed += 1

    print("=" * 60)
    print(f"Results: {passed} passed, {failed} failed")
    print("=" * 60)

    return failed == 0


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
