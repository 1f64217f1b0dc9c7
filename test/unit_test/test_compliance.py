"""
Test Compliance Gate

Tests for rwa_amm.modules.compliance: field validation, status reads,
record creation and the pre-trade eligibility check.
"""

import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from solders.keypair import Keypair


def _module(rpc=None, tx=None):
    from fakes import FakeRpc, RecordingTxBuilder, make_context
    from rwa_amm.modules.compliance import ComplianceModule

    rpc = rpc or FakeRpc()
    tx = tx or RecordingTxBuilder()
    ctx = make_context(rpc, tx)
    return ComplianceModule(ctx), ctx, rpc, tx


def test_field_validation():
    """Test fields are checked against the hook program's rules"""
    from rwa_amm.modules.compliance import validate_kyc_fields
    from rwa_amm.errors import ComplianceError

    print("Testing KYC field validation...")

    assert validate_kyc_fields(2, "us", "ca", "San Francisco") == (2, "US", "CA", "San Francisco")
    assert validate_kyc_fields(0, "DE", "", "")[2] == ""

    bad_inputs = [
        (4, "US", "CA", "Austin"),
        (-1, "US", "CA", "Austin"),
        (2, "USA", "CA", "Austin"),
        (2, "U1", "CA", "Austin"),
        (2, "US", "CAL", "Austin"),
        (2, "US", "CA", "x" * 33),
        (2, "US", "CA", "Zürich"),
    ]
    for level, country, state, city in bad_inputs:
        try:
            validate_kyc_fields(level, country, state, city)
            assert False, f"Should reject {(level, country, state, city)}"
        except ComplianceError as e:
            assert e.field_name in ("level", "country", "state", "city")

    print("  KYC field validation: PASSED")


def test_get_status():
    """Test status for wallets with and without a record"""
    from fakes import user_kyc_data

    print("Testing KYC status...")

    kyc, ctx, rpc, _ = _module()
    verified = Keypair().pubkey()
    unknown = Keypair().pubkey()
    rpc.set_account(kyc.kyc_address(verified), user_kyc_data(verified, level=3, flags=0x01))

    status = kyc.get_status(verified)
    assert status.exists and status.level == 3
    assert status.can_trade_rwa
    assert status.is_sanctioned
    assert status.level_name == "Institutional"

    status = kyc.get_status(unknown)
    assert not status.exists and not status.can_trade_rwa

    # Undecodable record reads as "no record"
    broken = Keypair().pubkey()
    rpc.set_account(kyc.kyc_address(broken), b"\x00" * 40)
    assert not kyc.get_status(broken).exists

    statuses = kyc.get_statuses([verified, unknown, verified])
    assert list(statuses) == [str(verified), str(unknown)]
    assert len(rpc.multiple_calls) == 1

    print("  KYC status: PASSED")


def test_create_user_kyc():
    """Test creation uses defaults and routes to update when a record exists"""
    from fakes import user_kyc_data
    from rwa_amm.protocols.transfer_hook import DISCRIMINATORS

    print("Testing KYC record creation...")

    kyc, ctx, rpc, tx = _module()
    wallet = Keypair().pubkey()

    result = kyc.create_user_kyc(wallet)
    assert result.is_success
    assert tx.labels() == ["initialize_user_kyc"]
    data = bytes(tx.calls[0].instructions[0].data)
    assert data[:8] == DISCRIMINATORS["initialize_user_kyc"]
    assert data[8] == 2

    rpc.set_account(kyc.kyc_address(wallet), user_kyc_data(wallet, level=2))
    kyc.create_user_kyc(wallet, level=3, country="de", state="BE", city="Berlin")
    assert tx.labels()[-1] == "update_user_kyc"
    data = bytes(tx.calls[-1].instructions[0].data)
    assert data[:8] == DISCRIMINATORS["update_user_kyc"]
    assert data[8:10] == bytes([1, 3])

    print("  KYC record creation: PASSED")


def test_invalid_fields_never_submit():
    """Test validation failures happen before any transaction"""
    from rwa_amm.errors import ComplianceError

    print("Testing validation before submission...")

    kyc, _, _, tx = _module()
    wallet = Keypair().pubkey()

    for kwargs in ({"level": 9}, {"country": "XYZ"}):
        try:
            kyc.create_user_kyc(wallet, **kwargs)
            assert False, "Should raise ComplianceError"
        except ComplianceError:
            pass

    try:
        kyc.update_user_kyc(wallet, city="y" * 40)
        assert False, "Should raise ComplianceError"
    except ComplianceError:
        pass

    assert tx.calls == []

    print("  Validation before submission: PASSED")


def test_ensure_kyc():
    """Test only missing records are created, one transaction each"""
    from fakes import user_kyc_data

    print("Testing ensure_kyc...")

    kyc, ctx, rpc, tx = _module()
    existing = Keypair().pubkey()
    missing_a = Keypair().pubkey()
    missing_b = Keypair().pubkey()
    rpc.set_account(kyc.kyc_address(existing), user_kyc_data(existing))

    results = kyc.ensure_kyc([existing, missing_a, missing_b, missing_a])
    assert len(results) == 3
    assert results[0].is_skipped
    assert results[1].is_success and results[2].is_success
    assert tx.labels() == ["initialize_user_kyc", "initialize_user_kyc"]
    assert all(len(call.instructions) == 1 for call in tx.calls)
    assert len(rpc.multiple_calls) == 1

    assert kyc.ensure_kyc([]) == []

    print("  ensure_kyc: PASSED")


def test_ensure_kyc_other_hook_program():
    """Test records are checked and created under the given hook program"""
    from fakes import user_kyc_data
    from rwa_amm.protocols.pda import derive_user_kyc

    print("Testing ensure_kyc with another hook program...")

    kyc, ctx, rpc, tx = _module()
    other_hook = Keypair().pubkey()
    wallet = Keypair().pubkey()

    # A record under the configured program does not count for another one
    rpc.set_account(kyc.kyc_address(wallet), user_kyc_data(wallet))
    results = kyc.ensure_kyc([wallet], hook_program=other_hook)
    assert results[0].is_success
    assert rpc.multiple_calls[-1] == [str(derive_user_kyc(other_hook, wallet))]

    call = tx.calls[-1]
    assert call.program_ids == [str(other_hook)]
    assert call.instructions[0].accounts[2].pubkey == kyc.kyc_address(wallet, other_hook)

    rpc.set_account(kyc.kyc_address(wallet, other_hook), user_kyc_data(wallet))
    assert kyc.ensure_kyc([wallet], hook_program=str(other_hook))[0].is_skipped
    assert kyc.kyc_exists(wallet, other_hook)

    print("  ensure_kyc with another hook program: PASSED")


def test_ensure_kyc_race():
    """Test a record created concurrently counts as done"""
    from fakes import FakeRpc, RecordingTxBuilder, user_kyc_data
    from rwa_amm.types import TxResult
    from rwa_amm.errors import ClassifiedError

    print("Testing ensure_kyc race...")

    rpc = FakeRpc()
    tx = RecordingTxBuilder()
    kyc, ctx, _, _ = _module(rpc, tx)
    wallet = Keypair().pubkey()

    tx.fail_on("initialize_user_kyc", TxResult.failed("Transaction simulation failed", logs=["already in use"]))
    recorded_execute = tx.execute

    def execute_and_lose_race(*args, **kwargs):
        result = recorded_execute(*args, **kwargs)
        rpc.set_account(kyc.kyc_address(wallet), user_kyc_data(wallet))
        return result

    tx.execute = execute_and_lose_race
    results = kyc.ensure_kyc([wallet])
    assert results[0].is_skipped

    # Real failure with no record afterwards propagates
    kyc2, _, _, tx2 = _module()
    tx2.fail_on("initialize_user_kyc", TxResult.failed("Blockhash not found"))
    try:
        kyc2.ensure_kyc([Keypair().pubkey()])
        assert False, "Should raise ClassifiedError"
    except ClassifiedError as e:
        assert e.recoverable

    print("  ensure_kyc race: PASSED")


def test_validate_swap_compliance():
    """Test the eligibility outcomes"""
    from fakes import user_kyc_data
    from rwa_amm.modules.compliance import KYC_REQUIRED_REASON, ENHANCED_KYC_REQUIRED_REASON

    print("Testing swap compliance...")

    kyc, ctx, rpc, _ = _module()
    rwa = Keypair().pubkey()
    usdc = Keypair().pubkey()
    rpc.add_mint(rwa, hook_program=Keypair().pubkey())
    rpc.add_mint(usdc)

    nobody = Keypair().pubkey()
    verdict = kyc.validate_swap_compliance(nobody, usdc, rwa, 1_000)
    assert not verdict.can_swap
    assert verdict.reason == KYC_REQUIRED_REASON
    assert verdict.required_kyc_level == 1

    basic = Keypair().pubkey()
    rpc.set_account(kyc.kyc_address(basic), user_kyc_data(basic, level=1))
    verdict = kyc.validate_swap_compliance(basic, usdc, rwa)
    assert not verdict.can_swap
    assert verdict.reason == ENHANCED_KYC_REQUIRED_REASON
    assert verdict.required_kyc_level == 2 and verdict.current_kyc_level == 1

    # Basic KYC is enough when neither side is hooked
    other = Keypair().pubkey()
    rpc.add_mint(other)
    assert kyc.validate_swap_compliance(basic, usdc, other).can_swap

    enhanced = Keypair().pubkey()
    rpc.set_account(kyc.kyc_address(enhanced), user_kyc_data(enhanced, level=2))
    verdict = kyc.validate_swap_compliance(enhanced, rwa, usdc)
    assert verdict.can_swap and verdict.current_kyc_level == 2

    print("  Swap compliance: PASSED")


def main():
    """Run all compliance tests"""
    print("=" * 60)
    print("RWA AMM Compliance Tests")
    print("=" * 60)

    tests = [
        test_field_validation,
        test_get_status,
        test_create_user_kyc,
        test_invalid_fields_never_submit,
        test_ensure_kyc,
        test_ensure_kyc_other_hook_program,
        test_ensure_kyc_race,
        test_validate_swap_compliance,
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
