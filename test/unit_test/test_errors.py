"""
Test Errors Module

Tests for rwa_amm.errors: the exception hierarchy and the failure
translator.
"""

import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def test_error_code():
    """Test ErrorCode enum"""
    from rwa_amm.errors import ErrorCode

    print("Testing ErrorCode...")

    assert ErrorCode.RPC_CONNECTION_FAILED.value == "1001"
    assert ErrorCode.SLIPPAGE_EXCEEDED.value == "3001"
    assert ErrorCode.POOL_NOT_FOUND.value == "4001"
    assert ErrorCode.KYC_REQUIRED.value == "5001"

    print("  ErrorCode: PASSED")


def test_rwa_amm_error():
    """Test RwaAmmError base class"""
    from rwa_amm.errors import RwaAmmError, ErrorCode

    print("Testing RwaAmmError...")

    error = RwaAmmError(
        message="Test error",
        code=ErrorCode.RPC_CONNECTION_FAILED,
        recoverable=True,
    )

    # __str__ returns "[code] message" format
    assert "[1001] Test error" == str(error)
    assert error.code == ErrorCode.RPC_CONNECTION_FAILED
    assert error.recoverable == True
    assert error.details == {}

    print("  RwaAmmError: PASSED")


def test_rpc_error():
    """Test RpcError exception"""
    from rwa_amm.errors import RpcError, ErrorCode

    print("Testing RpcError...")

    error1 = RpcError.connection_failed("https://rpc.example.com")
    assert error1.code == ErrorCode.RPC_CONNECTION_FAILED
    assert error1.recoverable == True
    assert error1.endpoint == "https://rpc.example.com"

    error2 = RpcError.timeout("https://rpc.example.com", 30.0)
    assert error2.code == ErrorCode.RPC_TIMEOUT

    # Preflight logs ride along in the JSON-RPC error data
    error3 = RpcError("RPC error: Transaction simulation failed")
    error3.details["rpc_error_data"] = {"logs": ["Program log: boom"]}
    assert error3.logs == ["Program log: boom"]
    assert RpcError.rate_limited("x").logs == []

    print("  RpcError: PASSED")


def test_pool_unavailable():
    """Test PoolUnavailable exception"""
    from rwa_amm.errors import PoolUnavailable, ErrorCode

    print("Testing PoolUnavailable...")

    error1 = PoolUnavailable.not_found("pool123")
    assert error1.recoverable == False
    assert error1.pool_address == "pool123"
    assert error1.code == ErrorCode.POOL_NOT_FOUND

    error2 = PoolUnavailable.invalid_state("pool456", "bad discriminator")
    assert error2.code == ErrorCode.POOL_INVALID_STATE
    assert "bad discriminator" in error2.message

    print("  PoolUnavailable: PASSED")


def test_classify_program_codes():
    """Test custom program error codes map to their categories"""
    from rwa_amm.errors import classify, ErrorCategory

    print("Testing program code classification...")

    cases = {
        "custom program error: 0x1770": ErrorCategory.KYC_REQUIRED,
        "custom program error: 0x1771": ErrorCategory.INSUFFICIENT_KYC_LEVEL,
        "custom program error: 0x1772": ErrorCategory.GEOGRAPHIC_RESTRICTION,
        "custom program error: 0x1773": ErrorCategory.TRADING_HOURS_RESTRICTION,
        "custom program error: 0x1774": ErrorCategory.TRADE_LIMIT_EXCEEDED,
        "custom program error: 0x1776": ErrorCategory.ZERO_AMOUNT,
        "custom program error: 0x177f": ErrorCategory.PRICE_RANGE_VIOLATION,
        "Error Code: UserKycNotFound": ErrorCategory.KYC_REQUIRED,
        "slippage tolerance exceeded": ErrorCategory.SLIPPAGE_EXCEEDED,
        "Attempt to debit an account but found no record of a prior credit. insufficient funds": ErrorCategory.INSUFFICIENT_FUNDS,
        "Blockhash not found": ErrorCategory.NETWORK_ERROR,
        "block height exceeded": ErrorCategory.NETWORK_ERROR,
        "Allocate: account already in use": ErrorCategory.SIMULATION_FAILURE,
        "Transaction simulation failed": ErrorCategory.SIMULATION_FAILURE,
        "something nobody anticipated": ErrorCategory.UNKNOWN,
    }
    for message, expected in cases.items():
        assert classify(message) == expected, f"{message!r} -> {classify(message)}"

    print("  Program code classification: PASSED")


def test_logs_before_message():
    """Test the program code in logs wins over a generic message"""
    from rwa_amm.errors import classify, find_rule, ErrorCategory

    print("Testing log precedence...")

    logs = [
        "Program cpamdpZCGKUy5JxQXB4dcpGPiikHawvSWAd6mEn1sGG invoke [1]",
        "Program log: AnchorError caused by account: user_kyc. Error Code: custom program error: 0x1770",
    ]
    assert classify("Transaction simulation failed", logs) == ErrorCategory.KYC_REQUIRED

    # Logs without a match fall back to the message
    assert classify("Blockhash not found", ["Program log: ok"]) == ErrorCategory.NETWORK_ERROR

    # First rule in table order wins when several match
    both = ["custom program error: 0x1771", "transfer hook rejected"]
    assert classify(None, both) == ErrorCategory.INSUFFICIENT_KYC_LEVEL

    assert find_rule("account already in use").title == "Mint creation conflict"

    print("  Log precedence: PASSED")


def test_translate():
    """Test translate() for results and exceptions"""
    from rwa_amm.errors import (
        translate,
        ClassifiedError,
        ErrorCategory,
        ErrorCode,
        RpcError,
        TransactionError,
    )
    from rwa_amm.types import TxResult

    print("Testing translate...")

    result = TxResult.failed(
        "Transaction simulation failed",
        signature="sig123",
        logs=["Program log: Error: ExceedsTradeLimit"],
    )
    error = translate(result, "swap")
    assert isinstance(error, ClassifiedError)
    assert error.category == ErrorCategory.TRADE_LIMIT_EXCEEDED
    assert error.code == ErrorCode.TRADE_LIMIT_EXCEEDED
    assert error.operation == "swap"
    assert error.signature == "sig123"
    assert error.logs == result.logs
    assert error.message == f"{error.title}\n\n{error.hint}"
    assert not error.recoverable

    # Already-classified errors pass through unchanged
    assert translate(error, "other") is error

    rpc_error = RpcError("RPC error: Transaction simulation failed")
    rpc_error.details["rpc_error_data"] = {"logs": ["custom program error: 0x1773"]}
    translated = translate(rpc_error, "add_liquidity")
    assert translated.category == ErrorCategory.TRADING_HOURS_RESTRICTION
    assert translated.recoverable
    assert translated.original_error is rpc_error

    tx_error = TransactionError.simulation_failed("simulation failed", logs=["insufficient lamports 5, need 10"])
    assert translate(tx_error).category == ErrorCategory.INSUFFICIENT_FUNDS

    assert translate(ValueError("connection reset")).category == ErrorCategory.NETWORK_ERROR

    print("  translate: PASSED")


def test_raise_for_result():
    """Test successful and skipped results pass, failures raise"""
    from rwa_amm.errors import raise_for_result, ClassifiedError
    from rwa_amm.types import TxResult

    print("Testing raise_for_result...")

    ok = TxResult.success("sig")
    assert raise_for_result(ok) is ok
    skipped = TxResult.skipped("exists")
    assert raise_for_result(skipped) is skipped

    try:
        raise_for_result(TxResult.failed("slippage tolerance exceeded"), "swap")
        assert False, "Should raise ClassifiedError"
    except ClassifiedError as e:
        assert e.operation == "swap"

    print("  raise_for_result: PASSED")


def test_mint_pipeline_error():
    """Test MintPipelineError keeps the cause and the partial state"""
    from rwa_amm.errors import translate, MintPipelineError, ClassifiedError, ErrorCategory
    from rwa_amm.types import TxResult

    print("Testing MintPipelineError...")

    cause = translate(TxResult.failed("insufficient funds"), "create_rwa_mint")
    error = MintPipelineError(
        cause,
        mint_address="Mint111",
        failed_step="update_metadata_fields",
        completed_steps=["create_account", "configure_extensions", "initialize_mint"],
        compensations={"initialize_mint": "not undoable"},
    )

    assert isinstance(error, ClassifiedError)
    assert error.category == ErrorCategory.INSUFFICIENT_FUNDS
    assert error.title == cause.title
    assert error.partial
    assert error.details["mint_address"] == "Mint111"
    assert error.details["compensations"] == {"initialize_mint": "not undoable"}

    early = MintPipelineError(cause, "Mint222", "create_account", [])
    assert not early.partial
    assert early.compensations == {}

    print("  MintPipelineError: PASSED")


def test_error_inheritance():
    """Test error class inheritance"""
    from rwa_amm.errors import (
        RwaAmmError,
        RpcError,
        PoolUnavailable,
        TransactionError,
        ComplianceError,
        SignerError,
        ConfigurationError,
        ClassifiedError,
        MintPipelineError,
    )

    print("Testing Error Inheritance...")

    for cls in (
        RpcError,
        PoolUnavailable,
        TransactionError,
        ComplianceError,
        SignerError,
        ConfigurationError,
        ClassifiedError,
    ):
        assert issubclass(cls, RwaAmmError)
    assert issubclass(MintPipelineError, ClassifiedError)

    try:
        raise ConfigurationError.missing("SOLANA_RPC_URL")
    except RwaAmmError as e:
        assert "SOLANA_RPC_URL" in e.message

    print("  Error Inheritance: PASSED")


def main():
    """Run all error tests"""
    print("=" * 60)
    print("RWA AMM Errors Tests")
    print("=" * 60)

    tests = [
        test_error_code,
        test_rwa_amm_error,
        test_rpc_error,
        test_pool_unavailable,
        test_classify_program_codes,
        test_logs_before_message,
        test_translate,
        test_raise_for_result,
        test_mint_pipeline_error,
        test_error_inheritance,
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
