"""
Error Translator

Maps raw RPC / program failures onto a closed set of categories with
display-ready messages and remediation hints.

Program logs are searched before the top-level message: the custom error
code a program returns only appears in the logs for most failures, while
the RPC message is generic ("Transaction simulation failed ...").
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple, Union

from .exceptions import (
    ErrorCode,
    RwaAmmError,
    RpcError,
    TransactionError,
    ClassifiedError,
)
from ..types.result import TxResult

logger = logging.getLogger(__name__)


class ErrorCategory(Enum):
    """User-facing failure categories"""
    NETWORK_ERROR = "NetworkError"
    SIMULATION_FAILURE = "SimulationFailure"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    SLIPPAGE_EXCEEDED = "SlippageExceeded"
    PRICE_RANGE_VIOLATION = "PriceRangeViolation"
    ZERO_AMOUNT = "ZeroAmount"
    HOOK_EXECUTION_FAILURE = "HookExecutionFailure"
    KYC_REQUIRED = "KycRequired"
    INSUFFICIENT_KYC_LEVEL = "InsufficientKycLevel"
    GEOGRAPHIC_RESTRICTION = "GeographicRestriction"
    TRADING_HOURS_RESTRICTION = "TradingHoursRestriction"
    TRADE_LIMIT_EXCEEDED = "TradeLimitExceeded"
    POOL_NOT_FOUND = "PoolNotFound"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class ErrorRule:
    """One row of the classification table"""
    category: ErrorCategory
    patterns: Tuple[str, ...]
    title: str
    hint: str


# Evaluated top to bottom; first match wins. Program error codes come first
# so a hook rejection carrying a KYC code is reported as the KYC problem.
ERROR_RULES: Tuple[ErrorRule, ...] = (
    ErrorRule(
        ErrorCategory.ZERO_AMOUNT,
        ("AmountIsZero", "0x1776"),
        "Amount is zero",
        "Enter an amount greater than zero.",
    ),
    ErrorRule(
        ErrorCategory.PRICE_RANGE_VIOLATION,
        ("PriceRangeViolation", "0x177f"),
        "Price range violation",
        "The trade would push the price outside the pool's range. Reduce the amount.",
    ),
    ErrorRule(
        ErrorCategory.KYC_REQUIRED,
        ("KycRequired", "UserKycNotFound", "0x1770"),
        "KYC verification required",
        "Complete KYC verification for this wallet before trading this RWA token.",
    ),
    ErrorRule(
        ErrorCategory.INSUFFICIENT_KYC_LEVEL,
        ("InsufficientKycLevel", "0x1771"),
        "KYC level too low",
        "This token requires Enhanced KYC (level 2) or higher. Upgrade your verification level.",
    ),
    ErrorRule(
        ErrorCategory.GEOGRAPHIC_RESTRICTION,
        ("GeographicRestriction", "0x1772"),
        "Geographic restriction",
        "This token is not available in your jurisdiction.",
    ),
    ErrorRule(
        ErrorCategory.TRADING_HOURS_RESTRICTION,
        ("TradingHoursRestriction", "0x1773"),
        "Outside trading hours",
        "Trading for this token is closed right now. Submit again during its trading hours.",
    ),
    ErrorRule(
        ErrorCategory.TRADE_LIMIT_EXCEEDED,
        ("ExceedsTradeLimit", "TradeLimitExceeded", "0x1774"),
        "Trade limit exceeded",
        "The amount exceeds the limit for your KYC tier. Reduce the amount or upgrade your KYC level.",
    ),
    ErrorRule(
        ErrorCategory.SLIPPAGE_EXCEEDED,
        ("slippage tolerance exceeded", "SlippageExceeded", "ExceededSlippage"),
        "Slippage tolerance exceeded",
        "The price moved past your minimum output. Increase slippage tolerance or reduce the amount.",
    ),
    ErrorRule(
        ErrorCategory.INSUFFICIENT_FUNDS,
        ("insufficient funds", "InsufficientFunds", "insufficient lamports"),
        "Insufficient funds",
        "The wallet does not hold enough SOL or tokens for this transaction. Top it up and submit again.",
    ),
    ErrorRule(
        ErrorCategory.HOOK_EXECUTION_FAILURE,
        ("TransferHookFailed", "transfer hook", "hook"),
        "Transfer hook rejected the transfer",
        "Check the wallet's KYC record and that the token's extra account meta list is initialized.",
    ),
    ErrorRule(
        ErrorCategory.POOL_NOT_FOUND,
        ("PoolNotFound", "pool not found"),
        "Pool not found",
        "Verify the pool address and the network you are connected to.",
    ),
    ErrorRule(
        ErrorCategory.NETWORK_ERROR,
        ("Blockhash not found", "block height exceeded", "timed out", "connection"),
        "Network error",
        "The RPC node could not process the request. Check the connection and submit again.",
    ),
    ErrorRule(
        ErrorCategory.SIMULATION_FAILURE,
        ("account already in use",),
        "Mint creation conflict",
        "The generated account address is already in use. Submit again to use a fresh mint keypair.",
    ),
    ErrorRule(
        ErrorCategory.SIMULATION_FAILURE,
        ("Transaction simulation failed", "simulation failed"),
        "Transaction simulation failed",
        "The transaction failed simulation. Inspect the program logs for the failing instruction.",
    ),
)

UNKNOWN_RULE = ErrorRule(
    ErrorCategory.UNKNOWN,
    (),
    "Unexpected error",
    "Inspect the transaction logs for details.",
)

_CATEGORY_CODES = {
    ErrorCategory.NETWORK_ERROR: ErrorCode.RPC_CONNECTION_FAILED,
    ErrorCategory.SIMULATION_FAILURE: ErrorCode.TX_SIMULATION_FAILED,
    ErrorCategory.INSUFFICIENT_FUNDS: ErrorCode.TX_INSUFFICIENT_FUNDS,
    ErrorCategory.SLIPPAGE_EXCEEDED: ErrorCode.SLIPPAGE_EXCEEDED,
    ErrorCategory.PRICE_RANGE_VIOLATION: ErrorCode.PRICE_RANGE_VIOLATION,
    ErrorCategory.ZERO_AMOUNT: ErrorCode.AMOUNT_IS_ZERO,
    ErrorCategory.HOOK_EXECUTION_FAILURE: ErrorCode.HOOK_EXECUTION_FAILED,
    ErrorCategory.KYC_REQUIRED: ErrorCode.KYC_REQUIRED,
    ErrorCategory.INSUFFICIENT_KYC_LEVEL: ErrorCode.KYC_INSUFFICIENT_LEVEL,
    ErrorCategory.GEOGRAPHIC_RESTRICTION: ErrorCode.GEOGRAPHIC_RESTRICTION,
    ErrorCategory.TRADING_HOURS_RESTRICTION: ErrorCode.TRADING_HOURS_RESTRICTION,
    ErrorCategory.TRADE_LIMIT_EXCEEDED: ErrorCode.TRADE_LIMIT_EXCEEDED,
    ErrorCategory.POOL_NOT_FOUND: ErrorCode.POOL_NOT_FOUND,
    ErrorCategory.UNKNOWN: ErrorCode.UNKNOWN,
}

_RECOVERABLE = {
    ErrorCategory.NETWORK_ERROR,
    ErrorCategory.SLIPPAGE_EXCEEDED,
    ErrorCategory.TRADING_HOURS_RESTRICTION,
}


def _match(text: str) -> Optional[ErrorRule]:
    lowered = text.lower()
    for rule in ERROR_RULES:
        for pattern in rule.patterns:
            if pattern.lower() in lowered:
                return rule
    return None


def find_rule(message: Optional[str], logs: Optional[Sequence[str]] = None) -> ErrorRule:
    """
    Find the first matching rule, searching logs before the message.

    Args:
        message: Top-level error message
        logs: Program logs (may be empty)

    Returns:
        Matching ErrorRule, or UNKNOWN_RULE
    """
    if logs:
        rule = _match("\n".join(logs))
        if rule is not None:
            return rule
    if message:
        rule = _match(message)
        if rule is not None:
            return rule
    return UNKNOWN_RULE


def classify(message: Optional[str], logs: Optional[Sequence[str]] = None) -> ErrorCategory:
    """Classify a failure into an ErrorCategory"""
    return find_rule(message, logs).category


def _extract(error: Union[Exception, TxResult]) -> Tuple[str, List[str], Optional[str]]:
    """Pull (message, logs, signature) out of anything a submission can fail with"""
    if isinstance(error, TxResult):
        return error.error or "", list(error.logs), error.signature
    if isinstance(error, TransactionError):
        return error.message, list(error.logs), error.signature
    if isinstance(error, RpcError):
        return error.message, error.logs, None
    if isinstance(error, RwaAmmError):
        return error.message, list(error.details.get("logs") or []), None
    return str(error), [], None


def translate(
    error: Union[Exception, TxResult],
    operation: Optional[str] = None,
) -> ClassifiedError:
    """
    Translate a failure into a ClassifiedError.

    Args:
        error: Exception raised during submission, or a failed TxResult
        operation: Operation name for context ("swap", "create_pool", ...)

    Returns:
        ClassifiedError (an already-classified error is returned unchanged)
    """
    if isinstance(error, ClassifiedError):
        return error

    message, logs, signature = _extract(error)
    rule = find_rule(message, logs)

    logger.debug(f"Classified {operation or 'operation'} failure as {rule.category.value}: {message}")

    return ClassifiedError(
        rule.category,
        rule.title,
        rule.hint,
        _CATEGORY_CODES[rule.category],
        operation=operation,
        raw_message=message,
        logs=logs,
        signature=signature,
        recoverable=rule.category in _RECOVERABLE,
        original_error=error if isinstance(error, Exception) else None,
    )


def raise_for_result(result: TxResult, operation: Optional[str] = None) -> TxResult:
    """
    Return the result when it succeeded (or was skipped), raise otherwise.

    Raises:
        ClassifiedError: For failed or timed-out transactions
    """
    if result.is_success or result.is_skipped:
        return result
    raise translate(result, operation)
