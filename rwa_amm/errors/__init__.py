"""
Error definitions for the RWA AMM client
"""

from .exceptions import (
    ErrorCode,
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
from .translator import (
    ErrorCategory,
    ErrorRule,
    ERROR_RULES,
    classify,
    find_rule,
    translate,
    raise_for_result,
)

__all__ = [
    "ErrorCode",
    "RwaAmmError",
    "RpcError",
    "PoolUnavailable",
    "TransactionError",
    "ComplianceError",
    "SignerError",
    "ConfigurationError",
    "ClassifiedError",
    "MintPipelineError",
    "ErrorCategory",
    "ErrorRule",
    "ERROR_RULES",
    "classify",
    "find_rule",
    "translate",
    "raise_for_result",
]
