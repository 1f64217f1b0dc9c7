"""
RWA AMM - Transaction orchestration for a Token-2022 transfer-hook AMM on Solana

Provides:
- Mint provisioning with RWA extensions (metadata, transfer hook, fees, interest)
- KYC record management for the compliance transfer hook
- Hook-aware pool creation, liquidity and swaps
- Classification of on-chain failures into actionable errors
"""

from .client import RwaAmmClient
from .types import (
    TxResult,
    TxStatus,
    TxStage,
    MintResult,
    ConfigResult,
    PoolResult,
    PositionResult,
    CreateRwaMintParams,
    TokenMetadataParams,
    RwaConfig,
    TradingHours,
    TransferHookParams,
    TransferFeeParams,
    InterestBearingParams,
    CreateConfigParams,
    CreatePoolParams,
    KycStatus,
    SwapCompliance,
    PoolState,
)
from .errors import (
    RwaAmmError,
    RpcError,
    PoolUnavailable,
    TransactionError,
    ComplianceError,
    ClassifiedError,
    MintPipelineError,
    ErrorCategory,
    ErrorCode,
    translate,
)

__all__ = [
    # Client
    "RwaAmmClient",
    # Types
    "TxResult",
    "TxStatus",
    "TxStage",
    "MintResult",
    "ConfigResult",
    "PoolResult",
    "PositionResult",
    "CreateRwaMintParams",
    "TokenMetadataParams",
    "RwaConfig",
    "TradingHours",
    "TransferHookParams",
    "TransferFeeParams",
    "InterestBearingParams",
    "CreateConfigParams",
    "CreatePoolParams",
    "KycStatus",
    "SwapCompliance",
    "PoolState",
    # Errors
    "RwaAmmError",
    "RpcError",
    "PoolUnavailable",
    "TransactionError",
    "ComplianceError",
    "ClassifiedError",
    "MintPipelineError",
    "ErrorCategory",
    "ErrorCode",
    "translate",
]

__version__ = "0.1.0"
