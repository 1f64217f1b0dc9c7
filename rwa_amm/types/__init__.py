"""
Type definitions for the RWA AMM client
"""

from .result import (
    TxStatus,
    TxStage,
    TxResult,
    StepRecord,
    MintResult,
    ConfigResult,
    PoolResult,
    PositionResult,
)
from .params import (
    TransferFeeParams,
    InterestBearingParams,
    TransferHookParams,
    TradingHours,
    RwaConfig,
    TokenMetadataParams,
    CreateRwaMintParams,
    BaseFeeParams,
    CreateConfigParams,
    CreatePoolParams,
)
from .state import (
    KYC_LEVEL_UNVERIFIED,
    KYC_LEVEL_BASIC,
    KYC_LEVEL_ENHANCED,
    KYC_LEVEL_INSTITUTIONAL,
    KYC_FLAG_SANCTIONED,
    KYC_FLAG_PEP,
    KYC_FLAG_FROZEN,
    KYC_FLAG_EXPIRED,
    HookInfo,
    RemainingAccounts,
    UserKycRecord,
    KycStatus,
    SwapCompliance,
    HookStatus,
    HookDisplayInfo,
    PoolState,
    PositionState,
)

__all__ = [
    "TxStatus",
    "TxStage",
    "TxResult",
    "StepRecord",
    "MintResult",
    "ConfigResult",
    "PoolResult",
    "PositionResult",
    "TransferFeeParams",
    "InterestBearingParams",
    "TransferHookParams",
    "TradingHours",
    "RwaConfig",
    "TokenMetadataParams",
    "CreateRwaMintParams",
    "BaseFeeParams",
    "CreateConfigParams",
    "CreatePoolParams",
    "KYC_LEVEL_UNVERIFIED",
    "KYC_LEVEL_BASIC",
    "KYC_LEVEL_ENHANCED",
    "KYC_LEVEL_INSTITUTIONAL",
    "KYC_FLAG_SANCTIONED",
    "KYC_FLAG_PEP",
    "KYC_FLAG_FROZEN",
    "KYC_FLAG_EXPIRED",
    "HookInfo",
    "RemainingAccounts",
    "UserKycRecord",
    "KycStatus",
    "SwapCompliance",
    "HookStatus",
    "HookDisplayInfo",
    "PoolState",
    "PositionState",
]
