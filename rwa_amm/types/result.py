"""
Result type definitions for transactions and multi-step operations
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List


class TxStatus(Enum):
    """Transaction status"""
    SUCCESS = "success"
    FAILED = "failed"
    TIMEOUT = "timeout"
    SKIPPED = "skipped"  # No transaction needed (e.g., account already exists)


class TxStage(Enum):
    """
    Lifecycle of a single submission

    BUILT -> SIGNED -> SUBMITTED -> CONFIRMED | FAILED

    FAILED is terminal; nothing resubmits automatically.
    """
    BUILT = "built"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class TxResult:
    """
    Transaction execution result

    Attributes:
        status: Transaction status
        signature: Transaction signature (base58)
        error: Error message if failed
        stage: Last lifecycle stage reached
        label: Operation label used in logs
        recoverable: Whether the error is recoverable
        error_code: Error code for programmatic handling
        slot: Slot number when confirmed
        logs: Program logs (from preflight or confirmed transaction)
    """
    status: TxStatus
    signature: Optional[str] = None
    error: Optional[str] = None
    stage: Optional[TxStage] = None
    label: Optional[str] = None
    recoverable: bool = False
    error_code: Optional[str] = None
    slot: Optional[int] = None
    logs: List[str] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return self.status == TxStatus.SUCCESS

    @property
    def is_failed(self) -> bool:
        return self.status == TxStatus.FAILED

    @property
    def is_timeout(self) -> bool:
        return self.status == TxStatus.TIMEOUT

    @property
    def is_skipped(self) -> bool:
        return self.status == TxStatus.SKIPPED

    @classmethod
    def success(cls, signature: str, **kwargs) -> "TxResult":
        """Create successful result"""
        kwargs.setdefault("stage", TxStage.CONFIRMED)
        return cls(
            status=TxStatus.SUCCESS,
            signature=signature,
            **kwargs
        )

    @classmethod
    def failed(cls, error: str, signature: str = None, **kwargs) -> "TxResult":
        """Create failed result"""
        kwargs.setdefault("stage", TxStage.FAILED)
        return cls(
            status=TxStatus.FAILED,
            signature=signature,
            error=error,
            **kwargs
        )

    @classmethod
    def timeout(cls, signature: str = None, **kwargs) -> "TxResult":
        """Create timeout result (the transaction may still land)"""
        kwargs.setdefault("stage", TxStage.FAILED)
        return cls(
            status=TxStatus.TIMEOUT,
            signature=signature,
            error="Transaction confirmation timeout",
            recoverable=True,
            error_code="2003",
            **kwargs
        )

    @classmethod
    def skipped(cls, reason: str = "No action needed", **kwargs) -> "TxResult":
        """Create skipped result (no transaction was needed)"""
        return cls(
            status=TxStatus.SKIPPED,
            signature=None,
            error=reason,
            **kwargs
        )

    def __str__(self) -> str:
        if self.is_success:
            sig_display = f"{self.signature[:16]}..." if self.signature else "no signature"
            return f"TxResult(SUCCESS, {sig_display})"
        return f"TxResult({self.status.value}, error={self.error})"


@dataclass
class StepRecord:
    """Outcome of one mint pipeline step"""
    name: str
    status: TxStatus
    signature: Optional[str] = None
    note: Optional[str] = None


@dataclass
class MintResult:
    """
    Result of provisioning an RWA mint

    Attributes:
        mint_address: New mint address
        signature: Signature of the InitializeMint transaction
        steps: Per-step outcomes in execution order
        token_account: Payer ATA when initial supply was minted
    """
    mint_address: str
    signature: str
    steps: List[StepRecord] = field(default_factory=list)
    token_account: Optional[str] = None

    @property
    def signatures(self) -> List[str]:
        return [s.signature for s in self.steps if s.signature]


@dataclass
class ConfigResult:
    """Result of creating an AMM config account"""
    config_address: str
    config_id: int
    tx_result: TxResult

    @property
    def signature(self) -> Optional[str]:
        return self.tx_result.signature


@dataclass
class PoolResult:
    """
    Result of creating a pool

    Attributes:
        pool_address: Pool PDA
        position_address: Initial position PDA
        position_nft_mint: Mint of the position NFT
        tx_result: Pool creation transaction result
    """
    pool_address: str
    position_address: str
    position_nft_mint: str
    tx_result: TxResult

    @property
    def signature(self) -> Optional[str]:
        return self.tx_result.signature


@dataclass
class PositionResult:
    """Result of opening a position"""
    position_address: str
    position_nft_mint: str
    tx_result: TxResult

    @property
    def signature(self) -> Optional[str]:
        return self.tx_result.signature
