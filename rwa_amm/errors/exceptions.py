"""
Exception definitions for the RWA AMM client
"""

from enum import Enum
from typing import Optional, List


class ErrorCode(Enum):
    """
    Unified error codes

    1xxx - RPC errors
    2xxx - Transaction errors
    3xxx - Slippage/Price errors
    4xxx - Pool errors
    5xxx - Compliance / transfer hook errors
    6xxx - Signer errors
    7xxx - Operation errors
    9xxx - Configuration errors
    """
    # RPC errors (recoverable)
    RPC_CONNECTION_FAILED = "1001"
    RPC_TIMEOUT = "1002"
    RPC_RATE_LIMITED = "1003"
    RPC_INVALID_RESPONSE = "1004"

    # Transaction errors
    TX_SIMULATION_FAILED = "2001"
    TX_SEND_FAILED = "2002"
    TX_CONFIRMATION_FAILED = "2003"
    TX_INSUFFICIENT_FUNDS = "2004"
    TX_INVALID_BLOCKHASH = "2005"

    # Slippage/Price errors
    SLIPPAGE_EXCEEDED = "3001"
    PRICE_RANGE_VIOLATION = "3002"
    AMOUNT_IS_ZERO = "3003"

    # Pool errors
    POOL_NOT_FOUND = "4001"
    POOL_UNAVAILABLE = "4002"
    POOL_INVALID_STATE = "4003"

    # Compliance / hook errors
    KYC_REQUIRED = "5001"
    KYC_INSUFFICIENT_LEVEL = "5002"
    GEOGRAPHIC_RESTRICTION = "5003"
    TRADING_HOURS_RESTRICTION = "5004"
    TRADE_LIMIT_EXCEEDED = "5005"
    HOOK_EXECUTION_FAILED = "5006"
    KYC_INVALID_INPUT = "5007"

    # Signer errors
    SIGNER_NOT_CONFIGURED = "6001"
    SIGNER_FAILED = "6002"

    # Operation errors
    OPERATION_FAILED = "7001"
    MINT_PIPELINE_FAILED = "7002"
    UNKNOWN = "7999"

    # Configuration errors
    CONFIG_INVALID = "9001"
    CONFIG_MISSING = "9002"


class RwaAmmError(Exception):
    """
    Base exception for all client errors

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        recoverable: Whether the error might succeed on a fresh attempt
        original_error: The underlying exception if any
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


class RpcError(RwaAmmError):
    """
    RPC-related errors - typically recoverable

    Raised when:
    - Connection to RPC endpoint fails
    - Request times out
    - Rate limit is hit
    - The node returns a JSON-RPC error object
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RPC_CONNECTION_FAILED,
        original_error: Optional[Exception] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=True,
            original_error=original_error,
            details={"endpoint": endpoint} if endpoint else None,
        )
        self.endpoint = endpoint

    @property
    def logs(self) -> List[str]:
        """Program logs attached to a preflight failure, if any"""
        data = self.details.get("rpc_error_data")
        if isinstance(data, dict):
            return list(data.get("logs") or [])
        return []

    @classmethod
    def connection_failed(cls, endpoint: str, error: Exception = None) -> "RpcError":
        return cls(
            f"Failed to connect to RPC endpoint: {endpoint}",
            ErrorCode.RPC_CONNECTION_FAILED,
            original_error=error,
            endpoint=endpoint,
        )

    @classmethod
    def timeout(cls, endpoint: str, timeout_seconds: float) -> "RpcError":
        return cls(
            f"RPC request timed out after {timeout_seconds}s",
            ErrorCode.RPC_TIMEOUT,
            endpoint=endpoint,
        )

    @classmethod
    def rate_limited(cls, endpoint: str) -> "RpcError":
        return cls(
            "RPC rate limit exceeded",
            ErrorCode.RPC_RATE_LIMITED,
            endpoint=endpoint,
        )


class PoolUnavailable(RwaAmmError):
    """
    Pool not available - not recoverable

    Raised when:
    - Pool address not found on chain
    - Pool data cannot be decoded
    - A requested mint is not part of the pool
    """

    def __init__(
        self,
        message: str,
        pool_address: Optional[str] = None,
        code: ErrorCode = ErrorCode.POOL_UNAVAILABLE,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            details={"pool_address": pool_address},
        )
        self.pool_address = pool_address

    @classmethod
    def not_found(cls, pool_address: str) -> "PoolUnavailable":
        return cls(
            f"Pool not found: {pool_address}",
            pool_address=pool_address,
            code=ErrorCode.POOL_NOT_FOUND,
        )

    @classmethod
    def invalid_state(cls, pool_address: str, reason: str) -> "PoolUnavailable":
        return cls(
            f"Pool has invalid state: {reason}",
            pool_address=pool_address,
            code=ErrorCode.POOL_INVALID_STATE,
        )


class TransactionError(RwaAmmError):
    """
    Transaction execution errors

    Raised when:
    - Transaction simulation fails
    - Transaction send fails
    - Confirmation fails
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.TX_SEND_FAILED,
        signature: Optional[str] = None,
        logs: Optional[list] = None,
        recoverable: bool = False,
    ):
        super().__init__(
            message,
            code,
            recoverable=recoverable,
            details={"signature": signature, "logs": logs},
        )
        self.signature = signature
        self.logs = logs or []

    @classmethod
    def simulation_failed(cls, error: str, logs: list = None) -> "TransactionError":
        return cls(
            f"Transaction simulation failed: {error}",
            ErrorCode.TX_SIMULATION_FAILED,
            logs=logs,
        )

    @classmethod
    def send_failed(cls, error: str, logs: list = None) -> "TransactionError":
        recoverable = "timeout" in error.lower() or "connection" in error.lower()
        return cls(
            f"Failed to send transaction: {error}",
            ErrorCode.TX_SEND_FAILED,
            logs=logs,
            recoverable=recoverable,
        )

    @classmethod
    def confirmation_failed(cls, signature: str, error: str) -> "TransactionError":
        return cls(
            f"Transaction confirmation failed: {error}",
            ErrorCode.TX_CONFIRMATION_FAILED,
            signature=signature,
            recoverable=True,
        )


class ComplianceError(RwaAmmError):
    """
    Client-side KYC validation failures

    Raised before any transaction is built, with the same rules the
    transfer hook program enforces.
    """

    def __init__(self, message: str, field_name: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.KYC_INVALID_INPUT,
            recoverable=False,
            details={"field": field_name},
        )
        self.field_name = field_name

    @classmethod
    def invalid_field(cls, field_name: str, reason: str) -> "ComplianceError":
        return cls(f"Invalid KYC {field_name}: {reason}", field_name=field_name)


class SignerError(RwaAmmError):
    """
    Signing-related errors

    Raised when:
    - No signer configured
    - Signing operation fails
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SIGNER_FAILED,
        recoverable: bool = False,
    ):
        super().__init__(message, code, recoverable=recoverable)

    @classmethod
    def not_configured(cls) -> "SignerError":
        return cls(
            "No signer configured. Provide a keypair or SOLANA_KEYPAIR_PATH.",
            ErrorCode.SIGNER_NOT_CONFIGURED,
        )

    @classmethod
    def failed(cls, reason: str) -> "SignerError":
        return cls(f"Signing failed: {reason}", ErrorCode.SIGNER_FAILED)


class ConfigurationError(RwaAmmError):
    """
    Configuration-related errors

    Raised when:
    - Required configuration is missing
    - Configuration values are invalid
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
    ):
        super().__init__(message, code, recoverable=False)

    @classmethod
    def missing(cls, param: str) -> "ConfigurationError":
        return cls(f"Missing required configuration: {param}", ErrorCode.CONFIG_MISSING)

    @classmethod
    def invalid(cls, param: str, reason: str) -> "ConfigurationError":
        return cls(f"Invalid configuration '{param}': {reason}", ErrorCode.CONFIG_INVALID)


class ClassifiedError(RwaAmmError):
    """
    A failure mapped onto the user-facing error taxonomy

    `message` is already formatted for display (title, blank line, hint).

    Attributes:
        category: ErrorCategory the failure was classified as
        title: Short headline for the category
        hint: Actionable remediation text
        operation: Name of the operation that failed
        logs: Program logs captured from simulation or confirmation
        signature: Transaction signature when one was produced
    """

    def __init__(
        self,
        category,
        title: str,
        hint: str,
        code: ErrorCode,
        operation: Optional[str] = None,
        raw_message: Optional[str] = None,
        logs: Optional[List[str]] = None,
        signature: Optional[str] = None,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            f"{title}\n\n{hint}",
            code,
            recoverable=recoverable,
            original_error=original_error,
            details={
                "category": category.value,
                "operation": operation,
                "raw_message": raw_message,
                "signature": signature,
            },
        )
        self.category = category
        self.title = title
        self.hint = hint
        self.operation = operation
        self.raw_message = raw_message
        self.logs = logs or []
        self.signature = signature


class MintPipelineError(ClassifiedError):
    """
    Mint provisioning stopped part-way

    Steps before `failed_step` are on chain and were not rolled back
    unless listed in `compensations`.

    Attributes:
        mint_address: Address of the (possibly partially initialized) mint
        failed_step: Name of the step that failed
        completed_steps: Names of the steps that finished
        compensations: {step: outcome} for every cleanup attempted
    """

    def __init__(
        self,
        cause: ClassifiedError,
        mint_address: str,
        failed_step: str,
        completed_steps: List[str],
        compensations: Optional[dict] = None,
    ):
        super().__init__(
            cause.category,
            cause.title,
            cause.hint,
            cause.code,
            operation=cause.operation,
            raw_message=cause.raw_message,
            logs=cause.logs,
            signature=cause.signature,
            recoverable=cause.recoverable,
            original_error=cause.original_error,
        )
        self.mint_address = mint_address
        self.failed_step = failed_step
        self.completed_steps = list(completed_steps)
        self.compensations = compensations or {}
        self.details.update({
            "mint_address": mint_address,
            "failed_step": failed_step,
            "completed_steps": self.completed_steps,
            "compensations": self.compensations,
        })

    @property
    def partial(self) -> bool:
        """True when at least one step landed before the failure"""
        return bool(self.completed_steps)
