"""
Transaction builder and sender

Provides utilities for:
- Building versioned transactions
- Adding compute budget instructions
- Multi-signer signing (payer + fresh mint / NFT keypairs)
- Sending once and confirming

Every submission walks BUILT -> SIGNED -> SUBMITTED -> CONFIRMED | FAILED.
The stage reached is recorded on TxResult.stage. Nothing is resubmitted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from .rpc import RpcClient
from .solana_signer import Signer, message_bytes_for_signing, signer_keys
from ..types import TxResult, TxStage
from ..errors import TransactionError, RpcError
from ..config import config as global_config
from ..protocols.constants import MAX_COMPUTE_UNITS

logger = logging.getLogger(__name__)


@dataclass
class TxBuilderConfig:
    """
    Transaction builder runtime configuration

    This is a runtime configuration class that allows per-builder overrides
    while pulling defaults from the global config (rwa_amm.config.TxConfig).

    Usage:
        # Use all defaults from environment
        builder = TxBuilder(rpc, signer)

        # Override specific settings
        config = TxBuilderConfig(compute_units=400_000, skip_preflight=True)
        builder = TxBuilder(rpc, signer, config=config)
    """
    compute_units: int = None
    compute_unit_price: int = None
    skip_preflight: bool = None
    preflight_commitment: str = None
    confirmation_timeout: float = None
    confirmation_poll_interval: float = None

    def __post_init__(self):
        """Apply defaults from global config for any unset values"""
        if self.compute_units is None:
            self.compute_units = global_config.tx.compute_units
        if self.compute_unit_price is None:
            self.compute_unit_price = global_config.tx.compute_unit_price
        if self.skip_preflight is None:
            self.skip_preflight = global_config.tx.skip_preflight
        if self.preflight_commitment is None:
            self.preflight_commitment = global_config.tx.preflight_commitment
        if self.confirmation_timeout is None:
            self.confirmation_timeout = global_config.tx.confirmation_timeout
        if self.confirmation_poll_interval is None:
            self.confirmation_poll_interval = global_config.tx.confirmation_poll_interval


class TxBuilder:
    """
    Transaction builder and sender

    Handles:
    - Building versioned transactions with compute budget
    - Signing with the wallet plus any additional keypairs
    - Sending exactly once
    - Confirmation polling

    Usage:
        builder = TxBuilder(rpc, signer)

        # Build, sign, send and confirm
        result = builder.execute(instructions, compute_units=400_000, label="create_position")

        # Or step by step
        tx_bytes = builder.build(instructions)
        signed_bytes, sig = builder.sign(tx_bytes, [nft_keypair])
        result = builder.send(signed_bytes)
    """

    def __init__(
        self,
        rpc: RpcClient,
        signer: Signer,
        config: Optional[TxBuilderConfig] = None,
    ):
        """
        Initialize transaction builder

        Args:
            rpc: RPC client
            signer: Wallet signer (fee payer)
            config: Transaction configuration
        """
        self._rpc = rpc
        self._signer = signer
        self._config = config or TxBuilderConfig()

    @property
    def pubkey(self) -> str:
        """Signer's public key"""
        return self._signer.pubkey

    def build(
        self,
        instructions: Sequence[Instruction],
        payer: Optional[str] = None,
        compute_units: Optional[int] = None,
        compute_unit_price: Optional[int] = None,
        recent_blockhash: Optional[str] = None,
    ) -> bytes:
        """
        Build unsigned versioned transaction

        Args:
            instructions: List of instructions
            payer: Fee payer pubkey (defaults to signer)
            compute_units: Compute unit limit (capped at the per-transaction maximum)
            compute_unit_price: Priority fee in microlamports per CU
            recent_blockhash: Optional blockhash (fetched if not provided)

        Returns:
            Unsigned transaction bytes
        """
        all_instructions = []

        cu_limit = min(compute_units or self._config.compute_units, MAX_COMPUTE_UNITS)
        cu_price = compute_unit_price if compute_unit_price is not None else self._config.compute_unit_price

        if cu_limit > 0:
            all_instructions.append(set_compute_unit_limit(cu_limit))

        if cu_price > 0:
            all_instructions.append(set_compute_unit_price(cu_price))

        all_instructions.extend(instructions)

        if recent_blockhash is None:
            blockhash_info = self._rpc.get_latest_blockhash()
            recent_blockhash = blockhash_info.get("blockhash")

        if not recent_blockhash:
            raise TransactionError.send_failed("Failed to get recent blockhash")

        payer_pubkey = Pubkey.from_string(payer or self.pubkey)
        message = MessageV0.try_compile(
            payer_pubkey,
            all_instructions,
            [],  # Address lookup tables
            Hash.from_string(recent_blockhash),
        )

        # VersionedTransaction requires signatures array to match num_required_signatures
        num_signers = message.header.num_required_signatures
        tx = VersionedTransaction.populate(message, [Signature.default()] * num_signers)

        return bytes(tx)

    def sign(
        self,
        unsigned_tx: bytes,
        additional_signers: Optional[Sequence[Keypair]] = None,
    ) -> Tuple[bytes, str]:
        """
        Sign transaction

        Args:
            unsigned_tx: Unsigned transaction bytes
            additional_signers: Keypairs that must co-sign (fresh mint, position NFT)

        Returns:
            (signed_tx_bytes, wallet_signature_base58)

        Raises:
            TransactionError: A required signer has no signature
        """
        if not additional_signers:
            return self._signer.sign_transaction(unsigned_tx)

        tx = VersionedTransaction.from_bytes(unsigned_tx)
        message = tx.message
        message_bytes = message_bytes_for_signing(message)
        keys = signer_keys(message)

        logger.debug(f"Transaction requires {len(keys)} signatures: {keys}")

        null_sig = Signature.default()
        signatures = [null_sig] * len(keys)

        if self._signer.pubkey not in keys:
            raise TransactionError.send_failed(
                f"Wallet pubkey {self._signer.pubkey} not found in transaction signers. "
                f"Required signers: {keys}"
            )
        wallet_index = keys.index(self._signer.pubkey)

        try:
            wallet_signature = Signature.from_bytes(self._signer.sign(message_bytes))
        except NotImplementedError:
            # Signers that only sign whole transactions
            signed_tx_bytes, _ = self._signer.sign_transaction(unsigned_tx)
            wallet_signature = VersionedTransaction.from_bytes(signed_tx_bytes).signatures[wallet_index]
        signatures[wallet_index] = wallet_signature

        for keypair in additional_signers:
            kp_pubkey = str(keypair.pubkey())
            if kp_pubkey in keys:
                signatures[keys.index(kp_pubkey)] = keypair.sign_message(message_bytes)
                logger.debug(f"Additional signer {kp_pubkey[:16]}... signed at index {keys.index(kp_pubkey)}")
            else:
                logger.warning(f"Additional signer {kp_pubkey} not found in required signers")

        missing_signers = [keys[i] for i, sig in enumerate(signatures) if sig == null_sig]
        if missing_signers:
            raise TransactionError(
                f"Missing signatures for required signers: {', '.join(missing_signers)}",
                signature=None,
            )

        signed_tx = VersionedTransaction.populate(message, signatures)
        return bytes(signed_tx), str(wallet_signature)

    def send(
        self,
        signed_tx: bytes,
        skip_preflight: Optional[bool] = None,
        label: Optional[str] = None,
    ) -> TxResult:
        """
        Send signed transaction once and wait for confirmation

        A preflight rejection or transport failure is returned as a FAILED
        result carrying the preflight logs; it is never retried.

        Args:
            signed_tx: Signed transaction bytes
            skip_preflight: Skip simulation (default from config)
            label: Operation name for logs

        Returns:
            TxResult with status, signature and stage
        """
        skip = skip_preflight if skip_preflight is not None else self._config.skip_preflight
        tag = label or "transaction"

        try:
            signature = self._rpc.send_transaction(
                signed_tx,
                skip_preflight=skip,
                preflight_commitment=self._config.preflight_commitment,
            )
        except RpcError as e:
            logger.warning(f"[{tag}] {TxStage.FAILED.value} at submission: {e.message}")
            return TxResult.failed(
                e.message,
                label=label,
                recoverable=e.recoverable,
                error_code=e.code.value,
                logs=e.logs,
            )

        logger.info(f"[{tag}] {TxStage.SUBMITTED.value}: {signature}")

        confirmed = self._rpc.confirm_transaction(
            signature,
            commitment=self._config.preflight_commitment,
            timeout_seconds=self._config.confirmation_timeout,
            poll_interval=self._config.confirmation_poll_interval,
        )

        if confirmed is True:
            logger.info(f"[{tag}] {TxStage.CONFIRMED.value}: {signature}")
            return TxResult.success(signature, label=label)

        if confirmed is False:
            logs = self._fetch_logs(signature)
            logger.warning(f"[{tag}] {TxStage.FAILED.value} on-chain: {signature}")
            return TxResult.failed(
                "Transaction failed on-chain",
                signature=signature,
                label=label,
                logs=logs,
            )

        logger.warning(f"[{tag}] {TxStage.FAILED.value}: confirmation timeout for {signature}")
        return TxResult.timeout(signature, label=label)

    def _fetch_logs(self, signature: str) -> List[str]:
        try:
            return self._rpc.get_transaction_logs(signature)
        except RpcError as e:
            logger.warning(f"Could not fetch logs for {signature}: {e}")
            return []

    def simulate(self, unsigned_tx: bytes) -> dict:
        """
        Simulate transaction execution

        Args:
            unsigned_tx: Unsigned transaction bytes

        Returns:
            Simulation result
        """
        return self._rpc.simulate_transaction(unsigned_tx)

    def execute(
        self,
        instructions: Sequence[Instruction],
        compute_units: Optional[int] = None,
        compute_unit_price: Optional[int] = None,
        additional_signers: Optional[Sequence[Keypair]] = None,
        label: Optional[str] = None,
        simulate_first: bool = False,
    ) -> TxResult:
        """
        Build, sign, send and confirm in one call

        Args:
            instructions: List of instructions
            compute_units: Compute unit limit
            compute_unit_price: Priority fee
            additional_signers: Keypairs that must co-sign
            label: Operation name for logs
            simulate_first: Run simulation before sending

        Returns:
            TxResult

        Raises:
            TransactionError: Build, sign or simulation failure (nothing was sent)
        """
        tag = label or "transaction"

        unsigned_tx = self.build(
            instructions,
            compute_units=compute_units,
            compute_unit_price=compute_unit_price,
        )
        logger.debug(f"[{tag}] {TxStage.BUILT.value}: {len(instructions)} instruction(s)")

        if simulate_first:
            sim_result = self.simulate(unsigned_tx) or {}
            value = sim_result.get("value") or {}
            if value.get("err"):
                raise TransactionError.simulation_failed(str(value["err"]), value.get("logs") or [])

        signed_tx, signature = self.sign(unsigned_tx, additional_signers)
        logger.debug(f"[{tag}] {TxStage.SIGNED.value}: {signature}")

        return self.send(signed_tx, label=label)
