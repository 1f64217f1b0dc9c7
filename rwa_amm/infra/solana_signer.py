"""
Transaction signing abstractions

Provides a signing interface for the fee payer plus helpers that place
signatures into the slot the message header assigns to each signer.
"""

from __future__ import annotations

import json
import logging
import os
from typing import List, Optional, Protocol, Tuple, runtime_checkable

import base58
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from ..errors import SignerError, ConfigurationError
from ..config import config as global_config

logger = logging.getLogger(__name__)


@runtime_checkable
class Signer(Protocol):
    """
    Protocol for transaction signers

    Implementations must provide:
    - pubkey: The signer's public key (base58)
    - sign(): Sign a message
    - sign_transaction(): Sign a serialized VersionedTransaction
    """

    @property
    def pubkey(self) -> str:
        """Signer's public key (base58)"""
        ...

    def sign(self, message: bytes) -> bytes:
        """
        Sign a message

        Args:
            message: Message bytes to sign

        Returns:
            64-byte signature
        """
        ...

    def sign_transaction(self, unsigned_tx: bytes) -> Tuple[bytes, str]:
        """
        Sign a transaction

        Args:
            unsigned_tx: Unsigned transaction bytes

        Returns:
            (signed_tx_bytes, signature_base58)
        """
        ...


def message_bytes_for_signing(message) -> bytes:
    """
    Bytes a signer must sign for `message`

    MessageV0 is signed together with its 0x80 version prefix, which
    bytes(message) omits.
    """
    raw = bytes(message)
    if isinstance(message, MessageV0):
        return bytes([0x80]) + raw
    return raw


def signer_keys(message) -> List[str]:
    """Base58 keys of the required signers, in signature-slot order"""
    count = message.header.num_required_signatures
    return [str(k) for k in list(message.account_keys)[:count]]


class LocalSigner:
    """
    Local signer using a Solana keypair

    Usage:
        from solders.keypair import Keypair

        signer = LocalSigner(Keypair())  # or LocalSigner.from_file(path)

        signed_tx, sig = signer.sign_transaction(unsigned_tx_bytes)
    """

    def __init__(self, keypair: Keypair):
        self._keypair = keypair

    @property
    def pubkey(self) -> str:
        """Public key as base58 string"""
        return str(self._keypair.pubkey())

    @property
    def keypair(self) -> Keypair:
        return self._keypair

    def sign(self, message: bytes) -> bytes:
        """Sign message bytes"""
        return bytes(self._keypair.sign_message(message))

    def sign_transaction(self, unsigned_tx: bytes) -> Tuple[bytes, str]:
        """
        Sign versioned transaction in this key's signer slot

        Other slots keep whatever signature the transaction already carries.

        Args:
            unsigned_tx: Unsigned VersionedTransaction bytes

        Returns:
            (signed_tx_bytes, signature_base58)

        Raises:
            SignerError: This key is not one of the required signers
        """
        tx = VersionedTransaction.from_bytes(unsigned_tx)
        message = tx.message

        keys = signer_keys(message)
        if self.pubkey not in keys:
            raise SignerError.failed(
                f"Wallet {self.pubkey} is not in the required signers list. "
                f"Expected signers: {keys}"
            )
        signer_index = keys.index(self.pubkey)

        signature = self._keypair.sign_message(message_bytes_for_signing(message))

        signatures = list(tx.signatures)
        if len(signatures) < len(keys):
            signatures += [Signature.default()] * (len(keys) - len(signatures))
        signatures[signer_index] = signature

        signed_tx = VersionedTransaction.populate(message, signatures)
        return bytes(signed_tx), str(signature)

    @classmethod
    def from_bytes(cls, secret_key: bytes) -> "LocalSigner":
        """Create signer from secret key bytes (64 bytes)"""
        if len(secret_key) != 64:
            raise ConfigurationError.invalid("secret_key", f"expected 64 bytes, got {len(secret_key)}")
        return cls(Keypair.from_bytes(secret_key))

    @classmethod
    def from_base58(cls, secret_key: str) -> "LocalSigner":
        """Create signer from base58 secret key (Phantom export format)"""
        try:
            secret_bytes = base58.b58decode(secret_key)
        except ValueError as e:
            raise ConfigurationError.invalid("secret_key", f"not valid base58: {e}")
        return cls.from_bytes(secret_bytes)

    @classmethod
    def from_file(cls, path: str) -> "LocalSigner":
        """
        Create signer from keypair file

        Supports:
        - JSON array format (Solana CLI): [1,2,3,...]
        - Raw bytes file (64 bytes)
        """
        with open(path, "rb") as f:
            content = f.read()

        # Try JSON format first
        try:
            data = json.loads(content.decode("utf-8"))
            if isinstance(data, list):
                return cls.from_bytes(bytes(data))
        except (json.JSONDecodeError, UnicodeDecodeError):
            pass

        # Try raw bytes
        if len(content) == 64:
            return cls.from_bytes(content)

        raise ConfigurationError.invalid("keypair_file", f"Cannot parse keypair file: {path}")


def create_signer(
    keypair: Optional[Keypair] = None,
    keypair_path: Optional[str] = None,
) -> Signer:
    """
    Create signer based on configuration

    Priority:
    1. keypair: Use LocalSigner with provided keypair
    2. keypair_path: Load keypair from file
    3. Environment: Check SOLANA_KEYPAIR_PATH env var

    Raises:
        SignerError: If no valid signer configuration found
    """
    if keypair is not None:
        return LocalSigner(keypair)

    if keypair_path is not None:
        return LocalSigner.from_file(keypair_path)

    path = global_config.signer.keypair_path
    if path and os.path.isfile(os.path.expanduser(path)):
        logger.debug(f"Loading keypair from {path}")
        return LocalSigner.from_file(os.path.expanduser(path))

    raise SignerError.not_configured()
