"""
Infrastructure layer for the RWA AMM client

Provides:
- RpcClient: HTTP RPC wrapper with retry logic for reads
- Signer: Transaction signing abstraction (local keypair)
- TxBuilder: Transaction assembly, single-shot sending and confirmation
- ProgramContext: RPC + builder + program ids handed to every module
"""

from .rpc import RpcClient, RpcClientConfig, decode_account_data
from .solana_signer import (
    Signer,
    LocalSigner,
    create_signer,
)
from .tx_builder import TxBuilder, TxBuilderConfig
from .context import ProgramContext

__all__ = [
    "RpcClient",
    "RpcClientConfig",
    "decode_account_data",
    "Signer",
    "LocalSigner",
    "create_signer",
    "TxBuilder",
    "TxBuilderConfig",
    "ProgramContext",
]
