"""
RwaAmmClient - Unified entry point for RWA AMM operations

Wires RPC, signer and transaction builder into a ProgramContext and exposes
the functional modules (hooks, kyc, mints, amm) on top of it.
"""

from __future__ import annotations

from typing import Optional, Union, List, TYPE_CHECKING

if TYPE_CHECKING:
    from solders.keypair import Keypair
    from solders.pubkey import Pubkey

from .config import config as global_config
from .infra import (
    RpcClient,
    RpcClientConfig,
    TxBuilder,
    TxBuilderConfig,
    ProgramContext,
    create_signer,
    Signer,
)


class RwaAmmClient:
    """
    RWA AMM client

    Provides access to operations through functional modules:
    - hooks: Transfer hook detection and account resolution
    - kyc: KYC records and pre-trade compliance checks
    - mints: RWA mint provisioning and minting
    - amm: Configs, badges, pools, positions, liquidity, swaps

    Usage:
        from solders.keypair import Keypair

        client = RwaAmmClient(
            rpc_url="https://api.devnet.solana.com",
            keypair_path="/path/to/keypair.json",
        )

        mint = client.mints.create_rwa_mint(params)
        status = client.kyc.get_status()
        client.amm.swap(pool, input_mint, output_mint, 1_000_000, 0)
    """

    def __init__(
        self,
        rpc_url: Optional[Union[str, List[str]]] = None,
        keypair: Optional["Keypair"] = None,
        keypair_path: Optional[str] = None,
        rpc_config: Optional[RpcClientConfig] = None,
        tx_config: Optional[TxBuilderConfig] = None,
        amm_program_id: Optional[Union[str, "Pubkey"]] = None,
        hook_program_id: Optional[Union[str, "Pubkey"]] = None,
    ):
        """
        Initialize RwaAmmClient

        Args:
            rpc_url: RPC endpoint URL or list of URLs for fallback (config default if None)
            keypair: Optional Keypair for local signing
            keypair_path: Optional path to keypair file
            rpc_config: Optional RPC configuration
            tx_config: Optional transaction configuration
            amm_program_id: AMM program override
            hook_program_id: KYC transfer hook program override
        """
        self._rpc = RpcClient(rpc_url or global_config.rpc.url, config=rpc_config)
        self._signer = create_signer(
            keypair=keypair,
            keypair_path=keypair_path,
        )
        self._tx_builder = TxBuilder(self._rpc, self._signer, config=tx_config)
        self._ctx = ProgramContext(
            rpc=self._rpc,
            tx_builder=self._tx_builder,
            amm_program_id=amm_program_id,
            hook_program_id=hook_program_id,
        )

        # Lazy-loaded modules
        self._hooks: Optional["HookModule"] = None
        self._kyc: Optional["ComplianceModule"] = None
        self._mints: Optional["MintPipeline"] = None
        self._amm: Optional["AmmModule"] = None

    @property
    def rpc(self) -> RpcClient:
        """Access to RPC client"""
        return self._rpc

    @property
    def signer(self) -> Signer:
        """Access to signer"""
        return self._signer

    @property
    def tx_builder(self) -> TxBuilder:
        """Access to transaction builder"""
        return self._tx_builder

    @property
    def context(self) -> ProgramContext:
        return self._ctx

    @property
    def pubkey(self) -> str:
        """Wallet public key"""
        return self._signer.pubkey

    @property
    def hooks(self) -> "HookModule":
        """
        Transfer hook module

        Provides:
        - detect_hook(mint) / detect_hooks(mints)
        - resolve_remaining_accounts(input_mint, output_mint, owner, pool_authority)
        - ensure_extra_account_meta_list(mint)
        - check_transfer_hook_status(mint) / get_transfer_hook_display_info(mint)
        """
        if self._hooks is None:
            from .modules.hooks import HookModule
            self._hooks = HookModule(self._ctx)
        return self._hooks

    @property
    def kyc(self) -> "ComplianceModule":
        """
        Compliance module

        Provides:
        - get_status(wallet) / can_trade_rwa(wallet)
        - create_user_kyc(...) / update_user_kyc(...) / ensure_kyc(wallets)
        - validate_swap_compliance(user, input_mint, output_mint, amount)
        """
        if self._kyc is None:
            from .modules.compliance import ComplianceModule
            self._kyc = ComplianceModule(self._ctx, hooks=self.hooks)
        return self._kyc

    @property
    def mints(self) -> "MintPipeline":
        """
        Mint provisioning module

        Provides:
        - create_rwa_mint(params): multi-step Token-2022 mint creation
        - mint_tokens(mint, amount, recipient): supplementary minting
        """
        if self._mints is None:
            from .modules.mint_pipeline import MintPipeline
            self._mints = MintPipeline(self._ctx, hooks=self.hooks)
        return self._mints

    @property
    def amm(self) -> "AmmModule":
        """
        AMM module

        Provides:
        - create_config / create_token_badge / ensure_token_badges
        - create_pool / create_position / add_liquidity / swap
        - get_pool_info / list_pools
        """
        if self._amm is None:
            from .modules.amm import AmmModule
            self._amm = AmmModule(self._ctx, hooks=self.hooks, kyc=self.kyc)
        return self._amm

    def close(self):
        """Close client connections and release resources"""
        self._rpc.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return f"RwaAmmClient(endpoint={self._rpc.endpoint}, pubkey={self.pubkey[:8]}...)"


# Type hints for modules (resolved at runtime)
if TYPE_CHECKING:
    from .modules.hooks import HookModule
    from .modules.compliance import ComplianceModule
    from .modules.mint_pipeline import MintPipeline
    from .modules.amm import AmmModule
