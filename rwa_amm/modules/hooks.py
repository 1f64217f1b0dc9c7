"""
Transfer Hook Module

Detects Token-2022 transfer hooks on mints and assembles the extra
accounts a hook-gated AMM instruction must forward.

Remaining accounts are produced by small resolvers that each contribute
one kind of account. A ResolveContext carries the mints and the hook
detections for one operation, so every mint is read at most once.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, TYPE_CHECKING

from solders.instruction import AccountMeta
from solders.pubkey import Pubkey

if TYPE_CHECKING:
    from ..infra.context import ProgramContext

from ..config import config as global_config
from ..errors import RwaAmmError, translate
from ..infra.rpc import decode_account_data
from ..protocols.constants import TOKEN_2022_PROGRAM_ID
from ..protocols.pda import (
    PubkeyLike,
    to_pubkey,
    derive_extra_account_metas,
    derive_token_badge,
    derive_user_kyc,
)
from ..protocols.token_2022 import parse_transfer_hook_program
from ..protocols.transfer_hook import build_initialize_extra_account_meta_list
from ..types import (
    HookInfo,
    HookStatus,
    HookDisplayInfo,
    RemainingAccounts,
    TxResult,
)

logger = logging.getLogger(__name__)


def _readonly(pubkey: Pubkey) -> AccountMeta:
    return AccountMeta(pubkey, is_signer=False, is_writable=False)


def hook_info_from_account(mint: str, account: Optional[dict]) -> HookInfo:
    """
    Build HookInfo from a base64 getAccountInfo value.

    Never raises: unreadable mint data is reported as "no hook".
    """
    if not account:
        return HookInfo(mint=mint, has_hook=False)

    owner = account.get("owner")
    if owner != TOKEN_2022_PROGRAM_ID:
        return HookInfo(mint=mint, has_hook=False, token_program=owner)

    try:
        program_id = parse_transfer_hook_program(decode_account_data(account))
    except ValueError as e:
        logger.warning(f"Could not unpack mint {mint} while checking for a transfer hook: {e}")
        return HookInfo(mint=mint, has_hook=False, token_program=owner)

    if program_id is None:
        return HookInfo(mint=mint, has_hook=False, token_program=owner)
    return HookInfo(mint=mint, has_hook=True, hook_program_id=str(program_id), token_program=owner)


def transfer_hook_display_info(
    has_hook: bool,
    kyc_level: Optional[int] = None,
    required_level: Optional[int] = None,
) -> HookDisplayInfo:
    """Badge for a token: gray Standard, or RWA in green/yellow by KYC level"""
    if not has_hook:
        return HookDisplayInfo(
            badge_text="Standard Token",
            badge_color="gray",
            tooltip="No special compliance requirements",
            requires_kyc=False,
        )

    if required_level is None:
        required_level = global_config.compliance.required_level
    qualifies = kyc_level is not None and kyc_level >= required_level

    return HookDisplayInfo(
        badge_text="RWA Token",
        badge_color="green" if qualifies else "yellow",
        tooltip=(
            "Compliance validated - trading enabled"
            if qualifies
            else f"Enhanced KYC (Level {required_level}) required for trading"
        ),
        requires_kyc=True,
    )


@dataclass
class ResolveContext:
    """
    Inputs shared by the resolvers of one operation

    Attributes:
        mints: Mints involved, in instruction order (A, B or input, output)
        owner: Wallet whose KYC record gates the transfer
        counterparty: Program-owned side of the transfer (pool authority)
        hooks: Hook detections keyed by mint address
        amm_program_id: AMM program (for token badges)
        default_hook_program_id: KYC hook program used when no mint names one
    """
    mints: List[Pubkey]
    owner: Pubkey
    counterparty: Pubkey
    hooks: Dict[str, HookInfo]
    amm_program_id: Pubkey
    default_hook_program_id: Pubkey

    def hook_for(self, mint: Pubkey) -> HookInfo:
        return self.hooks.get(str(mint)) or HookInfo(mint=str(mint), has_hook=False)

    @property
    def hooked_mints(self) -> List[Pubkey]:
        return [m for m in self.mints if self.hook_for(m).has_hook]

    @property
    def any_hooked(self) -> bool:
        return bool(self.hooked_mints)

    @property
    def hook_program_id(self) -> Pubkey:
        """Hook program of the first hooked mint"""
        for mint in self.hooked_mints:
            return Pubkey.from_string(self.hook_for(mint).hook_program_id)
        return self.default_hook_program_id


class AccountResolver(Protocol):
    """Contributes accounts for one capability of a hook-gated instruction"""

    def resolve(self, context: ResolveContext) -> List[AccountMeta]:
        ...


class TokenBadgeResolver:
    """Token badge PDA of every mint (pool creation)"""

    def resolve(self, context: ResolveContext) -> List[AccountMeta]:
        return [_readonly(derive_token_badge(context.amm_program_id, m)) for m in context.mints]


class ExtraAccountMetaResolver:
    """ExtraAccountMetaList PDA of each hooked mint, under that mint's hook program"""

    def __init__(self, only: Optional[Sequence[Pubkey]] = None):
        self._only = None if only is None else {str(m) for m in only}

    def resolve(self, context: ResolveContext) -> List[AccountMeta]:
        metas = []
        for mint in context.hooked_mints:
            if self._only is not None and str(mint) not in self._only:
                continue
            hook_program = Pubkey.from_string(context.hook_for(mint).hook_program_id)
            metas.append(_readonly(derive_extra_account_metas(hook_program, mint)))
        return metas


class KycAccountResolver:
    """UserKyc PDAs of the owner and the counterparty, when any mint is hooked"""

    def resolve(self, context: ResolveContext) -> List[AccountMeta]:
        if not context.any_hooked:
            return []
        program = context.hook_program_id
        return [
            _readonly(derive_user_kyc(program, context.owner)),
            _readonly(derive_user_kyc(program, context.counterparty)),
        ]


class HookProgramResolver:
    """The hook program itself, when any mint is hooked"""

    def resolve(self, context: ResolveContext) -> List[AccountMeta]:
        if not context.any_hooked:
            return []
        return [_readonly(context.hook_program_id)]


class CompositeResolver:
    """Concatenates the output of its resolvers in order"""

    def __init__(self, resolvers: Iterable[AccountResolver]):
        self._resolvers = list(resolvers)

    def resolve(self, context: ResolveContext) -> List[AccountMeta]:
        metas: List[AccountMeta] = []
        for resolver in self._resolvers:
            metas.extend(resolver.resolve(context))
        return metas


class HookModule:
    """
    Transfer hook module

    Provides:
    - detect_hook / detect_hooks: hook detection (batched for many mints)
    - resolve_remaining_accounts: extra accounts for swaps and liquidity
    - ensure_extra_account_meta_list: idempotent hook bootstrap for a mint
    - check_transfer_hook_status / get_transfer_hook_display_info

    Usage:
        client = RwaAmmClient(rpc_url, keypair=keypair)

        info = client.hooks.detect_hook("Mint...")
        remaining = client.hooks.resolve_remaining_accounts(
            input_mint, output_mint, owner, pool_authority,
        )
    """

    def __init__(self, ctx: "ProgramContext"):
        self._ctx = ctx
        self._rpc = ctx.rpc
        self._tx_builder = ctx.tx_builder

    def detect_hook(self, mint: PubkeyLike) -> HookInfo:
        """
        Check whether a mint carries a transfer hook

        Args:
            mint: Mint address

        Returns:
            HookInfo (has_hook False for missing, non-Token-2022 or unreadable mints)
        """
        mint_str = str(to_pubkey(mint, "mint"))
        account = self._rpc.get_account_info(mint_str)
        info = hook_info_from_account(mint_str, account)
        logger.debug(f"Hook detection {mint_str}: has_hook={info.has_hook} program={info.hook_program_id}")
        return info

    def detect_hooks(self, mints: Sequence[PubkeyLike]) -> Dict[str, HookInfo]:
        """
        Detect hooks on several mints with one getMultipleAccounts call

        Returns:
            {mint_address: HookInfo}
        """
        addresses = list(dict.fromkeys(str(to_pubkey(m, "mint")) for m in mints))
        accounts = self._rpc.get_multiple_accounts(addresses)
        result = {}
        for i, address in enumerate(addresses):
            account = accounts[i] if i < len(accounts) else None
            result[address] = hook_info_from_account(address, account)
        return result

    def build_context(
        self,
        mints: Sequence[PubkeyLike],
        owner: PubkeyLike,
        counterparty: PubkeyLike,
        hooks: Optional[Dict[str, HookInfo]] = None,
    ) -> ResolveContext:
        """ResolveContext for one operation; hooks are detected once if not supplied"""
        mint_keys = [to_pubkey(m, "mint") for m in mints]
        if hooks is None:
            hooks = self.detect_hooks(mint_keys)
        return ResolveContext(
            mints=mint_keys,
            owner=to_pubkey(owner, "owner"),
            counterparty=to_pubkey(counterparty, "counterparty"),
            hooks=hooks,
            amm_program_id=self._ctx.amm_program_id,
            default_hook_program_id=self._ctx.hook_program_id,
        )

    def resolve_remaining_accounts(
        self,
        input_mint: PubkeyLike,
        output_mint: PubkeyLike,
        owner: PubkeyLike,
        counterparty_authority: PubkeyLike,
        context: Optional[ResolveContext] = None,
    ) -> RemainingAccounts:
        """
        Extra accounts the hooks of a two-sided transfer need

        Nothing is initialized here; missing hook accounts surface as a
        program error at submission.

        Args:
            input_mint: Mint leaving the owner's wallet
            output_mint: Mint arriving in the owner's wallet
            owner: Wallet performing the operation
            counterparty_authority: Pool authority on the other side
            context: Pre-built context (reuses its hook detections)

        Returns:
            RemainingAccounts (flatten() gives input + output + common)
        """
        if context is None:
            context = self.build_context([input_mint, output_mint], owner, counterparty_authority)

        input_key = to_pubkey(input_mint, "input_mint")
        output_key = to_pubkey(output_mint, "output_mint")

        common = CompositeResolver([KycAccountResolver(), HookProgramResolver()])
        return RemainingAccounts(
            input_accounts=ExtraAccountMetaResolver(only=[input_key]).resolve(context),
            output_accounts=ExtraAccountMetaResolver(only=[output_key]).resolve(context),
            common_accounts=common.resolve(context),
        )

    def extra_account_meta_list_exists(self, mint: PubkeyLike, hook_program_id: Optional[PubkeyLike] = None) -> bool:
        program = to_pubkey(hook_program_id, "hook_program_id") if hook_program_id else self._ctx.hook_program_id
        address = derive_extra_account_metas(program, mint)
        return self._rpc.get_account_info(str(address)) is not None

    def ensure_extra_account_meta_list(
        self,
        mint: PubkeyLike,
        hook_program_id: Optional[PubkeyLike] = None,
    ) -> TxResult:
        """
        Create the mint's ExtraAccountMetaList if it does not exist

        A failed submit is re-checked on chain: if the list exists by then
        (another client initialized it), the call reports SKIPPED.

        Returns:
            TxResult (SKIPPED when the list already existed)

        Raises:
            ClassifiedError: Submission failed and the list still does not exist
        """
        mint_key = to_pubkey(mint, "mint")
        program = to_pubkey(hook_program_id, "hook_program_id") if hook_program_id else self._ctx.hook_program_id

        if self.extra_account_meta_list_exists(mint_key, program):
            logger.debug(f"ExtraAccountMetaList already exists for {mint_key}")
            return TxResult.skipped("ExtraAccountMetaList already exists")

        ix = build_initialize_extra_account_meta_list(program, self._ctx.payer, mint_key)
        label = "initialize_extra_account_meta_list"
        try:
            result = self._tx_builder.execute([ix], label=label)
        except RwaAmmError as e:
            result = e

        if isinstance(result, TxResult) and result.is_success:
            logger.info(f"ExtraAccountMetaList initialized for {mint_key}: {result.signature}")
            return result

        if self.extra_account_meta_list_exists(mint_key, program):
            logger.info(f"ExtraAccountMetaList for {mint_key} was created concurrently")
            return TxResult.skipped("ExtraAccountMetaList created concurrently", label=label)

        raise translate(result, label)

    def check_transfer_hook_status(self, mint: PubkeyLike) -> HookStatus:
        """Whether trading the mint needs KYC, and at which level"""
        info = self.detect_hook(mint)
        return HookStatus(
            mint=info.mint,
            has_hook=info.has_hook,
            hook_program_id=info.hook_program_id,
            requires_kyc=info.has_hook,
            required_kyc_level=global_config.compliance.required_level if info.has_hook else 0,
        )

    def get_transfer_hook_display_info(
        self,
        mint: PubkeyLike,
        kyc_level: Optional[int] = None,
    ) -> HookDisplayInfo:
        """
        Badge data for a mint

        Args:
            mint: Mint address
            kyc_level: Viewer's KYC level (None = unknown / no record)
        """
        info = self.detect_hook(mint)
        return transfer_hook_display_info(info.has_hook, kyc_level)
