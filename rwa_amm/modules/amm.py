"""
AMM Module

Builds and submits the constant-product AMM instructions: configs, token
badges, pools, positions, liquidity and swaps.

Hook-gated mints need extra accounts forwarded to the AMM (badges,
ExtraAccountMetaLists, KYC records, the hook program). They are resolved
from one batched read of the mints, which also yields each mint's token
program.
"""

import logging
import random
from typing import Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING

import base58
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey

if TYPE_CHECKING:
    from ..infra.context import ProgramContext
    from .compliance import ComplianceModule
    from .hooks import HookModule

from ..errors import PoolUnavailable, RwaAmmError, translate
from ..infra.rpc import decode_account_data
from ..protocols.constants import MAX_COMPUTE_UNITS
from ..protocols.pda import (
    PubkeyLike,
    to_pubkey,
    derive_config,
    derive_pool,
    derive_pool_authority,
    derive_position,
    derive_position_nft_account,
    derive_token_badge,
    derive_token_vault,
    get_associated_token_address,
)
from ..protocols.token_2022 import build_create_ata_idempotent
from ..protocols.cp_amm import (
    ACCOUNT_DISCRIMINATORS,
    build_create_config,
    build_create_token_badge,
    build_initialize_pool,
    build_create_position,
    build_add_liquidity,
    build_swap,
    parse_pool_state,
    parse_position,
)
from ..protocols.cp_amm.constants import (
    CONFIG_ID_RANGE,
    CREATE_POOL_COMPUTE_UNITS,
    CREATE_POSITION_COMPUTE_UNITS,
    ADD_LIQUIDITY_COMPUTE_UNITS,
    SWAP_BASE_COMPUTE_UNITS,
    HOOK_SIDE_COMPUTE_UNITS,
    HOOK_BOTH_SIDES_COMPUTE_UNITS,
)
from ..types import (
    ConfigResult,
    CreateConfigParams,
    CreatePoolParams,
    HookInfo,
    PoolResult,
    PoolState,
    PositionResult,
    TxResult,
)
from .hooks import (
    CompositeResolver,
    ExtraAccountMetaResolver,
    HookProgramResolver,
    KycAccountResolver,
    TokenBadgeResolver,
    hook_info_from_account,
)

logger = logging.getLogger(__name__)


def calculate_hook_compute_units(has_input_hook: bool, has_output_hook: bool) -> int:
    """
    Compute budget for a swap

    Each hooked side adds a fixed amount; both sides hooked adds a further
    surcharge. Capped at the runtime maximum.
    """
    units = SWAP_BASE_COMPUTE_UNITS
    if has_input_hook:
        units += HOOK_SIDE_COMPUTE_UNITS
    if has_output_hook:
        units += HOOK_SIDE_COMPUTE_UNITS
    if has_input_hook and has_output_hook:
        units += HOOK_BOTH_SIDES_COMPUTE_UNITS
    return min(units, MAX_COMPUTE_UNITS)


class AmmModule:
    """
    AMM module

    Provides:
    - create_config / create_token_badge / ensure_token_badges: admin setup
    - create_pool / create_position / add_liquidity: liquidity provision
    - swap: hook-aware swap with a sized compute budget
    - get_pool_info / list_pools: pool reads

    Usage:
        client = RwaAmmClient(rpc_url, keypair=keypair)

        config = client.amm.create_config(CreateConfigParams())
        pool = client.amm.create_pool(CreatePoolParams(
            config=config.config_address,
            mint_a=rwa_mint,
            mint_b=usdc_mint,
            liquidity=MIN_LP_AMOUNT,
            sqrt_price=2**64,
        ))
        client.amm.swap(pool.pool_address, usdc_mint, rwa_mint, 1_000_000, 0)
    """

    def __init__(
        self,
        ctx: "ProgramContext",
        hooks: Optional["HookModule"] = None,
        kyc: Optional["ComplianceModule"] = None,
    ):
        self._ctx = ctx
        self._rpc = ctx.rpc
        self._tx_builder = ctx.tx_builder
        if hooks is None:
            from .hooks import HookModule
            hooks = HookModule(ctx)
        if kyc is None:
            from .compliance import ComplianceModule
            kyc = ComplianceModule(ctx, hooks=hooks)
        self._hooks = hooks
        self._kyc = kyc

    @property
    def program_id(self) -> Pubkey:
        return self._ctx.amm_program_id

    @property
    def pool_authority(self) -> Pubkey:
        return derive_pool_authority(self.program_id)

    def _execute(
        self,
        instructions: List[Instruction],
        label: str,
        compute_units: Optional[int] = None,
        additional_signers: Optional[List[Keypair]] = None,
    ) -> TxResult:
        """Submit once; any failure raises ClassifiedError"""
        try:
            result = self._tx_builder.execute(
                instructions,
                compute_units=compute_units,
                additional_signers=additional_signers,
                label=label,
            )
        except RwaAmmError as e:
            raise translate(e, label)
        if not result.is_success:
            raise translate(result, label)
        return result

    # Reads

    def _read_mints(self, mints: Sequence[Pubkey]) -> Tuple[List[Pubkey], Dict[str, HookInfo]]:
        """
        Token program and hook detection for each mint from one batched read

        Raises:
            PoolUnavailable: A mint account does not exist
        """
        accounts = self._rpc.get_multiple_accounts([str(m) for m in mints])
        programs = []
        hooks = {}
        for i, mint in enumerate(mints):
            account = accounts[i] if i < len(accounts) else None
            if account is None:
                raise PoolUnavailable(f"Token mint not found: {mint}")
            programs.append(Pubkey.from_string(account["owner"]))
            hooks[str(mint)] = hook_info_from_account(str(mint), account)
        return programs, hooks

    def get_pool_info(self, pool_address: PubkeyLike) -> Optional[PoolState]:
        """Decoded pool, or None when the account is missing or not a pool"""
        address = str(to_pubkey(pool_address, "pool"))
        data = decode_account_data(self._rpc.get_account_info(address))
        if data is None:
            return None
        try:
            return parse_pool_state(address, data)
        except ValueError as e:
            logger.warning(f"Pool {address} could not be decoded: {e}")
            return None

    def _fetch_pool(self, pool_address: PubkeyLike) -> PoolState:
        address = str(to_pubkey(pool_address, "pool"))
        data = decode_account_data(self._rpc.get_account_info(address))
        if data is None:
            raise PoolUnavailable.not_found(address)
        try:
            return parse_pool_state(address, data)
        except ValueError as e:
            raise PoolUnavailable.invalid_state(address, str(e))

    def list_pools(self) -> List[PoolState]:
        """
        All pools of the AMM program, annotated with hook flags

        Hooks of every distinct mint are detected in one batched read.
        """
        discriminator = base58.b58encode(ACCOUNT_DISCRIMINATORS["pool"]).decode("ascii")
        entries = self._rpc.get_program_accounts(
            str(self.program_id),
            filters=[{"memcmp": {"offset": 0, "bytes": discriminator}}],
        )

        pools = []
        for entry in entries:
            address = entry.get("pubkey")
            try:
                pools.append(parse_pool_state(address, decode_account_data(entry.get("account")) or b""))
            except ValueError as e:
                logger.warning(f"Skipping undecodable pool {address}: {e}")

        if not pools:
            return pools

        mints = [m for p in pools for m in (p.token_a_mint, p.token_b_mint)]
        hooks = self._hooks.detect_hooks(mints)
        for pool in pools:
            pool.token_a_has_hook = hooks[pool.token_a_mint].has_hook
            pool.token_b_has_hook = hooks[pool.token_b_mint].has_hook

        logger.info(f"Found {len(pools)} pools")
        return pools

    # Admin

    def create_config(
        self,
        params: Optional[CreateConfigParams] = None,
        config_id: Optional[int] = None,
    ) -> ConfigResult:
        """
        Create a static AMM config

        Args:
            params: Fee and price-range settings (defaults if None)
            config_id: Config index (random in [0, 1000) if None)
        """
        params = params or CreateConfigParams()
        if config_id is None:
            config_id = random.randrange(CONFIG_ID_RANGE)
        config = derive_config(self.program_id, config_id)

        ix = build_create_config(self.program_id, config, self._ctx.payer, config_id, params)
        result = self._execute([ix], "create_config")
        logger.info(f"Config {config} created (id {config_id}): {result.signature}")
        return ConfigResult(config_address=str(config), config_id=config_id, tx_result=result)

    def token_badge_exists(self, mint: PubkeyLike) -> bool:
        return self._rpc.get_account_info(str(derive_token_badge(self.program_id, mint))) is not None

    def create_token_badge(self, mint: PubkeyLike) -> TxResult:
        """
        Create the token badge that admits a Token-2022 mint to pools

        A failed submit is re-checked on chain; a badge that exists by then
        counts as SKIPPED.
        """
        mint_key = to_pubkey(mint, "mint")
        badge = derive_token_badge(self.program_id, mint_key)
        ix = build_create_token_badge(self.program_id, badge, mint_key, self._ctx.payer)
        label = "create_token_badge"
        try:
            result = self._tx_builder.execute([ix], label=label)
        except RwaAmmError as e:
            result = e

        if isinstance(result, TxResult) and result.is_success:
            logger.info(f"Token badge created for {mint_key}: {result.signature}")
            return result

        if self.token_badge_exists(mint_key):
            logger.info(f"Token badge for {mint_key} was created concurrently")
            return TxResult.skipped("Token badge created concurrently", label=label)

        raise translate(result, label)

    def ensure_token_badges(self, mints: Sequence[PubkeyLike]) -> List[TxResult]:
        """
        Create the missing badges of several mints

        Returns:
            One TxResult per distinct mint (SKIPPED where the badge existed)
        """
        unique = list(dict.fromkeys(to_pubkey(m, "mint") for m in mints))
        if not unique:
            return []

        accounts = self._rpc.get_multiple_accounts(
            [str(derive_token_badge(self.program_id, m)) for m in unique]
        )
        results = []
        for i, mint in enumerate(unique):
            if i < len(accounts) and accounts[i] is not None:
                results.append(TxResult.skipped("Token badge already exists"))
                continue
            results.append(self.create_token_badge(mint))
        return results

    # Liquidity

    def _ensure_token_accounts(self, owner: Pubkey, mints: Sequence[Pubkey], programs: Sequence[Pubkey]) -> TxResult:
        """Create the owner's missing ATAs in a single transaction"""
        atas = [get_associated_token_address(owner, m, p) for m, p in zip(mints, programs)]
        accounts = self._rpc.get_multiple_accounts([str(a) for a in atas])

        instructions = []
        for i, (mint, program) in enumerate(zip(mints, programs)):
            if i < len(accounts) and accounts[i] is not None:
                continue
            instructions.append(build_create_ata_idempotent(self._ctx.payer, owner, mint, program))

        if not instructions:
            return TxResult.skipped("Token accounts already exist")
        result = self._execute(instructions, "create_token_accounts")
        logger.info(f"Created {len(instructions)} token accounts for {owner}: {result.signature}")
        return result

    def create_pool(self, params: CreatePoolParams) -> PoolResult:
        """
        Create a pool and its initial position

        For hooked mints the ExtraAccountMetaLists and the KYC records of
        the payer and the pool authority are created before the pool
        instruction is built.

        Raises:
            PoolUnavailable: A mint does not exist
            ClassifiedError: A submission failed
        """
        payer = self._ctx.payer
        program_id = self.program_id
        mint_a = to_pubkey(params.mint_a, "mint_a")
        mint_b = to_pubkey(params.mint_b, "mint_b")
        config = to_pubkey(params.config, "config")

        pool_authority = self.pool_authority
        pool = derive_pool(program_id, config, mint_a, mint_b)
        token_a_vault = derive_token_vault(program_id, mint_a, pool)
        token_b_vault = derive_token_vault(program_id, mint_b, pool)

        nft_kp = Keypair()
        nft_mint = nft_kp.pubkey()
        position = derive_position(program_id, nft_mint)
        position_nft_account = derive_position_nft_account(program_id, nft_mint)

        (token_a_program, token_b_program), hooks = self._read_mints([mint_a, mint_b])
        payer_token_a = get_associated_token_address(payer, mint_a, token_a_program)
        payer_token_b = get_associated_token_address(payer, mint_b, token_b_program)

        self._ensure_token_accounts(payer, [mint_a, mint_b], [token_a_program, token_b_program])
        self.ensure_token_badges([mint_a, mint_b])

        context = self._hooks.build_context([mint_a, mint_b], payer, pool_authority, hooks=hooks)
        if context.any_hooked:
            hook_programs = []
            for mint in context.hooked_mints:
                hook_program = context.hook_for(mint).hook_program_id
                self._hooks.ensure_extra_account_meta_list(mint, hook_program)
                if hook_program not in hook_programs:
                    hook_programs.append(hook_program)
            # KYC records live under each mint's own hook program
            for hook_program in hook_programs:
                self._kyc.ensure_kyc([payer, pool_authority], hook_program=hook_program)

        remaining = CompositeResolver([
            TokenBadgeResolver(),
            ExtraAccountMetaResolver(),
            KycAccountResolver(),
            HookProgramResolver(),
        ]).resolve(context)

        ix = build_initialize_pool(
            program_id,
            creator=payer,
            position_nft_mint=nft_mint,
            position_nft_account=position_nft_account,
            payer=payer,
            config=config,
            pool_authority=pool_authority,
            pool=pool,
            position=position,
            token_a_mint=mint_a,
            token_b_mint=mint_b,
            token_a_vault=token_a_vault,
            token_b_vault=token_b_vault,
            payer_token_a=payer_token_a,
            payer_token_b=payer_token_b,
            token_a_program=token_a_program,
            token_b_program=token_b_program,
            liquidity=params.liquidity,
            sqrt_price=params.sqrt_price,
            activation_point=params.activation_point,
            remaining_accounts=remaining,
        )
        result = self._execute(
            [ix],
            "create_pool",
            compute_units=CREATE_POOL_COMPUTE_UNITS,
            additional_signers=[nft_kp],
        )
        logger.info(f"Pool {pool} created with position {position}: {result.signature}")
        return PoolResult(
            pool_address=str(pool),
            position_address=str(position),
            position_nft_mint=str(nft_mint),
            tx_result=result,
        )

    def create_position(self, pool_address: PubkeyLike, owner: Optional[PubkeyLike] = None) -> PositionResult:
        """
        Open an empty position in a pool

        Raises:
            PoolUnavailable: Pool does not exist
        """
        pool = to_pubkey(pool_address, "pool")
        if self._rpc.get_account_info(str(pool)) is None:
            raise PoolUnavailable.not_found(str(pool))

        owner_key = to_pubkey(owner, "owner") if owner else self._ctx.payer
        nft_kp = Keypair()
        nft_mint = nft_kp.pubkey()
        position = derive_position(self.program_id, nft_mint)

        ix = build_create_position(
            self.program_id,
            owner=owner_key,
            position_nft_mint=nft_mint,
            position_nft_account=derive_position_nft_account(self.program_id, nft_mint),
            pool=pool,
            position=position,
            pool_authority=self.pool_authority,
            payer=self._ctx.payer,
        )
        result = self._execute(
            [ix],
            "create_position",
            compute_units=CREATE_POSITION_COMPUTE_UNITS,
            additional_signers=[nft_kp],
        )
        logger.info(f"Position {position} opened in {pool}: {result.signature}")
        return PositionResult(position_address=str(position), position_nft_mint=str(nft_mint), tx_result=result)

    def add_liquidity(
        self,
        pool_address: PubkeyLike,
        position: PubkeyLike,
        liquidity_delta: int,
        token_a_amount_threshold: int,
        token_b_amount_threshold: int,
    ) -> TxResult:
        """
        Add liquidity to a position

        Args:
            pool_address: Pool address
            position: Position address (owned by the wallet)
            liquidity_delta: Liquidity to add (u128)
            token_a_amount_threshold: Maximum token A to deposit
            token_b_amount_threshold: Maximum token B to deposit

        Raises:
            PoolUnavailable: Pool or position missing, or position of another pool
        """
        pool = self._fetch_pool(pool_address)
        position_key = to_pubkey(position, "position")
        data = decode_account_data(self._rpc.get_account_info(str(position_key)))
        if data is None:
            raise PoolUnavailable(f"Position not found: {position_key}", pool_address=pool.address)
        try:
            position_state = parse_position(str(position_key), data)
        except ValueError as e:
            raise PoolUnavailable.invalid_state(pool.address, f"position {position_key}: {e}")
        if position_state.pool != pool.address:
            raise PoolUnavailable.invalid_state(pool.address, f"position {position_key} belongs to {position_state.pool}")

        owner = self._ctx.payer
        mint_a = Pubkey.from_string(pool.token_a_mint)
        mint_b = Pubkey.from_string(pool.token_b_mint)
        (token_a_program, token_b_program), hooks = self._read_mints([mint_a, mint_b])

        pool_authority = self.pool_authority
        context = self._hooks.build_context([mint_a, mint_b], owner, pool_authority, hooks=hooks)
        remaining = self._hooks.resolve_remaining_accounts(mint_a, mint_b, owner, pool_authority, context=context)

        ix = build_add_liquidity(
            self.program_id,
            pool=Pubkey.from_string(pool.address),
            position=position_key,
            token_a_account=get_associated_token_address(owner, mint_a, token_a_program),
            token_b_account=get_associated_token_address(owner, mint_b, token_b_program),
            token_a_vault=Pubkey.from_string(pool.token_a_vault),
            token_b_vault=Pubkey.from_string(pool.token_b_vault),
            token_a_mint=mint_a,
            token_b_mint=mint_b,
            position_nft_account=derive_position_nft_account(self.program_id, position_state.nft_mint),
            owner=owner,
            token_a_program=token_a_program,
            token_b_program=token_b_program,
            liquidity_delta=liquidity_delta,
            token_a_amount_threshold=token_a_amount_threshold,
            token_b_amount_threshold=token_b_amount_threshold,
            remaining_accounts=remaining.flatten(),
        )
        result = self._execute([ix], "add_liquidity", compute_units=ADD_LIQUIDITY_COMPUTE_UNITS)
        logger.info(f"Liquidity added to {position_key}: {result.signature}")
        return result

    def swap(
        self,
        pool_address: PubkeyLike,
        input_mint: PubkeyLike,
        output_mint: PubkeyLike,
        input_amount: int,
        min_output_amount: int,
    ) -> TxResult:
        """
        Swap through a pool, forwarding the accounts its hooks need

        Args:
            pool_address: Pool address
            input_mint: Mint sold
            output_mint: Mint bought
            input_amount: Amount in (raw units)
            min_output_amount: Minimum amount out (raw units)

        Raises:
            PoolUnavailable: Pool missing, or a mint is not one of its tokens
            ClassifiedError: Submission failed
        """
        pool = self._fetch_pool(pool_address)
        input_key = to_pubkey(input_mint, "input_mint")
        output_key = to_pubkey(output_mint, "output_mint")
        if input_key == output_key or not (pool.has_mint(str(input_key)) and pool.has_mint(str(output_key))):
            raise PoolUnavailable(
                f"Pool {pool.address} does not trade {input_key} -> {output_key}",
                pool_address=pool.address,
            )

        payer = self._ctx.payer
        mint_a = Pubkey.from_string(pool.token_a_mint)
        mint_b = Pubkey.from_string(pool.token_b_mint)
        (token_a_program, token_b_program), hooks = self._read_mints([mint_a, mint_b])
        programs = {str(mint_a): token_a_program, str(mint_b): token_b_program}

        pool_authority = self.pool_authority
        context = self._hooks.build_context([input_key, output_key], payer, pool_authority, hooks=hooks)
        remaining = self._hooks.resolve_remaining_accounts(input_key, output_key, payer, pool_authority, context=context)
        compute_units = calculate_hook_compute_units(
            context.hook_for(input_key).has_hook,
            context.hook_for(output_key).has_hook,
        )

        ix = build_swap(
            self.program_id,
            pool_authority=pool_authority,
            pool=Pubkey.from_string(pool.address),
            input_token_account=get_associated_token_address(payer, input_key, programs[str(input_key)]),
            output_token_account=get_associated_token_address(payer, output_key, programs[str(output_key)]),
            token_a_vault=Pubkey.from_string(pool.token_a_vault),
            token_b_vault=Pubkey.from_string(pool.token_b_vault),
            token_a_mint=mint_a,
            token_b_mint=mint_b,
            payer=payer,
            token_a_program=token_a_program,
            token_b_program=token_b_program,
            amount_in=input_amount,
            minimum_amount_out=min_output_amount,
            remaining_accounts=remaining.flatten(),
        )
        logger.debug(f"Swap {input_key} -> {output_key}: {len(remaining.flatten())} hook accounts, {compute_units} CU")
        result = self._execute([ix], "swap", compute_units=compute_units)
        logger.info(f"Swapped {input_amount} {input_key} -> {output_key}: {result.signature}")
        return result
