"""
Mint Provisioning Pipeline

Creates a Token-2022 mint with RWA extensions across several transactions.
Token-2022 requires the pointer and hook extensions to be initialized
before InitializeMint, and the metadata fields do not fit in one
transaction, so provisioning cannot be atomic.

The pipeline is a saga: named steps run in order, each confirmed before the
next is built. When a step fails, the compensations of the steps reached so
far run in reverse order and MintPipelineError reports what is left on chain.

Steps:
    CREATE_ACCOUNT          system account + pre-init extensions
    CONFIGURE_EXTENSIONS    interest bearing / transfer fee
    INITIALIZE_MINT         InitializeMint + token metadata Initialize
    INIT_HOOK_ACCOUNTS      hook ExtraAccountMetaList (non-fatal)
    UPDATE_METADATA_FIELDS  RWA metadata fields, batched
    MINT_SUPPLY             payer ATA + MintTo
"""

import logging
import struct
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union, TYPE_CHECKING

from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import CreateAccountParams, create_account

if TYPE_CHECKING:
    from ..infra.context import ProgramContext
    from .hooks import HookModule

from ..config import config as global_config
from ..errors import (
    ConfigurationError,
    MintPipelineError,
    RwaAmmError,
    translate,
)
from ..infra.rpc import decode_account_data
from ..protocols.constants import TOKEN_2022_PROGRAM_ID
from ..protocols.pda import PubkeyLike, to_pubkey, get_associated_token_address
from ..protocols.token_2022 import (
    ExtensionType,
    U64_MAX,
    I16_MIN,
    I16_MAX,
    MAX_FEE_BASIS_POINTS,
    get_mint_len,
    get_metadata_len,
    parse_mint_decimals,
    build_initialize_metadata_pointer,
    build_initialize_group_member_pointer,
    build_initialize_transfer_hook,
    build_initialize_interest_bearing,
    build_initialize_transfer_fee_config,
    build_initialize_mint,
    build_initialize_token_metadata,
    build_update_metadata_field,
    build_create_ata_idempotent,
    build_mint_to,
    build_close_account,
)
from ..types import (
    CreateRwaMintParams,
    MintResult,
    StepRecord,
    TxResult,
    TxStatus,
)

logger = logging.getLogger(__name__)

_TOKEN_2022 = Pubkey.from_string(TOKEN_2022_PROGRAM_ID)


class MintStep(Enum):
    """Pipeline steps in execution order"""
    CREATE_ACCOUNT = "create_account"
    CONFIGURE_EXTENSIONS = "configure_extensions"
    INITIALIZE_MINT = "initialize_mint"
    INIT_HOOK_ACCOUNTS = "init_hook_accounts"
    UPDATE_METADATA_FIELDS = "update_metadata_fields"
    MINT_SUPPLY = "mint_supply"


# Step failures that are wrapped in MintPipelineError and compensated
STEP_ERRORS = (RwaAmmError, ValueError, OverflowError, struct.error)

# Outcome strings recorded in MintPipelineError.compensations
NOT_UNDOABLE = "not undoable"
NOTHING_TO_UNDO = "nothing to undo"


def plan_extensions(params: CreateRwaMintParams) -> List[ExtensionType]:
    """Fixed-length extensions the mint account is sized for"""
    extensions = []
    if params.metadata is not None:
        extensions.append(ExtensionType.METADATA_POINTER)
        extensions.append(ExtensionType.GROUP_MEMBER_POINTER)
    if params.hook_enabled:
        extensions.append(ExtensionType.TRANSFER_HOOK)
    if params.transfer_fee is not None and params.transfer_fee.enabled:
        extensions.append(ExtensionType.TRANSFER_FEE_CONFIG)
    if params.interest_bearing is not None and params.interest_bearing.enabled:
        extensions.append(ExtensionType.INTEREST_BEARING_CONFIG)
    return extensions


def batch_fields(fields: Sequence[Tuple[str, str]], batch_size: int) -> List[List[Tuple[str, str]]]:
    """Split metadata fields into consecutive batches of at most batch_size"""
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    return [list(fields[i:i + batch_size]) for i in range(0, len(fields), batch_size)]


def to_raw_amount(amount: Union[int, float, str, Decimal], decimals: int) -> int:
    """Whole-token amount to raw units"""
    return int(Decimal(str(amount)) * (Decimal(10) ** decimals))


@dataclass
class _SagaState:
    """Resolved inputs and what one pipeline run has done so far"""
    mint: Pubkey
    decimals: int
    mint_authority: Pubkey
    freeze_authority: Pubkey
    hook_program: Optional[Pubkey] = None
    hook_authority: Optional[Pubkey] = None
    steps: List[StepRecord] = field(default_factory=list)
    completed: List[MintStep] = field(default_factory=list)
    created_ata: Optional[Pubkey] = None
    init_signature: Optional[str] = None

    def record(self, step: MintStep, status: TxStatus, signature: Optional[str] = None, note: Optional[str] = None):
        self.steps.append(StepRecord(name=step.value, status=status, signature=signature, note=note))


class MintPipeline:
    """
    RWA mint provisioning

    Usage:
        client = RwaAmmClient(rpc_url, keypair=keypair)

        params = CreateRwaMintParams(
            supply=1_000_000,
            metadata=TokenMetadataParams(name="Gold", symbol="GLD", rwa_config=RwaConfig(...)),
            transfer_hook=TransferHookParams(),
        )
        result = client.mints.create_rwa_mint(params)
    """

    def __init__(self, ctx: "ProgramContext", hooks: Optional["HookModule"] = None):
        self._ctx = ctx
        self._rpc = ctx.rpc
        self._tx_builder = ctx.tx_builder
        if hooks is None:
            from .hooks import HookModule
            hooks = HookModule(ctx)
        self._hooks = hooks

        # Undo actions per step; None means the step leaves permanent state
        self._compensations: Dict[MintStep, Optional[Callable[[_SagaState], str]]] = {
            MintStep.CREATE_ACCOUNT: None,
            MintStep.CONFIGURE_EXTENSIONS: None,
            MintStep.INITIALIZE_MINT: None,
            MintStep.INIT_HOOK_ACCOUNTS: None,
            MintStep.UPDATE_METADATA_FIELDS: None,
            MintStep.MINT_SUPPLY: self._close_created_ata,
        }

    @property
    def compensations(self) -> Dict[MintStep, Optional[Callable[[_SagaState], str]]]:
        return dict(self._compensations)

    def _submit(
        self,
        step: MintStep,
        instructions: List[Instruction],
        additional_signers: Optional[List[Keypair]] = None,
    ) -> TxResult:
        """Execute one transaction of a step; failures raise ClassifiedError"""
        label = f"create_rwa_mint:{step.value}"
        try:
            result = self._tx_builder.execute(instructions, additional_signers=additional_signers, label=label)
        except RwaAmmError as e:
            raise translate(e, label)
        if not result.is_success:
            raise translate(result, label)
        return result

    def create_rwa_mint(
        self,
        params: CreateRwaMintParams,
        mint_keypair: Optional[Keypair] = None,
    ) -> MintResult:
        """
        Provision a Token-2022 RWA mint

        Args:
            params: Mint parameters
            mint_keypair: Keypair for the new mint (fresh one if None)

        Returns:
            MintResult; signature is the InitializeMint transaction

        Raises:
            MintPipelineError: A step failed (mint may exist partially)
        """
        mint_kp = mint_keypair or Keypair()
        state = self._resolve(params, mint_kp.pubkey())
        logger.info(f"Provisioning RWA mint {state.mint}")

        steps: List[Tuple[MintStep, Callable[[], None]]] = [
            (MintStep.CREATE_ACCOUNT, lambda: self._create_account(params, mint_kp, state)),
            (MintStep.CONFIGURE_EXTENSIONS, lambda: self._configure_extensions(params, state)),
            (MintStep.INITIALIZE_MINT, lambda: self._initialize_mint(params, state)),
            (MintStep.INIT_HOOK_ACCOUNTS, lambda: self._init_hook_accounts(params, state)),
            (MintStep.UPDATE_METADATA_FIELDS, lambda: self._update_metadata_fields(params, state)),
            (MintStep.MINT_SUPPLY, lambda: self._mint_supply(params, state)),
        ]

        for step, run in steps:
            try:
                run()
            except STEP_ERRORS as e:
                cause = translate(e, "create_rwa_mint")
                logger.error(f"Mint pipeline failed at {step.value} for {state.mint}: {cause.title}")
                state.record(step, TxStatus.FAILED, signature=cause.signature, note=cause.raw_message)
                outcomes = self._compensate(state, step)
                raise MintPipelineError(
                    cause,
                    mint_address=str(state.mint),
                    failed_step=step.value,
                    completed_steps=[s.value for s in state.completed],
                    compensations=outcomes,
                )
            state.completed.append(step)

        logger.info(f"RWA mint {state.mint} provisioned ({len(state.completed)} steps)")
        return MintResult(
            mint_address=str(state.mint),
            signature=state.init_signature,
            steps=state.steps,
            token_account=str(state.created_ata or get_associated_token_address(
                self._ctx.payer, state.mint, _TOKEN_2022
            )) if params.supply > 0 else None,
        )

    def _resolve(self, params: CreateRwaMintParams, mint: Pubkey) -> _SagaState:
        """
        Apply defaults and validate every input before anything is submitted

        Raises:
            ConfigurationError: An address is malformed or a number does not
                fit the field it is packed into
        """
        payer = self._ctx.payer
        decimals = params.decimals if params.decimals is not None else global_config.mint.default_decimals
        if not 0 <= decimals <= 255:
            raise ConfigurationError.invalid("decimals", f"must fit in a u8, got {decimals}")
        state = _SagaState(
            mint=mint,
            decimals=decimals,
            mint_authority=to_pubkey(params.mint_authority, "mint_authority") if params.mint_authority else payer,
            freeze_authority=to_pubkey(params.freeze_authority, "freeze_authority") if params.freeze_authority else payer,
        )
        if params.hook_enabled:
            hook = params.transfer_hook
            state.hook_program = to_pubkey(hook.program_id, "hook_program_id") if hook.program_id else self._ctx.hook_program_id
            state.hook_authority = to_pubkey(hook.authority, "hook_authority") if hook.authority else payer

        # Metadata Initialize and MintTo are signed by the mint authority
        if state.mint_authority != payer and (params.supply > 0 or params.metadata is not None):
            raise ConfigurationError.invalid(
                "mint_authority",
                "must be the payer when minting an initial supply or writing metadata",
            )

        fee = params.transfer_fee
        if fee is not None and fee.enabled:
            if not 0 <= fee.fee_basis_points <= MAX_FEE_BASIS_POINTS:
                raise ConfigurationError.invalid(
                    "fee_basis_points", f"must be between 0 and {MAX_FEE_BASIS_POINTS}, got {fee.fee_basis_points}"
                )
            if not 0 <= fee.maximum_fee <= U64_MAX:
                raise ConfigurationError.invalid("maximum_fee", f"must fit in a u64, got {fee.maximum_fee}")
            if fee.fee_authority:
                to_pubkey(fee.fee_authority, "fee_authority")

        interest = params.interest_bearing
        if interest is not None and interest.enabled:
            if not I16_MIN <= interest.rate_bps <= I16_MAX:
                raise ConfigurationError.invalid("rate_bps", f"must fit in an i16, got {interest.rate_bps}")
            if interest.rate_authority:
                to_pubkey(interest.rate_authority, "rate_authority")

        if params.supply < 0:
            raise ConfigurationError.invalid("supply", f"must not be negative, got {params.supply}")
        if to_raw_amount(params.supply, decimals) > U64_MAX:
            raise ConfigurationError.invalid(
                "supply", f"{params.supply} tokens at {decimals} decimals exceed the u64 raw amount limit"
            )
        return state

    def _compensate(self, state: _SagaState, failed_step: MintStep) -> Dict[str, str]:
        """
        Run compensations for the failed step and the completed ones, newest first

        A failing compensation is logged and recorded; it never replaces the
        original error.
        """
        outcomes: Dict[str, str] = {}
        for step in reversed(state.completed + [failed_step]):
            action = self._compensations.get(step)
            if action is None:
                outcomes[step.value] = NOT_UNDOABLE
                continue
            try:
                outcomes[step.value] = action(state)
            except RwaAmmError as e:
                logger.warning(f"Cleanup for {step.value} failed: {e}")
                outcomes[step.value] = f"cleanup failed: {e.message}"
        return outcomes

    # Steps

    def _create_account(self, params: CreateRwaMintParams, mint_kp: Keypair, state: _SagaState):
        payer = self._ctx.payer
        mint = state.mint

        mint_len = get_mint_len(plan_extensions(params))
        metadata_len = 0
        if params.metadata is not None:
            metadata_len = get_metadata_len(
                payer,
                mint,
                params.metadata.name,
                params.metadata.symbol,
                params.metadata.uri,
                params.metadata.additional_fields,
            )
        lamports = self._rpc.get_minimum_balance_for_rent_exemption(mint_len + metadata_len)
        logger.debug(f"Mint {mint}: space={mint_len} metadata={metadata_len} lamports={lamports}")

        instructions = [
            create_account(CreateAccountParams(
                from_pubkey=payer,
                to_pubkey=mint,
                lamports=lamports,
                space=mint_len,
                owner=_TOKEN_2022,
            )),
        ]
        if params.metadata is not None:
            instructions.append(build_initialize_metadata_pointer(mint, payer, mint))
            instructions.append(build_initialize_group_member_pointer(mint, payer, mint))
        if params.hook_enabled:
            instructions.append(build_initialize_transfer_hook(mint, state.hook_authority, state.hook_program))

        result = self._submit(MintStep.CREATE_ACCOUNT, instructions, additional_signers=[mint_kp])
        state.record(MintStep.CREATE_ACCOUNT, TxStatus.SUCCESS, result.signature)

    def _configure_extensions(self, params: CreateRwaMintParams, state: _SagaState):
        payer = self._ctx.payer
        instructions = []
        interest = params.interest_bearing
        if interest is not None and interest.enabled:
            rate_authority = to_pubkey(interest.rate_authority, "rate_authority") if interest.rate_authority else payer
            instructions.append(build_initialize_interest_bearing(state.mint, rate_authority, interest.rate_bps))
        fee = params.transfer_fee
        if fee is not None and fee.enabled:
            fee_authority = to_pubkey(fee.fee_authority, "fee_authority") if fee.fee_authority else payer
            instructions.append(build_initialize_transfer_fee_config(
                state.mint,
                fee_authority,
                fee_authority,
                fee.fee_basis_points,
                fee.maximum_fee,
            ))

        if not instructions:
            state.record(MintStep.CONFIGURE_EXTENSIONS, TxStatus.SKIPPED, note="no configurable extensions")
            return

        result = self._submit(MintStep.CONFIGURE_EXTENSIONS, instructions)
        state.record(MintStep.CONFIGURE_EXTENSIONS, TxStatus.SUCCESS, result.signature)

    def _initialize_mint(self, params: CreateRwaMintParams, state: _SagaState):
        payer = self._ctx.payer
        instructions = [build_initialize_mint(state.mint, state.decimals, state.mint_authority, state.freeze_authority)]
        if params.metadata is not None:
            # Metadata lives in the mint account itself
            instructions.append(build_initialize_token_metadata(
                state.mint,
                payer,
                state.mint,
                state.mint_authority,
                params.metadata.name,
                params.metadata.symbol,
                params.metadata.uri,
            ))

        result = self._submit(MintStep.INITIALIZE_MINT, instructions)
        state.init_signature = result.signature
        state.record(MintStep.INITIALIZE_MINT, TxStatus.SUCCESS, result.signature)

    def _init_hook_accounts(self, params: CreateRwaMintParams, state: _SagaState):
        if not params.hook_enabled:
            state.record(MintStep.INIT_HOOK_ACCOUNTS, TxStatus.SKIPPED, note="no transfer hook")
            return

        try:
            result = self._hooks.ensure_extra_account_meta_list(state.mint, state.hook_program)
        except RwaAmmError as e:
            # The list can be created later with ensure_extra_account_meta_list
            logger.warning(f"ExtraAccountMetaList bootstrap failed for {state.mint}; continuing: {e}")
            state.record(MintStep.INIT_HOOK_ACCOUNTS, TxStatus.SKIPPED, note=f"bootstrap failed: {e.message}")
            return
        state.record(MintStep.INIT_HOOK_ACCOUNTS, result.status, result.signature)

    def _update_metadata_fields(self, params: CreateRwaMintParams, state: _SagaState):
        fields = params.metadata.additional_fields if params.metadata is not None else []
        if not fields:
            state.record(MintStep.UPDATE_METADATA_FIELDS, TxStatus.SKIPPED, note="no additional fields")
            return

        payer = self._ctx.payer
        batches = batch_fields(fields, global_config.mint.metadata_batch_size)
        for i, batch in enumerate(batches):
            instructions = [build_update_metadata_field(state.mint, payer, key, value) for key, value in batch]
            result = self._submit(MintStep.UPDATE_METADATA_FIELDS, instructions)
            logger.info(f"Metadata batch {i + 1}/{len(batches)} written for {state.mint}")
            state.record(MintStep.UPDATE_METADATA_FIELDS, TxStatus.SUCCESS, result.signature, note=f"batch {i + 1}")

    def _mint_supply(self, params: CreateRwaMintParams, state: _SagaState):
        if params.supply <= 0:
            state.record(MintStep.MINT_SUPPLY, TxStatus.SKIPPED, note="no initial supply")
            return

        payer = self._ctx.payer
        ata = get_associated_token_address(payer, state.mint, _TOKEN_2022)

        if self._rpc.get_account_info(str(ata)) is None:
            self._submit(MintStep.MINT_SUPPLY, [build_create_ata_idempotent(payer, payer, state.mint, _TOKEN_2022)])
            state.created_ata = ata

        amount = to_raw_amount(params.supply, state.decimals)
        result = self._submit(MintStep.MINT_SUPPLY, [build_mint_to(state.mint, ata, state.mint_authority, amount)])
        logger.info(f"Minted {params.supply} tokens of {state.mint} to {ata}")
        state.record(MintStep.MINT_SUPPLY, TxStatus.SUCCESS, result.signature)

    # Compensations

    def _close_created_ata(self, state: _SagaState) -> str:
        """Close the payer ATA, but only when this run created it"""
        if state.created_ata is None:
            return NOTHING_TO_UNDO

        payer = self._ctx.payer
        ix = build_close_account(state.created_ata, payer, payer)
        result = self._tx_builder.execute([ix], label="create_rwa_mint:cleanup")
        if not result.is_success:
            logger.warning(f"Could not close token account {state.created_ata}: {result.error}")
            return f"cleanup failed: {result.error}"
        logger.info(f"Closed token account {state.created_ata} during cleanup")
        return f"closed {state.created_ata}"

    # Supplementary minting

    def mint_tokens(
        self,
        mint: PubkeyLike,
        amount: Union[int, float, str, Decimal],
        recipient: Optional[PubkeyLike] = None,
    ) -> TxResult:
        """
        Mint additional whole tokens to a recipient

        The token program and decimals are read from the mint. The
        recipient's ATA is created in the same transaction when missing.

        Args:
            mint: Mint address (payer must be the mint authority)
            amount: Whole-token amount
            recipient: Recipient wallet (defaults to the payer)

        Raises:
            ConfigurationError: The mint does not exist or the amount is not a valid u64 raw amount
            ClassifiedError: Submission failed
        """
        mint_key = to_pubkey(mint, "mint")
        payer = self._ctx.payer
        recipient_key = to_pubkey(recipient, "recipient") if recipient else payer
        label = "mint_tokens"

        account = self._rpc.get_account_info(str(mint_key))
        data = decode_account_data(account)
        if data is None:
            raise ConfigurationError.invalid("mint", f"mint account {mint_key} does not exist")

        token_program = Pubkey.from_string(account["owner"])
        try:
            decimals = parse_mint_decimals(data)
        except ValueError as e:
            raise ConfigurationError.invalid("mint", f"{mint_key} is not a mint: {e}")
        ata = get_associated_token_address(recipient_key, mint_key, token_program)

        instructions = []
        if self._rpc.get_account_info(str(ata)) is None:
            instructions.append(build_create_ata_idempotent(payer, recipient_key, mint_key, token_program))
        raw_amount = to_raw_amount(amount, decimals)
        if not 0 < raw_amount <= U64_MAX:
            raise ConfigurationError.invalid("amount", f"{amount} tokens at {decimals} decimals is not a valid u64 raw amount")
        instructions.append(build_mint_to(mint_key, ata, payer, raw_amount, program_id=token_program))

        try:
            result = self._tx_builder.execute(instructions, label=label)
        except RwaAmmError as e:
            raise translate(e, label)
        if not result.is_success:
            raise translate(result, label)
        logger.info(f"Minted {amount} of {mint_key} to {ata}: {result.signature}")
        return result
