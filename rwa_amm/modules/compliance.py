"""
Compliance Module

Reads and maintains the UserKyc records the transfer hook program checks
on every hooked transfer, and answers pre-trade eligibility questions.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple, TYPE_CHECKING

from solders.pubkey import Pubkey

if TYPE_CHECKING:
    from ..infra.context import ProgramContext
    from .hooks import HookModule

from ..config import config as global_config
from ..errors import ComplianceError, RwaAmmError, translate
from ..infra.rpc import decode_account_data
from ..protocols.pda import PubkeyLike, to_pubkey, derive_user_kyc
from ..protocols.transfer_hook import (
    build_initialize_user_kyc,
    build_update_user_kyc,
    parse_user_kyc,
)
from ..protocols.transfer_hook.constants import (
    MAX_KYC_LEVEL,
    COUNTRY_CODE_LEN,
    MAX_STATE_CODE_LEN,
    MAX_CITY_LEN,
)
from ..types import (
    KycStatus,
    SwapCompliance,
    TxResult,
    UserKycRecord,
    KYC_LEVEL_BASIC,
    KYC_LEVEL_ENHANCED,
)

logger = logging.getLogger(__name__)

KYC_REQUIRED_REASON = "KYC required. Please complete KYC verification."
ENHANCED_KYC_REQUIRED_REASON = "Enhanced KYC required for RWA token trading."


def validate_level(level: int) -> int:
    if not isinstance(level, int) or level < 0 or level > MAX_KYC_LEVEL:
        raise ComplianceError.invalid_field("level", f"must be between 0 and {MAX_KYC_LEVEL}, got {level!r}")
    return level


def validate_country(country: str) -> str:
    if len(country) != COUNTRY_CODE_LEN or not (country.isascii() and country.isalpha()):
        raise ComplianceError.invalid_field("country", f"expected a 2-letter code, got {country!r}")
    return country.upper()


def validate_state(state: str) -> str:
    if len(state) > MAX_STATE_CODE_LEN or not state.isascii() or (state and not state.isalnum()):
        raise ComplianceError.invalid_field("state", f"expected up to 2 letters or digits, got {state!r}")
    return state.upper()


def validate_city(city: str) -> str:
    if len(city) > MAX_CITY_LEN or not all(" " <= c <= "~" for c in city):
        raise ComplianceError.invalid_field("city", f"expected up to {MAX_CITY_LEN} printable ASCII characters")
    return city


def validate_kyc_fields(level: int, country: str, state: str, city: str) -> Tuple[int, str, str, str]:
    """
    Apply the hook program's input rules before anything is submitted

    Returns:
        (level, country, state, city) with country and state upper-cased

    Raises:
        ComplianceError: A field violates the program's constraints
    """
    return validate_level(level), validate_country(country), validate_state(state), validate_city(city)


def status_from_record(wallet: str, record: Optional[UserKycRecord]) -> KycStatus:
    required = global_config.compliance.required_level
    if record is None:
        return KycStatus(wallet=wallet, exists=False, required_level=required)
    return KycStatus(
        wallet=wallet,
        exists=True,
        level=record.kyc_level,
        country=record.country,
        state=record.state,
        city=record.city,
        risk_score=record.risk_score,
        flags=record.flags,
        required_level=required,
    )


class ComplianceModule:
    """
    KYC module

    Provides:
    - get_status / can_trade_rwa: read a wallet's KYC record
    - create_user_kyc / update_user_kyc: write records
    - ensure_kyc: create default records for wallets that lack one
    - validate_swap_compliance: pre-trade eligibility check

    Usage:
        client = RwaAmmClient(rpc_url, keypair=keypair)

        status = client.kyc.get_status(wallet)
        if not status.can_trade_rwa:
            client.kyc.create_user_kyc(wallet, level=2, country="US", state="CA", city="San Francisco")
    """

    def __init__(self, ctx: "ProgramContext", hooks: Optional["HookModule"] = None):
        self._ctx = ctx
        self._rpc = ctx.rpc
        self._tx_builder = ctx.tx_builder
        if hooks is None:
            from .hooks import HookModule
            hooks = HookModule(ctx)
        self._hooks = hooks

    def _hook_program(self, hook_program: Optional[PubkeyLike]) -> Pubkey:
        return to_pubkey(hook_program, "hook_program") if hook_program else self._ctx.hook_program_id

    def kyc_address(self, wallet: PubkeyLike, hook_program: Optional[PubkeyLike] = None) -> Pubkey:
        """UserKyc PDA of a wallet under a hook program (the configured one by default)"""
        return derive_user_kyc(self._hook_program(hook_program), wallet)

    def get_record(self, wallet: PubkeyLike) -> Optional[UserKycRecord]:
        """Decoded UserKyc record, or None when the wallet has none"""
        account = self._rpc.get_account_info(str(self.kyc_address(wallet)))
        return self._decode(str(wallet), account)

    def _decode(self, wallet: str, account: Optional[dict]) -> Optional[UserKycRecord]:
        data = decode_account_data(account)
        if data is None:
            return None
        try:
            return parse_user_kyc(data)
        except ValueError as e:
            logger.warning(f"KYC account of {wallet} could not be decoded: {e}")
            return None

    def get_status(self, wallet: Optional[PubkeyLike] = None) -> KycStatus:
        """
        Compliance view of a wallet

        Args:
            wallet: Wallet address (defaults to the client wallet)
        """
        wallet_str = str(to_pubkey(wallet or self._ctx.pubkey, "wallet"))
        return status_from_record(wallet_str, self.get_record(wallet_str))

    def get_statuses(self, wallets: Sequence[PubkeyLike]) -> Dict[str, KycStatus]:
        """KycStatus of several wallets from one getMultipleAccounts call"""
        unique = list(dict.fromkeys(str(to_pubkey(w, "wallet")) for w in wallets))
        accounts = self._rpc.get_multiple_accounts([str(self.kyc_address(w)) for w in unique])
        statuses = {}
        for i, wallet in enumerate(unique):
            account = accounts[i] if i < len(accounts) else None
            statuses[wallet] = status_from_record(wallet, self._decode(wallet, account))
        return statuses

    def can_trade_rwa(self, wallet: Optional[PubkeyLike] = None) -> bool:
        return self.get_status(wallet).can_trade_rwa

    def kyc_exists(self, wallet: PubkeyLike, hook_program: Optional[PubkeyLike] = None) -> bool:
        return self._rpc.get_account_info(str(self.kyc_address(wallet, hook_program))) is not None

    def _submit_initialize(
        self,
        wallet: Pubkey,
        level: int,
        country: str,
        state: str,
        city: str,
        hook_program: Optional[Pubkey] = None,
    ) -> TxResult:
        """Initialize a record; a lost race (record exists on re-read) counts as success"""
        ix = build_initialize_user_kyc(
            hook_program or self._ctx.hook_program_id,
            self._ctx.payer,
            wallet,
            level,
            country,
            state,
            city,
        )
        label = "initialize_user_kyc"
        try:
            result = self._tx_builder.execute([ix], label=label)
        except RwaAmmError as e:
            result = e

        if isinstance(result, TxResult) and result.is_success:
            logger.info(f"KYC record created for {wallet} (level {level}): {result.signature}")
            return result

        if self.kyc_exists(wallet, hook_program):
            logger.info(f"KYC record for {wallet} was created concurrently")
            return TxResult.skipped("KYC record created concurrently", label=label)

        raise translate(result, label)

    def create_user_kyc(
        self,
        wallet: Optional[PubkeyLike] = None,
        level: Optional[int] = None,
        country: Optional[str] = None,
        state: Optional[str] = None,
        city: Optional[str] = None,
    ) -> TxResult:
        """
        Create a KYC record, or update it when one already exists

        Unset fields fall back to the configured defaults
        (level 2, US / CA / San Francisco).

        Raises:
            ComplianceError: Invalid field (nothing is submitted)
            ClassifiedError: Submission failed
        """
        defaults = global_config.compliance
        wallet_key = to_pubkey(wallet or self._ctx.pubkey, "wallet")
        level, country, state, city = validate_kyc_fields(
            defaults.default_level if level is None else level,
            defaults.default_country if country is None else country,
            defaults.default_state if state is None else state,
            defaults.default_city if city is None else city,
        )

        if self.kyc_exists(wallet_key):
            logger.info(f"KYC record exists for {wallet_key}; updating instead")
            return self.update_user_kyc(wallet_key, level=level, country=country, state=state, city=city)

        return self._submit_initialize(wallet_key, level, country, state, city)

    def update_user_kyc(
        self,
        wallet: PubkeyLike,
        level: Optional[int] = None,
        risk_score: Optional[int] = None,
        flags_to_set: Optional[int] = None,
        flags_to_clear: Optional[int] = None,
        country: Optional[str] = None,
        state: Optional[str] = None,
        city: Optional[str] = None,
    ) -> TxResult:
        """
        Update selected fields of a KYC record (None = unchanged)

        Raises:
            ComplianceError: Invalid field (nothing is submitted)
            ClassifiedError: Submission failed
        """
        wallet_key = to_pubkey(wallet, "wallet")
        level = validate_level(level) if level is not None else None
        country = validate_country(country) if country is not None else None
        state = validate_state(state) if state is not None else None
        city = validate_city(city) if city is not None else None

        ix = build_update_user_kyc(
            self._ctx.hook_program_id,
            self._ctx.payer,
            wallet_key,
            kyc_level=level,
            risk_score=risk_score,
            flags_to_set=flags_to_set,
            flags_to_clear=flags_to_clear,
            country=country,
            state=state,
            city=city,
        )
        label = "update_user_kyc"
        try:
            result = self._tx_builder.execute([ix], label=label)
        except RwaAmmError as e:
            raise translate(e, label)

        if not result.is_success:
            raise translate(result, label)
        logger.info(f"KYC record updated for {wallet_key}: {result.signature}")
        return result

    def ensure_kyc(
        self,
        wallets: Sequence[PubkeyLike],
        hook_program: Optional[PubkeyLike] = None,
    ) -> List[TxResult]:
        """
        Make sure every wallet has a KYC record

        Existence is checked for all wallets at once; missing records are
        created one transaction at a time with the default tier.

        Args:
            wallets: Wallets to cover
            hook_program: Hook program that owns the records (the configured
                one if None); pass the mint's own hook program for mints
                hooked to a different deployment

        Returns:
            One TxResult per distinct wallet, in first-seen order
            (SKIPPED for wallets that already had a record)
        """
        unique = list(dict.fromkeys(to_pubkey(w, "wallet") for w in wallets))
        if not unique:
            return []

        program = self._hook_program(hook_program)
        accounts = self._rpc.get_multiple_accounts([str(self.kyc_address(w, program)) for w in unique])
        defaults = global_config.compliance
        level, country, state, city = validate_kyc_fields(
            defaults.default_level,
            defaults.default_country,
            defaults.default_state,
            defaults.default_city,
        )

        results = []
        for i, wallet in enumerate(unique):
            if i < len(accounts) and accounts[i] is not None:
                logger.debug(f"KYC record exists for {wallet}")
                results.append(TxResult.skipped("KYC record already exists"))
                continue
            results.append(self._submit_initialize(wallet, level, country, state, city, hook_program=program))
        return results

    def validate_swap_compliance(
        self,
        user: PubkeyLike,
        input_mint: PubkeyLike,
        output_mint: PubkeyLike,
        amount: int = 0,
    ) -> SwapCompliance:
        """
        Pre-trade eligibility check

        Jurisdiction, trading hours and trade limits are enforced by the
        hook program at transfer time, not here.

        Args:
            user: Trading wallet
            input_mint: Mint being sold
            output_mint: Mint being bought
            amount: Input amount (raw units)
        """
        status = self.get_status(user)
        if not status.exists:
            return SwapCompliance(
                can_swap=False,
                reason=KYC_REQUIRED_REASON,
                required_kyc_level=KYC_LEVEL_BASIC,
            )

        hooks = self._hooks.detect_hooks([input_mint, output_mint])
        if any(info.has_hook for info in hooks.values()) and status.level < KYC_LEVEL_ENHANCED:
            return SwapCompliance(
                can_swap=False,
                reason=ENHANCED_KYC_REQUIRED_REASON,
                required_kyc_level=KYC_LEVEL_ENHANCED,
                current_kyc_level=status.level,
            )

        return SwapCompliance(can_swap=True, current_kyc_level=status.level)
