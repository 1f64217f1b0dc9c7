"""
Input parameter types for mint provisioning, pool and KYC operations
"""

import json
from dataclasses import dataclass, field, asdict
from typing import Optional, List, Tuple


@dataclass
class TransferFeeParams:
    """
    Transfer fee extension settings

    Attributes:
        fee_basis_points: Fee per transfer in bps (100 = 1%)
        maximum_fee: Fee cap in raw token units
        fee_authority: Config/withdraw authority (defaults to payer)
    """
    fee_basis_points: int
    maximum_fee: int
    fee_authority: Optional[str] = None
    enabled: bool = True


@dataclass
class InterestBearingParams:
    """Interest-bearing extension settings (rate in bps, 500 = 5%)"""
    rate_bps: int
    rate_authority: Optional[str] = None
    enabled: bool = True


@dataclass
class TransferHookParams:
    """
    Transfer hook extension settings

    Attributes:
        program_id: Hook program (defaults to the configured KYC hook)
        authority: Hook authority (defaults to payer)
    """
    program_id: Optional[str] = None
    authority: Optional[str] = None
    enabled: bool = True


@dataclass
class TradingHours:
    """Per-weekday trading windows in minutes after midnight (local to timezone_offset)"""
    monday_start: int = 0
    monday_end: int = 1440
    tuesday_start: int = 0
    tuesday_end: int = 1440
    wednesday_start: int = 0
    wednesday_end: int = 1440
    thursday_start: int = 0
    thursday_end: int = 1440
    friday_start: int = 0
    friday_end: int = 1440
    saturday_start: int = 0
    saturday_end: int = 1440
    sunday_start: int = 0
    sunday_end: int = 1440

    def to_json(self) -> str:
        """Compact JSON with camelCase keys, the form stored on chain"""
        payload = {}
        for key, value in asdict(self).items():
            day, edge = key.split("_")
            payload[f"{day}{edge.capitalize()}"] = value
        return json.dumps(payload, separators=(",", ":"))


@dataclass
class RwaConfig:
    """
    Trading rules written into the mint's token metadata

    The hook program reads these fields; the client only serializes them.
    Trade limits are decimal strings to keep full u64 range.
    """
    asset_class: str
    jurisdiction: str
    allowed_countries: List[str] = field(default_factory=list)
    restricted_states: List[str] = field(default_factory=list)
    minimum_kyc_level: int = 2
    trading_hours: TradingHours = field(default_factory=TradingHours)
    timezone_offset: int = 0
    min_trade_amount: str = "0"
    max_trade_amount: str = "0"
    kyc_basic_daily_limit: str = "0"
    kyc_enhanced_daily_limit: str = "0"
    kyc_institutional_daily_limit: str = "0"
    trading_fee_bps: int = 0
    protocol_fee_bps: int = 0
    kyc_basic_discount_bps: int = 0
    kyc_enhanced_discount_bps: int = 0
    kyc_institutional_discount_bps: int = 0
    whitelist_required: bool = False
    requires_accredited_investor: bool = False

    def to_metadata_fields(self) -> List[Tuple[str, str]]:
        """Additional metadata (key, value) pairs in on-chain update order"""
        return [
            ("asset_class", self.asset_class),
            ("jurisdiction", self.jurisdiction),
            ("allowed_countries", ",".join(self.allowed_countries)),
            ("restricted_countries", ",".join(self.restricted_states)),
            ("minimum_kyc_level", str(self.minimum_kyc_level)),
            ("timezone_offset", str(self.timezone_offset)),
            ("min_trade_amount", str(self.min_trade_amount)),
            ("max_trade_amount", str(self.max_trade_amount)),
            ("kyc_basic_daily_limit", str(self.kyc_basic_daily_limit)),
            ("kyc_enhanced_daily_limit", str(self.kyc_enhanced_daily_limit)),
            ("kyc_institutional_daily_limit", str(self.kyc_institutional_daily_limit)),
            ("trading_fee_bps", str(self.trading_fee_bps)),
            ("protocol_fee_bps", str(self.protocol_fee_bps)),
            ("kyc_basic_discount_bps", str(self.kyc_basic_discount_bps)),
            ("kyc_enhanced_discount_bps", str(self.kyc_enhanced_discount_bps)),
            ("kyc_institutional_discount_bps", str(self.kyc_institutional_discount_bps)),
            ("whitelist_required", _bool_str(self.whitelist_required)),
            ("requires_accredited_investor", _bool_str(self.requires_accredited_investor)),
            ("trading_hours", self.trading_hours.to_json()),
            ("is_self_referential", "true"),
            ("metadata_type", "rwa_trading_rules"),
        ]


def _bool_str(value: bool) -> str:
    return "true" if value else "false"


@dataclass
class TokenMetadataParams:
    """Self-referential token metadata stored inside the mint account"""
    name: str
    symbol: str
    uri: str = ""
    description: str = ""
    rwa_config: Optional[RwaConfig] = None

    @property
    def additional_fields(self) -> List[Tuple[str, str]]:
        if self.rwa_config is None:
            return []
        return self.rwa_config.to_metadata_fields()


@dataclass
class CreateRwaMintParams:
    """
    Parameters for provisioning a Token-2022 RWA mint

    Attributes:
        supply: Whole-token initial supply minted to the payer (0 = none)
        decimals: Mint decimals (default from config, 6)
        mint_authority: Defaults to payer
        freeze_authority: Defaults to payer
    """
    supply: int = 0
    decimals: Optional[int] = None
    mint_authority: Optional[str] = None
    freeze_authority: Optional[str] = None
    transfer_fee: Optional[TransferFeeParams] = None
    interest_bearing: Optional[InterestBearingParams] = None
    metadata: Optional[TokenMetadataParams] = None
    transfer_hook: Optional[TransferHookParams] = None

    @property
    def hook_enabled(self) -> bool:
        return self.transfer_hook is not None and self.transfer_hook.enabled


@dataclass
class BaseFeeParams:
    """Fee scheduler settings of an AMM config"""
    cliff_fee_numerator: int = 2_500_000
    number_of_period: int = 0
    period_frequency: int = 0
    reduction_factor: int = 0
    fee_scheduler_mode: int = 0


@dataclass
class CreateConfigParams:
    """
    AMM static config parameters

    sqrt prices are Q64.64 fixed point.
    """
    base_fee: BaseFeeParams = field(default_factory=BaseFeeParams)
    sqrt_min_price: int = 4_295_048_016
    sqrt_max_price: int = 79_226_673_521_066_979_257_578_248_091
    vault_config_key: Optional[str] = None
    pool_creator_authority: Optional[str] = None
    activation_type: int = 0
    collect_fee_mode: int = 0


@dataclass
class CreatePoolParams:
    """
    Parameters for pool creation

    Attributes:
        config: AMM config account
        mint_a: First token mint
        mint_b: Second token mint
        liquidity: Initial liquidity (u128)
        sqrt_price: Initial sqrt price (Q64.64)
        activation_point: Optional activation slot/timestamp
    """
    config: str
    mint_a: str
    mint_b: str
    liquidity: int
    sqrt_price: int
    activation_point: Optional[int] = None

