"""
Decoded on-chain state and derived views
"""

from dataclasses import dataclass, field
from typing import Optional, List

from solders.instruction import AccountMeta


# KYC levels understood by the transfer hook program
KYC_LEVEL_UNVERIFIED = 0
KYC_LEVEL_BASIC = 1
KYC_LEVEL_ENHANCED = 2
KYC_LEVEL_INSTITUTIONAL = 3

KYC_LEVEL_NAMES = {
    KYC_LEVEL_UNVERIFIED: "Unverified",
    KYC_LEVEL_BASIC: "Basic",
    KYC_LEVEL_ENHANCED: "Enhanced",
    KYC_LEVEL_INSTITUTIONAL: "Institutional",
}

# UserKyc.flags bits
KYC_FLAG_SANCTIONED = 0x01
KYC_FLAG_PEP = 0x02
KYC_FLAG_FROZEN = 0x04
KYC_FLAG_EXPIRED = 0x08


@dataclass
class HookInfo:
    """Transfer hook detection result for a mint"""
    mint: str
    has_hook: bool = False
    hook_program_id: Optional[str] = None
    token_program: Optional[str] = None


@dataclass
class RemainingAccounts:
    """
    Extra accounts a hook-gated instruction must forward

    Attributes:
        input_accounts: Accounts for the input-side mint's hook
        output_accounts: Accounts for the output-side mint's hook
        common_accounts: KYC records and hook program shared by both sides
    """
    input_accounts: List[AccountMeta] = field(default_factory=list)
    output_accounts: List[AccountMeta] = field(default_factory=list)
    common_accounts: List[AccountMeta] = field(default_factory=list)

    def flatten(self) -> List[AccountMeta]:
        """input + output + common, the order the AMM forwards them in"""
        return list(self.input_accounts) + list(self.output_accounts) + list(self.common_accounts)

    @property
    def is_empty(self) -> bool:
        return not (self.input_accounts or self.output_accounts or self.common_accounts)


@dataclass
class UserKycRecord:
    """
    Decoded UserKyc account

    Strings have trailing NUL padding removed.
    """
    user: str
    kyc_level: int
    risk_score: int
    last_updated: int
    flags: int
    daily_volume: int
    monthly_volume: int
    last_reset_day: int
    last_reset_month: int
    country: str
    state: str
    city: str


@dataclass
class KycStatus:
    """Compliance view of a wallet"""
    wallet: str
    exists: bool
    level: int = KYC_LEVEL_UNVERIFIED
    country: str = ""
    state: str = ""
    city: str = ""
    risk_score: int = 0
    flags: int = 0
    required_level: int = KYC_LEVEL_ENHANCED

    @property
    def can_trade_rwa(self) -> bool:
        return self.exists and self.level >= self.required_level

    @property
    def level_name(self) -> str:
        return KYC_LEVEL_NAMES.get(self.level, f"Level {self.level}")

    @property
    def is_sanctioned(self) -> bool:
        return bool(self.flags & KYC_FLAG_SANCTIONED)

    @property
    def is_frozen(self) -> bool:
        return bool(self.flags & KYC_FLAG_FROZEN)

    @property
    def is_expired(self) -> bool:
        return bool(self.flags & KYC_FLAG_EXPIRED)


@dataclass
class SwapCompliance:
    """Pre-trade compliance verdict"""
    can_swap: bool
    reason: Optional[str] = None
    required_kyc_level: Optional[int] = None
    current_kyc_level: Optional[int] = None


@dataclass
class HookStatus:
    """Whether trading a mint needs KYC"""
    mint: str
    has_hook: bool
    hook_program_id: Optional[str] = None
    requires_kyc: bool = False
    required_kyc_level: int = 0


@dataclass
class HookDisplayInfo:
    """Badge data for showing a token's compliance class"""
    badge_text: str
    badge_color: str
    tooltip: str
    requires_kyc: bool


@dataclass
class PoolState:
    """
    Decoded AMM pool account

    sqrt prices are Q64.64 fixed point.
    """
    address: str
    token_a_mint: str
    token_b_mint: str
    token_a_vault: str
    token_b_vault: str
    whitelisted_vault: str
    partner: str
    liquidity: int
    protocol_a_fee: int
    protocol_b_fee: int
    partner_a_fee: int
    partner_b_fee: int
    sqrt_min_price: int
    sqrt_max_price: int
    sqrt_price: int
    token_a_has_hook: Optional[bool] = None
    token_b_has_hook: Optional[bool] = None

    @property
    def price(self) -> float:
        """Token B per token A in raw units"""
        return (self.sqrt_price / 2**64) ** 2

    def has_mint(self, mint: str) -> bool:
        return mint in (self.token_a_mint, self.token_b_mint)


@dataclass
class PositionState:
    """Decoded AMM position account (leading fields only)"""
    address: str
    pool: str
    nft_mint: str
