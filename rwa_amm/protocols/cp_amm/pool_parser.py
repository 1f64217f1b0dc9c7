"""
Constant-product AMM Pool/Position Parser

Parses pool and position account data from chain.
"""

import struct

from solders.pubkey import Pubkey

from ...types import PoolState, PositionState
from .constants import ACCOUNT_DISCRIMINATORS, POOL_MIN_SIZE

POSITION_MIN_SIZE = 8 + 32 + 32


def _pubkey_from_bytes(data: bytes) -> str:
    return str(Pubkey.from_bytes(data))


def _u128(data: bytes, offset: int) -> int:
    return int.from_bytes(data[offset:offset + 16], "little")


def parse_pool_state(address: str, account_data: bytes) -> PoolState:
    """
    Parse pool account

    Layout:
    - blob(8): discriminator
    - blob(160): pool_fees
    - publicKey(32): token_a_mint (offset 168)
    - publicKey(32): token_b_mint (offset 200)
    - publicKey(32): token_a_vault (offset 232)
    - publicKey(32): token_b_vault (offset 264)
    - publicKey(32): whitelisted_vault (offset 296)
    - publicKey(32): partner (offset 328)
    - u128: liquidity (offset 360)
    - u128: padding (offset 376)
    - u64: protocol_a_fee, protocol_b_fee, partner_a_fee, partner_b_fee (offset 392)
    - u128: sqrt_min_price (offset 424)
    - u128: sqrt_max_price (offset 440)
    - u128: sqrt_price (offset 456)
    - ... (activation, status, reward infos)

    Args:
        address: Pool address
        account_data: Raw account data bytes

    Returns:
        PoolState

    Raises:
        ValueError: Wrong discriminator or truncated data
    """
    if len(account_data) < POOL_MIN_SIZE:
        raise ValueError(f"Pool data too short: {len(account_data)} bytes")
    if account_data[:8] != ACCOUNT_DISCRIMINATORS["pool"]:
        raise ValueError("Account is not a Pool")

    # Discriminator (8) + pool_fees (160)
    offset = 8 + 160

    token_a_mint = _pubkey_from_bytes(account_data[offset:offset + 32])
    offset += 32
    token_b_mint = _pubkey_from_bytes(account_data[offset:offset + 32])
    offset += 32
    token_a_vault = _pubkey_from_bytes(account_data[offset:offset + 32])
    offset += 32
    token_b_vault = _pubkey_from_bytes(account_data[offset:offset + 32])
    offset += 32
    whitelisted_vault = _pubkey_from_bytes(account_data[offset:offset + 32])
    offset += 32
    partner = _pubkey_from_bytes(account_data[offset:offset + 32])
    offset += 32

    liquidity = _u128(account_data, offset)
    offset += 16

    # padding (u128)
    offset += 16

    protocol_a_fee, protocol_b_fee, partner_a_fee, partner_b_fee = struct.unpack_from(
        "<QQQQ", account_data, offset
    )
    offset += 32

    sqrt_min_price = _u128(account_data, offset)
    offset += 16
    sqrt_max_price = _u128(account_data, offset)
    offset += 16
    sqrt_price = _u128(account_data, offset)

    return PoolState(
        address=address,
        token_a_mint=token_a_mint,
        token_b_mint=token_b_mint,
        token_a_vault=token_a_vault,
        token_b_vault=token_b_vault,
        whitelisted_vault=whitelisted_vault,
        partner=partner,
        liquidity=liquidity,
        protocol_a_fee=protocol_a_fee,
        protocol_b_fee=protocol_b_fee,
        partner_a_fee=partner_a_fee,
        partner_b_fee=partner_b_fee,
        sqrt_min_price=sqrt_min_price,
        sqrt_max_price=sqrt_max_price,
        sqrt_price=sqrt_price,
    )


def parse_position(address: str, account_data: bytes) -> PositionState:
    """
    Parse the leading fields of a position account

    Layout:
    - blob(8): discriminator
    - publicKey(32): pool
    - publicKey(32): nft_mint
    """
    if len(account_data) < POSITION_MIN_SIZE:
        raise ValueError(f"Position data too short: {len(account_data)} bytes")
    if account_data[:8] != ACCOUNT_DISCRIMINATORS["position"]:
        raise ValueError("Account is not a Position")

    return PositionState(
        address=address,
        pool=_pubkey_from_bytes(account_data[8:40]),
        nft_mint=_pubkey_from_bytes(account_data[40:72]),
    )
