"""
UserKyc Account Parser
"""

import struct

from solders.pubkey import Pubkey

from ...types import UserKycRecord
from .constants import ACCOUNT_DISCRIMINATORS, USER_KYC_ACCOUNT_SIZE


def _fixed_str(raw: bytes) -> str:
    return raw.rstrip(b"\x00").decode("utf-8", errors="replace")


def parse_user_kyc(account_data: bytes) -> UserKycRecord:
    """
    Parse UserKyc account data

    Layout:
    - blob(8): discriminator
    - publicKey(32): user (offset 8)
    - u8: kyc_level (offset 40)
    - u8: risk_score (offset 41)
    - i64: last_updated (offset 42)
    - u8: flags (offset 50)
    - u64: daily_volume (offset 51)
    - u64: monthly_volume (offset 59)
    - i64: last_reset_day (offset 67)
    - i64: last_reset_month (offset 75)
    - [u8;2]: country (offset 83)
    - [u8;2]: state (offset 85)
    - [u8;32]: city (offset 87)

    Args:
        account_data: Raw account data bytes

    Returns:
        UserKycRecord

    Raises:
        ValueError: Wrong discriminator or truncated data
    """
    if len(account_data) < USER_KYC_ACCOUNT_SIZE:
        raise ValueError(f"UserKyc data too short: {len(account_data)} bytes")
    if account_data[:8] != ACCOUNT_DISCRIMINATORS["user_kyc"]:
        raise ValueError("Account is not a UserKyc record")

    offset = 8
    user = Pubkey.from_bytes(account_data[offset:offset + 32])
    offset += 32

    kyc_level, risk_score, last_updated, flags = struct.unpack_from("<BBqB", account_data, offset)
    offset += 1 + 1 + 8 + 1

    daily_volume, monthly_volume, last_reset_day, last_reset_month = struct.unpack_from(
        "<QQqq", account_data, offset
    )
    offset += 32

    country = _fixed_str(account_data[offset:offset + 2])
    offset += 2
    state = _fixed_str(account_data[offset:offset + 2])
    offset += 2
    city = _fixed_str(account_data[offset:offset + 32])

    return UserKycRecord(
        user=str(user),
        kyc_level=kyc_level,
        risk_score=risk_score,
        last_updated=last_updated,
        flags=flags,
        daily_volume=daily_volume,
        monthly_volume=monthly_volume,
        last_reset_day=last_reset_day,
        last_reset_month=last_reset_month,
        country=country,
        state=state,
        city=city,
    )
