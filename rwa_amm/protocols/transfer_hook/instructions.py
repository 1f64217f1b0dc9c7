"""
KYC Transfer Hook Instruction Builders
"""

import struct
from typing import Optional

from solders.instruction import Instruction, AccountMeta
from solders.pubkey import Pubkey

from ..constants import (
    TOKEN_2022_PROGRAM_ID,
    ASSOCIATED_TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
)
from ..pda import derive_user_kyc, derive_extra_account_metas
from .constants import DISCRIMINATORS


def _borsh_string(value: str) -> bytes:
    encoded = value.encode("utf-8")
    return struct.pack("<I", len(encoded)) + encoded


def _option_u8(value: Optional[int]) -> bytes:
    if value is None:
        return b"\x00"
    return bytes([1, value])


def _option_string(value: Optional[str]) -> bytes:
    if value is None:
        return b"\x00"
    return b"\x01" + _borsh_string(value)


def build_initialize_extra_account_meta_list(
    hook_program_id: Pubkey,
    payer: Pubkey,
    mint: Pubkey,
) -> Instruction:
    """
    Create the ExtraAccountMetaList that tells Token-2022 which accounts
    the hook's Execute needs.

    The program's wsol_mint slot is unused by the KYC hook; the mint itself
    is passed there.
    """
    extra_account_meta_list = derive_extra_account_metas(hook_program_id, mint)

    accounts = [
        AccountMeta(payer, is_signer=True, is_writable=True),                    # 0: payer
        AccountMeta(extra_account_meta_list, is_signer=False, is_writable=True), # 1: extra_account_meta_list
        AccountMeta(mint, is_signer=False, is_writable=False),                   # 2: mint
        AccountMeta(mint, is_signer=False, is_writable=False),                   # 3: wsol_mint
        AccountMeta(Pubkey.from_string(TOKEN_2022_PROGRAM_ID), is_signer=False, is_writable=False),       # 4: token_program
        AccountMeta(Pubkey.from_string(ASSOCIATED_TOKEN_PROGRAM_ID), is_signer=False, is_writable=False), # 5: associated_token_program
        AccountMeta(Pubkey.from_string(SYSTEM_PROGRAM_ID), is_signer=False, is_writable=False),           # 6: system_program
    ]

    return Instruction(hook_program_id, DISCRIMINATORS["initialize_extra_account_meta_list"], accounts)


def build_initialize_user_kyc(
    hook_program_id: Pubkey,
    payer: Pubkey,
    user: Pubkey,
    kyc_level: int,
    country: str,
    state: str,
    city: str,
) -> Instruction:
    """initialize_user_kyc(kyc_level: u8, country: String, state: String, city: String)"""
    data = bytearray(DISCRIMINATORS["initialize_user_kyc"])
    data.extend(struct.pack("<B", kyc_level))
    data.extend(_borsh_string(country))
    data.extend(_borsh_string(state))
    data.extend(_borsh_string(city))

    accounts = [
        AccountMeta(payer, is_signer=True, is_writable=True),
        AccountMeta(user, is_signer=False, is_writable=False),
        AccountMeta(derive_user_kyc(hook_program_id, user), is_signer=False, is_writable=True),
        AccountMeta(Pubkey.from_string(SYSTEM_PROGRAM_ID), is_signer=False, is_writable=False),
    ]

    return Instruction(hook_program_id, bytes(data), accounts)


def build_update_user_kyc(
    hook_program_id: Pubkey,
    authority: Pubkey,
    user: Pubkey,
    kyc_level: Optional[int] = None,
    risk_score: Optional[int] = None,
    flags_to_set: Optional[int] = None,
    flags_to_clear: Optional[int] = None,
    country: Optional[str] = None,
    state: Optional[str] = None,
    city: Optional[str] = None,
) -> Instruction:
    """update_user_kyc with Option<> arguments; None leaves a field untouched"""
    data = bytearray(DISCRIMINATORS["update_user_kyc"])
    data.extend(_option_u8(kyc_level))
    data.extend(_option_u8(risk_score))
    data.extend(_option_u8(flags_to_set))
    data.extend(_option_u8(flags_to_clear))
    data.extend(_option_string(country))
    data.extend(_option_string(state))
    data.extend(_option_string(city))

    accounts = [
        AccountMeta(authority, is_signer=True, is_writable=False),
        AccountMeta(user, is_signer=False, is_writable=False),
        AccountMeta(derive_user_kyc(hook_program_id, user), is_signer=False, is_writable=True),
    ]

    return Instruction(hook_program_id, bytes(data), accounts)
