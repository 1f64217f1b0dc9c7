"""
Token-2022 instruction builders

Covers the subset needed to provision an RWA mint: extension initializers,
InitializeMint, MintTo, CloseAccount, the token-metadata interface and
idempotent associated token account creation.
"""

import hashlib
import struct
from typing import Optional

from solders.instruction import Instruction, AccountMeta
from solders.pubkey import Pubkey

from ..constants import (
    TOKEN_2022_PROGRAM_ID,
    ASSOCIATED_TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    RENT_SYSVAR_ID,
)
from ..pda import get_associated_token_address

# Token instruction tags
INITIALIZE_MINT = 0
MINT_TO = 7
CLOSE_ACCOUNT = 9
TRANSFER_FEE_EXTENSION = 26
INTEREST_BEARING_MINT_EXTENSION = 33
TRANSFER_HOOK_EXTENSION = 36
METADATA_POINTER_EXTENSION = 39
GROUP_MEMBER_POINTER_EXTENSION = 41

# Sub-instruction 0 of every extension family is Initialize
EXTENSION_INITIALIZE = 0

# Value ranges of the packed fields
U64_MAX = 2**64 - 1
I16_MIN, I16_MAX = -(2**15), 2**15 - 1
MAX_FEE_BASIS_POINTS = 10_000

# Token metadata interface: sha256("spl_token_metadata_interface:<name>")[0:8]
METADATA_INITIALIZE_DISCRIMINATOR = hashlib.sha256(
    b"spl_token_metadata_interface:initialize_account"
).digest()[:8]
METADATA_UPDATE_FIELD_DISCRIMINATOR = hashlib.sha256(
    b"spl_token_metadata_interface:updating_field"
).digest()[:8]

# Field enum of UpdateField: Name, Symbol, Uri, Key(String)
METADATA_FIELD_KEY = 3

_TOKEN_2022 = Pubkey.from_string(TOKEN_2022_PROGRAM_ID)


def _borsh_string(value: str) -> bytes:
    encoded = value.encode("utf-8")
    return struct.pack("<I", len(encoded)) + encoded


def _optional_pubkey(key: Optional[Pubkey]) -> bytes:
    """OptionalNonZeroPubkey: 32 zero bytes for None"""
    return bytes(key) if key is not None else bytes(32)


def _mint_only(mint: Pubkey, data: bytes, program_id: Pubkey) -> Instruction:
    return Instruction(program_id, data, [AccountMeta(mint, is_signer=False, is_writable=True)])


def build_initialize_metadata_pointer(
    mint: Pubkey,
    authority: Optional[Pubkey],
    metadata_address: Optional[Pubkey],
    program_id: Pubkey = _TOKEN_2022,
) -> Instruction:
    data = bytes([METADATA_POINTER_EXTENSION, EXTENSION_INITIALIZE])
    data += _optional_pubkey(authority) + _optional_pubkey(metadata_address)
    return _mint_only(mint, data, program_id)


def build_initialize_group_member_pointer(
    mint: Pubkey,
    authority: Optional[Pubkey],
    member_address: Optional[Pubkey],
    program_id: Pubkey = _TOKEN_2022,
) -> Instruction:
    data = bytes([GROUP_MEMBER_POINTER_EXTENSION, EXTENSION_INITIALIZE])
    data += _optional_pubkey(authority) + _optional_pubkey(member_address)
    return _mint_only(mint, data, program_id)


def build_initialize_transfer_hook(
    mint: Pubkey,
    authority: Optional[Pubkey],
    hook_program_id: Optional[Pubkey],
    program_id: Pubkey = _TOKEN_2022,
) -> Instruction:
    data = bytes([TRANSFER_HOOK_EXTENSION, EXTENSION_INITIALIZE])
    data += _optional_pubkey(authority) + _optional_pubkey(hook_program_id)
    return _mint_only(mint, data, program_id)


def build_initialize_interest_bearing(
    mint: Pubkey,
    rate_authority: Optional[Pubkey],
    rate_bps: int,
    program_id: Pubkey = _TOKEN_2022,
) -> Instruction:
    data = bytes([INTEREST_BEARING_MINT_EXTENSION, EXTENSION_INITIALIZE])
    data += _optional_pubkey(rate_authority) + struct.pack("<h", rate_bps)
    return _mint_only(mint, data, program_id)


def build_initialize_transfer_fee_config(
    mint: Pubkey,
    config_authority: Optional[Pubkey],
    withdraw_authority: Optional[Pubkey],
    fee_basis_points: int,
    maximum_fee: int,
    program_id: Pubkey = _TOKEN_2022,
) -> Instruction:
    """
    InitializeTransferFeeConfig

    Data: [26, 0] | COption<Pubkey> config authority | COption<Pubkey>
    withdraw authority | u16 bps | u64 maximum fee
    """
    data = bytearray([TRANSFER_FEE_EXTENSION, EXTENSION_INITIALIZE])
    data.append(1 if config_authority is not None else 0)
    data.extend(_optional_pubkey(config_authority))
    data.append(1 if withdraw_authority is not None else 0)
    data.extend(_optional_pubkey(withdraw_authority))
    data.extend(struct.pack("<HQ", fee_basis_points, maximum_fee))
    return _mint_only(mint, bytes(data), program_id)


def build_initialize_mint(
    mint: Pubkey,
    decimals: int,
    mint_authority: Pubkey,
    freeze_authority: Optional[Pubkey] = None,
    program_id: Pubkey = _TOKEN_2022,
) -> Instruction:
    data = bytearray([INITIALIZE_MINT, decimals])
    data.extend(bytes(mint_authority))
    data.append(1 if freeze_authority is not None else 0)
    data.extend(_optional_pubkey(freeze_authority))

    accounts = [
        AccountMeta(mint, is_signer=False, is_writable=True),
        AccountMeta(Pubkey.from_string(RENT_SYSVAR_ID), is_signer=False, is_writable=False),
    ]
    return Instruction(program_id, bytes(data), accounts)


def build_mint_to(
    mint: Pubkey,
    destination: Pubkey,
    authority: Pubkey,
    amount: int,
    program_id: Pubkey = _TOKEN_2022,
) -> Instruction:
    data = bytes([MINT_TO]) + struct.pack("<Q", amount)
    accounts = [
        AccountMeta(mint, is_signer=False, is_writable=True),
        AccountMeta(destination, is_signer=False, is_writable=True),
        AccountMeta(authority, is_signer=True, is_writable=False),
    ]
    return Instruction(program_id, data, accounts)


def build_close_account(
    account: Pubkey,
    destination: Pubkey,
    owner: Pubkey,
    program_id: Pubkey = _TOKEN_2022,
) -> Instruction:
    accounts = [
        AccountMeta(account, is_signer=False, is_writable=True),
        AccountMeta(destination, is_signer=False, is_writable=True),
        AccountMeta(owner, is_signer=True, is_writable=False),
    ]
    return Instruction(program_id, bytes([CLOSE_ACCOUNT]), accounts)


def build_initialize_token_metadata(
    metadata: Pubkey,
    update_authority: Pubkey,
    mint: Pubkey,
    mint_authority: Pubkey,
    name: str,
    symbol: str,
    uri: str,
    program_id: Pubkey = _TOKEN_2022,
) -> Instruction:
    """Token metadata interface Initialize (metadata stored in the mint itself)"""
    data = METADATA_INITIALIZE_DISCRIMINATOR + _borsh_string(name) + _borsh_string(symbol) + _borsh_string(uri)
    accounts = [
        AccountMeta(metadata, is_signer=False, is_writable=True),
        AccountMeta(update_authority, is_signer=False, is_writable=False),
        AccountMeta(mint, is_signer=False, is_writable=False),
        AccountMeta(mint_authority, is_signer=True, is_writable=False),
    ]
    return Instruction(program_id, data, accounts)


def build_update_metadata_field(
    metadata: Pubkey,
    update_authority: Pubkey,
    key: str,
    value: str,
    program_id: Pubkey = _TOKEN_2022,
) -> Instruction:
    """UpdateField with a custom key (Field::Key)"""
    data = (
        METADATA_UPDATE_FIELD_DISCRIMINATOR
        + bytes([METADATA_FIELD_KEY])
        + _borsh_string(key)
        + _borsh_string(value)
    )
    accounts = [
        AccountMeta(metadata, is_signer=False, is_writable=True),
        AccountMeta(update_authority, is_signer=True, is_writable=False),
    ]
    return Instruction(program_id, data, accounts)


def build_create_ata_idempotent(
    payer: Pubkey,
    owner: Pubkey,
    mint: Pubkey,
    token_program: Pubkey = _TOKEN_2022,
) -> Instruction:
    """
    Build create_associated_token_account_idempotent instruction.

    Creates the ATA if it doesn't exist, or does nothing if it does.
    """
    ata_address = get_associated_token_address(owner, mint, token_program)

    accounts = [
        AccountMeta(payer, is_signer=True, is_writable=True),
        AccountMeta(ata_address, is_signer=False, is_writable=True),
        AccountMeta(owner, is_signer=False, is_writable=False),
        AccountMeta(mint, is_signer=False, is_writable=False),
        AccountMeta(Pubkey.from_string(SYSTEM_PROGRAM_ID), is_signer=False, is_writable=False),
        AccountMeta(token_program, is_signer=False, is_writable=False),
    ]

    # Instruction data: single byte 1 for idempotent create
    return Instruction(Pubkey.from_string(ASSOCIATED_TOKEN_PROGRAM_ID), bytes([1]), accounts)
