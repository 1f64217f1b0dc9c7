"""
Token-2022 mint layout helpers

Mint account layout with extensions:
- bytes 0..82: base mint (mint_authority option, supply, decimals, ...)
- bytes 82..165: zero padding up to the token account size
- byte 165: account type (1 = mint)
- bytes 166..: TLV entries, each u16 type | u16 length | value

Sizing follows the SPL token client so rent matches what the program expects.
"""

import logging
import struct
from enum import IntEnum
from typing import Dict, Iterable, List, Optional, Tuple

from solders.pubkey import Pubkey

logger = logging.getLogger(__name__)

MINT_SIZE = 82
ACCOUNT_SIZE = 165
ACCOUNT_TYPE_SIZE = 1
MULTISIG_SIZE = 355
TYPE_SIZE = 2
LENGTH_SIZE = 2
TLV_START = ACCOUNT_SIZE + ACCOUNT_TYPE_SIZE

ACCOUNT_TYPE_MINT = 1

# Offsets inside the base mint
MINT_DECIMALS_OFFSET = 44


class ExtensionType(IntEnum):
    """Token-2022 extension discriminants used by this client"""
    UNINITIALIZED = 0
    TRANSFER_FEE_CONFIG = 1
    INTEREST_BEARING_CONFIG = 10
    TRANSFER_HOOK = 14
    METADATA_POINTER = 18
    TOKEN_METADATA = 19
    GROUP_MEMBER_POINTER = 22


# Fixed value lengths of the extensions a mint can be sized for up front.
# TokenMetadata is variable length and is sized separately.
EXTENSION_LENGTHS: Dict[ExtensionType, int] = {
    ExtensionType.TRANSFER_FEE_CONFIG: 108,
    ExtensionType.INTEREST_BEARING_CONFIG: 52,
    ExtensionType.TRANSFER_HOOK: 64,
    ExtensionType.METADATA_POINTER: 64,
    ExtensionType.GROUP_MEMBER_POINTER: 64,
}


def get_mint_len(extensions: Iterable[ExtensionType]) -> int:
    """
    Account size for a mint with the given fixed-length extensions.

    Args:
        extensions: Extension types (duplicates are counted once)

    Returns:
        Size in bytes to pass to create_account
    """
    unique = list(dict.fromkeys(extensions))
    if not unique:
        return MINT_SIZE

    length = TLV_START + sum(TYPE_SIZE + LENGTH_SIZE + EXTENSION_LENGTHS[ext] for ext in unique)
    # A mint may not have the multisig size or it would be ambiguous with one
    if length == MULTISIG_SIZE:
        return length + TYPE_SIZE
    return length


def _borsh_string(value: str) -> bytes:
    encoded = value.encode("utf-8")
    return struct.pack("<I", len(encoded)) + encoded


def pack_token_metadata(
    update_authority: Pubkey,
    mint: Pubkey,
    name: str,
    symbol: str,
    uri: str,
    additional_metadata: List[Tuple[str, str]],
) -> bytes:
    """Borsh-pack a TokenMetadata value as the metadata interface stores it"""
    data = bytearray()
    data.extend(bytes(update_authority))
    data.extend(bytes(mint))
    data.extend(_borsh_string(name))
    data.extend(_borsh_string(symbol))
    data.extend(_borsh_string(uri))
    data.extend(struct.pack("<I", len(additional_metadata)))
    for key, value in additional_metadata:
        data.extend(_borsh_string(key))
        data.extend(_borsh_string(value))
    return bytes(data)


def get_metadata_len(
    update_authority: Pubkey,
    mint: Pubkey,
    name: str,
    symbol: str,
    uri: str,
    additional_metadata: List[Tuple[str, str]],
) -> int:
    """TLV bytes the TokenMetadata extension will occupy once fully written"""
    packed = pack_token_metadata(update_authority, mint, name, symbol, uri, additional_metadata)
    return TYPE_SIZE + LENGTH_SIZE + len(packed)


def iter_extensions(data: bytes) -> List[Tuple[int, bytes]]:
    """
    Walk the TLV region of a Token-2022 mint.

    Args:
        data: Raw mint account data

    Returns:
        List of (extension_type, value_bytes); empty for base-size mints

    Raises:
        ValueError: If the account type byte is not a mint or a TLV entry
            runs past the end of the data
    """
    if len(data) <= MINT_SIZE:
        return []
    if len(data) < TLV_START:
        raise ValueError(f"Mint data too short for extensions: {len(data)} bytes")
    if data[ACCOUNT_SIZE] != ACCOUNT_TYPE_MINT:
        raise ValueError(f"Account type {data[ACCOUNT_SIZE]} is not a mint")

    entries = []
    offset = TLV_START
    while offset + TYPE_SIZE + LENGTH_SIZE <= len(data):
        ext_type, ext_len = struct.unpack_from("<HH", data, offset)
        if ext_type == ExtensionType.UNINITIALIZED:
            break
        offset += TYPE_SIZE + LENGTH_SIZE
        if offset + ext_len > len(data):
            raise ValueError(f"Extension {ext_type} overruns mint data")
        entries.append((ext_type, bytes(data[offset:offset + ext_len])))
        offset += ext_len
    return entries


def get_extension(data: bytes, extension: ExtensionType) -> Optional[bytes]:
    """Value bytes of one extension, or None when absent"""
    for ext_type, value in iter_extensions(data):
        if ext_type == extension:
            return value
    return None


def parse_transfer_hook_program(data: bytes) -> Optional[Pubkey]:
    """
    Hook program configured on a mint.

    TransferHook value layout: authority (32) | program_id (32).
    An all-zero program id means the extension exists but no hook is set.

    Returns:
        Hook program id, or None
    """
    value = get_extension(data, ExtensionType.TRANSFER_HOOK)
    if value is None or len(value) < 64:
        return None
    program_id = Pubkey.from_bytes(value[32:64])
    if program_id == Pubkey.default():
        return None
    return program_id


def parse_mint_decimals(data: bytes) -> int:
    """Decimals byte of a (Token or Token-2022) mint"""
    if len(data) < MINT_SIZE:
        raise ValueError(f"Mint data too short: {len(data)} bytes")
    return data[MINT_DECIMALS_OFFSET]
