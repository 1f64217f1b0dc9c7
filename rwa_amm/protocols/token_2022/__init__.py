"""
Token-2022 layout parsing and instruction builders
"""

from .extensions import (
    ExtensionType,
    EXTENSION_LENGTHS,
    MINT_SIZE,
    get_mint_len,
    get_metadata_len,
    pack_token_metadata,
    iter_extensions,
    get_extension,
    parse_transfer_hook_program,
    parse_mint_decimals,
)
from .instructions import (
    U64_MAX,
    I16_MIN,
    I16_MAX,
    MAX_FEE_BASIS_POINTS,
    build_initialize_metadata_pointer,
    build_initialize_group_member_pointer,
    build_initialize_transfer_hook,
    build_initialize_interest_bearing,
    build_initialize_transfer_fee_config,
    build_initialize_mint,
    build_mint_to,
    build_close_account,
    build_initialize_token_metadata,
    build_update_metadata_field,
    build_create_ata_idempotent,
)

__all__ = [
    "U64_MAX",
    "I16_MIN",
    "I16_MAX",
    "MAX_FEE_BASIS_POINTS",
    "ExtensionType",
    "EXTENSION_LENGTHS",
    "MINT_SIZE",
    "get_mint_len",
    "get_metadata_len",
    "pack_token_metadata",
    "iter_extensions",
    "get_extension",
    "parse_transfer_hook_program",
    "parse_mint_decimals",
    "build_initialize_metadata_pointer",
    "build_initialize_group_member_pointer",
    "build_initialize_transfer_hook",
    "build_initialize_interest_bearing",
    "build_initialize_transfer_fee_config",
    "build_initialize_mint",
    "build_mint_to",
    "build_close_account",
    "build_initialize_token_metadata",
    "build_update_metadata_field",
    "build_create_ata_idempotent",
]
