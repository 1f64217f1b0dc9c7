"""
On-chain program bindings

- token_2022: Token-2022 extension math and instruction builders
- transfer_hook: KYC transfer hook instructions and UserKyc parsing
- cp_amm: constant-product AMM instructions and pool parsing
- pda: program-derived address helpers shared by all of the above
"""

from .constants import (
    TOKEN_PROGRAM_ID,
    TOKEN_2022_PROGRAM_ID,
    ASSOCIATED_TOKEN_PROGRAM_ID,
    SYSTEM_PROGRAM_ID,
    amm_program_id,
    transfer_hook_program_id,
    anchor_discriminator,
)

__all__ = [
    "TOKEN_PROGRAM_ID",
    "TOKEN_2022_PROGRAM_ID",
    "ASSOCIATED_TOKEN_PROGRAM_ID",
    "SYSTEM_PROGRAM_ID",
    "amm_program_id",
    "transfer_hook_program_id",
    "anchor_discriminator",
]
