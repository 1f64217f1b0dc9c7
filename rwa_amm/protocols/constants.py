"""
Shared Solana program constants
"""

import hashlib

from ..config import config

# Token Programs
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"

# Associated Token Program
ASSOCIATED_TOKEN_PROGRAM_ID = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"

# System Program
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"

# Rent Sysvar
RENT_SYSVAR_ID = "SysvarRent111111111111111111111111111111111"

# Constant-product AMM with token badge / transfer hook support (devnet deployment)
DEFAULT_AMM_PROGRAM_ID = "cpamdpZCGKUy5JxQXB4dcpGPiikHawvSWAd6mEn1sGG"

# KYC transfer hook program
DEFAULT_TRANSFER_HOOK_PROGRAM_ID = "Hos5X6SbGqyDb8FfvRgiDqWpTE9C6FcgAkXrTeryUXwB"

# Solana's hard per-transaction compute limit
MAX_COMPUTE_UNITS = 1_400_000


def amm_program_id() -> str:
    """AMM program id, honoring RWA_AMM_PROGRAM_ID"""
    return config.programs.amm_program_id or DEFAULT_AMM_PROGRAM_ID


def transfer_hook_program_id() -> str:
    """Transfer hook program id, honoring RWA_TRANSFER_HOOK_PROGRAM_ID"""
    return config.programs.transfer_hook_program_id or DEFAULT_TRANSFER_HOOK_PROGRAM_ID


def anchor_discriminator(name: str, namespace: str = "global") -> bytes:
    """
    Anchor discriminator: sha256("<namespace>:<name>")[0:8]

    Use namespace="account" with the struct name for account discriminators.
    """
    return hashlib.sha256(f"{namespace}:{name}".encode("utf-8")).digest()[:8]
