"""
Program-derived address helpers

Pure functions: the same (program id, seeds) always yield the same address,
and none of them touch the network. Seed layouts mirror the on-chain
programs byte for byte.
"""

import struct
from typing import Tuple, Union

from solders.pubkey import Pubkey

from ..errors import ConfigurationError
from .constants import (
    ASSOCIATED_TOKEN_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
)

# AMM seeds
POOL_AUTHORITY_SEED = b"pool_authority"
POOL_SEED = b"pool"
POSITION_SEED = b"position"
POSITION_NFT_ACCOUNT_SEED = b"position_nft_account"
TOKEN_VAULT_SEED = b"token_vault"
TOKEN_BADGE_SEED = b"token_badge"
CONFIG_SEED = b"config"
WHITELIST_SEED = b"whitelist"
EVENT_AUTHORITY_SEED = b"__event_authority"

# Transfer hook seeds
USER_KYC_SEED = b"user-kyc"
EXTRA_ACCOUNT_METAS_SEED = b"extra-account-metas"

PubkeyLike = Union[Pubkey, str]


def to_pubkey(value: PubkeyLike, name: str = "address") -> Pubkey:
    """Coerce a base58 string or Pubkey into a Pubkey"""
    if isinstance(value, Pubkey):
        return value
    try:
        return Pubkey.from_string(value)
    except (ValueError, TypeError) as e:
        raise ConfigurationError.invalid(name, f"not a valid public key: {value!r} ({e})")


def _find(seeds, program_id: PubkeyLike) -> Pubkey:
    address, _ = Pubkey.find_program_address(seeds, to_pubkey(program_id, "program_id"))
    return address


def sort_mints(mint_a: PubkeyLike, mint_b: PubkeyLike) -> Tuple[Pubkey, Pubkey]:
    """
    Order two mints the way the pool seed expects.

    Returns:
        (larger, smaller) by raw byte comparison
    """
    a = to_pubkey(mint_a, "mint_a")
    b = to_pubkey(mint_b, "mint_b")
    if bytes(a) > bytes(b):
        return a, b
    return b, a


def derive_pool_authority(program_id: PubkeyLike) -> Pubkey:
    """Pool authority PDA (owner of every vault)"""
    return _find([POOL_AUTHORITY_SEED], program_id)


def derive_pool(program_id: PubkeyLike, config: PubkeyLike, mint_a: PubkeyLike, mint_b: PubkeyLike) -> Pubkey:
    """
    Pool PDA: ("pool", config, max(mint_a, mint_b), min(mint_a, mint_b))

    Symmetric in the two mints.
    """
    first, second = sort_mints(mint_a, mint_b)
    return _find(
        [POOL_SEED, bytes(to_pubkey(config, "config")), bytes(first), bytes(second)],
        program_id,
    )


def derive_position(program_id: PubkeyLike, position_nft_mint: PubkeyLike) -> Pubkey:
    return _find([POSITION_SEED, bytes(to_pubkey(position_nft_mint, "position_nft_mint"))], program_id)


def derive_position_nft_account(program_id: PubkeyLike, position_nft_mint: PubkeyLike) -> Pubkey:
    return _find(
        [POSITION_NFT_ACCOUNT_SEED, bytes(to_pubkey(position_nft_mint, "position_nft_mint"))],
        program_id,
    )


def derive_token_vault(program_id: PubkeyLike, mint: PubkeyLike, pool: PubkeyLike) -> Pubkey:
    return _find(
        [TOKEN_VAULT_SEED, bytes(to_pubkey(mint, "mint")), bytes(to_pubkey(pool, "pool"))],
        program_id,
    )


def derive_token_badge(program_id: PubkeyLike, mint: PubkeyLike) -> Pubkey:
    return _find([TOKEN_BADGE_SEED, bytes(to_pubkey(mint, "mint"))], program_id)


def derive_config(program_id: PubkeyLike, config_id: int) -> Pubkey:
    """Config PDA: ("config", config_id as u64 little-endian)"""
    if config_id < 0 or config_id >= 2**64:
        raise ValueError(f"config_id out of u64 range: {config_id}")
    return _find([CONFIG_SEED, struct.pack("<Q", config_id)], program_id)


def derive_whitelist(program_id: PubkeyLike, mint: PubkeyLike) -> Pubkey:
    return _find([WHITELIST_SEED, bytes(to_pubkey(mint, "mint"))], program_id)


def derive_event_authority(program_id: PubkeyLike) -> Pubkey:
    """Anchor event CPI authority"""
    return _find([EVENT_AUTHORITY_SEED], program_id)


def derive_user_kyc(hook_program_id: PubkeyLike, wallet: PubkeyLike) -> Pubkey:
    """UserKyc record PDA under the transfer hook program"""
    return _find([USER_KYC_SEED, bytes(to_pubkey(wallet, "wallet"))], hook_program_id)


def derive_extra_account_metas(hook_program_id: PubkeyLike, mint: PubkeyLike) -> Pubkey:
    """ExtraAccountMetaList PDA under the mint's transfer hook program"""
    return _find([EXTRA_ACCOUNT_METAS_SEED, bytes(to_pubkey(mint, "mint"))], hook_program_id)


def get_associated_token_address(
    owner: PubkeyLike,
    mint: PubkeyLike,
    token_program: PubkeyLike = TOKEN_PROGRAM_ID,
) -> Pubkey:
    """
    Get associated token account address.

    Args:
        owner: Wallet owner
        mint: Token mint
        token_program: Token program (defaults to Tokenkeg)

    Returns:
        ATA address
    """
    seeds = [
        bytes(to_pubkey(owner, "owner")),
        bytes(to_pubkey(token_program, "token_program")),
        bytes(to_pubkey(mint, "mint")),
    ]
    return _find(seeds, ASSOCIATED_TOKEN_PROGRAM_ID)
