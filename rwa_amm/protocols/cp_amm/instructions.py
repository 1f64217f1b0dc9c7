"""
Constant-product AMM Instruction Builders

Every AMM instruction is an Anchor event-CPI instruction, so the account
list always ends with (event_authority, program). Optional accounts that
are absent are passed as the program id, Anchor's None placeholder.
"""

import struct
from typing import List, Optional, Sequence

from solders.instruction import Instruction, AccountMeta
from solders.pubkey import Pubkey

from ...types import CreateConfigParams
from ..constants import SYSTEM_PROGRAM_ID, TOKEN_2022_PROGRAM_ID
from ..pda import derive_event_authority
from .constants import DISCRIMINATORS


def _u128(value: int) -> bytes:
    return value.to_bytes(16, "little")


def _ro(pubkey: Pubkey) -> AccountMeta:
    return AccountMeta(pubkey, is_signer=False, is_writable=False)


def _w(pubkey: Pubkey) -> AccountMeta:
    return AccountMeta(pubkey, is_signer=False, is_writable=True)


def _event_cpi_accounts(program_id: Pubkey) -> List[AccountMeta]:
    return [_ro(derive_event_authority(program_id)), _ro(program_id)]


def encode_config_params(params: CreateConfigParams) -> bytes:
    """
    Borsh-encode StaticConfigParameters

    Layout:
    - pool_fees.base_fee: u64 cliff_fee_numerator, u16 number_of_period,
      u64 period_frequency, u64 reduction_factor, u8 fee_scheduler_mode
    - pool_fees.padding: [u8; 3]
    - pool_fees.dynamic_fee: Option (always None)
    - u128 sqrt_min_price, u128 sqrt_max_price
    - publicKey vault_config_key, publicKey pool_creator_authority
    - u8 activation_type, u8 collect_fee_mode
    """
    base = params.base_fee
    vault_config_key = Pubkey.from_string(params.vault_config_key or SYSTEM_PROGRAM_ID)
    pool_creator_authority = Pubkey.from_string(params.pool_creator_authority or SYSTEM_PROGRAM_ID)

    data = bytearray()
    data.extend(struct.pack(
        "<QHQQB",
        base.cliff_fee_numerator,
        base.number_of_period,
        base.period_frequency,
        base.reduction_factor,
        base.fee_scheduler_mode,
    ))
    data.extend(bytes(3))
    data.append(0)
    data.extend(_u128(params.sqrt_min_price))
    data.extend(_u128(params.sqrt_max_price))
    data.extend(bytes(vault_config_key))
    data.extend(bytes(pool_creator_authority))
    data.extend(struct.pack("<BB", params.activation_type, params.collect_fee_mode))
    return bytes(data)


def build_create_config(
    program_id: Pubkey,
    config: Pubkey,
    admin: Pubkey,
    config_id: int,
    params: CreateConfigParams,
) -> Instruction:
    data = bytearray(DISCRIMINATORS["create_config"])
    data.extend(struct.pack("<Q", config_id))
    data.extend(encode_config_params(params))

    accounts = [
        _w(config),                                                 # 0: config
        AccountMeta(admin, is_signer=True, is_writable=True),       # 1: admin
        _ro(Pubkey.from_string(SYSTEM_PROGRAM_ID)),                 # 2: system_program
    ] + _event_cpi_accounts(program_id)

    return Instruction(program_id, bytes(data), accounts)


def build_create_token_badge(
    program_id: Pubkey,
    token_badge: Pubkey,
    token_mint: Pubkey,
    admin: Pubkey,
) -> Instruction:
    accounts = [
        _w(token_badge),                                            # 0: token_badge
        _ro(token_mint),                                            # 1: token_mint
        AccountMeta(admin, is_signer=True, is_writable=True),       # 2: admin
        _ro(Pubkey.from_string(SYSTEM_PROGRAM_ID)),                 # 3: system_program
    ] + _event_cpi_accounts(program_id)

    return Instruction(program_id, DISCRIMINATORS["create_token_badge"], accounts)


def build_initialize_pool(
    program_id: Pubkey,
    creator: Pubkey,
    position_nft_mint: Pubkey,
    position_nft_account: Pubkey,
    payer: Pubkey,
    config: Pubkey,
    pool_authority: Pubkey,
    pool: Pubkey,
    position: Pubkey,
    token_a_mint: Pubkey,
    token_b_mint: Pubkey,
    token_a_vault: Pubkey,
    token_b_vault: Pubkey,
    payer_token_a: Pubkey,
    payer_token_b: Pubkey,
    token_a_program: Pubkey,
    token_b_program: Pubkey,
    liquidity: int,
    sqrt_price: int,
    activation_point: Optional[int] = None,
    remaining_accounts: Sequence[AccountMeta] = (),
) -> Instruction:
    """initialize_pool(liquidity: u128, sqrt_price: u128, activation_point: Option<u64>)"""
    data = bytearray(DISCRIMINATORS["initialize_pool"])
    data.extend(_u128(liquidity))
    data.extend(_u128(sqrt_price))
    if activation_point is None:
        data.append(0)
    else:
        data.append(1)
        data.extend(struct.pack("<Q", activation_point))

    accounts = [
        _ro(creator),                                                           # 0: creator
        AccountMeta(position_nft_mint, is_signer=True, is_writable=True),       # 1: position_nft_mint
        _w(position_nft_account),                                               # 2: position_nft_account
        AccountMeta(payer, is_signer=True, is_writable=True),                   # 3: payer
        _ro(config),                                                            # 4: config
        _ro(pool_authority),                                                    # 5: pool_authority
        _w(pool),                                                               # 6: pool
        _w(position),                                                           # 7: position
        _ro(token_a_mint),                                                      # 8: token_a_mint
        _ro(token_b_mint),                                                      # 9: token_b_mint
        _w(token_a_vault),                                                      # 10: token_a_vault
        _w(token_b_vault),                                                      # 11: token_b_vault
        _w(payer_token_a),                                                      # 12: payer_token_a
        _w(payer_token_b),                                                      # 13: payer_token_b
        _ro(token_a_program),                                                   # 14: token_a_program
        _ro(token_b_program),                                                   # 15: token_b_program
        _ro(Pubkey.from_string(TOKEN_2022_PROGRAM_ID)),                         # 16: token_2022_program
        _ro(Pubkey.from_string(SYSTEM_PROGRAM_ID)),                             # 17: system_program
    ] + _event_cpi_accounts(program_id) + list(remaining_accounts)

    return Instruction(program_id, bytes(data), accounts)


def build_create_position(
    program_id: Pubkey,
    owner: Pubkey,
    position_nft_mint: Pubkey,
    position_nft_account: Pubkey,
    pool: Pubkey,
    position: Pubkey,
    pool_authority: Pubkey,
    payer: Pubkey,
) -> Instruction:
    accounts = [
        _ro(owner),                                                             # 0: owner
        AccountMeta(position_nft_mint, is_signer=True, is_writable=True),       # 1: position_nft_mint
        _w(position_nft_account),                                               # 2: position_nft_account
        _w(pool),                                                               # 3: pool
        _w(position),                                                           # 4: position
        _ro(pool_authority),                                                    # 5: pool_authority
        AccountMeta(payer, is_signer=True, is_writable=True),                   # 6: payer
        _ro(Pubkey.from_string(TOKEN_2022_PROGRAM_ID)),                         # 7: token_program
        _ro(Pubkey.from_string(SYSTEM_PROGRAM_ID)),                             # 8: system_program
    ] + _event_cpi_accounts(program_id)

    return Instruction(program_id, DISCRIMINATORS["create_position"], accounts)


def build_add_liquidity(
    program_id: Pubkey,
    pool: Pubkey,
    position: Pubkey,
    token_a_account: Pubkey,
    token_b_account: Pubkey,
    token_a_vault: Pubkey,
    token_b_vault: Pubkey,
    token_a_mint: Pubkey,
    token_b_mint: Pubkey,
    position_nft_account: Pubkey,
    owner: Pubkey,
    token_a_program: Pubkey,
    token_b_program: Pubkey,
    liquidity_delta: int,
    token_a_amount_threshold: int,
    token_b_amount_threshold: int,
    remaining_accounts: Sequence[AccountMeta] = (),
) -> Instruction:
    """add_liquidity(liquidity_delta: u128, token_a_amount_threshold: u64, token_b_amount_threshold: u64)"""
    data = bytearray(DISCRIMINATORS["add_liquidity"])
    data.extend(_u128(liquidity_delta))
    data.extend(struct.pack("<QQ", token_a_amount_threshold, token_b_amount_threshold))

    accounts = [
        _w(pool),                                                   # 0: pool
        _w(position),                                               # 1: position
        _w(token_a_account),                                        # 2: token_a_account
        _w(token_b_account),                                        # 3: token_b_account
        _w(token_a_vault),                                          # 4: token_a_vault
        _w(token_b_vault),                                          # 5: token_b_vault
        _ro(token_a_mint),                                          # 6: token_a_mint
        _ro(token_b_mint),                                          # 7: token_b_mint
        _ro(position_nft_account),                                  # 8: position_nft_account
        AccountMeta(owner, is_signer=True, is_writable=False),      # 9: owner
        _ro(token_a_program),                                       # 10: token_a_program
        _ro(token_b_program),                                       # 11: token_b_program
    ] + _event_cpi_accounts(program_id) + list(remaining_accounts)

    return Instruction(program_id, bytes(data), accounts)


def build_swap(
    program_id: Pubkey,
    pool_authority: Pubkey,
    pool: Pubkey,
    input_token_account: Pubkey,
    output_token_account: Pubkey,
    token_a_vault: Pubkey,
    token_b_vault: Pubkey,
    token_a_mint: Pubkey,
    token_b_mint: Pubkey,
    payer: Pubkey,
    token_a_program: Pubkey,
    token_b_program: Pubkey,
    amount_in: int,
    minimum_amount_out: int,
    referral_token_account: Optional[Pubkey] = None,
    hook_registry: Optional[Pubkey] = None,
    remaining_accounts: Sequence[AccountMeta] = (),
) -> Instruction:
    """swap(amount_in: u64, minimum_amount_out: u64)"""
    data = bytearray(DISCRIMINATORS["swap"])
    data.extend(struct.pack("<QQ", amount_in, minimum_amount_out))

    accounts = [
        _ro(pool_authority),                                        # 0: pool_authority
        _w(pool),                                                   # 1: pool
        _w(input_token_account),                                    # 2: input_token_account
        _w(output_token_account),                                   # 3: output_token_account
        _w(token_a_vault),                                          # 4: token_a_vault
        _w(token_b_vault),                                          # 5: token_b_vault
        _ro(token_a_mint),                                          # 6: token_a_mint
        _ro(token_b_mint),                                          # 7: token_b_mint
        AccountMeta(payer, is_signer=True, is_writable=False),      # 8: payer
        _ro(token_a_program),                                       # 9: token_a_program
        _ro(token_b_program),                                       # 10: token_b_program
        # 11: referral_token_account (optional)
        _w(referral_token_account) if referral_token_account else _ro(program_id),
        # 12: hook_registry (optional)
        _ro(hook_registry) if hook_registry else _ro(program_id),
    ] + _event_cpi_accounts(program_id) + list(remaining_accounts)

    return Instruction(program_id, bytes(data), accounts)
