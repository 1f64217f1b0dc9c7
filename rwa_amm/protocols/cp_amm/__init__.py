"""
Constant-product AMM with token badge and transfer hook support
"""

from .constants import (
    DISCRIMINATORS,
    ACCOUNT_DISCRIMINATORS,
    MIN_SQRT_PRICE,
    MAX_SQRT_PRICE,
    MIN_LP_AMOUNT,
)
from .instructions import (
    build_create_config,
    build_create_token_badge,
    build_initialize_pool,
    build_create_position,
    build_add_liquidity,
    build_swap,
)
from .pool_parser import parse_pool_state, parse_position

__all__ = [
    "DISCRIMINATORS",
    "ACCOUNT_DISCRIMINATORS",
    "MIN_SQRT_PRICE",
    "MAX_SQRT_PRICE",
    "MIN_LP_AMOUNT",
    "build_create_config",
    "build_create_token_badge",
    "build_initialize_pool",
    "build_create_position",
    "build_add_liquidity",
    "build_swap",
    "parse_pool_state",
    "parse_position",
]
