"""
KYC transfer hook program: instructions and account parsing
"""

from .constants import DISCRIMINATORS, ACCOUNT_DISCRIMINATORS
from .instructions import (
    build_initialize_extra_account_meta_list,
    build_initialize_user_kyc,
    build_update_user_kyc,
)
from .state_parser import parse_user_kyc

__all__ = [
    "DISCRIMINATORS",
    "ACCOUNT_DISCRIMINATORS",
    "build_initialize_extra_account_meta_list",
    "build_initialize_user_kyc",
    "build_update_user_kyc",
    "parse_user_kyc",
]
