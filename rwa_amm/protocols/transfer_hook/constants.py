"""
KYC Transfer Hook Constants
"""

from ..constants import anchor_discriminator

# Anchor discriminators (instructions)
# Computed as sha256("global:<function_name>")[0:8]
DISCRIMINATORS = {
    name: anchor_discriminator(name)
    for name in (
        "initialize_extra_account_meta_list",
        "initialize_user_kyc",
        "update_user_kyc",
    )
}

# Anchor account discriminators (sha256("account:<AccountName>")[0:8])
ACCOUNT_DISCRIMINATORS = {
    "user_kyc": anchor_discriminator("UserKYC", namespace="account"),
}

# UserKyc account: discriminator + struct fields
USER_KYC_ACCOUNT_SIZE = 8 + 32 + 1 + 1 + 8 + 1 + 8 + 8 + 8 + 8 + 2 + 2 + 32

MAX_KYC_LEVEL = 3
COUNTRY_CODE_LEN = 2
MAX_STATE_CODE_LEN = 2
MAX_CITY_LEN = 32
