"""
Constant-product AMM Constants
"""

from ..constants import anchor_discriminator

# Anchor discriminators (instructions)
# Computed as sha256("global:<function_name>")[0:8]
DISCRIMINATORS = {
    name: anchor_discriminator(name)
    for name in (
        "create_config",
        "create_token_badge",
        "initialize_pool",
        "create_position",
        "add_liquidity",
        "swap",
    )
}

# Anchor account discriminators (sha256("account:<AccountName>")[0:8])
ACCOUNT_DISCRIMINATORS = {
    "pool": anchor_discriminator("Pool", namespace="account"),
    "position": anchor_discriminator("Position", namespace="account"),
    "token_badge": anchor_discriminator("TokenBadge", namespace="account"),
}

# Price bounds (Q64.64 sqrt price)
MIN_SQRT_PRICE = 4_295_048_016
MAX_SQRT_PRICE = 79_226_673_521_066_979_257_578_248_091
MIN_LP_AMOUNT = 1_844_674_407_370_955_161_600

# Config ids are drawn from [0, CONFIG_ID_RANGE)
CONFIG_ID_RANGE = 1000

# Compute budgets
CREATE_POOL_COMPUTE_UNITS = 800_000
CREATE_POSITION_COMPUTE_UNITS = 400_000
ADD_LIQUIDITY_COMPUTE_UNITS = 800_000
SWAP_BASE_COMPUTE_UNITS = 300_000
# Extra budget per hooked side; both sides add a further surcharge
HOOK_SIDE_COMPUTE_UNITS = 150_000
HOOK_BOTH_SIDES_COMPUTE_UNITS = 100_000

# Pool account field offsets (after the 8-byte discriminator and 160-byte fee struct)
POOL_TOKEN_A_MINT_OFFSET = 168
POOL_LIQUIDITY_OFFSET = 360
POOL_SQRT_MIN_PRICE_OFFSET = 424
POOL_MIN_SIZE = 472
