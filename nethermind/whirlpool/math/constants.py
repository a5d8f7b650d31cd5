MAX_SQRT_PRICE = 79226673515401279992447579055
MIN_SQRT_PRICE = 4295048016

MAX_TICK_INDEX = 443636
MIN_TICK_INDEX = -443636

TICK_ARRAY_SIZE = 88
MAX_SWAP_TICK_ARRAYS = 3
NUM_REWARDS = 3

FEE_RATE_MUL_VALUE = 1_000_000
PROTOCOL_FEE_RATE_MUL_VALUE = 10_000

Q64 = 2**64
U64_MAX = 2**64 - 1
U128_MAX = 2**128 - 1
U256_MAX = 2**256 - 1

DEFAULT_PUBLIC_KEY = "11111111111111111111111111111111"

# Tick spacings of the standard fee tiers
TICK_SPACING_STABLE = 8
TICK_SPACING_STANDARD = 128
