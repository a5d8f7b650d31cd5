from .constants import (
    MAX_SQRT_PRICE,
    MAX_SWAP_TICK_ARRAYS,
    MAX_TICK_INDEX,
    MIN_SQRT_PRICE,
    MIN_TICK_INDEX,
    TICK_ARRAY_SIZE,
    U64_MAX,
)
from .percentage import Percentage
