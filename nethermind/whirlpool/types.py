from dataclasses import dataclass, field
from enum import Enum

from nethermind.whirlpool.math.constants import DEFAULT_PUBLIC_KEY, NUM_REWARDS, TICK_ARRAY_SIZE


class SwapDirection(Enum):
    a_to_b = "a_to_b"
    b_to_a = "b_to_a"


class TokenType(Enum):
    token_a = "token_a"
    token_b = "token_b"


class PositionStatus(Enum):
    """Location of the current pool price relative to a position range"""

    below_range = "below_range"
    in_range = "in_range"
    above_range = "above_range"


class TickSearchDirection(Enum):
    left = "left"
    right = "right"


@dataclass(frozen=True, slots=True)
class Tick:
    """
    Snapshot of a single tick.  Growth values are Q64.64 u128 counters that are allowed to wrap,
    and are only meaningful relative to each other.
    """

    initialized: bool = False
    liquidity_net: int = 0
    liquidity_gross: int = 0
    fee_growth_outside_a: int = 0
    fee_growth_outside_b: int = 0
    reward_growths_outside: tuple[int, ...] = (0,) * NUM_REWARDS

    @classmethod
    def uninitialized(cls) -> "Tick":
        return cls()


@dataclass(frozen=True, slots=True)
class TickArray:
    """88 consecutive initializable ticks, anchored at ``start_tick_index``"""

    start_tick_index: int
    ticks: tuple[Tick, ...]
    whirlpool: str = DEFAULT_PUBLIC_KEY

    @classmethod
    def empty(cls, start_tick_index: int, whirlpool: str = DEFAULT_PUBLIC_KEY) -> "TickArray":
        return cls(
            start_tick_index=start_tick_index,
            ticks=tuple(Tick.uninitialized() for _ in range(TICK_ARRAY_SIZE)),
            whirlpool=whirlpool,
        )


@dataclass(frozen=True, slots=True)
class TickArrayContainer:
    """Tick array data paired with its account address.  ``data`` is None for arrays that are not initialized"""

    address: str
    data: TickArray | None


@dataclass(frozen=True, slots=True)
class WhirlpoolRewardInfo:
    mint: str = DEFAULT_PUBLIC_KEY
    vault: str = DEFAULT_PUBLIC_KEY
    authority: str = DEFAULT_PUBLIC_KEY
    emissions_per_second_x64: int = 0
    growth_global_x64: int = 0


@dataclass(frozen=True, slots=True)
class Whirlpool:
    """
    Snapshot of a pool account.

    ``sqrt_price`` is a Q64.64 integer, ``fee_rate`` is in hundredths of a basis point
    (3000 = 0.3%) and ``protocol_fee_rate`` is in basis points of the fee (300 = 3% of fees).
    """

    tick_spacing: int
    fee_rate: int
    protocol_fee_rate: int
    liquidity: int
    sqrt_price: int
    tick_current_index: int
    token_mint_a: str = DEFAULT_PUBLIC_KEY
    token_mint_b: str = DEFAULT_PUBLIC_KEY
    token_vault_a: str = DEFAULT_PUBLIC_KEY
    token_vault_b: str = DEFAULT_PUBLIC_KEY
    whirlpools_config: str = DEFAULT_PUBLIC_KEY
    protocol_fee_owed_a: int = 0
    protocol_fee_owed_b: int = 0
    fee_growth_global_a: int = 0
    fee_growth_global_b: int = 0
    reward_last_updated_timestamp: int = 0
    reward_infos: tuple[WhirlpoolRewardInfo, ...] = field(
        default_factory=lambda: tuple(WhirlpoolRewardInfo() for _ in range(NUM_REWARDS))
    )


@dataclass(frozen=True, slots=True)
class PositionRewardInfo:
    growth_inside_checkpoint: int = 0
    amount_owed: int = 0


@dataclass(frozen=True, slots=True)
class Position:
    """Liquidity position spanning [tick_lower_index, tick_upper_index)"""

    tick_lower_index: int
    tick_upper_index: int
    liquidity: int = 0
    whirlpool: str = DEFAULT_PUBLIC_KEY
    position_mint: str = DEFAULT_PUBLIC_KEY
    fee_growth_checkpoint_a: int = 0
    fee_owed_a: int = 0
    fee_growth_checkpoint_b: int = 0
    fee_owed_b: int = 0
    reward_infos: tuple[PositionRewardInfo, ...] = field(
        default_factory=lambda: tuple(PositionRewardInfo() for _ in range(NUM_REWARDS))
    )


@dataclass(frozen=True, slots=True)
class TokenAmounts:
    token_a: int
    token_b: int
