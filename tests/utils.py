from nethermind.whirlpool.math.constants import Q64
from nethermind.whirlpool.simulation import TickArrays, apply_increase_liquidity, set_tick
from nethermind.whirlpool.ticks.tick_utils import get_start_tick_index
from nethermind.whirlpool.types import Position, Tick, TickArray, Whirlpool

MINT_A = "So11111111111111111111111111111111111111112"
MINT_B = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"


def expand_to_decimals(num: int, decimals: int = 6) -> int:
    return (10**decimals) * num


def uint_max(bits: int) -> int:
    return 2**bits - 1


def encode_sqrt_price(sqrt_price: int) -> int:
    """Integer sqrt price to Q64.64"""
    return sqrt_price * Q64


def initialized_tick(liquidity_net: int, liquidity_gross: int | None = None, **kwargs) -> Tick:
    return Tick(
        initialized=True,
        liquidity_net=liquidity_net,
        liquidity_gross=abs(liquidity_net) if liquidity_gross is None else liquidity_gross,
        **kwargs,
    )


def build_tick_array(start_tick_index: int, tick_spacing: int, ticks: dict[int, Tick] | None = None) -> TickArray:
    tick_arrays: TickArrays = {start_tick_index: TickArray.empty(start_tick_index)}
    for tick_index, tick in (ticks or {}).items():
        tick_arrays = set_tick(tick_arrays, tick_index, tick_spacing, tick)
    return tick_arrays[start_tick_index]


def empty_tick_arrays(whirlpool: Whirlpool, *tick_indexes: int) -> TickArrays:
    """Empty tick arrays covering each of the given ticks"""
    return {
        get_start_tick_index(tick, whirlpool.tick_spacing): TickArray.empty(
            get_start_tick_index(tick, whirlpool.tick_spacing)
        )
        for tick in tick_indexes
    }


def open_position(
    whirlpool: Whirlpool,
    tick_arrays: TickArrays,
    tick_lower_index: int,
    tick_upper_index: int,
    liquidity: int,
) -> tuple[Whirlpool, Position, TickArrays]:
    """Opens an empty position and deposits ``liquidity`` into it"""
    position = Position(tick_lower_index=tick_lower_index, tick_upper_index=tick_upper_index)
    return apply_increase_liquidity(whirlpool, position, tick_arrays, liquidity)
