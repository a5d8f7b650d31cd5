"""
Applies quotes to snapshots, producing the state the on-chain program would write.

These are what-if helpers used to chain quotes (swap, then quote fees on the resulting state).  They return
new snapshots and never modify their inputs.  Execution on-chain remains the source of truth.
"""
import logging
from dataclasses import replace

from nethermind.whirlpool.exceptions import QuoteError, QuoteErrorCode, TickError, TickErrorCode
from nethermind.whirlpool.math.bit_math import sub_underflow_u128
from nethermind.whirlpool.math.constants import NUM_REWARDS, U128_MAX
from nethermind.whirlpool.pool_utils import is_reward_initialized
from nethermind.whirlpool.quotes.collect_quotes import get_reward_growths_global
from nethermind.whirlpool.quotes.swap_quote import SwapQuote
from nethermind.whirlpool.ticks.tick_utils import (
    get_start_tick_index,
    get_tick_array_start_indices_for_swap,
    tick_index_to_inner_index,
)
from nethermind.whirlpool.types import (
    Position,
    PositionRewardInfo,
    Tick,
    TickArray,
    TickArrayContainer,
    Whirlpool,
)

root_logger = logging.getLogger("nethermind")
logger = root_logger.getChild("whirlpool").getChild("simulation")

TickArrays = dict[int, TickArray]


def tick_array_key(start_tick_index: int) -> str:
    """Placeholder account key for tick arrays built in memory"""
    return f"tick-array-{start_tick_index}"


def get_tick(tick_arrays: TickArrays, tick_index: int, tick_spacing: int) -> Tick:
    start_tick_index = get_start_tick_index(tick_index, tick_spacing)
    tick_array = tick_arrays.get(start_tick_index)
    if tick_array is None:
        raise TickError(
            f"Tick array starting at {start_tick_index} for tick {tick_index} is not loaded",
            TickErrorCode.TickNotFound,
        )
    return tick_array.ticks[tick_index_to_inner_index(start_tick_index, tick_index, tick_spacing)]


def set_tick(tick_arrays: TickArrays, tick_index: int, tick_spacing: int, tick: Tick) -> TickArrays:
    """Returns a copy of ``tick_arrays`` with ``tick`` stored at ``tick_index``"""
    start_tick_index = get_start_tick_index(tick_index, tick_spacing)
    tick_array = tick_arrays.get(start_tick_index) or TickArray.empty(start_tick_index)

    ticks = list(tick_array.ticks)
    ticks[tick_index_to_inner_index(start_tick_index, tick_index, tick_spacing)] = tick
    return {**tick_arrays, start_tick_index: replace(tick_array, ticks=tuple(ticks))}


def get_swap_tick_arrays(
    whirlpool: Whirlpool,
    tick_arrays: TickArrays,
    a_to_b: bool,
    addresses: dict[int, str] | None = None,
) -> list[TickArrayContainer]:
    """
    Tick array containers a swap from the current tick needs, in traversal order.  Arrays missing
    from ``tick_arrays`` are returned with ``data=None``.

    :param addresses: account addresses keyed by start tick index.  Arrays without an address are keyed
        with ``tick_array_key``
    """
    addresses = addresses or {}
    return [
        TickArrayContainer(address=addresses.get(start, tick_array_key(start)), data=tick_arrays.get(start))
        for start in get_tick_array_start_indices_for_swap(whirlpool.tick_current_index, whirlpool.tick_spacing, a_to_b)
    ]


# -------------------------------------------------------
#    Swaps
# -------------------------------------------------------
def apply_swap(whirlpool: Whirlpool, tick_arrays: TickArrays, quote: SwapQuote) -> tuple[Whirlpool, TickArrays]:
    """
    Writes a simulated swap back to the pool & tick arrays: price, tick, liquidity, fee growth, protocol fees,
    and the flipped outside growths of every crossed tick.  Reward growth is written as advanced to the
    timestamp the swap was quoted at.
    """
    swap_result = quote.swap_result
    if swap_result is None:
        raise ValueError("SwapQuote does not carry a swap result")

    for tick_index, tick in swap_result.crossed_ticks.items():
        tick_arrays = set_tick(tick_arrays, tick_index, whirlpool.tick_spacing, tick)

    next_whirlpool = replace(
        whirlpool,
        sqrt_price=swap_result.next_sqrt_price,
        tick_current_index=swap_result.next_tick_index,
        liquidity=swap_result.next_liquidity,
        fee_growth_global_a=swap_result.next_fee_growth_global_a,
        fee_growth_global_b=swap_result.next_fee_growth_global_b,
        protocol_fee_owed_a=whirlpool.protocol_fee_owed_a + (swap_result.protocol_fee if quote.a_to_b else 0),
        protocol_fee_owed_b=whirlpool.protocol_fee_owed_b + (0 if quote.a_to_b else swap_result.protocol_fee),
        reward_infos=tuple(
            replace(reward_info, growth_global_x64=growth)
            for reward_info, growth in zip(whirlpool.reward_infos, swap_result.next_reward_growths_global)
        ),
        reward_last_updated_timestamp=swap_result.next_reward_last_updated_timestamp,
    )
    logger.debug(
        f"Applied swap.  Tick {whirlpool.tick_current_index} -> {next_whirlpool.tick_current_index}, "
        f"crossed {len(swap_result.crossed_ticks)} ticks"
    )
    return next_whirlpool, tick_arrays


# -------------------------------------------------------
#    Liquidity & Position Updates
# -------------------------------------------------------
def _update_reward_infos(whirlpool: Whirlpool, time_stamp_in_seconds: int | None) -> Whirlpool:
    if time_stamp_in_seconds is None:
        return whirlpool

    growths = get_reward_growths_global(whirlpool, time_stamp_in_seconds)
    return replace(
        whirlpool,
        reward_infos=tuple(
            replace(reward_info, growth_global_x64=growth)
            for reward_info, growth in zip(whirlpool.reward_infos, growths)
        ),
        reward_last_updated_timestamp=max(time_stamp_in_seconds, whirlpool.reward_last_updated_timestamp),
    )


def _growths_inside(
    whirlpool: Whirlpool,
    tick_lower_index: int,
    tick_lower: Tick,
    tick_upper_index: int,
    tick_upper: Tick,
) -> tuple[int, int, list[int]]:
    """
    Fee & reward growth inside a range.  By convention all growth before a tick was initialized
    happened below it, so uninitialized ticks count the entire global growth as below.
    """

    def _inside(global_growth: int, lower_outside: int, upper_outside: int) -> int:
        if not tick_lower.initialized:
            below = global_growth
        elif whirlpool.tick_current_index < tick_lower_index:
            below = sub_underflow_u128(global_growth, lower_outside)
        else:
            below = lower_outside

        if not tick_upper.initialized:
            above = 0
        elif whirlpool.tick_current_index < tick_upper_index:
            above = upper_outside
        else:
            above = sub_underflow_u128(global_growth, upper_outside)

        return sub_underflow_u128(sub_underflow_u128(global_growth, below), above)

    fee_inside_a = _inside(whirlpool.fee_growth_global_a, tick_lower.fee_growth_outside_a, tick_upper.fee_growth_outside_a)
    fee_inside_b = _inside(whirlpool.fee_growth_global_b, tick_lower.fee_growth_outside_b, tick_upper.fee_growth_outside_b)

    reward_inside = []
    for idx, reward_info in enumerate(whirlpool.reward_infos):
        if not is_reward_initialized(reward_info):
            reward_inside.append(0)
            continue
        reward_inside.append(
            _inside(
                reward_info.growth_global_x64,
                tick_lower.reward_growths_outside[idx],
                tick_upper.reward_growths_outside[idx],
            )
        )

    return fee_inside_a, fee_inside_b, reward_inside


def _update_position(
    position: Position,
    liquidity_delta: int,
    fee_growth_inside_a: int,
    fee_growth_inside_b: int,
    reward_growths_inside: list[int],
) -> Position:
    fee_delta_a = (sub_underflow_u128(fee_growth_inside_a, position.fee_growth_checkpoint_a) * position.liquidity) >> 64
    fee_delta_b = (sub_underflow_u128(fee_growth_inside_b, position.fee_growth_checkpoint_b) * position.liquidity) >> 64

    reward_infos = []
    for growth_inside, reward_info in zip(reward_growths_inside, position.reward_infos):
        amount_owed_delta = (
            sub_underflow_u128(growth_inside, reward_info.growth_inside_checkpoint) * position.liquidity
        ) >> 64
        reward_infos.append(
            PositionRewardInfo(
                growth_inside_checkpoint=growth_inside,
                amount_owed=reward_info.amount_owed + amount_owed_delta,
            )
        )

    return replace(
        position,
        liquidity=position.liquidity + liquidity_delta,
        fee_growth_checkpoint_a=fee_growth_inside_a,
        fee_owed_a=position.fee_owed_a + fee_delta_a,
        fee_growth_checkpoint_b=fee_growth_inside_b,
        fee_owed_b=position.fee_owed_b + fee_delta_b,
        reward_infos=tuple(reward_infos),
    )


def _update_tick(
    whirlpool: Whirlpool,
    tick: Tick,
    tick_index: int,
    liquidity_delta: int,
    is_upper: bool,
) -> Tick:
    liquidity_gross_before = tick.liquidity_gross
    liquidity_gross_after = liquidity_gross_before + liquidity_delta
    if liquidity_gross_after < 0 or liquidity_gross_after > U128_MAX:
        raise QuoteError(
            f"Tick {tick_index} liquidity {liquidity_gross_before} cannot be changed by {liquidity_delta}",
            QuoteErrorCode.LiquidityExceedsPosition,
        )

    if liquidity_gross_after == 0:
        return Tick.uninitialized()

    if liquidity_gross_before == 0 and whirlpool.tick_current_index >= tick_index:
        # Growth before initialization is attributed below the tick
        tick = replace(
            tick,
            fee_growth_outside_a=whirlpool.fee_growth_global_a,
            fee_growth_outside_b=whirlpool.fee_growth_global_b,
            reward_growths_outside=tuple(
                reward_info.growth_global_x64 if is_reward_initialized(reward_info) else 0
                for reward_info in whirlpool.reward_infos
            ),
        )

    return replace(
        tick,
        initialized=True,
        liquidity_gross=liquidity_gross_after,
        liquidity_net=tick.liquidity_net - liquidity_delta if is_upper else tick.liquidity_net + liquidity_delta,
    )


def modify_liquidity(
    whirlpool: Whirlpool,
    position: Position,
    tick_arrays: TickArrays,
    liquidity_delta: int,
    time_stamp_in_seconds: int | None = None,
) -> tuple[Whirlpool, Position, TickArrays]:
    """
    Adds (positive delta) or removes (negative delta) liquidity from a position, updating boundary ticks,
    pool liquidity and the position's fee & reward checkpoints.

    :param whirlpool: pool snapshot
    :param position: position snapshot
    :param tick_arrays: tick arrays keyed by start tick index
    :param liquidity_delta: signed liquidity change
    :param time_stamp_in_seconds: if given, pool reward growth is advanced to this time first
    """
    if position.liquidity + liquidity_delta < 0:
        raise QuoteError(
            f"Cannot remove {-liquidity_delta} liquidity from a position holding {position.liquidity}",
            QuoteErrorCode.LiquidityExceedsPosition,
        )

    whirlpool = _update_reward_infos(whirlpool, time_stamp_in_seconds)
    tick_spacing = whirlpool.tick_spacing

    tick_lower = get_tick(tick_arrays, position.tick_lower_index, tick_spacing)
    tick_upper = get_tick(tick_arrays, position.tick_upper_index, tick_spacing)

    fee_inside_a, fee_inside_b, reward_inside = _growths_inside(
        whirlpool, position.tick_lower_index, tick_lower, position.tick_upper_index, tick_upper
    )
    next_position = _update_position(position, liquidity_delta, fee_inside_a, fee_inside_b, reward_inside)

    if liquidity_delta != 0:
        tick_arrays = set_tick(
            tick_arrays,
            position.tick_lower_index,
            tick_spacing,
            _update_tick(whirlpool, tick_lower, position.tick_lower_index, liquidity_delta, False),
        )
        tick_arrays = set_tick(
            tick_arrays,
            position.tick_upper_index,
            tick_spacing,
            _update_tick(whirlpool, tick_upper, position.tick_upper_index, liquidity_delta, True),
        )

        if position.tick_lower_index <= whirlpool.tick_current_index < position.tick_upper_index:
            whirlpool = replace(whirlpool, liquidity=whirlpool.liquidity + liquidity_delta)

    logger.debug(
        f"Modified position [{position.tick_lower_index}, {position.tick_upper_index}) liquidity by {liquidity_delta}"
    )
    return whirlpool, next_position, tick_arrays


def apply_increase_liquidity(
    whirlpool: Whirlpool,
    position: Position,
    tick_arrays: TickArrays,
    liquidity_amount: int,
    time_stamp_in_seconds: int | None = None,
) -> tuple[Whirlpool, Position, TickArrays]:
    return modify_liquidity(whirlpool, position, tick_arrays, liquidity_amount, time_stamp_in_seconds)


def apply_decrease_liquidity(
    whirlpool: Whirlpool,
    position: Position,
    tick_arrays: TickArrays,
    liquidity_amount: int,
    time_stamp_in_seconds: int | None = None,
) -> tuple[Whirlpool, Position, TickArrays]:
    return modify_liquidity(whirlpool, position, tick_arrays, -liquidity_amount, time_stamp_in_seconds)


def update_fees_and_rewards(
    whirlpool: Whirlpool,
    position: Position,
    tick_arrays: TickArrays,
    time_stamp_in_seconds: int | None = None,
) -> tuple[Whirlpool, Position]:
    """
    Checkpoints a position's fees & rewards without changing liquidity.  Owed amounts increase, checkpoints
    move to the current growth inside the position.
    """
    if position.liquidity == 0:
        raise QuoteError(
            "Cannot update fees and rewards of a position with zero liquidity",
            QuoteErrorCode.LiquidityExceedsPosition,
        )

    whirlpool, next_position, _ = modify_liquidity(whirlpool, position, tick_arrays, 0, time_stamp_in_seconds)
    return whirlpool, next_position


def apply_collect_fees(position: Position) -> Position:
    """Position after a successful collect fees instruction"""
    return replace(position, fee_owed_a=0, fee_owed_b=0)


def apply_collect_rewards(position: Position, reward_index: int | None = None) -> Position:
    """
    Position after collecting rewards.  Clears the owed amount of ``reward_index``, or of every slot if
    no index is given.
    """
    if reward_index is not None and not 0 <= reward_index < NUM_REWARDS:
        raise ValueError(f"Reward index must be in [0, {NUM_REWARDS}), got {reward_index}")

    return replace(
        position,
        reward_infos=tuple(
            replace(reward_info, amount_owed=0) if reward_index in (None, idx) else reward_info
            for idx, reward_info in enumerate(position.reward_infos)
        ),
    )
