import logging
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Mapping

from nethermind.whirlpool.math.bit_math import sub_underflow_u128
from nethermind.whirlpool.math.constants import PROTOCOL_FEE_RATE_MUL_VALUE, U128_MAX
from nethermind.whirlpool.math.price_math import sqrt_price_x64_to_tick_index, tick_index_to_sqrt_price_x64
from nethermind.whirlpool.math.swap_math import compute_swap_step
from nethermind.whirlpool.ticks.tick_array_sequence import TickArraySequence
from nethermind.whirlpool.types import Tick, Whirlpool

from .collect_quotes import get_reward_growths_global

root_logger = logging.getLogger("nethermind")
logger = root_logger.getChild("whirlpool").getChild("swap")


@dataclass(slots=True)
class SwapState:
    """Running state of a swap simulation"""

    amount_remaining: int
    amount_calculated: int
    sqrt_price: int
    tick_index: int
    liquidity: int
    fee_growth_global_input: int
    protocol_fee: int = 0
    total_fee_amount: int = 0


@dataclass(frozen=True, slots=True)
class SwapResult:
    """
    Outcome of a simulated swap, including the pool state the on-chain program would write.

    ``crossed_ticks`` maps the index of every initialized tick the swap crossed to its updated copy, with
    outside growths flipped.  Supplied tick arrays are never modified.  Reward growth is advanced to the
    swap timestamp before any tick is crossed, and the advanced growths are returned with the timestamp
    they are valid at.
    """

    amount_a: int
    amount_b: int
    next_tick_index: int
    next_sqrt_price: int
    next_liquidity: int
    total_fee_amount: int
    protocol_fee: int
    next_fee_growth_global_a: int
    next_fee_growth_global_b: int
    next_reward_growths_global: tuple[int, ...]
    next_reward_last_updated_timestamp: int
    crossed_ticks: Mapping[int, Tick]


def compute_swap(
    whirlpool: Whirlpool,
    tick_sequence: TickArraySequence,
    token_amount: int,
    sqrt_price_limit: int,
    amount_specified_is_input: bool,
    a_to_b: bool,
    time_stamp_in_seconds: int | None = None,
) -> SwapResult:
    """
    Steps a swap through the supplied tick arrays until the specified amount is exhausted or the sqrt price
    limit is reached.  Mirrors the on-chain swap loop, including protocol fee extraction, fee growth
    accrual and tick crossing.

    :param whirlpool: pool snapshot
    :param tick_sequence: tick arrays in swap direction, starting with the array containing the current tick
    :param token_amount: amount of the specified token
    :param sqrt_price_limit: swap stops once the price reaches this Q64.64 sqrt price
    :param amount_specified_is_input: ``token_amount`` is the input amount
    :param a_to_b: swap token A for token B
    :param time_stamp_in_seconds: block time of the swap.  Reward growth is advanced to it before crossing
        ticks.  If not provided, the stored reward growths are used
    :return: SwapResult
    """
    logger.debug(f"------ Swapping Token {'A' if a_to_b else 'B'} for Token {'B' if a_to_b else 'A'} -------")
    logger.debug(f"Swap Amount: {token_amount}\tExact Input: {amount_specified_is_input}")
    logger.debug(f"Sqrt Price Limit: {sqrt_price_limit}\tCurrent Sqrt Price: {whirlpool.sqrt_price}")

    state = SwapState(
        amount_remaining=token_amount,
        amount_calculated=0,
        sqrt_price=whirlpool.sqrt_price,
        tick_index=whirlpool.tick_current_index,
        liquidity=whirlpool.liquidity,
        fee_growth_global_input=whirlpool.fee_growth_global_a if a_to_b else whirlpool.fee_growth_global_b,
    )
    reward_growths_global = get_reward_growths_global(whirlpool, time_stamp_in_seconds)
    crossed_ticks: dict[int, Tick] = {}

    while state.amount_remaining > 0 and sqrt_price_limit != state.sqrt_price:
        logger.debug("----- Starting Swap Step -----")
        logger.debug(f"Active Liquidity: {state.liquidity}\tCurrent Tick: {state.tick_index}")

        next_tick_index, _ = tick_sequence.find_next_initialized_tick_index(state.tick_index)

        next_tick_price = tick_index_to_sqrt_price_x64(next_tick_index)
        target_sqrt_price = max(sqrt_price_limit, next_tick_price) if a_to_b else min(sqrt_price_limit, next_tick_price)

        step = compute_swap_step(
            state.amount_remaining,
            whirlpool.fee_rate,
            state.liquidity,
            state.sqrt_price,
            target_sqrt_price,
            amount_specified_is_input,
            a_to_b,
        )
        logger.debug(
            f"Computed Step -- amount_in: {step.amount_in}  amount_out: {step.amount_out}  "
            f"fee_amount: {step.fee_amount}  next_sqrt_price: {step.next_sqrt_price}"
        )

        state.total_fee_amount += step.fee_amount

        if amount_specified_is_input:
            state.amount_remaining -= step.amount_in + step.fee_amount
            state.amount_calculated += step.amount_out
        else:
            state.amount_remaining -= step.amount_out
            state.amount_calculated += step.amount_in + step.fee_amount

        _accrue_fees(state, step.fee_amount, whirlpool.protocol_fee_rate)

        if step.next_sqrt_price == next_tick_price:
            next_tick = tick_sequence.get_tick(next_tick_index)
            if next_tick.initialized:
                crossed_tick = crossed_ticks.get(next_tick_index, next_tick)
                crossed_ticks[next_tick_index] = _cross_tick(
                    crossed_tick,
                    state.fee_growth_global_input if a_to_b else whirlpool.fee_growth_global_a,
                    whirlpool.fee_growth_global_b if a_to_b else state.fee_growth_global_input,
                    reward_growths_global,
                )
                state.liquidity = calculate_next_liquidity(next_tick.liquidity_net, state.liquidity, a_to_b)
                logger.debug(f"Crossed Tick {next_tick_index}.  Liquidity now {state.liquidity}")

            state.tick_index = next_tick_index - 1 if a_to_b else next_tick_index
        else:
            state.tick_index = sqrt_price_x64_to_tick_index(step.next_sqrt_price)

        state.sqrt_price = step.next_sqrt_price

    amount_a, amount_b = _calculate_est_tokens(
        token_amount,
        state.amount_remaining,
        state.amount_calculated,
        a_to_b,
        amount_specified_is_input,
    )

    logger.debug("--- Swap Complete ---")
    logger.debug(f"Token A Delta: {amount_a} \t Token B Delta: {amount_b}")
    logger.debug(f"Current Tick: {state.tick_index}\tCurrent Sqrt Price: {state.sqrt_price}")

    return SwapResult(
        amount_a=amount_a,
        amount_b=amount_b,
        next_tick_index=state.tick_index,
        next_sqrt_price=state.sqrt_price,
        next_liquidity=state.liquidity,
        total_fee_amount=state.total_fee_amount,
        protocol_fee=state.protocol_fee,
        next_fee_growth_global_a=state.fee_growth_global_input if a_to_b else whirlpool.fee_growth_global_a,
        next_fee_growth_global_b=whirlpool.fee_growth_global_b if a_to_b else state.fee_growth_global_input,
        next_reward_growths_global=tuple(reward_growths_global),
        next_reward_last_updated_timestamp=(
            whirlpool.reward_last_updated_timestamp
            if time_stamp_in_seconds is None
            else max(time_stamp_in_seconds, whirlpool.reward_last_updated_timestamp)
        ),
        crossed_ticks=MappingProxyType(crossed_ticks),
    )


def _accrue_fees(state: SwapState, fee_amount: int, protocol_fee_rate: int):
    global_fee = fee_amount
    if protocol_fee_rate > 0:
        protocol_fee_delta = global_fee * protocol_fee_rate // PROTOCOL_FEE_RATE_MUL_VALUE
        global_fee -= protocol_fee_delta
        state.protocol_fee += protocol_fee_delta

    if state.liquidity > 0:
        # fee growth counters wrap on-chain
        state.fee_growth_global_input = (state.fee_growth_global_input + (global_fee << 64) // state.liquidity) & U128_MAX


def _cross_tick(
    tick: Tick,
    fee_growth_global_a: int,
    fee_growth_global_b: int,
    reward_growths_global: list[int],
) -> Tick:
    return replace(
        tick,
        fee_growth_outside_a=sub_underflow_u128(fee_growth_global_a, tick.fee_growth_outside_a),
        fee_growth_outside_b=sub_underflow_u128(fee_growth_global_b, tick.fee_growth_outside_b),
        reward_growths_outside=tuple(
            sub_underflow_u128(global_growth, outside)
            for global_growth, outside in zip(reward_growths_global, tick.reward_growths_outside)
        ),
    )


def calculate_next_liquidity(tick_net_liquidity: int, current_liquidity: int, a_to_b: bool) -> int:
    """Crossing a tick right to left removes its net liquidity, crossing left to right adds it"""
    return current_liquidity - tick_net_liquidity if a_to_b else current_liquidity + tick_net_liquidity


def _calculate_est_tokens(
    amount: int,
    amount_remaining: int,
    amount_calculated: int,
    a_to_b: bool,
    amount_specified_is_input: bool,
) -> tuple[int, int]:
    if a_to_b == amount_specified_is_input:
        return amount - amount_remaining, amount_calculated
    return amount_calculated, amount - amount_remaining
