from dataclasses import dataclass

from .bit_math import mul_div, mul_div_round_up
from .constants import FEE_RATE_MUL_VALUE
from .token_math import get_amount_delta_a, get_amount_delta_b, get_next_sqrt_price


@dataclass(slots=True)
class SwapStep:
    """Result of swapping within a single stretch of constant liquidity"""

    amount_in: int
    amount_out: int
    next_sqrt_price: int
    fee_amount: int


def compute_swap_step(
    amount_remaining: int,
    fee_rate: int,
    current_liquidity: int,
    current_sqrt_price: int,
    target_sqrt_price: int,
    amount_specified_is_input: bool,
    a_to_b: bool,
) -> SwapStep:
    """
    Computes the amounts swapped moving from the current sqrt price toward the target sqrt price.
    For exact input swaps, the fee is removed from the remaining amount before repricing, and if the
    target is not reached the entire remainder not used as input is taken as fee.

    :param amount_remaining: amount of the specified token left to trade
    :param fee_rate: pool fee rate in hundredths of a basis point (3000 = 0.3%)
    :param current_liquidity: active liquidity
    :param current_sqrt_price: Q64.64 sqrt price before the step
    :param target_sqrt_price: next initialized tick price or price limit, whichever comes first
    :param amount_specified_is_input: ``amount_remaining`` is the input token
    :param a_to_b: direction of the swap
    """
    amount_fixed_delta = get_amount_fixed_delta(
        current_sqrt_price,
        target_sqrt_price,
        current_liquidity,
        amount_specified_is_input,
        a_to_b,
    )

    amount_calc = amount_remaining
    if amount_specified_is_input:
        amount_calc = mul_div(amount_remaining, FEE_RATE_MUL_VALUE - fee_rate, FEE_RATE_MUL_VALUE, 128)

    if amount_calc >= amount_fixed_delta:
        next_sqrt_price = target_sqrt_price
    else:
        next_sqrt_price = get_next_sqrt_price(
            current_sqrt_price,
            current_liquidity,
            amount_calc,
            amount_specified_is_input,
            a_to_b,
        )

    is_max_swap = next_sqrt_price == target_sqrt_price

    amount_unfixed_delta = get_amount_unfixed_delta(
        current_sqrt_price,
        next_sqrt_price,
        current_liquidity,
        amount_specified_is_input,
        a_to_b,
    )

    if not is_max_swap:
        amount_fixed_delta = get_amount_fixed_delta(
            current_sqrt_price,
            next_sqrt_price,
            current_liquidity,
            amount_specified_is_input,
            a_to_b,
        )

    amount_in = amount_fixed_delta if amount_specified_is_input else amount_unfixed_delta
    amount_out = amount_unfixed_delta if amount_specified_is_input else amount_fixed_delta

    if not amount_specified_is_input and amount_out > amount_remaining:
        amount_out = amount_remaining

    if amount_specified_is_input and not is_max_swap:
        fee_amount = amount_remaining - amount_in
    else:
        fee_amount = mul_div_round_up(amount_in, fee_rate, FEE_RATE_MUL_VALUE - fee_rate, 128)

    return SwapStep(
        amount_in=amount_in,
        amount_out=amount_out,
        next_sqrt_price=next_sqrt_price,
        fee_amount=fee_amount,
    )


def get_amount_fixed_delta(
    current_sqrt_price: int,
    target_sqrt_price: int,
    current_liquidity: int,
    amount_specified_is_input: bool,
    a_to_b: bool,
) -> int:
    """Delta of the token the caller specified, rounded in the pool's favor"""
    if a_to_b == amount_specified_is_input:
        return get_amount_delta_a(current_sqrt_price, target_sqrt_price, current_liquidity, amount_specified_is_input)
    return get_amount_delta_b(current_sqrt_price, target_sqrt_price, current_liquidity, amount_specified_is_input)


def get_amount_unfixed_delta(
    current_sqrt_price: int,
    target_sqrt_price: int,
    current_liquidity: int,
    amount_specified_is_input: bool,
    a_to_b: bool,
) -> int:
    """
    Delta of the other token.  Output amounts round down and input amounts round up, so the
    rounding flag is the inverse of ``amount_specified_is_input``
    """
    if a_to_b == amount_specified_is_input:
        return get_amount_delta_b(
            current_sqrt_price, target_sqrt_price, current_liquidity, not amount_specified_is_input
        )
    return get_amount_delta_a(current_sqrt_price, target_sqrt_price, current_liquidity, not amount_specified_is_input)
