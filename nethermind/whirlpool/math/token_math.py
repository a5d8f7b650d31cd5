from nethermind.whirlpool.exceptions import MathError, MathErrorCode, TokenError, TokenErrorCode

from .bit_math import checked_mul_shift_right, div_round_up, div_round_up_if, is_over_limit, mul
from .constants import MAX_SQRT_PRICE, MIN_SQRT_PRICE, U64_MAX
from .percentage import Percentage


def to_increasing_price_order(sqrt_price_0: int, sqrt_price_1: int) -> tuple[int, int]:
    if sqrt_price_0 > sqrt_price_1:
        return sqrt_price_1, sqrt_price_0
    return sqrt_price_0, sqrt_price_1


def get_amount_delta_a(
    current_sqrt_price: int,
    target_sqrt_price: int,
    current_liquidity: int,
    round_up: bool,
) -> int:
    """
    Amount of token A between two sqrt prices for a given liquidity.

    .. math::

        \\Delta A = \\frac{L (\\sqrt{P_u} - \\sqrt{P_l}) \\cdot 2^{64}}{\\sqrt{P_u} \\sqrt{P_l}}

    :param current_sqrt_price: Q64.64 sqrt price
    :param target_sqrt_price: Q64.64 sqrt price, may be above or below ``current_sqrt_price``
    :param current_liquidity: active liquidity
    :param round_up: round the division up instead of down
    :return: token A amount, guaranteed to fit in u64
    """
    sqrt_price_lower, sqrt_price_upper = to_increasing_price_order(current_sqrt_price, target_sqrt_price)
    sqrt_price_diff = sqrt_price_upper - sqrt_price_lower

    numerator = (current_liquidity * sqrt_price_diff) << 64
    denominator = sqrt_price_lower * sqrt_price_upper

    quotient, remainder = divmod(numerator, denominator)
    result = quotient + 1 if round_up and remainder != 0 else quotient

    if result > U64_MAX:
        raise TokenError(f"Amount delta A {result} larger than u64", TokenErrorCode.TokenMaxExceeded)

    return result


def get_amount_delta_b(
    current_sqrt_price: int,
    target_sqrt_price: int,
    current_liquidity: int,
    round_up: bool,
) -> int:
    """Amount of token B between two sqrt prices: ``L * (sqrt_upper - sqrt_lower) >> 64``"""
    sqrt_price_lower, sqrt_price_upper = to_increasing_price_order(current_sqrt_price, target_sqrt_price)

    result = checked_mul_shift_right(current_liquidity, sqrt_price_upper - sqrt_price_lower, 128, round_up)
    if result > U64_MAX:
        raise TokenError(f"Amount delta B {result} larger than u64", TokenErrorCode.TokenMaxExceeded)

    return result


def get_next_sqrt_price(
    sqrt_price: int,
    current_liquidity: int,
    amount: int,
    amount_specified_is_input: bool,
    a_to_b: bool,
) -> int:
    """
    Sqrt price reached after swapping ``amount`` against ``current_liquidity``.  When the amount is
    denominated in token A the price is rounded up, when denominated in token B it is rounded down, so
    the pool never gives away more than it receives.
    """
    if amount_specified_is_input == a_to_b:
        return get_next_sqrt_price_from_a_round_up(sqrt_price, current_liquidity, amount, amount_specified_is_input)
    return get_next_sqrt_price_from_b_round_down(sqrt_price, current_liquidity, amount, amount_specified_is_input)


def get_next_sqrt_price_from_a_round_up(
    sqrt_price: int,
    current_liquidity: int,
    amount: int,
    amount_specified_is_input: bool,
) -> int:
    if amount == 0:
        return sqrt_price

    product = mul(sqrt_price, amount, 256)
    numerator = mul(current_liquidity, sqrt_price, 256) << 64
    if is_over_limit(numerator, 256):
        raise MathError(
            "get_next_sqrt_price_from_a_round_up - numerator overflow u256",
            MathErrorCode.MultiplicationOverflow,
        )

    liquidity_x64 = current_liquidity << 64
    if not amount_specified_is_input and liquidity_x64 <= product:
        raise MathError(
            "get_next_sqrt_price_from_a_round_up - unable to divide liquidity_x64 by product",
            MathErrorCode.DivideByZero,
        )

    denominator = liquidity_x64 + product if amount_specified_is_input else liquidity_x64 - product
    price = div_round_up(numerator, denominator)

    if price < MIN_SQRT_PRICE:
        raise TokenError(
            f"get_next_sqrt_price_from_a_round_up - price {price} less than min sqrt price",
            TokenErrorCode.TokenMinSubceeded,
        )
    if price > MAX_SQRT_PRICE:
        raise TokenError(
            f"get_next_sqrt_price_from_a_round_up - price {price} greater than max sqrt price",
            TokenErrorCode.TokenMaxExceeded,
        )

    return price


def get_next_sqrt_price_from_b_round_down(
    sqrt_price: int,
    current_liquidity: int,
    amount: int,
    amount_specified_is_input: bool,
) -> int:
    delta = div_round_up_if(amount << 64, current_liquidity, not amount_specified_is_input)

    if amount_specified_is_input:
        return sqrt_price + delta

    if delta > sqrt_price:
        raise TokenError(
            f"get_next_sqrt_price_from_b_round_down - delta {delta} exceeds sqrt price {sqrt_price}",
            TokenErrorCode.TokenMinSubceeded,
        )
    return sqrt_price - delta


def adjust_for_slippage(amount: int, slippage_tolerance: Percentage, adjust_up: bool) -> int:
    """
    Applies a slippage tolerance to a token amount.

    :param amount: estimated token amount
    :param slippage_tolerance: tolerance as a fraction
    :param adjust_up: ``True`` to compute a maximum (amount * (1 + s)), ``False`` for a
        minimum (amount / (1 + s))
    """
    numerator, denominator = slippage_tolerance.numerator, slippage_tolerance.denominator
    if adjust_up:
        return amount * (denominator + numerator) // denominator
    return amount * denominator // (denominator + numerator)
