from nethermind.whirlpool.exceptions import MathError, MathErrorCode, TokenError, TokenErrorCode
from nethermind.whirlpool.math.bit_math import div_round_up_if, is_over_limit, shift_right_round_up
from nethermind.whirlpool.types import PositionStatus


def check_token_amount(amount: int) -> int:
    """Raises ``TokenMaxExceeded`` if ``amount`` does not fit in a u64 token account"""
    if is_over_limit(amount, 64):
        raise TokenError(f"Token amount {amount} larger than u64", TokenErrorCode.TokenMaxExceeded)
    return amount


def check_liquidity(liquidity: int) -> int:
    if is_over_limit(liquidity, 128):
        raise MathError(f"Liquidity {liquidity} larger than u128", MathErrorCode.LiquidityOverflow)
    return liquidity


def get_position_status(tick_current_index: int, tick_lower_index: int, tick_upper_index: int) -> PositionStatus:
    if tick_current_index < tick_lower_index:
        return PositionStatus.below_range
    if tick_current_index < tick_upper_index:
        return PositionStatus.in_range
    return PositionStatus.above_range


def _order_sqrt_prices(sqrt_price_0_x64: int, sqrt_price_1_x64: int) -> tuple[int, int]:
    return (sqrt_price_0_x64, sqrt_price_1_x64) if sqrt_price_0_x64 < sqrt_price_1_x64 else (
        sqrt_price_1_x64,
        sqrt_price_0_x64,
    )


def get_token_a_from_liquidity(
    liquidity: int,
    sqrt_price_0_x64: int,
    sqrt_price_1_x64: int,
    round_up: bool,
) -> int:
    """
    Token A held by ``liquidity`` between two sqrt prices.  Prices may be passed in either order.

    .. math::

        A = \\frac{L (\\sqrt{P_u} - \\sqrt{P_l}) \\cdot 2^{64}}{\\sqrt{P_u} \\sqrt{P_l}}
    """
    lower, upper = _order_sqrt_prices(sqrt_price_0_x64, sqrt_price_1_x64)
    numerator = (check_liquidity(liquidity) * (upper - lower)) << 64
    return check_token_amount(div_round_up_if(numerator, upper * lower, round_up))


def get_token_b_from_liquidity(
    liquidity: int,
    sqrt_price_0_x64: int,
    sqrt_price_1_x64: int,
    round_up: bool,
) -> int:
    """Token B held by ``liquidity`` between two sqrt prices: ``L * (sqrt_upper - sqrt_lower) >> 64``"""
    lower, upper = _order_sqrt_prices(sqrt_price_0_x64, sqrt_price_1_x64)
    result = check_liquidity(liquidity) * (upper - lower)
    return check_token_amount(shift_right_round_up(result) if round_up else result >> 64)


def get_liquidity_from_token_a(
    amount: int,
    sqrt_price_lower_x64: int,
    sqrt_price_upper_x64: int,
    round_up: bool,
) -> int:
    numerator = check_token_amount(amount) * sqrt_price_lower_x64 * sqrt_price_upper_x64
    result = numerator // (sqrt_price_upper_x64 - sqrt_price_lower_x64)
    return check_liquidity(shift_right_round_up(result) if round_up else result >> 64)


def get_liquidity_from_token_b(
    amount: int,
    sqrt_price_lower_x64: int,
    sqrt_price_upper_x64: int,
    round_up: bool,
) -> int:
    return check_liquidity(
        div_round_up_if(check_token_amount(amount) << 64, sqrt_price_upper_x64 - sqrt_price_lower_x64, round_up)
    )
