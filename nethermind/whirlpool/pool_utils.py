from nethermind.whirlpool.exceptions import TickError, TickErrorCode
from nethermind.whirlpool.math.constants import (
    DEFAULT_PUBLIC_KEY,
    FEE_RATE_MUL_VALUE,
    PROTOCOL_FEE_RATE_MUL_VALUE,
)
from nethermind.whirlpool.math.percentage import Percentage
from nethermind.whirlpool.math.price_math import tick_index_to_sqrt_price_x64
from nethermind.whirlpool.positions import (
    check_liquidity,
    check_token_amount,
    get_token_a_from_liquidity,
    get_token_b_from_liquidity,
)
from nethermind.whirlpool.types import (
    SwapDirection,
    TokenAmounts,
    TokenType,
    Whirlpool,
    WhirlpoolRewardInfo,
)

# Mints that are preferred as the quote token of a pair.  Higher priority wins
QUOTE_TOKEN_PRIORITIES = {
    "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB": 100,  # USDT
    "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v": 90,  # USDC
    "USDH1SM1ojwWUga67PGrgFWUHibbjqMvuMaDkRJTgkX": 80,  # USDH
    "So11111111111111111111111111111111111111112": 70,  # wSOL
    "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So": 60,  # mSOL
    "7dHbWXmci3dT8UFYWYZweBLXgycu7Y3iL6trKn1Y7ARj": 50,  # stSOL
}
DEFAULT_QUOTE_PRIORITY = 0


def is_reward_initialized(reward_info: WhirlpoolRewardInfo) -> bool:
    return reward_info.mint != DEFAULT_PUBLIC_KEY and reward_info.vault != DEFAULT_PUBLIC_KEY


def get_token_type(whirlpool: Whirlpool, mint: str) -> TokenType | None:
    if whirlpool.token_mint_a == mint:
        return TokenType.token_a
    if whirlpool.token_mint_b == mint:
        return TokenType.token_b
    return None


def get_swap_direction(whirlpool: Whirlpool, swap_token_mint: str, swap_token_is_input: bool) -> SwapDirection | None:
    """
    Direction of a swap specified by one of its tokens.

    :param whirlpool: pool snapshot
    :param swap_token_mint: mint of the token whose amount is specified
    :param swap_token_is_input: the specified token is sold to the pool
    :return: swap direction, or None if the mint is not part of the pool
    """
    token_type = get_token_type(whirlpool, swap_token_mint)
    if token_type is None:
        return None
    return SwapDirection.a_to_b if (token_type == TokenType.token_a) == swap_token_is_input else SwapDirection.b_to_a


def get_fee_rate(fee_rate: int) -> Percentage:
    """Fee rate is stored in hundredths of a basis point"""
    return Percentage(fee_rate, FEE_RATE_MUL_VALUE)


def get_protocol_fee_rate(protocol_fee_rate: int) -> Percentage:
    """Protocol fee rate is stored in basis points"""
    return Percentage(protocol_fee_rate, PROTOCOL_FEE_RATE_MUL_VALUE)


def estimate_liquidity_for_token_a(sqrt_price_1: int, sqrt_price_2: int, token_amount: int) -> int:
    lower, upper = min(sqrt_price_1, sqrt_price_2), max(sqrt_price_1, sqrt_price_2)
    return check_liquidity(((check_token_amount(token_amount) * upper * lower) >> 64) // (upper - lower))


def estimate_liquidity_for_token_b(sqrt_price_1: int, sqrt_price_2: int, token_amount: int) -> int:
    lower, upper = min(sqrt_price_1, sqrt_price_2), max(sqrt_price_1, sqrt_price_2)
    return check_liquidity((check_token_amount(token_amount) << 64) // (upper - lower))


def estimate_liquidity_from_token_amounts(
    current_tick: int,
    lower_tick: int,
    upper_tick: int,
    token_amounts: TokenAmounts,
) -> int:
    """
    Largest liquidity that can be provided over [lower_tick, upper_tick) without exceeding either
    token amount.

    :param current_tick: current pool tick
    :param lower_tick: lower tick of the range
    :param upper_tick: upper tick of the range
    :param token_amounts: token amounts available for the deposit
    """
    if upper_tick <= lower_tick:
        raise TickError(
            f"Upper tick {upper_tick} must be above lower tick {lower_tick}",
            TickErrorCode.InvalidTickIndex,
        )

    current_sqrt_price = tick_index_to_sqrt_price_x64(current_tick)
    lower_sqrt_price = tick_index_to_sqrt_price_x64(lower_tick)
    upper_sqrt_price = tick_index_to_sqrt_price_x64(upper_tick)

    if current_tick >= upper_tick:
        return estimate_liquidity_for_token_b(upper_sqrt_price, lower_sqrt_price, token_amounts.token_b)

    # At the lower bound the position holds no token B
    if current_tick <= lower_tick:
        return estimate_liquidity_for_token_a(lower_sqrt_price, upper_sqrt_price, token_amounts.token_a)

    return min(
        estimate_liquidity_for_token_a(current_sqrt_price, upper_sqrt_price, token_amounts.token_a),
        estimate_liquidity_for_token_b(current_sqrt_price, lower_sqrt_price, token_amounts.token_b),
    )


def get_token_amounts_from_liquidity(
    liquidity: int,
    current_sqrt_price: int,
    lower_sqrt_price: int,
    upper_sqrt_price: int,
    round_up: bool,
) -> TokenAmounts:
    """
    Token amounts represented by ``liquidity`` over a price range at the current price.

    * Price below the range: the position is entirely token A
    * Price inside the range: token A above the price, token B below it
    * Price above the range: the position is entirely token B
    """
    if current_sqrt_price < lower_sqrt_price:
        return TokenAmounts(
            token_a=get_token_a_from_liquidity(liquidity, lower_sqrt_price, upper_sqrt_price, round_up),
            token_b=0,
        )

    if current_sqrt_price < upper_sqrt_price:
        return TokenAmounts(
            token_a=get_token_a_from_liquidity(liquidity, current_sqrt_price, upper_sqrt_price, round_up),
            token_b=get_token_b_from_liquidity(liquidity, lower_sqrt_price, current_sqrt_price, round_up),
        )

    return TokenAmounts(
        token_a=0,
        token_b=get_token_b_from_liquidity(liquidity, lower_sqrt_price, upper_sqrt_price, round_up),
    )


def get_quote_token_priority(mint: str) -> int:
    return QUOTE_TOKEN_PRIORITIES.get(mint, DEFAULT_QUOTE_PRIORITY)


def to_base_quote_order(token_mint_a: str, token_mint_b: str) -> tuple[str, str]:
    """Orders a mint pair as (base, quote), preferring stablecoins & SOL as the quote token"""
    if get_quote_token_priority(token_mint_a) > get_quote_token_priority(token_mint_b):
        return token_mint_b, token_mint_a
    return token_mint_a, token_mint_b
