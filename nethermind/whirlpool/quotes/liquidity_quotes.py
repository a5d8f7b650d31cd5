from dataclasses import dataclass

from nethermind.whirlpool.exceptions import QuoteError, QuoteErrorCode, TickError, TickErrorCode
from nethermind.whirlpool.math.percentage import Percentage
from nethermind.whirlpool.math.price_math import tick_index_to_sqrt_price_x64
from nethermind.whirlpool.math.token_math import adjust_for_slippage
from nethermind.whirlpool.positions import (
    check_token_amount,
    get_liquidity_from_token_a,
    get_liquidity_from_token_b,
    get_position_status,
    get_token_a_from_liquidity,
    get_token_b_from_liquidity,
)
from nethermind.whirlpool.ticks.tick_utils import check_tick_in_bounds, get_initializable_tick_index
from nethermind.whirlpool.types import Position, PositionStatus, Whirlpool


@dataclass(frozen=True, slots=True)
class IncreaseLiquidityQuoteParams:
    input_token_amount: int
    input_token_mint: str
    token_mint_a: str
    token_mint_b: str
    sqrt_price: int
    tick_current_index: int
    tick_lower_index: int
    tick_upper_index: int
    slippage_tolerance: Percentage


@dataclass(frozen=True, slots=True)
class IncreaseLiquidityQuote:
    """Liquidity to deposit, with the estimated and maximum token amounts the deposit may take"""

    liquidity_amount: int = 0
    token_max_a: int = 0
    token_max_b: int = 0
    token_est_a: int = 0
    token_est_b: int = 0


@dataclass(frozen=True, slots=True)
class DecreaseLiquidityQuoteParams:
    liquidity: int
    sqrt_price: int
    tick_current_index: int
    tick_lower_index: int
    tick_upper_index: int
    slippage_tolerance: Percentage


@dataclass(frozen=True, slots=True)
class DecreaseLiquidityQuote:
    """Liquidity to withdraw, with the estimated and minimum token amounts the withdrawal returns"""

    liquidity_amount: int = 0
    token_min_a: int = 0
    token_min_b: int = 0
    token_est_a: int = 0
    token_est_b: int = 0


def _check_ticks_in_bounds(tick_lower_index: int, tick_upper_index: int, tick_current_index: int):
    for name, tick in (
        ("tick_lower_index", tick_lower_index),
        ("tick_upper_index", tick_upper_index),
        ("tick_current_index", tick_current_index),
    ):
        if not check_tick_in_bounds(tick):
            raise TickError(f"{name} is out of bounds: {tick}", TickErrorCode.InvalidTickIndex)


# -------------------------------------------------------
#    Increase Liquidity
# -------------------------------------------------------
def increase_liquidity_quote_by_input_token(
    input_token_mint: str,
    input_token_amount: int,
    tick_lower: int,
    tick_upper: int,
    slippage_tolerance: Percentage,
    whirlpool: Whirlpool,
) -> IncreaseLiquidityQuote:
    """
    Quotes a deposit specified by the amount of one token.  Tick bounds are rounded onto the pool's
    tick spacing.

    :param input_token_mint: mint of the specified token.  Must be token A or token B of the pool
    :param input_token_amount: raw amount of the specified token
    :param tick_lower: lower tick of the position
    :param tick_upper: upper tick of the position
    :param slippage_tolerance: tolerance applied to the estimated token amounts
    :param whirlpool: pool snapshot
    """
    return increase_liquidity_quote_with_params(
        IncreaseLiquidityQuoteParams(
            input_token_amount=input_token_amount,
            input_token_mint=input_token_mint,
            token_mint_a=whirlpool.token_mint_a,
            token_mint_b=whirlpool.token_mint_b,
            sqrt_price=whirlpool.sqrt_price,
            tick_current_index=whirlpool.tick_current_index,
            tick_lower_index=get_initializable_tick_index(tick_lower, whirlpool.tick_spacing),
            tick_upper_index=get_initializable_tick_index(tick_upper, whirlpool.tick_spacing),
            slippage_tolerance=slippage_tolerance,
        )
    )


def increase_liquidity_quote_with_params(params: IncreaseLiquidityQuoteParams) -> IncreaseLiquidityQuote:
    _check_ticks_in_bounds(params.tick_lower_index, params.tick_upper_index, params.tick_current_index)

    if params.input_token_mint not in (params.token_mint_a, params.token_mint_b):
        raise QuoteError(
            f"Input token mint {params.input_token_mint} does not match any tokens in the provided pool",
            QuoteErrorCode.TokenMintNotInPool,
        )

    match get_position_status(params.tick_current_index, params.tick_lower_index, params.tick_upper_index):
        case PositionStatus.below_range:
            return _increase_quote_below_range(params)
        case PositionStatus.in_range:
            return _increase_quote_in_range(params)
        case PositionStatus.above_range:
            return _increase_quote_above_range(params)


def _increase_quote_below_range(params: IncreaseLiquidityQuoteParams) -> IncreaseLiquidityQuote:
    # Below the range a position only holds token A
    if params.input_token_mint != params.token_mint_a:
        return IncreaseLiquidityQuote()

    sqrt_price_lower = tick_index_to_sqrt_price_x64(params.tick_lower_index)
    sqrt_price_upper = tick_index_to_sqrt_price_x64(params.tick_upper_index)

    liquidity_amount = get_liquidity_from_token_a(params.input_token_amount, sqrt_price_lower, sqrt_price_upper, False)
    token_est_a = get_token_a_from_liquidity(liquidity_amount, sqrt_price_lower, sqrt_price_upper, True)

    return IncreaseLiquidityQuote(
        liquidity_amount=liquidity_amount,
        token_max_a=check_token_amount(adjust_for_slippage(token_est_a, params.slippage_tolerance, True)),
        token_est_a=token_est_a,
    )


def _increase_quote_in_range(params: IncreaseLiquidityQuoteParams) -> IncreaseLiquidityQuote:
    sqrt_price = params.sqrt_price
    sqrt_price_lower = tick_index_to_sqrt_price_x64(params.tick_lower_index)
    sqrt_price_upper = tick_index_to_sqrt_price_x64(params.tick_upper_index)

    if params.input_token_mint == params.token_mint_a:
        liquidity_amount = get_liquidity_from_token_a(params.input_token_amount, sqrt_price, sqrt_price_upper, False)
    else:
        liquidity_amount = get_liquidity_from_token_b(params.input_token_amount, sqrt_price_lower, sqrt_price, False)

    token_est_a = get_token_a_from_liquidity(liquidity_amount, sqrt_price, sqrt_price_upper, True)
    token_est_b = get_token_b_from_liquidity(liquidity_amount, sqrt_price_lower, sqrt_price, True)

    return IncreaseLiquidityQuote(
        liquidity_amount=liquidity_amount,
        token_max_a=check_token_amount(adjust_for_slippage(token_est_a, params.slippage_tolerance, True)),
        token_max_b=check_token_amount(adjust_for_slippage(token_est_b, params.slippage_tolerance, True)),
        token_est_a=token_est_a,
        token_est_b=token_est_b,
    )


def _increase_quote_above_range(params: IncreaseLiquidityQuoteParams) -> IncreaseLiquidityQuote:
    # Above the range a position only holds token B
    if params.input_token_mint != params.token_mint_b:
        return IncreaseLiquidityQuote()

    sqrt_price_lower = tick_index_to_sqrt_price_x64(params.tick_lower_index)
    sqrt_price_upper = tick_index_to_sqrt_price_x64(params.tick_upper_index)

    liquidity_amount = get_liquidity_from_token_b(params.input_token_amount, sqrt_price_lower, sqrt_price_upper, False)
    token_est_b = get_token_b_from_liquidity(liquidity_amount, sqrt_price_lower, sqrt_price_upper, True)

    return IncreaseLiquidityQuote(
        liquidity_amount=liquidity_amount,
        token_max_b=check_token_amount(adjust_for_slippage(token_est_b, params.slippage_tolerance, True)),
        token_est_b=token_est_b,
    )


def increase_liquidity_quote_by_liquidity(
    liquidity: int,
    tick_lower_index: int,
    tick_upper_index: int,
    slippage_tolerance: Percentage,
    whirlpool: Whirlpool,
) -> IncreaseLiquidityQuote:
    """Quotes the tokens needed to deposit an exact liquidity amount.  Token estimates are rounded up"""
    _check_ticks_in_bounds(tick_lower_index, tick_upper_index, whirlpool.tick_current_index)

    sqrt_price_lower = tick_index_to_sqrt_price_x64(tick_lower_index)
    sqrt_price_upper = tick_index_to_sqrt_price_x64(tick_upper_index)
    token_est_a, token_est_b = 0, 0

    match get_position_status(whirlpool.tick_current_index, tick_lower_index, tick_upper_index):
        case PositionStatus.below_range:
            token_est_a = get_token_a_from_liquidity(liquidity, sqrt_price_lower, sqrt_price_upper, True)
        case PositionStatus.in_range:
            token_est_a = get_token_a_from_liquidity(liquidity, whirlpool.sqrt_price, sqrt_price_upper, True)
            token_est_b = get_token_b_from_liquidity(liquidity, sqrt_price_lower, whirlpool.sqrt_price, True)
        case PositionStatus.above_range:
            token_est_b = get_token_b_from_liquidity(liquidity, sqrt_price_lower, sqrt_price_upper, True)

    return IncreaseLiquidityQuote(
        liquidity_amount=liquidity,
        token_max_a=check_token_amount(adjust_for_slippage(token_est_a, slippage_tolerance, True)),
        token_max_b=check_token_amount(adjust_for_slippage(token_est_b, slippage_tolerance, True)),
        token_est_a=token_est_a,
        token_est_b=token_est_b,
    )


# -------------------------------------------------------
#    Decrease Liquidity
# -------------------------------------------------------
def decrease_liquidity_quote_by_liquidity(
    liquidity: int,
    slippage_tolerance: Percentage,
    position: Position,
    whirlpool: Whirlpool,
) -> DecreaseLiquidityQuote:
    """
    Quotes a withdrawal of ``liquidity`` from a position.  Token estimates are rounded down.

    :raises QuoteError: if ``liquidity`` exceeds the position's liquidity
    """
    if liquidity > position.liquidity:
        raise QuoteError(
            f"Quote liquidity {liquidity} should not be greater than position liquidity {position.liquidity}",
            QuoteErrorCode.LiquidityExceedsPosition,
        )

    return decrease_liquidity_quote_with_params(
        DecreaseLiquidityQuoteParams(
            liquidity=liquidity,
            sqrt_price=whirlpool.sqrt_price,
            tick_current_index=whirlpool.tick_current_index,
            tick_lower_index=position.tick_lower_index,
            tick_upper_index=position.tick_upper_index,
            slippage_tolerance=slippage_tolerance,
        )
    )


def decrease_liquidity_quote_with_params(params: DecreaseLiquidityQuoteParams) -> DecreaseLiquidityQuote:
    _check_ticks_in_bounds(params.tick_lower_index, params.tick_upper_index, params.tick_current_index)

    sqrt_price_lower = tick_index_to_sqrt_price_x64(params.tick_lower_index)
    sqrt_price_upper = tick_index_to_sqrt_price_x64(params.tick_upper_index)
    token_est_a, token_est_b = 0, 0

    match get_position_status(params.tick_current_index, params.tick_lower_index, params.tick_upper_index):
        case PositionStatus.below_range:
            token_est_a = get_token_a_from_liquidity(params.liquidity, sqrt_price_lower, sqrt_price_upper, False)
        case PositionStatus.in_range:
            token_est_a = get_token_a_from_liquidity(params.liquidity, params.sqrt_price, sqrt_price_upper, False)
            token_est_b = get_token_b_from_liquidity(params.liquidity, sqrt_price_lower, params.sqrt_price, False)
        case PositionStatus.above_range:
            token_est_b = get_token_b_from_liquidity(params.liquidity, sqrt_price_lower, sqrt_price_upper, False)

    return DecreaseLiquidityQuote(
        liquidity_amount=params.liquidity,
        token_min_a=adjust_for_slippage(token_est_a, params.slippage_tolerance, False),
        token_min_b=adjust_for_slippage(token_est_b, params.slippage_tolerance, False),
        token_est_a=token_est_a,
        token_est_b=token_est_b,
    )
