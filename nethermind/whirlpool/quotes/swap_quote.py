import logging
from dataclasses import dataclass, field, replace

from nethermind.whirlpool.exceptions import (
    QuoteError,
    QuoteErrorCode,
    SwapError,
    SwapErrorCode,
)
from nethermind.whirlpool.math.constants import MAX_SQRT_PRICE, MAX_SWAP_TICK_ARRAYS, MIN_SQRT_PRICE, U64_MAX
from nethermind.whirlpool.math.percentage import Percentage
from nethermind.whirlpool.math.token_math import adjust_for_slippage
from nethermind.whirlpool.pool_utils import get_swap_direction
from nethermind.whirlpool.ticks.tick_array_sequence import TickArraySequence
from nethermind.whirlpool.ticks.tick_utils import get_uninitialized_arrays
from nethermind.whirlpool.types import SwapDirection, TickArrayContainer, Whirlpool

from .swap_manager import SwapResult, compute_swap

root_logger = logging.getLogger("nethermind")
logger = root_logger.getChild("whirlpool").getChild("swap_quote")


@dataclass(frozen=True, slots=True)
class SwapQuoteParams:
    """
    Inputs to a swap simulation.

    :param whirlpool: pool snapshot
    :param tick_arrays: up to three tick arrays in swap direction, starting with the array containing
        the current tick
    :param token_amount: amount of the specified token
    :param other_amount_threshold: minimum output (exact input) or maximum input (exact output)
    :param sqrt_price_limit: Q64.64 sqrt price the swap may not move beyond
    :param a_to_b: swap token A for token B
    :param amount_specified_is_input: ``token_amount`` is the input amount
    :param time_stamp_in_seconds: block time of the swap, used to advance reward growth before ticks are
        crossed
    """

    whirlpool: Whirlpool
    tick_arrays: list[TickArrayContainer]
    token_amount: int
    other_amount_threshold: int
    sqrt_price_limit: int
    a_to_b: bool
    amount_specified_is_input: bool
    time_stamp_in_seconds: int | None = None


@dataclass(frozen=True, slots=True)
class SwapQuote:
    """
    Swap estimate computed from a snapshot.  Quotes are advisory: the on-chain program re-validates against
    live state, so ``amount``, ``other_amount_threshold``, ``sqrt_price_limit`` and the three tick array
    addresses should be passed unchanged to the swap instruction.

    ``threshold_error`` is None when the estimate satisfies the caller's threshold, and otherwise names the
    violated condition (``AmountOutBelowMinimum`` or ``AmountInAboveMaximum``).
    """

    estimated_amount_in: int
    estimated_amount_out: int
    estimated_end_tick_index: int
    estimated_end_sqrt_price: int
    estimated_fee_amount: int
    amount: int
    amount_specified_is_input: bool
    a_to_b: bool
    other_amount_threshold: int
    sqrt_price_limit: int
    tick_array_0: str
    tick_array_1: str
    tick_array_2: str
    threshold_error: SwapErrorCode | None = None
    swap_result: SwapResult | None = field(default=None, compare=False, repr=False)

    @property
    def tick_arrays(self) -> list[str]:
        return [self.tick_array_0, self.tick_array_1, self.tick_array_2]


def get_default_sqrt_price_limit(a_to_b: bool) -> int:
    return MIN_SQRT_PRICE if a_to_b else MAX_SQRT_PRICE


def get_default_other_amount_threshold(amount_specified_is_input: bool) -> int:
    return 0 if amount_specified_is_input else U64_MAX


def calculate_swap_amounts_from_quote(
    amount: int,
    estimated_amount_in: int,
    estimated_amount_out: int,
    slippage_tolerance: Percentage,
    amount_specified_is_input: bool,
) -> tuple[int, int]:
    """
    Returns the (amount, other_amount_threshold) pair for the swap instruction.  Exact input swaps
    require at least the estimated output less slippage, exact output swaps allow at most the
    estimated input plus slippage.
    """
    if amount_specified_is_input:
        return amount, adjust_for_slippage(estimated_amount_out, slippage_tolerance, False)
    return amount, adjust_for_slippage(estimated_amount_in, slippage_tolerance, True)


def check_if_all_tick_arrays_initialized(tick_arrays: list[TickArrayContainer]):
    uninitialized = get_uninitialized_arrays(tick_arrays)
    if uninitialized:
        addresses = ", ".join(tick_arrays[idx].address for idx in uninitialized)
        raise SwapError(
            f"TickArray addresses [{addresses}] need to be initialized",
            SwapErrorCode.TickArrayIndexNotInitialized,
        )


def _validate_params(params: SwapQuoteParams):
    if not MIN_SQRT_PRICE <= params.sqrt_price_limit <= MAX_SQRT_PRICE:
        raise SwapError(
            f"Provided sqrt price limit {params.sqrt_price_limit} is out of bounds",
            SwapErrorCode.SqrtPriceOutOfBounds,
        )

    if (params.a_to_b and params.sqrt_price_limit > params.whirlpool.sqrt_price) or (
        not params.a_to_b and params.sqrt_price_limit < params.whirlpool.sqrt_price
    ):
        raise SwapError(
            "Provided sqrt price limit is in the opposite direction of the trade",
            SwapErrorCode.InvalidSqrtPriceLimitDirection,
        )

    if params.token_amount == 0:
        raise SwapError("Provided token amount is zero", SwapErrorCode.ZeroTradableAmount)


def check_other_amount_threshold(
    other_amount_threshold: int,
    swap_result: SwapResult,
    a_to_b: bool,
    amount_specified_is_input: bool,
) -> SwapErrorCode | None:
    """Names the violated threshold, or returns None if the swap result satisfies it"""
    if amount_specified_is_input:
        amount_out = swap_result.amount_b if a_to_b else swap_result.amount_a
        if other_amount_threshold > amount_out:
            return SwapErrorCode.AmountOutBelowMinimum
    else:
        amount_in = swap_result.amount_a if a_to_b else swap_result.amount_b
        if other_amount_threshold < amount_in:
            return SwapErrorCode.AmountInAboveMaximum
    return None


def simulate_swap(params: SwapQuoteParams, strict: bool = False) -> SwapQuote:
    """
    Simulates a swap across the supplied tick arrays without touching any state.

    :param params: SwapQuoteParams
    :param strict: raise a SwapError if ``other_amount_threshold`` is violated, as the on-chain program
        would.  By default the violation is reported in ``SwapQuote.threshold_error``
    :return: SwapQuote with ``amount`` & ``other_amount_threshold`` taken from the params
    """
    _validate_params(params)

    tick_sequence = TickArraySequence(params.tick_arrays, params.whirlpool.tick_spacing, params.a_to_b)
    if not tick_sequence.is_valid_tick_array_0(params.whirlpool.tick_current_index):
        raise SwapError(
            "TickArray at index 0 does not contain the Whirlpool current tick index",
            SwapErrorCode.TickArraySequenceInvalid,
        )

    swap_result = compute_swap(
        params.whirlpool,
        tick_sequence,
        params.token_amount,
        params.sqrt_price_limit,
        params.amount_specified_is_input,
        params.a_to_b,
        params.time_stamp_in_seconds,
    )

    threshold_error = check_other_amount_threshold(
        params.other_amount_threshold,
        swap_result,
        params.a_to_b,
        params.amount_specified_is_input,
    )
    if threshold_error is not None:
        logger.info(
            f"Swap estimate violates other_amount_threshold {params.other_amount_threshold}: {threshold_error.name}"
        )
        if strict:
            raise SwapError(
                f"Quoted amount for the other token violates other_amount_threshold "
                f"{params.other_amount_threshold}",
                threshold_error,
            )

    estimated_amount_in = swap_result.amount_a if params.a_to_b else swap_result.amount_b
    estimated_amount_out = swap_result.amount_b if params.a_to_b else swap_result.amount_a

    touched_arrays = tick_sequence.get_touched_arrays(MAX_SWAP_TICK_ARRAYS)
    if not touched_arrays:
        touched_arrays = [params.tick_arrays[0].address] * MAX_SWAP_TICK_ARRAYS
    if len(touched_arrays) > MAX_SWAP_TICK_ARRAYS:
        raise SwapError(
            f"Swap crossed {len(touched_arrays)} tick arrays.  At most {MAX_SWAP_TICK_ARRAYS} are allowed",
            SwapErrorCode.TickArrayCrossingAboveMax,
        )

    return SwapQuote(
        estimated_amount_in=estimated_amount_in,
        estimated_amount_out=estimated_amount_out,
        estimated_end_tick_index=swap_result.next_tick_index,
        estimated_end_sqrt_price=swap_result.next_sqrt_price,
        estimated_fee_amount=swap_result.total_fee_amount,
        amount=params.token_amount,
        amount_specified_is_input=params.amount_specified_is_input,
        a_to_b=params.a_to_b,
        other_amount_threshold=params.other_amount_threshold,
        sqrt_price_limit=params.sqrt_price_limit,
        tick_array_0=touched_arrays[0],
        tick_array_1=touched_arrays[1],
        tick_array_2=touched_arrays[2],
        threshold_error=threshold_error,
        swap_result=swap_result,
    )


def swap_quote_with_params(
    params: SwapQuoteParams,
    slippage_tolerance: Percentage,
    strict: bool = False,
) -> SwapQuote:
    """
    Simulates a swap and applies a slippage tolerance to the estimate, producing the
    ``other_amount_threshold`` to pass to the swap instruction.
    """
    quote = simulate_swap(params, strict=strict)

    amount, other_amount_threshold = calculate_swap_amounts_from_quote(
        params.token_amount,
        quote.estimated_amount_in,
        quote.estimated_amount_out,
        slippage_tolerance,
        params.amount_specified_is_input,
    )

    return replace(quote, amount=amount, other_amount_threshold=other_amount_threshold)


def swap_quote_params_by_token(
    whirlpool: Whirlpool,
    token_mint: str,
    token_amount: int,
    amount_specified_is_input: bool,
    tick_arrays: list[TickArrayContainer],
    time_stamp_in_seconds: int | None = None,
) -> SwapQuoteParams:
    """
    Builds swap params from the mint of the specified token, using the default price limit & threshold.
    ``tick_arrays`` must be ordered in the derived swap direction, see
    ``get_tick_array_start_indices_for_swap``
    """
    direction = get_swap_direction(whirlpool, token_mint, amount_specified_is_input)
    if direction is None:
        raise QuoteError(
            f"Token mint {token_mint} does not match any tokens on this pool",
            QuoteErrorCode.TokenMintNotInPool,
        )

    a_to_b = direction == SwapDirection.a_to_b
    return SwapQuoteParams(
        whirlpool=whirlpool,
        tick_arrays=tick_arrays,
        token_amount=token_amount,
        other_amount_threshold=get_default_other_amount_threshold(amount_specified_is_input),
        sqrt_price_limit=get_default_sqrt_price_limit(a_to_b),
        a_to_b=a_to_b,
        amount_specified_is_input=amount_specified_is_input,
        time_stamp_in_seconds=time_stamp_in_seconds,
    )


def swap_quote_by_token(
    whirlpool: Whirlpool,
    token_mint: str,
    token_amount: int,
    amount_specified_is_input: bool,
    slippage_tolerance: Percentage,
    tick_arrays: list[TickArrayContainer],
    strict: bool = False,
    time_stamp_in_seconds: int | None = None,
) -> SwapQuote:
    """
    Quotes a swap specified by one of its tokens.  The swap direction is derived from whether ``token_mint``
    is token A or token B of the pool and whether it is the input or the output token.

    :param whirlpool: pool snapshot
    :param token_mint: mint of the token whose amount is specified
    :param token_amount: amount of the specified token
    :param amount_specified_is_input: ``token_amount`` is the amount sold to the pool
    :param slippage_tolerance: tolerance applied to the estimated amount of the other token
    :param tick_arrays: tick arrays in the derived swap direction
    :param strict: raise instead of reporting threshold violations in ``SwapQuote.threshold_error``
    :param time_stamp_in_seconds: block time of the swap, used to advance reward growth
    """
    params = swap_quote_params_by_token(
        whirlpool, token_mint, token_amount, amount_specified_is_input, tick_arrays, time_stamp_in_seconds
    )
    return swap_quote_with_params(params, slippage_tolerance, strict=strict)


def swap_quote_by_input_token(
    whirlpool: Whirlpool,
    input_token_mint: str,
    token_amount: int,
    slippage_tolerance: Percentage,
    tick_arrays: list[TickArrayContainer],
    time_stamp_in_seconds: int | None = None,
) -> SwapQuote:
    return swap_quote_by_token(
        whirlpool,
        input_token_mint,
        token_amount,
        True,
        slippage_tolerance,
        tick_arrays,
        time_stamp_in_seconds=time_stamp_in_seconds,
    )


def swap_quote_by_output_token(
    whirlpool: Whirlpool,
    output_token_mint: str,
    token_amount: int,
    slippage_tolerance: Percentage,
    tick_arrays: list[TickArrayContainer],
    time_stamp_in_seconds: int | None = None,
) -> SwapQuote:
    return swap_quote_by_token(
        whirlpool,
        output_token_mint,
        token_amount,
        False,
        slippage_tolerance,
        tick_arrays,
        time_stamp_in_seconds=time_stamp_in_seconds,
    )
