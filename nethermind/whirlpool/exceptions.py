from enum import Enum


class MathErrorCode(Enum):
    """Arithmetic failures raised by the fixed point helpers"""

    MultiplicationOverflow = "multiplication_overflow"
    MulDivOverflow = "mul_div_overflow"
    MultiplicationShiftRightOverflow = "multiplication_shift_right_overflow"
    DivideByZero = "divide_by_zero"
    LiquidityOverflow = "liquidity_overflow"


class TokenErrorCode(Enum):
    """Token amount or sqrt price escaped its allowed range"""

    TokenMaxExceeded = "token_max_exceeded"
    TokenMinSubceeded = "token_min_subceeded"


class SwapErrorCode(Enum):
    """Error codes mirroring the on-chain swap instruction"""

    InvalidSqrtPriceLimitDirection = "invalid_sqrt_price_limit_direction"
    SqrtPriceOutOfBounds = "sqrt_price_out_of_bounds"
    ZeroTradableAmount = "zero_tradable_amount"
    AmountOutBelowMinimum = "amount_out_below_minimum"
    AmountInAboveMaximum = "amount_in_above_maximum"
    TickArrayCrossingAboveMax = "tick_array_crossing_above_max"
    TickArrayIndexNotInitialized = "tick_array_index_not_initialized"
    TickArraySequenceInvalid = "tick_array_sequence_invalid"


class TickErrorCode(Enum):
    """Invalid tick indexes & tick spacing"""

    InvalidTickIndex = "invalid_tick_index"
    TickNotFound = "tick_not_found"
    InvalidTickSpacing = "invalid_tick_spacing"


class QuoteErrorCode(Enum):
    """Position quote preconditions"""

    LiquidityExceedsPosition = "liquidity_exceeds_position"
    TokenMintNotInPool = "token_mint_not_in_pool"


ErrorCode = MathErrorCode | TokenErrorCode | SwapErrorCode | TickErrorCode | QuoteErrorCode


class WhirlpoolsError(Exception):
    """
    Base exception for the Whirlpool quote engine.  Every failure carries an ``error_code`` naming the violated
    condition, so callers can branch on the code instead of parsing messages.

    The following conditions will result in a subclass of this error being raised:

        * Intermediate or final values overflow the u64, u128 or u256 range used on-chain
        * Tick indexes outside of [-443636, 443636]
        * Sqrt prices outside of [MIN_SQRT_PRICE, MAX_SQRT_PRICE]
        * Tick arrays supplied to a swap that do not cover the traded range
    """

    def __init__(self, message: str, error_code: ErrorCode):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def __str__(self):
        return f"{self.error_code.name}: {self.message}"


class MathError(WhirlpoolsError):
    """Raised when fixed point arithmetic overflows or divides by zero"""

    def __init__(self, message: str, error_code: MathErrorCode):
        super().__init__(message, error_code)


class TokenError(WhirlpoolsError):
    """Raised when a token amount exceeds u64, or a computed sqrt price leaves the valid range"""

    def __init__(self, message: str, error_code: TokenErrorCode):
        super().__init__(message, error_code)


class SwapError(WhirlpoolsError):
    """

    Raised when a swap simulation cannot be completed.  ``TickArraySequenceInvalid`` signals that the caller
    did not supply enough tick array context, which is distinct from a pool running out of liquidity.

    """

    def __init__(self, message: str, error_code: SwapErrorCode):
        super().__init__(message, error_code)


class TickError(WhirlpoolsError):
    """Raised for tick indexes that are out of bounds or not found in the supplied tick arrays"""

    def __init__(self, message: str, error_code: TickErrorCode = TickErrorCode.InvalidTickIndex):
        super().__init__(message, error_code)


class QuoteError(WhirlpoolsError):
    """Raised when a liquidity, fee or reward quote is requested with invalid position parameters"""

    def __init__(self, message: str, error_code: QuoteErrorCode):
        super().__init__(message, error_code)
