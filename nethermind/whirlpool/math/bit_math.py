from nethermind.whirlpool.exceptions import MathError, MathErrorCode

from .constants import U64_MAX


def is_over_limit(value: int, limit: int) -> bool:
    """
    Checks whether an unsigned integer exceeds the largest value representable in ``limit`` bits

    :param value: integer to check
    :param limit: bit width, typically 64, 128 or 256
    """
    return value > (1 << limit) - 1


def mul(n0: int, n1: int, limit: int) -> int:
    result = n0 * n1
    if is_over_limit(result, limit):
        raise MathError(
            f"Mul result {result} higher than u{limit}",
            MathErrorCode.MultiplicationOverflow,
        )
    return result


def mul_div(n0: int, n1: int, d: int, limit: int) -> int:
    """Computes floor(n0 * n1 / d), raising if the product overflows ``limit`` bits"""
    return mul_div_round_up_if(n0, n1, d, limit, False)


def mul_div_round_up(n0: int, n1: int, d: int, limit: int) -> int:
    """Computes ceil(n0 * n1 / d), raising if the product overflows ``limit`` bits"""
    return mul_div_round_up_if(n0, n1, d, limit, True)


def mul_div_round_up_if(n0: int, n1: int, d: int, limit: int, round_up: bool) -> int:
    if d == 0:
        raise MathError("mul_div denominator is zero", MathErrorCode.DivideByZero)

    p = mul(n0, n1, limit)
    n, remainder = divmod(p, d)
    return n + 1 if round_up and remainder > 0 else n


def checked_mul_shift_right(n0: int, n1: int, limit: int, round_up: bool = False) -> int:
    """
    Multiplies two Q64.64 operands and shifts the product back down by 64 bits.

    :param n0: first operand
    :param n1: second operand
    :param limit: bit width the product must fit in
    :param round_up: round up if any of the 64 discarded bits are set
    :return: (n0 * n1) >> 64, optionally rounded up
    """
    if n0 == 0 or n1 == 0:
        return 0

    product = n0 * n1
    if is_over_limit(product, limit):
        raise MathError(
            f"mul_shift_right overflowed u{limit}",
            MathErrorCode.MultiplicationShiftRightOverflow,
        )

    result = product >> 64
    should_round = round_up and (product & U64_MAX) > 0
    if should_round and result == U64_MAX:
        raise MathError(
            f"mul_shift_right overflowed u{limit}",
            MathErrorCode.MultiplicationOverflow,
        )

    return result + 1 if should_round else result


def div_round_up(n: int, d: int) -> int:
    return div_round_up_if(n, d, True)


def div_round_up_if(n: int, d: int, round_up: bool) -> int:
    if d == 0:
        raise MathError("div_round_up_if - divide by zero", MathErrorCode.DivideByZero)

    q, remainder = divmod(n, d)
    return q + 1 if round_up and remainder > 0 else q


def shift_right_round_up(n: int) -> int:
    """Shifts a Q64.64 value right by 64 bits, rounding up if any fractional bits are set"""
    result = n >> 64
    if n & U64_MAX > 0:
        result += 1
    return result


def sub_underflow_u128(n0: int, n1: int) -> int:
    """Wrapping u128 subtraction.  Growth counters on-chain are allowed to wrap, so this never raises"""
    return (n0 - n1) % (1 << 128)
