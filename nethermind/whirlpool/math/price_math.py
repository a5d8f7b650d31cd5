from decimal import ROUND_FLOOR, Decimal, localcontext

from nethermind.whirlpool.exceptions import TickError, TickErrorCode, TokenError, TokenErrorCode
from nethermind.whirlpool.ticks.tick_utils import get_initializable_tick_index

from .constants import MAX_SQRT_PRICE, MAX_TICK_INDEX, MIN_SQRT_PRICE, MIN_TICK_INDEX, Q64

DECIMAL_PRECISION = 40

BIT_PRECISION = 14
LOG_B_2_X32 = 59543866431248
LOG_B_P_ERR_MARGIN_LOWER_X64 = 184467440737095516
LOG_B_P_ERR_MARGIN_UPPER_X64 = 15793534762490258745

POSITIVE_TICK_MULTIPLICANDS = [
    79236085330515764027303304731,
    79244008939048815603706035061,
    79259858533276714757314932305,
    79291567232598584799939703904,
    79355022692464371645785046466,
    79482085999252804386437311141,
    79736823300114093921829183326,
    80248749790819932309965073892,
    81282483887344747381513967011,
    83390072131320151908154831281,
    87770609709833776024991924138,
    97234110755111693312479820773,
    119332217159966728226237229890,
    179736315981702064433883588727,
    407748233172238350107850275304,
    2098478828474011932436660412517,
    55581415166113811149459800483533,
    38992368544603139932233054999993551,
]

NEGATIVE_TICK_MULTIPLICANDS = [
    18444899583751176498,
    18443055278223354162,
    18439367220385604838,
    18431993317065449817,
    18417254355718160513,
    18387811781193591352,
    18329067761203520168,
    18212142134806087854,
    17980523815641551639,
    17526086738831147013,
    16651378430235024244,
    15030750278693429944,
    12247334978882834399,
    8131365268884726200,
    3584323654723342297,
    696457651847595233,
    26294789957452057,
    37481735321082,
]


def check_tick_index(tick_index: int):
    if not MIN_TICK_INDEX <= tick_index <= MAX_TICK_INDEX:
        raise TickError(
            f"Tick index {tick_index} outside of supported range [{MIN_TICK_INDEX}, {MAX_TICK_INDEX}]",
            TickErrorCode.InvalidTickIndex,
        )


def check_sqrt_price(sqrt_price_x64: int):
    if sqrt_price_x64 < MIN_SQRT_PRICE:
        raise TokenError(
            f"Sqrt price {sqrt_price_x64} is below the minimum sqrt price {MIN_SQRT_PRICE}",
            TokenErrorCode.TokenMinSubceeded,
        )
    if sqrt_price_x64 > MAX_SQRT_PRICE:
        raise TokenError(
            f"Sqrt price {sqrt_price_x64} is above the maximum sqrt price {MAX_SQRT_PRICE}",
            TokenErrorCode.TokenMaxExceeded,
        )


def tick_index_to_sqrt_price_x64(tick_index: int) -> int:
    """
    Converts a tick index to its Q64.64 sqrt price using the binary exponentiation ladder
    of the on-chain program.  Ticks above zero are computed as Q96 ratios and shifted down,
    ticks at or below zero are computed directly in Q64.

    :param tick_index: tick in [MIN_TICK_INDEX, MAX_TICK_INDEX]
    :return: sqrt price as Q64.64 integer
    """
    check_tick_index(tick_index)

    if tick_index > 0:
        return _tick_index_to_sqrt_price_positive(tick_index)
    return _tick_index_to_sqrt_price_negative(tick_index)


def _tick_index_to_sqrt_price_positive(tick: int) -> int:
    ratio = 79232123823359799118286999567 if tick & 1 else 79228162514264337593543950336

    for bit, multiplicand in enumerate(POSITIVE_TICK_MULTIPLICANDS, start=1):
        if tick & (1 << bit):
            ratio = (ratio * multiplicand) >> 96

    return ratio >> 32


def _tick_index_to_sqrt_price_negative(tick: int) -> int:
    tick = abs(tick)
    ratio = 18445821805675392311 if tick & 1 else 18446744073709551616

    for bit, multiplicand in enumerate(NEGATIVE_TICK_MULTIPLICANDS, start=1):
        if tick & (1 << bit):
            ratio = (ratio * multiplicand) >> 64

    return ratio


def sqrt_price_x64_to_tick_index(sqrt_price_x64: int) -> int:
    """
    Converts a Q64.64 sqrt price to the tick index ``t`` such that
    ``tick_index_to_sqrt_price_x64(t) <= sqrt_price_x64 < tick_index_to_sqrt_price_x64(t + 1)``.

    log2 of the sqrt price is estimated to 14 bits of precision, converted to log base 1.0001, and
    the two candidate ticks bracketing the error margin are checked against the forward conversion.

    :param sqrt_price_x64: sqrt price in [MIN_SQRT_PRICE, MAX_SQRT_PRICE]
    """
    check_sqrt_price(sqrt_price_x64)

    msb = sqrt_price_x64.bit_length() - 1
    log2p_integer_x32 = (msb - 64) << 32

    bit = 0x8000000000000000
    log2p_fraction_x64 = 0
    r = sqrt_price_x64 >> (msb - 63) if msb >= 64 else sqrt_price_x64 << (63 - msb)

    for _ in range(BIT_PRECISION):
        r = r * r
        r_more_than_two = r >> 127
        r = r >> (63 + r_more_than_two)
        log2p_fraction_x64 += bit * r_more_than_two
        bit >>= 1

    log2p_x32 = log2p_integer_x32 + (log2p_fraction_x64 >> 32)
    logbp_x64 = log2p_x32 * LOG_B_2_X32

    tick_low = (logbp_x64 - LOG_B_P_ERR_MARGIN_LOWER_X64) >> 64
    tick_high = (logbp_x64 + LOG_B_P_ERR_MARGIN_UPPER_X64) >> 64

    if tick_low == tick_high:
        return tick_low

    return tick_high if tick_index_to_sqrt_price_x64(tick_high) <= sqrt_price_x64 else tick_low


def price_to_sqrt_price_x64(price: Decimal | str, decimals_a: int, decimals_b: int) -> int:
    """
    Converts a human readable price of token A denominated in token B to a Q64.64 sqrt price,
    rounding down.

    :param price: price as a decimal
    :param decimals_a: mint decimals of token A
    :param decimals_b: mint decimals of token B
    """
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        raw_price = Decimal(price) * Decimal(10) ** (decimals_b - decimals_a)
        return int((raw_price.sqrt() * Q64).to_integral_value(rounding=ROUND_FLOOR))


def sqrt_price_x64_to_price(sqrt_price_x64: int, decimals_a: int, decimals_b: int) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        sqrt_price = Decimal(sqrt_price_x64) / Decimal(Q64)
        return sqrt_price**2 * Decimal(10) ** (decimals_a - decimals_b)


def tick_index_to_price(tick_index: int, decimals_a: int, decimals_b: int) -> Decimal:
    return sqrt_price_x64_to_price(tick_index_to_sqrt_price_x64(tick_index), decimals_a, decimals_b)


def price_to_tick_index(price: Decimal | str, decimals_a: int, decimals_b: int) -> int:
    return sqrt_price_x64_to_tick_index(price_to_sqrt_price_x64(price, decimals_a, decimals_b))


def price_to_initializable_tick_index(
    price: Decimal | str,
    decimals_a: int,
    decimals_b: int,
    tick_spacing: int,
) -> int:
    return get_initializable_tick_index(price_to_tick_index(price, decimals_a, decimals_b), tick_spacing)


def invert_price(price: Decimal, decimals_a: int, decimals_b: int) -> Decimal:
    """Converts a price of A in B to the price of B in A"""
    tick_index = price_to_tick_index(price, decimals_a, decimals_b)
    return tick_index_to_price(-tick_index, decimals_b, decimals_a)


def invert_tick(tick_index: int) -> int:
    return -tick_index


def invert_sqrt_price_x64(sqrt_price_x64: int) -> int:
    return tick_index_to_sqrt_price_x64(-sqrt_price_x64_to_tick_index(sqrt_price_x64))
