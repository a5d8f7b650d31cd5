from decimal import Decimal

import pytest

from nethermind.whirlpool.exceptions import TickError, TokenError, TokenErrorCode
from nethermind.whirlpool.math.constants import MAX_SQRT_PRICE, MAX_TICK_INDEX, MIN_SQRT_PRICE, MIN_TICK_INDEX, Q64
from nethermind.whirlpool.math.price_math import (
    invert_price,
    invert_sqrt_price_x64,
    invert_tick,
    price_to_initializable_tick_index,
    price_to_sqrt_price_x64,
    price_to_tick_index,
    sqrt_price_x64_to_price,
    sqrt_price_x64_to_tick_index,
    tick_index_to_price,
    tick_index_to_sqrt_price_x64,
)

SAMPLE_TICKS = [MIN_TICK_INDEX, -200_001, -50_000, -1_024, -1, 0, 1, 64, 22_528, 100_000, 300_000, MAX_TICK_INDEX]


class TestTickToSqrtPrice:
    def test_tick_zero(self):
        assert tick_index_to_sqrt_price_x64(0) == Q64

    def test_bounds(self):
        assert tick_index_to_sqrt_price_x64(MAX_TICK_INDEX) == MAX_SQRT_PRICE
        assert tick_index_to_sqrt_price_x64(MIN_TICK_INDEX) == MIN_SQRT_PRICE

    def test_negative_one(self):
        assert tick_index_to_sqrt_price_x64(-1) == 18445821805675392311

    def test_monotonic(self):
        prices = [tick_index_to_sqrt_price_x64(tick) for tick in SAMPLE_TICKS]
        assert prices == sorted(prices)
        assert len(set(prices)) == len(prices)

    @pytest.mark.parametrize("tick", [MIN_TICK_INDEX - 1, MAX_TICK_INDEX + 1])
    def test_out_of_range(self, tick):
        with pytest.raises(TickError):
            tick_index_to_sqrt_price_x64(tick)


class TestSqrtPriceToTick:
    @pytest.mark.parametrize("tick", SAMPLE_TICKS)
    def test_round_trip(self, tick):
        assert sqrt_price_x64_to_tick_index(tick_index_to_sqrt_price_x64(tick)) == tick

    @pytest.mark.parametrize("tick", [-50_000, -1, 0, 1, 100_000])
    def test_prices_between_ticks_round_down(self, tick):
        next_price = tick_index_to_sqrt_price_x64(tick + 1)
        assert sqrt_price_x64_to_tick_index(next_price - 1) == tick
        assert sqrt_price_x64_to_tick_index(tick_index_to_sqrt_price_x64(tick) + 1) == tick

    def test_bounds(self):
        assert sqrt_price_x64_to_tick_index(MAX_SQRT_PRICE) == MAX_TICK_INDEX
        assert sqrt_price_x64_to_tick_index(MIN_SQRT_PRICE) == MIN_TICK_INDEX

    def test_out_of_range(self):
        with pytest.raises(TokenError) as exc:
            sqrt_price_x64_to_tick_index(MAX_SQRT_PRICE + 1)
        assert exc.value.error_code == TokenErrorCode.TokenMaxExceeded

        with pytest.raises(TokenError) as exc:
            sqrt_price_x64_to_tick_index(MIN_SQRT_PRICE - 1)
        assert exc.value.error_code == TokenErrorCode.TokenMinSubceeded


class TestDecimalPrices:
    def test_unit_price(self):
        assert price_to_sqrt_price_x64(Decimal(1), 6, 6) == Q64
        assert sqrt_price_x64_to_price(Q64, 6, 6) == 1
        assert tick_index_to_price(0, 9, 9) == 1
        assert price_to_tick_index("1", 9, 9) == 0

    def test_square_price(self):
        assert price_to_sqrt_price_x64("4", 0, 0) == 2 * Q64
        assert sqrt_price_x64_to_price(2 * Q64, 0, 0) == 4

    def test_decimals_shift_raw_price(self):
        # 1 token A (6 decimals) = 1 token B (8 decimals) is a raw price of 100
        assert price_to_sqrt_price_x64("1", 6, 8) == 10 * Q64
        assert sqrt_price_x64_to_price(10 * Q64, 6, 8) == 1

    @pytest.mark.parametrize("tick", [-10_000, 100, 50_000])
    def test_price_round_trip_within_one_unit(self, tick):
        sqrt_price = tick_index_to_sqrt_price_x64(tick)
        price = sqrt_price_x64_to_price(sqrt_price, 6, 9)
        assert abs(price_to_sqrt_price_x64(price, 6, 9) - sqrt_price) <= 1

    def test_initializable_tick(self):
        price = tick_index_to_price(100, 0, 0)
        assert price_to_initializable_tick_index(price, 0, 0, 64) == 64
        assert price_to_initializable_tick_index(1, 0, 0, 64) == 0


class TestInversion:
    def test_invert_tick(self):
        assert invert_tick(100) == -100

    def test_invert_sqrt_price(self):
        assert invert_sqrt_price_x64(Q64) == Q64
        assert invert_sqrt_price_x64(tick_index_to_sqrt_price_x64(5_000)) == tick_index_to_sqrt_price_x64(-5_000)

    def test_invert_price(self):
        assert invert_price(Decimal(1), 6, 6) == 1
