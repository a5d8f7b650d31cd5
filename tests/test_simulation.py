from dataclasses import replace

import pytest

from nethermind.whirlpool.exceptions import QuoteError, QuoteErrorCode, TickError
from nethermind.whirlpool.math.constants import Q64
from nethermind.whirlpool.math.price_math import tick_index_to_sqrt_price_x64
from nethermind.whirlpool.quotes.collect_quotes import CollectFeesQuote, collect_fees_quote
from nethermind.whirlpool.quotes.swap_quote import SwapQuoteParams, simulate_swap
from nethermind.whirlpool.simulation import (
    apply_collect_fees,
    apply_collect_rewards,
    apply_decrease_liquidity,
    apply_increase_liquidity,
    apply_swap,
    get_swap_tick_arrays,
    get_tick,
    set_tick,
    update_fees_and_rewards,
)
from nethermind.whirlpool.types import Position, PositionRewardInfo, TickArray, WhirlpoolRewardInfo
from tests.utils import empty_tick_arrays, encode_sqrt_price, initialized_tick, open_position


def _swap(whirlpool, tick_arrays, amount, a_to_b, sqrt_price_limit, time_stamp_in_seconds=None):
    quote = simulate_swap(
        SwapQuoteParams(
            whirlpool=whirlpool,
            tick_arrays=get_swap_tick_arrays(whirlpool, tick_arrays, a_to_b),
            token_amount=amount,
            other_amount_threshold=0,
            sqrt_price_limit=sqrt_price_limit,
            a_to_b=a_to_b,
            amount_specified_is_input=True,
            time_stamp_in_seconds=time_stamp_in_seconds,
        )
    )
    whirlpool, tick_arrays = apply_swap(whirlpool, tick_arrays, quote)
    return whirlpool, tick_arrays, quote


def _fees(whirlpool, tick_arrays, position) -> CollectFeesQuote:
    return collect_fees_quote(
        whirlpool,
        position,
        get_tick(tick_arrays, position.tick_lower_index, whirlpool.tick_spacing),
        get_tick(tick_arrays, position.tick_upper_index, whirlpool.tick_spacing),
    )


@pytest.fixture(name="two_positions")
def fixture_two_positions(build_whirlpool):
    whirlpool = build_whirlpool(tick_spacing=64)
    tick_arrays = empty_tick_arrays(whirlpool, -11264, -5632, 0, 5632, 11264)

    whirlpool, wide, tick_arrays = open_position(whirlpool, tick_arrays, -640, 640, 10**10)
    whirlpool, upper, tick_arrays = open_position(whirlpool, tick_arrays, 320, 1280, 5 * 10**9)
    return whirlpool, tick_arrays, wide, upper


@pytest.fixture(name="reward_positions")
def fixture_reward_positions(build_whirlpool, reward_info):
    """Positions of ``two_positions`` in a pool emitting 10 reward tokens per second from t=1000"""
    whirlpool = build_whirlpool(
        tick_spacing=64,
        reward_last_updated_timestamp=1_000,
        reward_infos=(reward_info(emissions_per_second_x64=10 * Q64), WhirlpoolRewardInfo(), WhirlpoolRewardInfo()),
    )
    tick_arrays = empty_tick_arrays(whirlpool, -11264, -5632, 0, 5632, 11264)

    whirlpool, wide, tick_arrays = open_position(whirlpool, tick_arrays, -640, 640, 10**10)
    whirlpool, upper, tick_arrays = open_position(whirlpool, tick_arrays, 320, 1280, 5 * 10**9)
    return whirlpool, tick_arrays, wide, upper


class TestTickStorage:
    def test_set_tick_copies(self):
        tick_arrays = {0: TickArray.empty(0)}
        updated = set_tick(tick_arrays, 128, 64, initialized_tick(100))

        assert get_tick(updated, 128, 64).liquidity_net == 100
        assert not get_tick(tick_arrays, 128, 64).initialized

    def test_set_tick_creates_array(self):
        updated = set_tick({}, -64, 64, initialized_tick(-5))
        assert set(updated) == {-5632}

    def test_missing_array(self):
        with pytest.raises(TickError):
            get_tick({}, 64, 64)

    def test_swap_tick_arrays_missing_data(self, build_whirlpool):
        whirlpool = build_whirlpool(tick_spacing=64)
        containers = get_swap_tick_arrays(whirlpool, empty_tick_arrays(whirlpool, 0), True, {0: "ta0"})

        assert [container.address for container in containers] == ["ta0", "tick-array--5632", "tick-array--11264"]
        assert containers[0].data is not None
        assert containers[1].data is None


class TestModifyLiquidity:
    def test_in_range_deposit_updates_pool(self, two_positions):
        whirlpool, tick_arrays, _, _ = two_positions
        assert whirlpool.liquidity == 10**10

        lower, upper = get_tick(tick_arrays, -640, 64), get_tick(tick_arrays, 640, 64)
        assert lower.initialized and upper.initialized
        assert (lower.liquidity_net, upper.liquidity_net) == (10**10, -(10**10))
        assert get_tick(tick_arrays, 320, 64).liquidity_gross == 5 * 10**9

    def test_shared_tick(self, two_positions):
        whirlpool, tick_arrays, _, _ = two_positions
        whirlpool, _, tick_arrays = open_position(whirlpool, tick_arrays, 640, 1280, 10**9)

        tick = get_tick(tick_arrays, 640, 64)
        assert tick.liquidity_gross == 10**10 + 10**9
        assert tick.liquidity_net == -(10**10) + 10**9
        assert whirlpool.liquidity == 10**10

    def test_remove_clears_ticks(self, two_positions):
        whirlpool, tick_arrays, wide, _ = two_positions
        whirlpool, wide, tick_arrays = apply_decrease_liquidity(whirlpool, wide, tick_arrays, 10**10)

        assert wide.liquidity == 0
        assert whirlpool.liquidity == 0
        assert not get_tick(tick_arrays, -640, 64).initialized
        assert not get_tick(tick_arrays, 640, 64).initialized

    def test_remove_more_than_position(self, two_positions):
        whirlpool, tick_arrays, wide, _ = two_positions
        with pytest.raises(QuoteError) as exc:
            apply_decrease_liquidity(whirlpool, wide, tick_arrays, 10**10 + 1)
        assert exc.value.error_code == QuoteErrorCode.LiquidityExceedsPosition

    def test_update_requires_liquidity(self, two_positions):
        whirlpool, tick_arrays, _, _ = two_positions
        with pytest.raises(QuoteError):
            update_fees_and_rewards(whirlpool, Position(tick_lower_index=-640, tick_upper_index=640), tick_arrays)

    def test_inputs_unchanged(self, two_positions):
        whirlpool, tick_arrays, wide, _ = two_positions
        apply_increase_liquidity(whirlpool, wide, tick_arrays, 10**6)

        assert wide.liquidity == 10**10
        assert get_tick(tick_arrays, -640, 64).liquidity_gross == 10**10


class TestApplySwap:
    def test_crossing_updates_pool(self, two_positions):
        whirlpool, tick_arrays, _, _ = two_positions
        whirlpool, tick_arrays, quote = _swap(whirlpool, tick_arrays, 10**12, False, tick_index_to_sqrt_price_x64(1024))

        assert whirlpool.tick_current_index == 1024
        assert whirlpool.sqrt_price == tick_index_to_sqrt_price_x64(1024)
        assert whirlpool.liquidity == 5 * 10**9
        assert whirlpool.fee_growth_global_a == 0
        assert whirlpool.fee_growth_global_b > 0
        assert whirlpool.protocol_fee_owed_b == quote.swap_result.protocol_fee
        assert get_tick(tick_arrays, 320, 64).fee_growth_outside_b > 0

    def test_swap_back_restores_liquidity(self, two_positions):
        whirlpool, tick_arrays, _, _ = two_positions
        whirlpool, tick_arrays, _ = _swap(whirlpool, tick_arrays, 10**12, False, tick_index_to_sqrt_price_x64(1024))
        whirlpool, tick_arrays, _ = _swap(whirlpool, tick_arrays, 10**12, True, Q64)

        assert whirlpool.sqrt_price == Q64
        assert whirlpool.tick_current_index == 0
        assert whirlpool.liquidity == 10**10

    def test_fees_split_between_positions(self, two_positions):
        whirlpool, tick_arrays, wide, upper = two_positions
        whirlpool, tick_arrays, quote = _swap(whirlpool, tick_arrays, 10**12, False, tick_index_to_sqrt_price_x64(1024))

        lp_fees = quote.estimated_fee_amount - quote.swap_result.protocol_fee
        wide_fees, upper_fees = _fees(whirlpool, tick_arrays, wide), _fees(whirlpool, tick_arrays, upper)

        assert wide_fees.fee_owed_a == upper_fees.fee_owed_a == 0
        assert lp_fees - 3 <= wide_fees.fee_owed_b + upper_fees.fee_owed_b <= lp_fees

    def test_new_position_starts_without_fees(self, two_positions):
        whirlpool, tick_arrays, _, _ = two_positions
        whirlpool, tick_arrays, _ = _swap(whirlpool, tick_arrays, 10**12, False, tick_index_to_sqrt_price_x64(1024))
        whirlpool, position, tick_arrays = open_position(whirlpool, tick_arrays, 960, 1088, 10**8)

        assert get_tick(tick_arrays, 960, 64).fee_growth_outside_b == whirlpool.fee_growth_global_b
        assert get_tick(tick_arrays, 1088, 64).fee_growth_outside_b == 0
        assert _fees(whirlpool, tick_arrays, position) == CollectFeesQuote(0, 0)

    def test_requires_swap_result(self, two_positions):
        whirlpool, tick_arrays, _, _ = two_positions
        _, _, quote = _swap(whirlpool, tick_arrays, 1_000, True, tick_index_to_sqrt_price_x64(-64))

        with pytest.raises(ValueError):
            apply_swap(whirlpool, tick_arrays, replace(quote, swap_result=None))

    def test_fees_owed_never_decrease(self, two_positions):
        whirlpool, tick_arrays, wide, upper = two_positions
        history = [(_fees(whirlpool, tick_arrays, wide), _fees(whirlpool, tick_arrays, upper))]

        # Up through both ranges, back down through both, then further down through the wide range only
        for a_to_b, limit_tick in ((False, 1024), (True, 0), (True, -320)):
            whirlpool, tick_arrays, _ = _swap(
                whirlpool, tick_arrays, 10**12, a_to_b, tick_index_to_sqrt_price_x64(limit_tick)
            )
            history.append((_fees(whirlpool, tick_arrays, wide), _fees(whirlpool, tick_arrays, upper)))

        for before, after in zip(history, history[1:]):
            for position_before, position_after in zip(before, after):
                assert position_after.fee_owed_a >= position_before.fee_owed_a
                assert position_after.fee_owed_b >= position_before.fee_owed_b

        (wide_0, upper_0), (wide_1, upper_1), (wide_2, upper_2), (wide_3, upper_3) = history
        # Both positions are in range while the price moves up, and earn the input token B
        assert wide_1.fee_owed_b > wide_0.fee_owed_b
        assert upper_1.fee_owed_b > upper_0.fee_owed_b
        # Both are crossed on the way back down, and earn the input token A
        assert wide_2.fee_owed_a > wide_1.fee_owed_a
        assert upper_2.fee_owed_a > upper_1.fee_owed_a
        # Below tick 320 only the wide position earns
        assert wide_3.fee_owed_a > wide_2.fee_owed_a
        assert upper_3 == upper_2


class TestSwapRewards:
    def test_crossing_uses_growth_at_swap_time(self, reward_positions):
        whirlpool, tick_arrays, _, _ = reward_positions
        whirlpool, tick_arrays, _ = _swap(
            whirlpool, tick_arrays, 10**12, False, tick_index_to_sqrt_price_x64(1024), time_stamp_in_seconds=1_100
        )

        # 100 seconds of emissions shared by the 1e10 liquidity active before the swap
        growth = 1_000 * Q64 // 10**10
        assert whirlpool.reward_infos[0].growth_global_x64 == growth
        assert whirlpool.reward_last_updated_timestamp == 1_100
        assert get_tick(tick_arrays, 320, 64).reward_growths_outside[0] == growth
        assert get_tick(tick_arrays, 640, 64).reward_growths_outside[0] == growth

    def test_emissions_before_swap_stay_with_old_range(self, reward_positions):
        whirlpool, tick_arrays, wide, upper = reward_positions
        whirlpool, tick_arrays, _ = _swap(
            whirlpool, tick_arrays, 10**12, False, tick_index_to_sqrt_price_x64(1024), time_stamp_in_seconds=1_100
        )

        _, wide = update_fees_and_rewards(whirlpool, wide, tick_arrays, 1_100)
        _, upper = update_fees_and_rewards(whirlpool, upper, tick_arrays, 1_100)

        assert wide.reward_infos[0].amount_owed == 999
        assert upper.reward_infos[0].amount_owed == 0

    def test_without_timestamp_rewards_unchanged(self, reward_positions):
        whirlpool, tick_arrays, _, _ = reward_positions
        limit = tick_index_to_sqrt_price_x64(1024)
        next_whirlpool, tick_arrays, _ = _swap(whirlpool, tick_arrays, 10**12, False, limit)

        assert next_whirlpool.reward_infos == whirlpool.reward_infos
        assert next_whirlpool.reward_last_updated_timestamp == 1_000
        assert get_tick(tick_arrays, 320, 64).reward_growths_outside[0] == 0


class TestFeeCollection:
    def test_round_trip_fees(self, build_whirlpool):
        whirlpool = build_whirlpool(tick_spacing=128, sqrt_price=encode_sqrt_price(5))
        tick_arrays = empty_tick_arrays(whirlpool, 0, 29440)

        whirlpool, position, tick_arrays = open_position(whirlpool, tick_arrays, 29440, 33536, 10_000_000)
        whirlpool, out_of_range, tick_arrays = open_position(whirlpool, tick_arrays, 0, 128, 10_000_000)
        assert whirlpool.liquidity == 10_000_000

        whirlpool, tick_arrays, _ = _swap(whirlpool, tick_arrays, 200_000, True, encode_sqrt_price(4))
        whirlpool, tick_arrays, _ = _swap(whirlpool, tick_arrays, 200_000, False, encode_sqrt_price(5))

        assert _fees(whirlpool, tick_arrays, position) == CollectFeesQuote(581, 581)
        assert _fees(whirlpool, tick_arrays, out_of_range) == CollectFeesQuote(0, 0)

        whirlpool, position = update_fees_and_rewards(whirlpool, position, tick_arrays)
        assert (position.fee_owed_a, position.fee_owed_b) == (581, 581)
        assert _fees(whirlpool, tick_arrays, position) == CollectFeesQuote(581, 581)

        position = apply_collect_fees(position)
        assert _fees(whirlpool, tick_arrays, position) == CollectFeesQuote(0, 0)

    def test_withdrawal_keeps_owed_fees(self, two_positions):
        whirlpool, tick_arrays, wide, _ = two_positions
        whirlpool, tick_arrays, _ = _swap(whirlpool, tick_arrays, 10**12, False, tick_index_to_sqrt_price_x64(1024))
        expected = _fees(whirlpool, tick_arrays, wide)

        whirlpool, wide, tick_arrays = apply_decrease_liquidity(whirlpool, wide, tick_arrays, 10**10)

        assert (wide.fee_owed_a, wide.fee_owed_b) == (expected.fee_owed_a, expected.fee_owed_b)
        assert whirlpool.liquidity == 5 * 10**9


class TestCollectRewards:
    def test_clear_single_slot(self):
        position = Position(
            tick_lower_index=0,
            tick_upper_index=64,
            reward_infos=tuple(PositionRewardInfo(amount_owed=owed) for owed in (10, 20, 30)),
        )
        collected = apply_collect_rewards(position, 1)
        assert [info.amount_owed for info in collected.reward_infos] == [10, 0, 30]

    def test_clear_all(self):
        position = Position(
            tick_lower_index=0,
            tick_upper_index=64,
            reward_infos=tuple(PositionRewardInfo(amount_owed=owed) for owed in (10, 20, 30)),
        )
        assert all(info.amount_owed == 0 for info in apply_collect_rewards(position).reward_infos)

    def test_invalid_slot(self):
        with pytest.raises(ValueError):
            apply_collect_rewards(Position(tick_lower_index=0, tick_upper_index=64), 3)


class TestStableSwap:
    POSITIONS = [
        (27712, 29360),
        (27736, 29240),
        (27840, 29120),
        (28288, 29112),
        (28416, 29112),
        (28288, 28304),
        (28296, 29112),
        (28576, 28736),
    ]

    def test_exact_output_across_arrays(self, build_whirlpool):
        whirlpool = build_whirlpool(tick_spacing=8, sqrt_price=tick_index_to_sqrt_price_x64(27500))
        tick_arrays = empty_tick_arrays(whirlpool, 27456, 28160, 28864)
        for tick_lower, tick_upper in self.POSITIONS:
            whirlpool, _, tick_arrays = open_position(whirlpool, tick_arrays, tick_lower, tick_upper, 10_000_000)
        assert whirlpool.liquidity == 0

        limit = tick_index_to_sqrt_price_x64(29240)
        quote = simulate_swap(
            SwapQuoteParams(
                whirlpool=whirlpool,
                tick_arrays=get_swap_tick_arrays(whirlpool, tick_arrays, False),
                token_amount=829_996,
                other_amount_threshold=2**64 - 1,
                sqrt_price_limit=limit,
                a_to_b=False,
                amount_specified_is_input=False,
            )
        )

        assert 27712 <= quote.estimated_end_tick_index <= 29240
        assert quote.estimated_amount_out == 829_996 or quote.estimated_end_sqrt_price == limit
        assert set(quote.tick_arrays) <= {"tick-array-27456", "tick-array-28160", "tick-array-28864"}

        whirlpool, tick_arrays = apply_swap(whirlpool, tick_arrays, quote)
        assert whirlpool.liquidity > 0
