from dataclasses import dataclass

from nethermind.whirlpool.math.bit_math import mul_div, sub_underflow_u128
from nethermind.whirlpool.math.constants import NUM_REWARDS
from nethermind.whirlpool.pool_utils import is_reward_initialized
from nethermind.whirlpool.types import Position, Tick, Whirlpool


@dataclass(frozen=True, slots=True)
class CollectFeesQuote:
    fee_owed_a: int
    fee_owed_b: int


@dataclass(frozen=True, slots=True)
class CollectRewardsQuote:
    """Reward owed per reward slot.  ``None`` marks a slot without an initialized reward"""

    reward_owed: tuple[int | None, ...]

    @property
    def reward_owed_a(self) -> int | None:
        return self.reward_owed[0]

    @property
    def reward_owed_b(self) -> int | None:
        return self.reward_owed[1]

    @property
    def reward_owed_c(self) -> int | None:
        return self.reward_owed[2]


def get_growth_inside(
    tick_current_index: int,
    tick_lower_index: int,
    tick_upper_index: int,
    growth_global: int,
    lower_growth_outside: int,
    upper_growth_outside: int,
) -> int:
    """
    Growth accumulated inside [tick_lower_index, tick_upper_index), computed as
    ``global - below(lower) - above(upper)``.  Outside growths are stored relative to the side of the tick
    the price was on when they were last crossed, so the side is resolved against the current tick.
    All subtractions wrap at u128.
    """
    if tick_current_index < tick_lower_index:
        growth_below = sub_underflow_u128(growth_global, lower_growth_outside)
    else:
        growth_below = lower_growth_outside

    if tick_current_index < tick_upper_index:
        growth_above = upper_growth_outside
    else:
        growth_above = sub_underflow_u128(growth_global, upper_growth_outside)

    return sub_underflow_u128(sub_underflow_u128(growth_global, growth_below), growth_above)


def collect_fees_quote(whirlpool: Whirlpool, position: Position, tick_lower: Tick, tick_upper: Tick) -> CollectFeesQuote:
    """
    Fees a position could collect at the snapshot.  Pure read: owed amounts are only cleared when the
    collection is executed.

    :param whirlpool: pool snapshot
    :param position: position snapshot
    :param tick_lower: tick at ``position.tick_lower_index``
    :param tick_upper: tick at ``position.tick_upper_index``
    """
    fee_growth_inside_a = get_growth_inside(
        whirlpool.tick_current_index,
        position.tick_lower_index,
        position.tick_upper_index,
        whirlpool.fee_growth_global_a,
        tick_lower.fee_growth_outside_a,
        tick_upper.fee_growth_outside_a,
    )
    fee_growth_inside_b = get_growth_inside(
        whirlpool.tick_current_index,
        position.tick_lower_index,
        position.tick_upper_index,
        whirlpool.fee_growth_global_b,
        tick_lower.fee_growth_outside_b,
        tick_upper.fee_growth_outside_b,
    )

    fee_owed_delta_a = (
        sub_underflow_u128(fee_growth_inside_a, position.fee_growth_checkpoint_a) * position.liquidity
    ) >> 64
    fee_owed_delta_b = (
        sub_underflow_u128(fee_growth_inside_b, position.fee_growth_checkpoint_b) * position.liquidity
    ) >> 64

    return CollectFeesQuote(
        fee_owed_a=position.fee_owed_a + fee_owed_delta_a,
        fee_owed_b=position.fee_owed_b + fee_owed_delta_b,
    )


def get_reward_growths_global(whirlpool: Whirlpool, time_stamp_in_seconds: int | None = None) -> list[int]:
    """
    Reward growth per slot, advanced from ``reward_last_updated_timestamp`` to ``time_stamp_in_seconds``
    at each reward's emission rate.  Without a timestamp the stored growths are returned unchanged.
    """
    time_delta = 0
    if time_stamp_in_seconds is not None:
        time_delta = max(time_stamp_in_seconds - whirlpool.reward_last_updated_timestamp, 0)

    growths = []
    for reward_info in whirlpool.reward_infos:
        growth = reward_info.growth_global_x64
        if is_reward_initialized(reward_info) and whirlpool.liquidity > 0 and time_delta > 0:
            growth += mul_div(time_delta, reward_info.emissions_per_second_x64, whirlpool.liquidity, 128)
        growths.append(growth)

    return growths


def collect_rewards_quote(
    whirlpool: Whirlpool,
    position: Position,
    tick_lower: Tick,
    tick_upper: Tick,
    time_stamp_in_seconds: int | None = None,
) -> CollectRewardsQuote:
    """
    Rewards a position could collect.  If ``time_stamp_in_seconds`` is given, pool reward growth is first
    advanced to that time, as the on-chain program does before any position update.
    """
    reward_growths_global = get_reward_growths_global(whirlpool, time_stamp_in_seconds)
    reward_owed: list[int | None] = []

    for idx in range(NUM_REWARDS):
        if not is_reward_initialized(whirlpool.reward_infos[idx]):
            reward_owed.append(None)
            continue

        growth_inside = get_growth_inside(
            whirlpool.tick_current_index,
            position.tick_lower_index,
            position.tick_upper_index,
            reward_growths_global[idx],
            tick_lower.reward_growths_outside[idx],
            tick_upper.reward_growths_outside[idx],
        )
        position_reward = position.reward_infos[idx]

        amount_owed_x64 = (position_reward.amount_owed << 64) + sub_underflow_u128(
            growth_inside, position_reward.growth_inside_checkpoint
        ) * position.liquidity
        reward_owed.append(amount_owed_x64 >> 64)

    return CollectRewardsQuote(reward_owed=tuple(reward_owed))
