"""JSON snapshot file read by the CLI"""
from pathlib import Path

from pydantic import BaseModel, Field

from nethermind.whirlpool.math.constants import DEFAULT_PUBLIC_KEY, NUM_REWARDS
from nethermind.whirlpool.simulation import TickArrays, set_tick
from nethermind.whirlpool.types import (
    Position,
    PositionRewardInfo,
    Tick,
    TickArray,
    Whirlpool,
    WhirlpoolRewardInfo,
)


class RewardInfoModel(BaseModel):
    mint: str = DEFAULT_PUBLIC_KEY
    vault: str = DEFAULT_PUBLIC_KEY
    authority: str = DEFAULT_PUBLIC_KEY
    emissions_per_second_x64: int = 0
    growth_global_x64: int = 0


class WhirlpoolModel(BaseModel):
    tick_spacing: int
    fee_rate: int
    protocol_fee_rate: int
    liquidity: int
    sqrt_price: int
    tick_current_index: int
    token_mint_a: str = DEFAULT_PUBLIC_KEY
    token_mint_b: str = DEFAULT_PUBLIC_KEY
    protocol_fee_owed_a: int = 0
    protocol_fee_owed_b: int = 0
    fee_growth_global_a: int = 0
    fee_growth_global_b: int = 0
    reward_last_updated_timestamp: int = 0
    reward_infos: list[RewardInfoModel] = Field(
        default_factory=lambda: [RewardInfoModel() for _ in range(NUM_REWARDS)],
        min_length=NUM_REWARDS,
        max_length=NUM_REWARDS,
    )

    def to_whirlpool(self) -> Whirlpool:
        return Whirlpool(
            **self.model_dump(exclude={"reward_infos"}),
            reward_infos=tuple(WhirlpoolRewardInfo(**info.model_dump()) for info in self.reward_infos),
        )


class TickModel(BaseModel):
    tick_index: int
    liquidity_net: int
    liquidity_gross: int
    fee_growth_outside_a: int = 0
    fee_growth_outside_b: int = 0
    reward_growths_outside: list[int] = Field(default_factory=lambda: [0] * NUM_REWARDS)

    def to_tick(self) -> Tick:
        return Tick(
            initialized=True,
            **self.model_dump(exclude={"tick_index", "reward_growths_outside"}),
            reward_growths_outside=tuple(self.reward_growths_outside),
        )


class TickArrayModel(BaseModel):
    """Tick array listing only its initialized ticks"""

    address: str | None = None
    start_tick_index: int
    ticks: list[TickModel] = Field(default_factory=list)


class PositionRewardModel(BaseModel):
    growth_inside_checkpoint: int = 0
    amount_owed: int = 0


class PositionModel(BaseModel):
    address: str
    tick_lower_index: int
    tick_upper_index: int
    liquidity: int
    fee_growth_checkpoint_a: int = 0
    fee_owed_a: int = 0
    fee_growth_checkpoint_b: int = 0
    fee_owed_b: int = 0
    reward_infos: list[PositionRewardModel] = Field(
        default_factory=lambda: [PositionRewardModel() for _ in range(NUM_REWARDS)],
        min_length=NUM_REWARDS,
        max_length=NUM_REWARDS,
    )

    def to_position(self) -> Position:
        return Position(
            **self.model_dump(exclude={"address", "reward_infos"}),
            reward_infos=tuple(PositionRewardInfo(**info.model_dump()) for info in self.reward_infos),
        )


class PoolSnapshotFile(BaseModel):
    whirlpool: WhirlpoolModel
    tick_arrays: list[TickArrayModel] = Field(default_factory=list)
    positions: list[PositionModel] = Field(default_factory=list)

    @classmethod
    def from_file(cls, path: str | Path) -> "PoolSnapshotFile":
        return cls.model_validate_json(Path(path).read_text())

    def get_tick_arrays(self) -> TickArrays:
        tick_spacing = self.whirlpool.tick_spacing
        tick_arrays: TickArrays = {}
        for array in self.tick_arrays:
            tick_arrays[array.start_tick_index] = TickArray.empty(array.start_tick_index)
            for tick in array.ticks:
                tick_arrays = set_tick(tick_arrays, tick.tick_index, tick_spacing, tick.to_tick())
        return tick_arrays

    def get_tick_array_addresses(self) -> dict[int, str]:
        return {array.start_tick_index: array.address for array in self.tick_arrays if array.address}

    def get_position(self, address: str) -> Position | None:
        for position in self.positions:
            if position.address == address:
                return position.to_position()
        return None
