import logging
from pathlib import Path

import pytest
from pytest import FixtureRequest

from nethermind.whirlpool.math.constants import Q64
from nethermind.whirlpool.math.price_math import sqrt_price_x64_to_tick_index
from nethermind.whirlpool.types import Whirlpool, WhirlpoolRewardInfo

from tests.utils import MINT_A, MINT_B


@pytest.fixture(name="build_whirlpool")
def fixture_build_whirlpool():
    def _build_whirlpool(
        tick_spacing: int = 64,
        sqrt_price: int = Q64,
        liquidity: int = 0,
        fee_rate: int = 3000,
        protocol_fee_rate: int = 300,
        **kwargs,
    ) -> Whirlpool:
        return Whirlpool(
            tick_spacing=tick_spacing,
            fee_rate=fee_rate,
            protocol_fee_rate=protocol_fee_rate,
            liquidity=liquidity,
            sqrt_price=sqrt_price,
            tick_current_index=kwargs.pop("tick_current_index", sqrt_price_x64_to_tick_index(sqrt_price)),
            token_mint_a=MINT_A,
            token_mint_b=MINT_B,
            **kwargs,
        )

    return _build_whirlpool


@pytest.fixture(name="reward_info")
def fixture_reward_info():
    def _reward_info(emissions_per_second_x64: int = 0, growth_global_x64: int = 0) -> WhirlpoolRewardInfo:
        return WhirlpoolRewardInfo(
            mint="rewardMint1111111111111111111111111111111111",
            vault="rewardVault111111111111111111111111111111111",
            authority="rewardAuthority11111111111111111111111111111",
            emissions_per_second_x64=emissions_per_second_x64,
            growth_global_x64=growth_global_x64,
        )

    return _reward_info


@pytest.fixture(scope="function")
def debug_logger(request: FixtureRequest):
    log_filename = request.module.__name__.replace("tests.", "") + "." + request.function.__name__

    log_dir = Path(__file__).parent / "logs"
    log_dir.mkdir(exist_ok=True)
    log_file = log_dir / f"{log_filename}.log"

    formatter = logging.Formatter(
        "%(levelname)-8s | %(name)-36s | %(asctime)-15s | %(message)s \t\t (%(filename)s --> %(funcName)s)"
    )

    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(formatter)

    logger = logging.getLogger("nethermind")
    logger.addHandler(file_handler)
    logger.setLevel(logging.DEBUG)

    logger.info("-" * 100)
    logger.info(f"\t\tInitializing New Run for Test: {request.function.__name__}")
    logger.info("-" * 100)

    yield logger

    logger.removeHandler(file_handler)
    file_handler.close()
