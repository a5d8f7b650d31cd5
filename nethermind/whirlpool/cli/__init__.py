from decimal import Decimal, InvalidOperation

import click

from nethermind.whirlpool.exceptions import WhirlpoolsError

from .utils import (
    decimals_a_option,
    decimals_b_option,
    group_options,
    root_logger,
    slippage_bps_option,
    snapshot_option,
    tick_spacing_option,
    timestamp_option,
)

# pylint: disable=too-many-arguments,import-outside-toplevel,too-many-locals


@click.group()
def whirlpool_cli():
    """Command Line Interface for Whirlpool quotes"""


@whirlpool_cli.command(name="tick-to-price")
@click.option("--tick-index", "tick_index", type=int, required=True, help="Tick index to convert")
@group_options(decimals_a_option, decimals_b_option)
def tick_to_price(tick_index: int, decimals_a: int, decimals_b: int):
    """Convert a tick index to its sqrt price & token B per token A price"""
    from nethermind.whirlpool.cli.utils import cli_logger_config, key_value_table
    from nethermind.whirlpool.math.price_math import sqrt_price_x64_to_price, tick_index_to_sqrt_price_x64

    console = cli_logger_config(root_logger)

    try:
        sqrt_price_x64 = tick_index_to_sqrt_price_x64(tick_index)
    except WhirlpoolsError as exc:
        raise click.ClickException(str(exc)) from exc

    console.print(
        key_value_table(
            f"Tick {tick_index}",
            {
                "sqrt_price_x64": sqrt_price_x64,
                "price": sqrt_price_x64_to_price(sqrt_price_x64, decimals_a, decimals_b),
            },
        )
    )


@whirlpool_cli.command(name="price-to-tick")
@click.option("--price", "price", type=str, required=True, help="Token B per token A price")
@group_options(decimals_a_option, decimals_b_option, tick_spacing_option)
def price_to_tick(price: str, decimals_a: int, decimals_b: int, tick_spacing: int | None):
    """Convert a price to the closest tick index"""
    from nethermind.whirlpool.cli.utils import cli_logger_config, key_value_table
    from nethermind.whirlpool.math.price_math import (
        price_to_initializable_tick_index,
        price_to_sqrt_price_x64,
        price_to_tick_index,
    )

    console = cli_logger_config(root_logger)

    try:
        decimal_price = Decimal(price)
    except InvalidOperation as exc:
        raise click.BadParameter(f"{price} is not a valid decimal", param_hint="--price") from exc
    if decimal_price <= 0:
        raise click.BadParameter("Price must be positive", param_hint="--price")

    try:
        rows = {
            "sqrt_price_x64": price_to_sqrt_price_x64(decimal_price, decimals_a, decimals_b),
            "tick_index": price_to_tick_index(decimal_price, decimals_a, decimals_b),
        }
        if tick_spacing is not None:
            rows["initializable_tick_index"] = price_to_initializable_tick_index(
                decimal_price, decimals_a, decimals_b, tick_spacing
            )
    except WhirlpoolsError as exc:
        raise click.ClickException(str(exc)) from exc

    console.print(key_value_table(f"Price {price}", rows))


@whirlpool_cli.command(name="swap-quote")
@group_options(snapshot_option, slippage_bps_option)
@click.option("--token-mint", "token_mint", type=str, required=True, help="Mint of the token whose amount is given")
@click.option("--amount", "amount", type=int, required=True, help="Token amount in base units")
@click.option(
    "--exact-out",
    is_flag=True,
    default=False,
    help="If provided, --amount is the desired output instead of the input",
)
def swap_quote(snapshot: str, slippage_bps: int, token_mint: str, amount: int, exact_out: bool):
    """Quote a swap against a pool snapshot"""
    from nethermind.whirlpool.cli.snapshot import PoolSnapshotFile
    from nethermind.whirlpool.cli.utils import cli_logger_config, key_value_table
    from nethermind.whirlpool.math.percentage import Percentage
    from nethermind.whirlpool.pool_utils import get_swap_direction
    from nethermind.whirlpool.quotes.swap_quote import swap_quote_by_token
    from nethermind.whirlpool.simulation import get_swap_tick_arrays
    from nethermind.whirlpool.types import SwapDirection

    console = cli_logger_config(root_logger)

    snapshot_file = PoolSnapshotFile.from_file(snapshot)
    whirlpool = snapshot_file.whirlpool.to_whirlpool()

    direction = get_swap_direction(whirlpool, token_mint, not exact_out)
    if direction is None:
        raise click.BadParameter(f"{token_mint} is not a token of the pool", param_hint="--token-mint")

    tick_arrays = get_swap_tick_arrays(
        whirlpool,
        snapshot_file.get_tick_arrays(),
        direction == SwapDirection.a_to_b,
        snapshot_file.get_tick_array_addresses(),
    )

    try:
        quote = swap_quote_by_token(
            whirlpool,
            token_mint,
            amount,
            not exact_out,
            Percentage.from_bps(slippage_bps),
            tick_arrays,
        )
    except WhirlpoolsError as exc:
        raise click.ClickException(str(exc)) from exc

    console.print(
        key_value_table(
            f"Swap Quote {direction.value}",
            {
                "estimated_amount_in": quote.estimated_amount_in,
                "estimated_amount_out": quote.estimated_amount_out,
                "estimated_fee_amount": quote.estimated_fee_amount,
                "estimated_end_tick_index": quote.estimated_end_tick_index,
                "estimated_end_sqrt_price": quote.estimated_end_sqrt_price,
                "amount": quote.amount,
                "other_amount_threshold": quote.other_amount_threshold,
                "sqrt_price_limit": quote.sqrt_price_limit,
                "tick_array_0": quote.tick_array_0,
                "tick_array_1": quote.tick_array_1,
                "tick_array_2": quote.tick_array_2,
            },
        )
    )


@whirlpool_cli.command(name="fees-quote")
@group_options(snapshot_option, timestamp_option)
@click.option("--position", "position_address", type=str, required=True, help="Address of the position")
def fees_quote(snapshot: str, time_stamp_in_seconds: int | None, position_address: str):
    """Quote the fees & rewards a position could collect"""
    from nethermind.whirlpool.cli.snapshot import PoolSnapshotFile
    from nethermind.whirlpool.cli.utils import cli_logger_config, key_value_table
    from nethermind.whirlpool.quotes.collect_quotes import collect_fees_quote, collect_rewards_quote
    from nethermind.whirlpool.simulation import get_tick

    console = cli_logger_config(root_logger)

    snapshot_file = PoolSnapshotFile.from_file(snapshot)
    whirlpool = snapshot_file.whirlpool.to_whirlpool()
    position = snapshot_file.get_position(position_address)
    if position is None:
        raise click.BadParameter(f"Position {position_address} is not in the snapshot", param_hint="--position")

    tick_arrays = snapshot_file.get_tick_arrays()
    try:
        tick_lower = get_tick(tick_arrays, position.tick_lower_index, whirlpool.tick_spacing)
        tick_upper = get_tick(tick_arrays, position.tick_upper_index, whirlpool.tick_spacing)
    except WhirlpoolsError as exc:
        raise click.ClickException(str(exc)) from exc

    fees = collect_fees_quote(whirlpool, position, tick_lower, tick_upper)
    rewards = collect_rewards_quote(whirlpool, position, tick_lower, tick_upper, time_stamp_in_seconds)

    rows: dict[str, object] = {"fee_owed_a": fees.fee_owed_a, "fee_owed_b": fees.fee_owed_b}
    for idx, reward_owed in enumerate(rewards.reward_owed):
        rows[f"reward_owed_{idx}"] = "uninitialized" if reward_owed is None else reward_owed

    console.print(key_value_table(f"Position {position_address}", rows))
