import logging
import os
from logging import Logger

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

root_logger = logging.getLogger("nethermind")
logger = root_logger.getChild("whirlpool").getChild("cli")

load_dotenv()


def cli_logger_config(instrument_logger: Logger) -> Console:
    rich_console = Console()
    instrument_logger.handlers.clear()

    instrument_logger.addHandler(RichHandler(show_path=False, console=rich_console))
    instrument_logger.setLevel(logging.INFO)
    return rich_console


def group_options(*options):
    """Decorator to group multiple click options together"""

    def wrapper(function):
        for option in reversed(options):
            function = option(function)
        return function

    return wrapper


def _format_value(value: object) -> str:
    if isinstance(value, int) and not isinstance(value, bool):
        return f"{value:,}"
    return f"{value}"


def key_value_table(title: str, rows: dict[str, object]) -> Table:
    table = Table(title=title, min_width=60)
    table.add_column("Field")
    table.add_column("Value", justify="right")
    for key, value in rows.items():
        table.add_row(f"[green]{key}", _format_value(value))
    return table


# -------------------------------------------------------
#    Snapshot & Quote Configuration
# -------------------------------------------------------
snapshot_option = click.option(
    "--snapshot",
    "-s",
    "snapshot",
    type=click.Path(exists=True, dir_okay=False),
    default=os.environ.get("WHIRLPOOL_SNAPSHOT"),
    required=os.environ.get("WHIRLPOOL_SNAPSHOT") is None,
    help="JSON file holding the pool, tick array and position snapshots.  If not provided, will use the "
    "WHIRLPOOL_SNAPSHOT environment variable",
)
slippage_bps_option = click.option(
    "--slippage-bps",
    "slippage_bps",
    type=int,
    default=int(os.environ.get("WHIRLPOOL_SLIPPAGE_BPS", "100")),
    show_default=True,
    help="Slippage tolerance in basis points.  Defaults to the WHIRLPOOL_SLIPPAGE_BPS environment variable",
)
timestamp_option = click.option(
    "--timestamp",
    "time_stamp_in_seconds",
    type=int,
    default=None,
    help="Unix timestamp to advance reward growth to.  If not provided, rewards are quoted as of the last "
    "reward update in the snapshot",
)

# -------------------------------------------------------
#    Price Conversion Parameters
# -------------------------------------------------------
decimals_a_option = click.option(
    "--decimals-a",
    "decimals_a",
    type=int,
    default=0,
    show_default=True,
    help="Decimals of token A",
)
decimals_b_option = click.option(
    "--decimals-b",
    "decimals_b",
    type=int,
    default=0,
    show_default=True,
    help="Decimals of token B",
)
tick_spacing_option = click.option(
    "--tick-spacing",
    "tick_spacing",
    type=int,
    default=None,
    help="If provided, the tick is rounded to the closest initializable tick for this spacing",
)
