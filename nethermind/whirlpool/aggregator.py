"""Models for swap quotes returned by the Jupiter v6 aggregator.  Parsing only, no transport."""
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AggregatorModel(BaseModel):
    """Base model accepting either the aggregator's camelCase keys or python field names"""

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class SwapMode(Enum):
    exact_in = "ExactIn"
    exact_out = "ExactOut"


class PlatformFee(AggregatorModel):
    amount: int
    fee_bps: int = Field(alias="feeBps")


class SwapInfo(AggregatorModel):
    """Single AMM hop of a route"""

    amm_key: str = Field(alias="ammKey")
    label: str | None = None
    input_mint: str = Field(alias="inputMint")
    output_mint: str = Field(alias="outputMint")
    in_amount: int = Field(alias="inAmount")
    out_amount: int = Field(alias="outAmount")
    fee_amount: int = Field(alias="feeAmount")
    fee_mint: str = Field(alias="feeMint")


class RoutePlanStep(AggregatorModel):
    swap_info: SwapInfo = Field(alias="swapInfo")
    percent: int
    """
        Share of the routed amount, in percent, that flows through this step
    """


class SwapQuoteAg(AggregatorModel):
    """
    Aggregated swap quote.  Amounts are transmitted as decimal strings and parsed into integers of the
    token's base units.
    """

    input_mint: str = Field(alias="inputMint")
    in_amount: int = Field(alias="inAmount")
    output_mint: str = Field(alias="outputMint")
    out_amount: int = Field(alias="outAmount")
    other_amount_threshold: int = Field(alias="otherAmountThreshold")
    """
        Minimum output for ExactIn swaps, maximum input for ExactOut swaps, after slippage
    """
    swap_mode: SwapMode = Field(alias="swapMode")
    slippage_bps: int = Field(alias="slippageBps")
    platform_fee: PlatformFee | None = Field(default=None, alias="platformFee")
    price_impact_pct: Decimal = Field(alias="priceImpactPct")
    route_plan: list[RoutePlanStep] = Field(alias="routePlan")
    context_slot: int | None = Field(default=None, alias="contextSlot")
    time_taken: float | None = Field(default=None, alias="timeTaken")

    @property
    def amount_specified_is_input(self) -> bool:
        return self.swap_mode == SwapMode.exact_in

    @property
    def amm_keys(self) -> list[str]:
        """AMM accounts the route passes through, in route order"""
        return [step.swap_info.amm_key for step in self.route_plan]


def parse_swap_quote(data: str | bytes | dict[str, Any]) -> SwapQuoteAg:
    """
    Parses an aggregator quote response

    :param data: raw JSON response body or an already decoded dictionary
    """
    if isinstance(data, dict):
        return SwapQuoteAg.model_validate(data)
    return SwapQuoteAg.model_validate_json(data)
