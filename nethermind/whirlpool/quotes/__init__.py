from .collect_quotes import CollectFeesQuote, CollectRewardsQuote, collect_fees_quote, collect_rewards_quote
from .liquidity_quotes import (
    DecreaseLiquidityQuote,
    IncreaseLiquidityQuote,
    decrease_liquidity_quote_by_liquidity,
    increase_liquidity_quote_by_input_token,
    increase_liquidity_quote_by_liquidity,
)
from .swap_quote import (
    SwapQuote,
    SwapQuoteParams,
    simulate_swap,
    swap_quote_by_input_token,
    swap_quote_by_output_token,
    swap_quote_by_token,
    swap_quote_with_params,
)
