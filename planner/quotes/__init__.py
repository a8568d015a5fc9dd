"""External quote and gas price sources."""

from planner.quotes.base import GasPriceOracle, QuoteSource, TradeQuote
from planner.quotes.gas import FixedGasPriceOracle, HttpGasPriceOracle
from planner.quotes.uniswap_v2 import ConstantProductPair, UniswapV2QuoteSource

__all__ = [
    "TradeQuote",
    "QuoteSource",
    "GasPriceOracle",
    "FixedGasPriceOracle",
    "HttpGasPriceOracle",
    "ConstantProductPair",
    "UniswapV2QuoteSource",
]
