"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Token addresses and common amounts
- factories: Pool and asset factory functions
- fakes: In-memory quote sources, providers and clocks
"""

from tests.helpers.constants import (
    AAVE,
    COMP,
    DAI,
    ONE,
    POOL,
    SWAP_FEE,
    UNI,
    USDC,
    WALLET,
    WBTC,
    WETH,
)
from tests.helpers.factories import make_asset, make_pool
from tests.helpers.fakes import FakeClock, FakeQuoteSource, StaticPoolStateProvider

__all__ = [
    # Constants
    "WETH",
    "USDC",
    "DAI",
    "WBTC",
    "UNI",
    "AAVE",
    "COMP",
    "POOL",
    "WALLET",
    "ONE",
    "SWAP_FEE",
    # Factories
    "make_asset",
    "make_pool",
    # Fakes
    "FakeQuoteSource",
    "StaticPoolStateProvider",
    "FakeClock",
]
