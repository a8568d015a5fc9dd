"""Quote and gas price interfaces consumed by the strategy optimizer.

Quotes come from an external swap venue; the optimizer only needs the
amounts and the route. Absence of a route is an expected outcome and is
reported as None rather than raised.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from fractions import Fraction
from typing import Literal, Protocol, runtime_checkable

from planner.models.types import normalize_address

GasUnit = Literal["wei", "gwei"]


@dataclass(frozen=True)
class TradeQuote:
    """A point-in-time quote for swapping token_in into token_out.

    Attributes:
        token_in: Input token address
        token_out: Output token address
        input_amount: Amount of token_in spent
        output_amount: Amount of token_out received
        path: Token addresses along the route, token_in first
    """

    token_in: str
    token_out: str
    input_amount: int
    output_amount: int
    path: tuple[str, ...]

    @classmethod
    def identity(cls, token: str, amount: int) -> TradeQuote:
        """A quote that hands a token over unchanged (no swap)."""
        token = normalize_address(token)
        return cls(token, token, amount, amount, (token,))

    @property
    def is_identity(self) -> bool:
        return len(self.path) == 1

    @property
    def hop_count(self) -> int:
        return max(len(self.path) - 1, 0)

    def minimum_amount_out(self, slippage: Decimal) -> int:
        """Worst acceptable output: floor(output / (1 + slippage)).

        Identity quotes are exempt from slippage.
        """
        if self.is_identity:
            return self.output_amount
        return math.floor(Fraction(self.output_amount) / (1 + Fraction(slippage)))

    def maximum_amount_in(self, slippage: Decimal) -> int:
        """Worst acceptable input: floor(input * (1 + slippage)).

        Identity quotes are exempt from slippage.
        """
        if self.is_identity:
            return self.input_amount
        return math.floor(Fraction(self.input_amount) * (1 + Fraction(slippage)))


@runtime_checkable
class QuoteSource(Protocol):
    """External swap venue able to quote trades between arbitrary tokens.

    Both methods return None when no route exists. Implementations may also
    raise NoRouteAvailable; the optimizer treats both the same way.
    """

    async def quote_exact_in(
        self, token_in: str, amount_in: int, token_out: str
    ) -> TradeQuote | None:
        """Quote the output of selling exactly amount_in of token_in."""
        ...

    async def quote_exact_out(
        self, token_in: str, token_out: str, amount_out: int
    ) -> TradeQuote | None:
        """Quote the input needed to buy exactly amount_out of token_out."""
        ...


@runtime_checkable
class GasPriceOracle(Protocol):
    """Source of the current gas price."""

    async def current_price(self, unit: GasUnit = "wei") -> int:
        """Current gas price in the requested unit."""
        ...


__all__ = ["TradeQuote", "QuoteSource", "GasPriceOracle", "GasUnit"]
