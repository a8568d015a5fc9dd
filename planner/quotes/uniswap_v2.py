"""In-memory constant-product quote source.

Quotes trades across a set of UniswapV2-style pairs, trying every simple
route up to a hop limit and keeping the best one. Useful as a reference
QuoteSource for tests and for callers that already hold pair reserves.

Formula (0.3% fee by default):
    amount_out = (amount_in * 997 * reserve_out) / (reserve_in * 1000 + amount_in * 997)
"""

from __future__ import annotations

from collections import defaultdict, deque
from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from planner.models.types import normalize_address
from planner.quotes.base import TradeQuote

logger = structlog.get_logger()

# Upper bound on candidate routes evaluated per quote
DEFAULT_MAX_PATHS = 20


@dataclass(frozen=True)
class ConstantProductPair:
    """A constant-product liquidity pair."""

    address: str
    token0: str
    token1: str
    reserve0: int
    reserve1: int
    # Fee in basis points (30 = 0.3%)
    fee_bps: int = 30

    @property
    def fee_multiplier(self) -> int:
        """10000 - fee_bps, e.g. 9970 for a 0.3% fee."""
        return 10000 - self.fee_bps

    @property
    def depth(self) -> int:
        """Constant-product invariant k = reserve0 * reserve1."""
        return self.reserve0 * self.reserve1

    def get_reserves(self, token_in: str) -> tuple[int, int]:
        """Get reserves ordered as (reserve_in, reserve_out)."""
        token_in_norm = normalize_address(token_in)
        if token_in_norm == normalize_address(self.token0):
            return self.reserve0, self.reserve1
        if token_in_norm == normalize_address(self.token1):
            return self.reserve1, self.reserve0
        raise ValueError(f"Token {token_in} not in pair {self.address}")

    def get_amount_out(self, token_in: str, amount_in: int) -> int:
        """Output for selling amount_in of token_in; 0 if nothing comes out."""
        reserve_in, reserve_out = self.get_reserves(token_in)
        if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
            return 0
        amount_in_with_fee = amount_in * self.fee_multiplier
        numerator = amount_in_with_fee * reserve_out
        denominator = reserve_in * 10000 + amount_in_with_fee
        return numerator // denominator

    def get_amount_in(self, token_in: str, amount_out: int) -> int | None:
        """Input needed to buy amount_out; None if the pair cannot supply it."""
        reserve_in, reserve_out = self.get_reserves(token_in)
        if amount_out <= 0:
            return 0
        if reserve_in <= 0 or amount_out >= reserve_out:
            return None
        numerator = reserve_in * amount_out * 10000
        denominator = (reserve_out - amount_out) * self.fee_multiplier
        return numerator // denominator + 1


class UniswapV2QuoteSource:
    """QuoteSource over a fixed set of constant-product pairs.

    Args:
        pairs: Pairs available for routing
        max_hops: Maximum swaps per route (default 3)
        max_paths: Maximum candidate routes evaluated per quote
    """

    def __init__(
        self,
        pairs: Iterable[ConstantProductPair],
        max_hops: int = 3,
        max_paths: int = DEFAULT_MAX_PATHS,
    ) -> None:
        if max_hops < 1:
            raise ValueError(f"max_hops must be at least 1, got {max_hops}")
        self.max_hops = max_hops
        self.max_paths = max_paths
        self._pairs: dict[frozenset[str], ConstantProductPair] = {}
        self._neighbors: dict[str, set[str]] = defaultdict(set)
        for pair in pairs:
            token0 = normalize_address(pair.token0)
            token1 = normalize_address(pair.token1)
            key = frozenset((token0, token1))
            existing = self._pairs.get(key)
            # Keep the deeper pair when two pairs share tokens
            if existing is None or existing.depth < pair.depth:
                self._pairs[key] = pair
            self._neighbors[token0].add(token1)
            self._neighbors[token1].add(token0)

    def get_pair(self, token_a: str, token_b: str) -> ConstantProductPair | None:
        key = frozenset((normalize_address(token_a), normalize_address(token_b)))
        return self._pairs.get(key)

    def find_paths(self, token_in: str, token_out: str) -> list[list[str]]:
        """Enumerate simple routes from token_in to token_out, shortest first."""
        start = normalize_address(token_in)
        end = normalize_address(token_out)
        if start == end or start not in self._neighbors or end not in self._neighbors:
            return []

        paths: list[list[str]] = []
        queue: deque[list[str]] = deque([[start]])
        while queue and len(paths) < self.max_paths:
            path = queue.popleft()
            for neighbor in sorted(self._neighbors[path[-1]]):
                if neighbor in path:
                    continue
                if neighbor == end:
                    paths.append(path + [end])
                    if len(paths) >= self.max_paths:
                        break
                elif len(path) < self.max_hops:
                    queue.append(path + [neighbor])
        return paths

    def _simulate_exact_in(self, path: list[str], amount_in: int) -> int:
        amount = amount_in
        for token_a, token_b in zip(path, path[1:]):
            pair = self.get_pair(token_a, token_b)
            if pair is None:
                return 0
            amount = pair.get_amount_out(token_a, amount)
            if amount <= 0:
                return 0
        return amount

    def _simulate_exact_out(self, path: list[str], amount_out: int) -> int | None:
        amount: int | None = amount_out
        for token_a, token_b in reversed(list(zip(path, path[1:]))):
            pair = self.get_pair(token_a, token_b)
            if pair is None or amount is None:
                return None
            amount = pair.get_amount_in(token_a, amount)
        return amount

    async def quote_exact_in(
        self, token_in: str, amount_in: int, token_out: str
    ) -> TradeQuote | None:
        if normalize_address(token_in) == normalize_address(token_out):
            return TradeQuote.identity(token_in, amount_in)

        best: tuple[int, list[str]] | None = None
        for path in self.find_paths(token_in, token_out):
            amount_out = self._simulate_exact_in(path, amount_in)
            if amount_out > 0 and (best is None or amount_out > best[0]):
                best = (amount_out, path)

        if best is None:
            logger.debug(
                "uniswap_v2_no_route",
                token_in=token_in,
                token_out=token_out,
                amount_in=amount_in,
            )
            return None

        amount_out, path = best
        return TradeQuote(
            token_in=path[0],
            token_out=path[-1],
            input_amount=amount_in,
            output_amount=amount_out,
            path=tuple(path),
        )

    async def quote_exact_out(
        self, token_in: str, token_out: str, amount_out: int
    ) -> TradeQuote | None:
        if normalize_address(token_in) == normalize_address(token_out):
            return TradeQuote.identity(token_in, amount_out)

        best: tuple[int, list[str]] | None = None
        for path in self.find_paths(token_in, token_out):
            amount_in = self._simulate_exact_out(path, amount_out)
            if amount_in is not None and (best is None or amount_in < best[0]):
                best = (amount_in, path)

        if best is None:
            logger.debug(
                "uniswap_v2_no_route",
                token_in=token_in,
                token_out=token_out,
                amount_out=amount_out,
            )
            return None

        amount_in, path = best
        return TradeQuote(
            token_in=path[0],
            token_out=path[-1],
            input_amount=amount_in,
            output_amount=amount_out,
            path=tuple(path),
        )


__all__ = ["ConstantProductPair", "UniswapV2QuoteSource"]
