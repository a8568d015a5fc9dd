"""Candidate types compared by the strategy optimizer."""

from __future__ import annotations

from dataclasses import dataclass

from planner.models.plans import StrategyKind, TradeDirection
from planner.pool.types import PoolAssetState
from planner.quotes.base import TradeQuote


@dataclass(frozen=True)
class CandidateLeg:
    """One pool asset's part of a candidate.

    Attributes:
        asset: Pool asset deposited or withdrawn
        pool_asset_amount: Amount of the pool asset deposited or withdrawn
        quote: Swap between the caller's token and the pool asset
        quote_amount: Expected amount of the caller's token for this leg
        limit_amount: Slippage-adjusted bound on quote_amount (maximum input
            for joins, minimum output for exits)
    """

    asset: PoolAssetState
    pool_asset_amount: int
    quote: TradeQuote
    quote_amount: int
    limit_amount: int

    @property
    def is_identity(self) -> bool:
        return self.quote.is_identity


@dataclass(frozen=True)
class StrategyCandidate:
    """A fully quoted way to execute a deposit or withdrawal.

    Attributes:
        kind: Single asset or proportional
        direction: Which side of the trade the caller fixed
        token: Caller's source token (joins) or destination token (exits)
        pool_amount: Pool tokens minted or burned
        token_amount: Expected total of the caller's token
        token_limit: Worst-case total of the caller's token after slippage
        legs: Per-asset legs
        gas_penalty: Gas cost charged to this candidate, in `token` units
    """

    kind: StrategyKind
    direction: TradeDirection
    token: str
    pool_amount: int
    token_amount: int
    token_limit: int
    legs: tuple[CandidateLeg, ...]
    gas_penalty: int = 0

    @property
    def swap_count(self) -> int:
        return sum(1 for leg in self.legs if not leg.is_identity)

    @property
    def operation_count(self) -> int:
        """On-chain pool operations: one per leg."""
        return len(self.legs)

    @property
    def adjusted_cost(self) -> int:
        """Worst-case input plus the gas penalty."""
        return self.token_limit + self.gas_penalty

    @property
    def adjusted_output(self) -> int:
        """Worst-case output minus the gas penalty, floored at zero."""
        return max(self.token_limit - self.gas_penalty, 0)

    @property
    def comparison_value(self) -> int:
        """The quantity this candidate is judged on for its direction."""
        if self.direction == TradeDirection.EXACT_POOL_OUT:
            return self.adjusted_cost
        if self.direction == TradeDirection.EXACT_TOKEN_IN:
            return self.pool_amount
        return self.adjusted_output

    @property
    def minimizes(self) -> bool:
        """True when a lower comparison_value is better."""
        return self.direction == TradeDirection.EXACT_POOL_OUT


__all__ = ["CandidateLeg", "StrategyCandidate"]
