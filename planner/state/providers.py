"""Interfaces for fetching pool state from outside the planner."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from planner.pool.types import PoolState


@runtime_checkable
class PoolStateProvider(Protocol):
    """Source of fresh pool snapshots.

    Implementations read balances, weights, supply and fees from the chain
    (or a subgraph) and return a fully populated PoolState. The planner
    never calls this directly; PoolPreviewService does, behind a TtlCache.
    """

    async def fetch_pool_state(self) -> PoolState:
        """Fetch a complete snapshot of the pool."""
        ...


__all__ = ["PoolStateProvider"]
