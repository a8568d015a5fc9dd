"""Preview service over cached pool state.

PoolPreviewService keeps the latest snapshot from a PoolStateProvider in a
TtlCache and answers previews against it, so that a UI polling many
previews triggers at most one fetch per TTL window.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

from planner.config import DEFAULT_OPTIMIZER_CONFIG, OptimizerConfig
from planner.models.amounts import PoolAmountPreview, SwapPreview, TokenAmount
from planner.pool import preview
from planner.pool.types import AccountSnapshot, PoolState
from planner.state.cache import TtlCache
from planner.state.providers import PoolStateProvider

logger = structlog.get_logger()


class PoolPreviewService:
    """Previews backed by a TTL-cached pool snapshot.

    Args:
        provider: Source of fresh pool state
        config: Supplies the cache TTL and display precision
        clock: Optional time source forwarded to the cache
    """

    def __init__(
        self,
        provider: PoolStateProvider,
        config: OptimizerConfig | None = None,
        *,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.config = config or DEFAULT_OPTIMIZER_CONFIG
        cache_kwargs = {} if clock is None else {"clock": clock}
        self._cache: TtlCache[PoolState] = TtlCache(
            provider.fetch_pool_state,
            self.config.cache_ttl_seconds,
            name="pool_state",
            **cache_kwargs,
        )

    @property
    def cache(self) -> TtlCache[PoolState]:
        return self._cache

    async def pool_state(self) -> PoolState:
        """Latest snapshot, refreshed when older than the TTL."""
        return await self._cache.get()

    async def refresh(self) -> PoolState:
        """Force a new snapshot regardless of its age."""
        logger.debug("pool_state_forced_refresh")
        return await self._cache.refresh()

    async def spot_price(self, token_in: str, token_out: str) -> int:
        pool = await self.pool_state()
        return preview.preview_spot_price(pool, token_in, token_out).value

    async def out_given_in(self, token_in: str, token_out: str, amount_in: int) -> SwapPreview:
        pool = await self.pool_state()
        return preview.preview_out_given_in(
            pool, token_in, token_out, amount_in, precision=self.config.display_precision
        )

    async def in_given_out(
        self,
        token_in: str,
        token_out: str,
        amount_out: int,
        account: AccountSnapshot | None = None,
    ) -> SwapPreview:
        pool = await self.pool_state()
        return preview.preview_in_given_out(
            pool,
            token_in,
            token_out,
            amount_out,
            account=account,
            precision=self.config.display_precision,
        )

    async def single_in_given_pool_out(
        self, token_in: str, pool_amount_out: int, account: AccountSnapshot | None = None
    ) -> PoolAmountPreview:
        pool = await self.pool_state()
        return preview.preview_single_in_given_pool_out(
            pool,
            token_in,
            pool_amount_out,
            account=account,
            precision=self.config.display_precision,
        )

    async def pool_out_given_single_in(
        self, token_in: str, amount_in: int, account: AccountSnapshot | None = None
    ) -> PoolAmountPreview:
        pool = await self.pool_state()
        return preview.preview_pool_out_given_single_in(
            pool,
            token_in,
            amount_in,
            account=account,
            precision=self.config.display_precision,
        )

    async def all_in_given_pool_out(
        self, pool_amount_out: int, account: AccountSnapshot | None = None
    ) -> list[TokenAmount]:
        pool = await self.pool_state()
        return preview.preview_all_in_given_pool_out(
            pool, pool_amount_out, account=account, precision=self.config.display_precision
        )

    async def single_out_given_pool_in(
        self, token_out: str, pool_amount_in: int
    ) -> PoolAmountPreview:
        pool = await self.pool_state()
        return preview.preview_single_out_given_pool_in(
            pool, token_out, pool_amount_in, precision=self.config.display_precision
        )

    async def pool_in_given_single_out(self, token_out: str, amount_out: int) -> PoolAmountPreview:
        pool = await self.pool_state()
        return preview.preview_pool_in_given_single_out(
            pool, token_out, amount_out, precision=self.config.display_precision
        )

    async def all_out_given_pool_in(self, pool_amount_in: int) -> list[TokenAmount]:
        pool = await self.pool_state()
        return preview.preview_all_out_given_pool_in(
            pool, pool_amount_in, precision=self.config.display_precision
        )


__all__ = ["PoolPreviewService"]
