"""Strategy optimizer for minting and burning index pool tokens.

A caller holding some token X can reach the pool two ways:

- Single asset: swap X into one pool asset and join (or exit) with that
  asset alone, paying the pool's swap fee on the non-proportional share.
- All assets proportional: swap X into every pool asset in the pool's
  ratio and join (or exit) proportionally, paying no pool fee but one
  swap and one pool operation per asset.

For each request the optimizer enumerates every feasible candidate of
both shapes, quotes them concurrently and returns the best one as an
ExecutionPlan. Among candidates whose value lies within the slippage
tolerance of the best, the one with the fewest swaps wins.

Nothing is cached; every call works from the PoolState it is given and
quotes obtained during the call.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import replace
from decimal import Decimal
from fractions import Fraction

import structlog

from planner.config import DEFAULT_OPTIMIZER_CONFIG, OptimizerConfig
from planner.constants import POOL_TOKEN_DECIMALS
from planner.errors import InvalidTradeSize, NoRouteAvailable
from planner.math.fixed_point import MAX_IN_RATIO, Bfp, bmul
from planner.models.amounts import TokenAmount
from planner.models.plans import ExecutionPlan, PlanLeg, StrategyKind, TradeDirection
from planner.models.types import normalize_address, same_address
from planner.pool.types import PoolAssetState, PoolState
from planner.pool.weighted_math import (
    calc_all_in_given_pool_out,
    calc_all_out_given_pool_in,
    calc_pool_out_given_single_in,
    calc_single_in_given_pool_out,
    calc_single_out_given_pool_in,
)
from planner.quotes.base import GasPriceOracle, QuoteSource, TradeQuote
from planner.strategies.gas import gas_penalty_in_token
from planner.strategies.types import CandidateLeg, StrategyCandidate

logger = structlog.get_logger()

# The proportional basket is first priced at 1/TRIAL_SUPPLY_DIVISOR of the supply
TRIAL_SUPPLY_DIVISOR = 100

# Minimum shrink per sizing step, in thousandths of the pool amount
MIN_SHRINK_PER_MILLE = 1


def within_tolerance(a: int, b: int, slippage: Decimal) -> bool:
    """True when a and b differ by at most `slippage` of the larger one."""
    return abs(a - b) <= Fraction(slippage) * max(a, b)


def select_candidate(
    candidates: Sequence[StrategyCandidate], slippage: Decimal
) -> StrategyCandidate:
    """Pick the winning candidate.

    Candidates are ranked by their comparison value (lowest cost or highest
    output). Every candidate within slippage tolerance of the best is a
    contender, and the contender with the fewest swaps wins; ties keep the
    ranking order.

    Raises:
        NoRouteAvailable: If there are no candidates
    """
    if not candidates:
        raise NoRouteAvailable("No feasible strategy")

    minimize = candidates[0].minimizes
    ranked = sorted(candidates, key=lambda c: c.comparison_value, reverse=not minimize)
    best_value = ranked[0].comparison_value
    contenders = [c for c in ranked if within_tolerance(c.comparison_value, best_value, slippage)]
    return min(contenders, key=lambda c: c.swap_count)


def within_max_in_ratio(amount: int, balance: int) -> bool:
    """True when the pool would accept amount as a deposit into balance."""
    return amount <= bmul(balance, MAX_IN_RATIO)


class StrategyOptimizer:
    """Choose between single-asset and proportional execution.

    Args:
        quote_source: External swap venue used for every leg
        config: Defaults for slippage, gas adjustment and sizing
        gas_oracle: Required when gas-adjusted comparison is used
    """

    def __init__(
        self,
        quote_source: QuoteSource,
        config: OptimizerConfig | None = None,
        gas_oracle: GasPriceOracle | None = None,
    ) -> None:
        self.quote_source = quote_source
        self.config = config or DEFAULT_OPTIMIZER_CONFIG
        self.gas_oracle = gas_oracle
        if self.config.gas_adjusted and gas_oracle is None:
            raise ValueError("Gas-adjusted comparison requires a gas price oracle")

    # =========================================================================
    # Public operations
    # =========================================================================

    async def best_plan_for_pool_out(
        self,
        pool: PoolState,
        token_in: str,
        pool_amount_out: int,
        *,
        slippage: Decimal | None = None,
        gas_adjusted: bool | None = None,
        decimals: int | None = None,
        symbol: str | None = None,
    ) -> ExecutionPlan:
        """Cheapest way to mint exactly pool_amount_out using token_in.

        decimals and symbol describe token_in for the plan's display amounts
        when it is not a pool asset. Without them 18 decimals and no symbol
        are assumed.

        Raises:
            InvalidTradeSize: If pool_amount_out is not positive or breaks the supply cap
            NoRouteAvailable: If no candidate is feasible
        """
        slippage = self._resolve_slippage(slippage)
        candidates = await self.candidates_for_pool_out(
            pool, token_in, pool_amount_out, slippage=slippage, gas_adjusted=gas_adjusted
        )
        return self._select(pool, candidates, slippage, decimals=decimals, symbol=symbol)

    async def best_plan_for_token_in(
        self,
        pool: PoolState,
        token_in: str,
        amount_in: int,
        *,
        slippage: Decimal | None = None,
        gas_adjusted: bool | None = None,
        decimals: int | None = None,
        symbol: str | None = None,
    ) -> ExecutionPlan:
        """Most pool tokens obtainable by spending exactly amount_in of token_in.

        decimals and symbol describe token_in as in best_plan_for_pool_out.

        Raises:
            InvalidTradeSize: If amount_in is not positive
            NoRouteAvailable: If no candidate is feasible
        """
        slippage = self._resolve_slippage(slippage)
        candidates = await self.candidates_for_token_in(
            pool, token_in, amount_in, slippage=slippage, gas_adjusted=gas_adjusted
        )
        return self._select(pool, candidates, slippage, decimals=decimals, symbol=symbol)

    async def best_plan_for_pool_in(
        self,
        pool: PoolState,
        pool_amount_in: int,
        token_out: str,
        *,
        slippage: Decimal | None = None,
        gas_adjusted: bool | None = None,
        decimals: int | None = None,
        symbol: str | None = None,
    ) -> ExecutionPlan:
        """Most token_out obtainable by burning exactly pool_amount_in.

        decimals and symbol describe token_out as in best_plan_for_pool_out.

        Raises:
            InvalidTradeSize: If pool_amount_in is not positive or exceeds the supply
            NoRouteAvailable: If no candidate is feasible
        """
        slippage = self._resolve_slippage(slippage)
        candidates = await self.candidates_for_pool_in(
            pool, pool_amount_in, token_out, slippage=slippage, gas_adjusted=gas_adjusted
        )
        return self._select(pool, candidates, slippage, decimals=decimals, symbol=symbol)

    # =========================================================================
    # Candidate enumeration
    # =========================================================================

    async def candidates_for_pool_out(
        self,
        pool: PoolState,
        token_in: str,
        pool_amount_out: int,
        *,
        slippage: Decimal | None = None,
        gas_adjusted: bool | None = None,
    ) -> list[StrategyCandidate]:
        """Every feasible candidate for minting an exact pool amount."""
        slippage = self._resolve_slippage(slippage)
        gas_adjusted = self._resolve_gas_adjusted(gas_adjusted)
        token_in = normalize_address(token_in)
        if pool_amount_out <= 0:
            raise InvalidTradeSize(f"Pool amount must be positive, got {pool_amount_out}")
        if self._exceeds_supply_cap(pool, pool_amount_out):
            raise InvalidTradeSize(
                f"Minting {pool_amount_out} would exceed max supply {pool.max_total_supply}"
            )

        singles, proportional = await asyncio.gather(
            self._singles_for_pool_out(pool, token_in, pool_amount_out, slippage),
            self._proportional_join(
                pool, token_in, pool_amount_out, slippage, TradeDirection.EXACT_POOL_OUT
            ),
        )
        candidates = list(singles)
        if proportional is not None:
            penalty = await self._gas_penalty(token_in, proportional, gas_adjusted)
            candidates.append(replace(proportional, gas_penalty=penalty))
        return candidates

    async def candidates_for_token_in(
        self,
        pool: PoolState,
        token_in: str,
        amount_in: int,
        *,
        slippage: Decimal | None = None,
        gas_adjusted: bool | None = None,
    ) -> list[StrategyCandidate]:
        """Every feasible candidate for spending an exact input amount."""
        slippage = self._resolve_slippage(slippage)
        gas_adjusted = self._resolve_gas_adjusted(gas_adjusted)
        token_in = normalize_address(token_in)
        if amount_in <= 0:
            raise InvalidTradeSize(f"Input amount must be positive, got {amount_in}")

        singles, proportional = await asyncio.gather(
            self._singles_for_token_in(pool, token_in, amount_in, slippage),
            self._proportional_for_token_in(pool, token_in, amount_in, slippage, gas_adjusted),
        )
        candidates = list(singles)
        if proportional is not None:
            candidates.append(proportional)
        return candidates

    async def candidates_for_pool_in(
        self,
        pool: PoolState,
        pool_amount_in: int,
        token_out: str,
        *,
        slippage: Decimal | None = None,
        gas_adjusted: bool | None = None,
    ) -> list[StrategyCandidate]:
        """Every feasible candidate for burning an exact pool amount."""
        slippage = self._resolve_slippage(slippage)
        gas_adjusted = self._resolve_gas_adjusted(gas_adjusted)
        token_out = normalize_address(token_out)
        if pool_amount_in <= 0:
            raise InvalidTradeSize(f"Pool amount must be positive, got {pool_amount_in}")
        if pool_amount_in > pool.total_supply:
            raise InvalidTradeSize(
                f"Pool amount {pool_amount_in} exceeds total supply {pool.total_supply}"
            )

        singles, proportional = await asyncio.gather(
            self._singles_for_pool_in(pool, pool_amount_in, token_out, slippage),
            self._proportional_exit(pool, pool_amount_in, token_out, slippage),
        )
        candidates = list(singles)
        if proportional is not None:
            penalty = await self._gas_penalty(token_out, proportional, gas_adjusted)
            candidates.append(replace(proportional, gas_penalty=penalty))
        return candidates

    # =========================================================================
    # Exact pool amount out
    # =========================================================================

    async def _singles_for_pool_out(
        self, pool: PoolState, token_in: str, pool_amount_out: int, slippage: Decimal
    ) -> list[StrategyCandidate]:
        sized: list[tuple[PoolAssetState, int]] = []
        for asset in pool.assets:
            try:
                amount = calc_single_in_given_pool_out(
                    Bfp(asset.used_balance),
                    Bfp(asset.used_weight),
                    Bfp(pool.total_supply),
                    Bfp(pool.total_weight),
                    Bfp(pool_amount_out),
                    Bfp(pool.swap_fee),
                ).value
            except InvalidTradeSize as e:
                logger.debug("single_asset_candidate_rejected", token=asset.token, reason=str(e))
                continue
            sized.append((asset, amount))

        quotes = await asyncio.gather(
            *(self._quote_exact_out(token_in, asset.token, amount) for asset, amount in sized)
        )

        candidates = []
        for (asset, amount), quote in zip(sized, quotes, strict=True):
            if quote is None:
                continue
            leg = CandidateLeg(
                asset=asset,
                pool_asset_amount=amount,
                quote=quote,
                quote_amount=quote.input_amount,
                limit_amount=quote.maximum_amount_in(slippage),
            )
            candidates.append(
                StrategyCandidate(
                    kind=StrategyKind.SINGLE_ASSET,
                    direction=TradeDirection.EXACT_POOL_OUT,
                    token=token_in,
                    pool_amount=pool_amount_out,
                    token_amount=leg.quote_amount,
                    token_limit=leg.limit_amount,
                    legs=(leg,),
                )
            )
            logger.debug(
                "single_asset_candidate",
                token=asset.token,
                amount=amount,
                cost=leg.limit_amount,
            )
        return candidates

    async def _proportional_join(
        self,
        pool: PoolState,
        token_in: str,
        pool_amount_out: int,
        slippage: Decimal,
        direction: TradeDirection,
    ) -> StrategyCandidate | None:
        """Quote the basket needed to mint pool_amount_out proportionally.

        Returns None when any asset of the basket cannot be bought, since a
        proportional join needs every asset.
        """
        amounts = calc_all_in_given_pool_out(
            [Bfp(asset.used_balance) for asset in pool.assets],
            Bfp(pool.total_supply),
            Bfp(pool_amount_out),
        )
        sized = [
            (asset, amount.value)
            for asset, amount in zip(pool.assets, amounts, strict=True)
            if amount.value > 0
        ]
        if not sized:
            return None

        quotes = await asyncio.gather(
            *(self._quote_exact_out(token_in, asset.token, amount) for asset, amount in sized)
        )

        legs = []
        for (asset, amount), quote in zip(sized, quotes, strict=True):
            if quote is None:
                logger.debug(
                    "proportional_candidate_infeasible",
                    token=asset.token,
                    amount=amount,
                    pool_amount=pool_amount_out,
                )
                return None
            legs.append(
                CandidateLeg(
                    asset=asset,
                    pool_asset_amount=amount,
                    quote=quote,
                    quote_amount=quote.input_amount,
                    limit_amount=quote.maximum_amount_in(slippage),
                )
            )

        return StrategyCandidate(
            kind=StrategyKind.ALL_ASSETS_PROPORTIONAL,
            direction=direction,
            token=token_in,
            pool_amount=pool_amount_out,
            token_amount=sum(leg.quote_amount for leg in legs),
            token_limit=sum(leg.limit_amount for leg in legs),
            legs=tuple(legs),
        )

    # =========================================================================
    # Exact token amount in
    # =========================================================================

    async def _singles_for_token_in(
        self, pool: PoolState, token_in: str, amount_in: int, slippage: Decimal
    ) -> list[StrategyCandidate]:
        quotes = await asyncio.gather(
            *(self._quote_exact_in(token_in, amount_in, asset.token) for asset in pool.assets)
        )

        candidates = []
        for asset, quote in zip(pool.assets, quotes, strict=True):
            if quote is None:
                continue
            deposit = quote.minimum_amount_out(slippage)
            if deposit == 0 or not within_max_in_ratio(deposit, asset.used_balance):
                logger.debug(
                    "single_asset_candidate_filtered",
                    token=asset.token,
                    amount=deposit,
                    limit=bmul(asset.used_balance, MAX_IN_RATIO),
                )
                continue
            try:
                pool_amount_out = calc_pool_out_given_single_in(
                    Bfp(asset.used_balance),
                    Bfp(asset.used_weight),
                    Bfp(pool.total_supply),
                    Bfp(pool.total_weight),
                    Bfp(deposit),
                    Bfp(pool.swap_fee),
                ).value
            except InvalidTradeSize as e:
                logger.debug("single_asset_candidate_rejected", token=asset.token, reason=str(e))
                continue
            if pool_amount_out == 0 or self._exceeds_supply_cap(pool, pool_amount_out):
                logger.debug(
                    "single_asset_candidate_filtered",
                    token=asset.token,
                    pool_amount=pool_amount_out,
                    max_total_supply=pool.max_total_supply,
                )
                continue

            leg = CandidateLeg(
                asset=asset,
                pool_asset_amount=deposit,
                quote=quote,
                quote_amount=amount_in,
                limit_amount=amount_in,
            )
            candidates.append(
                StrategyCandidate(
                    kind=StrategyKind.SINGLE_ASSET,
                    direction=TradeDirection.EXACT_TOKEN_IN,
                    token=token_in,
                    pool_amount=pool_amount_out,
                    token_amount=amount_in,
                    token_limit=amount_in,
                    legs=(leg,),
                )
            )
            logger.debug(
                "single_asset_candidate",
                token=asset.token,
                deposit=deposit,
                pool_amount=pool_amount_out,
            )
        return candidates

    async def _proportional_for_token_in(
        self,
        pool: PoolState,
        token_in: str,
        amount_in: int,
        slippage: Decimal,
        gas_adjusted: bool,
    ) -> StrategyCandidate | None:
        """Size the largest proportional basket that fits the input budget.

        A trial basket is priced first and its pool amount scaled by
        budget / cost. The scaled basket is re-quoted and shrunk until its
        worst-case cost fits, for at most max_sizing_iterations rounds.
        """
        operation_count = sum(1 for asset in pool.assets if asset.used_balance > 0)
        if operation_count == 0 or pool.total_supply == 0:
            return None

        penalty = 0
        if gas_adjusted:
            penalty = await self._gas_penalty_for_count(token_in, operation_count)
        budget = amount_in - penalty
        if budget <= 0:
            logger.debug("proportional_budget_exhausted", amount_in=amount_in, gas_penalty=penalty)
            return None

        trial_amount = max(pool.total_supply // TRIAL_SUPPLY_DIVISOR, 1)
        trial = await self._proportional_join(
            pool, token_in, trial_amount, slippage, TradeDirection.EXACT_TOKEN_IN
        )
        if trial is None or trial.token_limit == 0:
            return None

        pool_amount = trial_amount * budget // trial.token_limit
        if pool.max_total_supply is not None:
            pool_amount = min(pool_amount, pool.max_total_supply - pool.total_supply)

        for iteration in range(self.config.max_sizing_iterations):
            if pool_amount <= 0:
                break
            candidate = await self._proportional_join(
                pool, token_in, pool_amount, slippage, TradeDirection.EXACT_TOKEN_IN
            )
            if candidate is None:
                return None
            if candidate.token_limit <= budget:
                logger.debug(
                    "proportional_basket_sized",
                    pool_amount=pool_amount,
                    cost=candidate.token_limit,
                    budget=budget,
                    iterations=iteration + 1,
                )
                return replace(candidate, gas_penalty=penalty)

            shrunk = pool_amount * budget // candidate.token_limit
            min_step = max(pool_amount * MIN_SHRINK_PER_MILLE // 1000, 1)
            pool_amount = min(shrunk, pool_amount - min_step)

        logger.debug("proportional_sizing_failed", budget=budget, pool_amount=pool_amount)
        return None

    # =========================================================================
    # Exact pool amount in
    # =========================================================================

    async def _singles_for_pool_in(
        self, pool: PoolState, pool_amount_in: int, token_out: str, slippage: Decimal
    ) -> list[StrategyCandidate]:
        sized: list[tuple[PoolAssetState, int]] = []
        for asset in pool.assets:
            if not asset.ready or asset.weight == 0:
                logger.debug(
                    "single_asset_candidate_filtered",
                    token=asset.token,
                    ready=asset.ready,
                    weight=asset.weight,
                )
                continue
            try:
                amount = calc_single_out_given_pool_in(
                    Bfp(asset.balance),
                    Bfp(asset.weight),
                    Bfp(pool.total_supply),
                    Bfp(pool.total_weight),
                    Bfp(pool_amount_in),
                    Bfp(pool.swap_fee),
                    Bfp(pool.exit_fee),
                ).value
            except InvalidTradeSize as e:
                logger.debug("single_asset_candidate_rejected", token=asset.token, reason=str(e))
                continue
            if amount == 0:
                logger.debug("single_asset_candidate_filtered", token=asset.token, amount=amount)
                continue
            sized.append((asset, amount))

        quotes = await asyncio.gather(
            *(self._quote_exact_in(asset.token, amount, token_out) for asset, amount in sized)
        )

        candidates = []
        for (asset, amount), quote in zip(sized, quotes, strict=True):
            if quote is None:
                continue
            leg = CandidateLeg(
                asset=asset,
                pool_asset_amount=amount,
                quote=quote,
                quote_amount=quote.output_amount,
                limit_amount=quote.minimum_amount_out(slippage),
            )
            candidates.append(
                StrategyCandidate(
                    kind=StrategyKind.SINGLE_ASSET,
                    direction=TradeDirection.EXACT_POOL_IN,
                    token=token_out,
                    pool_amount=pool_amount_in,
                    token_amount=leg.quote_amount,
                    token_limit=leg.limit_amount,
                    legs=(leg,),
                )
            )
        return candidates

    async def _proportional_exit(
        self, pool: PoolState, pool_amount_in: int, token_out: str, slippage: Decimal
    ) -> StrategyCandidate | None:
        """Quote selling every withdrawn asset into token_out.

        An asset without a route is left out of the summed output; the
        caller keeps it unconverted.
        """
        amounts = calc_all_out_given_pool_in(
            [Bfp(asset.balance) for asset in pool.assets],
            [Bfp(asset.weight) for asset in pool.assets],
            Bfp(pool.total_supply),
            Bfp(pool_amount_in),
            Bfp(pool.exit_fee),
        )
        sized = [
            (asset, amount.value)
            for asset, amount in zip(pool.assets, amounts, strict=True)
            if amount.value > 0
        ]

        quotes = await asyncio.gather(
            *(self._quote_exact_in(asset.token, amount, token_out) for asset, amount in sized)
        )

        legs = []
        for (asset, amount), quote in zip(sized, quotes, strict=True):
            if quote is None:
                logger.debug("proportional_leg_unrouted", token=asset.token, amount=amount)
                continue
            legs.append(
                CandidateLeg(
                    asset=asset,
                    pool_asset_amount=amount,
                    quote=quote,
                    quote_amount=quote.output_amount,
                    limit_amount=quote.minimum_amount_out(slippage),
                )
            )
        if not legs:
            return None

        return StrategyCandidate(
            kind=StrategyKind.ALL_ASSETS_PROPORTIONAL,
            direction=TradeDirection.EXACT_POOL_IN,
            token=token_out,
            pool_amount=pool_amount_in,
            token_amount=sum(leg.quote_amount for leg in legs),
            token_limit=sum(leg.limit_amount for leg in legs),
            legs=tuple(legs),
        )

    # =========================================================================
    # Quotes and gas
    # =========================================================================

    async def _quote_exact_in(
        self, token_in: str, amount_in: int, token_out: str
    ) -> TradeQuote | None:
        if same_address(token_in, token_out):
            return TradeQuote.identity(token_out, amount_in)
        try:
            quote = await self.quote_source.quote_exact_in(token_in, amount_in, token_out)
        except NoRouteAvailable:
            quote = None
        if quote is None:
            logger.debug(
                "quote_no_route", token_in=token_in, token_out=token_out, amount_in=amount_in
            )
        return quote

    async def _quote_exact_out(
        self, token_in: str, token_out: str, amount_out: int
    ) -> TradeQuote | None:
        if same_address(token_in, token_out):
            return TradeQuote.identity(token_in, amount_out)
        try:
            quote = await self.quote_source.quote_exact_out(token_in, token_out, amount_out)
        except NoRouteAvailable:
            quote = None
        if quote is None:
            logger.debug(
                "quote_no_route", token_in=token_in, token_out=token_out, amount_out=amount_out
            )
        return quote

    async def _gas_penalty(
        self, token: str, candidate: StrategyCandidate, gas_adjusted: bool
    ) -> int:
        if not gas_adjusted:
            return 0
        return await self._gas_penalty_for_count(token, candidate.operation_count)

    async def _gas_penalty_for_count(self, token: str, operation_count: int) -> int:
        if self.gas_oracle is None:
            raise ValueError("Gas-adjusted comparison requires a gas price oracle")
        return await gas_penalty_in_token(
            quote_source=self.quote_source,
            gas_oracle=self.gas_oracle,
            token=token,
            native_token=self.config.native_token,
            operation_count=operation_count,
            unit_gas_cost=self.config.unit_gas_cost,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _resolve_slippage(self, slippage: Decimal | None) -> Decimal:
        if slippage is None:
            return self.config.slippage
        slippage = Decimal(slippage)
        if not Decimal(0) <= slippage < Decimal(1):
            raise ValueError(f"slippage must be in [0, 1), got {slippage}")
        return slippage

    def _resolve_gas_adjusted(self, gas_adjusted: bool | None) -> bool:
        if gas_adjusted is None:
            gas_adjusted = self.config.gas_adjusted
        if gas_adjusted and self.gas_oracle is None:
            raise ValueError("Gas-adjusted comparison requires a gas price oracle")
        return gas_adjusted

    @staticmethod
    def _exceeds_supply_cap(pool: PoolState, pool_amount_out: int) -> bool:
        if pool.max_total_supply is None:
            return False
        return pool.total_supply + pool_amount_out > pool.max_total_supply

    def _select(
        self,
        pool: PoolState,
        candidates: Sequence[StrategyCandidate],
        slippage: Decimal,
        *,
        decimals: int | None = None,
        symbol: str | None = None,
    ) -> ExecutionPlan:
        if not candidates:
            logger.info("no_feasible_strategy", pool=pool.address)
            raise NoRouteAvailable(f"No feasible strategy for pool {pool.address}")

        winner = select_candidate(candidates, slippage)
        logger.info(
            "strategy_selected",
            pool=pool.address,
            kind=winner.kind.value,
            direction=winner.direction.value,
            token=winner.token,
            value=winner.comparison_value,
            swaps=winner.swap_count,
            gas_penalty=winner.gas_penalty,
            candidates=len(candidates),
        )
        return self._to_plan(pool, winner, decimals=decimals, symbol=symbol)

    def _to_plan(
        self,
        pool: PoolState,
        candidate: StrategyCandidate,
        *,
        decimals: int | None = None,
        symbol: str | None = None,
    ) -> ExecutionPlan:
        precision = self.config.display_precision
        # Pool metadata wins over caller metadata for pool assets
        token_asset = pool.get_asset(candidate.token)
        if token_asset is not None:
            token_decimals, token_symbol = token_asset.decimals, token_asset.symbol
        else:
            token_decimals = decimals if decimals is not None else 18
            token_symbol = symbol if symbol is not None else ""

        legs = [
            PlanLeg(
                asset=TokenAmount.build(
                    leg.asset.token,
                    leg.pool_asset_amount,
                    decimals=leg.asset.decimals,
                    symbol=leg.asset.symbol,
                    precision=precision,
                ),
                quote_amount=TokenAmount.build(
                    candidate.token,
                    leg.quote_amount,
                    decimals=token_decimals,
                    symbol=token_symbol,
                    limit_amount=leg.limit_amount,
                    precision=precision,
                ),
                path=list(leg.quote.path),
                is_identity=leg.is_identity,
            )
            for leg in candidate.legs
        ]

        return ExecutionPlan(
            kind=candidate.kind,
            direction=candidate.direction,
            token=TokenAmount.build(
                candidate.token,
                candidate.token_amount,
                decimals=token_decimals,
                symbol=token_symbol,
                limit_amount=candidate.token_limit,
                precision=precision,
            ),
            pool_amount=TokenAmount.build(
                pool.address,
                candidate.pool_amount,
                decimals=POOL_TOKEN_DECIMALS,
                symbol=pool.symbol,
                precision=precision,
            ),
            legs=legs,
            gas_penalty=candidate.gas_penalty,
            operation_count=candidate.operation_count,
        )


__all__ = ["StrategyOptimizer", "select_candidate", "within_max_in_ratio", "within_tolerance"]
