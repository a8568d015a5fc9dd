"""Tests for choosing between single-asset and proportional execution.

Every pool asset is quoted at one DAI per token, so the cost of a plan is
its pool-side cost plus the quote source's rounding. The default pool
holds 1000 of each of three equally weighted assets and 100 pool tokens,
so one pool token is worth 30 DAI proportionally.
"""

import asyncio
from decimal import Decimal

import pytest

from planner.config import OptimizerConfig
from planner.constants import GWEI
from planner.errors import InvalidTradeSize, NoRouteAvailable
from planner.models.plans import StrategyKind, TradeDirection
from planner.quotes.gas import FixedGasPriceOracle
from planner.strategies.optimizer import StrategyOptimizer, within_max_in_ratio
from tests.helpers import (
    AAVE,
    COMP,
    DAI,
    ONE,
    UNI,
    USDC,
    WBTC,
    WETH,
    FakeQuoteSource,
    make_asset,
    make_pool,
)

EXACT = Decimal(0)

# 2 extra operations * 150,000 gas * 100 gwei = 0.03 WETH = 60 DAI
GAS_PRICE = 100 * GWEI
GAS_PENALTY_DAI = 60 * ONE


def dai_source(*tokens, **kwargs) -> FakeQuoteSource:
    """Routes between DAI and each token at 1:1, plus WETH at 2000 DAI."""
    tokens = tokens or (UNI, AAVE, COMP)
    rates = {(DAI, token): 1 for token in tokens}
    rates[(WETH, DAI)] = 2000
    return FakeQuoteSource(rates, **kwargs)


def run(coro):
    return asyncio.run(coro)


class TestExactPoolOut:
    """Minting an exact pool amount at the lowest cost."""

    def test_proportional_wins_when_strictly_cheaper(self, pool):
        optimizer = StrategyOptimizer(dai_source())

        plan = run(optimizer.best_plan_for_pool_out(pool, DAI, ONE, slippage=EXACT))

        assert plan.kind == StrategyKind.ALL_ASSETS_PROPORTIONAL
        assert plan.direction == TradeDirection.EXACT_POOL_OUT
        assert plan.token.amount == 30 * ONE
        assert [leg.asset.amount for leg in plan.legs] == [10 * ONE] * 3
        assert plan.operation_count == 3
        assert plan.swap_count == 3

    def test_single_asset_wins_within_slippage(self, pool):
        """Single-asset costs ~1.2% more, which 2% slippage tolerates."""
        optimizer = StrategyOptimizer(dai_source())

        plan = run(optimizer.best_plan_for_pool_out(pool, DAI, ONE))

        assert plan.kind == StrategyKind.SINGLE_ASSET
        assert plan.legs[0].asset.address == UNI
        assert plan.token.limit_amount == plan.token.amount * 102 // 100
        assert plan.worst_case_amount == plan.token.limit_amount

    def test_oversized_single_assets_filtered(self):
        """Minting a quarter of a two-asset pool needs more than MAX_IN_RATIO of either balance."""
        pool = make_pool(
            [
                make_asset(UNI, 1000 * ONE, 5 * ONE, symbol="UNI"),
                make_asset(AAVE, 1000 * ONE, 5 * ONE, symbol="AAVE"),
            ]
        )
        optimizer = StrategyOptimizer(dai_source())

        candidates = run(optimizer.candidates_for_pool_out(pool, DAI, 25 * ONE))
        plan = run(optimizer.best_plan_for_pool_out(pool, DAI, 25 * ONE))

        assert [c.kind for c in candidates] == [StrategyKind.ALL_ASSETS_PROPORTIONAL]
        assert plan.kind == StrategyKind.ALL_ASSETS_PROPORTIONAL
        assert [leg.asset.amount for leg in plan.legs] == [250 * ONE, 250 * ONE]

    def test_pool_asset_as_input_needs_no_swap(self, pool):
        source = FakeQuoteSource({(UNI, AAVE): 1, (UNI, COMP): 1})
        optimizer = StrategyOptimizer(source)

        plan = run(optimizer.best_plan_for_pool_out(pool, UNI, ONE))

        assert plan.kind == StrategyKind.SINGLE_ASSET
        assert plan.legs[0].is_identity
        assert plan.swap_count == 0
        assert plan.token.symbol == "UNI"
        assert plan.token.limit_amount == plan.token.amount

    def test_proportional_requires_every_asset(self, pool):
        optimizer = StrategyOptimizer(dai_source(UNI, COMP))

        candidates = run(optimizer.candidates_for_pool_out(pool, DAI, ONE, slippage=EXACT))
        plan = run(optimizer.best_plan_for_pool_out(pool, DAI, ONE, slippage=EXACT))

        assert all(c.kind == StrategyKind.SINGLE_ASSET for c in candidates)
        assert [c.legs[0].asset.token for c in candidates] == [UNI, COMP]
        assert plan.kind == StrategyKind.SINGLE_ASSET

    def test_raising_quote_source_treated_as_no_route(self, pool):
        optimizer = StrategyOptimizer(dai_source(raising={(DAI, AAVE)}))

        candidates = run(optimizer.candidates_for_pool_out(pool, DAI, ONE))

        assert [c.legs[0].asset.token for c in candidates] == [UNI, COMP]

    def test_no_route_at_all(self, pool):
        optimizer = StrategyOptimizer(FakeQuoteSource())

        with pytest.raises(NoRouteAvailable):
            run(optimizer.best_plan_for_pool_out(pool, DAI, ONE))

    def test_non_positive_amount_rejected(self, pool):
        optimizer = StrategyOptimizer(dai_source())

        with pytest.raises(InvalidTradeSize):
            run(optimizer.best_plan_for_pool_out(pool, DAI, 0))

    def test_supply_cap_enforced(self):
        pool = make_pool(max_total_supply=100 * ONE + ONE // 2)
        optimizer = StrategyOptimizer(dai_source())

        with pytest.raises(InvalidTradeSize):
            run(optimizer.best_plan_for_pool_out(pool, DAI, ONE))

    def test_plan_models(self, pool):
        optimizer = StrategyOptimizer(dai_source())

        plan = run(optimizer.best_plan_for_pool_out(pool, DAI, ONE, slippage=EXACT))

        assert plan.pool_amount.amount == ONE
        assert plan.pool_amount.symbol == "IDX"
        assert plan.token.address == DAI
        assert plan.token.symbol == ""
        assert plan.legs[0].path == [DAI, UNI]
        assert plan.legs[0].quote_amount.amount == 10 * ONE
        assert plan.legs[0].quote_amount.display_amount == "10.00"

    def test_caller_token_metadata_used_for_display(self, pool):
        # one raw USDC unit buys 10**12 raw units of an 18-decimal asset
        source = FakeQuoteSource({(USDC, token): 10**12 for token in (UNI, AAVE, COMP)})
        optimizer = StrategyOptimizer(source)

        plan = run(
            optimizer.best_plan_for_pool_out(
                pool, USDC, ONE, slippage=EXACT, decimals=6, symbol="USDC"
            )
        )

        assert plan.token.amount == 30_000_000
        assert plan.token.decimals == 6
        assert plan.token.symbol == "USDC"
        assert plan.token.display_amount == "30.00"
        assert plan.token.display_limit_amount == "30.00"
        assert plan.legs[0].quote_amount.display_amount == "10.00"

    def test_pool_asset_metadata_wins_over_caller(self, pool):
        source = FakeQuoteSource({(UNI, AAVE): 1, (UNI, COMP): 1})
        optimizer = StrategyOptimizer(source)

        plan = run(optimizer.best_plan_for_pool_out(pool, UNI, ONE, decimals=6, symbol="X"))

        assert plan.token.decimals == 18
        assert plan.token.symbol == "UNI"

    def test_quotes_fan_out_concurrently(self, pool):
        source = dai_source()
        optimizer = StrategyOptimizer(source)

        run(optimizer.best_plan_for_pool_out(pool, DAI, ONE))

        # three single-asset quotes and three basket quotes
        assert len(source.calls) == 6
        assert source.peak_in_flight == 6


class TestGasAdjustment:
    def test_penalty_charged_to_proportional(self, pool):
        optimizer = StrategyOptimizer(dai_source(), gas_oracle=FixedGasPriceOracle(GAS_PRICE))

        candidates = run(
            optimizer.candidates_for_pool_out(pool, DAI, ONE, slippage=EXACT, gas_adjusted=True)
        )
        proportional = next(c for c in candidates if c.kind == StrategyKind.ALL_ASSETS_PROPORTIONAL)

        assert proportional.gas_penalty == GAS_PENALTY_DAI
        assert proportional.adjusted_cost == 30 * ONE + GAS_PENALTY_DAI
        assert all(c.gas_penalty == 0 for c in candidates if c.kind == StrategyKind.SINGLE_ASSET)

    def test_penalty_flips_winner(self, pool):
        optimizer = StrategyOptimizer(dai_source(), gas_oracle=FixedGasPriceOracle(GAS_PRICE))

        plan = run(
            optimizer.best_plan_for_pool_out(pool, DAI, ONE, slippage=EXACT, gas_adjusted=True)
        )

        assert plan.kind == StrategyKind.SINGLE_ASSET

    def test_gas_adjusted_from_config(self, pool):
        config = OptimizerConfig(slippage=EXACT, gas_adjusted=True)
        optimizer = StrategyOptimizer(
            dai_source(), config=config, gas_oracle=FixedGasPriceOracle(GAS_PRICE)
        )

        plan = run(optimizer.best_plan_for_pool_out(pool, DAI, ONE))

        assert plan.kind == StrategyKind.SINGLE_ASSET

    def test_missing_oracle_rejected(self, pool):
        with pytest.raises(ValueError):
            StrategyOptimizer(dai_source(), config=OptimizerConfig(gas_adjusted=True))

        optimizer = StrategyOptimizer(dai_source())
        with pytest.raises(ValueError):
            run(optimizer.best_plan_for_pool_out(pool, DAI, ONE, gas_adjusted=True))

    def test_exact_input_budget_reduced_by_penalty(self, pool):
        """A 60 DAI penalty exhausts a 30 DAI budget, leaving only single-asset plans."""
        optimizer = StrategyOptimizer(dai_source(), gas_oracle=FixedGasPriceOracle(GAS_PRICE))

        candidates = run(
            optimizer.candidates_for_token_in(
                pool, DAI, 30 * ONE, slippage=EXACT, gas_adjusted=True
            )
        )

        assert candidates
        assert all(c.kind == StrategyKind.SINGLE_ASSET for c in candidates)

    def test_exit_output_reduced_by_penalty(self, pool):
        optimizer = StrategyOptimizer(dai_source(), gas_oracle=FixedGasPriceOracle(GAS_PRICE))

        candidates = run(
            optimizer.candidates_for_pool_in(pool, ONE, DAI, slippage=EXACT, gas_adjusted=True)
        )
        plan = run(
            optimizer.best_plan_for_pool_in(pool, ONE, DAI, slippage=EXACT, gas_adjusted=True)
        )

        proportional = next(c for c in candidates if c.kind == StrategyKind.ALL_ASSETS_PROPORTIONAL)
        assert proportional.adjusted_output == 0
        assert plan.kind == StrategyKind.SINGLE_ASSET


class TestExactTokenIn:
    """Spending an exact input for the most pool tokens."""

    def test_deposit_bound_matches_pool_max_in_ratio(self):
        balance = 1000 * ONE
        limit = 499_999_999_999_999_000_000

        assert within_max_in_ratio(limit, balance)
        # below half the balance but above what the pool accepts
        assert not within_max_in_ratio(limit + 1, balance)
        assert not within_max_in_ratio(balance // 2 - 1, balance)

    def test_proportional_wins_when_strictly_better(self, pool):
        optimizer = StrategyOptimizer(dai_source())

        plan = run(optimizer.best_plan_for_token_in(pool, DAI, 30 * ONE, slippage=EXACT))

        assert plan.kind == StrategyKind.ALL_ASSETS_PROPORTIONAL
        assert plan.direction == TradeDirection.EXACT_TOKEN_IN
        assert plan.pool_amount.amount == ONE
        assert plan.token.limit_amount <= 30 * ONE

    def test_single_asset_wins_within_slippage(self, pool):
        optimizer = StrategyOptimizer(dai_source())

        plan = run(optimizer.best_plan_for_token_in(pool, DAI, 30 * ONE))

        assert plan.kind == StrategyKind.SINGLE_ASSET
        assert plan.token.amount == 30 * ONE

    def test_basket_sized_to_budget(self, pool):
        optimizer = StrategyOptimizer(dai_source())

        candidates = run(optimizer.candidates_for_token_in(pool, DAI, 30 * ONE))
        proportional = next(c for c in candidates if c.kind == StrategyKind.ALL_ASSETS_PROPORTIONAL)

        assert proportional.token_limit <= 30 * ONE
        # 30 DAI buys 30 / 30.6 pool tokens at 2% slippage, less at most a few shrink steps
        assert proportional.pool_amount > ONE * 97 // 100

    def test_large_deposit_filtered_from_single_asset(self, pool):
        """600 DAI deposited into one asset exceeds half of its 1000 balance."""
        optimizer = StrategyOptimizer(dai_source())

        candidates = run(optimizer.candidates_for_token_in(pool, DAI, 600 * ONE, slippage=EXACT))

        assert [c.kind for c in candidates] == [StrategyKind.ALL_ASSETS_PROPORTIONAL]
        assert candidates[0].pool_amount == 20 * ONE

    def test_supply_cap_limits_basket(self):
        pool = make_pool(max_total_supply=100 * ONE + ONE // 2)
        optimizer = StrategyOptimizer(dai_source())

        plan = run(optimizer.best_plan_for_token_in(pool, DAI, 30 * ONE, slippage=EXACT))

        assert plan.kind == StrategyKind.ALL_ASSETS_PROPORTIONAL
        assert plan.pool_amount.amount == ONE // 2

    def test_non_positive_amount_rejected(self, pool):
        optimizer = StrategyOptimizer(dai_source())

        with pytest.raises(InvalidTradeSize):
            run(optimizer.best_plan_for_token_in(pool, DAI, -1))


class TestExactPoolIn:
    """Burning an exact pool amount for the most output."""

    def test_proportional_wins_when_strictly_better(self, pool):
        optimizer = StrategyOptimizer(dai_source())

        plan = run(optimizer.best_plan_for_pool_in(pool, ONE, DAI, slippage=EXACT))

        assert plan.kind == StrategyKind.ALL_ASSETS_PROPORTIONAL
        assert plan.direction == TradeDirection.EXACT_POOL_IN
        assert plan.token.amount == 30 * ONE

    def test_single_asset_wins_within_slippage(self, pool):
        optimizer = StrategyOptimizer(dai_source())

        plan = run(optimizer.best_plan_for_pool_in(pool, ONE, DAI))

        assert plan.kind == StrategyKind.SINGLE_ASSET
        assert plan.token.limit_amount < plan.token.amount

    def test_unrouted_asset_left_out_of_exit(self, pool):
        optimizer = StrategyOptimizer(dai_source(UNI, AAVE))

        candidates = run(optimizer.candidates_for_pool_in(pool, ONE, DAI, slippage=EXACT))
        proportional = next(c for c in candidates if c.kind == StrategyKind.ALL_ASSETS_PROPORTIONAL)

        assert [leg.asset.token for leg in proportional.legs] == [UNI, AAVE]
        assert proportional.token_amount == 20 * ONE

    def test_ramping_asset_excluded_from_exits(self):
        pool = make_pool(
            [
                make_asset(UNI, 1000 * ONE, 5 * ONE),
                make_asset(AAVE, 1000 * ONE, 5 * ONE),
                make_asset(WBTC, 50 * ONE, 0, ready=False, minimum_balance=100 * ONE),
            ]
        )
        optimizer = StrategyOptimizer(dai_source(UNI, AAVE, WBTC))

        candidates = run(optimizer.candidates_for_pool_in(pool, ONE, DAI))
        tokens = {leg.asset.token for c in candidates for leg in c.legs}

        assert WBTC not in tokens

    def test_burn_above_supply_rejected(self, pool):
        optimizer = StrategyOptimizer(dai_source())

        with pytest.raises(InvalidTradeSize):
            run(optimizer.best_plan_for_pool_in(pool, 101 * ONE, DAI))

    def test_invalid_slippage_rejected(self, pool):
        optimizer = StrategyOptimizer(dai_source())

        with pytest.raises(ValueError):
            run(optimizer.best_plan_for_pool_in(pool, ONE, DAI, slippage=Decimal("1.5")))
