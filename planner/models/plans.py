"""Pydantic models for execution plans chosen by the strategy optimizer."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from planner.models.amounts import TokenAmount
from planner.models.types import Address


class StrategyKind(str, Enum):
    """Execution shape of a plan."""

    SINGLE_ASSET = "single_asset"  # Route into or out of one pool asset
    ALL_ASSETS_PROPORTIONAL = "all_assets_proportional"  # One leg per pool asset


class TradeDirection(str, Enum):
    """Which side of the trade the caller fixed."""

    EXACT_POOL_OUT = "exact_pool_out"  # Mint an exact pool amount, minimize input
    EXACT_TOKEN_IN = "exact_token_in"  # Spend an exact input, maximize pool amount
    EXACT_POOL_IN = "exact_pool_in"  # Burn an exact pool amount, maximize output


class PlanLeg(BaseModel):
    """One pool asset's share of a plan.

    For joins `quote_amount` is what the leg costs in the source token; for
    exits it is what the leg yields in the destination token. Its
    `limit_amount` is the slippage-adjusted bound to pass on-chain.
    """

    asset: TokenAmount = Field(description="Pool asset amount deposited or withdrawn")
    quote_amount: TokenAmount = Field(alias="quoteAmount")
    path: list[Address] = Field(description="Swap route, empty hops for identity legs")
    is_identity: bool = Field(
        default=False,
        alias="isIdentity",
        description="True when no swap is needed for this leg.",
    )

    model_config = {"populate_by_name": True}


class ExecutionPlan(BaseModel):
    """The selected strategy for a deposit or withdrawal.

    Attributes:
        kind: Winning execution shape
        direction: Which side of the trade was fixed
        token: Source token (joins) or destination token (exits) with the
            total amount and its slippage-adjusted limit
        pool_amount: Pool token amount minted or burned
        legs: Per-asset legs needed to build the on-chain calls
        gas_penalty: Gas cost charged to the plan, in `token` units
        operation_count: On-chain pool operations the plan requires
    """

    kind: StrategyKind
    direction: TradeDirection
    token: TokenAmount
    pool_amount: TokenAmount = Field(alias="poolAmount")
    legs: list[PlanLeg]
    gas_penalty: int = Field(default=0, ge=0, alias="gasPenalty")
    operation_count: int = Field(ge=1, alias="operationCount")

    model_config = {"populate_by_name": True}

    @property
    def swap_count(self) -> int:
        return sum(1 for leg in self.legs if not leg.is_identity)

    @property
    def worst_case_amount(self) -> int:
        """Maximum input for joins, minimum output for exits."""
        if self.token.limit_amount is None:
            return self.token.amount
        return self.token.limit_amount


__all__ = ["StrategyKind", "TradeDirection", "PlanLeg", "ExecutionPlan"]
