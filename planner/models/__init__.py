"""Pydantic models for planner results."""

from planner.models.amounts import PoolAmountPreview, SwapPreview, TokenAmount
from planner.models.plans import ExecutionPlan, PlanLeg, StrategyKind, TradeDirection
from planner.models.types import Address, normalize_address, same_address

__all__ = [
    # Types
    "Address",
    "normalize_address",
    "same_address",
    # Amounts and previews
    "TokenAmount",
    "SwapPreview",
    "PoolAmountPreview",
    # Plans
    "ExecutionPlan",
    "PlanLeg",
    "StrategyKind",
    "TradeDirection",
]
