"""Off-chain planner for weighted index pools.

Reproduces the pool's fixed-point invariant math for previews and picks
the cheapest way to mint or burn pool tokens from a single asset.
"""

from planner.config import OptimizerConfig
from planner.errors import (
    DivisionByZero,
    InvalidTradeSize,
    NoRouteAvailable,
    PlannerError,
    ReadinessViolation,
)
from planner.pool import AccountSnapshot, PoolAssetState, PoolPreviewService, PoolState
from planner.strategies import StrategyOptimizer

__version__ = "0.1.0"

__all__ = [
    "OptimizerConfig",
    "PlannerError",
    "DivisionByZero",
    "InvalidTradeSize",
    "NoRouteAvailable",
    "ReadinessViolation",
    "AccountSnapshot",
    "PoolAssetState",
    "PoolState",
    "PoolPreviewService",
    "StrategyOptimizer",
]
