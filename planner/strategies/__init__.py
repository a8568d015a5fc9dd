"""Strategy selection for minting and burning pool tokens."""

from planner.strategies.optimizer import StrategyOptimizer, select_candidate
from planner.strategies.types import CandidateLeg, StrategyCandidate

__all__ = ["StrategyOptimizer", "StrategyCandidate", "CandidateLeg", "select_candidate"]
