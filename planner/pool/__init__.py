"""Weighted index pool state, math and previews."""

from planner.pool.service import PoolPreviewService
from planner.pool.types import AccountSnapshot, PoolAssetState, PoolState, derive_used_state

__all__ = [
    "AccountSnapshot",
    "PoolAssetState",
    "PoolState",
    "PoolPreviewService",
    "derive_used_state",
]
