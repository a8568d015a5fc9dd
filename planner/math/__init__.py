"""Mathematical utilities for the planner.

This package provides mathematical primitives for pool calculations:
- Bfp: 18-decimal fixed-point arithmetic (BNum-compatible rounding)
"""

from planner.math.fixed_point import BONE, MAX_IN_RATIO, MAX_OUT_RATIO, MIN_WEIGHT, Bfp

__all__ = ["Bfp", "BONE", "MIN_WEIGHT", "MAX_IN_RATIO", "MAX_OUT_RATIO"]
