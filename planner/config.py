"""Configuration for the strategy optimizer and preview service."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from planner.constants import POOL_OPERATION_GAS_COST, WETH
from planner.formatting import DISPLAY_PRECISION
from planner.models.types import normalize_address

DEFAULT_SLIPPAGE = Decimal("0.02")
DEFAULT_CACHE_TTL_SECONDS = 120.0
DEFAULT_MAX_SIZING_ITERATIONS = 8

_TRUE_VALUES = ("true", "1", "yes")


@dataclass(frozen=True)
class OptimizerConfig:
    """Centralized configuration for plan selection.

    Every operation of the optimizer can override slippage and gas
    adjustment per call; the values here are the defaults.

    Attributes:
        slippage: Slippage tolerance as a fraction (default: 0.02)
        gas_adjusted: If True, penalize the proportional strategy by the
            gas cost of its extra operations
        unit_gas_cost: Gas units per pool-side operation (default: 150,000)
        native_token: Token the gas price is denominated in (default: WETH)
        max_sizing_iterations: Shrink steps when sizing the proportional
            basket against an exact input budget
        cache_ttl_seconds: Maximum age of cached pool state
        display_precision: Decimal places in display amounts
    """

    slippage: Decimal = DEFAULT_SLIPPAGE
    gas_adjusted: bool = False
    unit_gas_cost: int = POOL_OPERATION_GAS_COST
    native_token: str = WETH
    max_sizing_iterations: int = DEFAULT_MAX_SIZING_ITERATIONS
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    display_precision: int = DISPLAY_PRECISION

    def __post_init__(self) -> None:
        if not Decimal(0) <= self.slippage < Decimal(1):
            raise ValueError(f"slippage must be in [0, 1), got {self.slippage}")
        if self.unit_gas_cost <= 0:
            raise ValueError(f"unit_gas_cost must be positive, got {self.unit_gas_cost}")
        if self.max_sizing_iterations <= 0:
            raise ValueError(
                f"max_sizing_iterations must be positive, got {self.max_sizing_iterations}"
            )
        if self.cache_ttl_seconds <= 0:
            raise ValueError(f"cache_ttl_seconds must be positive, got {self.cache_ttl_seconds}")
        if self.display_precision < 0:
            raise ValueError(f"display_precision cannot be negative, got {self.display_precision}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> OptimizerConfig:
        """Build a config from PLANNER_* environment variables.

        Configuration via environment variables:
        - PLANNER_SLIPPAGE: Slippage fraction (default: 0.02)
        - PLANNER_GAS_ADJUSTED: Enable gas adjustment (default: false)
        - PLANNER_UNIT_GAS_COST: Gas per operation (default: 150000)
        - PLANNER_NATIVE_TOKEN: Native token address (default: WETH)
        - PLANNER_MAX_SIZING_ITERATIONS: Basket sizing steps (default: 8)
        - PLANNER_CACHE_TTL_SECONDS: Pool state TTL (default: 120)
        - PLANNER_DISPLAY_PRECISION: Display decimal places (default: 4)

        Raises:
            ValueError: If a variable cannot be parsed or fails validation
        """
        env = os.environ if environ is None else environ

        raw_slippage = env.get("PLANNER_SLIPPAGE", str(DEFAULT_SLIPPAGE))
        try:
            slippage = Decimal(raw_slippage)
        except InvalidOperation as e:
            raise ValueError(f"Invalid PLANNER_SLIPPAGE: {raw_slippage!r}") from e

        return cls(
            slippage=slippage,
            gas_adjusted=env.get("PLANNER_GAS_ADJUSTED", "false").lower() in _TRUE_VALUES,
            unit_gas_cost=int(env.get("PLANNER_UNIT_GAS_COST", str(POOL_OPERATION_GAS_COST))),
            native_token=normalize_address(env.get("PLANNER_NATIVE_TOKEN", WETH), validate=True),
            max_sizing_iterations=int(
                env.get("PLANNER_MAX_SIZING_ITERATIONS", str(DEFAULT_MAX_SIZING_ITERATIONS))
            ),
            cache_ttl_seconds=float(
                env.get("PLANNER_CACHE_TTL_SECONDS", str(DEFAULT_CACHE_TTL_SECONDS))
            ),
            display_precision=int(env.get("PLANNER_DISPLAY_PRECISION", str(DISPLAY_PRECISION))),
        )


# Default configuration instance
DEFAULT_OPTIMIZER_CONFIG = OptimizerConfig()


__all__ = ["OptimizerConfig", "DEFAULT_OPTIMIZER_CONFIG", "DEFAULT_SLIPPAGE"]
