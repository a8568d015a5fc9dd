"""Gas penalty for strategies that need more than one pool operation.

A single-asset plan takes one pool operation; a proportional plan takes
one per leg. The extra operations are priced at the current gas price and
converted into the token the candidates are compared in.
"""

from __future__ import annotations

import structlog

from planner.errors import GasPriceUnavailable, NoRouteAvailable
from planner.models.types import same_address
from planner.quotes.base import GasPriceOracle, QuoteSource

logger = structlog.get_logger()

# A single-asset plan always takes exactly one pool operation
SINGLE_ASSET_OPERATION_COUNT = 1


def gas_penalty_wei(operation_count: int, unit_gas_cost: int, gas_price_wei: int) -> int:
    """Native cost of the operations beyond a single-asset plan's one.

    Formula:
        (operation_count - 1) * unit_gas_cost * gas_price_wei
    """
    extra_operations = max(operation_count - SINGLE_ASSET_OPERATION_COUNT, 0)
    return extra_operations * unit_gas_cost * gas_price_wei


async def gas_penalty_in_token(
    *,
    quote_source: QuoteSource,
    gas_oracle: GasPriceOracle,
    token: str,
    native_token: str,
    operation_count: int,
    unit_gas_cost: int,
) -> int:
    """Gas penalty expressed in `token` units.

    Returns 0 (and logs a warning) when the gas price is unavailable or the
    native amount cannot be converted into `token`.
    """
    if operation_count <= SINGLE_ASSET_OPERATION_COUNT:
        return 0

    try:
        gas_price = await gas_oracle.current_price("wei")
    except GasPriceUnavailable as e:
        logger.warning("gas_adjustment_skipped", reason="gas_price_unavailable", error=str(e))
        return 0

    penalty_native = gas_penalty_wei(operation_count, unit_gas_cost, gas_price)
    if penalty_native == 0 or same_address(token, native_token):
        return penalty_native

    try:
        quote = await quote_source.quote_exact_in(native_token, penalty_native, token)
    except NoRouteAvailable:
        quote = None
    if quote is None:
        logger.warning(
            "gas_adjustment_skipped",
            reason="no_conversion_route",
            token=token,
            penalty_native=penalty_native,
        )
        return 0

    logger.debug(
        "gas_penalty_converted",
        token=token,
        operation_count=operation_count,
        penalty_native=penalty_native,
        penalty=quote.output_amount,
    )
    return quote.output_amount


__all__ = ["gas_penalty_wei", "gas_penalty_in_token", "SINGLE_ASSET_OPERATION_COUNT"]
