"""Gas price oracles.

The HTTP oracle reads the `standard` gwei price from a JSON gas price
endpoint on mainnet. Other chains are assumed to charge 1 gwei.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

import httpx
import structlog

from planner.constants import GAS_PRICE_ORACLE_URL, GWEI, MAINNET_CHAIN_ID
from planner.errors import GasPriceUnavailable
from planner.quotes.base import GasUnit

logger = structlog.get_logger()

DEFAULT_TIMEOUT_SECONDS = 10.0


def convert_wei(price_wei: int, unit: GasUnit) -> int:
    """Express a wei price in the requested unit (gwei rounds down)."""
    if unit == "wei":
        return price_wei
    if unit == "gwei":
        return price_wei // GWEI
    raise ValueError(f"Unknown gas price unit: {unit!r}")


class FixedGasPriceOracle:
    """Oracle returning a constant price, for tests and static pricing."""

    def __init__(self, price_wei: int) -> None:
        if price_wei < 0:
            raise ValueError(f"Gas price cannot be negative, got {price_wei}")
        self.price_wei = price_wei

    async def current_price(self, unit: GasUnit = "wei") -> int:
        return convert_wei(self.price_wei, unit)


class HttpGasPriceOracle:
    """Oracle reading the standard gas price from an HTTP endpoint.

    Args:
        url: Endpoint returning JSON with a `standard` field in gwei
        chain_id: Chain the price is for; only mainnet queries the endpoint
        client: Optional shared client; a short-lived one is used otherwise
        timeout: Request timeout in seconds when no client is given
    """

    def __init__(
        self,
        url: str = GAS_PRICE_ORACLE_URL,
        chain_id: int = MAINNET_CHAIN_ID,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.url = url
        self.chain_id = chain_id
        self._client = client
        self._timeout = timeout

    async def _fetch_json(self) -> dict:
        if self._client is not None:
            response = await self._client.get(self.url)
            response.raise_for_status()
            return response.json()

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.get(self.url)
            response.raise_for_status()
            return response.json()

    async def current_price(self, unit: GasUnit = "wei") -> int:
        """Current gas price.

        Raises:
            GasPriceUnavailable: If the endpoint fails or returns no usable price
        """
        if self.chain_id != MAINNET_CHAIN_ID:
            return convert_wei(GWEI, unit)

        try:
            payload = await self._fetch_json()
        except httpx.HTTPError as e:
            logger.warning("gas_price_fetch_failed", url=self.url, error=str(e))
            raise GasPriceUnavailable(f"Gas price request to {self.url} failed: {e}") from e
        except ValueError as e:
            logger.warning("gas_price_invalid_json", url=self.url, error=str(e))
            raise GasPriceUnavailable(f"Gas price response from {self.url} is not JSON") from e

        standard = payload.get("standard") if isinstance(payload, dict) else None
        if standard is None:
            raise GasPriceUnavailable(f"Gas price response from {self.url} has no 'standard' field")
        try:
            price_wei = int(Decimal(str(standard)) * GWEI)
        except InvalidOperation as e:
            raise GasPriceUnavailable(f"Invalid gas price {standard!r} from {self.url}") from e
        if price_wei < 0:
            raise GasPriceUnavailable(f"Negative gas price {standard!r} from {self.url}")

        logger.debug("gas_price_fetched", price_wei=price_wei, url=self.url)
        return convert_wei(price_wei, unit)


__all__ = ["FixedGasPriceOracle", "HttpGasPriceOracle", "convert_wei"]
