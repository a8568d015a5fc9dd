"""Protocol constants for the index pool planner.

Centralizes well-known addresses and gas parameters.
"""

from planner.models.types import is_valid_address


def _validate_token_address(name: str, address: str) -> str:
    """Validate and return a token address.

    Raises:
        ValueError: If the address is invalid
    """
    if not is_valid_address(address):
        raise ValueError(f"Invalid {name} address: {address} (must be 0x + 40 hex chars)")
    return address


# Wrapped native token on mainnet (lowercase for consistency)
WETH = _validate_token_address("WETH", "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2")

# Gas units charged per pool-side operation (one swap or one mint/burn leg)
POOL_OPERATION_GAS_COST = 150_000

GWEI = 10**9

MAINNET_CHAIN_ID = 1

# Gas price oracle reporting a `standard` price in gwei
GAS_PRICE_ORACLE_URL = "https://www.etherchain.org/api/gasPriceOracle"

# Pool tokens always carry 18 decimals
POOL_TOKEN_DECIMALS = 18
