"""Index pool state dataclasses.

Snapshots of pool and asset state supplied by the caller for every
computation. Nothing here is cached or mutated by the planner.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from planner.errors import InvalidPoolStateError, TokenNotFoundError
from planner.math.fixed_point import BONE, MIN_WEIGHT, bdiv, bmul
from planner.models.types import normalize_address


def derive_used_state(
    balance: int,
    weight: int,
    ready: bool,
    minimum_balance: int | None = None,
) -> tuple[int, int]:
    """Derive the balance and weight the pool prices an asset with.

    A ready asset is priced with its real balance and weight. An asset that
    is still ramping into the pool is priced as if it held its minimum
    balance, with a weight slightly above MIN_WEIGHT:

        used_weight = MIN_WEIGHT + MIN_WEIGHT / 10 * (minimum_balance - balance) / minimum_balance

    Args:
        balance: Real token balance held by the pool
        weight: Weight as stored by the pool
        ready: Whether the asset has finished ramping in
        minimum_balance: Balance at which the asset becomes ready

    Returns:
        Tuple of (used_balance, used_weight)

    Raises:
        InvalidPoolStateError: If a not-ready asset has no minimum balance
    """
    if ready:
        return balance, weight if weight else MIN_WEIGHT

    if not minimum_balance:
        raise InvalidPoolStateError("Asset that is not ready requires a positive minimum balance")

    used_balance = minimum_balance
    shortfall = max(used_balance - balance, 0)
    real_to_min_ratio = bdiv(shortfall, minimum_balance)
    weight_premium = bmul(MIN_WEIGHT // 10, real_to_min_ratio)
    return used_balance, MIN_WEIGHT + weight_premium


@dataclass(frozen=True)
class PoolAssetState:
    """State of one token bound to the pool.

    Attributes:
        token: Token address (lowercase)
        balance: Real balance held by the pool
        weight: Weight as stored by the pool (denormalized)
        used_balance: Balance used for pricing; equals balance once ready
        used_weight: Weight used for pricing; never below MIN_WEIGHT
        ready: Whether the asset has finished ramping in
        minimum_balance: Ramp-in threshold for assets that are not ready
        symbol: Token symbol for display
        decimals: Token decimals for display
    """

    token: str
    balance: int
    weight: int
    used_balance: int
    used_weight: int
    ready: bool = True
    minimum_balance: int | None = None
    symbol: str = ""
    decimals: int = 18

    def __post_init__(self) -> None:
        if self.balance < 0 or self.used_balance < 0:
            raise InvalidPoolStateError(f"Negative balance for {self.token}")
        if self.weight < 0:
            raise InvalidPoolStateError(f"Negative weight for {self.token}")
        if self.used_weight < MIN_WEIGHT:
            raise InvalidPoolStateError(
                f"Used weight {self.used_weight} for {self.token} is below MIN_WEIGHT"
            )

    @classmethod
    def from_chain(
        cls,
        token: str,
        balance: int,
        weight: int,
        *,
        ready: bool = True,
        minimum_balance: int | None = None,
        symbol: str = "",
        decimals: int = 18,
    ) -> PoolAssetState:
        """Build an asset from raw on-chain values, deriving the used values."""
        used_balance, used_weight = derive_used_state(balance, weight, ready, minimum_balance)
        return cls(
            token=normalize_address(token),
            balance=balance,
            weight=weight,
            used_balance=used_balance,
            used_weight=used_weight,
            ready=ready,
            minimum_balance=minimum_balance,
            symbol=symbol,
            decimals=decimals,
        )


@dataclass(frozen=True)
class PoolState:
    """Snapshot of a weighted index pool.

    Attributes:
        address: Pool token address
        assets: Bound assets in pool order
        total_supply: Pool token supply
        total_weight: Sum of all asset weights
        swap_fee: Swap fee fraction (18-decimal fixed-point)
        exit_fee: Exit fee fraction (18-decimal fixed-point)
        symbol: Pool token symbol for display
        max_total_supply: Supply cap, if the pool has one
    """

    address: str
    assets: tuple[PoolAssetState, ...]
    total_supply: int
    total_weight: int
    swap_fee: int
    exit_fee: int = 0
    symbol: str = ""
    max_total_supply: int | None = None

    def __post_init__(self) -> None:
        if not self.assets:
            raise InvalidPoolStateError("Pool has no assets")
        if self.total_weight <= 0:
            raise InvalidPoolStateError("Total weight must be positive")
        weight_sum = sum(asset.weight for asset in self.assets)
        if weight_sum != self.total_weight:
            raise InvalidPoolStateError(
                f"Asset weights sum to {weight_sum}, expected {self.total_weight}"
            )
        if not 0 <= self.swap_fee < BONE:
            raise InvalidPoolStateError(f"Swap fee {self.swap_fee} outside [0, 1)")
        if not 0 <= self.exit_fee < BONE:
            raise InvalidPoolStateError(f"Exit fee {self.exit_fee} outside [0, 1)")
        if self.total_supply < 0:
            raise InvalidPoolStateError("Total supply cannot be negative")

    @classmethod
    def build(
        cls,
        address: str,
        assets: Sequence[PoolAssetState],
        total_supply: int,
        swap_fee: int,
        exit_fee: int = 0,
        *,
        symbol: str = "",
        max_total_supply: int | None = None,
    ) -> PoolState:
        """Build a pool, computing total_weight from the assets."""
        return cls(
            address=normalize_address(address),
            assets=tuple(assets),
            total_supply=total_supply,
            total_weight=sum(asset.weight for asset in assets),
            swap_fee=swap_fee,
            exit_fee=exit_fee,
            symbol=symbol,
            max_total_supply=max_total_supply,
        )

    def get_asset(self, token: str) -> PoolAssetState | None:
        """Get the asset for a token address (case-insensitive)."""
        token_lower = normalize_address(token)
        for asset in self.assets:
            if asset.token.lower() == token_lower:
                return asset
        return None

    def has_asset(self, token: str) -> bool:
        return self.get_asset(token) is not None

    def normalized_weight(self, asset: PoolAssetState) -> int:
        """Asset weight divided by the total weight."""
        return bdiv(asset.weight, self.total_weight)

    def extrapolate_value(self, token: str) -> int:
        """Total pool value expressed in units of one asset.

        Returns:
            used_balance * total_weight / used_weight
        """
        asset = self.get_asset(token)
        if asset is None:
            raise TokenNotFoundError(f"Token {token} not found in pool {self.address}")
        return asset.used_balance * self.total_weight // asset.used_weight


@dataclass(frozen=True)
class AccountSnapshot:
    """Wallet balances and allowances, passed through to previews.

    Attributes:
        address: Wallet address
        balances: Token balances keyed by lowercase token address
        allowances: Allowances granted to the spender, keyed the same way
    """

    address: str
    balances: Mapping[str, int] = field(default_factory=dict)
    allowances: Mapping[str, int] = field(default_factory=dict)

    def balance_of(self, token: str) -> int:
        return self.balances.get(normalize_address(token), 0)

    def allowance_of(self, token: str) -> int:
        return self.allowances.get(normalize_address(token), 0)


__all__ = ["PoolAssetState", "PoolState", "AccountSnapshot", "derive_used_state"]
