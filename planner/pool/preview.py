"""Trade, deposit and withdrawal previews over a pool snapshot.

Each preview resolves the tokens involved, picks the balance and weight
the pool would price them with, runs the invariant math and wraps the
result in display-ready models.

Pricing inputs by operation:
- Joins and the input side of swaps use used_balance/used_weight.
- Exits and the output side of swaps use the real balance/weight, and
  are refused for assets that are not ready.
"""

from __future__ import annotations

import structlog

from planner.constants import POOL_TOKEN_DECIMALS
from planner.errors import InvalidTradeSize, ReadinessViolation, TokenNotFoundError
from planner.formatting import DISPLAY_PRECISION, format_balance
from planner.math.fixed_point import Bfp
from planner.models.amounts import PoolAmountPreview, SwapPreview, TokenAmount
from planner.pool.types import AccountSnapshot, PoolAssetState, PoolState
from planner.pool.weighted_math import (
    calc_all_in_given_pool_out,
    calc_all_out_given_pool_in,
    calc_in_given_out,
    calc_out_given_in,
    calc_pool_in_given_single_out,
    calc_pool_out_given_single_in,
    calc_single_in_given_pool_out,
    calc_single_out_given_pool_in,
    calc_spot_price,
)

logger = structlog.get_logger()


# =============================================================================
# Helpers
# =============================================================================


def require_asset(pool: PoolState, token: str) -> PoolAssetState:
    """Look up a pool asset or raise TokenNotFoundError."""
    asset = pool.get_asset(token)
    if asset is None:
        logger.debug("pool_token_not_found", pool=pool.address, token=token)
        raise TokenNotFoundError(f"Token {token} not found in pool {pool.address}")
    return asset


def require_ready(asset: PoolAssetState, action: str) -> None:
    """Refuse operations that take a not-ready asset out of the pool."""
    if not asset.ready:
        logger.debug("pool_asset_not_ready", token=asset.token, action=action)
        raise ReadinessViolation(f"Can not {action} token {asset.token} which is not ready")


def _asset_amount(
    asset: PoolAssetState,
    amount: int,
    account: AccountSnapshot | None,
    precision: int,
) -> TokenAmount:
    if account is None:
        return TokenAmount.build(
            asset.token,
            amount,
            decimals=asset.decimals,
            symbol=asset.symbol,
            precision=precision,
        )
    return TokenAmount.build(
        asset.token,
        amount,
        decimals=asset.decimals,
        symbol=asset.symbol,
        balance=account.balance_of(asset.token),
        allowance=account.allowance_of(asset.token),
        precision=precision,
    )


def _pool_amount(pool: PoolState, amount: int, precision: int) -> TokenAmount:
    return TokenAmount.build(
        pool.address,
        amount,
        decimals=POOL_TOKEN_DECIMALS,
        symbol=pool.symbol,
        precision=precision,
    )


def _swap_pair(
    pool: PoolState, token_in: str, token_out: str
) -> tuple[PoolAssetState, PoolAssetState]:
    asset_in = require_asset(pool, token_in)
    asset_out = require_asset(pool, token_out)
    if asset_in.token == asset_out.token:
        raise InvalidTradeSize(f"Cannot swap token {asset_in.token} for itself")
    require_ready(asset_out, "swap out of")
    return asset_in, asset_out


# =============================================================================
# Swaps
# =============================================================================


def preview_spot_price(pool: PoolState, token_in: str, token_out: str) -> Bfp:
    """Current price of token_in per token_out, including the swap fee."""
    asset_in = require_asset(pool, token_in)
    asset_out = require_asset(pool, token_out)
    return calc_spot_price(
        Bfp(asset_in.used_balance),
        Bfp(asset_in.used_weight),
        Bfp(asset_out.used_balance),
        Bfp(asset_out.used_weight),
        Bfp(pool.swap_fee),
    )


def preview_out_given_in(
    pool: PoolState,
    token_in: str,
    token_out: str,
    amount_in: int,
    *,
    precision: int = DISPLAY_PRECISION,
) -> SwapPreview:
    """Preview the output of swapping an exact input amount.

    Raises:
        TokenNotFoundError: If either token is not bound to the pool
        ReadinessViolation: If token_out is not ready
        InvalidTradeSize: If amount_in exceeds MAX_IN_RATIO of the input balance
    """
    asset_in, asset_out = _swap_pair(pool, token_in, token_out)
    swap_fee = Bfp(pool.swap_fee)

    amount_out = calc_out_given_in(
        Bfp(asset_in.used_balance),
        Bfp(asset_in.used_weight),
        Bfp(asset_out.balance),
        Bfp(asset_out.weight),
        Bfp(amount_in),
        swap_fee,
    )
    spot_price_after = calc_spot_price(
        Bfp(asset_in.used_balance + amount_in),
        Bfp(asset_in.used_weight),
        Bfp(asset_out.balance - amount_out.value),
        Bfp(asset_out.weight),
        swap_fee,
    )

    logger.debug(
        "preview_out_given_in",
        pool=pool.address,
        token_in=asset_in.token,
        token_out=asset_out.token,
        amount_in=amount_in,
        amount_out=amount_out.value,
    )
    return SwapPreview(
        amount=_asset_amount(asset_out, amount_out.value, None, precision),
        spot_price_after=spot_price_after.value,
        display_spot_price_after=format_balance(spot_price_after.value, 18, precision),
    )


def preview_in_given_out(
    pool: PoolState,
    token_in: str,
    token_out: str,
    amount_out: int,
    *,
    account: AccountSnapshot | None = None,
    precision: int = DISPLAY_PRECISION,
) -> SwapPreview:
    """Preview the input needed to receive an exact output amount.

    Raises:
        TokenNotFoundError: If either token is not bound to the pool
        ReadinessViolation: If token_out is not ready
        InvalidTradeSize: If amount_out exceeds MAX_OUT_RATIO of the output balance
    """
    asset_in, asset_out = _swap_pair(pool, token_in, token_out)
    swap_fee = Bfp(pool.swap_fee)

    amount_in = calc_in_given_out(
        Bfp(asset_in.used_balance),
        Bfp(asset_in.used_weight),
        Bfp(asset_out.balance),
        Bfp(asset_out.weight),
        Bfp(amount_out),
        swap_fee,
    )
    spot_price_after = calc_spot_price(
        Bfp(asset_in.used_balance).add(amount_in),
        Bfp(asset_in.used_weight),
        Bfp(asset_out.balance - amount_out),
        Bfp(asset_out.weight),
        swap_fee,
    )

    logger.debug(
        "preview_in_given_out",
        pool=pool.address,
        token_in=asset_in.token,
        token_out=asset_out.token,
        amount_in=amount_in.value,
        amount_out=amount_out,
    )
    return SwapPreview(
        amount=_asset_amount(asset_in, amount_in.value, account, precision),
        spot_price_after=spot_price_after.value,
        display_spot_price_after=format_balance(spot_price_after.value, 18, precision),
    )


# =============================================================================
# Deposits
# =============================================================================


def preview_single_in_given_pool_out(
    pool: PoolState,
    token_in: str,
    pool_amount_out: int,
    *,
    account: AccountSnapshot | None = None,
    precision: int = DISPLAY_PRECISION,
) -> PoolAmountPreview:
    """Preview the single-asset deposit needed to mint an exact pool amount."""
    asset = require_asset(pool, token_in)
    amount_in = calc_single_in_given_pool_out(
        Bfp(asset.used_balance),
        Bfp(asset.used_weight),
        Bfp(pool.total_supply),
        Bfp(pool.total_weight),
        Bfp(pool_amount_out),
        Bfp(pool.swap_fee),
    )
    return PoolAmountPreview(
        token=_asset_amount(asset, amount_in.value, account, precision),
        pool_amount=_pool_amount(pool, pool_amount_out, precision),
    )


def preview_pool_out_given_single_in(
    pool: PoolState,
    token_in: str,
    amount_in: int,
    *,
    account: AccountSnapshot | None = None,
    precision: int = DISPLAY_PRECISION,
) -> PoolAmountPreview:
    """Preview the pool amount minted by depositing an exact single-asset amount."""
    asset = require_asset(pool, token_in)
    pool_amount_out = calc_pool_out_given_single_in(
        Bfp(asset.used_balance),
        Bfp(asset.used_weight),
        Bfp(pool.total_supply),
        Bfp(pool.total_weight),
        Bfp(amount_in),
        Bfp(pool.swap_fee),
    )
    return PoolAmountPreview(
        token=_asset_amount(asset, amount_in, account, precision),
        pool_amount=_pool_amount(pool, pool_amount_out.value, precision),
    )


def preview_all_in_given_pool_out(
    pool: PoolState,
    pool_amount_out: int,
    *,
    account: AccountSnapshot | None = None,
    precision: int = DISPLAY_PRECISION,
) -> list[TokenAmount]:
    """Preview every asset amount needed to mint pool tokens proportionally."""
    amounts = calc_all_in_given_pool_out(
        [Bfp(asset.used_balance) for asset in pool.assets],
        Bfp(pool.total_supply),
        Bfp(pool_amount_out),
    )
    return [
        _asset_amount(asset, amount.value, account, precision)
        for asset, amount in zip(pool.assets, amounts, strict=True)
    ]


# =============================================================================
# Withdrawals
# =============================================================================


def preview_single_out_given_pool_in(
    pool: PoolState,
    token_out: str,
    pool_amount_in: int,
    *,
    precision: int = DISPLAY_PRECISION,
) -> PoolAmountPreview:
    """Preview the single-asset amount withdrawn by burning an exact pool amount.

    Raises:
        ReadinessViolation: If token_out is not ready
    """
    asset = require_asset(pool, token_out)
    require_ready(asset, "exit into")
    amount_out = calc_single_out_given_pool_in(
        Bfp(asset.balance),
        Bfp(asset.weight),
        Bfp(pool.total_supply),
        Bfp(pool.total_weight),
        Bfp(pool_amount_in),
        Bfp(pool.swap_fee),
        Bfp(pool.exit_fee),
    )
    return PoolAmountPreview(
        token=_asset_amount(asset, amount_out.value, None, precision),
        pool_amount=_pool_amount(pool, pool_amount_in, precision),
    )


def preview_pool_in_given_single_out(
    pool: PoolState,
    token_out: str,
    amount_out: int,
    *,
    precision: int = DISPLAY_PRECISION,
) -> PoolAmountPreview:
    """Preview the pool amount burned to withdraw an exact single-asset amount.

    Raises:
        ReadinessViolation: If token_out is not ready
    """
    asset = require_asset(pool, token_out)
    require_ready(asset, "exit into")
    pool_amount_in = calc_pool_in_given_single_out(
        Bfp(asset.balance),
        Bfp(asset.weight),
        Bfp(pool.total_supply),
        Bfp(pool.total_weight),
        Bfp(amount_out),
        Bfp(pool.swap_fee),
        Bfp(pool.exit_fee),
    )
    return PoolAmountPreview(
        token=_asset_amount(asset, amount_out, None, precision),
        pool_amount=_pool_amount(pool, pool_amount_in.value, precision),
    )


def preview_all_out_given_pool_in(
    pool: PoolState,
    pool_amount_in: int,
    *,
    precision: int = DISPLAY_PRECISION,
) -> list[TokenAmount]:
    """Preview every asset amount withdrawn by burning pool tokens proportionally."""
    amounts = calc_all_out_given_pool_in(
        [Bfp(asset.balance) for asset in pool.assets],
        [Bfp(asset.weight) for asset in pool.assets],
        Bfp(pool.total_supply),
        Bfp(pool_amount_in),
        Bfp(pool.exit_fee),
    )
    return [
        _asset_amount(asset, amount.value, None, precision)
        for asset, amount in zip(pool.assets, amounts, strict=True)
    ]


__all__ = [
    "require_asset",
    "require_ready",
    "preview_spot_price",
    "preview_out_given_in",
    "preview_in_given_out",
    "preview_single_in_given_pool_out",
    "preview_pool_out_given_single_in",
    "preview_all_in_given_pool_out",
    "preview_single_out_given_pool_in",
    "preview_pool_in_given_single_out",
    "preview_all_out_given_pool_in",
]
