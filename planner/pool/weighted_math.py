"""Weighted index pool math.

Core pricing functions for the constant-weighted-product invariant with a
swap fee. Every function is a pure translation of the pool contract's
formula over Bfp values; none of them mutates its inputs.

Domain guards raise InvalidTradeSize before any power series is entered, so
an oversized trade is reported as such instead of as a garbage result.
"""

from __future__ import annotations

from collections.abc import Sequence

from planner.errors import InvalidTradeSize
from planner.math.fixed_point import MAX_IN_RATIO, MAX_OUT_RATIO, TWO_BONE, Bfp

ONE = Bfp(Bfp.ONE)


def _require_positive_balance(balance: Bfp, name: str) -> None:
    if balance.value <= 0:
        raise InvalidTradeSize(f"{name} must be positive, got {balance.value}")


def _require_max_in(amount_in: Bfp, balance_in: Bfp) -> None:
    limit = balance_in.mul(Bfp(MAX_IN_RATIO))
    if amount_in > limit:
        raise InvalidTradeSize(
            f"Input {amount_in.value} exceeds MAX_IN_RATIO of balance {balance_in.value}"
        )


def _require_max_out(amount_out: Bfp, balance_out: Bfp) -> None:
    limit = balance_out.mul(Bfp(MAX_OUT_RATIO))
    if amount_out > limit or amount_out >= balance_out:
        raise InvalidTradeSize(
            f"Output {amount_out.value} exceeds MAX_OUT_RATIO of balance {balance_out.value}"
        )


# =============================================================================
# Swaps
# =============================================================================


def calc_spot_price(
    balance_in: Bfp,
    weight_in: Bfp,
    balance_out: Bfp,
    weight_out: Bfp,
    swap_fee: Bfp,
) -> Bfp:
    """Calculate the spot price of token in per token out, including the fee.

    Formula:
        spot_price = ((balance_in / weight_in) / (balance_out / weight_out)) * (1 / (1 - fee))

    Raises:
        DivisionByZero: If a weight or balance_out is zero
    """
    numer = balance_in.div(weight_in)
    denom = balance_out.div(weight_out)
    ratio = numer.div(denom)
    scale = ONE.div(swap_fee.complement())
    return ratio.mul(scale)


def calc_out_given_in(
    balance_in: Bfp,
    weight_in: Bfp,
    balance_out: Bfp,
    weight_out: Bfp,
    amount_in: Bfp,
    swap_fee: Bfp,
) -> Bfp:
    """Calculate output amount for a given input (exact-in swap).

    Formula:
        amount_out = balance_out * (1 - (balance_in / (balance_in + amount_in * (1 - fee)))^(weight_in / weight_out))

    Args:
        balance_in: Balance of input token
        weight_in: Weight of input token
        balance_out: Balance of output token
        weight_out: Weight of output token
        amount_in: Input amount, fee included
        swap_fee: Swap fee fraction

    Returns:
        Output token amount

    Raises:
        InvalidTradeSize: If a balance is not positive or amount_in exceeds
            MAX_IN_RATIO of balance_in
        DivisionByZero: If weight_out is zero
    """
    _require_positive_balance(balance_in, "balance_in")
    _require_positive_balance(balance_out, "balance_out")
    _require_max_in(amount_in, balance_in)

    weight_ratio = weight_in.div(weight_out)
    adjusted_in = amount_in.mul(swap_fee.complement())
    y = balance_in.div(balance_in.add(adjusted_in))
    foo = y.pow(weight_ratio)
    bar = foo.complement()
    return balance_out.mul(bar)


def calc_in_given_out(
    balance_in: Bfp,
    weight_in: Bfp,
    balance_out: Bfp,
    weight_out: Bfp,
    amount_out: Bfp,
    swap_fee: Bfp,
) -> Bfp:
    """Calculate input amount for a desired output (exact-out swap).

    Formula:
        amount_in = balance_in * ((balance_out / (balance_out - amount_out))^(weight_out / weight_in) - 1) / (1 - fee)

    Returns:
        Input token amount, fee included

    Raises:
        InvalidTradeSize: If a balance is not positive or amount_out exceeds
            MAX_OUT_RATIO of balance_out
        DivisionByZero: If weight_in is zero
    """
    _require_positive_balance(balance_in, "balance_in")
    _require_positive_balance(balance_out, "balance_out")
    _require_max_out(amount_out, balance_out)

    weight_ratio = weight_out.div(weight_in)
    diff = balance_out.sub(amount_out)
    y = balance_out.div(diff)
    foo = y.pow(weight_ratio).sub(ONE)
    return balance_in.mul(foo).div(swap_fee.complement())


# =============================================================================
# Single-asset joins and exits
# =============================================================================


def calc_pool_out_given_single_in(
    balance_in: Bfp,
    weight_in: Bfp,
    pool_supply: Bfp,
    total_weight: Bfp,
    amount_in: Bfp,
    swap_fee: Bfp,
) -> Bfp:
    """Calculate pool tokens minted for depositing a single asset.

    The swap fee is only charged on the share of the deposit that is not
    already proportional, i.e. on (1 - normalized_weight) of it.

    Formula:
        amount_after_fee = amount_in * (1 - (1 - normalized_weight) * fee)
        pool_out = supply * ((balance_in + amount_after_fee) / balance_in)^normalized_weight - supply

    Raises:
        InvalidTradeSize: If balance_in is not positive or amount_in exceeds
            MAX_IN_RATIO of balance_in
    """
    _require_positive_balance(balance_in, "balance_in")
    _require_max_in(amount_in, balance_in)

    normalized_weight = weight_in.div(total_weight)
    zaz = normalized_weight.complement().mul(swap_fee)
    amount_in_after_fee = amount_in.mul(zaz.complement())

    new_balance_in = balance_in.add(amount_in_after_fee)
    token_in_ratio = new_balance_in.div(balance_in)

    pool_ratio = token_in_ratio.pow(normalized_weight)
    new_pool_supply = pool_ratio.mul(pool_supply)
    return new_pool_supply.sub(pool_supply)


def calc_single_in_given_pool_out(
    balance_in: Bfp,
    weight_in: Bfp,
    pool_supply: Bfp,
    total_weight: Bfp,
    pool_amount_out: Bfp,
    swap_fee: Bfp,
) -> Bfp:
    """Calculate the single-asset deposit needed to mint an exact pool amount.

    Formula:
        token_ratio = ((supply + pool_out) / supply)^(1 / normalized_weight)
        amount_in = (token_ratio * balance_in - balance_in) / (1 - (1 - normalized_weight) * fee)

    Raises:
        InvalidTradeSize: If balance_in or supply is not positive, the pool
            ratio would reach 2, or the deposit exceeds MAX_IN_RATIO of
            balance_in
    """
    _require_positive_balance(balance_in, "balance_in")
    _require_positive_balance(pool_supply, "pool_supply")

    normalized_weight = weight_in.div(total_weight)
    new_pool_supply = pool_supply.add(pool_amount_out)
    pool_ratio = new_pool_supply.div(pool_supply)
    if pool_ratio.value >= TWO_BONE:
        raise InvalidTradeSize(
            f"Pool amount {pool_amount_out.value} too large for supply {pool_supply.value}"
        )

    boo = ONE.div(normalized_weight)
    token_in_ratio = pool_ratio.pow(boo)
    new_balance_in = token_in_ratio.mul(balance_in)
    amount_in_after_fee = new_balance_in.sub(balance_in)

    zar = normalized_weight.complement().mul(swap_fee)
    amount_in = amount_in_after_fee.div(zar.complement())
    _require_max_in(amount_in, balance_in)
    return amount_in


def calc_pool_in_given_single_out(
    balance_out: Bfp,
    weight_out: Bfp,
    pool_supply: Bfp,
    total_weight: Bfp,
    amount_out: Bfp,
    swap_fee: Bfp,
    exit_fee: Bfp,
) -> Bfp:
    """Calculate pool tokens burned to withdraw an exact single-asset amount.

    The exit fee is applied after computing the shares to burn.

    Raises:
        InvalidTradeSize: If balance_out is not positive, amount_out exceeds
            MAX_OUT_RATIO of balance_out, or the fee-grossed amount would
            drain the balance
    """
    _require_positive_balance(balance_out, "balance_out")
    _require_max_out(amount_out, balance_out)

    normalized_weight = weight_out.div(total_weight)
    zar = normalized_weight.complement().mul(swap_fee)
    amount_out_before_fee = amount_out.div(zar.complement())
    if amount_out_before_fee >= balance_out:
        raise InvalidTradeSize(
            f"Output {amount_out.value} before fees would drain balance {balance_out.value}"
        )

    new_balance_out = balance_out.sub(amount_out_before_fee)
    token_out_ratio = new_balance_out.div(balance_out)

    pool_ratio = token_out_ratio.pow(normalized_weight)
    new_pool_supply = pool_ratio.mul(pool_supply)
    pool_amount_in_after_exit_fee = pool_supply.sub(new_pool_supply)

    return pool_amount_in_after_exit_fee.div(exit_fee.complement())


def calc_single_out_given_pool_in(
    balance_out: Bfp,
    weight_out: Bfp,
    pool_supply: Bfp,
    total_weight: Bfp,
    pool_amount_in: Bfp,
    swap_fee: Bfp,
    exit_fee: Bfp,
) -> Bfp:
    """Calculate the single-asset amount withdrawn by burning pool tokens.

    Formula:
        pool_in_after_exit_fee = pool_in * (1 - exit_fee)
        token_ratio = ((supply - pool_in_after_exit_fee) / supply)^(1 / normalized_weight)
        amount_out = (balance_out - token_ratio * balance_out) * (1 - (1 - normalized_weight) * fee)

    Raises:
        InvalidTradeSize: If balance_out is not positive, the burn would
            consume the whole supply, or the withdrawal exceeds MAX_OUT_RATIO
            of balance_out
    """
    _require_positive_balance(balance_out, "balance_out")
    _require_positive_balance(pool_supply, "pool_supply")

    normalized_weight = weight_out.div(total_weight)
    pool_amount_in_after_exit_fee = pool_amount_in.mul(exit_fee.complement())
    if pool_amount_in_after_exit_fee >= pool_supply:
        raise InvalidTradeSize(
            f"Burn of {pool_amount_in.value} would consume supply {pool_supply.value}"
        )
    new_pool_supply = pool_supply.sub(pool_amount_in_after_exit_fee)
    pool_ratio = new_pool_supply.div(pool_supply)

    token_out_ratio = pool_ratio.pow(ONE.div(normalized_weight))
    new_balance_out = token_out_ratio.mul(balance_out)

    amount_out_before_fee = balance_out.sub(new_balance_out)

    zaz = normalized_weight.complement().mul(swap_fee)
    amount_out = amount_out_before_fee.mul(zaz.complement())
    _require_max_out(amount_out, balance_out)
    return amount_out


# =============================================================================
# Proportional joins and exits
# =============================================================================


def calc_all_in_given_pool_out(
    balances: Sequence[Bfp],
    pool_supply: Bfp,
    pool_amount_out: Bfp,
) -> list[Bfp]:
    """Calculate every asset amount needed to mint pool tokens proportionally.

    No fee is charged on a proportional join.

    Raises:
        DivisionByZero: If pool_supply is zero
    """
    ratio = pool_amount_out.div(pool_supply)
    return [ratio.mul(balance) for balance in balances]


def calc_all_out_given_pool_in(
    balances: Sequence[Bfp],
    weights: Sequence[Bfp],
    pool_supply: Bfp,
    pool_amount_in: Bfp,
    exit_fee: Bfp,
) -> list[Bfp]:
    """Calculate every asset amount withdrawn by burning pool tokens proportionally.

    The exit fee is deducted from the burn amount first. Assets with zero
    weight have been fully removed from the pool and always yield exactly 0.

    Raises:
        DivisionByZero: If pool_supply is zero
    """
    if len(balances) != len(weights):
        raise ValueError("balances and weights must have the same length")

    fee_amount = pool_amount_in.mul(exit_fee)
    pool_amount_in_after_exit_fee = pool_amount_in.sub(fee_amount)
    ratio = pool_amount_in_after_exit_fee.div(pool_supply)

    amounts_out = []
    for balance, weight in zip(balances, weights, strict=True):
        if weight.value == 0:
            amounts_out.append(Bfp(0))
        else:
            amounts_out.append(ratio.mul(balance))
    return amounts_out


__all__ = [
    "calc_spot_price",
    "calc_out_given_in",
    "calc_in_given_out",
    "calc_pool_out_given_single_in",
    "calc_single_in_given_pool_out",
    "calc_pool_in_given_single_out",
    "calc_single_out_given_pool_in",
    "calc_all_in_given_pool_out",
    "calc_all_out_given_pool_in",
]
