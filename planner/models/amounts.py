"""Pydantic models for token amounts and pool previews.

Amounts are raw integers in token units. Every model also carries the
display string the caller shows next to the amount.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from planner.formatting import DISPLAY_PRECISION, format_balance, to_hex
from planner.models.types import Address


class TokenAmount(BaseModel):
    """A token and an amount of it.

    When the amount is paired with a wallet, balance, allowance and the
    approval still missing for this amount are passed through.
    """

    address: Address = Field(description="Token address (lowercase, 0x-prefixed)")
    symbol: str = ""
    decimals: int = Field(default=18, ge=0)
    amount: int = Field(ge=0, description="Raw token amount")
    display_amount: str = Field(alias="displayAmount")
    limit_amount: int | None = Field(
        default=None,
        alias="limitAmount",
        description="Slippage-adjusted bound: maximum input or minimum output.",
    )
    display_limit_amount: str | None = Field(default=None, alias="displayLimitAmount")
    balance: int | None = Field(default=None, description="Wallet balance of the token")
    allowance: int | None = Field(default=None, description="Allowance granted to the pool")
    remaining_approval_amount: int | None = Field(
        default=None,
        alias="remainingApprovalAmount",
        description="Additional approval needed to cover the amount (0 if covered).",
    )

    model_config = {"populate_by_name": True}

    @property
    def amount_hex(self) -> str:
        return to_hex(self.amount)

    @property
    def approval_needed(self) -> bool:
        return bool(self.remaining_approval_amount)

    @classmethod
    def build(
        cls,
        address: str,
        amount: int,
        *,
        decimals: int = 18,
        symbol: str = "",
        limit_amount: int | None = None,
        balance: int | None = None,
        allowance: int | None = None,
        precision: int = DISPLAY_PRECISION,
    ) -> TokenAmount:
        """Build an amount with its display strings.

        The approval fields are filled in when an allowance is given. The
        approval is measured against the limit amount when there is one,
        since that is what the pool may pull.
        """
        remaining = None
        if allowance is not None:
            required = limit_amount if limit_amount is not None else amount
            remaining = max(required - allowance, 0)

        return cls(
            address=address,
            symbol=symbol,
            decimals=decimals,
            amount=amount,
            display_amount=format_balance(amount, decimals, precision),
            limit_amount=limit_amount,
            display_limit_amount=(
                format_balance(limit_amount, decimals, precision)
                if limit_amount is not None
                else None
            ),
            balance=balance,
            allowance=allowance,
            remaining_approval_amount=remaining,
        )


class SwapPreview(BaseModel):
    """Result of previewing a swap through the pool.

    `amount` is the computed side: the output for an exact input swap, the
    input for an exact output swap.
    """

    amount: TokenAmount
    spot_price_after: int = Field(
        alias="spotPriceAfter",
        description="Spot price after the swap (18-decimal fixed-point).",
    )
    display_spot_price_after: str = Field(alias="displaySpotPriceAfter")

    model_config = {"populate_by_name": True}


class PoolAmountPreview(BaseModel):
    """Result of previewing a single-asset deposit or withdrawal.

    `token` is the underlying asset side (with wallet approval data for
    deposits) and `pool_amount` the pool token side.
    """

    token: TokenAmount
    pool_amount: TokenAmount = Field(alias="poolAmount")

    model_config = {"populate_by_name": True}


__all__ = ["TokenAmount", "SwapPreview", "PoolAmountPreview"]
