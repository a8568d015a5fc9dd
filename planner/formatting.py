"""Display formatting for token amounts.

Amounts are kept as integers everywhere; these helpers only produce the
strings shown next to them.
"""

from __future__ import annotations

import decimal
from decimal import ROUND_DOWN, Decimal

# 78 digits of precision, enough for uint256 values (up to ~10^77)
DECIMAL_HIGH_PREC_CONTEXT = decimal.Context(prec=78)

# Decimal places shown in display amounts
DISPLAY_PRECISION = 4


def pad_to_decimal_places(value: str, min_decimals: int) -> str:
    """Pad a decimal string with zeros to at least min_decimals places.

    >>> pad_to_decimal_places("1.5", 2)
    '1.50'
    >>> pad_to_decimal_places("3", 2)
    '3.00'
    """
    whole, _, fraction = value.partition(".")
    zeros_to_pad = min_decimals - len(fraction)
    if zeros_to_pad <= 0:
        return value
    return f"{whole}.{fraction}{'0' * zeros_to_pad}"


def format_balance(amount: int, decimals: int, precision: int = DISPLAY_PRECISION) -> str:
    """Format a raw token amount for display.

    The amount is scaled down by the token decimals, rounded down to
    `precision` places, stripped of trailing zeros and padded back to at
    least two decimal places.

    Args:
        amount: Raw token amount
        decimals: Token decimals
        precision: Maximum decimal places to show

    Returns:
        Display string, "0.00" for a zero amount
    """
    if amount == 0:
        return "0.00"

    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        scaled = Decimal(amount).scaleb(-decimals)
        rounded = scaled.quantize(Decimal(1).scaleb(-precision), rounding=ROUND_DOWN)
        text = format(rounded, "f")

    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return pad_to_decimal_places(text, 2)


def to_hex(amount: int) -> str:
    """Hex string for an integer amount, as contracts and wallets expect it."""
    return hex(amount)


__all__ = [
    "DECIMAL_HIGH_PREC_CONTEXT",
    "DISPLAY_PRECISION",
    "format_balance",
    "pad_to_decimal_places",
    "to_hex",
]
