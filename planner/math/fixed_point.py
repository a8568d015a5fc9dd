"""Balancer-style fixed point (Bfp) math library.

This module implements 18-decimal fixed-point arithmetic matching the
index pool's on-chain BNum library bit for bit: multiplication and division
round half up, and powers are split into an integer part computed by
repeated squaring and a fractional part computed by a binomial series.

All values are stored as integers scaled by 10^18.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import ClassVar

from planner.errors import DivisionByZero, FixedPointUnderflow, PowBaseOutOfBounds

__all__ = [
    # Classes
    "Bfp",
    # Functions
    "bmul",
    "bdiv",
    "btoi",
    "bfloor",
    "bsub_sign",
    "bpowi",
    "bpow_approx",
    "bpow",
    # Constants
    "BONE",
    "TWO_BONE",
    "MIN_WEIGHT",
    "MAX_IN_RATIO",
    "MAX_OUT_RATIO",
    "BPOW_PRECISION",
    "MIN_BPOW_BASE",
    "MAX_BPOW_BASE",
]

# =============================================================================
# Constants (matching the pool contract exactly)
# =============================================================================

BONE = 10**18
TWO_BONE = 2 * BONE

# Series terms below this magnitude are dropped (ten decimal digits)
BPOW_PRECISION = BONE // 10**10

# Floor weight for assets that are still ramping into the pool
MIN_WEIGHT = BONE // 4

# 0.499999999999999 and 0.333333333333333, just under 1/2 and 1/3
MAX_IN_RATIO = 499_999_999_999_999_000
MAX_OUT_RATIO = 333_333_333_333_333_000

# The binomial series only converges for bases in (0, 2)
MIN_BPOW_BASE = 1
MAX_BPOW_BASE = TWO_BONE - 1


# =============================================================================
# Core math functions (matching BNum)
# =============================================================================


def bmul(a: int, b: int) -> int:
    """Multiply two fixed-point values, rounding half up.

    Args:
        a: Left operand (18-decimal fixed-point)
        b: Right operand (18-decimal fixed-point)

    Returns:
        round_half_up(a * b / 10^18)
    """
    return (a * b + BONE // 2) // BONE


def bdiv(a: int, b: int) -> int:
    """Divide two fixed-point values, rounding half up.

    Args:
        a: Dividend (18-decimal fixed-point)
        b: Divisor (18-decimal fixed-point)

    Returns:
        round_half_up(a * 10^18 / b)

    Raises:
        DivisionByZero: If b is zero
    """
    if b == 0:
        raise DivisionByZero(f"Fixed-point division of {a} by zero")
    return (a * BONE + b // 2) // b


def btoi(a: int) -> int:
    """Integer part of a fixed-point value."""
    return a // BONE


def bfloor(a: int) -> int:
    """Fixed-point value with its fractional part dropped."""
    return btoi(a) * BONE


def bsub_sign(a: int, b: int) -> tuple[int, bool]:
    """Absolute difference of two values and whether a - b is negative.

    Returns:
        Tuple of (|a - b|, a < b)
    """
    if a >= b:
        return a - b, False
    return b - a, True


def bpowi(a: int, n: int) -> int:
    """Raise a fixed-point base to a non-negative integer power.

    Exponentiation by squaring over bmul, so rounding happens at exactly the
    same steps as the contract.

    Args:
        a: Base (18-decimal fixed-point)
        n: Exponent as a plain integer (not scaled)

    Returns:
        a^n as 18-decimal fixed-point
    """
    z = a if n % 2 != 0 else BONE

    n //= 2
    while n != 0:
        a = bmul(a, a)
        if n % 2 != 0:
            z = bmul(z, a)
        n //= 2

    return z


def bpow_approx(base: int, exp: int, precision: int = BPOW_PRECISION) -> int:
    """Approximate base^exp for a fractional exponent with a binomial series.

    With x = base - 1 and a = exp, the k-th term is
    term_{k-1} * (a - (k-1)) * x / k. Terms are tracked as magnitudes and a
    sign flag flips whenever x or (a - (k-1)) is negative.

    Args:
        base: Base (18-decimal fixed-point), expected in (0, 2)
        exp: Fractional exponent (18-decimal fixed-point, < 1)
        precision: Stop once the previous term falls below this magnitude

    Returns:
        Approximation of base^exp as 18-decimal fixed-point
    """
    a = exp
    x, xneg = bsub_sign(base, BONE)
    term = BONE
    total = term
    negative = False

    # The loop condition tests the previous term, so the first term below
    # precision is still added
    i = 1
    while term >= precision:
        big_k = i * BONE
        c, cneg = bsub_sign(a, big_k - BONE)
        term = bmul(term, bmul(c, x))
        term = bdiv(term, big_k)
        if term == 0:
            break

        if xneg:
            negative = not negative
        if cneg:
            negative = not negative
        if negative:
            total -= term
        else:
            total += term
        i += 1

    return total


def bpow(base: int, exp: int) -> int:
    """Compute base^exp where both are 18-decimal fixed-point.

    The whole part of the exponent is handled exactly by bpowi; the
    remainder by bpow_approx.

    Args:
        base: Base (non-negative, 18-decimal fixed-point)
        exp: Exponent (non-negative, 18-decimal fixed-point)

    Returns:
        base^exp as 18-decimal fixed-point

    Raises:
        PowBaseOutOfBounds: If the exponent has a fractional part and the base
            is outside [MIN_BPOW_BASE, MAX_BPOW_BASE]
    """
    whole = bfloor(exp)
    remain = exp - whole

    whole_pow = bpowi(base, btoi(whole))
    if remain == 0:
        return whole_pow

    if base < MIN_BPOW_BASE or base > MAX_BPOW_BASE:
        raise PowBaseOutOfBounds(f"Base {base} outside series range for exponent {exp}")

    partial = bpow_approx(base, remain, BPOW_PRECISION)
    return bmul(whole_pow, partial)


# =============================================================================
# Bfp class (wrapper for convenient usage)
# =============================================================================


class Bfp:
    """18-decimal fixed-point number stored as int.

    All values are stored as integers scaled by 10^18.
    Example: 1.5 is stored as 1_500_000_000_000_000_000
    """

    ONE: ClassVar[int] = BONE

    __slots__ = ("value",)
    __hash__ = None  # type: ignore[assignment]  # Unhashable since we define __eq__

    def __init__(self, value: int) -> None:
        """Create Bfp from raw scaled value."""
        self.value = value

    @classmethod
    def from_decimal(cls, d: Decimal) -> Bfp:
        """Create from decimal (will be scaled by 10^18).

        Uses ROUND_HALF_UP for consistent rounding behavior.
        Requires non-negative input (matches unsigned contract semantics).
        """
        if d < 0:
            raise ValueError(f"Bfp.from_decimal requires non-negative input, got {d}")
        scaled = (d * cls.ONE).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return cls(int(scaled))

    @classmethod
    def from_int(cls, i: int) -> Bfp:
        """Create from integer (will be scaled by 10^18)."""
        return cls(i * cls.ONE)

    def to_decimal(self) -> Decimal:
        """Convert to Decimal for display."""
        return Decimal(self.value) / Decimal(self.ONE)

    def mul(self, other: Bfp) -> Bfp:
        """Multiply, rounding half up."""
        return Bfp(bmul(self.value, other.value))

    def div(self, other: Bfp) -> Bfp:
        """Divide, rounding half up. Raises DivisionByZero on a zero divisor."""
        return Bfp(bdiv(self.value, other.value))

    def pow(self, exp: Bfp) -> Bfp:
        """Raise to a fixed-point exponent."""
        return Bfp(bpow(self.value, exp.value))

    def add(self, other: Bfp) -> Bfp:
        """Add two Bfp values."""
        return Bfp(self.value + other.value)

    def sub(self, other: Bfp) -> Bfp:
        """Subtract other from self.

        Raises:
            FixedPointUnderflow: If other is larger than self
        """
        result = self.value - other.value
        if result < 0:
            raise FixedPointUnderflow(f"{self.value} - {other.value} is negative")
        return Bfp(result)

    def complement(self) -> Bfp:
        """Return 1 - self."""
        return Bfp(self.ONE).sub(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value == other.value

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value <= other.value

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value > other.value

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Bfp):
            return NotImplemented
        return self.value >= other.value

    def __repr__(self) -> str:
        return f"Bfp({self.value})"

    def __str__(self) -> str:
        return str(self.to_decimal())
