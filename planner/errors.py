"""Planner error classes.

Every failure the planner can report has a named kind so callers can tell
"this trade is too large" apart from "no route exists" or "the asset is not
ready yet".
"""


class PlannerError(Exception):
    """Base error for planner operations."""

    pass


class DivisionByZero(PlannerError, ZeroDivisionError):
    """Fixed-point division with a zero divisor."""

    pass


class FixedPointUnderflow(PlannerError, ArithmeticError):
    """Fixed-point subtraction would produce a negative value."""

    pass


class PowBaseOutOfBounds(PlannerError, ValueError):
    """Base of a fractional power is outside the series' convergence range."""

    pass


class InvalidTradeSize(PlannerError, ValueError):
    """Amount violates MAX_IN_RATIO/MAX_OUT_RATIO or would drain a balance."""

    pass


class NoRouteAvailable(PlannerError):
    """Quote source has no path between two tokens."""

    pass


class ReadinessViolation(PlannerError):
    """Operation requires an asset that is still ramping into the pool."""

    pass


class TokenNotFoundError(PlannerError, KeyError):
    """Token is not bound to the pool."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class InvalidPoolStateError(PlannerError, ValueError):
    """Pool or asset snapshot violates a structural invariant."""

    pass


class GasPriceUnavailable(PlannerError):
    """Gas price oracle could not produce a price."""

    pass


__all__ = [
    "PlannerError",
    "DivisionByZero",
    "FixedPointUnderflow",
    "PowBaseOutOfBounds",
    "InvalidTradeSize",
    "NoRouteAvailable",
    "ReadinessViolation",
    "TokenNotFoundError",
    "InvalidPoolStateError",
    "GasPriceUnavailable",
]
