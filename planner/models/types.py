"""Address type and helpers shared by models and pool snapshots.

Addresses are compared and stored lowercase; no checksum handling is done.
"""

import re
from typing import Annotated

from pydantic import Field

_ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"
_ADDRESS_RE = re.compile(_ADDRESS_PATTERN)

# 0x-prefixed, 20-byte hex address
Address = Annotated[str, Field(pattern=_ADDRESS_PATTERN)]


def is_valid_address(address: object) -> bool:
    """True for a 0x-prefixed string of exactly 40 hex digits."""
    return isinstance(address, str) and _ADDRESS_RE.match(address) is not None


def normalize_address(address: str, *, validate: bool = False) -> str:
    """Lowercase an address, adding the 0x prefix when it is missing.

    Raises:
        ValueError: If validate is set and the result is not a valid address
    """
    normalized = address.lower()
    if not normalized.startswith("0x"):
        normalized = f"0x{normalized}"
    if validate and not is_valid_address(normalized):
        raise ValueError(f"Invalid address: {address}")
    return normalized


def same_address(a: str, b: str) -> bool:
    return normalize_address(a) == normalize_address(b)


__all__ = ["Address", "is_valid_address", "normalize_address", "same_address"]
