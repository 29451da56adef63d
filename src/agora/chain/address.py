"""
Sui address format validation.

Sui addresses are 32 bytes rendered as ``0x`` followed by hex. Short forms
(leading zeros dropped) are accepted and padded to the canonical 64-digit
lowercase form.
"""

from __future__ import annotations

import re

_HEX_RE = re.compile(r"^0x[0-9a-fA-F]{1,64}$")

SUI_ADDRESS_LENGTH = 64


def normalize_sui_address(address: str) -> str:
    """
    Validate and canonicalise a Sui address.

    Args:
        address: The address string, with ``0x`` prefix.

    Returns:
        The lowercase, zero-padded 66-character form.

    Raises:
        ValueError: If the address is empty or not hex.
    """
    if not address or not isinstance(address, str):
        msg = "Address must be a non-empty string"
        raise ValueError(msg)

    candidate = address.strip()
    if not _HEX_RE.match(candidate):
        msg = f"Invalid Sui address: {candidate[:12]}..."
        raise ValueError(msg)

    return "0x" + candidate[2:].lower().rjust(SUI_ADDRESS_LENGTH, "0")


def is_sui_address(address: object) -> bool:
    """Boolean form of normalize_sui_address."""
    if not isinstance(address, str):
        return False
    try:
        normalize_sui_address(address)
    except ValueError:
        return False
    return True
