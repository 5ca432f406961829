"""
Display helpers for addresses and amounts.
"""

from __future__ import annotations

SATS_PER_BTC = 100_000_000


def format_address(address: str | None, length: int = 8) -> str:
    """Shorten an address to ``<first length chars>...<last length chars>``."""
    if not address:
        return ""
    if len(address) <= length * 2:
        return address
    return f"{address[:length]}...{address[-length:]}"


def format_balance(sats: int) -> str:
    """Render a satoshi amount as BTC with 8 decimals."""
    return f"{sats / SATS_PER_BTC:.8f}"
