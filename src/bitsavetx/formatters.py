"""
bitsavetx/formatters.py

Display helpers. Values produced here are for humans only and never feed back
into a calculation.
"""

from decimal import Decimal, InvalidOperation, ROUND_DOWN

from .config import (
    BLOCKS_PER_DAY,
    BLOCKS_PER_WEEK,
    BLOCKS_PER_MONTH,
    BLOCKS_PER_YEAR,
    MICRO_STX_PER_STX,
)

_STX_QUANTUM = Decimal("0.000001")


def format_stx(micro_stx: int, decimals: int = 6) -> str:
    """Format micro-STX as an STX string, e.g. 1500000 -> "1.500000"."""
    value = Decimal(micro_stx) / MICRO_STX_PER_STX
    return f"{value:,.{decimals}f}"


def parse_stx(stx: str) -> int:
    """
    Parse an STX amount string into micro-STX.

    Digits beyond six decimal places are truncated, never rounded up.

    Raises:
        ValueError: If the string is not a number
    """
    try:
        value = Decimal(str(stx).strip().replace(",", ""))
    except InvalidOperation:
        raise ValueError(f"Invalid STX amount: {stx!r}")
    if not value.is_finite():
        raise ValueError(f"Invalid STX amount: {stx!r}")
    return int(value.quantize(_STX_QUANTUM, rounding=ROUND_DOWN) * MICRO_STX_PER_STX)


def format_block_height(blocks: int) -> str:
    """Approximate a block count in calendar units."""
    if blocks >= BLOCKS_PER_YEAR:
        return f"{blocks / BLOCKS_PER_YEAR:.1f} years"
    if blocks >= BLOCKS_PER_MONTH:
        return f"{blocks / BLOCKS_PER_MONTH:.1f} months"
    if blocks >= BLOCKS_PER_WEEK:
        return f"{blocks / BLOCKS_PER_WEEK:.1f} weeks"
    if blocks >= BLOCKS_PER_DAY:
        return f"{blocks / BLOCKS_PER_DAY:.1f} days"
    return f"{blocks} blocks"


def truncate_address(address: str) -> str:
    """Shorten an address to "ST2QR5...2TEW" form."""
    if len(address) <= 10:
        return address
    return f"{address[:6]}...{address[-4:]}"
