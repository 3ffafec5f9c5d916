"""Formatting and conversion utilities."""

from decimal import Decimal

from market_vaults.constants import BLOCKS_PER_YEAR, WAD


def as_int(value, *, default: int = 0) -> int:
    """Convert an RPC/JSON value to int (accepts None, bools, decimal and 0x-hex strings)."""
    if value is None:
        return default
    if isinstance(value, (bool, int)):
        return int(value)
    if isinstance(value, str):
        v = value.strip()
        return int(v, 16) if v.lower().startswith("0x") else int(v)
    return int(value)


def format_wad(value: int, *, decimals: int = 6) -> str:
    """Format a WAD-scaled value as a plain decimal, trailing zeros trimmed."""
    s = f"{Decimal(value) / Decimal(WAD):.{decimals}f}"
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return s


def borrow_apr_pct(borrow_rate_per_block: int, *, blocks_per_year: int = BLOCKS_PER_YEAR) -> Decimal:
    """Simple (non-compounded) annual borrow rate in percent."""
    return Decimal(borrow_rate_per_block * blocks_per_year * 100) / Decimal(WAD)


def format_pct(value: Decimal, *, decimals: int = 2) -> str:
    return f"{value:.{decimals}f}%"


def utilization_pct(cash: int, borrows: int, reserves: int) -> Decimal:
    """Share of supplied funds currently lent out: borrows / (cash + borrows - reserves)."""
    supplied = cash + borrows - reserves
    if supplied <= 0:
        return Decimal(0)
    return Decimal(borrows * 100) / Decimal(supplied)
