"""Exchange-rate replication and vault accounting for money-market positions."""

from typing import NoReturn

from market_vaults.errors import (
    ArithmeticOverflow,
    ArithmeticUnderflow,
    DivisionByZero,
    LimitExceeded,
    MarketOperationFailed,
    MarketUnresolved,
    MarketVaultError,
    PositionUnchanged,
    RateTooHigh,
)
from market_vaults.exchange_rate import compute_exchange_rate, simulate_accrual, view_exchange_rate
from market_vaults.fixed_point import div_wad_down, mul_wad_down
from market_vaults.models import MarketSnapshot, VaultState
from market_vaults.registry import MarketRegistry, VaultFactory
from market_vaults.vault import Vault

__version__ = "0.1.0"

__all__ = [
    "ArithmeticOverflow",
    "ArithmeticUnderflow",
    "DivisionByZero",
    "LimitExceeded",
    "MarketOperationFailed",
    "MarketRegistry",
    "MarketSnapshot",
    "MarketUnresolved",
    "MarketVaultError",
    "PositionUnchanged",
    "RateTooHigh",
    "Vault",
    "VaultFactory",
    "VaultState",
    "compute_exchange_rate",
    "div_wad_down",
    "mul_wad_down",
    "simulate_accrual",
    "view_exchange_rate",
]


def _entry_point() -> NoReturn:
    """Entry point for the market-vaults script."""
    import sys

    from market_vaults.cli import main

    raise SystemExit(main(sys.argv[1:]))


def _clear_cache_entry_point() -> NoReturn:
    """Entry point for market-vaults-clear-cache."""
    from market_vaults.cache import clear_cache

    clear_cache()
    raise SystemExit(0)
