"""Validation logic for market snapshots and replicated rates."""

from market_vaults.constants import BORROW_RATE_MAX, WAD
from market_vaults.models import AccrualResult, MarketSnapshot


def validate_market_snapshot(s: MarketSnapshot, *, market: str, warn_only: bool = False) -> list[str]:
    """
    Validate market snapshot invariants.

    Returns list of validation warnings/errors. If warn_only=False, raises ValueError on the first issue.
    """
    issues: list[str] = []

    def report(msg: str) -> None:
        issues.append(msg)
        if not warn_only:
            raise ValueError(msg)

    # 1. Non-negative values (all uint256 on-chain fields)
    non_negative_fields = {
        "accrualTimestamp": s.accrual_timestamp,
        "exchangeRateStored": s.stored_exchange_rate,
        "cash": s.cash,
        "totalBorrows": s.borrows_prior,
        "totalReserves": s.reserves_prior,
        "totalSupply": s.total_principal_supply,
        "reserveFactor": s.reserve_factor,
        "initialExchangeRate": s.initial_exchange_rate,
    }
    for name, value in non_negative_fields.items():
        if value < 0:
            report(f"Market {market}: negative {name}: {value}")

    # 2. reserveFactor is a WAD fraction <= 1
    if s.reserve_factor > WAD:
        report(f"Market {market}: reserveFactor {s.reserve_factor} exceeds 1e18")

    # 3. Reserves must be backed (cash + borrows >= reserves), otherwise the rate underflows.
    if s.cash + s.borrows_prior < s.reserves_prior:
        report(
            f"Market {market}: reserves exceed backing: "
            f"cash({s.cash}) + borrows({s.borrows_prior}) < reserves({s.reserves_prior})"
        )

    # 4. A market with supply must have a stored rate.
    if s.total_principal_supply > 0 and s.stored_exchange_rate == 0:
        report(f"Market {market}: zero exchangeRateStored with totalSupply={s.total_principal_supply}")

    if s.initial_exchange_rate == 0:
        report(f"Market {market}: zero initialExchangeRate")

    return issues


def validate_replication(
    result: AccrualResult, reported_rate: int, *, market: str, warn_only: bool = True
) -> list[str]:
    """
    Compare a replicated accrual against the rate the market reports for the same point in time.

    Returns list of warnings. By default, only warns (doesn't raise).
    """
    issues: list[str] = []

    if result.exchange_rate != reported_rate:
        msg = (
            f"Market {market}: exchange rate mismatch: "
            f"replicated={result.exchange_rate}, reported={reported_rate} "
            f"(diff={result.exchange_rate - reported_rate})"
        )
        issues.append(msg)
        if not warn_only:
            raise ValueError(msg)

    if result.simulated and result.borrow_rate * 2 > BORROW_RATE_MAX:
        issues.append(
            f"Market {market}: borrow rate {result.borrow_rate} is above half the ceiling ({BORROW_RATE_MAX})"
        )

    return issues
