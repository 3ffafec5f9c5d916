"""Side-effect-free replication of a money market's exchange rate.

The market only refreshes its stored exchange rate when someone makes it accrue
interest. `compute_exchange_rate` reproduces, bit for bit, the rate the market
would store if it accrued right now:

    interest = floor(borrow_rate * elapsed * borrows / 1e18)
    reserves = floor(reserve_factor * interest / 1e18) + reserves
    borrows  = interest + borrows
    rate     = floor((cash + borrows - reserves) * 1e18 / supply)

Nothing is cached: callers recompute on every use since interest accrues
continuously.
"""

from collections.abc import Callable

from market_vaults.constants import BORROW_RATE_MAX
from market_vaults.errors import ArithmeticUnderflow, RateTooHigh, StaleTimestamp
from market_vaults.fixed_point import div_wad_down, mul_wad_down
from market_vaults.interfaces import Market
from market_vaults.models import AccrualResult, MarketSnapshot

RateModel = Callable[[int, int, int], int]


def read_snapshot(market: Market) -> MarketSnapshot:
    """Read the market's persisted accrual state."""
    return MarketSnapshot(
        accrual_timestamp=market.accrual_timestamp(),
        stored_exchange_rate=market.stored_exchange_rate(),
        cash=market.cash(),
        borrows_prior=market.total_borrows(),
        reserves_prior=market.total_reserves(),
        total_principal_supply=market.total_principal_supply(),
        reserve_factor=market.reserve_factor(),
        initial_exchange_rate=market.initial_exchange_rate(),
    )


def simulate_accrual(snapshot: MarketSnapshot, current_timestamp: int, rate_model: RateModel) -> AccrualResult:
    """Simulate one accrual step and return every intermediate figure.

    The rate model is only consulted when the snapshot is stale.
    """
    if current_timestamp == snapshot.accrual_timestamp:
        return AccrualResult(
            elapsed=0,
            borrow_rate=0,
            interest_accrued=0,
            total_borrows=snapshot.borrows_prior,
            total_reserves=snapshot.reserves_prior,
            exchange_rate=snapshot.stored_exchange_rate,
            simulated=False,
        )
    if current_timestamp < snapshot.accrual_timestamp:
        raise StaleTimestamp(current_timestamp, snapshot.accrual_timestamp)

    elapsed = current_timestamp - snapshot.accrual_timestamp
    borrow_rate = int(rate_model(snapshot.cash, snapshot.borrows_prior, snapshot.reserves_prior))
    if borrow_rate > BORROW_RATE_MAX:
        raise RateTooHigh(borrow_rate, BORROW_RATE_MAX)

    interest_accrued = mul_wad_down(borrow_rate * elapsed, snapshot.borrows_prior)
    total_reserves = mul_wad_down(snapshot.reserve_factor, interest_accrued) + snapshot.reserves_prior
    total_borrows = interest_accrued + snapshot.borrows_prior

    if snapshot.total_principal_supply == 0:
        exchange_rate = snapshot.initial_exchange_rate
    else:
        backing = snapshot.cash + total_borrows - total_reserves
        if backing < 0:
            raise ArithmeticUnderflow(
                f"cash({snapshot.cash}) + borrows({total_borrows}) < reserves({total_reserves})"
            )
        exchange_rate = div_wad_down(backing, snapshot.total_principal_supply)

    return AccrualResult(
        elapsed=elapsed,
        borrow_rate=borrow_rate,
        interest_accrued=interest_accrued,
        total_borrows=total_borrows,
        total_reserves=total_reserves,
        exchange_rate=exchange_rate,
        simulated=True,
    )


def compute_exchange_rate(snapshot: MarketSnapshot, current_timestamp: int, rate_model: RateModel) -> int:
    """Exchange rate (WAD) the market would store if it accrued at `current_timestamp`."""
    return simulate_accrual(snapshot, current_timestamp, rate_model).exchange_rate


def view_exchange_rate(market: Market, current_timestamp: int) -> int:
    """Read `market` and replicate its current exchange rate without touching it."""
    return compute_exchange_rate(read_snapshot(market), current_timestamp, market.borrow_rate)
