import dataclasses

import pytest

from market_vaults.constants import BORROW_RATE_MAX, WAD
from market_vaults.errors import ArithmeticUnderflow, RateTooHigh, StaleTimestamp
from market_vaults.exchange_rate import compute_exchange_rate, read_snapshot, simulate_accrual, view_exchange_rate
from market_vaults.fixed_point import div_wad_down
from market_vaults.models import MarketSnapshot


def _snapshot(**overrides) -> MarketSnapshot:
    base = MarketSnapshot(
        accrual_timestamp=1_000,
        stored_exchange_rate=149 * 10**16,
        cash=1000,
        borrows_prior=500,
        reserves_prior=10,
        total_principal_supply=1000,
        reserve_factor=10**17,
        initial_exchange_rate=2 * 10**17,
    )
    return dataclasses.replace(base, **overrides)


def _fixed_rate(rate: int):
    return lambda cash, borrows, reserves: rate


def _failing_rate_model(cash, borrows, reserves):
    raise AssertionError("rate model must not be consulted")


def test_current_snapshot_returns_stored_rate_without_consulting_rate_model():
    snap = _snapshot(stored_exchange_rate=123_456_789)
    assert compute_exchange_rate(snap, snap.accrual_timestamp, _failing_rate_model) == 123_456_789


@pytest.mark.parametrize("stored", [0, 1, 2 * 10**17, 10**30])
def test_current_snapshot_ignores_other_fields(stored):
    snap = _snapshot(stored_exchange_rate=stored, total_principal_supply=0, cash=0)
    result = simulate_accrual(snap, snap.accrual_timestamp, _failing_rate_model)
    assert result.exchange_rate == stored
    assert result.simulated is False
    assert result.elapsed == 0


def test_end_to_end_small_numbers():
    snap = _snapshot()
    borrow_rate = 10**12  # 0.0001e16
    result = simulate_accrual(snap, snap.accrual_timestamp + 1, _fixed_rate(borrow_rate))

    # interest = floor(1e12 * 1 * 500 / 1e18) = 0
    assert result.interest_accrued == (borrow_rate * 1 * 500) // WAD == 0
    assert result.total_borrows == 500
    assert result.total_reserves == 10
    assert result.exchange_rate == div_wad_down(1000 + 500 - 10, 1000) == 149 * 10**16
    assert result.simulated is True


def test_end_to_end_with_interest():
    snap = _snapshot(
        cash=1000 * WAD,
        borrows_prior=500 * WAD,
        reserves_prior=10 * WAD,
        total_principal_supply=5000 * WAD,
    )
    result = simulate_accrual(snap, snap.accrual_timestamp + 100, _fixed_rate(10**12))

    assert result.elapsed == 100
    assert result.interest_accrued == 5 * 10**16
    assert result.total_reserves == 10 * WAD + 5 * 10**15
    assert result.total_borrows == 500 * WAD + 5 * 10**16
    assert result.exchange_rate == 298_009_000_000_000_000


@pytest.mark.parametrize("elapsed", [1, 10, 10_000, 10**9])
def test_zero_supply_returns_initial_rate(elapsed):
    snap = _snapshot(total_principal_supply=0, initial_exchange_rate=2 * 10**17)
    assert compute_exchange_rate(snap, snap.accrual_timestamp + elapsed, _fixed_rate(10**12)) == 2 * 10**17


def test_zero_supply_still_enforces_rate_ceiling():
    snap = _snapshot(total_principal_supply=0)
    with pytest.raises(RateTooHigh):
        compute_exchange_rate(snap, snap.accrual_timestamp + 1, _fixed_rate(BORROW_RATE_MAX + 1))


def test_rate_too_high():
    snap = _snapshot()
    with pytest.raises(RateTooHigh) as excinfo:
        compute_exchange_rate(snap, snap.accrual_timestamp + 1, _fixed_rate(6 * 10**12))  # 0.0006e16
    assert excinfo.value.borrow_rate == 6 * 10**12
    assert excinfo.value.maximum == BORROW_RATE_MAX


def test_rate_at_ceiling_is_accepted():
    snap = _snapshot()
    compute_exchange_rate(snap, snap.accrual_timestamp + 1, _fixed_rate(BORROW_RATE_MAX))


@pytest.mark.parametrize("reserve_factor", [0, 10**17, 5 * 10**17, WAD])
def test_rate_is_non_decreasing_in_elapsed(reserve_factor):
    snap = _snapshot(
        cash=777 * WAD,
        borrows_prior=1_234 * WAD + 17,
        reserves_prior=3 * WAD,
        total_principal_supply=9_999 * WAD,
        reserve_factor=reserve_factor,
    )
    backing = snap.cash + snap.borrows_prior - snap.reserves_prior
    snap = dataclasses.replace(snap, stored_exchange_rate=div_wad_down(backing, snap.total_principal_supply))
    rates = [
        compute_exchange_rate(snap, snap.accrual_timestamp + elapsed, _fixed_rate(3 * 10**12))
        for elapsed in (0, 1, 2, 3, 10, 100, 1_000, 100_000, 10_000_000)
    ]
    assert rates == sorted(rates)


def test_timestamp_before_accrual_is_rejected():
    snap = _snapshot()
    with pytest.raises(StaleTimestamp):
        compute_exchange_rate(snap, snap.accrual_timestamp - 1, _fixed_rate(0))


def test_reserves_exceeding_backing_fail_fast():
    snap = _snapshot(cash=0, borrows_prior=5, reserves_prior=10)
    with pytest.raises(ArithmeticUnderflow):
        compute_exchange_rate(snap, snap.accrual_timestamp + 1, _fixed_rate(0))


def test_rate_model_receives_prior_figures():
    seen = []

    def model(cash, borrows, reserves):
        seen.append((cash, borrows, reserves))
        return 0

    snap = _snapshot()
    compute_exchange_rate(snap, snap.accrual_timestamp + 5, model)
    assert seen == [(1000, 500, 10)]


def test_read_snapshot_and_view_exchange_rate(market):
    market.cash_held = 1000
    market.borrows = 500
    market.reserves = 10
    market.supply = 1000
    market.rate = 10**12

    snap = read_snapshot(market)
    assert snap.cash == 1000
    assert snap.borrows_prior == 500
    assert snap.reserves_prior == 10
    assert snap.total_principal_supply == 1000
    assert snap.accrual_timestamp == market.accrual

    assert view_exchange_rate(market, market.accrual) == market.exchange_rate_stored
    assert market.rate_model_calls == 0
    assert view_exchange_rate(market, market.accrual + 1) == 149 * 10**16
    assert market.rate_model_calls == 1
