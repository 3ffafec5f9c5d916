"""Data models for money-market vault accounting."""

from dataclasses import dataclass


@dataclass(frozen=True)
class MarketContracts:
    """Addresses resolved from a market contract."""

    market: str
    comptroller: str
    interest_rate_model: str
    underlying: str


@dataclass(frozen=True)
class MarketSnapshot:
    """Accrual state of a money market as last persisted by the market itself.

    `accrual_timestamp` is in the market's own accrual unit (block number for
    block-based markets, seconds for time-based ones).
    """

    accrual_timestamp: int
    stored_exchange_rate: int
    # Underlying held liquid by the market (not lent out).
    cash: int
    borrows_prior: int
    reserves_prior: int
    total_principal_supply: int
    # WAD fraction of accrued interest set aside as reserves.
    reserve_factor: int
    # Rate used while no principal tokens exist.
    initial_exchange_rate: int


@dataclass(frozen=True)
class AccrualResult:
    """Outcome of a simulated accrual step."""

    elapsed: int
    borrow_rate: int
    interest_accrued: int
    total_borrows: int
    total_reserves: int
    exchange_rate: int
    # False when the snapshot was already current and no simulation ran.
    simulated: bool


@dataclass(frozen=True)
class ReplicationReport:
    """Replicated vs market-reported exchange rate for one market at one block."""

    market: str
    block_number: int
    snapshot: MarketSnapshot
    result: AccrualResult
    reported_exchange_rate: int
    issues: tuple[str, ...] = ()

    @property
    def matches(self) -> bool:
        return self.result.exchange_rate == self.reported_exchange_rate


@dataclass(frozen=True)
class VaultState:
    """Identity of a vault wrapping one market position."""

    address: str
    asset: str
    market: str
    # Fixed at construction; reward claims always go here.
    reward_recipient: str
    name: str = ""
    symbol: str = ""
    decimals: int = 18
