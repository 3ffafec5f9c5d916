"""Capability interfaces for the external collaborators a vault talks to.

Concrete implementations are injected: `market_vaults.onchain` provides web3-backed
ones, tests use deterministic in-memory fakes.
"""

from typing import Protocol


class Market(Protocol):
    """A money market issuing principal tokens against a single underlying asset.

    Read-only accessors mirror the market's persisted accrual state. `mint` and
    `redeem_underlying` move assets and return the market's status code (0 on
    success) rather than raising.
    """

    address: str

    def accrual_timestamp(self) -> int: ...

    def stored_exchange_rate(self) -> int: ...

    def cash(self) -> int: ...

    def total_borrows(self) -> int: ...

    def total_reserves(self) -> int: ...

    def total_principal_supply(self) -> int: ...

    def reserve_factor(self) -> int: ...

    def initial_exchange_rate(self) -> int: ...

    def borrow_rate(self, cash: int, borrows: int, reserves: int) -> int: ...

    def is_paused(self) -> bool: ...

    def principal_balance_of(self, account: str) -> int: ...

    def current_timestamp(self) -> int:
        """Now, in the same unit as `accrual_timestamp`."""
        ...

    def mint(self, minter: str, assets: int) -> int: ...

    def redeem_underlying(self, redeemer: str, assets: int) -> int: ...


class AssetToken(Protocol):
    """Fungible token ledger; each mutating call acts on behalf of its first argument."""

    address: str

    def balance_of(self, account: str) -> int: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> None: ...

    def approve(self, owner: str, spender: str, amount: int) -> None: ...


class RewardsDistributor(Protocol):
    def claim_rewards(self, holder: str, market: str) -> None: ...
