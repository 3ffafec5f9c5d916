"""Tokenized vault over a single money-market position.

The vault holds principal tokens of one market and issues its own shares
against them. Valuation goes through the replicated exchange rate, so every
figure reflects interest accrued up to the vault's clock even when the market
itself has not accrued yet.

Limits:
    - deposits/mints are zero while the market is paused, otherwise unbounded
    - withdrawals/redeems are bounded by the owner's entitlement and by the
      market's liquid cash, and are never gated by pause state

Deposit/withdraw follow checks-effects-interactions: shares are credited or
debited before control passes to the market, and every effect is undone if
the market reports a non-zero status code or the vault's principal balance
does not move in the expected direction once the call returns.
"""

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from market_vaults.constants import MARKET_NO_ERROR, MAX_UINT256
from market_vaults.errors import (
    InsufficientBalance,
    LimitExceeded,
    MarketOperationFailed,
    PositionUnchanged,
    Reentrancy,
    ZeroAssets,
    ZeroShares,
)
from market_vaults.exchange_rate import view_exchange_rate
from market_vaults.fixed_point import mul_div_down, mul_div_up, mul_wad_down
from market_vaults.interfaces import AssetToken, Market, RewardsDistributor
from market_vaults.ledger import ShareLedger
from market_vaults.models import VaultState


class Vault:
    """Share/asset accounting for one market position."""

    def __init__(
        self,
        state: VaultState,
        market: Market,
        asset: AssetToken,
        *,
        clock: Callable[[], int] | None = None,
        shares: ShareLedger | None = None,
    ) -> None:
        self.state = state
        self.market = market
        self.asset = asset
        # Defaults to the market's own notion of now (block number on chain).
        self.clock = clock if clock is not None else market.current_timestamp
        self.shares = shares if shares is not None else ShareLedger()
        self._entered = False

    @property
    def address(self) -> str:
        return self.state.address

    @contextmanager
    def _non_reentrant(self) -> Iterator[None]:
        if self._entered:
            raise Reentrancy(f"vault {self.address} is already executing an operation")
        self._entered = True
        try:
            yield
        finally:
            self._entered = False

    # Valuation

    def exchange_rate(self) -> int:
        """Market exchange rate (WAD) as of the vault's clock."""
        return view_exchange_rate(self.market, self.clock())

    def total_assets(self) -> int:
        """Underlying value of the vault's principal-token balance."""
        return mul_wad_down(self.market.principal_balance_of(self.address), self.exchange_rate())

    def convert_to_shares(self, assets: int) -> int:
        supply = self.shares.total_supply
        if supply == 0:
            return assets
        return mul_div_down(assets, supply, self.total_assets())

    def convert_to_assets(self, shares: int) -> int:
        supply = self.shares.total_supply
        if supply == 0:
            return shares
        return mul_div_down(shares, self.total_assets(), supply)

    def preview_deposit(self, assets: int) -> int:
        return self.convert_to_shares(assets)

    def preview_mint(self, shares: int) -> int:
        supply = self.shares.total_supply
        if supply == 0:
            return shares
        return mul_div_up(shares, self.total_assets(), supply)

    def preview_withdraw(self, assets: int) -> int:
        supply = self.shares.total_supply
        if supply == 0:
            return assets
        return mul_div_up(assets, supply, self.total_assets())

    def preview_redeem(self, shares: int) -> int:
        return self.convert_to_assets(shares)

    # Limits

    def max_deposit(self, owner: str) -> int:  # pylint: disable=unused-argument
        if self.market.is_paused():
            return 0
        return MAX_UINT256

    def max_mint(self, owner: str) -> int:  # pylint: disable=unused-argument
        if self.market.is_paused():
            return 0
        return MAX_UINT256

    def max_withdraw(self, owner: str) -> int:
        cash = self.market.cash()
        entitled = self.convert_to_assets(self.shares.balance_of(owner))
        return min(cash, entitled)

    def max_redeem(self, owner: str) -> int:
        cash_in_shares = self.convert_to_shares(self.market.cash())
        return min(cash_in_shares, self.shares.balance_of(owner))

    # Operations

    def deposit(self, assets: int, receiver: str, *, caller: str) -> int:
        """Pull `assets` from `caller`, supply them to the market, credit shares to `receiver`."""
        with self._non_reentrant():
            limit = self.max_deposit(receiver)
            if assets > limit:
                raise LimitExceeded("deposit", assets, limit)
            shares = self.preview_deposit(assets)
            if shares == 0:
                raise ZeroShares(f"deposit of {assets} assets mints no shares")
            self._supply(assets, shares, receiver, caller)
            return shares

    def mint(self, shares: int, receiver: str, *, caller: str) -> int:
        """Credit exactly `shares` to `receiver`, pulling whatever assets that costs from `caller`."""
        with self._non_reentrant():
            limit = self.max_mint(receiver)
            if shares > limit:
                raise LimitExceeded("mint", shares, limit)
            assets = self.preview_mint(shares)
            self._supply(assets, shares, receiver, caller)
            return assets

    def withdraw(self, assets: int, receiver: str, owner: str, *, caller: str) -> int:
        """Redeem exactly `assets` from the market for `receiver`, burning `owner`'s shares."""
        with self._non_reentrant():
            shares = self.preview_withdraw(assets)
            self._redeem(assets, shares, receiver, owner, caller)
            return shares

    def redeem(self, shares: int, receiver: str, owner: str, *, caller: str) -> int:
        """Burn exactly `shares` of `owner` and send the underlying to `receiver`."""
        with self._non_reentrant():
            assets = self.preview_redeem(shares)
            if assets == 0:
                raise ZeroAssets(f"redeem of {shares} shares returns no assets")
            self._redeem(assets, shares, receiver, owner, caller)
            return assets

    def _supply(self, assets: int, shares: int, receiver: str, caller: str) -> None:
        self.asset.transfer(caller, self.address, assets)
        self.shares.mint(receiver, shares)
        try:
            self.asset.approve(self.address, self.market.address, assets)
            before = self.market.principal_balance_of(self.address)
            code = self.market.mint(self.address, assets)
            if code != MARKET_NO_ERROR:
                raise MarketOperationFailed("mint", code)
            after = self.market.principal_balance_of(self.address)
            if after <= before:
                raise PositionUnchanged("mint", before, after)
        except Exception:
            self.asset.approve(self.address, self.market.address, 0)
            self.shares.burn(receiver, shares)
            self.asset.transfer(self.address, caller, assets)
            raise

    def _redeem(self, assets: int, shares: int, receiver: str, owner: str, caller: str) -> None:
        balance = self.shares.balance_of(owner)
        if balance < shares:
            raise InsufficientBalance(owner, balance, shares)
        spends_allowance = caller.lower() != owner.lower()
        prior_allowance = self.shares.allowance(owner, caller)
        if spends_allowance:
            self.shares.spend_allowance(owner, caller, shares)
        self.shares.burn(owner, shares)
        try:
            before = self.market.principal_balance_of(self.address)
            code = self.market.redeem_underlying(self.address, assets)
            if code != MARKET_NO_ERROR:
                raise MarketOperationFailed("redeem", code)
            after = self.market.principal_balance_of(self.address)
            if after >= before:
                raise PositionUnchanged("redeem", before, after)
            self.asset.transfer(self.address, receiver, assets)
        except Exception:
            self.shares.mint(owner, shares)
            if spends_allowance:
                self.shares.approve(owner, caller, prior_allowance)
            raise

    # Rewards

    def claim_rewards(self, distributor: RewardsDistributor, reward_token: AssetToken) -> int:
        """Claim market rewards and forward the vault's whole reward balance to the recipient."""
        distributor.claim_rewards(self.address, self.market.address)
        amount = reward_token.balance_of(self.address)
        if amount:
            reward_token.transfer(self.address, self.state.reward_recipient, amount)
        return amount
