"""Web3-backed implementations of the market and token interfaces."""

import dataclasses
from typing import TYPE_CHECKING, Any

from market_vaults.constants import (
    COMPTROLLER_MIN_ABI,
    ERC20_MIN_ABI,
    INTEREST_RATE_MODEL_MIN_ABI,
    MARKET_MIN_ABI,
    MARKET_NO_ERROR,
)
from market_vaults.exchange_rate import read_snapshot
from market_vaults.formatters import as_int
from market_vaults.models import MarketContracts, MarketSnapshot

if TYPE_CHECKING:
    from web3 import Web3  # pragma: no cover


def _wait_for_success(w3: "Web3", tx_hash: Any, what: str) -> None:
    receipt = w3.eth.wait_for_transaction_receipt(tx_hash)
    if receipt.get("status") != 1:
        raise RuntimeError(f"{what} transaction reverted: {tx_hash.hex() if hasattr(tx_hash, 'hex') else tx_hash}")


class Web3Market:
    """Money market read through eth_call, pinned to `block_identifier` for reads.

    Accrual is block-based on chain, so `accrual_timestamp` is a block number.
    """

    def __init__(self, w3: "Web3", contracts: MarketContracts, *, block_identifier: int | str = "latest") -> None:
        self.w3 = w3
        self.address = w3.to_checksum_address(contracts.market)
        self.block_identifier = block_identifier
        self.contract = w3.eth.contract(address=self.address, abi=MARKET_MIN_ABI)
        self.rate_model = w3.eth.contract(
            address=w3.to_checksum_address(contracts.interest_rate_model), abi=INTEREST_RATE_MODEL_MIN_ABI
        )
        self.comptroller = w3.eth.contract(
            address=w3.to_checksum_address(contracts.comptroller), abi=COMPTROLLER_MIN_ABI
        )

    def _read(self, fn: Any) -> Any:
        return fn.call(block_identifier=self.block_identifier)

    def accrual_timestamp(self) -> int:
        return as_int(self._read(self.contract.functions.accrualBlockNumber()))

    def stored_exchange_rate(self) -> int:
        return as_int(self._read(self.contract.functions.exchangeRateStored()))

    def current_exchange_rate(self) -> int:
        """The market's own accrue-then-read rate, obtained via eth_call (nothing is mined)."""
        return as_int(self._read(self.contract.functions.exchangeRateCurrent()))

    def cash(self) -> int:
        return as_int(self._read(self.contract.functions.getCash()))

    def total_borrows(self) -> int:
        return as_int(self._read(self.contract.functions.totalBorrows()))

    def total_reserves(self) -> int:
        return as_int(self._read(self.contract.functions.totalReserves()))

    def total_principal_supply(self) -> int:
        return as_int(self._read(self.contract.functions.totalSupply()))

    def reserve_factor(self) -> int:
        return as_int(self._read(self.contract.functions.reserveFactorMantissa()))

    def initial_exchange_rate(self) -> int:
        return as_int(self._read(self.contract.functions.initialExchangeRateMantissa()))

    def borrow_rate(self, cash: int, borrows: int, reserves: int) -> int:
        return as_int(self._read(self.rate_model.functions.getBorrowRate(cash, borrows, reserves)))

    def is_paused(self) -> bool:
        return bool(self._read(self.comptroller.functions.mintGuardianPaused(self.address)))

    def principal_balance_of(self, account: str) -> int:
        return as_int(self._read(self.contract.functions.balanceOf(self.w3.to_checksum_address(account))))

    def block_number(self) -> int:
        """Block the reads are pinned to (resolves "latest" to a concrete number)."""
        if isinstance(self.block_identifier, int):
            return self.block_identifier
        return int(self.w3.eth.get_block(self.block_identifier)["number"])

    def current_timestamp(self) -> int:
        return self.block_number()

    def _submit(self, fn: Any, sender: str, what: str) -> int:
        # The status code is only visible through eth_call; transact only once it reads as success.
        tx_params = {"from": self.w3.to_checksum_address(sender)}
        code = as_int(fn.call(tx_params))
        if code == MARKET_NO_ERROR:
            _wait_for_success(self.w3, fn.transact(tx_params), what)
        return code

    def mint(self, minter: str, assets: int) -> int:
        return self._submit(self.contract.functions.mint(assets), minter, "mint")

    def redeem_underlying(self, redeemer: str, assets: int) -> int:
        return self._submit(self.contract.functions.redeemUnderlying(assets), redeemer, "redeemUnderlying")


class Web3Token:
    """ERC-20 token; mutating calls are sent from the account given as first argument."""

    def __init__(self, w3: "Web3", address: str) -> None:
        self.w3 = w3
        self.address = w3.to_checksum_address(address)
        self.contract = w3.eth.contract(address=self.address, abi=ERC20_MIN_ABI)

    def balance_of(self, account: str) -> int:
        return as_int(self.contract.functions.balanceOf(self.w3.to_checksum_address(account)).call())

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        fn = self.contract.functions.transfer(self.w3.to_checksum_address(recipient), amount)
        _wait_for_success(self.w3, fn.transact({"from": self.w3.to_checksum_address(sender)}), "transfer")

    def approve(self, owner: str, spender: str, amount: int) -> None:
        fn = self.contract.functions.approve(self.w3.to_checksum_address(spender), amount)
        _wait_for_success(self.w3, fn.transact({"from": self.w3.to_checksum_address(owner)}), "approve")


def fetch_snapshot(market: Web3Market, *, use_cache: bool = True) -> MarketSnapshot:
    """Read a market snapshot. Snapshots pinned to a concrete block are cached on disk."""
    from market_vaults.cache import cache_key, get_cached, set_cached

    cacheable = use_cache and isinstance(market.block_identifier, int)
    key = cache_key("snapshot", market.address.lower(), str(market.block_identifier))
    if cacheable:
        cached = get_cached(key)
        if cached is not None:
            return MarketSnapshot(**cached)

    snapshot = read_snapshot(market)
    if cacheable:
        set_cached(key, dataclasses.asdict(snapshot))
    return snapshot
