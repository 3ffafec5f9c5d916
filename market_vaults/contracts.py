"""Contract interaction functions."""

from typing import TYPE_CHECKING

from market_vaults.constants import MARKET_MIN_ABI
from market_vaults.models import MarketContracts

if TYPE_CHECKING:
    from web3 import Web3  # pragma: no cover


def resolve_market_contracts(w3: "Web3", market_address: str) -> MarketContracts:
    """
    Resolve the comptroller, interest-rate model and underlying asset of a market.

    The market contract is the single entry point: every collaborator address is read from it.
    """
    market = w3.eth.contract(
        address=w3.to_checksum_address(market_address),
        abi=MARKET_MIN_ABI,
    )

    comptroller = market.functions.comptroller().call()
    interest_rate_model = market.functions.interestRateModel().call()
    underlying = market.functions.underlying().call()

    return MarketContracts(
        market=w3.to_checksum_address(market_address),
        comptroller=comptroller,
        interest_rate_model=interest_rate_model,
        underlying=underlying,
    )
