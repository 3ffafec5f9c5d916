import pytest

from market_vaults.constants import WAD
from market_vaults.models import VaultState
from market_vaults.vault import Vault
from tests.fakes import ALICE, ASSET, BOB, MARKET, REWARDS, VAULT, FakeMarket, FakeToken


@pytest.fixture
def token() -> FakeToken:
    return FakeToken(address=ASSET, balances={ALICE: 10_000 * WAD, BOB: 10_000 * WAD})


@pytest.fixture
def market(token: FakeToken) -> FakeMarket:
    return FakeMarket(token=token)


@pytest.fixture
def vault(market: FakeMarket, token: FakeToken) -> Vault:
    state = VaultState(address=VAULT, asset=ASSET, market=MARKET, reward_recipient=REWARDS)
    # Uses the market clock: current at the last accrual unless a test sets `market.now`.
    return Vault(state, market, token)
