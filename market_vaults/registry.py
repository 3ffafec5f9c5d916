"""Asset-to-market registry and deterministic vault construction."""

from collections.abc import Callable
from dataclasses import dataclass, field

from web3 import Web3

from market_vaults.constants import CREATE2_PREFIX
from market_vaults.errors import MarketUnresolved
from market_vaults.interfaces import AssetToken, Market
from market_vaults.models import VaultState
from market_vaults.vault import Vault


@dataclass
class MarketRegistry:
    """Explicit asset -> market mapping. Entries are added or overwritten, never removed."""

    markets: dict[str, Market] = field(default_factory=dict)

    def register(self, asset: str, market: Market) -> None:
        self.markets[asset.lower()] = market

    def resolve_market(self, asset: str) -> Market:
        market = self.markets.get(asset.lower())
        if market is None:
            raise MarketUnresolved(asset)
        return market


def create2_address(deployer: str, salt: bytes, init_code_hash: bytes) -> str:
    """Address of a contract deployed with CREATE2: keccak256(0xff ++ deployer ++ salt ++ init_code_hash)[12:]."""
    if len(salt) != 32 or len(init_code_hash) != 32:
        raise ValueError("salt and init_code_hash must be 32 bytes")
    digest = Web3.keccak(CREATE2_PREFIX + bytes.fromhex(deployer.removeprefix("0x")) + salt + init_code_hash)
    return Web3.to_checksum_address(digest[12:])


def vault_salt(asset: str) -> bytes:
    """Per-asset CREATE2 salt: keccak256 of the asset address bytes."""
    return bytes(Web3.keccak(hexstr=Web3.to_checksum_address(asset)))


class VaultFactory:
    """Builds one vault per registered asset at a deterministic address."""

    def __init__(self, registry: MarketRegistry, deployer: str, init_code_hash: bytes) -> None:
        self.registry = registry
        self.deployer = Web3.to_checksum_address(deployer)
        self.init_code_hash = init_code_hash

    def vault_address(self, asset: str) -> str:
        return create2_address(self.deployer, vault_salt(asset), self.init_code_hash)

    def create_vault(
        self,
        asset: AssetToken,
        reward_recipient: str,
        *,
        clock: Callable[[], int] | None = None,
        name: str = "",
        symbol: str = "",
        decimals: int = 18,
    ) -> Vault:
        """Resolve `asset`'s market and build its vault. Fails with MarketUnresolved if none is registered."""
        market = self.registry.resolve_market(asset.address)
        state = VaultState(
            address=self.vault_address(asset.address),
            asset=asset.address,
            market=market.address,
            reward_recipient=reward_recipient,
            name=name,
            symbol=symbol,
            decimals=decimals,
        )
        return Vault(state, market, asset, clock=clock)
