"""Share ledger owned by a vault."""

from dataclasses import dataclass, field

from market_vaults.constants import MAX_UINT256
from market_vaults.errors import InsufficientAllowance, InsufficientBalance


@dataclass
class ShareLedger:
    """Share balances, total supply and share allowances.

    An allowance of MAX_UINT256 is treated as unlimited and never decremented.
    """

    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[tuple[str, str], int] = field(default_factory=dict)
    total_supply: int = 0

    def balance_of(self, account: str) -> int:
        return self.balances.get(account.lower(), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((owner.lower(), spender.lower()), 0)

    def approve(self, owner: str, spender: str, shares: int) -> None:
        self.allowances[(owner.lower(), spender.lower())] = shares

    def spend_allowance(self, owner: str, spender: str, shares: int) -> None:
        allowed = self.allowance(owner, spender)
        if allowed == MAX_UINT256:
            return
        if allowed < shares:
            raise InsufficientAllowance(owner, spender, allowed, shares)
        self.approve(owner, spender, allowed - shares)

    def mint(self, account: str, shares: int) -> None:
        self.balances[account.lower()] = self.balance_of(account) + shares
        self.total_supply += shares

    def burn(self, account: str, shares: int) -> None:
        balance = self.balance_of(account)
        if balance < shares:
            raise InsufficientBalance(account, balance, shares)
        self.balances[account.lower()] = balance - shares
        self.total_supply -= shares

    def transfer(self, sender: str, recipient: str, shares: int) -> None:
        self.burn(sender, shares)
        self.mint(recipient, shares)
