"""Exception types raised by the exchange-rate engine and vault operations.

Nothing in this package retries or recovers locally: every error aborts the
enclosing call and reaches the caller unchanged.
"""


class MarketVaultError(Exception):
    """Base class for all package errors."""


class FixedPointError(MarketVaultError, ArithmeticError):
    """A fixed-point operation left its valid domain."""


class ArithmeticOverflow(FixedPointError):
    """Intermediate product exceeds uint256 (or an operand is negative)."""


class ArithmeticUnderflow(FixedPointError):
    """A subtraction would go below zero."""


class DivisionByZero(FixedPointError, ZeroDivisionError):
    """Fixed-point division by zero."""


class RateTooHigh(MarketVaultError):
    """The rate model returned a borrow rate above the market's own ceiling."""

    def __init__(self, borrow_rate: int, maximum: int) -> None:
        super().__init__(f"borrow rate {borrow_rate} exceeds maximum {maximum}")
        self.borrow_rate = borrow_rate
        self.maximum = maximum


class StaleTimestamp(MarketVaultError):
    """Requested timestamp precedes the market's last accrual."""

    def __init__(self, current: int, accrual: int) -> None:
        super().__init__(f"timestamp {current} is before last accrual {accrual}")
        self.current = current
        self.accrual = accrual


class MarketOperationFailed(MarketVaultError):
    """The market rejected a mint/redeem with a non-zero status code."""

    def __init__(self, operation: str, code: int) -> None:
        super().__init__(f"market {operation} failed with code {code}")
        self.operation = operation
        self.code = code


class MarketUnresolved(MarketVaultError, LookupError):
    """No market is registered for an asset."""

    def __init__(self, asset: str) -> None:
        super().__init__(f"no market registered for asset {asset}")
        self.asset = asset


class ZeroShares(MarketVaultError):
    """Deposit would mint zero shares."""


class ZeroAssets(MarketVaultError):
    """Redeem would return zero assets."""


class InsufficientBalance(MarketVaultError):
    def __init__(self, account: str, balance: int, needed: int) -> None:
        super().__init__(f"{account}: balance {balance} < {needed}")
        self.account = account
        self.balance = balance
        self.needed = needed


class InsufficientAllowance(MarketVaultError):
    def __init__(self, owner: str, spender: str, allowance: int, needed: int) -> None:
        super().__init__(f"{spender} allowance from {owner}: {allowance} < {needed}")
        self.owner = owner
        self.spender = spender
        self.allowance = allowance
        self.needed = needed


class Reentrancy(MarketVaultError):
    """A vault operation was entered while another one was still in flight."""


class LimitExceeded(MarketVaultError):
    """Requested amount is above the vault's current deposit/mint limit."""

    def __init__(self, operation: str, amount: int, limit: int) -> None:
        super().__init__(f"{operation} of {amount} exceeds limit {limit}")
        self.operation = operation
        self.amount = amount
        self.limit = limit


class PositionUnchanged(MarketVaultError):
    """The market reported success but the vault's principal balance did not move."""

    def __init__(self, operation: str, before: int, after: int) -> None:
        super().__init__(f"market {operation} reported success but position went {before} -> {after}")
        self.operation = operation
        self.before = before
        self.after = after
