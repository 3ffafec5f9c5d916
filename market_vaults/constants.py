"""Constants and configuration for money-market vault accounting."""

# Fixed-point base: 18 fractional decimal digits.
WAD = 10**18
# Numeric width of the market's own arithmetic.
MAX_UINT256 = 2**256 - 1

# Maximum borrow rate the market accepts per accrual unit (0.0005e16).
# Any rate-model answer above this is treated as corrupt.
BORROW_RATE_MAX = 5 * 10**12

# Blocks per year at 12s block time (accrual is per block on chain).
BLOCKS_PER_YEAR = 2_628_000

# Status code returned by the market's mint/redeem entry points on success.
MARKET_NO_ERROR = 0

# Minimal ABI for the money market (principal token) - only what accrual replication
# and vault delegation need.
MARKET_MIN_ABI: list[dict] = [
    {
        "type": "function",
        "name": "accrualBlockNumber",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "exchangeRateStored",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "exchangeRateCurrent",
        "stateMutability": "nonpayable",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "getCash",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "totalBorrows",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "totalReserves",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "totalSupply",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "reserveFactorMantissa",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "initialExchangeRateMantissa",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "interestRateModel",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "comptroller",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "underlying",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "owner", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "mint",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "mintAmount", "type": "uint256"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "redeemUnderlying",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "redeemAmount", "type": "uint256"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]

# Minimal ABI for the interest-rate model attached to a market.
INTEREST_RATE_MODEL_MIN_ABI: list[dict] = [
    {
        "type": "function",
        "name": "getBorrowRate",
        "stateMutability": "view",
        "inputs": [
            {"name": "cash", "type": "uint256"},
            {"name": "borrows", "type": "uint256"},
            {"name": "reserves", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]

# Minimal ABI for the comptroller - mint pause flag only.
COMPTROLLER_MIN_ABI: list[dict] = [
    {
        "type": "function",
        "name": "mintGuardianPaused",
        "stateMutability": "view",
        "inputs": [{"name": "cToken", "type": "address"}],
        "outputs": [{"name": "", "type": "bool"}],
    },
]

ERC20_MIN_ABI: list[dict] = [
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "owner", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "transfer",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "approve",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "decimals",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
    {
        "type": "function",
        "name": "symbol",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
]

# Used only when neither --rpc-url nor ETH_RPC_URL are provided.
DEFAULT_PUBLIC_ETH_RPC_URLS = (
    "https://eth.llamarpc.com",
    "https://ethereum.publicnode.com",
)

# CREATE2 address derivation prefix.
CREATE2_PREFIX = b"\xff"

# Cache configuration
CACHE_DIR_NAME = ".market_vaults_cache"
CACHE_VERSION = "1"  # Increment to invalidate all caches
