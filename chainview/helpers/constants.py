"""Common configuration constants used across the application."""

# Provider Endpoints
ETHERSCAN_API_URL = "https://api.etherscan.io/v2/api"
"""Etherscan v2 multichain API endpoint"""

COINGECKO_API_URL = "https://api.coingecko.com/api/v3"
"""CoinGecko public API base URL"""

DEFAULT_CHAIN_ID = "1"
"""Ethereum mainnet chain id for Etherscan v2"""

COINGECKO_KEY_HEADER = "x-cg-demo-api-key"
"""Header carrying a CoinGecko demo API key"""

# HTTP and Network Constants
DEFAULT_TIMEOUT = 10.0
"""Per-attempt HTTP request timeout in seconds"""

# Rate Limiting
RATE_LIMIT_DELAY_MS = 400
"""Minimum spacing between request starts (~2.5 req/s, provider allows 5)"""

INITIAL_DELAY_MS = 100
"""Stagger applied before resolving the latest block number"""

# Retry Configuration
MAX_RETRIES = 3
"""Default maximum number of retries on rate-limit responses"""

RETRY_BASE_DELAY_MS = 1000
"""Base delay for exponential backoff in milliseconds (1s, 2s, 4s, ...)"""

# Fan-out Limits
MAX_LATEST_BLOCKS = 10
"""Upper bound on concurrent block fetches for the latest-blocks view"""

MAX_TRENDING_COINS = 10
"""Upper bound on trending coins enriched with per-coin market data"""

DEFAULT_TOP_COINS = 10
"""Default page size for the top coins by market cap"""

# Chain Constants
AVERAGE_BLOCK_TIME_SECONDS = 12.0
"""Average Ethereum block time used for the TPS estimate"""

WEI_PER_ETH = 10**18
"""Number of wei in one ether"""

LATEST_TRANSACTIONS_FEED_ADDRESS = "0xdAC17F958D2ee523a2206206994597C13D831ec7"
"""USDT contract, busy enough to serve as a latest-activity feed"""

# Benign Etherscan envelope messages (status "0" but not an error)
BENIGN_API_MESSAGES = ("No transactions found", "No record found")
"""Messages that mean an empty result rather than a failure"""

RATE_LIMIT_MARKERS = ("rate limit", "max calls per sec")
"""Lower-cased fragments that identify an embedded rate-limit message"""


__all__ = [
    "AVERAGE_BLOCK_TIME_SECONDS",
    "BENIGN_API_MESSAGES",
    "COINGECKO_API_URL",
    "COINGECKO_KEY_HEADER",
    "DEFAULT_CHAIN_ID",
    "DEFAULT_TIMEOUT",
    "DEFAULT_TOP_COINS",
    "ETHERSCAN_API_URL",
    "INITIAL_DELAY_MS",
    "LATEST_TRANSACTIONS_FEED_ADDRESS",
    "MAX_LATEST_BLOCKS",
    "MAX_RETRIES",
    "MAX_TRENDING_COINS",
    "RATE_LIMIT_DELAY_MS",
    "RATE_LIMIT_MARKERS",
    "RETRY_BASE_DELAY_MS",
    "WEI_PER_ETH",
]
