"""
Service layer constants - API timeouts, contract multipliers, pipeline limits.

Magic numbers shared across services live here so settings modules and
services agree on defaults.
"""

# HTTP API Timeouts (seconds)
API_TIMEOUT = 30  # Standard HTTP request timeout (quote provider, custody)
API_TIMEOUT_SHORT = 15  # Token endpoints

# Cache TTLs (seconds)
OPTION_CHAIN_CACHE_TTL = 300  # 5 minutes - option chain data

# Contract multipliers
OPTION_CONTRACT_MULTIPLIER = 100  # Shares controlled by one standard option contract
EQUITY_MULTIPLIER = 1

# Enrichment pipeline
ENRICHMENT_MAX_CONCURRENCY = 4  # Concurrent chain fetches per enrichment pass

# Quote provider request sizes
POLYGON_CHAIN_PAGE_LIMIT = 250
POLYGON_CONTRACTS_PAGE_LIMIT = 1000

# OAuth token refresh buffer (seconds before expiry to treat token as stale)
TOKEN_REFRESH_BUFFER = 300

# Strategy analysis P&L curve
PNL_CURVE_POINTS = 50
PNL_CURVE_RANGE = 0.5  # Curve spans 50% below the lowest to 50% above the highest price
PNL_CURVE_MIN_PRICE = 0.01
