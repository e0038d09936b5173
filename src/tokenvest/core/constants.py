"""
Vesting Ledger Constants

Protocol limits and well-known values shared by the grant registry, the
investor pool and the PSTAKE token.
"""

from typing import Final

# =============================================================================
# TIME CONSTANTS (in seconds)
# =============================================================================

SECONDS_PER_HOUR: Final[int] = 3600
SECONDS_PER_DAY: Final[int] = 86400
SECONDS_PER_30_DAYS: Final[int] = 2592000  # 60 * 60 * 24 * 30
SECONDS_PER_YEAR: Final[int] = 31536000  # 60 * 60 * 24 * 365

# =============================================================================
# ADDRESSES
# =============================================================================

ZERO_ADDRESS: Final[str] = "0x" + "0" * 40

# =============================================================================
# GRANT LIMITS
# =============================================================================

# Upper bound for cliff and instalment periods, and for how far the grant
# start may sit from the current block time.
MAX_GRANT_PERIOD_SECONDS: Final[int] = 10 * SECONDS_PER_YEAR
MAX_INSTALMENT_COUNT: Final[int] = 1200

# =============================================================================
# TOKEN
# =============================================================================

DEFAULT_DECIMALS: Final[int] = 18
UINT256_MAX: Final[int] = 2**256 - 1

# Inflation rates are expressed in parts of this divisor (100% == divisor)
INFLATION_RATE_DIVISOR: Final[int] = 10**9

# =============================================================================
# INVESTOR POOL
# =============================================================================

DEFAULT_INVESTOR_INSTALMENTS: Final[int] = 12
