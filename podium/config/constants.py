"""
Application constants.

Redis key layout, payout policy defaults and HTTP limits shared across
services. Values that operators are expected to tune live in settings.py.
"""

# Base mainnet
BASE_CHAIN_ID = 8453
USDC_BASE_ADDRESS = "0x833589fcd6edb6e08f4c7c32d4f71b54bda02913"
USDC_DECIMALS = 6
SPEND_PERMISSION_MANAGER_ADDRESS = "0xf85210b21cc50302f477ba56686d2019dc9b67ad"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Timeframes accepted by the ranking store
TIMEFRAMES = ("week", "month", "all-time")

# Top-N ranks that receive a payout
MAX_REWARDED_RANK = 10

# Basis-point denominator for tier percentages (percentage * 100 / 10000)
BASIS_POINTS_DENOMINATOR = 10_000

# Dust threshold: 0.0001 of one asset unit
DUST_THRESHOLD_FRACTION_DIVISOR = 10_000

# Redis keys
ADMIN_PIN_KEY = "admin:pin"
ADMIN_PIN_ATTEMPTS_KEY = "admin_pin_attempts:{client}"
POOL_SIZE_KEY = "reward:pool_size"
LEADERBOARD_KEY = "leaderboard:{timeframe}"
PLAYER_KEY = "player:{player_id}"
DISTRIBUTION_RECORD_KEY = "reward_distribution:{timeframe}:{timestamp_ms}"
DISTRIBUTION_RECORD_PATTERN = "reward_distribution:{timeframe}:*"
DISTRIBUTION_LOCK_KEY = "reward_distribution_lock:{timeframe}"
SPENDING_GRANT_KEY = "spend_permission:{authorizer}"

# History
HISTORY_RETENTION_DAYS = 30
HISTORY_DEFAULT_LIMIT = 5
HISTORY_MAX_LIMIT = 100

# Admin PIN format
ADMIN_PIN_PATTERN = r"^\d{4,6}$"
