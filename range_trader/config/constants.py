"""
Centralized constant values for the range trader.
"""

# Strategy identity
DEFAULT_SYMBOL = "EURUSD"
DEFAULT_MAGIC_NUMBER = 20240611

# Trading window and caps
DEFAULT_TRADING_START = "08:00"
DEFAULT_TRADING_END = "20:00"
DEFAULT_MAX_OPEN_POSITIONS = 1
DEFAULT_MAX_DAILY_TRADES = 5

# Volatility window
DEFAULT_VOLATILITY_PERIOD_MINUTES = 60
DEFAULT_VOLATILITY_THRESHOLD_PIPS = 15.0
DEFAULT_ENTRY_MARGIN_FRACTION = 0.2  # trade inside the middle 60% of the range
MIN_EXTREME_AGE_BARS = 3  # range extremes formed in the last 3 bars are too fresh
BAR_INTERVAL = "1m"
DEFAULT_BAR_FETCH_ATTEMPTS = 3

# Stops and targets (pips)
DEFAULT_STOP_LOSS_PIPS = 20.0
DEFAULT_TAKE_PROFIT_PIPS = 30.0
DEFAULT_STOP_SAFETY_MULTIPLIER = 1.5

# Trailing stop
DEFAULT_TRAILING_ACTIVATION_PIPS = 10.0
DEFAULT_TRAILING_PERCENT = 50.0
DEFAULT_TRAILING_MIN_DISTANCE_PIPS = 1.0

# Loss time limit (seconds, 0 disables)
DEFAULT_LOSS_TIME_LIMIT_SECONDS = 300

# Sizing
SIZING_MODE_FIXED = "fixed"
SIZING_MODE_RISK_PERCENT = "risk_percent"
DEFAULT_SIZING_MODE = SIZING_MODE_FIXED
DEFAULT_FIXED_LOT = 0.1
DEFAULT_RISK_PERCENT = 1.0

# Check cadence
DEFAULT_RANDOM_SCHEDULE = True
DEFAULT_CHECKS_PER_HOUR = 4
DEFAULT_MIN_CHECK_MINUTES = 5
DEFAULT_MAX_CHECK_MINUTES = 25
DEFAULT_TICK_INTERVAL_SECONDS = 1.0

# Signal generation
DEFAULT_SIGNAL_MODE = "hybrid"
DEFAULT_MA_PERIOD = 50
DEFAULT_MA_METHOD = "sma"
DEFAULT_MA_TIMEFRAME = "1m"
DEFAULT_INDICATOR_MAX_ATTEMPTS = 5
DEFAULT_INDICATOR_BACKOFF_MIN_MS = 100
DEFAULT_INDICATOR_BACKOFF_MAX_MS = 500

# Paper trading
DEFAULT_INITIAL_BALANCE: float = 10000.0

# Error handling
DEFAULT_ERROR_COOLDOWN = 30  # seconds to wait after consecutive errors
DEFAULT_MAX_CONSECUTIVE_ERRORS = 5
