TRADING_DAYS_YEAR = 252

RSI_PERIOD = 14
RSI_OVERSOLD = 30.0
RSI_OVERBOUGHT = 70.0
RSI_NEUTRAL_VALUE = 50.0

MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9

MA_SHORT = 20
MA_LONG = 50
EMA_PERIOD = 20

BB_PERIOD = 20
BB_MULTIPLIER = 2.0
BB_OVERBOUGHT = 80.0
BB_OVERSOLD = 20.0

VOLUME_PERIOD = 20
VOLUME_BAND_PCT = 20.0

# Predictor scoring
MAX_SCORE = 10.0
CONFIDENCE_FLOOR = 20.0
CONFIDENCE_CEIL = 95.0
STRONG_SIGNAL_SCORE = 5.0
SIGNAL_SCORE = 2.0
BASE_MONTHLY_GROWTH = 0.02
TREND_GROWTH_SPAN = 0.03
DEFAULT_VOLATILITY = 0.15
MIN_VOLATILITY_POINTS = 20
PROJECTION_PERIODS = 5
BUY_ZONE = (0.95, 0.98)
SELL_ZONE = (0.95, 0.98)

# Valuation
RISK_FREE_RATE = 0.0425
MARKET_RETURN = 0.10
GRAHAM_MULTIPLIER = 22.5
DCF_DEFAULT_GROWTH = 0.08
DCF_GROWTH_BOUNDS = (0.02, 0.30)
DCF_TERMINAL_GROWTH = 0.025
DCF_YEARS = 5
ROE_BOOK_CAP = 20.0
CONFIDENCE_WEIGHTS = {"high": 3, "medium": 2, "low": 1}
SIGNIFICANT_GAP_PCT = 25.0
GAP_PCT = 10.0

SECTOR_PE = {
    "Technology": 28,
    "Healthcare": 22,
    "Financial Services": 14,
    "Consumer Cyclical": 20,
    "Consumer Defensive": 22,
    "Energy": 12,
    "Industrials": 18,
    "Basic Materials": 15,
    "Real Estate": 35,
    "Utilities": 18,
    "Communication Services": 20,
}
DEFAULT_SECTOR_PE = 20

# Market data
DEFAULT_HISTORY_MONTHS = 3
CACHE_TTL_SECONDS = 60 * 15
MOCK_START_RANGE = (150.0, 250.0)
MOCK_PRICE_FLOOR = 50.0

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
