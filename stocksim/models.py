from dataclasses import asdict, dataclass, field, is_dataclass
from datetime import date


@dataclass(frozen=True)
class OHLCVPoint:
    date: date
    open: float
    high: float
    low: float
    close: float
    volume: int


@dataclass(frozen=True)
class RSIPoint:
    date: date
    value: float


@dataclass
class RSIData:
    value: float
    signal: str
    history: list[RSIPoint] = field(default_factory=list)
    available: bool = True


@dataclass(frozen=True)
class MACDPoint:
    date: date
    macd: float
    signal: float
    histogram: float


@dataclass
class MACDData:
    macd: float
    signal: float
    histogram: float
    trend: str
    history: list[MACDPoint] = field(default_factory=list)
    available: bool = True


@dataclass
class MovingAveragesData:
    sma20: float
    sma50: float
    ema20: float
    price_vs_sma20: str
    price_vs_sma50: str
    signal: str
    available: bool = True


@dataclass(frozen=True)
class BandPoint:
    date: date
    upper: float
    middle: float
    lower: float


@dataclass
class BollingerBandsData:
    upper: float
    middle: float
    lower: float
    percent_b: float
    signal: str
    history: list[BandPoint] = field(default_factory=list)
    available: bool = True


@dataclass
class VolumeData:
    current: int
    average20: int
    trend: str
    percent_vs_average: float
    available: bool = True


@dataclass
class TechnicalIndicators:
    rsi: RSIData
    macd: MACDData
    moving_averages: MovingAveragesData
    bollinger_bands: BollingerBandsData
    volume: VolumeData


@dataclass(frozen=True)
class PriceRange:
    low: float
    high: float


@dataclass(frozen=True)
class PriceBand:
    low: float
    mid: float
    high: float


@dataclass(frozen=True)
class ProjectedPrice:
    period_label: str
    low: float
    mid: float
    high: float


@dataclass
class Prediction:
    target_price: PriceBand
    buy_zone: PriceRange
    sell_zone: PriceRange
    signal: str
    confidence: float
    projected_prices: list[ProjectedPrice]
    score: float = 0.0


@dataclass
class FundamentalsSnapshot:
    symbol: str = ""
    name: str = ""
    sector: str = "Unknown"
    industry: str = "Unknown"
    market_cap: float = 0.0
    beta: float = 1.0
    eps: float = 0.0
    book_value: float = 0.0
    pe_ratio: float = 0.0
    forward_pe: float = 0.0
    peg_ratio: float = 0.0
    return_on_equity: float = 0.0
    analyst_target_price: float = 0.0
    dividend_yield: float = 0.0
    profit_margin: float = 0.0
    operating_margin: float = 0.0
    revenue_per_share: float = 0.0
    fifty_two_week_high: float = 0.0
    fifty_two_week_low: float = 0.0
    shares_outstanding: float = 0.0


@dataclass
class ValuationModel:
    name: str
    fair_value: float | None
    description: str
    confidence: str
    reason: str = ""


@dataclass
class ValuationResult:
    beta: float
    current_price: float
    capm_expected_return: float
    models: list[ValuationModel]
    composite_fair_value: PriceBand
    percent_over_undervalued: float
    verdict: str


@dataclass
class Quote:
    symbol: str
    name: str
    price: float
    change: float
    change_percent: float
    volume: int
    high: float
    low: float
    open: float
    previous_close: float
    exchange: str


@dataclass
class StockAnalysis:
    indicators: TechnicalIndicators
    prediction: Prediction
    valuation: ValuationResult | None = None


def _jsonable(value):
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    return value


def to_dict(obj) -> dict | None:
    """Plain dict of a result dataclass with dates rendered as ISO strings."""
    if obj is None:
        return None
    if not is_dataclass(obj):
        raise TypeError(f"expected a dataclass instance, got {type(obj).__name__}")
    return _jsonable(asdict(obj))
