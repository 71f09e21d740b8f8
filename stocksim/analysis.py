from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from .cache_store import TTLCache
from .config import DEFAULT_HISTORY_MONTHS, MA_LONG, MA_SHORT
from .indicators import calculate_all_indicators, sma_history, validate_series, volume_history
from .market_data import (
    fetch_fundamentals,
    fetch_history,
    fetch_quote,
    generate_mock_history,
    normalize_symbol,
    quote_from_history,
)
from .models import FundamentalsSnapshot, OHLCVPoint, StockAnalysis, to_dict
from .predictor import generate_prediction
from .valuation import calculate_valuation

logger = logging.getLogger(__name__)


def analyze_series(
    points: Sequence[OHLCVPoint],
    fundamentals: FundamentalsSnapshot | None = None,
    current_price: float | None = None,
    validate: bool = False,
    start: date | None = None,
) -> StockAnalysis:
    if validate:
        validate_series(points)

    indicators = calculate_all_indicators(points)
    prediction = generate_prediction(points, indicators, start=start)

    valuation = None
    if fundamentals is not None:
        price = current_price if current_price is not None else (points[-1].close if points else 0.0)
        valuation = calculate_valuation(fundamentals, price)
    return StockAnalysis(indicators=indicators, prediction=prediction, valuation=valuation)


def build_stock_analysis(
    ticker_input: str,
    months: int = DEFAULT_HISTORY_MONTHS,
    include_valuation: bool = True,
    cache: TTLCache | None = None,
) -> dict | None:
    symbol = normalize_symbol(ticker_input)
    if not symbol:
        return None
    # quote and fundamentals share one info payload
    if cache is None:
        cache = TTLCache()

    quote = fetch_quote(symbol, cache=cache)
    points = fetch_history(symbol, months=months, cache=cache)
    is_mock = False
    if not points:
        logger.warning("no history for %s, using mock series", symbol)
        points = generate_mock_history(months)
        is_mock = True
    if quote is None:
        quote = quote_from_history(symbol, points)

    fundamentals = fetch_fundamentals(symbol, cache=cache) if include_valuation else None
    result = analyze_series(points, fundamentals=fundamentals, current_price=quote.price or None)

    return {
        "symbol": symbol,
        "quote": to_dict(quote),
        "historical_data": [to_dict(p) for p in points],
        "indicators": to_dict(result.indicators),
        "prediction": to_dict(result.prediction),
        "valuation": to_dict(result.valuation),
        "fundamentals": to_dict(fundamentals),
        "sma20_history": sma_history(points, MA_SHORT),
        "sma50_history": sma_history(points, MA_LONG),
        "volume_history": volume_history(points),
        "is_mock_data": is_mock,
    }
