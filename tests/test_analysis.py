from datetime import date, timedelta

import pandas as pd
import pytest

from stocksim import analysis, market_data
from stocksim.analysis import analyze_series, build_stock_analysis
from stocksim.cache_store import TTLCache
from stocksim.indicators import SeriesOrderError
from stocksim.models import FundamentalsSnapshot, OHLCVPoint


def _uptrend(days=90, start=date(2024, 1, 1)):
    points = []
    for i in range(days):
        close = 100.0 * 1.003**i
        points.append(
            OHLCVPoint(
                date=start + timedelta(days=i),
                open=close,
                high=close * 1.005,
                low=close * 0.995,
                close=close,
                volume=1_000_000,
            )
        )
    return points


def test_steady_uptrend_end_to_end():
    result = analyze_series(_uptrend())

    assert result.indicators.moving_averages.signal == "bullish"
    assert result.indicators.rsi.signal != "oversold"
    assert result.prediction.signal in {"buy", "strong_buy"}
    assert result.valuation is None


def test_valuation_attached_when_fundamentals_given():
    points = _uptrend()
    result = analyze_series(points, fundamentals=FundamentalsSnapshot(eps=6.0, book_value=30.0))

    assert result.valuation is not None
    assert result.valuation.current_price == points[-1].close
    assert len(result.valuation.models) == 5

    priced = analyze_series(points, fundamentals=FundamentalsSnapshot(), current_price=12.5)
    assert priced.valuation.composite_fair_value.mid == 12.5


def test_validation_is_opt_in():
    points = _uptrend(30)
    shuffled = [points[1], points[0]] + points[2:]

    analyze_series(shuffled)
    with pytest.raises(SeriesOrderError):
        analyze_series(shuffled, validate=True)


def test_build_stock_analysis_blank_input():
    assert build_stock_analysis("   ") is None


def test_build_stock_analysis_falls_back_to_mock(monkeypatch):
    monkeypatch.setattr(analysis, "fetch_quote", lambda symbol, cache=None: None)
    monkeypatch.setattr(analysis, "fetch_history", lambda symbol, months=3, cache=None: [])
    monkeypatch.setattr(analysis, "fetch_fundamentals", lambda symbol, cache=None: None)

    result = build_stock_analysis("brk.b")

    assert result["symbol"] == "BRK-B"
    assert result["is_mock_data"] is True
    assert result["valuation"] is None
    assert result["quote"]["price"] == result["historical_data"][-1]["close"]
    assert isinstance(result["historical_data"][0]["date"], str)
    assert len(result["prediction"]["projected_prices"]) == 5


def test_build_stock_analysis_with_provider_data(monkeypatch):
    points = _uptrend()
    monkeypatch.setattr(analysis, "fetch_quote", lambda symbol, cache=None: None)
    monkeypatch.setattr(analysis, "fetch_history", lambda symbol, months=3, cache=None: points)
    monkeypatch.setattr(
        analysis,
        "fetch_fundamentals",
        lambda symbol, cache=None: FundamentalsSnapshot(symbol=symbol, analyst_target_price=200.0),
    )

    result = build_stock_analysis("AAPL")

    assert result["is_mock_data"] is False
    assert result["valuation"]["models"][3]["fair_value"] == 200.0
    assert result["indicators"]["moving_averages"]["signal"] == "bullish"
    assert len(result["sma50_history"]) == len(points) - 49
    assert result["fundamentals"]["symbol"] == "AAPL"


class _CountingTicker:
    info_calls = 0

    def __init__(self, symbol):
        self.symbol = symbol

    @property
    def info(self):
        type(self).info_calls += 1
        return {"regularMarketPrice": 150.0, "currentPrice": 150.0, "trailingPE": 25.0, "bookValue": 4.0}

    def history(self, period, interval, auto_adjust):
        idx = pd.date_range("2025-01-01", periods=30, freq="D")
        return pd.DataFrame(
            {"Open": 150.0, "High": 151.0, "Low": 149.0, "Close": 150.0, "Volume": 1_000.0},
            index=idx,
        )


def test_quote_and_fundamentals_share_one_info_request(monkeypatch):
    _CountingTicker.info_calls = 0
    monkeypatch.setattr(market_data.yf, "Ticker", _CountingTicker)

    result = build_stock_analysis("AAPL")

    assert _CountingTicker.info_calls == 1
    assert result["quote"]["price"] == 150.0
    assert result["fundamentals"]["eps"] == 6.0
    assert result["is_mock_data"] is False


def test_shared_cache_spans_lookups(monkeypatch):
    _CountingTicker.info_calls = 0
    monkeypatch.setattr(market_data.yf, "Ticker", _CountingTicker)
    cache = TTLCache()

    build_stock_analysis("AAPL", cache=cache)
    build_stock_analysis("aapl", cache=cache)

    assert _CountingTicker.info_calls == 1
