from __future__ import annotations

import logging
from datetime import date, timedelta

import numpy as np
import pandas as pd
import yfinance as yf

from .cache_store import TTLCache
from .config import DEFAULT_HISTORY_MONTHS, MOCK_PRICE_FLOOR, MOCK_START_RANGE
from .models import FundamentalsSnapshot, OHLCVPoint, Quote

logger = logging.getLogger(__name__)


def _safe_float(value) -> float | None:
    if value is None:
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    if pd.isna(num):
        return None
    return num


def _num(info: dict, *keys: str, default: float = 0.0) -> float:
    for key in keys:
        val = _safe_float(info.get(key))
        if val:
            return val
    return default


def normalize_symbol(text: str) -> str:
    symbol = (text or "").strip().upper()
    if not symbol:
        return ""
    if symbol.startswith("TSX:"):
        return symbol[len("TSX:") :] + ".TO"
    if symbol.endswith(".TRT"):
        return symbol[: -len(".TRT")] + ".TO"
    if symbol.endswith(".TO"):
        return symbol
    base, dot, suffix = symbol.partition(".")
    # class shares such as BRK.B are quoted as BRK-B
    if dot and len(suffix) == 1:
        return f"{base}-{suffix}"
    return symbol


def history_to_points(history: pd.DataFrame) -> list[OHLCVPoint]:
    if history is None or history.empty or not isinstance(history.index, pd.DatetimeIndex):
        return []

    daily = history.copy()
    if daily.index.tz is not None:
        daily.index = daily.index.tz_localize(None)

    for col in ["Open", "High", "Low", "Close", "Volume"]:
        if col not in daily.columns:
            daily[col] = pd.NA
        daily[col] = pd.to_numeric(daily[col], errors="coerce")
    daily = daily.dropna(subset=["Close"])
    daily[["Open", "High", "Low"]] = daily[["Open", "High", "Low"]].fillna(0.0)
    daily["Volume"] = daily["Volume"].fillna(0.0).clip(lower=0.0)

    daily = daily.sort_index(kind="stable")
    daily = daily[~daily.index.normalize().duplicated(keep="last")]

    return [
        OHLCVPoint(
            date=ts.date(),
            open=float(row.Open),
            high=float(row.High),
            low=float(row.Low),
            close=float(row.Close),
            volume=int(row.Volume),
        )
        for ts, row in daily.iterrows()
    ]


def fetch_history(symbol: str, months: int = DEFAULT_HISTORY_MONTHS, cache: TTLCache | None = None) -> list[OHLCVPoint]:
    key = f"history:{symbol}:{months}"
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            return cached

    try:
        hist = yf.Ticker(symbol).history(period=f"{int(months)}mo", interval="1d", auto_adjust=False)
    except Exception:
        logger.warning("history fetch failed for %s", symbol, exc_info=True)
        return []

    points = history_to_points(hist if isinstance(hist, pd.DataFrame) else pd.DataFrame())
    if points and cache is not None:
        cache.set(key, points)
    return points


def quote_from_info(symbol: str, info: dict) -> Quote | None:
    price = _num(info, "regularMarketPrice", "currentPrice")
    if not price:
        return None
    return Quote(
        symbol=symbol,
        name=info.get("shortName") or info.get("longName") or symbol,
        price=price,
        change=_num(info, "regularMarketChange"),
        change_percent=_num(info, "regularMarketChangePercent"),
        volume=int(_num(info, "regularMarketVolume", "volume")),
        high=_num(info, "regularMarketDayHigh", "dayHigh", default=price),
        low=_num(info, "regularMarketDayLow", "dayLow", default=price),
        open=_num(info, "regularMarketOpen", "open", default=price),
        previous_close=_num(info, "regularMarketPreviousClose", "previousClose", default=price),
        exchange=info.get("exchange") or "US",
    )


def quote_from_history(symbol: str, points: list[OHLCVPoint]) -> Quote:
    last = points[-1] if points else None
    prev_close = points[-2].close if len(points) > 1 else 0.0
    return Quote(
        symbol=symbol,
        name=symbol,
        price=last.close if last else 0.0,
        change=0.0,
        change_percent=0.0,
        volume=last.volume if last else 0,
        high=last.high if last else 0.0,
        low=last.low if last else 0.0,
        open=last.open if last else 0.0,
        previous_close=prev_close,
        exchange="US",
    )


def fundamentals_from_info(symbol: str, info: dict) -> FundamentalsSnapshot:
    pe_ratio = _num(info, "trailingPE")
    price = _num(info, "currentPrice", "regularMarketPrice")
    eps = price / pe_ratio if pe_ratio > 0 and price > 0 else 0.0
    return FundamentalsSnapshot(
        symbol=symbol,
        name=info.get("shortName") or info.get("longName") or symbol,
        sector=info.get("sector") or "Unknown",
        industry=info.get("industry") or "Unknown",
        market_cap=_num(info, "marketCap"),
        beta=_num(info, "beta", default=1.0),
        eps=eps,
        book_value=_num(info, "bookValue"),
        pe_ratio=pe_ratio,
        forward_pe=_num(info, "forwardPE"),
        peg_ratio=_num(info, "pegRatio", "trailingPegRatio"),
        return_on_equity=_num(info, "returnOnEquity"),
        analyst_target_price=_num(info, "targetMeanPrice"),
        dividend_yield=_num(info, "dividendYield"),
        profit_margin=_num(info, "profitMargins"),
        operating_margin=_num(info, "operatingMargins"),
        revenue_per_share=_num(info, "revenuePerShare"),
        fifty_two_week_high=_num(info, "fiftyTwoWeekHigh"),
        fifty_two_week_low=_num(info, "fiftyTwoWeekLow"),
        shares_outstanding=_num(info, "sharesOutstanding"),
    )


def _fetch_info(symbol: str, cache: TTLCache | None) -> dict | None:
    key = f"info:{symbol}"
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            return cached
    try:
        info = yf.Ticker(symbol).info or {}
    except Exception:
        logger.warning("info fetch failed for %s", symbol, exc_info=True)
        return None
    if info and cache is not None:
        cache.set(key, info)
    return info


def fetch_quote(symbol: str, cache: TTLCache | None = None) -> Quote | None:
    info = _fetch_info(symbol, cache)
    if not info:
        return None
    return quote_from_info(symbol, info)


def fetch_fundamentals(symbol: str, cache: TTLCache | None = None) -> FundamentalsSnapshot | None:
    info = _fetch_info(symbol, cache)
    # an info payload with no statistics at all is treated as missing
    if not info or not any(info.get(k) for k in ("trailingPE", "bookValue", "beta", "targetMeanPrice", "marketCap")):
        return None
    return fundamentals_from_info(symbol, info)


def generate_mock_history(
    months: int = DEFAULT_HISTORY_MONTHS,
    seed: int | None = None,
    end: date | None = None,
) -> list[OHLCVPoint]:
    """Random-walk weekday series used when no provider returns data."""
    rng = np.random.default_rng(seed)
    end = end or date.today()
    price = rng.uniform(*MOCK_START_RANGE)

    points: list[OHLCVPoint] = []
    for back in range(months * 22, -1, -1):
        day = end - timedelta(days=back)
        if day.weekday() >= 5:
            continue
        price = max(MOCK_PRICE_FLOOR, price + (rng.random() - 0.48) * 5)
        high = price + rng.random() * 3
        low = price - rng.random() * 3
        points.append(
            OHLCVPoint(
                date=day,
                open=round(low + rng.random() * (high - low), 2),
                high=round(high, 2),
                low=round(low, 2),
                close=round(low + rng.random() * (high - low), 2),
                volume=int(10_000_000 + rng.random() * 20_000_000),
            )
        )
    return points
