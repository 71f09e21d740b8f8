from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import date

import numpy as np
import pandas as pd

from .config import (
    BASE_MONTHLY_GROWTH,
    BUY_ZONE,
    CONFIDENCE_CEIL,
    CONFIDENCE_FLOOR,
    DEFAULT_VOLATILITY,
    MAX_SCORE,
    MIN_VOLATILITY_POINTS,
    PROJECTION_PERIODS,
    SELL_ZONE,
    SIGNAL_SCORE,
    STRONG_SIGNAL_SCORE,
    TRADING_DAYS_YEAR,
    TREND_GROWTH_SPAN,
)
from .models import OHLCVPoint, Prediction, PriceBand, PriceRange, ProjectedPrice, TechnicalIndicators

SIGNAL_LABELS = {
    "strong_buy": "Strong Buy",
    "buy": "Buy",
    "hold": "Hold",
    "sell": "Sell",
    "strong_sell": "Strong Sell",
}

SIGNAL_COLORS = {
    "strong_buy": "#16a34a",
    "buy": "#4ade80",
    "hold": "#facc15",
    "sell": "#f87171",
    "strong_sell": "#dc2626",
}


def score_indicators(indicators: TechnicalIndicators) -> float:
    score = 0.0

    rsi = indicators.rsi
    if rsi.signal == "oversold":
        score += 2
    elif rsi.signal == "overbought":
        score -= 2
    elif rsi.value < 45:
        score += 1
    elif rsi.value > 55:
        score -= 1

    macd = indicators.macd
    if macd.trend == "bullish":
        score += 2
        if macd.histogram > 0:
            score += 0.5
    elif macd.trend == "bearish":
        score -= 2
        if macd.histogram < 0:
            score -= 0.5

    ma = indicators.moving_averages
    if ma.signal == "bullish":
        score += 2
    elif ma.signal == "bearish":
        score -= 2
    if ma.price_vs_sma20 == "above":
        score += 0.5
    if ma.price_vs_sma50 == "above":
        score += 0.5

    # selling pressure near the upper band weighs half as much as the lower-band opportunity
    bands = indicators.bollinger_bands
    if bands.signal == "oversold":
        score += 2
    elif bands.signal == "overbought":
        score -= 1

    # volume only amplifies an existing direction
    if indicators.volume.trend == "above_average":
        if score > 0:
            score += 1
        elif score < 0:
            score -= 1

    return score


def classify_score(score: float) -> str:
    if score >= STRONG_SIGNAL_SCORE:
        return "strong_buy"
    if score >= SIGNAL_SCORE:
        return "buy"
    if score <= -STRONG_SIGNAL_SCORE:
        return "strong_sell"
    if score <= -SIGNAL_SCORE:
        return "sell"
    return "hold"


def score_confidence(score: float) -> float:
    normalized = (score + MAX_SCORE) / (2 * MAX_SCORE) * 100.0
    return min(CONFIDENCE_CEIL, max(CONFIDENCE_FLOOR, normalized))


def annualized_volatility(points: Sequence[OHLCVPoint]) -> float:
    if len(points) < MIN_VOLATILITY_POINTS:
        return DEFAULT_VOLATILITY

    closes = np.array([p.close for p in points], dtype=float)
    prev = closes[:-1]
    valid = prev > 0
    if not valid.any():
        return DEFAULT_VOLATILITY
    returns = (closes[1:][valid] - prev[valid]) / prev[valid]
    return float(np.std(returns) * math.sqrt(TRADING_DAYS_YEAR))


def period_label(months_ahead: int, start: date | None = None) -> str:
    base = pd.Timestamp(start or date.today())
    return (base + pd.DateOffset(months=months_ahead)).strftime("%b %Y")


def project_prices(
    current_price: float,
    score: float,
    volatility: float,
    start: date | None = None,
) -> list[ProjectedPrice]:
    monthly_growth = BASE_MONTHLY_GROWTH + (score / MAX_SCORE) * TREND_GROWTH_SPAN

    projected: list[ProjectedPrice] = []
    price = current_price
    for month in range(1, PROJECTION_PERIODS + 1):
        price *= 1 + monthly_growth
        spread = price * volatility * math.sqrt(month / 12)
        projected.append(
            ProjectedPrice(
                period_label=period_label(month, start),
                low=round(price - spread, 2),
                mid=round(price, 2),
                high=round(price + spread, 2),
            )
        )
    return projected


def generate_prediction(
    points: Sequence[OHLCVPoint],
    indicators: TechnicalIndicators,
    start: date | None = None,
) -> Prediction:
    """Turn an indicator bundle into a signal, a confidence and a five-month price path.

    The score is additive over the five indicators and bounded by ``MAX_SCORE``
    in magnitude. Confidence is the score mapped onto 0-100 and clamped to
    [20, 95]. The projection compounds the last close by a monthly growth rate
    of 2% shifted by up to 3% in the direction of the score, with a band that
    widens with the square root of elapsed time.
    """
    current_price = float(points[-1].close) if points else 0.0

    score = score_indicators(indicators)
    projected = project_prices(current_price, score, annualized_volatility(points), start)
    final = projected[-1]

    return Prediction(
        target_price=PriceBand(low=final.low, mid=final.mid, high=final.high),
        buy_zone=PriceRange(
            low=round(current_price * BUY_ZONE[0], 2),
            high=round(current_price * BUY_ZONE[1], 2),
        ),
        sell_zone=PriceRange(
            low=round(final.mid * SELL_ZONE[0], 2),
            high=round(final.high * SELL_ZONE[1], 2),
        ),
        signal=classify_score(score),
        confidence=float(math.floor(score_confidence(score) + 0.5)),
        projected_prices=projected,
        score=score,
    )


def signal_label(signal: str) -> str:
    return SIGNAL_LABELS.get(signal, "Unknown")


def signal_color(signal: str) -> str:
    return SIGNAL_COLORS.get(signal, "#9ca3af")
